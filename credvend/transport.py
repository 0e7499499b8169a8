"""Pooled, authenticated HTTP transport.

The session carries whatever authentication material its owner attached (cookies,
bearer headers, client certificates). Pre-flight hooks run on every prepared request
before it is sent, for example to refresh a session token that is about to expire.
"""

import os
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

import requests
import structlog
from requests.adapters import HTTPAdapter

logger = structlog.get_logger(__name__)

PreflightHook = Callable[[requests.PreparedRequest], None]


def _default_pool_maxsize() -> int:
    return (os.cpu_count() or 1) + 1


@dataclass(frozen=True)
class TransportSettings:
    """Connection pool and timeout settings, fixed when the transport is built.

    Attributes:
        connect_timeout: Seconds to wait for a connection to be established
        read_timeout: Seconds to wait between bytes of the response (None waits forever)
        pool_connections: Number of per-host pools to keep
        pool_maxsize: Maximum idle connections kept per host
    """

    connect_timeout: float = 10.0
    read_timeout: Optional[float] = 60.0
    pool_connections: int = 100
    pool_maxsize: int = field(default_factory=_default_pool_maxsize)

    @property
    def timeout(self) -> tuple:
        return (self.connect_timeout, self.read_timeout)


class AuthenticatedSession:
    """Executes requests over a shared ``requests.Session``.

    Safe to share between threads once construction and hook registration are done.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        settings: Optional[TransportSettings] = None,
        preflight: Iterable[PreflightHook] = (),
    ):
        self.settings = settings or TransportSettings()
        self.session = session or requests.Session()
        self._preflight: list[PreflightHook] = list(preflight)

        # Failed requests are never retried at this layer
        adapter = HTTPAdapter(
            pool_connections=self.settings.pool_connections,
            pool_maxsize=self.settings.pool_maxsize,
            max_retries=0,
        )
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

    def add_preflight(self, hook: PreflightHook) -> None:
        self._preflight.append(hook)

    def prepare(self, request: requests.Request) -> requests.PreparedRequest:
        """Prepare a request with the session's auth material and run the pre-flight hooks.

        Raises:
            Exception: Whatever a pre-flight hook raises; the request must not be sent
        """
        prepared = self.session.prepare_request(request)
        for hook in self._preflight:
            hook(prepared)
        return prepared

    def send(self, prepared: requests.PreparedRequest) -> requests.Response:
        env_settings = self.session.merge_environment_settings(prepared.url, {}, None, None, None)
        return self.session.send(prepared, timeout=self.settings.timeout, **env_settings)

    def close_idle_connections(self) -> None:
        """Drop pooled idle connections. In-flight requests are not affected."""
        for adapter in self.session.adapters.values():
            adapter.close()
        logger.debug("Closed idle connections")


def build_session(
    settings: Optional[TransportSettings] = None,
    preflight: Iterable[PreflightHook] = (),
    session: Optional[requests.Session] = None,
) -> AuthenticatedSession:
    """Build the default pooled transport.

    Args:
        settings: Pool and timeout settings (default: TransportSettings())
        preflight: Hooks run on each prepared request, in order
        session: Pre-authenticated requests.Session to wrap (default: a new session)

    Returns:
        AuthenticatedSession ready to be handed to a Client
    """
    transport = AuthenticatedSession(session=session, settings=settings, preflight=preflight)
    logger.debug(
        "Built HTTP transport",
        connect_timeout=transport.settings.connect_timeout,
        read_timeout=transport.settings.read_timeout,
        pool_maxsize=transport.settings.pool_maxsize,
    )
    return transport
