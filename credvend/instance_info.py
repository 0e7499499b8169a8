"""Snapshot of local instance identity, attached to credential requests when enabled."""

import getpass
import platform
import socket
from typing import Any, Callable, Dict

from .version import __version__

InstanceInfoProvider = Callable[[], Dict[str, Any]]


def _username() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


def _hostname() -> str:
    try:
        return socket.gethostname()
    except OSError:
        return "unknown"


def get_instance_info() -> Dict[str, Any]:
    return {
        "hostname": _hostname(),
        "username": _username(),
        "os": platform.system().lower(),
        "os_version": platform.release(),
        "arch": platform.machine(),
        "python_version": platform.python_version(),
        "client_version": __version__,
    }
