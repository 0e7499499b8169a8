"""Version utility to read from environment or pyproject.toml"""

import os
import tomllib
from importlib import metadata
from pathlib import Path


def get_version() -> str:
    """
    Read version from BUILD_VERSION environment variable, installed metadata or pyproject.toml.

    Priority:
    1. BUILD_VERSION environment variable (set by release builds)
    2. Installed distribution metadata
    3. pyproject.toml project.version (source checkout)
    4. "unknown" as fallback

    Returns:
        str: Version string (e.g., "0.4.0")
    """
    if build_version := os.getenv("BUILD_VERSION"):
        return build_version

    try:
        return metadata.version("credvend")
    except metadata.PackageNotFoundError:
        pass

    try:
        pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
            return data.get("project", {}).get("version", "unknown")
    except (OSError, tomllib.TOMLDecodeError):
        return "unknown"


__version__ = get_version()

#: Client identification header sent with every request
USER_AGENT = f"credvend/{__version__} python-requests"
