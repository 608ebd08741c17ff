"""
Best-effort host information used to give the AI some context.

None of these lookups fail: anything that cannot be determined falls back to a
placeholder string.
"""

import logging
import os
import platform
from typing import Tuple

import psutil

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
UNKNOWN_SHELL = "Unknown shell"


def _linux_os_info() -> Tuple[str, str]:
    try:
        os_release = platform.freedesktop_os_release()
    except OSError:
        return "Linux", platform.release() or UNKNOWN
    return os_release.get("NAME") or "Linux", os_release.get("VERSION_ID") or UNKNOWN


def get_os_info() -> Tuple[str, str]:
    """Returns the OS name and version, e.g. ("Ubuntu", "22.04")."""
    system = platform.system()
    if system == "Linux":
        return _linux_os_info()
    if system == "Darwin":
        return "macOS", platform.mac_ver()[0] or UNKNOWN
    return system or UNKNOWN, platform.release() or UNKNOWN


def get_shell_info() -> str:
    """Returns the executable name of the process that launched us, usually the shell."""
    try:
        parent = psutil.Process().parent()
        if parent is None:
            return UNKNOWN_SHELL
        return parent.name() or UNKNOWN_SHELL
    except (psutil.Error, OSError) as e:
        logger.debug("Could not determine the parent shell: %s", e)
        return UNKNOWN_SHELL


def get_user() -> str:
    return os.environ.get("USERNAME") or os.environ.get("USER") or UNKNOWN


def get_cwd() -> str:
    try:
        return os.getcwd()
    except OSError:
        return "."
