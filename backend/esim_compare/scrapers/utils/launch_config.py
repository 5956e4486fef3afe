"""Chromium launch configuration and executable discovery."""

import os
import platform
from pathlib import Path
from typing import Callable, List, Optional

import structlog

from esim_compare.config import settings

logger = structlog.get_logger(__name__)


# Resolves the browser binary to launch; None means Playwright's bundled Chromium
BrowserExecutableResolver = Callable[[], Optional[str]]

VIEWPORT = {"width": 1920, "height": 1080}

BROWSER_ARGS: List[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--disable-web-security",
    "--disable-features=VizDisplayCompositor",
    "--disable-blink-features=AutomationControlled",
]

_MAC_CHROME = "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"


def candidate_executable_paths(system: str, machine: str, home: Path) -> List[str]:
    """List browser binaries worth trying for a platform/architecture pair.

    Args:
        system: platform.system() value ("Darwin", "Linux", "Windows")
        machine: platform.machine() value ("arm64", "x86_64", ...)
        home: User home directory

    Returns:
        Candidate paths, most specific first
    """
    playwright_cache = home / "Library" / "Caches" / "ms-playwright"
    if system == "Darwin":
        if machine == "arm64":
            return [
                str(playwright_cache / "chromium" / "chrome-mac-arm64" / "Chromium.app" / "Contents" / "MacOS" / "Chromium"),
                _MAC_CHROME,
            ]
        return [
            str(playwright_cache / "chromium" / "chrome-mac" / "Chromium.app" / "Contents" / "MacOS" / "Chromium"),
            _MAC_CHROME,
        ]
    if system == "Linux":
        return [
            "/usr/bin/chromium",
            "/usr/bin/chromium-browser",
            "/usr/bin/google-chrome-stable",
            "/usr/bin/google-chrome",
        ]
    return []


def resolve_browser_executable() -> Optional[str]:
    """Find a browser executable for the current machine.

    Order: BROWSER_EXECUTABLE_PATH, then the platform/arch candidates
    that exist on disk, then None so Playwright uses its own download.
    """
    configured = settings.get_browser_executable_path()
    if configured:
        return configured

    for path in candidate_executable_paths(platform.system(), platform.machine(), Path.home()):
        if os.path.exists(path):
            logger.info("browser_executable_resolved", path=path)
            return path

    logger.info("browser_executable_default", reason="no_candidate_found")
    return None
