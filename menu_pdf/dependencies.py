"""
Runtime dependency checks for the renderer.

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from colorama import Fore, Style

from .fonts import FONT_FAMILIES

# Families the templates fall back to for LTR and RTL menus
DEFAULT_FAMILIES = (FONT_FAMILIES['Open Sans'], FONT_FAMILIES['Cairo'])


def _ok(message: str) -> None:
    print(f"{Fore.GREEN}✓{Style.RESET_ALL} {message}")


def _fail(message: str) -> None:
    print(f"{Fore.RED}✗{Style.RESET_ALL} {message}")


def _warn(message: str) -> None:
    print(f"{Fore.YELLOW}!{Style.RESET_ALL} {message}")


def check_playwright() -> bool:
    """Check that the Playwright driver is importable."""
    try:
        import playwright  # noqa: F401
    except ImportError:
        _fail("Playwright is not installed (pip install playwright)")
        return False
    _ok("Playwright is available")
    return True


def check_chromium() -> bool:
    """Check that Playwright's Chromium build is installed."""
    from playwright.sync_api import Error, sync_playwright

    try:
        with sync_playwright() as p:
            executable = Path(p.chromium.executable_path)
    except Error as e:
        _fail(f"Could not query Chromium install: {e}")
        return False

    if not executable.exists():
        _fail("Playwright Chromium is not installed (run: menu-pdf --install-browsers)")
        return False
    _ok(f"Chromium found at {executable}")
    return True


def check_fonts(asset_dir: Path) -> List[str]:
    """Report default font files missing from the asset directory.

    Missing fonts are not fatal; the page falls back to system fonts. Returns
    the missing URL paths so callers can decide what to do with them.
    """
    missing = []
    for family in DEFAULT_FAMILIES:
        for weight in (400, 700):
            url_path = family.file_for(weight)
            if not (asset_dir / url_path.lstrip('/')).is_file():
                missing.append(url_path)

    if missing:
        _warn(f"{len(missing)} default font file(s) missing from {asset_dir}: {', '.join(missing)}")
        print("  Add them under <asset-dir>/fonts/ or point --asset-dir at a directory that has them")
    else:
        _ok(f"Default fonts found in {asset_dir}")
    return missing


def check_dependencies(check_optional: bool = False, asset_dir: Optional[Path] = None) -> bool:
    """Check every runtime dependency, printing a status line for each."""
    if not check_playwright():
        return False
    ready = check_chromium()

    if check_optional:
        try:
            from PIL import Image
            _ok(f"Pillow available ({len(Image.registered_extensions())} image formats)")
        except ImportError:
            _fail("Pillow is not installed; local images will not be resized")
            ready = False

    if asset_dir is not None:
        check_fonts(asset_dir)

    return ready


def install_browsers() -> bool:
    """Install Playwright's Chromium build."""
    print("Installing Playwright Chromium...")
    try:
        subprocess.run([sys.executable, "-m", "playwright", "install", "chromium"],
                       check=True, capture_output=True, text=True)
    except subprocess.CalledProcessError as e:
        _fail(f"Failed to install Playwright Chromium: {e.stderr}")
        return False
    _ok("Playwright Chromium installed successfully")
    return True
