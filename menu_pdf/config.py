"""
Configuration for the menu PDF renderer.

Values are layered: built-in defaults, then MENU_PDF_* environment variables,
then explicit overrides (usually from the command line).

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_LAUNCH_ARGS = [
    '--disable-dev-shm-usage',  # Use /tmp instead of /dev/shm (prevents OOM crashes)
    '--disable-gpu',             # No GPU in headless mode
    '--no-sandbox',              # Required in some environments
    '--disable-setuid-sandbox',
    '--no-first-run',
    '--disable-extensions',
    '--disable-background-timer-throttling',
    '--disable-renderer-backgrounding',
    '--run-all-compositor-stages-before-draw',
]

DEFAULTS: Dict[str, Any] = {
    'asset_dir': str(Path(__file__).parent / 'assets'),
    'asset_base_url': 'http://menu-assets.local',
    'max_launch_attempts': 3,
    'max_render_attempts': 3,
    'backoff_base': 1.0,
    'navigation_timeout': 30.0,
    'font_timeout': 5.0,
    'network_idle_timeout': 10.0,
    'export_timeout': 60.0,
    'min_pdf_size': 1000,
    'max_image_size': 2400,
    'headless': True,
    'debug': False,
}

# key -> (environment variable, type)
_ENV_VARS = {
    'asset_dir': ('MENU_PDF_ASSET_DIR', str),
    'asset_base_url': ('MENU_PDF_ASSET_BASE_URL', str),
    'max_launch_attempts': ('MENU_PDF_MAX_LAUNCH_ATTEMPTS', int),
    'max_render_attempts': ('MENU_PDF_MAX_RENDER_ATTEMPTS', int),
    'backoff_base': ('MENU_PDF_BACKOFF_BASE', float),
    'navigation_timeout': ('MENU_PDF_NAVIGATION_TIMEOUT', float),
    'font_timeout': ('MENU_PDF_FONT_TIMEOUT', float),
    'network_idle_timeout': ('MENU_PDF_NETWORK_IDLE_TIMEOUT', float),
    'export_timeout': ('MENU_PDF_EXPORT_TIMEOUT', float),
    'min_pdf_size': ('MENU_PDF_MIN_SIZE', int),
    'max_image_size': ('MENU_PDF_MAX_IMAGE_SIZE', int),
    'headless': ('MENU_PDF_HEADLESS', bool),
    'debug': ('MENU_PDF_DEBUG', bool),
}

_TRUE_VALUES = ('1', 'true', 'yes', 'on')
_FALSE_VALUES = ('0', 'false', 'no', 'off', '')


def _coerce(name: str, raw: Any, kind: type) -> Any:
    if kind is bool:
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ValueError(f"Invalid boolean for {name}: '{raw}'")
    try:
        return kind(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid value for {name}: '{raw}' (expected {kind.__name__})") from None


class Config:
    """Layered renderer configuration with typed getters."""

    def __init__(self, cli_config: Optional[Dict[str, Any]] = None, environ: Optional[Dict[str, str]] = None):
        env = os.environ if environ is None else environ
        self._values: Dict[str, Any] = dict(DEFAULTS)

        # Legacy variable from the web service, in milliseconds
        legacy_timeout = env.get('PDF_GENERATION_TIMEOUT')
        if legacy_timeout:
            self._values['navigation_timeout'] = _coerce('PDF_GENERATION_TIMEOUT', legacy_timeout, float) / 1000

        for key, (var, kind) in _ENV_VARS.items():
            if var in env:
                self._values[key] = _coerce(var, env[var], kind)

        for key, value in (cli_config or {}).items():
            if value is None:
                continue
            if key not in _ENV_VARS:
                raise ValueError(f"Unknown configuration key: '{key}'")
            self._values[key] = _coerce(key, value, _ENV_VARS[key][1])

        self._validate()

    def _validate(self) -> None:
        for key in ('max_launch_attempts', 'max_render_attempts'):
            if self._values[key] < 1:
                raise ValueError(f"{key} must be at least 1, got {self._values[key]}")
        for key in ('backoff_base', 'navigation_timeout', 'font_timeout',
                    'network_idle_timeout', 'export_timeout'):
            if self._values[key] < 0:
                raise ValueError(f"{key} cannot be negative, got {self._values[key]}")
        if self._values['min_pdf_size'] < 0:
            raise ValueError(f"min_pdf_size cannot be negative, got {self._values['min_pdf_size']}")
        if self._values['max_image_size'] < 1:
            raise ValueError(f"max_image_size must be positive, got {self._values['max_image_size']}")

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def get_asset_dir(self) -> Path:
        return Path(self._values['asset_dir']).expanduser()

    def get_asset_base_url(self) -> str:
        return str(self._values['asset_base_url']).rstrip('/')

    def get_max_launch_attempts(self) -> int:
        return self._values['max_launch_attempts']

    def get_max_render_attempts(self) -> int:
        return self._values['max_render_attempts']

    def get_backoff_base(self) -> float:
        return self._values['backoff_base']

    def get_navigation_timeout(self) -> float:
        return self._values['navigation_timeout']

    def get_font_timeout(self) -> float:
        return self._values['font_timeout']

    def get_network_idle_timeout(self) -> float:
        return self._values['network_idle_timeout']

    def get_export_timeout(self) -> float:
        return self._values['export_timeout']

    def get_min_pdf_size(self) -> int:
        return self._values['min_pdf_size']

    def get_max_image_size(self) -> int:
        return self._values['max_image_size']

    def get_headless(self) -> bool:
        return self._values['headless']

    def get_debug(self) -> bool:
        return self._values['debug']

    def get_launch_args(self) -> List[str]:
        return list(DEFAULT_LAUNCH_ARGS)
