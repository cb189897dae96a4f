"""
Coloured console logging shared by every stage of the render pipeline.

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

import threading
from typing import Optional

from colorama import init, Fore, Style

# Initialize colorama for cross-platform colored output
init(autoreset=True)


class ConsoleLogger:
    """Level-tagged, coloured console logger."""

    def __init__(self, debug: bool = False, prefix: str = ""):
        self.debug_enabled = debug
        self.prefix = prefix
        self._lock = threading.Lock()  # Concurrent renders must not interleave lines

    def _emit(self, color: str, tag: str, message: str) -> None:
        label = f"{self.prefix} " if self.prefix else ""
        with self._lock:
            print(f"{color}[{tag}]{Style.RESET_ALL} {label}{message}")

    def debug(self, message: str) -> None:
        """Log debug message with color (only if debug mode is enabled)."""
        if self.debug_enabled:
            self._emit(Fore.CYAN, "DEBUG", message)

    def info(self, message: str) -> None:
        """Log info message with color."""
        self._emit(Fore.GREEN, "INFO", message)

    def warning(self, message: str) -> None:
        """Log warning message with color."""
        self._emit(Fore.YELLOW, "WARNING", message)

    def error(self, message: str) -> None:
        """Log error message with color."""
        self._emit(Fore.RED, "ERROR", message)

    def success(self, message: str) -> None:
        """Log success message with color."""
        self._emit(Fore.GREEN, "OK", message)


_default_logger: Optional[ConsoleLogger] = None


def get_logger(debug: Optional[bool] = None) -> ConsoleLogger:
    """Return the process-wide logger, optionally switching debug output on or off."""
    global _default_logger
    if _default_logger is None:
        _default_logger = ConsoleLogger(debug=bool(debug))
    elif debug is not None:
        _default_logger.debug_enabled = debug
    return _default_logger
