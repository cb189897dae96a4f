"""
Paper formats, viewport geometry and margin parsing.

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

import re
from dataclasses import dataclass
from typing import Dict, Tuple

CSS_DPI = 96

_LENGTH_RE = re.compile(r'^(-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)\s*(cm|in|mm|pt|px)?$')

# Inches per unit
_UNIT_INCHES = {
    'in': 1.0,
    'cm': 1 / 2.54,
    'mm': 1 / 25.4,
    'pt': 1 / 72,
    'px': 1 / CSS_DPI,
}


@dataclass(frozen=True)
class PaperFormat:
    """A physical page size."""

    name: str
    width_mm: float
    height_mm: float

    def viewport(self, dpi: int = CSS_DPI) -> Tuple[int, int]:
        """Pixel size of one page at `dpi`, so that 100vh/100vw equal one printed page."""
        width = round(self.width_mm / 25.4 * dpi)
        height = round(self.height_mm / 25.4 * dpi)
        return width, height

    @property
    def css_size(self) -> str:
        return f"{self.name} portrait"


PAPER_FORMATS: Dict[str, PaperFormat] = {
    'A4': PaperFormat('A4', 210.0, 297.0),
    'Letter': PaperFormat('Letter', 215.9, 279.4),
}


def get_paper_format(name: str) -> PaperFormat:
    """Look up a paper format by name, case-insensitively."""
    for key, paper in PAPER_FORMATS.items():
        if key.lower() == str(name).strip().lower():
            return paper
    available = ", ".join(PAPER_FORMATS)
    raise ValueError(f"Unsupported page format '{name}'. Available formats: {available}")


def validate_margin(margin_str: str) -> str:
    """Validate and normalize a single margin value."""
    match = _LENGTH_RE.match(str(margin_str).strip())
    if not match:
        raise ValueError(f"Invalid margin format: '{margin_str}'. Use format like '1in', '2.5cm', '10mm', etc.")

    value_str, unit = match.groups()
    value = float(value_str)

    # Set default unit to 'in' if not specified
    if not unit:
        unit = 'in'

    value_inches = value * _UNIT_INCHES[unit]

    # Validate range: minimum 0 inches, maximum 3 inches
    if value_inches < 0:
        raise ValueError(f"Margin cannot be negative: '{margin_str}'. Minimum value is 0.")
    elif value_inches > 3:
        raise ValueError(f"Margin too large: '{margin_str}'. Maximum value is 3 inches (7.62cm).")

    # Keep integral values compact: "15mm" rather than "15.0mm"
    if value.is_integer():
        return f"{int(value)}{unit}"
    return f"{value}{unit}"


@dataclass(frozen=True)
class Margins:
    """Page margins as CSS lengths."""

    top: str = '15mm'
    right: str = '15mm'
    bottom: str = '15mm'
    left: str = '15mm'

    def __post_init__(self):
        for side in ('top', 'right', 'bottom', 'left'):
            object.__setattr__(self, side, validate_margin(getattr(self, side)))

    @classmethod
    def parse(cls, margins: str) -> "Margins":
        """Parse a CSS-shorthand margin string (1, 2 or 4 values)."""
        margin_parts = str(margins).split()

        if len(margin_parts) == 1:
            # All margins same
            return cls(*margin_parts * 4)
        elif len(margin_parts) == 2:
            # Vertical and horizontal
            vertical, horizontal = margin_parts
            return cls(vertical, horizontal, vertical, horizontal)
        elif len(margin_parts) == 4:
            # Top, right, bottom, left
            return cls(*margin_parts)
        else:
            raise ValueError(f"Invalid margin format: '{margins}'. Use 1, 2, or 4 values.")

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "Margins":
        defaults = cls()
        return cls(
            top=data.get('top') or defaults.top,
            right=data.get('right') or defaults.right,
            bottom=data.get('bottom') or defaults.bottom,
            left=data.get('left') or defaults.left,
        )

    def as_playwright(self) -> Dict[str, str]:
        return {'top': self.top, 'right': self.right, 'bottom': self.bottom, 'left': self.left}

    def as_css(self) -> str:
        return f"{self.top} {self.right} {self.bottom} {self.left}"


def parse_margins(margins: str) -> Dict[str, str]:
    """Parse CSS-shorthand margins into Playwright's margin dict."""
    return Margins.parse(margins).as_playwright()
