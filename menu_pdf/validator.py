"""
Byte-level validation of exported PDFs.

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

from typing import Optional

from .errors import invalid_output
from .log import ConsoleLogger, get_logger
from .models import RenderResult

PDF_SIGNATURE = b'%PDF-'
PDF_TRAILER = b'%%EOF'


class OutputValidator:
    """Checks that a buffer is a complete PDF; never repairs it."""

    def __init__(self, min_size: int = 1000, trailer_window: int = 1024,
                 logger: Optional[ConsoleLogger] = None):
        self.min_size = min_size
        self.trailer_window = trailer_window
        self.log = logger or get_logger()

    def validate(self, data: Optional[bytes]) -> RenderResult:
        if not data:
            raise invalid_output("PDF buffer is empty")

        header = bytes(data[:len(PDF_SIGNATURE)])
        if header != PDF_SIGNATURE:
            raise invalid_output(f"missing PDF signature (starts with {header[:8]!r})")

        # The trailer sits at the very end; incremental updates append after earlier ones
        if PDF_TRAILER not in data[-self.trailer_window:]:
            raise invalid_output("PDF is incomplete: missing %%EOF trailer")

        if len(data) < self.min_size:
            raise invalid_output(f"PDF is too small: {len(data)} bytes (minimum {self.min_size})")

        self.log.debug(f"PDF validation passed ({len(data)} bytes)")
        return RenderResult(pdf_bytes=bytes(data), byte_length=len(data), validated=True)
