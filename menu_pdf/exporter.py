"""
Drives a render page from HTML to PDF bytes.

Every stage that can hang is bounded with asyncio.wait_for, which cancels the
losing operation instead of leaving it running in the background.

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

import asyncio
from typing import Any, Awaitable, Optional

from .errors import ErrorKind, RenderError, classify_exception
from .log import ConsoleLogger, get_logger
from .page_format import Margins, PaperFormat

_FONTS_READY_JS = "() => document.fonts.ready.then(() => document.fonts.size)"


class PdfExporter:
    """Loads HTML into a page and prints it to PDF."""

    def __init__(self, navigation_timeout: float = 30.0, font_timeout: float = 5.0,
                 network_idle_timeout: float = 10.0, export_timeout: float = 60.0,
                 logger: Optional[ConsoleLogger] = None):
        self.navigation_timeout = navigation_timeout
        self.font_timeout = font_timeout
        self.network_idle_timeout = network_idle_timeout
        self.export_timeout = export_timeout
        self.log = logger or get_logger()

    async def export(self, page: Any, html: str, paper: PaperFormat, margins: Margins) -> bytes:
        await self._bounded(page.emulate_media(media='print'), self.navigation_timeout, 'navigate')

        # DOM construction is the only hard gate: critical assets are served locally
        await self._bounded(
            page.set_content(html, wait_until='domcontentloaded', timeout=self.navigation_timeout * 1000),
            self.navigation_timeout,
            'navigate',
        )
        await self._wait_for_fonts(page)
        await self._wait_for_network_idle(page)

        self.log.debug(f"Printing PDF ({paper.name}, margins {margins.as_css()})")
        pdf_bytes = await self._bounded(
            page.pdf(
                format=paper.name,
                margin=margins.as_playwright(),
                print_background=True,
                prefer_css_page_size=True,
                display_header_footer=False,
                outline=False,
                tagged=True,
                scale=1.0,
            ),
            self.export_timeout,
            'export',
        )
        return bytes(pdf_bytes or b'')

    async def _wait_for_fonts(self, page: Any) -> None:
        try:
            loaded = await asyncio.wait_for(page.evaluate(_FONTS_READY_JS), timeout=self.font_timeout)
            self.log.debug(f"Web fonts ready ({loaded} face(s))")
        except asyncio.TimeoutError:
            self.log.warning(f"Fonts not ready after {self.font_timeout:g}s, rendering with fallbacks")
        except Exception as e:
            raise classify_exception(e, 'fonts') from e

    async def _wait_for_network_idle(self, page: Any) -> None:
        # Remote images (e.g. a logo URL) must not stall the render
        try:
            await asyncio.wait_for(
                page.wait_for_load_state('networkidle', timeout=self.network_idle_timeout * 1000),
                timeout=self.network_idle_timeout,
            )
        except asyncio.TimeoutError:
            self.log.warning("Network idle timeout, proceeding anyway")
        except RenderError:
            raise
        except Exception as e:
            error = classify_exception(e, 'network-idle')
            if error.timed_out:
                self.log.warning("Network idle timeout, proceeding anyway")
            else:
                raise error from e

    async def _bounded(self, operation: Awaitable, timeout: float, stage: str) -> Any:
        try:
            return await asyncio.wait_for(operation, timeout=timeout)
        except asyncio.TimeoutError as e:
            kind = ErrorKind.EXPORT_TIMEOUT if stage == 'export' else ErrorKind.NAVIGATION_TIMEOUT
            raise RenderError(kind, f"{stage} did not finish within {timeout:g}s", stage=stage, cause=e) from e
        except RenderError:
            raise
        except Exception as e:
            raise classify_exception(e, stage) from e
