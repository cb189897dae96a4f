"""
Public entry point: render a menu job to a validated PDF.

    async with MenuPdfRenderer() as renderer:
        result = await renderer.render(job)
        if result.is_ok:
            pdf = result.value.pdf_bytes
        else:
            payload = result.error.to_dict()

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from .browser import BrowserManager, ChromiumLauncher, HealthStatus
from .config import Config
from .context import RenderContext
from .errors import RenderError, Result, classify_exception, invalid_input
from .exporter import PdfExporter
from .interceptor import AssetStore, RequestInterceptor
from .log import ConsoleLogger, get_logger
from .models import RenderJob, RenderResult
from .page_format import Margins, PaperFormat
from .retry import RetryOrchestrator
from .template import TemplateRenderer, normalize_template_id
from .validator import OutputValidator


class MenuPdfRenderer:
    """Renders menus to PDF through one shared headless browser."""

    def __init__(self, config: Optional[Config] = None, launcher: Optional[Any] = None,
                 logger: Optional[ConsoleLogger] = None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.config = config or Config()
        self.log = logger or get_logger(self.config.get_debug())

        base_url = self.config.get_asset_base_url()
        self.templates = TemplateRenderer(base_url, logger=self.log)
        self.browsers = BrowserManager(
            launcher or ChromiumLauncher(self.config.get_headless(), self.config.get_launch_args()),
            max_launch_attempts=self.config.get_max_launch_attempts(),
            launch_retry_delay=self.config.get_backoff_base() / 2,
            logger=self.log,
        )
        self.assets = AssetStore(self.config.get_asset_dir(), self.config.get_max_image_size(), logger=self.log)
        self.interceptor = RequestInterceptor(self.assets, base_url, logger=self.log)
        self.exporter = PdfExporter(
            navigation_timeout=self.config.get_navigation_timeout(),
            font_timeout=self.config.get_font_timeout(),
            network_idle_timeout=self.config.get_network_idle_timeout(),
            export_timeout=self.config.get_export_timeout(),
            logger=self.log,
        )
        self.validator = OutputValidator(self.config.get_min_pdf_size(), logger=self.log)
        self.retry = RetryOrchestrator(
            self.browsers.force_teardown,
            max_attempts=self.config.get_max_render_attempts(),
            backoff_base=self.config.get_backoff_base(),
            sleep=sleep,
            logger=self.log,
        )

    async def __aenter__(self) -> "MenuPdfRenderer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def render(self, job: RenderJob, max_attempts: Optional[int] = None) -> Result:
        """Render a job; returns Result[RenderResult] and never raises RenderError."""
        started = time.monotonic()
        name = job.restaurant.name or '<unnamed>'
        try:
            html = self.templates.render(job)
        except RenderError as e:
            self.log.error(f"Rejected menu '{name}': {e.message}")
            return Result.fail(e)

        self.log.info(
            f"Rendering '{name}' with template '{normalize_template_id(job.template_id)}' "
            f"({job.language}, {job.page_format.name})"
        )
        result = await self.retry.with_retry(
            lambda attempt: self._attempt(html, job.page_format, job.margins, attempt),
            max_attempts=max_attempts,
        )
        self._log_outcome(name, result, started)
        return result

    async def render_html(self, html: str, paper: PaperFormat, margins: Optional[Margins] = None,
                          max_attempts: Optional[int] = None) -> Result:
        """Render an already-assembled HTML document."""
        if not html or len(html.strip()) < 50:
            return Result.fail(invalid_input("HTML content is missing or too short"))
        started = time.monotonic()
        result = await self.retry.with_retry(
            lambda attempt: self._attempt(html, paper, margins or Margins(), attempt),
            max_attempts=max_attempts,
        )
        self._log_outcome('html document', result, started)
        return result

    async def render_many(self, jobs: Sequence[RenderJob], concurrency: int = 4) -> List[Result]:
        """Render several jobs concurrently on the shared browser, results in input order."""
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def run(job: RenderJob) -> Result:
            async with semaphore:
                return await self.render(job)

        return list(await asyncio.gather(*(run(job) for job in jobs)))

    async def _attempt(self, html: str, paper: PaperFormat, margins: Margins, attempt: int) -> Result:
        """One full pass: browser -> context -> page -> export -> validate."""
        render_context: Optional[RenderContext] = None
        page = None
        reusable = False
        stage = 'launch'
        try:
            handle = await self.browsers.acquire_healthy_browser()
            stage = 'context'
            render_context = await self.browsers.acquire_context(handle, paper)
            stage = 'page'
            page = await self.browsers.contexts.new_page(render_context)
            await self.interceptor.attach(page)

            stage = 'export'
            pdf_bytes = await self.exporter.export(page, html, paper, margins)

            stage = 'validate'
            result: RenderResult = self.validator.validate(pdf_bytes)
            reusable = True
            return Result.ok(result)
        except RenderError as e:
            return Result.fail(e)
        except Exception as e:
            return Result.fail(classify_exception(e, stage))
        finally:
            # Runs on cancellation too, so an abandoned render never leaks its page
            if page is not None:
                await self._close_page(page)
            if render_context is not None:
                await self.browsers.release_context(render_context, reusable=reusable)

    async def _close_page(self, page: Any) -> None:
        try:
            if not page.is_closed():
                await page.close()
        except Exception as e:
            self.log.debug(f"Ignoring error while closing page: {e}")

    def _log_outcome(self, name: str, result: Result, started: float) -> None:
        elapsed = time.monotonic() - started
        if result.is_ok:
            self.log.success(f"Rendered '{name}' ({result.value.byte_length} bytes, {elapsed:.1f}s)")
        else:
            self.log.error(f"Failed to render '{name}' after {elapsed:.1f}s: {result.error}")

    def health(self) -> HealthStatus:
        return self.browsers.health()

    async def force_teardown(self) -> None:
        await self.browsers.force_teardown()

    async def close(self) -> None:
        await self.browsers.force_teardown()
