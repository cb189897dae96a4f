"""
Shared headless browser lifecycle.

`BrowserManager` owns the single Chromium process used by every render. It
health-checks the process before handing it out, coalesces concurrent launch
requests into one in-flight launch, and is the only component allowed to close
or relaunch the browser.

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, List, Optional

from playwright.async_api import async_playwright

from .context import ContextFactory, RenderContext
from .errors import ErrorKind, RenderError, classify_exception
from .log import ConsoleLogger, get_logger
from .page_format import PaperFormat


class ChromiumLauncher:
    """Starts Playwright and launches headless Chromium."""

    def __init__(self, headless: bool = True, args: Optional[List[str]] = None):
        self.headless = headless
        self.args = list(args or [])
        self._playwright = None

    async def launch(self) -> Any:
        """Launch a fresh Chromium browser instance."""
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return await self._playwright.chromium.launch(headless=self.headless, args=self.args)

    async def stop(self) -> None:
        pw = self._playwright
        self._playwright = None
        if pw is not None:
            await pw.stop()


@dataclass
class BrowserHandle:
    """One live browser process."""

    browser: Any
    generation: int
    launched_at: float
    last_health_check: Optional[bool] = None

    @property
    def connected(self) -> bool:
        try:
            return bool(self.browser.is_connected())
        except Exception:
            return False


@dataclass(frozen=True)
class HealthStatus:
    healthy: bool
    details: str

    def to_dict(self) -> dict:
        return {'healthy': self.healthy, 'details': self.details}


class BrowserManager:
    """Process-wide owner of the shared browser."""

    def __init__(self, launcher: Optional[Any] = None, max_launch_attempts: int = 3,
                 launch_retry_delay: float = 0.5, dpi: int = 96,
                 logger: Optional[ConsoleLogger] = None):
        self.launcher = launcher or ChromiumLauncher()
        self.max_launch_attempts = max_launch_attempts
        self.launch_retry_delay = launch_retry_delay
        self.log = logger or get_logger()
        self.contexts = ContextFactory(dpi=dpi, logger=self.log)

        self._handle: Optional[BrowserHandle] = None
        self._inflight: Optional[asyncio.Future] = None
        self._lock: Optional[asyncio.Lock] = None
        self._generation = 0

        self.launch_count = 0     # successful launches over the manager's lifetime
        self.launch_attempts = 0  # attempts in the current launch cycle
        self.teardown_count = 0

    def _get_lock(self) -> asyncio.Lock:
        # Created lazily so the lock binds to the running loop
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    @property
    def handle(self) -> Optional[BrowserHandle]:
        return self._handle

    def is_healthy(self, handle: Optional[BrowserHandle] = None) -> bool:
        """Synchronous health check of the given (or current) handle."""
        handle = handle or self._handle
        if handle is None:
            return False
        healthy = handle.connected
        handle.last_health_check = healthy
        return healthy

    async def acquire_healthy_browser(self) -> BrowserHandle:
        """Return a connected browser, launching one if needed."""
        handle = self._handle
        if handle is not None and self.is_healthy(handle):
            return handle

        async with self._get_lock():
            handle = self._handle
            if handle is not None:
                if self.is_healthy(handle):
                    return handle
                self.log.warning("Browser connection stale, discarding it before relaunch")
                await self._discard(handle)

            if self._inflight is None:
                self._inflight = asyncio.ensure_future(self._launch_with_attempts())
            inflight = self._inflight

        # Shielded so one caller giving up does not abort the launch other callers wait on
        return await asyncio.shield(inflight)

    async def _launch_with_attempts(self) -> BrowserHandle:
        last_error: Optional[RenderError] = None
        try:
            while self.launch_attempts < self.max_launch_attempts:
                self.launch_attempts += 1
                attempt = self.launch_attempts
                try:
                    self.log.debug(f"Launching browser (attempt {attempt}/{self.max_launch_attempts})")
                    browser = await self.launcher.launch()
                except Exception as e:
                    last_error = classify_exception(e, 'launch')
                    self.log.warning(f"Browser launch attempt {attempt} failed: {last_error.message}")
                    await self._stop_launcher()
                    if self.launch_attempts < self.max_launch_attempts:
                        await asyncio.sleep(self.launch_retry_delay * attempt)
                    continue

                self._generation += 1
                self.launch_count += 1
                self.launch_attempts = 0
                handle = BrowserHandle(browser=browser, generation=self._generation,
                                       launched_at=time.monotonic(), last_health_check=True)
                self._handle = handle
                self.log.info(f"Browser launched (generation {handle.generation})")
                return handle

            attempts = self.launch_attempts
            self.launch_attempts = 0  # the next external call starts a fresh cycle
            raise RenderError(
                ErrorKind.BROWSER_LAUNCH_FAILED,
                f"browser failed to launch after {attempts} attempts"
                + (f" ({last_error.message})" if last_error else ""),
                stage='launch',
                cause=last_error.cause if last_error else None,
                attempts=attempts,
            )
        finally:
            self._inflight = None

    async def force_teardown(self) -> None:
        """Close contexts, browser and driver unconditionally and reset counters."""
        async with self._get_lock():
            handle = self._handle
            self._handle = None
            self.launch_attempts = 0
            self.teardown_count += 1
            await self._discard(handle)
        self.log.debug("Browser instance closed and cleaned up")

    async def _discard(self, handle: Optional[BrowserHandle]) -> None:
        # Null out first so nothing hands out the dying handle
        if self._handle is handle:
            self._handle = None
        await self.contexts.reset()
        if handle is not None:
            try:
                if handle.connected:
                    await handle.browser.close()
            except Exception as e:
                self.log.debug(f"Ignoring error while closing browser: {e}")
        await self._stop_launcher()

    async def _stop_launcher(self) -> None:
        try:
            await self.launcher.stop()
        except Exception as e:
            self.log.debug(f"Ignoring error while stopping browser driver: {e}")

    async def acquire_context(self, handle: BrowserHandle, paper: PaperFormat) -> RenderContext:
        return await self.contexts.acquire_context(handle, paper)

    async def release_context(self, context: RenderContext, reusable: bool = True) -> None:
        current = self._handle.generation if self._handle is not None else None
        await self.contexts.release(context, current_generation=current, reusable=reusable)

    def health(self) -> HealthStatus:
        handle = self._handle
        if self._inflight is not None and handle is None:
            return HealthStatus(False, "browser launch in progress")
        if handle is None:
            return HealthStatus(False, "no browser running; one will be launched on the next render")
        if not self.is_healthy(handle):
            return HealthStatus(False, f"browser generation {handle.generation} is disconnected")
        uptime = time.monotonic() - handle.launched_at
        return HealthStatus(
            True,
            f"browser generation {handle.generation} connected, up {uptime:.0f}s, "
            f"{self.contexts.idle_count} idle context(s)",
        )
