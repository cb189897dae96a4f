"""
Isolated browsing contexts and pages for render attempts.

Each context gets its own cookie/storage jar and a viewport equal to one
physical page of the requested paper format. Idle contexts may be reused by
later renders on the same browser, after a throwaway-page check.

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from .log import ConsoleLogger, get_logger
from .page_format import CSS_DPI, PaperFormat


@dataclass(eq=False)
class RenderContext:
    context: Any
    browser_generation: int
    paper: PaperFormat
    renders: int = 0
    in_use: bool = False


class ContextFactory:
    """Creates, validates and recycles browser contexts."""

    def __init__(self, dpi: int = CSS_DPI, max_idle: int = 2, max_renders_per_context: int = 50,
                 logger: Optional[ConsoleLogger] = None):
        self.dpi = dpi
        self.max_idle = max_idle
        self.max_renders_per_context = max_renders_per_context
        self.log = logger or get_logger()
        self._idle: List[RenderContext] = []

    @property
    def idle_count(self) -> int:
        return len(self._idle)

    async def acquire_context(self, handle, paper: PaperFormat) -> RenderContext:
        """Reuse a healthy idle context for this browser and format, or create one."""
        while True:
            candidate = self._take_idle(handle.generation, paper)
            if candidate is None:
                break
            if await self._is_usable(candidate):
                candidate.in_use = True
                self.log.debug(f"Reusing browser context ({candidate.renders} previous renders)")
                return candidate
            self.log.debug("Discarding stale browser context")
            await self._close_quietly(candidate)

        width, height = paper.viewport(self.dpi)
        context = await handle.browser.new_context(
            viewport={'width': width, 'height': height},
            device_scale_factor=1,
            java_script_enabled=True,
        )
        self.log.debug(f"Created browser context with {width}x{height} viewport for {paper.name}")
        return RenderContext(context=context, browser_generation=handle.generation, paper=paper, in_use=True)

    def _take_idle(self, generation: int, paper: PaperFormat) -> Optional[RenderContext]:
        for index, candidate in enumerate(self._idle):
            if candidate.browser_generation == generation and candidate.paper == paper:
                return self._idle.pop(index)
        return None

    async def _is_usable(self, render_context: RenderContext) -> bool:
        """Open and close a throwaway page; a context still holding pages is stale."""
        try:
            if render_context.context.pages:
                return False
            page = await render_context.context.new_page()
            await page.close()
            return True
        except Exception as e:
            self.log.debug(f"Context check failed: {e}")
            return False

    async def new_page(self, render_context: RenderContext) -> Any:
        """A fresh page for exactly one render attempt."""
        render_context.renders += 1
        return await render_context.context.new_page()

    async def release(self, render_context: RenderContext, current_generation: Optional[int],
                      reusable: bool = True) -> None:
        render_context.in_use = False
        keep = (
            reusable
            and render_context.browser_generation == current_generation
            and render_context.renders < self.max_renders_per_context
            and len(self._idle) < self.max_idle
        )
        if keep:
            self._idle.append(render_context)
        else:
            await self._close_quietly(render_context)

    async def reset(self) -> None:
        idle, self._idle = self._idle, []
        for render_context in idle:
            await self._close_quietly(render_context)

    async def _close_quietly(self, render_context: RenderContext) -> None:
        try:
            await render_context.context.close()
        except Exception as e:
            self.log.debug(f"Ignoring error while closing context: {e}")
