"""
Pytest configuration and shared fixtures for menu PDF renderer tests.

The fakes below stand in for Playwright's browser objects so the pipeline can
be exercised without launching Chromium. Each render page takes its behaviour
from the launcher's `page_plan` the first time content is loaded into it.
"""
import asyncio
from typing import Any, Dict, List, Optional

import pytest
from playwright.async_api import Error as PlaywrightError

from menu_pdf.config import Config
from menu_pdf.log import ConsoleLogger
from menu_pdf.models import Category, MenuItem, RenderJob, Restaurant
from menu_pdf.renderer import MenuPdfRenderer

VALID_PDF = b'%PDF-1.7\n' + b'0' * 2000 + b'\n%%EOF\n'
HANG = 3600


class FakeRoute:
    def __init__(self, url: str, resource_type: str = 'document'):
        self.request = type('Request', (), {'url': url, 'resource_type': resource_type})()
        self.fulfilled: Optional[Dict[str, Any]] = None
        self.aborted: Optional[str] = None
        self.continued = False

    async def fulfill(self, **kwargs):
        self.fulfilled = kwargs

    async def abort(self, error_code: str = 'failed'):
        self.aborted = error_code

    async def continue_(self):
        self.continued = True


class FakePage:
    def __init__(self, context: "FakeContext"):
        self.context = context
        self.launcher = context.browser.launcher
        self.behaviour: Optional[str] = None
        self.closed = False
        self.routes: List[Any] = []
        self.media: Optional[str] = None
        self.pdf_options: Optional[Dict[str, Any]] = None
        self.launcher.pages.append(self)

    def _crash(self, message: str):
        self.context.browser.connected = False
        raise PlaywrightError(message)

    async def route(self, pattern, handler):
        self.routes.append((pattern, handler))

    async def emulate_media(self, media=None):
        self.media = media

    async def set_content(self, html, wait_until=None, timeout=None):
        self.behaviour = self.launcher.next_behaviour()
        self.html = html
        if self.behaviour == 'hang_nav':
            await asyncio.sleep(HANG)
        if self.behaviour == 'crash_nav':
            self._crash("Target page, context or browser has been closed")

    async def evaluate(self, expression):
        if self.behaviour == 'hang_fonts':
            await asyncio.sleep(HANG)
        return 2

    async def wait_for_load_state(self, state=None, timeout=None):
        if self.behaviour == 'hang_idle':
            await asyncio.sleep(HANG)

    async def pdf(self, **options):
        self.pdf_options = options
        if self.behaviour == 'hang_pdf':
            await asyncio.sleep(HANG)
        if self.behaviour == 'crash_pdf':
            self._crash("Target crashed")
        if self.behaviour == 'bad_pdf':
            return b'<html>not a pdf</html>' * 100
        if self.behaviour == 'truncated_pdf':
            return VALID_PDF[:-8]
        return VALID_PDF

    def is_closed(self) -> bool:
        return self.closed

    async def close(self):
        self.closed = True
        if self in self.context.pages:
            self.context.pages.remove(self)


class FakeContext:
    def __init__(self, browser: "FakeBrowser", options: Dict[str, Any]):
        self.browser = browser
        self.options = options
        self.pages: List[FakePage] = []
        self.closed = False

    async def new_page(self) -> FakePage:
        if self.closed or not self.browser.connected:
            raise PlaywrightError("Target page, context or browser has been closed")
        page = FakePage(self)
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, launcher: "FakeLauncher", generation: int):
        self.launcher = launcher
        self.generation = generation
        self.connected = True
        self.contexts: List[FakeContext] = []

    def is_connected(self) -> bool:
        return self.connected

    async def new_context(self, **options) -> FakeContext:
        if not self.connected:
            raise PlaywrightError("Browser has been closed")
        context = FakeContext(self, options)
        self.contexts.append(context)
        return context

    async def close(self):
        self.connected = False


class FakeLauncher:
    """Launch-counting stand-in for ChromiumLauncher."""

    def __init__(self, page_plan: Optional[List[str]] = None, fail_launches: int = 0,
                 launch_delay: float = 0.0):
        self.page_plan = list(page_plan or [])
        self.fail_launches = fail_launches
        self.launch_delay = launch_delay
        self.launch_calls = 0
        self.stop_calls = 0
        self.browsers: List[FakeBrowser] = []
        self.pages: List[FakePage] = []

    @property
    def launches(self) -> int:
        return len(self.browsers)

    def next_behaviour(self) -> str:
        return self.page_plan.pop(0) if self.page_plan else 'ok'

    async def launch(self) -> FakeBrowser:
        self.launch_calls += 1
        if self.launch_delay:
            await asyncio.sleep(self.launch_delay)
        if self.fail_launches > 0:
            self.fail_launches -= 1
            raise RuntimeError("Failed to launch chromium: missing shared library")
        browser = FakeBrowser(self, len(self.browsers) + 1)
        self.browsers.append(browser)
        return browser

    async def stop(self):
        self.stop_calls += 1


class SleepRecorder:
    """Replaces asyncio.sleep for backoff delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def logger():
    return ConsoleLogger(debug=True)


@pytest.fixture
def fast_config(tmp_path):
    """Config with short timeouts so hanging stages fail quickly."""
    return Config({
        'asset_dir': str(tmp_path),
        'navigation_timeout': 0.2,
        'font_timeout': 0.05,
        'network_idle_timeout': 0.05,
        'export_timeout': 0.2,
        'backoff_base': 0.0,
    }, environ={})


@pytest.fixture
def launcher():
    return FakeLauncher()


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def renderer(fast_config, launcher, logger, sleeper):
    return MenuPdfRenderer(fast_config, launcher=launcher, logger=logger, sleep=sleeper)


@pytest.fixture
def coffee_job():
    """One category "Coffee" with one available item priced 15.0, in Arabic."""
    return RenderJob(
        restaurant=Restaurant(name="Bean There", address="12 Nile St", phone="+20 100 000 0000"),
        categories=(Category(name="Coffee", items=(MenuItem(name="Espresso", price=15.0),)),),
        language='ar',
    )


@pytest.fixture
def job_dict():
    return {
        'restaurant': {
            'name': 'Le Jardin',
            'currency': 'EUR',
            'color_palette': {'primary': '#123456', 'secondary': '#654321', 'accent': '#abcdef'},
        },
        'categories': [
            {
                'name': 'Starters',
                'description': 'Small plates',
                'menu_items': [
                    {'name': 'Soup', 'price': 7.5, 'description': 'Of the day', 'is_featured': True},
                    {'name': 'Salad', 'price': None},
                    {'name': 'Bread', 'price': 2, 'is_available': False},
                ],
            },
            {'name': 'Mains', 'items': [{'name': 'Steak', 'price': '24.00'}]},
        ],
        'templateId': 'botanical-menu',
        'language': 'en',
        'format': 'Letter',
        'margin': {'top': '10mm', 'bottom': '12mm'},
        'customizations': {
            'fontSettings': {'en': {'headers': {'fontFamily': 'Roboto', 'fontWeight': 'bold'},
                                    'body': {'fontFamily': 'open-sans', 'fontSize': 13}}},
            'pageBackgroundSettings': {'backgroundColor': '#fafafa'},
            'rowStyles': {'borderRadius': 8, 'priceColor': 'crimson'},
        },
    }
