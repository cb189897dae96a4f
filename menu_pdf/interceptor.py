"""
Request interception and local asset resolution.

Every request a render page makes goes through `RequestInterceptor`. Requests
for the virtual asset origin are answered from the on-disk asset store,
trackers and websockets are aborted, everything else continues to the network.
The policy itself (`classify`) has no browser dependency.

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

import asyncio
import io
import mimetypes
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple, Union
from urllib.parse import unquote, urlsplit

from PIL import Image, UnidentifiedImageError
from playwright.async_api import Error as PlaywrightError

from .log import ConsoleLogger, get_logger

LOCAL_PREFIXES = ('/fonts/', '/images/', '/css/', '/static/')

BLOCKED_DOMAINS = (
    'google-analytics.com',
    'googletagmanager.com',
    'doubleclick.net',
    'facebook.com',
    'facebook.net',
    'twitter.com',
    'hotjar.com',
    'segment.io',
)

# Host labels that mark analytics/ad endpoints, e.g. analytics.example.com, ads-eu.example.net
_BLOCKED_HOST_RE = re.compile(r'(^|[.-])(analytics|ads|adservice|tracking|tracker|pixel)([.-]|$)')

_FONT_TYPES = {
    '.ttf': 'font/ttf',
    '.otf': 'font/otf',
    '.woff': 'font/woff',
    '.woff2': 'font/woff2',
}

_RASTER_SUFFIXES = ('.png', '.jpg', '.jpeg', '.webp', '.gif', '.bmp')


@dataclass(frozen=True)
class Fulfill:
    body: bytes
    content_type: str
    status: int = 200


@dataclass(frozen=True)
class Block:
    reason: str


@dataclass(frozen=True)
class PassThrough:
    pass


Decision = Union[Fulfill, Block, PassThrough]


class AssetStore:
    """Serves fonts, images and stylesheets from a local directory."""

    def __init__(self, root: Union[str, Path], max_image_size: int = 2400,
                 logger: Optional[ConsoleLogger] = None):
        self.root = Path(root).resolve()
        self.max_image_size = max_image_size
        self.log = logger or get_logger()
        self._cache: Dict[str, Tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def resolve(self, url_path: str) -> Optional[Path]:
        """Map a URL path to a file inside the store, or None."""
        path = unquote(url_path)
        if not path.startswith(LOCAL_PREFIXES):
            return None
        candidate = (self.root / path.lstrip('/')).resolve()
        # Refuse anything that escapes the store root or its served directories
        try:
            relative = candidate.relative_to(self.root)
        except ValueError:
            return None
        if not relative.parts or f"/{relative.parts[0]}/" not in LOCAL_PREFIXES:
            return None
        return candidate if candidate.is_file() else None

    def load(self, url_path: str) -> Optional[Tuple[bytes, str]]:
        """Return (body, content type) for a URL path, or None if the asset is missing."""
        with self._lock:
            cached = self._cache.get(url_path)
        if cached is not None:
            return cached

        file_path = self.resolve(url_path)
        if file_path is None:
            return None

        if file_path.suffix.lower() in _RASTER_SUFFIXES:
            loaded = self._load_image(file_path)
        else:
            loaded = (file_path.read_bytes(), self._content_type(file_path))

        with self._lock:
            self._cache[url_path] = loaded
        return loaded

    def _content_type(self, file_path: Path) -> str:
        suffix = file_path.suffix.lower()
        if suffix in _FONT_TYPES:
            return _FONT_TYPES[suffix]
        guessed, _ = mimetypes.guess_type(file_path.name)
        return guessed or 'application/octet-stream'

    def _load_image(self, file_path: Path) -> Tuple[bytes, str]:
        """Load a raster image, downscaling it if either side exceeds max_image_size."""
        raw = file_path.read_bytes()
        try:
            with Image.open(io.BytesIO(raw)) as img:
                image_format = img.format or 'PNG'
                content_type = Image.MIME.get(image_format, self._content_type(file_path))
                width, height = img.size
                if max(width, height) <= self.max_image_size:
                    return raw, content_type

                img.thumbnail((self.max_image_size, self.max_image_size), Image.Resampling.LANCZOS)
                if image_format == 'JPEG' and img.mode not in ('RGB', 'L'):
                    img = img.convert('RGB')
                buffer = io.BytesIO()
                img.save(buffer, format=image_format)
                self.log.debug(f"Resized {file_path.name} from {width}x{height} to {img.size[0]}x{img.size[1]}")
                return buffer.getvalue(), content_type
        except (UnidentifiedImageError, OSError) as e:
            self.log.warning(f"Could not inspect image {file_path.name}, serving as-is: {e}")
            return raw, self._content_type(file_path)


class RequestInterceptor:
    """Classifies page requests and applies the decision to Playwright routes."""

    def __init__(self, store: AssetStore, asset_base_url: str = 'http://menu-assets.local',
                 logger: Optional[ConsoleLogger] = None):
        self.store = store
        self.log = logger or get_logger()
        base = urlsplit(asset_base_url)
        self._asset_origin = (base.scheme.lower(), base.netloc.lower())

    def local_path(self, url: str) -> Optional[str]:
        """URL path of a request aimed at the virtual asset origin, else None."""
        parts = urlsplit(url)
        if (parts.scheme.lower(), parts.netloc.lower()) != self._asset_origin:
            return None
        return parts.path or '/'

    def is_blocked(self, url: str, resource_type: str = '') -> Optional[str]:
        if resource_type == 'websocket':
            return 'websocket'
        parts = urlsplit(url)
        if parts.scheme in ('ws', 'wss'):
            return 'websocket'
        host = (parts.hostname or '').lower()
        for domain in BLOCKED_DOMAINS:
            if host == domain or host.endswith('.' + domain):
                return f'blocked domain {domain}'
        if _BLOCKED_HOST_RE.search(host):
            return 'tracking host'
        return None

    def classify(self, url: str, resource_type: str = '') -> Decision:
        local = self.local_path(url)
        if local is not None:
            loaded = self.store.load(local)
            if loaded is None:
                # Missing assets resolve immediately so a lost font never stalls the page
                self.log.debug(f"Local asset not found: {local}")
                return Fulfill(body=b'', content_type='text/plain', status=404)
            body, content_type = loaded
            return Fulfill(body=body, content_type=content_type)

        reason = self.is_blocked(url, resource_type)
        if reason:
            return Block(reason)
        return PassThrough()

    async def handle(self, route) -> None:
        """Playwright route handler."""
        request = route.request
        try:
            decision = await asyncio.to_thread(self.classify, request.url, request.resource_type)
        except Exception as e:
            # Every request must resolve; an unreadable asset degrades like a missing one
            self.log.warning(f"Could not serve {request.url}: {e}")
            decision = Fulfill(body=b'', content_type='text/plain', status=404)
        try:
            if isinstance(decision, Fulfill):
                await route.fulfill(
                    status=decision.status,
                    content_type=decision.content_type,
                    headers={'Access-Control-Allow-Origin': '*'},
                    body=decision.body,
                )
            elif isinstance(decision, Block):
                self.log.debug(f"Blocked request ({decision.reason}): {request.url}")
                await route.abort('blockedbyclient')
            else:
                await route.continue_()
        except PlaywrightError as e:
            # The page was closed while the request was in flight
            self.log.debug(f"Route for {request.url} not completed: {e}")

    async def attach(self, page) -> None:
        """Install the handler; must run before the page loads any content."""
        await page.route('**/*', self.handle)
