"""
Headless-browser menu PDF renderer.

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

from .browser import BrowserHandle, BrowserManager, ChromiumLauncher, HealthStatus
from .config import Config
from .errors import ErrorKind, RenderError, Result
from .interceptor import AssetStore, Block, Fulfill, PassThrough, RequestInterceptor
from .models import (Category, ColorPalette, Customizations, FontSettings, MenuItem,
                     PageBackground, RenderJob, RenderResult, Restaurant, RowStyles)
from .page_format import Margins, PaperFormat, get_paper_format
from .renderer import MenuPdfRenderer
from .template import TemplateRenderer, available_templates, normalize_template_id

__version__ = "1.0.0"

__all__ = [
    "AssetStore", "Block", "BrowserHandle", "BrowserManager", "Category", "ChromiumLauncher",
    "ColorPalette", "Config", "Customizations", "ErrorKind", "FontSettings", "Fulfill",
    "HealthStatus", "Margins", "MenuItem", "MenuPdfRenderer", "PageBackground", "PaperFormat",
    "PassThrough", "RenderError", "RenderJob", "RenderResult", "RequestInterceptor",
    "Restaurant", "Result", "RowStyles", "TemplateRenderer", "available_templates",
    "get_paper_format", "normalize_template_id",
]
