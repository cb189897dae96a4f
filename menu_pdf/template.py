"""
Menu HTML template rendering.

`TemplateRenderer.render(job)` is a pure function of the job: the same job
always produces the same HTML string, byte for byte. Jobs that cannot produce
a meaningful menu are rejected with an INVALID_INPUT RenderError before any
browser work starts.

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

import html
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .errors import invalid_input
from .fonts import (FontFamily, default_family_for_language, font_face_css,
                    resolve_family, resolve_font_weight)
from .log import ConsoleLogger, get_logger
from .models import Category, ColorPalette, MenuItem, RenderJob

DEFAULT_TEMPLATE = 'classic'
PRINT_STYLESHEET = 'css/menu-print.css'


@dataclass(frozen=True)
class TemplateTheme:
    id: str
    name: str
    description: str
    background: str
    primary: str
    secondary: str
    accent: str
    text: str
    heading_stack: str
    title_size: str = '28px'
    category_size: str = '20px'
    item_size: str = '16px'
    price_size: str = '16px'


TEMPLATES: Dict[str, TemplateTheme] = {
    theme.id: theme for theme in (
        TemplateTheme('classic', 'Classic', 'Clean single-column menu with subtle dividers',
                      '#ffffff', '#2c3e50', '#3498db', '#f8f9fa', '#333333',
                      "Arial, sans-serif"),
        TemplateTheme('cafe', 'Cafe', 'Warm coffee-house palette with rounded item rows',
                      '#fffbeb', '#78350f', '#d97706', '#fed7aa', '#78350f',
                      "Arial, sans-serif", title_size='36px', category_size='24px', price_size='18px'),
        TemplateTheme('modern', 'Modern', 'High-contrast headings with generous spacing',
                      '#fef3c7', '#111827', '#92400e', '#fed7aa', '#111827',
                      "Arial, sans-serif", title_size='48px', category_size='26px', item_size='17px',
                      price_size='18px'),
        TemplateTheme('vintage', 'Vintage', 'Serif typography on parchment tones',
                      '#f5f0e6', '#5b3a29', '#a0522d', '#efe6d2', '#3e2a1f',
                      "Georgia, serif", title_size='34px', category_size='22px'),
        TemplateTheme('painting', 'Painting', 'Soft artistic palette with italic descriptions',
                      '#fdf6f0', '#6b2d5c', '#d17a22', '#f4e1d2', '#40263a',
                      "Georgia, serif", title_size='34px', category_size='22px'),
        TemplateTheme('botanical', 'Botanical', 'Fresh greens for garden and brunch menus',
                      '#f0fdf4', '#166534', '#22c55e', '#dcfce7', '#166534',
                      "Georgia, serif", title_size='36px', category_size='24px', price_size='18px'),
        TemplateTheme('luxury', 'Luxury', 'Gold accents on a dark page',
                      '#0f0f0f', '#d4af37', '#f5f2e7', '#333333', '#f5f2e7',
                      "Georgia, serif", title_size='40px', category_size='24px', price_size='18px'),
    )
}

_FOOTER_TEXT = {
    'rtl': 'شكراً لاختياركم لنا',
    'ltr': 'Thank you for choosing us',
}

# Only these values may flow from user customizations into CSS
_COLOR_RE = re.compile(
    r'^(#[0-9a-fA-F]{3,8}|[a-zA-Z]{3,20}|(rgb|rgba|hsl|hsla)\(\s*[\d.%\s,/]+\))$'
)
_LOCAL_URL_RE = re.compile(r'^/(images|static|css)/[\w./-]+$')
_REMOTE_URL_RE = re.compile(r'^https?://[^\s\'"()\\<>]+$')


def normalize_template_id(template_id: Optional[str]) -> str:
    """Map aliases and unknown ids onto a registered template."""
    if not template_id:
        return DEFAULT_TEMPLATE
    key = str(template_id).strip().lower().replace('_', '-')
    for suffix in ('-menu', '-style', '-coffee'):
        if key.endswith(suffix) and key[:-len(suffix)] in TEMPLATES:
            key = key[:-len(suffix)]
    return key if key in TEMPLATES else DEFAULT_TEMPLATE


def available_templates() -> List[Dict[str, str]]:
    return [{'id': t.id, 'name': t.name, 'description': t.description} for t in TEMPLATES.values()]


def escape_html(value: Optional[object]) -> str:
    if value is None:
        return ''
    return html.escape(str(value), quote=True)


def format_price(price: float, currency: str, rtl: bool) -> str:
    """Two-decimal price with the currency before the number for RTL languages."""
    amount = f"{float(price):.2f}"
    return f"{currency} {amount}" if rtl else f"{amount} {currency}"


def safe_color(value: Optional[str]) -> Optional[str]:
    if value and _COLOR_RE.match(value.strip()):
        return value.strip()
    return None


def safe_palette(palette: ColorPalette) -> ColorPalette:
    """Replace any colour that is not plain CSS with the default for that slot."""
    default = ColorPalette()
    return ColorPalette(
        primary=safe_color(palette.primary) or default.primary,
        secondary=safe_color(palette.secondary) or default.secondary,
        accent=safe_color(palette.accent) or default.accent,
    )


def safe_url(value: Optional[str], local_only: bool = False) -> Optional[str]:
    """A local asset path, or (unless local_only) a plain http(s) URL."""
    if not value:
        return None
    value = value.strip()
    if '..' in value:
        return None
    if _LOCAL_URL_RE.match(value):
        return value
    if not local_only and _REMOTE_URL_RE.match(value):
        return value
    return None


def _px(value: Optional[float], low: float = 0, high: float = 200) -> Optional[str]:
    if value is None or not (low <= value <= high):
        return None
    return f"{value:g}px"


class TemplateRenderer:
    """Turns a RenderJob into a self-contained HTML document."""

    def __init__(self, asset_base_url: str = 'http://menu-assets.local',
                 logger: Optional[ConsoleLogger] = None):
        self.asset_base_url = asset_base_url.rstrip('/')
        self.log = logger or get_logger()

    def validate(self, job: RenderJob) -> Tuple[Category, ...]:
        """Return the categories that will be rendered, or raise INVALID_INPUT."""
        if not job.restaurant.name or not job.restaurant.name.strip():
            raise invalid_input("restaurant name is missing")
        if not job.categories:
            raise invalid_input("menu has no categories")

        renderable = tuple(
            Category(name=category.name, items=category.renderable_items, description=category.description)
            for category in job.categories
            if category.name and category.renderable_items
        )
        if not renderable:
            raise invalid_input("no category contains an available, priced item")
        return renderable

    def render(self, job: RenderJob) -> str:
        categories = self.validate(job)
        theme = TEMPLATES[normalize_template_id(job.template_id)]
        families = self._font_families(job)

        document = (
            "<!DOCTYPE html>\n"
            f'<html lang="{escape_html(job.language)}" dir="{job.direction}">\n'
            "<head>\n"
            '<meta charset="UTF-8">\n'
            f'<base href="{escape_html(self.asset_base_url)}/">\n'
            '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
            '<meta name="color-scheme" content="light">\n'
            f"<title>{escape_html(job.restaurant.name)} - Menu</title>\n"
            f'<link rel="stylesheet" href="{PRINT_STYLESHEET}">\n'
            "<style>\n"
            f"{font_face_css(families, self.asset_base_url)}\n"
            f"{self._base_css(job, theme, families)}\n"
            f"{self._customization_css(job)}"
            "</style>\n"
            "</head>\n"
            f'<body class="template-{theme.id}">\n'
            f"{self._body_html(job, categories)}"
            "</body>\n"
            "</html>\n"
        )
        self.log.debug(f"Rendered template '{theme.id}' ({job.language}, {len(document)} chars)")
        return document

    def _font_families(self, job: RenderJob) -> List[FontFamily]:
        settings = job.customizations.fonts_for(job.language)
        families = [default_family_for_language(job.language)]
        for name in (settings.heading_family, settings.body_family):
            family = resolve_family(name)
            if family is not None and family not in families:
                families.append(family)
        return families

    def _base_css(self, job: RenderJob, theme: TemplateTheme, families: List[FontFamily]) -> str:
        settings = job.customizations.fonts_for(job.language)
        palette = safe_palette(job.restaurant.palette)
        body_family = resolve_family(settings.body_family) or families[0]
        heading_family = resolve_family(settings.heading_family) or body_family
        body_size = _px(settings.body_size, 8, 48) or '14px'
        heading_weight = resolve_font_weight(settings.heading_weight or 'bold')
        body_weight = resolve_font_weight(settings.body_weight)
        title_size = _px(settings.heading_size, 10, 120) or theme.title_size
        start, end = ('right', 'left') if job.is_rtl else ('left', 'right')

        return f"""@page {{
  size: {job.page_format.css_size};
  margin: {job.margins.as_css()};
}}
* {{
  margin: 0;
  padding: 0;
  box-sizing: border-box;
  -webkit-print-color-adjust: exact !important;
  print-color-adjust: exact !important;
}}
*, *::before, *::after {{
  animation-duration: 0s !important;
  animation-delay: 0s !important;
  transition-duration: 0s !important;
  transition-delay: 0s !important;
}}
body {{
  font-family: {body_family.css_stack};
  font-weight: {body_weight};
  font-size: {body_size};
  line-height: 1.6;
  color: {theme.text};
  background: {theme.background};
  direction: {job.direction};
  text-align: {start};
}}
h1, h2, h3 {{
  font-family: {heading_family.css_stack}, {theme.heading_stack};
  font-weight: {heading_weight};
}}
.menu-container {{
  width: 100%;
  margin: 0 auto;
}}
.menu-header {{
  text-align: center;
  margin-bottom: 30px;
  padding-bottom: 20px;
  border-bottom: 2px solid {palette.accent};
}}
.restaurant-logo {{
  max-height: 90px;
  max-width: 200px;
  margin-bottom: 10px;
}}
.restaurant-name {{
  font-size: {title_size};
  color: {theme.primary};
  margin-bottom: 10px;
}}
.restaurant-contact {{
  font-size: 12px;
  color: {theme.text};
  opacity: 0.8;
}}
.header-divider, .footer-line {{
  width: 60px;
  height: 3px;
  background: {palette.primary};
  margin: 0 auto;
}}
.menu-section {{
  margin-bottom: 30px;
  page-break-inside: avoid;
}}
.section-title {{
  font-size: {theme.category_size};
  color: {theme.primary};
  margin-bottom: 8px;
  padding-bottom: 5px;
  border-bottom: 1px solid {palette.accent};
}}
.section-description {{
  font-size: 13px;
  font-style: italic;
  margin-bottom: 15px;
  opacity: 0.8;
}}
.menu-items {{
  display: flex;
  flex-direction: column;
  gap: 10px;
}}
.menu-item {{
  display: flex;
  justify-content: space-between;
  align-items: flex-start;
  padding: 12px;
  background: {theme.accent};
  border-radius: 6px;
  page-break-inside: avoid;
}}
.menu-item.featured {{
  border-{start}: 4px solid {palette.secondary};
}}
.item-info {{
  flex: 1;
  margin-{end}: 15px;
}}
.item-name {{
  font-size: {theme.item_size};
  color: {theme.primary};
  margin-bottom: 4px;
}}
.featured-badge {{
  color: {palette.secondary};
  margin-{start}: 4px;
}}
.item-description {{
  font-size: 13px;
  opacity: 0.85;
}}
.item-price {{
  font-size: {theme.price_size};
  font-weight: bold;
  color: {theme.secondary};
  white-space: nowrap;
}}
.menu-footer {{
  text-align: center;
  margin-top: 30px;
  padding-top: 20px;
  border-top: 1px solid {palette.accent};
}}
.footer-text {{
  font-size: 13px;
  font-style: italic;
  margin-top: 10px;
}}
@media print {{
  .menu-section, .menu-item {{
    page-break-inside: avoid;
  }}
}}
"""

    def _customization_css(self, job: RenderJob) -> str:
        rules: List[str] = []
        background = job.customizations.page_background
        color = safe_color(background.color)
        if color:
            rules.append(f"body {{ background-color: {color}; }}")
        image = safe_url(background.image_url, local_only=True)
        if image:
            rules.append(f"body {{ background-image: url('{image}'); background-size: cover; }}")

        row = job.customizations.row_styles
        declarations = {
            '.menu-item': [
                ('background-color', safe_color(row.background_color)),
                ('border-radius', _px(row.border_radius, 0, 60)),
                ('border', f"1px solid {safe_color(row.border_color)}" if safe_color(row.border_color) else None),
            ],
            '.item-name': [('color', safe_color(row.item_color))],
            '.item-price': [('color', safe_color(row.price_color))],
            '.item-description': [('color', safe_color(row.description_color))],
        }
        for selector, props in declarations.items():
            body = "; ".join(f"{prop}: {value}" for prop, value in props if value)
            if body:
                rules.append(f"{selector} {{ {body}; }}")

        return "".join(f"{rule}\n" for rule in rules)

    def _body_html(self, job: RenderJob, categories: Tuple[Category, ...]) -> str:
        restaurant = job.restaurant
        parts = ['<div class="menu-container">\n', '<header class="menu-header">\n']

        logo = safe_url(restaurant.logo_url)
        if logo:
            parts.append(f'<img class="restaurant-logo" src="{escape_html(logo)}" alt="">\n')
        parts.append(f'<h1 class="restaurant-name">{escape_html(restaurant.name)}</h1>\n')
        contact = [value for value in (restaurant.address, restaurant.phone) if value]
        if contact:
            parts.append(
                f'<p class="restaurant-contact">{" &middot; ".join(escape_html(v) for v in contact)}</p>\n'
            )
        parts.append('<div class="header-divider"></div>\n</header>\n<main class="menu-content">\n')

        for category in categories:
            parts.append(self._section_html(job, category))

        parts.append(
            '</main>\n'
            '<footer class="menu-footer">\n'
            '<div class="footer-line"></div>\n'
            f'<p class="footer-text">{_FOOTER_TEXT[job.direction]}</p>\n'
            '</footer>\n'
            '</div>\n'
        )
        return "".join(parts)

    def _section_html(self, job: RenderJob, category: Category) -> str:
        parts = ['<section class="menu-section">\n',
                 f'<h2 class="section-title">{escape_html(category.name)}</h2>\n']
        if category.description:
            parts.append(f'<p class="section-description">{escape_html(category.description)}</p>\n')
        parts.append('<div class="menu-items">\n')
        for item in category.items:
            parts.append(self._item_html(job, item))
        parts.append('</div>\n</section>\n')
        return "".join(parts)

    def _item_html(self, job: RenderJob, item: MenuItem) -> str:
        css_class = "menu-item featured" if item.is_featured else "menu-item"
        badge = '<span class="featured-badge">&#9733;</span>' if item.is_featured else ''
        description = (
            f'<p class="item-description">{escape_html(item.description)}</p>\n' if item.description else ''
        )
        price = format_price(item.price, job.restaurant.currency, job.is_rtl)
        return (
            f'<div class="{css_class}">\n'
            '<div class="item-info">\n'
            f'<h3 class="item-name">{escape_html(item.name)}{badge}</h3>\n'
            f'{description}'
            '</div>\n'
            f'<div class="item-price">{escape_html(price)}</div>\n'
            '</div>\n'
        )
