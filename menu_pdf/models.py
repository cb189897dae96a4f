"""
Render job and result types.

A RenderJob is immutable once constructed; `RenderJob.from_dict` accepts the
JSON shape produced by the menu data provider.

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .fonts import is_rtl as is_rtl_language
from .page_format import Margins, PaperFormat, get_paper_format

DEFAULT_CURRENCY = 'EGP'
DEFAULT_LANGUAGE = 'ar'


@dataclass(frozen=True)
class ColorPalette:
    primary: str = '#10b981'
    secondary: str = '#059669'
    accent: str = '#34d399'


@dataclass(frozen=True)
class Restaurant:
    name: str
    logo_url: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    currency: str = DEFAULT_CURRENCY
    palette: ColorPalette = field(default_factory=ColorPalette)


@dataclass(frozen=True)
class MenuItem:
    name: str
    price: Optional[float] = None
    description: Optional[str] = None
    is_available: bool = True
    is_featured: bool = False

    @property
    def is_renderable(self) -> bool:
        """Only available items with a real price make it onto the page."""
        return bool(self.name) and self.is_available and self.price is not None


@dataclass(frozen=True)
class Category:
    name: str
    items: Tuple[MenuItem, ...] = ()
    description: Optional[str] = None

    @property
    def renderable_items(self) -> Tuple[MenuItem, ...]:
        return tuple(item for item in self.items if item.is_renderable)


@dataclass(frozen=True)
class FontSettings:
    """Font choices for one language."""

    heading_family: Optional[str] = None
    heading_weight: Optional[str] = None
    heading_size: Optional[float] = None
    body_family: Optional[str] = None
    body_weight: Optional[str] = None
    body_size: Optional[float] = None


@dataclass(frozen=True)
class PageBackground:
    color: Optional[str] = None
    image_url: Optional[str] = None


@dataclass(frozen=True)
class RowStyles:
    background_color: Optional[str] = None
    border_radius: Optional[float] = None
    border_color: Optional[str] = None
    item_color: Optional[str] = None
    price_color: Optional[str] = None
    description_color: Optional[str] = None


@dataclass(frozen=True)
class Customizations:
    # Sorted (language, settings) pairs keep the job hashable and ordering stable
    font_settings: Tuple[Tuple[str, FontSettings], ...] = ()
    page_background: PageBackground = field(default_factory=PageBackground)
    row_styles: RowStyles = field(default_factory=RowStyles)

    def fonts_for(self, language: str) -> FontSettings:
        for lang, settings in self.font_settings:
            if lang == language:
                return settings
        return FontSettings()


@dataclass(frozen=True)
class RenderJob:
    """Everything needed to render one menu PDF."""

    restaurant: Restaurant
    categories: Tuple[Category, ...]
    template_id: str = 'classic'
    language: str = DEFAULT_LANGUAGE
    customizations: Customizations = field(default_factory=Customizations)
    page_format: PaperFormat = field(default_factory=lambda: get_paper_format('A4'))
    margins: Margins = field(default_factory=Margins)

    @property
    def is_rtl(self) -> bool:
        return is_rtl_language(self.language)

    @property
    def direction(self) -> str:
        return 'rtl' if self.is_rtl else 'ltr'

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RenderJob":
        """Build a job from the data provider's JSON shape."""
        restaurant_data = data.get('restaurant') or {}
        palette_data = restaurant_data.get('color_palette') or {}
        default_palette = ColorPalette()
        restaurant = Restaurant(
            name=str(restaurant_data.get('name') or '').strip(),
            logo_url=restaurant_data.get('logo_url') or restaurant_data.get('logo'),
            address=restaurant_data.get('address'),
            phone=restaurant_data.get('phone') or restaurant_data.get('phoneNumber'),
            currency=restaurant_data.get('currency') or DEFAULT_CURRENCY,
            palette=ColorPalette(
                primary=palette_data.get('primary') or default_palette.primary,
                secondary=palette_data.get('secondary') or default_palette.secondary,
                accent=palette_data.get('accent') or default_palette.accent,
            ),
        )

        categories = tuple(_category_from_dict(raw) for raw in data.get('categories') or [] if raw)

        kwargs: Dict[str, Any] = {}
        if data.get('format'):
            kwargs['page_format'] = get_paper_format(data['format'])
        margin = data.get('margin') or data.get('margins')
        if isinstance(margin, dict):
            kwargs['margins'] = Margins.from_dict(margin)
        elif isinstance(margin, str):
            kwargs['margins'] = Margins.parse(margin)

        return cls(
            restaurant=restaurant,
            categories=categories,
            template_id=data.get('templateId') or data.get('template_id') or 'classic',
            language=data.get('language') or DEFAULT_LANGUAGE,
            customizations=_customizations_from_dict(data.get('customizations') or {}),
            **kwargs,
        )


def _parse_price(raw: Any) -> Optional[float]:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        price = float(raw)
    except (TypeError, ValueError):
        return None
    # NaN never equals itself
    return price if price == price else None


def _category_from_dict(raw: Dict[str, Any]) -> Category:
    raw_items = raw.get('menu_items')
    if raw_items is None:
        raw_items = raw.get('items') or []
    items = tuple(
        MenuItem(
            name=str(item.get('name') or '').strip(),
            price=_parse_price(item.get('price')),
            description=item.get('description') or None,
            is_available=bool(item.get('is_available', True)),
            is_featured=bool(item.get('is_featured', False)),
        )
        for item in raw_items if item
    )
    return Category(name=str(raw.get('name') or '').strip(), items=items,
                    description=raw.get('description') or None)


def _number(raw: Any) -> Optional[float]:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


def _font_settings_from_dict(raw: Dict[str, Any]) -> FontSettings:
    headers = raw.get('headers') or {}
    body = raw.get('body') or {}
    return FontSettings(
        heading_family=headers.get('fontFamily') or raw.get('heading'),
        heading_weight=_str_or_none(headers.get('fontWeight')),
        heading_size=_number(headers.get('fontSize')),
        body_family=body.get('fontFamily'),
        body_weight=_str_or_none(body.get('fontWeight')),
        body_size=_number(body.get('fontSize')),
    )


def _str_or_none(raw: Any) -> Optional[str]:
    return None if raw is None else str(raw)


def _customizations_from_dict(raw: Dict[str, Any]) -> Customizations:
    font_data = raw.get('fontSettings') or {}
    font_settings = tuple(sorted(
        (str(lang), _font_settings_from_dict(settings))
        for lang, settings in font_data.items() if isinstance(settings, dict)
    ))

    background = raw.get('pageBackgroundSettings') or {}
    rows = raw.get('rowStyles') or {}
    return Customizations(
        font_settings=font_settings,
        page_background=PageBackground(
            color=background.get('backgroundColor'),
            image_url=background.get('backgroundImage') or background.get('backgroundImageUrl'),
        ),
        row_styles=RowStyles(
            background_color=rows.get('backgroundColor'),
            border_radius=_number(rows.get('borderRadius')),
            border_color=rows.get('borderColor'),
            item_color=rows.get('itemColor'),
            price_color=rows.get('priceColor'),
            description_color=rows.get('descriptionColor'),
        ),
    )


@dataclass(frozen=True)
class RenderResult:
    """A validated PDF."""

    pdf_bytes: bytes
    byte_length: int
    validated: bool = False

    def http_headers(self, filename: str = 'menu.pdf') -> Dict[str, str]:
        safe_name = filename.replace('"', '').replace('\r', '').replace('\n', '')
        return {
            'Content-Type': 'application/pdf',
            'Content-Disposition': f'inline; filename="{safe_name}"',
            'Content-Length': str(self.byte_length),
            'Cache-Control': 'private, no-cache, no-store, must-revalidate',
            'Pragma': 'no-cache',
            'Expires': '0',
        }
