"""
Bundled font families and @font-face generation.

Font files live in the local asset store under /fonts/ and are served by the
request interceptor, so rendering never reaches out to a font CDN.

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

RTL_LANGUAGES = ('ar', 'fa', 'ur', 'he')

WEIGHT_NAMES = {
    'thin': 100,
    'extralight': 200,
    'light': 300,
    'normal': 400,
    'regular': 400,
    'medium': 500,
    'semibold': 600,
    'bold': 700,
    'extrabold': 800,
    'black': 900,
}

_FILE_SUFFIXES = {
    100: 'Thin',
    200: 'ExtraLight',
    300: 'Light',
    400: 'Regular',
    500: 'Medium',
    600: 'SemiBold',
    700: 'Bold',
    800: 'ExtraBold',
    900: 'Black',
}


@dataclass(frozen=True)
class FontFamily:
    name: str
    file_stem: str
    directory: str
    weights: Tuple[int, ...]
    direction: str
    fallback: str = 'sans-serif'

    def file_for(self, weight: int) -> str:
        return f"/fonts/{self.directory}/{self.file_stem}-{_FILE_SUFFIXES[weight]}.ttf"

    @property
    def css_stack(self) -> str:
        return f"'{self.name}', {self.fallback}"


FONT_FAMILIES: Dict[str, FontFamily] = {
    family.name: family for family in (
        # Arabic fonts
        FontFamily('Cairo', 'Cairo', 'cairo', (300, 400, 600, 700, 800), 'rtl'),
        FontFamily('Noto Kufi Arabic', 'NotoKufiArabic', 'noto-kufi-arabic', (400, 500, 700), 'rtl'),
        FontFamily('Almarai', 'Almarai', 'almarai', (300, 400, 700, 800), 'rtl'),
        FontFamily('Amiri', 'Amiri', 'amiri', (400, 700), 'rtl', fallback='serif'),
        # Latin fonts
        FontFamily('Open Sans', 'OpenSans', 'open-sans', (300, 400, 600, 700), 'ltr'),
        FontFamily('Roboto', 'Roboto', 'roboto', (300, 400, 500, 700), 'ltr'),
    )
}

# Lower-case ids used by the editor's font picker
FONT_IDS = {
    'cairo': 'Cairo',
    'noto-kufi': 'Noto Kufi Arabic',
    'almarai': 'Almarai',
    'amiri': 'Amiri',
    'open-sans': 'Open Sans',
    'roboto': 'Roboto',
}


def is_rtl(language: str) -> bool:
    return language.split('-')[0].lower() in RTL_LANGUAGES


def default_family_for_language(language: str) -> FontFamily:
    return FONT_FAMILIES['Cairo'] if is_rtl(language) else FONT_FAMILIES['Open Sans']


def resolve_family(name: Optional[str]) -> Optional[FontFamily]:
    """Find a bundled family by display name or picker id; None if not bundled."""
    if not name:
        return None
    key = name.split(',')[0].strip().strip('\'"')
    if key in FONT_FAMILIES:
        return FONT_FAMILIES[key]
    mapped = FONT_IDS.get(key.lower())
    return FONT_FAMILIES[mapped] if mapped else None


def resolve_font_weight(weight: Optional[str]) -> int:
    if weight is None:
        return 400
    text = str(weight).strip().lower().replace(' ', '').replace('-', '')
    if text.isdigit():
        value = int(text)
        return value if value in _FILE_SUFFIXES else 400
    return WEIGHT_NAMES.get(text, 400)


def font_face_css(families: Iterable[FontFamily], base_url: str = '') -> str:
    """@font-face rules for every weight of each family, in a stable order."""
    seen: List[str] = []
    rules: List[str] = []
    for family in sorted(families, key=lambda f: f.name):
        if family.name in seen:
            continue
        seen.append(family.name)
        for weight in family.weights:
            rules.append(
                "@font-face {\n"
                f"  font-family: '{family.name}';\n"
                f"  src: url('{base_url}{family.file_for(weight)}') format('truetype');\n"
                f"  font-weight: {weight};\n"
                "  font-style: normal;\n"
                "  font-display: block;\n"
                "}"
            )
    return "\n".join(rules)
