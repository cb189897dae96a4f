"""
Tests for menu HTML template rendering.
"""
import pytest

from menu_pdf.errors import ErrorKind, RenderError
from menu_pdf.models import (Category, ColorPalette, Customizations, MenuItem, PageBackground,
                             RenderJob, Restaurant, RowStyles)
from menu_pdf.template import (TemplateRenderer, available_templates, format_price,
                               normalize_template_id, safe_color, safe_palette, safe_url)


@pytest.fixture
def templates(logger):
    return TemplateRenderer('http://menu-assets.local', logger=logger)


class TestValidation:
    """Jobs that cannot produce a menu are rejected up front"""

    def test_rejects_missing_name(self, templates, coffee_job):
        job = RenderJob(restaurant=Restaurant(name="  "), categories=coffee_job.categories)
        with pytest.raises(RenderError) as exc_info:
            templates.render(job)
        assert exc_info.value.kind is ErrorKind.INVALID_INPUT

    def test_rejects_no_categories(self, templates):
        job = RenderJob(restaurant=Restaurant(name="Empty"), categories=())
        with pytest.raises(RenderError) as exc_info:
            templates.render(job)
        assert exc_info.value.kind is ErrorKind.INVALID_INPUT
        assert "no categories" in exc_info.value.message

    def test_rejects_only_unavailable_or_unpriced_items(self, templates):
        job = RenderJob(
            restaurant=Restaurant(name="Closed"),
            categories=(Category(name="Drinks", items=(
                MenuItem(name="Tea", price=5.0, is_available=False),
                MenuItem(name="Juice", price=None),
            )),),
        )
        with pytest.raises(RenderError) as exc_info:
            templates.validate(job)
        assert exc_info.value.kind is ErrorKind.INVALID_INPUT
        assert not exc_info.value.retryable

    def test_filters_items_and_empty_categories(self, templates):
        job = RenderJob(
            restaurant=Restaurant(name="Mixed"),
            categories=(
                Category(name="Drinks", items=(MenuItem(name="Tea", price=5.0),
                                               MenuItem(name="Juice", price=None))),
                Category(name="Desserts", items=(MenuItem(name="Cake", price=9.0, is_available=False),)),
            ),
        )
        categories = templates.validate(job)
        assert [c.name for c in categories] == ["Drinks"]
        assert [i.name for i in categories[0].items] == ["Tea"]


class TestRender:
    """HTML output"""

    def test_identical_jobs_produce_identical_html(self, templates, job_dict):
        first = templates.render(RenderJob.from_dict(job_dict))
        second = templates.render(RenderJob.from_dict(job_dict))
        assert first == second

    def test_rtl_document(self, templates, coffee_job):
        document = templates.render(coffee_job)
        assert document.startswith("<!DOCTYPE html>")
        assert '<html lang="ar" dir="rtl">' in document
        assert "direction: rtl;" in document
        assert "EGP 15.00" in document
        assert "شكراً لاختياركم لنا" in document
        assert "'Cairo'" in document

    def test_ltr_document(self, templates, job_dict):
        document = templates.render(RenderJob.from_dict(job_dict))
        assert '<html lang="en" dir="ltr">' in document
        assert "7.50 EUR" in document
        assert "24.00 EUR" in document
        assert "Salad" not in document
        assert "Bread" not in document
        assert "Thank you for choosing us" in document
        assert 'class="template-botanical"' in document
        assert "size: Letter portrait;" in document
        assert "margin: 10mm 15mm 12mm 15mm;" in document

    def test_featured_item_marked(self, templates, job_dict):
        document = templates.render(RenderJob.from_dict(job_dict))
        assert 'class="menu-item featured"' in document
        assert "&#9733;" in document

    def test_base_href_and_font_faces_use_asset_origin(self, templates, coffee_job):
        document = templates.render(coffee_job)
        assert '<base href="http://menu-assets.local/">' in document
        assert "url('http://menu-assets.local/fonts/cairo/Cairo-Bold.ttf')" in document
        assert "font-display: block;" in document

    def test_user_text_is_escaped(self, templates):
        job = RenderJob(
            restaurant=Restaurant(name="<script>alert(1)</script>"),
            categories=(Category(name="A & B", items=(MenuItem(name='"Quoted"', price=1.0),)),),
            language='en',
        )
        document = templates.render(job)
        assert "<script>" not in document
        assert "&lt;script&gt;" in document
        assert "A &amp; B" in document
        assert "&quot;Quoted&quot;" in document

    def test_customizations_only_emit_safe_values(self, templates, coffee_job):
        job = RenderJob(
            restaurant=coffee_job.restaurant,
            categories=coffee_job.categories,
            customizations=Customizations(
                page_background=PageBackground(color="red; } body { display: none",
                                               image_url="/images/bg.png"),
                row_styles=RowStyles(price_color="#ff0000", border_radius=500),
            ),
        )
        document = templates.render(job)
        assert "display: none" not in document
        assert "url('/images/bg.png')" in document
        assert ".item-price { color: #ff0000; }" in document
        assert "500px" not in document

    def test_hostile_palette_falls_back_to_defaults(self, templates, coffee_job):
        hostile = "red}</style><script>fetch('http://10.0.0.1/')</script><style>"
        job = RenderJob(
            restaurant=Restaurant(name=coffee_job.restaurant.name,
                                  palette=ColorPalette(primary=hostile, accent="#abcdef")),
            categories=coffee_job.categories,
        )
        document = templates.render(job)
        assert "<script>" not in document
        assert "10.0.0.1" not in document
        assert "background: #10b981;" in document
        assert "solid #abcdef;" in document

    def test_remote_background_ignored_but_remote_logo_kept(self, templates, coffee_job):
        job = RenderJob(
            restaurant=Restaurant(name=coffee_job.restaurant.name,
                                  logo_url="https://cdn.example.com/logo.png"),
            categories=coffee_job.categories,
            customizations=Customizations(
                page_background=PageBackground(image_url="https://tracker.example.com/bg.png"),
            ),
        )
        document = templates.render(job)
        assert "tracker.example.com" not in document
        assert 'src="https://cdn.example.com/logo.png"' in document

    def test_links_print_stylesheet(self, templates, coffee_job):
        document = templates.render(coffee_job)
        assert '<link rel="stylesheet" href="css/menu-print.css">' in document
        assert document.index('<base href=') < document.index('css/menu-print.css')


class TestHelpers:
    """Pure helper functions"""

    @pytest.mark.parametrize("template_id, expected", [
        (None, 'classic'),
        ('', 'classic'),
        ('cafe', 'cafe'),
        ('Cafe-Coffee', 'cafe'),
        ('modern_menu', 'modern'),
        ('luxury-style', 'luxury'),
        ('does-not-exist', 'classic'),
    ])
    def test_normalize_template_id(self, template_id, expected):
        assert normalize_template_id(template_id) == expected

    def test_available_templates(self):
        ids = [t['id'] for t in available_templates()]
        assert ids[0] == 'classic'
        assert set(ids) == {'classic', 'cafe', 'modern', 'vintage', 'painting', 'botanical', 'luxury'}

    def test_format_price(self):
        assert format_price(15, 'EGP', rtl=True) == "EGP 15.00"
        assert format_price(3.456, 'USD', rtl=False) == "3.46 USD"

    def test_safe_color(self):
        assert safe_color("#fff") == "#fff"
        assert safe_color("rgba(0, 0, 0, 0.5)") == "rgba(0, 0, 0, 0.5)"
        assert safe_color("red;background:url(x)") is None
        assert safe_color(None) is None

    def test_safe_url(self):
        assert safe_url("/images/logo.png") == "/images/logo.png"
        assert safe_url("https://cdn.example.com/logo.png") == "https://cdn.example.com/logo.png"
        assert safe_url("/images/../../etc/passwd") is None
        assert safe_url("javascript:alert(1)") is None
        assert safe_url("https://x.com/a.png') ; background: url('y") is None

    def test_safe_url_local_only(self):
        assert safe_url("/images/bg.png", local_only=True) == "/images/bg.png"
        assert safe_url("https://cdn.example.com/bg.png", local_only=True) is None

    def test_safe_palette(self):
        palette = safe_palette(ColorPalette(primary="#123", secondary="url(x)", accent="blue"))
        assert palette == ColorPalette(primary="#123", secondary="#059669", accent="blue")
