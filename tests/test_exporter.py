"""
Tests for driving a page from HTML to PDF bytes.
"""
import re
import time
from pathlib import Path

import pytest

from menu_pdf.errors import ErrorKind, RenderError
from menu_pdf.exporter import PdfExporter
from menu_pdf.page_format import Margins, get_paper_format

from conftest import VALID_PDF, FakeLauncher

HTML = "<!DOCTYPE html><html><body><h1>Menu</h1></body></html>"


@pytest.fixture
def exporter(logger):
    return PdfExporter(navigation_timeout=0.2, font_timeout=0.05, network_idle_timeout=0.05,
                       export_timeout=0.2, logger=logger)


async def page_with(behaviour):
    launcher = FakeLauncher(page_plan=[behaviour])
    browser = await launcher.launch()
    context = await browser.new_context()
    return await context.new_page()


class TestPdfExporter:

    @pytest.mark.asyncio
    async def test_exports_with_print_options(self, exporter):
        page = await page_with('ok')
        data = await exporter.export(page, HTML, get_paper_format('A4'), Margins.parse('1in 0.5in'))
        assert data == VALID_PDF
        assert page.media == 'print'
        assert page.pdf_options['format'] == 'A4'
        assert page.pdf_options['prefer_css_page_size'] is True
        assert page.pdf_options['print_background'] is True
        assert page.pdf_options['margin'] == {'top': '1in', 'right': '0.5in', 'bottom': '1in', 'left': '0.5in'}
        assert page.pdf_options['tagged'] is True
        assert page.pdf_options['outline'] is False

    @pytest.mark.asyncio
    async def test_navigation_hang_is_navigation_timeout(self, exporter):
        page = await page_with('hang_nav')
        with pytest.raises(RenderError) as exc_info:
            await exporter.export(page, HTML, get_paper_format('A4'), Margins())
        assert exc_info.value.kind is ErrorKind.NAVIGATION_TIMEOUT

    @pytest.mark.asyncio
    async def test_pdf_hang_is_export_timeout(self, exporter):
        page = await page_with('hang_pdf')
        with pytest.raises(RenderError) as exc_info:
            await exporter.export(page, HTML, get_paper_format('A4'), Margins())
        assert exc_info.value.kind is ErrorKind.EXPORT_TIMEOUT
        assert exc_info.value.stage == 'export'

    @pytest.mark.asyncio
    async def test_slow_fonts_do_not_fail_render(self, exporter):
        page = await page_with('hang_fonts')
        assert await exporter.export(page, HTML, get_paper_format('A4'), Margins()) == VALID_PDF

    @pytest.mark.asyncio
    async def test_unreachable_resource_proceeds_after_idle_timeout(self, exporter):
        page = await page_with('hang_idle')
        started = time.monotonic()
        data = await exporter.export(page, HTML, get_paper_format('Letter'), Margins())
        assert data == VALID_PDF
        assert time.monotonic() - started < 1.0

    @pytest.mark.asyncio
    async def test_crash_during_export_is_classified(self, exporter):
        page = await page_with('crash_pdf')
        with pytest.raises(RenderError) as exc_info:
            await exporter.export(page, HTML, get_paper_format('A4'), Margins())
        assert exc_info.value.kind is ErrorKind.BROWSER_LAUNCH_FAILED
        assert "Target crashed" in exc_info.value.message
        assert exc_info.value.retryable


def test_declared_playwright_supports_tagged_pdfs():
    # page.pdf(tagged=, outline=) arrived in Playwright 1.42
    pyproject = (Path(__file__).parent.parent / 'pyproject.toml').read_text(encoding='utf-8')
    major, minor = re.search(r'"playwright>=(\d+)\.(\d+)', pyproject).groups()
    assert (int(major), int(minor)) >= (1, 42)
