"""
Tests for the runtime dependency and font checks.
"""
import pytest

from menu_pdf import cli, dependencies
from menu_pdf.dependencies import check_dependencies, check_fonts


def install_fonts(root, *url_paths):
    for url_path in url_paths:
        path = root / url_path.lstrip('/')
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b'\x00\x01\x00\x00font')


DEFAULT_FONT_FILES = (
    '/fonts/open-sans/OpenSans-Regular.ttf',
    '/fonts/open-sans/OpenSans-Bold.ttf',
    '/fonts/cairo/Cairo-Regular.ttf',
    '/fonts/cairo/Cairo-Bold.ttf',
)


class TestCheckFonts:

    def test_reports_every_missing_default_font(self, tmp_path, capsys):
        assert check_fonts(tmp_path) == list(DEFAULT_FONT_FILES)
        out = capsys.readouterr().out
        assert '4 default font file(s) missing' in out
        assert '--asset-dir' in out

    def test_partial_install(self, tmp_path):
        install_fonts(tmp_path, '/fonts/cairo/Cairo-Regular.ttf', '/fonts/cairo/Cairo-Bold.ttf')
        assert check_fonts(tmp_path) == ['/fonts/open-sans/OpenSans-Regular.ttf',
                                         '/fonts/open-sans/OpenSans-Bold.ttf']

    def test_complete_install(self, tmp_path, capsys):
        install_fonts(tmp_path, *DEFAULT_FONT_FILES)
        assert check_fonts(tmp_path) == []
        assert 'Default fonts found' in capsys.readouterr().out


class TestCheckDependencies:

    @pytest.fixture(autouse=True)
    def browser_ready(self, monkeypatch):
        monkeypatch.setattr(dependencies, 'check_playwright', lambda: True)
        monkeypatch.setattr(dependencies, 'check_chromium', lambda: True)

    def test_missing_fonts_reported_but_not_fatal(self, tmp_path, capsys):
        assert check_dependencies(asset_dir=tmp_path)
        assert 'Cairo-Regular.ttf' in capsys.readouterr().out

    def test_fonts_skipped_without_asset_dir(self, capsys):
        assert check_dependencies()
        assert 'font' not in capsys.readouterr().out

    def test_cli_check_uses_asset_dir(self, tmp_path, capsys):
        install_fonts(tmp_path, *DEFAULT_FONT_FILES)
        assert cli.main(['--check', '--asset-dir', str(tmp_path)]) == 0
        assert f'Default fonts found in {tmp_path}' in capsys.readouterr().out
