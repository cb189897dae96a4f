"""
Command line interface: render menu job files to PDF.

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from colorama import Fore, Style
from tqdm import tqdm

from .config import Config
from .dependencies import check_dependencies, install_browsers
from .log import get_logger
from .models import RenderJob
from .page_format import parse_margins
from .renderer import MenuPdfRenderer
from .template import available_templates

# (output stem, job)
NamedJob = Tuple[str, RenderJob]


def load_jobs(paths: List[Path], overrides: Dict[str, Any]) -> List[NamedJob]:
    """Read job files; each file holds one job object or a list of them."""
    jobs: List[NamedJob] = []
    for path in paths:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        entries = data if isinstance(data, list) else [data]
        for index, entry in enumerate(entries, start=1):
            merged = dict(entry)
            merged.update({key: value for key, value in overrides.items() if value is not None})
            stem = path.stem if len(entries) == 1 else f"{path.stem}-{index}"
            jobs.append((stem, RenderJob.from_dict(merged)))
    return jobs


async def render_jobs(renderer: MenuPdfRenderer, jobs: List[NamedJob], output_dir: Path,
                      concurrency: int, save_html: bool) -> Tuple[int, int]:
    """Render jobs concurrently, writing <stem>.pdf files. Returns (converted, failed)."""
    log = renderer.log
    semaphore = asyncio.Semaphore(max(1, concurrency))
    converted = 0
    failed = 0

    async def run(stem: str, job: RenderJob):
        async with semaphore:
            return stem, job, await renderer.render(job)

    tasks = [run(stem, job) for stem, job in jobs]
    with tqdm(total=len(tasks), desc="Rendering menus", unit="menu") as pbar:
        for future in asyncio.as_completed(tasks):
            stem, job, result = await future
            if result.is_ok:
                output_pdf = output_dir / f"{stem}.pdf"
                output_pdf.write_bytes(result.value.pdf_bytes)
                if save_html:
                    (output_dir / f"{stem}.html").write_text(renderer.templates.render(job), encoding='utf-8')
                converted += 1
                pbar.set_postfix_str(f"Converted: {stem}")
            else:
                failed += 1
                payload = result.error.to_dict()
                log.debug(f"{stem}: {result.error!r}")
                pbar.set_postfix_str(f"Failed: {stem} ({payload['category']})")
            pbar.update(1)
    return converted, failed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render restaurant menu JSON files to print-ready PDFs with headless Chromium")
    parser.add_argument("jobs", nargs="*", type=Path, help="JSON job files (one job or a list of jobs per file)")
    parser.add_argument("--output-dir", type=Path, default=Path("output"), help="Directory for generated PDFs (default: output)")
    parser.add_argument("--template", default=None, help="Override the template id of every job")
    parser.add_argument("--language", default=None, help="Override the language of every job (e.g. ar, en)")
    parser.add_argument("--format", default=None, choices=["A4", "Letter"], help="Override the page format of every job")
    parser.add_argument("--margins", default=None, help="Override page margins in CSS format, e.g. '15mm' or '1in 0.75in'. Range: 0-3 inches")
    parser.add_argument("--concurrency", type=int, default=4, help="Maximum concurrent renders on the shared browser (default: 4)")
    parser.add_argument("--max-attempts", type=int, default=None, help="Render attempts per job before giving up (default: 3)")
    parser.add_argument("--asset-dir", default=None, help="Directory holding fonts/, images/ and css/ assets")
    parser.add_argument("--save-html", action="store_true", help="Save the generated HTML next to each PDF")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging for detailed output")
    parser.add_argument("--check", action="store_true", help="Check that Playwright, Chromium and the default fonts are installed and exit")
    parser.add_argument("--install-browsers", action="store_true", help="Install Playwright's Chromium build and exit")
    parser.add_argument("--list-templates", action="store_true", help="List available templates and exit")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_templates:
        for template in available_templates():
            print(f"{Fore.CYAN}{template['id']:<10}{Style.RESET_ALL} {template['name']} - {template['description']}")
        return 0
    if args.install_browsers:
        return 0 if install_browsers() else 1
    if args.check:
        asset_dir = Path(args.asset_dir) if args.asset_dir else Config().get_asset_dir()
        return 0 if check_dependencies(check_optional=True, asset_dir=asset_dir) else 1
    if not args.jobs:
        parser.error("at least one job file is required")

    # Build config from CLI args
    cli_config: Dict[str, Any] = {"debug": args.debug or None}
    if args.asset_dir:
        cli_config["asset_dir"] = args.asset_dir
    if args.max_attempts:
        cli_config["max_render_attempts"] = args.max_attempts

    log = get_logger()
    try:
        config = Config(cli_config)
        log = get_logger(config.get_debug())
        overrides = {"templateId": args.template, "language": args.language, "format": args.format}
        if args.margins:
            overrides["margin"] = parse_margins(args.margins)
        jobs = load_jobs(args.jobs, overrides)
    except (OSError, ValueError) as e:
        log.error(str(e))
        return 2

    if not check_dependencies(check_optional=False, asset_dir=config.get_asset_dir()):
        return 1

    args.output_dir.mkdir(parents=True, exist_ok=True)
    log.info(f"Found {len(jobs)} menu job(s); writing PDFs to {args.output_dir.absolute()}")

    async def run() -> Tuple[int, int]:
        async with MenuPdfRenderer(config, logger=log) as renderer:
            return await render_jobs(renderer, jobs, args.output_dir, args.concurrency, args.save_html)

    converted, failed = asyncio.run(run())

    log.success(f"Rendering complete: {converted} converted, {failed} failed ({converted + failed}/{len(jobs)} total)")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
