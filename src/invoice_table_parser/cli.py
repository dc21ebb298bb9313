#!/usr/bin/env python3
"""
Invoice Table Parser CLI
Reconstructs line-item tables from OCR text of Korean invoices.
"""

import json
import logging
import sys
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.table import Table

from .config import TemplateConfig
from .exceptions import InvoiceParserError, OCRInputError
from .pipeline import InvoiceTablePipeline
from .refinement import build_refinement_payload
from .unit_cost import cost_per_unit

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

console = Console()


def _load_config(config_path: Optional[str]) -> Optional[TemplateConfig]:
    return TemplateConfig.from_file(config_path) if config_path else None


def _read_text(text_path: str) -> str:
    if text_path == '-':
        return sys.stdin.read()
    try:
        with open(text_path, 'r', encoding='utf-8') as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise OCRInputError(f"Could not read OCR text {text_path}: {e}") from e


def _emit(data: Dict[str, Any], output: Optional[str]) -> None:
    if output:
        with open(output, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        logger.info(f"Results saved to: {output}")
    else:
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _enable_verbose(ctx, param, value):
    if value:
        logging.getLogger().setLevel(logging.DEBUG)


# Accepted on the group and on every command
verbose_option = click.option('--verbose', '-v', is_flag=True, expose_value=False,
                              callback=_enable_verbose, help='Enable verbose logging')


@click.group()
@verbose_option
def cli():
    """Parse line-item tables out of Korean invoice OCR text."""


@cli.command()
@verbose_option
@click.argument('text_path', type=click.Path(allow_dash=True))
@click.option('--output', '-o', type=click.Path(), help='Output JSON file path')
@click.option('--config', 'config_path', type=click.Path(exists=True), help='YAML/JSON template overrides')
@click.option('--diagnostics', is_flag=True, help='Include pipeline diagnostics in the output')
def parse(text_path: str, output: Optional[str], config_path: Optional[str], diagnostics: bool):
    """Parse an OCR text file ("-" for stdin) into structured JSON."""
    try:
        pipeline = InvoiceTablePipeline(_load_config(config_path))
        result = pipeline.process(_read_text(text_path))
        _emit(result.to_dict(include_diagnostics=diagnostics), output)
    except InvoiceParserError as e:
        click.echo(f"Error parsing invoice text: {e}", err=True)
        raise click.Abort()


@cli.command()
@verbose_option
@click.argument('image_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(), help='Output JSON file path')
@click.option('--config', 'config_path', type=click.Path(exists=True), help='YAML/JSON template overrides')
@click.option('--lang', default='kor', show_default=True, help='Tesseract language')
@click.option('--no-resize', is_flag=True, help='Skip resizing the image before OCR')
def image(image_path: str, output: Optional[str], config_path: Optional[str], lang: str, no_resize: bool):
    """OCR an invoice image with Tesseract and parse the result."""
    # Imported here so text-only use does not need Tesseract bindings loaded
    from .ocr_engine import OCREngine

    try:
        text = OCREngine(lang=lang, prepare=not no_resize).extract_text(image_path)
        pipeline = InvoiceTablePipeline(_load_config(config_path))
        _emit(pipeline.process_to_dict(text), output)
    except InvoiceParserError as e:
        click.echo(f"Error processing invoice image: {e}", err=True)
        raise click.Abort()


@cli.command()
@verbose_option
@click.argument('text_path', type=click.Path(allow_dash=True))
@click.option('--output', '-o', type=click.Path(), help='Output JSON file path')
@click.option('--config', 'config_path', type=click.Path(exists=True), help='YAML/JSON template overrides')
def payload(text_path: str, output: Optional[str], config_path: Optional[str]):
    """Build the refinement payload (result plus VAT examples)."""
    try:
        result = InvoiceTablePipeline(_load_config(config_path)).process(_read_text(text_path))
        _emit(build_refinement_payload(result), output)
    except InvoiceParserError as e:
        click.echo(f"Error building payload: {e}", err=True)
        raise click.Abort()


@cli.command()
@verbose_option
@click.argument('text_path', type=click.Path(allow_dash=True))
@click.option('--config', 'config_path', type=click.Path(exists=True), help='YAML/JSON template overrides')
def table(text_path: str, config_path: Optional[str]):
    """Show parsed items as a table."""
    try:
        result = InvoiceTablePipeline(_load_config(config_path)).process(_read_text(text_path))
    except InvoiceParserError as e:
        click.echo(f"Error parsing invoice text: {e}", err=True)
        raise click.Abort()

    view = Table(title=f"Parsed items ({len(result.parsed_items)})")
    for header in ('품명', '규격', '수량', '단가', '공급가액', '세액', '단위당 원가'):
        view.add_column(header)

    def fmt(value):
        if value is None:
            return '-'
        return f"{value:,}" if isinstance(value, int) else str(value)

    for item in result.parsed_items:
        view.add_row(item.item, fmt(item.specification), fmt(item.quantity), fmt(item.unit_price),
                     fmt(item.supply_amount), fmt(item.vat), fmt(cost_per_unit(item)))
    console.print(view)

    if result.validation.invalid:
        console.print(f"[yellow]{len(result.validation.invalid)} row(s) failed schema validation[/yellow]")


def main():
    """Main CLI entry point."""
    cli()


if __name__ == '__main__':
    main()
