"""
Command-line interface for PDF Manager.
"""

import dataclasses
import logging
import os
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pdf_manager import __version__
from pdf_manager.api import (
    delete_pages_file,
    extract_page_file,
    load_file,
    merge_files,
    rotate_file,
    split_file,
)
from pdf_manager.config import XREF_FORMATS, Settings
from pdf_manager.exceptions import PDFManagerError
from pdf_manager.operations import get_metadata
from pdf_manager.types import OperationResult
from pdf_manager.utils import configure_logging, format_file_size

console = Console()


def _fail(message) -> None:
    console.print(f"\n[bold red]✗ Error:[/bold red] {escape(str(message))}")
    sys.exit(1)


def _report(result: OperationResult, verb: str) -> None:
    console.print(f"\n[bold green]✓ {verb} {result.page_count} page(s)[/bold green]")
    console.print(f"[dim]Output file: {escape(str(result.output))}[/dim]")
    console.print()


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.option(
    '--xref-format',
    type=click.Choice(XREF_FORMATS),
    default=None,
    help='Cross-reference format for written files (default: table)'
)
@click.option('--strict', is_flag=True, help='Refuse to repair damaged input files')
@click.option(
    '--compress/--no-compress',
    default=None,
    help='Flate-compress unfiltered streams in merge, split and extract output (default: on)'
)
@click.pass_context
def cli(ctx, verbose, xref_format, strict, compress):
    """
    PDF Manager - merge, split, rotate and delete PDF pages.
    """
    try:
        settings = Settings.from_env()
    except ValueError as e:
        _fail(e)

    overrides = {}
    if xref_format is not None:
        overrides['xref_format'] = xref_format
    if strict:
        overrides['strict'] = True
    if compress is not None:
        overrides['compress'] = compress
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    configure_logging(logging.DEBUG if verbose else settings.logging_level)
    ctx.obj = settings


@cli.command(name="info")
@click.argument('input_pdf', type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def show_info(settings, input_pdf):
    """
    Display page count and document information of a PDF file.

    Example:

        pdf-manager info input.pdf
    """
    try:
        document = load_file(input_pdf, settings=settings)
        metadata = get_metadata(document)

        table = Table(title=f"PDF Information: {escape(os.path.basename(input_pdf))}")
        table.add_column("Property", style="cyan", no_wrap=True)
        table.add_column("Value", style="green")

        table.add_row("File Path", escape(os.path.abspath(input_pdf)))
        table.add_row("File Size", format_file_size(os.path.getsize(input_pdf)))
        table.add_row("PDF Version", document.version)
        table.add_row("Number of Pages", str(document.page_count))
        for key, value in sorted(metadata.items()):
            table.add_row(escape(key), escape(value))

        console.print()
        console.print(table)
        console.print()

    except PDFManagerError as e:
        _fail(e)


@cli.command(name="merge")
@click.argument('input_pdfs', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--output', '-o',
    required=True,
    help='Path of the merged PDF',
    type=click.Path(dir_okay=False)
)
@click.option(
    '--metadata/--no-metadata',
    default=True,
    help='Copy document information from the first input'
)
@click.pass_obj
def merge_command(settings, input_pdfs, output, metadata):
    """
    Merge PDF files in the order given.

    Example:

        pdf-manager merge a.pdf b.pdf c.pdf -o merged.pdf
    """
    try:
        console.print(f"\n[bold cyan]Merging {len(input_pdfs)} files...[/bold cyan]")
        result = merge_files(list(input_pdfs), output, metadata=metadata, settings=settings)
        _report(result, "Merged")

    except PDFManagerError as e:
        _fail(e)


@cli.command(name="split")
@click.argument('input_pdf', type=click.Path(exists=True, dir_okay=False))
@click.argument('pages', type=str)
@click.option(
    '--output', '-o',
    required=True,
    help='Path of the PDF holding the selected pages',
    type=click.Path(dir_okay=False)
)
@click.pass_obj
def split_command(settings, input_pdf, pages, output):
    """
    Copy the selected pages into a new PDF.

    PAGES is a list such as '1, 3-5, 8'.

    Example:

        pdf-manager split input.pdf "1-3,7" -o selection.pdf
    """
    try:
        console.print(f"\n[bold cyan]Extracting pages {escape(pages)}...[/bold cyan]")
        result = split_file(input_pdf, pages, output, settings=settings)
        _report(result, "Extracted")

    except PDFManagerError as e:
        _fail(e)


@cli.command(name="extract-page")
@click.argument('input_pdf', type=click.Path(exists=True, dir_okay=False))
@click.argument('page', type=int)
@click.option(
    '--output', '-o',
    required=True,
    help='Path of the single-page PDF',
    type=click.Path(dir_okay=False)
)
@click.pass_obj
def extract_page_command(settings, input_pdf, page, output):
    """
    Copy a single page into a new PDF.

    Example:

        pdf-manager extract-page input.pdf 4 -o page4.pdf
    """
    try:
        result = extract_page_file(input_pdf, page, output, settings=settings)
        _report(result, "Extracted")

    except PDFManagerError as e:
        _fail(e)


@cli.command(name="rotate")
@click.argument('input_pdf', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--angle', '-a',
    required=True,
    help='Rotation in degrees, a multiple of 90 (negative turns counter-clockwise)',
    type=int
)
@click.option(
    '--pages', '-p',
    default='',
    help="Pages to rotate, e.g. '1,3-5' (default: all pages)",
    type=str
)
@click.option(
    '--output', '-o',
    required=True,
    help='Path of the rotated PDF',
    type=click.Path(dir_okay=False)
)
@click.pass_obj
def rotate_command(settings, input_pdf, angle, pages, output):
    """
    Rotate pages clockwise by a multiple of 90 degrees.

    Example:

        pdf-manager rotate input.pdf --angle 90 --pages 2-4 -o rotated.pdf
    """
    try:
        result = rotate_file(input_pdf, pages, angle, output, settings=settings)
        console.print(f"\n[bold green]✓ Rotated by {angle}°[/bold green]")
        console.print(f"[dim]Output file: {escape(str(result.output))}[/dim]")
        console.print()

    except PDFManagerError as e:
        _fail(e)


@cli.command(name="delete")
@click.argument('input_pdf', type=click.Path(exists=True, dir_okay=False))
@click.argument('pages', type=str)
@click.option(
    '--output', '-o',
    required=True,
    help='Path of the PDF without the deleted pages',
    type=click.Path(dir_okay=False)
)
@click.pass_obj
def delete_command(settings, input_pdf, pages, output):
    """
    Delete the selected pages.

    Example:

        pdf-manager delete input.pdf "2,5-6" -o trimmed.pdf
    """
    try:
        result = delete_pages_file(input_pdf, pages, output, settings=settings)
        console.print(f"\n[bold green]✓ Deleted {len(result.pages)} page(s); {result.page_count} remain[/bold green]")
        console.print(f"[dim]Output file: {escape(str(result.output))}[/dim]")
        console.print()

    except PDFManagerError as e:
        _fail(e)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == '__main__':
    main()
