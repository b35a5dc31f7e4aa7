"""Command-line interface for docx-engine.

Provides commands for inspecting, checking and rewriting Word documents from the terminal.
"""

from pathlib import Path
from typing import Annotated

import typer

from . import __version__, open_document
from .errors import DocxEngineError

app = typer.Typer(
    name="docx-engine",
    help="Inspect, validate and rewrite .docx documents from the command line.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"docx-engine version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Inspect, validate and rewrite .docx documents from the command line."""
    pass


@app.command()
def info(
    file: Annotated[Path, typer.Argument(help="Path to the .docx file")],
) -> None:
    """Show document information."""
    try:
        doc = open_document(file)
    except (DocxEngineError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"File: {file}")
    typer.echo(f"Sections: {len(doc.sections)}")
    for index, section in enumerate(doc.sections, start=1):
        size = section.page_size
        typer.echo(
            f"  {index}: {section.orientation.value} {size.width}x{size.height} twips, "
            f"{section.columns} column(s), {section.break_type.value}"
        )
    typer.echo(f"Paragraphs: {len(doc.paragraphs)}")
    typer.echo(f"Tables: {len(doc.tables)}")
    typer.echo(f"Headers/footers: {len(doc.header_footer_parts())}")
    typer.echo(f"Styles: {len(doc.styles)}")
    typer.echo(f"Media: {len(doc.media)}")
    for asset in doc.media.assets:
        typer.echo(f"  {asset.path} ({len(asset.data)} bytes)")
    if doc.passthrough_parts:
        typer.echo(f"Preserved parts: {len(doc.passthrough_parts)}")


@app.command()
def validate(
    file: Annotated[Path, typer.Argument(help="Path to the .docx file")],
) -> None:
    """Open a document and run the pre-save checks."""
    try:
        doc = open_document(file)
        doc.validate()
    except (DocxEngineError, OSError) as e:
        typer.echo(f"Invalid: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"{file} is valid")


@app.command()
def resave(
    file: Annotated[Path, typer.Argument(help="Path to the .docx file")],
    output: Annotated[Path, typer.Option("--output", "-o", help="Output file path")],
) -> None:
    """Open a document and write it back out."""
    try:
        doc = open_document(file)
        doc.save(output)
    except (DocxEngineError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Saved to {output}")


@app.command()
def text(
    file: Annotated[Path, typer.Argument(help="Path to the .docx file")],
) -> None:
    """Print the plain text of the document body."""
    try:
        doc = open_document(file)
    except (DocxEngineError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(doc.text)


if __name__ == "__main__":
    app()
