"""
Voice Invoice - Main Entry Point

Command-line interface around the voice command parser. It feeds
transcripts through the parser and shows, validates or applies the result.

Architecture Overview:
┌─────────────────┐
│   Transcript    │
└────────┬────────┘
         │
         ▼
┌──────────────────────────────────────────────────────────┐
│                      PARSING LAYER                        │
│  ┌────────────┐  ┌────────────┐  ┌────────────────────┐   │
│  │ Segmenter  │──│  Trigger   │──│ Extractor +        │   │
│  │            │  │  Matcher   │  │ Normalizer         │   │
│  └────────────┘  └────────────┘  └─────────┬──────────┘   │
│                                   ┌────────┴─────────┐    │
│                                   │  Item Assembler  │    │
│                                   └────────┬─────────┘    │
└────────────────────────────────────────────┼──────────────┘
                                             │
                                             ▼
┌──────────────────────────────────────────────────────────┐
│                      INVOICE LAYER                        │
│        ┌─────────────┐        ┌────────────────┐         │
│        │  Validators │        │ Record updates │         │
│        └─────────────┘        └────────────────┘         │
└──────────────────────────────────────────────────────────┘
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
from loguru import logger
from rich.console import Console
from rich.table import Table

from voice_parser import ConfigError, ParseResult, VoiceCommandParser
from invoice import (
    apply_row_command,
    apply_voice_command,
    new_invoice,
    validate_item,
    validate_updates,
)


NOTHING_UNDERSTOOD = "Sorry, nothing in that command was understood."


# Configure logging
def setup_logging(verbose: bool = False, log_file: Optional[Path] = None):
    """Configure loguru logging."""
    # Remove default handler
    logger.remove()

    # Console logging
    log_level = "DEBUG" if verbose else "WARNING"
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
        level=log_level,
        colorize=True
    )

    # File logging
    if log_file:
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
            level="DEBUG",
            rotation="10 MB"
        )


def read_transcripts(transcript: tuple[str, ...], file_path: Optional[Path]) -> list[str]:
    """Collect transcripts from arguments or from a file (one per line)."""
    if file_path:
        lines = file_path.read_text(encoding='utf-8').splitlines()
        return [line for line in lines if line.strip()]
    if transcript:
        return [' '.join(transcript)]
    return []


def render_result(console: Console, transcript: str, result: ParseResult, validate: bool):
    """Print a parse result as tables."""
    console.print(f"\n[bold]Transcript:[/] {transcript}")

    if result.is_empty:
        console.print(f"[yellow]{NOTHING_UNDERSTOOD}[/]")
        return

    errors = {}
    if validate:
        _, errors = validate_updates(result.updates)

    if result.updates:
        table = Table(title="Field Updates")
        table.add_column("Path", style="cyan")
        table.add_column("Value")
        if validate:
            table.add_column("Check")

        for path, value in result.updates.items():
            row = [path, value]
            if validate:
                error = errors.get(path)
                row.append(f"[red]{error}[/]" if error else "[green]ok[/]")
            table.add_row(*row)

        console.print(table)

    if result.new_items:
        table = Table(title="New Items")
        for column in ("Description", "HSN", "Qty", "Price", "IGST %", "CGST %", "SGST %"):
            table.add_column(column)
        if validate:
            table.add_column("Check")

        for item in result.new_items:
            row = [
                item.description,
                item.hsn,
                f"{item.quantity:g}",
                f"{item.price:g}",
                f"{item.igst:g}",
                f"{item.cgst:g}",
                f"{item.sgst:g}",
            ]
            if validate:
                item_errors = validate_item(item)
                row.append(
                    "[red]" + "; ".join(f"{k}: {v}" for k, v in item_errors.items()) + "[/]"
                    if item_errors else "[green]ok[/]"
                )
            table.add_row(*row)

        console.print(table)


def load_parser(config_path: Optional[Path]) -> VoiceCommandParser:
    """Create the parser, turning config errors into CLI errors."""
    try:
        return VoiceCommandParser(config_path=config_path)
    except ConfigError as e:
        raise click.ClickException(str(e))


# CLI Interface
@click.group()
@click.option(
    '--config', '-c',
    'config_path',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help='Path to a commands.yaml trigger rule file'
)
@click.option(
    '--verbose', '-v',
    is_flag=True,
    help='Enable verbose logging'
)
@click.option(
    '--log-file',
    type=click.Path(path_type=Path),
    default=None,
    help='Write logs to file'
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool, log_file: Optional[Path]):
    """
    Voice Invoice - Turn spoken commands into invoice edits.

    Examples:

        # Show what a command does
        python main.py parse "client name acme corp due date 10th october 2024"

        # Parse a file of transcripts as JSON
        python main.py parse --file commands.txt --json

        # Apply a command to a saved invoice
        python main.py apply "add item description soap price 100" -i inv.json -o inv.json
    """
    setup_logging(verbose=verbose, log_file=log_file)
    ctx.ensure_object(dict)
    ctx.obj['parser'] = load_parser(config_path)


@cli.command()
@click.argument('transcript', nargs=-1)
@click.option(
    '--file', '-f',
    'file_path',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help='Read transcripts from a file, one per line'
)
@click.option('--json', 'as_json', is_flag=True, help='Print results as JSON')
@click.option('--validate', is_flag=True, help='Check values against invoice field rules')
@click.pass_context
def parse(ctx: click.Context, transcript: tuple[str, ...], file_path: Optional[Path],
          as_json: bool, validate: bool):
    """Parse transcripts and show the resulting updates and items."""
    parser: VoiceCommandParser = ctx.obj['parser']
    transcripts = read_transcripts(transcript, file_path)

    if not transcripts:
        raise click.UsageError("Give a transcript or --file")

    results = [(text, parser.parse(text)) for text in transcripts]

    if as_json:
        payload = []
        for text, result in results:
            entry = {'transcript': text, **result.to_dict()}
            if validate:
                entry['errors'] = validate_updates(result.updates)[1]
                entry['itemErrors'] = [validate_item(item) for item in result.new_items]
            payload.append(entry)
        output = payload[0] if len(payload) == 1 else payload
        click.echo(json.dumps(output, indent=2))
        return

    console = Console()
    for text, result in results:
        render_result(console, text, result, validate)


@cli.command()
@click.argument('transcript', nargs=-1, required=True)
@click.option(
    '--invoice', '-i',
    'invoice_path',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help='Invoice JSON to update (a new invoice if missing)'
)
@click.option(
    '--output', '-o',
    'output_path',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help='Where to write the updated invoice (stdout if omitted)'
)
@click.pass_context
def apply(ctx: click.Context, transcript: tuple[str, ...], invoice_path: Optional[Path],
          output_path: Optional[Path]):
    """Apply a voice command to an invoice record."""
    parser: VoiceCommandParser = ctx.obj['parser']
    text = ' '.join(transcript)

    if invoice_path and invoice_path.exists():
        try:
            with open(invoice_path, 'r', encoding='utf-8') as f:
                invoice = json.load(f)
        except json.JSONDecodeError as e:
            raise click.ClickException(f"Invalid invoice JSON in {invoice_path}: {e}")
    else:
        invoice = new_invoice()

    result = parser.parse(text)
    if result.is_empty:
        click.echo(NOTHING_UNDERSTOOD, err=True)

    updated, applied = apply_voice_command(invoice, result)
    document = json.dumps(updated, indent=2, default=str)

    if output_path:
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(document)
        click.echo(
            f"Applied {len(applied)} update(s) and {len(result.new_items)} item(s) "
            f"to {output_path}",
            err=True
        )
    else:
        click.echo(document)


@cli.command()
@click.argument('transcript', nargs=-1, required=True)
@click.pass_context
def row(ctx: click.Context, transcript: tuple[str, ...]):
    """Show the fields a command spoken on one item row would set."""
    parser: VoiceCommandParser = ctx.obj['parser']
    fields, changed = apply_row_command({}, ' '.join(transcript), parser=parser)

    if not changed:
        click.echo(NOTHING_UNDERSTOOD, err=True)
        ctx.exit(1)

    click.echo(json.dumps(fields, indent=2))


if __name__ == "__main__":
    cli()
