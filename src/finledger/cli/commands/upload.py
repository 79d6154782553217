"""Screenshot upload and OCR text import commands."""

from pathlib import Path

import click
from finledger.cli.date_filters import parse_date_or_exit
from finledger.cli.error_handling import domain_errors
from finledger.cli.formatting import echo_import_summary, format_money
from finledger.domain.screenshot import ScreenshotImportService
from finledger.ocr import TesseractOCREngine


def _service(ctx) -> ScreenshotImportService:
    ocr_engine = ctx.obj.get("ocr_engine")
    if ocr_engine is None:
        ocr_engine = TesseractOCREngine()
    return ScreenshotImportService(ctx.obj["db"], ocr_engine, ctx.obj["policy"])


@click.command("upload")
@click.argument("image", type=click.Path(exists=True, dir_okay=False))
@click.option("--as-of", help="Date the balances are valid for (default: today)")
@click.pass_context
def upload(ctx, image: str, as_of: str | None):
    """Import account balances from a screenshot.

    The screenshot is run through OCR, account lines are matched against
    existing accounts, and balances are updated. Unknown accounts are
    created.

    Examples:
        finledger upload accounts.png
        finledger upload statement.jpg --as-of "end of last month"
    """
    effective_date = parse_date_or_exit(ctx, as_of, "as-of date")
    service = _service(ctx)

    with domain_errors(ctx):
        summary = service.import_screenshot(image, effective_date)
    echo_import_summary(summary)


@click.command("import-text")
@click.argument("text_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--as-of", help="Date the balances are valid for (default: today)")
@click.pass_context
def import_text(ctx, text_file: str, as_of: str | None):
    """Import account balances from already-extracted OCR text."""
    effective_date = parse_date_or_exit(ctx, as_of, "as-of date")
    service = ScreenshotImportService(ctx.obj["db"], policy=ctx.obj["policy"])
    raw_text = Path(text_file).read_text(encoding="utf-8")

    with domain_errors(ctx):
        summary = service.import_text(raw_text, effective_date)
    echo_import_summary(summary)


@click.command("parse")
@click.argument("text_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def parse_text(ctx, text_file: str):
    """Show the accounts found in OCR text without saving anything."""
    service = ScreenshotImportService(ctx.obj["db"], policy=ctx.obj["policy"])
    parsed = service.parse_text(Path(text_file).read_text(encoding="utf-8"))

    if not parsed.records:
        click.echo("No accounts found.")
        return

    if parsed.net_worth is not None:
        click.echo(f"Net worth shown: {format_money(parsed.net_worth)}")

    click.echo(f"\n{'Category':<14} {'Account':<40} {'Balance':>16}")
    click.echo("-" * 72)
    for record in parsed.records:
        click.echo(
            f"{record.category.title:<14} {record.name:<40} {format_money(record.balance):>16}"
        )
    click.echo("-" * 72)
    click.echo(f"{len(parsed.records)} account(s), {parsed.lines_skipped} line(s) skipped")

    for category, total in parsed.group_totals.items():
        listed = sum(r.balance for r in parsed.records if r.category is category)
        if listed != total:
            click.echo(
                f"Note: {category.title} header shows {format_money(total)} "
                f"but listed accounts add up to {format_money(listed)}"
            )


def register_commands(cli):
    """Register upload commands with main CLI."""
    cli.add_command(upload)
    cli.add_command(import_text)
    cli.add_command(parse_text)
