"""CLI bootstrap for sms-ledger."""

from __future__ import annotations

from pathlib import Path

import typer

from sms_ledger.application.schemas.transactions import (
    Summary,
    TransactionRecord,
)
from sms_ledger.core.bootstrap import LedgerServices, build_services
from sms_ledger.core.logging import configure_logging
from sms_ledger.core.settings import Settings, get_settings
from sms_ledger.domain.errors import DomainError
from sms_ledger.domain.money import format_money

app = typer.Typer(help="Turn bank SMS notifications into a transaction ledger.")

INBOX_OPTION = typer.Option(
    None,
    "--inbox",
    dir_okay=False,
    help="Exported inbox JSON file (defaults to SMS_INBOX_PATH).",
)
DATABASE_URL_OPTION = typer.Option(
    None,
    "--database-url",
    help="SQLAlchemy URL for ledger storage (defaults to DATABASE_URL).",
)


def _resolve_settings(inbox: Path | None, database_url: str | None) -> Settings:
    settings = get_settings()
    overrides: dict[str, object] = {}
    if inbox is not None:
        overrides["inbox_path"] = str(inbox)
    if database_url is not None:
        overrides["database_url"] = database_url
    return settings.model_copy(update=overrides) if overrides else settings


def _services(inbox: Path | None, database_url: str | None) -> LedgerServices:
    return build_services(_resolve_settings(inbox, database_url))


def _echo_records(records: list[TransactionRecord]) -> None:
    for record in records:
        typer.echo(
            f"{record.date or '--'} {record.type.value:<6} {record.amount:>12} "
            f"{record.merchant or '-'} ({record.payment_method or '-'})"
        )


def _echo_summary(summary: Summary) -> None:
    typer.echo(
        f"Debit: {format_money(summary.debit)} | "
        f"Credit: {format_money(summary.credit)} | "
        f"Net: {format_money(summary.total)}"
    )


def _fail(exc: DomainError) -> typer.Exit:
    typer.echo(f"{exc.code}: {exc.message}", err=True)
    return typer.Exit(code=1)


@app.callback()
def main_callback() -> None:
    """Configure logging before any command runs."""
    configure_logging(get_settings().log_level)


@app.command("healthcheck")
def healthcheck() -> None:
    """Verify that the CLI entrypoint is available."""
    typer.echo("sms-ledger is ready")


@app.command("sync")
def sync(
    inbox: Path | None = INBOX_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Process messages received since the last sync."""
    pipeline = _services(inbox, database_url).pipeline
    try:
        records = pipeline.refresh()
        summary = pipeline.summary()
    except DomainError as exc:
        raise _fail(exc) from exc

    typer.echo(f"New transactions: {len(records)}")
    _echo_records(records)
    _echo_summary(summary)


@app.command("load-all")
def load_all(
    inbox: Path | None = INBOX_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Process the entire inbox history."""
    pipeline = _services(inbox, database_url).pipeline
    try:
        records = pipeline.load_all()
        summary = pipeline.summary()
    except DomainError as exc:
        raise _fail(exc) from exc

    typer.echo(f"New transactions: {len(records)}")
    _echo_summary(summary)


@app.command("list")
def list_transactions(
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Print stored transactions."""
    pipeline = _services(None, database_url).pipeline
    try:
        records = pipeline.transactions()
    except DomainError as exc:
        raise _fail(exc) from exc
    _echo_records(records)


@app.command("summary")
def summary(
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Print debit, credit and net totals."""
    pipeline = _services(None, database_url).pipeline
    try:
        _echo_summary(pipeline.summary())
    except DomainError as exc:
        raise _fail(exc) from exc


@app.command("clear")
def clear(
    database_url: str | None = DATABASE_URL_OPTION,
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt."),
) -> None:
    """Delete all transactions and reset the watermark."""
    if not yes:
        typer.confirm("Delete every stored transaction?", abort=True)
    pipeline = _services(None, database_url).pipeline
    try:
        pipeline.clear_all()
    except DomainError as exc:
        raise _fail(exc) from exc
    typer.echo("Ledger cleared")


@app.command("watch")
def watch(
    inbox: Path | None = INBOX_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Poll the inbox on a fixed interval until interrupted."""
    scheduler = _services(inbox, database_url).scheduler
    typer.echo(
        f"Syncing every {scheduler.interval_seconds:g}s (Ctrl-C to stop)"
    )
    scheduler.run_forever()


def main() -> None:
    """Run the sms-ledger CLI application."""
    app()


if __name__ == "__main__":
    main()
