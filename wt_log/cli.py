"""Command-line interface for WT-Log.

Commands cover station settings, creating/listing/deleting logs, adding and
removing QSOs, ADIF import/export, and a ``serve`` command that answers JSON
requests on stdin for a graphical front end.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from wt_log.adif import dump_adif, load_adif
from wt_log.config import APP_NAME, get_logs_dir, get_settings_path
from wt_log.exceptions import LogLoadError, LogNotFoundError, WTLogError
from wt_log.handlers import MESSAGES, RequestHandler, serve
from wt_log.models import QSO, Log
from wt_log.settings import SettingsStore
from wt_log.storage import LOG_SUFFIX, LogStore

app = typer.Typer(add_completion=False, help=f"{APP_NAME} - Ham radio contact logs")
settings_app = typer.Typer(help="Show or change the station settings")
logs_app = typer.Typer(help="Create, list, show and delete logs")
qso_app = typer.Typer(help="Add or remove QSOs in a log")
app.add_typer(settings_app, name="settings")
app.add_typer(logs_app, name="logs")
app.add_typer(qso_app, name="qso")
console = Console()


@dataclass
class Stores:
    logs: LogStore
    settings: SettingsStore


# Utilities

def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _parse_when(when: Optional[str]) -> datetime:
    """Parse a human-friendly UTC time string.

    Accepts "now" (default) or formats like YYYY-MM-DD HH:MM[:SS] or ISO.
    Raises typer.BadParameter for invalid datetime formats.
    """
    if not when or when.lower() == "now":
        return datetime.now(UTC).replace(tzinfo=None, second=0, microsecond=0)
    s = when.replace("T", " ").replace("Z", "")
    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%Y-%m-%d"):
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    raise typer.BadParameter(f"Unrecognized datetime format: {when}")


def _fail(action: str, e: Exception) -> typer.Exit:
    console.print(f"[red]Error {action}: {escape(str(e))}[/red]")
    return typer.Exit(1)


def _resolve_log(stores: Stores, ref: str) -> Log:
    """Load a log given either a path to its file or its name."""
    candidate = Path(ref).expanduser()
    if candidate.suffix.lower() == LOG_SUFFIX and candidate.is_file():
        return stores.logs.load_log(candidate)
    try:
        path = stores.logs.find_log_path(ref)
    except OSError as e:
        raise LogLoadError(f"Could not read the logs directory: {e}") from e
    if path is None:
        raise LogNotFoundError(f"No log named {ref!r}")
    return stores.logs.load_log(path)


@app.callback()
def main_callback(
    ctx: typer.Context,
    data_dir: Optional[Path] = typer.Option(
        None, "--data-dir", help="Directory holding settings.json and logs/ (or WTLOG_DATA_DIR)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Resolve the settings file and logs directory for every command."""
    _configure_logging(verbose)
    ctx.obj = Stores(
        logs=LogStore(get_logs_dir(data_dir)),
        settings=SettingsStore(get_settings_path(data_dir)),
    )


# Settings

@settings_app.command("show")
def settings_show(ctx: typer.Context) -> None:
    """Print the station settings (defaults on first run)."""
    try:
        settings = ctx.obj.settings.load_settings()
    except WTLogError as e:
        raise _fail("loading settings", e) from e
    table = Table(title="Station settings")
    table.add_column("Field")
    table.add_column("Value")
    for key, value in settings.model_dump(by_alias=True).items():
        table.add_row(key, escape(str(value)))
    console.print(table)


@settings_app.command("set")
def settings_set(
    ctx: typer.Context,
    callsign: Optional[str] = typer.Option(None, help="Station callsign"),
    operator_name: Optional[str] = typer.Option(None, help="Operator name"),
    name: Optional[str] = typer.Option(None, help="Station name"),
    city: Optional[str] = typer.Option(None, help="City"),
    qth: Optional[str] = typer.Option(None, help="QTH"),
    country: Optional[str] = typer.Option(None, help="Country"),
    grid: Optional[str] = typer.Option(None, help="Maidenhead grid locator"),
    cq_zone: Optional[str] = typer.Option(None, help="CQ zone"),
    itu_zone: Optional[str] = typer.Option(None, help="ITU zone"),
    theme: Optional[str] = typer.Option(None, help="light or dark"),
) -> None:
    """Update the given fields and keep the rest; text values are uppercased."""
    if theme is not None and theme not in ("light", "dark"):
        raise typer.BadParameter("theme must be 'light' or 'dark'")
    values = {
        "callsign": callsign,
        "operator_name": operator_name,
        "name": name,
        "city": city,
        "qth": qth,
        "country": country,
        "grid_square": grid,
        "cq_zone": cq_zone,
        "itu_zone": itu_zone,
    }
    updates = {k: v.strip().upper() for k, v in values.items() if v is not None}
    if theme is not None:
        updates["theme"] = theme
    try:
        current = ctx.obj.settings.load_settings()
        ctx.obj.settings.save_settings(current.model_copy(update=updates))
    except WTLogError as e:
        raise _fail("saving settings", e) from e
    console.print(f"Settings saved to [bold]{escape(str(ctx.obj.settings.settings_path))}[/bold]")


# Logs

@logs_app.command("list")
def logs_list(ctx: typer.Context) -> None:
    """List logs, newest first."""
    try:
        logs = ctx.obj.logs.list_logs()
    except OSError as e:
        raise _fail("listing logs", e) from e
    if not logs:
        console.print("No logs found.")
        return
    table = Table(title=f"Logs ({len(logs)})")
    table.add_column("Name")
    table.add_column("Created (UTC)")
    table.add_column("QSOs", justify="right")
    table.add_column("File")
    for log in logs:
        table.add_row(
            escape(log.name),
            log.created.strftime("%Y-%m-%d %H:%M"),
            str(len(log.qsos)),
            escape(log.file_name or ""),
        )
    console.print(table)


@logs_app.command("new")
def logs_new(ctx: typer.Context, name: str = typer.Argument(..., help="Log name")) -> None:
    """Create an empty log with a snapshot of the current station settings."""
    try:
        settings = ctx.obj.settings.load_settings()
        log = ctx.obj.logs.create_log(name, settings)
    except WTLogError as e:
        raise _fail("creating log", e) from e
    console.print(f"Created log [bold]{escape(log.name)}[/bold] at {escape(str(log.file_path))}")


@logs_app.command("exists")
def logs_exists(ctx: typer.Context, name: str = typer.Argument(..., help="Log name")) -> None:
    """Print whether a log with this name already exists (ignoring case)."""
    try:
        exists = ctx.obj.logs.log_exists(name)
    except OSError as e:
        raise _fail("checking log name", e) from e
    console.print("yes" if exists else "no")


@logs_app.command("show")
def logs_show(ctx: typer.Context, log_ref: str = typer.Argument(..., help="Log name or file")) -> None:
    """Display the QSOs of a log in entry order."""
    try:
        log = _resolve_log(ctx.obj, log_ref)
    except WTLogError as e:
        raise _fail("loading log", e) from e
    if not log.qsos:
        console.print(f"{escape(log.name)}: no QSOs yet.")
        return
    table = Table(title=f"{escape(log.name)} ({len(log.qsos)} QSOs)")
    table.add_column("ID", justify="right")
    table.add_column("Date")
    table.add_column("Time")
    table.add_column("Call")
    table.add_column("Band")
    table.add_column("Mode")
    table.add_column("RST S/R")
    table.add_column("Notes")
    for q in log.qsos:
        table.add_row(
            str(q.id or ""),
            q.date,
            q.time,
            escape(q.call_sign),
            q.band,
            q.mode,
            f"{q.rst_sent}/{q.rst_received}",
            escape(q.notes[:40]),
        )
    console.print(table)


@logs_app.command("delete")
def logs_delete(
    ctx: typer.Context,
    log_ref: str = typer.Argument(..., help="Log name or file"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete a log file."""
    try:
        log = _resolve_log(ctx.obj, log_ref)
        if not yes and not typer.confirm(f"Delete log '{log.name}' with {len(log.qsos)} QSOs?"):
            console.print("Cancelled.")
            return
        ctx.obj.logs.delete_log(log.file_path)
    except WTLogError as e:
        raise _fail("deleting log", e) from e
    console.print(f"Deleted log {escape(log.name)}")


# QSOs

@qso_app.command("add")
def qso_add(
    ctx: typer.Context,
    log_ref: str = typer.Argument(..., help="Log name or file"),
    call: str = typer.Option(..., help="Station callsign, e.g., LU1ABC"),
    when: Optional[str] = typer.Option("now", help="UTC time: 'now' or 'YYYY-MM-DD HH:MM'"),
    band: str = typer.Option("20m", help="Band"),
    mode: str = typer.Option("SSB", help="Mode"),
    freq: Optional[str] = typer.Option(None, help="Frequency in MHz"),
    rst_sent: str = typer.Option("59", help="Report sent"),
    rst_rcvd: str = typer.Option("59", help="Report received"),
    name: Optional[str] = typer.Option(None, help="Operator name"),
    qth: Optional[str] = typer.Option(None, help="QTH / city"),
    grid: Optional[str] = typer.Option(None, help="Maidenhead grid"),
    country: Optional[str] = typer.Option(None, help="Country"),
    power: Optional[str] = typer.Option(None, help="Power in watts"),
    notes: Optional[str] = typer.Option(None, help="Notes"),
) -> None:
    """Append a QSO to a log."""
    dt = _parse_when(when)
    try:
        log = _resolve_log(ctx.obj, log_ref)
        qso = log.add_qso(
            QSO(
                date=dt.strftime("%Y-%m-%d"),
                time=dt.strftime("%H:%M"),
                call_sign=call.upper(),
                band=band,
                mode=mode,
                frequency=freq,
                rst_sent=rst_sent,
                rst_received=rst_rcvd,
                name=name,
                qth=qth,
                grid_square=grid,
                country=country,
                power=power,
                notes=notes,
            )
        )
        ctx.obj.logs.save_log(log)
    except WTLogError as e:
        raise _fail("logging QSO", e) from e
    console.print(f"Saved QSO id={qso.id} with {escape(qso.call_sign)} at {qso.date} {qso.time}Z")


@qso_app.command("remove")
def qso_remove(
    ctx: typer.Context,
    log_ref: str = typer.Argument(..., help="Log name or file"),
    qso_id: str = typer.Argument(..., help="QSO id to delete"),
) -> None:
    """Delete a QSO from a log by id."""
    try:
        log = _resolve_log(ctx.obj, log_ref)
        if not log.remove_qso(qso_id):
            console.print(f"QSO id={escape(qso_id)} not found")
            return
        ctx.obj.logs.save_log(log)
    except WTLogError as e:
        raise _fail("deleting QSO", e) from e
    console.print(f"Deleted QSO id={escape(qso_id)}")


# ADIF

@app.command()
def export(
    ctx: typer.Context,
    log_ref: str = typer.Argument(..., help="Log name or file"),
    output: Path = typer.Option(..., dir_okay=False, writable=True, help="ADIF file to write"),
) -> None:
    """Write a log's QSOs to an ADIF file."""
    try:
        log = _resolve_log(ctx.obj, log_ref)
        output.write_text(dump_adif(log.qsos, log.settings), encoding="utf-8")
    except (WTLogError, OSError) as e:
        raise _fail("exporting ADIF", e) from e
    console.print(f"Exported {len(log.qsos)} QSOs to {escape(str(output))}")


@app.command("import-adif")
def import_adif(
    ctx: typer.Context,
    log_ref: str = typer.Argument(..., help="Log name or file"),
    src: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="ADIF file to import"
    ),
) -> None:
    """Append QSOs from an ADIF file to a log."""
    try:
        log = _resolve_log(ctx.obj, log_ref)
        qsos = load_adif(src.read_text(encoding="utf-8", errors="ignore"))
        count_before = len(log.qsos)
        for q in qsos:
            log.add_qso(q)
        ctx.obj.logs.save_log(log)
    except (WTLogError, OSError) as e:
        raise _fail("importing ADIF", e) from e
    console.print(
        f"Imported {len(qsos)} QSOs. Total now: {len(log.qsos)} (was {count_before})."
    )


# Request server

@app.command("serve")
def serve_cmd(
    ctx: typer.Context,
    locale: str = typer.Option("en", help=f"Message language: {', '.join(MESSAGES)}"),
) -> None:
    """Answer JSON requests, one per line, on stdin/stdout."""
    handler = RequestHandler(ctx.obj.logs, ctx.obj.settings, locale=locale)
    serve(handler, sys.stdin, sys.stdout)


def main() -> None:  # pragma: no cover - exercised via CLI
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
