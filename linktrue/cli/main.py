"""
linktrue — manage a local username/profile registry from the shell.

The registry lives in a JSON snapshot file; every command loads it, applies
one operation and (for writes) saves it back atomically.

Global options:
  --state PATH        Snapshot file (env LINKTRUE_STATE_FILE, default ~/.linktrue/state.json)
  --event-log PATH    Append emitted events to this JSONL file (env LINKTRUE_EVENT_LOG)
  --json              Output JSON instead of human-readable text
  --verbose / -v      Log registry operations to stderr
  --version / -V      Print version and exit

Examples:
  linktrue register alice --caller 0x1111… --item github=https://github.com/alice
  linktrue add --caller 0x1111… --item x=https://x.com/alice
  linktrue edit github https://github.com/alice2 --caller 0x1111…
  linktrue remove github x --caller 0x1111…
  linktrue rename alice_v2 --caller 0x1111…
  linktrue transfer 0x2222… --caller 0x1111…
  linktrue show alice_v2
  linktrue verify
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .. import logging as llog
from ..config import RegistryConfig, load_config
from ..errors import ProfileError, error_to_result
from ..registry import ProfileRegistry
from ..state import snapshot
from ..state.events import InMemoryEventSink, JsonlEventSink
from ..version import __version__

app = typer.Typer(
    name="linktrue",
    help="Username & link-profile registry",
    no_args_is_help=True,
    add_completion=False,
)


@dataclass
class _Session:
    config: RegistryConfig
    json_output: bool = False


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _session(ctx: typer.Context) -> _Session:
    obj = ctx.find_root().obj
    if not isinstance(obj, _Session):  # pragma: no cover - callback always runs first
        raise RuntimeError("CLI session not initialized")
    return obj


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


def _fail(sess: _Session, err: ProfileError) -> None:
    if sess.json_output:
        typer.echo(json.dumps(error_to_result(err)), err=True)
    else:
        typer.echo(f"Error: {err.message}", err=True)
    raise typer.Exit(code=1)


def _parse_items(raw: Optional[List[str]]) -> Tuple[List[str], List[str]]:
    keys: List[str] = []
    values: List[str] = []
    for entry in raw or []:
        key, sep, value = entry.partition("=")
        if not sep:
            raise typer.BadParameter(f"expected key=value, got {entry!r}", param_hint="--item")
        keys.append(key)
        values.append(value)
    return keys, values


def _open_registry(sess: _Session) -> Tuple[ProfileRegistry, InMemoryEventSink]:
    try:
        store, seq = snapshot.load(sess.config.state_file, config=sess.config)
    except ProfileError as e:
        _fail(sess, e)
    sink = InMemoryEventSink()
    return ProfileRegistry(store, config=sess.config, sink=sink, seq=seq), sink


def _write(ctx: typer.Context, action: Callable[[ProfileRegistry], None], done: str) -> None:
    """Load state, run one write, persist state and events, report."""
    sess = _session(ctx)
    reg, sink = _open_registry(sess)
    try:
        action(reg)
    except ProfileError as e:
        _fail(sess, e)

    snapshot.save(reg.store, sess.config.state_file, seq=reg.seq)
    records = sink.records
    if sess.config.event_log_path is not None and records:
        log_sink = JsonlEventSink(sess.config.event_log_path)
        try:
            for rec in records:
                log_sink.append(rec.event, seq=rec.seq, log_index=rec.log_index, caller=rec.caller)
            log_sink.flush()
        finally:
            log_sink.close()

    if sess.json_output:
        _echo_json({"status": "OK", "seq": reg.seq, "events": [r.to_dict() for r in records]})
        return
    typer.echo(done)
    for rec in records:
        args = ", ".join(f"{k}={v!r}" for k, v in rec.event.args().items())
        typer.echo(f"  event {rec.name}({args})")


# ---------------------------------------------------------------------------
# Typer wiring
# ---------------------------------------------------------------------------


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"linktrue {__version__}")
        raise typer.Exit(0)


@app.callback()
def main_callback(
    ctx: typer.Context,
    state: Optional[Path] = typer.Option(
        None,
        "--state",
        help="Registry snapshot file (default: ~/.linktrue/state.json)",
        envvar="LINKTRUE_STATE_FILE",
    ),
    event_log: Optional[Path] = typer.Option(
        None,
        "--event-log",
        help="Append emitted events to this JSONL file",
        envvar="LINKTRUE_EVENT_LOG",
    ),
    json_output: bool = typer.Option(False, "--json", help="Output JSON instead of human-readable text"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log registry operations to stderr"),
    version: bool = typer.Option(
        False, "--version", "-V", help="Print version and exit", is_eager=True, callback=_version_callback
    ),
) -> None:
    """
    LinkTrue CLI: claim a username and attach links to it.
    """
    overrides: Dict[str, object] = {}
    if state is not None:
        overrides["state_file"] = state
    if event_log is not None:
        overrides["event_log_path"] = event_log
    try:
        cfg = load_config(overrides=overrides)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    if verbose:
        llog.configure_from_config(cfg)
    else:
        llog.configure(json=cfg.log_format == "json" if cfg.log_format else None, level="WARNING")
    ctx.obj = _Session(config=cfg, json_output=json_output)


@app.command()
def register(
    ctx: typer.Context,
    username: str = typer.Argument(..., help="Username to claim"),
    caller: str = typer.Option(..., "--caller", help="Address performing the call"),
    item: Optional[List[str]] = typer.Option(None, "--item", "-i", help="Link as key=value (repeatable)"),
) -> None:
    """Register a username for the caller, with optional initial links."""
    keys, values = _parse_items(item)
    _write(ctx, lambda reg: reg.register_user_profile(caller, username, keys, values), f"Registered {username}")


@app.command()
def add(
    ctx: typer.Context,
    caller: str = typer.Option(..., "--caller", help="Address performing the call"),
    item: Optional[List[str]] = typer.Option(None, "--item", "-i", help="Link as key=value (repeatable)"),
) -> None:
    """Add links to the caller's profile."""
    keys, values = _parse_items(item)
    _write(ctx, lambda reg: reg.add_items(caller, keys, values), f"Added {len(keys)} item(s)")


@app.command()
def edit(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Key of the link to change"),
    value: str = typer.Argument(..., help="New value"),
    caller: str = typer.Option(..., "--caller", help="Address performing the call"),
) -> None:
    """Change the value of one link."""
    _write(ctx, lambda reg: reg.edit_item(caller, key, value), f"Updated {key}")


@app.command()
def remove(
    ctx: typer.Context,
    keys: List[str] = typer.Argument(..., help="Key(s) to remove"),
    caller: str = typer.Option(..., "--caller", help="Address performing the call"),
) -> None:
    """Remove one or more links; nothing is removed if any key is missing."""
    if len(keys) == 1:
        action: Callable[[ProfileRegistry], None] = lambda reg: reg.remove_item(caller, keys[0])
    else:
        action = lambda reg: reg.remove_items(caller, keys)
    _write(ctx, action, f"Removed {', '.join(keys)}")


@app.command()
def rename(
    ctx: typer.Context,
    new_username: str = typer.Argument(..., help="New username"),
    caller: str = typer.Option(..., "--caller", help="Address performing the call"),
) -> None:
    """Change the caller's username."""
    _write(ctx, lambda reg: reg.change_username(caller, new_username), f"Renamed to {new_username}")


@app.command()
def transfer(
    ctx: typer.Context,
    new_address: str = typer.Argument(..., help="Address receiving the username and links"),
    caller: str = typer.Option(..., "--caller", help="Address performing the call"),
) -> None:
    """Move the caller's username and links to another address."""
    _write(ctx, lambda reg: reg.transfer_username(caller, new_address), f"Transferred to {new_address}")


@app.command()
def show(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Username or 0x address"),
) -> None:
    """Show a profile by username or address."""
    sess = _session(ctx)
    reg, _ = _open_registry(sess)
    try:
        flat = reg.get_profile(query)
        profile = reg.profile_of(query)
    except ProfileError as e:
        _fail(sess, e)

    if sess.json_output:
        _echo_json({"username": profile.username, "items": profile.to_dict()["items"], "profile": flat})
        return

    console = Console()
    t = Table(title=profile.username or "(no username)", box=box.SIMPLE)
    t.add_column("Key")
    t.add_column("Value")
    for it in profile.items:
        t.add_row(it.key, it.value)
    console.print(t)


@app.command()
def verify(ctx: typer.Context) -> None:
    """Check the state file's index invariants."""
    sess = _session(ctx)
    reg, _ = _open_registry(sess)
    try:
        reg.check_invariants()
    except ProfileError as e:
        _fail(sess, e)

    store = reg.store
    if sess.json_output:
        _echo_json(
            {
                "ok": True,
                "seq": reg.seq,
                "profiles": store.profile_count(),
                "usernames": store.username_count(),
            }
        )
        return
    typer.echo(f"OK {store.profile_count()} profile(s), {store.username_count()} username(s), seq={reg.seq}")


def main() -> None:
    """Entry point for the linktrue CLI."""
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
