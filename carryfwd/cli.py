"""carryfwd CLI - Click command definitions and main entry point."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click
import orjson
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from carryfwd.anchors import append_anchor, ensure_anchor
from carryfwd.carry import carry_forward
from carryfwd.commands import COMMANDS, get_command
from carryfwd.config import (
    DEFAULT_SETTINGS,
    SETTING_KEYS,
    SettingsStore,
    settings_to_dict,
    update_setting,
    validate_regex,
)
from carryfwd.editor import (
    ConsoleNotifier,
    InvalidSelectionError,
    Position,
    Selection,
    SystemClipboard,
    TextDocument,
)
from carryfwd.utils import note_name

console = Console(stderr=True)
out = Console()


class _PrintingClipboard(SystemClipboard):
    """Reads the system clipboard but sends copies to stdout."""

    async def write(self, text: str) -> None:
        click.echo(text)


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              envvar="CARRYFWD_CONFIG", default=None,
              help="Settings file (default: per-user data.json)")
@click.pass_context
def main(ctx: click.Context, config_path: Path | None):
    """Carry lines forward with links back to where they came from.

    \b
    Examples:
        carryfwd run separate-lines notes.md -s 12           # carry line 12
        carryfwd run link-only notes.md -s 3:5 -e 7:1 --print
        carryfwd commands                                    # list commands
        carryfwd config set lineFormatTo " ← {{LINK}}"
    """
    ctx.obj = SettingsStore(config_path)


@main.command()
@click.argument("command_id", metavar="COMMAND")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-s", "--start", "start", required=True,
              help="Selection start, LINE or LINE:COL (one-based)")
@click.option("-e", "--end", "end", default=None,
              help="Selection end, LINE or LINE:COL. Omit for a caret at --start.")
@click.option("--vault", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Vault root; links use the note path relative to it")
@click.option("--target", default=None, help="Link target (default: note name)")
@click.option("--print", "print_copy", is_flag=True,
              help="Print the copied text instead of writing the clipboard")
@click.option("--dry-run", is_flag=True, help="Don't write the note back")
@click.option("-v", "--verbose", is_flag=True, help="Verbose progress output")
@click.pass_obj
def run(
    store: SettingsStore,
    command_id: str,
    file: Path,
    start: str,
    end: str | None,
    vault: Path | None,
    target: str | None,
    print_copy: bool,
    dry_run: bool,
    verbose: bool,
):
    """Run COMMAND on FILE with the given selection.

    COMMAND is a command id from `carryfwd commands`; the
    `carry-line-forward-` prefix may be left off.
    """
    try:
        command = get_command(command_id)
    except KeyError:
        raise click.ClickException(
            f"Unknown command: {command_id} (see `carryfwd commands`)"
        ) from None

    settings = store.load()
    document = TextDocument.from_file(file)
    try:
        start_pos = Position.parse(start)
        end_pos = Position.parse(end) if end else start_pos
        document.selection = Selection(start_pos, end_pos)
        document.get_selection_text()
    except InvalidSelectionError as e:
        raise click.ClickException(str(e)) from e

    target = target or note_name(file, vault)

    if verbose:
        console.print(Panel(
            f"[bold]carryfwd[/bold]\n{escape(command.name)}\n"
            f"{file} lines {document.selection.start.line + 1}-{document.selection.end.line + 1}",
            expand=False,
        ))

    clipboard = _PrintingClipboard() if print_copy else SystemClipboard()
    result = asyncio.run(carry_forward(
        document,
        settings,
        command.copy_mode,
        command.link_text_mode,
        clipboard=clipboard,
        notifier=ConsoleNotifier(console),
        target=target,
    ))
    if result is None:
        raise click.ClickException("Nothing was changed: fix the settings and try again")

    if verbose:
        for anchor in result.created_anchors:
            console.print(f"[dim]New anchor: {anchor}[/dim]")
        for anchor in result.reused_anchors:
            console.print(f"[dim]Reused anchor: {anchor}[/dim]")

    if dry_run:
        console.print("[dim]Dry run: note not written[/dim]")
        return
    if result.created_anchors:
        document.save()
        console.print(f"[green]Saved:[/green] {file}")


@main.command("commands")
def list_commands():
    """List the available commands."""
    width = max(len(c.id) for c in COMMANDS)
    for command in COMMANDS:
        click.echo(f"{command.id:<{width}}  {command.name}")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("line", type=click.IntRange(min=1))
@click.option("--write", is_flag=True, help="Append a new anchor if the line has none")
def anchor(file: Path, line: int, write: bool):
    """Print the block anchor of LINE (one-based) in FILE."""
    document = TextDocument.from_file(file)
    if line > document.line_count:
        raise click.ClickException(
            f"Line {line} is out of range ({file} has {document.line_count} lines)"
        )

    text = document.get_line(line - 1)
    token, existed = ensure_anchor(text)
    if not existed:
        if not write:
            raise click.ClickException(f"Line {line} has no anchor (use --write to add one)")
        document.lines[line - 1] = append_anchor(text, token)
        document.save()
        console.print(f"[green]Added:[/green] {token}")
    click.echo(token)


@main.group()
def config():
    """Show or edit settings."""


@config.command("show")
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")
@click.pass_obj
def config_show(store: SettingsStore, as_json: bool):
    """Print the current settings."""
    settings = store.load()
    data = settings_to_dict(settings)
    if as_json:
        click.echo(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode())
        return

    defaults = settings_to_dict(DEFAULT_SETTINGS)
    table = Table("Setting", "Value", "Default")
    for key, value in data.items():
        style = None if value == defaults[key] else "bold"
        table.add_row(key, repr(value), repr(defaults[key]), style=style)
    out.print(table)
    console.print(f"[dim]{store.path}[/dim]")


@config.command("set")
@click.argument("key", type=click.Choice(sorted(SETTING_KEYS.values())))
@click.argument("value")
@click.pass_obj
def config_set(store: SettingsStore, key: str, value: str):
    """Set KEY to VALUE. An empty "from"/"to" restores the default."""
    try:
        settings = update_setting(store.load(), key, value)
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    store.save(settings)
    console.print(f"[green]Saved:[/green] {store.path}")

    check = validate_regex(settings.line_format_from)
    if not check.valid:
        console.print(f"[yellow]'From' setting is invalid:[/yellow] {escape(check.message)}")


@config.command("reset")
@click.pass_obj
def config_reset(store: SettingsStore):
    """Restore all settings to their defaults."""
    store.save(DEFAULT_SETTINGS)
    console.print(f"[green]Reset:[/green] {store.path}")


@config.command("check")
@click.pass_obj
def config_check(store: SettingsStore):
    """Check that the 'From' pattern compiles."""
    settings = store.load()
    check = validate_regex(settings.line_format_from)
    if not check.valid:
        raise click.ClickException(f"'From' setting is invalid: {check.message}")
    console.print("[green]Settings OK[/green]")


if __name__ == "__main__":
    main()
