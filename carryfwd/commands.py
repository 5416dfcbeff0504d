"""The twelve carry-forward commands: every copy mode with every link-text source."""

from __future__ import annotations

from dataclasses import dataclass

from carryfwd.carry import CopyMode, LinkTextMode


@dataclass(frozen=True)
class Command:
    id: str
    name: str
    copy_mode: CopyMode
    link_text_mode: LinkTextMode


_DESCRIPTIONS = {
    CopyMode.SEPARATE_LINES: "Copy selection with each line linked to its copied source",
    CopyMode.COMBINED_LINES: "Copy selection with first line linked to its copied source",
    CopyMode.LINK_ONLY: "Copy link to line",
    CopyMode.LINK_ONLY_EMBED: "Copy embed link to line",
}

_LINK_TEXT_LABELS = {
    LinkTextMode.FROM_SETTINGS: ("", "default link text"),
    LinkTextMode.FROM_SELECTION: ("-selection", "link text from selection"),
    LinkTextMode.FROM_CLIPBOARD: ("-clipboard", "link text from clipboard"),
}


def _build_commands() -> tuple[Command, ...]:
    commands = []
    for link_text_mode, (suffix, label) in _LINK_TEXT_LABELS.items():
        for copy_mode, description in _DESCRIPTIONS.items():
            commands.append(Command(
                id=f"carry-line-forward-{copy_mode.value}{suffix}",
                name=f"{description} ({label})",
                copy_mode=copy_mode,
                link_text_mode=link_text_mode,
            ))
    return tuple(commands)


COMMANDS: tuple[Command, ...] = _build_commands()

COMMANDS_BY_ID: dict[str, Command] = {c.id: c for c in COMMANDS}


def get_command(command_id: str) -> Command:
    """Look up a command by id; the `carry-line-forward-` prefix is optional."""
    if command_id in COMMANDS_BY_ID:
        return COMMANDS_BY_ID[command_id]
    prefixed = f"carry-line-forward-{command_id}"
    if prefixed in COMMANDS_BY_ID:
        return COMMANDS_BY_ID[prefixed]
    raise KeyError(command_id)
