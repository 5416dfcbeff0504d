"""Settings record, regex validation, and the JSON settings store.

Settings are stored the way the editor plugin stores them (`data.json`,
camelCase keys) so an existing file can be pointed at directly.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path

import click
import orjson

LINK_PLACEHOLDER = "{{LINK}}"

LINK_STYLES = ("wikilink", "markdown")


class InvalidConfigError(ValueError):
    """A configured pattern or template can't be used."""

    def __init__(self, pattern: str, reason: str, setting: str = "lineFormatFrom"):
        self.pattern = pattern
        self.reason = reason
        self.setting = setting
        super().__init__(f'"{pattern}": "{reason}"')


@dataclass(frozen=True)
class CarryForwardSettings:
    """User-editable settings.

    link_text: default display text for generated links ("" shows the raw link)
    copied_link_text: full text of a copied reference, for link-only copies
    line_format_from: regex whose first match in each copied line is replaced
    line_format_to: replacement for that match
    remove_leading_whitespace: strip indentation when copying a whole line
    link_style: "wikilink" or "markdown"
    """

    link_text: str = ""
    copied_link_text: str = "(see {{LINK}})"
    line_format_from: str = r"\s*$"
    line_format_to: str = " (see {{LINK}})"
    remove_leading_whitespace: bool = True
    link_style: str = "wikilink"


DEFAULT_SETTINGS = CarryForwardSettings()

# Python attribute name -> key in data.json
SETTING_KEYS: dict[str, str] = {
    "link_text": "linkText",
    "copied_link_text": "copiedLinkText",
    "line_format_from": "lineFormatFrom",
    "line_format_to": "lineFormatTo",
    "remove_leading_whitespace": "removeLeadingWhitespace",
    "link_style": "linkStyle",
}


@dataclass(frozen=True)
class RegexValidation:
    """Outcome of compiling a user-supplied pattern."""

    valid: bool
    pattern: str
    error: str = ""
    compiled: re.Pattern | None = None

    @property
    def message(self) -> str:
        return f'"{self.pattern}": "{self.error}"' if self.error else ""


def unescape_control_chars(value: str) -> str:
    r"""Turn literal `\n`, `\t`, `\r` typed into the "to" field into the real characters.

    Settings are stored as JSON, so a user typing `\n` ends up with a
    backslash and an `n` rather than a newline. Patterns don't need this:
    `re` reads those escapes itself.
    """
    return value.replace("\\n", "\n").replace("\\t", "\t").replace("\\r", "\r")


def validate_regex(pattern: str) -> RegexValidation:
    """Compile a "from" pattern as typed. Never raises; check `.valid`."""
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        return RegexValidation(valid=False, pattern=pattern, error=str(e))
    return RegexValidation(valid=True, pattern=pattern, compiled=compiled)


def compile_line_format(settings: CarryForwardSettings) -> tuple[re.Pattern, str]:
    """Return the compiled "from" pattern and the unescaped "to" template.

    The template uses Python replacement syntax (`\\1`, `\\g<name>`); group
    references are checked when a line is actually rewritten.

    Raises:
        InvalidConfigError: if the "from" pattern doesn't compile
    """
    result = validate_regex(settings.line_format_from)
    if not result.valid:
        raise InvalidConfigError(result.pattern, result.error)
    return result.compiled, unescape_control_chars(settings.line_format_to)


def update_setting(settings: CarryForwardSettings, name: str, value) -> CarryForwardSettings:
    """Apply one edit the way the settings panel does.

    Clearing the "from" or "to" field restores its default. Invalid "from"
    patterns are still stored; `validate_regex` reports them.
    """
    key = _attribute_name(name)
    if key in ("line_format_from", "line_format_to") and value == "":
        value = getattr(DEFAULT_SETTINGS, key)
    if key == "remove_leading_whitespace" and isinstance(value, str):
        value = _parse_bool(value)
    if key == "link_style" and value not in LINK_STYLES:
        raise ValueError(f"link style must be one of: {', '.join(LINK_STYLES)}")
    return replace(settings, **{key: value})


def settings_to_dict(settings: CarryForwardSettings) -> dict:
    """Serialize to the on-disk (camelCase) shape."""
    return {SETTING_KEYS[k]: v for k, v in asdict(settings).items()}


def settings_from_dict(data: dict) -> CarryForwardSettings:
    """Shallow merge of stored values over the defaults. Unknown keys are ignored."""
    values = {}
    for f in fields(CarryForwardSettings):
        key = SETTING_KEYS[f.name]
        if key in data and data[key] is not None:
            values[f.name] = data[key]
    return replace(DEFAULT_SETTINGS, **values)


def default_settings_path() -> Path:
    """Per-user settings file, e.g. ~/.config/carryfwd/data.json."""
    return Path(click.get_app_dir("carryfwd")) / "data.json"


class SettingsStore:
    """Load/save settings as JSON.

    Usage:
        store = SettingsStore()
        settings = store.load()
        store.save(update_setting(settings, "linkText", "source"))
    """

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path else default_settings_path()

    def load(self) -> CarryForwardSettings:
        if not self.path.exists():
            return DEFAULT_SETTINGS
        raw = self.path.read_bytes()
        if not raw.strip():
            return DEFAULT_SETTINGS
        data = orjson.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"Settings file is not a JSON object: {self.path}")
        return settings_from_dict(data)

    def save(self, settings: CarryForwardSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(orjson.dumps(settings_to_dict(settings), option=orjson.OPT_INDENT_2))


def _attribute_name(name: str) -> str:
    if name in SETTING_KEYS:
        return name
    for attr, key in SETTING_KEYS.items():
        if key == name:
            return attr
    raise KeyError(f"Unknown setting: {name}")


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Not a boolean: {value}")
