from __future__ import annotations

import os
import shlex
import subprocess
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

CONFIG_DIR_ENV = "MARGO_CONFIG_DIR"
CONFIG_FILENAME = "config.toml"
DEFAULT_EDITOR = "nvim"
DEFAULT_THEME = "catppuccin"
# Accepted spellings, lower-cased, mapped onto the canonical theme names.
_THEME_ALIASES = {
    "catppuccin": "catppuccin",
    "dark": "catppuccin",
    "mocha": "catppuccin",
    "light": "light",
    "latte": "light",
    "basic": "basic",
    "16": "basic",
    "plain": "plain",
    "none": "plain",
    "off": "plain",
}


def normalize_theme(name: str) -> str:
    """Map a configured theme name onto a known theme; unknown names get the default."""
    return _THEME_ALIASES.get(name.strip().lower(), DEFAULT_THEME)


class ConfigError(ValueError):
    def __init__(self, message: str, *, path: Path | None = None, key: str | None = None) -> None:
        super().__init__(message)
        self.path = path
        self.key = key


@dataclass(frozen=True)
class MargoConfig:
    pull_data: str | None = None
    push_mods: str | None = None
    baselines: str | None = None
    use_renv: bool | None = None
    editor: str | None = None
    theme: str | None = None

    @property
    def default_baselines(self) -> str:
        return self.baselines or "default"

    @property
    def effective_use_renv(self) -> bool:
        return True if self.use_renv is None else self.use_renv

    @property
    def effective_theme(self) -> str:
        return self.theme or DEFAULT_THEME


def default_config_dir(environ: Mapping[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ
    override = env.get(CONFIG_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "margo"


def config_path(config_dir: Path) -> Path:
    return config_dir / CONFIG_FILENAME


def _optional_str(table: dict[str, Any], key: str, *, path: Path) -> str | None:
    value = table.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"Expected string for {key} in {path}.", path=path, key=key)
    return value.strip() or None


def _optional_bool(table: dict[str, Any], key: str, *, path: Path) -> bool | None:
    value = table.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ConfigError(f"Expected true/false for {key} in {path}.", path=path, key=key)
    return value


def _table(data: dict[str, Any], name: str, *, path: Path) -> dict[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"Expected [{name}] table in {path}.", path=path, key=name)
    return value


def parse_config(text: str, *, path: Path) -> MargoConfig:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse TOML in {path}: {e}", path=path) from e

    paths = _table(data, "paths", path=path)
    defaults = _table(data, "defaults", path=path)
    editor = _table(data, "editor", path=path)
    theme_table = _table(data, "theme", path=path)

    theme = _optional_str(theme_table, "theme", path=path)
    if theme is not None:
        theme = normalize_theme(theme)

    return MargoConfig(
        pull_data=_optional_str(paths, "pull_data", path=path),
        push_mods=_optional_str(paths, "push_mods", path=path),
        baselines=_optional_str(defaults, "baselines", path=path),
        use_renv=_optional_bool(defaults, "use_renv", path=path),
        editor=_optional_str(editor, "command", path=path),
        theme=theme,
    )


def load_config(config_dir: Path) -> MargoConfig:
    path = config_path(config_dir)
    if not path.exists():
        return MargoConfig()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read {path}: {e}", path=path) from e
    return parse_config(text, path=path)


def default_config_content() -> str:
    return "\n".join(
        [
            "# margo configuration",
            "# set your paths here, then sync your templates with: margo sync",
            "",
            "[paths]",
            "# where your .qs data files are stored (read from)",
            '# pull_data = "/path/to/nzavs-data"',
            "",
            "# base directory for model outputs (written to)",
            '# push_mods = "/path/to/outputs"',
            "",
            "[defaults]",
            "# default baseline template (from <config dir>/baselines/)",
            '# baselines = "default"',
            "",
            "# include renv::init() in generated R scripts",
            "use_renv = true",
            "",
            "[editor]",
            "# editor for `margo templates open`",
            "# uses $EDITOR if set, otherwise falls back to nvim",
            '# command = "$EDITOR"',
            "",
            "[theme]",
            '# colour theme: "catppuccin" (default), "light", "basic" (16 colours), "plain"',
            '# theme = "catppuccin"',
            "",
        ]
    )


def init_config(config_dir: Path) -> bool:
    """Write the starter config file. Returns False when one already exists."""
    path = config_path(config_dir)
    if path.exists():
        return False
    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(default_config_content(), encoding="utf-8", newline="\n")
    except OSError as e:
        raise ConfigError(f"Failed to write {path}: {e}", path=path) from e
    return True


def resolve_editor(config: MargoConfig, environ: Mapping[str, str] | None = None) -> str:
    """Editor command: config `[editor] command`, then $EDITOR, then nvim."""
    env = os.environ if environ is None else environ
    env_editor = env.get("EDITOR", "").strip() or DEFAULT_EDITOR
    editor = config.editor or env_editor
    if editor == "$EDITOR":
        return env_editor
    return editor


def open_in_editor(path: Path, config: MargoConfig) -> int:
    argv = shlex.split(resolve_editor(config)) or [DEFAULT_EDITOR]
    try:
        proc = subprocess.run([*argv, str(path)], check=False)
    except FileNotFoundError as e:
        raise ConfigError(f"Editor not found: {argv[0]}", key="editor") from e
    return proc.returncode
