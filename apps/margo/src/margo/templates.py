from __future__ import annotations

import tomllib
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import tomlkit
from asset_sync import AssetKind, check_asset_name, kind_dir
from asset_sync.catalog import TEMPLATE_SUFFIX

from margo.bundled import bundled_asset

_SKELETONS: dict[AssetKind, str] = {
    AssetKind.BASELINE: "\n".join(
        [
            "# baseline covariate template",
            "# add variable names to include as covariates",
            "",
            "vars = [",
            '    # "age",',
            '    # "male",',
            '    # "education_level_coarsen",',
            "]",
            "",
        ]
    ),
    AssetKind.OUTCOME: "\n".join(
        [
            "# outcome variables template",
            "# add variable names from your dataset",
            "",
            "vars = [",
            '    # "wellbeing_index",',
            '    # "life_satisfaction",',
            "]",
            "",
        ]
    ),
}


class TemplateError(ValueError):
    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


@dataclass(frozen=True)
class VariableTemplate:
    kind: AssetKind
    name: str
    vars: tuple[str, ...]
    path: Path


def template_path(config_dir: Path, kind: AssetKind, name: str) -> Path:
    try:
        check_asset_name(name)
    except ValueError as e:
        raise TemplateError(f"Invalid template name: {e}") from e
    return kind_dir(config_dir, kind) / f"{name}{TEMPLATE_SUFFIX}"


def _write_template(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8", newline="\n")
    except OSError as e:
        raise TemplateError(f"Failed to write {path}: {e}", path=path) from e


def parse_template_vars(text: str, *, path: Path | None = None) -> list[str]:
    where = f" in {path}" if path is not None else ""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise TemplateError(f"Failed to parse TOML{where}: {e}", path=path) from e

    raw = data.get("vars")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise TemplateError(f"Expected `vars` to be an array{where}.", path=path)

    out: list[str] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, str):
            raise TemplateError(f"Expected string for vars[{idx}]{where}.", path=path)
        item = item.strip()
        if item:
            out.append(item)
    return out


def load_template(config_dir: Path, kind: AssetKind, name: str) -> VariableTemplate | None:
    path = template_path(config_dir, kind, name)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        raise TemplateError(f"Failed to read {path}: {e}", path=path) from e

    variables = parse_template_vars(text, path=path)
    if not variables:
        return None
    return VariableTemplate(kind=kind, name=name, vars=tuple(variables), path=path)


def list_templates(config_dir: Path, kind: AssetKind) -> list[str]:
    target_dir = kind_dir(config_dir, kind)
    if not target_dir.is_dir():
        return []
    return sorted(
        p.stem for p in target_dir.iterdir() if p.is_file() and p.suffix == TEMPLATE_SUFFIX
    )


def find_template(config_dir: Path, name: str) -> tuple[AssetKind, Path] | None:
    """Locate a template by name, checking outcomes before baselines."""
    for kind in (AssetKind.OUTCOME, AssetKind.BASELINE):
        path = template_path(config_dir, kind, name)
        if path.is_file():
            return kind, path
    return None


def new_template(config_dir: Path, kind: AssetKind, name: str) -> Path:
    path = template_path(config_dir, kind, name)
    if path.exists():
        raise TemplateError(f"Template already exists: {path}", path=path)
    _write_template(path, _SKELETONS[kind])
    return path


def render_template(variables: Sequence[str], *, header: str = "template variables") -> str:
    doc = tomlkit.document()
    doc.add(tomlkit.comment(header))
    doc.add(tomlkit.nl())
    arr = tomlkit.array()
    arr.extend(variables)
    doc.add("vars", arr.multiline(True))
    return tomlkit.dumps(doc)


def save_template(
    config_dir: Path, kind: AssetKind, name: str, variables: Sequence[str]
) -> Path:
    path = template_path(config_dir, kind, name)
    cleaned = [v.strip() for v in variables if v.strip()]
    if not cleaned:
        raise TemplateError("Refusing to save a template with no variables.")
    _write_template(path, render_template(cleaned))
    return path


def copy_bundled_template(config_dir: Path, kind: AssetKind, name: str) -> Path:
    """Copy one bundled default into the user's directory without overwriting."""
    path = template_path(config_dir, kind, name)
    asset = bundled_asset(kind, name)
    if asset is None:
        raise TemplateError(f"No bundled {kind.tag} template named {name!r}.")
    if path.exists():
        raise TemplateError(f"{name!r} already exists in your {kind.tag} directory.", path=path)
    _write_template(path, asset.content)
    return path
