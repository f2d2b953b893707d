from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

TEMPLATE_SUFFIX = ".toml"
SIDECAR_DIRNAME = "templates.new"


class AssetKind(Enum):
    BASELINE = "baselines"
    OUTCOME = "outcomes"

    @property
    def tag(self) -> str:
        return self.value

    @classmethod
    def from_tag(cls, tag: str) -> AssetKind | None:
        for kind in cls:
            if kind.value == tag:
                return kind
        return None

    @classmethod
    def parse(cls, token: str) -> AssetKind:
        """Parse a user-supplied kind, accepting the singular form (`baseline`, `outcome`)."""
        cleaned = token.strip().lower()
        kind = cls.from_tag(cleaned) or cls.from_tag(f"{cleaned}s")
        if kind is None:
            allowed = ", ".join(k.value for k in cls)
            raise ValueError(f"Unknown template kind {token!r}. Expected one of: {allowed}.")
        return kind


def check_asset_name(name: str) -> None:
    if not name or not name.strip():
        raise ValueError("Asset name must be a non-empty string.")
    if name != name.strip():
        raise ValueError(f"Asset name {name!r} has leading or trailing whitespace.")
    if name.startswith("."):
        raise ValueError(f"Asset name {name!r} must not start with '.'.")
    bad = [ch for ch in ("/", "\\", ":", "\0") if ch in name]
    if bad:
        raise ValueError(f"Asset name {name!r} contains forbidden characters: {bad!r}.")


@dataclass(frozen=True)
class BundledAsset:
    kind: AssetKind
    name: str
    content: str

    def __post_init__(self) -> None:
        check_asset_name(self.name)

    @property
    def filename(self) -> str:
        return f"{self.name}{TEMPLATE_SUFFIX}"

    @property
    def rel_path(self) -> str:
        return f"{self.kind.tag}/{self.filename}"

    @property
    def sidecar_rel_path(self) -> str:
        return f"{SIDECAR_DIRNAME}/{self.rel_path}"


def kind_dir(config_dir: Path, kind: AssetKind) -> Path:
    return config_dir / kind.tag


def destination_path(config_dir: Path, asset: BundledAsset) -> Path:
    return kind_dir(config_dir, asset.kind) / asset.filename


def sidecar_path(config_dir: Path, asset: BundledAsset) -> Path:
    return config_dir / SIDECAR_DIRNAME / asset.kind.tag / asset.filename


def catalog_kinds(catalog: Iterable[BundledAsset]) -> list[AssetKind]:
    """Kinds used by the catalog, in first-seen order."""
    seen: list[AssetKind] = []
    for asset in catalog:
        if asset.kind not in seen:
            seen.append(asset.kind)
    return seen


def find_duplicate_assets(catalog: Iterable[BundledAsset]) -> list[str]:
    seen: set[tuple[AssetKind, str]] = set()
    dupes: list[str] = []
    for asset in catalog:
        key = (asset.kind, asset.name)
        if key in seen:
            dupes.append(asset.rel_path)
        seen.add(key)
    return dupes
