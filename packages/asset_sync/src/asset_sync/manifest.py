from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from packaging.version import InvalidVersion, Version

from asset_sync.catalog import AssetKind, BundledAsset
from asset_sync.hashing import hash_content

MANIFEST_FILENAME = "templates.manifest"
MANIFEST_FORMAT_VERSION = "1.0"

_HEADER_LINES = (
    "# margo template manifest",
    "# Hashes of the bundled templates at the last sync. Do not edit by hand.",
)


class ManifestError(RuntimeError):
    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path


@dataclass(frozen=True)
class ManifestEntry:
    kind: AssetKind
    name: str
    hash: str


@dataclass
class TemplateManifest:
    version: str
    entries: list[ManifestEntry] = field(default_factory=list)

    def find(self, kind: AssetKind, name: str) -> str | None:
        for entry in self.entries:
            if entry.kind is kind and entry.name == name:
                return entry.hash
        return None

    @classmethod
    def from_catalog(
        cls, catalog: Iterable[BundledAsset], *, version: str = MANIFEST_FORMAT_VERSION
    ) -> TemplateManifest:
        entries = [
            ManifestEntry(kind=asset.kind, name=asset.name, hash=hash_content(asset.content))
            for asset in catalog
        ]
        return cls(version=version, entries=entries)


def manifest_path(config_dir: Path) -> Path:
    return config_dir / MANIFEST_FILENAME


def is_compatible_version(value: str) -> bool:
    try:
        found = Version(value)
    except InvalidVersion:
        return False
    return found.major == Version(MANIFEST_FORMAT_VERSION).major


def parse_manifest(text: str) -> TemplateManifest | None:
    """
    Parse manifest text.

    Returns None when the version line is missing or names an incompatible format.
    Entry lines that do not split into `<kind>:<name>:<hash>`, or whose kind is not known
    to this build, are skipped so that manifests written by newer builds still load.
    """

    version: str | None = None
    by_key: dict[tuple[AssetKind, str], ManifestEntry] = {}

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        if version is None:
            key, sep, value = line.partition("=")
            if not sep or key.strip() != "version" or not value.strip():
                return None
            version = value.strip()
            continue

        parts = line.split(":")
        if len(parts) != 3:
            continue
        kind_tag, name, digest = (p.strip() for p in parts)
        kind = AssetKind.from_tag(kind_tag)
        if kind is None or not name or not digest:
            continue
        # Last line wins for a repeated (kind, name).
        by_key[(kind, name)] = ManifestEntry(kind=kind, name=name, hash=digest)

    if version is None or not is_compatible_version(version):
        return None
    return TemplateManifest(version=version, entries=list(by_key.values()))


def render_manifest(manifest: TemplateManifest) -> str:
    lines = [*_HEADER_LINES, f"version={manifest.version}"]
    lines.extend(f"{e.kind.tag}:{e.name}:{e.hash}" for e in manifest.entries)
    return "\n".join(lines) + "\n"


def load_manifest(path: Path) -> TemplateManifest | None:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    return parse_manifest(text)


def save_manifest(path: Path, manifest: TemplateManifest) -> None:
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        tmp_path.write_text(render_manifest(manifest), encoding="utf-8", newline="\n")
        os.replace(tmp_path, path)
    except OSError as e:
        try:
            if tmp_path.exists():
                tmp_path.unlink()
        except OSError:
            pass
        raise ManifestError(f"Failed to write manifest {path}: {e}", path=path) from e
