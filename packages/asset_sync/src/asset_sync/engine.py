from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from asset_sync.catalog import (
    BundledAsset,
    catalog_kinds,
    destination_path,
    find_duplicate_assets,
    kind_dir,
    sidecar_path,
)
from asset_sync.hashing import hash_bytes, hash_content
from asset_sync.manifest import (
    MANIFEST_FORMAT_VERSION,
    ManifestError,
    TemplateManifest,
    load_manifest,
    manifest_path,
    save_manifest,
)


@dataclass(frozen=True)
class SyncOptions:
    force: bool = False
    sidecar: bool = False
    dry_run: bool = False


@dataclass
class SyncReport:
    """Paths (relative to the config dir, POSIX style) grouped by the action taken."""

    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    skipped_modified: list[str] = field(default_factory=list)
    sidecar: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.sidecar)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "created": list(self.created),
            "updated": list(self.updated),
            "unchanged": list(self.unchanged),
            "skipped_modified": list(self.skipped_modified),
            "sidecar": list(self.sidecar),
        }


class SyncError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        report: SyncReport,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.report = report
        self.code = code
        self.details = details or {}


class AssetState(Enum):
    MISSING = "missing"
    FORCE_OVERWRITE = "force_overwrite"
    UNTOUCHED_UPGRADE = "untouched_upgrade"
    ALREADY_CURRENT = "already_current"
    DIVERGED_NO_HISTORY = "diverged_no_history"


def classify_asset(
    *,
    current_hash: str | None,
    new_hash: str,
    old_hash: str | None,
    options: SyncOptions,
) -> AssetState:
    """
    Decide how to reconcile one asset from its three hashes.

    - current_hash: the user's file on disk (None when absent)
    - new_hash: the content bundled with this build
    - old_hash: the bundled content recorded by the previous sync (None when untracked)

    The checks run in priority order; the first match wins.
    """

    if current_hash is None:
        return AssetState.MISSING
    if options.force:
        return AssetState.FORCE_OVERWRITE
    if old_hash is not None and old_hash == current_hash:
        return AssetState.UNTOUCHED_UPGRADE
    if current_hash == new_hash:
        return AssetState.ALREADY_CURRENT
    return AssetState.DIVERGED_NO_HISTORY


def _read_current_hash(path: Path) -> str | None:
    if not path.is_file():
        return None
    return hash_bytes(path.read_bytes())


def _write_text(path: Path, content: str) -> None:
    path.write_text(content, encoding="utf-8", newline="\n")


def _reconcile_asset(
    asset: BundledAsset,
    *,
    config_dir: Path,
    manifest: TemplateManifest | None,
    options: SyncOptions,
    report: SyncReport,
) -> None:
    dest = destination_path(config_dir, asset)
    new_hash = hash_content(asset.content)

    try:
        current_hash = _read_current_hash(dest)
    except OSError as e:
        raise SyncError(
            f"Failed to read {dest}: {e}",
            report=report,
            code="read_failed",
            details={"path": str(dest)},
        ) from e

    old_hash = manifest.find(asset.kind, asset.name) if manifest is not None else None
    state = classify_asset(
        current_hash=current_hash, new_hash=new_hash, old_hash=old_hash, options=options
    )

    target: Path | None = None
    bucket: list[str]
    rel_path = asset.rel_path
    if state is AssetState.MISSING:
        target, bucket = dest, report.created
    elif state in (AssetState.FORCE_OVERWRITE, AssetState.UNTOUCHED_UPGRADE):
        if current_hash == new_hash:
            bucket = report.unchanged
        else:
            target, bucket = dest, report.updated
    elif state is AssetState.ALREADY_CURRENT:
        bucket = report.unchanged
    elif options.sidecar:
        target, bucket = sidecar_path(config_dir, asset), report.sidecar
        rel_path = asset.sidecar_rel_path
    else:
        bucket = report.skipped_modified

    if target is not None and not options.dry_run:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            _write_text(target, asset.content)
        except OSError as e:
            raise SyncError(
                f"Failed to write {target}: {e}",
                report=report,
                code="write_failed",
                details={"path": str(target), "state": state.value},
            ) from e

    bucket.append(rel_path)


def synchronize(
    catalog: Sequence[BundledAsset],
    config_dir: Path,
    options: SyncOptions | None = None,
    *,
    manifest_version: str = MANIFEST_FORMAT_VERSION,
) -> SyncReport:
    """
    Reconcile the user's template files under `config_dir` with the bundled catalog.

    Processing stops at the first read or write failure: the raised SyncError carries the
    report built so far and the manifest is left as it was. The manifest is only written
    after every asset has been handled, and never in dry-run mode.
    """

    options = options or SyncOptions()
    report = SyncReport()

    dupes = find_duplicate_assets(catalog)
    if dupes:
        raise SyncError(
            f"Duplicate assets in catalog: {', '.join(dupes)}",
            report=report,
            code="duplicate_asset",
            details={"paths": dupes},
        )

    previous = load_manifest(manifest_path(config_dir))

    if not options.dry_run:
        for kind in catalog_kinds(catalog):
            target_dir = kind_dir(config_dir, kind)
            try:
                target_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise SyncError(
                    f"Failed to create {target_dir}: {e}",
                    report=report,
                    code="mkdir_failed",
                    details={"path": str(target_dir)},
                ) from e

    for asset in catalog:
        _reconcile_asset(
            asset,
            config_dir=config_dir,
            manifest=previous,
            options=options,
            report=report,
        )

    if options.dry_run:
        return report

    try:
        save_manifest(
            manifest_path(config_dir),
            TemplateManifest.from_catalog(catalog, version=manifest_version),
        )
    except ManifestError as e:
        raise SyncError(
            str(e),
            report=report,
            code="manifest_write_failed",
            details={"path": str(e.path)},
        ) from e
    return report
