from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from asset_sync.catalog import (
    TEMPLATE_SUFFIX,
    AssetKind,
    BundledAsset,
    catalog_kinds,
    destination_path,
    kind_dir,
)
from asset_sync.engine import SyncError, SyncReport, _write_text
from asset_sync.manifest import (
    MANIFEST_FORMAT_VERSION,
    ManifestError,
    TemplateManifest,
    manifest_path,
    save_manifest,
)


def has_user_templates(config_dir: Path, kind: AssetKind) -> bool:
    target_dir = kind_dir(config_dir, kind)
    if not target_dir.is_dir():
        return False
    return any(p.is_file() and p.suffix == TEMPLATE_SUFFIX for p in target_dir.iterdir())


def ensure_initialized(
    catalog: Sequence[BundledAsset],
    config_dir: Path,
    *,
    manifest_version: str = MANIFEST_FORMAT_VERSION,
) -> list[str]:
    """
    Seed empty template directories from the bundled catalog on first run.

    A kind is only seeded when its directory holds no `*.toml` file at all; a kind with any
    user template is left untouched. Returns the created paths relative to `config_dir`.
    """

    report = SyncReport()
    for kind in catalog_kinds(catalog):
        target_dir = kind_dir(config_dir, kind)
        try:
            seeded = has_user_templates(config_dir, kind)
        except OSError as e:
            raise SyncError(
                f"Failed to scan {target_dir}: {e}",
                report=report,
                code="read_failed",
                details={"path": str(target_dir)},
            ) from e
        if seeded:
            continue

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
            if asset.kind is not kind:
                continue
            dest = destination_path(config_dir, asset)
            try:
                _write_text(dest, asset.content)
            except OSError as e:
                raise SyncError(
                    f"Failed to write {dest}: {e}",
                    report=report,
                    code="write_failed",
                    details={"path": str(dest)},
                ) from e
            report.created.append(asset.rel_path)

    if report.created:
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
    return report.created
