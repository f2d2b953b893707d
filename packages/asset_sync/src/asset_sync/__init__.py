from asset_sync.bootstrap import ensure_initialized, has_user_templates
from asset_sync.catalog import (
    SIDECAR_DIRNAME,
    AssetKind,
    BundledAsset,
    check_asset_name,
    destination_path,
    kind_dir,
    sidecar_path,
)
from asset_sync.engine import (
    AssetState,
    SyncError,
    SyncOptions,
    SyncReport,
    classify_asset,
    synchronize,
)
from asset_sync.hashing import hash_bytes, hash_content
from asset_sync.manifest import (
    MANIFEST_FILENAME,
    MANIFEST_FORMAT_VERSION,
    ManifestEntry,
    ManifestError,
    TemplateManifest,
    load_manifest,
    manifest_path,
    save_manifest,
)

__all__ = [
    "MANIFEST_FILENAME",
    "MANIFEST_FORMAT_VERSION",
    "SIDECAR_DIRNAME",
    "AssetKind",
    "AssetState",
    "BundledAsset",
    "ManifestEntry",
    "ManifestError",
    "SyncError",
    "SyncOptions",
    "SyncReport",
    "TemplateManifest",
    "check_asset_name",
    "classify_asset",
    "destination_path",
    "ensure_initialized",
    "has_user_templates",
    "hash_bytes",
    "hash_content",
    "kind_dir",
    "load_manifest",
    "manifest_path",
    "save_manifest",
    "sidecar_path",
    "synchronize",
]
