from __future__ import annotations

import importlib.resources
from importlib.resources.abc import Traversable

from asset_sync import AssetKind, BundledAsset
from asset_sync.catalog import TEMPLATE_SUFFIX

_ASSETS_DIRNAME = "assets"


def _assets_root() -> Traversable:
    return importlib.resources.files("margo") / _ASSETS_DIRNAME


def load_bundled_catalog() -> tuple[BundledAsset, ...]:
    """
    Load the default templates shipped with this build.

    Order is fixed: kinds in declaration order, names sorted within a kind. The manifest
    is written in this order.
    """

    assets: list[BundledAsset] = []
    root = _assets_root()
    for kind in AssetKind:
        kind_root = root / kind.tag
        if not kind_root.is_dir():
            continue
        files = [
            entry
            for entry in kind_root.iterdir()
            if entry.is_file() and entry.name.endswith(TEMPLATE_SUFFIX)
        ]
        for entry in sorted(files, key=lambda e: e.name):
            name = entry.name.removesuffix(TEMPLATE_SUFFIX)
            assets.append(
                BundledAsset(kind=kind, name=name, content=entry.read_text(encoding="utf-8"))
            )
    return tuple(assets)


def bundled_asset(kind: AssetKind, name: str) -> BundledAsset | None:
    for asset in load_bundled_catalog():
        if asset.kind is kind and asset.name == name:
            return asset
    return None
