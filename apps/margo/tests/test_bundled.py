from __future__ import annotations

from asset_sync import AssetKind

from margo.bundled import bundled_asset, load_bundled_catalog
from margo.templates import parse_template_vars


def test_bundled_catalog_order_is_fixed() -> None:
    catalog = load_bundled_catalog()
    assert [a.rel_path for a in catalog] == [
        "baselines/default.toml",
        "baselines/extended.toml",
        "baselines/minimal.toml",
        "outcomes/health.toml",
        "outcomes/wellbeing.toml",
    ]
    assert load_bundled_catalog() == catalog


def test_bundled_templates_parse_with_variables() -> None:
    for asset in load_bundled_catalog():
        variables = parse_template_vars(asset.content)
        assert variables, asset.rel_path
        assert len(variables) == len(set(variables)), asset.rel_path


def test_extended_baselines_extend_the_default_set() -> None:
    default = bundled_asset(AssetKind.BASELINE, "default")
    extended = bundled_asset(AssetKind.BASELINE, "extended")
    assert default is not None and extended is not None
    default_vars = parse_template_vars(default.content)
    extended_vars = parse_template_vars(extended.content)
    assert extended_vars[: len(default_vars)] == default_vars
    assert "vengeful_rumination" in extended_vars


def test_bundled_asset_lookup_misses_return_none() -> None:
    assert bundled_asset(AssetKind.OUTCOME, "default") is None
