from __future__ import annotations

from pathlib import Path

import pytest

import asset_sync.bootstrap as bootstrap_mod
from asset_sync import (
    AssetKind,
    BundledAsset,
    ManifestError,
    SyncError,
    ensure_initialized,
    has_user_templates,
    hash_content,
    load_manifest,
    manifest_path,
    synchronize,
)


def _catalog() -> list[BundledAsset]:
    return [
        BundledAsset(kind=AssetKind.BASELINE, name="default", content='vars = ["age"]\n'),
        BundledAsset(kind=AssetKind.BASELINE, name="minimal", content='vars = ["male"]\n'),
        BundledAsset(kind=AssetKind.OUTCOME, name="health", content='vars = ["pwi"]\n'),
    ]


def test_ensure_initialized_seeds_empty_config_dir(tmp_path: Path) -> None:
    config_dir = tmp_path / "margo"

    created = ensure_initialized(_catalog(), config_dir)

    assert created == [
        "baselines/default.toml",
        "baselines/minimal.toml",
        "outcomes/health.toml",
    ]
    assert (config_dir / "outcomes" / "health.toml").read_text(encoding="utf-8") == (
        'vars = ["pwi"]\n'
    )
    manifest = load_manifest(manifest_path(config_dir))
    assert manifest is not None
    assert [e.name for e in manifest.entries] == ["default", "minimal", "health"]
    assert manifest.find(AssetKind.OUTCOME, "health") == hash_content('vars = ["pwi"]\n')


def test_ensure_initialized_skips_kind_with_any_user_template(tmp_path: Path) -> None:
    outcomes = tmp_path / "outcomes"
    outcomes.mkdir()
    (outcomes / "mine.toml").write_text('vars = ["gratitude"]\n', encoding="utf-8")

    created = ensure_initialized(_catalog(), tmp_path)

    assert created == ["baselines/default.toml", "baselines/minimal.toml"]
    assert sorted(p.name for p in outcomes.iterdir()) == ["mine.toml"]
    assert manifest_path(tmp_path).exists()


def test_ensure_initialized_ignores_directories_and_other_files(tmp_path: Path) -> None:
    baselines = tmp_path / "baselines"
    (baselines / "examples").mkdir(parents=True)
    (baselines / "examples" / "old.toml").write_text("vars = []\n", encoding="utf-8")
    (baselines / "notes.txt").write_text("scratch\n", encoding="utf-8")

    assert not has_user_templates(tmp_path, AssetKind.BASELINE)
    created = ensure_initialized(_catalog(), tmp_path)

    assert "baselines/default.toml" in created


def test_ensure_initialized_is_a_no_op_once_seeded(tmp_path: Path) -> None:
    ensure_initialized(_catalog(), tmp_path)
    manifest_path(tmp_path).unlink()

    assert ensure_initialized(_catalog(), tmp_path) == []
    assert not manifest_path(tmp_path).exists()


def test_sync_after_bootstrap_sees_everything_unchanged(tmp_path: Path) -> None:
    ensure_initialized(_catalog(), tmp_path)

    report = synchronize(_catalog(), tmp_path)

    assert report.unchanged == [a.rel_path for a in _catalog()]
    assert not report.changed


def test_ensure_initialized_scan_failure_is_a_sync_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    (tmp_path / "outcomes").mkdir()
    real_iterdir = Path.iterdir

    def _guarded_iterdir(self: Path):
        if self.name == "outcomes":
            raise PermissionError("denied")
        return real_iterdir(self)

    monkeypatch.setattr(Path, "iterdir", _guarded_iterdir)

    with pytest.raises(SyncError) as exc:
        ensure_initialized(_catalog(), tmp_path)

    assert exc.value.code == "read_failed"
    assert exc.value.details["path"] == str(tmp_path / "outcomes")
    assert exc.value.report.created == ["baselines/default.toml", "baselines/minimal.toml"]
    assert not manifest_path(tmp_path).exists()


def test_ensure_initialized_mkdir_failure_keeps_partial_report(tmp_path: Path) -> None:
    (tmp_path / "outcomes").write_text("not a directory", encoding="utf-8")

    with pytest.raises(SyncError) as exc:
        ensure_initialized(_catalog(), tmp_path)

    assert exc.value.code == "mkdir_failed"
    assert exc.value.report.created == ["baselines/default.toml", "baselines/minimal.toml"]
    assert not manifest_path(tmp_path).exists()


def test_ensure_initialized_write_failure_aborts_without_manifest(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    real_write = bootstrap_mod._write_text

    def _flaky_write(path: Path, content: str) -> None:
        if path.name == "minimal.toml":
            raise PermissionError("denied")
        real_write(path, content)

    monkeypatch.setattr(bootstrap_mod, "_write_text", _flaky_write)

    with pytest.raises(SyncError) as exc:
        ensure_initialized(_catalog(), tmp_path)

    assert exc.value.code == "write_failed"
    assert exc.value.report.created == ["baselines/default.toml"]
    assert "minimal.toml" in exc.value.details["path"]
    assert not (tmp_path / "outcomes" / "health.toml").exists()
    assert not manifest_path(tmp_path).exists()


def test_ensure_initialized_manifest_failure_reports_created_files(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _failing_save(path: Path, manifest: object) -> None:
        raise ManifestError("nope", path=path)

    monkeypatch.setattr(bootstrap_mod, "save_manifest", _failing_save)

    with pytest.raises(SyncError) as exc:
        ensure_initialized(_catalog(), tmp_path)

    assert exc.value.code == "manifest_write_failed"
    assert exc.value.details["path"] == str(manifest_path(tmp_path))
    assert len(exc.value.report.created) == 3
    assert not manifest_path(tmp_path).exists()
