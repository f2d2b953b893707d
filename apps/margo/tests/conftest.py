from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolated_config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep margo tests away from the real ~/.config/margo."""
    config_dir = tmp_path / "margo_config"
    monkeypatch.setenv("MARGO_CONFIG_DIR", str(config_dir))
    monkeypatch.delenv("EDITOR", raising=False)
    return config_dir


@pytest.fixture
def config_dir(_isolated_config_dir: Path) -> Path:
    return _isolated_config_dir
