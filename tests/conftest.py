from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from passerelles.bootstrap import Bootstrapper
from passerelles.config import AppConfig


@pytest.fixture()
def temp_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> AppConfig:
    public_dir = tmp_path / "public"
    public_dir.mkdir()
    (public_dir / "index.html").write_text("<h1>Passerelles</h1>", encoding="utf-8")
    (public_dir / "admin.html").write_text("<h1>Admin</h1>", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PASSERELLES_MAX_UPLOAD_BYTES", raising=False)

    config = AppConfig.from_mapping(
        {
            "data_root": "data",
            "uploads_root": "uploads",
            "public_root": "public",
        },
        base_path=tmp_path,
    )

    Bootstrapper(config).initialize()
    return config
