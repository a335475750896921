import json
from pathlib import Path

import passerelles.config as config_module
from passerelles.config import AppConfig, load_config


def test_paths_resolve_relative_to_base(tmp_path: Path) -> None:
    config = AppConfig.from_mapping(
        {"data_root": "data", "uploads_root": "uploads", "public_root": "public"},
        base_path=tmp_path,
    )

    assert config.data_root == (tmp_path / "data").resolve()
    assert config.uploads_root == (tmp_path / "uploads").resolve()
    assert config.public_root == (tmp_path / "public").resolve()
    assert config.speakers_file == config.data_root / "speakers.json"
    assert config.content_file == config.data_root / "content.json"
    assert config.data_root.is_dir()
    assert config.uploads_root.is_dir()


def test_uploads_root_falls_back_when_preferred_is_unusable(tmp_path: Path) -> None:
    data = tmp_path / "data"
    data.mkdir()

    preferred_uploads = tmp_path / "uploads"
    preferred_uploads.write_text("not a directory", encoding="utf-8")

    config = AppConfig.from_mapping(
        {"data_root": "data", "uploads_root": "uploads"},
        base_path=tmp_path,
    )

    expected_fallback = (data / "_uploads").resolve()
    assert config.uploads_root == expected_fallback
    assert expected_fallback.is_dir()


def test_data_root_falls_back_to_home_when_preferred_is_unusable(
    tmp_path: Path, monkeypatch
) -> None:
    home_dir = tmp_path / "home"
    monkeypatch.setattr(config_module.Path, "home", lambda: home_dir)

    (tmp_path / "data").write_text("not a directory", encoding="utf-8")
    (tmp_path / "uploads").write_text("not a directory", encoding="utf-8")

    config = AppConfig.from_mapping(
        {"data_root": "data", "uploads_root": "uploads"},
        base_path=tmp_path,
    )

    expected_data = (home_dir / ".passerelles" / "data").resolve()
    assert config.data_root == expected_data
    assert config.speakers_file == expected_data / "speakers.json"
    assert config.uploads_root == (expected_data / "_uploads").resolve()


def test_load_config_reads_json_file(tmp_path: Path) -> None:
    config_file = tmp_path / "custom.json"
    config_file.write_text(
        json.dumps(
            {
                "data_root": str(tmp_path / "site-data"),
                "uploads_root": str(tmp_path / "site-uploads"),
                "public_root": str(tmp_path / "site-public"),
            }
        ),
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.data_root == (tmp_path / "site-data").resolve()
    assert config.uploads_root == (tmp_path / "site-uploads").resolve()
    assert config.public_root == (tmp_path / "site-public").resolve()
