from pathlib import Path

from passerelles.bootstrap import Bootstrapper
from passerelles.config import AppConfig
from passerelles.services.documents import read_document, write_document
from passerelles.services.seed import default_content, default_speakers


def _config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        data_root=tmp_path / "data",
        uploads_root=tmp_path / "uploads",
        public_root=tmp_path / "public",
    )


def test_bootstrap_creates_directories_and_seeds_documents(tmp_path: Path) -> None:
    config = _config(tmp_path)

    assert Bootstrapper(config).initialize() is True

    assert config.uploads_root.is_dir()
    assert read_document(config.speakers_file, []) == default_speakers()
    assert read_document(config.content_file) == default_content()
    raw = config.speakers_file.read_text(encoding="utf-8")
    assert raw.startswith('[\n  {\n    "id": 1,')


def test_bootstrap_keeps_existing_documents(tmp_path: Path) -> None:
    config = _config(tmp_path)
    config.data_root.mkdir()
    write_document(config.speakers_file, [{"id": 9, "name": "Kept"}])
    write_document(config.content_file, {"en": {"heroSlogan": "Kept"}})

    Bootstrapper(config).initialize()
    Bootstrapper(config).initialize()

    assert read_document(config.speakers_file, []) == [{"id": 9, "name": "Kept"}]
    assert read_document(config.content_file) == {"en": {"heroSlogan": "Kept"}}


def test_bootstrap_reports_failure_without_raising(tmp_path: Path) -> None:
    config = _config(tmp_path)
    config.data_root.write_text("not a directory", encoding="utf-8")

    assert Bootstrapper(config).initialize() is False
    assert read_document(config.speakers_file, []) == []


def test_seeded_copy_is_written_as_plain_utf8(tmp_path: Path) -> None:
    config = _config(tmp_path)
    Bootstrapper(config).initialize()

    raw = config.content_file.read_text(encoding="utf-8")

    assert "key players—institutions, disciplines, and funding models—that" in raw
    assert "Nous sommes des bâtisseurs" in raw
