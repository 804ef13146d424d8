"""
Unit tests for application settings.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from streampack.core.config import Settings


@pytest.fixture
def clean_env(monkeypatch, tmp_path: Path):
    """Run with no StreamPack env vars and no .env file in the cwd."""
    for name in ("UPLOAD_FOLDER", "OUTPUT_FOLDER", "LOG_LEVEL", "MAX_UPLOAD_SIZE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestSettings:
    def test_defaults(self, clean_env):
        settings = Settings()

        assert settings.port == 5000
        assert settings.upload_folder == "uploads"
        assert settings.output_folder == "streams"
        assert settings.max_upload_size == 100 * 1024 * 1024
        assert settings.ffmpeg_binary == "ffmpeg"
        assert settings.verify_entry_files is True
        assert settings.parallel_conversions is False
        assert settings.max_concurrent_transcodes == 4
        assert settings.allowed_extensions_set == {"mp4", "avi", "mov", "mkv", "wmv", "flv", "webm"}

    def test_env_override(self, clean_env):
        clean_env.setenv("OUTPUT_FOLDER", "/srv/streams")
        clean_env.setenv("MAX_UPLOAD_SIZE", "1024")
        clean_env.setenv("PARALLEL_CONVERSIONS", "true")

        settings = Settings()

        assert settings.output_folder == "/srv/streams"
        assert settings.max_upload_size == 1024
        assert settings.parallel_conversions is True

    def test_env_file(self, clean_env, tmp_path: Path):
        (tmp_path / ".env").write_text("UPLOAD_FOLDER=/srv/uploads\nFFMPEG_BINARY=/opt/ffmpeg\n")

        settings = Settings()

        assert settings.upload_folder == "/srv/uploads"
        assert settings.ffmpeg_binary == "/opt/ffmpeg"

    def test_roots_are_absolute(self, clean_env, tmp_path: Path):
        settings = Settings()

        assert settings.upload_root == (tmp_path / "uploads").resolve()
        assert settings.output_root == (tmp_path / "streams").resolve()

    def test_allowed_extensions_parsing(self, clean_env):
        settings = Settings(allowed_extensions=" .MP4, webm ,,mkv")
        assert settings.allowed_extensions_set == {"mp4", "webm", "mkv"}

    def test_cors_origins_list(self, clean_env):
        settings = Settings(cors_origins="http://a.test, http://b.test")
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_max_concurrent_transcodes_must_be_positive(self, clean_env):
        with pytest.raises(ValidationError):
            Settings(max_concurrent_transcodes=0)
