"""Tests for configuration loading."""

from __future__ import annotations

import logging
import os

import pytest

from docguard.core.config import configure_logging, load_config
from docguard.core.models import LoggingConfig, SanitizeOptions

ENV_VARS = (
    "DOCGUARD_BASE_URL",
    "DOCGUARD_ALLOW_IMAGES",
    "DOCGUARD_ALLOW_LINKS",
    "DOCGUARD_ADDITIONAL_TAGS",
    "DOCGUARD_LOG_LEVEL",
)


@pytest.fixture
def project(tmp_path, monkeypatch):
    """Empty project root as the working directory with no DOCGUARD_* env."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    (tmp_path / "pyproject.toml").write_text("[project]\nname = 'x'\n")
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestLoadConfig:
    def test_defaults_without_files(self, project):
        cfg = load_config()
        assert cfg.sanitizer.base_url == "http://localhost/"
        assert cfg.sanitizer.allow_images is True
        assert cfg.sanitizer.allow_links is True
        assert cfg.sanitizer.additional_tags == []
        assert cfg.logging.level == "WARNING"

    def test_project_yaml(self, project):
        (project / "config").mkdir()
        (project / "config" / "default.yaml").write_text(
            "sanitizer:\n"
            "  base_url: https://docs.example/\n"
            "  allow_images: false\n"
            "  additional_tags: [section, figure]\n"
            "logging:\n"
            "  level: info\n"
        )
        cfg = load_config()
        assert cfg.sanitizer.base_url == "https://docs.example/"
        assert cfg.sanitizer.allow_images is False
        assert cfg.sanitizer.allow_links is True
        assert cfg.sanitizer.additional_tags == ["section", "figure"]
        assert cfg.logging.level == "INFO"

    def test_explicit_path(self, project, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("sanitizer:\n  allow_links: false\n")
        assert load_config(str(path)).sanitizer.allow_links is False

    def test_empty_yaml(self, project, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(str(path)).sanitizer.allow_images is True

    def test_env_overrides_yaml(self, project, monkeypatch, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("sanitizer:\n  allow_images: true\n  additional_tags: [section]\n")
        monkeypatch.setenv("DOCGUARD_ALLOW_IMAGES", "no")
        monkeypatch.setenv("DOCGUARD_ADDITIONAL_TAGS", "figure, aside,")
        monkeypatch.setenv("DOCGUARD_BASE_URL", "https://env.example/")
        monkeypatch.setenv("DOCGUARD_LOG_LEVEL", "debug")

        cfg = load_config(str(path))
        assert cfg.sanitizer.allow_images is False
        assert cfg.sanitizer.additional_tags == ["figure", "aside"]
        assert cfg.sanitizer.base_url == "https://env.example/"
        assert cfg.logging.level == "DEBUG"

    @pytest.mark.parametrize("raw, expected", [("1", True), ("TRUE", True), ("on", True), ("0", False), ("", True)])
    def test_env_bool_parsing(self, project, monkeypatch, raw, expected):
        monkeypatch.setenv("DOCGUARD_ALLOW_LINKS", raw)
        assert load_config().sanitizer.allow_links is expected

    def test_dotenv_file(self, project):
        (project / ".env").write_text("DOCGUARD_ALLOW_LINKS=false\n")
        try:
            assert load_config().sanitizer.allow_links is False
        finally:
            # load_dotenv writes into os.environ
            os.environ.pop("DOCGUARD_ALLOW_LINKS", None)

    def test_sanitizer_options(self, project, monkeypatch):
        monkeypatch.setenv("DOCGUARD_ADDITIONAL_TAGS", "Section")
        opts = load_config().sanitizer.options()
        assert isinstance(opts, SanitizeOptions)
        assert opts.additional_tags == frozenset({"section"})


class TestConfigureLogging:
    def test_unknown_level_falls_back_to_warning(self, monkeypatch):
        calls = {}
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.update(kw))
        configure_logging(LoggingConfig(level="LOUD"))
        assert calls["level"] == logging.WARNING

    def test_named_level(self, monkeypatch):
        calls = {}
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.update(kw))
        configure_logging(LoggingConfig(level="DEBUG"))
        assert calls["level"] == logging.DEBUG
