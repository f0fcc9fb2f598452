# tests/unit/core/test_config.py
"""Tests for settings models and YAML/env loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from flowgen.core.config import (
    DEFAULT_MAX_DOCUMENT_BYTES,
    FlowgenSettings,
    GenerationSettings,
    ParserSettings,
    load_settings,
)


class TestParserSettings:
    def test_defaults(self) -> None:
        settings = ParserSettings()

        assert settings.strict is True
        assert settings.minimal is False
        assert settings.version == "auto"
        assert settings.max_document_bytes == DEFAULT_MAX_DOCUMENT_BYTES
        assert settings.deprecated_node_types == ("textSplitter", "pdfLoader")

    def test_frozen(self) -> None:
        settings = ParserSettings()
        with pytest.raises(ValidationError):
            settings.strict = False  # type: ignore[misc]

    def test_unknown_version_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ParserSettings(version="3.x")  # type: ignore[arg-type]

    def test_size_ceiling_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ParserSettings(max_document_bytes=0)

    def test_extra_fields_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ParserSettings(strictness=True)  # type: ignore[call-arg]


class TestGenerationSettings:
    def test_blank_project_name_rejected(self) -> None:
        with pytest.raises(ValidationError, match="project_name"):
            GenerationSettings(project_name="   ")

    def test_to_context(self) -> None:
        settings = GenerationSettings(target_language="python", project_name="demo", options={"a": 1})
        context = settings.to_context()

        assert context.target_language == "python"
        assert context.project_name == "demo"
        assert context.options == {"a": 1}
        assert context.flow_state == {}

    def test_to_context_does_not_share_options(self) -> None:
        settings = GenerationSettings(options={"a": 1})
        settings.to_context().options["a"] = 2

        assert settings.options == {"a": 1}


class TestLoadSettings:
    def test_load_from_yaml_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(
            """
parser:
  strict: false
  version: "2.x"
  max_document_bytes: 2048
generation:
  project_name: demo-flow
  allow_orphans: true
"""
        )

        settings = load_settings(config_file)

        assert isinstance(settings, FlowgenSettings)
        assert settings.parser.strict is False
        assert settings.parser.version == "2.x"
        assert settings.parser.max_document_bytes == 2048
        assert settings.generation.project_name == "demo-flow"
        assert settings.generation.allow_orphans is True

    def test_load_with_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(
            """
parser:
  strict: true
"""
        )
        monkeypatch.setenv("FLOWGEN_PARSER__STRICT", "false")

        settings = load_settings(config_file)
        assert settings.parser.strict is False

    def test_load_validates_schema(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(
            """
parser:
  version: "9.x"
"""
        )

        with pytest.raises(ValidationError):
            load_settings(config_file)

    def test_load_missing_file_raises_file_not_found(self, tmp_path: Path) -> None:
        missing_file = tmp_path / "nonexistent.yaml"

        with pytest.raises(FileNotFoundError, match="nonexistent.yaml"):
            load_settings(missing_file)

    def test_generation_options_keep_their_case(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(
            """
generation:
  options:
    modelName: gpt-4o
"""
        )

        settings = load_settings(config_file)
        assert settings.generation.options == {"modelName": "gpt-4o"}
