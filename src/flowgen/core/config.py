"""
Configuration schema and loading for flowgen.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from flowgen.contracts.fragments import GenerationContext

# Flowise exports larger than this are rejected before parsing.
DEFAULT_MAX_DOCUMENT_BYTES = 10 * 1024 * 1024


class ParserSettings(BaseModel):
    """Ingestion settings: schema selection, size ceiling, warnings.

    Example YAML:
        parser:
          strict: false
          version: "2.x"
          max_document_bytes: 1048576
    """

    model_config = {"frozen": True, "extra": "forbid"}

    strict: bool = Field(
        default=True,
        description="Reject unrecognized top-level fields",
    )
    minimal: bool = Field(
        default=False,
        description="Only check structural shape, skip deep per-field checks",
    )
    version: Literal["auto", "1.x", "2.x"] = Field(
        default="auto",
        description="Schema dialect; 'auto' runs version detection",
    )
    max_document_bytes: int = Field(
        default=DEFAULT_MAX_DOCUMENT_BYTES,
        gt=0,
        description="Size ceiling checked before parsing",
    )
    fetch_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for URL fetching",
    )
    include_warnings: bool = Field(
        default=True,
        description="Generate best-practice and deprecation warnings",
    )
    deprecated_node_types: tuple[str, ...] = Field(
        default=("textSplitter", "pdfLoader"),
        description="Node types reported as deprecated",
    )
    large_flow_node_threshold: int = Field(
        default=50,
        gt=0,
        description="Node count above which a performance warning is emitted",
    )
    low_confidence_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Dialect confidence below which a compatibility warning is emitted",
    )


class GenerationSettings(BaseModel):
    """Settings for fragment assembly."""

    model_config = {"frozen": True, "extra": "forbid"}

    target_language: Literal["typescript", "python"] = "typescript"
    project_name: str = Field(default="converted-flow", min_length=1)
    include_langfuse: bool = False
    allow_orphans: bool = Field(
        default=False,
        description="Generate graphs with isolated nodes (orphans become warnings)",
    )
    options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("project_name")
    @classmethod
    def validate_project_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("project_name must not be blank")
        return v

    def to_context(self) -> GenerationContext:
        """Build the converter-facing context for one assembly."""
        return GenerationContext(
            target_language=self.target_language,
            project_name=self.project_name,
            include_langfuse=self.include_langfuse,
            options=dict(self.options),
        )


class FlowgenSettings(BaseModel):
    """Top-level settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    parser: ParserSettings = Field(default_factory=ParserSettings)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)


def load_settings(config_path: Path) -> FlowgenSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (FLOWGEN_*) - highest priority
    2. Config file (settings.yaml)
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: FLOWGEN_PARSER__STRICT=false for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated FlowgenSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="FLOWGEN",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; convert to lowercase for Pydantic
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): _lower_section_keys(v) for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    return FlowgenSettings(**raw_config)


def _lower_section_keys(value: Any) -> Any:
    """Lowercase one level of section keys; generation.options keeps its case."""
    if isinstance(value, dict):
        return {str(k).lower(): v for k, v in value.items()}
    return value
