# tests/conftest.py
"""Shared test fixtures and Hypothesis configuration.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import os

import pytest
from hypothesis import Phase, Verbosity, settings

from flowgen.core.config import ParserSettings
from flowgen.core.parser import FlowParser
from flowgen.registry import ConverterRegistry
from tests.fixtures.converters import StaticConverter

# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def parser() -> FlowParser:
    return FlowParser(ParserSettings())


@pytest.fixture
def registry() -> ConverterRegistry:
    """Registry covering the node types the flow builders use by default."""
    registry = ConverterRegistry()
    registry.register_converter(StaticConverter("chatOpenAI", category="chat_models", dependencies=("@langchain/openai",)))
    registry.register_converter(
        StaticConverter(
            "llmChain",
            category="chains",
            imports=(("langchain/chains", ("LLMChain",)),),
            dependencies=("langchain",),
        )
    )
    registry.register_converter(
        StaticConverter(
            "bufferMemory",
            category="memory",
            imports=(("langchain/memory", ("BufferMemory",)),),
            dependencies=("langchain",),
        )
    )
    return registry
