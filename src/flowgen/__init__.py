"""
Flowgen: dependency-ordered code-fragment assembly for visual LLM flows.

Ingests node/edge graphs exported from no-code flow editors, validates and
analyzes them, and produces a topologically ordered, deduplicated list of
code fragments ready for a target-language emitter.
"""

__version__ = "0.1.0"
