# src/flowgen/engine/__init__.py
"""Fragment assembly and the end-to-end conversion pipeline."""

from flowgen.engine.assembler import FragmentAssembler, precondition_errors
from flowgen.engine.dedup import merge_imports
from flowgen.engine.pipeline import ConversionPipeline

__all__ = [
    "ConversionPipeline",
    "FragmentAssembler",
    "merge_imports",
    "precondition_errors",
]
