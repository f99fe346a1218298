"""Per-cycle sample generation: place, render, encode and write."""

from src.orchestrator.lib import (
    STEM_PREFIX,
    STEM_TIME_FORMAT,
    CycleResult,
    DatasetLayout,
    SampleOrchestrator,
    SampleStemAllocator,
    WriteError,
    create_orchestrator,
    validate_catalog,
)

__all__ = [
    "CycleResult",
    "DatasetLayout",
    "SampleOrchestrator",
    "SampleStemAllocator",
    "WriteError",
    "create_orchestrator",
    "validate_catalog",
    "STEM_PREFIX",
    "STEM_TIME_FORMAT",
]
