"""Staged generation of blueprint, test and answer key."""

from examgen_core.generation.orchestrator import GenerationOrchestrator
from examgen_core.generation.progress import ProgressTicker
from examgen_core.generation.stages import GenerationBackend, ModelGenerationBackend

__all__ = [
    "GenerationBackend",
    "GenerationOrchestrator",
    "ModelGenerationBackend",
    "ProgressTicker",
]
