"""
Pipeline configuration
======================

`PipelineConfig` holds the few knobs of the batch run. It is validated once,
when built, so the stages can trust it.
"""

from dataclasses import dataclass

from .taxonomy import DEFAULT_MAPPING, CategoryMapping


@dataclass(frozen=True)
class PipelineConfig:
    """High-level knobs for `run_pipeline`."""

    # Keep labels whose count-based percentile rank is >= this value
    frequency_threshold: float = 0.80

    # Ordered rule table used by the taxonomy stage
    mapping: CategoryMapping = DEFAULT_MAPPING

    # >1 splits the records into chunks processed in worker processes
    workers: int = 1
    chunk_size: int = 250_000

    def __post_init__(self) -> None:
        if not 0.0 <= self.frequency_threshold <= 1.0:
            raise ValueError(f"frequency_threshold must be in [0, 1], got {self.frequency_threshold}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}")
