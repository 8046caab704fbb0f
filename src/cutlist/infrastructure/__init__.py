"""Infrastructure layer - packers, sequencing, offcut storage and formatters."""

from .clock import Clock, utc_now
from .cut_sequencer import CutSequencer, estimated_cut_time, replay, total_cutting_length
from .estimation import DEFAULT_QUOTE_BUFFER, EstimationPacker
from .formatters import (
    EstimationFormatter,
    InvalidationReasonFormatter,
    JsonExporter,
    NestingFormatter,
    RAGMessageFormatter,
)
from .nesting import GuillotineNester
from .offcuts import InMemoryOffcutStore, OffcutStore, OffcutTracker

__all__ = [
    # Packing
    "DEFAULT_QUOTE_BUFFER",
    "EstimationPacker",
    "GuillotineNester",
    # Cut sequencing
    "CutSequencer",
    "estimated_cut_time",
    "replay",
    "total_cutting_length",
    # Offcuts
    "InMemoryOffcutStore",
    "OffcutStore",
    "OffcutTracker",
    # Formatters
    "EstimationFormatter",
    "InvalidationReasonFormatter",
    "JsonExporter",
    "NestingFormatter",
    "RAGMessageFormatter",
    # Time
    "Clock",
    "utc_now",
]
