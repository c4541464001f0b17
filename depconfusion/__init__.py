from depconfusion.confusion import Confusion
from depconfusion.numberer import Numberer
from depconfusion.scorer import (
    AlignmentError,
    InputUnavailableError,
    MissingHeadError,
    Scorer,
    ScoringError,
    ScoringOptions,
    ScoringResult,
    score_files,
)

__all__ = [
    "AlignmentError",
    "Confusion",
    "InputUnavailableError",
    "MissingHeadError",
    "Numberer",
    "Scorer",
    "ScoringError",
    "ScoringOptions",
    "ScoringResult",
    "score_files",
]
