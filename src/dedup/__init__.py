"""Duplicate detection — similarity scores and the detector."""

from hackfeed.dedup.detector import (  # noqa: F401
    DuplicateCandidate,
    DuplicateDetector,
    ResolveResult,
    SweepResult,
)
from hackfeed.dedup.similarity import (  # noqa: F401
    body_similarity,
    jaccard_word_similarity,
    levenshtein_distance,
    title_similarity,
)
