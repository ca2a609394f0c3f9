"""Text similarity scores used for duplicate detection.

All functions are pure and return a score in [0, 1] (1.0 = identical),
except :func:`levenshtein_distance` which returns an edit count.
Empty strings are valid input; ``None`` is a programmer error and
raises ``TypeError``.
"""

from __future__ import annotations

PARAGRAPH_SAMPLE = 3
SUBSTRING_PENALTY = 0.8
MIN_TOKEN_LEN = 4


def _require_text(*values: str) -> None:
    for value in values:
        if not isinstance(value, str):
            raise TypeError(f"expected str, got {type(value).__name__}")


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    _require_text(a, b)
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i] + [0] * len(b)
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current[j] = previous[j - 1]
            else:
                current[j] = 1 + min(previous[j], current[j - 1], previous[j - 1])
        previous = current
    return previous[-1]


def _edit_similarity(a: str, b: str) -> float:
    return 1 - levenshtein_distance(a, b) / max(len(a), len(b), 1)


def title_similarity(a: str, b: str) -> float:
    """Case-insensitive title match with a substring shortcut."""
    _require_text(a, b)
    t1 = a.strip().lower()
    t2 = b.strip().lower()
    if t1 == t2:
        return 1.0

    if t1 in t2 or t2 in t1:
        return SUBSTRING_PENALTY * (min(len(t1), len(t2)) / max(len(t1), len(t2)))

    return _edit_similarity(t1, t2)


def body_similarity(a: str, b: str) -> float:
    """Paragraph-sampled edit similarity, scaled by paragraph-count ratio.

    Compares up to the first three corresponding non-empty lines and
    multiplies the average by ``min(count)/max(count)`` so documents with
    very different structure score low.
    """
    _require_text(a, b)
    b1 = a.strip().lower()
    b2 = b.strip().lower()
    if b1 == b2:
        return 1.0

    paragraphs1 = [p for p in b1.split("\n") if p.strip()]
    paragraphs2 = [p for p in b2.split("\n") if p.strip()]
    if not paragraphs1 or not paragraphs2:
        return 0.0

    count_ratio = min(len(paragraphs1), len(paragraphs2)) / max(
        len(paragraphs1), len(paragraphs2)
    )
    sample = min(PARAGRAPH_SAMPLE, len(paragraphs1), len(paragraphs2))
    total = sum(_edit_similarity(paragraphs1[i], paragraphs2[i]) for i in range(sample))
    return (total / sample) * count_ratio


def _word_set(text: str) -> set[str]:
    return {w for w in text.split() if len(w) >= MIN_TOKEN_LEN}


def jaccard_word_similarity(a: str, b: str) -> float:
    """Word-set overlap ignoring tokens of three characters or fewer.

    Tokens are whitespace-separated and compared as-is; callers
    lowercase first when case should not matter.
    """
    _require_text(a, b)
    words1 = _word_set(a)
    words2 = _word_set(b)
    if not words1 or not words2:
        return 0.0
    return len(words1 & words2) / len(words1 | words2)
