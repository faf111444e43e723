# jokko/services/recommendation_notes.py
"""
Tag extraction from free-text recommendation notes.

Notes may embed two segments, in any order, anywhere in the text:

    "Great work. Liked: Fast, Cheap | Watch: Late sometimes"

Each segment runs from its marker to the next "|" (or end of note) and is a
comma-separated label list. Markers are matched case-insensitively; labels
keep their original case ("Professional" and "professional" are distinct).
"""
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

LIKED_PATTERN = re.compile(r"Liked:\s*([^|]+)", re.IGNORECASE)
WATCH_PATTERN = re.compile(r"Watch:\s*([^|]+)", re.IGNORECASE)

TOP_LIKES_LIMIT = 3
TOP_WATCH_LIMIT = 2


@dataclass
class ParsedNote:
    liked: list[str] = field(default_factory=list)
    watch: list[str] = field(default_factory=list)


def _labels(pattern: re.Pattern[str], note: str) -> list[str]:
    match = pattern.search(note)
    if not match:
        return []
    return [piece.strip() for piece in match.group(1).split(",") if piece.strip()]


def parse_note(note: str | None) -> ParsedNote:
    """
    Extract liked / watch labels from one note.

    Each marker is searched independently; a missing marker gives [].
    """
    text = note or ""
    return ParsedNote(
        liked=_labels(LIKED_PATTERN, text),
        watch=_labels(WATCH_PATTERN, text),
    )


def _rank(counts: Counter[str]) -> list[str]:
    # Counter preserves first-seen order and sorted() is stable,
    # so equal counts keep first-encountered order.
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return list(dict.fromkeys(label for label, _ in ranked))


def aggregate_tags(
    notes: Iterable[str | None],
    likes_limit: int = TOP_LIKES_LIMIT,
    watch_limit: int = TOP_WATCH_LIMIT,
) -> tuple[list[str], list[str]]:
    """
    Aggregate labels across all notes of one provider.

    Returns:
        (top_likes, top_watch), each ordered by descending frequency.
    """
    like_counts: Counter[str] = Counter()
    watch_counts: Counter[str] = Counter()

    for note in notes:
        parsed = parse_note(note)
        like_counts.update(parsed.liked)
        watch_counts.update(parsed.watch)

    return _rank(like_counts)[:likes_limit], _rank(watch_counts)[:watch_limit]
