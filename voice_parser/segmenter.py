"""
Transcript Segmenter

Splits a transcript into the part that sets invoice-wide fields and the
parts that each describe one new line item.

    "client name acme add item description soap add item description towel"
      → global:  "client name acme"
      → items:   ["description soap", "description towel"]
"""

import re
from typing import Iterable

from loguru import logger

from .rules import ITEM_SPLITTERS


def normalize_transcript(transcript) -> str:
    """Lowercase and trim a transcript; None becomes an empty string."""
    if transcript is None:
        return ""
    return str(transcript).lower().strip()


def _splitter_pattern(splitters: Iterable[str], word_boundary: bool) -> re.Pattern:
    # Longest first so a phrase that extends another is preferred at one position
    phrases = sorted(set(splitters), key=len, reverse=True)
    alternation = '|'.join(re.escape(p) for p in phrases)
    if word_boundary:
        return re.compile(rf'(?<![a-zA-Z0-9])(?:{alternation})(?![a-zA-Z0-9])')
    return re.compile(alternation)


def segment_transcript(
    transcript: str,
    splitters: Iterable[str] = ITEM_SPLITTERS,
    word_boundary: bool = True,
) -> tuple[str, list[str]]:
    """
    Split a transcript into a global segment and item segments.

    Args:
        transcript: Raw transcript text
        splitters: Phrases that start a new line item
        word_boundary: Only split where the phrase stands as whole words

    Returns:
        Tuple of (global_segment, item_segments)
    """
    text = normalize_transcript(transcript)
    splitters = tuple(s for s in splitters if s)

    if not text or not splitters:
        return text, []

    pattern = _splitter_pattern(splitters, word_boundary)
    first = pattern.search(text)

    if first is None:
        return text, []

    global_segment = text[:first.start()].strip()
    pieces = pattern.split(text[first.start():])
    item_segments = [p.strip() for p in pieces if p.strip()]

    logger.debug(
        f"Segmented transcript into global part ({len(global_segment)} chars) "
        f"and {len(item_segments)} item part(s)"
    )
    return global_segment, item_segments
