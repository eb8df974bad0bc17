"""
Value Extractor

Takes the text between one trigger and the next as that trigger's value.

    "client name is acme corp. client email: a@b.com"
      client name  → "acme corp"
      client email → "a@b.com"
"""

import re

from .trigger_matcher import TriggerMatch


_LEADING_NOISE = re.compile(r'^[:\-\s=]+')
_LEADING_COPULA = re.compile(r'^(is|equal to|equals)\s+')
_TRAILING_PERIODS = re.compile(r'[.]+$')


def clean_value(raw: str) -> str:
    """
    Strip separators and filler words spoken around a value.

    - Leading ':', '-', '=' and whitespace
    - A leading "is", "equal to" or "equals"
    - Trailing periods added by speech-to-text punctuation
    """
    value = raw.strip()
    value = _LEADING_NOISE.sub('', value)
    value = _LEADING_COPULA.sub('', value)
    value = _TRAILING_PERIODS.sub('', value)
    return value.strip()


def extract_values(text: str, matches: list[TriggerMatch]) -> dict[str, str]:
    """
    Slice raw field values out of a segment.

    Args:
        text: Segment the matches were found in
        matches: Active matches ordered by start offset

    Returns:
        Dict of destination → cleaned value. Empty values are omitted.
    """
    values = {}

    for i, match in enumerate(matches):
        stop = matches[i + 1].start if i + 1 < len(matches) else len(text)
        value = clean_value(text[match.end:stop])

        if value:
            values[match.destination] = value

    return values
