"""
Trigger Matcher

Finds where labelled fields start in a spoken segment.

Every trigger phrase of every rule is searched for as a literal substring.
An occurrence only counts when it stands as whole words, so "date" is found
in "issue date 2024-12-25" but not inside "update" or "dated".

Phrases regularly overlap: "client email" contains "email", "due date"
contains "date". Overlaps are resolved by keeping the longest phrase, which
is how "client email x" ends up in client.email rather than sender.email.
"""

import re
from dataclasses import dataclass

from loguru import logger

from .rules import RuleTable


_WORD_CHAR = re.compile(r'[a-zA-Z0-9]')


@dataclass(frozen=True)
class TriggerMatch:
    """One accepted occurrence of a trigger phrase."""
    phrase: str
    start: int
    destination: str
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length

    def overlaps(self, other: 'TriggerMatch') -> bool:
        return self.start < other.end and self.end > other.start


def is_word_char(char: str) -> bool:
    """True for characters that glue onto a trigger phrase ([a-zA-Z0-9])."""
    return bool(_WORD_CHAR.fullmatch(char))


def _stands_alone(text: str, start: int, length: int) -> bool:
    before = text[start - 1] if start > 0 else ' '
    end = start + length
    after = text[end] if end < len(text) else ' '
    return not is_word_char(before) and not is_word_char(after)


def find_trigger_matches(text: str, rules: RuleTable) -> list[TriggerMatch]:
    """
    Find every whole-word occurrence of every trigger phrase.

    Results are in discovery order: rule by rule, phrase by phrase,
    left to right.
    """
    found = []

    for rule in rules:
        for phrase in rule.triggers:
            if not phrase:
                continue
            index = text.find(phrase)
            while index != -1:
                if _stands_alone(text, index, len(phrase)):
                    found.append(TriggerMatch(
                        phrase=phrase,
                        start=index,
                        destination=rule.destination,
                        length=len(phrase),
                    ))
                index = text.find(phrase, index + 1)

    return found


def resolve_overlaps(candidates: list[TriggerMatch]) -> list[TriggerMatch]:
    """
    Keep the longest non-overlapping matches, ordered by position.

    Candidates are visited longest first (ties keep discovery order) and a
    candidate survives only if it does not intersect an accepted span.
    """
    accepted: list[TriggerMatch] = []

    for candidate in sorted(candidates, key=lambda m: m.length, reverse=True):
        if not any(candidate.overlaps(kept) for kept in accepted):
            accepted.append(candidate)

    accepted.sort(key=lambda m: m.start)
    return accepted


def match_triggers(text: str, rules: RuleTable) -> list[TriggerMatch]:
    """
    Find active trigger matches in a segment.

    Args:
        text: Normalized (lowercase) segment text
        rules: Rule table to match against

    Returns:
        Non-overlapping matches sorted by start offset
    """
    if not text:
        return []

    active = resolve_overlaps(find_trigger_matches(text, rules))

    if active:
        logger.debug(
            "Active triggers: "
            + ", ".join(f"'{m.phrase}'@{m.start}->{m.destination}" for m in active)
        )
    return active
