"""
Voice Command Parser

Entry point that turns one speech-to-text transcript into invoice edits.

Architecture:
1. Segment the transcript into a global part and item parts
2. Match trigger phrases in the global part against the global rules
3. Slice values between triggers and normalize them per destination
4. Assemble a line item draft from every item part

The parser holds no state between calls. A transcript it does not
understand produces an empty result, never an exception.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .item_assembler import ITEM_FIELDS, ItemDraft, assemble_items, fields_from_segment
from .normalizers import VoiceFieldNormalizer
from .rules import ConfigLoader, ParserConfig
from .segmenter import normalize_transcript, segment_transcript
from .trigger_matcher import match_triggers
from .value_extractor import extract_values


@dataclass
class ParseResult:
    """
    Result of parsing one voice command.
    """
    updates: dict[str, str] = field(default_factory=dict)      # destination path → value
    new_items: list[ItemDraft] = field(default_factory=list)   # dictated line items

    @property
    def is_empty(self) -> bool:
        """True when nothing in the transcript was understood."""
        return not self.updates and not self.new_items

    def to_dict(self, include_ids: bool = False) -> dict[str, Any]:
        """Convert to the {"updates", "newItems"} shape the invoice form consumes."""
        return {
            'updates': dict(self.updates),
            'newItems': [item.to_dict(include_id=include_ids) for item in self.new_items],
        }


class VoiceCommandParser:
    """
    Parses transcripts into field updates and new line items.

    Usage:
        parser = VoiceCommandParser()
        result = parser.parse("client name acme add item description soap price 100")
        result.updates     # {'client.name': 'acme'}
        result.new_items   # [ItemDraft(description='soap', price=100.0, ...)]
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        config_path: Optional[Path] = None,
    ):
        """
        Initialize the parser.

        Args:
            config: Parser configuration (defaults if omitted)
            config_path: YAML rule file (alternative to config)
        """
        if config_path:
            config = ConfigLoader(config_path).config

        self.config = config or ParserConfig()
        self.normalizer = VoiceFieldNormalizer(date_formats=self.config.date_formats)

    def parse(self, transcript: Optional[str]) -> ParseResult:
        """
        Parse one transcript.

        Args:
            transcript: Finalized speech-to-text output

        Returns:
            ParseResult with global updates and item drafts
        """
        global_segment, item_segments = segment_transcript(
            transcript or "",
            splitters=self.config.item_splitters,
            word_boundary=self.config.splitter_word_boundary,
        )

        updates = self.parse_fields(global_segment)
        new_items = assemble_items(item_segments, self.config.item_rules, self.normalizer)

        result = ParseResult(updates=updates, new_items=new_items)

        if result.is_empty:
            logger.debug("No recognizable command in transcript")
        else:
            logger.debug(
                f"Parsed {len(updates)} field update(s) and {len(new_items)} new item(s)"
            )
        return result

    def parse_fields(self, segment: str) -> dict[str, str]:
        """
        Extract global field updates from a (normalized) segment.
        """
        matches = match_triggers(segment, self.config.global_rules)
        values = extract_values(segment, matches)
        return {
            path: str(value)
            for path, value in self.normalizer.normalize_all(values).items()
        }

    def parse_item_details(self, text: Optional[str]) -> dict[str, Any]:
        """
        Parse a command spoken against a single existing line item.

        Unlike new items, nothing is defaulted: only the fields actually
        spoken are returned.

            "description soap quantity 5" → {'description': 'soap', 'quantity': 5.0}
        """
        segment = normalize_transcript(text)
        fields = fields_from_segment(segment, self.config.item_rules, self.normalizer)
        return {name: value for name, value in fields.items() if name in ITEM_FIELDS}


def parse_voice_command(transcript: Optional[str]) -> ParseResult:
    """
    Convenience function to parse a transcript with the default rules.
    """
    return VoiceCommandParser().parse(transcript)


def parse_item_details(text: Optional[str]) -> dict[str, Any]:
    """
    Convenience function to parse a single-row item command with the default rules.
    """
    return VoiceCommandParser().parse_item_details(text)
