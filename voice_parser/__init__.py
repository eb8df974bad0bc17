"""
Voice Parser Package

This package turns spoken invoice commands into structured edits.
It includes:
- Transcript segmentation into global and line item parts
- Trigger phrase matching with longest-match overlap resolution
- Value extraction and per-field normalization (emails, dates, numbers)
- Line item assembly with defaults

Usage:
    from voice_parser import VoiceCommandParser, parse_voice_command

    result = parse_voice_command("client email jay at gmail dot com")
    result.updates  # {'client.email': 'jay@gmail.com'}

    # Custom trigger tables
    parser = VoiceCommandParser(config_path=Path("config/commands.yaml"))
    result = parser.parse(transcript)
"""

from .rules import (
    ConfigError,
    ConfigLoader,
    ParserConfig,
    TriggerRule,
    GLOBAL_RULES,
    ITEM_RULES,
    ITEM_SPLITTERS,
)

from .segmenter import (
    normalize_transcript,
    segment_transcript,
)

from .trigger_matcher import (
    TriggerMatch,
    match_triggers,
)

from .value_extractor import (
    clean_value,
    extract_values,
)

from .normalizers import (
    EmailNormalizer,
    DateNormalizer,
    NumberNormalizer,
    VoiceFieldNormalizer,
    normalize_email,
    normalize_date,
    normalize_number,
)

from .item_assembler import (
    ItemDraft,
    assemble_items,
)

from .command_parser import (
    ParseResult,
    VoiceCommandParser,
    parse_voice_command,
    parse_item_details,
)

__all__ = [
    # Rules
    'ConfigError',
    'ConfigLoader',
    'ParserConfig',
    'TriggerRule',
    'GLOBAL_RULES',
    'ITEM_RULES',
    'ITEM_SPLITTERS',

    # Segmenting and matching
    'normalize_transcript',
    'segment_transcript',
    'TriggerMatch',
    'match_triggers',
    'clean_value',
    'extract_values',

    # Normalizers
    'EmailNormalizer',
    'DateNormalizer',
    'NumberNormalizer',
    'VoiceFieldNormalizer',
    'normalize_email',
    'normalize_date',
    'normalize_number',

    # Items
    'ItemDraft',
    'assemble_items',

    # Entry points
    'ParseResult',
    'VoiceCommandParser',
    'parse_voice_command',
    'parse_item_details',
]
