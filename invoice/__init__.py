"""
Invoice Package

Consumer side of voice commands: applying parsed updates and items to a
nested invoice record, and validating voice-entered values.

Usage:
    from voice_parser import parse_voice_command
    from invoice import new_invoice, apply_voice_command, validate_updates

    result = parse_voice_command(transcript)
    cleaned, errors = validate_updates(result.updates)
    invoice, applied = apply_voice_command(new_invoice(), result)
"""

from .record import (
    SECTIONS,
    DEFAULT_LINE_ITEM,
    new_invoice,
    split_path,
    apply_updates,
    append_items,
    apply_voice_command,
    apply_row_command,
    next_item_id,
)

from .validators import (
    GST_RATES,
    VoiceUpdateValidator,
    LineItemValidator,
    sanitize_text,
    validate_updates,
    validate_item,
)

__all__ = [
    # Record
    'SECTIONS',
    'DEFAULT_LINE_ITEM',
    'new_invoice',
    'split_path',
    'apply_updates',
    'append_items',
    'apply_voice_command',
    'apply_row_command',
    'next_item_id',

    # Validators
    'GST_RATES',
    'VoiceUpdateValidator',
    'LineItemValidator',
    'sanitize_text',
    'validate_updates',
    'validate_item',
]
