"""
Item Assembler

Builds line item drafts from the item segments of a transcript.

    "description soap quantity 5 price 100"
      → ItemDraft(description="soap", quantity=5.0, price=100.0, ...)

Fields that were not spoken get defaults, so every draft is a complete item.
"""

import uuid
from dataclasses import dataclass, field, asdict
from typing import Any, Optional

from loguru import logger

from .normalizers import VoiceFieldNormalizer
from .rules import ITEM_RULES, RuleTable
from .trigger_matcher import match_triggers
from .value_extractor import extract_values


DEFAULT_DESCRIPTION = "New Item"
ITEM_FIELDS = ('description', 'hsn', 'quantity', 'price', 'igst', 'cgst', 'sgst')


def _new_item_id() -> str:
    return uuid.uuid4().hex


@dataclass
class ItemDraft:
    """
    One dictated line item, normalized but not yet part of an invoice.
    """
    description: str = DEFAULT_DESCRIPTION
    hsn: str = ""
    quantity: float = 1.0
    price: float = 0.0
    igst: float = 0.0
    cgst: float = 0.0
    sgst: float = 0.0
    id: str = field(default_factory=_new_item_id, compare=False)

    def to_dict(self, include_id: bool = False) -> dict[str, Any]:
        """Convert to a plain dict for JSON output."""
        data = asdict(self)
        if not include_id:
            data.pop('id')
        return data


def fields_from_segment(
    segment: str,
    rules: RuleTable = ITEM_RULES,
    normalizer: Optional[VoiceFieldNormalizer] = None,
) -> dict[str, Any]:
    """
    Extract and normalize the item fields spoken in one segment.

    Only fields that were actually spoken are returned.
    """
    normalizer = normalizer or VoiceFieldNormalizer()
    matches = match_triggers(segment, rules)
    values = extract_values(segment, matches)
    return normalizer.normalize_all(values)


def assemble_item(fields: dict[str, Any]) -> ItemDraft:
    """
    Fill defaults for an item's missing fields.

    A spoken quantity that yields no usable number falls back to 1 like an
    unspoken one; a zero-quantity line item is never what was meant.
    """
    return ItemDraft(
        description=fields.get('description') or DEFAULT_DESCRIPTION,
        hsn=fields.get('hsn') or "",
        quantity=fields.get('quantity') or 1.0,
        price=fields.get('price') or 0.0,
        igst=fields.get('igst') or 0.0,
        cgst=fields.get('cgst') or 0.0,
        sgst=fields.get('sgst') or 0.0,
    )


def assemble_items(
    segments: list[str],
    rules: RuleTable = ITEM_RULES,
    normalizer: Optional[VoiceFieldNormalizer] = None,
) -> list[ItemDraft]:
    """
    Build one ItemDraft per item segment.

    Args:
        segments: Item segments from the segmenter
        rules: Item rule table
        normalizer: Field normalizer (default settings if omitted)

    Returns:
        Drafts in transcript order
    """
    normalizer = normalizer or VoiceFieldNormalizer()
    drafts = []

    for segment in segments:
        fields = fields_from_segment(segment, rules, normalizer)
        draft = assemble_item(fields)
        drafts.append(draft)
        logger.debug(f"Assembled item draft: {draft.to_dict()}")

    return drafts
