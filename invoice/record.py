"""
Invoice Record Module

Applies parsed voice commands to a nested invoice record.

The invoice record is a two-level dict: sections (sender, client, meta,
global, payment) holding fields, plus a list of line items. Parser output
addresses fields by dotted path ("client.email"), so applying an update is
splitting the path and writing into the section.
"""

import copy
import re
from datetime import date
from typing import Any, Iterable, Optional

from loguru import logger

from voice_parser import ItemDraft, ParseResult, VoiceCommandParser


SECTIONS = ('sender', 'client', 'meta', 'global', 'payment')

DEFAULT_LINE_ITEM: dict[str, Any] = {
    'description': '',
    'hsn': '',
    'quantity': 1,
    'unit': 'nos',
    'price': 0,
    'gstRate': 18,
    'cgst': 0,
    'sgst': 0,
    'igst': 0,
}

_PRICE_CHARS = re.compile(r'[^0-9.]')
_LEADING_PRICE = re.compile(r'\d*\.?\d+|\d+\.?')


def new_invoice(today: Optional[date] = None) -> dict[str, Any]:
    """
    Create an empty invoice record.

    Args:
        today: Issue date (defaults to the current date)
    """
    today = today or date.today()

    return {
        'sender': {
            'name': '',
            'address': '',
            'state': 'Maharashtra',
            'email': '',
            'phone': '',
            'taxId': '',
            'bankName': '',
            'bankAccount': '',
            'bankIfsc': '',
            'bankBranch': '',
            'signature': '',
        },
        'client': {
            'name': '',
            'company': '',
            'address': '',
            'state': 'Maharashtra',
            'email': '',
            'taxId': '',
        },
        'meta': {
            'number': 'INV-001',
            'date': today.isoformat(),
            'dueDate': '',
            'currency': 'INR',
        },
        'items': [],
        'global': {
            'taxType': 'CGST_SGST',
            'discount': 0,
            'discountType': 'flat',
            'roundOff': True,
            'template': 'classic',
            'notes': '',
            'terms': '',
        },
        'payment': {
            'details': '',
        },
        'amountPaid': 0,
        'status': 'Unpaid',
        'locked': False,
    }


def split_path(path: str) -> Optional[tuple[str, str]]:
    """
    Split "section.field" into its parts.

    Returns:
        (section, field), or None if the path is not two non-empty parts
    """
    parts = path.split('.')
    if len(parts) != 2 or not all(parts):
        return None
    return parts[0], parts[1]


def apply_updates(
    invoice: dict[str, Any],
    updates: dict[str, Any],
) -> tuple[dict[str, Any], list[str]]:
    """
    Merge field updates into a copy of an invoice record.

    Paths whose section is not a known invoice section are skipped.

    Returns:
        Tuple of (updated_invoice, applied_paths)
    """
    result = copy.deepcopy(invoice)
    applied = []

    for path, value in updates.items():
        parts = split_path(path)
        if parts is None or parts[0] not in SECTIONS:
            logger.warning(f"Skipping update for unknown path: {path}")
            continue

        section, field_name = parts
        section_data = result.get(section)
        if not isinstance(section_data, dict):
            section_data = {}
            result[section] = section_data

        section_data[field_name] = value
        applied.append(path)

    return result, applied


def next_item_id(items: Iterable[dict[str, Any]]) -> int:
    """One past the largest integer id among the items (1 for none)."""
    ids = [item.get('id') for item in items]
    numeric = [i for i in ids if isinstance(i, int) and not isinstance(i, bool)]
    return max(numeric, default=0) + 1


def build_line_item(draft: ItemDraft, item_id: int) -> dict[str, Any]:
    """Merge a draft onto the default line item shape."""
    item = dict(DEFAULT_LINE_ITEM)
    item.update(draft.to_dict())
    item['id'] = item_id
    return item


def append_items(
    invoice: dict[str, Any],
    drafts: Iterable[ItemDraft],
) -> dict[str, Any]:
    """
    Append item drafts to a copy of an invoice record as full line items.
    """
    result = copy.deepcopy(invoice)
    items = result.setdefault('items', [])

    for draft in drafts:
        items.append(build_line_item(draft, next_item_id(items)))

    return result


def apply_voice_command(
    invoice: dict[str, Any],
    result: ParseResult,
) -> tuple[dict[str, Any], list[str]]:
    """
    Apply a whole parse result: field updates, then new items.

    Returns:
        Tuple of (updated_invoice, applied_paths)
    """
    updated, applied = apply_updates(invoice, result.updates)
    updated = append_items(updated, result.new_items)

    logger.info(
        f"Applied {len(applied)} field update(s) and "
        f"{len(result.new_items)} new item(s) to invoice"
    )
    return updated, applied


def apply_row_command(
    item: dict[str, Any],
    text: str,
    parser: Optional[VoiceCommandParser] = None,
) -> tuple[dict[str, Any], bool]:
    """
    Update one existing line item from a command spoken on its row.

    Structured commands ("quantity 10 price 50") set the named fields.
    Anything else is read as a bare price ("500") when its digits start with
    a number; sentence periods after it ("500. ok.") are ignored.

    Args:
        item: The line item to update
        text: Transcript spoken on the row
        parser: Parser to read structured fields with (default rules if None)

    Returns:
        Tuple of (updated_item, changed)
    """
    updated = dict(item)
    parser = parser or VoiceCommandParser()
    fields = parser.parse_item_details(text)

    if fields:
        updated.update(fields)
        return updated, True

    match = _LEADING_PRICE.match(_PRICE_CHARS.sub('', text or ''))
    if match is None:
        logger.debug(f"Row command not understood: {text!r}")
        return updated, False

    updated['price'] = float(match.group())
    return updated, True
