"""
Validators Module

Validation of voice-entered invoice fields using Pydantic.

Why validation matters:
- Speech-to-text mangles identifiers (GSTINs, phone numbers, emails)
- A value that parsed is not necessarily a value the invoice can carry
- Problems are reported per field so the form can highlight them

Validation never raises to the caller: results come back as data.
"""

import math
import re
from datetime import datetime
from typing import Any, Optional, Union

from loguru import logger
from pydantic import BaseModel, ValidationError, ValidationInfo, field_validator, model_validator

from voice_parser import ItemDraft


PATTERNS = {
    # 2 digits + 5 letters + 4 digits + 1 letter + 1 alphanumeric (not 0) + Z + 1 alphanumeric
    'gstin': re.compile(r'^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$'),
    'email': re.compile(r'^[a-zA-Z0-9._-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'),
    'phone': re.compile(r'^[6-9]\d{9}$'),  # Indian mobile number
    'invoice_number': re.compile(r'^[A-Z0-9\-/]{1,20}$'),
    'html_tags': re.compile(r'<[^>]*>?', re.MULTILINE),
    'dangerous': re.compile(r'(javascript:|vbscript:|data:|onclick|onload|onerror)', re.IGNORECASE),
}

GST_RATES = (0, 5, 12, 18, 28)

# Destination path → validator model field
PATH_FIELDS = {
    'sender.name': 'sender_name',
    'sender.email': 'sender_email',
    'sender.phone': 'sender_phone',
    'sender.taxId': 'sender_tax_id',
    'client.name': 'client_name',
    'client.email': 'client_email',
    'client.taxId': 'client_tax_id',
    'meta.number': 'meta_number',
    'meta.date': 'meta_date',
    'meta.dueDate': 'meta_due_date',
}

LABELS = {
    'sender_name': 'Business Name',
    'client_name': 'Client Name',
    'meta_date': 'Date',
    'meta_due_date': 'Due Date',
}


def sanitize_text(text: Any) -> str:
    """Strip HTML tags and surrounding whitespace."""
    if not text:
        return ""
    return PATTERNS['html_tags'].sub('', str(text)).strip()


def _error_message(error: dict) -> str:
    msg = error.get('msg', 'Invalid value')
    return msg.removeprefix('Value error, ')


class VoiceUpdateValidator(BaseModel):
    """
    Pydantic model for voice-entered invoice field updates.

    Validators also clean the spoken form: GSTINs and invoice numbers are
    uppercased, spaces dropped from identifiers.
    """
    sender_name: Optional[str] = None
    sender_email: Optional[str] = None
    sender_phone: Optional[str] = None
    sender_tax_id: Optional[str] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_tax_id: Optional[str] = None
    meta_number: Optional[str] = None
    meta_date: Optional[str] = None
    meta_due_date: Optional[str] = None

    @field_validator('sender_name', 'client_name')
    @classmethod
    def validate_name(cls, v, info: ValidationInfo):
        """Names are 2-100 characters of plain text."""
        if v is None:
            return None
        label = LABELS.get(info.field_name, 'Name')
        sanitized = sanitize_text(v)
        if not sanitized:
            raise ValueError(f'{label} is invalid')
        if len(sanitized) < 2:
            raise ValueError(f'{label} must be at least 2 characters')
        if len(sanitized) > 100:
            raise ValueError(f'{label} must be under 100 characters')
        if PATTERNS['dangerous'].search(sanitized):
            raise ValueError(f'{label} contains invalid content')
        return sanitized

    @field_validator('sender_email', 'client_email')
    @classmethod
    def validate_email(cls, v):
        if v is None:
            return None
        if not PATTERNS['email'].match(v):
            raise ValueError('Invalid email address')
        return v

    @field_validator('sender_phone')
    @classmethod
    def validate_phone(cls, v):
        """Indian mobile numbers, spoken with or without spaces and +91."""
        if v is None:
            return None
        v = re.sub(r'[\s\-]', '', v)
        v = re.sub(r'^\+?91(?=\d{10}$)', '', v)
        if not PATTERNS['phone'].match(v):
            raise ValueError('Invalid mobile number (10 digits)')
        return v

    @field_validator('sender_tax_id', 'client_tax_id')
    @classmethod
    def validate_gstin(cls, v):
        if v is None:
            return None
        v = re.sub(r'\s+', '', v).upper()
        if len(v) != 15:
            raise ValueError('GSTIN must be exactly 15 characters')
        if not PATTERNS['gstin'].match(v):
            raise ValueError('Invalid GSTIN format (e.g., 29ABCDE1234F1Z5)')
        return v

    @field_validator('meta_number')
    @classmethod
    def validate_invoice_number(cls, v):
        if v is None:
            return None
        v = re.sub(r'\s+', '', v).upper()
        if not PATTERNS['invoice_number'].match(v):
            raise ValueError('Invalid Invoice Number (A-Z, 0-9, -, / only)')
        return v

    @field_validator('meta_date', 'meta_due_date')
    @classmethod
    def validate_date(cls, v, info: ValidationInfo):
        """Dates must have been normalized to YYYY-MM-DD."""
        if v is None:
            return None
        label = LABELS.get(info.field_name, 'Date')
        try:
            datetime.strptime(v, '%Y-%m-%d')
        except ValueError:
            raise ValueError(f'Invalid {label}')
        return v


class LineItemValidator(BaseModel):
    """
    Pydantic model for a single line item.
    """
    description: Any = None
    quantity: Any = None
    price: Any = None
    igst: Any = 0
    cgst: Any = 0
    sgst: Any = 0

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        if not v or not str(v).strip():
            raise ValueError('Required')
        return str(v).strip()

    @field_validator('quantity')
    @classmethod
    def validate_quantity(cls, v):
        try:
            qty = float(v)
        except (TypeError, ValueError):
            raise ValueError('Qty > 0')
        if not qty > 0:
            raise ValueError('Qty > 0')
        return qty

    @field_validator('price')
    @classmethod
    def validate_price(cls, v):
        if v is None or v == '':
            raise ValueError('Price is required')
        try:
            amount = float(v)
        except (TypeError, ValueError):
            raise ValueError('Price must be a number')
        if math.isnan(amount):
            raise ValueError('Price must be a number')
        if amount < 0:
            raise ValueError('Price cannot be negative')
        if not math.isfinite(amount):
            raise ValueError('Price is invalid')
        return amount

    @field_validator('igst', 'cgst', 'sgst')
    @classmethod
    def validate_rate_number(cls, v):
        try:
            return float(v or 0)
        except (TypeError, ValueError):
            raise ValueError('Invalid GST Rate')

    @field_validator('igst')
    @classmethod
    def validate_igst(cls, v):
        if v not in GST_RATES:
            raise ValueError('Invalid GST Rate')
        return v

    @model_validator(mode='after')
    def validate_split_rate(self):
        """CGST and SGST together must add up to a GST slab."""
        if (self.cgst + self.sgst) not in GST_RATES:
            raise ValueError('Invalid GST Rate')
        return self


def validate_updates(updates: dict[str, str]) -> tuple[dict[str, str], dict[str, str]]:
    """
    Validate parsed field updates.

    Paths without validation rules pass through unchanged.

    Args:
        updates: Dict of {destination_path: value}

    Returns:
        Tuple of (cleaned_updates, {destination_path: error_message}).
        Invalid paths are left out of cleaned_updates.
    """
    cleaned = {}
    errors = {}

    for path, value in updates.items():
        field_name = PATH_FIELDS.get(path)
        if field_name is None:
            cleaned[path] = value
            continue

        try:
            model = VoiceUpdateValidator(**{field_name: value})
        except ValidationError as e:
            errors[path] = _error_message(e.errors()[0])
            logger.debug(f"{path}: {errors[path]}")
            continue

        cleaned[path] = getattr(model, field_name)

    return cleaned, errors


def validate_item(item: Union[ItemDraft, dict[str, Any]]) -> dict[str, str]:
    """
    Validate a line item (draft or record).

    Returns:
        Dict of {field_name: error_message}; empty when the item is valid
    """
    data = item.to_dict() if isinstance(item, ItemDraft) else dict(item)
    fields = {k: data.get(k) for k in LineItemValidator.model_fields if k in data}

    try:
        LineItemValidator(**fields)
    except ValidationError as e:
        errors = {}
        for error in e.errors():
            loc = error.get('loc') or ('gst',)
            errors.setdefault(str(loc[0]), _error_message(error))
        return errors

    return {}
