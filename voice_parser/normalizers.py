"""
Normalizers Module

Turns spoken field values into the form the invoice record stores.

What normalization does:
- Emails → "jay at gmail dot com" becomes "jay@gmail.com"
- Dates → ISO format (YYYY-MM-DD), "10th october 2024" → "2024-10-10"
- Item numbers → floats, "18 percent" → 18.0
- Everything else → kept as spoken

Speech-to-text output is loose: browsers sometimes already write "@" and
sometimes spell "at", ordinals come back as "1st"/"2nd", numbers carry units.
A value that cannot be normalized is never an error; it is stored as heard.
"""

import re
from datetime import datetime
from typing import Optional, Union

from dateutil import parser as date_parser
from loguru import logger

from .rules import DEFAULT_DATE_FORMATS


NUMERIC_ITEM_FIELDS = frozenset({'quantity', 'price', 'igst', 'cgst', 'sgst'})

_SPOKEN_AT = re.compile(r'\s+at\s+')
_SPOKEN_DOT = re.compile(r'\s+dot\s+')
_WHITESPACE = re.compile(r'\s+')
_REPEATED_AT = re.compile(r'@+')
_REPEATED_DOT = re.compile(r'\.\.+')

_ORDINAL_SUFFIX = re.compile(r'(\d+)(st|nd|rd|th)')

# Differs from any January 1st in year, month and day
_SHIFTED_DEFAULT = datetime(2000, 2, 2)

_NUMBER = re.compile(r'\d+(\.\d+)?')


class EmailNormalizer:
    """Rebuilds email addresses from spoken words."""

    @staticmethod
    def normalize(value: str) -> str:
        """
        Normalize a spoken email address.

        - " at " → "@", " dot " → "."
        - Remaining whitespace removed, lowercased
        - Doubled "@" or "." collapsed (the browser may have converted already)
        """
        if not value:
            return ""

        value = _SPOKEN_AT.sub('@', value)
        value = _SPOKEN_DOT.sub('.', value)
        value = _WHITESPACE.sub('', value).lower()
        value = _REPEATED_AT.sub('@', value)
        value = _REPEATED_DOT.sub('.', value)
        return value


class DateNormalizer:
    """Normalizes spoken date values to ISO format."""

    def __init__(self, formats: Optional[tuple[str, ...]] = None):
        """
        Initialize date normalizer.

        Args:
            formats: Exact date formats to try before the free-form parser
        """
        self.formats = tuple(formats) if formats is not None else DEFAULT_DATE_FORMATS

    @staticmethod
    def strip_ordinals(value: str) -> str:
        """"1st" → "1", "22nd" → "22", "10th" → "10"."""
        return _ORDINAL_SUFFIX.sub(r'\1', value)

    def parse(self, value: str) -> Optional[datetime]:
        """
        Parse a cleaned date string.

        Returns:
            Parsed datetime or None when the text is not a calendar date
        """
        if not value or not value.strip():
            return None

        value = value.strip()

        for fmt in self.formats:
            try:
                return datetime.strptime(value, fmt)
            except ValueError:
                continue

        # Free-form fallback, not fuzzy: "sometime next week" must not parse.
        # Missing parts fall back to January 1st of the current year.
        default = datetime(datetime.now().year, 1, 1)
        try:
            parsed = date_parser.parse(value, default=default)
            shifted = date_parser.parse(value, default=_SHIFTED_DEFAULT)
        except (ValueError, OverflowError):
            return None

        # Whole date taken from the defaults: a bare time such as "5 pm"
        if parsed.date() == default.date() and shifted.date() == _SHIFTED_DEFAULT.date():
            return None

        if parsed.tzinfo is not None:
            parsed = parsed.astimezone()
        return parsed

    def normalize(self, value: str) -> str:
        """
        Normalize a date value.

        Uses the parsed date's local calendar fields so no timezone
        conversion can shift the day.

        Returns:
            "YYYY-MM-DD", or the input unchanged if it is not a date
        """
        if not value:
            return value

        parsed = self.parse(self.strip_ordinals(value))

        if parsed is None:
            logger.debug(f"Keeping unparsed date value: {value!r}")
            return value

        return f"{parsed.year:04d}-{parsed.month:02d}-{parsed.day:02d}"


class NumberNormalizer:
    """Normalizes numeric item values."""

    @staticmethod
    def normalize(value: Union[str, int, float, None]) -> float:
        """
        Pull the first number out of a spoken value.

        "5 pieces" → 5.0, "18.5 percent" → 18.5, "five" → 0.0
        """
        if isinstance(value, (int, float)):
            return float(value)
        if not value:
            return 0.0

        match = _NUMBER.search(str(value))
        return float(match.group(0)) if match else 0.0


class VoiceFieldNormalizer:
    """
    Complete normalizer for voice command fields.
    Picks a specialized normalizer from the destination name.
    """

    def __init__(self, date_formats: Optional[tuple[str, ...]] = None):
        """Initialize with optional custom date formats."""
        self.email_norm = EmailNormalizer()
        self.date_norm = DateNormalizer(formats=date_formats)
        self.number_norm = NumberNormalizer()

    def normalize_field(self, value: str, destination: str) -> Union[str, float]:
        """
        Normalize a value for its destination.

        Args:
            value: Cleaned spoken value
            destination: Dotted path ("client.email") or item field ("price")

        Returns:
            Normalized value
        """
        key = destination.lower()

        if 'email' in key:
            return self.email_norm.normalize(value)

        if 'date' in key:
            return self.date_norm.normalize(value)

        if key in NUMERIC_ITEM_FIELDS:
            return self.number_norm.normalize(value)

        return value

    def normalize_all(self, values: dict[str, str]) -> dict[str, Union[str, float]]:
        """
        Normalize every value of an extracted field dict.

        Args:
            values: Dict of destination → cleaned value

        Returns:
            Dict of destination → normalized value
        """
        return {
            destination: self.normalize_field(value, destination)
            for destination, value in values.items()
        }


# Convenience functions

def normalize_email(value: str) -> str:
    """Rebuild a spoken email address."""
    return EmailNormalizer.normalize(value)


def normalize_date(value: str, formats: Optional[tuple[str, ...]] = None) -> str:
    """Normalize a date value to ISO format, or return it unchanged."""
    return DateNormalizer(formats=formats).normalize(value)


def normalize_number(value: str) -> float:
    """Normalize a number value to a float."""
    return NumberNormalizer.normalize(value)
