"""
Tests for invoice record integration and field validation
Run with: pytest tests/ -v
"""

import pytest
from datetime import date
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from invoice import (
    SECTIONS,
    append_items,
    apply_row_command,
    apply_updates,
    apply_voice_command,
    new_invoice,
    next_item_id,
    split_path,
    validate_item,
    validate_updates,
)
from voice_parser import (
    ItemDraft,
    ParserConfig,
    TriggerRule,
    VoiceCommandParser,
    parse_voice_command,
)


class TestInvoiceRecord:
    """Tests for applying updates to an invoice record."""

    def setup_method(self):
        self.invoice = new_invoice(today=date(2024, 1, 15))

    def test_new_invoice(self):
        assert self.invoice['meta']['date'] == '2024-01-15'
        assert self.invoice['meta']['currency'] == 'INR'
        assert self.invoice['items'] == []
        for section in SECTIONS:
            assert isinstance(self.invoice[section], dict)

    def test_split_path(self):
        assert split_path('client.email') == ('client', 'email')
        assert split_path('email') is None
        assert split_path('a.b.c') is None
        assert split_path('.email') is None

    def test_apply_updates(self):
        updates = {
            'client.email': 'x@y.com',
            'payment.details': 'pay by upi',
            'bogus.field': 'x',
            'nodots': 'y',
        }
        updated, applied = apply_updates(self.invoice, updates)

        assert applied == ['client.email', 'payment.details']
        assert updated['client']['email'] == 'x@y.com'
        assert updated['payment']['details'] == 'pay by upi'
        assert 'bogus' not in updated

    def test_apply_updates_does_not_mutate(self):
        apply_updates(self.invoice, {'client.name': 'acme'})
        assert self.invoice['client']['name'] == ''

    def test_apply_updates_creates_missing_section(self):
        updated, applied = apply_updates({'items': []}, {'meta.number': 'inv-7'})
        assert applied == ['meta.number']
        assert updated['meta'] == {'number': 'inv-7'}

    def test_next_item_id(self):
        assert next_item_id([]) == 1
        assert next_item_id([{'id': 3}, {'id': 'abc'}, {'id': 1}]) == 4

    def test_append_items(self):
        invoice = dict(self.invoice, items=[{'id': 1, 'description': 'existing'}])
        drafts = [ItemDraft(description='soap', price=100.0), ItemDraft(description='towel')]

        updated = append_items(invoice, drafts)

        assert [i['id'] for i in updated['items']] == [1, 2, 3]
        soap = updated['items'][1]
        assert soap['description'] == 'soap'
        assert soap['price'] == 100.0
        assert soap['unit'] == 'nos'
        assert soap['gstRate'] == 18
        assert len(invoice['items']) == 1

    def test_apply_voice_command(self):
        result = parse_voice_command(
            "client name acme due date 10th october 2024 add item description soap price 100"
        )
        updated, applied = apply_voice_command(self.invoice, result)

        assert sorted(applied) == ['client.name', 'meta.dueDate']
        assert updated['client']['name'] == 'acme'
        assert updated['meta']['dueDate'] == '2024-10-10'
        assert len(updated['items']) == 1
        assert updated['items'][0]['id'] == 1
        assert updated['items'][0]['description'] == 'soap'


class TestRowCommand:
    """Tests for commands spoken on a single item row."""

    def setup_method(self):
        self.item = {'id': 1, 'description': '', 'quantity': 1, 'price': 0}

    def test_structured(self):
        updated, changed = apply_row_command(self.item, "Quantity 10 Price 50")
        assert changed
        assert updated['quantity'] == 10.0
        assert updated['price'] == 50.0
        assert self.item['quantity'] == 1

    def test_bare_price(self):
        updated, changed = apply_row_command(self.item, "500")
        assert changed
        assert updated['price'] == 500.0

    def test_bare_price_with_sentence_periods(self):
        updated, changed = apply_row_command(self.item, "500. ok.")
        assert changed
        assert updated['price'] == 500.0

    def test_bare_decimal_price(self):
        updated, changed = apply_row_command(self.item, "rupees 49.50.")
        assert changed
        assert updated['price'] == 49.5

    def test_custom_parser(self):
        config = ParserConfig(item_rules=(TriggerRule.of('quantity', 'count'),))
        updated, changed = apply_row_command(
            self.item, "count 3", parser=VoiceCommandParser(config=config)
        )
        assert changed
        assert updated['quantity'] == 3.0

    def test_periods_only_not_understood(self):
        updated, changed = apply_row_command(self.item, "ok. done.")
        assert not changed
        assert updated == self.item

    def test_not_understood(self):
        updated, changed = apply_row_command(self.item, "Hello World")
        assert not changed
        assert updated == self.item


class TestUpdateValidation:
    """Tests for voice field validation."""

    def test_gstin_uppercased(self):
        cleaned, errors = validate_updates({'sender.taxId': '29abcde1234f1z5'})
        assert errors == {}
        assert cleaned == {'sender.taxId': '29ABCDE1234F1Z5'}

    def test_gstin_spoken_with_spaces(self):
        cleaned, errors = validate_updates({'client.taxId': '29 abcde 1234 f1z5'})
        assert cleaned['client.taxId'] == '29ABCDE1234F1Z5'

    def test_gstin_errors(self):
        _, errors = validate_updates({'client.taxId': '123abc'})
        assert errors == {'client.taxId': 'GSTIN must be exactly 15 characters'}

        _, errors = validate_updates({'client.taxId': '29abcde1234f1x5'})
        assert errors['client.taxId'].startswith('Invalid GSTIN format')

    def test_email(self):
        cleaned, errors = validate_updates({'client.email': 'jay12@gmail.com'})
        assert errors == {}

        cleaned, errors = validate_updates({'client.email': 'jay12gmail.com'})
        assert errors == {'client.email': 'Invalid email address'}
        assert 'client.email' not in cleaned

    def test_phone(self):
        cleaned, _ = validate_updates({'sender.phone': '98765 43210'})
        assert cleaned['sender.phone'] == '9876543210'

        cleaned, _ = validate_updates({'sender.phone': '+91 98765 43210'})
        assert cleaned['sender.phone'] == '9876543210'

        _, errors = validate_updates({'sender.phone': '12345'})
        assert errors == {'sender.phone': 'Invalid mobile number (10 digits)'}

    def test_dates(self):
        _, errors = validate_updates({'meta.date': '2024-10-10'})
        assert errors == {}

        _, errors = validate_updates({
            'meta.date': 'sometime next week',
            'meta.dueDate': 'whenever',
        })
        assert errors == {'meta.date': 'Invalid Date', 'meta.dueDate': 'Invalid Due Date'}

    def test_invoice_number(self):
        cleaned, errors = validate_updates({'meta.number': 'inv-001'})
        assert cleaned == {'meta.number': 'INV-001'}

        _, errors = validate_updates({'meta.number': 'inv #1'})
        assert 'meta.number' in errors

    def test_names(self):
        _, errors = validate_updates({'client.name': 'a'})
        assert errors == {'client.name': 'Client Name must be at least 2 characters'}

        cleaned, _ = validate_updates({'sender.name': '<b>jay traders</b>'})
        assert cleaned == {'sender.name': 'jay traders'}

        _, errors = validate_updates({'sender.name': 'javascript:alert'})
        assert errors == {'sender.name': 'Business Name contains invalid content'}

    def test_unvalidated_paths_pass_through(self):
        cleaned, errors = validate_updates({'global.discount': '10', 'meta.currency': 'inr'})
        assert cleaned == {'global.discount': '10', 'meta.currency': 'inr'}
        assert errors == {}


class TestItemValidation:
    """Tests for line item validation."""

    def test_valid_draft(self):
        assert validate_item(ItemDraft(description='soap', price=100.0)) == {}
        assert validate_item(ItemDraft(description='soap', price=100.0, cgst=9, sgst=9)) == {}
        assert validate_item(ItemDraft(description='soap', igst=28)) == {}

    def test_invalid_igst(self):
        assert validate_item(ItemDraft(description='soap', igst=7)) == {'igst': 'Invalid GST Rate'}

    def test_invalid_split_rate(self):
        assert validate_item(ItemDraft(description='soap', cgst=9, sgst=4)) == {'gst': 'Invalid GST Rate'}

    def test_invalid_record(self):
        errors = validate_item({'description': '', 'quantity': 0, 'price': -5})
        assert errors == {
            'description': 'Required',
            'quantity': 'Qty > 0',
            'price': 'Price cannot be negative',
        }

    def test_price_not_number(self):
        errors = validate_item({'description': 'x', 'quantity': 1, 'price': 'abc'})
        assert errors == {'price': 'Price must be a number'}


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
