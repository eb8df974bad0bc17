"""
Tests for the command-line interface
Run with: pytest tests/ -v
"""

import json
import pytest
from pathlib import Path
import sys

from click.testing import CliRunner

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import main
from main import NOTHING_UNDERSTOOD, cli


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    # Loguru sinks would otherwise point at the runner's temporary streams
    monkeypatch.setattr(main, 'setup_logging', lambda **kwargs: None)


@pytest.fixture
def runner():
    return CliRunner()


class TestParseCommand:
    """Tests for `parse`."""

    def test_json_output(self, runner):
        result = runner.invoke(cli, ['parse', '--json', 'client email jay at gmail dot com'])
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload['updates'] == {'client.email': 'jay@gmail.com'}
        assert payload['newItems'] == []

    def test_json_with_validation(self, runner):
        result = runner.invoke(
            cli, ['parse', '--json', '--validate', 'client gstin 123 add item description soap igst 7']
        )
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload['errors'] == {'client.taxId': 'GSTIN must be exactly 15 characters'}
        assert payload['itemErrors'] == [{'igst': 'Invalid GST Rate'}]

    def test_table_output(self, runner):
        result = runner.invoke(cli, ['parse', 'add item description soap price 100'])
        assert result.exit_code == 0
        assert 'soap' in result.output
        assert 'New Items' in result.output

    def test_nothing_understood(self, runner):
        result = runner.invoke(cli, ['parse', 'hello world'])
        assert result.exit_code == 0
        assert NOTHING_UNDERSTOOD in result.output

    def test_file_input(self, runner, tmp_path):
        path = tmp_path / 'commands.txt'
        path.write_text("client name acme\n\nissue date 2024-12-25\n")

        result = runner.invoke(cli, ['parse', '--json', '--file', str(path)])
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert [entry['updates'] for entry in payload] == [
            {'client.name': 'acme'},
            {'meta.date': '2024-12-25'},
        ]

    def test_missing_transcript(self, runner):
        result = runner.invoke(cli, ['parse'])
        assert result.exit_code == 2


class TestApplyCommand:
    """Tests for `apply`."""

    def test_new_invoice_written(self, runner, tmp_path):
        output = tmp_path / 'invoice.json'
        result = runner.invoke(cli, [
            'apply', 'client name acme add item description soap price 100',
            '--output', str(output),
        ])
        assert result.exit_code == 0

        invoice = json.loads(output.read_text())
        assert invoice['client']['name'] == 'acme'
        assert invoice['items'][0]['description'] == 'soap'
        assert invoice['items'][0]['price'] == 100.0

    def test_existing_invoice_updated(self, runner, tmp_path):
        path = tmp_path / 'invoice.json'
        path.write_text(json.dumps({
            'client': {'name': 'old'},
            'items': [{'id': 4, 'description': 'existing'}],
        }))

        result = runner.invoke(cli, [
            'apply', 'client name new add item description towel',
            '--invoice', str(path), '--output', str(path),
        ])
        assert result.exit_code == 0

        invoice = json.loads(path.read_text())
        assert invoice['client']['name'] == 'new'
        assert [item['id'] for item in invoice['items']] == [4, 5]

    def test_invalid_invoice_json(self, runner, tmp_path):
        path = tmp_path / 'invoice.json'
        path.write_text('{not json')
        result = runner.invoke(cli, ['apply', 'client name acme', '--invoice', str(path)])
        assert result.exit_code == 1


class TestRowCommand:
    """Tests for `row`."""

    def test_row_fields(self, runner):
        result = runner.invoke(cli, ['row', 'quantity 10'])
        assert result.exit_code == 0
        assert json.loads(result.output) == {'quantity': 10.0}

    def test_row_bare_price(self, runner):
        result = runner.invoke(cli, ['row', '500.', 'ok.'])
        assert result.exit_code == 0
        assert json.loads(result.output) == {'price': 500.0}

    def test_row_uses_config(self, runner, tmp_path):
        path = tmp_path / 'commands.yaml'
        path.write_text("item_rules:\n  - path: quantity\n    triggers: [count]\n")

        result = runner.invoke(cli, ['--config', str(path), 'row', 'count 4'])
        assert result.exit_code == 0
        assert json.loads(result.output) == {'quantity': 4.0}

    def test_row_not_understood(self, runner):
        result = runner.invoke(cli, ['row', 'hello'])
        assert result.exit_code == 1


class TestConfigOption:
    """Tests for the --config option."""

    def test_custom_config(self, runner, tmp_path):
        path = tmp_path / 'commands.yaml'
        path.write_text("global_rules:\n  - path: client.name\n    triggers: [customer]\n")

        result = runner.invoke(cli, ['--config', str(path), 'parse', '--json', 'customer acme'])
        assert result.exit_code == 0
        assert json.loads(result.output)['updates'] == {'client.name': 'acme'}

    def test_bad_config(self, runner, tmp_path):
        path = tmp_path / 'commands.yaml'
        path.write_text("global_rules:\n  - triggers: [customer]\n")

        result = runner.invoke(cli, ['--config', str(path), 'parse', 'customer acme'])
        assert result.exit_code == 1


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
