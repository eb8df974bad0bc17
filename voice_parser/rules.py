"""
Rules Module

Trigger tables that drive voice command parsing.

A trigger rule ties a set of spoken phrases ("client email", "customer mail")
to the destination path the value after the phrase is written to
("client.email"). Two tables exist:

- Global rules: business, client, invoice meta and totals fields
- Item rules: fields of a single line item (description, qty, price, GST %)

The defaults below mirror the labels of the invoice form. A YAML file with
the same shape can replace any of the tables:

    settings:
      splitter_word_boundary: true
      date_formats: ["%Y-%m-%d", "%d %B %Y"]
    item_splitters: ["add item", "new item"]
    global_rules:
      - path: client.email
        triggers: ["client email", "customer email"]
    item_rules:
      - path: price
        triggers: ["price", "rate"]
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml
from loguru import logger


class ConfigError(ValueError):
    """Raised when a rule configuration file is malformed."""


@dataclass(frozen=True)
class TriggerRule:
    """
    One destination field and the spoken phrases that introduce it.
    """
    destination: str                    # Dotted path or item field name
    triggers: tuple[str, ...]           # Lowercase trigger phrases, in declared order

    @classmethod
    def of(cls, destination: str, *triggers: str) -> 'TriggerRule':
        """Build a rule from phrases, lowercasing and dropping blanks."""
        phrases = tuple(dict.fromkeys(t.strip().lower() for t in triggers if t and t.strip()))
        return cls(destination=destination, triggers=phrases)

    @classmethod
    def from_dict(cls, data: dict) -> 'TriggerRule':
        """Create a TriggerRule from a config dict."""
        if not isinstance(data, dict):
            raise ConfigError(f"Rule entry must be a mapping, got: {data!r}")

        path = data.get('path')
        triggers = data.get('triggers')

        if not path or not isinstance(path, str):
            raise ConfigError(f"Rule entry is missing 'path': {data!r}")
        if isinstance(triggers, str):
            triggers = [triggers]
        if not triggers or not all(isinstance(t, str) for t in triggers):
            raise ConfigError(f"Rule '{path}' needs a list of trigger phrases")

        rule = cls.of(path, *triggers)
        if not rule.triggers:
            raise ConfigError(f"Rule '{path}' has only blank trigger phrases")
        return rule


RuleTable = tuple[TriggerRule, ...]


def build_rule_table(rules: Iterable[TriggerRule]) -> RuleTable:
    """
    Freeze rules into a table, rejecting duplicate destinations.
    """
    table = tuple(rules)
    seen: set[str] = set()
    for rule in table:
        if rule.destination in seen:
            raise ConfigError(f"Duplicate destination in rule table: {rule.destination}")
        seen.add(rule.destination)
    return table


ITEM_SPLITTERS: tuple[str, ...] = ('add item', 'new item', 'next item', 'add product')

DEFAULT_DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%d %B %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%b %d %Y",
    "%B %d, %Y",
    "%d/%m/%Y",
)

GLOBAL_RULES: RuleTable = build_rule_table([
    # Business details
    TriggerRule.of('sender.name', 'business name', 'my business'),
    TriggerRule.of(
        'sender.email',
        'email', 'e-mail', 'e mail', 'email address',
        'business email', 'my email', 'contact email',
    ),
    TriggerRule.of('sender.address', 'business address', 'my address', 'office address'),
    TriggerRule.of('sender.phone', 'phone number', 'contact number'),
    TriggerRule.of('sender.taxId', 'tax id', 'gst id', 'gstin'),
    TriggerRule.of('global.template', 'template'),

    # Client details
    TriggerRule.of('client.name', 'client name'),
    TriggerRule.of('client.company', 'company name', 'client company'),
    TriggerRule.of('client.address', 'client address', 'billing address'),
    TriggerRule.of(
        'client.email',
        'client email', 'customer email', 'client email address',
        'customer email address', "client's email", 'clients email',
        'billing email', 'client mail', 'customer mail',
    ),
    TriggerRule.of('client.taxId', 'client gstin', 'client tax', 'customer gst'),

    # Invoice meta
    TriggerRule.of('meta.number', 'number', 'invoice number', 'invoice no'),
    TriggerRule.of('meta.date', 'date', 'issue date', 'invoice date'),
    TriggerRule.of('meta.dueDate', 'due date'),
    TriggerRule.of('meta.currency', 'currency'),

    # Totals / global
    TriggerRule.of('global.taxType', 'tax type'),
    TriggerRule.of('global.roundOff', 'round off'),
    TriggerRule.of('payment.details', 'payment details', 'notes'),
    TriggerRule.of('global.discountType', 'discount type'),
    TriggerRule.of('global.discount', 'discount'),
])

ITEM_RULES: RuleTable = build_rule_table([
    TriggerRule.of('description', 'description', 'item description'),
    TriggerRule.of('hsn', 'hsn', 'sac', 'hsn/sac'),
    TriggerRule.of('quantity', 'quantity', 'qty'),
    TriggerRule.of('price', 'price', 'rate'),
    TriggerRule.of('igst', 'igst %', 'igst'),
    TriggerRule.of('cgst', 'cgst %', 'cgst'),
    TriggerRule.of('sgst', 'sgst %', 'sgst'),
    TriggerRule.of('total', 'total'),
])


@dataclass(frozen=True)
class ParserConfig:
    """
    Everything the voice command parser needs, bundled and immutable.

    Instances are safe to share between threads.
    """
    global_rules: RuleTable = GLOBAL_RULES
    item_rules: RuleTable = ITEM_RULES
    item_splitters: tuple[str, ...] = ITEM_SPLITTERS
    date_formats: tuple[str, ...] = DEFAULT_DATE_FORMATS
    splitter_word_boundary: bool = True

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'ParserConfig':
        """
        Build a config from a parsed YAML document.

        Keys that are absent keep their defaults.
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError("Rule configuration must be a mapping at the top level")

        settings = data.get('settings') or {}
        if not isinstance(settings, dict):
            raise ConfigError("'settings' must be a mapping")

        kwargs: dict[str, Any] = {}

        if 'global_rules' in data:
            kwargs['global_rules'] = _load_table(data['global_rules'], 'global_rules')
        if 'item_rules' in data:
            kwargs['item_rules'] = _load_table(data['item_rules'], 'item_rules')

        if 'item_splitters' in data:
            splitters = data['item_splitters']
            if not isinstance(splitters, list) or not all(isinstance(s, str) for s in splitters):
                raise ConfigError("'item_splitters' must be a list of phrases")
            kwargs['item_splitters'] = tuple(
                s.strip().lower() for s in splitters if s.strip()
            )

        if 'date_formats' in settings:
            formats = settings['date_formats']
            if not isinstance(formats, list):
                raise ConfigError("'settings.date_formats' must be a list")
            kwargs['date_formats'] = tuple(str(f) for f in formats)

        if 'splitter_word_boundary' in settings:
            kwargs['splitter_word_boundary'] = bool(settings['splitter_word_boundary'])

        return cls(**kwargs)


def _load_table(entries: Any, key: str) -> RuleTable:
    if not isinstance(entries, list):
        raise ConfigError(f"'{key}' must be a list of rules")
    return build_rule_table(TriggerRule.from_dict(entry) for entry in entries)


class ConfigLoader:
    """
    Loads parser rule tables from YAML files.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize config loader.

        Args:
            config_path: Path to a commands.yaml rule file
        """
        self.config_path = config_path
        self.config = ParserConfig()

        if config_path:
            self.load(config_path)

    def load(self, config_path: Path) -> ParserConfig:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML config file

        Returns:
            The loaded ParserConfig
        """
        logger.info(f"Loading command rules from: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
            self.config = ParserConfig.from_dict(data)
        except (OSError, yaml.YAMLError, ConfigError) as e:
            logger.error(f"Failed to load command rules: {e}")
            if isinstance(e, ConfigError):
                raise
            raise ConfigError(f"Cannot read rule file {config_path}: {e}") from e

        logger.info(
            f"Loaded {len(self.config.global_rules)} global rules and "
            f"{len(self.config.item_rules)} item rules"
        )
        return self.config
