#!/usr/bin/env python3
"""
Template configuration for the invoice table parser.

Every keyword, regex and numeric threshold used by the pipeline lives here.
The defaults are tuned for one recurring Korean invoice layout (a 단가 header,
an "이하여백" banner or an 인수자 signature line closing the table). The
numeric values are heuristics observed on that layout, not general rules;
override them per template with ``TemplateConfig.from_dict`` or
``TemplateConfig.from_file``.
"""

import json
import logging
import re
from dataclasses import dataclass, field, fields, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Union

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


DEFAULT_NOISE_PATTERNS = [
    r'softcity\.co\.kr',            # domain advertisement printed on the form
    r'www\.',                       # any URL
    r'^NO\.?$',                     # header leftovers
    r'^BOX$',
    r'^EA$',
    r'특허출원',                    # trademark notice
    r'0K\s*aF',
    r'품목\s*[-–—~]\s*규격',        # merged "품목-규격" header cell
    r'(경영박사|1영박사)',          # tagline and its OCR variants
    r'박사',
    r'^품목$',
    r'^-?\s*규격$',
    r'^수량$',
    r'^\d{5,6}-\d{2,5}$',           # stray numeric codes
]


def loose_keyword_pattern(word: str) -> str:
    """Regex source matching ``word`` with optional whitespace between characters."""
    return r'\s*'.join(re.escape(ch) for ch in str(word))


def variants_regex(variants: List[str]) -> Pattern:
    """Case-insensitive regex matching any of ``variants`` loosely."""
    parts = [loose_keyword_pattern(v) for v in variants]
    return re.compile('(' + '|'.join(parts) + ')', re.IGNORECASE)


_INT_FIELDS = (
    'header_max_span', 'stitch_max_span', 'banner_footer_offset', 'assignee_footer_offset',
    'prefix_prune_min_columns', 'first_fill_threshold', 'next_fill_threshold',
    'min_money_value', 'validator_min_columns',
)


@dataclass
class CompiledTemplate:
    """Regexes compiled from a TemplateConfig; shared read-only by all stages."""
    config: 'TemplateConfig'
    header_seed_regex: Pattern
    header_targets: frozenset
    assignee_regex: Pattern
    footer_banner_regex: Pattern
    noise_regexes: List[Pattern]
    unit_token_regex: Pattern
    dash_spec_in_item_regex: Pattern
    standalone_spec_in_item_regex: Pattern
    dash_spec_regex: Pattern
    standalone_spec_regex: Pattern


@dataclass
class TemplateConfig:
    """
    Tunable vocabulary and thresholds for one invoice template.

    Thresholds:
        header_max_span: columns stitched when looking for the unit-price label.
        stitch_max_span: default span for generic keyword stitching.
        banner_footer_offset: rows dropped above an explicit end-of-table banner.
        assignee_footer_offset: rows dropped above the signature line fallback.
        prefix_prune_min_columns: minimum row width before a leading id is pruned.
        first_fill_threshold / next_fill_threshold: column counts the numeric
            redistribution queue fills short rows up to (first use, later uses).
        min_money_value: smallest integer accepted as unit price or supply amount.
        validator_min_columns: narrowest row the schema validator will inspect.
    """
    header_keywords: List[str] = field(default_factory=lambda: ['단가'])
    header_seed_variants: List[str] = field(default_factory=lambda: ['단', '가', '단가'])
    header_max_span: int = 2
    stitch_max_span: int = 4
    footer_banner_pattern: str = r'=+\s*(?:[이ㅣI|l1아]\s*)?하여백\s*=+'
    assignee_keywords: List[str] = field(default_factory=lambda: ['인수자'])
    banner_footer_offset: int = 1
    assignee_footer_offset: int = 2
    noise_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_NOISE_PATTERNS))
    unit_tokens: List[str] = field(default_factory=lambda: ['kg', 'g', 'l', 'ml', 'cm', 'mm', 'ea'])
    prefix_prune_min_columns: int = 7
    first_fill_threshold: int = 5
    next_fill_threshold: int = 6
    min_money_value: int = 1000
    validator_min_columns: int = 4
    vat_rate: Decimal = Decimal('0.1')

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'TemplateConfig':
        """Build a config from defaults overridden by ``data``."""
        config = cls()
        if not data:
            return config

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown template config keys: {', '.join(unknown)}")

        overrides = dict(data)
        if 'vat_rate' in overrides:
            try:
                overrides['vat_rate'] = Decimal(str(overrides['vat_rate']))
            except InvalidOperation:
                raise ConfigurationError(f"Invalid vat_rate: {data['vat_rate']!r}")

        for name in ('header_keywords', 'header_seed_variants', 'assignee_keywords',
                     'noise_patterns', 'unit_tokens'):
            if name in overrides and not isinstance(overrides[name], list):
                raise ConfigurationError(f"{name} must be a list, got {type(overrides[name]).__name__}")

        for name in _INT_FIELDS:
            if name not in overrides:
                continue
            value = overrides[name]
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")

        return replace(config, **overrides)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'TemplateConfig':
        """Load overrides from a YAML or JSON file."""
        path = Path(path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                if path.suffix.lower() in ('.yml', '.yaml'):
                    data = yaml.safe_load(f) or {}
                else:
                    data = json.load(f)
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Could not load template config {path}: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError(f"Template config {path} must contain a mapping")

        logger.info(f"Loaded template config overrides from {path}: {sorted(data)}")
        return cls.from_dict(data)

    def compile(self) -> CompiledTemplate:
        """Compile every pattern once; raises ConfigurationError on a bad regex."""
        units = '|'.join(re.escape(u) for u in sorted(self.unit_tokens, key=len, reverse=True))
        number = r'[0-9]+(?:\.[0-9]+)?'
        multiplier = r'(?:\s*\*\s*\d+(?:\s*ea)?)?'
        spec_core = rf'{number}\s*(?:{units}){multiplier}'
        spec_flags = re.IGNORECASE | re.ASCII

        try:
            return CompiledTemplate(
                config=self,
                header_seed_regex=variants_regex(self.header_seed_variants),
                header_targets=frozenset(re.sub(r'\s+', '', k) for k in self.header_keywords),
                assignee_regex=variants_regex(self.assignee_keywords),
                footer_banner_regex=re.compile(self.footer_banner_pattern, re.IGNORECASE),
                noise_regexes=[re.compile(p, re.IGNORECASE) for p in self.noise_patterns],
                unit_token_regex=re.compile(rf'^(?:{units})$', spec_flags),
                dash_spec_in_item_regex=re.compile(rf'-\s*({spec_core}(?:\s+\d{{1,3}})?)', spec_flags),
                standalone_spec_in_item_regex=re.compile(rf'\b({spec_core}(?:\s+\d{{1,3}})?)\b', spec_flags),
                dash_spec_regex=re.compile(rf'-\s*({spec_core})', spec_flags),
                standalone_spec_regex=re.compile(rf'\b({spec_core})\b', spec_flags),
            )
        except re.error as e:
            raise ConfigurationError(f"Invalid pattern in template config: {e}")


def resolve_template(config: Optional[Union[TemplateConfig, CompiledTemplate]] = None) -> CompiledTemplate:
    """Accept a TemplateConfig, an already compiled template, or None for defaults."""
    if isinstance(config, CompiledTemplate):
        return config
    # A fresh default each time, so no two pipelines share mutable lists
    return (config or TemplateConfig()).compile()
