"""
Rule Catalog — Loads rule definitions from JSON.

Accepted documents:
    [ {rule}, ... ]
    {"version": "...", "rules": [ {rule}, ... ]}

Declaration order is preserved; it is the final tiebreak when ordering
violations.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from taglint.core.tag_registry import DATA_DIR
from taglint.errors import RuleCatalogError
from taglint.models.rule_models import Rule

logger = logging.getLogger("taglint.catalog")

DEFAULT_RULES_PATH = DATA_DIR / "rules.json"


def parse_rule_catalog(document: Any) -> list[Rule]:
    """Validate a parsed catalog document into Rule models."""
    if isinstance(document, dict):
        entries = document.get("rules")
    else:
        entries = document
    if not isinstance(entries, list):
        raise RuleCatalogError("Rule catalog must be a list of rules or an object with a 'rules' list")

    rules: list[Rule] = []
    seen: set[str] = set()
    for position, entry in enumerate(entries):
        try:
            rule = Rule.model_validate(entry)
        except ValidationError as e:
            raise RuleCatalogError(f"Invalid rule at position {position}: {e}") from e
        if rule.rule_id in seen:
            raise RuleCatalogError(f"Duplicate rule id: {rule.rule_id}")
        seen.add(rule.rule_id)
        rules.append(rule)
    return rules


def load_rule_catalog(path: str | Path) -> list[Rule]:
    """Load rules from a JSON file."""
    path = Path(path)
    logger.info(f"Loading rule catalog: {path}")
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise RuleCatalogError(f"Cannot read rule catalog {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise RuleCatalogError(f"Rule catalog {path} is not valid JSON: {e}") from e

    rules = parse_rule_catalog(document)
    untagged = sum(1 for rule in rules if not rule.condition)
    logger.info(f"Loaded {len(rules)} rules ({untagged} without a tag condition)")
    return rules


def default_rule_catalog() -> list[Rule]:
    """Rules shipped with the package."""
    return load_rule_catalog(DEFAULT_RULES_PATH)
