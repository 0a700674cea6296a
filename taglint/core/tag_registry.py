"""
Tag Registry — Loaded tag and compound-tag definitions with precompiled patterns.

Built once at start-up and read-only afterwards, so a single registry can be
shared by any number of concurrent extractions. Invalid regex patterns are
dropped here with a warning; they never reach extraction.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from taglint.core.tag_expression import depends_on_tags
from taglint.errors import ExpressionSyntaxError, RegistryError
from taglint.models.tag_models import (
    CompoundTagDefinition,
    ContextualDetection,
    MetricDetection,
    NodeDetection,
    PatternDetection,
    TagDefinition,
    TagDefinitionSet,
)

logger = logging.getLogger("taglint.registry")

DATA_DIR = Path(__file__).resolve().parent.parent / "data"
DEFAULT_TAG_DEFINITIONS_PATH = DATA_DIR / "tag_definitions.json"

# Emitted by the text-based fallback metric tier regardless of definitions.
BUILTIN_TAG_NAMES: frozenset[str] = frozenset(
    {"LINE_COUNT_HIGH", "METHOD_COUNT_HIGH", "COMPLEXITY_HIGH", "NESTING_DEEP"}
)


def compile_patterns(tag_name: str, patterns: Iterable[str], case_sensitive: bool = True) -> tuple[re.Pattern[str], ...]:
    """Compile a tag's patterns, dropping (and logging) any that are invalid."""
    flags = 0 if case_sensitive else re.IGNORECASE
    compiled: list[re.Pattern[str]] = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern, flags))
        except re.error as e:
            logger.warning(f"Dropping invalid pattern for {tag_name}: {pattern!r} ({e})")
    return tuple(compiled)


class TagRegistry:
    """Immutable view over base tag and compound tag definitions."""

    def __init__(
        self,
        tags: Iterable[TagDefinition],
        compound_tags: Iterable[CompoundTagDefinition] = (),
        version: str = "unknown",
    ) -> None:
        tag_map: dict[str, TagDefinition] = {}
        for tag in tags:
            if tag.name in tag_map:
                raise RegistryError(f"Duplicate tag definition: {tag.name}")
            tag_map[tag.name] = tag

        compound_map: dict[str, CompoundTagDefinition] = {}
        for compound in compound_tags:
            if compound.name in compound_map or compound.name in tag_map:
                raise RegistryError(f"Duplicate compound tag definition: {compound.name}")
            compound_map[compound.name] = compound

        self.version = version
        self._tags: Mapping[str, TagDefinition] = MappingProxyType(tag_map)
        self._compound: Mapping[str, CompoundTagDefinition] = MappingProxyType(compound_map)

        compiled: dict[str, tuple[re.Pattern[str], ...]] = {}
        category_index: dict[str, list[str]] = {}
        for name, tag in tag_map.items():
            detection = tag.detection
            if isinstance(detection, (PatternDetection, ContextualDetection)):
                compiled[name] = compile_patterns(name, detection.patterns, detection.case_sensitive)
            category_index.setdefault(tag.category, []).append(name)

        self._compiled: Mapping[str, tuple[re.Pattern[str], ...]] = MappingProxyType(compiled)
        self._category_index: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {category: tuple(names) for category, names in category_index.items()}
        )

        self._pattern_tags = self._of_kind(PatternDetection)
        self._metric_tags = self._of_kind(MetricDetection)
        self._node_tags = self._of_kind(NodeDetection)
        self._contextual_tags = self._of_kind(ContextualDetection)

        self._check_compound_references()

    # ── Construction ──

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> TagRegistry:
        """Build a registry from a parsed definitions document."""
        try:
            definition_set = TagDefinitionSet.model_validate(document)
            tags = [
                TagDefinition.model_validate({**body, "name": name})
                for name, body in definition_set.tags.items()
            ]
            compounds = [
                CompoundTagDefinition.model_validate({**body, "name": name})
                for name, body in definition_set.compound_tags.items()
            ]
        except ValidationError as e:
            raise RegistryError(f"Invalid tag definitions: {e}") from e
        return cls(tags, compounds, version=definition_set.version)

    def _of_kind(self, kind: type) -> tuple[TagDefinition, ...]:
        return tuple(tag for tag in self._tags.values() if isinstance(tag.detection, kind))

    def _check_compound_references(self) -> None:
        known = set(self._tags) | BUILTIN_TAG_NAMES
        for compound in self._compound.values():
            try:
                references = [name.lstrip("!") for name in depends_on_tags(compound.expression)]
            except ExpressionSyntaxError as e:
                logger.warning(f"Compound tag {compound.name} has an invalid expression: {e}")
                continue
            for name in references:
                if name in self._compound:
                    logger.warning(
                        f"Compound tag {compound.name} references compound tag {name}; "
                        f"compound tags resolve against base tags only, so {name} is always absent there"
                    )
                elif name not in known:
                    logger.warning(f"Compound tag {compound.name} references unknown tag {name}")

    # ── Lookups ──

    @property
    def tags(self) -> Mapping[str, TagDefinition]:
        return self._tags

    @property
    def compound_tags(self) -> list[CompoundTagDefinition]:
        return list(self._compound.values())

    @property
    def tag_names(self) -> list[str]:
        return list(self._tags)

    @property
    def categories(self) -> list[str]:
        return list(self._category_index)

    def get(self, name: str) -> TagDefinition | None:
        return self._tags.get(name)

    def get_compound(self, name: str) -> CompoundTagDefinition | None:
        return self._compound.get(name)

    def category_of(self, name: str) -> str | None:
        tag = self._tags.get(name)
        return tag.category if tag else None

    def tags_in_category(self, category: str) -> tuple[str, ...]:
        return self._category_index.get(category, ())

    def compiled_patterns(self, name: str) -> tuple[re.Pattern[str], ...]:
        return self._compiled.get(name, ())

    def pattern_tags(self) -> tuple[TagDefinition, ...]:
        return self._pattern_tags

    def metric_tags(self) -> tuple[TagDefinition, ...]:
        return self._metric_tags

    def node_tags(self) -> tuple[TagDefinition, ...]:
        return self._node_tags

    def contextual_tags(self) -> tuple[TagDefinition, ...]:
        return self._contextual_tags

    def stats(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "total_tags": len(self._tags),
            "pattern_tags": len(self._pattern_tags),
            "metric_tags": len(self._metric_tags),
            "node_tags": len(self._node_tags),
            "contextual_tags": len(self._contextual_tags),
            "compound_tags": len(self._compound),
            "categories": self.categories,
        }


def load_tag_registry(path: str | Path) -> TagRegistry:
    """Load a tag registry from a JSON definitions file."""
    path = Path(path)
    logger.info(f"Loading tag definitions: {path}")
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise RegistryError(f"Cannot read tag definitions {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise RegistryError(f"Tag definitions {path} are not valid JSON: {e}") from e

    registry = TagRegistry.from_document(document)
    stats = registry.stats()
    logger.info(
        f"Loaded {stats['total_tags']} tags ({stats['pattern_tags']} pattern, "
        f"{stats['metric_tags']} metric, {stats['node_tags']} node, "
        f"{stats['contextual_tags']} contextual) and {stats['compound_tags']} compound tags"
    )
    return registry


def default_tag_registry() -> TagRegistry:
    """Registry built from the definitions shipped with the package."""
    return load_tag_registry(DEFAULT_TAG_DEFINITIONS_PATH)
