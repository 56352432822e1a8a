"""Fuzzy mapping of arbitrary upload headers onto canonical OHLCV fields."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping

from config.fields import DEFAULT_FIELDS, FieldDefinition, FieldDictionary
from core.similarity import header_similarity

MATCH_THRESHOLD = 0.7
SUGGESTION_THRESHOLD = 0.6
REQUIRED_CONFIDENCE = 0.6

LOGGER = logging.getLogger("stocklens.mapper")


@dataclass(frozen=True)
class ColumnMapping:
    """Which upload header (if any) feeds one canonical field."""

    field: str
    original_name: str | None
    confidence: float
    description: str

    @property
    def is_mapped(self) -> bool:
        return self.original_name is not None


@dataclass(frozen=True)
class MappingResult:
    """Outcome of mapping one header row."""

    mappings: dict[str, ColumnMapping]
    unmapped_columns: list[str] = field(default_factory=list)
    confidence: float = 0.0
    suggestions: list[str] = field(default_factory=list)
    headers: list[str] = field(default_factory=list)

    def mapped(self) -> dict[str, ColumnMapping]:
        return {name: item for name, item in self.mappings.items() if item.is_mapped}

    def source_for(self, field_name: str) -> str | None:
        item = self.mappings.get(field_name)
        return item.original_name if item is not None else None


@dataclass(frozen=True)
class MappingValidation:
    is_valid: bool
    issues: list[str] = field(default_factory=list)


class ColumnMapper:
    """Match headers against a field dictionary using exact, substring and edit-distance scores."""

    def __init__(self, fields: FieldDictionary = DEFAULT_FIELDS) -> None:
        self._fields = fields

    @property
    def fields(self) -> FieldDictionary:
        return self._fields

    @staticmethod
    def _candidates(headers: list[str], definition: FieldDefinition) -> list[tuple[str, float]]:
        """Headers scoring above the threshold, best first; ties keep header order."""
        scored = []
        for header in headers:
            score = max(header_similarity(header, variation) for variation in definition.variations)
            if score > MATCH_THRESHOLD:
                scored.append((header, score))
        return sorted(scored, key=lambda item: -item[1])

    def _confidence(self, mappings: Mapping[str, ColumnMapping]) -> float:
        """Weighted average confidence over the mapped fields."""
        weighted_total = 0.0
        weight_sum = 0.0
        for definition in self._fields:
            item = mappings.get(definition.name)
            if item is None or not item.is_mapped:
                continue
            weighted_total += item.confidence * definition.weight
            weight_sum += definition.weight
        return weighted_total / weight_sum if weight_sum else 0.0

    def suggest_mapping(self, header: str) -> str | None:
        """Best canonical field for a header that lost every match, if any looks close."""
        best_name: str | None = None
        best_score = 0.0
        for definition in self._fields:
            for variation in definition.variations:
                score = header_similarity(header, variation)
                if score > best_score:
                    best_name, best_score = definition.name, score
        return best_name if best_score > SUGGESTION_THRESHOLD else None

    @staticmethod
    def _unmapped(header_list: list[str], mappings: Mapping[str, ColumnMapping]) -> list[str]:
        claimed = {item.original_name for item in mappings.values() if item.is_mapped}
        return [header for header in header_list if header not in claimed]

    def map_columns(self, headers: Iterable[str]) -> MappingResult:
        """Map every canonical field independently to its highest-scoring header."""
        header_list = [str(header) for header in headers]
        mappings: dict[str, ColumnMapping] = {}
        suggestions: list[str] = []

        for definition in self._fields:
            candidates = self._candidates(header_list, definition)
            if not candidates:
                mappings[definition.name] = ColumnMapping(
                    field=definition.name,
                    original_name=None,
                    confidence=0.0,
                    description=definition.description,
                )
                if definition.required:
                    LOGGER.info("Required column %s not found", definition.name)
                    expected = ", ".join(definition.variations[:3])
                    suggestions.append(
                        f"Missing required column: {definition.name}. Expected variations: {expected}"
                    )
                continue

            header, score = candidates[0]
            mappings[definition.name] = ColumnMapping(
                field=definition.name,
                original_name=header,
                confidence=score,
                description=definition.description,
            )
            LOGGER.debug("Mapped %r -> %s (confidence %.2f)", header, definition.name, score)

        unmapped = self._unmapped(header_list, mappings)
        for header in unmapped:
            suggestion = self.suggest_mapping(header)
            if suggestion is not None:
                suggestions.append(f'"{header}" might be "{suggestion}"')

        return MappingResult(
            mappings=mappings,
            unmapped_columns=unmapped,
            confidence=self._confidence(mappings),
            suggestions=suggestions,
            headers=header_list,
        )

    def assign_unique(self, result: MappingResult) -> tuple[MappingResult, list[str]]:
        """
        Give every header to at most one field.

        Fields pick in order of match confidence, then field weight. A field
        whose best header is already taken moves to its next-best free header
        above the threshold, or ends up unmapped. Returns the resolved result
        and one warning per shared header and per moved field.
        """
        ranked = [name for name in self._fields.names if result.mappings.get(name) and result.mappings[name].is_mapped]
        ranked.sort(key=lambda name: (-result.mappings[name].confidence, -self._fields.get(name).weight))

        mappings = dict(result.mappings)
        taken: dict[str, str] = {}
        moved: list[str] = []
        for name in ranked:
            first_choice = result.mappings[name].original_name
            choice = next(
                (item for item in self._candidates(result.headers, self._fields.get(name)) if item[0] not in taken),
                None,
            )
            if choice is None:
                mappings[name] = replace(mappings[name], original_name=None, confidence=0.0)
                continue
            header, score = choice
            taken[header] = name
            if header != first_choice:
                mappings[name] = replace(mappings[name], original_name=header, confidence=score)
                moved.append(f'Using "{header}" for {name} ({score:.2f})')

        claims: dict[str, list[str]] = defaultdict(list)
        for name in ranked:
            claims[result.mappings[name].original_name].append(name)
        warnings = [
            f'Column "{header}" matched {", ".join(sorted(names))}; using it for {taken[header]}'
            for header, names in claims.items()
            if len(names) > 1
        ]
        warnings.extend(moved)

        resolved = replace(
            result,
            mappings=mappings,
            unmapped_columns=self._unmapped(result.headers, mappings),
            confidence=self._confidence(mappings),
        )
        return resolved, warnings

    def validate_mappings(self, mappings: MappingResult | Mapping[str, ColumnMapping]) -> MappingValidation:
        """Report required-field gaps, weak required matches and headers claimed twice."""
        items = mappings.mappings if isinstance(mappings, MappingResult) else mappings
        issues: list[str] = []

        for name in self._fields.required:
            item = items.get(name)
            if item is None or not item.is_mapped:
                issues.append(f"Missing required column: {name}")
            elif item.confidence < REQUIRED_CONFIDENCE:
                issues.append(f"Low confidence mapping for required column: {name} ({item.confidence:.2f})")

        counts = Counter(item.original_name for item in items.values() if item.is_mapped)
        duplicates = [name for name, count in counts.items() if count > 1]
        if duplicates:
            issues.append(f"Duplicate column mappings: {', '.join(duplicates)}")

        return MappingValidation(is_valid=not issues, issues=issues)
