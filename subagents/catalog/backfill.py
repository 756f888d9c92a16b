"""Category back-fill for catalog entries that never declared one."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

from subagents.catalog.models import CatalogSubagent
from subagents.catalog.store import LocalCatalog
from subagents.categories import Classification, Confidence, classify

logger = logging.getLogger(__name__)

CSV_COLUMNS = (
    "id",
    "name",
    "owner",
    "repo",
    "suggested_category",
    "confidence",
    "matched_keywords",
)


@dataclass
class CategorySuggestion:
    subagent: CatalogSubagent
    classification: Classification

    @property
    def category(self) -> str:
        return self.classification.category

    @property
    def confidence(self) -> Confidence:
        return self.classification.confidence


@dataclass
class ApplyResult:
    updated: int = 0
    errors: int = 0


def suggest_category(subagent: CatalogSubagent) -> CategorySuggestion:
    return CategorySuggestion(
        subagent=subagent,
        classification=classify(
            subagent.name, subagent.description, subagent.tools, extra=[subagent.slug]
        ),
    )


def suggest_categories(catalog: LocalCatalog) -> list[CategorySuggestion]:
    """Classify every uncategorized catalog entry."""
    return [suggest_category(entry) for entry in catalog.list_uncategorized()]


def group_by_confidence(
    suggestions: Iterable[CategorySuggestion],
) -> dict[Confidence, list[CategorySuggestion]]:
    groups: dict[Confidence, list[CategorySuggestion]] = {c: [] for c in Confidence}
    for suggestion in suggestions:
        groups[suggestion.confidence].append(suggestion)
    return groups


def apply_suggestions(
    catalog: LocalCatalog,
    suggestions: Iterable[CategorySuggestion],
    on_item: Optional[Callable[[CategorySuggestion, Optional[str]], None]] = None,
) -> ApplyResult:
    """Write suggested categories; a failing item is counted and skipped."""
    result = ApplyResult()
    for suggestion in suggestions:
        try:
            catalog.set_category(suggestion.subagent.id, suggestion.category)
        except Exception as exc:
            logger.error("Error updating %s: %s", suggestion.subagent.name, exc)
            result.errors += 1
            if on_item:
                on_item(suggestion, str(exc))
            continue
        result.updated += 1
        if on_item:
            on_item(suggestion, None)
    return result


def export_csv(suggestions: Iterable[CategorySuggestion], path: str | Path) -> Path:
    """Write suggestions as CSV for manual review."""
    path = Path(path)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)
        for s in suggestions:
            writer.writerow([
                s.subagent.id,
                s.subagent.name,
                s.subagent.owner,
                s.subagent.repo,
                s.category,
                s.confidence.value,
                ", ".join(s.classification.matched_keywords),
            ])
    return path
