"""Category classifier: deterministic keyword scoring over subagent metadata.

The keyword table below is the single definition shared by the CLI's
interactive suggestion and the catalog back-fill job. Scoring counts the
distinct keywords of each category that occur as substrings of the
lowercased search text; the strictly highest score wins and ties keep
the category listed first in ``CATEGORY_KEYWORDS``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

OTHER = "other"

# Display order used by pickers and validation.
VALID_CATEGORIES: tuple[str, ...] = (
    "backend",
    "frontend",
    "fullstack",
    "testing",
    "security",
    "devops",
    "documentation",
    "refactoring",
    "database",
    "api",
    "ai-ml",
    OTHER,
)

CATEGORY_LABELS: Mapping[str, str] = MappingProxyType({
    "backend": "Backend",
    "frontend": "Frontend",
    "fullstack": "Full Stack",
    "testing": "Testing",
    "security": "Security",
    "devops": "DevOps",
    "documentation": "Documentation",
    "refactoring": "Refactoring",
    "database": "Database",
    "api": "API",
    "ai-ml": "AI/ML",
    OTHER: "Other",
})

# Evaluation order is the tie-break order.
CATEGORY_KEYWORDS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "devops": (
        "bash", "docker", "kubernetes", "k8s", "deploy", "terraform", "aws",
        "azure", "gcp", "ci", "cd", "pipeline", "infrastructure", "helm",
        "ansible", "jenkins", "github-actions", "gitlab", "shell", "script",
    ),
    "testing": (
        "test", "jest", "playwright", "cypress", "e2e", "spec", "mocha",
        "vitest", "pytest", "unittest", "coverage", "qa", "assertion",
    ),
    "database": (
        "sql", "postgres", "postgresql", "mongodb", "prisma", "redis", "supabase",
        "mysql", "sqlite", "migration", "schema", "query", "orm", "drizzle",
    ),
    "api": (
        "api", "rest", "graphql", "endpoint", "grpc", "openapi", "swagger",
        "http", "request", "response", "webhook", "fetch", "axios",
    ),
    "frontend": (
        "react", "vue", "angular", "css", "tailwind", "component", "ui",
        "styled", "sass", "scss", "dom", "browser", "svelte", "nextjs", "nuxt",
    ),
    "backend": (
        "server", "express", "django", "flask", "node", "fastapi", "spring",
        "rails", "laravel", "nestjs", "middleware", "authentication", "session",
    ),
    "fullstack": (
        "fullstack", "full-stack", "monorepo", "turborepo", "nx", "trpc",
    ),
    "security": (
        "auth", "oauth", "jwt", "encryption", "vulnerability", "security",
        "password", "token", "permission", "rbac", "audit", "sanitize", "xss",
    ),
    "documentation": (
        "docs", "readme", "swagger", "openapi", "markdown", "jsdoc", "typedoc",
        "comment", "docstring", "wiki", "changelog", "specification",
    ),
    "refactoring": (
        "refactor", "lint", "format", "migrate", "upgrade", "prettier",
        "eslint", "cleanup", "modernize", "deprecate", "optimize", "simplify",
    ),
    "ai-ml": (
        "ai", "ml", "llm", "gpt", "claude", "embedding", "vector", "openai",
        "anthropic", "huggingface", "model", "training", "inference", "neural",
    ),
    OTHER: (),
})


class Confidence(Enum):
    """How much keyword evidence backs a classification."""

    HIGH = "high"  # 3+ distinct keywords
    MEDIUM = "medium"  # 1-2 keywords
    LOW = "low"  # nothing matched, category falls back to "other"


@dataclass
class Classification:
    """Result of classifying one subagent."""

    category: str
    confidence: Confidence
    matched_keywords: list[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        return CATEGORY_LABELS.get(self.category, self.category)


def is_valid_category(value: object) -> bool:
    return isinstance(value, str) and value in VALID_CATEGORIES


def normalize_category(value: object) -> Optional[str]:
    """Lowercase/trim a declared category; anything outside the taxonomy is None."""
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower()
    return normalized if normalized in VALID_CATEGORIES else None


def _confidence_for(score: int) -> Confidence:
    if score >= 3:
        return Confidence.HIGH
    if score >= 1:
        return Confidence.MEDIUM
    return Confidence.LOW


def classify(
    name: str | None,
    description: str | None = None,
    tools: Iterable[str] | None = None,
    extra: Iterable[str] = (),
) -> Classification:
    """Suggest a category for a subagent.

    ``extra`` adds further text to search (the back-fill job passes the
    slug) without changing the scoring rules.
    """
    search_text = " ".join(
        [name or "", description or "", *(tools or []), *extra]
    ).lower()

    best_category = OTHER
    best_score = 0
    best_keywords: list[str] = []

    for category, keywords in CATEGORY_KEYWORDS.items():
        matched = [kw for kw in dict.fromkeys(keywords) if kw in search_text]
        if len(matched) > best_score:
            best_category = category
            best_score = len(matched)
            best_keywords = matched

    return Classification(
        category=best_category,
        confidence=_confidence_for(best_score),
        matched_keywords=best_keywords,
    )
