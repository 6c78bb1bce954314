"""Pattern taxonomy - maps episodes onto a fixed set of recurring incident patterns.

Classification is an ordered rule table evaluated first-match-wins, so
more specific categories sit above general ones. Input that matches no
rule lands in a fixed fallback bucket. The classifier never fails on
input; only a key with no label (a broken table) raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping

from src.hippocampus.errors import TaxonomyConfigError


class PatternKey(str, Enum):
    """Canonical pattern identifiers used for rule promotion."""
    REVIEW_HYGIENE = "review-hygiene"
    SENSITIVE_LOGGING = "sensitive-logging"
    AUTH_TOKEN_HANDLING = "auth-token-handling"
    ERROR_CONTRACT = "error-contract"
    CONCURRENCY_SERIALIZATION = "concurrency-serialization"
    IDEMPOTENCY = "idempotency"
    RETRY_STRATEGY = "retry-strategy"
    INPUT_VALIDATION = "input-validation"
    STATE_TRANSITION = "state-transition"
    DEPENDENCY_RESILIENCE = "dependency-resilience"

    @classmethod
    def parse(cls, value: Any) -> PatternKey | None:
        """Return the key for ``value``, or None if it is not a known key."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class SuperCategory(str, Enum):
    """Coarse grouping of pattern keys for display."""
    SAFETY = "safety"
    RESILIENCE = "resilience"
    SECURITY = "security"
    FLOW = "flow"


FALLBACK_PATTERN_KEY = PatternKey.REVIEW_HYGIENE

PATTERN_LABELS: dict[PatternKey, str] = {
    PatternKey.REVIEW_HYGIENE: "Review hygiene",
    PatternKey.SENSITIVE_LOGGING: "Sensitive logging",
    PatternKey.AUTH_TOKEN_HANDLING: "Auth token handling",
    PatternKey.ERROR_CONTRACT: "Error contract consistency",
    PatternKey.CONCURRENCY_SERIALIZATION: "Concurrency serialization",
    PatternKey.IDEMPOTENCY: "Idempotency enforcement",
    PatternKey.RETRY_STRATEGY: "Retry strategy",
    PatternKey.INPUT_VALIDATION: "Input validation",
    PatternKey.STATE_TRANSITION: "State transition integrity",
    PatternKey.DEPENDENCY_RESILIENCE: "Dependency resilience",
}

RULE_DESCRIPTIONS: dict[PatternKey, str] = {
    PatternKey.REVIEW_HYGIENE: "Convert repeated review feedback into enforceable implementation checks.",
    PatternKey.SENSITIVE_LOGGING: "Redact sensitive payload fields before logs leave process boundaries.",
    PatternKey.AUTH_TOKEN_HANDLING: "Prevent credential propagation across service boundaries.",
    PatternKey.ERROR_CONTRACT: "Keep handler response contracts and error envelopes structurally consistent.",
    PatternKey.CONCURRENCY_SERIALIZATION: "Serialize concurrent writes around shared mutable resources.",
    PatternKey.IDEMPOTENCY: "Enforce idempotency keys and duplicate-write guards.",
    PatternKey.RETRY_STRATEGY: "Bound retry behavior with backoff and failure caps.",
    PatternKey.INPUT_VALIDATION: "Validate external input before side effects or persistence.",
    PatternKey.STATE_TRANSITION: "Guard allowed state transitions with explicit invariants.",
    PatternKey.DEPENDENCY_RESILIENCE: "Harden upstream/downstream integration boundaries and fallbacks.",
}

SUPER_CATEGORY_LABELS: dict[SuperCategory, str] = {
    SuperCategory.SAFETY: "Safety",
    SuperCategory.RESILIENCE: "Resilience",
    SuperCategory.SECURITY: "Security",
    SuperCategory.FLOW: "Flow",
}

PATTERN_SUPER_CATEGORY: dict[PatternKey, SuperCategory] = {
    PatternKey.ERROR_CONTRACT: SuperCategory.SAFETY,
    PatternKey.INPUT_VALIDATION: SuperCategory.SAFETY,
    PatternKey.RETRY_STRATEGY: SuperCategory.RESILIENCE,
    PatternKey.DEPENDENCY_RESILIENCE: SuperCategory.RESILIENCE,
    PatternKey.IDEMPOTENCY: SuperCategory.RESILIENCE,
    PatternKey.SENSITIVE_LOGGING: SuperCategory.SECURITY,
    PatternKey.AUTH_TOKEN_HANDLING: SuperCategory.SECURITY,
    PatternKey.CONCURRENCY_SERIALIZATION: SuperCategory.FLOW,
    PatternKey.STATE_TRANSITION: SuperCategory.FLOW,
    PatternKey.REVIEW_HYGIENE: SuperCategory.FLOW,
}


@dataclass(frozen=True)
class TaxonomyRule:
    """One row of the rule table.

    ``phrases`` are normalized token runs matched against the corpus;
    ``trigger_tags`` are matched against whole normalized trigger tags.
    """
    key: PatternKey
    phrases: tuple[str, ...] = ()
    trigger_tags: tuple[str, ...] = ()

    def matches(self, corpus: str, triggers: frozenset[str]) -> bool:
        padded = f" {corpus} "
        if any(f" {phrase} " in padded for phrase in self.phrases):
            return True
        return any(tag in triggers for tag in self.trigger_tags)


# Order is priority: the first matching rule wins.
TAXONOMY_RULES: tuple[TaxonomyRule, ...] = (
    TaxonomyRule(
        PatternKey.SENSITIVE_LOGGING,
        phrases=("log", "logs", "logging", "redact", "mask", "sanitize",
                 "pii", "pci", "pan", "sensitive"),
        trigger_tags=("sensitive logging", "log redaction"),
    ),
    TaxonomyRule(
        PatternKey.AUTH_TOKEN_HANDLING,
        phrases=("token", "tokens", "bearer", "credential", "credentials",
                 "auth", "authentication", "authorization", "session", "jwt"),
        trigger_tags=("credential propagation", "bearer token forwarding"),
    ),
    TaxonomyRule(
        PatternKey.ERROR_CONTRACT,
        phrases=("error", "response", "schema", "shape", "contract", "status code"),
        trigger_tags=("error envelope", "response contract"),
    ),
    TaxonomyRule(
        PatternKey.CONCURRENCY_SERIALIZATION,
        phrases=("concurrent", "concurrency", "race", "interleave", "interleaving",
                 "serialize", "lock", "locks", "mutex"),
        trigger_tags=("race condition",),
    ),
    TaxonomyRule(
        PatternKey.IDEMPOTENCY,
        phrases=("idempotent", "idempotency", "duplicate", "duplicates",
                 "duplicated", "replay"),
        trigger_tags=("idempotency key", "duplicate write"),
    ),
    TaxonomyRule(
        PatternKey.RETRY_STRATEGY,
        phrases=("retry", "retries", "backoff", "timeout", "timeouts",
                 "circuit breaker"),
    ),
    TaxonomyRule(
        PatternKey.INPUT_VALIDATION,
        phrases=("validate", "validation", "sanitization", "constraint",
                 "constraints", "guard rail", "guard rails"),
    ),
    TaxonomyRule(
        PatternKey.STATE_TRANSITION,
        phrases=("state", "transition", "workflow", "invariant", "invariants"),
    ),
    TaxonomyRule(
        PatternKey.DEPENDENCY_RESILIENCE,
        phrases=("upstream", "downstream", "provider", "external service", "dependency"),
    ),
    TaxonomyRule(
        PatternKey.REVIEW_HYGIENE,
        phrases=("review", "comment", "cleanup", "refactor"),
    ),
)

_TOKEN_SPLIT = re.compile(r"[^0-9a-z]+")

_CORPUS_FIELDS = ("title", "the_pattern", "what_happened", "the_fix")


def normalize_text(text: str) -> str:
    """Case-fold and collapse every non-alphanumeric run to one space."""
    tokens = _TOKEN_SPLIT.split(text.casefold())
    return " ".join(token for token in tokens if token)


def _read(source: Any, name: str) -> Any:
    if isinstance(source, Mapping):
        return source.get(name)
    return getattr(source, name, None)


def _collect(source: Any) -> tuple[str, frozenset[str]]:
    parts = []
    for name in _CORPUS_FIELDS:
        value = _read(source, name)
        if isinstance(value, str):
            parts.append(value)

    raw_triggers = _read(source, "triggers") or ()
    if isinstance(raw_triggers, str):
        raw_triggers = (raw_triggers,)
    triggers = [normalize_text(t) for t in raw_triggers if isinstance(t, str)]

    corpus = normalize_text(" ".join(parts + triggers))
    return corpus, frozenset(t for t in triggers if t)


def map_to_pattern_key(
    episode: Any,
    rules: Iterable[TaxonomyRule] = TAXONOMY_RULES,
) -> PatternKey:
    """Classify an episode (or a mapping with ``title``/``triggers``).

    Total and deterministic: malformed input falls through to the
    fallback bucket.
    """
    corpus, triggers = _collect(episode)
    for rule in rules:
        if rule.matches(corpus, triggers):
            return rule.key
    return FALLBACK_PATTERN_KEY


def _require(table: Mapping[PatternKey, Any], key: Any, what: str) -> Any:
    parsed = PatternKey.parse(key)
    if parsed is None or parsed not in table:
        raise TaxonomyConfigError(f"No {what} for pattern key {key!r}")
    return table[parsed]


def pattern_label_for_key(key: PatternKey | str) -> str:
    """Human label for ``key``; raises TaxonomyConfigError if it has none."""
    return _require(PATTERN_LABELS, key, "label")


def build_rule_title_for_key(key: PatternKey | str) -> str:
    return f"Guard against {pattern_label_for_key(key).lower()}"


def build_rule_description_for_key(key: PatternKey | str) -> str:
    return _require(RULE_DESCRIPTIONS, key, "rule description")


def super_category_for_key(key: PatternKey | str) -> SuperCategory:
    return _require(PATTERN_SUPER_CATEGORY, key, "super-category")


def super_category_label_for_key(key: PatternKey | str) -> str:
    category = super_category_for_key(key)
    if category not in SUPER_CATEGORY_LABELS:
        raise TaxonomyConfigError(f"No label for super-category {category.value!r}")
    return SUPER_CATEGORY_LABELS[category]


def validate_taxonomy(rules: Iterable[TaxonomyRule] = TAXONOMY_RULES) -> None:
    """Check that every reachable key is fully described.

    Runs at import time so a broken table fails immediately rather than
    on the first unlucky episode.
    """
    reachable = {rule.key for rule in rules} | {FALLBACK_PATTERN_KEY}
    for key in set(PatternKey) | reachable:
        pattern_label_for_key(key)
        build_rule_description_for_key(key)
        super_category_label_for_key(key)


validate_taxonomy()
