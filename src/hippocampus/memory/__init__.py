"""Episode records and the pattern taxonomy used for rule promotion."""

from src.hippocampus.memory.taxonomy import (
    FALLBACK_PATTERN_KEY,
    PATTERN_LABELS,
    PATTERN_SUPER_CATEGORY,
    RULE_DESCRIPTIONS,
    SUPER_CATEGORY_LABELS,
    TAXONOMY_RULES,
    PatternKey,
    SuperCategory,
    TaxonomyRule,
    build_rule_description_for_key,
    build_rule_title_for_key,
    map_to_pattern_key,
    normalize_text,
    pattern_label_for_key,
    super_category_for_key,
    super_category_label_for_key,
    validate_taxonomy,
)
from src.hippocampus.memory.models import Episode

__all__ = [
    # Models
    "Episode",
    # Taxonomy
    "FALLBACK_PATTERN_KEY",
    "PATTERN_LABELS",
    "PATTERN_SUPER_CATEGORY",
    "RULE_DESCRIPTIONS",
    "SUPER_CATEGORY_LABELS",
    "TAXONOMY_RULES",
    "PatternKey",
    "SuperCategory",
    "TaxonomyRule",
    "build_rule_description_for_key",
    "build_rule_title_for_key",
    "map_to_pattern_key",
    "normalize_text",
    "pattern_label_for_key",
    "super_category_for_key",
    "super_category_label_for_key",
    "validate_taxonomy",
]
