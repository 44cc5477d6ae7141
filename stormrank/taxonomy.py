"""
Taxonomy classifier
===================

The event-type column is free text: hundreds of distinct spellings such as
"TSTM WIND", "THUNDERSTORM WINDS/HAIL", "FLASH FLOODING", "TORNDAO".
This module collapses them into a small closed set of categories.

How it works:
- `DEFAULT_RULES` is an *ordered* list of (category, patterns).
- A label is tested against each rule in order; the first rule with any
  matching pattern wins (patterns are case-insensitive regexes, most are
  plain substrings).
- A label that matches nothing goes to the fallback category (Other).

Because of the ordering, "thunderstorm wind" is a storm (storm is listed
before wind) and "ice storm" is a storm too (storm is listed before ice).
The order is a policy: pass your own rules to `CategoryMapping` to change it.
"""

from __future__ import annotations
from dataclasses import replace
from enum import Enum
from typing import TYPE_CHECKING, Iterable, List, Optional, Pattern, Sequence, Tuple
import re

if TYPE_CHECKING:
    from .models import LabelAggregate


class Category(str, Enum):
    """Canonical event categories (value = display name)."""
    HAIL = "Hail"
    TORNADOES = "Tornadoes"
    TSUNAMIS = "Tsunamis"
    STORMS_RAINS = "Storms/Rains"
    LIGHTNING = "Lightning"
    FLOODS = "Floods"
    COLD_SNOW = "Cold/Snow"
    HEAT = "Heat"
    WINDS = "Winds"
    FOG = "Fog"
    MARINE = "Marine"
    DROUGHT = "Drought"
    FIRES = "Fires"
    LANDSLIDES = "Landslides"
    OTHER = "Other"


# Priority order: first match wins.
DEFAULT_RULES: Tuple[Tuple[Category, Tuple[str, ...]], ...] = (
    (Category.HAIL, ("hail",)),
    (Category.TORNADOES, ("tornado", "torndao", "funnel")),
    (Category.TSUNAMIS, ("tsunami",)),
    (Category.STORMS_RAINS, ("storm", "tstm", "rain", "hurricane", "waterspout")),
    (Category.LIGHTNING, ("lightning", "lighting", "ligntning")),
    (Category.FLOODS, ("flood", "fld", "seiche")),
    (Category.COLD_SNOW, ("cold", "snow", "ice", "winter", "blizzard", "avalanche", "avalance")),
    (Category.HEAT, ("heat", "hot", "warm")),
    (Category.WINDS, ("wind", "wnd", "whirlwind", "burst")),
    (Category.FOG, ("fog",)),
    (Category.MARINE, ("marine", "ocean", "tide", "surf", "current", "swell")),
    (Category.DROUGHT, ("drought",)),
    (Category.FIRES, ("fire", "smoke")),
    (Category.LANDSLIDES, ("landslide", r"mud\s*slide")),
)


class CategoryMapping:
    """An ordered, compiled rule table with one fallback category."""

    def __init__(self, rules: Iterable[Tuple[Category, Sequence[str]]], fallback: Category = Category.OTHER):
        compiled: List[Tuple[Category, Tuple[Pattern[str], ...]]] = []
        for category, patterns in rules:
            category = Category(category)
            if category == fallback:
                raise ValueError(f"Fallback category {fallback.value!r} cannot also be a rule")
            if not patterns:
                raise ValueError(f"Rule for {category.value!r} has no patterns")
            try:
                compiled.append((category, tuple(re.compile(p, re.IGNORECASE) for p in patterns)))
            except re.error as e:
                raise ValueError(f"Invalid pattern in rule {category.value!r}: {e}") from e
        self.rules = tuple(compiled)
        self.fallback = Category(fallback)

    def classify(self, label: Optional[str]) -> Category:
        """Return the category of `label` (never None, never more than one)."""
        text = "" if label is None else str(label)
        for category, patterns in self.rules:
            if any(p.search(text) for p in patterns):
                return category
        return self.fallback

    def categories(self) -> List[Category]:
        """Rule categories in priority order, followed by the fallback."""
        out: List[Category] = []
        for category, _ in self.rules:
            if category not in out:
                out.append(category)
        out.append(self.fallback)
        return out

    def __repr__(self) -> str:
        return f"CategoryMapping(rules={len(self.rules)}, fallback={self.fallback.value!r})"


DEFAULT_MAPPING = CategoryMapping(DEFAULT_RULES)


def classify_labels(aggregates: Iterable["LabelAggregate"], mapping: CategoryMapping = DEFAULT_MAPPING) -> List["LabelAggregate"]:
    """Return classified copies of label aggregates (inputs are left untouched)."""
    return [replace(a, category=mapping.classify(a.label)) for a in aggregates]
