#!/usr/bin/env python3
"""Backend-agnostic element locators and their accessibility-API translation"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

EXACT = "exact"
CONTAINS = "contains"

# (param name, AX attribute, match type), in criterion order
LOCATOR_FIELDS = [
    ("identifier", "AXIdentifier", EXACT),
    ("title", "AXTitle", EXACT),
    ("role", "AXRole", EXACT),
    ("description", "AXDescription", CONTAINS),
    ("placeholder", "AXPlaceholderValue", CONTAINS),
    ("label", "AXTitle", EXACT),
]


@dataclass
class Criterion:
    attribute: str
    value: str
    match_type: str = EXACT

    def to_dict(self) -> Dict[str, str]:
        return {"attribute": self.attribute, "value": self.value, "match_type": self.match_type}


@dataclass
class Locator:
    """All criteria must match (logical AND)"""
    criteria: List[Criterion] = field(default_factory=list)

    def to_axorc(self) -> Dict[str, Any]:
        return {"criteria": [c.to_dict() for c in self.criteria], "match_all": True}

    def describe(self) -> str:
        return ", ".join(f"{c.attribute}={c.value!r}" for c in self.criteria)


def build_locator(params: Dict[str, Any]) -> Optional[Locator]:
    """
    Build a locator from call parameters.

    `value` only becomes a criterion when nothing else identifies the
    element, since assert also uses it as the expected value.

    Returns:
        A Locator, or None when no criterion was supplied.
    """
    criteria = []
    for name, attribute, match_type in LOCATOR_FIELDS:
        value = params.get(name)
        if isinstance(value, str):
            criteria.append(Criterion(attribute, value, match_type))

    value = params.get("value")
    if isinstance(value, str) and not criteria:
        criteria.append(Criterion("AXValue", value, CONTAINS))

    if not criteria:
        return None
    return Locator(criteria)
