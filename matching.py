"""Description-to-category matching.

Matching is a case-insensitive substring test: the first category (in list
order) whose name occurs anywhere in the transaction description wins.
There is no scoring and no word-boundary awareness, so a description like
"Fast Food" lands in a category named "Food". Reports and budgets depend on
this exact behavior; change it only together with the figures it produces.
"""

from typing import Iterable, Optional, Protocol, Sequence, TypeVar

OTHER_CATEGORY = "Other"


class Named(Protocol):
    name: str


N = TypeVar("N", bound=Named)


def find_category(description: str, categories: Sequence[N]) -> Optional[N]:
    haystack = (description or "").lower()
    for category in categories:
        if category.name.lower() in haystack:
            return category
    return None


def match_for_sync(description: str, categories: Sequence[N]) -> Optional[str]:
    """Name of the matching budget category, or None when the spend should be dropped."""
    category = find_category(description, categories)
    return category.name if category else None


def match_for_report(description: str, names: Iterable[str]) -> str:
    """Name of the matching category, with unmatched spend bucketed under "Other"."""
    haystack = (description or "").lower()
    for name in names:
        if name.lower() in haystack:
            return name
    return OTHER_CATEGORY


def match_category(description: str, categories: Sequence[N]) -> str:
    return match_for_report(description, [c.name for c in categories])
