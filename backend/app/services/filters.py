"""
Plateful Backend — Restaurant Filters
=======================================

What:  Storage-level query construction plus in-memory post-filters.
Why:   Static criteria (cuisine, price, reservation, city) are cheap for the
       database to evaluate; tag matching and free text run over the already
       narrowed candidate list so they compose in any order.
How:   build_filter_query() returns one SQLAlchemy boolean clause; the
       match_*/filter_* helpers take and return plain lists of Restaurant rows.

Every function here is pure: no session, no shared state.
"""

from typing import List, Optional, Sequence, Set

from sqlalchemy import ColumnElement, and_, func, or_, true

from app.models.restaurant import Restaurant

# Defaults for a one-sided price range (32-bit signed integer bounds)
PRICE_MIN_BOUND = -(2**31)
PRICE_MAX_BOUND = 2**31 - 1


# ══════════════════════════════════════════════════════════════════════════
# Storage-level query
# ══════════════════════════════════════════════════════════════════════════

def build_filter_query(
    cuisine: Optional[str] = None,
    price_min: Optional[int] = None,
    price_max: Optional[int] = None,
    reservation: Optional[bool] = None,
    cities: Optional[Sequence[str]] = None,
) -> ColumnElement[bool]:
    """
    Translate optional filter parameters into a single WHERE clause.

    Rules:
        cuisine      non-blank → case-insensitive substring match
        price range  either bound → inclusive range; the missing bound is
                     open-ended and inverted bounds are swapped silently
        reservation  present → exact boolean match
        cities       any non-blank entry → OR of exact, trimmed,
                     case-insensitive city matches

    Present predicates are AND-ed. With nothing present the clause is
    `true()`, i.e. every restaurant.
    """
    clauses: List[ColumnElement[bool]] = []

    if cuisine is not None and cuisine.strip():
        clauses.append(Restaurant.cuisine.icontains(cuisine, autoescape=True))

    price_range = _normalized_price_range(price_min, price_max)
    if price_range is not None:
        low, high = price_range
        clauses.append(Restaurant.price_level.between(low, high))

    if reservation is not None:
        clauses.append(Restaurant.reservation_required.is_(reservation))

    city_clause = _city_clause(cities)
    if city_clause is not None:
        clauses.append(city_clause)

    if not clauses:
        return true()
    return and_(*clauses)


def _normalized_price_range(
    price_min: Optional[int], price_max: Optional[int]
) -> Optional[tuple]:
    """Returns (low, high) inclusive, or None when neither bound is given."""
    if price_min is None and price_max is None:
        return None
    low = PRICE_MIN_BOUND if price_min is None else price_min
    high = PRICE_MAX_BOUND if price_max is None else price_max
    if low > high:
        low, high = high, low
    return low, high


def _city_clause(cities: Optional[Sequence[str]]) -> Optional[ColumnElement[bool]]:
    if not cities:
        return None
    matches = [
        func.lower(Restaurant.city) == city.strip().lower()
        for city in cities
        if city is not None and city.strip()
    ]
    if not matches:
        return None
    return or_(*matches)


# ══════════════════════════════════════════════════════════════════════════
# In-memory post-filters
# ══════════════════════════════════════════════════════════════════════════

def _normalized_tags(values: Optional[Sequence[object]]) -> Set[str]:
    """Lower-cases tags and drops blank or non-string entries."""
    if not isinstance(values, (list, tuple, set, frozenset)):
        return set()
    return {v.lower() for v in values if isinstance(v, str) and v.strip()}


def match_any_tags(
    candidates: Optional[List[Restaurant]], tags: Optional[Sequence[str]]
) -> Optional[List[Restaurant]]:
    """
    Keep restaurants carrying at least one of `tags` (case-insensitive).

    An empty candidate list or an empty tag filter returns the candidates
    unchanged rather than matching nothing.
    """
    needles = _normalized_tags(tags)
    if not candidates or not needles:
        return candidates
    return [r for r in candidates if _normalized_tags(r.tags) & needles]


def match_all_tags(
    candidates: Optional[List[Restaurant]], tags: Optional[Sequence[str]]
) -> Optional[List[Restaurant]]:
    """Keep restaurants whose tag set contains every tag in `tags`."""
    needles = _normalized_tags(tags)
    if not candidates or not needles:
        return candidates
    return [r for r in candidates if needles <= _normalized_tags(r.tags)]


def _contains(value: Optional[str], needle: str) -> bool:
    return value is not None and needle in value.lower()


def filter_by_text(
    candidates: List[Restaurant], query: Optional[str]
) -> List[Restaurant]:
    """
    Keep restaurants whose name, description or cuisine contains `query`.

    A blank query returns the input list itself (same elements, same order).
    """
    if query is None or not query.strip():
        return candidates
    needle = query.strip().lower()
    return [
        r for r in candidates
        if _contains(r.name, needle)
        or _contains(r.description, needle)
        or _contains(r.cuisine, needle)
    ]
