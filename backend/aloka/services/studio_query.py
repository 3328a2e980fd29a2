"""
ALOKA Backend — Studio Listing Query Builder
=============================================

What:  Turns validated StudioFilters into one deterministic SELECT, a matching
       COUNT, and pagination metadata.
Why:   GET /api/studios is the only endpoint with real rules: visibility,
       independent range filters, full-text search, a fixed total order and
       offset pagination. Keeping them here (pure functions, no session)
       makes each rule testable on its own.
Who:   Called by StudioService.list_studios.

Predicate (all ANDed):
    is_active = true AND deleted_at IS NULL        always, no override
    <text match>                                   if search
    lower(city) LIKE lower('%<city>%')             if city
    per_hour_charge >= min_price                   if min_price
    per_hour_charge <= max_price                   if max_price
    max_distance >= min_distance                   if min_distance
    max_distance <= max_distance                   if max_distance
    rating >= min_rating                           if min_rating

    Bounds are never reordered: min_price > max_price simply matches nothing.

Order:
    rating DESC, created_at DESC, id DESC
    The id tiebreak makes the order total, so offset pagination never
    shows a row twice or skips one between two identical requests.

Text search (a studio matches if ANY search term matches):
    PostgreSQL: to_tsvector('english', studio_name || ' ' || description
                || ' ' || city) @@ to_tsquery('english', 'loft | warehouse'),
                the same expression as idx_studios_text_search. Terms are
                reduced to letters and digits before joining, so user input
                never reaches the tsquery syntax.
    Others:     at least one whitespace-separated term appears
                (case-insensitive) in at least one of the three fields
"""

import math
import re
from typing import List, Optional

from sqlalchemy import Boolean, ColumnElement, Select, func, or_, select
from sqlalchemy.ext.compiler import compiles

from aloka.models.studio import Studio
from aloka.schemas.studio import PaginationMeta, StudioFilters


# Columns covered by the text index, in index expression order
_studios = Studio.__table__.c
TEXT_SEARCH_COLUMNS = (_studios.studio_name, _studios.description, _studios.city)

# Must match the migration's index expression for the planner to use it
TEXT_SEARCH_CONFIG = "english"

# Letters and digits only; everything else is tsquery syntax or noise
_TSQUERY_WORD = re.compile(r"[^\W_]+")


def escape_like(value: str, escape: str = "\\") -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return (
        value.replace(escape, escape + escape)
        .replace("%", escape + "%")
        .replace("_", escape + "_")
    )


def contains_ci(column, value: str) -> ColumnElement[bool]:
    """Case-insensitive substring match."""
    return column.ilike(f"%{escape_like(value)}%", escape="\\")


# ══════════════════════════════════════════════════════════════════════════
# Full-text match construct
# ══════════════════════════════════════════════════════════════════════════


class TextMatch(ColumnElement[bool]):
    """
    Boolean SQL element: "the studio's indexed text matches `search`".

    Compiled per dialect below, so the query builder stays dialect-agnostic
    and the PostgreSQL form can hit the GIN expression index.
    """

    type = Boolean()
    inherit_cache = False

    def __init__(self, columns, search: str):
        self.search_columns = tuple(columns)
        self.search = search


def tsquery_any_term(search: str) -> Optional[str]:
    """
    'Loft, warehouse!' → 'loft | warehouse'. None when the input has no
    letters or digits at all.
    """
    words = _TSQUERY_WORD.findall(search.lower())
    if not words:
        return None
    return " | ".join(dict.fromkeys(words))


@compiles(TextMatch)
def _compile_text_match_fallback(element: TextMatch, compiler, **kw) -> str:
    terms = element.search.split()
    clause = or_(*[contains_ci(col, term) for term in terms for col in element.search_columns])
    return compiler.process(clause, **kw)


@compiles(TextMatch, "postgresql")
def _compile_text_match_postgresql(element: TextMatch, compiler, **kw) -> str:
    document = " || ' ' || ".join(compiler.process(col, **kw) for col in element.search_columns)
    any_term = tsquery_any_term(element.search)
    if any_term is None:
        # Punctuation-only input: plainto_tsquery yields an empty query, matching nothing
        tsquery = func.plainto_tsquery(TEXT_SEARCH_CONFIG, element.search)
    else:
        tsquery = func.to_tsquery(TEXT_SEARCH_CONFIG, any_term)
    return f"to_tsvector('{TEXT_SEARCH_CONFIG}', {document}) @@ {compiler.process(tsquery, **kw)}"


# ══════════════════════════════════════════════════════════════════════════
# Query construction
# ══════════════════════════════════════════════════════════════════════════


def build_predicates(filters: StudioFilters) -> List[ColumnElement[bool]]:
    """Visibility predicate first, then one predicate per present filter."""
    predicates: List[ColumnElement[bool]] = [
        Studio.is_active.is_(True),
        Studio.deleted_at.is_(None),
    ]

    if filters.search:
        predicates.append(TextMatch(TEXT_SEARCH_COLUMNS, filters.search))

    if filters.city:
        predicates.append(contains_ci(Studio.city, filters.city))

    if filters.min_price is not None:
        predicates.append(Studio.per_hour_charge >= filters.min_price)
    if filters.max_price is not None:
        predicates.append(Studio.per_hour_charge <= filters.max_price)

    if filters.min_distance is not None:
        predicates.append(Studio.max_distance >= filters.min_distance)
    if filters.max_distance is not None:
        predicates.append(Studio.max_distance <= filters.max_distance)

    if filters.min_rating is not None:
        predicates.append(Studio.rating >= filters.min_rating)

    return predicates


def build_listing_query(filters: StudioFilters) -> Select:
    """SELECT one page of studios in the fixed listing order."""
    return (
        select(Studio)
        .where(*build_predicates(filters))
        .order_by(Studio.rating.desc(), Studio.created_at.desc(), Studio.id.desc())
        .offset(filters.offset)
        .limit(filters.limit)
    )


def build_count_query(filters: StudioFilters) -> Select:
    """COUNT over the same predicate, without ordering or pagination."""
    return select(func.count(Studio.id)).where(*build_predicates(filters))


def build_pagination(page: int, limit: int, total_count: int) -> PaginationMeta:
    """
    Pagination metadata for a page of results.

    total is at least 1 so an empty result reads "page 1 of 1" rather than
    "page 1 of 0".
    """
    total_pages = max(1, math.ceil(total_count / limit))
    return PaginationMeta(
        current=page,
        total=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
        total_count=total_count,
    )
