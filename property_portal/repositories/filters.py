"""
Listing filter builder.

Turns the loose query-parameter bag sent by listing endpoints into SQLAlchemy
predicates: one set against ``Property`` columns, one against the related
``PropertyLocation``, plus an optional amenity restriction. Also parses
pagination and validates sort input.

Everything here is a pure function of its arguments. Malformed filter values
are ignored rather than rejected; only sort input is validated strictly.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Type
import enum
import re
import uuid

from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

from property_portal.models.amenity import Amenity
from property_portal.models.property import (
    Property,
    PropertyLocation,
    PropertyType,
    ListingType,
    FurnishType,
    PropertyStatus,
)
from property_portal.utils.exceptions import ValidationError


class ListingScope(str, enum.Enum):
    """Which listing operation the filters are built for."""
    GENERAL = "general"
    SEARCH = "search"
    FEATURED = "featured"
    OWNER = "owner"


SORTABLE_COLUMNS = {
    "created_at": Property.created_at,
    "updated_at": Property.updated_at,
    "price": Property.price,
    "title": Property.title,
    "views_count": Property.views_count,
    "bedroom": Property.bedroom,
    "bathroom": Property.bathroom,
    "area": Property.area,
    "monthly_rent": Property.monthly_rent,
}

SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class PropertyFilterSet:
    """Predicates produced for one listing request."""

    property_conditions: Tuple[ColumnElement, ...] = ()
    location_conditions: Tuple[ColumnElement, ...] = ()
    amenity_ids: Tuple[uuid.UUID, ...] = ()

    @property
    def requires_location(self) -> bool:
        return bool(self.location_conditions)

    def where_clauses(self) -> List[ColumnElement]:
        """
        All predicates as WHERE clauses on ``Property``.

        Location and amenity predicates become EXISTS subqueries, so a
        matching related row is required and the property row is never
        multiplied by the join.
        """
        clauses = list(self.property_conditions)
        if self.location_conditions:
            clauses.append(Property.location.has(and_(*self.location_conditions)))
        if self.amenity_ids:
            clauses.append(Property.amenities.any(Amenity.id.in_(self.amenity_ids)))
        return clauses


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = 10
    sort_by: str = "created_at"
    sort_order: str = "desc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# Parameter coercion helpers

def clean_text(value: Any) -> Optional[str]:
    """Return the stripped string, or None when absent or blank."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


_LEADING_INT = re.compile(r"[+-]?\d+")


def parse_int(value: Any) -> Optional[int]:
    """Leading integer of the value, so "2.5" reads as 2 and "3rd" as 3."""
    text = clean_text(value)
    if text is None:
        return None
    match = _LEADING_INT.match(text)
    return int(match.group()) if match else None


def parse_decimal(value: Any) -> Optional[Decimal]:
    text = clean_text(value)
    if text is None:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def parse_bool_flag(value: Any) -> Optional[bool]:
    """Tri-state flag: only the literal strings "true" and "false" count."""
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def parse_enum(enum_cls: Type[enum.Enum], value: Any) -> Optional[enum.Enum]:
    text = clean_text(value)
    if text is None:
        return None
    try:
        return enum_cls(text.lower())
    except ValueError:
        return None


def parse_uuid(value: Any) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    text = clean_text(value)
    if text is None:
        return None
    try:
        return uuid.UUID(text)
    except ValueError:
        return None


def parse_uuid_list(value: Any) -> Tuple[uuid.UUID, ...]:
    """Accept a list, or a comma separated string, of ids. Bad entries are dropped."""
    if value is None:
        return ()
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        items = value
    else:
        items = [value]
    parsed = []
    for item in items:
        item_id = parse_uuid(item)
        if item_id is not None and item_id not in parsed:
            parsed.append(item_id)
    return tuple(parsed)


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _contains(column, term: str) -> ColumnElement:
    return column.ilike(_like_pattern(term), escape="\\")


# Builders

def build_property_filters(
    params: Mapping[str, Any],
    scope: ListingScope = ListingScope.GENERAL
) -> PropertyFilterSet:
    """
    Build the predicate set for a listing request.

    Args:
        params: Raw query parameters. Any key may be missing, empty or malformed.
        scope: The listing operation. SEARCH and FEATURED pin status to
            published and FEATURED pins is_featured to true; SEARCH alone
            honours the amenity filter; GENERAL alone also matches the text
            search against ``unique_id``.

    Returns:
        PropertyFilterSet
    """
    conditions: List[ColumnElement] = []
    location_conditions: List[ColumnElement] = []

    term = clean_text(params.get("search")) or clean_text(params.get("query"))
    if term:
        text_columns = [Property.title, Property.description]
        if scope == ListingScope.GENERAL:
            text_columns.append(Property.unique_id)
        conditions.append(or_(*[_contains(column, term) for column in text_columns]))

    exact_enums = (
        ("property_type", PropertyType, Property.property_type),
        ("listing_type", ListingType, Property.listing_type),
        ("furnish_type", FurnishType, Property.furnish_type),
    )
    for key, enum_cls, column in exact_enums:
        parsed = parse_enum(enum_cls, params.get(key))
        if parsed is not None:
            conditions.append(column == parsed)

    if scope in (ListingScope.SEARCH, ListingScope.FEATURED):
        conditions.append(Property.status == PropertyStatus.PUBLISHED)
    else:
        status = parse_enum(PropertyStatus, params.get("status"))
        if status is not None:
            conditions.append(Property.status == status)

    for key, column in (("bedroom", Property.bedroom), ("bathroom", Property.bathroom)):
        parsed_int = parse_int(params.get(key))
        if parsed_int is not None:
            conditions.append(column == parsed_int)

    owner_id = parse_uuid(params.get("owner_id"))
    if owner_id is not None:
        conditions.append(Property.owner_id == owner_id)

    if scope == ListingScope.FEATURED:
        conditions.append(Property.is_featured.is_(True))
    else:
        is_featured = parse_bool_flag(params.get("is_featured"))
        if is_featured is not None:
            conditions.append(Property.is_featured.is_(is_featured))

    is_verified = parse_bool_flag(params.get("is_verified"))
    if is_verified is not None:
        conditions.append(Property.is_verified.is_(is_verified))

    min_price = parse_decimal(params.get("min_price"))
    if min_price is not None:
        conditions.append(Property.price >= min_price)
    max_price = parse_decimal(params.get("max_price"))
    if max_price is not None:
        conditions.append(Property.price <= max_price)

    city = clean_text(params.get("city"))
    if city:
        location_conditions.append(_contains(PropertyLocation.city, city))
    locality = clean_text(params.get("locality"))
    if locality:
        location_conditions.append(_contains(PropertyLocation.locality, locality))

    amenity_ids: Tuple[uuid.UUID, ...] = ()
    if scope == ListingScope.SEARCH:
        amenity_ids = parse_uuid_list(params.get("amenities"))

    return PropertyFilterSet(
        property_conditions=tuple(conditions),
        location_conditions=tuple(location_conditions),
        amenity_ids=amenity_ids,
    )


def parse_page_request(
    params: Mapping[str, Any],
    default_limit: int = 10,
    max_limit: int = 100
) -> PageRequest:
    """
    Coerce pagination and validate sorting.

    Page and limit fall back to defaults when malformed and are clamped into
    range. Sort column and direction must be known values.

    Raises:
        ValidationError: If sort_by or sort_order is not allowed
    """
    page = parse_int(params.get("page"))
    if page is None or page < 1:
        page = 1

    limit = parse_int(params.get("limit"))
    if limit is None:
        limit = default_limit
    limit = max(1, min(limit, max_limit))

    sort_by = clean_text(params.get("sort_by")) or "created_at"
    if sort_by not in SORTABLE_COLUMNS:
        raise ValidationError(
            f"Cannot sort by '{sort_by}'. Allowed: {', '.join(sorted(SORTABLE_COLUMNS))}"
        )

    sort_order = (clean_text(params.get("sort_order")) or "desc").lower()
    if sort_order not in SORT_DIRECTIONS:
        raise ValidationError("sort_order must be 'asc' or 'desc'")

    return PageRequest(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)


def sort_clause(page_request: PageRequest) -> List[ColumnElement]:
    """ORDER BY for a page request, with ``id`` as a stable tie breaker."""
    column = SORTABLE_COLUMNS[page_request.sort_by]
    primary = column.asc() if page_request.sort_order == "asc" else column.desc()
    return [primary, Property.id.asc()]
