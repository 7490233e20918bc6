"""
Filter compilation for the public listing search.

Turns the raw, stringly-typed query parameters sent by the browsing
frontend into a typed FilterSpec, and a FilterSpec into SQLAlchemy
predicates over the Listing entity.

Compilation never rejects a request. A parameter that cannot be
understood is dropped and reported as a FilterIssue so the caller can
log it.
"""

import logging
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple

from sqlalchemy import ColumnElement, String, func, or_

from homefinder.models.entities import City, Listing, ListingPurpose, Location, PropertyType
from homefinder.models.property import FilterIssue, FilterSpec

logger = logging.getLogger(__name__)

# Parameters whose "match everything" sentinel the frontend sends explicitly
WILDCARDS = {
    "city": "all",
    "purpose": "all",
    "type": "all",
    "bedrooms": "any",
    "bathrooms": "any",
}


class CompiledFilters(NamedTuple):
    """A compiled FilterSpec plus the parameters that were ignored."""

    spec: FilterSpec
    issues: List[FilterIssue]


def _clean(params: Mapping[str, Optional[str]], name: str) -> Optional[str]:
    """Return the trimmed value of a parameter, or None if unset or a wildcard."""
    raw = params.get(name)
    if raw is None:
        return None
    value = str(raw).strip()
    if not value:
        return None
    wildcard = WILDCARDS.get(name)
    if wildcard is not None and value.lower() == wildcard:
        return None
    return value


def parse_count(value: str) -> Tuple[int, bool]:
    """
    Parse a room-count filter value.

    Args:
        value: Either a plain integer ("2") or an open-ended bound ("5+").

    Returns:
        Tuple of the count and whether it is a lower bound.

    Raises:
        ValueError: If the value is not a non-negative integer.
    """
    at_least = value.endswith("+")
    digits = value[:-1].strip() if at_least else value
    if not (digits.isascii() and digits.isdigit()):
        raise ValueError(f"not a room count: {value!r}")
    return int(digits), at_least


def parse_amount(value: str) -> Decimal:
    """Parse a non-negative, finite decimal amount."""
    try:
        amount = Decimal(value)
    except InvalidOperation as e:
        raise ValueError(f"not a number: {value!r}") from e
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"not a usable amount: {value!r}")
    return amount


def parse_area(value: str) -> float:
    """Parse a non-negative, finite floor area."""
    area = float(value)
    if not math.isfinite(area) or area < 0:
        raise ValueError(f"not a usable area: {value!r}")
    return area


def compile_filters(params: Mapping[str, Optional[str]]) -> CompiledFilters:
    """
    Compile raw query parameters into a FilterSpec.

    Recognized parameters are city, purpose, type, bedrooms, bathrooms,
    minPrice, maxPrice, minArea, maxArea and location. Anything else is
    ignored silently; recognized parameters with malformed values are
    ignored and reported.

    Args:
        params: Mapping of parameter names to raw string values.

    Returns:
        CompiledFilters with the typed spec and any ignored parameters.
    """
    fields: Dict[str, Any] = {}
    issues: List[FilterIssue] = []

    def reject(param: str, value: str, reason: str) -> None:
        issues.append(FilterIssue(param=param, value=value, reason=reason))

    city = _clean(params, "city")
    if city:
        fields["city"] = city

    purpose = _clean(params, "purpose")
    if purpose:
        try:
            fields["purpose"] = ListingPurpose(purpose.upper())
        except ValueError:
            reject("purpose", purpose, "unknown purpose")

    property_type = _clean(params, "type")
    if property_type:
        fields["property_type"] = property_type

    for param in ("bedrooms", "bathrooms"):
        value = _clean(params, param)
        if not value:
            continue
        try:
            count, at_least = parse_count(value)
        except ValueError as e:
            reject(param, value, str(e))
            continue
        fields[f"min_{param}" if at_least else param] = count

    for param, field, parser in (
        ("minPrice", "min_price", parse_amount),
        ("maxPrice", "max_price", parse_amount),
        ("minArea", "min_area", parse_area),
        ("maxArea", "max_area", parse_area),
    ):
        value = _clean(params, param)
        if not value:
            continue
        try:
            fields[field] = parser(value)
        except ValueError as e:
            reject(param, value, str(e))

    location_text = _clean(params, "location")
    if location_text:
        fields["location_text"] = location_text

    for issue in issues:
        logger.debug("Ignoring filter %s=%r: %s", issue.param, issue.value, issue.reason)

    return CompiledFilters(spec=FilterSpec(**fields), issues=issues)


def _icontains(column: Any, text: str) -> ColumnElement[bool]:
    return func.lower(column, type_=String).contains(text.lower(), autoescape=True)


def filter_clauses(spec: FilterSpec) -> List[ColumnElement[bool]]:
    """
    Build the SQLAlchemy predicates for a FilterSpec.

    The returned clauses are meant to be AND-ed together. Relation
    filters compile to EXISTS subqueries so matching never duplicates
    listing rows. A spec with min above max is compiled as-is and
    simply matches nothing.

    Args:
        spec: Compiled search criteria.

    Returns:
        List of boolean clauses over Listing.
    """
    clauses: List[ColumnElement[bool]] = []

    if spec.city is not None:
        clauses.append(
            Listing.location.has(Location.city.has(func.lower(City.name) == spec.city.lower()))
        )
    if spec.purpose is not None:
        clauses.append(Listing.purpose == spec.purpose)
    if spec.property_type is not None:
        clauses.append(
            Listing.property_type.has(func.lower(PropertyType.name) == spec.property_type.lower())
        )

    if spec.bedrooms is not None:
        clauses.append(Listing.bedrooms == spec.bedrooms)
    if spec.min_bedrooms is not None:
        clauses.append(Listing.bedrooms >= spec.min_bedrooms)
    if spec.bathrooms is not None:
        clauses.append(Listing.bathrooms == spec.bathrooms)
    if spec.min_bathrooms is not None:
        clauses.append(Listing.bathrooms >= spec.min_bathrooms)

    if spec.min_price is not None:
        clauses.append(Listing.price >= spec.min_price)
    if spec.max_price is not None:
        clauses.append(Listing.price <= spec.max_price)
    if spec.min_area is not None:
        clauses.append(Listing.area_sqm >= spec.min_area)
    if spec.max_area is not None:
        clauses.append(Listing.area_sqm <= spec.max_area)

    if spec.location_text is not None:
        text = spec.location_text
        clauses.append(
            or_(
                _icontains(Listing.title, text),
                Listing.location.has(_icontains(Location.name, text)),
                Listing.location.has(Location.city.has(_icontains(City.name, text))),
            )
        )

    return clauses
