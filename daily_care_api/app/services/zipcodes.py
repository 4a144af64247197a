"""
Postcode normalisation helpers.

Every postcode that enters the system (availability checks, zipcode
lists attached to services, location postcodes) is reduced to the same
canonical form: alphanumerics only, upper case, no whitespace.  That
form is what ``service_availabilities.postcode_search`` stores, so
lookups never have to renormalise stored data.

``derive_tokens`` cuts a normalised postcode into the keys used by the
availability cascade.  The thresholds follow the shape of UK postcodes
(outward code, sector digit, two letter unit) but the slicing is purely
length driven and performs no format validation::

    >>> derive_tokens("SW1A1AA")
    {'full': 'SW1A1AA', 'sector': 'SW1A1', 'outward': 'SW1A', 'area': 'SW'}

Zipcode lists arrive from the admin panel in many shapes (a comma
separated string, a list, a list whose items are JSON encoded lists).
``normalize_list`` flattens all of them into a list of canonical tokens.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Union

TIERS = ("full", "sector", "outward", "area")

_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]")
_AREA_RE = re.compile(r"^[A-Z]{1,2}")
# Full UK postcode or outward code, already normalised (no space).
_UK_POSTCODE_RE = re.compile(r"^[A-Z]{1,2}\d[A-Z\d]?(\d[A-Z]{2})?$")

_NULL_LITERALS = {"null", "NULL", "None"}


def normalize(raw: Any) -> str:
    """Return the canonical form of ``raw``.

    Whitespace and every character outside ``[A-Za-z0-9]`` are removed
    and the remainder is upper-cased.  ``None`` and empty input yield
    ``""``.  Never raises.
    """
    if raw is None:
        return ""
    return _NON_ALNUM_RE.sub("", str(raw)).upper()


def derive_tokens(normalized: str) -> Dict[str, str]:
    """Derive the lookup tokens of a normalised postcode.

    Only tokens whose length precondition holds are present; a string
    shorter than two characters produces an empty dict.
    """
    if not normalized or len(normalized) < 2:
        return {}
    tokens = {"full": normalized}
    if len(normalized) >= 5:
        tokens["sector"] = normalized[:-2]
    if len(normalized) >= 4:
        tokens["outward"] = normalized[:-3]
    area = _AREA_RE.match(normalized)
    if area:
        tokens["area"] = area.group(0)
    return tokens


def is_uk_postcode(normalized: str) -> bool:
    """True when ``normalized`` is shaped like a UK postcode or outward code."""
    return bool(_UK_POSTCODE_RE.match(normalized))


@dataclass(frozen=True)
class Parsed:
    """A zipcode list item that decoded to a JSON value."""

    values: List[Any]


@dataclass(frozen=True)
class Literal:
    """A zipcode list item taken verbatim."""

    text: str


def classify_zipcode_item(item: Any) -> Union[Parsed, Literal]:
    """Decide whether ``item`` is a JSON encoded array or a literal token.

    Only strings wrapped in ``[...]`` are candidates for decoding.  A
    decoded scalar is wrapped into a one element list.
    """
    text = str(item).strip()
    if not (text.startswith("[") and text.endswith("]")):
        return Literal(text)
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError:
        return Literal(text)
    if isinstance(decoded, list):
        return Parsed(decoded)
    return Parsed([decoded])


def _split_literal(text: str) -> List[str]:
    return [part.strip() for part in text.split(",")]


def normalize_list(value: Union[str, Iterable[Any], None]) -> List[str]:
    """Flatten and normalise a zipcode list payload.

    ``value`` may be a comma separated string, a JSON array string, or a
    list whose items are tokens or JSON encoded arrays.  Decoded arrays
    are flattened one level.  Empty results and ``"null"`` placeholders
    are dropped.  The output is not deduplicated.
    """
    if value is None:
        return []
    if isinstance(value, str):
        top = classify_zipcode_item(value)
        items: List[Any] = top.values if isinstance(top, Parsed) else _split_literal(top.text)
    else:
        items = list(value)

    tokens: List[Any] = []
    for item in items:
        if item is None:
            continue
        if isinstance(item, (list, tuple)):
            tokens.extend(item)
            continue
        classified = classify_zipcode_item(item)
        if isinstance(classified, Parsed):
            tokens.extend(classified.values)
        else:
            tokens.append(classified.text)

    result = []
    for token in tokens:
        if token is None or str(token).strip() in _NULL_LITERALS:
            continue
        normalized = normalize(token)
        if normalized:
            result.append(normalized)
    return result


def dedupe(values: Iterable[str]) -> List[str]:
    """Remove repeated values, keeping the first occurrence."""
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


@dataclass
class ZipcodeMerge:
    """Outcome of adding zipcodes to an existing list."""

    added: List[str] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    total: List[str] = field(default_factory=list)


@dataclass
class ZipcodeRemoval:
    """Outcome of removing zipcodes from an existing list."""

    removed: List[str] = field(default_factory=list)
    not_found: List[str] = field(default_factory=list)
    total: List[str] = field(default_factory=list)


def merge_zipcodes(existing: Iterable[str], incoming: Iterable[str]) -> ZipcodeMerge:
    """Merge ``incoming`` into ``existing``.

    Both sides are normalised.  Tokens already present (in ``existing``
    or earlier in ``incoming``) are reported as duplicates; the total
    keeps existing order followed by the new tokens.
    """
    total = dedupe(normalize(z) for z in existing if normalize(z))
    present = set(total)
    merge = ZipcodeMerge()
    for zipcode in incoming:
        normalized = normalize(zipcode)
        if not normalized:
            continue
        if normalized in present:
            if normalized not in merge.duplicates:
                merge.duplicates.append(normalized)
            continue
        present.add(normalized)
        merge.added.append(normalized)
        total.append(normalized)
    merge.total = total
    return merge


def remove_zipcodes(existing: Iterable[str], to_remove: Iterable[str]) -> ZipcodeRemoval:
    """Remove ``to_remove`` from ``existing``, reporting tokens that were not there."""
    current = dedupe(normalize(z) for z in existing if normalize(z))
    targets = dedupe(normalize(z) for z in to_remove if normalize(z))
    present = set(current)
    removal = ZipcodeRemoval()
    for zipcode in targets:
        if zipcode in present:
            removal.removed.append(zipcode)
        else:
            removal.not_found.append(zipcode)
    dropped = set(removal.removed)
    removal.total = [z for z in current if z not in dropped]
    return removal


def load_zipcodes(stored: Any) -> List[str]:
    """Decode the JSON ``zipcodes`` column of a service row."""
    if not stored:
        return []
    if isinstance(stored, list):
        return [str(z) for z in stored]
    try:
        decoded = json.loads(stored)
    except (TypeError, json.JSONDecodeError):
        return normalize_list(stored)
    if isinstance(decoded, list):
        return [str(z) for z in decoded]
    return normalize_list(str(decoded))
