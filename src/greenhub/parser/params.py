"""Parsers for the command line shorthand used by the query commands.

Everything in here is a small pure function: a string (or a list of them)
goes in, a model or a plain value comes out, or a QueryError is raised
naming the token that didn't make sense. No network, no globals.
"""

import datetime as dt
import logging
import re
from collections.abc import Iterable

from greenhub.errors import (
    InvalidDateFormat,
    InvalidFilterToken,
    InvalidIntervalFormat,
    InvalidRelationPath,
)
from greenhub.models.query import TOO_FAR_BACK, DateRange, Interval, IntervalUnit, RelationSpec

logger = logging.getLogger(__name__)

_INTERVAL_RE = re.compile(r"^(\d+)([hdwm])$")
# strict yyyy-mm-dd - date.fromisoformat alone also takes "20170501" on 3.11+
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SEGMENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

RANGE_SEPARATOR = ".."
FILTER_SEPARATOR = ":"
EVERYTHING = "all"

# query string keys the cli sets itself; a filter must not shadow them
RESERVED_PARAMS = frozenset(
    {"date", "from", "to", "since", "page", "per_page", "with", "everything", "all"}
)


def parse_interval(value: str) -> Interval:
    """Parse `<amount><unit>` (e.g. "12h", "5d", "1w", "3m") into an Interval.

    Raises:
        InvalidIntervalFormat: If the string doesn't match, amount is zero or
            the window is too large for a timedelta.
    """
    match = _INTERVAL_RE.match(value.strip())
    if not match:
        raise InvalidIntervalFormat(value, "expected <amount><h|d|w|m>, e.g. 12h")

    amount = int(match.group(1))
    if amount <= 0:
        raise InvalidIntervalFormat(value, "amount must be positive")

    unit = IntervalUnit(match.group(2))
    try:
        amount * unit.delta
    except OverflowError as e:
        # bigger than any timedelta
        raise InvalidIntervalFormat(value, TOO_FAR_BACK) from e

    return Interval(unit=unit, amount=amount)


def resolve_interval(value: str, now: dt.datetime | None = None) -> dt.datetime:
    """Parse an interval and turn it into the absolute "since" timestamp."""
    return parse_interval(value).since(now)


def parse_date(value: str) -> dt.date:
    """Parse a `yyyy-mm-dd` calendar date."""
    text = value.strip()
    if not _DATE_RE.match(text):
        raise InvalidDateFormat(value, "expected yyyy-mm-dd")
    try:
        return dt.date.fromisoformat(text)
    except ValueError as e:
        # well formed but not a real day, e.g. 2017-02-30
        raise InvalidDateFormat(value, str(e)) from e


def parse_range(value: str) -> DateRange:
    """Parse `[from]..[to]` into a DateRange.

    Either side can be left out for an open ended range; ".." on its own
    is accepted and simply doesn't restrict anything.
    """
    parts = value.strip().split(RANGE_SEPARATOR)
    if len(parts) != 2:
        raise InvalidDateFormat(value, "expected [from]..[to]")

    start_text, end_text = parts
    date_range = DateRange(
        start=parse_date(start_text) if start_text.strip() else None,
        end=parse_date(end_text) if end_text.strip() else None,
    )

    if date_range.start and date_range.end and date_range.start > date_range.end:
        logger.warning("Range %s starts after it ends, the server will return nothing", value)
    return date_range


def parse_filters(tokens: Iterable[str]) -> dict[str, str]:
    """Parse `name:value` tokens into a dict, later tokens overriding earlier ones.

    Only the first colon splits, so values like "url:http://x" survive.
    """
    filters: dict[str, str] = {}
    for token in tokens:
        name, sep, value = token.partition(FILTER_SEPARATOR)
        name = name.strip()
        if not sep:
            raise InvalidFilterToken(token, "expected name:value")
        if not name:
            raise InvalidFilterToken(token, "missing filter name")
        if name in RESERVED_PARAMS:
            raise InvalidFilterToken(token, f"'{name}' is set through its own option")
        if name in filters:
            logger.debug("Filter %s given more than once, keeping %r", name, value)
        filters[name] = value
    return filters


def parse_relations(value: str) -> RelationSpec:
    """Parse a space separated relation list (or "all") for eager loading.

    Nested relations use dots, e.g. "processes.permissions".
    """
    paths = value.split()
    if not paths:
        raise InvalidRelationPath(value, "no relationships given")

    for path in paths:
        if not all(_SEGMENT_RE.match(segment) for segment in path.split(".")):
            raise InvalidRelationPath(path, "expected dotted names like processes.permissions")

    if EVERYTHING in paths:
        return RelationSpec(everything=True)
    return RelationSpec(paths=frozenset(paths))
