"""Pydantic models for GreenHub queries and results.

These are built fresh for every command and thrown away once the request
has been sent. Nothing here talks to the network.
"""

import datetime as dt
from enum import Enum
from typing import Any, Self

from pydantic import BaseModel, Field, PositiveInt, model_validator

from greenhub.errors import InvalidIntervalFormat

# the api stores timestamps in utc with laravel's default datetime format
SINCE_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"
TOO_FAR_BACK = "interval reaches too far back"


class IntervalUnit(str, Enum):
    """Units accepted by --last."""

    HOUR = "h"
    DAY = "d"
    WEEK = "w"
    MONTH = "m"  # fixed 30 days

    @property
    def delta(self) -> dt.timedelta:
        return _UNIT_DELTAS[self]


_UNIT_DELTAS = {
    IntervalUnit.HOUR: dt.timedelta(hours=1),
    IntervalUnit.DAY: dt.timedelta(days=1),
    IntervalUnit.WEEK: dt.timedelta(weeks=1),
    IntervalUnit.MONTH: dt.timedelta(days=30),
}


class Interval(BaseModel):
    """A relative window like "12h" or "3w"."""

    unit: IntervalUnit
    amount: PositiveInt

    def since(self, now: dt.datetime | None = None) -> dt.datetime:
        """Absolute start of the window, counted back from now (utc)."""
        now = now or dt.datetime.now(dt.timezone.utc)
        try:
            return now - self.amount * self.unit.delta
        except OverflowError as e:
            raise InvalidIntervalFormat(f"{self.amount}{self.unit.value}", TOO_FAR_BACK) from e


class DateRange(BaseModel):
    """An absolute date window, either side optional."""

    start: dt.date | None = None
    end: dt.date | None = None

    @property
    def is_empty(self) -> bool:
        # "..": valid, but filters nothing
        return self.start is None and self.end is None


class RelationSpec(BaseModel):
    """Relations to eager load with each result."""

    everything: bool = False
    paths: frozenset[str] = Field(default_factory=frozenset)

    def to_params(self) -> dict[str, str]:
        if self.everything:
            return {"everything": "true"}
        return {"with": ",".join(sorted(self.paths))}


class QueryParams(BaseModel):
    """Final request parameters for a single api call.

    The timeout travels alongside but it is a transport setting, so it never
    ends up in the query string.
    """

    date: dt.date | None = None
    from_date: dt.date | None = None
    to_date: dt.date | None = None
    since: dt.datetime | None = None
    filters: dict[str, str] = Field(default_factory=dict)
    relations: RelationSpec | None = None
    page: int | None = Field(default=None, ge=1)
    per_page: int | None = Field(default=None, ge=1)
    timeout: int = Field(default=10, ge=1, le=60)
    bulk: bool = False

    @model_validator(mode="after")
    def check_time_window(self) -> Self:
        """A single date can't be combined with a range or an interval."""
        if self.date is not None and (
            self.from_date is not None or self.to_date is not None or self.since is not None
        ):
            raise ValueError("date cannot be combined with a range or interval")
        return self

    def to_request_params(self) -> dict[str, str]:
        """Render the query string the api expects."""
        # filters go in first so the reserved keys below always win
        params: dict[str, str] = dict(self.filters)

        if self.date is not None:
            params["date"] = self.date.strftime(DATE_FORMAT)
        if self.from_date is not None:
            params["from"] = self.from_date.strftime(DATE_FORMAT)
        if self.to_date is not None:
            params["to"] = self.to_date.strftime(DATE_FORMAT)
        if self.since is not None:
            params["since"] = self.since.astimezone(dt.timezone.utc).strftime(SINCE_FORMAT)

        if self.relations is not None:
            params.update(self.relations.to_params())

        if self.bulk:
            params["all"] = "true"
        elif self.per_page is not None:
            params["per_page"] = str(self.per_page)
        # bulk queries only carry a page when the server paginated them anyway
        if self.page is not None:
            params["page"] = str(self.page)

        return params


class Page(BaseModel):
    """One page of results from a list endpoint.

    The server uses Laravel's paginator, so the metadata sits next to
    "data" at the top level. Some endpoints nest it under "meta" instead.
    """

    records: list[dict[str, Any]] = Field(default_factory=list)
    current_page: int = 1
    last_page: int = 1
    per_page: int | None = None
    total: int | None = None
    next_page_url: str | None = None

    @property
    def has_more(self) -> bool:
        return self.next_page_url is not None or self.current_page < self.last_page

    @classmethod
    def from_payload(cls, payload: Any) -> "Page":
        if isinstance(payload, list):
            return cls(records=payload, total=len(payload))
        if not isinstance(payload, dict):
            raise ValueError(f"Unexpected response body: {type(payload).__name__}")

        meta = payload.get("meta") if isinstance(payload.get("meta"), dict) else payload
        records = payload.get("data") or []
        return cls(
            records=records,
            current_page=meta.get("current_page") or 1,
            last_page=meta.get("last_page") or 1,
            per_page=meta.get("per_page"),
            total=meta.get("total", len(records)),
            next_page_url=meta.get("next_page_url"),
        )
