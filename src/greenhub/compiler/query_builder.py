"""Query assembler for GreenHub commands.

Turns a command's raw options into the QueryParams that get sent. The
flow is the same for every command:
  1. Pick the time window (date > range > last) and parse it
  2. Parse the name:value filters
  3. Relations and pagination, depending on the command
  4. Validate the timeout

Every parse error surfaces here, before the client is even created.
"""

import datetime as dt
import logging

from greenhub.errors import InvalidPagination, InvalidTimeout
from greenhub.models.options import CountOptions, ExportOptions, LumberjackOptions
from greenhub.models.query import QueryParams, RelationSpec
from greenhub.parser.params import (
    parse_date,
    parse_filters,
    parse_range,
    parse_relations,
    resolve_interval,
)

logger = logging.getLogger(__name__)

MAX_TIMEOUT = 60
DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 10


class QueryAssembler:
    """Builds request parameters from per-command options.

    Stateless apart from the clock, which can be pinned for tests.
    """

    def __init__(self, now: dt.datetime | None = None) -> None:
        self._now = now

    def assemble(self, options: CountOptions) -> QueryParams:
        """Validate options and turn them into QueryParams."""
        fields: dict = {}
        fields.update(self._build_time_window(options))
        fields["filters"] = parse_filters(options.params)
        fields["timeout"] = self.clamp_timeout(options.timeout)

        # subclasses first - LumberjackOptions and ExportOptions are both CountOptions
        if isinstance(options, LumberjackOptions):
            fields["relations"] = self._build_relations(options)
            if options.all:
                fields["bulk"] = True
            else:
                fields["page"] = self._check_positive("page", options.page, DEFAULT_PAGE)
                fields["per_page"] = self._check_positive(
                    "num-items", options.num_items, DEFAULT_PER_PAGE
                )
        elif isinstance(options, ExportOptions):
            fields["bulk"] = True

        params = QueryParams(**fields)
        logger.debug("Assembled query parameters: %s", params.to_request_params())
        return params

    def _build_time_window(self, options: CountOptions) -> dict:
        """Pick exactly one of --date, --range, --last.

        Precedence is fixed: a single date beats a range, which beats a
        relative interval. Anything that loses is dropped with a warning
        rather than silently merged.
        """
        if options.date is not None:
            self._warn_ignored(options, ("date_range", "last"), "--date")
            return {"date": parse_date(options.date)}

        if options.date_range is not None:
            self._warn_ignored(options, ("last",), "--range")
            date_range = parse_range(options.date_range)
            return {"from_date": date_range.start, "to_date": date_range.end}

        if options.last is not None:
            return {"since": resolve_interval(options.last, self._now)}

        return {}

    @staticmethod
    def _warn_ignored(options: CountOptions, names: tuple[str, ...], winner: str) -> None:
        flags = {"date_range": "--range", "last": "--last"}
        for name in names:
            if getattr(options, name) is not None:
                logger.warning("Ignoring %s, %s takes precedence", flags[name], winner)

    @staticmethod
    def _build_relations(options: LumberjackOptions) -> RelationSpec | None:
        if options.everything:
            if options.relations is not None:
                logger.warning("Ignoring --with, --everything loads every relationship")
            return RelationSpec(everything=True)
        if options.relations is not None:
            return parse_relations(options.relations)
        return None

    @staticmethod
    def _check_positive(name: str, value: int | None, default: int) -> int:
        if value is None:
            return default
        if value < 1:
            raise InvalidPagination(value, f"--{name} must be at least 1")
        return value

    @staticmethod
    def clamp_timeout(timeout: int) -> int:
        """Reject timeouts under a second, cap anything above the max."""
        if timeout < 1:
            raise InvalidTimeout(timeout, "must be at least 1 second")
        if timeout > MAX_TIMEOUT:
            logger.warning("Timeout %ss is above the maximum, using %ss", timeout, MAX_TIMEOUT)
            return MAX_TIMEOUT
        return timeout
