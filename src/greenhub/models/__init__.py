"""Pydantic models for the GreenHub CLI."""

from greenhub.models.credentials import Credentials
from greenhub.models.options import CountOptions, ExportOptions, LumberjackOptions
from greenhub.models.query import (
    DateRange,
    Interval,
    IntervalUnit,
    Page,
    QueryParams,
    RelationSpec,
)

__all__ = [
    "CountOptions",
    "Credentials",
    "DateRange",
    "ExportOptions",
    "Interval",
    "IntervalUnit",
    "LumberjackOptions",
    "Page",
    "QueryParams",
    "RelationSpec",
]
