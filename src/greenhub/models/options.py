"""Typed option sets for the query commands.

Each command gets its own model so there is a fixed list of things it
understands. Values are kept raw here (strings straight from the command
line) - the assembler parses and validates them in one place.
"""

from pydantic import BaseModel, ConfigDict, Field


class CountOptions(BaseModel):
    """Options accepted by `greenhub count`."""

    model_config = ConfigDict(extra="forbid")

    date: str | None = None
    last: str | None = None
    date_range: str | None = None
    params: list[str] = Field(default_factory=list)  # raw name:value tokens
    timeout: int = 10


class ExportOptions(CountOptions):
    """Options accepted by `greenhub export`. Always loads the full result set."""

    output: str = "output.csv"


class LumberjackOptions(CountOptions):
    """Options accepted by `greenhub lumberjack`."""

    all: bool = False
    everything: bool = False
    relations: str | None = None  # --with
    num_items: int | None = 10
    page: int | None = 1
    output: str | None = None
