"""Pydantic models mirroring Mailchimp 2.0 API response shapes.

Only the properties the list cache consumes are declared; anything else the
API sends is ignored. Numeric ids are coerced to strings.
"""

from pydantic import BaseModel, ConfigDict, Field


class _RemoteModel(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class RawListStats(_RemoteModel):
    """The ``stats`` block of a list."""

    member_count: int = 0
    grouping_count: int = 0


class RawList(_RemoteModel):
    """A list from ``lists/list``."""

    id: str
    name: str
    stats: RawListStats = Field(default_factory=RawListStats)


class RawGroup(_RemoteModel):
    """A single interest group inside a grouping."""

    name: str


class RawGrouping(_RemoteModel):
    """An interest grouping from ``lists/interest-groupings``."""

    id: str
    name: str
    form_field: str | None = None
    groups: list[RawGroup] = Field(default_factory=list)


class RawMergeVar(_RemoteModel):
    """A merge var (custom field) from ``lists/merge-vars``."""

    name: str
    field_type: str
    req: bool = False
    tag: str
    choices: list[str] | None = None


class RawListWithMergeVars(_RemoteModel):
    """One entry of the ``data`` array returned by ``lists/merge-vars``."""

    id: str
    merge_vars: list[RawMergeVar] = Field(default_factory=list)
