"""Canonical list shapes stored in the list cache."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

ADDRESS_FIELD_TYPE = "address"


class NormalizedField(BaseModel):
    """A list field in canonical form.

    ``choices`` is only set for fields that offer them (dropdown, radio).
    """

    name: str
    field_type: str
    req: bool = False
    tag: str
    choices: list[str] | None = None


class Group(BaseModel):
    """One option inside an interest grouping.

    Remote group ids are not kept; ``id`` is only set by callers that build
    groups themselves.
    """

    name: str
    id: str | None = None


class Grouping(BaseModel):
    """An interest grouping attached to a list."""

    id: str
    name: str
    groups: list[Group] = Field(default_factory=list)
    form_field: str | None = None


class ListSummary(BaseModel):
    """A mailing list as held in the cache."""

    model_config = ConfigDict(validate_assignment=True)

    id: str
    name: str
    subscriber_count: int = Field(default=0, ge=0)
    merge_vars: list[NormalizedField] = Field(default_factory=list)
    interest_groupings: list[Grouping] = Field(default_factory=list)

    @field_validator("merge_vars")
    @classmethod
    def _no_composite_fields(cls, fields: list[NormalizedField]) -> list[NormalizedField]:
        for field in fields:
            if field.field_type == ADDRESS_FIELD_TYPE:
                raise ValueError(f"Field {field.tag!r} must be expanded before storage")
        return fields
