"""Normalization of remote list fields into the canonical field shape.

Remote merge vars are stripped to ``{name, field_type, req, tag, choices?}``
and then passed through a per-type transform table. Composite types expand
into several atomic fields at the position of the original field; every
other type is kept as-is.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from listkeeper.schemas.lists import ADDRESS_FIELD_TYPE, NormalizedField
from listkeeper.schemas.mailchimp import RawMergeVar

logger = logging.getLogger(__name__)

FieldTransform = Callable[[NormalizedField], list[NormalizedField]]

# (label, field_type, tag suffix) in emission order.
ADDRESS_PARTS: tuple[tuple[str, str, str], ...] = (
    ("Address", "text", "addr1"),
    ("City", "text", "city"),
    ("State", "text", "state"),
    ("ZIP", "text", "zip"),
    ("Country", "country", "country"),
)


def strip_merge_var(field: RawMergeVar | NormalizedField | Mapping[str, Any]) -> NormalizedField:
    """Keep only the properties the cache stores for a field."""
    if isinstance(field, Mapping):
        field = RawMergeVar.model_validate(field)
    return NormalizedField(
        name=field.name,
        field_type=field.field_type,
        req=field.req,
        tag=field.tag,
        choices=field.choices,
    )


def transform_address(field: NormalizedField) -> list[NormalizedField]:
    """Split an address field into addr1, city, state, zip and country fields.

    Each part is a shallow copy of the source, so ``req`` and any other
    property carry over. Tags keep the source tag as their root, e.g.
    ``ADDRESS[city]``.
    """
    return [
        field.model_copy(
            update={
                "name": label,
                "field_type": field_type,
                "tag": f"{field.tag}[{suffix}]",
            }
        )
        for label, field_type, suffix in ADDRESS_PARTS
    ]


FIELD_TRANSFORMS: dict[str, FieldTransform] = {
    ADDRESS_FIELD_TYPE: transform_address,
}


def normalize(
    fields: Iterable[RawMergeVar | NormalizedField | Mapping[str, Any]],
    transforms: Mapping[str, FieldTransform] = FIELD_TRANSFORMS,
) -> list[NormalizedField]:
    """Strip and transform fields, preserving input order.

    Args:
        fields: Remote (or already stripped) fields in display order.
        transforms: Transform per ``field_type``. Types without an entry
            pass through unchanged.

    Returns:
        The canonical fields. Expanded fields replace their source in place.
    """
    normalized: list[NormalizedField] = []
    for field in fields:
        stripped = strip_merge_var(field)
        transform = transforms.get(stripped.field_type)
        if transform is None:
            normalized.append(stripped)
            continue
        expanded = transform(stripped)
        logger.debug(
            "Expanded %s field %s into %d field(s)",
            stripped.field_type,
            stripped.tag,
            len(expanded),
        )
        normalized.extend(expanded)
    return normalized
