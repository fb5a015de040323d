"""Table resource assembly and serialization."""

from tableforge.resource.assembler import ResourceAssembler
from tableforge.resource.serializers import (
    empty_meta,
    serialize_definition,
    serialize_state,
    serialize_views,
)

__all__ = [
    "ResourceAssembler",
    "empty_meta",
    "serialize_definition",
    "serialize_state",
    "serialize_views",
]
