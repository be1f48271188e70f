"""Ambient validation context.

Rules that look beyond the field being validated receive their
dependencies here: the subject of the form (which entity kind and type is
being edited), a codebook capability that turns attribute ids into display
names, and a read-only query for peer entities in the network.
"""
from __future__ import annotations

import inspect
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

EntityKind = Literal["node", "edge", "ego"]


class VariableDefinition(BaseModel):
    """Codebook entry for one attribute."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    type: str


class Subject(BaseModel):
    """The entity a form is editing."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    entity: EntityKind
    type: str | None = None
    current_entity_id: str | None = Field(default=None, alias="currentEntityId")


class NetworkEntity(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    uid: str = Field(alias="_uid")
    type: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)


_ENTITIES = TypeAdapter(list[NetworkEntity])


@runtime_checkable
class Codebook(Protocol):
    def resolve(self, attribute: str) -> VariableDefinition | None: ...


@dataclass(frozen=True, slots=True)
class MappingCodebook:
    """Codebook backed by a plain ``{attribute: {name, type}}`` mapping."""
    variables: Mapping[str, Any] = field(default_factory=dict)

    def resolve(self, attribute: str) -> VariableDefinition | None:
        entry = self.variables.get(attribute)
        if entry is None:
            return None
        return entry if isinstance(entry, VariableDefinition) else VariableDefinition.model_validate(entry)


NetworkQuery = Callable[[], "Iterable[Any] | Awaitable[Iterable[Any]]"]


@dataclass(frozen=True, slots=True)
class ValidationContext:
    subject: Subject | None = None
    codebook: Codebook | None = None
    network: NetworkQuery | None = None

    def display_name(self, attribute: str) -> str | None:
        """Codebook name for ``attribute``; None when the codebook cannot resolve it."""
        if self.codebook is None:
            return attribute
        variable = self.codebook.resolve(attribute)
        return variable.name if variable is not None else None

    async def peer_values(self, attribute: str) -> list[Any]:
        """Values of ``attribute`` on same-typed entities other than the current one."""
        if self.network is None or self.subject is None:
            return []
        entities = self.network()
        if inspect.isawaitable(entities):
            entities = await entities
        subject = self.subject
        return [entity.attributes.get(attribute) for entity in _ENTITIES.validate_python(list(entities))
                if entity.type == subject.type and entity.uid != subject.current_entity_id]
