"""
Raw record model for entity-decorator.

An Entity is the store's native representation of one persisted item. Only the
entity type and bundle are declared; every property and field lives as an extra
attribute, so records can be read and mutated with plain attribute syntax.
Properties hold scalars, fields hold a list of deltas.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Entity(BaseModel):
    """
    A single raw record of some entity type.
    """

    entity_type: str = Field(..., description="Top-level collection, e.g. 'node'.")
    type: Optional[str] = Field(None, description="Bundle within the entity type.")

    model_config = ConfigDict(
        extra="allow",
        validate_assignment=False,
        arbitrary_types_allowed=True,
    )

    @property
    def bundle(self) -> Optional[str]:
        return self.type

    def id_value(self, id_key: str) -> Any:
        return getattr(self, id_key, None)

    def is_new(self, id_key: str) -> bool:
        """True until a store assigns an identifier."""
        return self.id_value(id_key) is None

    def values(self) -> Dict[str, Any]:
        """Properties and fields, without the entity type and bundle."""
        return dict(self.__pydantic_extra__ or {})


__all__ = ["Entity"]
