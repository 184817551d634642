"""
Base model for persisted records.

Records are backend-agnostic: ``id`` is always a string. The document store
keeps a BSON ObjectId in ``_id``; the validator below folds it to its hex
form so callers never see driver types.

to_document() / from_document() round-trip between models and raw dicts.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecordModel(BaseModel):
    """
    Base for all stored records.

    to_document()   — dict without ``_id`` or unset fields (the store assigns ids)
    from_document() — raw store dict → model (returns None for None)
    """

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None, alias="_id")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        if isinstance(v, ObjectId):
            return str(v)
        return v

    def to_document(self) -> dict:
        # None fields are left out so sparse and partial indexes skip them
        data = self.model_dump(exclude={"id"}, exclude_none=True)
        return {k: v.value if isinstance(v, Enum) else v for k, v in data.items()}

    @classmethod
    def from_document(cls, data: Optional[dict]) -> Optional["RecordModel"]:
        """Build a model from a raw store dict.

        Missing optional fields are filled with their defaults.
        """
        if data is None:
            return None
        return cls.model_validate(data)
