"""User domain model."""

from datetime import datetime
from typing import List, Optional, Dict, Any, Mapping
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """Locally stored user identity."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    username: str
    email: str
    password_hash: str = Field(..., repr=False)
    roles: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any], roles: Optional[List[str]] = None) -> "User":
        """Build a user from a ``users`` row."""
        data: Dict[str, Any] = dict(record)
        data["roles"] = list(roles or [])
        return cls(**data)
