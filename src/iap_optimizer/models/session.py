"""
Per-session analytics identity.

Passed explicitly to whatever needs to tag events with the player session,
instead of living in a process-wide singleton.
"""

from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class SessionContext(BaseModel):
    """Identity attached to offer events of one player session."""
    model_config = ConfigDict(frozen=True)

    session_id: str = Field(
        default_factory=lambda: uuid4().hex,
        min_length=1,
        description="Offer id reported with every event of the session",
    )
    user_id: Optional[str] = Field(default=None, description="Player identifier, if known")
