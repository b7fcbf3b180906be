"""
Pydantic models for inbound client frames.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# Inbound event names
EVENT_REGISTER = "register"
EVENT_MESSAGE = "message"
EVENT_NEXT = "next"


class InboundFrame(BaseModel):
    """Outer shape of every client frame: ``{"type": ..., "data": ...}``."""

    type: str = Field(min_length=1)
    data: Any = None

    model_config = ConfigDict(extra="ignore")


class RegisterRequest(BaseModel):
    """
    Data of a ``register`` frame.

    ``email`` and ``gender`` are accepted as aliases for clients built
    against the original field names.
    """

    identity: str = Field(validation_alias=AliasChoices("identity", "email"), min_length=1)
    attribute: str = Field(validation_alias=AliasChoices("attribute", "gender"), min_length=1)

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)
