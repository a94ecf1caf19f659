"""API-facing Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CallWebhook(BaseModel):
    """New-call webhook body sent by jambonz (only the fields we use)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    call_sid: str = Field(min_length=1)
    from_: str = Field(default="", alias="from")
    to: str = Field(default="")
    direction: str | None = None


class CallStatusWebhook(BaseModel):
    model_config = ConfigDict(extra="ignore")

    call_sid: str = Field(min_length=1)
    call_status: str
    sip_status: int | None = None


class HealthResponse(BaseModel):
    status: str = "ok"
    conversations: int
