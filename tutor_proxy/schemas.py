from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Literal, Optional


class ChatRequest(BaseModel):
    """Inbound chat body. Only the shape of ``messages`` is enforced; items pass through as sent."""

    model_config = ConfigDict(extra="ignore")

    messages: List[Any]
    model: Optional[Any] = Field(default=None)


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
    received: Optional[str] = None
    requestBody: Optional[Any] = None


class HealthResponse(BaseModel):
    status: Literal["OK"] = "OK"
    timestamp: str
