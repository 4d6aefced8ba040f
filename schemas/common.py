"""
Response envelope shared by every admin API route.
"""
from typing import Optional
from pydantic import BaseModel, Field


class OkResponse(BaseModel):
     """Bare success envelope."""
     ok: bool = True


class ErrorResponse(BaseModel):
     """Failure envelope; error is a stable code, never a raw exception message."""
     ok: bool = False
     error: str = Field(..., description="Stable error code, e.g. FLAT_NOT_FOUND")
     status: Optional[int] = Field(None, description="Upstream HTTP status (upstream failures only)")
     excerpt: Optional[str] = Field(None, description="Truncated upstream body (upstream failures only)")
