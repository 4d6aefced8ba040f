"""
Pydantic schemas for the flat management API.
"""
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

from models.flat import FlatStatus

MAX_SETUP_CODE_TTL_MINUTES = 7 * 24 * 60


class FlatResponse(BaseModel):
     """
     Flat row as shown to the admin. Credential hashes are never included.
     """
     flat_id: str
     status: FlatStatus
     strike_count: int
     ban_until: Optional[int] = None
     requires_admin_revoke: bool
     created_at: int
     last_login_at: Optional[int] = None

     model_config = ConfigDict(from_attributes=True)


class FlatListResponse(BaseModel):
     ok: bool = True
     rows: List[FlatResponse]


class SetupCodeRequest(BaseModel):
     """Body of POST /admin/api/flats/{flat_id}/setup-code."""
     ttlMinutes: Optional[float] = Field(
          None,
          gt=0,
          le=MAX_SETUP_CODE_TTL_MINUTES,
          description="Minutes until the code expires (default 60)"
     )

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "ttlMinutes": 60
               }
          }
     )


class SetupCodeResponse(BaseModel):
     """
     Issued setup code. The plaintext code appears in this response only;
     the server keeps nothing but its hash.
     """
     ok: bool = True
     flat_id: str
     code: str = Field(..., description="XXXX-NNNN plaintext code, shown once")
     expires_at: int = Field(..., description="Expiry, epoch milliseconds")

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "ok": True,
                    "flat_id": "B12",
                    "code": "KXQM-4827",
                    "expires_at": 1760000000000
               }
          }
     )


class DisableRequest(BaseModel):
     """Body of POST /admin/api/flats/{flat_id}/disable."""
     disabled: bool = Field(True, description="True to disable, False to re-enable")
