"""
Pydantic schemas for the flat request (onboarding intake) API.
"""
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

from models.flat_request import RequestStatus


class FlatRequestCreate(BaseModel):
     """
     Body of POST /admin/api/requests.

     flat_id and name are optional here so that a missing field yields the
     FLAT_ID_AND_NAME_REQUIRED code rather than a generic validation error.
     """
     flat_id: Optional[str] = Field(None, max_length=64, description="Flat identifier, stored upper-cased")
     name: Optional[str] = Field(None, max_length=200, description="Resident name")
     note: Optional[str] = Field("", max_length=2000, description="Free-form admin note")

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "flat_id": "B12",
                    "name": "Jane",
                    "note": "Moved in March"
               }
          }
     )


class FlatRequestResponse(BaseModel):
     """A single flat request row."""
     id: int
     flat_id: str
     name: str
     note: Optional[str] = ""
     status: RequestStatus
     created_at: int
     updated_at: int

     model_config = ConfigDict(from_attributes=True)


class FlatRequestCreatedResponse(BaseModel):
     ok: bool = True
     id: int


class FlatRequestListResponse(BaseModel):
     ok: bool = True
     rows: List[FlatRequestResponse]


class FlatRequestApprovedResponse(BaseModel):
     ok: bool = True
     flat_id: str
