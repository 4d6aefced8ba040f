# routers/flats.py
"""
Flat management API routes.

Setup code issuance, search, ban revocation and the disable switch.
Path flat_ids are trimmed and upper-cased before lookup.
"""
from typing import Optional
from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import require_admin
from schemas import (
     OkResponse,
     FlatResponse,
     FlatListResponse,
     SetupCodeRequest,
     SetupCodeResponse,
     DisableRequest,
)
from services.lifecycle_service import FlatLifecycleService, FlatNotFound

router = APIRouter(
     prefix="/admin/api/flats",
     tags=["flats"],
     dependencies=[Depends(require_admin)]
)


def _normalize(flat_id: str) -> str:
     return flat_id.strip().upper()


def _not_found(e: FlatNotFound) -> HTTPException:
     return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.code)


@router.get(
     "",
     response_model=FlatListResponse,
     summary="Search flats"
)
def list_flats(
     q: Optional[str] = Query("", description="Substring of flat_id (case-insensitive)"),
     db: Session = Depends(get_session)
):
     rows = FlatLifecycleService.list_flats(db, _normalize(q or ""))
     return FlatListResponse(rows=[FlatResponse.model_validate(f) for f in rows])


@router.post(
     "/{flat_id}/setup-code",
     response_model=SetupCodeResponse,
     summary="Issue a one-time setup code"
)
def generate_setup_code(
     flat_id: str,
     body: Optional[SetupCodeRequest] = Body(None),
     db: Session = Depends(get_session)
):
     """
     Issue a setup code for a flat and invalidate its device PIN.

     The plaintext code is in this response only; it cannot be retrieved again.
     """
     ttl_minutes = body.ttlMinutes if body is not None else None
     try:
          issued = FlatLifecycleService.generate_setup_code(db, _normalize(flat_id), ttl_minutes)
     except FlatNotFound as e:
          raise _not_found(e)
     return SetupCodeResponse(flat_id=issued.flat_id, code=issued.code, expires_at=issued.expires_at)


@router.post(
     "/{flat_id}/revoke-ban",
     response_model=OkResponse,
     summary="Revoke a flat's ban"
)
def revoke_ban(flat_id: str, db: Session = Depends(get_session)):
     try:
          FlatLifecycleService.revoke_ban(db, _normalize(flat_id))
     except FlatNotFound as e:
          raise _not_found(e)
     return OkResponse()


@router.post(
     "/{flat_id}/disable",
     response_model=OkResponse,
     summary="Disable or re-enable a flat"
)
def disable_flat(
     flat_id: str,
     body: Optional[DisableRequest] = Body(None),
     db: Session = Depends(get_session)
):
     disabled = body.disabled if body is not None else True
     try:
          FlatLifecycleService.set_disabled(db, _normalize(flat_id), disabled)
     except FlatNotFound as e:
          raise _not_found(e)
     return OkResponse()
