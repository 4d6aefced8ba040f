# routers/flat_requests.py
"""
Flat request API routes for the AuDiX admin server.

Manual intake of flat onboarding requests and the approve/reject decision.
All routes require an admin session.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import require_admin
from models import RequestStatus
from schemas import (
     OkResponse,
     FlatRequestCreate,
     FlatRequestResponse,
     FlatRequestCreatedResponse,
     FlatRequestListResponse,
     FlatRequestApprovedResponse,
)
from services.lifecycle_service import FlatLifecycleService, RequestNotFound, RequestNotPending

router = APIRouter(
     prefix="/admin/api/requests",
     tags=["requests"],
     dependencies=[Depends(require_admin)]
)


def _not_found(e: RequestNotFound) -> HTTPException:
     return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.code)


def _not_pending(e: RequestNotPending) -> HTTPException:
     return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.code)


@router.post(
     "",
     response_model=FlatRequestCreatedResponse,
     summary="Create a flat request"
)
def create_request(body: FlatRequestCreate, db: Session = Depends(get_session)):
     """
     Record a flat request by hand.

     - **flat_id**: Flat identifier (trimmed, upper-cased)
     - **name**: Resident name
     - **note**: Optional admin note
     """
     flat_id = (body.flat_id or "").strip().upper()
     name = (body.name or "").strip()
     if not flat_id or not name:
          raise HTTPException(
               status_code=status.HTTP_400_BAD_REQUEST,
               detail="FLAT_ID_AND_NAME_REQUIRED"
          )

     request_id = FlatLifecycleService.create_request(db, flat_id, name, body.note or "")
     return FlatRequestCreatedResponse(id=request_id)


@router.get(
     "",
     response_model=FlatRequestListResponse,
     summary="List flat requests by status"
)
def list_requests(
     status_filter: Optional[str] = Query("PENDING", alias="status", description="PENDING, APPROVED or REJECTED"),
     db: Session = Depends(get_session)
):
     """Requests with the given status (default PENDING), newest first."""
     try:
          request_status = RequestStatus((status_filter or "PENDING").strip().upper())
     except ValueError:
          raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="BAD_STATUS")

     rows = FlatLifecycleService.list_requests(db, request_status)
     return FlatRequestListResponse(rows=[FlatRequestResponse.model_validate(r) for r in rows])


@router.post(
     "/{request_id}/approve",
     response_model=FlatRequestApprovedResponse,
     summary="Approve a flat request"
)
def approve_request(request_id: int, db: Session = Depends(get_session)):
     """
     Approve a request. Creates the flat if it does not exist yet, otherwise
     reactivates it without touching its strikes or ban.
     """
     try:
          flat_id = FlatLifecycleService.approve_request(db, request_id)
     except RequestNotFound as e:
          raise _not_found(e)
     except RequestNotPending as e:
          raise _not_pending(e)
     return FlatRequestApprovedResponse(flat_id=flat_id)


@router.post(
     "/{request_id}/reject",
     response_model=OkResponse,
     summary="Reject a flat request"
)
def reject_request(request_id: int, db: Session = Depends(get_session)):
     try:
          FlatLifecycleService.reject_request(db, request_id)
     except RequestNotFound as e:
          raise _not_found(e)
     except RequestNotPending as e:
          raise _not_pending(e)
     return OkResponse()
