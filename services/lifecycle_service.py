# services/lifecycle_service.py
"""
Flat Lifecycle Service - onboarding, credential issuance and suspension.

Flow:
1. An admin records a FlatRequest (PENDING)
2. Approving it creates the Flat (or reactivates it) and marks the request APPROVED,
   both in one transaction
3. The admin issues a one-time setup code for the flat; the plaintext is returned
   once, only a bcrypt hash is stored, and the flat's device PIN is invalidated
4. Bans are revoked and flats disabled/enabled by hand

The service never deletes rows and runs no background expiry sweeps.
"""
import logging
import secrets
from dataclasses import dataclass
from typing import List, Optional

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from database import unit_of_work
from models import Flat, FlatRequest, FlatStatus, RequestStatus, SetupCode, now_ms

logger = logging.getLogger(__name__)

# Bcrypt, cost 10
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)

# Human-transcribable alphabets: no I/O among letters, no 0/1 among digits
CODE_LETTERS = "ABCDEFGHJKLMNPQRSTUVWXYZ"
CODE_DIGITS = "23456789"

DEFAULT_SETUP_CODE_TTL_MINUTES = 60
MAX_LIST_LIMIT = 200


class RequestNotFound(LookupError):
     code = "REQUEST_NOT_FOUND"


class RequestNotPending(ValueError):
     code = "REQUEST_NOT_PENDING"


class FlatNotFound(LookupError):
     code = "FLAT_NOT_FOUND"


@dataclass(frozen=True)
class IssuedSetupCode:
     flat_id: str
     code: str
     expires_at: int


def generate_human_code() -> str:
     """Four letters, a dash, four digits (e.g. KXQM-4827), from a CSPRNG."""
     letters = "".join(secrets.choice(CODE_LETTERS) for _ in range(4))
     digits = "".join(secrets.choice(CODE_DIGITS) for _ in range(4))
     return f"{letters}-{digits}"


def hash_setup_code(code: str) -> str:
     return pwd_context.hash(code)


def verify_setup_code(code: str, code_hash: str) -> bool:
     """Check a plaintext code against a stored hash (used by the flat-facing auth flow)."""
     return pwd_context.verify(code, code_hash)


def _clamp_limit(limit: int) -> int:
     return max(1, min(MAX_LIST_LIMIT, int(limit)))


def _escape_like(value: str) -> str:
     return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class FlatLifecycleService:
     """Service class for flat onboarding and credential business logic."""

     # ------------------------------------------------------------------
     # Requests
     # ------------------------------------------------------------------

     @staticmethod
     def create_request(db: Session, flat_id: str, name: str, note: str = "") -> int:
          """
          Record a new PENDING request. No dedup against existing requests or flats.

          Returns:
               The new request id
          """
          now = now_ms()
          request = FlatRequest(
               flat_id=flat_id,
               name=name,
               note=note or "",
               status=RequestStatus.PENDING,
               created_at=now,
               updated_at=now
          )
          with unit_of_work(db):
               db.add(request)
               db.flush()
               request_id = request.id

          logger.info("Flat request %s created for flat %s", request_id, flat_id)
          return request_id

     @staticmethod
     def list_requests(
          db: Session,
          status: RequestStatus = RequestStatus.PENDING,
          limit: int = MAX_LIST_LIMIT
     ) -> List[FlatRequest]:
          """Requests with the given status, newest first."""
          return (
               db.query(FlatRequest)
               .filter(FlatRequest.status == status)
               .order_by(FlatRequest.created_at.desc(), FlatRequest.id.desc())
               .limit(_clamp_limit(limit))
               .all()
          )

     @staticmethod
     def get_request(db: Session, request_id: int) -> FlatRequest:
          request = db.query(FlatRequest).filter(FlatRequest.id == request_id).first()
          if request is None:
               raise RequestNotFound(request_id)
          return request

     @staticmethod
     def approve_request(db: Session, request_id: int) -> str:
          """
          Approve a request: upsert its Flat as ACTIVE, then mark the request APPROVED.

          An existing flat keeps its strike_count, ban_until and requires_admin_revoke;
          reactivation does not erase suspension history. Both writes commit together.
          Approving an already APPROVED request is idempotent.

          Raises:
               RequestNotFound: no request with this id (nothing is written)
               RequestNotPending: the request was REJECTED
          """
          request = FlatLifecycleService.get_request(db, request_id)
          if request.is_terminal and request.status != RequestStatus.APPROVED:
               raise RequestNotPending(request_id)

          now = now_ms()
          flat_id = request.flat_id
          with unit_of_work(db):
               FlatLifecycleService._upsert_active_flat(db, flat_id, now)
               if not request.is_terminal:
                    request.status = RequestStatus.APPROVED
                    request.updated_at = now

          logger.info("Flat request %s approved, flat %s active", request_id, flat_id)
          return flat_id

     @staticmethod
     def reject_request(db: Session, request_id: int) -> None:
          """
          Mark a PENDING request REJECTED. Rejecting twice is a no-op.

          Raises:
               RequestNotFound: no request with this id
               RequestNotPending: the request was already APPROVED
          """
          request = FlatLifecycleService.get_request(db, request_id)
          if request.is_terminal:
               if request.status == RequestStatus.APPROVED:
                    raise RequestNotPending(request_id)
               return

          with unit_of_work(db):
               request.status = RequestStatus.REJECTED
               request.updated_at = now_ms()

          logger.info("Flat request %s rejected", request_id)

     @staticmethod
     def _upsert_active_flat(db: Session, flat_id: str, now: int) -> None:
          """INSERT ... ON CONFLICT DO UPDATE where the dialect has it, ORM otherwise."""
          dialect = db.get_bind().dialect.name
          if dialect == "postgresql":
               from sqlalchemy.dialects.postgresql import insert
          elif dialect == "sqlite":
               from sqlalchemy.dialects.sqlite import insert
          else:
               insert = None

          if insert is None:
               flat = db.get(Flat, flat_id)
               if flat is None:
                    db.add(Flat(
                         flat_id=flat_id,
                         status=FlatStatus.ACTIVE,
                         strike_count=0,
                         ban_until=None,
                         requires_admin_revoke=False,
                         created_at=now,
                         updated_at=now
                    ))
               else:
                    flat.status = FlatStatus.ACTIVE
                    flat.updated_at = now
               db.flush()
               return

          stmt = insert(Flat).values(
               flat_id=flat_id,
               status=FlatStatus.ACTIVE,
               strike_count=0,
               ban_until=None,
               requires_admin_revoke=False,
               created_at=now,
               updated_at=now
          )
          stmt = stmt.on_conflict_do_update(
               index_elements=[Flat.flat_id],
               set_={"status": FlatStatus.ACTIVE, "updated_at": now}
          )
          db.execute(stmt)
          # Core write: drop any stale copy from the identity map
          cached = db.get(Flat, flat_id)
          if cached is not None:
               db.refresh(cached)

     # ------------------------------------------------------------------
     # Flats
     # ------------------------------------------------------------------

     @staticmethod
     def get_flat(db: Session, flat_id: str) -> Flat:
          flat = db.get(Flat, flat_id)
          if flat is None:
               raise FlatNotFound(flat_id)
          return flat

     @staticmethod
     def list_flats(db: Session, q: str = "", limit: int = MAX_LIST_LIMIT) -> List[Flat]:
          """Flats whose flat_id contains q (case-insensitive), alphabetical."""
          query = db.query(Flat)
          if q:
               query = query.filter(Flat.flat_id.ilike(f"%{_escape_like(q)}%", escape="\\"))
          return query.order_by(Flat.flat_id.asc()).limit(_clamp_limit(limit)).all()

     @staticmethod
     def generate_setup_code(
          db: Session,
          flat_id: str,
          ttl_minutes: Optional[float] = DEFAULT_SETUP_CODE_TTL_MINUTES
     ) -> IssuedSetupCode:
          """
          Issue a one-time setup code for a flat.

          The plaintext code is returned here and nowhere else; the store keeps a
          bcrypt hash. Issuing a code invalidates the flat's device PIN so the
          device has to be provisioned again with the new code.

          Args:
               db: SQLAlchemy database session
               flat_id: Flat to issue the code for
               ttl_minutes: Minutes until expiry (default: 60)

          Returns:
               IssuedSetupCode with flat_id, code and expires_at (epoch ms)

          Raises:
               FlatNotFound: no flat with this id (nothing is written)
          """
          flat = FlatLifecycleService.get_flat(db, flat_id)
          if ttl_minutes is None:
               ttl_minutes = DEFAULT_SETUP_CODE_TTL_MINUTES

          code = generate_human_code()
          code_hash = hash_setup_code(code)
          now = now_ms()
          expires_at = now + int(round(ttl_minutes * 60_000))

          with unit_of_work(db):
               db.add(SetupCode(
                    flat_id=flat.flat_id,
                    code_hash=code_hash,
                    expires_at=expires_at,
                    created_at=now
               ))
               FlatLifecycleService._invalidate_device_credential(flat, now)

          logger.info("Setup code issued for flat %s, expires_at=%s", flat.flat_id, expires_at)
          return IssuedSetupCode(flat_id=flat.flat_id, code=code, expires_at=expires_at)

     @staticmethod
     def _invalidate_device_credential(flat: Flat, now: int) -> None:
          """Forget the provisioned device PIN; the next login must go through a setup code."""
          flat.pin_hash = None
          flat.updated_at = now

     @staticmethod
     def revoke_ban(db: Session, flat_id: str) -> None:
          """
          Lift a ban, including the sticky admin-revoke flag.

          Raises:
               FlatNotFound: no flat with this id
          """
          flat = FlatLifecycleService.get_flat(db, flat_id)
          with unit_of_work(db):
               flat.ban_until = None
               flat.requires_admin_revoke = False
               flat.updated_at = now_ms()

          logger.info("Ban revoked for flat %s", flat_id)

     @staticmethod
     def set_disabled(db: Session, flat_id: str, disabled: bool = True) -> None:
          """
          Flip the administrator kill switch.

          Raises:
               FlatNotFound: no flat with this id
          """
          flat = FlatLifecycleService.get_flat(db, flat_id)
          with unit_of_work(db):
               flat.status = FlatStatus.DISABLED if disabled else FlatStatus.ACTIVE
               flat.updated_at = now_ms()

          logger.info("Flat %s %s", flat_id, "disabled" if disabled else "enabled")
