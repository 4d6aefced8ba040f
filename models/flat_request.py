import enum
from sqlalchemy import Column, String, Text, BigInteger, Enum
from .base import Base, BigIntegerPK


class RequestStatus(str, enum.Enum):
     """Enumeration for flat onboarding request status."""
     PENDING = "PENDING"
     APPROVED = "APPROVED"
     REJECTED = "REJECTED"


class FlatRequest(Base):
     """
     FlatRequest model - manual intake of a flat that wants access.

     Starts PENDING and moves once to APPROVED or REJECTED; both are final.
     Several requests may exist for the same flat_id.
     """
     __tablename__ = "flat_requests"

     id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
     flat_id = Column(Text, nullable=False)
     name = Column(Text, nullable=False)
     note = Column(Text, default="", server_default="")
     status = Column(
          Enum(RequestStatus, name="flat_request_status", native_enum=False, length=16),
          default=RequestStatus.PENDING,
          server_default=RequestStatus.PENDING.value,
          nullable=False,
          index=True
     )

     # Timestamps (epoch ms)
     created_at = Column(BigInteger, nullable=False)
     updated_at = Column(BigInteger, nullable=False)

     def __repr__(self):
          return f"<FlatRequest(id={self.id}, flat_id='{self.flat_id}', status='{self.status.value}')>"

     @property
     def is_terminal(self) -> bool:
          """APPROVED and REJECTED requests never change status again."""
          return self.status in (RequestStatus.APPROVED, RequestStatus.REJECTED)
