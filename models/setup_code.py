"""
SetupCode model - one-time provisioning code for a flat's device.

Only the bcrypt hash is stored; the plaintext is handed to the admin once
at issuance. Consumption (used_at) is recorded by the flat-facing
authentication flow, which must check expires_at itself.
"""
from typing import Optional
from sqlalchemy import Column, Text, BigInteger, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, BigIntegerPK, now_ms


class SetupCode(Base):
     """
     Issued setup code. Rows are never deleted by the admin server;
     expired codes stay in the table.
     """
     __tablename__ = "setup_codes"

     id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
     flat_id = Column(
          Text,
          ForeignKey("flats.flat_id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     code_hash = Column(Text, nullable=False)
     expires_at = Column(BigInteger, nullable=False, index=True)
     used_at = Column(BigInteger, nullable=True)
     created_at = Column(BigInteger, nullable=False)

     # Relationships
     flat = relationship("Flat", back_populates="setup_codes")

     def __repr__(self):
          return f"<SetupCode(id={self.id}, flat_id='{self.flat_id}', expires_at={self.expires_at})>"

     def is_usable(self, now: Optional[int] = None) -> bool:
          """Check if the code is still unused and not yet expired."""
          now = now_ms() if now is None else now
          return self.used_at is None and self.expires_at > now
