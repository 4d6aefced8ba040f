import enum
from typing import Optional
from sqlalchemy import Column, Integer, Text, BigInteger, Boolean, Enum, false
from sqlalchemy.orm import relationship
from .base import Base, now_ms


class FlatStatus(str, enum.Enum):
     """Administrator kill switch for a flat."""
     ACTIVE = "ACTIVE"
     DISABLED = "DISABLED"


class Flat(Base):
     """
     Flat model - a tenant unit managed by the admin surface.

     Created or reactivated only by approving a FlatRequest.
     Two suspension mechanisms coexist with the DISABLED status:
     - ban_until: time-bounded ban
     - requires_admin_revoke: sticky flag that outlives ban_until until an admin clears it
     strike_count, ban_until and last_login_at are written by the flat-facing
     authentication flow, not by this server.
     """
     __tablename__ = "flats"

     flat_id = Column(Text, primary_key=True)
     status = Column(
          Enum(FlatStatus, name="flat_status", native_enum=False, length=16),
          default=FlatStatus.ACTIVE,
          server_default=FlatStatus.ACTIVE.value,
          nullable=False
     )

     # Credentials
     pin_hash = Column(Text, nullable=True)
     password_hash = Column(Text, nullable=True)

     # Suspension
     strike_count = Column(Integer, default=0, server_default="0", nullable=False)
     ban_until = Column(BigInteger, nullable=True)
     requires_admin_revoke = Column(Boolean, default=False, server_default=false(), nullable=False)

     # Timestamps (epoch ms)
     created_at = Column(BigInteger, nullable=False)
     updated_at = Column(BigInteger, nullable=False)
     last_login_at = Column(BigInteger, nullable=True)

     # Relationships
     setup_codes = relationship("SetupCode", back_populates="flat", passive_deletes=True)

     def __repr__(self):
          return f"<Flat(flat_id='{self.flat_id}', status='{self.status.value}', strikes={self.strike_count})>"

     def is_banned(self, now: Optional[int] = None) -> bool:
          """Banned while ban_until is in the future, or until an admin revokes the sticky flag."""
          now = now_ms() if now is None else now
          if self.requires_admin_revoke:
               return True
          return self.ban_until is not None and self.ban_until > now
