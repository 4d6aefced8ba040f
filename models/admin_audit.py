from sqlalchemy import Column, Text, BigInteger
from .base import Base, BigIntegerPK


class AdminAuditEntry(Base):
     """
     Append-only admin audit log.
     Rows are written by an external process; meta_json is opaque here.
     """
     __tablename__ = "admin_audit"

     id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
     action = Column(Text, nullable=False)
     meta_json = Column(Text, nullable=True)
     created_at = Column(BigInteger, nullable=False)

     def __repr__(self):
          return f"<AdminAuditEntry(id={self.id}, action='{self.action}')>"
