from .base import Base, now_ms
from .flat_request import FlatRequest, RequestStatus
from .flat import Flat, FlatStatus
from .setup_code import SetupCode
from .admin_audit import AdminAuditEntry

__all__ = [
     "Base",
     "now_ms",
     "FlatRequest",
     "RequestStatus",
     "Flat",
     "FlatStatus",
     "SetupCode",
     "AdminAuditEntry",
]
