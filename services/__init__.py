from .lifecycle_service import (
     FlatLifecycleService,
     IssuedSetupCode,
     RequestNotFound,
     RequestNotPending,
     FlatNotFound,
     generate_human_code,
     verify_setup_code,
)
from .session_service import SessionStore, SessionGatekeeper, AdminSession
from .metrics_service import MetricsCollector, THRESHOLDS
from .broadcaster import LiveBroadcaster
from .alerts import derive_alerts, AlertLogWatcher
from .live_snapshot import fetch_live_snapshot, LiveSnapshotError

__all__ = [
     "FlatLifecycleService",
     "IssuedSetupCode",
     "RequestNotFound",
     "RequestNotPending",
     "FlatNotFound",
     "generate_human_code",
     "verify_setup_code",
     "SessionStore",
     "SessionGatekeeper",
     "AdminSession",
     "MetricsCollector",
     "THRESHOLDS",
     "LiveBroadcaster",
     "derive_alerts",
     "AlertLogWatcher",
     "fetch_live_snapshot",
     "LiveSnapshotError",
]
