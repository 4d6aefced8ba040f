# services/alerts.py
"""
Alert levels derived from a monitor snapshot.

The broadcaster ships raw signals and thresholds only; every consumer
(dashboard, log watcher) recomputes the verdict from the same snapshot.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from services.metrics_service import THRESHOLDS

logger = logging.getLogger(__name__)

OK = "ok"
WARN = "warn"
CRIT = "crit"

_RANK = {OK: 0, WARN: 1, CRIT: 2}

BANNERS = {
     OK: ("SYSTEM OK", "✅"),
     WARN: ("WARNING: System load rising", "⚠️"),
     CRIT: ("CRITICAL: System under heavy load", "❌"),
}


@dataclass(frozen=True)
class AlertStatus:
     cpu: str
     ram: str
     rpm: str
     level: str
     text: str
     icon: str


def _threshold(thresholds: Mapping[str, Any], key: str) -> float:
     try:
          return float(thresholds.get(key, THRESHOLDS[key]))
     except (TypeError, ValueError):
          return float(THRESHOLDS[key])


def _grade(value: float, warn: float, crit: float) -> str:
     if value >= crit:
          return CRIT
     if value >= warn:
          return WARN
     return OK


def derive_alerts(snapshot: Mapping[str, Any]) -> AlertStatus:
     """Per-signal levels and the overall banner for one snapshot."""
     th = snapshot.get("thresholds") or {}
     hw = snapshot.get("hw") or {}
     mem = snapshot.get("mem") or {}

     cpu = _grade(
          float(hw.get("cpuPressure") or 0),
          _threshold(th, "cpuWarn"),
          _threshold(th, "cpuCrit"),
     )

     # ram is this process's share of host memory, not host-wide usage
     total_mem = float(hw.get("totalMem") or 0)
     if total_mem > 0:
          ram = _grade(
               float(mem.get("rss") or 0) / total_mem,
               _threshold(th, "ramWarn"),
               _threshold(th, "ramCrit"),
          )
     else:
          ram = OK

     rpm = _grade(
          float(snapshot.get("rpm") or 0),
          _threshold(th, "rpmWarn"),
          _threshold(th, "rpmCrit"),
     )

     level = max((cpu, ram, rpm), key=_RANK.__getitem__)
     text, icon = BANNERS[level]
     return AlertStatus(cpu=cpu, ram=ram, rpm=rpm, level=level, text=text, icon=icon)


class AlertLogWatcher:
     """Broadcaster observer that logs whenever the overall level changes."""

     def __init__(self):
          self.level: Optional[str] = None

     def __call__(self, snapshot: Dict[str, Any]) -> None:
          status = derive_alerts(snapshot)
          if status.level == self.level:
               return
          previous, self.level = self.level, status.level
          if previous is None and status.level == OK:
               return
          log = logger.warning if status.level != OK else logger.info
          log(
               "%s (cpu=%s ram=%s rpm=%s)",
               status.text, status.cpu, status.ram, status.rpm
          )
