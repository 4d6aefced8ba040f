# services/metrics_service.py
"""
In-process request counters and host/process signals for the monitor.

MetricsCollector is the only owner of the counters; HTTP middleware feeds it
through record_start()/record_finish() and everything else reads through
summary() or snapshot(). Nothing is persisted; all counters reset on restart.
"""
import os
import sys
import threading
import time
import tracemalloc
from collections import deque
from typing import Callable, Deque, Dict, Optional, Set

WINDOW_SECONDS = 60.0

THRESHOLDS = {
     "cpuWarn": 0.7,
     "cpuCrit": 0.9,
     "ramWarn": 0.7,
     "ramCrit": 0.85,
     "rpmWarn": 120,
     "rpmCrit": 240,
}


def _page_size() -> int:
     try:
          return os.sysconf("SC_PAGE_SIZE")
     except (AttributeError, ValueError, OSError):
          return 4096


def process_rss() -> int:
     """Resident set size in bytes (current on Linux, peak elsewhere)."""
     try:
          with open("/proc/self/statm") as fh:
               return int(fh.read().split()[1]) * _page_size()
     except (OSError, IndexError, ValueError):
          pass
     try:
          import resource
     except ImportError:
          return 0
     peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
     # ru_maxrss is bytes on macOS, kilobytes on Linux/BSD
     return peak if sys.platform == "darwin" else peak * 1024


def process_memory() -> Dict[str, int]:
     """
     Process memory in bytes.

     heapUsed and heapTotal are the Python allocations traced by tracemalloc
     (current and peak); external is the rest of the resident set (interpreter,
     C extensions, thread stacks). Without tracing both heap figures are 0 and
     external is the whole rss.
     """
     rss = process_rss()
     heap_used, heap_peak = tracemalloc.get_traced_memory() if tracemalloc.is_tracing() else (0, 0)
     return {
          "rss": rss,
          "heapUsed": heap_used,
          "heapTotal": max(heap_peak, heap_used),
          "external": max(0, rss - heap_used),
     }


def host_memory() -> Dict[str, int]:
     try:
          page = _page_size()
          total = os.sysconf("SC_PHYS_PAGES") * page
          free = os.sysconf("SC_AVPHYS_PAGES") * page
     except (AttributeError, ValueError, OSError):
          return {"totalMem": 0, "usedMem": 0, "freeMem": 0}
     return {"totalMem": total, "usedMem": total - free, "freeMem": free}


def load_average() -> float:
     try:
          return os.getloadavg()[0]
     except (AttributeError, OSError):
          return 0.0


class MetricsCollector:
     """Process-wide counters since boot, plus a trailing 60-second request window."""

     def __init__(self, clock: Callable[[], float] = time.time, trace_heap: bool = True):
          self._clock = clock
          if trace_heap and not tracemalloc.is_tracing():
               tracemalloc.start()
          self._lock = threading.Lock()
          self.started_at = clock()
          self.total_requests = 0
          self.in_flight = 0
          self._client_ips: Set[str] = set()
          self._window: Deque[float] = deque()

     # -- recording -------------------------------------------------------

     def record_start(self, client_ip: Optional[str]) -> None:
          now = self._clock()
          with self._lock:
               self.total_requests += 1
               self.in_flight += 1
               if client_ip:
                    self._client_ips.add(client_ip)
               self._window.append(now)
               self._prune(now)

     def record_finish(self) -> None:
          with self._lock:
               self.in_flight = max(0, self.in_flight - 1)

     # -- reading ---------------------------------------------------------

     def prune(self) -> None:
          with self._lock:
               self._prune(self._clock())

     def rpm(self) -> int:
          """Requests seen in the trailing 60 seconds."""
          with self._lock:
               self._prune(self._clock())
               return len(self._window)

     def summary(self) -> Dict[str, object]:
          """Counters for the quick-check JSON endpoint."""
          now = self._clock()
          with self._lock:
               self._prune(now)
               counters = self._counters(now)
          counters["mem"] = process_memory()
          return counters

     def snapshot(self, viewers: int = 0) -> Dict[str, object]:
          """
          Point-in-time operational snapshot pushed to monitor subscribers.

          Carries raw signals and the alert thresholds only; consumers derive
          ok/warn/crit themselves.
          """
          now = self._clock()
          with self._lock:
               self._prune(now)
               counters = self._counters(now)

          mem = process_memory()
          hw = host_memory()
          cpu_cores = os.cpu_count() or 0
          load1 = load_average()
          hw.update({
               "cpuCores": cpu_cores,
               "load1": load1,
               "cpuPressure": load1 / cpu_cores if cpu_cores else 0,
          })

          return {
               "ts": int(now * 1000),
               **counters,
               "viewers": viewers,
               "mem": mem,
               "hw": hw,
               "thresholds": dict(THRESHOLDS),
          }

     # -- internals (caller holds the lock) -------------------------------

     def _prune(self, now: float) -> None:
          cutoff = now - WINDOW_SECONDS
          while self._window and self._window[0] < cutoff:
               self._window.popleft()

     def _counters(self, now: float) -> Dict[str, object]:
          return {
               "uptimeSec": int(now - self.started_at),
               "totalRequests": self.total_requests,
               "inFlight": self.in_flight,
               "uniqueIPs": len(self._client_ips),
               "rpm": len(self._window),
          }
