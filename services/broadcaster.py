# services/broadcaster.py
"""
Live monitor fan-out over WebSocket.

A periodic task builds one snapshot per tick (only while someone is
watching), serialises it once and sends it to every open subscriber.
"""
import asyncio
import json
import logging
from typing import Callable, Dict, Iterable, List, Optional, Set

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from services.metrics_service import MetricsCollector

logger = logging.getLogger(__name__)

Observer = Callable[[Dict[str, object]], None]


def _is_open(websocket: WebSocket) -> bool:
     return (
          websocket.client_state == WebSocketState.CONNECTED
          and websocket.application_state == WebSocketState.CONNECTED
     )


class LiveBroadcaster:
     """Owns the subscriber set and the periodic snapshot loop."""

     def __init__(
          self,
          metrics: MetricsCollector,
          interval: float = 1.0,
          observers: Optional[Iterable[Observer]] = None
     ):
          self.metrics = metrics
          self.interval = interval
          self.observers: List[Observer] = list(observers or [])
          self._subscribers: Set[WebSocket] = set()
          self._task: Optional[asyncio.Task] = None

     @property
     def viewers(self) -> int:
          return len(self._subscribers)

     def build_snapshot(self) -> Dict[str, object]:
          return self.metrics.snapshot(viewers=self.viewers)

     async def connect(self, websocket: WebSocket) -> None:
          """Register an accepted socket and send it one snapshot right away."""
          self._subscribers.add(websocket)
          logger.info("Monitor subscriber connected (%d watching)", self.viewers)
          await self._send(websocket, json.dumps(self.build_snapshot()))

     def disconnect(self, websocket: WebSocket) -> None:
          if websocket in self._subscribers:
               self._subscribers.discard(websocket)
               logger.info("Monitor subscriber disconnected (%d watching)", self.viewers)

     async def tick(self) -> int:
          """
          One broadcast cycle. Returns the number of sockets the snapshot reached.
          The request window is pruned even when nobody is watching.
          """
          if not self._subscribers:
               self.metrics.prune()
               return 0

          snapshot = self.build_snapshot()
          message = json.dumps(snapshot)
          delivered = 0
          for websocket in list(self._subscribers):
               if not _is_open(websocket):
                    self.disconnect(websocket)
                    continue
               if await self._send(websocket, message):
                    delivered += 1

          for observer in self.observers:
               try:
                    observer(snapshot)
               except Exception:
                    logger.exception("Monitor observer failed")
          return delivered

     async def run(self) -> None:
          """Tick forever; cancelled on shutdown."""
          while True:
               try:
                    await self.tick()
               except asyncio.CancelledError:
                    raise
               except Exception:
                    logger.exception("Monitor broadcast tick failed")
               await asyncio.sleep(self.interval)

     def start(self) -> None:
          if self._task is None or self._task.done():
               self._task = asyncio.get_running_loop().create_task(self.run())

     async def stop(self) -> None:
          if self._task is None:
               return
          self._task.cancel()
          try:
               await self._task
          except asyncio.CancelledError:
               pass
          self._task = None

     async def _send(self, websocket: WebSocket, message: str) -> bool:
          try:
               await websocket.send_text(message)
               return True
          except Exception as e:
               # Socket went away between the state check and the send
               logger.debug("Dropping monitor subscriber: %s", e)
               self.disconnect(websocket)
               return False
