# services/live_snapshot.py
"""
Proxy for the live routing service's activity snapshot.

One GET per admin request, authenticated with the shared live token.
The payload is returned verbatim; its structure is owned by the live
routing service.
"""
import logging
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests

logger = logging.getLogger(__name__)

SNAPSHOT_PATH = "/api/internal/live-snapshot"
TOKEN_HEADER = "x-audix-live-token"
EXCERPT_LENGTH = 120


class LiveSnapshotError(Exception):
     """Upstream failure; code is the stable error string shown to the admin."""

     def __init__(
          self,
          code: str,
          status: Optional[int] = None,
          excerpt: Optional[str] = None
     ):
          super().__init__(code if status is None else f"{code} ({status})")
          self.code = code
          self.status = status
          self.excerpt = excerpt

     def to_payload(self) -> Dict[str, Any]:
          payload: Dict[str, Any] = {"ok": False, "error": self.code}
          if self.status is not None:
               payload["status"] = self.status
          if self.excerpt is not None:
               payload["excerpt"] = self.excerpt
          return payload


def snapshot_url(base_url: str) -> str:
     return urljoin(base_url, SNAPSHOT_PATH)


def fetch_live_snapshot(base_url: str, token: str, timeout: float = 10) -> Dict[str, Any]:
     """
     Fetch the live snapshot from the routing service.

     Returns:
          The upstream JSON payload, unchanged

     Raises:
          LiveSnapshotError:
               - LIVE_FETCH_FAILED if the service is unreachable or times out
               - BAD_SNAPSHOT_RESPONSE if the reply is not JSON (status + body excerpt attached)
               - the payload's own error, or SNAPSHOT_HTTP_<status>, if the reply
                 is an HTTP error or declares ok: false
     """
     url = snapshot_url(base_url)
     try:
          response = requests.get(url, headers={TOKEN_HEADER: token}, timeout=timeout)
     except requests.RequestException as e:
          logger.warning("Live snapshot fetch failed: %s", e)
          raise LiveSnapshotError("LIVE_FETCH_FAILED") from e

     content_type = (response.headers.get("content-type") or "").lower()
     if "application/json" not in content_type:
          excerpt = (response.text or "")[:EXCERPT_LENGTH]
          logger.warning(
               "Live snapshot returned %s with content-type %r",
               response.status_code, content_type
          )
          raise LiveSnapshotError("BAD_SNAPSHOT_RESPONSE", response.status_code, excerpt)

     try:
          data = response.json()
     except ValueError as e:
          excerpt = (response.text or "")[:EXCERPT_LENGTH]
          raise LiveSnapshotError("BAD_SNAPSHOT_RESPONSE", response.status_code, excerpt) from e

     declared_failure = isinstance(data, dict) and data.get("ok") is False
     if not response.ok or declared_failure:
          error = data.get("error") if isinstance(data, dict) else None
          code = error if isinstance(error, str) and error else f"SNAPSHOT_HTTP_{response.status_code}"
          logger.warning("Live snapshot rejected: %s", code)
          raise LiveSnapshotError(code, response.status_code)

     return data
