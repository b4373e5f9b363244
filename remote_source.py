"""
Community hotspot table client.

Reads the shared hotspot table over a PostgREST-style HTTP endpoint
(`GET {base}/rest/v1/{table}?select=*&order=upvotes.desc`). This module is
the only place that talks to the remote table. It provides:
- Retry with backoff on 5xx and timeouts (2 retries, 1s/2s)
- Per-row parsing; unusable rows are dropped, not fatal
- A trace record for every attempt

Every failure surfaces as TransportError so the sync layer can fall back
to the offline cache.
"""

import logging
import os
import time
from typing import Any, List, Optional

import requests

from errors import TransportError
from hotspots import PointOfInterest, Provenance
from sync_trace import record_call

logger = logging.getLogger(__name__)


class _RetryableError(TransportError):
    """Server-side or timeout failure worth another attempt."""


class RemoteHotspotSource:
    DEFAULT_TIMEOUT = 15  # seconds
    MAX_RETRIES = 2
    RETRY_BACKOFF = [1, 2]  # seconds

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        table: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.base_url = (base_url or os.environ.get("HOTSPOT_REMOTE_URL") or "").rstrip("/")
        self.api_key = api_key or os.environ.get("HOTSPOT_REMOTE_KEY") or ""
        self.table = table or os.environ.get("HOTSPOT_REMOTE_TABLE", "hotspots")
        self.timeout = timeout or self.DEFAULT_TIMEOUT

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    def fetch_all(self) -> List[PointOfInterest]:
        """Every community hotspot, most upvoted first.

        Raises:
            TransportError: not configured, network failure, non-2xx status
                or a body that is not a JSON array, after retries.
        """
        if not self.is_configured:
            raise TransportError("remote source not configured")

        last_exception: Optional[TransportError] = None
        for attempt in range(1 + self.MAX_RETRIES):
            try:
                rows = self._do_request()
                break
            except _RetryableError as e:
                last_exception = e
                if attempt < self.MAX_RETRIES:
                    sleep_time = self.RETRY_BACKOFF[attempt]
                    logger.info(
                        "[remote] fetch failed (attempt %d/%d), sleeping %ds before retry: %s",
                        attempt + 1,
                        1 + self.MAX_RETRIES,
                        sleep_time,
                        e,
                    )
                    time.sleep(sleep_time)
                    continue
                raise TransportError(str(e)) from e
        else:
            raise last_exception or TransportError("remote fetch failed after all retries")

        return self._parse_rows(rows)

    def _do_request(self) -> List[Any]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        params = {"select": "*", "order": "upvotes.desc"}
        start = time.monotonic()

        def _record(outcome, status_code=0):
            record_call("remote_hotspots", outcome, int((time.monotonic() - start) * 1000), status_code)

        try:
            resp = requests.get(self.endpoint, headers=headers, params=params, timeout=self.timeout)
        except requests.Timeout as e:
            _record("timeout")
            raise _RetryableError(f"remote hotspot query timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            _record("exception")
            raise TransportError(f"remote hotspot query failed: {e}") from e

        status_code = resp.status_code
        if status_code >= 500:
            _record("server_error", status_code)
            raise _RetryableError(f"remote hotspot query returned HTTP {status_code}")
        if status_code >= 400:
            _record("http_error", status_code)
            raise TransportError(f"remote hotspot query returned HTTP {status_code}")

        try:
            data = resp.json()
        except ValueError:
            _record("parse_error", status_code)
            raise TransportError(
                f"remote hotspot query returned non-JSON response (HTTP {status_code})"
            ) from None
        if not isinstance(data, list):
            _record("parse_error", status_code)
            raise TransportError("remote hotspot query did not return a list")

        _record("ok", status_code)
        return data

    @staticmethod
    def _parse_rows(rows: List[Any]) -> List[PointOfInterest]:
        points = []
        dropped = 0
        for row in rows:
            if not isinstance(row, dict):
                dropped += 1
                continue
            try:
                points.append(PointOfInterest.from_record(row, Provenance.REMOTE))
            except (ValueError, TypeError) as e:
                dropped += 1
                logger.warning("[remote] dropping hotspot row %s: %s", row.get("id"), e)
        if dropped:
            logger.warning("[remote] dropped %d of %d rows", dropped, len(rows))
        return points
