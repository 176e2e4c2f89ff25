from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Protocol

import requests

from meter_dashboard.domain.models import MeterReading

logger = logging.getLogger(__name__)


class MeterFetchError(RuntimeError):
    """
    Raised when a poll cannot produce a reading (network, HTTP status, or body).
    """


class ReadingSource(Protocol):
    """
    Protocol interface for anything that yields one reading per call.
    """

    def fetch(self) -> MeterReading:
        ...


@dataclass(frozen=True)
class MeterClientConfig:
    """
    Connection settings for the real-time meter endpoint.

    Parameters
    ----------
    url
        Endpoint URL (HTTP POST).
    meter_id
        Meter number sent in the request body.
    parameters
        Parameter ids requested for the meter (7 = kVA demand).
    timeout_s
        HTTP request timeout in seconds.
    verify_tls
        Whether to verify TLS certificates.
    """

    url: str
    meter_id: int
    parameters: List[int] = field(default_factory=lambda: [7])
    timeout_s: float = 10.0
    verify_tls: bool = True


class MeterClient:
    """
    HTTP client fetching the latest reading of one meter.

    The endpoint takes a JSON array of ``{"meter": id, "paraMeters": [...]}``
    requests and answers with a JSON array of reading objects; the first one
    is used.

    Notes
    -----
    - This class is an infrastructure component. It does not decide alarm
      conditions.
    - Every failure mode is surfaced as :class:`MeterFetchError` so the poll
      loop has a single error type to handle.
    """

    def __init__(self, cfg: MeterClientConfig, session: Optional[requests.Session] = None):
        self._cfg = cfg
        self._session = session

    def request_body(self) -> List[dict]:
        return [{"meter": self._cfg.meter_id, "paraMeters": list(self._cfg.parameters)}]

    def fetch(self) -> MeterReading:
        """
        POST the request and decode the first reading of the response.

        Returns
        -------
        MeterReading
            Decoded reading.

        Raises
        ------
        MeterFetchError
            On transport errors, non-2xx status, invalid JSON, or an empty or
            malformed body.
        """
        headers = {
            "Accept": "application/json, text/plain, */*",
            "Content-Type": "application/json",
        }
        post = self._session.post if self._session is not None else requests.post

        try:
            r = post(
                self._cfg.url,
                json=self.request_body(),
                headers=headers,
                timeout=self._cfg.timeout_s,
                verify=self._cfg.verify_tls,
            )
        except requests.RequestException as e:
            raise MeterFetchError(str(e)) from e

        logger.debug("Response status: %s", r.status_code)
        if not r.ok:
            raise MeterFetchError(f"HTTP {r.status_code}")

        try:
            data: Any = r.json()
        except ValueError as e:
            raise MeterFetchError(f"Invalid JSON response: {e}") from e

        if not isinstance(data, list) or not data:
            raise MeterFetchError("Response contains no readings")

        try:
            return MeterReading.from_payload(data[0], received_at=datetime.now())
        except ValueError as e:
            raise MeterFetchError(f"Malformed reading: {e}") from e
