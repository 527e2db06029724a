"""
Async HTTPS client for the PVOutput r2 service.

Encodes records with the codecs in :mod:`pvoutput.output` and
:mod:`pvoutput.status`, POSTs them form-encoded to the matching ``.jsp``
endpoint and checks the confirmation text the service returns. Also reads
status and output reports back and decodes them.

Every request carries the API key and system id headers. A request is a
single round-trip: there is no retry and no timeout beyond the httpx
default. Any failure raises :class:`~pvoutput.errors.TransportError`
carrying the raw response body.

Operations:
- add_output / add_batch_output: daily summaries.
- add_status / add_batch_status: live snapshots.
- get_status / get_outputs: read back and decode.

CHANGELOG:
- 2026-10-19: ASCII-only digits in the batch status confirmation
- 2026-10-14: Add get_status and get_outputs
- 2026-10-12: Detect exceeded request quota (RateLimitExceededError)
- 2026-10-10: Initial creation

TODO:
- None
"""

from __future__ import annotations

import datetime as dt
import logging
import re

import httpx

from pvoutput.config import DEFAULT_BASE_URL, PVOutputSettings
from pvoutput.errors import RateLimitExceededError, TransportError
from pvoutput.output import BatchOutput, Output, decode_outputs
from pvoutput.status import BatchStatus, Status, decode_status
from pvoutput.wire import (
    BATCH_MAX_SIZE,
    BATCH_MAX_SIZE_DONATING,
    Encodable,
    format_value,
)

logger = logging.getLogger(__name__)

ADD_OUTPUT_ENDPOINT = "addoutput.jsp"
ADD_BATCH_OUTPUT_ENDPOINT = "addbatchoutput.jsp"
ADD_STATUS_ENDPOINT = "addstatus.jsp"
ADD_BATCH_STATUS_ENDPOINT = "addbatchstatus.jsp"
GET_STATUS_ENDPOINT = "getstatus.jsp"
GET_OUTPUT_ENDPOINT = "getoutput.jsp"

_ADDED_OUTPUT = "OK 200: Added Output"
_ADDED_BATCH = "OK 200: Added Batch"
_ADDED_STATUS = "OK 200: Added Status"
# One "date,time,added" triple per submitted status.
_BATCH_STATUS_RE = re.compile(r"^(\d+,[\d:]+,[01];?)+$", re.ASCII)

_RATE_LIMIT_MARKER = "Exceeded number requests"

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class Client:
    """PVOutput API client for one system.

    Args:
        api_key: API key of the account, sent as ``X-Pvoutput-Apikey``.
        system_id: System id, sent as ``X-Pvoutput-SystemId``.
        base_url: Service root. Must start with ``https://``.
        donating: Donating accounts may send batches of up to 100 records
            instead of 30.
        transport: Optional httpx transport, e.g. ``httpx.MockTransport``
            in tests.

    Raises:
        ValueError: If *base_url* does not start with ``https://``.

    Usage::

        client = Client(api_key="abc", system_id="12345")
        status = Status(date_time=datetime(2026, 10, 18, 12, 30), generating=1800)
        await client.add_status(status)
    """

    def __init__(
        self,
        api_key: str,
        system_id: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        donating: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url.lower().startswith("https://"):
            raise ValueError(f"PVOutput base URL must use HTTPS (got: '{base_url}').")
        self.api_key = api_key
        self.system_id = system_id
        self.donating = donating
        self._base_url = base_url.rstrip("/")
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: PVOutputSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Client:
        """Build a client from loaded :class:`PVOutputSettings`."""
        return cls(
            api_key=settings.api_key,
            system_id=settings.system_id,
            base_url=settings.base_url,
            donating=settings.donating,
            transport=transport,
        )

    @property
    def batch_max_size(self) -> int:
        """Largest batch the account may send in one request."""
        return BATCH_MAX_SIZE_DONATING if self.donating else BATCH_MAX_SIZE

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def add_output(self, output: Output) -> None:
        """Submit one daily output (``addoutput.jsp``)."""
        body = await self._post(ADD_OUTPUT_ENDPOINT, output)
        self._expect_literal(body, _ADDED_OUTPUT)

    async def add_batch_output(self, batch: BatchOutput) -> None:
        """Submit up to :attr:`batch_max_size` outputs (``addbatchoutput.jsp``).

        Raises:
            BatchSizeError: Before any request, if the batch is empty or
                too large for the account.
        """
        payload = batch.encode(max_size=self.batch_max_size)
        body = await self._request("POST", ADD_BATCH_OUTPUT_ENDPOINT, content=payload)
        self._expect_literal(body, _ADDED_BATCH)

    async def add_status(self, status: Status) -> None:
        """Submit one live status (``addstatus.jsp``)."""
        body = await self._post(ADD_STATUS_ENDPOINT, status)
        self._expect_literal(body, _ADDED_STATUS)

    async def add_batch_status(self, batch: BatchStatus) -> None:
        """Submit up to :attr:`batch_max_size` statuses (``addbatchstatus.jsp``).

        The service answers with one ``date,time,flag`` triple per status.
        """
        payload = batch.encode(max_size=self.batch_max_size)
        body = await self._request("POST", ADD_BATCH_STATUS_ENDPOINT, content=payload)
        if not _BATCH_STATUS_RE.match(body):
            raise TransportError(body)

    async def get_status(self, at: dt.datetime | None = None) -> Status:
        """Fetch the latest status, or the one recorded at *at*."""
        params: dict[str, str] = {}
        if at is not None:
            params["d"] = format_value("date", at)
            params["t"] = format_value("time", at)
        body = await self._request("GET", GET_STATUS_ENDPOINT, params=params)
        return decode_status(body)

    async def get_outputs(
        self,
        date_from: dt.date | None = None,
        date_to: dt.date | None = None,
        *,
        limit: int | None = None,
        insolation: bool = False,
        time_of_export: bool = False,
    ) -> list[Output]:
        """Fetch daily outputs, newest first (``getoutput.jsp``).

        Args:
            date_from: First day to include.
            date_to: Last day to include.
            limit: Maximum number of days returned.
            insolation: Ask for the insolation column.
            time_of_export: Ask for the export tier columns.
        """
        params: dict[str, str] = {}
        if date_from is not None:
            params["df"] = format_value("date", date_from)
        if date_to is not None:
            params["dt"] = format_value("date", date_to)
        if limit is not None:
            params["limit"] = str(limit)
        if insolation:
            params["insolation"] = "1"
        if time_of_export:
            params["timeofexport"] = "1"
        body = await self._request("GET", GET_OUTPUT_ENDPOINT, params=params)
        return decode_outputs(body)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {
            "X-Pvoutput-Apikey": self.api_key,
            "X-Pvoutput-SystemId": self.system_id,
        }

    async def _post(self, endpoint: str, item: Encodable) -> str:
        """Encode *item* and POST it; encoding errors surface before any I/O."""
        return await self._request("POST", endpoint, content=item.encode())

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        content: str | None = None,
        params: dict[str, str] | None = None,
    ) -> str:
        """Send one request and return the body of a successful response.

        Raises:
            RateLimitExceededError: On a 403 reporting an exceeded quota.
            TransportError: On network errors and non-2xx responses.
        """
        url = f"{self._base_url}/{endpoint}"
        headers = self._headers()
        if content is not None:
            headers["Content-Type"] = _FORM_CONTENT_TYPE

        logger.debug("%s %s (system %s)", method, url, self.system_id)
        try:
            async with httpx.AsyncClient(transport=self._transport, verify=True) as client:
                response = await client.request(
                    method,
                    url,
                    content=content,
                    params=params,
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed (network error): %s", method, endpoint, exc)
            raise TransportError(str(exc)) from exc

        body = response.text
        if response.status_code == 403 and _RATE_LIMIT_MARKER in body:
            logger.warning("%s rejected: request quota exceeded.", endpoint)
            raise RateLimitExceededError(body, status_code=response.status_code)
        if not response.is_success:
            logger.warning(
                "%s failed (HTTP %d): %s", endpoint, response.status_code, body
            )
            raise TransportError(body, status_code=response.status_code)
        return body

    @staticmethod
    def _expect_literal(body: str, expected: str) -> None:
        if body != expected:
            raise TransportError(body)
