"""
video_graph/core/ledger.py
==========================
Source of raw job records.

Any object with awaitable `get_job(job_id)` and `get_jobs(filters)` works as a
ledger. HttpLedgerClient talks to a JSON gateway:

  GET {base}/jobs/{id}          -> one raw job record
  GET {base}/jobs?<filters>     -> list of raw job records

Errors are not handled here; they surface to the query that asked.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol

import httpx

logger = logging.getLogger(__name__)

RawJobRecord = Mapping[str, Any]


class Ledger(Protocol):
    async def get_job(self, job_id: int) -> RawJobRecord: ...

    async def get_jobs(self, filters: Mapping[str, Any]) -> List[RawJobRecord]: ...


class HttpLedgerClient:
    def __init__(self, base_url: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def get_job(self, job_id: int) -> RawJobRecord:
        res = await self._get_client().get(f"{self.base_url}/jobs/{int(job_id)}")
        res.raise_for_status()
        return res.json()

    async def get_jobs(self, filters: Mapping[str, Any]) -> List[RawJobRecord]:
        params: Dict[str, Any] = {k: v for k, v in filters.items() if v is not None}
        res = await self._get_client().get(f"{self.base_url}/jobs", params=params)
        res.raise_for_status()
        payload = res.json()
        logger.info("ledger: fetched %d job(s) filters=%s", len(payload), params)
        return payload

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
