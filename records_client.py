"""
records_client.py — HTTP client for the remote record store.

Mirrors the calls of store.LocalRecordStore:
- fetch_records(table, {fields, where})      POST   {base}/tables/{table}/query
- get_record_by_id(table, id, {fields})      GET    {base}/tables/{table}/records/{id}
- create_record(table, {records})            POST   {base}/tables/{table}/records
- update_record(table, {records})            PATCH  {base}/tables/{table}/records
- delete_record(table, {RecordIds})          DELETE {base}/tables/{table}/records

Responses are returned as the store's JSON envelope ({success, data|results,
message}). Request errors (network, bad URL, broken body), missing
configuration and non-JSON bodies raise CollaboratorUnavailable. Nothing is
retried here.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from errors import CollaboratorUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 20


def _safe_json(resp: requests.Response) -> Optional[Dict[str, Any]]:
    """
    Return JSON dict if response body is JSON, else None.
    Handles HTML gateway/error pages safely.
    """
    try:
        data = resp.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else {"data": data}


class RecordsClient:
    """Remote record store reachable over HTTP."""

    def __init__(self, base_url: str, api_key: str | None = None,
                 timeout: int = DEFAULT_TIMEOUT, session: requests.Session | None = None):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if api_key:
            self.session.headers["Authorization"] = f"Bearer {api_key}"

    def _url(self, table: str, *parts) -> str:
        if not self.base_url:
            raise CollaboratorUnavailable("FARMLOG_API_BASE_URL is not set")
        return "/".join([self.base_url, "tables", table, *[str(p) for p in parts]])

    def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.Timeout, requests.ConnectionError) as e:
            raise CollaboratorUnavailable(f"Network error on {url}: {e}") from e
        except requests.RequestException as e:
            raise CollaboratorUnavailable(f"Request to {url} failed: {e}") from e

        data = _safe_json(resp)
        if data is None:
            snippet = (resp.text or "").strip().replace("\n", " ")[:240]
            raise CollaboratorUnavailable(
                f"Record store returned non-JSON response ({resp.status_code}) on {url}: {snippet}"
            )

        if resp.status_code >= 400:
            msg = data.get("message") or data.get("detail") or data.get("error") or "Request failed"
            logger.warning("%s %s -> HTTP %s: %s", method, url, resp.status_code, msg)
            data.setdefault("success", False)
            data.setdefault("message", f"{msg} (HTTP {resp.status_code})")
        return data

    # ------------------------------------------------------------
    # Record store calls
    # ------------------------------------------------------------
    def fetch_records(self, table: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request("POST", self._url(table, "query"), json=params or {})

    def get_record_by_id(self, table: str, record_id, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        query = {}
        if params and params.get("fields"):
            query["fields"] = ",".join(params["fields"])
        return self._request("GET", self._url(table, "records", record_id), params=query)

    def create_record(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", self._url(table, "records"), json=payload)

    def update_record(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", self._url(table, "records"), json=payload)

    def delete_record(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("DELETE", self._url(table, "records"), json=payload)
