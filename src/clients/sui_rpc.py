from __future__ import annotations

import logging
from itertools import count
from typing import Any, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util import Retry

from domain.ledger import Digest, ObjectId, ObjectSnapshot, SequenceRef, SuiAddress
from services.ledger_node import LedgerNodeError

logger = logging.getLogger(__name__)


class SuiRpcError(LedgerNodeError):
    pass


class SuiRpcClient:
    """Minimal Sui full node JSON-RPC client covering the calls the wallet ledger needs.

    Every public method issues a single HTTP request; lists of digests or object
    ids are sent as one JSON-RPC batch.
    """

    def __init__(
        self,
        *,
        rpc_url: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
        retry_attempts: int = 3,
        retry_backoff_seconds: float = 0.5,
    ) -> None:
        if not rpc_url:
            msg = "rpc_url must be provided"
            raise ValueError(msg)

        self.rpc_url = rpc_url
        self.timeout = timeout
        self._session = session or requests.Session()
        self._ids = count(1)

        # Read-only JSON-RPC calls are safe to resend.
        retry = Retry(
            total=retry_attempts,
            backoff_factor=retry_backoff_seconds,
            status_forcelist={429, 502, 503, 504},
            allowed_methods={"POST"},
        )
        adapter = HTTPAdapter(max_retries=retry)
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

    def list_references(self, address: SuiAddress) -> list[SequenceRef]:
        # Outgoing and incoming transactions come from separate endpoints; self transfers show up in both.
        sent, received = self._batch(
            [
                ("sui_getTransactionsFromAddress", [address]),
                ("sui_getTransactionsToAddress", [address]),
            ]
        )
        refs: list[SequenceRef] = []
        for pairs in (sent, received):
            for pair in pairs or []:
                if not pair:
                    continue
                try:
                    sequence_number, digest = pair
                    refs.append(SequenceRef(sequence_number=int(sequence_number), digest=Digest(str(digest))))
                except (TypeError, ValueError) as exc:
                    raise SuiRpcError("Sui RPC returned malformed transaction reference", payload=pair) from exc
        return refs

    def fetch_effects_batch(self, digests: Sequence[Digest]) -> list[dict[str, Any]]:
        if not digests:
            return []
        results = self._batch([("sui_getTransaction", [digest]) for digest in digests])
        return [result for result in results if result]

    def fetch_objects_batch(self, object_ids: Sequence[ObjectId]) -> list[ObjectSnapshot]:
        if not object_ids:
            return []
        results = self._batch([("sui_getObject", [object_id]) for object_id in object_ids])
        snapshots: list[ObjectSnapshot] = []
        for object_id, result in zip(object_ids, results):
            snapshot = self._parse_object(result)
            if snapshot is None:
                logger.debug("Object %s unavailable (status=%s)", object_id, (result or {}).get("status"))
                continue
            snapshots.append(snapshot)
        return snapshots

    def _batch(self, calls: list[tuple[str, list[Any]]]) -> list[Any]:
        requests_payload = [
            {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params} for method, params in calls
        ]
        payload = self._post(requests_payload)
        if not isinstance(payload, list):
            payload = [payload]

        by_id: dict[Any, dict[str, Any]] = {}
        for item in payload:
            if not isinstance(item, dict):
                raise SuiRpcError("Sui RPC returned unexpected batch item", payload=item)
            by_id[item.get("id")] = item

        results: list[Any] = []
        for request in requests_payload:
            item = by_id.get(request["id"])
            if item is None:
                raise SuiRpcError(f"Sui RPC response missing result for {request['method']}", payload=payload)
            error = item.get("error")
            if error:
                raise SuiRpcError(
                    error.get("message") or "Sui RPC call failed",
                    code=error.get("code"),
                    payload=item,
                )
            results.append(item.get("result"))
        return results

    def _post(self, body: list[dict[str, Any]]) -> Any:
        logger.debug("POST %s batch=%d first=%s", self.rpc_url, len(body), body[0]["method"] if body else None)
        try:
            response = self._session.post(self.rpc_url, json=body, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            resp = exc.response
            status_code = getattr(resp, "status_code", None)
            raise SuiRpcError("Sui RPC request failed", code=status_code, payload=getattr(resp, "text", None)) from exc
        except requests.RequestException as exc:
            status_code = getattr(getattr(exc, "response", None), "status_code", None)
            raise SuiRpcError("Sui RPC request failed", code=status_code) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise SuiRpcError("Sui RPC returned invalid JSON", payload=response.text) from exc

    @staticmethod
    def _parse_object(result: dict[str, Any] | None) -> ObjectSnapshot | None:
        if not result or result.get("status") != "Exists":
            return None
        details = result.get("details") or {}
        data = details.get("data") or {}
        reference = details.get("reference") or {}
        object_id = reference.get("objectId")
        object_type = data.get("type")
        if not object_id or not object_type:
            return None
        return ObjectSnapshot(
            object_id=ObjectId(str(object_id)),
            type=str(object_type),
            fields=dict(data.get("fields") or {}),
        )


__all__ = ["SuiRpcClient", "SuiRpcError"]
