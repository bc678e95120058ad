from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from core.config import ApiConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiResult:
    ok: bool
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, data: Any = None) -> "ApiResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: str) -> "ApiResult":
        return cls(ok=False, error=error)


@dataclass(frozen=True)
class Branch:
    sales_office: str
    sales_branch: str


class RfcApiClient:
    """Thin wrapper over the forecast REST API.

    Every method resolves to an `ApiResult`; transport failures, non-2xx
    statuses and unexpected bodies are logged and returned as errors.
    """

    def __init__(self, config: ApiConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.auth_token:
            headers["Authorization"] = f"Bearer {self.config.auth_token}"
        return headers

    def _request(self, method: str, path: str, *, params: Optional[dict] = None, payload: Any = None) -> Any:
        response = self.session.request(
            method,
            self.config.url(path),
            params=params,
            json=payload,
            headers=self._headers(),
            timeout=self.config.timeout,
        )
        if not response.ok:
            raise requests.HTTPError(f"HTTP error! status: {response.status_code}", response=response)
        if not response.content:
            return None
        body = response.json()
        # Some endpoints return the JSON document encoded as a string.
        if isinstance(body, str):
            body = json.loads(body)
        return body

    def fetch(self, branch: str, month: str, year: str) -> ApiResult:
        params = {"branch": branch, "month": month, "year": year}
        try:
            body = self._request("GET", self.config.resource, params=params)
        except (requests.RequestException, ValueError) as exc:
            logger.exception("fetch %s failed", self.config.resource)
            return ApiResult.failure(f"Failed to fetch RFC data: {exc}")
        if not isinstance(body, dict) or not isinstance(body.get("data"), list):
            logger.warning("invalid data structure received from %s: %r", self.config.resource, type(body).__name__)
            return ApiResult.failure("Invalid data structure received.")
        rows = [row for row in body["data"] if isinstance(row, dict)]
        return ApiResult.success(rows)

    def save(self, branch: str, month: str, year: str, records: List[Dict[str, Any]]) -> ApiResult:
        params = {"branch": branch, "month": month, "year": year}
        try:
            body = self._request("POST", f"{self.config.resource}-save", params=params, payload=records)
        except (requests.RequestException, ValueError) as exc:
            logger.exception("save %s failed", self.config.resource)
            return ApiResult.failure(f"Failed to save RFC data: {exc}")
        return ApiResult.success(body)

    def post(self, branch: str, month: str, year: str, rows: List[Dict[str, Any]]) -> ApiResult:
        params = {"branch": branch, "month": month, "year": year}
        try:
            body = self._request("POST", self.config.resource, params=params, payload={"data": rows})
        except (requests.RequestException, ValueError) as exc:
            logger.exception("post %s failed", self.config.resource)
            return ApiResult.failure(f"Failed to post RFC data: {exc}")
        return ApiResult.success(body)

    def save_product_rfc(self, product: str, rfc: float, month: str, year: str) -> ApiResult:
        params = {"month": month, "year": year}
        payload = [{"product": product, "rfc": rfc}]
        try:
            body = self._request("POST", f"{self.config.resource}-product-rfc", params=params, payload=payload)
        except (requests.RequestException, ValueError) as exc:
            logger.exception("product rfc autosave failed")
            return ApiResult.failure(f"Failed to auto-save: {exc}")
        return ApiResult.success(body)

    def branches(self) -> ApiResult:
        try:
            body = self._request("GET", "branches")
        except (requests.RequestException, ValueError) as exc:
            logger.exception("fetch branches failed")
            return ApiResult.failure(f"Failed to fetch branches: {exc}")
        if not isinstance(body, dict) or not isinstance(body.get("data"), list):
            return ApiResult.failure("Invalid branch list received.")
        out: List[Branch] = []
        for item in body["data"]:
            if not isinstance(item, dict) or not item.get("Sales Office"):
                continue
            office = str(item["Sales Office"])
            out.append(Branch(sales_office=office, sales_branch=str(item.get("Sales Branch") or office)))
        return ApiResult.success(out)

    def suggest(self, field: str, query: str) -> ApiResult:
        if not query.strip():
            return ApiResult.success([])
        try:
            body = self._request(
                "GET",
                f"{self.config.suggest_resource}/distinct/{field}",
                params={"filt": query},
            )
        except (requests.RequestException, ValueError) as exc:
            logger.exception("suggestions for %s failed", field)
            return ApiResult.failure(f"Failed to fetch suggestions: {exc}")
        return ApiResult.success(_match_suggestions(body, field))


def _match_suggestions(body: Any, field: str) -> List[str]:
    # The response is keyed by a field name that only loosely matches the request.
    if not isinstance(body, dict):
        return []
    field_key = " ".join(field.lower().split())
    for key, values in body.items():
        k = str(key).lower()
        if k == field_key or k in field_key or field_key in k:
            if isinstance(values, list):
                return [str(v) for v in values]
    return []
