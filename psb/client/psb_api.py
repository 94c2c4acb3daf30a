"""
PSB API Client
Handles all HTTP communication with the PSB dashboard backend.
"""
import copy
import os
from typing import Any, Optional

import requests
from dotenv import load_dotenv

from psb.utils.logger import get_logger

load_dotenv()

logger = get_logger("psb.client")

ORDERS_PATH = "/psb-orders/"
ANALYTICS_PATH = "/psb-orders/analytics"
LOGIN_PATH = "/auth/login"
HEALTH_PATH = "/health"

EMPTY_PAGINATION = {"page": 1, "limit": 10, "total": 0, "pages": 0}

EMPTY_ANALYTICS = {
    "summary": {
        "total_orders": 0,
        "completed_orders": 0,
        "pending_orders": 0,
        "in_progress_orders": 0,
        "cancelled_orders": 0,
        "completion_rate": 0.0,
    },
    "cluster_stats": [],
    "sto_stats": [],
    "monthly_trends": [],
}


def empty_orders_response() -> dict:
    return {"success": True, "data": [], "pagination": dict(EMPTY_PAGINATION)}


def empty_analytics() -> dict:
    return copy.deepcopy(EMPTY_ANALYTICS)


class PSBApiError(Exception):
    """Raised when a mutating or single-record call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class PSBApiClient:
    """
    Client for the PSB order endpoints.

    Read calls used to paint the dashboard (orders list, analytics) never
    raise, they fall back to empty data. Everything else raises PSBApiError.
    """

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None, timeout: int = 30):
        self.base_url = (base_url or os.getenv("PSB_API_URL", "http://localhost:8000")).rstrip("/")
        self.token = token
        self.timeout = timeout
        self.headers = {
            "accept": "application/json",
            "Content-Type": "application/json",
        }

    # -------------------------
    # transport
    # -------------------------
    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _headers(self) -> dict:
        headers = dict(self.headers)
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, *, params=None, json=None) -> dict:
        """
        Send a request and return the decoded envelope.

        Raises:
            PSBApiError: transport failure, non-2xx status or non-JSON body
        """
        url = self._url(path)
        logger.debug("%s %s", method, url)

        try:
            response = requests.request(
                method=method,
                url=url,
                params=params,
                json=json,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise PSBApiError(f"{method} {path} timed out") from exc
        except requests.RequestException as exc:
            raise PSBApiError(f"Connection error during {method} {path}: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            message = None
            if isinstance(body, dict):
                message = body.get("error") or body.get("message")
            raise PSBApiError(
                message or f"{method} {path} failed with status {response.status_code}",
                status_code=response.status_code,
                payload=body,
            )

        if body is None:
            raise PSBApiError(f"{method} {path} returned a non-JSON body", status_code=response.status_code)

        return body

    # -------------------------
    # auth
    # -------------------------
    def login(self, email: str, password: str) -> dict:
        body = self._request("POST", LOGIN_PATH, json={"email": email, "password": password})
        self.token = body["data"]["auth"]["access_token"]
        logger.info("Logged in as %s", email)
        return body["data"]["user"]

    # -------------------------
    # reads with fallback
    # -------------------------
    def get_orders(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        cluster: Optional[str] = None,
        sto: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> dict:
        params = {
            key: value
            for key, value in {
                "page": page,
                "limit": limit,
                "cluster": cluster,
                "sto": sto,
                "status": status,
                "search": search,
            }.items()
            if value is not None
        }

        try:
            return self._request("GET", ORDERS_PATH, params=params)
        except PSBApiError as exc:
            logger.error("Error fetching PSB orders: %s", exc.message)
            return empty_orders_response()

    def get_analytics(self) -> dict:
        try:
            return self._request("GET", ANALYTICS_PATH)
        except PSBApiError as exc:
            logger.error("Error fetching PSB analytics: %s", exc.message)
            return {"success": True, "data": empty_analytics()}

    # -------------------------
    # single record / mutations
    # -------------------------
    def get_order(self, order_id: int) -> dict:
        return self._request("GET", f"{ORDERS_PATH}{order_id}")

    def create_order(self, order_data: dict) -> dict:
        return self._request("POST", ORDERS_PATH, json=order_data)

    def update_order(self, order_id: int, order_data: dict) -> dict:
        return self._request("PUT", f"{ORDERS_PATH}{order_id}", json=order_data)

    def delete_order(self, order_id: int) -> dict:
        return self._request("DELETE", f"{ORDERS_PATH}{order_id}")

    def health_check(self) -> dict:
        try:
            self._request("GET", HEALTH_PATH)
        except PSBApiError as exc:
            logger.warning("PSB health check failed: %s", exc.message)
            return {"success": False, "status": "ERROR"}
        return {"success": True, "status": "OK"}
