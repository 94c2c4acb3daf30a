"""
Client-side state for the PSB pages.

PSBDataStore keeps what the dashboard screens render (orders, analytics,
pagination, loading / error flags) and refetches after every mutation.
User facing notifications go through a notifier callable so a UI can show
them as toasts; by default they are only logged.
"""
from typing import Any, Callable, Optional

from psb.client.psb_api import PSBApiClient, PSBApiError, empty_analytics
from psb.utils.logger import get_logger

logger = get_logger("psb.client.store")

Notifier = Callable[[str, str], None]


def log_notifier(level: str, message: str) -> None:
    if level == "error":
        logger.error(message)
    else:
        logger.info(message)


def _is_server_or_network_error(exc: PSBApiError) -> bool:
    return exc.status_code is None or exc.status_code >= 500


def normalize_orders(response: Any) -> tuple[bool, list]:
    """Accept both the wrapped envelope and a bare list of orders."""
    if isinstance(response, list):
        return True, response

    if isinstance(response, dict):
        if "success" in response:
            return bool(response["success"]), response.get("data") or []
        if isinstance(response.get("data"), list):
            return True, response["data"]
        return True, []

    raise ValueError("Invalid response format")


class PSBDataStore:
    def __init__(self, api: PSBApiClient, notify: Optional[Notifier] = None):
        self.api = api
        self.notify = notify or log_notifier

        self.orders: list[dict] = []
        self.analytics: Optional[dict] = None
        self.pagination: Optional[dict] = None
        self.loading = False
        self.error: Optional[str] = None

        self._last_params: dict = {}

    # -------------------------
    # fetches
    # -------------------------
    def fetch_orders(self, **params) -> dict:
        self._last_params = params
        self.loading = True
        self.error = None

        try:
            response = self.api.get_orders(**params)
            success, orders = normalize_orders(response)
            if not success:
                raise PSBApiError("Failed to fetch orders")

            self.orders = orders
            self.pagination = response.get("pagination") if isinstance(response, dict) else None
            return {"success": True, "data": orders, "pagination": self.pagination}

        except (PSBApiError, ValueError) as exc:
            logger.error("Error fetching PSB orders: %s", exc)
            self.error = str(exc) or "Failed to fetch orders"

            if isinstance(exc, PSBApiError) and _is_server_or_network_error(exc):
                self.notify("error", "PSB backend service is unavailable")

            self.orders = []
            self.pagination = None
            return {"success": False, "data": [], "pagination": None}

        finally:
            self.loading = False

    def fetch_analytics(self) -> dict:
        self.loading = True
        self.error = None

        try:
            response = self.api.get_analytics()
            if not response.get("success"):
                raise PSBApiError("Failed to fetch analytics")

            self.analytics = response["data"]
            return response

        except (PSBApiError, KeyError) as exc:
            logger.error("Error fetching PSB analytics: %s", exc)
            self.error = str(exc) or "Failed to fetch analytics"
            self.notify("error", "Failed to load PSB analytics")

            self.analytics = empty_analytics()
            return {"success": False, "data": None}

        finally:
            self.loading = False

    # -------------------------
    # mutations
    # -------------------------
    def _mutate(self, call, success_message: str, failure_message: str) -> dict:
        try:
            response = call()
            if not response.get("success"):
                raise PSBApiError(failure_message)
        except PSBApiError as exc:
            logger.error("%s: %s", failure_message, exc)
            self.notify("error", exc.message or failure_message)
            raise

        self.notify("success", success_message)
        self.fetch_orders(**self._last_params)
        return response

    def create_order(self, order_data: dict) -> dict:
        return self._mutate(
            lambda: self.api.create_order(order_data),
            "PSB order created",
            "Failed to create PSB order",
        )

    def update_order(self, order_id: int, order_data: dict) -> dict:
        return self._mutate(
            lambda: self.api.update_order(order_id, order_data),
            "PSB order updated",
            "Failed to update PSB order",
        )

    def delete_order(self, order_id: int) -> dict:
        return self._mutate(
            lambda: self.api.delete_order(order_id),
            "PSB order deleted",
            "Failed to delete PSB order",
        )
