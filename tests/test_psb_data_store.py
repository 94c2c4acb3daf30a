import pytest

from psb.client.psb_api import PSBApiError
from psb.client.psb_data import PSBDataStore, normalize_orders


class StubApi:
    def __init__(self):
        self.orders_response = {"success": True, "data": [], "pagination": None}
        self.analytics_response = {"success": True, "data": {}}
        self.mutation_error = None
        self.order_calls = []

    def get_orders(self, **params):
        self.order_calls.append(params)
        if isinstance(self.orders_response, Exception):
            raise self.orders_response
        return self.orders_response

    def get_analytics(self):
        return self.analytics_response

    def _mutation(self):
        if self.mutation_error:
            raise self.mutation_error
        return {"success": True, "data": {"id": 1}}

    def create_order(self, order_data):
        return self._mutation()

    def update_order(self, order_id, order_data):
        return self._mutation()

    def delete_order(self, order_id):
        return self._mutation()


@pytest.fixture
def api():
    return StubApi()


@pytest.fixture
def notes():
    return []


@pytest.fixture
def store(api, notes):
    return PSBDataStore(api, notify=lambda level, message: notes.append((level, message)))


def test_normalize_orders_shapes():
    assert normalize_orders([{"id": 1}]) == (True, [{"id": 1}])
    assert normalize_orders({"success": False, "data": None}) == (False, [])
    assert normalize_orders({"data": [{"id": 2}]}) == (True, [{"id": 2}])
    assert normalize_orders({"items": []}) == (True, [])

    with pytest.raises(ValueError):
        normalize_orders("nope")


def test_fetch_orders_stores_page(store, api):
    pagination = {"page": 1, "limit": 10, "total": 1, "pages": 1}
    api.orders_response = {"success": True, "data": [{"id": 1}], "pagination": pagination}

    result = store.fetch_orders(page=1, cluster="Cimahi")

    assert result == {"success": True, "data": [{"id": 1}], "pagination": pagination}
    assert store.orders == [{"id": 1}]
    assert store.pagination == pagination
    assert store.loading is False
    assert store.error is None


def test_fetch_orders_accepts_bare_list(store, api):
    api.orders_response = [{"id": 3}]

    assert store.fetch_orders()["data"] == [{"id": 3}]
    assert store.pagination is None


def test_fetch_orders_network_failure_notifies(store, api, notes):
    api.orders_response = PSBApiError("Connection error")

    result = store.fetch_orders()

    assert result == {"success": False, "data": [], "pagination": None}
    assert store.error == "Connection error"
    assert notes == [("error", "PSB backend service is unavailable")]


def test_fetch_orders_client_error_does_not_notify(store, api, notes):
    api.orders_response = PSBApiError("Permission denied", status_code=403)

    assert store.fetch_orders()["success"] is False
    assert notes == []


def test_fetch_analytics_failure_falls_back(store, api, notes):
    api.analytics_response = {"success": False}

    result = store.fetch_analytics()

    assert result == {"success": False, "data": None}
    assert store.analytics["summary"]["total_orders"] == 0
    assert notes == [("error", "Failed to load PSB analytics")]


def test_mutation_refetches_with_last_params(store, api, notes):
    store.fetch_orders(page=3, status="Pending")

    store.update_order(1, {"status": "Completed"})

    assert notes == [("success", "PSB order updated")]
    assert api.order_calls == [
        {"page": 3, "status": "Pending"},
        {"page": 3, "status": "Pending"},
    ]


def test_mutation_failure_notifies_and_raises(store, api, notes):
    api.mutation_error = PSBApiError("PSB order not found", status_code=404)

    with pytest.raises(PSBApiError):
        store.delete_order(99)

    assert notes == [("error", "PSB order not found")]
    assert api.order_calls == []
