import pytest
import requests

from psb.client import psb_api
from psb.client.psb_api import PSBApiClient, PSBApiError


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("No JSON object could be decoded")
        return self._body


@pytest.fixture
def calls(monkeypatch):
    """Record outgoing requests and answer from a queue of responses."""
    recorded = []
    responses = []

    def fake_request(**kwargs):
        recorded.append(kwargs)
        result = responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(psb_api.requests, "request", fake_request)
    return recorded, responses


@pytest.fixture
def api():
    return PSBApiClient(base_url="http://psb.example.com/", token="tok")


def test_get_orders_sends_only_given_filters(api, calls):
    recorded, responses = calls
    responses.append(FakeResponse(200, {"success": True, "data": [], "pagination": None}))

    api.get_orders(page=2, cluster="Cimahi")

    sent = recorded[0]
    assert sent["method"] == "GET"
    assert sent["url"] == "http://psb.example.com/psb-orders/"
    assert sent["params"] == {"page": 2, "cluster": "Cimahi"}
    assert sent["headers"]["Authorization"] == "Bearer tok"
    assert sent["timeout"] == 30


def test_get_orders_falls_back_on_server_error(api, calls):
    _, responses = calls
    responses.append(FakeResponse(500, {"success": False, "error": "boom"}))

    assert api.get_orders() == {
        "success": True,
        "data": [],
        "pagination": {"page": 1, "limit": 10, "total": 0, "pages": 0},
    }


def test_get_analytics_falls_back_on_connection_error(api, calls):
    _, responses = calls
    responses.append(requests.ConnectionError("refused"))

    body = api.get_analytics()

    assert body["success"] is True
    assert body["data"]["summary"]["total_orders"] == 0
    assert body["data"]["cluster_stats"] == []


def test_mutation_raises_with_server_message(api, calls):
    _, responses = calls
    responses.append(
        FakeResponse(404, {"success": False, "error": "PSB order not found"})
    )

    with pytest.raises(PSBApiError) as exc_info:
        api.update_order(9, {"status": "Completed"})

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "PSB order not found"


def test_timeout_raises_without_status(api, calls):
    _, responses = calls
    responses.append(requests.Timeout())

    with pytest.raises(PSBApiError) as exc_info:
        api.create_order({"cluster": "Cimahi"})

    assert exc_info.value.status_code is None


def test_non_json_body_raises(api, calls):
    _, responses = calls
    responses.append(FakeResponse(200, None))

    with pytest.raises(PSBApiError):
        api.get_order(1)


def test_login_stores_token(calls):
    recorded, responses = calls
    responses.append(FakeResponse(200, {
        "success": True,
        "data": {
            "auth": {"access_token": "new-token", "refresh_token": "r", "token_type": "bearer"},
            "user": {"id": 1, "email": "admin@psbtracker.com", "name": "Admin", "role": "admin"},
        },
    }))
    client = PSBApiClient(base_url="http://psb.example.com")

    user = client.login("admin@psbtracker.com", "secret123")

    assert user["role"] == "admin"
    assert client.token == "new-token"
    assert "Authorization" not in recorded[0]["headers"]


def test_health_check(api, calls):
    _, responses = calls
    responses.append(FakeResponse(200, {"success": True, "status": "ok"}))
    responses.append(requests.ConnectionError("down"))

    assert api.health_check() == {"success": True, "status": "OK"}
    assert api.health_check() == {"success": False, "status": "ERROR"}
