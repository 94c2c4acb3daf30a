from conftest import order_payload, order_row
from psb.models.enums.psb_order_status import PSBOrderStatus

ORDERS_URL = "/psb-orders/"


def _create(client, headers, **overrides):
    resp = client.post(ORDERS_URL, json=order_payload(**overrides), headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


# =========================
# CREATE
# =========================
def test_create_assigns_sequential_numbers(client, admin_headers):
    first = _create(client, admin_headers, order_no="SC-1")
    second = _create(client, admin_headers, order_no="SC-2")

    assert first["no"] == 1
    assert second["no"] == 2
    assert first["status"] == "Pending"


def test_create_continues_after_highest_number(client, admin_headers, seed_orders):
    seed_orders([order_row(41)])

    created = _create(client, admin_headers)

    assert created["no"] == 42


def test_create_records_creator(client, admin_headers, admin_id):
    resp = client.post(ORDERS_URL, json=order_payload(), headers=admin_headers)
    body = resp.json()

    assert body["success"] is True
    assert body["message"] == "PSB order created successfully"
    assert body["data"]["created_by"] == {
        "id": admin_id,
        "name": "Admin PSB",
        "email": "admin@psbtracker.com",
    }
    assert body["data"]["updated_by"] is None


def test_create_strips_text_and_blanks_optional_fields(client, admin_headers):
    created = _create(
        client,
        admin_headers,
        customer_name="  Siti Aminah  ",
        technician="   ",
        notes="",
    )

    assert created["customer_name"] == "Siti Aminah"
    assert created["technician"] is None
    assert created["notes"] is None


def test_create_rejects_missing_required_fields(client, admin_headers):
    payload = order_payload(customer_name="   ")
    del payload["sto"]

    resp = client.post(ORDERS_URL, json=payload, headers=admin_headers)
    body = resp.json()

    assert resp.status_code == 422
    assert body["success"] is False
    assert body["error"] == "Invalid request data"
    assert body["error_code"] == "VALIDATION_ERROR"
    failed = {tuple(d["loc"])[-1] for d in body["details"]}
    assert {"sto", "customer_name"} <= failed


def test_create_rejects_unknown_status(client, admin_headers):
    resp = client.post(
        ORDERS_URL, json=order_payload(status="Done"), headers=admin_headers
    )
    assert resp.status_code == 422


# =========================
# LIST
# =========================
def test_list_paginates_newest_first(client, admin_headers):
    for i in range(1, 6):
        _create(client, admin_headers, order_no=f"SC-{i}")

    resp = client.get(ORDERS_URL, params={"page": 2, "limit": 2}, headers=admin_headers)
    body = resp.json()

    assert resp.status_code == 200
    assert [o["no"] for o in body["data"]] == [3, 2]
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 5, "pages": 3}


def test_list_defaults_to_ten_per_page(client, admin_headers, seed_orders):
    seed_orders([order_row(n) for n in range(1, 13)])

    body = client.get(ORDERS_URL, headers=admin_headers).json()

    assert len(body["data"]) == 10
    assert body["pagination"]["pages"] == 2


def test_list_empty(client, admin_headers):
    body = client.get(ORDERS_URL, headers=admin_headers).json()

    assert body["data"] == []
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 0, "pages": 0}


def test_list_filters_cluster_and_sto_case_insensitive(client, admin_headers, seed_orders):
    seed_orders([
        order_row(1, cluster="Bandung Barat", sto="CMI"),
        order_row(2, cluster="Bandung Timur", sto="UBR"),
        order_row(3, cluster="Cimahi", sto="CMI"),
    ])

    by_cluster = client.get(
        ORDERS_URL, params={"cluster": "bandung"}, headers=admin_headers
    ).json()
    assert sorted(o["no"] for o in by_cluster["data"]) == [1, 2]

    by_both = client.get(
        ORDERS_URL, params={"cluster": "BANDUNG", "sto": "cm"}, headers=admin_headers
    ).json()
    assert [o["no"] for o in by_both["data"]] == [1]


def test_list_filters_status_exactly(client, admin_headers, seed_orders):
    seed_orders([
        order_row(1, status=PSBOrderStatus.COMPLETED),
        order_row(2, status=PSBOrderStatus.IN_PROGRESS),
        order_row(3, status=PSBOrderStatus.COMPLETED),
    ])

    body = client.get(
        ORDERS_URL, params={"status": "In Progress"}, headers=admin_headers
    ).json()

    assert [o["no"] for o in body["data"]] == [2]
    assert body["pagination"]["total"] == 1


def test_list_rejects_unknown_status_filter(client, admin_headers):
    resp = client.get(ORDERS_URL, params={"status": "done"}, headers=admin_headers)
    assert resp.status_code == 422


def test_list_search_matches_name_order_no_and_phone(client, admin_headers, seed_orders):
    seed_orders([
        order_row(1, customer_name="Rina Wulandari"),
        order_row(2, order_no="SC-RINA-77"),
        order_row(3, customer_phone="0899111222"),
        order_row(4),
    ])

    by_name = client.get(ORDERS_URL, params={"search": "rina"}, headers=admin_headers).json()
    assert sorted(o["no"] for o in by_name["data"]) == [1, 2]

    by_phone = client.get(ORDERS_URL, params={"search": "9111"}, headers=admin_headers).json()
    assert [o["no"] for o in by_phone["data"]] == [3]


def test_list_search_treats_wildcards_literally(client, admin_headers, seed_orders):
    seed_orders([
        order_row(1, customer_name="PT 100% Net"),
        order_row(2, customer_name="Andi_Saputra"),
        order_row(3, customer_name="Andi Saputra"),
    ])

    percent = client.get(ORDERS_URL, params={"search": "%"}, headers=admin_headers).json()
    assert [o["no"] for o in percent["data"]] == [1]

    underscore = client.get(ORDERS_URL, params={"search": "i_s"}, headers=admin_headers).json()
    assert [o["no"] for o in underscore["data"]] == [2]


def test_list_rejects_oversized_page(client, admin_headers):
    resp = client.get(ORDERS_URL, params={"limit": 101}, headers=admin_headers)
    assert resp.status_code == 422


# =========================
# GET / UPDATE / DELETE
# =========================
def test_get_order(client, admin_headers):
    created = _create(client, admin_headers)

    resp = client.get(f"{ORDERS_URL}{created['id']}", headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["data"]["order_no"] == "SC-1001"


def test_get_missing_order(client, admin_headers):
    resp = client.get(f"{ORDERS_URL}999", headers=admin_headers)
    body = resp.json()

    assert resp.status_code == 404
    assert body == {
        "success": False,
        "error": "PSB order not found",
        "error_code": "PSB_ORDER_NOT_FOUND",
        "details": None,
    }


def test_update_changes_fields_and_sets_updater(client, admin_headers, operator_headers, operator_id):
    created = _create(client, admin_headers)

    resp = client.put(
        f"{ORDERS_URL}{created['id']}",
        json={"status": "Completed", "technician": "Joko"},
        headers=operator_headers,
    )
    data = resp.json()["data"]

    assert resp.status_code == 200
    assert data["status"] == "Completed"
    assert data["technician"] == "Joko"
    assert data["no"] == created["no"]
    assert data["customer_name"] == created["customer_name"]
    assert data["updated_by"]["id"] == operator_id
    assert data["created_by"]["email"] == "admin@psbtracker.com"


def test_update_requires_some_field(client, admin_headers):
    created = _create(client, admin_headers)

    resp = client.put(f"{ORDERS_URL}{created['id']}", json={}, headers=admin_headers)

    assert resp.status_code == 400
    assert resp.json()["error_code"] == "PSB_NO_CHANGES"


def test_update_rejects_null_required_field(client, admin_headers):
    created = _create(client, admin_headers)

    resp = client.put(
        f"{ORDERS_URL}{created['id']}", json={"cluster": None}, headers=admin_headers
    )

    assert resp.status_code == 422


def test_update_missing_order(client, admin_headers):
    resp = client.put(f"{ORDERS_URL}404", json={"notes": "x"}, headers=admin_headers)
    assert resp.status_code == 404


def test_delete_order(client, admin_headers):
    created = _create(client, admin_headers)

    resp = client.delete(f"{ORDERS_URL}{created['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "message": "PSB order deleted successfully",
        "data": None,
    }

    assert client.get(f"{ORDERS_URL}{created['id']}", headers=admin_headers).status_code == 404


def test_delete_missing_order(client, admin_headers):
    resp = client.delete(f"{ORDERS_URL}12345", headers=admin_headers)
    assert resp.status_code == 404


def test_delete_is_admin_only(client, admin_headers, operator_headers):
    created = _create(client, admin_headers)

    resp = client.delete(f"{ORDERS_URL}{created['id']}", headers=operator_headers)

    assert resp.status_code == 403
    assert resp.json()["error_code"] == "PERMISSION_DENIED"


def test_create_taken_sequence_number_conflicts(client, admin_headers, monkeypatch):
    from psb.services.psb import psb_order_service

    _create(client, admin_headers, order_no="SC-1")

    async def stale_next_order_no(db):
        return 1

    monkeypatch.setattr(psb_order_service, "next_order_no", stale_next_order_no)
    resp = client.post(ORDERS_URL, json=order_payload(order_no="SC-2"), headers=admin_headers)
    body = resp.json()

    assert resp.status_code == 409
    assert body["error_code"] == "PSB_ORDER_NO_CONFLICT"

    monkeypatch.undo()
    retry = _create(client, admin_headers, order_no="SC-2")
    assert retry["no"] == 2


def test_order_no_conflict_detection():
    from sqlalchemy.exc import IntegrityError
    from psb.services.psb.psb_order_service import is_order_no_conflict

    def integrity(message):
        return IntegrityError("INSERT INTO psb_orders ...", {}, Exception(message))

    assert is_order_no_conflict(integrity("UNIQUE constraint failed: psb_orders.no"))
    assert is_order_no_conflict(integrity(
        'duplicate key value violates unique constraint "ix_psb_orders_no"'
    ))
    assert not is_order_no_conflict(integrity("NOT NULL constraint failed: psb_orders.notes"))
    assert not is_order_no_conflict(integrity("FOREIGN KEY constraint failed"))
