def _gadget(client, h, quantity=5):
    r = client.post("/gadgets", json={"name": "USB-C Hub", "quantity": quantity, "category": "Accessory"}, headers=h)
    return r.json()["id"]


def test_submit_and_approve(client, admin_h, user_h, user):
    gid = _gadget(client, admin_h)

    r = client.post("/requests", json={"gadgetId": gid, "quantity": 2, "reason": "workshop"}, headers=user_h)
    assert r.status_code == 201
    req = r.json()
    assert req["status"] == "PENDING"
    assert req["quantity"] == 2
    assert req["user"]["id"] == user.id

    r = client.put(f"/requests/{req['id']}/approve", headers=admin_h)
    assert r.status_code == 200
    data = r.json()
    assert data["request"]["status"] == "APPROVED"
    assert data["assignment"]["user_id"] == user.id
    assert data["assignment"]["quantity"] == 2
    assert data["assignment"]["notes"] == "Auto-assigned from request: workshop"

    g = client.get(f"/gadgets/{gid}", headers=admin_h).json()
    assert g["quantity"] == 3
    assert g["status"] == "IN_USE"

    r = client.put(f"/requests/{req['id']}/approve", headers=admin_h)
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "ALREADY_PROCESSED"


def test_default_quantity_is_one(client, admin_h, user_h):
    gid = _gadget(client, admin_h)
    r = client.post("/requests", json={"gadgetId": gid}, headers=user_h)
    assert r.json()["quantity"] == 1


def test_submit_validation_and_missing_gadget(client, admin_h, user_h):
    gid = _gadget(client, admin_h)
    assert client.post("/requests", json={"gadgetId": gid, "quantity": 0}, headers=user_h).status_code == 400
    assert client.post("/requests", json={"gadgetId": 4040}, headers=user_h).status_code == 404


def test_approve_insufficient_stock(client, admin_h, user_h):
    gid = _gadget(client, admin_h, quantity=1)
    req = client.post("/requests", json={"gadgetId": gid, "quantity": 3}, headers=user_h).json()

    r = client.put(f"/requests/{req['id']}/approve", headers=admin_h)
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "INSUFFICIENT_STOCK"

    still = client.get("/requests", headers=admin_h).json()[0]
    assert still["status"] == "PENDING"


def test_reject(client, admin_h, user_h):
    gid = _gadget(client, admin_h)
    req = client.post("/requests", json={"gadgetId": gid}, headers=user_h).json()

    r = client.put(f"/requests/{req['id']}/reject", headers=admin_h)
    assert r.status_code == 200
    assert r.json()["status"] == "REJECTED"
    assert client.get(f"/gadgets/{gid}", headers=admin_h).json()["quantity"] == 5

    assert client.put("/requests/999/reject", headers=admin_h).status_code == 404


def test_approve_requires_admin(client, admin_h, user_h):
    gid = _gadget(client, admin_h)
    req = client.post("/requests", json={"gadgetId": gid}, headers=user_h).json()
    assert client.put(f"/requests/{req['id']}/approve", headers=user_h).status_code == 403
    assert client.put(f"/requests/{req['id']}/reject", headers=user_h).status_code == 403
    assert client.get(f"/gadgets/{gid}", headers=admin_h).json()["quantity"] == 5


def test_list_is_scoped_to_caller(client, admin_h, user_h, other_h):
    gid = _gadget(client, admin_h)
    client.post("/requests", json={"gadgetId": gid}, headers=user_h)
    client.post("/requests", json={"gadgetId": gid}, headers=other_h)

    assert len(client.get("/requests", headers=user_h).json()) == 1
    assert len(client.get("/requests", headers=admin_h).json()) == 2
    assert len(client.get("/requests?status=PENDING", headers=admin_h).json()) == 2


def test_delete_request_permissions(client, admin_h, user_h, other_h):
    gid = _gadget(client, admin_h)
    req = client.post("/requests", json={"gadgetId": gid}, headers=user_h).json()

    r = client.delete(f"/requests/{req['id']}", headers=other_h)
    assert r.status_code == 403

    client.put(f"/requests/{req['id']}/reject", headers=admin_h)
    r = client.delete(f"/requests/{req['id']}", headers=user_h)
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "ONLY_PENDING_DELETABLE"

    r = client.delete(f"/requests/{req['id']}", headers=admin_h)
    assert r.status_code == 200
    assert r.json() == {"message": "Request deleted successfully"}
    assert client.delete(f"/requests/{req['id']}", headers=admin_h).status_code == 404


def test_owner_deletes_pending_request(client, admin_h, user_h):
    gid = _gadget(client, admin_h)
    req = client.post("/requests", json={"gadgetId": gid}, headers=user_h).json()
    assert client.delete(f"/requests/{req['id']}", headers=user_h).status_code == 200
    assert client.get("/requests", headers=user_h).json() == []
