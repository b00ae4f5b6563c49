def test_create_and_list_users(client, admin_h):
    r = client.post(
        "/users",
        json={"email": "New.Hire@stockmgmt.com", "name": "New Hire", "password": "welcome1"},
        headers=admin_h,
    )
    assert r.status_code == 201
    u = r.json()
    assert u["email"] == "new.hire@stockmgmt.com"
    assert u["role"] == "USER"

    r = client.get("/users", headers=admin_h)
    assert r.status_code == 200
    assert len(r.json()) == 4

    # the new account can log in
    r = client.post("/auth/login", json={"email": "new.hire@stockmgmt.com", "password": "welcome1"})
    assert r.status_code == 200


def test_create_user_duplicate_email(client, admin_h):
    body = {"email": "dup@stockmgmt.com", "name": "Dup", "password": "secret1"}
    assert client.post("/users", json=body, headers=admin_h).status_code == 201

    r = client.post("/users", json=body, headers=admin_h)
    assert r.status_code == 400
    assert r.json() == {
        "detail": {"code": "EMAIL_EXISTS", "message": "User with this email already exists"}
    }


def test_create_user_validation(client, admin_h):
    r = client.post("/users", json={"email": "not-an-email", "name": "X", "password": "123"}, headers=admin_h)
    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_ERROR"


def test_get_user_with_history(client, admin_h, user_h, user):
    gid = client.post("/gadgets", json={"name": "Dock", "quantity": 2}, headers=admin_h).json()["id"]
    client.post("/requests", json={"gadgetId": gid}, headers=user_h)

    r = client.get(f"/users/{user.id}", headers=admin_h)
    assert r.status_code == 200
    data = r.json()
    assert data["email"] == user.email
    assert len(data["requests"]) == 1
    assert data["assignments"] == []

    assert client.get("/users/9999", headers=admin_h).status_code == 404


def test_update_user_role(client, admin_h, user, user_h):
    r = client.put(f"/users/{user.id}", json={"role": "ADMIN", "name": "Promoted"}, headers=admin_h)
    assert r.status_code == 200
    assert r.json()["role"] == "ADMIN"
    assert r.json()["name"] == "Promoted"

    # role is read per request, so the old token now carries admin rights
    assert client.get("/users", headers=user_h).status_code == 200


def test_delete_user(client, admin_h, other, other_h):
    other_id = other.id
    r = client.delete(f"/users/{other_id}", headers=admin_h)
    assert r.status_code == 200
    assert r.json() == {"message": "User deleted successfully"}

    assert client.get("/assignments", headers=other_h).status_code == 401
    assert client.delete(f"/users/{other_id}", headers=admin_h).status_code == 404


def test_delete_user_with_pending_request(client, admin_h, user, user_h):
    gid = client.post("/gadgets", json={"name": "Dock", "quantity": 2}, headers=admin_h).json()["id"]
    client.post("/requests", json={"gadgetId": gid}, headers=user_h)

    r = client.delete(f"/users/{user.id}", headers=admin_h)
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "USER_HAS_ACTIVE_RECORDS"
