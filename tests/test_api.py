import re
from datetime import date, timedelta

from app.core.security import create_refresh_token
from app.models.audit_log import AuditLog


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def booking_body(field_id, day, start="10:00", end="11:00"):
    return {"field_id": field_id, "date": day.isoformat(), "start_time": start, "end_time": end}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_register_login_refresh_me(client):
    r = client.post("/api/v1/auth/register", json={"name": "Rina", "email": "Rina@Example.com", "password": "password123"})
    assert r.status_code == 201
    assert r.json()["email"] == "rina@example.com"
    assert r.json()["role"] == "customer"

    dup = client.post("/api/v1/auth/register", json={"name": "Rina", "email": "rina@example.com", "password": "password123"})
    assert dup.status_code == 409

    assert client.post("/api/v1/auth/login", json={"email": "rina@example.com", "password": "wrong-pass"}).status_code == 401

    tokens = client.post("/api/v1/auth/login", json={"email": "rina@example.com", "password": "password123"}).json()
    assert tokens["token_type"] == "bearer"

    me = client.get("/api/v1/auth/me", headers=auth(tokens["access_token"]))
    assert me.status_code == 200
    assert me.json()["name"] == "Rina"
    assert client.get("/api/v1/profile", headers=auth(tokens["access_token"])).json()["id"] == me.json()["id"]

    refreshed = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200
    assert client.get("/api/v1/auth/me", headers=auth(refreshed.json()["access_token"])).status_code == 200


def test_refresh_token_is_not_an_access_token(client, make_user):
    user_id, _, access = make_user()
    assert client.get("/api/v1/auth/me", headers=auth(create_refresh_token(user_id))).status_code == 401
    assert client.post("/api/v1/auth/refresh", json={"refresh_token": access}).status_code == 401
    assert client.get("/api/v1/auth/me").status_code == 401
    assert client.get("/api/v1/auth/me", headers=auth("garbage")).status_code == 401


def test_change_password(client, make_user):
    _, email, token = make_user(password="password123")
    bad = client.post("/api/v1/auth/change-password", headers=auth(token),
                      json={"old_password": "nope-nope", "new_password": "newpassword1"})
    assert bad.status_code == 400
    ok = client.post("/api/v1/auth/change-password", headers=auth(token),
                     json={"old_password": "password123", "new_password": "newpassword1"})
    assert ok.status_code == 200
    assert client.post("/api/v1/auth/login", json={"email": email, "password": "newpassword1"}).status_code == 200


def test_create_booking_status_codes(client, make_user, make_field, tomorrow):
    _, _, token = make_user()
    field_id = make_field()

    r = client.post("/api/v1/bookings", headers=auth(token), json=booking_body(field_id, tomorrow, "14:00", "16:30"))
    assert r.status_code == 201
    body = r.json()
    assert re.match(r"^BK-\d{8}-[A-Z0-9]{6}$", body["booking_id"])
    assert body["status"] == "pending_payment"
    assert body["total_price"] == 250.0
    assert body["payment_due"]

    clash = client.post("/api/v1/bookings", headers=auth(token), json=booking_body(field_id, tomorrow, "15:00", "17:00"))
    assert clash.status_code == 409

    touching = client.post("/api/v1/bookings", headers=auth(token), json=booking_body(field_id, tomorrow, "16:30", "17:30"))
    assert touching.status_code == 201

    missing = client.post("/api/v1/bookings", headers=auth(token), json=booking_body(9999, tomorrow))
    assert missing.status_code == 404

    inverted = client.post("/api/v1/bookings", headers=auth(token), json=booking_body(field_id, tomorrow, "11:00", "10:00"))
    assert inverted.status_code == 400

    past = client.post("/api/v1/bookings", headers=auth(token),
                       json=booking_body(field_id, date.today() - timedelta(days=1)))
    assert past.status_code == 400


def test_booking_requires_login(client, make_field, tomorrow):
    field_id = make_field()
    assert client.post("/api/v1/bookings", json=booking_body(field_id, tomorrow)).status_code == 401


def test_my_bookings_visibility_and_cancel(client, make_user, make_field, tomorrow):
    _, _, alice = make_user()
    _, _, bob = make_user()
    field_id = make_field()

    booking_id = client.post("/api/v1/bookings", headers=auth(alice), json=booking_body(field_id, tomorrow)).json()["booking_id"]

    mine = client.get("/api/v1/bookings/me", headers=auth(alice)).json()
    assert [b["id"] for b in mine["data"]] == [booking_id]
    assert mine["pagination"] == {"total_results": 1, "current_page": 1, "total_pages": 1, "limit": 10}
    assert client.get("/api/v1/bookings/me", headers=auth(bob)).json()["data"] == []

    assert client.get(f"/api/v1/bookings/{booking_id}", headers=auth(alice)).status_code == 200
    assert client.get(f"/api/v1/bookings/{booking_id}", headers=auth(bob)).status_code == 404
    assert client.post(f"/api/v1/bookings/{booking_id}/cancel", headers=auth(bob)).status_code == 404

    r = client.post(f"/api/v1/bookings/{booking_id}/cancel", headers=auth(alice), json={"reason": "injury"})
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"
    assert r.json()["cancellation_reason"] == "injury"

    again = client.post(f"/api/v1/bookings/{booking_id}/cancel", headers=auth(alice))
    assert again.status_code == 409

    rebook = client.post("/api/v1/bookings", headers=auth(bob), json=booking_body(field_id, tomorrow))
    assert rebook.status_code == 201


def test_admin_routes_require_admin(client, make_user):
    _, _, customer = make_user()
    assert client.get("/api/v1/admin/bookings").status_code == 401
    assert client.get("/api/v1/admin/bookings", headers=auth(customer)).status_code == 403
    assert client.get("/api/v1/admin/users", headers=auth(customer)).status_code == 403


def test_admin_booking_update_and_cancel(client, make_user, make_field, tomorrow, session_factory):
    _, _, customer = make_user()
    _, admin_email, admin = make_user(role="admin")
    field_id = make_field()
    booking_id = client.post("/api/v1/bookings", headers=auth(customer), json=booking_body(field_id, tomorrow)).json()["booking_id"]

    r = client.put(f"/api/v1/admin/bookings/{booking_id}", headers=auth(admin),
                   json={"status": "confirmed", "payment_status": "paid"})
    assert r.status_code == 200
    assert (r.json()["status"], r.json()["payment_status"]) == ("confirmed", "paid")

    bad = client.put(f"/api/v1/admin/bookings/{booking_id}", headers=auth(admin), json={"status": "pending_payment"})
    assert bad.status_code == 409

    unknown_column = client.put(f"/api/v1/admin/bookings/{booking_id}", headers=auth(admin), json={"total_price": 1})
    assert unknown_column.status_code == 400

    missing = client.put("/api/v1/admin/bookings/BK-20990101-ZZZZZZ", headers=auth(admin), json={"notes": "x"})
    assert missing.status_code == 404

    cancelled = client.put(f"/api/v1/admin/bookings/{booking_id}/cancel", headers=auth(admin))
    assert cancelled.status_code == 200
    assert cancelled.json()["cancellation_reason"] == "Admin cancellation"
    assert cancelled.json()["cancelled_by"] == admin_email

    stats = client.get("/api/v1/admin/bookings/statistics", headers=auth(admin)).json()
    assert stats["total_bookings"] == 1
    assert stats["cancelled_bookings"] == 1

    with session_factory() as s:
        actions = sorted(a.action for a in s.query(AuditLog).all())
    assert actions == ["booking.cancel", "booking.update"]


def test_admin_reschedule_conflict(client, make_user, make_field, tomorrow):
    _, _, customer = make_user()
    _, _, admin = make_user(role="admin")
    field_id = make_field()
    client.post("/api/v1/bookings", headers=auth(customer), json=booking_body(field_id, tomorrow, "09:00", "10:00"))
    second = client.post("/api/v1/bookings", headers=auth(customer), json=booking_body(field_id, tomorrow, "10:00", "11:00")).json()["booking_id"]

    r = client.put(f"/api/v1/admin/bookings/{second}", headers=auth(admin), json={"start_time": "09:30"})
    assert r.status_code == 409


def test_admin_field_lifecycle(client, make_user, tomorrow):
    _, _, customer = make_user()
    _, _, admin = make_user(role="admin")

    created = client.post("/api/v1/admin/fields", headers=auth(admin), json={
        "name": "Hoops Hall",
        "location_summary": "Candisari, Semarang",
        "sport_type": "Basketball",
        "capacity": 10,
        "price_per_hour": 120000,
        "facilities": ["Indoor"],
    })
    assert created.status_code == 201
    field_id = created.json()["id"]

    assert client.post("/api/v1/admin/fields", headers=auth(admin), json={
        "name": "Free Court", "location_summary": "x", "sport_type": "Futsal", "capacity": 10, "price_per_hour": 0,
    }).status_code == 400

    updated = client.put(f"/api/v1/admin/fields/{field_id}", headers=auth(admin), json={"price_per_hour": 150000})
    assert updated.json()["price_per_hour"] == 150000

    assert client.delete(f"/api/v1/admin/fields/{field_id}", headers=auth(admin)).status_code == 200
    assert client.get(f"/api/v1/fields/{field_id}").status_code == 404
    assert client.post("/api/v1/bookings", headers=auth(customer), json=booking_body(field_id, tomorrow)).status_code == 404

    listed = client.get("/api/v1/admin/fields", headers=auth(admin)).json()
    assert [f["id"] for f in listed["data"]] == [field_id]


def test_admin_users(client, make_user):
    customer_id, _, _ = make_user()
    admin_id, _, admin = make_user(role="admin")

    users = client.get("/api/v1/admin/users", headers=auth(admin)).json()
    assert users["pagination"]["total_results"] == 2

    stats = client.get("/api/v1/admin/users/statistics", headers=auth(admin)).json()
    assert (stats["customers"], stats["admins"]) == (1, 1)

    assert client.put(f"/api/v1/admin/users/{admin_id}/role", headers=auth(admin), json={"role": "customer"}).status_code == 400
    promoted = client.put(f"/api/v1/admin/users/{customer_id}/role", headers=auth(admin), json={"role": "admin"})
    assert promoted.json()["role"] == "admin"

    assert client.delete(f"/api/v1/admin/users/{admin_id}", headers=auth(admin)).status_code == 400
    assert client.delete(f"/api/v1/admin/users/{customer_id}", headers=auth(admin)).status_code == 200
    assert client.delete(f"/api/v1/admin/users/{customer_id}", headers=auth(admin)).status_code == 404


def test_field_directory(client, make_user, make_field, tomorrow):
    futsal = make_field()
    make_field(name="Shuttle Arena", sport_type="Badminton", location_summary="Banyumanik, Semarang",
               price_per_hour=60, facilities=["Air Conditioning"], rating=4.9)
    make_field(name="Closed Court", is_active=False)
    _, _, token = make_user()
    client.post("/api/v1/bookings", headers=auth(token), json=booking_body(futsal, tomorrow, "18:00", "19:00"))

    everything = client.get("/api/v1/fields").json()
    assert everything["pagination"]["total_results"] == 2

    by_sport = client.get("/api/v1/fields", params={"sport_type": "futsal"}).json()
    assert [f["id"] for f in by_sport["data"]] == [futsal]

    by_facility = client.get("/api/v1/fields", params={"facility": "air conditioning"}).json()
    assert [f["name"] for f in by_facility["data"]] == ["Shuttle Arena"]

    cheap = client.get("/api/v1/fields", params={"max_price": 80}).json()
    assert [f["name"] for f in cheap["data"]] == ["Shuttle Arena"]

    detail = client.get(f"/api/v1/fields/{futsal}", params={"date": tomorrow.isoformat()}).json()
    assert detail["booked_slots"] == [{"start_time": "18:00:00", "end_time": "19:00:00"}]
    assert client.get(f"/api/v1/fields/{futsal}").json()["booked_slots"] is None

    filters = client.get("/api/v1/fields/filters").json()
    assert filters["sport_types"] == ["Badminton", "Futsal"]
    assert filters["price_range"] == {"min": 60.0, "max": 100.0}

    featured = client.get("/api/v1/featured-fields").json()
    assert featured[0]["name"] == "Shuttle Arena"

    suggestions = client.get("/api/v1/locations/autocomplete", params={"q": "banyu"}).json()
    assert suggestions == {"data": ["Banyumanik, Semarang"]}
    assert client.get("/api/v1/locations/autocomplete").json() == {"data": []}
