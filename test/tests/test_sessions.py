from datetime import timedelta

from conftest import add_order, open_table

import session_lifecycle
from extensions import db
from models import Restaurant, TableSession, utcnow


def _backdate(app, session_id, minutes):
    with app.app_context():
        TableSession.query.filter_by(id=session_id).update({"started_at": utcnow() - timedelta(minutes=minutes)})
        db.session.commit()


def test_create_is_idempotent_per_table(client, seeded):
    r1 = client.post("/sessions/create", json={"restaurantSlug": seeded.slug, "tableNumber": "5"})
    r2 = client.post("/sessions/create", json={"restaurantSlug": seeded.slug, "tableNumber": 5})
    assert r1.status_code == 201
    assert r2.status_code == 200
    assert r1.get_json()["data"]["id"] == r2.get_json()["data"]["id"]
    assert r1.get_json()["data"]["sessionToken"] == r2.get_json()["data"]["sessionToken"]

    other = open_table(client, table="6")
    assert other["id"] != r1.get_json()["data"]["id"]


def test_token_is_64_hex_chars(client, seeded):
    token = open_table(client)["sessionToken"]
    assert len(token) == 64
    int(token, 16)


def test_create_unknown_or_inactive_restaurant(app, client, seeded):
    r = client.post("/sessions/create", json={"restaurantSlug": "missing", "tableNumber": "1"})
    assert r.status_code == 404

    with app.app_context():
        db.session.get(Restaurant, seeded.restaurant_id).is_active = False
        db.session.commit()
    r = client.post("/sessions/create", json={"restaurantSlug": seeded.slug, "tableNumber": "1"})
    assert r.status_code == 404


def test_create_requires_table_number(client, seeded):
    r = client.post("/sessions/create", json={"restaurantSlug": seeded.slug})
    assert r.status_code == 400
    assert r.get_json()["details"][0]["field"] == "tableNumber"


def test_fetch_session_with_orders(client, seeded):
    token = open_table(client)["sessionToken"]
    add_order(client, token, [(seeded.burger_id, 1)])
    r = client.get(f"/sessions/{token}")
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["session"]["status"] == "active"
    assert data["session"]["totalAmount"] == "100.00"
    assert len(data["orders"]) == 1
    assert "sessionToken" not in data["session"]


def test_fetch_unknown_token(client, seeded):
    assert client.get("/sessions/" + "0" * 64).status_code == 404


def test_idle_session_expires_on_read_and_rejects_orders(app, client, seeded):
    created = open_table(client)
    _backdate(app, created["id"], 61)

    r = client.get(f"/sessions/{created['sessionToken']}")
    assert r.get_json()["data"]["session"]["status"] == "closed"

    r = add_order(client, created["sessionToken"], [(seeded.burger_id, 1)])
    assert r.status_code == 400


def test_idle_session_replaced_on_create(app, client, seeded):
    created = open_table(client)
    _backdate(app, created["id"], 61)

    r = client.post("/sessions/create", json={"restaurantSlug": seeded.slug, "tableNumber": "5"})
    assert r.status_code == 201
    assert r.get_json()["data"]["id"] != created["id"]
    with app.app_context():
        assert db.session.get(TableSession, created["id"]).status == "closed"


def test_session_younger_than_timeout_stays_active(app, client, seeded):
    created = open_table(client)
    _backdate(app, created["id"], 59)
    r = client.get(f"/sessions/{created['sessionToken']}")
    assert r.get_json()["data"]["session"]["status"] == "active"


def test_close_online_leaves_payment_pending(client, seeded, notifications):
    token = open_table(client)["sessionToken"]
    add_order(client, token, [(seeded.burger_id, 2)])

    r = client.post(f"/sessions/{token}/close", json={"paymentMethod": "online"})
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["status"] == "closed"
    assert data["paymentStatus"] == "pending"
    assert data["totalAmount"] == "200.00"
    assert "session:closed" in notifications.names()

    r = client.post(f"/sessions/{token}/close", json={"paymentMethod": "counter"})
    assert r.status_code == 400
    assert r.get_json()["error"] == "Session is not active"


def test_close_rejects_unknown_method(client, seeded):
    token = open_table(client)["sessionToken"]
    r = client.post(f"/sessions/{token}/close", json={"paymentMethod": "cheque"})
    assert r.status_code == 400


def test_request_counter_payment_notifies_restaurant(client, seeded, notifications):
    token = open_table(client)["sessionToken"]
    add_order(client, token, [(seeded.fries_id, 3)])
    notifications.events.clear()

    r = client.post(f"/sessions/{token}/request-counter-payment")
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["paymentMethod"] == "counter"
    assert data["paymentStatus"] == "pending"
    assert data["status"] == "active"

    assert notifications.events == [
        (f"restaurant-{seeded.restaurant_id}", "payment:counter:requested", notifications.events[0][2])
    ]
    assert notifications.events[0][2]["totalAmount"] == "150.00"


def test_request_counter_payment_on_closed_session(client, seeded):
    token = open_table(client)["sessionToken"]
    client.post(f"/sessions/{token}/close", json={"paymentMethod": "counter"})
    assert client.post(f"/sessions/{token}/request-counter-payment").status_code == 400


def test_owner_lists_sessions(owner_client, client, seeded):
    open_table(client, table="1")
    open_table(client, table="2")
    open_table(client, slug=seeded.rival_slug, table="1")
    r = owner_client.get("/sessions?status=active")
    assert r.status_code == 200
    rows = r.get_json()["data"]
    assert sorted(s["tableNumber"] for s in rows) == ["1", "2"]
    assert all("sessionToken" in s for s in rows)


def test_cleanup_inactive_closes_only_stale_sessions(app, owner_client, client, seeded):
    stale = open_table(client, table="1")
    fresh = open_table(client, table="2")
    rival = open_table(client, slug=seeded.rival_slug, table="1")
    _backdate(app, stale["id"], 90)
    _backdate(app, rival["id"], 90)

    r = owner_client.post("/sessions/cleanup-inactive")
    assert r.status_code == 200
    assert r.get_json()["data"]["closedCount"] == 1

    with app.app_context():
        assert db.session.get(TableSession, stale["id"]).status == "closed"
        assert db.session.get(TableSession, fresh["id"]).status == "active"
        assert db.session.get(TableSession, rival["id"]).status == "active"


def test_cleanup_requires_owner(client, seeded):
    assert client.post("/sessions/cleanup-inactive").status_code == 401


def test_concurrent_open_returns_the_winning_session(app, client, seeded, monkeypatch):
    winner = open_table(client)
    real_lookup = session_lifecycle.active_session_for
    lookups = []

    def stale_first_lookup(restaurant_id, table_number):
        # first read misses the row another request just committed
        lookups.append(table_number)
        if len(lookups) == 1:
            return None
        return real_lookup(restaurant_id, table_number)

    monkeypatch.setattr(session_lifecycle, "active_session_for", stale_first_lookup)
    with app.app_context():
        restaurant = db.session.get(Restaurant, seeded.restaurant_id)
        table_session, created = session_lifecycle.open_session(restaurant, "5")
        assert created is False
        assert table_session.id == winner["id"]
        assert table_session.session_token == winner["sessionToken"]
        active = TableSession.query.filter_by(restaurant_id=seeded.restaurant_id, table_number="5", status="active")
        assert active.count() == 1
    assert len(lookups) == 2
