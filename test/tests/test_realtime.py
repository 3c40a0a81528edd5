import logging

import pytest
from conftest import add_order, login, open_table

import notifier
from extensions import socketio
from notifier import PollingNotifier, SocketIONotifier, init_notifier


def _received(sio_client, name):
    return [msg["args"][0] for msg in sio_client.get_received() if msg["name"] == name]


def test_push_mode_is_default(app):
    assert isinstance(app.extensions["notifier"], SocketIONotifier)


def test_unknown_realtime_mode_refused(app):
    app.config["REALTIME_MODE"] = "carrier-pigeon"
    with pytest.raises(RuntimeError):
        init_notifier(app)


def test_push_failure_does_not_fail_request(app, client, seeded, monkeypatch, caplog):
    def broken_emit(*args, **kwargs):
        raise ConnectionError("relay down")

    monkeypatch.setattr(socketio, "emit", broken_emit)
    token = open_table(client)["sessionToken"]
    with caplog.at_level(logging.WARNING, logger="menumate"):
        r = add_order(client, token, [(seeded.burger_id, 1)])
    assert r.status_code == 201
    assert any("Failed to publish order:created" in rec.getMessage() for rec in caplog.records)
    assert client.get(f"/sessions/{token}").get_json()["data"]["session"]["totalAmount"] == "100.00"


def test_poll_mode_publishes_nothing(app, client, seeded, monkeypatch):
    app.config["REALTIME_MODE"] = "poll"
    assert isinstance(init_notifier(app), PollingNotifier)

    def unexpected_emit(*args, **kwargs):
        raise AssertionError("poll mode must not push")

    monkeypatch.setattr(socketio, "emit", unexpected_emit)
    token = open_table(client)["sessionToken"]
    assert add_order(client, token, [(seeded.burger_id, 1)]).status_code == 201


def test_poll_orders_snapshot(owner_client, client, seeded):
    token = open_table(client)["sessionToken"]
    add_order(client, token, [(seeded.burger_id, 1)])
    add_order(client, token, [(seeded.fries_id, 1)])

    r = owner_client.get(f"/realtime/orders?restaurantId={seeded.restaurant_id}")
    assert r.status_code == 200
    js = r.get_json()
    assert js["success"] is True
    assert js["pollInterval"] == 2
    assert js["timestamp"]
    assert [o["totalAmount"] for o in js["data"]] == ["50.00", "100.00"]


def test_poll_sessions_snapshot(owner_client, client, seeded):
    active = open_table(client, table="1")
    waiting = open_table(client, table="2")
    done = open_table(client, table="3")
    add_order(client, waiting["sessionToken"], [(seeded.burger_id, 1)])
    client.post(f"/sessions/{waiting['sessionToken']}/close", json={"paymentMethod": "counter"})
    client.post(f"/sessions/{done['sessionToken']}/close", json={"paymentMethod": "online"})

    js = owner_client.get(f"/realtime/sessions?restaurantId={seeded.restaurant_id}").get_json()
    ids = {s["id"]: s for s in js["data"]}
    assert set(ids) == {active["id"], waiting["id"]}
    assert ids[waiting["id"]]["ordersCount"] == 1


def test_poll_requires_restaurant_id_and_ownership(owner_client, client, seeded):
    assert owner_client.get("/realtime/orders").status_code == 400
    r = owner_client.get(f"/realtime/sessions?restaurantId={seeded.rival_restaurant_id}")
    assert r.status_code == 403
    assert client.get(f"/realtime/orders?restaurantId={seeded.restaurant_id}").status_code == 401


# ---------- Socket.IO rooms ----------
def test_owner_joins_restaurant_room_and_receives_events(app, owner_client, client, seeded):
    sio = socketio.test_client(app, flask_test_client=owner_client)
    sio.emit("join", {"channel": f"restaurant-{seeded.restaurant_id}"})
    assert _received(sio, "join:ok") == [{"channel": f"restaurant-{seeded.restaurant_id}"}]

    token = open_table(client)["sessionToken"]
    add_order(client, token, [(seeded.burger_id, 2)])

    received = sio.get_received()
    names = [msg["name"] for msg in received]
    assert names == ["order:created", "session:updated"]
    assert received[0]["args"][0]["order"]["totalAmount"] == "200.00"
    sio.disconnect()


def test_room_join_refused_for_other_restaurant(app, rival_client, seeded):
    sio = socketio.test_client(app, flask_test_client=rival_client)
    sio.emit("join", {"channel": f"restaurant-{seeded.restaurant_id}"})
    assert _received(sio, "join:refused") == [{"channel": f"restaurant-{seeded.restaurant_id}"}]
    sio.disconnect()


def test_anonymous_cannot_join_restaurant_room(app, seeded):
    sio = socketio.test_client(app)
    sio.emit("join", {"channel": f"restaurant-{seeded.restaurant_id}"})
    assert _received(sio, "join:refused")
    sio.disconnect()


def test_customer_joins_session_room_with_valid_token(app, owner_client, client, seeded):
    token = open_table(client)["sessionToken"]
    sio = socketio.test_client(app)
    sio.emit("join", {"channel": f"session-{token}"})
    assert _received(sio, "join:ok")

    order_id = add_order(client, token, [(seeded.burger_id, 1)]).get_json()["data"]["id"]
    sio.get_received()
    owner_client.patch(f"/orders/{order_id}", json={"status": "ready"})
    updates = _received(sio, "order:status:updated")
    assert updates == [{"orderId": order_id, "status": "ready", "tableNumber": "5"}]

    sio.emit("join", {"channel": "session-" + "0" * 64})
    assert _received(sio, "join:refused")
    sio.disconnect()


def test_socket_connects_with_login_cookie(app, seeded):
    c = app.test_client()
    assert login(c, "owner@example.com").status_code == 200
    sio = socketio.test_client(app, flask_test_client=c)
    assert sio.is_connected()
    sio.disconnect()


def test_payload_failure_after_commit_does_not_fail_request(client, seeded, notifications, monkeypatch, caplog):
    def lost_connection(value):
        raise RuntimeError("connection lost while loading session")

    monkeypatch.setattr(notifier, "money", lost_connection)
    token = open_table(client)["sessionToken"]
    with caplog.at_level(logging.WARNING, logger="menumate"):
        r = add_order(client, token, [(seeded.burger_id, 1)])
    assert r.status_code == 201
    assert notifications.names() == ["order:created"]
    assert any("Failed to build session:updated" in rec.getMessage() for rec in caplog.records)
    assert len(client.get(f"/sessions/{token}").get_json()["data"]["orders"]) == 1
