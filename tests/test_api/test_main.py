"""
Tests for the FastAPI application.

Each test gets its own app state: the lifespan runs inside the TestClient
context and reads settings pointed at a temporary copy of the fixtures.
"""

import io
import threading

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from api.main import app
from shared.config import get_settings


@pytest.fixture
def client(data_dir, tmp_path, monkeypatch):
    monkeypatch.setenv("DELIVERY_DATA_DIR", str(data_dir))
    monkeypatch.setenv("DELIVERY_SOUND_OUTPUT_DIR", str(tmp_path / "alerts"))
    monkeypatch.setenv("DELIVERY_SOUND_SAMPLE_RATE", "8000")
    get_settings.cache_clear()
    with TestClient(app) as test_client:
        yield test_client
    get_settings.cache_clear()


def new_order(client, business_id="biz-001", customer_id="cust-001", **fields):
    body = {
        "business_id": business_id,
        "customer_id": customer_id,
        "customer_name": "Maria Silva",
        "total_amount": "42.50",
        **fields,
    }
    response = client.post("/orders", json=body)
    assert response.status_code == 201
    return response.json()


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestSession:
    """Tests for starting and stopping a listening session."""

    def test_owner_session(self, client):
        response = client.post("/session", json={"user_id": "user-owner-1"})

        assert response.status_code == 200
        data = response.json()
        assert data["role"] == "owner"
        assert data["business_id"] == "biz-001"
        assert data["listening"] is True

    def test_customer_session(self, client):
        data = client.post("/session", json={"user_id": "user-cust-1"}).json()

        assert data["role"] == "customer"
        assert data["customer_id"] == "cust-001"

    def test_unknown_user(self, client):
        data = client.post("/session", json={"user_id": "ghost"}).json()

        assert data["role"] == "unknown"
        assert data["listening"] is False

    def test_end_session(self, client):
        client.post("/session", json={"user_id": "user-owner-1"})

        assert client.delete("/session").json() == {"listening": False}
        assert client.get("/modals").status_code == 409


class TestOwnerFlow:
    """End-to-end: an order insert reaches the owner's bell, modal, toast and sound."""

    def test_new_order(self, client, tmp_path):
        client.post("/session", json={"user_id": "user-owner-1"})

        order = new_order(client, customer_phone="+55 11 90000-0000")

        notifications = client.get("/notifications").json()
        assert notifications["count"] == 1
        assert notifications["has_unread"] is True
        assert notifications["notifications"][0]["id"] == order["id"]

        modals = client.get("/modals").json()
        assert modals["new-order"]["title"] == "Novo Pedido Recebido!"
        assert ["Telefone", "+55 11 90000-0000"] in modals["new-order"]["fields"]
        assert modals["status-change"] is None

        toasts = client.get("/toasts").json()
        assert toasts[-1]["description"] == "Maria Silva fez um pedido de R$42,50"

        assert len(list((tmp_path / "alerts").glob("*.wav"))) == 1

    def test_other_business_is_invisible(self, client):
        client.post("/session", json={"user_id": "user-owner-1"})

        new_order(client, business_id="biz-002")

        assert client.get("/notifications").json()["count"] == 0

    def test_close_modal(self, client):
        client.post("/session", json={"user_id": "user-owner-1"})
        new_order(client)

        response = client.post("/modals/new-order/close")

        assert response.json() == {"kind": "new-order", "is_open": False}
        assert client.get("/modals").json()["new-order"] is None

    def test_close_unknown_modal(self, client):
        client.post("/session", json={"user_id": "user-owner-1"})

        assert client.post("/modals/popup/close").status_code == 404

    def test_mark_as_read_and_clear(self, client):
        client.post("/session", json={"user_id": "user-owner-1"})
        first = new_order(client)
        new_order(client)

        response = client.post(f"/notifications/{first['id']}/read")
        assert response.json()["redirect"] == f"/orders?order={first['id']}"
        assert client.get("/notifications").json()["count"] == 1

        client.delete("/notifications")
        assert client.get("/notifications").json()["has_unread"] is False

    def test_dismiss_toasts(self, client):
        client.post("/session", json={"user_id": "user-owner-1"})
        new_order(client)

        client.delete("/toasts")

        assert client.get("/toasts").json() == []


class TestCustomerFlow:
    def test_status_change(self, client):
        client.post("/session", json={"user_id": "user-cust-1"})
        order = new_order(client)

        response = client.patch(f"/orders/{order['id']}", json={"status": "ready"})

        assert response.status_code == 200
        modal = client.get("/modals").json()["status-change"]
        assert modal["status_label"] == "Pronto"
        assert modal["actions"] == ["Fechar"]
        assert client.get("/toasts").json()[-1]["title"] == "📦 Pronto!"

    def test_update_errors(self, client):
        order = new_order(client)

        assert client.patch(f"/orders/{order['id']}", json={}).status_code == 400
        assert client.patch("/orders/missing", json={"status": "ready"}).status_code == 404
        assert client.patch(f"/orders/{order['id']}", json={"status": "lost"}).status_code == 422


class TestPreferences:
    def test_get_defaults(self, client):
        data = client.get("/preferences/user-new").json()

        assert data == {"theme": "light", "notifications": True, "sound": True, "language": "pt-BR"}

    def test_update(self, client):
        response = client.patch("/preferences/user-new", json={"sound": False, "theme": "dark"})

        assert response.status_code == 200
        assert client.get("/preferences/user-new").json()["theme"] == "dark"

    def test_unknown_key(self, client):
        assert client.patch("/preferences/user-new", json={"volume": 3}).status_code == 400

    def test_invalid_value(self, client):
        assert client.patch("/preferences/user-new", json={"theme": "neon"}).status_code == 422

    def test_invalid_value_saves_nothing(self, client, data_dir):
        """Test that one bad value rejects the whole change set."""
        response = client.patch("/preferences/user-new", json={"sound": False, "theme": "neon"})

        assert response.status_code == 422
        assert client.get("/preferences/user-new").json()["sound"] is True
        assert "user-new" not in (data_dir / "user_preferences.json").read_text()

    def test_unknown_key_saves_nothing(self, client):
        response = client.patch("/preferences/user-new", json={"sound": False, "volume": 3})

        assert response.status_code == 400
        assert client.get("/preferences/user-new").json()["sound"] is True

    def test_muting_sound_stops_alerts(self, client, tmp_path):
        client.patch("/preferences/user-owner-1", json={"sound": False})
        client.post("/session", json={"user_id": "user-owner-1"})

        new_order(client)

        assert not list((tmp_path / "alerts").glob("*.wav"))


class TestImages:
    """Tests for the image optimization endpoint."""

    def test_optimize(self, client):
        buffer = io.BytesIO()
        Image.new("RGB", (1200, 800), "blue").save(buffer, format="JPEG")

        response = client.post(
            "/images/optimize?filename=pizza.jpg",
            content=buffer.getvalue(),
            headers={"Content-Type": "image/jpeg"},
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/webp"
        assert response.headers["x-width"] == "600"
        assert response.headers["x-height"] == "400"
        assert int(response.headers["x-final-size"]) == len(response.content)

    def test_rejects_format(self, client):
        response = client.post(
            "/images/optimize",
            content=b"GIF89a",
            headers={"Content-Type": "image/gif"},
        )

        assert response.status_code == 400
        assert "Formato não permitido" in response.json()["detail"]

    def test_health_answers_during_optimization(self, client, monkeypatch):
        """Test that other requests are served while an image is being optimized."""
        optimizer = app.state.optimizer
        optimize = optimizer.optimize
        started = threading.Event()
        released = threading.Event()
        released_in_time = []

        def slow_optimize(*args, **kwargs):
            started.set()
            released_in_time.append(released.wait(timeout=5))
            return optimize(*args, **kwargs)

        monkeypatch.setattr(optimizer, "optimize", slow_optimize)
        buffer = io.BytesIO()
        Image.new("RGB", (120, 80), "green").save(buffer, format="PNG")
        responses = []
        upload = threading.Thread(target=lambda: responses.append(client.post(
            "/images/optimize",
            content=buffer.getvalue(),
            headers={"Content-Type": "image/png"},
        )))

        upload.start()
        assert started.wait(timeout=5)
        health = client.get("/health")
        released.set()
        upload.join(timeout=10)

        assert health.status_code == 200
        assert released_in_time == [True]
        assert responses[0].status_code == 200
