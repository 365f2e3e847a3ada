"""
HTTP and WebSocket surface tests
"""
import pytest
from fastapi.testclient import TestClient
from main import app


@pytest.fixture
def client(tmp_path, monkeypatch):
    """App wired to temporary stores"""
    monkeypatch.setenv("RECIPES_DB_PATH", str(tmp_path / "recipes.db"))
    monkeypatch.setenv("RECIPES_LOCAL_PATH", str(tmp_path / "recipes.json"))
    monkeypatch.setenv("KEYWORDS_PATH", str(tmp_path / "absent.yaml"))
    monkeypatch.delenv("REFERENCE_KEYWORDS", raising=False)
    monkeypatch.delenv("HYDRATING_KEYWORDS", raising=False)
    monkeypatch.delenv("MASS_TOLERANCE_GRAMS", raising=False)
    with TestClient(app) as test_client:
        yield test_client


PAN = {"name": "Pan", "ingredients": [{"name": "Harina", "weight": 1000}, {"name": "Agua", "weight": 650}]}


class TestRecipeEndpoints:
    """REST endpoints"""

    def test_empty_list(self, client):
        response = client.get("/recipes")
        assert response.status_code == 200
        assert response.json() == []

    def test_create_and_get(self, client):
        response = client.post("/recipes", json=PAN)
        assert response.status_code == 201
        created = response.json()
        assert [i["percentage"] for i in created["ingredients"]] == [100, 65]
        assert created["metrics"]["hydration"] == 65
        assert created["metrics"]["hydration_level"] == "medium"

        response = client.get(f"/recipes/{created['id']}")
        assert response.status_code == 200
        assert response.json()["name"] == "Pan"

        listed = client.get("/recipes").json()
        assert [r["id"] for r in listed] == [created["id"]]

    def test_update(self, client):
        created = client.post("/recipes", json=PAN).json()
        body = {"name": "Pan seco", "ingredients": [{"name": "Harina", "weight": 1000}, {"name": "Agua", "weight": 550}]}
        response = client.put(f"/recipes/{created['id']}", json=body)
        assert response.status_code == 200
        assert response.json()["metrics"]["hydration"] == 55
        assert response.json()["metrics"]["hydration_level"] == "firm"

    def test_delete(self, client):
        created = client.post("/recipes", json=PAN).json()
        assert client.delete(f"/recipes/{created['id']}").status_code == 204
        assert client.get(f"/recipes/{created['id']}").status_code == 404

    def test_unknown_recipe(self, client):
        assert client.get("/recipes/missing").status_code == 404
        assert client.put("/recipes/missing", json=PAN).status_code == 404
        assert client.delete("/recipes/missing").status_code == 404

    def test_blank_name_rejected(self, client):
        response = client.post("/recipes", json={"name": " ", "ingredients": []})
        assert response.status_code == 422

    def test_metrics(self, client):
        response = client.post("/metrics", json={"ingredients": [
            {"name": "Flour", "weight": 1000},
            {"name": "Water", "weight": 700},
        ]})
        assert response.status_code == 200
        assert response.json()["hydration"] == 70
        assert response.json()["total_mass"] == 1700


class TestEditorChannel:
    """WebSocket editing channel"""

    def test_edit_and_save_new_recipe(self, client):
        with client.websocket_connect("/editor") as ws:
            ws.send_json({"event": "open", "data": {}})
            message = ws.receive_json()
            assert message["type"] == "system"
            assert message["event"] == "draft"
            assert message["data"]["editing"] is True

            ws.send_json({"event": "set_weight", "data": {"index": 0, "value": 1000}})
            ws.receive_json()
            ws.send_json({"event": "add"})
            ws.receive_json()
            ws.send_json({"event": "rename", "data": {"index": 1, "name": "Agua"}})
            ws.receive_json()
            ws.send_json({"event": "set_percentage", "data": {"index": 1, "value": 65}})
            ws.receive_json()
            ws.send_json({"event": "set_total_mass", "data": {"value": 1650}})
            state = ws.receive_json()["data"]

            assert [i["weight"] for i in state["draft"]["ingredients"]] == [1000, 650]
            assert state["draft"]["declared_total_mass"] == 1650
            assert state["metrics"]["hydration"] == 65
            assert state["mass_mismatch"] is False
            assert state["display"]["total_mass"] == "1.65 kg"
            assert state["display"]["percentages"] == ["100.0%", "65.0%"]

            ws.send_json({"event": "save", "data": {"name": "Pan"}})
            state = ws.receive_json()["data"]
            assert state["editing"] is False
            assert state["recipe_id"]

            ws.send_json({"event": "set_total_mass", "data": {"value": 3300}})
            error = ws.receive_json()
            assert error["event"] == "error"

        recipes = client.get("/recipes").json()
        assert [r["name"] for r in recipes] == ["Pan"]
        assert [i["percentage"] for i in recipes[0]["ingredients"]] == [100, 65]

    def test_open_saved_recipe_and_cancel(self, client):
        created = client.post("/recipes", json=PAN).json()

        with client.websocket_connect("/editor") as ws:
            ws.send_json({"event": "open", "data": {"recipe_id": created["id"]}})
            state = ws.receive_json()["data"]
            assert state["editing"] is False
            assert state["draft"]["declared_total_mass"] == 1650

            ws.send_json({"event": "start_editing"})
            ws.receive_json()
            ws.send_json({"event": "set_weight", "data": {"index": 1, "value": 800}})
            state = ws.receive_json()["data"]
            assert state["mass_mismatch"] is True

            ws.send_json({"event": "cancel"})
            state = ws.receive_json()["data"]
            assert [i["weight"] for i in state["draft"]["ingredients"]] == [1000, 650]
            assert state["editing"] is False

    def test_errors_keep_channel_open(self, client):
        with client.websocket_connect("/editor") as ws:
            ws.send_json({"event": "add"})
            assert ws.receive_json()["event"] == "error"

            ws.send_json({"event": "open", "data": {"recipe_id": "missing"}})
            assert ws.receive_json()["event"] == "error"

            ws.send_json({"event": "open"})
            assert ws.receive_json()["event"] == "draft"

            ws.send_json({"event": "set_weight", "data": {"index": "zero", "value": 1}})
            assert ws.receive_json()["event"] == "error"

            ws.send_json({"event": "shape_dough"})
            assert ws.receive_json()["event"] == "error"

            ws.send_json({"event": "save", "data": {"name": ""}})
            assert ws.receive_json()["event"] == "error"

            ws.send_json({"event": "remove", "data": {"index": 0}})
            state = ws.receive_json()["data"]
            assert len(state["draft"]["ingredients"]) == 1

    @pytest.mark.parametrize("value", ["nan", "inf", "-Infinity", float("nan"), float("inf")])
    def test_non_finite_number_keeps_channel_open(self, client, value):
        with client.websocket_connect("/editor") as ws:
            ws.send_json({"event": "open", "data": {}})
            ws.receive_json()

            for event in ("set_total_mass", "set_reference_weight"):
                ws.send_json({"event": event, "data": {"value": value}})
                error = ws.receive_json()
                assert error["event"] == "error"
                assert "finite" in str(error["data"])

            ws.send_json({"event": "set_weight", "data": {"index": 0, "value": value}})
            assert ws.receive_json()["event"] == "error"

            ws.send_json({"event": "set_weight", "data": {"index": 0, "value": 500}})
            state = ws.receive_json()
            assert state["event"] == "draft"
            assert state["data"]["draft"]["ingredients"][0]["weight"] == 500
