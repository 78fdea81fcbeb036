"""
Tests for the HTTP API via the FastAPI TestClient.
"""

import pytest
from fastapi.testclient import TestClient

from api_server import app, get_engine
from temporal_graph_engine import TemporalGraphEngine

GRAPH_TEXT = "3 2 3\n1 2 1 0 2\n2 3 2 1 3\n"


@pytest.fixture()
def client():
    engine = TemporalGraphEngine()
    engine.load_text(GRAPH_TEXT)
    app.dependency_overrides[get_engine] = lambda: engine
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class TestGraphEndpoints:

    def test_root(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["stats"]["num_nodes"] == 3

    def test_stats_at_time(self, client):
        resp = client.get("/stats", params={"at_time": 1})
        assert resp.json()["active_edges"] == 1

    def test_load_graph_reports_skipped_lines(self, client):
        resp = client.put("/graph", json={"text": "2 2 3\n1 2 1 0\n1 2 x 0\n"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["num_edges"] == 1
        assert body["skipped"][0]["line_number"] == 3

    def test_bad_header_is_422(self, client):
        resp = client.put("/graph", json={"text": "nonsense"})
        assert resp.status_code == 422

    def test_graph_text(self, client):
        resp = client.get("/graph/text")
        assert resp.text == GRAPH_TEXT

    def test_get_graph(self, client):
        body = client.get("/graph").json()
        assert body["nodes"] == ["1", "2", "3"]
        assert body["edges"][0]["times"] == [0, 2]

    def test_add_node_and_edge(self, client):
        assert client.post("/nodes", json={"node": "4"}).json()["added"] is True
        resp = client.post("/edges", json={"source": "3", "target": "4", "times": [3]})
        assert resp.status_code == 201
        resp = client.post("/edges", json={"source": "3", "target": "9", "times": [3]})
        assert resp.status_code == 404


class TestQueryEndpoints:

    def test_earliest_arrival(self, client):
        resp = client.post("/query/earliest-arrival", json={"start": "1", "start_time": 0})
        assert resp.status_code == 200
        assert resp.json()["arrival"] == {"1": 0, "2": 0, "3": 1}

    def test_integer_node_ids_match_text_labels(self, client):
        resp = client.post("/query/earliest-arrival", json={"start": 1, "start_time": 0})
        assert resp.status_code == 200
        assert resp.json()["arrival"] == {"1": 0, "2": 0, "3": 1}
        resp = client.post("/query/path", json={"start": 1, "target": 3, "start_time": 0})
        assert resp.json()["status"] == "found"

    def test_non_finite_weight_is_422(self, client):
        resp = client.post(
            "/edges", json={"source": "1", "target": "3", "weight": "NaN", "times": [0]}
        )
        assert resp.status_code == 422

    def test_path_flowing(self, client):
        resp = client.post("/query/path", json={"start": "1", "target": "3", "start_time": 0})
        body = resp.json()
        assert body["status"] == "found"
        assert body["cost"] == 3
        assert [p["node"] for p in body["path"]] == ["1", "2", "3"]

    def test_no_path_is_normal_response(self, client):
        resp = client.post(
            "/query/path",
            json={"start": "1", "target": "3", "start_time": 1, "mode": "snapshot"}
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "no_path"
        assert resp.json()["diagnostic"]

    def test_unknown_node_is_404(self, client):
        resp = client.post("/query/path", json={"start": "1", "target": "99"})
        assert resp.status_code == 404

    def test_centrality(self, client):
        resp = client.get("/query/centrality", params={"at_time": 0})
        assert resp.json() == {"1": 2, "2": 1, "3": 0}

    def test_trace(self, client):
        resp = client.post("/query/trace", json={"start": "1", "at_time": 2})
        steps = resp.json()["steps"]
        assert [s["action"] for s in steps] == ["start", "enqueue", "dequeue"]
