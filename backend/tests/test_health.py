def test_health_endpoints(client):
    assert client.get("/api/health").json() == {"status": "ok"}

    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code in {200, 503}
    payload = ready.json()
    assert "storage" in payload
    assert "solver" in payload
    assert payload["solver"]["mode"] in {"remote", "greedy"}


def test_unknown_routes_are_not_found(client):
    assert client.get("/api/does-not-exist").status_code == 404
