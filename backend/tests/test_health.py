def test_health_endpoints(client):
    assert client.get("/api/health").json() == {"status": "ok"}

    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code == 200
    payload = ready.json()
    assert payload["database"]["ok"] is True
    assert payload["database"]["missing_tables"] == []
    assert payload["scheduling"]["blocks"] == ["1A", "1B", "2A", "2B", "3", "4A", "4B"]
