"""Test suite for health endpoints."""


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "message": "Server Healthy"}


def test_health_db(client):
    response = client.get("/api/health/db")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_health_db_unreachable(client, api_store):
    async def down() -> bool:
        return False

    api_store.ping = down

    response = client.get("/api/health/db")

    assert response.status_code == 503
    assert response.json()["detail"] == "Database connection failed"
