"""Health Probes — liveness always up, readiness follows the database."""

from reading_cohorts import __version__
import reading_cohorts.infrastructure.database as db_module


async def test_liveness(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json() == {
        "status": "healthy", "service": "reading-cohorts-api", "version": __version__,
    }


async def test_readiness_with_database(client):
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 200
    assert res.json()["checks"]["database"] == "healthy"


async def test_readiness_without_database(client, monkeypatch):
    monkeypatch.setattr(db_module, "db_manager", None)

    res = await client.get("/api/v1/health/ready")

    assert res.status_code == 503
    assert res.json()["reason"] == "database_unavailable"


async def test_readiness_reports_stopped_scheduler(client):
    res = await client.get("/api/v1/health/ready")
    assert res.json()["checks"]["scheduler"] == "stopped"
