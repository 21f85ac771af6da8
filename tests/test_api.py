from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from netmon import main
from netmon.exporter import ExportError
from netmon.monitor import NetworkMonitor


@pytest.fixture
def client(settings, monitor: NetworkMonitor):
    app = main.create_app(settings=settings, monitor=monitor)
    with TestClient(app) as test_client:
        yield test_client


def _generate(monitor: NetworkMonitor, ticks: int = 5) -> None:
    for _ in range(ticks):
        monitor.simulator.tick()


def test_root_lists_endpoints(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "stopped"
    assert body["endpoints"]["websocket"] == "/ws"


def test_start_stop_clear_commands(client: TestClient, monitor: NetworkMonitor) -> None:
    response = client.post("/api/monitor/start")
    assert response.json()["is_monitoring"] is True

    _generate(monitor)
    health = client.get("/api/health").json()
    assert health["status"] == "healthy"
    assert health["total_packets"] == monitor.total_packets > 0

    response = client.post("/api/monitor/stop")
    assert response.json()["is_monitoring"] is False

    response = client.post("/api/monitor/clear")
    assert response.json() == {"is_monitoring": False, "total_packets": 0, "total_alerts": 0}


def test_stats_snapshot(client: TestClient, monitor: NetworkMonitor) -> None:
    client.post("/api/monitor/start")
    _generate(monitor, 20)
    monitor.sampler.sample()

    body = client.get("/api/stats", params={"limit": 3}).json()

    assert body["isMonitoring"] is True
    assert body["totalPackets"] == monitor.total_packets
    assert len(body["packets"]) == 3
    assert body["packets"][0]["id"] == monitor.packets()[0].id
    assert sum(s["count"] for s in body["protocolStats"]) == monitor.total_packets
    assert body["trafficData"][0]["packetsPerSecond"] == monitor.total_packets


def test_packets_and_protocols_endpoints(client: TestClient, monitor: NetworkMonitor) -> None:
    client.post("/api/monitor/start")
    _generate(monitor)

    packets = client.get("/api/packets", params={"limit": 2}).json()
    assert len(packets) == 2
    assert {"sourceIp", "destinationIp", "protocol", "port", "size"} <= set(packets[0])

    protocols = client.get("/api/protocols").json()
    assert protocols == sorted(protocols, key=lambda s: s["count"], reverse=True)
    assert client.get("/api/traffic").json() == []


def test_alert_endpoints(client: TestClient, monitor: NetworkMonitor) -> None:
    monitor.simulator.alert_probability = 1.0
    client.post("/api/monitor/start")
    _generate(monitor, 3)

    alerts = client.get("/api/alerts").json()
    assert [alert["id"] for alert in alerts] == [3, 2, 1]
    assert len(client.get("/api/alerts/recent").json()) == 3


def test_export_csv_download(client: TestClient, monitor: NetworkMonitor) -> None:
    client.post("/api/monitor/start")
    _generate(monitor)

    response = client.get("/api/export/packets", params={"format": "csv"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    disposition = response.headers["content-disposition"]
    assert 'filename="packets_' in disposition and disposition.endswith('.csv"')
    lines = response.text.split("\n")
    assert lines[0].startswith("ID,Timestamp,Source IP")
    assert len(lines) == monitor.total_packets + 1


def test_export_json_empty(client: TestClient) -> None:
    response = client.get("/api/export/alerts", params={"format": "json"})
    assert response.status_code == 200
    body = json.loads(response.text)
    assert body["totalAlerts"] == 0
    assert body["alerts"] == []


def test_export_rejects_unknown_kind_and_format(client: TestClient) -> None:
    assert client.get("/api/export/flows").status_code == 404
    assert client.get("/api/export/packets", params={"format": "xml"}).status_code == 422


def test_export_failure_keeps_buffers(
    client: TestClient, monitor: NetworkMonitor, monkeypatch: pytest.MonkeyPatch
) -> None:
    client.post("/api/monitor/start")
    _generate(monitor)
    before = monitor.total_packets

    def broken(_items):
        raise ExportError("disk full")

    monkeypatch.setitem(main.EXPORTERS, ("packets", "csv"), broken)
    response = client.get("/api/export/packets")

    assert response.status_code == 500
    assert "disk full" in response.json()["detail"]
    assert monitor.total_packets == before


def test_websocket_pushes_snapshots(client: TestClient, monitor: NetworkMonitor) -> None:
    client.post("/api/monitor/start")
    _generate(monitor)

    with client.websocket_connect("/ws") as websocket:
        first = websocket.receive_json()
        second = websocket.receive_json()

    assert first["totalPackets"] == monitor.total_packets
    assert second["isMonitoring"] is True


def test_shutdown_stops_monitoring(settings, monitor: NetworkMonitor) -> None:
    app = main.create_app(settings=settings, monitor=monitor)
    with TestClient(app) as test_client:
        test_client.post("/api/monitor/start")
        assert monitor.is_monitoring is True
    assert monitor.is_monitoring is False


def test_autostart_on_startup(settings, monitor: NetworkMonitor) -> None:
    app = main.create_app(settings=settings.model_copy(update={"autostart": True}), monitor=monitor)
    with TestClient(app):
        assert monitor.is_monitoring is True
