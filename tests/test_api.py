import pytest

from conftest import NO_RESULTS_XML, FakeResponse, FakeSession
from ofeed_connector import app as app_module
from ofeed_connector.api import APIServer
from ofeed_connector.app import ConnectorApp
from ofeed_connector.config import Config
from ofeed_connector.relay import ResultsRelay


@pytest.fixture
def sessions():
    return []


@pytest.fixture
def connector(monkeypatch, timers, sessions):
    def make_relay(relay_config, listener=None):
        session = FakeSession(get=[FakeResponse(200, NO_RESULTS_XML) for _ in range(5)])
        sessions.append(session)
        return ResultsRelay(relay_config, listener=listener, session=session, timer_factory=timers)

    monkeypatch.setattr(app_module, "ResultsRelay", make_relay)
    monkeypatch.setattr(app_module, "ping", lambda url, user_agent: url.endswith(":8080"))

    config = Config()
    config.sink.event_id = "evt123"
    config.sink.event_password = "secret"
    return ConnectorApp(config=config)


@pytest.fixture
def client(connector):
    server = APIServer(connector)
    server.flask_app.config["TESTING"] = True
    return server.flask_app.test_client()


def test_status_before_start(client):
    response = client.get("/api/v1/status")

    assert response.status_code == 200
    data = response.get_json()
    assert data["configured"] is True
    assert data["running"] is False
    assert data["latest_status"] == ""
    assert data["relay"] is None


def test_start_relay_and_read_status(client, timers):
    response = client.post("/api/v1/relay/start")
    assert response.status_code == 200
    assert response.get_json()["success"] is True

    timers.fire_last()

    data = client.get("/api/v1/status").get_json()
    assert data["running"] is True
    assert data["latest_status"].startswith("S")
    assert data["relay"]["cycles_completed"] == 1

    log = client.get("/api/v1/log").get_json()["log"]
    assert "No results available in SI-Droid Event yet." in log.split("\n")[0]


def test_start_twice_conflicts(client):
    client.post("/api/v1/relay/start")
    response = client.post("/api/v1/relay/start")

    assert response.status_code == 409
    assert response.get_json()["error"] == "Relay already running"


def test_start_with_invalid_settings(client, connector):
    connector.config.sink.event_password = ""

    response = client.post("/api/v1/relay/start")

    assert response.status_code == 409
    assert response.get_json()["errors"] == ["Event password is missing."]


def test_stop_relay(client, timers):
    client.post("/api/v1/relay/start")

    response = client.post("/api/v1/relay/stop")

    assert response.status_code == 200
    assert timers.last.cancelled
    assert client.post("/api/v1/relay/stop").status_code == 409


def test_restart_creates_fresh_relay(client, connector, sessions):
    client.post("/api/v1/relay/start")
    first = connector.relay
    client.post("/api/v1/relay/stop")
    client.post("/api/v1/relay/start")

    assert connector.relay is not first
    assert sessions[0].closed
    assert connector.is_running


def test_ping(client):
    data = client.get("/api/v1/ping").get_json()
    assert data == {"reachable": True, "url": "http://localhost:8080"}


def test_get_config_masks_password(client):
    data = client.get("/api/v1/config").get_json()
    assert data["sink"]["event_password"] == "********"
    assert data["sink"]["event_id"] == "evt123"


def test_update_config_stops_relay_and_saves(client, connector, tmp_path):
    connector.config_path = str(tmp_path / "config.yaml")
    client.post("/api/v1/relay/start")

    response = client.post("/api/v1/config", json={"source": {"port": 80}})

    assert response.status_code == 200
    assert response.get_json()["errors"] == ["SI-Droid port must be between 1025 and 65535."]
    assert not connector.is_running
    assert Config.load(connector.config_path).source.port == 80


def test_update_config_requires_body(client):
    response = client.post("/api/v1/config", data="nope", content_type="text/plain")
    assert response.status_code == 400


def test_http_log_empty_before_start(client):
    assert client.get("/api/v1/http-log").get_json() == {"log": ""}


def test_index_is_plain_text(client, timers):
    assert client.get("/").data.decode().startswith("No status yet.")

    client.post("/api/v1/relay/start")
    timers.fire_last()

    body = client.get("/").data.decode()
    assert "No results available in SI-Droid Event yet." in body.split("\n")[0]


def test_unknown_route_is_json_404(client):
    response = client.get("/api/v1/nope")
    assert response.status_code == 404
    assert response.get_json() == {"error": "Not found"}


def test_listener_survives_restart(connector, timers):
    seen = []

    class Listener:
        def on_success(self, status):
            seen.append(status)

        def on_failure(self, status):
            seen.append(status)

    connector.bind(Listener())
    connector.start_relay()
    timers.fire_last()
    connector.stop_relay()
    connector.start_relay()
    timers.fire_last()

    assert len(seen) == 2


def test_update_config_converts_numeric_event_id(client, connector):
    connector.config_path = None
    connector.update_config({"sink": {"event_id": 123}}, save=False)

    assert connector.config.sink.event_id == "123"
    assert client.get("/api/v1/status").status_code == 200


def test_update_config_with_wrong_type_is_rejected(client, connector, tmp_path):
    connector.config_path = str(tmp_path / "config.yaml")
    client.post("/api/v1/relay/start")

    response = client.post("/api/v1/config", json={"relay": {"upload_interval_sec": "soon"}})

    assert response.status_code == 400
    assert "upload_interval_sec" in response.get_json()["error"]
    assert connector.is_running
    assert connector.config.relay.upload_interval_sec == 30
    assert client.get("/api/v1/status").status_code == 200
    assert not (tmp_path / "config.yaml").exists()
