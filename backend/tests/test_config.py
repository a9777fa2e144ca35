"""
Configuration Tests

Tests for ConfigManager (file loading, dot-notation access) and the
HubSettings view built from it.
"""

from pathlib import Path

import pytest

from roadwatch.config import BACKEND_DIR, ConfigManager, HubSettings


HUB_YAML = """
server:
  port: 8080
websocket:
  viewerRoles: [Admin, Supervisor]
  broadcastOnEveryHeartbeat: false
incidents:
  maxIncidents: 50
  imageDir: custom/images
devices:
  timeoutSeconds: 45
"""


@pytest.fixture
def config_dir(tmp_path):
    directory = tmp_path / "config"
    directory.mkdir()
    (directory / "hub.yaml").write_text(HUB_YAML, encoding="utf-8")
    (directory / "extra.json").write_text('{"feature": {"enabled": true}}', encoding="utf-8")
    return directory


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "HOST", "PORT", "WS_PATH", "MAX_INCIDENTS", "MAX_BODY_BYTES",
        "DEVICE_TIMEOUT_SECONDS", "SWEEP_INTERVAL_SECONDS", "INCIDENT_IMAGE_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the way
    monkeypatch.setattr("roadwatch.config.load_dotenv", lambda *args, **kwargs: False)


class TestConfigManager:
    """Test ConfigManager"""

    def test_loads_yaml_and_json(self, config_dir):
        cfg = ConfigManager(str(config_dir))

        assert cfg.get("hub.server.port") == 8080
        assert cfg.get("extra.feature.enabled") is True

    def test_missing_key_returns_default(self, config_dir):
        cfg = ConfigManager(str(config_dir))

        assert cfg.get("hub.server.host") is None
        assert cfg.get("hub.server.host", "127.0.0.1") == "127.0.0.1"
        assert cfg.get("nothing.here", 5) == 5

    def test_missing_directory(self, tmp_path):
        cfg = ConfigManager(str(tmp_path / "absent"))

        assert cfg.configs == {}

    def test_set_and_reload(self, config_dir):
        cfg = ConfigManager(str(config_dir))

        cfg.set("hub.server.port", 9000)
        cfg.set("runtime.flag", True)
        assert cfg.get("hub.server.port") == 9000
        assert cfg.get("runtime.flag") is True

        cfg.reload()
        assert cfg.get("hub.server.port") == 8080
        assert cfg.get("runtime.flag") is None

    def test_shipped_config_loads(self):
        cfg = ConfigManager()

        assert cfg.get("hub.websocket.path") == "/ws/incidents"
        assert cfg.get("hub.devices.timeoutSeconds") == 30


class TestHubSettings:
    """Test HubSettings"""

    def test_defaults(self):
        settings = HubSettings()

        assert settings.port == 3000
        assert settings.max_incidents == 1000
        assert settings.device_timeout_seconds == 30.0
        assert settings.broadcast_on_every_heartbeat is True

    def test_from_config(self, config_dir, clean_env):
        settings = HubSettings.from_config(ConfigManager(str(config_dir)))

        assert settings.port == 8080
        assert settings.host == "0.0.0.0"
        assert settings.max_incidents == 50
        assert settings.device_timeout_seconds == 45.0
        assert settings.broadcast_on_every_heartbeat is False
        assert settings.viewer_roles == ["admin", "supervisor"]
        assert settings.image_dir == BACKEND_DIR / "custom" / "images"

    def test_env_overrides(self, config_dir, clean_env, monkeypatch, tmp_path):
        monkeypatch.setenv("PORT", "4100")
        monkeypatch.setenv("MAX_INCIDENTS", "10")
        monkeypatch.setenv("DEVICE_TIMEOUT_SECONDS", "5")
        monkeypatch.setenv("INCIDENT_IMAGE_DIR", str(tmp_path / "env-images"))

        settings = HubSettings.from_config(ConfigManager(str(config_dir)))

        assert settings.port == 4100
        assert settings.max_incidents == 10
        assert settings.device_timeout_seconds == 5.0
        assert settings.image_dir == Path(tmp_path / "env-images")

    @pytest.mark.parametrize("role, expected", [
        ("admin", True),
        ("ADMIN", True),
        ("monitor", True),
        ("mobile", False),
        ("", False),
        (None, False),
    ])
    def test_is_viewer_role(self, role, expected):
        assert HubSettings().is_viewer_role(role) is expected
