"""
Configuration Management System

This module provides centralized configuration management using YAML and JSON
files, with environment variable overrides loaded through python-dotenv.
Supports dot-notation access and hot reloading.
"""

import os
import yaml
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List, Optional

from dotenv import load_dotenv


BACKEND_DIR = Path(__file__).parent.parent


class ConfigManager:
    """
    Manage application configuration from YAML and JSON files

    Provides:
    - Load all config files on startup
    - Dot notation access: config.get('devices.timeoutSeconds')
    - Hot reload capability
    - Default values for missing keys
    """

    def __init__(self, config_dir: str = None):
        """
        Initialize configuration manager

        Args:
            config_dir: Path to config directory (default: backend/config)
        """
        if config_dir:
            self.config_dir = Path(config_dir)
        else:
            self.config_dir = BACKEND_DIR / "config"

        self.configs: Dict[str, Any] = {}
        self._load_all_configs()

    def _load_all_configs(self):
        """Load all configuration files from config directory"""
        if not self.config_dir.exists():
            print(f"   [WARN] Config directory not found: {self.config_dir}")
            return

        for yaml_file in sorted(self.config_dir.glob("*.yaml")):
            try:
                with open(yaml_file, 'r', encoding='utf-8') as f:
                    self.configs[yaml_file.stem] = yaml.safe_load(f) or {}
                    print(f"   [CONFIG] Loaded: {yaml_file.name}")
            except (OSError, yaml.YAMLError) as e:
                print(f"   [WARN] Failed to load {yaml_file.name}: {e}")

        for json_file in sorted(self.config_dir.glob("*.json")):
            try:
                with open(json_file, 'r', encoding='utf-8') as f:
                    self.configs[json_file.stem] = json.load(f)
                    print(f"   [CONFIG] Loaded: {json_file.name}")
            except (OSError, json.JSONDecodeError) as e:
                print(f"   [WARN] Failed to load {json_file.name}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot notation key

        Examples:
            config.get('hub.server.port')
            config.get('hub.devices.timeoutSeconds')

        Args:
            key: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.configs
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def reload(self):
        """Reload all configuration files"""
        print("[CONFIG] Reloading configuration...")
        self.configs.clear()
        self._load_all_configs()
        print("[OK] Configuration reloaded")

    def set(self, key: str, value: Any):
        """
        Set a configuration value (runtime only, not persisted)

        Args:
            key: Dot-separated key path
            value: Value to set
        """
        keys = key.split('.')
        config = self.configs

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value


@dataclass
class HubSettings:
    """Typed view of the hub configuration used by the application"""
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    ws_path: str = "/ws/incidents"
    viewer_roles: List[str] = field(default_factory=lambda: ["admin", "monitor"])
    broadcast_on_every_heartbeat: bool = True

    max_incidents: int = 1000
    image_dir: Path = BACKEND_DIR / "data" / "incident-images"
    image_url_prefix: str = "/incident-images"
    max_body_bytes: int = 10 * 1024 * 1024

    device_timeout_seconds: float = 30.0
    sweep_interval_seconds: float = 10.0

    incident_received_message: str = "تم استلام الحادث بنجاح"
    incident_failed_message: str = "فشل في استلام الحادث"

    @classmethod
    def from_config(cls, cfg: Optional[ConfigManager] = None) -> "HubSettings":
        """
        Build settings from a ConfigManager, then apply environment overrides

        Args:
            cfg: Loaded configuration (default: global config)
        """
        cfg = cfg or get_config()
        defaults = cls()

        image_dir = Path(cfg.get('hub.incidents.imageDir', defaults.image_dir))
        settings = cls(
            host=cfg.get('hub.server.host', defaults.host),
            port=int(cfg.get('hub.server.port', defaults.port)),
            cors_origins=list(cfg.get('hub.server.corsOrigins', defaults.cors_origins)),
            ws_path=cfg.get('hub.websocket.path', defaults.ws_path),
            viewer_roles=[r.lower() for r in cfg.get('hub.websocket.viewerRoles', defaults.viewer_roles)],
            broadcast_on_every_heartbeat=bool(
                cfg.get('hub.websocket.broadcastOnEveryHeartbeat', defaults.broadcast_on_every_heartbeat)
            ),
            max_incidents=int(cfg.get('hub.incidents.maxIncidents', defaults.max_incidents)),
            image_dir=image_dir if image_dir.is_absolute() else BACKEND_DIR / image_dir,
            image_url_prefix=cfg.get('hub.incidents.imageUrlPrefix', defaults.image_url_prefix),
            max_body_bytes=int(cfg.get('hub.incidents.maxBodyBytes', defaults.max_body_bytes)),
            device_timeout_seconds=float(cfg.get('hub.devices.timeoutSeconds', defaults.device_timeout_seconds)),
            sweep_interval_seconds=float(
                cfg.get('hub.devices.sweepIntervalSeconds', defaults.sweep_interval_seconds)
            ),
            incident_received_message=cfg.get(
                'hub.messages.incidentReceived', defaults.incident_received_message
            ),
            incident_failed_message=cfg.get('hub.messages.incidentFailed', defaults.incident_failed_message),
        )
        settings.apply_env()
        return settings

    def apply_env(self):
        """Override settings from environment variables (.env is loaded first)"""
        load_dotenv()

        self.host = os.getenv("HOST", self.host)
        self.port = int(os.getenv("PORT", self.port))
        self.ws_path = os.getenv("WS_PATH", self.ws_path)
        self.max_incidents = int(os.getenv("MAX_INCIDENTS", self.max_incidents))
        self.max_body_bytes = int(os.getenv("MAX_BODY_BYTES", self.max_body_bytes))
        self.device_timeout_seconds = float(os.getenv("DEVICE_TIMEOUT_SECONDS", self.device_timeout_seconds))
        self.sweep_interval_seconds = float(os.getenv("SWEEP_INTERVAL_SECONDS", self.sweep_interval_seconds))

        image_dir = os.getenv("INCIDENT_IMAGE_DIR")
        if image_dir:
            self.image_dir = Path(image_dir)

    def is_viewer_role(self, role: Optional[str]) -> bool:
        """Roles outside the viewer set classify a connection as a field device"""
        return bool(role) and str(role).lower() in self.viewer_roles


# Global configuration instance
config: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """Get the global configuration instance"""
    global config
    if config is None:
        config = ConfigManager()
    return config
