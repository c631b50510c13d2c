#!/usr/bin/python3
"""
Config loader for blocker YAML configuration
"""
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional
import yaml

APP_NAME = "blocker"
LOOPBACK = "127.0.0.1"
# Path to the system hosts file
HOSTS_PATH = "/etc/hosts"


def user_config_dir() -> Path:
    """Return the per-user configuration directory for this platform."""
    if sys.platform == "darwin":
        base = os.path.expanduser("~/Library/Application Support")
    else:
        base = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    return Path(base) / APP_NAME


class Config:
    """Blocker configuration, optionally loaded from YAML"""

    def __init__(self, config_path: str = None, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else user_config_dir()

        if config_path is None:
            candidate = self.config_dir / "config.yaml"
            config_path = str(candidate) if candidate.exists() else None
        elif not os.path.exists(config_path):
            raise FileNotFoundError(f"Config file {config_path} does not exist")

        self.data: Dict[str, Any] = {}
        if config_path is not None:
            with open(config_path, 'r') as f:
                self.data = yaml.safe_load(f) or {}
            if not isinstance(self.data, dict):
                raise ValueError(f"Config file {config_path} must contain a mapping")
        self.config_path = config_path

    @property
    def hosts_path(self) -> str:
        return self.data.get('hosts_path', HOSTS_PATH)

    @property
    def loopback(self) -> str:
        return self.data.get('loopback', LOOPBACK)

    @property
    def denylist_path(self) -> Path:
        return self.config_dir / "urls"

    @property
    def state_path(self) -> Path:
        return self.config_dir / "state.db"

    @property
    def lock_path(self) -> Path:
        return self.config_dir / "hosts.lock"

    @property
    def log_file(self) -> Optional[str]:
        return self.data.get('log_file')

    @property
    def log_level(self) -> str:
        return str(self.data.get('log_level', 'WARNING')).upper()
