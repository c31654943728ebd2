"""Configuration management for treemirror."""

import os
from pathlib import Path
from typing import Optional

DEFAULT_API_URL = "http://localhost:8765/api/v1"


class Config:
    """Settings resolved from the environment and the config file.

    Environment variables take precedence over ``~/.config/treemirror/config``.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self._config_path = config_path

    def get_config_path(self) -> Path:
        """Return the path of the config file."""
        if self._config_path is not None:
            return self._config_path
        return Path.home() / ".config" / "treemirror" / "config"

    def _read_file(self) -> dict[str, str]:
        path = self.get_config_path()
        values: dict[str, str] = {}
        if not path.exists():
            return values
        with open(path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                values[key.strip()] = value.strip()
        return values

    @property
    def api_url(self) -> str:
        """Base URL of the device bridge API."""
        return (
            os.environ.get("TREEMIRROR_API_URL")
            or self._read_file().get("TREEMIRROR_API_URL")
            or DEFAULT_API_URL
        )

    @property
    def api_key(self) -> Optional[str]:
        """API key for the device bridge, if it requires one."""
        return os.environ.get("TREEMIRROR_API_KEY") or self._read_file().get(
            "TREEMIRROR_API_KEY"
        )

    def is_configured(self) -> bool:
        """Check whether a config file has been written."""
        return self.get_config_path().exists()

    def save(self, api_url: str, api_key: Optional[str] = None) -> None:
        """Write settings to the config file.

        Args:
            api_url: Base URL of the device bridge API
            api_key: Optional API key
        """
        path = self.get_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = [f"TREEMIRROR_API_URL={api_url}"]
        if api_key:
            lines.append(f"TREEMIRROR_API_KEY={api_key}")
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        path.chmod(0o600)


config = Config()
