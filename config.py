import os
import yaml

from settings_schema import SettingsSchema, validate_settings

APP_VERSION = "1.0.0"


class YamlConfig:
    """Load and save settings to a YAML file."""

    ENV_OVERRIDES = {
        "REPQUEST_DB": "db_path",
    }

    def __init__(self, path: str = "settings.yaml") -> None:
        self.path = path

    def load(self) -> dict:
        if not os.path.exists(self.path):
            data = {}
        else:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        for env_key, key in self.ENV_OVERRIDES.items():
            value = os.environ.get(env_key)
            if value:
                data[key] = value
        return data

    def save(self, data: dict) -> None:
        out = dict(data)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(out, f)

    def settings(self) -> SettingsSchema:
        """Return the validated settings, defaults filled in."""
        return validate_settings(self.load())
