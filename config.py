import os
import yaml
import keyring

from settings_schema import SettingsSchema, validate_settings

APP_VERSION = "1.0.0"

# environment variable -> settings field
ENV_OVERRIDES = {
    "DB_PATH": "db_path",
    "LIFTLOG_USER_ID": "user_id",
}


class YamlConfig:
    """Settings file backed by YAML; secrets can live in the system keyring."""

    SENSITIVE_KEYS = frozenset({"api_key"})
    KEYRING_SERVICE = "liftlog"

    def __init__(self, path: str = "settings.yaml") -> None:
        self.path = path
        self.encrypt = os.environ.get("ENCRYPT_SETTINGS") == "1"

    def _read_secret(self, key: str):
        return keyring.get_password(self.KEYRING_SERVICE, key)

    def load(self) -> dict:
        """Return the raw mapping stored at ``path`` (empty when absent)."""
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            return {}
        if not self.encrypt:
            return data
        for key in self.SENSITIVE_KEYS & data.keys():
            secret = self._read_secret(key)
            if secret is None:
                # placeholder without a stored secret
                del data[key]
            else:
                data[key] = secret
        return data

    def save(self, data: dict) -> None:
        """Write ``data``; with encryption on, secrets go to the keyring."""
        stored = dict(data)
        if self.encrypt:
            for key in self.SENSITIVE_KEYS:
                value = stored.get(key)
                if value is None:
                    continue
                keyring.set_password(self.KEYRING_SERVICE, key, str(value))
                stored[key] = True
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(stored, f)


def load_settings(path: str = "settings.yaml") -> SettingsSchema:
    """Return validated settings from ``path`` merged over the defaults.

    ``DB_PATH`` and ``LIFTLOG_USER_ID`` in the environment win over the file.
    """
    data = YamlConfig(path).load()
    for env_key, field in ENV_OVERRIDES.items():
        if os.environ.get(env_key):
            data[field] = os.environ[env_key]
    return validate_settings(data)


def save_settings(settings: SettingsSchema, path: str = "settings.yaml") -> None:
    """Persist ``settings`` leaving unset secrets out of the file."""
    data = settings.model_dump()
    for key in YamlConfig.SENSITIVE_KEYS:
        if data.get(key) is None:
            data.pop(key, None)
    YamlConfig(path).save(data)
