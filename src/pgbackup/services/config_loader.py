"""YAML defaults for the pgbackup command line."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from pgbackup.constants import ON_CONFLICT_CHOICES
from pgbackup.errors import BackupError


class ConfigLoader:
    """Loads and type-checks the ``.pgbackup.yml`` defaults file.

    Credentials are not accepted here; they come from the secrets file.
    """

    STRING_KEYS = ("container", "staging_path")
    PATH_KEYS = ("backup_dir", "secrets_file", "log_file")
    FLAG_KEYS = ("clean", "verbose")
    CHOICE_KEYS = {"on_conflict": ON_CONFLICT_CHOICES}

    SUPPORTED_KEYS = set(STRING_KEYS) | set(PATH_KEYS) | set(FLAG_KEYS) | set(CHOICE_KEYS)

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.is_file():
            raise BackupError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise BackupError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise BackupError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(str(key) for key in set(parsed) - self.SUPPORTED_KEYS)
        if unknown:
            raise BackupError(f"Unknown configuration keys: {', '.join(unknown)}")

        return {key: self._validate(config_path, key, value) for key, value in parsed.items()}

    def _validate(self, config_path: str, key: str, value: Any) -> Any:
        if value is None:
            raise BackupError(f"{config_path}: `{key}` has no value.")

        if key in self.FLAG_KEYS:
            # YAML strings such as "false" would otherwise turn truthy.
            if not isinstance(value, bool):
                raise BackupError(f"{config_path}: `{key}` must be true or false, got {value!r}.")
            return value

        if not isinstance(value, str) or not value.strip():
            raise BackupError(f"{config_path}: `{key}` must be a non-empty string, got {value!r}.")
        value = value.strip()

        if key in self.CHOICE_KEYS and value not in self.CHOICE_KEYS[key]:
            choices = ", ".join(self.CHOICE_KEYS[key])
            raise BackupError(f"{config_path}: `{key}` must be one of {choices}, got {value!r}.")

        if key in self.PATH_KEYS:
            return os.path.expanduser(value)
        return value
