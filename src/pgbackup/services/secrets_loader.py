"""Transient loading of database secrets."""

import logging
import os
import stat
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from dotenv import dotenv_values

from pgbackup.constants import SECRETS_FORBIDDEN_MODE_BITS
from pgbackup.errors import BackupError
from pgbackup.errors_catalog import actionable_error


class Secrets:
    """In-memory view of a secrets file, never exported to ``os.environ``."""

    def __init__(self, path: str, values: Dict[str, Optional[str]]):
        self.path = path
        self._values = {key: value for key, value in values.items() if value is not None}

    def require(self, key: str) -> str:
        value = (self._values.get(key) or "").strip()
        if not value:
            raise BackupError(actionable_error("secret_missing", key=key, path=self.path))
        return value

    def clear(self):
        self._values.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __repr__(self) -> str:
        return f"Secrets(path={self.path!r}, keys={sorted(self._values)!r})"


class SecretsLoader:
    """Reads KEY=VALUE secrets files with python-dotenv."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def load(self, secrets_path: str) -> Secrets:
        path = os.path.expanduser(secrets_path)
        if not os.path.isfile(path):
            raise BackupError(actionable_error("secrets_file_not_found", path=path))

        self._warn_if_exposed(path)

        try:
            values = dotenv_values(path, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise BackupError(f"Could not read secrets file '{path}': {exc}") from exc

        self.logger.debug("Loaded %s secret(s) from %s", len(values), path)
        return Secrets(path, values)

    @contextmanager
    def scoped(self, secrets_path: str) -> Iterator[Secrets]:
        secrets = self.load(secrets_path)
        try:
            yield secrets
        finally:
            secrets.clear()

    def _warn_if_exposed(self, path: str):
        if os.name == "nt":
            return
        mode = stat.S_IMODE(os.stat(path).st_mode)
        if mode & SECRETS_FORBIDDEN_MODE_BITS:
            self.logger.warning(
                "Secrets file %s is accessible by other users (mode %o). Run `chmod 600 %s`.",
                path,
                mode,
                path,
            )
