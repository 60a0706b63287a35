"""Settings source for secrets mounted as files (Docker or Kubernetes)."""

import os
from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic.fields import FieldInfo
from pydantic_settings import PydanticBaseSettingsSource

logger = structlog.stdlib.get_logger(__name__)

SECRET_FILE_SUFFIX = "_FILE"


def read_secret_file(path: str) -> Optional[str]:
    """Stripped contents of a secret file, None when it cannot be read."""
    try:
        return Path(path).read_text().strip()
    except OSError as e:
        logger.warning("Could not read secret file", path=path, error=str(e))
        return None


class DockerSecretsSettingsSource(PydanticBaseSettingsSource):
    """Fill settings from the files named by `<SETTING>_FILE` variables.

    `GITHUB_TOKEN_FILE=/run/secrets/github_token` fills `GITHUB_TOKEN`.
    Unreadable files are logged and skipped, leaving the setting to the
    sources after this one.
    """

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        path = os.environ.get(field_name + SECRET_FILE_SUFFIX)
        if not path:
            return None, field_name, False
        return read_secret_file(path), field_name, False

    def __call__(self) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for field_name, field in self.settings_cls.model_fields.items():
            value, key, _ = self.get_field_value(field, field_name)
            if value is not None:
                values[key] = value
        return values
