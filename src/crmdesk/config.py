"""crmdesk configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class CRMDeskSettings(BaseSettings):
    # Hosted record platform
    api_url: str = "https://api.apper.io"
    project_id: str = ""
    public_key: str = ""
    timeout_seconds: float = 30.0

    # Contacts CSV export target (relative paths resolve against the project dir)
    export_dir: str = "data/exports"

    log_level: str = "INFO"

    model_config = {"env_prefix": "CRMDESK_", "env_file": ".env", "extra": "ignore"}

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent

    @property
    def project_dir(self) -> Path:
        return self.base_dir.parent.parent

    @property
    def exports_dir(self) -> Path:
        path = Path(self.export_dir)
        if not path.is_absolute():
            path = self.project_dir / path
        return path

    @property
    def configured(self) -> bool:
        return bool(self.project_id and self.public_key)


settings = CRMDeskSettings()
