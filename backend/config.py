"""
Service configuration.
Loaded once from the environment (and a local .env file) at startup.
"""
from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class ServiceConfig(BaseModel):
    database_url: str = ""
    contacts_collection: str = "contacts"
    pending_collection: str = "pending_contacts"
    port: int = 8080

    read_secret: str = ""
    intake_secret: str = ""
    caller_registry_token: str = ""
    caller_init_token_v2: str = ""

    submitted_by_default: str = "sms-intake"
    client_data_config_override: bool = False
    run_migrations: bool = True

    def client_data_token(self) -> str:
        """Expected token for the call-context webhook: first non-empty candidate wins."""
        for candidate in (
            self.caller_registry_token,
            self.caller_init_token_v2,
            self.read_secret,
            self.intake_secret,
        ):
            if candidate:
                return candidate
        return ""


def load_config(env_file: Optional[str] = None) -> ServiceConfig:
    """Build a ServiceConfig from environment variables."""
    load_dotenv(env_file)

    return ServiceConfig(
        database_url=os.getenv("DATABASE_URL", ""),
        contacts_collection=os.getenv("CONTACTS_COLLECTION") or "contacts",
        pending_collection=os.getenv("PENDING_CONTACTS_COLLECTION") or "pending_contacts",
        port=int(os.getenv("PORT") or 8080),
        read_secret=os.getenv("READ_SECRET", ""),
        intake_secret=os.getenv("INTAKE_SECRET", ""),
        caller_registry_token=os.getenv("CALLER_REGISTRY_TOKEN", ""),
        caller_init_token_v2=os.getenv("CALLER_INIT_TOKEN_V2", ""),
        submitted_by_default=os.getenv("SUBMITTED_BY_DEFAULT") or "sms-intake",
        client_data_config_override=_env_flag("CLIENT_DATA_CONFIG_OVERRIDE", False),
        run_migrations=_env_flag("RUN_MIGRATIONS", True),
    )
