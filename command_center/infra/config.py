"""Configuration management with secrets support."""

import os
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from project root
project_root = Path(__file__).parent.parent.parent
env_file = project_root / ".env"

# override=False means existing environment variables take precedence
load_dotenv(dotenv_path=env_file, override=False)


# Lazy import to avoid circular dependencies
def get_secret_lazy(secret_ref: str, fallback: Optional[str] = None) -> Optional[str]:
    """Lazy import of get_secret to avoid circular dependencies."""
    from command_center.infra.secrets import get_secret
    return get_secret(secret_ref, fallback)


def read_setting(name: str) -> Optional[str]:
    """
    Read a setting that may be given directly or as a secret reference.

    ``<NAME>_REF`` (vault://, aws://, env://) wins over ``<NAME>``.
    """
    return get_secret_lazy(os.getenv(f"{name}_REF", ""), fallback=os.getenv(name))


class Config:
    """Application configuration."""
    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Vault configuration (optional)
    VAULT_ADDR: Optional[str] = os.getenv("VAULT_ADDR")
    VAULT_TOKEN: Optional[str] = os.getenv("VAULT_TOKEN")

    # AWS configuration (optional)
    AWS_REGION: Optional[str] = os.getenv("AWS_REGION")

    # Tenant backends
    BACKEND_TIMEOUT_SECONDS: float = float(os.getenv("BACKEND_TIMEOUT_SECONDS", "10"))
    BRAIN_DATA_TIMEOUT_SECONDS: float = float(os.getenv("BRAIN_DATA_TIMEOUT_SECONDS", "20"))
    REQUEST_TIMEOUT_SECONDS: int = int(os.getenv("REQUEST_TIMEOUT_SECONDS", "60"))


config = Config()
