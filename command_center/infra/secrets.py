"""Secrets management with Vault and AWS Secrets Manager support."""

import json
import logging
import os
from typing import Optional

from command_center.infra.config import config

# Vault and AWS clients are optional extras
try:
    import hvac
    HAS_VAULT = True
except ImportError:
    HAS_VAULT = False

try:
    import boto3
    HAS_AWS = True
except ImportError:
    HAS_AWS = False

logger = logging.getLogger("command_center.secrets")


class SecretsManager:
    """Resolves tenant credentials from Vault, AWS Secrets Manager or the environment."""

    def __init__(self):
        self.vault_client = None
        self.aws_client = None
        self._init_vault()
        self._init_aws()

    def _init_vault(self):
        """Initialize HashiCorp Vault client if configured."""
        if not HAS_VAULT:
            return

        vault_url = config.VAULT_ADDR
        vault_token = config.VAULT_TOKEN

        if vault_url and vault_token:
            try:
                self.vault_client = hvac.Client(url=vault_url, token=vault_token)
                self.vault_client.is_authenticated()
            except Exception as e:
                logger.warning("Vault unavailable, vault:// references will not resolve", extra={"error": str(e)})
                self.vault_client = None

    def _init_aws(self):
        """Initialize AWS Secrets Manager client if configured."""
        if not HAS_AWS:
            return

        aws_region = config.AWS_REGION
        if aws_region:
            try:
                self.aws_client = boto3.client("secretsmanager", region_name=aws_region)
            except Exception as e:
                logger.warning("AWS Secrets Manager unavailable", extra={"error": str(e)})
                self.aws_client = None

    def get_secret(self, secret_ref: str) -> Optional[str]:
        """
        Get secret from a reference or return the value as-is.

        Supports:
        - vault://secret/path/key - HashiCorp Vault
        - aws://secret-name/key - AWS Secrets Manager
        - env://VAR_NAME - Environment variable
        - Direct value (if not a reference)
        """
        if not secret_ref:
            return None

        if not secret_ref.startswith(("vault://", "aws://", "env://")):
            return secret_ref

        if secret_ref.startswith("vault://"):
            return self._get_vault_secret(secret_ref)

        if secret_ref.startswith("aws://"):
            return self._get_aws_secret(secret_ref)

        return os.getenv(secret_ref[len("env://"):])

    def _get_vault_secret(self, vault_ref: str) -> Optional[str]:
        """Get secret from HashiCorp Vault."""
        if not self.vault_client:
            return None

        # vault://secret/path/key
        parts = vault_ref[len("vault://"):].split("/")
        if len(parts) < 2:
            return None

        secret_path = "/".join(parts[:-1])
        key = parts[-1]

        try:
            response = self.vault_client.secrets.kv.v2.read_secret_version(path=secret_path)
        except Exception as e:
            logger.warning("Vault lookup failed", extra={"secret_path": secret_path, "error": str(e)})
            return None
        data = response.get("data", {}).get("data", {})
        return data.get(key)

    def _get_aws_secret(self, aws_ref: str) -> Optional[str]:
        """Get secret from AWS Secrets Manager."""
        if not self.aws_client:
            return None

        # aws://secret-name/key
        parts = aws_ref[len("aws://"):].split("/")
        if len(parts) < 2:
            return None

        secret_name = parts[0]
        key = "/".join(parts[1:])

        try:
            response = self.aws_client.get_secret_value(SecretId=secret_name)
        except Exception as e:
            logger.warning("AWS secret lookup failed", extra={"secret_name": secret_name, "error": str(e)})
            return None
        secret_data = json.loads(response.get("SecretString", "{}"))
        return secret_data.get(key)


# Global secrets manager instance
secrets_manager = SecretsManager()


def get_secret(secret_ref: str, fallback: Optional[str] = None) -> Optional[str]:
    """
    Convenience function to get a secret.

    Args:
        secret_ref: Secret reference (vault://, aws://, env://) or direct value
        fallback: Fallback value if secret not found

    Returns:
        Secret value or fallback
    """
    value = secrets_manager.get_secret(secret_ref)
    return value if value is not None else fallback
