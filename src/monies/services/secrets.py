"""AWS Secrets Manager storage for the SimpleFIN access credential."""

from __future__ import annotations

import json
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from monies.models.auth import AccessCredential
from monies.utils.errors import SecretsError

logger = logging.getLogger(__name__)

SECRET_DESCRIPTION = "SimpleFIN access token for monies"


class SecretsStore:
    """Create/read/delete/list SimpleFIN credentials in Secrets Manager."""

    def __init__(self, session: boto3.Session | None = None) -> None:
        session = session or boto3.Session()
        self._client = session.client("secretsmanager")

    def store(self, name: str, credential: AccessCredential) -> None:
        """Create the secret, or overwrite it if it already exists."""
        payload = credential.model_dump_json(by_alias=True)
        try:
            self._client.create_secret(
                Name=name,
                SecretString=payload,
                Description=SECRET_DESCRIPTION,
            )
            logger.info(f"Created secret {name}")
            return
        except (BotoCoreError, ClientError) as create_error:
            try:
                self._client.update_secret(SecretId=name, SecretString=payload)
            except (BotoCoreError, ClientError) as update_error:
                raise SecretsError(
                    f"Failed to create or update secret '{name}': "
                    f"create error: {create_error}, update error: {update_error}"
                ) from update_error
        logger.info(f"Updated secret {name}")

    def retrieve(self, name: str) -> AccessCredential:
        try:
            result = self._client.get_secret_value(SecretId=name)
        except (BotoCoreError, ClientError) as e:
            raise SecretsError(f"Failed to get secret value for '{name}': {e}") from e

        secret_string = result.get("SecretString")
        if secret_string is None:
            raise SecretsError(f"Secret '{name}' has no SecretString")

        try:
            return AccessCredential.model_validate(json.loads(secret_string))
        except (ValueError, ValidationError) as e:
            raise SecretsError(f"Secret '{name}' is not a valid access credential: {e}") from e

    def delete(self, name: str) -> None:
        """Delete immediately, with no recovery window."""
        try:
            self._client.delete_secret(SecretId=name, ForceDeleteWithoutRecovery=True)
        except (BotoCoreError, ClientError) as e:
            raise SecretsError(f"Failed to delete secret '{name}': {e}") from e

    def list_secrets(self, prefix: str = "") -> list[str]:
        """Secret names containing ``prefix`` (all secrets when empty)."""
        kwargs: dict[str, object] = {}
        if prefix:
            kwargs["Filters"] = [{"Key": "name", "Values": [prefix]}]

        names: list[str] = []
        try:
            for page in self._client.get_paginator("list_secrets").paginate(**kwargs):
                for secret in page.get("SecretList", []):
                    name = secret.get("Name")
                    if name and (not prefix or prefix in name):
                        names.append(name)
        except (BotoCoreError, ClientError) as e:
            raise SecretsError(f"Failed to list secrets: {e}") from e
        return names
