"""Picks where the SimpleFIN access credential comes from for a run."""

from __future__ import annotations

import logging

import boto3

from monies.auth import SetupTokenResolver
from monies.config import RunConfig
from monies.models.auth import AccessCredential
from monies.services.aws_session import AwsSessionProvider
from monies.services.secrets import SecretsStore
from monies.services.sso_config import SsoConfigLoader
from monies.utils.cache import FileCredentialCache

logger = logging.getLogger(__name__)


def build_session_provider(run_config: RunConfig) -> AwsSessionProvider:
    return AwsSessionProvider(
        run_config.effective_sso_profile,
        loader=SsoConfigLoader(run_config.aws_config_file, fallback_region=run_config.settings.region),
        cache=FileCredentialCache(run_config.aws_dir),
    )


def build_aws_session(run_config: RunConfig) -> boto3.Session:
    """SSO-backed session when a profile is configured, else the default chain."""
    if run_config.effective_sso_profile:
        return build_session_provider(run_config).get_session()
    return boto3.Session(region_name=run_config.settings.region)


def build_secrets_store(run_config: RunConfig) -> SecretsStore:
    return SecretsStore(build_aws_session(run_config))


def resolve_access_credential(run_config: RunConfig) -> AccessCredential:
    """Resolve the access credential from a setup token or Secrets Manager.

    Secrets Manager wins when both are given, so a single-use setup token
    is never claimed needlessly.

    Raises:
        ValueError: Neither source is configured.
    """
    if run_config.use_secrets:
        name = run_config.effective_secret_name
        if not name:
            raise ValueError("Secret name is required when using AWS Secrets Manager")
        logger.info(f"Retrieving access credential from secret {name}")
        return build_secrets_store(run_config).retrieve(name)

    if run_config.setup_token:
        logger.info("Resolving access credential from setup token")
        resolver = SetupTokenResolver(timeout=run_config.settings.http_timeout)
        try:
            return resolver.resolve(run_config.setup_token)
        finally:
            resolver.close()

    raise ValueError("A setup token is required when not using AWS Secrets Manager (--setup-token or --use-secrets)")
