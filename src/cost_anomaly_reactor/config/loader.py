"""Configuration loader for Cost Anomaly Reactor."""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path

import boto3
import yaml
from botocore.exceptions import ClientError

from cost_anomaly_reactor.config.schema import Config


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir() -> Path:
    """Find the config directory, searching up from current directory."""
    if config_dir := os.environ.get("CONFIG_DIR"):
        return Path(config_dir)

    current = Path.cwd()
    while current != current.parent:
        config_path = current / "config"
        if config_path.is_dir():
            return config_path
        current = current.parent

    return Path("config")


def load_config(
    config_path: str | Path | None = None,
    environment: str | None = None,
) -> Config:
    """
    Load configuration from YAML files.

    Loads config.yaml as base, then merges environment-specific overrides
    (e.g., config.dev.yaml, config.prod.yaml), then environment variables.

    Args:
        config_path: Path to config directory. If None, searches for config/ directory.
        environment: Environment name (dev, staging, prod). If None, uses CONFIG_ENV
                    environment variable or defaults to 'dev'.

    Returns:
        Config: Validated configuration object.
    """
    config_dir = Path(config_path) if config_path else _find_config_dir()
    environment = environment or os.environ.get("CONFIG_ENV", "dev")

    base_config_path = config_dir / "config.yaml"
    config_data: dict = {}

    if base_config_path.exists():
        with open(base_config_path) as f:
            config_data = yaml.safe_load(f) or {}

    env_config_path = config_dir / f"config.{environment}.yaml"
    if env_config_path.exists():
        with open(env_config_path) as f:
            env_data = yaml.safe_load(f) or {}
            config_data = _deep_merge(config_data, env_data)

    config_data = _apply_env_overrides(config_data)
    config_data["environment"] = environment

    return Config(**config_data)


def _apply_env_overrides(config_data: dict) -> dict:
    """Apply environment variable overrides to configuration."""
    env_mappings = {
        "AWS_REGION": ("aws", "region"),
        "AWS_ACCOUNT_ID": ("aws", "account_id"),
        "SLACK_CHANNEL": ("slack", "channel"),
        "SLACK_BOT_TOKEN": ("slack", "bot_token"),
        "SLACK_TOKEN": ("slack", "bot_token"),  # Takes precedence over SLACK_BOT_TOKEN
        "SLACK_SIGNING_SECRET": ("slack", "signing_secret"),
        "CONFIG_SECRET_NAME": ("slack", "secret_name"),
        "NO_ERROR_REPORT": ("slack", "no_error_report"),
        "DYNAMODB_TABLE_NAME": ("dynamodb", "table_name"),
        "TABLE_NAME": ("dynamodb", "table_name"),
    }

    for env_var, path in env_mappings.items():
        if value := os.environ.get(env_var):
            current = config_data
            for key in path[:-1]:
                current = current.setdefault(key, {})

            final_key = path[-1]
            if final_key in ("no_error_report",):
                current[final_key] = value.lower() in ("true", "1", "yes")
            else:
                current[final_key] = value

    return config_data


def load_slack_secret(
    secret_name: str,
    secrets_client: boto3.client | None = None,
) -> dict[str, str]:
    """
    Load Slack credentials from Secrets Manager.

    Args:
        secret_name: Name of a JSON secret with bot_token and signing_secret.
        secrets_client: Optional boto3 Secrets Manager client.

    Returns:
        Parsed secret, or an empty dict if the secret does not exist.
    """
    if secrets_client is None:
        secrets_client = boto3.client("secretsmanager")

    try:
        response = secrets_client.get_secret_value(SecretId=secret_name)
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "")
        if error_code == "ResourceNotFoundException":
            print(f"Slack secret {secret_name} not found")
            return {}
        raise
    return json.loads(response["SecretString"])


def resolve_slack_credentials(config: Config, secrets_client: boto3.client | None = None) -> Config:
    """Fill missing Slack bot token / signing secret from Secrets Manager."""
    slack = config.slack
    if (slack.bot_token and slack.signing_secret) or not slack.secret_name:
        return config

    secret = load_slack_secret(slack.secret_name, secrets_client)
    updated = slack.model_copy(
        update={
            "bot_token": slack.bot_token or secret.get("bot_token"),
            "signing_secret": slack.signing_secret or secret.get("signing_secret"),
        }
    )
    return config.model_copy(update={"slack": updated})


def resolve_account_id(config: Config, sts_client: boto3.client | None = None) -> Config:
    """
    Fill a missing AWS account ID from STS GetCallerIdentity.

    Args:
        config: Loaded configuration.
        sts_client: Optional boto3 STS client.

    Returns:
        Config with aws.account_id set, or unchanged if the lookup fails.
    """
    if config.aws.account_id:
        return config

    if sts_client is None:
        sts_client = boto3.client("sts", region_name=config.aws.region)

    try:
        account_id = sts_client.get_caller_identity()["Account"]
    except ClientError as e:
        print(f"Could not get caller identity: {e}")
        return config

    return config.model_copy(update={"aws": config.aws.model_copy(update={"account_id": account_id})})


@lru_cache(maxsize=1)
def get_cached_config() -> Config:
    """
    Get cached configuration singleton.

    Useful for Lambda handlers to avoid re-loading config on warm starts.
    """
    return resolve_account_id(resolve_slack_credentials(load_config()))
