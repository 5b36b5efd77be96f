"""SSM Parameter Store helpers."""

from functools import lru_cache

import boto3
from aws_lambda_powertools import Logger

from .exceptions import ConfigurationError

logger = Logger(child=True)

# SSM Parameter name for the upstream model API key
CLAUDE_API_KEY_PARAM = "/qtune/dev/secrets/anthropic_api_key"


@lru_cache(maxsize=4)
def get_claude_api_key(param_name: str | None = None) -> str:
    """Retrieve the upstream API key from SSM Parameter Store.

    The key only ever lives in the proxy; clients never see it.
    Cached for the lifetime of the Lambda container.

    Args:
        param_name: Parameter name, usually ``Config.claude_api_key_param``.
            Defaults to the dev parameter.

    Returns:
        The API key string

    Raises:
        ConfigurationError: If the parameter is empty
        ClientError: If SSM parameter not found
    """
    param_name = param_name or CLAUDE_API_KEY_PARAM

    client = boto3.client("ssm")
    response = client.get_parameter(Name=param_name, WithDecryption=True)
    value = response["Parameter"]["Value"]
    if not value:
        raise ConfigurationError(
            f"SSM parameter {param_name} is empty", config_key="CLAUDE_API_KEY_PARAM"
        )
    logger.info("Retrieved API key from SSM Parameter Store")
    return value
