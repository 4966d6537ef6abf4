import os
import json

import boto3

from flex_functions.utils.logger import get_logger

logger = get_logger("secrets")


def _get_secret_name_and_region() -> tuple[str, str]:
    """
    Resolve the Twilio secret name and AWS region from environment variables.

    TWILIO_SECRET_NAME is required (passed in via the TwilioSecretName stack parameter).
    AWS_REGION is optional; defaults to us-east-1 if not set.
    """
    secret_name = os.getenv("TWILIO_SECRET_NAME")
    region_name = os.getenv("AWS_REGION", "us-east-1")

    if not secret_name:
        msg = "Missing required environment variables: TWILIO_SECRET_NAME"
        logger.error(msg)
        raise RuntimeError(msg)

    return secret_name, region_name


def get_twilio_secrets() -> dict:
    """
    Fetch Twilio account credentials from AWS Secrets Manager.

    Expects the secret value to be a JSON object, e.g.:

        {
          "account_sid": "AC...",
          "auth_token": "..."
        }
    """
    secret_name, region_name = _get_secret_name_and_region()

    logger.info(
        "secrets.fetch",
        extra={"secret_name": secret_name, "region": region_name},
    )

    client = boto3.client("secretsmanager", region_name=region_name)

    resp = client.get_secret_value(SecretId=secret_name)
    secret_str = resp.get("SecretString")

    if not secret_str:
        msg = f"Secret '{secret_name}' has no SecretString payload"
        logger.error(msg)
        raise RuntimeError(msg)

    try:
        data = json.loads(secret_str)
    except json.JSONDecodeError as e:
        logger.error(
            "secrets.invalid_json",
            extra={"secret_name": secret_name, "error": str(e)},
        )
        raise

    missing = [field for field in ("account_sid", "auth_token") if not data.get(field)]
    if missing:
        msg = f"Missing Twilio secrets: {', '.join(missing)}"
        logger.error(msg, extra={"secret_name": secret_name})
        raise RuntimeError(msg)

    return data
