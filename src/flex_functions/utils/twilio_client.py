import json
from functools import lru_cache
from typing import Tuple

from botocore.exceptions import ClientError
from twilio.rest import Client as TwilioClient

from flex_functions.utils.logger import get_logger
from flex_functions.utils.secrets import get_twilio_secrets

logger = get_logger("twilio_client")

# Raised while loading credentials: missing env/secret fields, Secrets Manager errors, bad secret JSON.
CONFIG_ERRORS = (RuntimeError, ClientError, json.JSONDecodeError)


def build_client() -> Tuple[TwilioClient, dict]:
    """
    Build and return a Twilio client plus the credentials it was built from.

    Returns:
        (client, conf) where:
          - client: twilio.rest.Client
          - conf: dict with {"account_sid": "...", "auth_token": "..."}
    """
    secrets = get_twilio_secrets()

    account_sid = secrets["account_sid"]
    auth_token = secrets["auth_token"]

    client = TwilioClient(account_sid, auth_token)
    logger.info("twilio_client.initialized", extra={"account_sid": account_sid})

    conf = {
        "account_sid": account_sid,
        # Also needed for Flex token and webhook signature validation.
        "auth_token": auth_token,
    }

    return client, conf


@lru_cache(maxsize=1)
def get_client() -> Tuple[TwilioClient, dict]:
    """Build the Twilio client once per container and reuse it across invocations."""
    return build_client()
