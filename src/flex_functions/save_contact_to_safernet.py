import hashlib
import hmac
import json
import os
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

import requests

from flex_functions.utils import twilio_client
from flex_functions.utils.events import get_method, parse_body
from flex_functions.utils.logger import get_logger
from flex_functions.utils.responses import error400, error403, error500, preflight, success
from flex_functions.utils.token_validator import TokenValidationError, validate_token

logger = get_logger("save_contact_to_safernet")

SAFERNET_TIMEOUT_SECONDS = 15

# Characters JavaScript's encodeURIComponent leaves untouched besides alphanumerics.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def _load_env() -> Tuple[str, str, str]:
    """
    SAFERNET_ENDPOINT: URL the contact payload is posted to
    SAFERNET_TOKEN: shared secret used to sign the payload
    SAVE_PENDING_CONTACTS_STATIC_KEY: API key accepted instead of a Flex token
    """
    endpoint = os.getenv("SAFERNET_ENDPOINT")
    token = os.getenv("SAFERNET_TOKEN")
    static_key = os.getenv("SAVE_PENDING_CONTACTS_STATIC_KEY")

    missing = [
        name
        for name, value in [
            ("SAFERNET_ENDPOINT", endpoint),
            ("SAFERNET_TOKEN", token),
            ("SAVE_PENDING_CONTACTS_STATIC_KEY", static_key),
        ]
        if not value
    ]
    if missing:
        msg = f"Missing required environment variables: {', '.join(missing)}"
        logger.error(msg)
        raise RuntimeError(msg)

    return endpoint, token, static_key


def is_valid_request(
    params: Dict[str, Any], account_sid: Optional[str], auth_token: Optional[str], static_key: str
) -> bool:
    token = params.get("Token")
    api_key = params.get("ApiKey")

    if token:
        try:
            validate_token(token, account_sid, auth_token)
            return True
        except TokenValidationError as e:
            logger.warning("save_contact_to_safernet.invalid_token", extra={"error": str(e)})
            return False
    elif api_key:
        return hmac.compare_digest(str(api_key), static_key)

    return False


def sign_payload(payload: str, secret: str) -> str:
    encoded = quote(payload, safe=_URI_COMPONENT_SAFE)
    return hmac.new(secret.encode("utf-8"), encoded.encode("utf-8"), hashlib.sha256).hexdigest()


def post_to_safernet(endpoint: str, secret: str, payload: str) -> Dict[str, Any]:
    """
    Post the contact payload to SaferNet and return the decoded response.

    Raises ValueError if the payload is not JSON, and requests.RequestException
    on network errors or non-2xx responses.
    """
    data = json.loads(payload)
    signature = sign_payload(payload, secret)

    resp = requests.post(
        endpoint,
        json=data,
        headers={
            "Content-Type": "application/json",
            "X-Signature": f"sha256={signature}",
        },
        timeout=SAFERNET_TIMEOUT_SECONDS,
    )
    resp.raise_for_status()

    body = resp.json()
    if not isinstance(body, dict):
        raise ValueError(f"Unexpected SaferNet response: {body!r}")
    return body


def lambda_handler(event, context):
    if get_method(event) == "OPTIONS":
        return preflight()

    try:
        endpoint, secret, static_key = _load_env()
    except RuntimeError:
        return error500(message="server_misconfigured")

    try:
        params = parse_body(event)
    except ValueError:
        params = {}

    account_sid = auth_token = None
    if params.get("Token"):
        # Twilio credentials are only needed to validate Flex tokens.
        try:
            _, conf = twilio_client.get_client()
        except twilio_client.CONFIG_ERRORS as e:
            logger.error("save_contact_to_safernet.credentials_error", extra={"error": str(e)})
            return error500(message="server_misconfigured")
        account_sid, auth_token = conf["account_sid"], conf["auth_token"]

    if not is_valid_request(params, account_sid, auth_token, static_key):
        return error403("No AccessToken or ApiKey was found")

    payload = params.get("payload")
    if payload is None:
        return error400("payload")
    if not isinstance(payload, str):
        logger.warning("save_contact_to_safernet.invalid_payload", extra={"payload_type": type(payload).__name__})
        return error500(message="payload must be a JSON-encoded string")

    try:
        safernet_response = post_to_safernet(endpoint, secret, payload)
    except (requests.RequestException, ValueError, TypeError) as e:
        logger.warning("save_contact_to_safernet.request_error", extra={"error": str(e)})
        return error500(e)

    if safernet_response.get("success"):
        logger.info("save_contact_to_safernet.saved")
        return success(safernet_response.get("post_survey_link"))

    error_message = safernet_response.get("error_message") or "SaferNet request failed"
    logger.warning("save_contact_to_safernet.rejected", extra={"error": error_message})
    return error500(message=error_message)
