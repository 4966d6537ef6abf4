"""
Twilio Flex token validation.

Flex plugins call these functions with the agent's Flex JWE token in the
`Token` parameter. The token is checked against Twilio's IAM validation
endpoint using the account credentials.
"""

import functools
from typing import Any, Callable, Dict

import requests

from flex_functions.utils import twilio_client
from flex_functions.utils.events import get_method, parse_body
from flex_functions.utils.logger import get_logger
from flex_functions.utils.responses import error403, error500, preflight, send

logger = get_logger("token_validator")

VALIDATION_URL = "https://iam.twilio.com/v1/Accounts/{account_sid}/Tokens/validate"
VALIDATION_TIMEOUT_SECONDS = 10


class TokenValidationError(Exception):
    """Raised when a Flex token is rejected or cannot be validated."""


def validate_token(token: str, account_sid: str, auth_token: str) -> Dict[str, Any]:
    """
    Validate a Flex token and return the validation result
    (identity, realm_user_id, roles, ...).

    Raises TokenValidationError when the token is not valid.
    """
    if not token:
        raise TokenValidationError("Unauthorized: token was not provided.")

    try:
        resp = requests.post(
            VALIDATION_URL.format(account_sid=account_sid),
            json={"token": token},
            auth=(account_sid, auth_token),
            timeout=VALIDATION_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        raise TokenValidationError(f"Token validation request failed: {e}") from e

    if not resp.ok:
        raise TokenValidationError(f"Token validation failed with status {resp.status_code}")

    try:
        result = resp.json()
    except ValueError as e:
        raise TokenValidationError("Token validation returned an invalid response") from e

    if not isinstance(result, dict) or not result.get("valid"):
        message = result.get("message") if isinstance(result, dict) else None
        raise TokenValidationError(message or "Token is not valid")

    return result


def function_validator(handler: Callable[[dict, Any], dict]) -> Callable[[dict, Any], dict]:
    """
    Wrap a Lambda handler so it only runs for requests carrying a valid Flex token.
    CORS preflight requests are answered without validation.
    """

    @functools.wraps(handler)
    def wrapper(event: dict, context: Any) -> dict:
        if get_method(event) == "OPTIONS":
            return preflight()

        try:
            _, conf = twilio_client.get_client()
        except twilio_client.CONFIG_ERRORS as e:
            logger.error("token_validator.credentials_error", extra={"error": str(e)})
            return error500(message="server_misconfigured")

        account_sid = conf.get("account_sid")
        auth_token = conf.get("auth_token")
        if not account_sid or not auth_token:
            return error403("Unauthorized: AccountSid or AuthToken was not provided.")

        try:
            params = parse_body(event)
        except ValueError:
            return send(400, {"message": "Invalid JSON body", "status": 400})

        token = params.get("Token")
        if not token:
            return error403("Unauthorized: token was not provided.")

        try:
            result = validate_token(token, account_sid, auth_token)
        except TokenValidationError as e:
            logger.warning("token_validator.rejected", extra={"error": str(e)})
            return error403(f"Unauthorized: {e}")

        logger.debug("token_validator.accepted", extra={"identity": result.get("identity")})
        return handler(event, context)

    return wrapper
