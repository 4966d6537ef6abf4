import base64
import json
from typing import Any, Dict, Optional
from urllib.parse import parse_qs

from flex_functions.utils.logger import get_logger

logger = get_logger("events")


def get_method(event: dict) -> str:
    return event.get("requestContext", {}).get("http", {}).get("method", "POST").upper()


def get_header(event: dict, name: str) -> Optional[str]:
    # API Gateway HTTP APIs lowercase header names, but direct invocations may not.
    headers = event.get("headers") or {}
    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def parse_body(event: dict) -> Dict[str, Any]:
    """
    Extract the request parameters from the Lambda event.

    - JSON bodies (Flex plugin calls) are decoded as JSON.
    - Form-encoded bodies (Twilio webhooks) are flattened:
      {'MessageSid': ['SM...']} becomes {'MessageSid': 'SM...'}.
    - For direct tests the body may already be a dict.

    Raises ValueError when a JSON body cannot be decoded.
    """
    body = event.get("body")

    if isinstance(body, dict):
        return body
    if not body:
        return {}

    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")

    content_type = get_header(event, "content-type") or ""

    if "application/x-www-form-urlencoded" in content_type:
        parsed = parse_qs(body, keep_blank_values=True)
        return {k: v[0] for k, v in parsed.items() if v}

    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        logger.warning("events.invalid_json", extra={"body_preview": body[:200]})
        raise ValueError("Request body is not valid JSON")

    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data
