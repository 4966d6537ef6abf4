import json
import os

from twilio.request_validator import RequestValidator

from flex_functions.helpers.send_error_message_for_unsupported_media import (
    send_error_message_for_unsupported_media,
)
from flex_functions.utils import twilio_client
from flex_functions.utils.events import get_header, get_method, parse_body
from flex_functions.utils.logger import get_logger
from flex_functions.utils.responses import error403, error500, preflight, send

logger = get_logger("conversation_listener")


def _request_url(event: dict) -> str:
    """Rebuild the public URL Twilio signed the request for."""
    domain = event.get("requestContext", {}).get("domainName") or get_header(event, "host") or ""
    path = event.get("rawPath", "")
    query = event.get("rawQueryString")
    url = f"https://{domain}{path}"
    return f"{url}?{query}" if query else url


def is_valid_twilio_request(event: dict, params: dict, auth_token: str) -> bool:
    signature = get_header(event, "x-twilio-signature")
    if not signature:
        return False

    url = _request_url(event)
    is_valid = RequestValidator(auth_token).validate(url, params, signature)
    if not is_valid:
        logger.warning("conversation_listener.invalid_signature", extra={"url": url.split("?")[0]})
    return is_valid


def lambda_handler(event, context):
    if get_method(event) == "OPTIONS":
        return preflight()

    # Twilio posts webhooks form-encoded.
    try:
        data = parse_body(event)
    except ValueError:
        return send(400, {"message": "Invalid request body", "status": 400})

    try:
        client, conf = twilio_client.get_client()
    except twilio_client.CONFIG_ERRORS as e:
        logger.error("conversation_listener.credentials_error", extra={"error": str(e)})
        return error500(message="server_misconfigured")

    if not is_valid_twilio_request(event, data, conf["auth_token"]):
        return error403("Invalid Twilio signature")

    event_type = data.get("EventType")
    conversation_sid = data.get("ConversationSid")

    logger.info(
        "conversation_listener.event",
        extra={"event_type": event_type, "conversation_sid": conversation_sid},
    )

    if event_type == "onMessageAdded":
        # Media arrives as a JSON-encoded list of media descriptors.
        media = data.get("Media")
        if isinstance(media, str):
            try:
                data["Media"] = json.loads(media)
            except json.JSONDecodeError:
                logger.warning(
                    "conversation_listener.invalid_media",
                    extra={"media_preview": media[:200], "conversation_sid": conversation_sid},
                )

        try:
            send_error_message_for_unsupported_media(client, os.getenv("DOMAIN_NAME", ""), data)
        except Exception as e:
            # Twilio is not blocked on internal errors; just acknowledge receipt.
            logger.error(
                "conversation_listener.unsupported_media_error",
                extra={"error": str(e), "conversation_sid": conversation_sid},
            )

    return send(200, {"ok": True})
