from typing import Any, Dict, Optional, TypedDict

import requests

from flex_functions.utils.logger import get_logger

logger = get_logger("unsupported_media")

FALLBACK_ERROR_MESSAGE = "Unsupported message type."
ERROR_MESSAGE_TRANSLATION_KEY = "UnsupportedMediaErrorMsg"
DEFAULT_HELPLINE_LANGUAGE = "en-US"
TRANSLATION_TIMEOUT_SECONDS = 5


class OnMessageAddedEvent(TypedDict, total=False):
    EventType: str  # always "onMessageAdded"
    Body: str
    ConversationSid: str  # CH...
    Media: Any
    DateCreated: str


def send_conversation_message(
    client,
    conversation_sid: str,
    author: str,
    message_text: str,
    message_attributes: Optional[str] = None,
):
    kwargs: Dict[str, Any] = {
        "body": message_text,
        "author": author,
        "x_twilio_webhook_enabled": "true",
    }
    if message_attributes:
        kwargs["attributes"] = message_attributes

    return client.conversations.conversations(conversation_sid).messages.create(**kwargs)


def _fetch_translated_message(domain_name: str, helpline_language: str, conversation_sid: str) -> Optional[str]:
    url = f"https://{domain_name}/translations/{helpline_language}/messages.json"
    try:
        resp = requests.get(url, timeout=TRANSLATION_TIMEOUT_SECONDS)
        resp.raise_for_status()
        translation = resp.json()
    except (requests.RequestException, ValueError):
        logger.warning(
            f"Couldn't retrieve {ERROR_MESSAGE_TRANSLATION_KEY} message translation for {helpline_language}",
            extra={"conversation_sid": conversation_sid, "url": url},
        )
        return None

    translated = translation.get(ERROR_MESSAGE_TRANSLATION_KEY) if isinstance(translation, dict) else None
    logger.debug(
        "unsupported_media.translated_message",
        extra={"translated_message": translated, "conversation_sid": conversation_sid},
    )
    return translated or None


def send_error_message_for_unsupported_media(client, domain_name: str, event: OnMessageAddedEvent) -> Optional[str]:
    """
    Reply with an error message when an incoming message has neither a text
    body nor media, which is how Twilio delivers a message whose content it
    could not process.

    The message is translated to the helpline language configured in Flex,
    falling back to English text when no translation can be loaded.

    Returns the text that was sent, or None when the message was valid.
    """
    conversation_sid = event.get("ConversationSid")

    if event.get("Body") or event.get("Media"):
        return None

    logger.debug(
        "unsupported_media.empty_message",
        extra={"conversation_sid": conversation_sid},
    )
    message_text = FALLBACK_ERROR_MESSAGE

    service_config = client.flex_api.configuration.get().fetch()
    attributes = service_config.attributes or {}
    helpline_language = attributes.get("helplineLanguage")
    if helpline_language is None:
        helpline_language = DEFAULT_HELPLINE_LANGUAGE

    logger.debug(
        "unsupported_media.helpline_language",
        extra={"helpline_language": helpline_language, "conversation_sid": conversation_sid},
    )
    if domain_name and helpline_language:
        message_text = (
            _fetch_translated_message(domain_name, helpline_language, conversation_sid) or message_text
        )

    send_conversation_message(
        client,
        conversation_sid=conversation_sid,
        author="Bot",
        message_text=message_text,
    )
    logger.info(
        "unsupported_media.error_message_sent",
        extra={"message_text": message_text, "conversation_sid": conversation_sid},
    )
    return message_text
