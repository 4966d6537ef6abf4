import json
import math
import os
import re
from typing import Any, Dict, Optional, Tuple

from twilio.base.exceptions import TwilioRestException

from flex_functions.utils import twilio_client
from flex_functions.utils.events import parse_body
from flex_functions.utils.logger import get_logger
from flex_functions.utils.responses import error400, error500, send
from flex_functions.utils.token_validator import function_validator

logger = get_logger("adjust_chat_capacity")

CHAT_CHANNEL = "chat"


def _load_env() -> str:
    workspace_sid = os.getenv("TWILIO_WORKSPACE_SID")
    if not workspace_sid:
        msg = "Missing required environment variables: TWILIO_WORKSPACE_SID"
        logger.error(msg)
        raise RuntimeError(msg)
    return workspace_sid


def _parse_capacity(value: Any) -> Optional[int]:
    """Read a leading integer the way the Flex UI writes it ("3", 3, "3.5")."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    match = re.match(r"\s*([+-]?\d+)", str(value))
    return int(match.group(1)) if match else None


def _result(status: int, message: str) -> Dict[str, Any]:
    return {"status": status, "message": message}


def increase_chat_capacity(channel, max_message_capacity: int) -> Tuple[Dict[str, Any], Any]:
    """
    Raise the channel's configured capacity by one, if it is full and below the max.
    Returns (result, channel) where channel is the updated one on success.
    """
    if channel.available_capacity_percentage > 0:
        return _result(412, "Still have available capacity, no need to increase."), channel

    if not channel.configured_capacity < max_message_capacity:
        return _result(412, "Reached the max capacity."), channel

    updated_channel = channel.update(capacity=channel.configured_capacity + 1)
    return _result(200, "Successfully increased channel capacity"), updated_channel


def adjust_chat_capacity(client, workspace_sid: str, worker_sid: str, adjustment: str) -> Dict[str, Any]:
    try:
        worker = client.taskrouter.workspaces(workspace_sid).workers(worker_sid).fetch()
    except TwilioRestException as e:
        if e.status == 404:
            return _result(404, "Could not find worker.")
        raise

    attributes = json.loads(worker.attributes or "{}")
    max_message_capacity = _parse_capacity(attributes.get("maxMessageCapacity"))

    if not max_message_capacity:
        return _result(
            409,
            f'Worker {worker_sid} does not have a "maxMessageCapacity" attribute, can\'t adjust capacity.',
        )

    channels = worker.worker_channels.list()
    channel = next((c for c in channels if c.task_channel_unique_name == CHAT_CHANNEL), None)

    if channel is None:
        return _result(404, "Could not find chat channel.")

    # 'increase' and 'decrease' can be removed once backend manual pulling is enabled everywhere
    if adjustment == "increase":
        result, _ = increase_chat_capacity(channel, max_message_capacity)
        return result

    if adjustment == "increaseUntilCapacityAvailable":
        # Bounded: every successful step moves configured_capacity one closer to the max.
        result = _result(200, "")
        while result["status"] == 200:
            result, channel = increase_chat_capacity(channel, max_message_capacity)

        if (
            channel.configured_capacity == max_message_capacity
            and channel.available_capacity_percentage == 0
        ):
            return _result(412, "Reached the max capacity with no available capacity.")
        return _result(200, "Adjusted chat capacity until there is capacity available")

    if adjustment == "decrease":
        if channel.configured_capacity - 1 >= 1:
            channel.update(capacity=channel.configured_capacity - 1)

        # Already at 1 is still a 200 so the Flex UI does not show an error
        return _result(200, "Successfully decreased channel capacity")

    if adjustment == "setTo1":
        if channel.configured_capacity != 1:
            channel.update(capacity=1)
            return _result(200, "Successfully reset channel capacity to 1")

        return _result(200, "Channel capacity already 1, no adjustment made.")

    return _result(400, "Invalid adjustment argument")


@function_validator
def lambda_handler(event, context):
    logger.info(
        "adjust_chat_capacity.lambda_start",
        extra={"request_id": getattr(context, "aws_request_id", None)},
    )

    try:
        workspace_sid = _load_env()
    except RuntimeError:
        return error500(message="server_misconfigured")

    params = parse_body(event)
    worker_sid = params.get("workerSid")
    adjustment = params.get("adjustment")

    if worker_sid is None:
        return error400("workerSid")
    if adjustment is None:
        return error400("adjustment")

    try:
        client, _ = twilio_client.get_client()
        result = adjust_chat_capacity(client, workspace_sid, worker_sid, adjustment)
    except Exception as e:
        logger.exception(
            "adjust_chat_capacity.error",
            extra={"worker_sid": worker_sid, "adjustment": adjustment},
        )
        return error500(e)

    logger.info(
        "adjust_chat_capacity.result",
        extra={
            "worker_sid": worker_sid,
            "adjustment": adjustment,
            "status": result["status"],
            "result": result["message"],
        },
    )
    return send(result["status"], {"message": result["message"], "status": result["status"]})
