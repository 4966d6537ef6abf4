from flex_functions import __version__
from flex_functions.utils.events import get_method
from flex_functions.utils.logger import get_logger
from flex_functions.utils.responses import success

logger = get_logger("health")


def lambda_handler(event, context):
    logger.info("health.check", extra={"path": event.get("rawPath", "/healthz"), "method": get_method(event)})
    return success({"status": "ok", "version": __version__})
