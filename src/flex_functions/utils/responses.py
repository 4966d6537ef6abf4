"""API Gateway proxy responses with CORS headers."""

import json
import os
from typing import Any, Dict, Optional


def cors_headers() -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": os.getenv("CORS_ALLOW_ORIGIN", "*"),
        "Access-Control-Allow-Methods": "OPTIONS, POST, GET",
        "Access-Control-Allow-Headers": "Content-Type",
        "Content-Type": "application/json",
    }


def send(status: int, body: Any = None) -> Dict[str, Any]:
    """Build a response with the given status code and a JSON-encoded body."""
    return {
        "statusCode": status,
        "headers": cors_headers(),
        "body": json.dumps(body),
    }


def success(body: Any) -> Dict[str, Any]:
    return send(200, body)


def error400(param: str) -> Dict[str, Any]:
    return send(400, {"message": f"Error: {param} parameter not provided", "status": 400})


def error403(message: str) -> Dict[str, Any]:
    return send(403, {"message": message, "status": 403})


def error500(error: Optional[BaseException] = None, message: Optional[str] = None) -> Dict[str, Any]:
    if message is None:
        message = str(error) if error is not None else "Internal server error"
    return send(500, {"message": message, "status": 500})


def preflight() -> Dict[str, Any]:
    return {"statusCode": 200, "headers": cors_headers(), "body": ""}
