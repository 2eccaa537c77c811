import os
from typing import Optional

from ask_sdk_core.skill_builder import CustomSkillBuilder

from adapter import DeviceNotificationAdapter
from skill import CatchAllExceptionHandler
from utils.http_client import DEFAULT_TIMEOUT_SECONDS, build_session
from utils.logger import get_logger
from utils.persistence import build_persistence_adapter
from utils.secrets import resolve_app_id

logger = get_logger("onesignal.handler")

_skill_builder: Optional[CustomSkillBuilder] = None
_adapter: Optional[DeviceNotificationAdapter] = None


def _load_env() -> float:
    """
    HTTP_TIMEOUT_SECONDS: timeout for OneSignal and Alexa API calls

    Raises RuntimeError with a clear message if it is not a number.
    """
    timeout_str = os.getenv("HTTP_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))
    try:
        return float(timeout_str)
    except ValueError:
        msg = (
            f"Invalid HTTP_TIMEOUT_SECONDS='{timeout_str}'. "
            "Must be a number of seconds."
        )
        logger.error(msg)
        raise RuntimeError(msg)


def get_skill_builder() -> CustomSkillBuilder:
    """Build the skill and OneSignal adapter once per container."""
    global _skill_builder, _adapter
    if _skill_builder is not None:
        return _skill_builder

    timeout = _load_env()
    app_id = resolve_app_id()

    sb = CustomSkillBuilder(persistence_adapter=build_persistence_adapter())
    notification_adapter = DeviceNotificationAdapter(http=build_session(), timeout=timeout)
    notification_adapter.initialize(app_id, sb)
    sb.add_exception_handler(CatchAllExceptionHandler())

    logger.info("handler.initialized", extra={"app_id": app_id, "timeout": timeout})
    _skill_builder, _adapter = sb, notification_adapter
    return _skill_builder


def lambda_handler(event, context):
    request = event.get("request") or {}
    logger.info(
        "handler.lambda_start",
        extra={
            "request_id": getattr(context, "aws_request_id", None),
            "request_type": request.get("type"),
        },
    )

    try:
        sb = get_skill_builder()
    except RuntimeError as e:
        # Misconfiguration must not break the skill; answer with an empty response.
        logger.error("handler.env_error", extra={"error": str(e)})
        return {"version": "1.0", "response": {}}

    return sb.lambda_handler()(event, context)
