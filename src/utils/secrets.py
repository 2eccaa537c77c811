import json
import os
from typing import NoReturn

import boto3

from utils.logger import get_logger

logger = get_logger("onesignal.secrets")


def _fail(msg: str) -> NoReturn:
    logger.error(msg)
    raise RuntimeError(msg)


def resolve_app_id() -> str:
    """
    Resolve the OneSignal app id.

    ONESIGNAL_APP_ID wins when set. Otherwise ONESIGNAL_SECRET_NAME names a
    Secrets Manager secret whose JSON value carries "app_id".
    """
    app_id = os.getenv("ONESIGNAL_APP_ID")
    if app_id:
        return app_id

    secret_name = os.getenv("ONESIGNAL_SECRET_NAME")
    if not secret_name:
        _fail("Missing required environment variables: ONESIGNAL_APP_ID or ONESIGNAL_SECRET_NAME")

    client = boto3.client("secretsmanager", region_name=os.getenv("AWS_REGION", "us-east-1"))
    secret_str = client.get_secret_value(SecretId=secret_name).get("SecretString") or "{}"

    try:
        app_id = json.loads(secret_str).get("app_id")
    except (ValueError, AttributeError):
        _fail(f"Secret '{secret_name}' is not a JSON object")

    if not app_id:
        _fail(f"Secret '{secret_name}' has no app_id")

    return app_id
