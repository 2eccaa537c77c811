"""
OneSignal Alexa Adapter Utilities
=================================

Shared helper modules for the OneSignal Alexa skill adapter:

- logger.py       → structured JSON logging
- secrets.py      → AWS Secrets Manager lookup of the OneSignal app id
- persistence.py  → DynamoDB persistence adapter for skill attributes
- http_client.py  → requests session, API hosts and default headers

Everything here is safe to build once per Lambda container and reuse across
invocations.
"""

from utils.logger import get_logger

__all__ = [
    "get_logger",
]
