"""
OneSignal Alexa Adapter
=======================

Connects an Alexa skill's request lifecycle to the OneSignal push API.
Registers the Alexa user as a OneSignal player on launch, forwards tags, and
relays "Messaging.MessageReceived" requests as Alexa proactive notifications.

Modules under this package:
- adapter.py  → DeviceNotificationAdapter (OneSignal + Alexa notification calls)
- skill.py    → ask_sdk_core request handlers and SessionScope (session attributes)
- handler.py  → Lambda entry point
- utils/      → Shared helper modules (logging, secrets, persistence, HTTP)

Environment variables expected:
  • ONESIGNAL_APP_ID           - OneSignal application id
  • ONESIGNAL_SECRET_NAME      - Secrets Manager secret with {"app_id"} (optional)
  • AWS_REGION                 - AWS region for all resources
  • ATTRIBUTES_TABLE           - DynamoDB table for skill attributes (optional)
  • HTTP_TIMEOUT_SECONDS       - Timeout for outbound HTTP calls (default: 10)
  • LOG_LEVEL                  - Log verbosity (default: INFO)
"""

__version__ = "0.9.0"
__author__ = "OneSignal"
__license__ = "MIT"

__all__ = ["__version__", "__author__"]
