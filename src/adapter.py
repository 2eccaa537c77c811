from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import requests
from ask_sdk_model import RequestEnvelope
from ask_sdk_model.ui import AskForPermissionsConsentCard

from skill import LaunchRequestHandler, SessionScope, UnhandledRequestHandler, alexa_user_id
from utils.http_client import ALEXA_API_URL, DEFAULT_HEADERS, DEFAULT_TIMEOUT_SECONDS, ONESIGNAL_API_URL, build_session
from utils.logger import get_logger

logger = get_logger("onesignal.adapter")

SDK_VERSION = "000900"
ALEXA_DEVICE_TYPE = 10
ONE_DAY_SECONDS = 86400
DEFAULT_LOCALE = "en-US"

MESSAGE_RECEIVED = "Messaging.MessageReceived"
NOTIFICATIONS_PERMISSION = "write::alexa:devices:all:notifications:standard"

# Session attribute key holding {"userId": ...}
ATTRIBUTES_KEY = "onesignal_sdk"


@dataclass
class AdapterState:
    app_id: str
    user_id: Optional[str] = None
    pending_tags: Optional[Dict[str, str]] = None


def _system(envelope: RequestEnvelope):
    return envelope.context.system if envelope.context else None


def _consent_token(envelope: RequestEnvelope) -> Optional[str]:
    system = _system(envelope)
    permissions = system.user.permissions if system and system.user else None
    return permissions.consent_token if permissions else None


def has_notification_permissions(envelope: RequestEnvelope) -> bool:
    return _consent_token(envelope) is not None


def compute_expiry(now: datetime, ttl: Any = None) -> str:
    """
    Expiry timestamp for a proactive notification.

    Alexa rejects notifications living longer than a day, so ttl is capped at
    ONE_DAY_SECONDS. A missing ttl means the full day.
    """
    seconds = ONE_DAY_SECONDS if ttl is None else min(float(ttl), ONE_DAY_SECONDS)
    expiry = now + timedelta(seconds=seconds)
    return expiry.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_notification_payload(message: dict, expiry_time: str, locale: str = DEFAULT_LOCALE) -> Dict[str, Any]:
    spoken_text = message.get("spoken_text")
    display_title = message.get("display_title")
    if display_title is None:
        display_title = spoken_text

    return {
        "expiryTime": expiry_time,
        "referenceId": (message.get("custom") or {}).get("i"),
        "spokenInfo": {
            "content": [{"locale": locale, "text": spoken_text}],
        },
        "displayInfo": {
            "content": [{
                "locale": locale,
                "toast": {"primaryText": spoken_text},
                "title": display_title,
                "bodyItems": [{"primaryText": spoken_text}],
            }],
        },
    }


class DeviceNotificationAdapter:
    """
    Registers Alexa users as OneSignal players and relays OneSignal messages
    as Alexa proactive notifications.

    One instance lives for the whole container. Its state belongs to the last
    Alexa user seen and is reset when another user's request arrives. Every
    outbound call is fire-and-forget: failures are logged and never raised to
    the skill.
    """

    def __init__(
        self,
        http: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.state = AdapterState(app_id="")
        self._alexa_user: Optional[str] = None
        self._http = http or build_session()
        self._timeout = timeout
        self._clock = clock

    def initialize(self, app_id: str, skill_builder) -> None:
        """
        Add the launch and catch-all handlers to an ask_sdk_core skill builder.

        Skill handlers must be added before this call; the catch-all takes
        every request nothing earlier claimed.
        """
        self.state.app_id = app_id
        skill_builder.add_request_handler(LaunchRequestHandler(self._handle_launch))
        skill_builder.add_request_handler(UnhandledRequestHandler(self._handle_unhandled))

    # ------------------------------------------------------------------
    # Skill callbacks
    # ------------------------------------------------------------------

    def _handle_unhandled(self, scope: SessionScope) -> None:
        self._state_setup(scope)
        self.on_message_received(scope.envelope)

    def _handle_launch(self, scope: SessionScope) -> None:
        self._state_setup(scope)
        self.on_launch(scope)

    def _state_setup(self, scope: SessionScope) -> None:
        alexa_user = alexa_user_id(scope.envelope)
        if alexa_user != self._alexa_user:
            self._alexa_user = alexa_user
            self.state.user_id = None
            self.state.pending_tags = None

        sdk_attributes = scope.attributes.get(ATTRIBUTES_KEY)
        if not sdk_attributes:
            sdk_attributes = scope.persisted_attributes().get(ATTRIBUTES_KEY) or {}
        if sdk_attributes.get("userId") is not None:
            self.state.user_id = sdk_attributes["userId"]

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def on_launch(self, scope: SessionScope) -> None:
        envelope = scope.envelope
        if envelope.session is None or not envelope.session.new:
            return

        device_payload = {
            "app_id": self.state.app_id,
            "device_type": ALEXA_DEVICE_TYPE,
            "sdk": SDK_VERSION,
            "notification_types": 1 if has_notification_permissions(envelope) else 0,
            "identifier": alexa_user_id(envelope),
        }
        self._register_device(device_payload, scope)

    def on_message_received(self, envelope: RequestEnvelope) -> None:
        request = envelope.request
        if request is None or request.object_type != MESSAGE_RECEIVED:
            return

        token = _consent_token(envelope)
        if token is None:
            if self.state.user_id is not None:
                self._user_put({"notification_types": 0}, "unsubscribing")
            return

        message = getattr(request, "message", None)
        if not isinstance(message, dict):
            logger.warning("onesignal.malformed_message", extra={"request_id": request.request_id})
            return

        ttl = message.get("ttl")
        try:
            expiry_time = compute_expiry(self._clock(), ttl)
        except (TypeError, ValueError, OverflowError):
            logger.warning("onesignal.invalid_ttl", extra={"ttl": ttl})
            expiry_time = compute_expiry(self._clock())

        payload = build_notification_payload(message, expiry_time, request.locale or DEFAULT_LOCALE)
        system = _system(envelope)
        endpoint = (system.api_endpoint if system else None) or ALEXA_API_URL
        self._create_notification(token, payload, endpoint)

    def send_tags(self, scope: SessionScope, tags: Dict[str, str]) -> None:
        """
        Send tags for the Alexa user behind `scope`.

        Until that user has a player id the tags are merged into a buffer,
        which goes out with the next registration.
        """
        self._state_setup(scope)

        if self.state.user_id is None:
            if self.state.pending_tags is None:
                self.state.pending_tags = {}
            self.state.pending_tags.update(tags)
            return

        self.state.pending_tags = None
        self._user_put({"tags": tags}, "sendTags")

    on_tags_requested = send_tags

    def prompt_for_notification_permissions(self, scope: SessionScope) -> None:
        scope.response_builder.speak(
            "Please open the Alexa App and accept the notification permission card."
        ).set_card(AskForPermissionsConsentCard(permissions=[NOTIFICATIONS_PERMISSION]))
        scope.notify_response_ready()

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _register_device(self, payload: Dict[str, Any], scope: SessionScope) -> None:
        url = ONESIGNAL_API_URL + "players"
        if self.state.user_id is not None:
            url += f"/{self.state.user_id}/on_session"

        # Buffered tags ride along with the registration; this is their flush.
        if self.state.pending_tags:
            payload["tags"] = dict(self.state.pending_tags)

        try:
            resp = self._http.request("POST", url, json=payload, headers=DEFAULT_HEADERS, timeout=self._timeout)
            data = resp.json()
        except requests.RequestException as e:
            logger.error("onesignal.register_device_error", extra={"error": str(e), "url": url})
            return
        except ValueError as e:
            logger.error("onesignal.register_device_invalid_json", extra={"error": str(e), "url": url})
            return

        if not isinstance(data, dict) or "id" not in data:
            logger.warning(
                "onesignal.register_device_no_id",
                extra={"status_code": getattr(resp, "status_code", None), "body": str(data)[:200]},
            )
            return

        self.state.user_id = data["id"]
        self.state.pending_tags = None

        sdk_attributes = dict(scope.attributes.get(ATTRIBUTES_KEY) or {})
        sdk_attributes["userId"] = self.state.user_id
        scope.attributes[ATTRIBUTES_KEY] = sdk_attributes

        logger.info("onesignal.device_registered", extra={"user_id": self.state.user_id})

        scope.persist_session_state()
        scope.notify_response_ready()

    def _user_put(self, payload: Dict[str, Any], label: str) -> None:
        url = f"{ONESIGNAL_API_URL}players/{self.state.user_id}"
        try:
            resp = self._http.request("PUT", url, json=payload, headers=DEFAULT_HEADERS, timeout=self._timeout)
        except requests.RequestException as e:
            logger.error("onesignal.user_put_error", extra={"label": label, "error": str(e)})
            return

        if not resp.ok:
            logger.warning("onesignal.user_put_failed", extra={"label": label, "status_code": resp.status_code})

    def _create_notification(self, token: str, payload: Dict[str, Any], endpoint: str = ALEXA_API_URL) -> None:
        url = endpoint.rstrip("/") + "/v2/notifications"
        headers = {"Authorization": f"Bearer {token}", **DEFAULT_HEADERS}
        try:
            resp = self._http.request("POST", url, json=payload, headers=headers, timeout=self._timeout)
        except requests.RequestException as e:
            logger.error("onesignal.create_notification_error", extra={"error": str(e)})
            return

        if not resp.ok:
            logger.warning(
                "onesignal.create_notification_failed",
                extra={"status_code": resp.status_code, "reference_id": payload.get("referenceId")},
            )
            return

        logger.info("onesignal.notification_created", extra={"reference_id": payload.get("referenceId")})
