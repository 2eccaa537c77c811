from typing import Callable, Optional

from ask_sdk_core.dispatch_components import AbstractExceptionHandler, AbstractRequestHandler
from ask_sdk_core.exceptions import AttributesManagerException, PersistenceException
from ask_sdk_core.handler_input import HandlerInput
from ask_sdk_core.utils import is_request_type
from ask_sdk_model import RequestEnvelope, Response

from utils.logger import get_logger

logger = get_logger("onesignal.skill")


def alexa_user_id(envelope: RequestEnvelope) -> Optional[str]:
    system = envelope.context.system if envelope.context else None
    if system is not None and system.user is not None and system.user.user_id:
        return system.user.user_id
    if envelope.session is not None and envelope.session.user is not None:
        return envelope.session.user.user_id
    return None


class SessionScope:
    """
    What the adapter sees for one incoming request: the request envelope, the
    session attributes, and the two signals back to the skill.
    """

    def __init__(self, handler_input: HandlerInput):
        self.handler_input = handler_input
        self.envelope: RequestEnvelope = handler_input.request_envelope
        self.response_builder = handler_input.response_builder
        self.response: Optional[Response] = None
        self.state_saved = False

        # Out-of-session requests (Messaging.MessageReceived) carry no
        # session attributes at all.
        if self.envelope.session is not None:
            self.attributes = handler_input.attributes_manager.session_attributes
        else:
            self.attributes = {}

    @property
    def response_ready(self) -> bool:
        return self.response is not None

    def persisted_attributes(self) -> dict:
        try:
            return self.handler_input.attributes_manager.persistent_attributes
        except AttributesManagerException:
            return {}
        except PersistenceException as e:
            logger.error("skill.load_attributes_error", extra={"error": str(e)})
            return {}

    def persist_session_state(self) -> None:
        self.state_saved = True
        manager = self.handler_input.attributes_manager
        try:
            persistent = manager.persistent_attributes
            persistent.update(self.attributes)
            manager.persistent_attributes = persistent
            manager.save_persistent_attributes()
        except AttributesManagerException:
            logger.debug("skill.persist_skipped: no persistence adapter configured")
        except PersistenceException as e:
            logger.error("skill.save_attributes_error", extra={"error": str(e)})

    def notify_response_ready(self) -> None:
        self.response = self.response_builder.response


ScopeHandler = Callable[[SessionScope], None]


class LaunchRequestHandler(AbstractRequestHandler):
    def __init__(self, on_launch: ScopeHandler):
        self._on_launch = on_launch

    def can_handle(self, handler_input):
        return is_request_type("LaunchRequest")(handler_input)

    def handle(self, handler_input):
        scope = SessionScope(handler_input)
        self._on_launch(scope)
        return scope.response


class UnhandledRequestHandler(AbstractRequestHandler):
    """Catch-all; must be added after every other request handler."""

    def __init__(self, on_unhandled: ScopeHandler):
        self._on_unhandled = on_unhandled

    def can_handle(self, handler_input):
        return True

    def handle(self, handler_input):
        scope = SessionScope(handler_input)
        self._on_unhandled(scope)
        return scope.response


class CatchAllExceptionHandler(AbstractExceptionHandler):
    def can_handle(self, handler_input, exception):
        return True

    def handle(self, handler_input, exception):
        logger.error(
            "skill.unhandled_exception",
            extra={"error": str(exception), "request_type": handler_input.request_envelope.request.object_type},
            exc_info=exception,
        )
        return handler_input.response_builder.response
