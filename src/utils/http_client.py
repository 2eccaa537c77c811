import requests

ONESIGNAL_API_URL = "https://onesignal.com/api/v1/"
ALEXA_API_URL = "https://api.amazonalexa.com"

DEFAULT_HEADERS = {
    "Content-Type": "application/json; charset=utf-8",
}

DEFAULT_TIMEOUT_SECONDS = 10


def build_session() -> requests.Session:
    """
    Build a requests session for the OneSignal and Alexa APIs.

    Built once per container so warm invocations reuse the connection pool.
    """
    session = requests.Session()
    session.headers.update(DEFAULT_HEADERS)
    return session
