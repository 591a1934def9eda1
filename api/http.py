# api/http.py
import os
from typing import Any, Dict, Optional

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from core.logger import get_logger

logger = get_logger(__name__)

ENDPOINT = os.getenv("QKART_ENDPOINT", "http://localhost:8082/api/v1").rstrip("/")
API_TIMEOUT = float(os.getenv("API_TIMEOUT", "15"))
API_MAX_ATTEMPTS = int(os.getenv("API_MAX_ATTEMPTS", "3"))
USER_AGENT = os.getenv("QKART_USER_AGENT", "qkart-storefront/1.0")

SESSION = requests.Session()
SESSION.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})


class ApiError(Exception):
    """
    Backend call failed. `status` is the HTTP status code, or None when the
    backend could not be reached at all.
    """

    def __init__(self, status: Optional[int], message: str, payload: Any = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.payload = payload

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"HTTP {self.status}: {self.message}"


class _ServerError(Exception):
    def __init__(self, response: requests.Response):
        super().__init__(f"server error {response.status_code}")
        self.response = response


def _error_message(response: requests.Response) -> tuple[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("message"), str):
        return payload["message"], payload
    return response.reason or f"HTTP {response.status_code}", payload


@retry(
    retry=retry_if_exception_type(
        (requests.ConnectionError, requests.Timeout, _ServerError)
    ),
    wait=wait_exponential_jitter(initial=0.5, max=8),
    stop=stop_after_attempt(API_MAX_ATTEMPTS),
    reraise=True,
)
def _send(method: str, url: str, **kwargs: Any) -> requests.Response:
    r = SESSION.request(method, url, timeout=API_TIMEOUT, **kwargs)
    if r.status_code >= 500:
        logger.warning("%s %s returned %s; may retry.", method, url, r.status_code)
        raise _ServerError(r)
    return r


def request(
    method: str,
    path: str,
    token: Optional[str] = None,
    params: Optional[Dict[str, Any]] = None,
    json_body: Any = None,
) -> requests.Response:
    """
    Call the backend and return the successful response.
    Raises ApiError for non-2xx statuses and unreachable backends.
    """
    url = f"{ENDPOINT}{path}"
    headers: Dict[str, str] = {}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    logger.debug("%s %s params=%s", method, url, params)
    try:
        r = _send(method, url, headers=headers, params=params, json=json_body)
    except _ServerError as e:
        message, payload = _error_message(e.response)
        logger.error("%s %s failed after retries: %s %s", method, url, e.response.status_code, message)
        raise ApiError(e.response.status_code, message, payload) from e
    except requests.RequestException as e:
        logger.error("%s %s could not reach backend: %s", method, url, e)
        raise ApiError(None, f"Could not reach backend at {ENDPOINT}: {e}") from e

    if not r.ok:
        message, payload = _error_message(r)
        logger.warning("%s %s returned %s: %s", method, url, r.status_code, message)
        raise ApiError(r.status_code, message, payload)
    return r


def request_json(method: str, path: str, **kwargs: Any) -> Any:
    r = request(method, path, **kwargs)
    try:
        return r.json()
    except ValueError as e:
        logger.error("%s %s returned a body that is not JSON.", method, path)
        raise ApiError(r.status_code, "Backend returned invalid JSON") from e
