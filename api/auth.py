# api/auth.py
from core.logger import get_logger
from core.models import LoginResult

from .http import request, request_json

logger = get_logger(__name__)


def login(username: str, password: str) -> LoginResult:
    data = request_json(
        "POST", "/auth/login", json_body={"username": username, "password": password}
    )
    result = LoginResult.from_json(data)
    logger.info("Logged in as '%s'.", result.username)
    return result


def register(username: str, password: str) -> None:
    r = request(
        "POST", "/auth/register", json_body={"username": username, "password": password}
    )
    logger.info("Registered '%s' (HTTP %s).", username, r.status_code)
