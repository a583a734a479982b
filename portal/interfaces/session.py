"""
Cookie session helpers shared by the client and back-office routers.

The session is a signed cookie managed by Starlette's
``SessionMiddleware``. It holds ids only, never credentials:

- ``user_id``: the signed-in client (or the impersonated one).
- ``admin_id``: the signed-in back-office operator.
- ``original_admin_id``: set while an admin impersonates a client.
"""

from typing import Optional

from fastapi import Request

from portal.domain.brokerage.errors import AuthenticationRequiredError, ValidationError

USER_KEY = "user_id"
ADMIN_KEY = "admin_id"
IMPERSONATOR_KEY = "original_admin_id"


def client_ip(request: Request) -> Optional[str]:
    """Return the caller's address, preferring the first forwarded hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def get_session_user_id(request: Request) -> Optional[str]:
    return request.session.get(USER_KEY)


def get_current_user_id(request: Request) -> str:
    """FastAPI dependency: the client id of the session.

    Raises:
        AuthenticationRequiredError: If no client is signed in.
    """
    user_id = request.session.get(USER_KEY)
    if not user_id:
        raise AuthenticationRequiredError("client")
    return user_id


def start_client_session(request: Request, user_id: str) -> None:
    request.session[USER_KEY] = user_id


def end_client_session(request: Request) -> None:
    request.session.clear()


def get_session_admin_id(request: Request) -> Optional[str]:
    return request.session.get(ADMIN_KEY)


def start_admin_session(request: Request, admin_id: str) -> None:
    request.session[ADMIN_KEY] = admin_id


def end_admin_session(request: Request) -> None:
    """Drop the admin, and the client it was impersonating, if any."""
    if request.session.pop(IMPERSONATOR_KEY, None) is not None:
        request.session.pop(USER_KEY, None)
    request.session.pop(ADMIN_KEY, None)


def begin_impersonation(request: Request, admin_id: str, user_id: str) -> None:
    request.session[IMPERSONATOR_KEY] = admin_id
    request.session[USER_KEY] = user_id


def impersonated_user_id(request: Request) -> str:
    """Return the client being impersonated.

    Raises:
        ValidationError: If the session is not impersonating anyone.
    """
    if not request.session.get(IMPERSONATOR_KEY):
        raise ValidationError("Not currently impersonating")
    return request.session.get(USER_KEY, "")


def end_impersonation(request: Request) -> None:
    request.session.pop(USER_KEY, None)
    request.session.pop(IMPERSONATOR_KEY, None)
