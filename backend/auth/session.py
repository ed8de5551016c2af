from fastapi import Request, Response

from backend.auth.identity import ANONYMOUS, IdentityService, SessionIdentity
from backend.core.config import Settings


def read_session_identity(request: Request, identity_service: IdentityService, cookie_name: str) -> SessionIdentity:
    """Resolve the request's session cookie. Missing or invalid cookies are anonymous."""
    token = request.cookies.get(cookie_name)
    if not token:
        return ANONYMOUS
    return identity_service.verify_token(token)


def current_identity(request: Request) -> SessionIdentity:
    return getattr(request.state, 'identity', ANONYMOUS)


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    # No max_age: the cookie lives for the browser session.
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite='lax',
        path='/',
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        path='/',
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite='lax',
    )
