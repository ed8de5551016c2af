import enum

from fastapi import HTTPException, Request, status

from backend.auth.identity import Identity, IdentityService, SessionIdentity
from backend.auth.session import current_identity
from backend.core.config import Settings
from backend.core.errors import Forbidden
from backend.models.user import Role

LOGIN_PATH = '/login'


class AccessDecision(enum.Enum):
    ALLOW = 'allow'
    LOGIN_REQUIRED = 'login_required'
    FORBIDDEN = 'forbidden'


def authorize(identity: SessionIdentity, required_role: Role | None) -> AccessDecision:
    """Decide whether a caller may use a route.

    ``required_role`` of ``None`` admits any authenticated caller. Ownership of
    individual rows is checked by the services, not here.
    """
    if not isinstance(identity, Identity):
        return AccessDecision.LOGIN_REQUIRED
    if required_role is not None and identity.role != required_role:
        return AccessDecision.FORBIDDEN
    return AccessDecision.ALLOW


def require_role(required_role: Role | None = None):
    def dependency(request: Request) -> Identity:
        identity = current_identity(request)
        decision = authorize(identity, required_role)

        if decision is AccessDecision.LOGIN_REQUIRED:
            raise HTTPException(
                status_code=status.HTTP_303_SEE_OTHER,
                detail='Login required',
                headers={'Location': LOGIN_PATH},
            )
        if decision is AccessDecision.FORBIDDEN:
            raise Forbidden()
        return identity

    return dependency


require_teacher = require_role(Role.TEACHER)
require_student = require_role(Role.STUDENT)


def get_identity_service(request: Request) -> IdentityService:
    return request.app.state.identity_service


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
