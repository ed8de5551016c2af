from fastapi import APIRouter, Depends, Form, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_identity_service, get_settings
from backend.auth.identity import IdentityService
from backend.auth.session import clear_session_cookie, set_session_cookie
from backend.core.config import Settings
from backend.database import get_db
from backend.models.user import Role

router = APIRouter(tags=['auth'])

DASHBOARD_PATHS = {
    Role.TEACHER: '/teacher/dashboard',
    Role.STUDENT: '/student/dashboard',
}


@router.get('/signup')
def signup_form():
    return {
        'action': '/signup',
        'fields': ['email', 'password', 'role'],
        'roles': [role.value for role in Role],
    }


@router.post('/signup')
def signup(
    email: str = Form(''),
    password: str = Form(''),
    role: str = Form(''),
    db: Session = Depends(get_db),
    identity_service: IdentityService = Depends(get_identity_service),
):
    identity_service.register(db, email, password, role)
    return RedirectResponse(url='/login', status_code=status.HTTP_303_SEE_OTHER)


@router.get('/login')
def login_form():
    return {'action': '/login', 'fields': ['email', 'password']}


@router.post('/login')
def login(
    email: str = Form(''),
    password: str = Form(''),
    db: Session = Depends(get_db),
    identity_service: IdentityService = Depends(get_identity_service),
    settings: Settings = Depends(get_settings),
):
    identity = identity_service.authenticate(db, email, password)
    token = identity_service.issue_token(identity)

    response = RedirectResponse(url=DASHBOARD_PATHS[identity.role], status_code=status.HTTP_303_SEE_OTHER)
    set_session_cookie(response, token, settings)
    return response


@router.get('/logout')
def logout(settings: Settings = Depends(get_settings)):
    response = RedirectResponse(url='/', status_code=status.HTTP_303_SEE_OTHER)
    clear_session_cookie(response, settings)
    return response
