"""Error taxonomy shared by the identity, workflow and content services.

Every error carries the HTTP status and the user-facing message it maps to, so
route handlers can let them propagate to the single handler in ``main``.
"""

from fastapi import status


class PortalError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = 'Request failed.'

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class InvalidCredentials(PortalError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = 'Invalid credentials'


class DuplicateIdentity(PortalError):
    status_code = status.HTTP_409_CONFLICT
    detail = 'An account with this email already exists.'


class InvalidRole(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = 'Role must be teacher or student.'


class Forbidden(PortalError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = 'Forbidden'


class NotOwner(PortalError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = 'Only the teacher who created this test can do that.'


class TestNotFound(PortalError):
    __test__ = False

    status_code = status.HTTP_404_NOT_FOUND
    detail = 'Test not found'


class SubmissionNotFound(PortalError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = 'Submission not found'


class InvalidInput(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = 'Invalid input.'


class StorageFailure(PortalError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = 'Something went wrong while saving your data. Please try again later.'
