"""Errors returned by the login and signup actions.

Each carries the short message shown to the user and the HTTP status the
routes answer with. None of them is fatal.
"""
from fastapi import status


class AuthError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Authentication failed'

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(AuthError):
    default_detail = 'All fields are required'


class InvalidCredentials(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Invalid email or password'


class RoleResolutionError(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Unable to determine user role'


class InvalidRole(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Invalid user role'


class InvalidCode(AuthError):
    default_detail = 'Invalid admin code'


class CodeDeactivated(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'This admin code has been deactivated'


class CodeAlreadyUsed(AuthError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This admin code has already been used'


class EmailAlreadyRegistered(AuthError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Email already registered'


class SignupFailed(AuthError):
    default_detail = 'Failed to create account'


class RoleAssignmentFailed(AuthError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Failed to assign user role'
