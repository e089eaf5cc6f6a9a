"""
Domain exceptions raised by the core stores and services.

These are plain exceptions so the core can be called outside a request
(scripts, tests). Each carries the HTTP status the API layer maps it to;
the mapping happens in one exception handler in app.main.
"""

from fastapi import status

from app.core.error_responses import ErrorMessages


class IPAError(Exception):
    """Base class for all domain errors."""

    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Unexpected error."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class SubmissionValidationError(IPAError):
    """Malformed or missing submission fields (e.g. empty closed answers)."""

    http_status = status.HTTP_400_BAD_REQUEST
    default_message = ErrorMessages.EMPTY_CLOSED_ANSWERS


class InvalidTestWindowError(IPAError):
    """A test whose end is not after its start."""

    http_status = status.HTTP_400_BAD_REQUEST
    default_message = ErrorMessages.INVALID_TEST_WINDOW


class TestNotFoundError(IPAError):
    __test__ = False

    http_status = status.HTTP_404_NOT_FOUND
    default_message = ErrorMessages.TEST_NOT_FOUND


class TemplateNotFoundError(IPAError):
    http_status = status.HTTP_404_NOT_FOUND
    default_message = ErrorMessages.TEMPLATE_NOT_FOUND


class GroupNotFoundError(IPAError):
    http_status = status.HTTP_404_NOT_FOUND
    default_message = ErrorMessages.GROUP_NOT_FOUND


class UserNotFoundError(IPAError):
    http_status = status.HTTP_404_NOT_FOUND
    default_message = ErrorMessages.USER_NOT_FOUND


class AlreadySubmittedError(IPAError):
    """
    The user already has a response for this test.

    Raised both by the pre-check and when the unique constraint rejects a
    concurrent insert. Clients must not resubmit.
    """

    http_status = status.HTTP_409_CONFLICT
    default_message = ErrorMessages.ALREADY_SUBMITTED


class TemplateInUseError(IPAError):
    http_status = status.HTTP_409_CONFLICT
    default_message = ErrorMessages.TEMPLATE_IN_USE


class InvalidTemplateError(IPAError):
    """A template update that references questions the template does not own."""

    http_status = status.HTTP_400_BAD_REQUEST
    default_message = ErrorMessages.INVALID_TEMPLATE
