"""
Standardized error response messages and builders.

All user-facing error text lives here so endpoints and domain exceptions
stay consistent.

Error Message Format Guidelines:
- Use sentence case (capitalize first letter only)
- End with a period for complete sentences
- Include relevant IDs in parentheses when helpful for debugging: "(ID: 123)"
- Use "Please try again later." for transient server errors

Usage:
    from app.core.error_responses import ErrorMessages, raise_not_found

    if not test:
        raise_not_found(ErrorMessages.TEST_NOT_FOUND)
"""

from typing import NoReturn

from fastapi import HTTPException, status


class ErrorMessages:
    """Centralized error message constants and templates.

    Naming Convention:
    - Constants: SCREAMING_SNAKE_CASE for static messages
    - Methods: snake_case for templates that accept parameters
    """

    # ==========================================================================
    # Authentication Errors (401)
    # ==========================================================================
    INVALID_TOKEN = "Invalid authentication token."
    INVALID_TOKEN_TYPE = "Invalid token type."
    INVALID_TOKEN_PAYLOAD = "Invalid token payload."
    USER_NOT_FOUND_AUTH = "User not found."

    # ==========================================================================
    # Authorization Errors (403)
    # ==========================================================================
    ADMIN_REQUIRED = "Administrator privileges are required."
    ANSWERS_ACCESS_DENIED = "Not authorized to view another user's answers."

    # ==========================================================================
    # Not Found Errors (404)
    # ==========================================================================
    TEST_NOT_FOUND = "Test not found."
    TEMPLATE_NOT_FOUND = "Template not found."
    GROUP_NOT_FOUND = "Group not found."
    USER_NOT_FOUND = "User not found."
    NO_RESULTS_FOR_TEST = "No responses found for this test."
    TEST_NOT_IN_GROUP = "Test is not assigned to this group."

    # ==========================================================================
    # Conflict Errors (409)
    # ==========================================================================
    ALREADY_SUBMITTED = "User already submitted answers for this test."
    TEMPLATE_IN_USE = "Template is used by existing tests and cannot be deleted."

    # ==========================================================================
    # Bad Request Errors (400)
    # ==========================================================================
    EMPTY_CLOSED_ANSWERS = "At least one closed answer is required."
    INVALID_TEST_WINDOW = "endsAt must be later than startsAt."
    INVALID_TEMPLATE = "Template payload is invalid."

    # ==========================================================================
    # Server Errors (500)
    # ==========================================================================
    SUBMISSION_FAILED = "Submitting answers failed. Please try again later."
    AGGREGATION_FAILED = "Failed to aggregate IPA results. Please try again later."

    # ==========================================================================
    # Template Methods for Dynamic Messages
    # ==========================================================================
    @staticmethod
    def value_out_of_range(question_id: int, minimum: int, maximum: int) -> str:
        """Message when a closed answer value is outside the Likert scale."""
        return (
            f"Answer for question {question_id} must be an integer "
            f"between {minimum} and {maximum}."
        )

    @staticmethod
    def missing_question_id(index: int) -> str:
        """Message when a closed answer has no question reference."""
        return f"Closed answer at position {index} is missing a question ID."

    @staticmethod
    def duplicate_question_ids(question_ids: set) -> str:
        """Message when the same question is answered twice in one submission."""
        ids_str = ", ".join(str(qid) for qid in sorted(question_ids))
        return f"Questions answered more than once: {ids_str}."

    @staticmethod
    def unknown_closed_questions(question_ids: set) -> str:
        """Message when a template update references question IDs it doesn't own."""
        ids_str = ", ".join(str(qid) for qid in sorted(question_ids))
        return f"Closed questions {ids_str} do not belong to this template."

    @staticmethod
    def database_operation_failed(operation: str) -> str:
        """Generic message for database operation failures."""
        return f"Failed to {operation}. Please try again later."


# ==============================================================================
# HTTPException Builder Functions
# ==============================================================================


def raise_unauthorized(
    detail: str,
    include_www_authenticate: bool = True,
) -> NoReturn:
    """Raise a 401 Unauthorized exception.

    Args:
        detail: User-facing error message
        include_www_authenticate: Whether to include WWW-Authenticate header
    """
    headers = {"WWW-Authenticate": "Bearer"} if include_www_authenticate else None
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=headers,
    )


def raise_forbidden(detail: str) -> NoReturn:
    """Raise a 403 Forbidden exception."""
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=detail,
    )


def raise_not_found(detail: str) -> NoReturn:
    """Raise a 404 Not Found exception."""
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    )

