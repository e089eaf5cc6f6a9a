"""
Input validation and sanitization utilities.
"""

import re
from typing import Optional


class StringSanitizer:
    """
    String sanitization for free text coming from clients.
    """

    # Control characters to strip (except newlines, tabs, carriage returns)
    CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

    @classmethod
    def sanitize_text(cls, value: str) -> str:
        """
        Strip control characters and surrounding whitespace.

        Args:
            value: String to sanitize

        Returns:
            Sanitized string
        """
        value = cls.CONTROL_CHARS_PATTERN.sub("", value)
        return value.strip()

    @classmethod
    def normalize_optional_text(cls, value: Optional[str]) -> Optional[str]:
        """
        Sanitize optional text, mapping blank input to None.

        Used for the open answer and the open question: an empty or
        whitespace-only string means "not provided".
        """
        if value is None:
            return None
        value = cls.sanitize_text(value)
        return value or None


class TextValidator:
    """
    Text validation utilities for schema field validation.
    """

    @staticmethod
    def validate_non_empty_text(value: str, field_name: str = "Text") -> str:
        """
        Validate that text is not empty or whitespace-only.

        Args:
            value: Text to validate
            field_name: Name used in the error message

        Returns:
            The sanitized text

        Raises:
            ValueError: If the text is empty after sanitization
        """
        value = StringSanitizer.sanitize_text(value)
        if not value:
            raise ValueError(f"{field_name} cannot be empty")
        return value
