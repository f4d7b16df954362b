"""
Input Validation for Jira Query Language

Package Structure:
    - validation: Base ValidationError exception
    - jql_validator: Project key, issue key and version id validation plus
      JQL literal quoting

Usage:
    from jira_pulse.security import JQLValidator, ValidationError

    try:
        safe_key = JQLValidator.validate_project_key(user_input)
        jql = f"project = {JQLValidator.quote(safe_key)}"
    except ValidationError as e:
        logger.error(f"Invalid input: {e}")
        raise
"""

from .jql_validator import JQLValidator
from .validation import ValidationError

__all__ = [
    "ValidationError",
    "JQLValidator",
]
