"""
JQL Validator for Jira Query Language

Validates and quotes inputs interpolated into JQL filter expressions.
Jira's search endpoint takes JQL as a plain string, so every project key,
issue key and version id is checked against a strict whitelist before it is
placed into a query.

Security Note:
    Never interpolate user input into JQL without passing it through
    JQLValidator first.
"""

import re

from .validation import ValidationError


class JQLValidator:
    """
    Validates and quotes inputs for Jira JQL queries.

    Keys that the JQL grammar cannot carry unquoted (embedded whitespace,
    quotes, operators) are rejected outright rather than escaped.
    """

    MAX_KEY_LENGTH = 255

    PROJECT_KEY_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
    ISSUE_KEY_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*-[0-9]+$")
    VERSION_ID_PATTERN = re.compile(r"^[0-9]+$")

    # Whitelist of issue types usable in issuetype IN (...) clauses
    VALID_ISSUE_TYPES = {
        "Task",
        "Story",
        "Epic",
        "Bug",
        "Sub-task",
        "Subtask",
    }

    @staticmethod
    def validate_project_key(project_key: str) -> str:
        """
        Validate a Jira project key.

        Project keys start with a letter and contain only letters, digits and
        underscores.

        Args:
            project_key: User-supplied project key

        Returns:
            Validated project key (unchanged if valid)

        Raises:
            ValidationError: If the key is empty, too long or contains illegal characters

        Example:
            >>> JQLValidator.validate_project_key("CB")
            'CB'
            >>> JQLValidator.validate_project_key("C B")
            ValidationError: Invalid project key: 'C B'
        """
        if not isinstance(project_key, str):
            raise ValidationError(f"Project key must be string, got {type(project_key)}")

        if not project_key:
            raise ValidationError("Project key cannot be empty")

        if len(project_key) > JQLValidator.MAX_KEY_LENGTH:
            raise ValidationError(
                f"Project key too long: {len(project_key)} chars (max {JQLValidator.MAX_KEY_LENGTH})"
            )

        if not JQLValidator.PROJECT_KEY_PATTERN.match(project_key):
            raise ValidationError(
                f"Invalid project key: '{project_key}'. "
                f"Must start with a letter and contain only letters, numbers, and underscores."
            )

        return project_key

    @staticmethod
    def validate_issue_key(issue_key: str) -> str:
        """
        Validate a Jira issue key such as ``CB-1``.

        Args:
            issue_key: User-supplied issue key (already URL-decoded)

        Returns:
            Validated issue key

        Raises:
            ValidationError: If the key contains whitespace or is malformed
        """
        if not isinstance(issue_key, str):
            raise ValidationError(f"Issue key must be string, got {type(issue_key)}")

        if not issue_key:
            raise ValidationError("Issue key cannot be empty")

        if any(ch.isspace() for ch in issue_key):
            raise ValidationError(f'Issue key "{issue_key}" contains spaces.')

        if len(issue_key) > JQLValidator.MAX_KEY_LENGTH or not JQLValidator.ISSUE_KEY_PATTERN.match(issue_key):
            raise ValidationError(f"Invalid issue key: '{issue_key}'. Use a valid Jira key like CB-1.")

        return issue_key

    @staticmethod
    def validate_version_id(version_id: str | int) -> str:
        """
        Validate a numeric Jira version id.

        Args:
            version_id: Version id as string or int

        Returns:
            Validated version id as string

        Raises:
            ValidationError: If the id is empty or not purely numeric
        """
        if isinstance(version_id, bool):
            raise ValidationError(f"Version id must be string or int, got {type(version_id)}")

        if isinstance(version_id, int):
            version_id = str(version_id)

        if not isinstance(version_id, str):
            raise ValidationError(f"Version id must be string or int, got {type(version_id)}")

        if not version_id:
            raise ValidationError("Version id is required")

        if not JQLValidator.VERSION_ID_PATTERN.match(version_id):
            raise ValidationError(f"Invalid version id: '{version_id}'. Must be numeric.")

        return version_id

    @staticmethod
    def validate_issue_type(issue_type: str) -> str:
        """
        Validate an issue type against the whitelist.

        Raises:
            ValidationError: If the issue type is not in the whitelist
        """
        if issue_type not in JQLValidator.VALID_ISSUE_TYPES:
            raise ValidationError(
                f"Invalid issue type: '{issue_type}'. "
                f"Must be one of: {', '.join(sorted(JQLValidator.VALID_ISSUE_TYPES))}"
            )
        return issue_type

    @staticmethod
    def quote(value: str) -> str:
        """
        Render a value as a double-quoted JQL string literal.

        Backslashes and double quotes are escaped.

        Example:
            >>> JQLValidator.quote("CB")
            '"CB"'
        """
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
