"""
Base Validation Exception

Raised by every input validator before any upstream call is made.
"""


class ValidationError(Exception):
    """
    Raised when input validation fails.

    The API layer maps this exception to an HTTP 400 response.
    """

    pass
