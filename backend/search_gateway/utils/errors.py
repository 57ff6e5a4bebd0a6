# /search_gateway/utils/errors.py

"""
Error kinds surfaced by the search gateway.

Invalid input, not-found and unresolved canonical queries are kept as
separate types so callers (and the HTTP layer) can tell them apart.
Transport and HTTP failures from the catalog backend are not wrapped: the
httpx exception propagates once retries are exhausted and main.py maps it
to a 502.
"""


class SearchGatewayError(Exception):
    """Base exception for search gateway operations."""
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UserInputError(SearchGatewayError):
    """The request arguments are invalid. Never retried."""
    status_code = 400
    code = "BAD_USER_INPUT"


class UnresolvedQueryError(UserInputError):
    """A canonical query could not be mapped to any legacy query/map pair."""
    code = "UNRESOLVED_QUERY"


class NotFoundError(SearchGatewayError):
    """A well-formed identifier lookup returned no results."""
    status_code = 404
    code = "NOT_FOUND"

