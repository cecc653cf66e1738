"""Exceptions raised by the hosting API client."""

from typing import Optional


class GitHubAPIError(Exception):
    """Base exception for hosting API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(GitHubAPIError):
    """The requested path has no object at the given ref."""

    pass


class ForbiddenError(GitHubAPIError):
    """The request was refused, usually a missing token or insufficient scope."""

    pass


class AuthenticationError(GitHubAPIError):
    """The authenticated identity could not be fetched."""

    pass


class NetworkError(GitHubAPIError):
    """The request never produced a response."""

    pass


class GraphQLError(GitHubAPIError):
    """The GraphQL endpoint answered with errors instead of data."""

    pass
