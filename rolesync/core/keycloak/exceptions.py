"""Keycloak-specific exceptions for error handling."""


class KeycloakError(Exception):
    """Base exception for all Keycloak operations."""
    pass


class TransportError(KeycloakError):
    """The directory call could not be completed (connection, timeout, ...)."""
    pass


class KeycloakAPIError(TransportError):
    """HTTP error from Keycloak Admin API.

    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
    """

    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class NotFoundError(KeycloakError):
    """A user, role or client identifier/name does not resolve."""
    pass


class UserNotFoundError(NotFoundError):
    """User lookup failed - id or username does not exist."""
    pass


class RoleNotFoundError(NotFoundError):
    """Role does not exist in realm or client."""
    pass


class ClientNotFoundError(NotFoundError):
    """Client does not exist in realm."""
    pass


class InvalidFormatError(KeycloakError, ValueError):
    """External identifier does not match the {{realm}}/{{userId}} format."""
    pass
