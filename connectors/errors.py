"""
Errors raised by the connector layer.

Each carries the HTTP status the API answers with; see
``api.middleware.register_exception_handlers``.
"""

from __future__ import annotations


class ConnectorError(Exception):
    status_code = 500
    public_message = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class MissingInput(ConnectorError):
    """The caller did not send something the operation needs."""

    status_code = 400
    public_message = "Missing input"


class InvalidProviderResponse(MissingInput):
    """The token endpoint answered 2xx but without the fields we need."""

    public_message = "Provider did not return an access token and store id"


class InvalidState(MissingInput):
    """The stored credential cannot support the requested operation."""

    public_message = "Store has no refresh token saved"


class NotFound(ConnectorError):
    status_code = 404
    public_message = "Token not found for this store"


class UpstreamFailure(ConnectorError):
    """Network error or non-2xx answer from Nuvemshop."""

    status_code = 500
    public_message = "Error calling the Nuvemshop API"

    def __init__(
        self,
        message: str | None = None,
        *,
        status: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class StorageError(ConnectorError):
    status_code = 500
    public_message = "Token storage unavailable"
