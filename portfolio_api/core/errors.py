"""Error taxonomy for repository and deployment operations."""

from typing import Any, Optional

from fastapi import status


class DeployError(Exception):
    """Base error carrying the HTTP status it maps to at the API boundary."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, payload: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.payload = payload

    def to_response(self) -> dict[str, Any]:
        """Render the JSON body returned to the client."""
        body: dict[str, Any] = {"success": False, "message": self.message}
        if self.payload is not None:
            body["error"] = self.payload
        return body


class ValidationError(DeployError):
    """A required field is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST


class RemoteAPIError(DeployError):
    """A provider API answered with a non-2xx status or could not be reached."""

    def __init__(
        self,
        message: str,
        remote_status: Optional[int] = None,
        payload: Optional[Any] = None,
    ):
        super().__init__(message, payload)
        self.remote_status = remote_status


class RepositoryCreationError(RemoteAPIError):
    """The repository could not be created nor reused."""


class CollisionError(RemoteAPIError):
    """A site or project name is taken even after the suffixed retry."""


class PartialUploadError(RemoteAPIError):
    """At least one file of a batch failed to upload.

    ``outcomes`` lists every file of the batch, so callers can tell which
    files already landed in the repository.
    """

    def __init__(self, message: str, outcomes: list, remote_status: Optional[int] = None):
        super().__init__(message, remote_status=remote_status)
        self.outcomes = outcomes

    def to_response(self) -> dict[str, Any]:
        body = super().to_response()
        body["files"] = [
            outcome.model_dump(mode="json", by_alias=True) for outcome in self.outcomes
        ]
        return body


def provider_message(payload: Any, default: str) -> str:
    """Extract the human readable message from a provider error body."""
    if isinstance(payload, dict):
        for key in ("message", "error_message"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
        # Vercel nests its errors: {"error": {"code": ..., "message": ...}}
        nested = payload.get("error")
        if isinstance(nested, dict) and nested.get("message"):
            return str(nested["message"])
        if isinstance(nested, str) and nested:
            return nested
    if isinstance(payload, str) and payload:
        return payload
    return default
