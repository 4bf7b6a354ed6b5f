"""Domain error taxonomy.

One exception type tagged with an ``ErrorKind``. Each kind carries
its wire label, default message and HTTP status, so the error
boundary can decide the response shape by looking at the kind alone.
New failure kinds get a new ``ErrorKind`` member rather than ad hoc
handling elsewhere.
"""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus


class StatusClass(Enum):
    CLIENT = "client"  # 4xx other than 404
    NOT_FOUND = "not_found"  # 404
    SERVER = "server"  # 5xx


def status_class_for(status_code: int) -> StatusClass:
    """Bucket an HTTP status code."""
    if status_code == HTTPStatus.NOT_FOUND:
        return StatusClass.NOT_FOUND
    if 400 <= status_code < 500:
        return StatusClass.CLIENT
    return StatusClass.SERVER


class ErrorKind(Enum):
    """(label, default message, status code) per failure kind."""

    SEND_EMAIL = (
        "SendEmailFailure",
        "Failed to send email",
        HTTPStatus.INTERNAL_SERVER_ERROR,
    )
    EXTERNAL_SERVICE = (
        "ExternalServiceFailure",
        "SendGrid error",
        HTTPStatus.INTERNAL_SERVER_ERROR,
    )
    STORAGE = (
        "StorageFailure",
        "Failed to manipulate database",
        HTTPStatus.INTERNAL_SERVER_ERROR,
    )
    VISION_MODEL = (
        "VisionModelFailure",
        "Vision model call failed",
        HTTPStatus.BAD_GATEWAY,
    )
    INVALID_INVOCATION = (
        "InvalidInvocation",
        "Wrong call",
        HTTPStatus.BAD_REQUEST,
    )
    INVALID_PARAMETERS = (
        "InvalidParameters",
        "Invalid parameters",
        HTTPStatus.BAD_REQUEST,
    )
    INVALID_EMAIL_ADDRESS = (
        "InvalidEmailAddress",
        "Invalid email address",
        HTTPStatus.BAD_REQUEST,
    )
    DUPLICATE_ACCOUNT = (
        "DuplicateAccount",
        "Account already exists, please try a different identifier",
        HTTPStatus.BAD_REQUEST,
    )
    ACCOUNT_NOT_ACTIVATED = (
        "AccountNotActivated",
        "Account is still not activated",
        HTTPStatus.BAD_REQUEST,
    )
    ACCOUNT_NOT_FOUND = (
        "AccountNotFound",
        "The account does not exist",
        HTTPStatus.NOT_FOUND,
    )
    UNCLASSIFIED = (
        "Unclassified",
        "Unknown error",
        HTTPStatus.INTERNAL_SERVER_ERROR,
    )

    def __init__(
        self, label: str, default_message: str, status: HTTPStatus
    ) -> None:
        self.label = label
        self.default_message = default_message
        self.status_code = int(status)


class DomainError(Exception):
    """A classified failure: kind, message, optional cause, status.

    Pure data carrier; construction never fails. The cause is also
    linked as ``__cause__`` so standard tracebacks show the chain.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        cause: BaseException | None = None,
        *,
        status_code: int | None = None,
    ) -> None:
        self.kind = kind
        self.message = message or kind.default_message
        self.cause = cause
        self.status_code = status_code or kind.status_code
        super().__init__(self.message)
        if cause is not None:
            self.__cause__ = cause

    @classmethod
    def unclassified(
        cls, cause: BaseException | None = None, message: str | None = None
    ) -> DomainError:
        """Wrap an unexpected failure, inheriting its message and status."""
        if message is None and cause is not None:
            message = str(cause)
        cause_status = getattr(cause, "status_code", None)
        return cls(
            ErrorKind.UNCLASSIFIED,
            message,
            cause,
            status_code=cause_status if isinstance(cause_status, int) else None,
        )

    @property
    def label(self) -> str:
        return self.kind.label

    @property
    def status_class(self) -> StatusClass:
        return status_class_for(self.status_code)

    def __repr__(self) -> str:
        return (
            f"DomainError(kind={self.kind.name}, message={self.message!r}, "
            f"status_code={self.status_code})"
        )
