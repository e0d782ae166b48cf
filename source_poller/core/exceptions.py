"""Exception hierarchy shared by the poller, models and transports.

Every domain exception derives from ``SourcePollerError`` and carries a
``stage`` (which component raised it), a machine-readable ``code`` and a
``retryable`` flag.  Three category bases refine the meaning:

- ``ValidationError``: bad input or configuration, never retryable.
- ``TransientError``: connectivity blips, retryable.
- ``ContractError``: the remote API answered with something unusable.

Errors outside those bases are classified by their ``retryable`` flag
(``"transient"`` or ``"permanent"``).  ``error_fields()`` renders any
exception, domain or not, as the flat dict the poller and CLI log.
"""

from __future__ import annotations


class SourcePollerError(Exception):
    """Base exception for all source-poller errors.

    Attributes:
        message: Human-readable error description.
        stage: Component where the error occurred
            (e.g. ``"transport"``, ``"config"``).
        code: Machine-readable error code (e.g. ``"CONNECTION_LOST"``).
        retryable: Whether the operation may succeed when repeated.
    """

    default_stage: str = ""
    default_code: str = ""
    # Set only on the category bases below.
    _category: str | None = None

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        super().__init__(message)

    @property
    def category(self) -> str:
        if self._category is not None:
            return self._category
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return the error as a dict with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
        }


class ValidationError(SourcePollerError):
    """Input, model or configuration validation failure."""

    _category = "validation"

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs["retryable"] = False
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(SourcePollerError):
    """Failure expected to clear up on its own."""

    _category = "transient"

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(SourcePollerError):
    """The remote API broke its response contract."""

    _category = "contract"

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs["retryable"] = False
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


def error_fields(error: BaseException) -> dict[str, object]:
    """Describe *error* for structured logging.

    Domain errors use ``to_error_dict()``; anything else (a bug in a
    custom transport, a raw ``OSError``) is reported as ``unexpected``
    with its class name as the code.
    """
    if isinstance(error, SourcePollerError):
        return error.to_error_dict()
    return {
        "category": "unexpected",
        "code": type(error).__name__,
        "stage": "",
        "message": str(error),
        "retryable": False,
    }
