"""Typed models exchanged between the poller and its transport.

- ``SourceStatus``: Lifecycle status of a remote source
- ``Source``: The resource payload returned by the sources API (pydantic)
- ``FetchResult``: Outcome of a single status fetch

Design notes:
- ``Source`` is a pydantic model so response bodies are validated at the
  transport boundary; unknown fields are ignored.
- ``FetchResult`` is a frozen dataclass; the transport never raises, it
  reports failures through the ``error`` field.
- No magic strings: status values are a ``SourceStatus`` enum.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict

from source_poller.core.exceptions import ValidationError

# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ModelValidationError(ValueError, ValidationError):
    """Raised when a domain model is constructed with invalid field values.

    Attributes:
        model: Name of the model class that failed validation.
        field_name: The field that violated the invariant.
        value: The invalid value.
    """

    default_stage = "model_validation"
    default_code = "MODEL_VALIDATION_FAILED"

    def __init__(self, model: str, field_name: str, value: object, message: str) -> None:
        self.model = model
        self.field_name = field_name
        self.value = value
        formatted = f"{model}.{field_name}={value!r}: {message}"
        ValidationError.__init__(self, formatted)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class SourceStatus(enum.Enum):
    """Lifecycle status of a source.

    Values:
        PENDING:    Awaiting customer action; the only non-terminal status.
        CHARGEABLE: Ready to be charged.
        CONSUMED:   Already used to create a charge.
        CANCELED:   Canceled by the customer or expired.
        FAILED:     Authorization failed.
        UNKNOWN:    Any status this client does not recognise.
    """

    PENDING = "pending"
    CHARGEABLE = "chargeable"
    CONSUMED = "consumed"
    CANCELED = "canceled"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> SourceStatus:
        return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` for every status except ``PENDING``."""
        return self is not SourceStatus.PENDING


# ---------------------------------------------------------------------------
# Resource model
# ---------------------------------------------------------------------------


class Source(BaseModel):
    """A remote source as returned by ``GET /v1/sources/{id}``.

    Only ``status`` drives polling; the remaining fields are kept so
    callers receive a useful object in their update callback.

    Attributes:
        id: Source identifier (e.g. ``"src_123"``).
        object: API object type, always ``"source"``.
        status: Current lifecycle status.
        client_secret: Secret used to fetch the source without an API key.
        amount: Amount in the smallest currency unit, if any.
        currency: ISO currency code, if any.
        type: Payment method type (e.g. ``"three_d_secure"``).
        flow: Authentication flow (e.g. ``"redirect"``).
        livemode: Whether the source lives in live mode.
        created: Creation time as a Unix timestamp.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    object: str = "source"
    status: SourceStatus = SourceStatus.UNKNOWN
    client_secret: str | None = None
    amount: int | None = None
    currency: str | None = None
    type: str = ""
    flow: str | None = None
    livemode: bool = False
    created: int | None = None


# ---------------------------------------------------------------------------
# Fetch outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Outcome of one status fetch.

    A present ``status_code`` means the transport received an HTTP
    response.  ``status_code=None`` with an ``error`` means the request
    never produced a response (transport-level failure).

    Attributes:
        status_code: HTTP status code of the response, if any.
        source: Parsed source (populated on HTTP 200).
        error: Error describing a failed request or non-200 response.
    """

    status_code: int | None = None
    source: Source | None = None
    error: BaseException | None = None

    def __post_init__(self) -> None:
        if self.status_code is not None and not 100 <= self.status_code < 600:
            raise ModelValidationError(
                "FetchResult",
                "status_code",
                self.status_code,
                "must be between 100 and 599",
            )
