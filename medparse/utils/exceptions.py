"""Custom exceptions for the report parsing core.

This module defines the exception hierarchy shared by the layout normalizer,
the resilient extractor and the batch pipeline:
- Base exception for all medparse errors
- Provider boundary errors (OCR / LLM calls made by the caller)
- Internal signals used inside the normalizer and extractor
- Programmer errors that are allowed to fail hard at the API boundary

Malformed provider *payloads* are never raised to callers. The normalizer and
extractor catch their internal signals and encode degradation in the returned
models instead.
"""


class MedParseError(Exception):
    """Base exception for all medparse errors

    Use this to catch any error raised by the package:
    ```python
    try:
        summary = await pipeline.run(jobs)
    except MedParseError as e:
        logger.error("batch_failed", error=str(e))
    ```
    """

    pass


class ProviderUnavailableError(MedParseError):
    """An upstream OCR or LLM provider could not be reached

    Raised by provider adapters when:
    - Network call fails or times out
    - Provider returns an authentication or server error
    - Provider returns no payload at all

    This is the only retryable error in the package.
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class MalformedGeometryError(MedParseError):
    """A page or fragment lacks the geometry needed for reading order

    Raised internally when:
    - A fragment quad does not hold exactly 8 numbers
    - A page declares no usable width/height

    The normalizer catches it, logs a warning and skips the offending item.
    """

    pass


class UnparsableResponseError(MedParseError):
    """No JSON value could be recovered from an LLM response

    Internal signal between the JSON recovery helpers and the extractor.
    Never escapes ``ResilientExtractor.extract``.
    """

    pass


class InvalidTargetError(MedParseError):
    """Extraction target declares no slots

    A programmer error: there is nothing to populate, so the extractor
    refuses the call instead of returning an empty result.
    """

    pass


class LineEditMismatchError(MedParseError):
    """Edited texts are not aligned with the normalized lines

    Raised when the number of caller-supplied texts differs from the
    number of lines in the document being edited.
    """

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(
            f"Expected {expected} edited lines aligned by global index, got {received}"
        )
        self.expected = expected
        self.received = received


class ConfigValidationError(MedParseError):
    """Configuration validation failed"""

    pass
