"""Exception hierarchy for COM file extraction."""

from __future__ import annotations


class ComExtractError(Exception):
    """
    Base exception for all extraction errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class CodecError(ComExtractError):
    """Base class for errors raised while decoding a compressed stream."""


class MalformedStreamError(CodecError):
    """
    Raised when a compressed stream cannot be decoded.

    Covers unknown block markers, reads past the end of the stream and
    blocks producing more output than the caller allows.

    Attributes:
        detail: Description of what went wrong.
        offset: The stream offset where the error was detected (if known).
    """

    def __init__(self, detail: str, *, offset: int | None = None) -> None:
        self.detail = detail
        self.offset = offset

        msg = f"Malformed stream: {detail}"
        if offset is not None:
            msg = f"{msg} (at byte offset {offset})"

        super().__init__(msg)


class TreeTooLargeError(CodecError):
    """
    Raised when a serialized decode tree has more internal nodes than the tables hold.

    Attributes:
        limit: The maximum number of internal nodes.
        offset: The stream offset where the overflow was detected (if known).
    """

    def __init__(self, limit: int, *, offset: int | None = None) -> None:
        self.limit = limit
        self.offset = offset

        msg = f"Decode tree exceeds {limit} internal nodes"
        if offset is not None:
            msg = f"{msg} (at byte offset {offset})"

        super().__init__(msg)


class ContainerError(ComExtractError):
    """Base class for errors about the outer COM container."""


class InvalidHeaderError(ContainerError):
    """
    Raised when a signature candidate does not hold a usable header.

    Attributes:
        offset: Offset of the candidate header in the input.
        reason: Why the candidate was rejected.
    """

    def __init__(self, offset: int, reason: str) -> None:
        self.offset = offset
        self.reason = reason
        super().__init__(f"Invalid header at offset {offset:#x}: {reason}")


class UncompressedSegmentError(ContainerError):
    """
    Raised when a valid header announces a stored (uncompressed) payload.

    Only compressed payloads are extracted.

    Attributes:
        offset: Offset of the header in the input.
        data_offset: Offset of the stored payload in the input.
    """

    def __init__(self, offset: int, data_offset: int) -> None:
        self.offset = offset
        self.data_offset = data_offset
        super().__init__(
            f"Segment at offset {offset:#x} is not compressed, "
            f"data starts at offset {data_offset:#x}"
        )


class NoSegmentFoundError(ContainerError):
    """Raised when a scan finishes without decoding any segment."""

    def __init__(self, input_size: int) -> None:
        self.input_size = input_size
        super().__init__(f"No compressed segment found in {input_size} bytes of input")
