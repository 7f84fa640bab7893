"""Tests for locating, validating and extracting COM payloads."""

from __future__ import annotations

import logging
from collections.abc import Callable

import pytest

from comextract.config import ExtractConfig
from comextract.container import extract, find_candidate, scan, validate_header
from comextract.container import scanner as scanner_module
from comextract.exceptions import (
    InvalidHeaderError,
    MalformedStreamError,
    NoSegmentFoundError,
    UncompressedSegmentError,
)
from tests.comextract.helpers import (
    encode_block,
    encode_stream,
    make_com_file,
    make_header,
    make_segment,
)

DecompressCalls = list[tuple[bytes, int | None]]


@pytest.fixture
def decompress_calls(monkeypatch: pytest.MonkeyPatch) -> DecompressCalls:
    """Record every payload handed to the codec."""
    calls: DecompressCalls = []
    real_decompress: Callable[..., bytes] = scanner_module.decompress

    def spy(data: bytes, max_output: int | None = None) -> bytes:
        calls.append((bytes(data), max_output))
        return real_decompress(data, max_output=max_output)

    monkeypatch.setattr(scanner_module, "decompress", spy)
    return calls


class TestFindCandidate:
    """Tests for the signature search."""

    def test_offset_is_three_before_signature(self) -> None:
        assert find_candidate(b"\xff" * 10 + b"BIOS" + b"\x00" * 4) == 7

    def test_start_is_inclusive(self) -> None:
        data = b"\x00\x00\x00BIOS"
        assert find_candidate(data, 0) == 0
        assert find_candidate(data, 1) == -1

    def test_no_signature(self) -> None:
        assert find_candidate(b"\x00" * 64) == -1


class TestValidateHeader:
    """Tests for the per-candidate checks."""

    def test_valid(self, fill_stream: bytes) -> None:
        data = make_segment(fill_stream)
        header = validate_header(data, 0)
        assert header.header_size == 0x100
        assert header.compressed_size == len(fill_stream)
        assert header.decompressed_size == 0x400

    @pytest.mark.parametrize(
        ("fields", "reason"),
        [
            ({"zero": 1}, "not zero"),
            ({"compressed": 2}, "compression state is unknown"),
            ({"compressed_size": 0x401}, "larger than decompressed size"),
            ({"decompressed_size_shifted": 0x1001}, "larger than 0x400000"),
            ({"compressed_size": 0x300}, "extends past end of input"),
        ],
    )
    def test_rejected(self, fill_stream: bytes, fields: dict[str, int], reason: str) -> None:
        data = make_segment(fill_stream, **fields)
        with pytest.raises(InvalidHeaderError, match=reason) as exc:
            validate_header(data, 0)
        assert exc.value.offset == 0

    def test_header_must_fit(self) -> None:
        data = make_header(compressed_size=0, decompressed_size_shifted=0)
        with pytest.raises(InvalidHeaderError, match="bytes remain"):
            validate_header(data, 0)

    def test_configured_size_limit(self, fill_stream: bytes) -> None:
        data = make_segment(fill_stream, decompressed_size_shifted=2)
        config = ExtractConfig(max_decompressed_size=0x400)
        with pytest.raises(InvalidHeaderError, match="larger than 0x400"):
            validate_header(data, 0, config)

    def test_unknown_version_warns(
        self, fill_stream: bytes, caplog: pytest.LogCaptureFixture
    ) -> None:
        data = make_segment(fill_stream, version=7)
        with caplog.at_level(logging.WARNING):
            header = validate_header(data, 0)
        assert header.header_size == 0x200
        assert "Unknown header version 0x7" in caplog.text


class TestScan:
    """Tests for the scan loop."""

    def test_version_0_segment(self, fill_stream: bytes, decompress_calls: DecompressCalls) -> None:
        prefix = b"\x90" * 17
        data = make_com_file(make_segment(fill_stream), prefix=prefix, suffix=b"\xcc" * 64)

        segments = scan(data)

        assert len(segments) == 1
        assert segments[0].offset == 17
        assert segments[0].data == b"\xaa" * 0x400
        start = 17 + 0x100
        assert decompress_calls == [(data[start : start + len(fill_stream)], 0x400)]

    def test_version_2_segment(self, fill_stream: bytes, decompress_calls: DecompressCalls) -> None:
        data = make_com_file(make_segment(fill_stream, version=2))

        segments = scan(data)

        assert segments[0].data_offset == 0x200
        assert decompress_calls[0][0] == fill_stream

    def test_payload_range_is_exact(self, decompress_calls: DecompressCalls) -> None:
        """The codec sees exactly compressed_size bytes even when more follow."""
        stream = encode_stream(encode_block(0x11, b"\x11" * 0x400))
        payload = stream + b"\x00" * 9
        data = make_com_file(make_segment(payload), suffix=b"\xee" * 32)

        scan(data)

        assert decompress_calls[0][0] == payload

    @pytest.mark.parametrize(
        "fields",
        [
            {"zero": 0x100},
            {"compressed": 2},
            {"compressed": 0xFF},
            {"compressed_size": 0x401},
            {"decompressed_size_shifted": 0x1001},
            {"compressed_size": 0x300},
        ],
    )
    def test_rejected_candidates_never_decode(
        self,
        fill_stream: bytes,
        fields: dict[str, int],
        decompress_calls: DecompressCalls,
    ) -> None:
        data = make_com_file(make_segment(fill_stream, **fields))

        with pytest.raises(NoSegmentFoundError):
            scan(data)
        assert decompress_calls == []

    def test_two_segments(self, decompress_calls: DecompressCalls) -> None:
        first = encode_stream(encode_block(0x01, b"\x01" * 0x400))
        second = encode_stream(encode_block((0x02, 0x03), b"\x02\x03" * 0x400))
        data = make_com_file(
            make_segment(first),
            make_segment(second, decompressed_size_shifted=2, version=2),
            prefix=b"\xff" * 3,
            suffix=b"\xff" * 100,
        )

        segments = scan(data)

        assert [s.offset for s in segments] == [3, 3 + 0x100 + len(first)]
        assert extract(data) == b"\x01" * 0x400 + b"\x02\x03" * 0x400
        assert len(decompress_calls) == 4

    def test_resumes_after_payload(
        self, fill_stream: bytes, decompress_calls: DecompressCalls
    ) -> None:
        """A header inside a decoded payload's extent is never looked at."""
        inner = make_segment(fill_stream)
        data = make_com_file(make_segment(fill_stream + inner))

        segments = scan(data)

        assert len(segments) == 1
        assert len(decompress_calls) == 1

    def test_short_output_is_padded(self, caplog: pytest.LogCaptureFixture) -> None:
        stream = encode_stream(encode_block(0x7E, b"\x7e" * 10))
        data = make_com_file(make_segment(stream))

        with caplog.at_level(logging.WARNING):
            image = extract(data)

        assert image == b"\x7e" * 10 + b"\x00" * (0x400 - 10)
        assert "padding to declared size" in caplog.text

    def test_long_output_fails(self) -> None:
        stream = encode_stream(encode_block(0x7E, b"\x7e" * 0x401))
        data = make_com_file(make_segment(stream))

        with pytest.raises(MalformedStreamError, match="overflow"):
            scan(data)

    def test_logs_bios_version(self, fill_stream: bytes, caplog: pytest.LogCaptureFixture) -> None:
        data = make_com_file(make_segment(fill_stream, bios_version=b"V5.60"))
        with caplog.at_level(logging.INFO):
            scan(data)
        assert "BIOS version: V5.60" in caplog.text


class TestScanFailures:
    """Tests for segment failures and the error policy."""

    def test_input_too_small(self) -> None:
        with pytest.raises(NoSegmentFoundError):
            scan(b"\x00\x00\x00BIOS" + b"\x00" * 100)

    def test_no_signature(self) -> None:
        with pytest.raises(NoSegmentFoundError) as exc:
            scan(b"\x00" * 0x1000)
        assert exc.value.input_size == 0x1000

    def test_stored_segment_fails(self, decompress_calls: DecompressCalls) -> None:
        data = make_com_file(make_segment(b"\x11" * 32, compressed=0), prefix=b"\x00" * 8)

        with pytest.raises(UncompressedSegmentError) as exc:
            scan(data)

        assert exc.value.offset == 8
        assert exc.value.data_offset == 8 + 0x100
        assert decompress_calls == []

    def test_codec_failure_aborts(self, fill_stream: bytes) -> None:
        bad = b"\x05" + b"\x00" * 15
        data = make_com_file(make_segment(bad), make_segment(fill_stream))

        with pytest.raises(MalformedStreamError, match="unknown block marker"):
            scan(data)

    def test_continue_on_error_skips_failures(self, fill_stream: bytes) -> None:
        bad = b"\x05" + b"\x00" * 15
        data = make_com_file(
            make_segment(bad),
            make_segment(b"\x11" * 32, compressed=0),
            make_segment(fill_stream),
        )
        config = ExtractConfig(continue_on_error=True)

        segments = scan(data, config)

        assert len(segments) == 1
        assert segments[0].data == b"\xaa" * 0x400

    def test_continue_on_error_still_needs_a_segment(self) -> None:
        data = make_com_file(make_segment(b"\x05" + b"\x00" * 15))
        config = ExtractConfig(continue_on_error=True)

        with pytest.raises(NoSegmentFoundError):
            scan(data, config)
