"""
Byte stream and bit cursor for the COM payload codec.

The codec reads its input one bit at a time through a 16-bit shift register.


THE SHIFT REGISTER
------------------
The register holds a window onto the bitstream, most significant bit first::

    register = [ high byte | low byte ]
                 ^
                 next bit to be read

Reading a bit returns bit 15 and shifts the register left by one.
A 3-bit counter tracks how many bits have been shifted out since the last
refill. When it reaches 8, the low byte has been fully shifted into the
high byte, so the next stream byte is loaded into the low byte::

    before: [ 1011 0010 | 0110 0000 ]  counter = 7
    read 1: [ 0110 0100 | 1100 0000 ]  counter = 8 -> 0
    refill: [ 0110 0100 | next byte ]

At any time the register therefore holds the next 16 - counter unread bits,
left aligned, with the low `counter` bits zero.


LEAVES
------
When the tree builder reaches a leaf, the next 8 bits are the literal byte.
They sit in the high byte of the register, so the literal is read in one go
and the register is re-aligned::

    1. literal  = high byte
    2. register <<= 8 - counter     (the 8 valid bits move to the high byte)
    3. low byte = next stream byte  (the window is full again)
    4. register <<= counter         (drop the bits already consumed)

The counter is unchanged: exactly 8 bits were consumed and one byte loaded.


READING PAST THE END
--------------------
Refills are eager, so the register may hold up to two bytes that lie past
the last bit of the stream. Those reads are allowed and yield zero. Anything
further is a hard error. Whether the zero bits were actually consumed is
settled by the block decoder when it rewinds the stream.
"""

from __future__ import annotations

from ..exceptions import MalformedStreamError
from .constants import (
    BITS_PER_REFILL,
    HIGH_BIT,
    REGISTER_LOOKAHEAD,
    REGISTER_MASK,
)


class CompressedStream:
    """An immutable byte sequence with a mutable read position."""

    __slots__ = ("_data", "position")

    def __init__(self, data: bytes | bytearray | memoryview, position: int = 0) -> None:
        self._data = bytes(data)
        self.position = position

    def __len__(self) -> int:
        return len(self._data)

    @property
    def overrun(self) -> int:
        """Number of bytes the position lies past the end of the data."""
        return max(0, self.position - len(self._data))

    def read_byte(self) -> int:
        """
        Read one byte that must be present.

        Raises:
            MalformedStreamError: If the stream is exhausted.
        """
        pos = self.position
        if pos >= len(self._data):
            raise MalformedStreamError("unexpected end of stream", offset=pos)
        self.position = pos + 1
        return self._data[pos]

    def read_bytes(self, count: int) -> bytes:
        """
        Read `count` bytes that must all be present.

        Raises:
            MalformedStreamError: If fewer than `count` bytes remain.
        """
        pos = self.position
        if pos + count > len(self._data):
            raise MalformedStreamError(
                f"needed {count} bytes but only {max(0, len(self._data) - pos)} remain",
                offset=pos,
            )
        self.position = pos + count
        return self._data[pos : pos + count]

    def fetch_byte(self) -> int:
        """
        Read one byte into the shift register.

        Up to REGISTER_LOOKAHEAD bytes past the end read as zero.

        Raises:
            MalformedStreamError: If the read lies further past the end.
        """
        pos = self.position
        if pos < len(self._data):
            self.position = pos + 1
            return self._data[pos]

        if pos - len(self._data) >= REGISTER_LOOKAHEAD:
            raise MalformedStreamError("bit reader ran past end of stream", offset=pos)

        self.position = pos + 1
        return 0

    def rewind(self, count: int) -> None:
        """Move the read position back by `count` bytes."""
        if count > self.position:
            raise MalformedStreamError(
                f"cannot rewind {count} bytes from position {self.position}",
                offset=self.position,
            )
        self.position -= count


class BitCursor:
    """
    A 16-bit shift register and its refill counter over a CompressedStream.

    One cursor is seeded per block. The tree builder consumes its bits first,
    then the symbol decoder continues from the same position.
    """

    __slots__ = ("stream", "register", "counter", "bits_consumed")

    def __init__(self, stream: CompressedStream, register: int = 0, counter: int = 0) -> None:
        self.stream = stream
        self.register = register & REGISTER_MASK
        self.counter = counter
        self.bits_consumed = 0

    @classmethod
    def seed(cls, stream: CompressedStream) -> BitCursor:
        """
        Start a cursor on the next two stream bytes.

        The first byte becomes the high byte of the register.
        """
        high = stream.fetch_byte()
        low = stream.fetch_byte()
        return cls(stream, (high << 8) | low)

    def test_and_advance(self) -> int:
        """
        Consume and return the next bit.

        Refills the low byte of the register every 8 bits.
        """
        bit = 1 if self.register & HIGH_BIT else 0
        self.register = (self.register << 1) & REGISTER_MASK
        self.bits_consumed += 1

        self.counter += 1
        if self.counter == BITS_PER_REFILL:
            self.counter = 0
            self.register = (self.register & 0xFF00) | self.stream.fetch_byte()

        return bit

    def seed_leaf(self) -> int:
        """
        Consume the next 8 bits as a literal byte value.

        Returns:
            The literal, taken from the high byte of the register.
        """
        value = self.register >> 8

        # Slide the remaining valid bits up, splice in a fresh byte, then
        # drop the bits of the old byte that were already consumed.
        register = (self.register << (BITS_PER_REFILL - self.counter)) & REGISTER_MASK
        register = (register & 0xFF00) | self.stream.fetch_byte()
        self.register = (register << self.counter) & REGISTER_MASK
        self.bits_consumed += BITS_PER_REFILL

        return value
