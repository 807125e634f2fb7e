# Copyright (c) 2013-2025, Andrea Zoppi
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

r"""Segment collection utilities.

A :class:`SegmentList` collects the segments found by the scanner, and
provides ordering, span computation, flat image assembly, and
re-serialization into Intel HEX records.
"""

import io
import logging
import sys
from operator import attrgetter
from typing import IO
from typing import Iterable
from typing import Optional
from typing import Union

from bytesparse import Memory
from bytesparse.base import ImmutableMemory

from .base import AnyBytes
from .base import AnyPath
from .record import Record
from .scanner import Scanner
from .scanner import Segment

logger = logging.getLogger(__name__)

_address_key = attrgetter('address')


class SegmentList(list):
    r"""List of :class:`~ihexscan.scanner.Segment` objects.

    Examples:
        >>> segments = SegmentList([Segment(0x20, b'xyz'), Segment(0x10, b'abc')])
        >>> segments.sort()
        >>> [hex(segment.address) for segment in segments]
        ['0x10', '0x20']
        >>> segments.size()
        19
    """

    def sort(self, *, reverse: bool = False) -> None:
        r"""Sorts segments by ascending address (stable)."""

        super().sort(key=_address_key, reverse=reverse)

    def size(self) -> int:
        r"""Address span of the segments.

        The segments must be sorted by address, without overlapping.

        Returns:
            int: Distance between the start of the first segment and the end
            of the last segment.
        """

        if not self:
            return 0
        if len(self) == 1:
            return len(self[0].data)
        first = self[0]
        last = self[-1]
        return (last.address + len(last.data)) - first.address

    @classmethod
    def from_bytes(
        cls,
        data: AnyBytes,
        offset: int = 0,
        maxdatalen: int = 16,
    ) -> 'SegmentList':
        r"""Splits a byte string into segments.

        Args:
            data (bytes):
                Byte string.

            offset (int):
                Address of the first byte.

            maxdatalen (int):
                Maximum segment length.

        Returns:
            :class:`SegmentList`: Segments, sorted by address.

        Examples:
            >>> SegmentList.from_bytes(b'abcdef', offset=0x1FFFE, maxdatalen=4)  # doctest:+NORMALIZE_WHITESPACE
            [Segment(address=0x0001FFFE, data=b'ab'),
             Segment(address=0x00020000, data=b'cdef')]
        """

        memory = Memory.from_bytes(data, offset=offset)
        return cls.from_memory(memory, maxdatalen=maxdatalen)

    @classmethod
    def from_memory(
        cls,
        memory: ImmutableMemory,
        maxdatalen: int = 16,
    ) -> 'SegmentList':
        r"""Splits memory blocks into segments.

        Each block is chopped into segments of up to `maxdatalen` bytes.
        No segment crosses a 64 KiB boundary, so that each one fits a single
        *data* record.

        Args:
            memory (:class:`bytesparse.base.ImmutableMemory`):
                Memory to split.

            maxdatalen (int):
                Maximum segment length, within 1 and 255.

        Returns:
            :class:`SegmentList`: Segments, sorted by address.
        """

        maxdatalen = maxdatalen.__index__()
        if not 1 <= maxdatalen <= 0xFF:
            raise ValueError('invalid maximum data length')

        segments = cls()

        for block_start, block_data in memory.to_blocks():
            size = len(block_data)
            offset = 0

            while offset < size:
                address = block_start + offset
                bank_endex = (address | 0xFFFF) + 1
                length = min(maxdatalen, size - offset, bank_endex - address)
                segments.append(Segment(address, block_data[offset:(offset + length)]))
                offset += length

        return segments

    @classmethod
    def load(cls, path: Optional[AnyPath]) -> 'SegmentList':
        r"""Loads segments from an Intel HEX file.

        Args:
            path (str):
                Path of the file within the filesystem.
                If ``None``, ``sys.stdin.buffer`` is used.

        Returns:
            :class:`SegmentList`: Segments, in file order.

        Raises:
            IhexError: Malformed file.

            OSError: File access failure.
        """

        if path is None:
            return cls.scan(sys.stdin.buffer)

        with open(path, 'rb') as stream:
            return cls.scan(stream)

    def save(self, path: Optional[AnyPath], end: AnyBytes = b'\n') -> 'SegmentList':
        r"""Saves segments as an Intel HEX file.

        Args:
            path (str):
                Path of the file within the filesystem.
                If ``None``, ``sys.stdout.buffer`` is used.

            end (bytes):
                Line terminator.

        Returns:
            :class:`SegmentList`: *self*.
        """

        if path is None:
            return self.write(sys.stdout.buffer, end=end)

        with open(path, 'wb') as stream:
            return self.write(stream, end=end)

    @classmethod
    def scan(cls, stream: Union[AnyBytes, str, Iterable[Union[AnyBytes, str]]]) -> 'SegmentList':
        r"""Scans all the segments of a record stream.

        Args:
            stream (bytes IO or buffer):
                Line source, or byte buffer or text holding the whole stream.

        Returns:
            :class:`SegmentList`: Segments, in stream order.

        Examples:
            >>> SegmentList.scan(b':0300300002337A1E\n:00000001FF\n')
            [Segment(address=0x00000030, data=b'\x023z')]
        """

        if isinstance(stream, (bytes, bytearray, memoryview)):
            stream = io.BytesIO(stream)
        elif isinstance(stream, str):
            stream = io.StringIO(stream)

        segments = cls(Scanner(stream))
        logger.debug('scanned %d segments', len(segments))
        return segments

    def to_bytes(self, fill: int = 0xFF) -> bytes:
        r"""Assembles a flat memory image.

        The image starts at the lowest segment address and ends at the
        highest segment end address; gaps are filled with `fill`.

        Args:
            fill (int):
                Byte value for gaps.

        Returns:
            bytes: Flat memory image.

        Raises:
            ValueError: No segments.

        Examples:
            >>> segments = SegmentList([Segment(0x10, b'abc'), Segment(0x15, b'xyz')])
            >>> segments.to_bytes(fill=ord('.'))
            b'abc..xyz'
        """

        if not self:
            raise ValueError('no segments')

        memory = self.to_memory()
        memory.flood(pattern=fill)
        return memory.to_bytes()

    def to_bytestr(self, end: AnyBytes = b'\n') -> bytes:
        r"""Serializes segments into Intel HEX text.

        Examples:
            >>> SegmentList([Segment(0x12345, b'abc')]).to_bytestr()
            b':020000040001F9\n:032345006162636F\n:00000001FF\n'
        """

        stream = io.BytesIO()
        self.write(stream, end=end)
        return stream.getvalue()

    def to_memory(self) -> Memory:
        r"""Writes segments into a new sparse memory.

        Segments are written in address order.

        Returns:
            :class:`bytesparse.Memory`: Sparse memory.
        """

        memory = Memory()
        for segment in sorted(self, key=_address_key):
            memory.write(segment.address, segment.data)
        return memory

    def to_records(self) -> Iterable[Record]:
        r"""Converts segments into records.

        Segments are processed in address order.
        An *Extended Linear Address* record is emitted whenever the upper
        16 bits of a segment address differ from the last ones emitted
        (initially zero).
        The *End Of File* record comes last.

        Yields:
            :class:`~ihexscan.record.Record`: Records.

        Raises:
            RecordFormatError: Segment too long for a single record.
        """

        extension = 0

        for segment in sorted(self, key=_address_key):
            address = segment.address
            upper = address >> 16

            if upper != extension:
                extension = upper
                yield Record.create_extended_linear_address(extension)

            yield Record.create_data(address & 0xFFFF, segment.data)

        yield Record.create_end_of_file()

    def write(self, stream: IO, end: AnyBytes = b'\n') -> 'SegmentList':
        r"""Writes segments as Intel HEX records onto a byte stream.

        Args:
            stream (bytes IO):
                Output byte stream.

            end (bytes):
                Line terminator.

        Returns:
            :class:`SegmentList`: *self*.

        See Also:
            :meth:`to_records`
        """

        for record in self.to_records():
            stream.write(record.to_bytestr(end=end))
        return self
