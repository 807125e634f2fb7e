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

r"""Streaming Intel HEX segment scanner.

The :class:`Scanner` pulls text lines from a line source, decodes each of
them into a :class:`~ihexscan.record.Record`, and yields one
:class:`Segment` per *data* record, resolving its absolute address from the
address extension records seen so far.
"""

import enum
import logging
from typing import Iterable
from typing import Iterator
from typing import NamedTuple
from typing import Optional
from typing import Union

from .base import AnyBytes
from .errors import IhexError
from .errors import RecordFormatError
from .record import Record
from .record import RecordType

logger = logging.getLogger(__name__)


class AddressMode(enum.Enum):
    r"""Address extension mode."""

    NONE = 0
    r"""No address extension record seen yet."""

    SEGMENTED = 1
    r"""Extended Segment Address: base is the extension shifted by 4 bits."""

    LINEAR = 2
    r"""Extended Linear Address: base is the extension shifted by 16 bits."""


class AddressBase(NamedTuple):
    r"""Active address extension.

    Only one extension mode is active at a time: a new extension record
    always replaces the previous one.

    Examples:
        >>> base = AddressBase.linear(0xFFFF)
        >>> hex(base.resolve(0x0110))
        '0xffff0110'
        >>> base = AddressBase.segmented(0xFFFF)
        >>> hex(base.resolve(0x0110))
        '0x100100'
    """

    mode: AddressMode = AddressMode.NONE
    extension: int = 0

    @classmethod
    def linear(cls, extension: int) -> 'AddressBase':

        return cls(AddressMode.LINEAR, extension)

    @classmethod
    def segmented(cls, extension: int) -> 'AddressBase':

        return cls(AddressMode.SEGMENTED, extension)

    @property
    def offset(self) -> int:
        r"""int: Value added to the 16-bit address of data records."""

        mode = self.mode
        if mode is AddressMode.LINEAR:
            return self.extension << 16
        elif mode is AddressMode.SEGMENTED:
            return self.extension << 4
        else:
            return 0

    def resolve(self, address: int) -> int:
        r"""Resolves the absolute address of a data record address."""

        return self.offset + address


class Segment:
    r"""Absolutely addressed chunk of data.

    Args:
        address (int):
            Absolute start address.

        data (bytes):
            Data bytes; a private copy is stored.
    """

    def __eq__(self, other: 'Segment') -> bool:

        if not isinstance(other, Segment):
            return NotImplemented
        return self.address == other.address and self.data == other.data

    def __init__(self, address: int, data: AnyBytes = b''):

        self.address: int = address.__index__()
        self.data: bytes = bytes(data)

    def __len__(self) -> int:

        return len(self.data)

    def __repr__(self) -> str:

        return f'{self.__class__.__name__}(address=0x{self.address:08X}, data={self.data!r})'

    @property
    def endex(self) -> int:
        r"""int: Exclusive end address."""

        return self.address + len(self.data)


class Scanner(Iterator[Segment]):
    r"""Intel HEX segment scanner.

    It consumes a line source lazily, one line at a time, and produces one
    :class:`Segment` per *data* record.

    The stream must be terminated by an *End Of File* record; anything after
    it is never read.
    Blank lines are skipped.

    The first error stops the scanner for good: :meth:`scan` returns false
    from then on, and :attr:`error` holds the error.
    Errors raised by the line source (e.g. :class:`OSError`, or
    :class:`UnicodeDecodeError` from a text stream) is stored unaltered.

    The scanner can be driven either by :meth:`scan` and :attr:`segment`,
    or by iteration, which raises the stored error instead of stopping.

    Args:
        source (iterable):
            Line source, e.g. a binary file object, or a sequence of byte
            strings or strings.

    Examples:
        >>> lines = [b':020000040001F9', b':03000000616263D7', b':00000001FF']
        >>> scanner = Scanner(lines)
        >>> while scanner.scan():
        ...     print(scanner.segment)
        Segment(address=0x00010000, data=b'abc')
        >>> scanner.error is None
        True

        >>> list(Scanner([b':03000000616263D7']))
        Traceback (most recent call last):
            ...
        ihexscan.errors.RecordFormatError: line 1: unexpected end of stream
    """

    def __init__(self, source: Iterable[Union[AnyBytes, str]]):

        self._lines: Iterator[Union[AnyBytes, str]] = iter(source)
        self._base: AddressBase = AddressBase()
        self._segment: Optional[Segment] = None
        self._error: Optional[Exception] = None
        self._finished: bool = False
        self._row: int = 0

    def __iter__(self) -> 'Scanner':

        return self

    def __next__(self) -> Segment:

        if self.scan():
            return self._segment
        if self._error is not None:
            raise self._error
        raise StopIteration

    @property
    def base(self) -> AddressBase:
        r""":class:`AddressBase`: Active address extension."""

        return self._base

    @property
    def error(self) -> Optional[Exception]:
        r"""Exception: Terminal error, or ``None``."""

        return self._error

    @property
    def row(self) -> int:
        r"""int: Number of lines read so far."""

        return self._row

    @property
    def segment(self) -> Optional[Segment]:
        r""":class:`Segment`: Segment found by the last successful :meth:`scan`."""

        return self._segment

    def _fail(self, error: Exception) -> bool:

        self._error = error
        self._segment = None
        logger.debug('scan stopped at line %d: %s', self._row, error)
        return False

    def scan(self) -> bool:
        r"""Advances to the next segment.

        Returns:
            bool: A new segment is available via :attr:`segment`; false if the
            stream ended, either successfully or with :attr:`error`.
        """

        if self._error is not None or self._finished:
            return False

        while True:
            try:
                line = next(self._lines)
            except StopIteration:
                error = RecordFormatError('unexpected end of stream', line=(self._row or None))
                return self._fail(error)
            except Exception as exc:
                return self._fail(exc)

            self._row += 1

            if isinstance(line, str):
                line = line.rstrip('\r\n')
            else:
                line = bytes(line).rstrip(b'\r\n')
            if not line:
                continue

            try:
                record = Record.parse(line)
            except IhexError as exc:
                exc.line = self._row
                return self._fail(exc)

            record_type = record.record_type

            if record_type == RecordType.DATA:
                address = self._base.resolve(record.address)
                self._segment = Segment(address, record.data)
                return True

            elif record_type == RecordType.END_OF_FILE:
                logger.debug('end of file at line %d', self._row)
                self._segment = None
                self._finished = True
                return False

            elif record_type == RecordType.EXTENDED_SEGMENT_ADDRESS:
                self._base = AddressBase.segmented(record.data_to_int())
                logger.debug('line %d: segment base 0x%08X', self._row, self._base.offset)

            elif record_type == RecordType.EXTENDED_LINEAR_ADDRESS:
                self._base = AddressBase.linear(record.data_to_int())
                logger.debug('line %d: linear base 0x%08X', self._row, self._base.offset)

            else:
                logger.debug('line %d: ignored %s record', self._row, record_type.name)


def scan(source: Iterable[Union[AnyBytes, str]]) -> Iterator[Segment]:
    r"""Scans segments from a line source.

    Shortcut for iterating a :class:`Scanner`.

    Args:
        source (iterable):
            Line source.

    Yields:
        :class:`Segment`: Segments in stream order.

    Raises:
        IhexError: Malformed stream.

        OSError: Line source failure.

    Examples:
        >>> import io
        >>> stream = io.BytesIO(b':0300300002337A1E\n:00000001FF\n')
        >>> [segment.address for segment in scan(stream)]
        [48]
    """

    yield from Scanner(source)
