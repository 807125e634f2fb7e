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

r"""Intel HEX record codec.

A record is the binary content of a single line of an Intel HEX file:

=========  ==========  ===============================================
Field      Size        Description
=========  ==========  ===============================================
count      1 byte      Number of bytes within the *data* field.
address    2 bytes     Big-endian 16-bit offset within the current bank.
type       1 byte      :class:`RecordType`.
data       count       Payload.
checksum   1 byte      Two's complement of the sum of all the above.
=========  ==========  ===============================================

Serialized as text, the record bytes are written as uppercase hexadecimal
digits after the ``:`` start code.

See Also:
    `<https://en.wikipedia.org/wiki/Intel_HEX>`_
"""

import enum
import struct
import sys
from typing import IO
from typing import Any
from typing import Mapping
from typing import MutableMapping
from typing import Optional
from typing import Sequence
from typing import Union

from .base import AnyBytes
from .base import EllipsisType
from .base import colorize_tokens
from .errors import ChecksumError
from .errors import InvalidRecordTypeError
from .errors import RecordFormatError
from .utils import hexlify
from .utils import unhexlify

START_CODE: bytes = b':'
r"""Start code of each record line."""

_HEADER_STRUCT = struct.Struct('>BHB')


class RecordType(enum.IntEnum):
    r"""Intel HEX record type."""

    DATA = 0
    r"""Binary data."""

    END_OF_FILE = 1
    r"""End Of File."""

    EXTENDED_SEGMENT_ADDRESS = 2
    r"""Extended Segment Address."""

    START_SEGMENT_ADDRESS = 3
    r"""Start Segment Address."""

    EXTENDED_LINEAR_ADDRESS = 4
    r"""Extended Linear Address."""

    START_LINEAR_ADDRESS = 5
    r"""Start Linear Address."""

    def is_data(self) -> bool:

        return self == self.DATA

    def is_eof(self) -> bool:
        r"""Tells whether this is an End Of File record type.

        Examples:
            >>> RecordType.END_OF_FILE.is_eof()
            True
            >>> RecordType.DATA.is_eof()
            False
        """

        return self == self.END_OF_FILE

    def is_extension(self) -> bool:
        r"""Tells whether this is an Extended Address record type.

        Extended Address records change the base address of the following
        *data* records, and always carry exactly 2 bytes of data.

        Examples:
            >>> RecordType.EXTENDED_LINEAR_ADDRESS.is_extension()
            True
            >>> RecordType.EXTENDED_SEGMENT_ADDRESS.is_extension()
            True
            >>> RecordType.DATA.is_extension()
            False
        """

        return ((self == self.EXTENDED_SEGMENT_ADDRESS) or
                (self == self.EXTENDED_LINEAR_ADDRESS))

    def is_start(self) -> bool:
        r"""Tells whether this is a Start Address record type.

        Examples:
            >>> RecordType.START_LINEAR_ADDRESS.is_start()
            True
            >>> RecordType.START_SEGMENT_ADDRESS.is_start()
            True
            >>> RecordType.DATA.is_start()
            False
        """

        return ((self == self.START_SEGMENT_ADDRESS) or
                (self == self.START_LINEAR_ADDRESS))


NUM_RECORD_TYPES: int = len(RecordType)
r"""Number of supported record types; greater values are invalid."""


def checksum(data: AnyBytes) -> int:
    r"""Two's complement checksum.

    Args:
        data (bytes):
            Bytes to sum.

    Returns:
        int: Checksum byte value.

    Examples:
        >>> checksum(bytes.fromhex('0300300002337A'))
        30
        >>> checksum(b'')
        0
    """

    return -sum(data) & 0xFF


class Record:
    r"""Intel HEX record object.

    Attributes:
        record_type (:class:`RecordType` or int):
            Record type; plain integers are kept only for unsupported values,
            which :meth:`encode` rejects.

        address (int):
            16-bit address field.

        data (bytes):
            Data field.

        byte_count (int):
            Declared length of the data field.

        checksum (int):
            Checksum field.

    Args:
        record_type (:class:`RecordType` or int):
            See :attr:`record_type` attribute.

        address (int):
            See :attr:`address` attribute.

        data (bytes):
            See :attr:`data` attribute.

        byte_count (int):
            See :attr:`byte_count` attribute.
            ``Ellipsis`` takes the length of `data`.

        checksum (int):
            See :attr:`checksum` attribute.
            ``Ellipsis`` initializes it via :meth:`compute_checksum`.
    """

    EQUALITY_KEYS: Sequence[str] = [
        'address',
        'byte_count',
        'checksum',
        'data',
        'record_type',
    ]
    r"""Attributes compared by equality checks."""

    def __eq__(self, other: 'Record') -> bool:

        return not self != other

    def __init__(
        self,
        record_type: Union[RecordType, int],
        address: int = 0,
        data: AnyBytes = b'',
        byte_count: Union[int, EllipsisType] = Ellipsis,
        checksum: Union[int, EllipsisType] = Ellipsis,
    ):

        record_type = record_type.__index__()
        if 0 <= record_type < NUM_RECORD_TYPES:
            record_type = RecordType(record_type)

        self.record_type: Union[RecordType, int] = record_type
        self.address: int = address.__index__()
        self.data: bytes = bytes(data)

        if byte_count is Ellipsis:
            self.byte_count: int = len(self.data)
        else:
            self.byte_count: int = byte_count.__index__()

        if checksum is Ellipsis:
            self.checksum: int = self.compute_checksum()
        else:
            self.checksum: int = checksum.__index__()

    def __ne__(self, other: 'Record') -> bool:

        for key in self.EQUALITY_KEYS:
            if not hasattr(other, key):
                return True
            if getattr(self, key) != getattr(other, key):
                return True
        return False

    def __repr__(self) -> str:

        meta = self.get_meta()
        text = f'<{self.__class__!s} @0x{id(self):08X} '
        text += ' '.join(f'{key!s}:={value!r}' for key, value in meta.items())
        text += '>'
        return text

    def __str__(self) -> str:

        return self.to_bytestr().decode()

    def _pack_fields(self) -> bytes:

        header = _HEADER_STRUCT.pack(self.byte_count & 0xFF,
                                     self.address & 0xFFFF,
                                     self.record_type & 0xFF)
        return header + self.data

    def compute_checksum(self) -> int:
        r"""Computes the checksum field value.

        The checksum covers the *count*, *address*, *type*, and *data* fields
        as they are serialized.

        Returns:
            int: Computed checksum value.

        Examples:
            >>> Record.create_data(0, b'abc').compute_checksum()
            215
        """

        return checksum(self._pack_fields())

    @classmethod
    def create_data(cls, address: int, data: AnyBytes) -> 'Record':
        r"""Creates a Data record.

        Args:
            address (int):
                16-bit record address.

            data (bytes):
                Record data, up to 255 bytes.

        Returns:
            :class:`Record`: Data record object.

        Examples:
            >>> str(Record.create_data(0x1234, b'abc'))
            ':0312340061626391\n'
        """

        address = address.__index__()
        if not 0 <= address <= 0xFFFF:
            raise RecordFormatError('address overflow')

        if len(data) > 0xFF:
            raise RecordFormatError('data size overflow')

        return cls(RecordType.DATA, address=address, data=data)

    @classmethod
    def create_end_of_file(cls) -> 'Record':
        r"""Creates an End Of File record.

        Examples:
            >>> str(Record.create_end_of_file())
            ':00000001FF\n'
        """

        return cls(RecordType.END_OF_FILE)

    @classmethod
    def _create_extension(cls, record_type: RecordType, extension: int) -> 'Record':

        extension = extension.__index__()
        if not 0 <= extension <= 0xFFFF:
            raise RecordFormatError('extension overflow')

        data = extension.to_bytes(2, byteorder='big')
        return cls(record_type, data=data)

    @classmethod
    def create_extended_linear_address(cls, extension: int) -> 'Record':
        r"""Creates an Extended Linear Address record.

        Args:
            extension (int):
                Upper 16 bits of the following data record addresses.

        Returns:
            :class:`Record`: Extended Linear Address record object.

        Examples:
            >>> str(Record.create_extended_linear_address(0x1234))
            ':020000041234B4\n'
        """

        return cls._create_extension(RecordType.EXTENDED_LINEAR_ADDRESS, extension)

    @classmethod
    def create_extended_segment_address(cls, extension: int) -> 'Record':
        r"""Creates an Extended Segment Address record.

        Args:
            extension (int):
                Segment value, shifted left by 4 bits when applied.

        Returns:
            :class:`Record`: Extended Segment Address record object.

        Examples:
            >>> str(Record.create_extended_segment_address(0x1234))
            ':020000021234B6\n'
        """

        return cls._create_extension(RecordType.EXTENDED_SEGMENT_ADDRESS, extension)

    @classmethod
    def _create_start(cls, record_type: RecordType, address: int) -> 'Record':

        address = address.__index__()
        if not 0 <= address <= 0xFFFFFFFF:
            raise RecordFormatError('address overflow')

        data = address.to_bytes(4, byteorder='big')
        return cls(record_type, data=data)

    @classmethod
    def create_start_linear_address(cls, address: int) -> 'Record':
        r"""Creates a Start Linear Address record.

        Examples:
            >>> str(Record.create_start_linear_address(0x12345678))
            ':0400000512345678E3\n'
        """

        return cls._create_start(RecordType.START_LINEAR_ADDRESS, address)

    @classmethod
    def create_start_segment_address(cls, address: int) -> 'Record':
        r"""Creates a Start Segment Address record.

        Examples:
            >>> str(Record.create_start_segment_address(0x12345678))
            ':0400000312345678E5\n'
        """

        return cls._create_start(RecordType.START_SEGMENT_ADDRESS, address)

    def data_to_int(self) -> int:
        r"""Interprets data bytes as a big-endian unsigned integer.

        Examples:
            >>> record = Record.create_extended_linear_address(0xABCD)
            >>> hex(record.data_to_int())
            '0xabcd'
        """

        return int.from_bytes(self.data, byteorder='big')

    @classmethod
    def decode(cls, bytestr: AnyBytes) -> 'Record':
        r"""Decodes a record from its binary representation.

        The input must hold exactly the record fields, nothing less and
        nothing more.

        Args:
            bytestr (bytes):
                Binary record representation.

        Returns:
            :class:`Record`: Decoded record.

        Raises:
            RecordFormatError: Missing bytes, trailing bytes, or wrong byte
                count for an Extended Address record.

            InvalidRecordTypeError: Unsupported record type.

            ChecksumError: Checksum mismatch.

        Examples:
            >>> record = Record.decode(bytes.fromhex('0312340061626391'))
            >>> record.address, record.record_type, record.data
            (4660, <RecordType.DATA: 0>, b'abc')
            >>> Record.decode(b'')
            Traceback (most recent call last):
                ...
            ihexscan.errors.RecordFormatError: error decoding byte count field: unexpected end of record
        """

        bytestr = bytes(bytestr)
        size = len(bytestr)

        if size < 1:
            raise RecordFormatError('error decoding byte count field: unexpected end of record')
        byte_count = bytestr[0]

        if size < 3:
            raise RecordFormatError('error decoding address field: unexpected end of record')
        address = int.from_bytes(bytestr[1:3], byteorder='big')

        if size < 4:
            raise RecordFormatError('error decoding record type field: unexpected end of record')
        record_type = bytestr[3]
        if record_type >= NUM_RECORD_TYPES:
            raise InvalidRecordTypeError(record_type)
        record_type = RecordType(record_type)

        if record_type.is_extension() and byte_count != 2:
            raise RecordFormatError(f'expected {record_type.name} record to have '
                                    f'byte count of 0x02 but got 0x{byte_count:02X}')

        endex = 4 + byte_count
        if size < endex:
            raise RecordFormatError('error decoding data field: unexpected end of record')
        data = bytestr[4:endex]

        if size < endex + 1:
            raise RecordFormatError('error decoding checksum field: unexpected end of record')
        expected = bytestr[endex]

        if size > endex + 1:
            raise RecordFormatError(f'unexpected trailing bytes: {size - endex - 1}')

        calculated = checksum(bytestr[:endex])
        if calculated != expected:
            raise ChecksumError(expected, calculated)

        return cls(record_type, address=address, data=data,
                   byte_count=byte_count, checksum=expected)

    def encode(self) -> bytes:
        r"""Encodes the record into its binary representation.

        The :attr:`checksum` is computed from the serialized fields and
        updated accordingly.

        Returns:
            bytes: Binary record representation.

        Raises:
            RecordFormatError: Byte count not matching the data length,
                wrong byte count for an Extended Address record, or field
                overflow.

            InvalidRecordTypeError: Unsupported record type.

        Examples:
            >>> Record.create_data(0x1234, b'abc').encode().hex().upper()
            '0312340061626391'
        """

        byte_count = self.byte_count
        data_size = len(self.data)
        if byte_count != data_size:
            raise RecordFormatError(f'byte count was {byte_count} '
                                    f'but data length was {data_size}')

        if data_size > 0xFF:
            raise RecordFormatError('data size overflow')

        if not 0 <= self.address <= 0xFFFF:
            raise RecordFormatError('address overflow')

        record_type = self.record_type
        if not isinstance(record_type, RecordType):
            raise InvalidRecordTypeError(record_type & 0xFF)

        if record_type.is_extension() and byte_count != 2:
            raise RecordFormatError(f'expected {record_type.name} record to have '
                                    f'byte count of 0x02 but got 0x{byte_count:02X}')

        fields = self._pack_fields()
        self.checksum = checksum(fields)
        return fields + bytes((self.checksum,))

    def get_meta(self) -> MutableMapping[str, Any]:
        r"""Gets the record fields as a mapping."""

        return {key: getattr(self, key) for key in self.EQUALITY_KEYS}

    @classmethod
    def parse(cls, line: Union[AnyBytes, str]) -> 'Record':
        r"""Parses a record from a text line.

        Any trailing line terminators are ignored.
        Hexadecimal digits are case-insensitive.

        Args:
            line (bytes or str):
                Text line, starting with the ``:`` start code.

        Returns:
            :class:`Record`: Parsed record.

        Raises:
            RecordFormatError: Missing start code or invalid hexadecimal
                digits, as well as any errors raised by :meth:`decode`.

        Examples:
            >>> Record.parse(b':00000001FF\r\n').record_type
            <RecordType.END_OF_FILE: 1>
            >>> Record.parse(b'00000001FF')
            Traceback (most recent call last):
                ...
            ihexscan.errors.RecordFormatError: expected start code b':' but got b'0'
        """

        if isinstance(line, str):
            try:
                line = line.encode('ascii')
            except UnicodeEncodeError as exc:
                raise RecordFormatError('non-ASCII characters') from exc

        line = bytes(line).rstrip(b'\r\n')

        begin = line[:1]
        if begin != START_CODE:
            raise RecordFormatError(f'expected start code {START_CODE!r} but got {begin!r}')

        try:
            bytestr = unhexlify(line[1:])
        except ValueError as exc:
            raise RecordFormatError(f'invalid hexadecimal digits: {exc}') from exc

        return cls.decode(bytestr)

    def print(
        self,
        stream: Optional[IO] = None,
        color: bool = False,
        end: AnyBytes = b'\n',
    ) -> 'Record':
        r"""Prints the record.

        The record is converted into tokens (eventually colorized) then joined
        and written onto a byte stream (*stdout* by default).

        Args:
            stream (bytes IO):
                The byte stream where the record tokens are printed.
                If ``None``, *stdout* is selected.

            color (bool):
                Tokens are colorized before printing.

            end (bytes):
                Line terminator.

        Returns:
            :class:`Record`: *self*.
        """

        if stream is None:
            stream = sys.stdout.buffer
        tokens = self.to_tokens(end=end)
        if color:
            tokens = colorize_tokens(tokens)
        stream.writelines(tokens.values())
        return self

    def to_bytestr(self, end: AnyBytes = b'\n') -> bytes:
        r"""Serializes the record into a text line.

        Args:
            end (bytes):
                Line terminator.

        Returns:
            bytes: ``:`` start code, uppercase hexadecimal digits, `end`.

        Examples:
            >>> Record.create_data(0x1234, b'abc').to_bytestr(end=b'\r\n')
            b':0312340061626391\r\n'
        """

        return START_CODE + hexlify(self.encode()) + bytes(end)

    def to_tokens(self, end: AnyBytes = b'\n') -> Mapping[str, bytes]:
        r"""Serializes the record into text tokens, one per field.

        Examples:
            >>> Record.create_data(0x1234, b'abc').to_tokens()  # doctest:+NORMALIZE_WHITESPACE
            {'begin': b':', 'count': b'03', 'address': b'1234', 'tag': b'00',
             'data': b'616263', 'checksum': b'91', 'end': b'\n'}
        """

        self.encode()
        return {
            'begin': START_CODE,
            'count': b'%02X' % self.byte_count,
            'address': b'%04X' % self.address,
            'tag': b'%02X' % self.record_type,
            'data': hexlify(self.data),
            'checksum': b'%02X' % self.checksum,
            'end': bytes(end),
        }


EOF_RECORD: Record = Record.create_end_of_file()
r"""End Of File record, ``:00000001FF``; shared, do not modify."""
