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

r"""Exception hierarchy.

All the exceptions raised while decoding, encoding, or scanning records
inherit from :class:`IhexError`, which is in turn a :class:`ValueError`.

::

    IhexError (ValueError)
    ├── RecordFormatError       - malformed layout, start code, hex text,
    │                             byte count, missing End Of File record
    ├── InvalidRecordTypeError  - record type not supported
    └── ChecksumError           - checksum mismatch

Errors raised by the underlying line source (:class:`OSError`) are never
wrapped.
"""

from typing import Optional


class IhexError(ValueError):
    r"""Base class for Intel HEX errors.

    Args:
        message (str):
            Error description.

        line (int):
            1-based line number, if known.
    """

    def __init__(self, message: str, line: Optional[int] = None):

        self.message: str = message
        self.line: Optional[int] = line
        super().__init__(message)

    def __str__(self) -> str:

        if self.line is None:
            return self.message
        return f'line {self.line}: {self.message}'


class RecordFormatError(IhexError):
    r"""Malformed record or record stream."""


class InvalidRecordTypeError(IhexError):
    r"""Unsupported record type.

    Attributes:
        record_type (int):
            Offending record type byte.
    """

    def __init__(self, record_type: int, line: Optional[int] = None):

        self.record_type: int = record_type
        super().__init__(f'invalid record type 0x{record_type:02X}', line=line)


class ChecksumError(IhexError):
    r"""Checksum mismatch.

    Attributes:
        expected (int):
            Checksum byte stored within the record.

        calculated (int):
            Checksum byte calculated from the record fields.
    """

    def __init__(self, expected: int, calculated: int, line: Optional[int] = None):

        self.expected: int = expected
        self.calculated: int = calculated
        super().__init__(f'expected checksum 0x{expected:02X} '
                         f'but calculated 0x{calculated:02X}', line=line)
