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

r"""Generic utility functions."""

import binascii
import re
from typing import Any
from typing import Mapping
from typing import Optional
from typing import Union

from .base import AnyBytes

SUFFIX_SCALE: Mapping[str, int] = {
    '': 1,
    'k': 1024,
    'kib': 1024,
    'kb': 1000,
}
r"""Integer suffix to scale factor."""

INT_REGEX = re.compile(r'^(?P<sign>[+-]?)'
                       r'(?P<digits>0x[0-9a-f]+|0b[01]+|0o[0-7]+|[0-9a-f]+h|[0-9]+)'
                       r'(?P<scale>k|kib|kb)?$')


def hexlify(
    bytestr: AnyBytes,
    upper: bool = True,
) -> bytes:
    r"""Converts raw bytes into a hexadecimal byte string.

    Args:
        bytestr (bytes):
            Source byte string.

        upper (bool):
            Uppercase hexadecimal string.

    Returns:
        bytes: Hexadecimal byte string.

    Examples:
        >>> from ihexscan.utils import hexlify
        >>> hexlify(b'\xAA\xBB\xCC')
        b'AABBCC'
        >>> hexlify(b'\xAA\xBB\xCC', upper=False)
        b'aabbcc'
    """

    hexstr = binascii.hexlify(bytestr)
    if upper:
        hexstr = hexstr.upper()
    return hexstr


def parse_int(
    value: Union[str, Any],
) -> Optional[int]:
    r"""Parses an integer.

    Args:
        value:
            A :obj:`str` (case-insensitive) is decimal, unless prefixed by
            ``0x``, ``0b``, ``0o``, or suffixed by ``h`` (hexadecimal).
            It may end with a scale suffix from :data:`SUFFIX_SCALE`.
            ``None`` evaluates as ``None``; anything else goes through
            :func:`int`.

    Returns:
        int: None if `value` is ``None``, its integer conversion otherwise.

    Examples:
        >>> parse_int('-0xABk')
        -175104

        >>> parse_int('FFh')
        255

        >>> parse_int(None) is None
        True
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return int(value)

    m = INT_REGEX.match(value.strip().lower())
    if not m:
        raise ValueError(f'invalid syntax: {value!r}')
    digits = m.group('digits')

    if digits.endswith('h'):
        i = int(digits[:-1], 16)
    elif digits[:2] in ('0x', '0b', '0o'):
        i = int(digits, 0)
    else:
        i = int(digits, 10)

    i *= SUFFIX_SCALE[m.group('scale') or '']
    return -i if m.group('sign') == '-' else i


def unhexlify(hexstr: AnyBytes) -> bytes:
    r"""Converts a hexadecimal byte string into raw bytes.

    Both uppercase and lowercase digits are accepted.

    Args:
        hexstr (bytes):
            Source hexadecimal byte string.

    Returns:
        bytes: Raw byte string.

    Raises:
        ValueError: Odd number of digits, or non-hexadecimal digits.

    Examples:
        >>> from ihexscan.utils import unhexlify
        >>> unhexlify(b'AABBcc')
        b'\xaa\xbb\xcc'
    """

    bytestr = binascii.unhexlify(hexstr)
    return bytestr
