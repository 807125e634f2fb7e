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

r"""Base types and helpers."""

import os
from typing import Any
from typing import Mapping
from typing import Type
from typing import Union

import colorama

try:
    from typing import TypeAlias
except ImportError:  # pragma: no cover
    TypeAlias = Any  # Python < 3.10

AnyBytes: TypeAlias = Union[bytes, bytearray, memoryview]
AnyPath: TypeAlias = Union[bytes, bytearray, str, os.PathLike]
EllipsisType: TypeAlias = Type['Ellipsis']

RESET_CODE: bytes = colorama.Style.RESET_ALL.encode()
r"""ANSI code restoring the default terminal colors."""

TOKEN_COLOR_CODES: Mapping[str, bytes] = {
    'begin':    colorama.Fore.YELLOW.encode(),
    'count':    colorama.Fore.BLUE.encode(),
    'address':  colorama.Fore.RED.encode(),
    'tag':      colorama.Fore.GREEN.encode(),
    'data':     colorama.Fore.CYAN.encode(),
    'checksum': colorama.Fore.MAGENTA.encode(),
}
r"""ANSI color codes of the record field tokens."""


def colorize_tokens(tokens: Mapping[str, bytes]) -> Mapping[str, bytes]:
    r"""Prepends ANSI color codes to record field tokens.

    Tokens not listed in :data:`TOKEN_COLOR_CODES` get :data:`RESET_CODE`.
    Empty tokens are dropped.
    The result is wrapped by reset codes, keyed ``<`` and ``>``.

    Examples:
        >>> from ihexscan.base import colorize_tokens
        >>> from ihexscan.record import Record
        >>> colorize_tokens(Record.create_end_of_file().to_tokens())['tag']
        b'\x1b[32m01'
    """

    codes = TOKEN_COLOR_CODES
    colorized = {'<': RESET_CODE}
    for key, value in tokens.items():
        if value:
            colorized[key] = codes.get(key, RESET_CODE) + value
    colorized['>'] = RESET_CODE
    return colorized
