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

"""
Module that contains the command line app.

Why does this file exist, and why not put this in __main__?

  You might be tempted to import things from __main__ later, but that will cause
  problems: the code will get executed twice:

  - When you run `python -m ihexscan` python will execute
    ``__main__.py`` as a script. That means there won't be any
    ``ihexscan.__main__`` in ``sys.modules``.
  - When you import __main__ it will get executed again (as a module) because
    there's no ``ihexscan.__main__`` in ``sys.modules``.

  Also see (1) from https://click.palletsprojects.com/en/stable/setuptools/#setuptools-integration
"""

import logging
from typing import Optional

import click

from .__init__ import __version__
from .errors import IhexError
from .segments import SegmentList
from .utils import parse_int

logger = logging.getLogger(__name__)


class BasedIntParamType(click.ParamType):
    name = 'integer'

    def convert(self, value, param, ctx):
        try:
            return parse_int(value)
        except ValueError:
            self.fail(f'invalid integer: {value!r}', param, ctx)


class ByteIntParamType(click.ParamType):
    name = 'byte'

    def convert(self, value, param, ctx):
        try:
            b = parse_int(value)
            if not 0 <= b <= 255:
                raise ValueError()
            return b
        except ValueError:
            self.fail(f'invalid byte: {value!r}', param, ctx)


BASED_INT = BasedIntParamType()
BYTE_INT = ByteIntParamType()

FILE_PATH_IN = click.Path(dir_okay=False, allow_dash=True, readable=True, exists=True)
FILE_PATH_OUT = click.Path(dir_okay=False, allow_dash=True, writable=True)


# ----------------------------------------------------------------------------

def load_segments(input_path: Optional[str]) -> SegmentList:

    try:
        if input_path is None or input_path == '-':
            return SegmentList.scan(click.get_binary_stream('stdin'))
        else:
            return SegmentList.load(input_path)

    except IhexError as exc:
        raise click.ClickException(f'cannot scan {input_path or "-"}: {exc}') from exc


def read_bytes(input_path: Optional[str]) -> bytes:

    if input_path is None or input_path == '-':
        return click.get_binary_stream('stdin').read()
    else:
        with open(input_path, 'rb') as stream:
            return stream.read()


def write_bytes(output_path: Optional[str], data: bytes) -> None:

    if output_path is None or output_path == '-':
        click.get_binary_stream('stdout').write(data)
    else:
        with open(output_path, 'wb') as stream:
            stream.write(data)


def print_version(ctx, _, value):

    if not value or ctx.resilient_parsing:
        return

    click.echo(str(__version__))
    ctx.exit()


# ============================================================================

@click.group()
@click.option('--version', is_flag=True, is_eager=True, expose_value=False,
              callback=print_version, help="""
    Prints the package version number.
""")
@click.option('-v', '--verbose', is_flag=True, help="""
    Logs debug messages onto the standard error.
""")
def main(verbose: bool) -> None:
    """
    A set of command line utilities for Intel HEX files.

    Being built with `Click <https://click.palletsprojects.com/en/stable/>`_, all the
    commands follow POSIX-like syntax rules, as well as reserving the virtual
    file path ``-`` for command chaining via standard output/input buffering.
    """

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s: %(name)s: %(message)s',
    )


# ----------------------------------------------------------------------------

@main.command()
@click.option('-a', '--address', type=BASED_INT, default=0, show_default=True, help="""
    Address of the first byte.
""")
@click.option('-w', '--width', type=BASED_INT, default=16, show_default=True, help="""
    Sets the length of the record data field, in bytes.
""")
@click.argument('infile', type=FILE_PATH_IN, required=False)
@click.argument('outfile', type=FILE_PATH_OUT, required=False)
def bin2hex(
    address: int,
    width: int,
    infile: Optional[str],
    outfile: Optional[str],
) -> None:
    r"""Converts a binary image into an Intel HEX file.

    ``INFILE`` is the path of the input binary file.
    Set to ``-`` or leave empty to read from standard input.

    ``OUTFILE`` is the path of the output file.
    Set to ``-`` or leave empty to write to standard output.
    """

    if not 0 <= address <= 0xFFFFFFFF:
        raise click.BadParameter('address overflow', param_hint='--address')

    data = read_bytes(infile)
    if address + len(data) > 0x100000000:
        raise click.ClickException('data exceeds the 32-bit address space')

    try:
        segments = SegmentList.from_bytes(data, offset=address, maxdatalen=width)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint='--width') from exc

    write_bytes(outfile, segments.to_bytestr())


# ----------------------------------------------------------------------------

@main.command()
@click.option('-f', '--fill', type=BYTE_INT, default=0xFF, show_default=True, help="""
    Byte value used to fill the gaps between segments.
""")
@click.argument('infile', type=FILE_PATH_IN, required=False)
@click.argument('outfile', type=FILE_PATH_OUT, required=False)
def hex2bin(
    fill: int,
    infile: Optional[str],
    outfile: Optional[str],
) -> None:
    r"""Converts an Intel HEX file into a flat binary image.

    The image spans from the lowest to the highest address carried by the
    data records; gaps are filled with the ``--fill`` byte.

    ``INFILE`` is the path of the input file.
    Set to ``-`` or leave empty to read from standard input.

    ``OUTFILE`` is the path of the output binary file.
    Set to ``-`` or leave empty to write to standard output.
    """

    segments = load_segments(infile)
    if not segments:
        raise click.ClickException('no segments found')

    segments.sort()
    logger.debug('image at 0x%08X, %d bytes', segments[0].address, segments.size())
    write_bytes(outfile, segments.to_bytes(fill=fill))


# ----------------------------------------------------------------------------

@main.command('print')
@click.option('-c', '--color', is_flag=True, help="""
    Colorizes the record fields with ANSI escape codes.
""")
@click.argument('infile', type=FILE_PATH_IN, required=False)
def print_(
    color: bool,
    infile: Optional[str],
) -> None:
    r"""Prints the normalized records of an Intel HEX file.

    Data records are sorted by address, with Extended Linear Address
    records where needed; start address records are not kept.

    ``INFILE`` is the path of the input file.
    Set to ``-`` or leave empty to read from standard input.
    """

    segments = load_segments(infile)
    stream = click.get_binary_stream('stdout')

    for record in segments.to_records():
        record.print(stream=stream, color=color)


# ----------------------------------------------------------------------------

@main.command()
@click.argument('infile', type=FILE_PATH_IN, required=False)
def validate(
    infile: Optional[str],
) -> None:
    r"""Validates an Intel HEX file.

    It checks each record and the stream structure, then prints a summary
    of the data segments.

    ``INFILE`` is the path of the input file.
    Set to ``-`` or leave empty to read from standard input.
    """

    segments = load_segments(infile)
    segments.sort()

    if segments:
        start = segments[0].address
        endex = start + segments.size()
        click.echo(f'{len(segments)} segments, {segments.size()} bytes '
                   f'from 0x{start:08X} to 0x{endex:08X}')
    else:
        click.echo('0 segments')
