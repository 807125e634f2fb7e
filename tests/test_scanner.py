import io
import logging

import pytest

from ihexscan.errors import ChecksumError
from ihexscan.errors import InvalidRecordTypeError
from ihexscan.errors import RecordFormatError
from ihexscan.record import Record
from ihexscan.scanner import AddressBase
from ihexscan.scanner import AddressMode
from ihexscan.scanner import Scanner
from ihexscan.scanner import Segment
from ihexscan.scanner import scan

EOF_LINE = b':00000001FF\n'


def data_line(address, data):
    return Record.create_data(address, data).to_bytestr()


def ela_line(extension):
    return Record.create_extended_linear_address(extension).to_bytestr()


def esa_line(extension):
    return Record.create_extended_segment_address(extension).to_bytestr()


class FailingSource:

    def __init__(self, lines, error):
        self.lines = list(lines)
        self.error = error
        self.reads = 0

    def __iter__(self):
        return self

    def __next__(self):
        self.reads += 1
        if self.lines:
            return self.lines.pop(0)
        raise self.error


class DecodingSource:

    def __init__(self, lines):
        self.lines = list(lines)
        self.reads = 0

    def __iter__(self):
        return self

    def __next__(self):
        if self.reads >= len(self.lines):
            raise StopIteration
        line = self.lines[self.reads]
        self.reads += 1
        return line.decode('utf-8')


class CountingSource:

    def __init__(self, lines):
        self.lines = list(lines)
        self.reads = 0

    def __iter__(self):
        for line in self.lines:
            self.reads += 1
            yield line


class TestAddressBase:

    def test_default(self):
        base = AddressBase()
        assert base.mode is AddressMode.NONE
        assert base.extension == 0
        assert base.offset == 0
        assert base.resolve(0x1234) == 0x1234

    def test_linear(self):
        base = AddressBase.linear(0xFFFF)
        assert base.mode is AddressMode.LINEAR
        assert base.offset == 0xFFFF0000
        assert base.resolve(0x0110) == 0xFFFF0110

    def test_segmented(self):
        base = AddressBase.segmented(0xFFFF)
        assert base.mode is AddressMode.SEGMENTED
        assert base.offset == 0xFFFF0
        assert base.resolve(0x0110) == 0xFFFF0 + 0x0110

    def test_zero_extension(self):
        assert AddressBase.linear(0).offset == 0
        assert AddressBase.segmented(0).offset == 0


class TestSegment:

    def test___init__(self):
        data = bytearray(b'abc')
        segment = Segment(0x1234, data)
        data[0] = 0
        assert segment.address == 0x1234
        assert segment.data == b'abc'
        assert isinstance(segment.data, bytes)

    def test___eq__(self):
        assert Segment(1, b'a') == Segment(1, b'a')
        assert Segment(1, b'a') != Segment(2, b'a')
        assert Segment(1, b'a') != Segment(1, b'b')
        assert Segment(1, b'a') != (1, b'a')

    def test___len__(self):
        assert len(Segment(0, b'abc')) == 3
        assert len(Segment(0)) == 0

    def test___repr__(self):
        assert repr(Segment(0x1234, b'abc')) == "Segment(address=0x00001234, data=b'abc')"

    def test_endex(self):
        assert Segment(0x10, b'abc').endex == 0x13


class TestScanner:

    def test_scan_data(self):
        lines = [
            b':10010000214601360121470136007EFE09D2190140\n',
            b':100110002146017E17C20001FF5F16002148011928\n',
            EOF_LINE,
        ]
        scanner = Scanner(lines)
        assert scanner.scan() is True
        assert scanner.segment == Segment(0x0100, bytes.fromhex('214601360121470136007EFE09D21901'))
        assert scanner.scan() is True
        assert scanner.segment.address == 0x0110
        assert scanner.scan() is False
        assert scanner.error is None
        assert scanner.segment is None

    def test_scan_extended_segment_address(self):
        lines = [esa_line(0xFFFF), data_line(0x0110, b'\x01\x02'), EOF_LINE]
        segments = list(Scanner(lines))
        assert segments == [Segment(0xFFFF0 + 0x0110, b'\x01\x02')]

    def test_scan_extended_linear_address(self):
        lines = [ela_line(0xFFFF), data_line(0x0110, b'\x01\x02'), EOF_LINE]
        segments = list(Scanner(lines))
        assert segments == [Segment(0xFFFF0000 + 0x0110, b'\x01\x02')]

    def test_scan_base_carryover(self):
        lines = [
            data_line(0x0000, b'a'),
            ela_line(0x0001),
            data_line(0x0000, b'b'),
            data_line(0x0010, b'c'),
            esa_line(0x1000),
            data_line(0x0000, b'd'),
            ela_line(0x0000),
            data_line(0x0020, b'e'),
            EOF_LINE,
        ]
        scanner = Scanner(lines)
        addresses = []
        bases = []
        while scanner.scan():
            addresses.append(scanner.segment.address)
            bases.append(scanner.base)
        assert scanner.error is None
        assert addresses == [0x00000, 0x10000, 0x10010, 0x10000, 0x00020]
        assert bases == [
            AddressBase(),
            AddressBase.linear(1),
            AddressBase.linear(1),
            AddressBase.segmented(0x1000),
            AddressBase.linear(0),
        ]

    def test_scan_start_records_ignored(self):
        lines = [
            b':0400000300003800C1\n',
            data_line(0x0000, b'abc'),
            b':04000005000000CD2A\n',
            EOF_LINE,
        ]
        scanner = Scanner(lines)
        assert list(scanner) == [Segment(0, b'abc')]
        assert scanner.base == AddressBase()

    def test_scan_blank_lines(self):
        lines = [b'', b'\n', b'\r\n', data_line(0, b'abc'), b'\n', EOF_LINE]
        assert list(Scanner(lines)) == [Segment(0, b'abc')]

    def test_scan_str_lines(self):
        lines = [':03000000616263D7', '', ':00000001FF']
        assert list(Scanner(lines)) == [Segment(0, b'abc')]

    def test_scan_stream(self):
        stream = io.BytesIO(b':020000040001F9\r\n:03000000616263D7\r\n:00000001FF\r\n')
        assert list(Scanner(stream)) == [Segment(0x10000, b'abc')]

    def test_scan_text_stream(self):
        stream = io.StringIO(':03000000616263D7\n:00000001FF\n')
        assert list(Scanner(stream)) == [Segment(0, b'abc')]

    def test_scan_eof_only(self):
        scanner = Scanner([EOF_LINE])
        assert scanner.scan() is False
        assert scanner.error is None

    def test_scan_stops_at_eof(self):
        source = CountingSource([data_line(0, b'a'), EOF_LINE, b'garbage\n', data_line(1, b'b')])
        scanner = Scanner(source)
        assert list(scanner) == [Segment(0, b'a')]
        assert source.reads == 2
        assert scanner.scan() is False
        assert scanner.error is None
        assert source.reads == 2

    def test_scan_segment_copies(self):
        scanner = Scanner([data_line(0, b'a'), data_line(1, b'b'), EOF_LINE])
        assert scanner.scan()
        first = scanner.segment
        assert scanner.scan()
        second = scanner.segment
        assert first is not second
        assert first == Segment(0, b'a')
        assert second == Segment(1, b'b')

    def test_scan_raises_missing_eof(self):
        scanner = Scanner([data_line(0, b'abc')])
        assert scanner.scan() is True
        assert scanner.scan() is False
        error = scanner.error
        assert isinstance(error, RecordFormatError)
        assert error.message == 'unexpected end of stream'
        assert error.line == 1

    def test_scan_raises_empty_source(self):
        scanner = Scanner([])
        assert scanner.scan() is False
        assert isinstance(scanner.error, RecordFormatError)
        assert scanner.error.line is None
        assert str(scanner.error) == 'unexpected end of stream'

        with pytest.raises(RecordFormatError, match='unexpected end of stream'):
            list(Scanner(io.BytesIO(b'\n\n')))

    def test_scan_raises_start_code(self):
        scanner = Scanner([b';00000001FF\n'])
        assert scanner.scan() is False
        assert isinstance(scanner.error, RecordFormatError)
        assert str(scanner.error) == "line 1: expected start code b':' but got b';'"

    def test_scan_raises_whitespace_line(self):
        scanner = Scanner([b' \n', EOF_LINE])
        assert scanner.scan() is False
        assert isinstance(scanner.error, RecordFormatError)

    def test_scan_raises_hex(self):
        scanner = Scanner([b'\n', b':0000000\n'])
        assert scanner.scan() is False
        assert isinstance(scanner.error, RecordFormatError)
        assert scanner.error.line == 2

    def test_scan_raises_checksum(self):
        scanner = Scanner([data_line(0, b'a'), b':00000001FE\n', EOF_LINE])
        assert scanner.scan() is True
        assert scanner.scan() is False
        error = scanner.error
        assert isinstance(error, ChecksumError)
        assert (error.expected, error.calculated, error.line) == (0xFE, 0xFF, 2)

    def test_scan_raises_invalid_type(self):
        scanner = Scanner([b':00000006FA\n', EOF_LINE])
        assert scanner.scan() is False
        assert isinstance(scanner.error, InvalidRecordTypeError)
        assert scanner.error.record_type == 6

    def test_scan_error_sticky(self):
        source = CountingSource([b':00000001FE\n', data_line(0, b'a'), EOF_LINE])
        scanner = Scanner(source)
        assert scanner.scan() is False
        error = scanner.error
        assert scanner.scan() is False
        assert scanner.scan() is False
        assert scanner.error is error
        assert source.reads == 1

    def test_iter_raises_sticky(self):
        scanner = Scanner([data_line(0, b'a'), b':00000001FE\n'])
        assert next(scanner) == Segment(0, b'a')
        with pytest.raises(ChecksumError):
            next(scanner)
        with pytest.raises(ChecksumError):
            next(scanner)

    def test_iter_stops(self):
        scanner = Scanner([EOF_LINE])
        with pytest.raises(StopIteration):
            next(scanner)
        with pytest.raises(StopIteration):
            next(scanner)

    def test_scan_raises_io_error(self):
        exc = OSError('device not ready')
        source = FailingSource([data_line(0, b'a')], exc)
        scanner = Scanner(source)
        assert scanner.scan() is True
        assert scanner.scan() is False
        assert scanner.error is exc
        assert scanner.scan() is False
        assert source.reads == 2

        with pytest.raises(OSError) as excinfo:
            list(Scanner(FailingSource([], exc)))
        assert excinfo.value is exc

    def test_scan_raises_decode_error(self):
        lines = [data_line(0, b'abc'), b'\xFF\xFE\n', data_line(0x10, b'abc'), EOF_LINE]
        source = DecodingSource(lines)
        scanner = Scanner(source)
        assert scanner.scan() is True
        assert scanner.scan() is False
        error = scanner.error
        assert isinstance(error, UnicodeDecodeError)
        assert scanner.segment is None
        assert scanner.scan() is False
        assert scanner.error is error
        assert source.reads == 2

        with pytest.raises(UnicodeDecodeError):
            list(Scanner(DecodingSource(lines)))

    def test_scan_raises_text_stream_decode_error(self):
        buffer = io.BytesIO(b':03000000616263D7\n\xFF\xFE\n:03001000616263C7\n:00000001FF\n')
        scanner = Scanner(io.TextIOWrapper(buffer, encoding='utf-8'))
        while scanner.scan():
            pass
        assert isinstance(scanner.error, UnicodeDecodeError)
        assert scanner.scan() is False
        assert isinstance(scanner.error, UnicodeDecodeError)

    def test_scan_raises_closed_stream(self):
        stream = io.BytesIO(EOF_LINE)
        scanner = Scanner(stream)
        stream.close()
        assert scanner.scan() is False
        assert isinstance(scanner.error, ValueError)

    def test_row(self):
        scanner = Scanner([b'\n', data_line(0, b'a'), EOF_LINE])
        assert scanner.row == 0
        assert scanner.scan()
        assert scanner.row == 2
        assert not scanner.scan()
        assert scanner.row == 3

    def test_logging(self, caplog):
        lines = [ela_line(1), esa_line(2), b':04000005000000CD2A\n', EOF_LINE]
        with caplog.at_level(logging.DEBUG, logger='ihexscan.scanner'):
            assert list(Scanner(lines)) == []
        text = caplog.text
        assert 'linear base 0x00010000' in text
        assert 'segment base 0x00000020' in text
        assert 'ignored START_LINEAR_ADDRESS record' in text
        assert 'end of file at line 4' in text


def test_scan():
    stream = io.BytesIO(b':0300300002337A1E\n:00000001FF\n')
    assert list(scan(stream)) == [Segment(0x30, b'\x02\x33\x7A')]


def test_scan_raises():
    with pytest.raises(RecordFormatError):
        list(scan([b':0300300002337A1E\n']))
