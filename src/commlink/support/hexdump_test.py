import doctest
import unittest

from hamcrest import assert_that, is_, empty, has_length, starts_with, ends_with

from commlink.support import hexdump as hexdump_module
from commlink.support.hexdump import hexdump, hex_bytes, ascii_bytes


class HexdumpTest(unittest.TestCase):

    def test_empty(self):
        assert_that(hexdump(b''), is_(empty()))

    def test_non_printable_bytes_are_dotted(self):
        assert_that(ascii_bytes(bytes([0, 31, 32, 126, 127, 255])), is_('.. ~..'))

    def test_hex_is_lower_case_two_digits(self):
        assert_that(hex_bytes(bytes([0, 10, 255])), is_('00 0a ff'))

    def test_lines_are_split_by_width(self):
        lines = hexdump(b'abcdefgh', width=4)
        assert_that(lines, has_length(2))
        assert_that(lines[0], starts_with('0000  61 62 63 64'))
        assert_that(lines[0], ends_with('abcd'))
        assert_that(lines[1], starts_with('0004  65 66 67 68'))

    def test_doctests(self):
        failures, _ = doctest.testmod(hexdump_module)
        assert_that(failures, is_(0))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
