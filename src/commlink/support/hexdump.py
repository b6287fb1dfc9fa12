"""
Renders raw bytes for diagnostic logging.
"""


def printable(b):
    """
    :param b: a byte value 0-255
    :return: the ascii character for printable bytes, '.' otherwise.
    >>> printable(65)
    'A'
    >>> printable(10)
    '.'
    >>> printable(127)
    '.'
    """
    return chr(b) if 31 < b < 127 else '.'


def hex_bytes(data):
    """
    >>> hex_bytes(b'PING')
    '50 49 4e 47'
    >>> hex_bytes(b'')
    ''
    """
    return ' '.join('%02x' % b for b in data)


def ascii_bytes(data):
    """
    >>> ascii_bytes(b'PI\\x00NG')
    'PI.NG'
    """
    return ''.join(printable(b) for b in data)


def hexdump(data, width=16):
    """
    Renders data as lines of hex values followed by the ascii rendering of the same bytes.
    :param data: the bytes to render
    :param width: the number of bytes shown on each line
    :return: a list of lines
    >>> hexdump(b'PING')
    ['0000  50 49 4e 47                                      PING']
    >>> len(hexdump(bytes(range(40))))
    3
    """
    lines = []
    for offset in range(0, len(data), width):
        chunk = data[offset:offset + width]
        lines.append('%04x  %-*s  %s' % (offset, width * 3 - 1, hex_bytes(chunk), ascii_bytes(chunk)))
    return lines
