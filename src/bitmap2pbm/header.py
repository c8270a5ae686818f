from typing import BinaryIO, Optional, Tuple

from bitmap2pbm import __version__
from bitmap2pbm.dimension import Dimension
from bitmap2pbm.errors import HeaderOverflow, StreamError
from bitmap2pbm.integers import MAX_U64_DIGITS

PBM_MAGIC = b'P4'
CREATOR_COMMENT = f'# CREATOR: bitmap2pbm Version {__version__}'

# "18446744073709551616 18446744073709551616": room for any width and height
DIMENSION_FIELD = MAX_U64_DIGITS + 1 + MAX_U64_DIGITS

WHITESPACE = b' \t\r\n\v\f'


def render_preamble() -> bytes:
    return PBM_MAGIC + b'\n' + CREATOR_COMMENT.encode('ascii') + b'\n'


def render_dimension(dimension: Dimension, field_width: Optional[int] = None) -> bytes:
    """
    Dimension line of the header, terminated by the single whitespace byte that precedes the raster.
    With a `field_width` the text is right-aligned in exactly that many bytes.
    """
    text = str(dimension)
    if field_width is not None:
        if len(text) > field_width:
            raise HeaderOverflow(text, field_width)
        text = text.rjust(field_width)

    return (text + ' ').encode('ascii')


def render_header(dimension: Dimension) -> bytes:
    return render_preamble() + render_dimension(dimension)


class HeaderReservation:
    """
    Header whose dimension field can be rewritten in place once the real dimension is known.

    Without a dimension a blank field wide enough for any width and height is reserved. With one, the field is as
    wide as its text, so it only takes a dimension of at most the same textual width later on.
    """

    def __init__(self):
        self.position = None
        self.field_width = None

    @property
    def reserved(self) -> bool:
        return self.position is not None

    def write(self, sink, dimension: Optional[Dimension] = None):
        sink.write(render_preamble())

        # Positions are meaningless on pipes, such a header is final
        if sink.seekable():
            self.position = sink.tell()

        if dimension is None:
            self.field_width = DIMENSION_FIELD
            sink.write(b' ' * DIMENSION_FIELD + b' ')
        else:
            field = render_dimension(dimension)
            self.field_width = len(field) - 1
            sink.write(field)

    def fits(self, dimension: Dimension) -> bool:
        return self.field_width is not None and len(str(dimension)) <= self.field_width

    def commit(self, sink, dimension: Dimension):
        if not self.reserved:
            raise StreamError('Header dimension cannot be rewritten: output is not seekable')

        # Rendered before seeking, so an overflow leaves the output untouched
        field = render_dimension(dimension, self.field_width)

        end = sink.tell()
        if not sink.try_seek(self.position):
            raise StreamError('Cannot seek back to the header dimension')

        sink.write(field)

        if not sink.try_seek(end):
            raise StreamError('Cannot seek to the end of output')


def _read_byte(stream: BinaryIO) -> bytes:
    byte = stream.read(1)
    if not byte:
        raise ValueError('Unexpected end of PBM header')
    return byte


def _read_integer(stream: BinaryIO) -> int:
    byte = _read_byte(stream)

    # Whitespace and comments may appear anywhere between header tokens
    while byte in WHITESPACE or byte == b'#':
        if byte == b'#':
            while byte not in (b'\n', b'\r'):
                byte = _read_byte(stream)
        byte = _read_byte(stream)

    digits = b''
    while byte.isdigit():
        digits += byte
        byte = _read_byte(stream)

    if not digits:
        raise ValueError(f'Expected a number in PBM header, got {byte!r}')

    if byte not in WHITESPACE:
        raise ValueError(f'Unexpected {byte!r} after {digits.decode()} in PBM header')

    return int(digits)


def read_header(stream: BinaryIO) -> Tuple[int, int]:
    """
    Reads a P4 header and returns (width, height). The stream is left at the first raster byte.
    """
    magic = stream.read(len(PBM_MAGIC))
    if magic != PBM_MAGIC:
        raise ValueError(f'Not a P4 bitmap: {magic!r}')

    width = _read_integer(stream)
    height = _read_integer(stream)
    return width, height
