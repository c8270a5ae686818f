import math

from dataclasses import dataclass
from typing import Optional

from bitmap2pbm.errors import (EmptyInput, ConflictingConstraints, InvalidAspect, InvalidWidth, DimensionTooLarge,
                               WidthTooLarge, HeightTooLarge)
from bitmap2pbm.integers import U64

# 4:3 is the default aspect ratio
DEFAULT_ASPECT = 4 / 3

# One byte covers 8 horizontal pixels, rows are never padded
PIXELS_PER_BYTE = 8


@dataclass(frozen=True)
class Dimension:
    width: int
    height: int
    aspect: float = DEFAULT_ASPECT

    @property
    def area(self) -> int:
        return self.width * self.height

    def cut_bits(self, size_bits: int) -> int:
        """ Number of input bits that do not land on any pixel. """
        return max(size_bits - self.area, 0)

    def __str__(self):
        return f'{self.width} {self.height}'


def _round_to_byte(pixels: int) -> int:
    return (pixels // PIXELS_PER_BYTE) * PIXELS_PER_BYTE


def _check_aspect(aspect: float) -> float:
    try:
        value = float(aspect)
    except (TypeError, ValueError):
        raise InvalidAspect(aspect)

    if not math.isfinite(value) or value <= 0:
        raise InvalidAspect(aspect)

    return value


def resolve_dimension(size_bits: int, aspect: Optional[float] = None, width: Optional[int] = None,
                      height: Optional[int] = None) -> Dimension:
    """
    Calculates the bitmap dimension for an input of `size_bits` bits.

    At most one kind of constraint may be given: either an aspect ratio (width / height), or an explicit width and/or
    height. Without any constraint the default 4:3 aspect is used. The resulting width is always a multiple of 8 and
    the image never covers more bits than the input has; bits past `width * height` are left out of the image.
    """
    size_bits = U64(size_bits).value
    if size_bits == 0:
        raise EmptyInput()

    if aspect is not None:
        if width is not None or height is not None:
            raise ConflictingConstraints()
        aspect = _check_aspect(aspect)
    else:
        aspect = DEFAULT_ASPECT

    if width is not None:
        width = U64(width, positive=True).value
        if width % PIXELS_PER_BYTE != 0:
            raise InvalidWidth(width)

        if height is not None:
            height = U64(height, positive=True).value
            if width * height > size_bits:
                raise DimensionTooLarge(width, height, size_bits)
        else:
            height = size_bits // width
            if height == 0:
                raise WidthTooLarge(width)

    elif height is not None:
        height = U64(height, positive=True).value
        width = _round_to_byte(size_bits // height)
        if width == 0:
            raise HeightTooLarge(height)

    else:
        # Only the aspect is known: width / height == aspect and width * height == size_bits
        product = size_bits * aspect
        if math.isfinite(product):
            width = _round_to_byte(math.isqrt(int(product)))
        else:
            width = size_bits

        # A very wide aspect would leave no full row at all
        if size_bits >= PIXELS_PER_BYTE:
            width = min(width, _round_to_byte(size_bits))
        width = max(width, PIXELS_PER_BYTE)

        height = size_bits // width

    return Dimension(width, height, aspect)
