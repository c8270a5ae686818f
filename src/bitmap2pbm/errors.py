class Bitmap2PbmError(Exception):
    """ Base class for every failure the conversion reports. """
    exit_code = 1


class DimensionError(Bitmap2PbmError):
    """ The requested image geometry cannot be satisfied by the input. """


class EmptyInput(DimensionError):
    def __init__(self):
        super().__init__('Input is empty')


class ConflictingConstraints(DimensionError):
    def __init__(self):
        super().__init__('Aspect with width or height is given')


class InvalidAspect(DimensionError):
    def __init__(self, aspect):
        super().__init__(f'Aspect must be a positive finite number, got {aspect}')


class InvalidWidth(DimensionError):
    def __init__(self, width: int):
        super().__init__(f'Width must be multiple of 8, got {width}')


class DimensionTooLarge(DimensionError):
    def __init__(self, width: int, height: int, size_bits: int):
        super().__init__(f'Width * height > input size ({width} * {height} > {size_bits} bits)')


class WidthTooLarge(DimensionError):
    def __init__(self, width: int):
        super().__init__(f'Width is too large: {width}')


class HeightTooLarge(DimensionError):
    def __init__(self, height: int):
        super().__init__(f'Height is too large: {height}')


class CannotDetermineSize(Bitmap2PbmError):
    def __init__(self):
        super().__init__('Cannot determine input size and output is not seekable.')


class HeaderOverflow(Bitmap2PbmError):
    def __init__(self, text: str, reserved: int):
        super().__init__(f'Dimension "{text}" does not fit the {reserved} reserved header bytes')


class AllocationFailure(Bitmap2PbmError):
    def __init__(self, size: int):
        super().__init__(f'Memory allocation has failed ({size} bytes).')


class StreamError(Bitmap2PbmError):
    """ Any failed read, write or seek. Never retried. """
    exit_code = 2
