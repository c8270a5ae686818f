import argparse

from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Optional

from bitmap2pbm.dimension import Dimension, resolve_dimension, PIXELS_PER_BYTE
from bitmap2pbm.errors import (AllocationFailure, CannotDetermineSize, ConflictingConstraints, DimensionError,
                               InvalidWidth, InvalidAspect)
from bitmap2pbm.header import HeaderReservation
from bitmap2pbm.integers import U64, parse_uint
from bitmap2pbm.log import Log
from bitmap2pbm.progress import CountersSnapshot, EncodeCounters, Progress, StopFlag
from bitmap2pbm.streams import ByteSink, ByteSource

DEFAULT_BLOCK_SIZE = 512


def _argument(name: str, parse):
    def parser(text: str):
        try:
            return parse(text)
        except (TypeError, ValueError):
            raise argparse.ArgumentTypeError(f'Wrong argument for {name}: {text}')

    return parser


def _parse_aspect(text: str) -> float:
    value = float(text)
    # Rejects nan and inf as well
    if not 0 < value < float('inf'):
        raise ValueError(text)
    return value


class EncoderState(Enum):
    INIT = 'init'
    SIZE_PROBE = 'size-probe'
    HEADER_WRITTEN = 'header-written'
    HEADER_PLACEHOLDER_WRITTEN = 'header-placeholder-written'
    COPYING = 'copying'
    PATCHING_HEADER = 'patching-header'
    DONE = 'done'
    FAILED = 'failed'


@dataclass(frozen=True)
class EncodeResult:
    dimension: Dimension
    counters: CountersSnapshot
    size_known: bool
    cancelled: bool

    @property
    def cut_bits(self) -> int:
        return self.dimension.cut_bits(self.counters.bytes_read * PIXELS_PER_BYTE)


class StreamingEncoder:
    """
    Copies a byte stream into a P4 bitmap, one input bit per pixel.

    A seekable input is measured up front and the final header is written right away. Otherwise a blank dimension
    field is reserved in the header, the whole input is copied, and the field is filled in once the byte count is
    known, which requires a seekable output.
    """

    @dataclass
    class Config:
        aspect: Optional[float] = None
        width: Optional[int] = None
        height: Optional[int] = None
        block_size: int = DEFAULT_BLOCK_SIZE

        def __post_init__(self):
            self.block_size = U64(self.block_size, positive=True).value
            self.validate()

        def validate(self):
            """ Checks the constraints that do not depend on the input size. """
            if self.aspect is not None:
                if self.width is not None or self.height is not None:
                    raise ConflictingConstraints()
                if not 0 < self.aspect < float('inf'):
                    raise InvalidAspect(self.aspect)

            if self.width is not None and self.width % PIXELS_PER_BYTE != 0:
                raise InvalidWidth(self.width)

        @staticmethod
        def add_arguments(parser: argparse.ArgumentParser):
            parser.add_argument('--aspect', '-a', type=_argument('aspect', _parse_aspect), default=None,
                                help='Aspect ratio (width / height) of the image (default: 4:3)')
            parser.add_argument('--width', '-x', type=_argument('width', parse_uint), default=None,
                                help='Image width in pixels (multiple of 8)')
            parser.add_argument('--height', '-y', type=_argument('height', parse_uint), default=None,
                                help='Image height in pixels')
            parser.add_argument('--bs', '-b', type=_argument('bs', parse_uint), default=DEFAULT_BLOCK_SIZE,
                                help=f'Block size to read/write (default: {DEFAULT_BLOCK_SIZE})')

        @staticmethod
        def from_args(args) -> 'StreamingEncoder.Config':
            return StreamingEncoder.Config(args.aspect, args.width, args.height, args.bs)

    def __init__(self, config: 'StreamingEncoder.Config'):
        self.config = config
        self.state = EncoderState.INIT
        self.counters = EncodeCounters()
        self.progress = Progress(self.counters)
        self.stop = StopFlag()

    def cancel(self):
        """ Stops the copy loop after the current block, as if the input ended there. """
        self.stop.set()

    def print_progress(self, out=None):
        self.progress.print(out)

    def request_progress(self, out=None):
        self.progress.request(out)

    def _set_state(self, state: EncoderState):
        Log.debug(f'Encoder: {self.state.value} -> {state.value}')
        self.state = state

    def _resolve(self, size_bytes: int) -> Dimension:
        dimension = resolve_dimension(size_bytes * PIXELS_PER_BYTE, self.config.aspect, self.config.width,
                                      self.config.height)
        Log.info(f'Image dimension: {dimension.width}x{dimension.height} for {size_bytes} bytes')
        return dimension

    def _allocate(self) -> bytearray:
        try:
            return bytearray(self.config.block_size)
        except (MemoryError, OverflowError):
            raise AllocationFailure(self.config.block_size)

    def _copy(self, source: ByteSource, sink: ByteSink):
        buffer = self._allocate()
        with memoryview(buffer) as view:
            while not self.stop.is_set():
                count, end_of_stream = source.read_into(buffer)
                self.counters.record_read(count)

                if count:
                    sink.write(view[:count])
                    self.counters.record_write(count)

                self.progress.print_requested()

                if end_of_stream:
                    break

        self.progress.print_requested()
        if self.stop.is_set():
            Log.info(f'Stopped on request after {self.counters.bytes_read} bytes')

    def encode(self, source: ByteSource, sink: ByteSink) -> EncodeResult:
        # Every run starts from scratch
        self.counters = EncodeCounters()
        self.progress = Progress(self.counters)
        self.stop = StopFlag()
        self.state = EncoderState.INIT

        try:
            return self._encode(source, sink)
        except Exception as e:
            Log.debug(f'Encoder failed in state {self.state.value}: {e}')
            self.state = EncoderState.FAILED
            raise

    def _encode(self, source: ByteSource, sink: ByteSink) -> EncodeResult:
        self._set_state(EncoderState.SIZE_PROBE)
        size = source.size()
        header = HeaderReservation()

        if size is not None:
            Log.debug(f'Input size: {size} bytes')
            dimension = self._resolve(size)
            header.write(sink, dimension)
            self._set_state(EncoderState.HEADER_WRITTEN)
        else:
            Log.debug('Input is not seekable, its size is determined after copying')
            if not sink.seekable():
                raise CannotDetermineSize()

            dimension = None
            header.write(sink)
            self._set_state(EncoderState.HEADER_PLACEHOLDER_WRITTEN)

        self._set_state(EncoderState.COPYING)
        self._copy(source, sink)

        if dimension is None:
            self._set_state(EncoderState.PATCHING_HEADER)
            dimension = self._resolve(self.counters.bytes_read)
            header.commit(sink, dimension)
        elif self.stop.is_set() and self.counters.bytes_read < size:
            dimension = self._shrink(header, sink, dimension)

        sink.flush()
        self._set_state(EncoderState.DONE)

        result = EncodeResult(dimension, self.counters.snapshot(), size is not None, self.stop.is_set())
        if result.cut_bits:
            Log.warning(f'{result.cut_bits} bits were cut')

        return result

    def _shrink(self, header: HeaderReservation, sink: ByteSink, dimension: Dimension) -> Dimension:
        """ Fits the already written header to the part of the input copied before a stop request. """
        if not header.reserved:
            Log.warning(f'Output is not seekable, the header keeps the dimension {dimension}')
            return dimension

        if self.counters.bytes_read == 0:
            Log.warning(f'Stopped before any input was copied, keeping {dimension}')
            return dimension

        try:
            partial = self._resolve(self.counters.bytes_read)
        except DimensionError as e:
            Log.warning(f'{e}, keeping {dimension}')
            return dimension

        if not header.fits(partial):
            Log.warning(f'Dimension {partial} does not fit the written header, keeping {dimension}')
            return dimension

        self._set_state(EncoderState.PATCHING_HEADER)
        header.commit(sink, partial)
        return partial


def bitmap_to_pbm(input_file: BinaryIO, output_file: BinaryIO, aspect: Optional[float] = None,
                  width: Optional[int] = None, height: Optional[int] = None,
                  block_size: int = DEFAULT_BLOCK_SIZE) -> EncodeResult:
    config = StreamingEncoder.Config(aspect, width, height, block_size)
    encoder = StreamingEncoder(config)
    return encoder.encode(ByteSource(input_file), ByteSink(output_file))
