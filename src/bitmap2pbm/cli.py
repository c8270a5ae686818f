import argparse
import contextlib
import sys

from typing import List, Optional

from bitmap2pbm import __version__
from bitmap2pbm.encoder import StreamingEncoder, EncodeResult
from bitmap2pbm.errors import Bitmap2PbmError, StreamError
from bitmap2pbm.header import read_header
from bitmap2pbm.log import Log
from bitmap2pbm.signals import SignalBridge
from bitmap2pbm.streams import ByteSink, ByteSource, wrap_stream

EPILOG = '''Example 1: bitmap2pbm --if usagemap.dat --of image.pbm
Example 2: cat usagemap.dat | bitmap2pbm --of image.pbm'''


class OpenError(Bitmap2PbmError):
    pass


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser('bitmap2pbm', description='Creates a P4 type PBM image from a binary file.',
                                     epilog=EPILOG, formatter_class=argparse.RawDescriptionHelpFormatter)

    Log.add_args(parser)
    StreamingEncoder.Config.add_arguments(parser)

    parser.add_argument('--if', '-i', dest='input', type=str, default=None, help='Input file (default: stdin)')
    parser.add_argument('--of', '-o', dest='output', type=str, default=None, help='Output file (default: stdout)')
    parser.add_argument('--no-signals', dest='signals', action='store_false',
                        help='Do not report progress on SIGUSR1 or stop on SIGINT')
    parser.add_argument('--verify', action='store_true', help='Read back the header of the output file')
    parser.add_argument('--version', '-v', action='version', version=f'Version: {__version__}')
    return parser


def _open(stack: contextlib.ExitStack, path: Optional[str], mode: str, what: str):
    try:
        return stack.enter_context(open(path, mode))
    except OSError as e:
        raise OpenError(f'Cannot open {what} file: {path} ({e.strerror})') from e


def verify(path: str, result: EncodeResult):
    try:
        with open(path, 'rb') as f:
            width, height = read_header(f)
    except (OSError, ValueError) as e:
        raise Bitmap2PbmError(f'Verification failed: {e}') from e

    expected = (result.dimension.width, result.dimension.height)
    if (width, height) != expected:
        raise Bitmap2PbmError(f'Verification failed: header says {width} {height}, expected {result.dimension}')

    Log.info(f'Verified {path}: {width}x{height}')


def convert(args, encoder: StreamingEncoder) -> EncodeResult:
    try:
        with contextlib.ExitStack() as stack:
            if args.input is not None:
                input_file, input_name = _open(stack, args.input, 'rb', 'input'), args.input
            else:
                input_file, input_name = wrap_stream(sys.stdin), '<stdin>'

            if args.output is not None:
                output_file, output_name = _open(stack, args.output, 'w+b', 'output'), args.output
            else:
                output_file, output_name = wrap_stream(sys.stdout), '<stdout>'

            if args.signals:
                stack.enter_context(SignalBridge(encoder))

            return encoder.encode(ByteSource(input_file, input_name), ByteSink(output_file, output_name))
    except OSError as e:
        # Closing the output flushes whatever is still buffered
        raise StreamError(f'Output close has failed: {e}') from e


def run(argv: Optional[List[str]] = None) -> int:
    parser = make_parser()
    args = parser.parse_args(argv)
    Log.setup(args)

    try:
        config = StreamingEncoder.Config.from_args(args)
    except Bitmap2PbmError as e:
        print(e, file=sys.stderr)
        return e.exit_code

    encoder = StreamingEncoder(config)
    try:
        result = convert(args, encoder)
    except OpenError as e:
        print(e, file=sys.stderr)
        return e.exit_code
    except Bitmap2PbmError as e:
        print(e, file=sys.stderr)
        if isinstance(e, StreamError):
            print('I/O error', file=sys.stderr)
        encoder.print_progress(sys.stderr)
        return e.exit_code

    # Keep the summary out of the image when it goes to stdout
    if args.output is not None:
        encoder.print_progress(sys.stdout)

        if args.verify:
            try:
                verify(args.output, result)
            except Bitmap2PbmError as e:
                print(e, file=sys.stderr)
                return e.exit_code

    return 0


def main():
    sys.exit(run())


if __name__ == '__main__':
    main()
