import io
import os

from typing import BinaryIO, Optional, Tuple

from bitmap2pbm.errors import StreamError
from bitmap2pbm.log import Log


def _is_seekable(fileobj) -> bool:
    try:
        return fileobj.seekable()
    except (OSError, ValueError):
        return False


class ByteSource:
    """ Sequential reader over a binary file object, with an optional seek probe for the total size. """

    def __init__(self, fileobj: BinaryIO, name: str = '<input>'):
        self.fileobj = fileobj
        self.name = name

    def size(self) -> Optional[int]:
        """
        Total length in bytes, or None if the input can only be read sequentially.
        The input is rewound to the start when its size is known.
        """
        if not _is_seekable(self.fileobj):
            return None

        try:
            size = self.fileobj.seek(0, os.SEEK_END)
        except (OSError, ValueError):
            return None

        self.rewind()
        return size

    def rewind(self):
        try:
            self.fileobj.seek(0, os.SEEK_SET)
        except (OSError, ValueError) as e:
            raise StreamError(f'Cannot rewind {self.name}: {e}') from e

    def read_into(self, buffer: bytearray) -> Tuple[int, bool]:
        """
        Fills `buffer` as far as the input allows. Returns the number of bytes read and whether the end of the input
        was reached. Like fread, a short count only happens at the end of the input.
        """
        view = memoryview(buffer)
        total = 0
        try:
            while total < len(buffer):
                count = self.fileobj.readinto(view[total:])
                if count is None:
                    raise StreamError(f'Input read has failed: {self.name} would block')
                if count == 0:
                    return total, True
                total += count
        except (OSError, ValueError) as e:
            raise StreamError(f'Input read has failed: {e}') from e
        finally:
            view.release()

        return total, False


class ByteSink:
    """ Binary output that may or may not support repositioning. """

    def __init__(self, fileobj: BinaryIO, name: str = '<output>'):
        self.fileobj = fileobj
        self.name = name

    def seekable(self) -> bool:
        return _is_seekable(self.fileobj)

    def try_seek(self, position: int) -> bool:
        if not self.seekable():
            return False

        try:
            self.fileobj.seek(position, os.SEEK_SET)
        except (OSError, ValueError) as e:
            Log.debug(f'Seek to {position} in {self.name} failed: {e}')
            return False
        return True

    def tell(self) -> int:
        try:
            return self.fileobj.tell()
        except (OSError, ValueError) as e:
            raise StreamError(f'Cannot get the position in {self.name}: {e}') from e

    def write(self, data) -> int:
        try:
            written = self.fileobj.write(data)
        except (OSError, ValueError) as e:
            raise StreamError(f'Output write has failed: {e}') from e

        # Raw (unbuffered) files may accept only part of the data
        if written is not None and written != len(data):
            raise StreamError(f'Output write has failed: {written} of {len(data)} bytes written')

        return len(data)

    def flush(self):
        try:
            self.fileobj.flush()
        except (OSError, ValueError) as e:
            raise StreamError(f'Output flush has failed: {e}') from e


def wrap_stream(fileobj) -> BinaryIO:
    """ Binary view of a text stream such as sys.stdin; binary streams are returned as is. """
    if isinstance(fileobj, io.TextIOBase):
        return fileobj.buffer
    return fileobj
