import io
import logging

import pytest

from bitmap2pbm.log import Log


class Pipe(io.RawIOBase):
    """ Readable stream without seek support, optionally delivering at most `chunk` bytes per read. """

    def __init__(self, data: bytes, chunk: int = None, on_read=None):
        self._data = io.BytesIO(data)
        self.chunk = chunk
        self.on_read = on_read
        self.reads = 0

    def readable(self):
        return True

    def seekable(self):
        return False

    def readinto(self, b):
        size = len(b) if self.chunk is None else min(self.chunk, len(b))
        data = self._data.read(size)
        b[:len(data)] = data
        self.reads += 1
        if self.on_read is not None:
            self.on_read(self.reads)
        return len(data)


class HookedBytesIO(io.BytesIO):
    """ Seekable input calling `on_read` after every read. """

    def __init__(self, data: bytes, on_read):
        super().__init__(data)
        self.on_read = on_read
        self.reads = 0

    def readinto(self, b):
        count = super().readinto(b)
        self.reads += 1
        self.on_read(self.reads)
        return count


class PipeSink(io.RawIOBase):
    def __init__(self):
        self.data = bytearray()

    def writable(self):
        return True

    def seekable(self):
        return False

    def write(self, b):
        self.data += bytes(b)
        return len(b)


@pytest.fixture(autouse=True)
def reset_log():
    yield
    logger = logging.getLogger(Log.NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
