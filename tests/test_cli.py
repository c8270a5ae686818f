import io

import pytest

from bitmap2pbm import cli
from bitmap2pbm.cli import run
from bitmap2pbm.header import render_preamble


@pytest.fixture
def input_file(tmp_path):
    path = tmp_path / 'usagemap.dat'
    path.write_bytes(b'\xff' * 10)
    return path


def test_convert_file(tmp_path, input_file, capsys):
    output = tmp_path / 'image.pbm'
    assert run(['--if', str(input_file), '--of', str(output), '--no-signals']) == 0

    assert output.read_bytes() == render_preamble() + b'8 10 ' + b'\xff' * 10
    out = capsys.readouterr().out
    assert '1 blocks in (10 bytes)' in out
    assert '1 blocks out (10 bytes)' in out


def test_width_and_block_size(tmp_path, input_file):
    output = tmp_path / 'image.pbm'
    assert run(['--if', str(input_file), '--of', str(output), '-x', '16', '--bs', '3', '--no-signals']) == 0
    assert output.read_bytes().startswith(render_preamble() + b'16 5 ')


def test_verify(tmp_path, input_file):
    output = tmp_path / 'image.pbm'
    assert run(['--if', str(input_file), '--of', str(output), '--verify', '--no-signals']) == 0


def test_signals_installed_during_run(tmp_path, input_file):
    output = tmp_path / 'image.pbm'
    assert run(['--if', str(input_file), '--of', str(output)]) == 0


def test_empty_input(tmp_path, capsys):
    empty = tmp_path / 'empty.dat'
    empty.write_bytes(b'')
    output = tmp_path / 'image.pbm'

    assert run(['--if', str(empty), '--of', str(output), '--no-signals']) == 1
    assert output.read_bytes() == b''
    err = capsys.readouterr().err
    assert 'Input is empty' in err
    assert '0 blocks in (0 bytes)' in err


def test_invalid_width(tmp_path, input_file, capsys):
    assert run(['--if', str(input_file), '--of', str(tmp_path / 'x.pbm'), '--width', '12']) == 1
    assert 'Width must be multiple of 8' in capsys.readouterr().err


def test_aspect_with_width(tmp_path, input_file, capsys):
    assert run(['--if', str(input_file), '--of', str(tmp_path / 'x.pbm'), '--aspect', '2', '--width', '8']) == 1
    assert 'Aspect with width or height is given' in capsys.readouterr().err


def test_too_large_dimension(tmp_path, input_file, capsys):
    assert run(['--if', str(input_file), '--of', str(tmp_path / 'x.pbm'), '-x', '8', '-y', '11', '--no-signals']) == 1
    err = capsys.readouterr().err
    assert 'Width * height > input size' in err
    assert 'blocks in' in err


def test_missing_input(tmp_path, capsys):
    assert run(['--if', str(tmp_path / 'missing.dat'), '--of', str(tmp_path / 'x.pbm')]) == 1
    assert 'Cannot open input file' in capsys.readouterr().err


@pytest.mark.parametrize('args', [['--width', 'abc'], ['--width', '0'], ['--height', '-3'], ['--bs', '0'],
                                  ['--aspect', '0'], ['--aspect', 'nan'], ['stray']])
def test_bad_arguments(args, capsys):
    with pytest.raises(SystemExit) as e:
        run(args)
    assert e.value.code == 2


def test_wrong_argument_message(capsys):
    with pytest.raises(SystemExit):
        run(['--width', 'abc'])
    assert 'Wrong argument for width: abc' in capsys.readouterr().err


def test_version(capsys):
    with pytest.raises(SystemExit) as e:
        run(['--version'])
    assert e.value.code == 0
    assert capsys.readouterr().out.strip() == 'Version: 1.0.0'


class FailingClose(io.BytesIO):
    """ Output whose first close fails, like a flush on a full disk. """

    def __init__(self):
        super().__init__()
        self.failed = False

    def close(self):
        if not self.failed:
            self.failed = True
            raise OSError(28, 'No space left on device')
        super().close()


def test_output_close_failure(tmp_path, input_file, capsys, monkeypatch):
    real_open = open

    def fake_open(path, mode='r', *args, **kwargs):
        if mode == 'w+b':
            return FailingClose()
        return real_open(path, mode, *args, **kwargs)

    monkeypatch.setattr(cli, 'open', fake_open, raising=False)

    assert run(['--if', str(input_file), '--of', str(tmp_path / 'x.pbm'), '--no-signals']) == 2
    err = capsys.readouterr().err
    assert 'Output close has failed' in err
    assert 'I/O error' in err
    assert '1 blocks in (10 bytes)' in err
