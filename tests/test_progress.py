import io

from bitmap2pbm.progress import CountersSnapshot, EncodeCounters, Progress, StopFlag


def test_counters_start_at_zero():
    assert EncodeCounters().snapshot() == CountersSnapshot(0, 0, 0, 0)


def test_counters_accumulate():
    counters = EncodeCounters()
    counters.record_read(512)
    counters.record_write(512)
    counters.record_read(100)
    counters.record_write(100)
    counters.record_read(0)

    assert counters.snapshot() == CountersSnapshot(blocks_read=2, bytes_read=612, blocks_written=2,
                                                   bytes_written=612)
    assert counters.bytes_read == 612


def test_snapshot_is_not_affected_by_later_updates():
    counters = EncodeCounters()
    counters.record_read(8)
    before = counters.snapshot()
    counters.record_read(8)

    assert before.bytes_read == 8
    assert counters.snapshot().bytes_read == 16


def test_report_format():
    snapshot = CountersSnapshot(blocks_read=3, bytes_read=3000000, blocks_written=3, bytes_written=3000000)
    assert Progress.format(snapshot, 2.0) == ('3 blocks in (3000000 bytes)\n'
                                              '3 blocks out (3000000 bytes)\n'
                                              '2 s, 1.5 MB/s')


def test_report_without_elapsed_time():
    assert Progress.format(CountersSnapshot(), 0.0).endswith('0 s, 0.0 MB/s')


def test_print_progress():
    counters = EncodeCounters()
    counters.record_read(10)
    out = io.StringIO()

    Progress(counters).print(out)
    assert out.getvalue().startswith('1 blocks in (10 bytes)\n0 blocks out (0 bytes)\n')


def test_stop_flag():
    flag = StopFlag()
    assert not flag.is_set()
    flag.set()
    assert flag.is_set()
