import io
import math

import pytest

from gfslam.gfsreader import (
    CommentRecord,
    LaserRecord,
    NeffRecord,
    OdometryRecord,
    PoseRecord,
    ResampleRecord,
    ScanMatchRecord,
)
from gfslam.recformat import RecRecordList, main


def _read(text):
    return RecRecordList().read(io.StringIO(text))


MATCHING_LOG = (
    "SIMULATOR_POS 1 1 0 0\n"
    "LASER_READING 1 3.0 0 0 0 0\n"
    "SIMULATOR_POS 1 1 0 0\n"
    "SM_UPDATE 1 1 1 0 0\n"
    "LASER_READING 1 3.0 0 0 0 0\n"
    "SIMULATOR_POS 2 3 0.5 0\n"
    "SM_UPDATE 1 2 3 0.5 0\n"
)


def _error_lines(text):
    return [line for line in text.splitlines() if not line.startswith("#")]


def test_read_recognises_record_kinds():
    records = _read(
        "LASER_READING 2 1.0 2.0 0 0 0 1.0\n"
        "ODO_UPDATE 1 0 0 0 1 2.0\n"
        "SM_UPDATE 1 0 0 0 1\n"
        "SIMULATOR_POS 1 2 0 3\n"
        "RESAMPLE 1 0\n"
        "NEFF 1\n"
        "COMMENT hi\n"
        "UNKNOWN 5\n"
        "\n"
    )
    kinds = [LaserRecord, OdometryRecord, ScanMatchRecord, PoseRecord,
             ResampleRecord, NeffRecord, CommentRecord]
    assert len(records) == len(kinds)
    assert all(isinstance(r, k) for r, k in zip(records, kinds))
    assert records[3].true_pos is True
    assert records[0].readings == [1.0, 2.0]


def test_log_weight_single_scan_match():
    records = _read("SM_UPDATE 3 0 0 0 -1.5 0 0 0 -0.5 0 0 0 -2\n")
    assert [records.log_weight(i) for i in range(3)] == [-1.5, -0.5, -2.0]
    assert records.best_index() == 1
    assert records.sample_size == 3


def test_resample_shares_ancestry():
    records = _read(
        "SM_UPDATE 2 0 0 0 -4 0 0 0 -1\n"
        "RESAMPLE 2 1 1\n"
        "SM_UPDATE 2 0 0 0 -2 0 0 0 -2\n"
    )
    assert records.log_weight(0) == records.log_weight(1)
    assert records.best_index() == 0


def test_best_index_empty_and_missing_scan_match():
    assert RecRecordList().best_index() == 0
    with pytest.raises(ValueError):
        _read("NEFF 3\n").best_index()


def test_matching_trajectory_has_zero_error():
    records = _read(MATCHING_LOG)
    best = records.best_index()
    out = io.StringIO()
    records.write_path(out, best, err=True)
    errors = _error_lines(out.getvalue())
    assert len(errors) == 2
    assert all(float(v) == 0.0 for line in errors for v in line.split())


def test_constant_offset_is_absorbed():
    records = _read(
        MATCHING_LOG.replace("SM_UPDATE 1 1 1 0 0", "SM_UPDATE 1 6 -1 0 0").replace(
            "SM_UPDATE 1 2 3 0.5 0", "SM_UPDATE 1 7 1 0.5 0"
        )
    )
    out = io.StringIO()
    records.write_path(out, records.best_index(), err=True)
    errors = _error_lines(out.getvalue())
    assert len(errors) == 2
    assert all(abs(float(v)) < 1e-9 for line in errors for v in line.split())


def test_error_distance_is_consistent():
    records = _read(MATCHING_LOG.replace("SM_UPDATE 1 2 3 0.5 0", "SM_UPDATE 1 2.5 3 0.5 0"))
    out = io.StringIO()
    records.write_path(out, records.best_index(), err=True)
    last = [float(v) for v in _error_lines(out.getvalue())[-1].split()]
    _, ex, ey, eth, dist, aeth = last
    assert dist > 0
    assert dist == pytest.approx(math.hypot(ex, ey), rel=1e-4)
    assert aeth == pytest.approx(abs(eth), abs=1e-6)


def test_full_output_formats():
    records = _read(MATCHING_LOG + "RESAMPLE 1 0\nNEFF 1\n")
    records.best_index()
    out = io.StringIO()
    records.write_path(out, 0)
    text = out.getvalue()
    assert "LASER-RANGE  0 0 0 1 180. :  300" in text
    assert "POS 0 0: 100 100 0" in text
    assert "MARK-POS 0 0: " in text
    assert text.count("# ERROR ") == 2
    assert "NEFF 1\n" in text


def test_main_round_trip(tmp_path, capsys):
    src = tmp_path / "in.log"
    dst = tmp_path / "out.rec"
    src.write_text(MATCHING_LOG)
    assert main([str(src), str(dst)]) == 0
    expected_list = _read(MATCHING_LOG)
    buf = io.StringIO()
    expected_list.write_path(buf, expected_list.best_index())
    assert dst.read_text() == buf.getvalue()
    assert "best index = 0" in capsys.readouterr().out


def test_main_err_mode_omits_records(tmp_path):
    src = tmp_path / "in.log"
    dst = tmp_path / "out.rec"
    src.write_text(MATCHING_LOG)
    assert main(["-err", str(src), str(dst)]) == 0
    assert "LASER-RANGE" not in dst.read_text()


def test_main_errors(tmp_path, capsys):
    assert main(["only"]) == -1
    assert main([str(tmp_path / "missing"), str(tmp_path / "out")]) == -1
    assert "could read file" in capsys.readouterr().out