"""Conversion of filter logs into the recorded-trajectory text format.

The best particle's trajectory is written as ``POS`` and ``LASER-RANGE``
lines in centimetres and degrees, with resampling steps marked and, where
true poses are available, the position and heading error of the estimate.
"""

from __future__ import annotations

import copy
import math
import re
import sys
from collections.abc import Callable, Iterable
from typing import TextIO

from .gfsreader import (
    CommentRecord,
    LaserRecord,
    NeffRecord,
    OdometryRecord,
    PoseRecord,
    Record,
    ResampleRecord,
    ScanMatchRecord,
)
from .pose import OrientedPoint, normalize_angle

_LINE = re.compile(r"\s*(\S+)(.*)", re.DOTALL)


def _g(value: float) -> str:
    return f"{value:g}"


def _pos_line(label: str, pose: OrientedPoint) -> str:
    return (
        f"{label}0 0: {_g(pose.x * 100)} {_g(pose.y * 100)} "
        f"{_g(180 / math.pi * pose.theta)}\n"
    )


class _RecPoseRecord(PoseRecord):
    def write(self) -> str:
        return _pos_line("POS-CORR" if self.true_pos else "POS ", self.pose)


class _RecNeffRecord(NeffRecord):
    def read(self, text: str) -> None:
        parts = text.split()
        try:
            self.neff = float(parts[0])
        except (IndexError, ValueError):
            self.neff = 0.0

    def write(self) -> str:
        return f"NEFF {_g(self.neff)}\n"


class _RecLaserRecord(LaserRecord):
    def write(self) -> str:
        ranges = "".join(f" {_g(r * 100)}" for r in self.readings)
        return (
            _pos_line("POS ", self.pose)
            + f"LASER-RANGE  0 0 0 {self.dim} 180. : {ranges}\n"
        )


_KINDS: dict[str, Callable[[], Record]] = {
    "LASER_READING": _RecLaserRecord,
    "ODO_UPDATE": OdometryRecord,
    "SM_UPDATE": ScanMatchRecord,
    "SIMULATOR_POS": lambda: _RecPoseRecord(true_pos=True),
    "RESAMPLE": ResampleRecord,
    "NEFF": _RecNeffRecord,
    "COMMENT": CommentRecord,
}


class RecRecordList(list):
    """A filter log read for conversion into the recorded-trajectory format."""

    def __init__(self, records: Iterable[Record] = ()) -> None:
        super().__init__(records)
        self.sample_size = 0

    def read(self, stream: Iterable[str]) -> RecRecordList:
        """Append every recognised record from the lines of ``stream``."""
        for line in stream:
            match = _LINE.match(line.rstrip("\r\n"))
            if match is None:
                continue
            kind, rest = match.groups()
            factory = _KINDS.get(kind)
            if factory is None:
                continue
            record = factory()
            record.read(rest)
            self.append(record)
        return self

    def log_weight(self, index: int) -> float:
        """Accumulated log weight of particle ``index`` over its ancestry."""
        weight = 0.0
        current = index
        for record in reversed(self):
            if isinstance(record, ScanMatchRecord):
                weight += record.weights[current]
            elif isinstance(record, ResampleRecord):
                current = record.indexes[current]
        return weight

    def best_index(self) -> int:
        """Index of the particle with the highest accumulated log weight."""
        if not self:
            return 0
        scan_match = next((r for r in reversed(self) if isinstance(r, ScanMatchRecord)), None)
        if scan_match is None:
            raise ValueError("the log holds no scan-match record")
        dim = scan_match.dim
        self.sample_size = dim
        best_weight = -1e200
        best = dim + 1
        for i in range(dim):
            w = self.log_weight(i)
            if w > best_weight:
                best, best_weight = i, w
        return best

    def _trajectory(self, index: int) -> list[Record]:
        current = index
        pose = OrientedPoint()
        path: list[Record] = []
        for record in reversed(self):
            if isinstance(record, ScanMatchRecord):
                pose = copy.copy(record.poses[current])
                path.append(_RecPoseRecord(pose=copy.copy(pose)))
            elif isinstance(record, OdometryRecord):
                pose = copy.copy(record.poses[current])
                path.append(_RecPoseRecord(time=record.time, pose=copy.copy(pose)))
            elif isinstance(record, LaserRecord):
                laser = copy.deepcopy(record)
                laser.pose = copy.copy(pose)
                path.append(laser)
            elif isinstance(record, ResampleRecord):
                current = record.indexes[current]
                path.append(copy.deepcopy(record))
            elif isinstance(record, (NeffRecord, PoseRecord, CommentRecord)):
                path.append(copy.deepcopy(record))
        path.reverse()
        return path

    def write_path(self, out: TextIO, index: int, err: bool = False) -> None:
        """Write the trajectory of particle ``index`` to ``out``.

        With ``err`` only the error lines, resampling marks and the two
        reference poses (commented) are written.
        """
        started = False
        transformation = False
        true_found = False
        pending_true = False
        ox = oy = rxx = rxy = ryx = ryy = rth = 0.0
        true_pose = OrientedPoint()
        current_pose = OrientedPoint()
        neff = 0.0
        count = 0
        for record in self._trajectory(index):
            if isinstance(record, NeffRecord):
                neff = record.neff / self.sample_size if self.sample_size else math.nan
            started = started or isinstance(record, LaserRecord)
            is_pose = isinstance(record, PoseRecord)
            if started and not true_found and is_pose and record.true_pos:
                true_found = True
                pending_true = True
                true_pose = record.pose
                out.write("# " + record.write())
            if started and true_found and not transformation and is_pose and not record.true_pos:
                pose = record.pose
                rth = true_pose.theta - pose.theta
                s, c = math.sin(rth), math.cos(rth)
                rxx = ryy = c
                rxy, ryx = -s, s
                ox = true_pose.x - (rxx * pose.x + rxy * pose.y)
                oy = true_pose.y - (ryx * pose.x + ryy * pose.y)
                transformation = True
                out.write("# " + record.write())
            if isinstance(record, ResampleRecord):
                out.write(
                    f"MARK-POS 0 0: {_g(current_pose.x * 100)} "
                    f"{_g(current_pose.y * 100)} 0 {count}\n"
                )
                count += 1
            if transformation and is_pose:
                if record.true_pos:
                    pending_true = True
                    true_pose = record.pose
                elif pending_true:
                    pending_true = False
                    pose = record.pose
                    ex = true_pose.x - (ox + rxx * pose.x + rxy * pose.y)
                    ey = true_pose.y - (oy + ryx * pose.x + ryy * pose.y)
                    eth = normalize_angle(true_pose.theta - pose.theta - rth)
                    if not err:
                        out.write("# ERROR ")
                    values = (neff, ex, ey, eth, math.hypot(ex, ey), abs(eth))
                    out.write(" ".join(_g(v) for v in values) + "\n")
            if is_pose:
                current_pose = record.pose
            if not err:
                out.write(record.write())


_USAGE = "usage gfs2rec [-err] <infilename> <outfilename>"


def main(argv: list[str] | None = None) -> int:
    """Convert a filter log into the recorded-trajectory format."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 2:
        print(_USAGE)
        return -1
    err = False
    pos = 0
    if args[pos] == "-err":
        err = True
        pos += 1
    if pos < len(args) and args[pos] == "-neff":
        pos += 1
    if len(args) - pos < 2:
        print(_USAGE)
        return -1
    infile, outfile = args[pos], args[pos + 1]
    try:
        with open(infile) as stream:
            records = RecRecordList().read(stream)
    except OSError:
        print("could read file ")
        return -1
    try:
        best = records.best_index()
    except ValueError as exc:
        print(exc)
        return -1
    print(f"\nbest index = {best}")
    try:
        with open(outfile, "w") as out:
            records.write_path(out, best, err)
    except OSError:
        print("could write file ")
        return -1
    return 0