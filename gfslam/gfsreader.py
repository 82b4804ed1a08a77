"""Reader and writer for the particle filter's textual log format.

A log holds one record per line, introduced by a type keyword such as
``LASER_READING``, ``SM_UPDATE`` or ``RESAMPLE``.  Records can be read back,
the best particle recovered from the accumulated weights, and its trajectory
written out again.  Floating point values are written in fixed notation with
six decimals (laser ranges with two).
"""

from __future__ import annotations

import copy
import math
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TextIO

from .pose import OrientedPoint, absolute_difference, normalize_angle

_LINE = re.compile(r"\s*(\S+)(.*)", re.DOTALL)


def _fixed(value: float) -> str:
    return f"{value:.6f}"


class _Tokens:
    """Whitespace separated values read the way a formatted input stream does.

    After the first missing or malformed value every further read fails and
    yields zero.
    """

    def __init__(self, text: str) -> None:
        self._items = iter(text.split())
        self.ok = True

    def _next(self, convert):
        if not self.ok:
            return convert(0)
        token = next(self._items, None)
        if token is None:
            self.ok = False
            return convert(0)
        try:
            return convert(token)
        except ValueError:
            self.ok = False
            return convert(0)

    def read_float(self) -> float:
        return self._next(float)

    def read_int(self) -> int:
        return self._next(int)

    def read_pose(self) -> OrientedPoint:
        x = self.read_float()
        y = self.read_float()
        theta = self.read_float()
        return OrientedPoint(x, y, theta)


@dataclass
class Record(ABC):
    """One line of a filter log."""

    dim: int = 0
    time: float = 0.0

    @abstractmethod
    def read(self, text: str) -> None:
        """Fill the record from the text that follows its type keyword."""

    def write(self) -> str:
        """The record as log text; empty for records that are never written."""
        return ""


@dataclass
class CommentRecord(Record):
    text: str = ""

    def read(self, text: str) -> None:
        self.text = text

    def write(self) -> str:
        return f"#GFS_COMMENT: {self.text}\n"


@dataclass
class PoseRecord(Record):
    true_pos: bool = False
    pose: OrientedPoint = field(default_factory=OrientedPoint)

    def read(self, text: str) -> None:
        tokens = _Tokens(text)
        self.pose = tokens.read_pose()
        self.time = tokens.read_float()

    def write(self) -> str:
        label = "TRUEPOS " if self.true_pos else "ODOM "
        p = self.pose
        return (
            f"{label}{_fixed(p.x)} {_fixed(p.y)} {_fixed(p.theta)} 0 0 0 "
            f"{_fixed(self.time)} pippo {_fixed(self.time)}\n"
        )


@dataclass
class NeffRecord(Record):
    neff: float = 0.0

    def read(self, text: str) -> None:
        tokens = _Tokens(text)
        self.neff = tokens.read_float()
        self.time = tokens.read_float()

    def write(self) -> str:
        return f"NEFF {_fixed(self.neff)} {_fixed(self.time)} pippo {_fixed(self.time)}\n"


@dataclass
class EntropyRecord(Record):
    pose_entropy: float = 0.0
    trajectory_entropy: float = 0.0
    map_entropy: float = 0.0

    def read(self, text: str) -> None:
        tokens = _Tokens(text)
        self.pose_entropy = tokens.read_float()
        self.trajectory_entropy = tokens.read_float()
        self.map_entropy = tokens.read_float()
        self.time = tokens.read_float()

    def write(self) -> str:
        return (
            f"ENTROPY {_fixed(self.pose_entropy)} {_fixed(self.trajectory_entropy)} "
            f"{_fixed(self.map_entropy)} {_fixed(self.time)} pippo {_fixed(self.time)}\n"
        )


@dataclass
class OdometryRecord(Record):
    poses: list[OrientedPoint] = field(default_factory=list)

    def read(self, text: str) -> None:
        tokens = _Tokens(text)
        self.dim = tokens.read_int()
        self.poses = []
        for _ in range(self.dim):
            self.poses.append(tokens.read_pose())
            tokens.read_float()  # weight, not kept
        self.time = tokens.read_float()


@dataclass
class RawOdometryRecord(Record):
    pose: OrientedPoint = field(default_factory=OrientedPoint)

    def read(self, text: str) -> None:
        tokens = _Tokens(text)
        self.pose = tokens.read_pose()
        if not tokens.ok:
            raise ValueError(f"malformed raw odometry record: {text!r}")
        self.time = tokens.read_float()


@dataclass
class ScanMatchRecord(Record):
    poses: list[OrientedPoint] = field(default_factory=list)
    weights: list[float] = field(default_factory=list)

    def read(self, text: str) -> None:
        tokens = _Tokens(text)
        self.dim = tokens.read_int()
        self.poses = []
        self.weights = []
        for _ in range(self.dim):
            self.poses.append(tokens.read_pose())
            self.weights.append(tokens.read_float())


_URG_RESOLUTION = 360.0 / 1024.0 / 180.0 * math.pi


def _laser_profile(dim: int) -> str:
    """Laser type, start angle, field of view, resolution and range by beam count."""
    if dim in (540, 541):
        return " 4 -2.351831 4.712389 0.008727 30.0"
    if dim in (360, 361):
        return " 0 -1.570796 3.141593 0.008726 81.9"
    if dim in (682, 683):
        return f" 0 -2.094395 4.1887902 {_fixed(_URG_RESOLUTION)} 5.5"
    return " 0 -1.570796 3.141593 0.017453 81.9"


@dataclass
class LaserRecord(Record):
    readings: list[float] = field(default_factory=list)
    pose: OrientedPoint = field(default_factory=OrientedPoint)
    weight: float = 0.0

    def read(self, text: str) -> None:
        tokens = _Tokens(text)
        self.dim = tokens.read_int()
        self.readings = [tokens.read_float() for _ in range(self.dim)]
        self.pose = tokens.read_pose()
        self.time = tokens.read_float()

    def write(self) -> str:
        p = self.pose
        pose_text = f"{_fixed(p.x)} {_fixed(p.y)} {_fixed(p.theta)}"
        ranges = "".join(f" {r:.2f}" for r in self.readings)
        return (
            f"WEIGHT {_fixed(self.weight)}\n"
            f"ROBOTLASER1 {_laser_profile(self.dim)} 0.01 0 {self.dim}{ranges}"
            f" 0 {pose_text} {pose_text} 0 0 0.55 0.375 1000000.0"
            f" {_fixed(self.time)} localhost {_fixed(self.time)}\n"
        )


@dataclass
class ResampleRecord(Record):
    indexes: list[int] = field(default_factory=list)

    def read(self, text: str) -> None:
        tokens = _Tokens(text)
        self.dim = tokens.read_int()
        self.indexes = [tokens.read_int() for _ in range(self.dim)]


def parse_record(line: str) -> Record | None:
    """Build the record a log line describes, or None for unknown or blank lines."""
    match = _LINE.match(line.rstrip("\r\n"))
    if match is None:
        return None
    kind, rest = match.groups()
    record: Record
    if kind == "LASER_READING":
        record = LaserRecord()
    elif kind == "ODO_UPDATE":
        record = OdometryRecord()
    elif kind == "ODOM":
        record = RawOdometryRecord()
    elif kind == "SM_UPDATE":
        record = ScanMatchRecord()
    elif kind == "SIMULATOR_POS":
        record = PoseRecord(true_pos=True)
    elif kind == "RESAMPLE":
        record = ResampleRecord()
    elif kind == "NEFF":
        record = NeffRecord()
    elif kind in ("COMMENT", "#COMMENT"):
        record = CommentRecord()
    elif kind == "ENTROPY":
        record = EntropyRecord()
    else:
        return None
    record.read(rest)
    return record


class RecordList(list):
    """An ordered filter log with queries over the particle history."""

    def __init__(self, records: Iterable[Record] = ()) -> None:
        super().__init__(records)
        self.sample_size = 0

    def read(self, stream: Iterable[str]) -> RecordList:
        """Append every recognised record from the lines of ``stream``."""
        for line in stream:
            record = parse_record(line)
            if record is not None:
                self.append(record)
        return self

    def _before(self, frame: int | None) -> Iterable[Record]:
        """Records preceding position ``frame`` (default: the end), newest first."""
        end = len(self) if frame is None else frame
        return reversed(self[:end])

    def _last_scan_match(self) -> ScanMatchRecord | None:
        return next((r for r in reversed(self) if isinstance(r, ScanMatchRecord)), None)

    def log_weight(self, index: int, frame: int | None = None) -> float:
        """Accumulated log weight of particle ``index`` over its ancestry."""
        weight = 0.0
        current = index
        for record in self._before(frame):
            if isinstance(record, ScanMatchRecord):
                weight += record.weights[current]
            elif isinstance(record, ResampleRecord):
                current = record.indexes[current]
        return weight

    def best_index(self) -> int:
        """Index of the particle with the highest accumulated log weight."""
        if not self:
            return 0
        scan_match = self._last_scan_match()
        if scan_match is None:
            raise ValueError("the log holds no scan-match record")
        dim = scan_match.dim
        self.sample_size = dim
        best_weight = -math.inf
        best = dim + 1
        for i in range(dim):
            w = self.log_weight(i)
            if w > best_weight:
                best, best_weight = i, w
        return best

    def write_last_particles(self, out: TextIO) -> None:
        """Write a marker for each particle pose of the last scan match."""
        scan_match = self._last_scan_match()
        if scan_match is None:
            return
        for pose in scan_match.poses:
            out.write(
                f"MARKER [color=black; circle={pose.x * 100:g},{pose.y * 100:g},10] 0 pippo 0\n"
            )

    def compute_path(self, index: int, frame: int | None = None) -> RecordList:
        """Laser records before ``frame`` placed on the path of particle ``index``."""
        current = index
        pose = OrientedPoint()
        seen_match = False
        path: list[Record] = []
        for record in self._before(frame):
            if isinstance(record, ScanMatchRecord):
                pose = record.poses[current]
                seen_match = True
            elif isinstance(record, LaserRecord) and seen_match:
                laser = copy.deepcopy(record)
                laser.pose = copy.copy(pose)
                path.append(laser)
            elif isinstance(record, ResampleRecord):
                current = record.indexes[current]
        path.reverse()
        return RecordList(path)

    def _trajectory(self, index: int, raw_odom: bool) -> list[Record]:
        current = index
        pose = OrientedPoint()
        old_weight = 0.0
        weight = 0.0
        path: list[Record] = []
        for record in reversed(self):
            if isinstance(record, (NeffRecord, EntropyRecord, PoseRecord, CommentRecord)):
                path.append(copy.deepcopy(record))
            elif isinstance(record, ScanMatchRecord):
                pose = copy.copy(record.poses[current])
                weight = record.weights[current] - old_weight
                old_weight = record.weights[current]
                if not raw_odom:
                    path.append(PoseRecord(pose=copy.copy(pose)))
            elif isinstance(record, OdometryRecord):
                pose = copy.copy(record.poses[current])
                if not raw_odom:
                    path.append(PoseRecord(time=record.time, pose=copy.copy(pose)))
            elif isinstance(record, RawOdometryRecord):
                if raw_odom:
                    path.append(PoseRecord(time=record.time, pose=copy.copy(record.pose)))
            elif isinstance(record, LaserRecord):
                laser = copy.deepcopy(record)
                laser.pose = copy.copy(pose)
                laser.weight = weight
                path.append(laser)
            elif isinstance(record, ResampleRecord):
                path.append(copy.deepcopy(record))
                current = record.indexes[current]
        path.reverse()
        return path

    def write_path(
        self, out: TextIO, index: int, err: bool = False, raw_odom: bool = False
    ) -> float:
        """Write the trajectory of particle ``index`` with error lines against true poses.

        With ``err`` only the error lines (and the two reference poses, commented)
        are written.  ``raw_odom`` writes raw odometry instead of corrected poses.
        The effective sample size is divided by ``sample_size`` as set by
        :meth:`best_index` (nan when unset).  Returns the mean position error,
        or nan when no error was computed.
        """
        started = False
        transformation = False
        true_found = False
        true_pose = OrientedPoint()
        true_start = OrientedPoint()
        real_start = OrientedPoint()
        pending_true = False
        neff = 0.0
        total_error = 0.0
        count = 0
        for record in self._trajectory(index, raw_odom):
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
                true_start = true_pose
                real_start = record.pose
                out.write("# " + record.write())
                transformation = True
            if transformation and is_pose:
                if record.true_pos:
                    pending_true = True
                    true_pose = record.pose
                elif pending_true:
                    pending_true = False
                    real_delta = absolute_difference(record.pose, real_start)
                    true_delta = absolute_difference(true_pose, true_start)
                    ex = real_delta.x - true_delta.x
                    ey = real_delta.y - true_delta.y
                    eth = normalize_angle(real_delta.theta - true_delta.theta)
                    distance = math.hypot(ex, ey)
                    if not err:
                        out.write("# ERROR ")
                    out.write(
                        " ".join(_fixed(v) for v in (neff, ex, ey, eth, distance, abs(eth)))
                        + "\n"
                    )
                    total_error += distance
                    count += 1
            if not err:
                out.write(record.write())
        return total_error / count if count else math.nan