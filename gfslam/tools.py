"""Command-line helpers over filter logs: effective sample size and log export."""

from __future__ import annotations

import re
import sys
from collections.abc import Iterable, Iterator, Sequence

from .gfsreader import RecordList

_INT = re.compile(r"[+-]?\d+")


def _first_int(tokens: Sequence[str]) -> int:
    match = _INT.match(tokens[0]) if tokens else None
    return int(match.group()) if match else 0


def _first_float(tokens: Sequence[str]) -> float:
    try:
        return float(tokens[0])
    except (IndexError, ValueError):
        return 0.0


def _leading_flags(args: list[str], names: Sequence[str]) -> tuple[set[str], list[str]]:
    """Consume the given flags, each optional and only in the given order."""
    found: set[str] = set()
    pos = 0
    for name in names:
        if pos < len(args) and args[pos] == name:
            found.add(name)
            pos += 1
    return found, args[pos:]


def neff_series(lines: Iterable[str]) -> Iterator[tuple[int, float]]:
    """Yield (frame, effective sample size) for every ``NEFF`` line."""
    frame = 0
    for line in lines:
        tokens = line.split()
        if not tokens:
            continue
        if tokens[0] == "FRAME":
            frame = _first_int(tokens[1:])
        elif tokens[0] == "NEFF":
            yield frame, _first_float(tokens[1:])


def gfs2neff_main(argv: list[str] | None = None) -> int:
    """Extract the effective sample size per frame from a filter log."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 2:
        print("usage gfs2neff <infilename> <nefffilename>")
        return -1
    try:
        stream = open(args[0])
    except OSError:
        print("could read file ")
        return -1
    with stream:
        try:
            out = open(args[1], "w")
        except OSError:
            print("could write file ")
            return -1
        with out:
            for frame, neff in neff_series(stream):
                out.write(f"{frame} {neff:g}\n")
    return 0


def gfs2log_main(argv: list[str] | None = None) -> int:
    """Write the best particle's trajectory of a filter log as a robot log."""
    args = list(sys.argv[1:] if argv is None else argv)
    usage = (
        "usage gfs2log [-err] [-neff] [-part] [-odom] <infilename> <outfilename>\n"
        "  -odom : dump raw odometry in ODOM message instead of inpolated corrected one"
    )
    if len(args) < 2:
        print(usage)
        return -1
    flags, rest = _leading_flags(args, ("-err", "-neff", "-part", "-odom"))
    if len(rest) < 2:
        print(usage)
        return -1
    try:
        with open(rest[0]) as stream:
            records = RecordList().read(stream)
    except OSError:
        print("could read file ")
        return -1
    try:
        best = records.best_index()
    except ValueError as exc:
        print(exc)
        return -1
    print(f"\nbest index = {best}")
    err = "-err" in flags
    try:
        with open(rest[1], "w") as out:
            mean_error = records.write_path(out, best, err, "-odom" in flags)
            if err:
                print(f"average error{mean_error:g}")
            if "-part" in flags:
                records.write_last_particles(out)
    except OSError:
        print("could write file ")
        return -1
    return 0