# gfslam

Building blocks for grid-based FastSLAM (Rao-Blackwellized particle filter
mapping) in plain Python, with no third-party dependencies, plus three
command-line tools for the filter's text logs.

## Modules

- `gfslam.pose` – `OrientedPoint` (x, y, theta; supports `+`, `-`, scaling,
  `dot`, `norm`, `normalized`), `Covariance3` (with `as_matrix`), and the
  helpers `normalize_angle` (wraps into [-pi, pi]), `absolute_difference`
  (express one pose in the frame of another) and `absolute_sum` (compose a
  relative pose onto a pose).
- `gfslam.motion` – `MotionModel` with noise parameters `srr`, `srt`, `str_`,
  `stt` and an optional `random.Random` as `rng`. `draw_from_motion` samples a
  pose after a forward move and a rotation, `draw_from_odometry` applies a
  noisy odometry step `pold -> pnew`, and `gaussian_approximation` returns the
  step's `Covariance3`.
- `gfslam.tree` – the particle trajectory tree. `TNode` counts its children;
  `detach` releases a leaf and any ancestors left without children, `path`
  yields a node and its ancestors. `reset_tree`, `propagate_weight`,
  `propagate_weights` and `update_tree_weights` accumulate leaf weights up the
  tree; inconsistent weights raise `TreeWeightError`. `copy_trajectories`
  deep-copies the tree while keeping shared ancestors shared.
- `gfslam.gfsreader` – the filter log format. `parse_record` turns one line
  into a record (`LaserRecord`, `OdometryRecord`, `RawOdometryRecord`,
  `ScanMatchRecord`, `PoseRecord`, `ResampleRecord`, `NeffRecord`,
  `CommentRecord`, `EntropyRecord`), or `None` for unknown lines.
  `RecordList` reads a log, and offers `log_weight`, `best_index`,
  `compute_path`, `write_path` (returns the mean position error against true
  poses, or nan) and `write_last_particles`.
- `gfslam.recformat` – `RecRecordList`, which writes the best path as `POS`,
  `LASER-RANGE`, `MARK-POS` and error lines in centimetres and degrees.
- `gfslam.tools` – `neff_series`, yielding `(frame, neff)` pairs from log
  lines, and the entry points of the `gfs2log` and `gfs2neff` commands.
- `gfslam.scanprep` – helpers for feeding laser scans to a filter and turning
  its output into a map: `MapperParameters` (defaults of the live mapper),
  `should_process`, `laser_angles`, `needs_reversal`, `prepare_ranges`,
  `pose_entropy`, `occupancy_value`, `occupancy_grid` (row-major, -1/0/100)
  and `map_to_odom`.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Command-line tools

Write the path of the best particle as a robot log. `-err` writes only the
error lines and prints the average error, `-part` appends markers for the last
particle cloud, `-odom` writes raw odometry instead of corrected poses, and
`-neff` is accepted and ignored. Flags must come in this order:

```
gfs2log [-err] [-neff] [-part] [-odom] <infilename> <outfilename>
```

Extract the effective sample size per frame as `frame neff` lines:

```
gfs2neff <infilename> <nefffilename>
```

Write the best path in the rec format (`-neff` is accepted and ignored):

```
gfs2rec [-err] [-neff] <infilename> <outfilename>
```

Each command returns -1 and prints a usage or error message when arguments
are missing or a file cannot be opened.

## Library use

```python
import math

from gfslam.gfsreader import RecordList
from gfslam.pose import OrientedPoint, absolute_difference, absolute_sum

start = OrientedPoint(1.0, 2.0, 0.5)
goal = OrientedPoint(2.0, 3.0, 0.7)
delta = absolute_difference(goal, start)   # goal in start's frame
back = absolute_sum(start, delta)
assert math.isclose(back.x, goal.x) and math.isclose(back.y, goal.y)

with open("run.gfs") as log, open("run.log", "w") as out:
    records = RecordList().read(log)
    best = records.best_index()
    records.write_path(out, best)
```

## What it does not do

The package has no scan matcher, no occupancy map storage and no complete
particle filter loop; it does not subscribe to laser scans or publish maps and
transforms. `gfslam.scanprep` holds only the middleware-free parts of such a
mapper, and the log tools work on logs written elsewhere.