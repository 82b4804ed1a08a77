[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gfslam"
version = "0.1.0"
description = "Grid-based FastSLAM building blocks: poses, motion model, trajectory trees, filter log tools and laser scan preparation"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "slam",
    "fastslam",
    "particle filter",
    "robotics",
    "occupancy grid",
    "laser scan",
    "odometry",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
gfs2log = "gfslam.tools:gfs2log_main"
gfs2neff = "gfslam.tools:gfs2neff_main"
gfs2rec = "gfslam.recformat:main"

[tool.hatch.build.targets.wheel]
packages = ["gfslam"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
