[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "microceph"
version = "0.1"
description = "Path constants, network and storage checks, and SQLite cluster records for a small Ceph deployment manager"
requires-python = ">=3.10"
dependencies = [
    "psutil",
]
keywords = ["ceph", "cluster", "storage", "osd", "sqlite"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Clustering",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["microceph"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
