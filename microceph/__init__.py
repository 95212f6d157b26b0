"""Path constants, network and storage checks, and SQLite cluster records for a small Ceph deployment manager."""

__version__ = "0.1"