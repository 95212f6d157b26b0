# microceph

A library of building blocks for managing a small Ceph cluster. It
covers path constants, bootstrap settings, network and storage checks,
and SQLite-backed records for configuration, services, disks (OSDs)
and client configuration. It also checks the arguments of disk add
and remove requests.

## Installation

```
pip install .
```

To run the tests, install the test extra and run pytest:

```
pip install ".[test]"
pytest
```

## Constants and paths

`microceph.constants` holds fixed values:

- `VERSION`
- `MIN_OSD_SIZE`, which is 2 GiB
- `BOOTSTRAP_PORT`, which is 7443
- `CLIENT_CONFIG_GLOBAL_HOST`, which is `"*"`
- `LOOP_SPEC_ID`, `DEVICE_PATH_PREFIX` and `CLI_FORCE_PROMPT`

`get_path_const()` returns a `PathConst` whose paths are read from the
environment each time it is called:

- `conf_path` and `run_path` are built from `SNAP_DATA`.
- `data_path` and `log_path` are built from `SNAP_COMMON`.
- `root_fs` and `proc_path` are built from `TEST_ROOT_PATH`.

`get_path_file_mode()` maps the configuration, run, data and log
directories to their permission bits: `0o750` for the configuration
directory and `0o700` for the other three.

## Key sets

`microceph.sets.KeySet` is a `dict` used as a set of string keys.
`keys()` returns the keys as a list. `is_in(superset)` tells whether
every key is also in `superset`.

## Network checks

`microceph.network.Network` looks at the host's interface addresses
through psutil. It considers only global unicast addresses.

- `find_ip_on_subnet(subnet)` returns the first host address inside a CIDR subnet. It raises `ValueError` for a bad CIDR and `LookupError` when no address matches.
- `find_network_address(address)` returns the matching interface in `ip/prefix` form. It raises `ValueError` for an invalid address and `LookupError` when the address is not on the host.
- `is_ip_on_subnet(address, subnet)` returns `False` for invalid input instead of raising.

A callable that yields `ipaddress` interface objects may be passed to
`Network(...)` in place of the host lookup. The module-level
`network` instance uses the host's interfaces.

## Bootstrap settings

```python
from microceph.bootstrap import BootstrapConfig, pre_check_bootstrap_config

config = BootstrapConfig(mon_ip="10.0.0.5", public_net="10.0.0.0/24")
pre_check_bootstrap_config(config)   # raises ValueError if mon_ip is outside public_net
encoded = config.encode()            # {"MonIp": ..., "PublicNet": ..., "ClusterNet": ...}
assert BootstrapConfig.decode(encoded) == config
```

The check only runs when both `mon_ip` and `public_net` are set.

## File helpers

`microceph.fileutils.filter_files_in_dir(substring, path)` returns,
sorted, the files whose paths start with `path` and whose names
contain `substring`. It returns an empty list on error.

`get_file_age(path)` returns the number of seconds since the file was
created. It returns `0.0` if the file is missing or the platform
reports no birth time.

## Storage checks

`microceph.storage.is_mounted(device)` resolves the device under the
root path and looks for it in `<proc path>/mounts`.

`is_ceph_device(device)` reports whether the device is the target of
the `block`, `block.wal` or `block.db` link of any `ceph-*` OSD
directory under `<data path>/osd`. It returns `False` when that
directory does not exist.

## Cluster database

`microceph.db.Database(path)` opens a SQLite file, or `":memory:"`.
It creates the cluster members table and applies the three schema
updates, recording the count in `schema_version()`.

- `add_member(name)` registers a cluster member and returns its id.
- `transaction()` is a context manager that yields the connection. It commits on success and rolls back on error.
- `close()` closes the database. A `Database` can also be used as a context manager.

The record modules work on the connection that `transaction()` yields:

- `microceph.config_items`: cluster-wide `ConfigItem` key/value records.
- `microceph.services`: `Service` records per member.
- `microceph.disks`: `Disk` records per member. The id of a disk record is its OSD number.
- `microceph.client_config_items`: `ClientConfigItem` records per host.

Each module has functions to get many (optionally filtered), get one,
get an id, check existence, create, delete and update. Several
filters passed to a get-many function are combined with OR.

```python
from microceph.db import Database
from microceph.services import Service, create_service, get_services

db = Database(":memory:")
db.add_member("node1")
with db.transaction() as conn:
    create_service(conn, Service(member="node1", service="mon"))
    print(get_services(conn))
db.close()
```

Errors are raised as follows:

- A lookup that finds nothing raises `NotFoundError`.
- Creating a record that already exists raises `ConflictError`.
- An empty filter raises `ValueError`.

`NotFoundError` and `ConflictError` are subclasses of `StatusError`,
which carries a `status` code (404 and 409).

`microceph.disks` also provides:

- `members_disk_count(conn, exclude)` and `MemberCounter`, which count the members holding disks, optionally leaving one OSD out.
- `OSDQuery`, with `have_osd`, `path`, `delete(db, member, osd)`, `list` (returning `OSDRecord`s) and `update_path`.

`microceph.client_config_query.ClientConfigQuery` handles client
configuration at two levels: global settings (host `*`) and per-host
settings.

- `add_new` inserts or replaces a setting.
- `get_all_for_host` overlays host values on global ones.
- `get_all_for_key` returns the global value and every host value for a key.
- `remove_all_for_key` and `remove_one_for_key_and_host` delete settings.

`to_client_configs` turns stored items into `ClientConfig` entries.

## Disk request arguments

`microceph.diskargs` checks disk requests:

- `validate_batch_args(args, wal_device, db_device)` rejects loop specs and WAL/DB devices when more than one disk is given.
- `parse_osd_id(value)` accepts `3` or `osd.3`.
- `validate_remove_flags` rejects setting both the downgrade-confirm flag and the crush-scaledown prohibition.
- `report_add_disk_failures(response, out)` writes a table of `DiskReport`s from a `DiskAddResponse`, sorted naturally. It raises when validation failed or any disk failed.

## What this package does not do

There is no command-line tool and no daemon. The package serves no
HTTP API, and it does not bootstrap, join or manage a cluster. It
does not start, stop or configure Ceph services. It does not replicate
the database between members: `Database` is a local SQLite file.