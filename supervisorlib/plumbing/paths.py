"""
Locations and ownership of supervisord files and tools.

Each constant may be overridden with an environment variable of the same name prefixed with
`SUPERVISORLIB_`, e.g. `SUPERVISORLIB_CONF_DIR=/etc/supervisord.d`.
"""

import os


def _env(name: str, default: str) -> str:
    return os.getenv("SUPERVISORLIB_{}".format(name), default)


SUPERVISORCTL = _env("SUPERVISORCTL", "/usr/bin/supervisorctl")
"""
Control tool used to query and command the daemon.
"""

CONF_DIR = _env("CONF_DIR", "/etc/supervisor/conf.d")
"""
Directory included by the daemon's main config, holding one `.conf` file per program.
"""

CONF_OWNER = _env("CONF_OWNER", "root")
"""
User owning rendered program config files.
"""

CONF_GROUP = _env("CONF_GROUP", "root")
"""
Group owning rendered program config files.
"""

CONF_MODE = int(_env("CONF_MODE", "644"), 8)
"""
Permission bits of rendered program config files.
"""
