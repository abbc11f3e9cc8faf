"""
Program config files, rendered from Jinja2 templates into the daemon's include directory.

Templates placed inside the `templates` directory of this package receive the `Program` as `prog`.
The following Jinja2 filters are available to templates:

- `supervisor_bool` for writing `true`/`false` values
- `environment` for formatting a mapping as a `KEY="value",...` list
"""

import grp
import logging
import os
import os.path
import pwd
from typing import Any, Mapping, Optional

from jinja2 import Environment, FileSystemLoader

from .common import Result, State
from .supervisor import Program
from . import paths


LOG = logging.getLogger(__name__)


def _supervisor_bool(value: Any) -> str:
    return "true" if value else "false"


def _environment(env: Mapping[str, str]) -> str:
    pairs = []
    for key, value in sorted(env.items()):
        value = str(value).replace("\\", "\\\\").replace('"', '\\"')
        pairs.append('{}="{}"'.format(key, value))
    return ",".join(pairs)


ENV = Environment(loader=FileSystemLoader(os.path.join(os.path.dirname(os.path.dirname(__file__)),
                                                       "templates")),
                  trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=True)

ENV.filters.update({"supervisor_bool": _supervisor_bool,
                    "environment": _environment})


def get_conf_path(program: Program, conf_dir: Optional[str] = None) -> str:
    """
    Location of the config file for a program.
    """
    return os.path.join(conf_dir or paths.CONF_DIR, "{}.conf".format(program.service_name))


def render(program: Program, template: str = "program.conf.j2") -> str:
    """
    Produce the config file content for a program.
    """
    return ENV.get_template(template).render(prog=program)


def _read(path: str) -> Optional[str]:
    try:
        with open(path) as conf:
            return conf.read()
    except FileNotFoundError:
        return None


def write_conf(program: Program, conf_dir: Optional[str] = None,
               template: str = "program.conf.j2", owner: Optional[str] = None,
               group: Optional[str] = None, mode: Optional[int] = None) -> Result[str]:
    """
    Render a program's config file, and write it if its content, ownership or permissions differ
    from what's on disk.  The result's value is the path to the file.
    """
    path = get_conf_path(program, conf_dir)
    uid = pwd.getpwnam(owner or paths.CONF_OWNER).pw_uid
    gid = grp.getgrnam(group or paths.CONF_GROUP).gr_gid
    mode = paths.CONF_MODE if mode is None else mode
    content = render(program, template)
    current = _read(path)
    state = State.unchanged
    if current is None:
        state = State.created
    elif current != content:
        state = State.success
    if state:
        LOG.debug("Writing config file %r", path)
        with open(path, "w") as conf:
            conf.write(content)
    stat = os.stat(path)
    if stat.st_uid != uid or stat.st_gid != gid:
        os.chown(path, uid, gid)
        state = state or State.success
    if stat.st_mode & 0o7777 != mode:
        os.chmod(path, mode)
        state = state or State.success
    return Result(state, path)


def delete_conf(program: Program, conf_dir: Optional[str] = None) -> Result[str]:
    """
    Remove a program's config file, if it exists.
    """
    path = get_conf_path(program, conf_dir)
    try:
        os.unlink(path)
    except FileNotFoundError:
        return Result(State.unchanged, path)
    LOG.debug("Deleted config file %r", path)
    return Result(State.success, path)
