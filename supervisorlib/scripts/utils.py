"""
Helpers for converting methods into scripts, and filling in arguments with program descriptors.
"""

from functools import wraps
from inspect import cleandoc, signature
import logging
import sys
from typing import Any, Callable, Dict, List, Optional, Union

from docopt import docopt

from ..plumbing.supervisor import Program, RetryPolicy, SupervisorError


DocOptArgs = Dict[str, Union[bool, str, List[str], None]]


ENTRYPOINTS: List[str] = []


PROGRAM_OPTIONS = """
Program options:
  --group=GROUP       Name of the process group containing the program.
  --numprocs=N        Number of processes to run [default: 1].
  --conf-name=NAME    Config file name, if different from the program name.
  --command=CMD       Command to run.
  --directory=DIR     Working directory of the processes.
  --user=USER         User to run the processes as.
  --env=PAIR          Environment variable to set as KEY=VALUE, may be repeated.
"""
"""
Option descriptions appended to the docstring of scripts taking a `Program` argument.
"""


def _int(opts: DocOptArgs, key: str) -> Optional[int]:
    value = opts.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        error("{} must be a number, not {!r}".format(key, value), exit=1)


def make_program(opts: DocOptArgs) -> Program:
    """
    Build a `Program` from a program name and the options in `PROGRAM_OPTIONS`.
    """
    env = {}
    pairs = opts.get("--env") or []
    if isinstance(pairs, str):
        pairs = [pairs]
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            error("--env needs KEY=VALUE, not {!r}".format(pair), exit=1)
        env[key] = value
    numprocs = _int(opts, "--numprocs")
    try:
        return Program(name=opts["PROGRAM"],
                       group_name=opts.get("--group"),
                       numprocs=1 if numprocs is None else numprocs,
                       service_name=opts.get("--conf-name"),
                       command=opts.get("--command"),
                       directory=opts.get("--directory"),
                       user=opts.get("--user"),
                       environment=env)
    except ValueError as ex:
        error(str(ex), exit=1)


def make_policy(opts: DocOptArgs) -> RetryPolicy:
    """
    Build a `RetryPolicy` from the optional `--attempts` and `--interval` options.
    """
    kwargs: Dict[str, Any] = {}
    attempts = _int(opts, "--attempts")
    if attempts is not None:
        kwargs["attempts"] = attempts
    interval = opts.get("--interval")
    if interval is not None:
        try:
            kwargs["interval"] = float(interval)
        except ValueError:
            error("--interval must be a number, not {!r}".format(interval), exit=1)
    return RetryPolicy(**kwargs)


def entrypoint(fn: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator to make an entrypoint out of a generic function.

    This uses `docopt` to parse arguments according to the method docstring, and will be formatted
    with `{script}` set to the script name and `{options}` set to `PROGRAM_OPTIONS`.  At minimum,
    it should contain `Usage: {script}`.

    Functions may optionally accept arguments, but they must be annotated with a recognised type in
    order to be filled in:

    - `DocOptArgs` (a `dict` of input parameters parsed from the usage line)
    - `Program` (built from a `PROGRAM` argument and the program options)
    - `RetryPolicy` (built from `--attempts` and `--interval`, if declared)

    An example function:

        @entrypoint
        def start(program: Program):
            \"""
            Start the program.

            Usage: {script} [options] PROGRAM
            {options}
            \"""

    Known `SupervisorError` failures are printed to stderr and exit with status 1.
    """
    label = "supervisorlib-{}-{}".format(fn.__module__.rsplit(".", 1)[-1],
                                         fn.__qualname__).replace("_", "-")
    script = "{} [--debug]".format(label)

    @wraps(fn)
    def wrap(opts: Optional[DocOptArgs] = None):
        extra: Dict[str, Any] = {}
        if opts is None:
            doc = cleandoc(fn.__doc__).format(script=script, options=PROGRAM_OPTIONS.strip())
            opts = docopt(doc)
        if opts.pop("--debug", False):
            logging.basicConfig(level=logging.DEBUG)
        # Detect resolvable-typed arguments and fill in their values.
        for param in signature(fn).parameters.values():
            cls = param.annotation
            if cls is DocOptArgs:
                extra[param.name] = opts
            elif cls is Program:
                extra[param.name] = make_program(opts)
            elif cls is RetryPolicy:
                extra[param.name] = make_policy(opts)
            else:
                raise RuntimeError("Bad parameter {!r} type {!r}".format(param.name, cls))
        try:
            return fn(**extra)
        except SupervisorError as ex:
            error(str(ex), exit=1)
    wrap.__doc__ = cleandoc(wrap.__doc__).format(script=label, options=PROGRAM_OPTIONS.strip())
    # Create a console script line for setup.
    target = "{}:{}".format(fn.__module__, fn.__qualname__)
    ENTRYPOINTS.append("{}={}".format(label, target))
    return wrap


def error(msg: Optional[str] = None, *, exit: Optional[int] = None, colour: Optional[str] = None):
    """
    Print an error message and/or exit.
    """
    if msg:
        colour = colour or ("1" if exit else "3")
        print("\033[9{}m{}\033[0m".format(colour, msg), file=sys.stderr)
    if exit is not None:
        sys.exit(exit)
