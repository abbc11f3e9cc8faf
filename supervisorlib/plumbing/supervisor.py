"""
Querying and commanding the supervisord daemon through `supervisorctl`.

Programs are identified by `Program` descriptors, which also carry the settings rendered into
their config files (see `supervisorlib.plumbing.config`).
"""

from dataclasses import dataclass, field
from enum import Enum
import logging
import re
import time
from typing import Callable, Dict, List, Optional, Pattern, Sequence

from .common import command, Result, State
from . import paths


LOG = logging.getLogger(__name__)


class ServiceState(Enum):
    """
    Process state as reported by `supervisorctl status`, plus two synthetic states.
    """

    UNAVAILABLE = "UNAVAILABLE"
    """
    The daemon doesn't know about the program, i.e. its config hasn't been loaded.
    """
    STOPPED = "STOPPED"
    STOPPING = "STOPPING"
    STARTING = "STARTING"
    BACKOFF = "BACKOFF"
    EXITED = "EXITED"
    FATAL = "FATAL"
    RUNNING = "RUNNING"
    MIXED = "MIXED"
    """
    Members of a process group were found in more than one state.
    """

    def __str__(self):
        return self.value


VALID_STATES = frozenset(state for state in ServiceState
                         if state not in (ServiceState.UNAVAILABLE, ServiceState.MIXED))
"""
States that may appear as a token in status output.
"""


class SupervisorError(RuntimeError):
    """
    Base class for failures to query or command the daemon.
    """


class PreconditionError(SupervisorError):
    """
    The requested action makes no sense for the program's current state.
    """


class ActionFailedError(SupervisorError):
    """
    A control command ran, but its output didn't confirm the action.
    """

    def __init__(self, msg: str, output: str):
        super().__init__("{}: {}".format(msg, output))
        self.output = output


class InconsistentOutputError(SupervisorError):
    """
    Status output mentioned the program, but without any recognisable state.
    """

    def __init__(self, msg: str, output: str):
        super().__init__("{}\n----\n{}\n----".format(msg, output))
        self.output = output


class ConvergenceTimeoutError(SupervisorError):
    """
    A program didn't reach the expected state within the allowed number of polls.
    """

    def __init__(self, name: str, state: ServiceState, attempts: int):
        super().__init__("Service {} not in state {} after {} tries".format(name, state, attempts))
        self.name = name
        self.state = state
        self.attempts = attempts


@dataclass(frozen=True)
class RetryPolicy:
    """
    How many times, and how often, to poll for a state change.
    """

    attempts: int = 20
    interval: float = 1.0
    sleep: Callable[[float], None] = time.sleep


DEFAULT_POLICY = RetryPolicy()


@dataclass(frozen=True)
class Program:
    """
    A program managed by supervisord.

    Only `name`, `group_name` and `numprocs` affect how the program is addressed; the remaining
    settings are written to its config file, and are left out when unset.
    """

    name: str
    group_name: Optional[str] = None
    numprocs: int = 1
    service_name: Optional[str] = None
    command: Optional[str] = None
    process_name: Optional[str] = None
    numprocs_start: Optional[int] = None
    priority: Optional[int] = None
    autostart: Optional[bool] = None
    autorestart: Optional[str] = None
    startsecs: Optional[int] = None
    startretries: Optional[int] = None
    exitcodes: Sequence[int] = ()
    stopsignal: Optional[str] = None
    stopwaitsecs: Optional[int] = None
    stopasgroup: Optional[bool] = None
    killasgroup: Optional[bool] = None
    user: Optional[str] = None
    redirect_stderr: Optional[bool] = None
    stdout_logfile: Optional[str] = None
    stderr_logfile: Optional[str] = None
    environment: Dict[str, str] = field(default_factory=dict)
    directory: Optional[str] = None
    umask: Optional[str] = None
    serverurl: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Program name must not be empty")
        if self.numprocs < 1:
            raise ValueError("Program {!r} needs at least one process".format(self.name))
        if not self.service_name:
            object.__setattr__(self, "service_name", self.name)
        if self.numprocs > 1 and not self.process_name:
            # supervisord refuses to load a multi-process program without a unique name pattern.
            object.__setattr__(self, "process_name", "%(program_name)s-%(process_num)s")

    @property
    def target(self) -> str:
        """
        Name to pass to `supervisorctl` actions: a whole group for multi-process programs, or the
        single process otherwise.
        """
        if self.numprocs > 1:
            return "{}:*".format(self.name)
        elif self.group_name:
            return "{}:{}".format(self.group_name, self.name)
        else:
            return self.name


def _ctl(*args: str, check: bool = False) -> str:
    proc = command([paths.SUPERVISORCTL, *args], output=True, check=check)
    return proc.stdout.decode("utf-8", errors="replace").rstrip()


def _identity(name: str, group_name: Optional[str] = None) -> str:
    ident = re.escape(name)
    if group_name:
        ident = "{}:{}".format(re.escape(group_name), ident)
    return ident


def _line_pattern(name: str, group_name: Optional[str] = None) -> Pattern[str]:
    return re.compile(r"^{}[:\s]".format(_identity(name, group_name)), re.MULTILINE)


def _state_pattern(name: str, group_name: Optional[str] = None) -> Pattern[str]:
    return re.compile(r"^{}(:\S+)?\s+([A-Z]+)".format(_identity(name, group_name)))


def get_status_output() -> str:
    """
    Fetch the raw status table for all programs known to the daemon.
    """
    # Exits non-zero if any process isn't running, which isn't a failure for our purposes.
    return _ctl("status")


def get_status_lines(output: str, name: str, group_name: Optional[str] = None) -> List[str]:
    """
    Pick out the status lines belonging to a program, or to each process of a program.
    """
    pattern = _line_pattern(name, group_name)
    return [line for line in output.splitlines() if pattern.match(line)]


def parse_status(output: str, name: str, group_name: Optional[str] = None) -> ServiceState:
    """
    Reduce `supervisorctl status` output to a single state for the given program:

        >>> parse_status("myapp RUNNING pid 123, uptime 0:00:05\\n", "myapp")
        <ServiceState.RUNNING: 'RUNNING'>

    Programs with no lines are `UNAVAILABLE`, and groups whose processes disagree are `MIXED`.
    """
    lines = get_status_lines(output, name, group_name)
    if not lines:
        return ServiceState.UNAVAILABLE
    pattern = _state_pattern(name, group_name)
    states = set()
    for line in lines:
        match = pattern.match(line)
        if not match:
            continue
        try:
            state = ServiceState(match.group(2))
        except ValueError:
            continue
        if state in VALID_STATES:
            states.add(state)
    if not states:
        raise InconsistentOutputError("The supervisor service is not running as expected.  "
                                      "The command 'supervisorctl status' output:",
                                      "\n".join(lines))
    elif len(states) == 1:
        return states.pop()
    else:
        return ServiceState.MIXED


def get_state(name: str, group_name: Optional[str] = None) -> ServiceState:
    """
    Probe the live state of a program, or its process group.
    """
    state = parse_status(get_status_output(), name, group_name)
    LOG.debug("Service %s is %s", name, state)
    return state


def wait_for_state(name: str, state: ServiceState, group_name: Optional[str] = None,
                   policy: RetryPolicy = DEFAULT_POLICY) -> Result[None]:
    """
    Poll a program until it reaches the given state, or raise `ConvergenceTimeoutError` once the
    policy's attempts are used up.
    """
    for attempt in range(policy.attempts):
        if attempt:
            policy.sleep(policy.interval)
        if get_state(name, group_name) == state:
            return Result(State.unchanged)
        LOG.debug("Waiting for service %s to be in state %s", name, state)
    raise ConvergenceTimeoutError(name, state, policy.attempts)


def _confirms(output: str, program: Program, outcome: str, anchored: bool = False) -> bool:
    ident = re.escape(program.name)
    if anchored and program.group_name:
        ident = "(?:{}:)?{}".format(re.escape(program.group_name), ident)
    if anchored and program.numprocs > 1:
        # Group members are reported as `name:name-N`.
        ident = "(?:{}:)?{}".format(re.escape(program.name), ident)
    pattern = r"{}{}(-\d+)?: {}$".format("^" if anchored else "", ident, outcome)
    return bool(re.search(pattern, output, re.MULTILINE))


def start(program: Program) -> Result[str]:
    """
    Ask the daemon to start a program's processes.
    """
    output = _ctl("start", program.target)
    if not _confirms(output, program, "started"):
        raise ActionFailedError("Supervisor service {} was unable to be started"
                                .format(program.name), output)
    return Result(State.success, output)


def stop(program: Program) -> Result[str]:
    """
    Ask the daemon to stop a program's processes.
    """
    output = _ctl("stop", program.target)
    if not _confirms(output, program, "stopped"):
        raise ActionFailedError("Supervisor service {} was unable to be stopped"
                                .format(program.name), output)
    return Result(State.success, output)


def restart(program: Program) -> Result[str]:
    """
    Ask the daemon to stop and start a program's processes.
    """
    output = _ctl("restart", program.target)
    if not _confirms(output, program, "started", anchored=True):
        raise ActionFailedError("Supervisor service {} was unable to be started"
                                .format(program.name), output)
    return Result(State.success, output)


def update() -> Result[str]:
    """
    Reread program config files, and apply any added, changed or removed programs.
    """
    return Result(State.success, _ctl("update", check=True))
