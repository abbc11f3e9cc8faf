"""
Bringing supervisord programs into a desired state.

Every task probes the live state of the program first, and is a no-op if the program is already
where it should be.  The truthiness of each returned `Result` says whether anything was changed.
"""

import logging
from typing import Optional

from ..plumbing import config, supervisor
from ..plumbing.common import Collect, Result
from ..plumbing.supervisor import (DEFAULT_POLICY, PreconditionError, Program, RetryPolicy,
                                   ServiceState)


LOG = logging.getLogger(__name__)


def get_state(program: Program) -> ServiceState:
    """
    Probe the live state of a program.
    """
    return supervisor.get_state(program.name, program.group_name)


def _require_exists(program: Program, state: ServiceState, verb: str) -> None:
    if state == ServiceState.UNAVAILABLE:
        raise PreconditionError("Supervisor service {} cannot be {} because it does not exist"
                                .format(program.name, verb))


@Result.collect
def enable(program: Program, conf_dir: Optional[str] = None) -> Collect[None]:
    """
    Write a program's config file and have the daemon load it.

    The daemon is only asked to reload if the file actually changed.
    """
    if get_state(program) != ServiceState.UNAVAILABLE:
        LOG.debug("%s is already enabled.", program.name)
        return
    res_conf = yield from config.write_conf(program, conf_dir)
    if res_conf:
        yield supervisor.update()
        LOG.info("%s enabled.", program.name)


@Result.collect
def disable(program: Program, conf_dir: Optional[str] = None) -> Collect[None]:
    """
    Remove a program's config file and have the daemon drop it.
    """
    if get_state(program) == ServiceState.UNAVAILABLE:
        LOG.debug("%s is already disabled.", program.name)
        return
    yield config.delete_conf(program, conf_dir)
    # Always reload, even if the file was already gone, as the daemon still knows the program.
    yield supervisor.update()
    LOG.info("%s disabled.", program.name)


@Result.collect
def start(program: Program, policy: RetryPolicy = DEFAULT_POLICY) -> Collect[None]:
    """
    Start a program, or wait for it to finish starting if it's already on its way.
    """
    state = get_state(program)
    _require_exists(program, state, "started")
    if state == ServiceState.RUNNING:
        LOG.debug("%s is already started.", program.name)
    elif state == ServiceState.STARTING:
        LOG.debug("%s is already starting.", program.name)
        yield supervisor.wait_for_state(program.name, ServiceState.RUNNING,
                                        program.group_name, policy)
    else:
        yield supervisor.start(program)
        LOG.info("%s started.", program.name)


@Result.collect
def stop(program: Program, policy: RetryPolicy = DEFAULT_POLICY) -> Collect[None]:
    """
    Stop a program, or wait for it to finish stopping if it's already on its way.
    """
    state = get_state(program)
    _require_exists(program, state, "stopped")
    if state == ServiceState.STOPPED:
        LOG.debug("%s is already stopped.", program.name)
    elif state == ServiceState.STOPPING:
        LOG.debug("%s is already stopping.", program.name)
        yield supervisor.wait_for_state(program.name, ServiceState.STOPPED,
                                        program.group_name, policy)
    else:
        yield supervisor.stop(program)
        LOG.info("%s stopped.", program.name)


@Result.collect
def restart(program: Program) -> Collect[None]:
    """
    Restart a program, whatever state it's currently in.
    """
    state = get_state(program)
    _require_exists(program, state, "restarted")
    yield supervisor.restart(program)
    LOG.info("Supervisor service %s was restarted.", program.name)
