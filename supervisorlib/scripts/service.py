"""
Scripts to manage supervisord programs.
"""

from .utils import entrypoint
from ..plumbing.supervisor import Program, RetryPolicy
from ..tasks import service


@entrypoint
def status(program: Program):
    """
    Print the current state of a program.

    Usage: {script} [options] [--env=PAIR]... PROGRAM

    {options}
    """
    print("{}: {}".format(program.target, service.get_state(program)))


@entrypoint
def enable(program: Program):
    """
    Write a program's config file, and have supervisord load it.

    Usage: {script} [options] [--env=PAIR]... PROGRAM

    {options}
    """
    result = service.enable(program)
    print("Enabled" if result else "Already enabled")


@entrypoint
def disable(program: Program):
    """
    Remove a program's config file, and have supervisord drop it.

    Usage: {script} [options] [--env=PAIR]... PROGRAM

    {options}
    """
    result = service.disable(program)
    print("Disabled" if result else "Already disabled")


@entrypoint
def start(program: Program, policy: RetryPolicy):
    """
    Start a program's processes.

    Usage: {script} [options] [--env=PAIR]... PROGRAM

    Options:
      --attempts=N        Number of status checks while waiting to start [default: 20].
      --interval=SECS     Delay between status checks [default: 1].

    {options}
    """
    result = service.start(program, policy)
    print("Started" if result else "Already started")


@entrypoint
def stop(program: Program, policy: RetryPolicy):
    """
    Stop a program's processes.

    Usage: {script} [options] [--env=PAIR]... PROGRAM

    Options:
      --attempts=N        Number of status checks while waiting to stop [default: 20].
      --interval=SECS     Delay between status checks [default: 1].

    {options}
    """
    result = service.stop(program, policy)
    print("Stopped" if result else "Already stopped")


@entrypoint
def restart(program: Program):
    """
    Restart a program's processes.

    Usage: {script} [options] [--env=PAIR]... PROGRAM

    {options}
    """
    service.restart(program)
    print("Restarted")
