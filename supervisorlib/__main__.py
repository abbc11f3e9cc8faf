import code
import logging

from supervisorlib import plumbing as p
from supervisorlib.plumbing import config, supervisor
from supervisorlib.plumbing.common import *
from supervisorlib.plumbing.supervisor import Program, RetryPolicy, ServiceState
from supervisorlib.tasks import service


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    code.interact(local=globals())
