from contextlib import redirect_stderr, redirect_stdout
from io import StringIO
import unittest
from unittest.mock import Mock, patch

from supervisorlib.plumbing.common import Result, State
from supervisorlib.plumbing.supervisor import (ConvergenceTimeoutError, Program, RetryPolicy,
                                               ServiceState)
from supervisorlib.scripts import service as scripts
from supervisorlib.scripts.utils import ENTRYPOINTS, make_program
from supervisorlib.tasks import service


def opts(**extra):
    base = {"PROGRAM": "myapp", "--group": None, "--numprocs": "1", "--conf-name": None,
            "--command": None, "--directory": None, "--user": None, "--env": []}
    base.update(extra)
    return base


class TestEntrypoints(unittest.TestCase):

    def test_registered(self):
        for action in ("status", "enable", "disable", "start", "stop", "restart"):
            with self.subTest(action=action):
                self.assertIn("supervisorlib-service-{0}=supervisorlib.scripts.service:{0}"
                              .format(action), ENTRYPOINTS)

    def test_doc(self):
        self.assertIn("Usage: supervisorlib-service-start [options]", scripts.start.__doc__)
        self.assertIn("--numprocs=N", scripts.start.__doc__)


class TestMakeProgram(unittest.TestCase):

    def test_defaults(self):
        self.assertEqual(make_program(opts()), Program("myapp"))

    def test_options(self):
        program = make_program(opts(**{"--group": "grp", "--numprocs": "3",
                                       "--command": "/bin/true", "--env": ["A=1", "B=x=y"]}))
        self.assertEqual(program.group_name, "grp")
        self.assertEqual(program.numprocs, 3)
        self.assertEqual(program.command, "/bin/true")
        self.assertEqual(program.environment, {"A": "1", "B": "x=y"})

    def test_bad_numprocs(self):
        with redirect_stderr(StringIO()), self.assertRaises(SystemExit):
            make_program(opts(**{"--numprocs": "many"}))

    def test_zero_numprocs(self):
        err = StringIO()
        with redirect_stderr(err), self.assertRaises(SystemExit):
            make_program(opts(**{"--numprocs": "0"}))
        self.assertIn("needs at least one process", err.getvalue())

    def test_missing_numprocs(self):
        self.assertEqual(make_program(opts(**{"--numprocs": None})).numprocs, 1)

    def test_bad_env(self):
        with redirect_stderr(StringIO()), self.assertRaises(SystemExit):
            make_program(opts(**{"--env": ["A"]}))


class TestScripts(unittest.TestCase):

    @patch.object(service, "get_state", return_value=ServiceState.RUNNING)
    def test_status(self, get_state: Mock):
        out = StringIO()
        with redirect_stdout(out):
            scripts.status(opts(**{"--group": "grp"}))
        self.assertEqual(out.getvalue(), "grp:myapp: RUNNING\n")
        get_state.assert_called_once_with(Program("myapp", "grp"))

    @patch.object(service, "start", return_value=Result(State.success))
    def test_start(self, start: Mock):
        out = StringIO()
        with redirect_stdout(out):
            scripts.start(opts(**{"--attempts": "5", "--interval": "0.1"}))
        self.assertEqual(out.getvalue(), "Started\n")
        program, policy = start.call_args[0]
        self.assertEqual(program, Program("myapp"))
        self.assertEqual((policy.attempts, policy.interval), (5, 0.1))

    @patch.object(service, "enable", return_value=Result(State.unchanged))
    def test_enable_unchanged(self, enable: Mock):
        out = StringIO()
        with redirect_stdout(out):
            scripts.enable(opts())
        self.assertEqual(out.getvalue(), "Already enabled\n")

    @patch.object(service, "stop",
                  side_effect=ConvergenceTimeoutError("myapp", ServiceState.STOPPED, 20))
    def test_failure(self, stop: Mock):
        err = StringIO()
        with redirect_stderr(err), self.assertRaises(SystemExit) as ctx:
            scripts.stop(opts(**{"--attempts": None, "--interval": None}))
        self.assertEqual(ctx.exception.code, 1)
        self.assertIn("myapp not in state STOPPED", err.getvalue())
        policy = stop.call_args[0][1]
        self.assertEqual(policy, RetryPolicy())

    @patch.object(service, "enable", return_value=Result(State.created))
    def test_docopt(self, enable: Mock):
        argv = ["supervisorlib-service-enable", "--group=grp", "--command=/bin/true",
                "--env=A=1", "--env=B=2", "myapp"]
        with patch("sys.argv", argv), redirect_stdout(StringIO()):
            scripts.enable()
        program = enable.call_args[0][0]
        self.assertEqual(program.group_name, "grp")
        self.assertEqual(program.command, "/bin/true")
        self.assertEqual(program.environment, {"A": "1", "B": "2"})


if __name__ == "__main__":
    unittest.main()
