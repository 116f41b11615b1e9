import io
import unittest
from datetime import timedelta
from unittest.mock import MagicMock, patch

from portexec import cli
from portexec.backend import MemoryBackend
from portexec.errors import AccessDenied, PortexecError
from portexec.killer import Killer
from portexec.scanner import Scanner


class CliTestCase(unittest.TestCase):
    def setUp(self):
        for target in ("portexec.cli.debug_log", "portexec.scanner.debug_log",
                       "portexec.killer.debug_log", "portexec.resolver.debug_log"):
            patcher = patch(target)
            patcher.start()
            self.addCleanup(patcher.stop)
        self.backend = MemoryBackend()
        self.backend.add_process(4321, "node.exe", exe="/usr/bin/node", ppid=1)
        self.backend.add_process(4, "System")
        self.backend.add_connection(4321, 8080)
        self.backend.add_connection(4321, 8080, protocol="UDP", status="NONE")
        self.backend.add_connection(4, 445)
        self.scanner = Scanner(self.backend)
        self.killer = Killer(self.backend)
        self.out = io.StringIO()


class TestList(CliTestCase):
    def test_lists_all_entries(self):
        args = cli.parse_args(["list"])
        self.assertEqual(cli.cmd_list(args, self.scanner, self.out), 0)
        text = self.out.getvalue()
        self.assertIn("node.exe", text)
        self.assertIn("[SYSTEM]", text)
        self.assertIn("Total: 3 entries", text)

    def test_port_and_path(self):
        args = cli.parse_args(["list", "8080", "-p", "-l"])
        cli.cmd_list(args, self.scanner, self.out)
        text = self.out.getvalue()
        self.assertIn("Path: /usr/bin/node", text)
        self.assertIn("Total: 1 entries", text)

    def test_free_text_filter(self):
        args = cli.parse_args(["list", "-f", "SYS"])
        cli.cmd_list(args, self.scanner, self.out)
        self.assertIn("Total: 1 entries", self.out.getvalue())

    def test_format_uptime(self):
        self.assertEqual(cli.format_uptime(timedelta(0)), "-")
        self.assertEqual(cli.format_uptime(timedelta(seconds=42)), "42s")
        self.assertEqual(cli.format_uptime(timedelta(minutes=3, seconds=2)), "3m 2s")
        self.assertEqual(cli.format_uptime(timedelta(hours=5, minutes=1)), "5h 1m")
        self.assertEqual(cli.format_uptime(timedelta(days=2, hours=3)), "2d 3h")


class TestKillCommand(CliTestCase):
    def test_kills_each_pid_once(self):
        args = cli.parse_args(["kill", "8080"])
        self.assertEqual(cli.cmd_kill(args, self.scanner, self.killer, self.out), 0)
        self.assertEqual(self.backend.calls, [("terminate", 4321)])
        self.assertIn("Found 1 unique process(es) on port 8080", self.out.getvalue())

    def test_protected_process_fails(self):
        args = cli.parse_args(["kill", "445"])
        self.assertEqual(cli.cmd_kill(args, self.scanner, self.killer, self.out), 1)
        self.assertIn("Refusing to kill critical system process: System", self.out.getvalue())
        self.assertEqual(self.backend.calls, [])

    def test_no_process_and_bad_port(self):
        self.assertEqual(cli.cmd_kill(cli.parse_args(["kill", "9"]), self.scanner, self.killer, self.out), 1)
        self.assertEqual(cli.cmd_kill(cli.parse_args(["kill", "x"]), self.scanner, self.killer, self.out), 1)
        self.assertIn("invalid port x", self.out.getvalue())

    def test_permission_denied_reported(self):
        self.backend.processes[4321].terminate_error = AccessDenied(4321)
        self.backend.processes[4321].kill_error = AccessDenied(4321)
        args = cli.parse_args(["kill", "8080"])
        self.assertEqual(cli.cmd_kill(args, self.scanner, self.killer, self.out), 1)
        self.assertIn("Run as Administrator", self.out.getvalue())

    def test_force_requires_typed_confirmation(self):
        args = cli.parse_args(["kill", "445", "--force"])
        ask = MagicMock(return_value="no")
        self.assertEqual(cli.cmd_kill(args, self.scanner, self.killer, self.out, ask=ask), 1)
        self.assertEqual(self.backend.calls, [])
        ask.return_value = "4"
        self.assertEqual(cli.cmd_kill(args, self.scanner, self.killer, self.out, ask=ask), 0)
        self.assertEqual(self.backend.calls, [("kill", 4)])
        self.assertIn("WARNING", self.out.getvalue())

    def test_force_yes_skips_prompt(self):
        args = cli.parse_args(["kill", "445", "--force", "--yes"])
        ask = MagicMock(side_effect=AssertionError("prompted"))
        self.assertEqual(cli.cmd_kill(args, self.scanner, self.killer, self.out, ask=ask), 0)

    def test_force_eof_declines(self):
        args = cli.parse_args(["kill", "445", "--force"])
        ask = MagicMock(side_effect=EOFError)
        self.assertEqual(cli.cmd_kill(args, self.scanner, self.killer, self.out, ask=ask), 1)


class TestMain(CliTestCase):
    def test_check(self):
        self.assertEqual(cli.cmd_check(self.killer, self.out), 1)
        self.backend.elevated = True
        self.assertEqual(cli.cmd_check(self.killer, self.out), 0)

    def test_default_command_is_list(self):
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            self.assertEqual(cli.main([], backend=self.backend), 0)
        self.assertIn("Total: 3 entries", out.getvalue())

    def test_scan_failure_exit_code(self):
        self.backend.connections_error = PortexecError("netlink unavailable")
        with patch("sys.stderr", new_callable=io.StringIO) as err:
            self.assertEqual(cli.main(["list"], backend=self.backend), 1)
        self.assertIn("netlink unavailable", err.getvalue())


if __name__ == "__main__":
    unittest.main()
