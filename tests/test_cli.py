from __future__ import annotations

from contextlib import redirect_stderr, redirect_stdout
import io
from pathlib import Path
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from ipsetctl import main as main_module
from ipsetctl.cli import IPSetCLI
from ipsetctl.config import Settings, load_config
from ipsetctl.errors import BinaryNotFound, ExecutionFailed
from ipsetctl.ipset import IPSet, Membership, MembershipResult


class CLITests(unittest.TestCase):
    def setUp(self) -> None:
        self.ipset = MagicMock(spec=IPSet)
        self.ipset.path = "/usr/sbin/ipset"
        self.cli = IPSetCLI(self.ipset)

    def run_cmd(self, line: str) -> tuple[str, str]:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            self.cli.onecmd(line)
        return out.getvalue(), err.getvalue()

    def test_add_passes_options(self) -> None:
        self.run_cmd("add blocked 10.0.0.1 timeout 300")
        self.ipset.add.assert_called_once_with("blocked", "10.0.0.1", "timeout", "300")
        self.assertFalse(self.cli.failed)

    def test_del_maps_to_delete(self) -> None:
        self.run_cmd("del blocked 10.0.0.1")
        self.ipset.delete.assert_called_once_with("blocked", "10.0.0.1")

    def test_quoted_arguments(self) -> None:
        self.run_cmd("save blocked '/tmp/my sets'")
        self.ipset.save.assert_called_once_with("blocked", "/tmp/my sets")

    def test_wrong_arity(self) -> None:
        self.run_cmd("rename only-one")
        self.ipset.rename.assert_not_called()
        self.assertTrue(self.cli.failed)

    def test_failure_prints_stderr(self) -> None:
        self.ipset.destroy.side_effect = ExecutionFailed("ipset v7.x: Set cannot be destroyed: in use\n", 1)
        _, err = self.run_cmd("destroy blocked")
        self.assertEqual(err, "ipset v7.x: Set cannot be destroyed: in use\n")
        self.assertTrue(self.cli.failed)

    def test_list_prints_members(self) -> None:
        self.ipset.list.return_value = ["10.0.0.1", "10.0.0.2"]
        out, _ = self.run_cmd("list blocked")
        self.assertEqual(out, "10.0.0.1\n10.0.0.2\n")

    def test_test_reports_membership(self) -> None:
        self.ipset.check.return_value = MembershipResult(Membership.ABSENT)
        out, _ = self.run_cmd("test blocked 10.0.0.9")
        self.assertEqual(out, "absent\n")
        self.assertTrue(self.cli.failed)

        self.ipset.check.return_value = MembershipResult(Membership.PRESENT)
        out, _ = self.run_cmd("test blocked 10.0.0.1")
        self.assertEqual(out, "present\n")
        self.assertFalse(self.cli.failed)

    def test_unknown_command(self) -> None:
        self.run_cmd("bogus")
        self.assertTrue(self.cli.failed)

    def test_variadic_arity_message(self) -> None:
        _, err = self.run_cmd("add blocked")
        self.assertIn("至少2", err)
        self.ipset.add.assert_not_called()

    def test_config_show_bad_file_keeps_shell_alive(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text("- a\n", encoding="utf-8")
            self.cli.config = str(path)
            _, err = self.run_cmd("config_show")
        self.assertIn("must be a mapping", err)
        self.assertTrue(self.cli.failed)

    def test_config_reset_writes_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text("binary: /opt/ipset\n", encoding="utf-8")
            self.cli.config = str(path)
            self.run_cmd("config_reset")
            self.assertFalse(self.cli.failed)
            self.assertEqual(load_config(str(path)), Settings())

    def test_config_reset_unwritable_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            self.cli.config = str(Path(tmp) / "missing" / "config.yaml")
            _, err = self.run_cmd("config_reset")
        self.assertTrue(err)
        self.assertTrue(self.cli.failed)


class MainTests(unittest.TestCase):
    def test_one_shot_exit_codes(self) -> None:
        ipset = MagicMock(spec=IPSet)
        with patch.object(main_module.IPSet, "from_settings", return_value=ipset), \
                patch.object(main_module, "load_config", return_value=Settings()), \
                patch("logging.basicConfig"):
            self.assertEqual(main_module.main(["flush", "blocked"]), 0)
            ipset.flush.assert_called_once_with("blocked")

            ipset.flush.side_effect = ExecutionFailed("boom", 1)
            with redirect_stderr(io.StringIO()):
                self.assertEqual(main_module.main(["flush", "blocked"]), 1)

    def test_missing_binary(self) -> None:
        err = io.StringIO()
        with patch.object(main_module.IPSet, "from_settings", side_effect=BinaryNotFound("ipset")), \
                patch.object(main_module, "load_config", return_value=Settings()), \
                patch("logging.basicConfig"), redirect_stderr(err):
            self.assertEqual(main_module.main(["list", "blocked"]), 1)
        self.assertIn("ipset", err.getvalue())

    def test_bad_log_level_is_reported(self) -> None:
        for argv, settings in (
            (["--log-level", "verbose", "flush", "blocked"], Settings()),
            (["flush", "blocked"], Settings(log_level="VERBOSE")),
        ):
            with self.subTest(argv=argv):
                err = io.StringIO()
                with patch.object(main_module.IPSet, "from_settings") as from_settings, \
                        patch.object(main_module, "load_config", return_value=settings), redirect_stderr(err):
                    self.assertEqual(main_module.main(argv), 1)
                from_settings.assert_not_called()
                self.assertIn("Unknown log level", err.getvalue())


if __name__ == "__main__":
    unittest.main()
