"""Tests for the port-terminator command line front-end."""

from __future__ import annotations

import orjson
import pytest

from port_terminator import __version__, cli
from port_terminator.errors import CommandExecutionError, PermissionDeniedError
from port_terminator.terminator import PortTerminator


@pytest.fixture
def patched_terminator(monkeypatch, fake_adapter):
    """Route every CLI-built PortTerminator to the in-memory adapter."""
    built = []

    def factory(options):
        terminator = PortTerminator(options, adapter=fake_adapter)
        built.append(terminator)
        return terminator

    monkeypatch.setattr(cli, "PortTerminator", factory)
    return built


class TestCollectPorts:
    def test_merges_dedupes_and_sorts(self) -> None:
        assert cli.collect_ports(["3002", "8080", "3001"], "3000-3002") == [3000, 3001, 3002, 8080]

    def test_no_range(self) -> None:
        assert cli.collect_ports(["80"], None) == [80]


class TestBuildOptions:
    def test_flags_override_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("PORT_TERMINATOR_GRACEFUL_TIMEOUT_MS", "9000")
        monkeypatch.setenv("PORT_TERMINATOR_PROTOCOL", "udp")
        args = cli.build_parser().parse_args(["3000", "-m", "TCP", "-t", "1000", "-f"])

        options = cli.build_options(args)

        assert options.protocol == "tcp"
        assert options.timeout_ms == 1000
        assert options.force is True
        assert options.graceful_timeout_ms == 9000
        assert options.quiet is False

    def test_unset_flags_keep_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("PORT_TERMINATOR_FORCE", "true")
        args = cli.build_parser().parse_args(["3000"])

        assert cli.build_options(args).force is True


class TestMain:
    def test_terminates_ports(self, patched_terminator, fake_adapter, capsys) -> None:
        fake_adapter.bind(3000, 101, "node")

        exit_code = cli.main(["3000", "--force"])

        assert exit_code == 0
        assert fake_adapter.kill_calls == [(101, True)]
        assert "Port 3000: terminated node (PID 101)" in capsys.readouterr().out

    def test_free_port(self, patched_terminator, capsys) -> None:
        assert cli.main(["3000"]) == 0
        assert "Port 3000: no process found" in capsys.readouterr().out

    def test_json_output(self, patched_terminator, fake_adapter, capsys) -> None:
        fake_adapter.bind(3000, 101, "node")

        assert cli.main(["3000", "-j", "-f"]) == 0

        payload = orjson.loads(capsys.readouterr().out)
        assert payload == [
            {
                "port": 3000,
                "success": True,
                "processes": [
                    {"pid": 101, "name": "node", "port": 3000, "protocol": "tcp", "command": None, "user": None}
                ],
                "error": None,
            }
        ]

    def test_dry_run_does_not_kill(self, patched_terminator, fake_adapter, capsys) -> None:
        fake_adapter.bind(3000, 101, "node")

        assert cli.main(["3000", "--dry-run"]) == 0

        assert fake_adapter.kill_calls == []
        assert "Port 3000: would terminate node (PID 101, tcp)" in capsys.readouterr().out

    def test_dry_run_json(self, patched_terminator, fake_adapter, capsys) -> None:
        fake_adapter.bind(3000, 101, "node")

        assert cli.main(["3000", "3001", "-n", "-j"]) == 0

        payload = orjson.loads(capsys.readouterr().out)
        assert [process["pid"] for process in payload["3000"]] == [101]
        assert payload["3001"] == []

    def test_range_and_method(self, patched_terminator, fake_adapter) -> None:
        assert cli.main(["3002", "-r", "3000-3002", "-m", "UDP", "-s"]) == 0
        assert fake_adapter.lookups == [(3000, "udp"), (3001, "udp"), (3002, "udp")]

    def test_silent_prints_nothing(self, patched_terminator, fake_adapter, capsys) -> None:
        fake_adapter.bind(3000, 101, "node")

        assert cli.main(["3000", "-s", "-f"]) == 0
        assert capsys.readouterr().out == ""

    def test_failed_port_exits_one(self, patched_terminator, fake_adapter, capsys) -> None:
        fake_adapter.lookup_errors[3000] = CommandExecutionError.unresolved_owner("lsof (fallback to netstat)", 3000)

        assert cli.main(["3000"]) == 1

        captured = capsys.readouterr()
        assert "Port 3000: failed - Command execution failed" in captured.out
        assert "Error terminating processes on port 3000" in captured.err

    def test_no_ports(self, patched_terminator, capsys) -> None:
        assert cli.main([]) == 1
        assert "No ports specified" in capsys.readouterr().err

    def test_invalid_port(self, patched_terminator, capsys) -> None:
        assert cli.main(["http"]) == 1
        assert "Invalid port number: http" in capsys.readouterr().err

    def test_range_too_large(self, patched_terminator, capsys) -> None:
        assert cli.main(["-r", "1-65535"]) == 1
        assert "Port range too large" in capsys.readouterr().err

    def test_permission_error_suggests_elevation(self, patched_terminator, fake_adapter, capsys) -> None:
        fake_adapter.lookup_errors[22] = PermissionDeniedError("Permission denied when inspecting port 22")

        assert cli.main(["22", "--dry-run"]) == 1

        err = capsys.readouterr().err
        assert "Permission denied when inspecting port 22" in err
        assert "sudo" in err

    def test_dry_run_lists_remaining_ports_after_lookup_failure(self, patched_terminator, fake_adapter, capsys) -> None:
        fake_adapter.lookup_errors[3000] = CommandExecutionError.unresolved_owner("netstat", 3000)
        fake_adapter.bind(3001, 202, "web")

        assert cli.main(["3000", "3001", "--dry-run"]) == 1

        captured = capsys.readouterr()
        assert "Port 3000: lookup failed - Command execution failed: netstat (exit code: 1)" in captured.out
        assert "Port 3001: would terminate web (PID 202, tcp)" in captured.out
        assert "Port 3000: Command execution failed" in captured.err

    def test_dry_run_json_records_failed_port_as_empty(self, patched_terminator, fake_adapter, capsys) -> None:
        fake_adapter.lookup_errors[3000] = CommandExecutionError.unresolved_owner("netstat", 3000)
        fake_adapter.bind(3001, 202, "web")

        assert cli.main(["3000", "3001", "-n", "-j"]) == 1

        payload = orjson.loads(capsys.readouterr().out)
        assert payload["3000"] == []
        assert [process["name"] for process in payload["3001"]] == ["web"]

    def test_release_check_failure_is_reported_per_port(self, patched_terminator, fake_adapter, capsys) -> None:
        fake_adapter.bind(3000, 101, "node").bind(3001, 202, "web")
        original_kill = fake_adapter.kill_process

        async def kill_then_hide_owner(pid, force=False):
            delivered = await original_kill(pid, force)
            if pid == 101:
                fake_adapter.lookup_errors[3000] = CommandExecutionError.unresolved_owner("netstat", 3000)
            return delivered

        fake_adapter.kill_process = kill_then_hide_owner

        assert cli.main(["3000", "3001", "--force"]) == 1

        captured = capsys.readouterr()
        assert "Port 3000: failed - Command execution failed: netstat (exit code: 1)" in captured.out
        assert "Port 3001: terminated web (PID 202)" in captured.out
        assert "Could not confirm port 3000 was released" in captured.err

    def test_version(self, capsys) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["--version"])

        assert excinfo.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_rejects_unknown_method(self, capsys) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["3000", "-m", "sctp"])
        assert excinfo.value.code == 2
