from __future__ import annotations

import pytest

from port_terminator.errors import (
    UNKNOWN_ERROR_REASON,
    CommandExecutionError,
    InvalidPortError,
    OperationTimeoutError,
    PermissionDeniedError,
    PlatformError,
    PortTerminatorError,
    ProcessKillError,
    ProcessNotFoundError,
    error_reason,
)


class TestErrorCodes:
    """Every error exposes a stable code plus port/pid context."""

    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (ProcessNotFoundError(3000), "PROCESS_NOT_FOUND"),
            (PermissionDeniedError("denied", pid=12), "PERMISSION_DENIED"),
            (PlatformError("sunos5"), "PLATFORM_UNSUPPORTED"),
            (OperationTimeoutError("wait", 100), "OPERATION_TIMEOUT"),
            (InvalidPortError(70000), "INVALID_PORT"),
            (CommandExecutionError("lsof -i tcp:1", 2, "boom"), "COMMAND_EXECUTION_FAILED"),
            (ProcessKillError(42), "PROCESS_KILL_FAILED"),
        ],
    )
    def test_codes(self, error: PortTerminatorError, code: str) -> None:
        assert error.code == code
        assert isinstance(error, PortTerminatorError)

    def test_process_not_found_carries_port(self) -> None:
        error = ProcessNotFoundError(3000)
        assert error.port == 3000
        assert error.message == "No process found running on port 3000"

    def test_custom_code_override(self) -> None:
        error = PortTerminatorError("custom", code="CUSTOM", pid=5)
        assert error.code == "CUSTOM"
        assert error.pid == 5


class TestBuiltinCategories:
    def test_permission_denied_is_permission_error(self) -> None:
        with pytest.raises(PermissionError):
            raise PermissionDeniedError("Permission denied when trying to kill process 1", pid=1)

    def test_timeout_is_timeout_error(self) -> None:
        error = OperationTimeoutError("wait for port 3000", 1500)
        assert isinstance(error, TimeoutError)
        assert str(error) == "Operation 'wait for port 3000' timed out after 1500ms"

    def test_integral_float_timeout_renders_without_fraction(self) -> None:
        assert str(OperationTimeoutError("op", 250.0)).endswith("after 250ms")

    def test_invalid_port_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            raise InvalidPortError("abc")


class TestInvalidPortError:
    def test_message(self) -> None:
        assert str(InvalidPortError(0)) == "Invalid port number: 0. Port must be between 1 and 65535"

    @pytest.mark.parametrize("value", [70000, -1, 3.5, "70000", "12abc"])
    def test_preserves_numeric_values(self, value) -> None:
        error = InvalidPortError(value)
        assert error.port == value
        assert error.value == value

    @pytest.mark.parametrize("value", ["abc", None, True, [80]])
    def test_drops_non_numeric_values(self, value) -> None:
        error = InvalidPortError(value)
        assert error.port is None
        assert error.value == value


class TestCommandExecutionError:
    def test_fields_and_message(self) -> None:
        error = CommandExecutionError("netstat -ano", 1, "failure")
        assert error.command == "netstat -ano"
        assert error.exit_code == 1
        assert error.stderr == "failure"
        assert str(error) == "Command execution failed: netstat -ano (exit code: 1)"

    def test_unresolved_owner(self) -> None:
        error = CommandExecutionError.unresolved_owner("lsof (fallback to netstat)", 3000)
        assert error.exit_code == 1
        assert error.port == 3000
        assert error.stderr == "Process found on port 3000 but cannot determine PID. lsof command not available."


class TestProcessKillError:
    def test_without_signal(self) -> None:
        assert str(ProcessKillError(42)) == "Failed to kill process 42"

    def test_with_signal(self) -> None:
        error = ProcessKillError(42, "SIGKILL")
        assert str(error) == "Failed to kill process 42 with signal SIGKILL"
        assert error.pid == 42
        assert error.signal == "SIGKILL"


class TestErrorReason:
    def test_uses_exception_message(self) -> None:
        assert error_reason(RuntimeError("lsof exploded")) == "lsof exploded"

    @pytest.mark.parametrize("value", ["plain string", 42, None, {"error": "x"}, RuntimeError(), KeyError()])
    def test_everything_else_is_unknown(self, value) -> None:
        assert error_reason(value) == UNKNOWN_ERROR_REASON == "Unknown error"
