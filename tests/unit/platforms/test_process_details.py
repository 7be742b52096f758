from __future__ import annotations

import os
from unittest.mock import MagicMock, patch

import psutil

from port_terminator.platforms.process_details import ProcessDetails, describe_process


def test_describes_current_process():
    details = describe_process(os.getpid())

    assert details.name
    assert details.command


def test_vanished_process():
    with patch("port_terminator.platforms.process_details.psutil.Process", side_effect=psutil.NoSuchProcess(99999)):
        assert describe_process(99999) == ProcessDetails()


def test_access_denied_on_open():
    with patch("port_terminator.platforms.process_details.psutil.Process", side_effect=psutil.AccessDenied(1)):
        assert describe_process(1) == ProcessDetails()


def test_partial_details_when_fields_are_restricted():
    proc = MagicMock()
    proc.name.return_value = "postgres"
    proc.cmdline.side_effect = psutil.AccessDenied(70)
    proc.username.side_effect = psutil.ZombieProcess(70)

    with patch("port_terminator.platforms.process_details.psutil.Process", return_value=proc):
        details = describe_process(70)

    assert details == ProcessDetails(name="postgres", command=None, user=None)


def test_command_line_is_joined():
    proc = MagicMock()
    proc.name.return_value = "node"
    proc.cmdline.return_value = ["node", "server.js", "--port", "3000"]
    proc.username.return_value = "alice"

    with patch("port_terminator.platforms.process_details.psutil.Process", return_value=proc):
        details = describe_process(4242)

    assert details == ProcessDetails(name="node", command="node server.js --port 3000", user="alice")


def test_empty_command_line_is_none():
    proc = MagicMock()
    proc.name.return_value = "kthreadd"
    proc.cmdline.return_value = []
    proc.username.return_value = "root"

    with patch("port_terminator.platforms.process_details.psutil.Process", return_value=proc):
        assert describe_process(2).command is None
