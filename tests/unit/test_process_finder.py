"""Tests for port lookups and polling waits."""

from __future__ import annotations

import asyncio
import time

import pytest

from port_terminator.errors import CommandExecutionError, PermissionDeniedError
from port_terminator.process_finder import ProcessFinder


class TestFindByPort:
    @pytest.mark.asyncio
    async def test_returns_owners(self, fake_adapter) -> None:
        fake_adapter.bind(3000, 101, "node")
        finder = ProcessFinder(fake_adapter)

        processes = await finder.find_by_port(3000)

        assert [(p.pid, p.name, p.port, p.protocol) for p in processes] == [(101, "node", 3000, "tcp")]

    @pytest.mark.asyncio
    async def test_protocol_filter(self, fake_adapter) -> None:
        fake_adapter.bind(5353, 200, "mdns", "udp").bind(5353, 201, "web", "tcp")
        finder = ProcessFinder(fake_adapter)

        assert len(await finder.find_by_port(5353, "both")) == 2
        assert [p.pid for p in await finder.find_by_port(5353, "tcp")] == [201]
        assert [p.pid for p in await finder.find_by_port(5353, "udp")] == [200]

    @pytest.mark.asyncio
    async def test_propagates_hard_failures(self, fake_adapter, caplog) -> None:
        fake_adapter.lookup_errors[3000] = PermissionDeniedError("denied")
        finder = ProcessFinder(fake_adapter)

        with caplog.at_level("DEBUG", logger="port_terminator"):
            with pytest.raises(PermissionDeniedError):
                await finder.find_by_port(3000)

        assert "Process lookup on port 3000 failed" in caplog.text

    def test_exposes_adapter(self, fake_adapter) -> None:
        assert ProcessFinder(fake_adapter).adapter is fake_adapter


class TestFindByPorts:
    @pytest.mark.asyncio
    async def test_failure_on_one_port_is_isolated(self, fake_adapter) -> None:
        fake_adapter.bind(3000, 101)
        fake_adapter.lookup_errors[4000] = CommandExecutionError("lsof -i tcp:4000 -P -n", 1, "boom")
        finder = ProcessFinder(fake_adapter)

        results = await finder.find_by_ports([3000, 4000, 5000])

        assert [p.pid for p in results[3000]] == [101]
        assert results[4000] == []
        assert results[5000] == []

    @pytest.mark.asyncio
    async def test_duplicate_ports_looked_up_once(self, fake_adapter) -> None:
        finder = ProcessFinder(fake_adapter)

        results = await finder.find_by_ports([3000, 3000])

        assert list(results) == [3000]
        assert fake_adapter.lookups == [(3000, "both")]


class TestWaits:
    @pytest.mark.asyncio
    async def test_is_port_available(self, fake_adapter) -> None:
        fake_adapter.bind(3000, 101)
        finder = ProcessFinder(fake_adapter)

        assert await finder.is_port_available(3000) is False
        assert await finder.is_port_available(3001) is True

    @pytest.mark.asyncio
    async def test_free_port_returns_promptly(self, fake_adapter) -> None:
        finder = ProcessFinder(fake_adapter, check_interval_seconds=0.25)
        started = time.monotonic()

        assert await finder.wait_for_port_to_be_available(3000, timeout_ms=10_000) is True

        assert time.monotonic() - started < 0.25
        assert len(fake_adapter.lookups) == 1

    @pytest.mark.asyncio
    async def test_waits_until_released(self, fake_adapter) -> None:
        fake_adapter.bind(3000, 101)
        finder = ProcessFinder(fake_adapter, check_interval_seconds=0.01)

        async def release_later() -> None:
            await asyncio.sleep(0.05)
            fake_adapter.release(101)

        releaser = asyncio.ensure_future(release_later())
        assert await finder.wait_for_port_to_be_available(3000, timeout_ms=2000) is True
        await releaser

    @pytest.mark.asyncio
    async def test_timeout_returns_false(self, fake_adapter) -> None:
        fake_adapter.bind(3000, 101)
        finder = ProcessFinder(fake_adapter, check_interval_seconds=0.01)
        started = time.monotonic()

        assert await finder.wait_for_port_to_be_available(3000, timeout_ms=100) is False

        elapsed = time.monotonic() - started
        assert 0.09 <= elapsed < 1.0

    @pytest.mark.asyncio
    async def test_deadline_is_wall_clock_not_iteration_count(self, fake_adapter) -> None:
        """Slow lookups shorten the number of checks, never the total wait."""
        fake_adapter.bind(3000, 101)
        original = fake_adapter.find_processes_by_port

        async def slow_lookup(port, protocol="both"):
            await asyncio.sleep(0.04)
            return await original(port, protocol)

        fake_adapter.find_processes_by_port = slow_lookup
        finder = ProcessFinder(fake_adapter, check_interval_seconds=0.02)
        started = time.monotonic()

        assert await finder.wait_for_port_to_be_available(3000, timeout_ms=200) is False

        assert time.monotonic() - started >= 0.2

    @pytest.mark.asyncio
    async def test_wait_for_busy(self, fake_adapter) -> None:
        finder = ProcessFinder(fake_adapter, check_interval_seconds=0.01)

        async def bind_later() -> None:
            await asyncio.sleep(0.03)
            fake_adapter.bind(8080, 300)

        binder = asyncio.ensure_future(bind_later())
        assert await finder.wait_for_port_to_be_busy(8080, timeout_ms=2000) is True
        await binder

    @pytest.mark.asyncio
    async def test_zero_timeout_checks_once(self, fake_adapter) -> None:
        fake_adapter.bind(3000, 101)
        finder = ProcessFinder(fake_adapter)

        assert await finder.wait_for_port_to_be_available(3000, timeout_ms=0) is False
        assert len(fake_adapter.lookups) == 1
