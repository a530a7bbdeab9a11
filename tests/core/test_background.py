"""Tests for detached background tasks."""

import asyncio

import pytest

from edgecache.core.background import drain, spawn_logged


class TestSpawnLogged:
    @pytest.mark.asyncio
    async def test_result_available(self):
        async def work():
            return 42

        task = spawn_logged(work(), name="job")
        assert await task == 42

    @pytest.mark.asyncio
    async def test_registry_tracks_pending(self):
        gate = asyncio.Event()
        registry: set = set()

        async def work():
            await gate.wait()

        task = spawn_logged(work(), name="job", registry=registry)
        assert task in registry

        gate.set()
        await drain(registry)

        assert registry == set()

    @pytest.mark.asyncio
    async def test_failure_does_not_propagate(self):
        registry: set = set()

        async def work():
            raise RuntimeError("boom")

        task = spawn_logged(work(), name="job", registry=registry, key="k")
        await drain(registry)

        assert task.done()
        assert isinstance(task.exception(), RuntimeError)
        assert registry == set()


class TestDrain:
    @pytest.mark.asyncio
    async def test_empty_registry(self):
        await drain(set())

    @pytest.mark.asyncio
    async def test_timeout_cancels_stragglers(self):
        registry: set = set()

        async def forever():
            await asyncio.Event().wait()

        task = spawn_logged(forever(), name="job", registry=registry)
        await drain(registry, timeout=0.01)

        assert task.cancelled()
        assert registry == set()
