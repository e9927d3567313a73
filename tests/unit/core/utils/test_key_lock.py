"""
core/utils/key_lock.py 테스트
"""

import asyncio

import pytest

from core.utils.key_lock import KeyLocks


class TestKeyLocks:
    """KeyLocks 테스트"""

    @pytest.mark.asyncio
    async def test_hold_and_release(self) -> None:
        locks = KeyLocks()
        async with locks.hold(["cash", "pix_bb"]):
            assert locks.is_locked("cash")
            assert locks.is_locked("pix_bb")
        assert not locks.is_locked("cash")
        assert not locks.is_locked("pix_bb")
        assert len(locks) == 2

    @pytest.mark.asyncio
    async def test_duplicate_keys(self) -> None:
        """같은 키가 두 번 들어와도 교착 없음"""
        locks = KeyLocks()
        async with locks.hold(["cash", "cash"]):
            assert locks.is_locked("cash")

    @pytest.mark.asyncio
    async def test_release_on_error(self) -> None:
        locks = KeyLocks()
        with pytest.raises(RuntimeError):
            async with locks.hold(["safe"]):
                raise RuntimeError("boom")
        assert not locks.is_locked("safe")

    @pytest.mark.asyncio
    async def test_serializes_same_key(self) -> None:
        """같은 키를 잡는 두 작업은 겹치지 않는다"""
        locks = KeyLocks()
        order: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold(["cash"]):
                order.append(f"{name}-start")
                await asyncio.sleep(0.01)
                order.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))

        assert order in (
            ["a-start", "a-end", "b-start", "b-end"],
            ["b-start", "b-end", "a-start", "a-end"],
        )

    @pytest.mark.asyncio
    async def test_opposite_order_no_deadlock(self) -> None:
        """역순으로 요청해도 정렬 순서로 획득"""
        locks = KeyLocks()

        async def worker(keys: list[str]) -> None:
            async with locks.hold(keys):
                await asyncio.sleep(0.01)

        await asyncio.wait_for(
            asyncio.gather(worker(["cash", "pix_bb"]), worker(["pix_bb", "cash"])),
            timeout=2,
        )
