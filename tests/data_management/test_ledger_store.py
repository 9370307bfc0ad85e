"""Tests for LedgerStore: idempotent crediting, leaderboard, persistence."""

import asyncio
from pathlib import Path

import pytest

from mangrove_system.data_management.ledger_store import LedgerStore


@pytest.fixture
def ledger() -> LedgerStore:
    return LedgerStore()


class TestApplyReward:
    @pytest.mark.asyncio
    async def test_first_application_creates_entry(self, ledger: LedgerStore) -> None:
        assert await ledger.apply_reward("sub-1", "user-1", credits=5.55, points=50)
        entry = await ledger.get_entry("user-1")
        assert entry.credits_earned == 5.55
        assert entry.points == 50
        assert entry.applied_submissions == ["sub-1"]

    @pytest.mark.asyncio
    async def test_same_submission_applied_once(self, ledger: LedgerStore) -> None:
        assert await ledger.apply_reward("sub-1", "user-1", credits=2.0, points=30)
        assert not await ledger.apply_reward("sub-1", "user-1", credits=2.0, points=30)
        entry = await ledger.get_entry("user-1")
        assert entry.credits_earned == 2.0
        assert entry.points == 30

    @pytest.mark.asyncio
    async def test_concurrent_duplicates_apply_once(self, ledger: LedgerStore) -> None:
        outcomes = await asyncio.gather(
            *[ledger.apply_reward("sub-1", "user-1", credits=1.0, points=10) for _ in range(5)]
        )
        assert outcomes.count(True) == 1
        assert (await ledger.get_entry("user-1")).points == 10

    @pytest.mark.asyncio
    async def test_accumulates_across_submissions(self, ledger: LedgerStore) -> None:
        await ledger.apply_reward("sub-1", "user-1", credits=0.1, points=10)
        await ledger.apply_reward("sub-2", "user-1", credits=0.2, points=20)
        entry = await ledger.get_entry("user-1")
        assert entry.credits_earned == 0.3
        assert entry.points == 30
        assert await ledger.has_applied("sub-2")
        assert not await ledger.has_applied("sub-3")

    @pytest.mark.asyncio
    async def test_unknown_user(self, ledger: LedgerStore) -> None:
        assert await ledger.get_entry("ghost") is None


class TestLeaderboard:
    @pytest.mark.asyncio
    async def test_ranked_by_points_then_credits(self, ledger: LedgerStore) -> None:
        await ledger.apply_reward("a", "alice", credits=1.0, points=30)
        await ledger.apply_reward("b", "bob", credits=9.0, points=50)
        await ledger.apply_reward("c", "carol", credits=2.0, points=30)

        board = await ledger.leaderboard(limit=2)
        assert [e.user_id for e in board] == ["bob", "carol"]


class TestPersistence:
    @pytest.mark.asyncio
    async def test_reload_keeps_idempotency(self, tmp_path: Path) -> None:
        path = tmp_path / "ledger.json"
        ledger = LedgerStore(str(path))
        await ledger.apply_reward("sub-1", "user-1", credits=2.16, points=50)

        reloaded = LedgerStore(str(path))
        assert (await reloaded.get_entry("user-1")).credits_earned == 2.16
        assert not await reloaded.apply_reward("sub-1", "user-1", credits=2.16, points=50)

    @pytest.mark.asyncio
    async def test_failed_write_leaves_credit_retryable(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        ledger = LedgerStore(str(tmp_path / "ledger.json"))

        def disk_full() -> None:
            raise OSError("disk full")

        monkeypatch.setattr(ledger, "_save_to_file", disk_full)
        with pytest.raises(OSError):
            await ledger.apply_reward("sub-1", "user-1", credits=2.16, points=50)
        assert not await ledger.has_applied("sub-1")
        assert await ledger.get_entry("user-1") is None

        monkeypatch.undo()
        assert await ledger.apply_reward("sub-1", "user-1", credits=2.16, points=50)
        assert (await ledger.get_entry("user-1")).credits_earned == 2.16
