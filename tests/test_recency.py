"""Recency set and watermark tests."""

from datetime import timedelta

import pytest

from salewatch.feeds import RecencySet, Watermark

from fakes import T0


def test_recency_newest_first():
    rs = RecencySet(limit=3)
    rs.add("a")
    rs.add("b")
    assert rs.snapshot() == ["b", "a"]
    assert "a" in rs and "b" in rs
    assert "c" not in rs


def test_recency_evicts_oldest_past_limit():
    """Inserting the (N+1)th id drops the oldest one."""
    rs = RecencySet(limit=3)
    for tx in ("a", "b", "c", "d"):
        rs.add(tx)

    assert len(rs) == 3
    assert rs.snapshot() == ["d", "c", "b"]
    assert "a" not in rs


def test_recency_never_exceeds_limit():
    rs = RecencySet(limit=50)
    for i in range(500):
        rs.add(f"tx-{i}")
        assert len(rs) <= 50
    assert "tx-449" not in rs
    assert "tx-450" in rs


def test_recency_readd_moves_to_front_without_growing():
    rs = RecencySet(limit=3)
    for tx in ("a", "b", "c"):
        rs.add(tx)
    rs.add("a")

    assert rs.snapshot() == ["a", "c", "b"]
    rs.add("d")
    # "b" was the oldest after "a" moved up
    assert rs.snapshot() == ["d", "a", "c"]
    assert "b" not in rs


def test_recency_rejects_zero_limit():
    with pytest.raises(ValueError):
        RecencySet(limit=0)


def test_watermark_admits_equal_and_later():
    wm = Watermark(T0)
    assert wm.admits(T0)
    assert wm.admits(T0 + timedelta(seconds=1))
    assert not wm.admits(T0 - timedelta(seconds=1))


def test_watermark_never_moves_backward():
    wm = Watermark(T0)
    wm.advance(T0 + timedelta(seconds=10))
    wm.advance(T0 + timedelta(seconds=5))
    assert wm.value == T0 + timedelta(seconds=10)
