"""Tests for the idempotency cache."""

from __future__ import annotations

from logout_service.services.idempotency import IdempotencyCache, normalize_url

from .support.app import FakeClock


def test_normalize_url() -> None:
    assert normalize_url(" HTTPS://Example.COM/Logout/ ") == "https://example.com/Logout"
    assert normalize_url("https://example.com/a?b=1#frag") == "https://example.com/a?b=1"
    assert normalize_url("https://example.com/") == normalize_url("https://example.com")


def test_window() -> None:
    clock = FakeClock()
    cache = IdempotencyCache(ttl_seconds=600, clock=clock)

    assert not cache.seen_recently("https://example.com/logout/abc")
    clock.advance(10)
    assert cache.seen_recently("https://EXAMPLE.com/logout/abc/")
    assert not cache.seen_recently("https://example.com/logout/other")

    # Every lookup refreshes the timestamp, so the window restarts.
    clock.advance(599)
    assert cache.seen_recently("https://example.com/logout/abc")

    clock.advance(601)
    assert not cache.seen_recently("https://example.com/logout/abc")


def test_eviction_on_lookup() -> None:
    clock = FakeClock()
    cache = IdempotencyCache(ttl_seconds=60, clock=clock)
    for n in range(5):
        cache.seen_recently(f"https://example.com/{n}")
    assert len(cache) == 5

    clock.advance(61)
    cache.seen_recently("https://example.com/new")
    assert len(cache) == 1


def test_disabled() -> None:
    cache = IdempotencyCache(ttl_seconds=0)
    assert not cache.enabled
    assert not cache.seen_recently("https://example.com/")
    assert not cache.seen_recently("https://example.com/")
    assert len(cache) == 0


def test_clear() -> None:
    cache = IdempotencyCache(ttl_seconds=600, clock=FakeClock())
    cache.seen_recently("https://example.com/logout/abc")
    cache.clear()

    assert len(cache) == 0
    assert not cache.seen_recently("https://example.com/logout/abc")
