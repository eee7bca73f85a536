"""Tests for the fixed-window rate limiter and privacy helpers."""

import pytest

from engagerisk.privacy import last_ip_octet, mask_email
from engagerisk.ratelimit import RateLimiter
from engagerisk.storage.assessment_store import AssessmentStore


@pytest.fixture
def now():
    return [1_000.0]


@pytest.fixture
def limiter(now):
    return RateLimiter(max_requests=3, window_seconds=600, clock=lambda: now[0])


class TestRateLimiter:
    """Test suite for RateLimiter."""

    def test_allows_up_to_limit(self, limiter):
        results = [limiter.check("1.2.3.4") for _ in range(4)]
        assert [r.allowed for r in results] == [True, True, True, False]
        assert [r.remaining for r in results] == [2, 1, 0, 0]

    def test_reset_time_fixed_by_first_request(self, limiter, now):
        first = limiter.check("1.2.3.4")
        now[0] += 100
        second = limiter.check("1.2.3.4")
        assert first.reset_at == second.reset_at == 1_600.0

    def test_window_expiry(self, limiter, now):
        for _ in range(3):
            limiter.check("1.2.3.4")
        assert not limiter.check("1.2.3.4").allowed

        now[0] += 601
        result = limiter.check("1.2.3.4")
        assert result.allowed
        assert result.remaining == 2

    def test_identifiers_are_independent(self, limiter):
        for _ in range(3):
            limiter.check("a")
        assert limiter.check("b").allowed

    def test_purge_expired(self, limiter, now):
        limiter.check("a")
        now[0] += 300
        limiter.check("b")
        now[0] += 301

        assert limiter.purge_expired() == 1
        assert len(limiter) == 1

    def test_expired_windows_purged_past_size_limit(self, now):
        limiter = RateLimiter(max_requests=3, window_seconds=600, clock=lambda: now[0], max_tracked=2)
        limiter.check("a")
        limiter.check("b")
        now[0] += 601

        limiter.check("c")
        assert len(limiter) == 1

    def test_live_windows_survive_purge(self, now):
        limiter = RateLimiter(max_requests=1, window_seconds=600, clock=lambda: now[0], max_tracked=1)
        limiter.check("a")
        limiter.check("b")

        assert not limiter.check("a").allowed
        assert len(limiter) == 2

    def test_windows_shared_through_store(self, now, tmp_path):
        """Limiters over the same database share their counts."""
        store = AssessmentStore(tmp_path / "limits.db")
        first = RateLimiter(max_requests=2, window_seconds=600, clock=lambda: now[0], windows=store)
        second = RateLimiter(max_requests=2, window_seconds=600, clock=lambda: now[0], windows=store)

        assert first.check("1.2.3.4").allowed
        assert second.check("1.2.3.4").allowed
        refused = second.check("1.2.3.4")
        assert not refused.allowed
        assert refused.reset_at == 1_600.0

        now[0] += 601
        assert first.purge_expired() == 1
        assert first.check("1.2.3.4").allowed


class TestPrivacy:
    """Test suite for personal data reduction."""

    @pytest.mark.parametrize(
        "email, expected",
        [
            ("jane.doe@example.com", "j***e@example.com"),
            ("a@example.com", "a***@example.com"),
            ("", "no-email"),
            ("not-an-email", "not-an-email"),
        ],
    )
    def test_mask_email(self, email, expected):
        assert mask_email(email) == expected

    @pytest.mark.parametrize(
        "ip, expected",
        [("203.0.113.42", "42"), ("2001:db8::1234", "234"), ("unknown", "own")],
    )
    def test_last_ip_octet(self, ip, expected):
        assert last_ip_octet(ip) == expected
