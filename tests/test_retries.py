"""Tests for the retrying search wrapper."""

import logging

import httpx
import pytest

from perplexica_search.core.api.base import ProviderConfigError
from perplexica_search.core.fetch.retries import attempt_search, search_with_retry

from conftest import EMPTY, PARIS


class TestAttemptSearch:
    """Tests for a single attempt."""

    def test_success(self, fake):
        outcome = attempt_search(fake(PARIS).client(), "q")

        assert outcome.ok
        assert not outcome.failed
        assert outcome.result.message == "Paris is the capital of France."

    def test_empty_answer_is_not_ok(self, fake):
        outcome = attempt_search(fake(EMPTY).client(), "q", attempt=3)

        assert not outcome.ok
        assert not outcome.failed
        assert outcome.attempt == 3

    def test_fetch_error_becomes_failed_outcome(self, fake):
        """Test transport errors are folded into an empty, failed outcome."""
        outcome = attempt_search(fake(httpx.ConnectError("refused")).client(), "q")

        assert outcome.failed
        assert not outcome.ok
        assert outcome.result.message == ""
        assert outcome.result.sources == []


class TestSearchWithRetry:
    """Tests for search_with_retry."""

    def test_success_first_attempt(self, fake, sleeps):
        """Test a good first answer returns without sleeping."""
        server = fake(PARIS)

        result = search_with_retry(server.client(), "q", sleep=sleeps)

        assert result.message == "Paris is the capital of France."
        assert server.search_calls == 1
        assert sleeps == []

    def test_empty_then_success(self, fake, sleeps):
        """Test an empty answer is retried after the first backoff step."""
        server = fake(EMPTY, PARIS)

        result = search_with_retry(server.client(), "q", max_retries=2, sleep=sleeps)

        assert result.message == "Paris is the capital of France."
        assert server.search_calls == 2
        assert sleeps == [5]

    def test_all_empty_returns_last_empty_result(self, fake, sleeps):
        """Test exhausted retries return the empty result instead of raising."""
        server = fake(EMPTY)

        result = search_with_retry(server.client(), "q", max_retries=1, sleep=sleeps)

        assert result.message == ""
        assert result.sources == []
        assert server.search_calls == 2
        assert sleeps == [5]

    def test_backoff_grows_linearly(self, fake, sleeps):
        """Test waits of 5k seconds after attempt k, none after the last."""
        server = fake(EMPTY)

        search_with_retry(server.client(), "q", max_retries=3, sleep=sleeps)

        assert server.search_calls == 4
        assert sleeps == [5, 10, 15]

    def test_zero_retries_makes_one_attempt(self, fake, sleeps):
        server = fake(EMPTY)

        result = search_with_retry(server.client(), "q", max_retries=0, sleep=sleeps)

        assert result.message == ""
        assert server.search_calls == 1
        assert sleeps == []

    def test_custom_backoff_step(self, fake, sleeps):
        server = fake(EMPTY)

        search_with_retry(server.client(), "q", max_retries=2, backoff_step=0.5, sleep=sleeps)

        assert sleeps == [0.5, 1.0]

    def test_connection_errors_are_absorbed(self, fake, sleeps):
        """Test transport errors on every attempt still yield a result."""
        server = fake(httpx.ConnectError("connection refused"))

        result = search_with_retry(server.client(), "q", max_retries=2, sleep=sleeps)

        assert result.message == ""
        assert server.search_calls == 3
        assert sleeps == [5, 10]

    def test_server_error_then_success(self, fake, sleeps):
        server = fake(httpx.Response(500), PARIS)

        result = search_with_retry(server.client(), "q", sleep=sleeps)

        assert result.ok
        assert server.search_calls == 2

    def test_malformed_json_is_retried(self, fake, sleeps):
        server = fake(httpx.Response(200, content=b"{broken"), PARIS)

        result = search_with_retry(server.client(), "q", sleep=sleeps)

        assert result.message == "Paris is the capital of France."
        assert sleeps == [5]

    def test_provider_config_error_propagates(self, fake, sleeps):
        """Test configuration errors are raised immediately, not retried."""
        server = fake(PARIS, providers={"providers": []})

        with pytest.raises(ProviderConfigError):
            search_with_retry(server.client(), "q", max_retries=3, sleep=sleeps)

        assert server.search_calls == 0
        assert sleeps == []

    def test_negative_retries_rejected(self, fake):
        with pytest.raises(ValueError, match="max_retries"):
            search_with_retry(fake().client(), "q", max_retries=-1)


class TestVerboseRetry:
    """Tests for verbose notices during retries."""

    def test_retry_notice_and_single_query_notice(self, fake, sleeps, caplog):
        """Test the query is announced once and each retry is announced."""
        caplog.set_level(logging.INFO, logger="perplexica_search")

        search_with_retry(
            fake(EMPTY, PARIS).client(), "capital?", max_retries=1, verbose=True, sleep=sleeps
        )

        messages = caplog.messages
        assert messages.count("Querying Perplexica: capital?") == 1
        assert "  Retrying (attempt 2/2)" in messages
        assert messages.index("Querying Perplexica: capital?") < messages.index(
            "  Retrying (attempt 2/2)"
        )

    def test_quiet_without_verbose(self, fake, sleeps, caplog):
        caplog.set_level(logging.INFO, logger="perplexica_search")

        search_with_retry(fake(EMPTY).client(), "q", max_retries=2, sleep=sleeps)

        assert caplog.records == []
