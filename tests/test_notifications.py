"""
test_notifications.py — Tests for channel strategies, the strategy
registry and the dispatcher.

Covers:
    • Channel strategies (email, SMS, chat output lines)
    • Registry registration, lookup, override and freezing
    • Registry construction from configuration
    • Dispatcher pass-through and error propagation
    • Concurrent dispatch and concurrent registration

Run with:
    pytest tests/test_notifications.py -v
"""

from __future__ import annotations

import io
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List

import pytest

from backend.app.core.errors import (
    ChannelNotFoundError,
    ConfigurationError,
    RegistryFrozenError,
    StrategyFailureError,
    ValidationError,
)
from backend.app.core.logging_config import get_request_context
from backend.app.notifications.channels import (
    ChatStrategy,
    EmailStrategy,
    NotificationStrategy,
    SmsStrategy,
)
from backend.app.notifications.dispatcher import NotificationDispatcher
from backend.app.notifications.registry import (
    BUILTIN_STRATEGIES,
    DEFAULT_CHANNELS,
    StrategyRegistry,
    build_registry,
)


# ═══════════════════════════════════════════════════════════════════════════
# Section 1: Channel Strategies
# ═══════════════════════════════════════════════════════════════════════════

class TestChannelStrategies:

    @pytest.mark.parametrize(
        "strategy_cls, to, message, expected",
        [
            (EmailStrategy, "alice@x.com", "hi", "Sending Email to alice@x.com: hi\n"),
            (SmsStrategy, "+15551234567", "code: 9821", "Sending SMS to +15551234567: code: 9821\n"),
            (ChatStrategy, "#general", "deploy complete",
             "Sending Slack message to #general: deploy complete\n"),
        ],
    )
    def test_writes_one_line(self, strategy_cls, to, message, expected):
        stream = io.StringIO()
        strategy_cls(stream=stream).send(to, message)
        assert stream.getvalue() == expected

    def test_default_stream_is_stdout(self, capsys):
        EmailStrategy().send("bob@x.com", "hello")
        out = capsys.readouterr().out
        assert out == "Sending Email to bob@x.com: hello\n"

    def test_returns_none(self):
        assert SmsStrategy(stream=io.StringIO()).send("+1", "x") is None

    def test_satisfies_protocol(self):
        for cls in (EmailStrategy, SmsStrategy, ChatStrategy):
            assert isinstance(cls(), NotificationStrategy)

    def test_empty_values_pass_through(self):
        stream = io.StringIO()
        ChatStrategy(stream=stream).send("", "")
        assert stream.getvalue() == "Sending Slack message to : \n"

    def test_stateless_between_calls(self):
        stream = io.StringIO()
        email = EmailStrategy(stream=stream)
        email.send("a@x.com", "one")
        email.send("a@x.com", "one")
        first, second = stream.getvalue().splitlines()
        assert first == second


# ═══════════════════════════════════════════════════════════════════════════
# Section 2: Strategy Registry
# ═══════════════════════════════════════════════════════════════════════════

class TestStrategyRegistry:

    def test_register_and_resolve(self, recorder):
        registry = StrategyRegistry()
        strategy = recorder()
        registry.register("email", strategy)
        assert registry.resolve("email") is strategy

    def test_resolve_unknown_raises(self, recorder):
        registry = StrategyRegistry()
        registry.register("email", recorder())
        with pytest.raises(ChannelNotFoundError) as exc_info:
            registry.resolve("pager")
        err = exc_info.value
        assert err.channel == "pager"
        assert err.status_code == 400
        assert err.details["available_channels"] == ["email"]

    def test_lookup_is_case_sensitive(self, recorder):
        registry = StrategyRegistry()
        registry.register("email", recorder())
        with pytest.raises(ChannelNotFoundError):
            registry.resolve("Email")

    def test_resolve_is_stable(self, recording_registry):
        registry, _ = recording_registry
        assert registry.resolve("sms") is registry.resolve("sms")

    def test_last_registration_wins(self, recorder, caplog):
        registry = StrategyRegistry()
        first, second = recorder(), recorder()
        registry.register("email", first)
        with caplog.at_level(logging.WARNING):
            registry.register("email", second)
        assert registry.resolve("email") is second
        assert len(registry) == 1
        assert any("re-registered" in r.getMessage() for r in caplog.records)

    def test_open_to_new_keys(self, recorder):
        registry = StrategyRegistry()
        pager = recorder()
        registry.register("pager", pager)
        assert registry.resolve("pager") is pager

    def test_channels_sorted(self, recording_registry):
        registry, _ = recording_registry
        assert registry.channels() == ["email", "slack", "sms"]
        assert list(registry) == ["email", "slack", "sms"]

    def test_contains(self, recording_registry):
        registry, _ = recording_registry
        assert "email" in registry
        assert "pager" not in registry

    def test_frozen_rejects_register(self, recording_registry, recorder):
        registry, _ = recording_registry
        assert registry.frozen
        with pytest.raises(RegistryFrozenError):
            registry.register("pager", recorder())
        assert "pager" not in registry

    def test_empty_name_rejected(self, recorder):
        with pytest.raises(ValidationError):
            StrategyRegistry().register("", recorder())

    def test_strategy_without_send_rejected(self):
        with pytest.raises(ValidationError):
            StrategyRegistry().register("email", object())

    def test_concurrent_register_and_resolve(self, recorder):
        registry = StrategyRegistry()
        email = recorder()
        registry.register("email", email)
        errors: List[Exception] = []

        def writer():
            for i in range(200):
                registry.register(f"extra-{i}", recorder())

        def reader():
            try:
                for _ in range(500):
                    assert registry.resolve("email") is email
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=writer)] + [
            threading.Thread(target=reader) for _ in range(4)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(registry) == 201


class TestBuildRegistry:

    def test_defaults_register_all_builtins(self):
        registry = build_registry()
        assert registry.channels() == sorted(DEFAULT_CHANNELS)
        assert registry.frozen

    def test_builtin_classes(self):
        registry = build_registry()
        assert isinstance(registry.resolve("email"), EmailStrategy)
        assert isinstance(registry.resolve("sms"), SmsStrategy)
        assert isinstance(registry.resolve("slack"), ChatStrategy)
        assert set(BUILTIN_STRATEGIES) == {"email", "sms", "slack"}

    def test_subset(self):
        registry = build_registry(["sms"])
        assert registry.channels() == ["sms"]

    def test_unfrozen(self, recorder):
        registry = build_registry(["email"], freeze=False)
        registry.register("pager", recorder())
        assert "pager" in registry

    def test_unknown_name_fails_fast(self):
        with pytest.raises(ConfigurationError) as exc_info:
            build_registry(["email", "pager"])
        assert exc_info.value.details["unknown"] == ["pager"]

    def test_empty_configuration_fails(self):
        with pytest.raises(ConfigurationError):
            build_registry([])


# ═══════════════════════════════════════════════════════════════════════════
# Section 3: Dispatcher
# ═══════════════════════════════════════════════════════════════════════════

class TestDispatcher:

    @pytest.mark.parametrize(
        "channel, to, message",
        [
            ("email", "alice@x.com", "hi"),
            ("sms", "+15551234567", "code: 9821"),
            ("slack", "#general", "deploy complete"),
        ],
    )
    def test_invokes_exactly_one_strategy(self, recording_registry, channel, to, message):
        registry, recorders = recording_registry
        NotificationDispatcher(registry).send(channel, to, message)

        assert recorders[channel].calls == [(to, message)]
        others = [r for name, r in recorders.items() if name != channel]
        assert all(r.calls == [] for r in others)

    def test_unknown_channel_no_invocation(self, recording_registry):
        registry, recorders = recording_registry
        with pytest.raises(ChannelNotFoundError):
            NotificationDispatcher(registry).send("pager", "oncall", "alert")
        assert all(r.calls == [] for r in recorders.values())

    def test_unknown_channel_no_output(self, capsys):
        dispatcher = NotificationDispatcher(build_registry())
        with pytest.raises(ChannelNotFoundError):
            dispatcher.send("pager", "oncall", "alert")
        assert capsys.readouterr().out == ""

    def test_empty_channel_rejected(self, recording_registry):
        registry, recorders = recording_registry
        with pytest.raises(ValidationError):
            NotificationDispatcher(registry).send("", "x", "y")
        assert all(r.calls == [] for r in recorders.values())

    def test_strategy_failure_propagates_unchanged(self, raiser):
        failure = StrategyFailureError("email", "smtp down")
        registry = StrategyRegistry()
        registry.register("email", raiser(failure))
        with pytest.raises(StrategyFailureError) as exc_info:
            NotificationDispatcher(registry).send("email", "a@x.com", "hi")
        assert exc_info.value is failure

    def test_arbitrary_failure_propagates(self, raiser):
        registry = StrategyRegistry()
        registry.register("email", raiser(RuntimeError("boom")))
        with pytest.raises(RuntimeError, match="boom"):
            NotificationDispatcher(registry).send("email", "a@x.com", "hi")

    def test_builtin_output(self, capsys):
        NotificationDispatcher(build_registry()).send("email", "alice@x.com", "hi")
        assert capsys.readouterr().out == "Sending Email to alice@x.com: hi\n"

    def test_binds_channel_to_log_context(self, recording_registry):
        registry, _ = recording_registry
        NotificationDispatcher(registry).send("sms", "+1", "x")
        assert get_request_context()["channel"] == "sms"

    def test_concurrent_sends_do_not_interfere(self, recording_registry):
        registry, recorders = recording_registry
        dispatcher = NotificationDispatcher(registry)
        barrier = threading.Barrier(2)

        def send(to, message):
            barrier.wait(timeout=5)
            dispatcher.send("email", to, message)

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [
                pool.submit(send, "a@x.com", "first"),
                pool.submit(send, "b@x.com", "second"),
            ]
            for f in futures:
                f.result()

        assert sorted(recorders["email"].calls) == [
            ("a@x.com", "first"),
            ("b@x.com", "second"),
        ]
