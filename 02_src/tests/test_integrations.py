"""Tests for integrations and inbound filtering."""

import re

import pytest

from faultline.client import Client
from faultline.client.integrations import (
    InboundFilters,
    get_integrations_to_setup,
    setup_integrations,
)
from faultline.hub import Hub, make_main
from faultline.models import Outcome


def exception_event(type_="TypeError", value="boom", filename=None):
    """Minimal exception event, optionally with a top frame."""
    exception = {"type": type_, "value": value}
    if filename:
        exception["stacktrace"] = {
            "frames": [
                {"filename": "http://cdn.example.com/vendor.js"},
                {"filename": filename},
            ]
        }
    return {"exception": {"values": [exception]}}


class TestShouldDrop:
    """Tests for InboundFilters.should_drop."""

    def test_keeps_plain_event(self):
        """Test that an unmatched event passes."""
        assert InboundFilters().should_drop(exception_event()) is False

    def test_internal_error(self):
        """Test that internal errors are dropped unless allowed."""
        event = exception_event(type_="FaultlineError")

        assert InboundFilters().should_drop(event) is True
        assert InboundFilters(ignore_internal=False).should_drop(event) is False

    def test_default_script_error(self):
        """Test the built-in cross-origin script error filter."""
        assert InboundFilters().should_drop({"message": "Script error."}) is True

    def test_ignore_errors_matches_type_and_value(self):
        """Test that ignore_errors sees both the value and the type: value form."""
        filters = InboundFilters(ignore_errors=["TypeError: boom", re.compile(r"^Other$")])

        assert filters.should_drop(exception_event()) is True
        assert filters.should_drop(exception_event(value="Other")) is True
        assert filters.should_drop(exception_event(value="fine")) is False

    def test_transactions_skip_ignore_errors(self):
        """Test that ignore_errors never applies to transactions."""
        filters = InboundFilters(ignore_errors=["checkout"])
        assert filters.should_drop({"type": "transaction", "message": "checkout"}) is False

    def test_deny_urls_use_top_frame(self):
        """Test that deny_urls match the most recent frame only."""
        filters = InboundFilters(deny_urls=["extensions/"])

        assert filters.should_drop(exception_event(filename="chrome://extensions/x.js")) is True
        assert filters.should_drop(exception_event(filename="http://example.com/app.js")) is False

    def test_allow_urls(self):
        """Test that allow_urls reject frames outside the list."""
        filters = InboundFilters(allow_urls=[re.compile(r"example\.com")])

        assert filters.should_drop(exception_event(filename="http://example.com/app.js")) is False
        assert filters.should_drop(exception_event(filename="http://evil.io/x.js")) is True

    def test_url_filters_ignore_events_without_frames(self):
        """Test that events with no frames pass url filters."""
        filters = InboundFilters(allow_urls=["example.com"])
        assert filters.should_drop({"message": "no frames"}) is False


class TestSetup:
    """Tests for integration setup."""

    def test_user_integration_replaces_default(self, options):
        """Test that a user integration with a default's name wins."""
        custom = InboundFilters(deny_urls=["x"])
        options.default_integrations = True
        options.integrations = [custom]

        assert get_integrations_to_setup(options) == [custom]

    def test_no_defaults(self, options):
        """Test that default_integrations=False installs nothing."""
        assert get_integrations_to_setup(options) == []

    def test_setup_runs_once_per_registry(self, options, registry):
        """Test that a second setup returns integrations without re-installing."""
        options.default_integrations = True

        first = setup_integrations(options, registry)
        second = setup_integrations(options, registry)

        assert list(first) == ["InboundFilters"]
        assert list(second) == ["InboundFilters"]
        assert len(registry) == 1
        assert registry.installed_integrations == {"InboundFilters"}


class TestInboundFiltersProcessor:
    """Tests for the installed processor."""

    @pytest.mark.asyncio
    async def test_denied_event_is_dropped(self, options, registry, transport, js_type_error):
        """Test that the processor drops events through the current hub's integration."""
        options.integrations = [InboundFilters(deny_urls=["static/app.js"])]
        client = Client(options, processors=registry)
        hub = Hub(client, processors=registry)
        previous = make_main(hub)
        try:
            hub.capture_exception(js_type_error)
            hub.capture_message("kept")
            await client.flush(1)
        finally:
            make_main(previous)

        assert [event.get("message") for event in transport.events] == ["kept"]
        assert transport.lost == [(Outcome.EVENT_PROCESSOR, "event")]

    @pytest.mark.asyncio
    async def test_processor_passes_without_bound_integration(self, options, registry, transport):
        """Test that events pass when the current hub has no such integration."""
        options.integrations = [InboundFilters()]
        setup_integrations(options, registry)

        other = Hub(processors=registry)
        previous = make_main(other)
        try:
            options.integrations = []
            client = Client(options, processors=registry)
            hub = Hub(client, processors=registry)
            hub.capture_message("Script error.")
            await client.flush(1)
        finally:
            make_main(previous)

        assert len(transport.events) == 1
