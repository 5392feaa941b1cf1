"""
Unit tests for the console and network aggregators.

Network tests drive the lifecycle state machine directly with typed events,
independently of arrival order.
"""

from unittest.mock import AsyncMock

import pytest

from cdp_cli.collectors.console import (
    OVERFLOW_MARKER,
    ConsoleAggregator,
    format_arg,
    tail_entries,
)
from cdp_cli.collectors.network import LifecycleState, NetworkAggregator
from cdp_cli.exceptions import ProtocolError
from cdp_cli.notifications import (
    ConsoleAPICalled,
    ExceptionThrown,
    LoadingFinished,
    RequestWillBeSent,
    ResponseReceived,
)


def start(key="r1", url="https://x", method="GET", timestamp=100.0, category="Document", headers=None):
    return RequestWillBeSent(
        request_id=key,
        url=url,
        method=method,
        headers=headers or {"Accept": "*/*"},
        category=category,
        timestamp=timestamp,
    )


def response(key="r1", status=200, size=None, url=None, headers=None):
    return ResponseReceived(
        request_id=key,
        status=status,
        headers=headers or {"content-type": "text/html"},
        url=url,
        size=size,
    )


def finish(key="r1", size=4567):
    return LoadingFinished(request_id=key, size=size)


def apply(aggregator, event):
    handler = {
        RequestWillBeSent: aggregator.on_request_will_be_sent,
        ResponseReceived: aggregator.on_response_received,
        LoadingFinished: aggregator.on_loading_finished,
    }[type(event)]
    return handler(event)


# Console ---------------------------------------------------------------------


@pytest.mark.unit
class TestConsoleAggregator:
    def test_console_call_text_from_args(self):
        console = ConsoleAggregator()
        entry = console.on_console_api_called(
            ConsoleAPICalled(
                kind="log",
                args=[
                    {"type": "string", "value": "count"},
                    {"type": "number", "value": 3},
                    {"type": "boolean", "value": True},
                    {"type": "object", "subtype": "null", "value": None},
                    {"type": "object", "objectId": "1.1", "description": "Object"},
                    {"type": "undefined"},
                ],
                timestamp=1700000000000.0,
            )
        )

        assert entry.text == 'count 3 true null Object {"type":"undefined"}'
        assert entry.origin == "console-api"
        assert entry.kind == "log"
        assert entry.timestamp == 1700000000000.0

    def test_format_arg_by_value_object(self):
        assert format_arg({"type": "object", "value": {"a": 1}}) == '{"a":1}'
        assert format_arg({"type": "number", "value": 2.0}) == "2"

    def test_exception_entry(self):
        console = ConsoleAggregator()
        entry = console.on_exception_thrown(
            ExceptionThrown(
                text="Uncaught ReferenceError: foo is not defined",
                line=42,
                url="https://example.com/app.js",
                timestamp=1700000000001.0,
            )
        )

        assert entry.kind == "error"
        assert entry.origin == "exception"
        assert entry.text == "Uncaught ReferenceError: foo is not defined"
        assert entry.line == 42
        assert entry.url == "https://example.com/app.js"

    def test_missing_timestamp_defaults_to_now(self):
        console = ConsoleAggregator()
        entry = console.on_console_api_called(ConsoleAPICalled(kind="log", args=[]))
        assert entry.timestamp > 1_600_000_000_000

    def test_ids_unique_in_same_millisecond_burst(self):
        console = ConsoleAggregator()
        for i in range(200):
            console.on_console_api_called(
                ConsoleAPICalled(kind="log", args=[{"value": i}], timestamp=1.0)
            )

        ids = [entry.id for entry in console.entries()]
        assert len(set(ids)) == 200
        assert all(entry_id.startswith("msg_") for entry_id in ids)

    def test_arrival_order_and_pure_filtering(self):
        console = ConsoleAggregator()
        kinds = ["log", "error", "warn", "error", "log", "info"]
        for i, kind in enumerate(kinds):
            console.on_console_api_called(
                ConsoleAPICalled(kind=kind, args=[{"value": str(i)}], timestamp=1000.0 - i)
            )

        everything = console.entries()
        assert [entry.text for entry in everything] == ["0", "1", "2", "3", "4", "5"]

        errors = console.entries(kind="error")
        assert [entry.text for entry in errors] == ["1", "3"]
        assert [entry.text for entry in console.entries()] == ["0", "1", "2", "3", "4", "5"]

    def test_tail(self):
        console = ConsoleAggregator()
        for i in range(5):
            console.on_console_api_called(ConsoleAPICalled(kind="log", args=[{"value": i}]))

        assert [entry.text for entry in console.tail(2)] == ["3", "4"]
        assert len(console.tail(-1)) == 5
        assert len(console.tail(10)) == 5

    def test_tail_entries_on_plain_list(self):
        console = ConsoleAggregator()
        for i in range(4):
            console.on_console_api_called(ConsoleAPICalled(kind="log", args=[{"value": i}]))
        entries = console.entries()

        assert [e.text for e in tail_entries(entries, 1)] == ["3"]
        assert tail_entries(entries, 0) == []
        assert tail_entries(entries, -1) == entries
        assert tail_entries(entries, -1) is not entries


@pytest.mark.unit
@pytest.mark.asyncio
class TestConsoleEnrichment:
    def properties(self, count):
        return {
            "result": [
                {"name": f"k{i}", "enumerable": True, "value": {"type": "number", "value": i}}
                for i in range(count)
            ]
            + [{"name": "__proto__", "value": {"type": "object", "description": "Object"}}]
        }

    async def test_enrich_expands_objects(self):
        console = ConsoleAggregator()
        console.on_console_api_called(
            ConsoleAPICalled(
                kind="log",
                args=[
                    {"type": "string", "value": "user"},
                    {"type": "object", "objectId": "obj-1", "description": "Object"},
                ],
            )
        )
        invoke = AsyncMock(return_value=self.properties(2))

        assert await console.enrich(invoke) == 1

        invoke.assert_awaited_once_with(
            "Runtime.getProperties", {"objectId": "obj-1", "ownProperties": True}
        )
        entry = console.entries()[0]
        assert entry.text == "user {k0: 0, k1: 1}"
        assert entry.enriched

    async def test_enrich_bounds_properties(self):
        console = ConsoleAggregator()
        console.on_console_api_called(
            ConsoleAPICalled(kind="log", args=[{"type": "object", "objectId": "o"}])
        )

        await console.enrich(AsyncMock(return_value=self.properties(8)))

        assert console.entries()[0].text == (
            "{k0: 0, k1: 1, k2: 2, k3: 3, k4: 4, " + OVERFLOW_MARKER + "}"
        )

    async def test_enrich_is_idempotent_and_keeps_order(self):
        console = ConsoleAggregator()
        console.on_console_api_called(ConsoleAPICalled(kind="log", args=[{"value": "a"}]))
        console.on_console_api_called(
            ConsoleAPICalled(kind="log", args=[{"type": "object", "objectId": "o"}])
        )
        console.on_exception_thrown(ExceptionThrown(text="boom"))
        invoke = AsyncMock(return_value=self.properties(1))

        await console.enrich(invoke)
        first = [(entry.id, entry.text) for entry in console.entries()]
        assert await console.enrich(invoke) == 0
        second = [(entry.id, entry.text) for entry in console.entries()]

        assert first == second
        assert [text for _, text in first] == ["a", "{k0: 0}", "boom"]
        invoke.assert_awaited_once()

    async def test_enrich_failure_keeps_text(self):
        console = ConsoleAggregator()
        console.on_console_api_called(
            ConsoleAPICalled(
                kind="log", args=[{"type": "object", "objectId": "gone", "description": "Object"}]
            )
        )
        invoke = AsyncMock(side_effect=ProtocolError("Could not find object with given id"))

        assert await console.enrich(invoke) == 0
        assert console.entries()[0].text == "Object"
        assert not console.entries()[0].enriched


# Network ---------------------------------------------------------------------


def snapshot(entity):
    return (
        entity.id,
        entity.url,
        entity.method,
        entity.status,
        entity.category,
        entity.size,
        entity.timestamp,
        entity.request_headers,
        entity.response_headers,
        entity.state,
    )


@pytest.mark.unit
class TestNetworkTransitions:
    def test_start_creates_started_entity(self):
        network = NetworkAggregator()
        entity = network.on_request_will_be_sent(start(timestamp=12.5))

        assert entity.state is LifecycleState.STARTED
        assert entity.url == "https://x"
        assert entity.timestamp == 12500.0
        assert entity.status is None

    def test_start_overwrites_started_entity(self):
        network = NetworkAggregator()
        network.on_request_will_be_sent(start(url="https://x/old", method="GET"))
        entity = network.on_request_will_be_sent(start(url="https://x/new", method="POST"))

        assert entity.url == "https://x/new"
        assert entity.method == "POST"
        assert entity.state is LifecycleState.STARTED
        assert len(network) == 1

    def test_response_first_creates_provisional_entity(self):
        network = NetworkAggregator()
        entity = network.on_response_received(response(url="https://x/provisional"))

        assert entity.state is LifecycleState.RESPONSE_RECEIVED
        assert entity.method == "GET"
        assert entity.url == "https://x/provisional"
        assert entity.status == 200
        assert entity.timestamp > 0

    def test_start_backfills_without_disturbing_response(self):
        network = NetworkAggregator()
        network.on_response_received(response(status=404, headers={"x": "1"}))
        entity = network.on_request_will_be_sent(start(method="DELETE"))

        assert entity.method == "DELETE"
        assert entity.url == "https://x"
        assert entity.status == 404
        assert entity.response_headers == {"x": "1"}
        assert entity.state is LifecycleState.RESPONSE_RECEIVED

    def test_response_moves_started_to_response_received(self):
        network = NetworkAggregator()
        network.on_request_will_be_sent(start())
        entity = network.on_response_received(response(size=300, url="https://other"))

        assert entity.state is LifecycleState.RESPONSE_RECEIVED
        assert entity.size == 300
        # A known url is not replaced by the response's
        assert entity.url == "https://x"

    def test_finish_without_entity_ignored(self):
        network = NetworkAggregator()
        assert network.on_loading_finished(finish()) is None
        assert len(network) == 0

    def test_finish_on_started_sets_size_only(self):
        network = NetworkAggregator()
        network.on_request_will_be_sent(start())
        entity = network.on_loading_finished(finish(size=10))

        assert entity.size == 10
        assert entity.state is LifecycleState.STARTED

    def test_finish_completes_after_response(self):
        network = NetworkAggregator()
        network.on_request_will_be_sent(start())
        network.on_response_received(response())
        entity = network.on_loading_finished(finish(size=99))

        assert entity.state is LifecycleState.COMPLETED
        assert entity.size == 99

    def test_completed_entity_stays_completed(self):
        network = NetworkAggregator()
        for event in (start(), response(), finish()):
            apply(network, event)

        entity = network.on_response_received(response(status=304))
        assert entity.status == 304
        assert entity.state is LifecycleState.COMPLETED

        entity = network.on_request_will_be_sent(start(method="PUT"))
        assert entity.method == "PUT"
        assert entity.state is LifecycleState.COMPLETED


@pytest.mark.unit
class TestNetworkConvergence:
    def test_response_before_start_converges(self):
        canonical, raced = NetworkAggregator(), NetworkAggregator()
        for event in (start(), response(), finish()):
            apply(canonical, event)
        for event in (response(), start(), finish()):
            apply(raced, event)

        assert snapshot(raced.get("r1")) == snapshot(canonical.get("r1"))

    def test_response_carrying_url_still_converges(self):
        canonical, raced = NetworkAggregator(), NetworkAggregator()
        events = [start(), response(url="https://x/redirected", size=50), finish()]
        for event in events:
            apply(canonical, event)
        for event in (events[1], events[0], events[2]):
            apply(raced, event)

        assert snapshot(raced.get("r1")) == snapshot(canonical.get("r1"))

    def test_scenario_response_start_finish(self):
        network = NetworkAggregator()
        network.on_response_received(ResponseReceived(request_id="r1", status=200))
        network.on_request_will_be_sent(
            RequestWillBeSent(request_id="r1", url="https://x", method="GET", timestamp=1.0)
        )
        network.on_loading_finished(LoadingFinished(request_id="r1", size=4567))

        entity = network.get("r1")
        assert entity.id == "r1"
        assert entity.url == "https://x"
        assert entity.method == "GET"
        assert entity.status == 200
        assert entity.size == 4567
        assert entity.state is LifecycleState.COMPLETED
        assert len(network) == 1

    def test_finish_twice_does_not_accumulate(self):
        network = NetworkAggregator()
        for event in (start(), response(), finish(size=500), finish(size=500)):
            apply(network, event)

        assert network.get("r1").size == 500
        assert len(network) == 1

    def test_replayed_events_are_idempotent(self):
        network = NetworkAggregator()
        for event in (start(), response(size=20), finish(size=500)):
            apply(network, event)
        before = snapshot(network.get("r1"))

        for event in (start(), finish(size=500)):
            apply(network, event)

        assert snapshot(network.get("r1")) == before
        assert len(network) == 1


@pytest.mark.unit
class TestNetworkSnapshot:
    def test_entities_in_first_seen_order_with_category_filter(self):
        network = NetworkAggregator()
        network.on_request_will_be_sent(start("a", category="Document"))
        network.on_response_received(response("b"))
        network.on_request_will_be_sent(start("c", category="XHR"))
        network.on_request_will_be_sent(start("b", category="XHR"))

        assert [e.id for e in network.entities()] == ["a", "b", "c"]
        assert [e.id for e in network.entities(category="XHR")] == ["b", "c"]

    def test_to_dict_omits_missing_fields(self):
        network = NetworkAggregator()
        entity = network.on_request_will_be_sent(start(category=None, timestamp=2.0))

        assert entity.to_dict() == {"url": "https://x", "method": "GET", "timestamp": 2000.0}
