"""Unit tests for the debounced query controller."""

import asyncio
import logging

from prometheus_client import REGISTRY
import pytest

from guide_search.config import Settings
from guide_search.controller import QueryController
from guide_search.domain.model import ControllerState


def _stale_count() -> float:
    return REGISTRY.get_sample_value("guide_search_queries_total", {"outcome": "stale"}) or 0.0


class RecordingController(QueryController):
    """Counts evaluations so debounce behaviour can be asserted."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.evaluated: list[str] = []

    async def evaluate(self, query):
        self.evaluated.append(query.text)
        return await super().evaluate(query)


class StallingController(QueryController):
    """Holds the computation for one query text until released."""

    def __init__(self, *args, stall_on: str, **kwargs):
        super().__init__(*args, **kwargs)
        self.stall_on = stall_on
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def evaluate(self, query):
        if query.text == self.stall_on:
            self.started.set()
            await self.release.wait()
        return await super().evaluate(query)


@pytest.fixture
def fast_settings() -> Settings:
    return Settings(debounce_ms=20)  # type: ignore[call-arg]


@pytest.fixture
def slow_settings() -> Settings:
    return Settings(debounce_ms=1000)  # type: ignore[call-arg]


class TestInitialState:
    def test_starts_idle_with_full_catalog(self, sample_engine):
        controller = QueryController(sample_engine)

        assert controller.state is ControllerState.IDLE
        assert controller.generation == 0
        assert controller.snapshot.count == 5
        assert not controller.snapshot.ranked
        assert controller.categories == sample_engine.categories

    def test_requires_running_loop(self, sample_engine):
        controller = QueryController(sample_engine)

        with pytest.raises(RuntimeError):
            controller.set_query_text("walks")


class TestDebounce:
    @pytest.mark.asyncio
    async def test_keystrokes_are_coalesced(self, sample_engine, fast_settings):
        controller = RecordingController(sample_engine, fast_settings)

        for text in ("w", "wa", "wal", "walk"):
            controller.set_query_text(text)
        assert controller.state is ControllerState.DEBOUNCING

        await controller.wait_settled()

        assert controller.evaluated == ["walk"]
        assert controller.state is ControllerState.SETTLED
        assert controller.snapshot.query == "walk"
        assert controller.snapshot.records[0].slug == "/walks"
        await controller.aclose()

    @pytest.mark.asyncio
    async def test_every_input_bumps_generation(self, sample_engine, fast_settings):
        controller = QueryController(sample_engine, fast_settings)

        controller.set_query_text("w")
        controller.set_query_text("wa")
        controller.set_active_category("Outdoors")

        assert controller.generation == 3
        await controller.wait_settled()
        assert controller.snapshot.generation == 3
        await controller.aclose()

    @pytest.mark.asyncio
    async def test_blank_text_skips_debounce(self, sample_engine, slow_settings):
        controller = QueryController(sample_engine, slow_settings)

        controller.set_query_text("   ")
        await asyncio.wait_for(controller.wait_settled(), timeout=0.5)

        assert controller.state is ControllerState.IDLE
        assert controller.snapshot.count == 5
        await controller.aclose()


class TestCancellation:
    @pytest.mark.asyncio
    async def test_stale_result_never_overwrites_newer(self, sample_engine, fast_settings):
        controller = StallingController(sample_engine, fast_settings, stall_on="walks")
        published = []
        parking_seen = asyncio.Event()

        def on_snapshot(snapshot):
            published.append(snapshot.query)
            if snapshot.query == "parking":
                parking_seen.set()

        controller.subscribe(on_snapshot)
        stale_before = _stale_count()

        controller.set_query_text("walks")
        await asyncio.wait_for(controller.started.wait(), timeout=1)
        assert controller.state is ControllerState.COMPUTING

        controller.set_query_text("parking")
        await asyncio.wait_for(parking_seen.wait(), timeout=1)
        controller.release.set()
        await controller.wait_settled()

        assert published == ["", "parking"]
        assert controller.snapshot.query == "parking"
        assert [r.slug for r in controller.snapshot.records] == ["/parking"]
        assert _stale_count() == stale_before + 1
        await controller.aclose()


class TestCategoryAndClear:
    @pytest.mark.asyncio
    async def test_category_change_is_immediate(self, sample_engine, slow_settings):
        controller = QueryController(sample_engine, slow_settings)

        controller.set_active_category("Outdoors")
        await asyncio.wait_for(controller.wait_settled(), timeout=0.5)

        assert controller.snapshot.active_category == "Outdoors"
        assert [r.slug for r in controller.snapshot.records] == ["/walks"]
        assert controller.state is ControllerState.IDLE
        await controller.aclose()

    @pytest.mark.asyncio
    async def test_category_change_flushes_pending_text(self, sample_engine, slow_settings):
        controller = QueryController(sample_engine, slow_settings)

        controller.set_query_text("sal")
        controller.set_active_category("Attractions")
        await asyncio.wait_for(controller.wait_settled(), timeout=0.5)

        assert controller.snapshot.query == "sal"
        assert [r.slug for r in controller.snapshot.records] == ["/salts-mill"]
        assert controller.state is ControllerState.SETTLED
        await controller.aclose()

    @pytest.mark.asyncio
    async def test_unknown_category_is_empty(self, sample_engine, fast_settings):
        controller = QueryController(sample_engine, fast_settings)

        controller.set_active_category("Nightlife")
        await controller.wait_settled()

        assert controller.snapshot.is_empty
        await controller.aclose()

    @pytest.mark.asyncio
    async def test_clear_resets_text_and_category(self, sample_engine, fast_settings):
        controller = QueryController(sample_engine, fast_settings)
        controller.set_active_category("History")
        controller.set_query_text("unesco")
        await controller.wait_settled()
        assert controller.snapshot.count == 1

        controller.clear()
        await controller.wait_settled()

        assert controller.query_state.text == ""
        assert controller.query_state.active_category == "all"
        assert controller.state is ControllerState.IDLE
        assert controller.snapshot.count == 5
        assert not controller.snapshot.is_filtered
        await controller.aclose()


class TestSubscribers:
    @pytest.mark.asyncio
    async def test_subscribe_delivers_current_snapshot(self, sample_engine, fast_settings):
        controller = QueryController(sample_engine, fast_settings)
        received = []

        unsubscribe = controller.subscribe(received.append)
        assert len(received) == 1
        assert received[0] is controller.snapshot

        unsubscribe()
        controller.set_query_text("mill")
        await controller.wait_settled()

        assert len(received) == 1
        await controller.aclose()

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_block_others(self, sample_engine, fast_settings, caplog):
        controller = QueryController(sample_engine, fast_settings)
        received = []

        def broken(snapshot):
            raise RuntimeError("render failed")

        with caplog.at_level(logging.ERROR, logger="guide_search.controller"):
            controller.subscribe(broken)
            controller.subscribe(received.append)
            controller.set_query_text("mill")
            await controller.wait_settled()

        assert [s.query for s in received] == ["", "mill"]
        assert sum("Search subscriber failed" in r.getMessage() for r in caplog.records) == 2
        await controller.aclose()


class TestShutdown:
    @pytest.mark.asyncio
    async def test_aclose_cancels_pending_work(self, sample_engine, slow_settings):
        controller = RecordingController(sample_engine, slow_settings)
        received = []
        controller.subscribe(received.append)

        controller.set_query_text("walks")
        await controller.aclose()
        await controller.wait_settled()

        assert controller.evaluated == []
        assert controller.snapshot.query == ""
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_wait_settled_propagates_errors(self, sample_engine, fast_settings):
        class BrokenController(QueryController):
            async def evaluate(self, query):
                raise ValueError("index unavailable")

        controller = BrokenController(sample_engine, fast_settings)
        controller.set_query_text("walks")

        with pytest.raises(ValueError, match="index unavailable"):
            await controller.wait_settled()
        await controller.aclose()

    @pytest.mark.asyncio
    async def test_failure_before_wait_is_kept_and_state_recovers(self, sample_engine, fast_settings, caplog):
        failed = asyncio.Event()

        class BrokenController(QueryController):
            async def evaluate(self, query):
                failed.set()
                raise ValueError("index unavailable")

        controller = BrokenController(sample_engine, fast_settings)
        with caplog.at_level(logging.ERROR, logger="guide_search.controller"):
            controller.set_query_text("walks")
            await asyncio.wait_for(failed.wait(), timeout=1)
            for _ in range(3):
                await asyncio.sleep(0)

        assert controller.state is ControllerState.IDLE
        assert any("Search computation failed" in r.getMessage() for r in caplog.records)

        with pytest.raises(ValueError, match="index unavailable"):
            await controller.wait_settled()
        await controller.wait_settled()
        await controller.aclose()
