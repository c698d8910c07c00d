"""
holderbus — Dispatch Tests
============================
Covers:
- Interest filtering
- Short-circuit on False
- Holder error isolation
- The orders scenario (Logger + Billing)
- PostEvent fulfillment bookkeeping
- post_runnable ordering relative to events
- Asynchronous dispatch through a single worker
"""

import threading

from holderbus.bus import EventBus
from holderbus.dispatcher import dispatch
from holderbus.envelope import PostEvent
from holderbus.holders import BaseHolder, handles
from holderbus.strategies import QueuedStrategy, SingleWorkerStrategy


class Claimer(BaseHolder):
    def __init__(self, holder_type):
        super().__init__()
        self.holder_type = holder_type

    def get_type(self):
        return self.holder_type

    @handles("job")
    def claim(self, event_name, event):
        event.increase_counter()


# ══════════════════════════════════════════════════════════════
# FILTERING
# ══════════════════════════════════════════════════════════════

class TestFiltering:
    def test_filtered_holder_gets_only_its_events(
        self, bus, make_holder, journal
    ):
        bus.register(make_holder("A", interests=["a"]))
        bus.post("a")
        bus.post("b")
        assert journal.event_names("A") == ["a"]

    def test_unfiltered_holder_gets_everything(self, bus, make_holder, journal):
        bus.register(make_holder("All"))
        bus.register(make_holder("A", interests=["a"]))
        bus.post("a")
        bus.post("b")
        assert journal.event_names("All") == ["a", "b"]

    def test_empty_interests_means_everything(self, bus, make_holder, journal):
        bus.register(make_holder("All", interests=[]))
        bus.post("x")
        assert journal.event_names("All") == ["x"]

    def test_orders_scenario(self, directory, make_holder, journal):
        orders = directory.create("orders-scenario")
        orders.register(make_holder("Logger"))
        orders.register(make_holder("Billing", interests=["charge"]))

        orders.post("charge", {"amount": 10})
        assert journal.received("Logger") == [("charge", {"amount": 10})]
        assert journal.received("Billing") == [("charge", {"amount": 10})]

        orders.post("ship")
        assert journal.event_names("Logger") == ["charge", "ship"]
        assert journal.event_names("Billing") == ["charge"]

    def test_dispatch_in_registration_order(self, bus, make_holder, journal):
        for name in ("H1", "H2", "H3"):
            bus.register(make_holder(name))
        bus.post("x")
        assert [entry[0] for entry in journal if len(entry) == 3] == [
            "H1", "H2", "H3"
        ]


# ══════════════════════════════════════════════════════════════
# SHORT-CIRCUIT & ERROR ISOLATION
# ══════════════════════════════════════════════════════════════

class TestShortCircuit:
    def test_false_halts_later_holders(self, bus, make_holder, journal):
        bus.register(make_holder("H1", interests=["x"], halt_on=["x"]))
        bus.register(make_holder("H2", interests=["x"]))
        bus.post("x")
        assert journal.event_names("H1") == ["x"]
        assert journal.event_names("H2") == []

    def test_halt_applies_to_one_post_only(self, bus, make_holder, journal):
        h1 = make_holder("H1", halt_on=["x"])
        bus.register(h1)
        bus.register(make_holder("H2"))
        bus.post("x")
        h1.halt_on.clear()
        bus.post("x")
        assert journal.event_names("H2") == ["x"]

    def test_halt_does_not_affect_earlier_holders(
        self, bus, make_holder, journal
    ):
        bus.register(make_holder("H0"))
        bus.register(make_holder("H1", halt_on=["x"]))
        bus.post("x")
        assert journal.event_names("H0") == ["x"]


class TestErrorIsolation:
    def test_failing_holder_does_not_block_others(
        self, bus, make_holder, journal, caplog
    ):
        bus.register(make_holder("H1", interests=["x"], fail_on=["x"]))
        bus.register(make_holder("H2", interests=["x"]))
        bus.post("x", "payload-42")
        assert journal.event_names("H2") == ["x"]
        assert "H1 failed on x" in caplog.text

    def test_failure_logged_with_context(self, bus, make_holder, caplog):
        bus.register(make_holder("H1", fail_on=["x"]))
        bus.post("x", "payload-42")
        record = next(
            r for r in caplog.records if r.name == "holderbus.dispatch"
        )
        message = record.getMessage()
        for fragment in ("orders", "H1", "'x'", "payload-42"):
            assert fragment in message
        assert record.exc_info is not None

    def test_bus_usable_after_failure(self, bus, make_holder, journal):
        bus.register(make_holder("H1", fail_on=["x"]))
        bus.post("x")
        bus.post("y")
        assert journal.event_names("H1") == ["x", "y"]


class TestDispatchResult:
    def test_counts(self, make_holder):
        holders = [
            ("A", make_holder("A", interests=["a"])),
            ("B", make_holder("B", fail_on=["x"])),
            ("C", make_holder("C", halt_on=["x"])),
            ("D", make_holder("D")),
        ]
        result = dispatch(
            "direct", "x", None, holders, {"x": frozenset()}, {"A"}
        )
        assert result.skipped == 1
        assert result.failed == 1
        assert result.notified == 1
        assert result.halted_by == "C"
        assert result.halted
        assert result.failures[0]["holder"] == "B"


# ══════════════════════════════════════════════════════════════
# POSTING VARIANTS
# ══════════════════════════════════════════════════════════════

class TestPostVariants:
    def test_invalid_event_name_rejected(self, bus, make_holder, journal):
        bus.register(make_holder("H1"))
        assert not bus.post("")
        assert not bus.post(None)
        assert journal.received("H1") == []

    def test_post_event_passes_envelope(self, bus):
        bus.register(Claimer("First"))
        bus.register(Claimer("Second"))
        event = PostEvent("job", max_fulfillment=2)
        assert bus.post_event(event)
        assert event.fulfillment == 2
        assert event.fulfilled

    def test_fulfillment_does_not_halt_dispatch(self, bus, make_holder, journal):
        bus.register(Claimer("First"))
        bus.register(make_holder("Watcher"))
        event = PostEvent("job")
        bus.post_event(event)
        assert event.fulfilled
        assert journal.received("Watcher") == [("job", event)]

    def test_post_runnable(self, bus):
        ran = []
        assert bus.post_runnable(lambda: ran.append("ran"))
        assert ran == ["ran"]

    def test_post_runnable_rejects_non_callable(self, bus):
        assert not bus.post_runnable("not callable")

    def test_runnable_failure_is_logged(self, bus, caplog):
        def boom():
            raise RuntimeError("runnable boom")

        assert bus.post_runnable(boom)
        assert "runnable boom" in caplog.text
        assert "orders" in caplog.text

    def test_runnable_ordered_with_events(self, make_holder, journal):
        strategy = QueuedStrategy()
        bus = EventBus("queued", strategy)
        bus.register(make_holder("H1"))
        bus.post("first")
        bus.post_runnable(lambda: journal.append(("runnable", "ran")))
        bus.post("second")
        strategy.run_pending()
        assert journal == [
            ("H1", "start"),
            ("H1", "first", None),
            ("runnable", "ran"),
            ("H1", "second", None),
        ]

    def test_holder_may_post_from_on_event(self, bus, journal):
        class Relay(BaseHolder):
            @handles("ping")
            def relay(self, event_name, payload):
                bus.post("pong")

            @handles("pong")
            def pong(self, event_name, payload):
                journal.append(("Relay", "pong", None))

        bus.register(Relay())
        bus.post("ping")
        assert journal.event_names("Relay") == ["pong"]

    def test_holder_may_unregister_itself(self, bus, make_holder, journal):
        class OneShot(BaseHolder):
            @handles("once")
            def once(self, event_name, payload):
                bus.unregister(self)

        bus.register(OneShot())
        bus.register(make_holder("After"))
        bus.post("once")
        bus.post("once")
        assert not bus.has_holder("OneShot")
        assert journal.event_names("After") == ["once", "once"]


# ══════════════════════════════════════════════════════════════
# ASYNCHRONOUS DISPATCH
# ══════════════════════════════════════════════════════════════

class TestSingleWorkerDispatch:
    def test_start_precedes_posts(self, make_holder, journal):
        strategy = SingleWorkerStrategy()
        try:
            bus = EventBus("async", strategy)
            bus.register(make_holder("H1"))
            for i in range(10):
                bus.post("tick", i)
            assert strategy.join(timeout=5)
            bus.unregister("H1")
            assert strategy.join(timeout=5)
        finally:
            strategy.shutdown()

        assert journal[0] == ("H1", "start")
        assert journal.received("H1") == [("tick", i) for i in range(10)]
        assert journal[-1] == ("H1", "finish")

    def test_dispatch_runs_on_worker_thread(self):
        strategy = SingleWorkerStrategy()
        delivered = threading.Event()
        threads = []

        class Probe(BaseHolder):
            @handles("probe")
            def probe(self, event_name, payload):
                threads.append(threading.get_ident())
                delivered.set()

        try:
            bus = EventBus("async", strategy)
            bus.register(Probe())
            bus.post("probe")
            assert delivered.wait(timeout=5)
        finally:
            strategy.shutdown()

        assert threads[0] != threading.get_ident()

    def test_strategy_swap_affects_later_posts_only(self, make_holder, journal):
        queued = QueuedStrategy()
        bus = EventBus("swap", queued)
        bus.register(make_holder("H1"))
        bus.post("before")
        bus.set_execution_strategy(QueuedStrategy())
        bus.post("after")
        assert queued.pending() == 2
        queued.run_pending()
        assert journal.event_names("H1") == ["before"]
        bus.execution_strategy.run_pending()
        assert journal.event_names("H1") == ["before", "after"]
