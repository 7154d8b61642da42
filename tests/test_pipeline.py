"""Tests for roost.pipeline: chain assembly, hook injection, halting."""

import pytest

from roost.config import AppConfig
from roost.exchange import Halt
from roost.http.response import Response
from roost.pipeline import (
    MiddlewareRegistry,
    Pipeline,
    PipelineBuilder,
    PipelineEntry,
    build_pipeline,
    unit_name,
)


def _named(name: str):
    async def unit(exchange, next):
        return await next(exchange)

    unit.__name__ = name
    return unit


class FakeUnits:
    """Stand-in for the app's built-in units."""

    def __init__(self, *, presenter: bool = False) -> None:
        self._presenter = presenter

    @property
    def has_presenter(self) -> bool:
        return self._presenter

    def method_override(self):
        return _named("method_override")

    def setup(self):
        return _named("setup")

    def static(self):
        return _named("static")

    def logging(self):
        return _named("logging")

    def reloader(self):
        return _named("reloader")

    def presentation(self):
        return _named("presentation")

    def routing(self):
        return _named("routing")

    def not_found(self):
        return _named("not_found")


class TestBuildPipeline:
    def test_default_order(self) -> None:
        pipeline = build_pipeline(AppConfig(), MiddlewareRegistry(), FakeUnits())
        assert pipeline.names == (
            "method_override",
            "setup",
            "static",
            "logging",
            "routing",
            "not_found",
        )

    def test_everything_enabled(self) -> None:
        config = AppConfig(auto_reload=True)
        pipeline = build_pipeline(config, MiddlewareRegistry(), FakeUnits(presenter=True))
        assert pipeline.names == (
            "method_override",
            "setup",
            "static",
            "logging",
            "reloader",
            "presentation",
            "routing",
            "not_found",
        )

    def test_minimal(self) -> None:
        config = AppConfig(static=False, log=False, ignore_routes=True)
        pipeline = build_pipeline(config, MiddlewareRegistry(), FakeUnits())
        assert pipeline.names == ("method_override", "setup", "not_found")

    def test_project_units_follow_setup(self) -> None:
        project = PipelineBuilder()
        project.use(_named("session"))
        project.use(_named("csrf"), name="csrf_guard")

        config = AppConfig(static=False, log=False)
        pipeline = build_pipeline(config, MiddlewareRegistry(), FakeUnits(), project=project.entries)

        assert pipeline.names == (
            "method_override",
            "setup",
            "session",
            "csrf_guard",
            "routing",
            "not_found",
        )

    def test_routing_hooks(self) -> None:
        registry = MiddlewareRegistry()
        registry.before("routing", _named("A"))
        registry.after("routing", _named("B"))

        config = AppConfig(static=False, log=False)
        pipeline = build_pipeline(config, registry, FakeUnits())

        names = pipeline.names
        index = names.index("routing")
        assert names[index - 1 : index + 2] == ("A", "routing", "B")

    def test_hooks_keep_registration_order(self) -> None:
        registry = MiddlewareRegistry()
        registry.before("presentation", [_named("p1"), _named("p2")])
        registry.before("presentation", _named("p3"))

        config = AppConfig(static=False, log=False)
        pipeline = build_pipeline(config, registry, FakeUnits(presenter=True))

        assert pipeline.names[2:6] == ("p1", "p2", "p3", "presentation")

    def test_hooks_for_absent_step_ignored(self) -> None:
        registry = MiddlewareRegistry()
        registry.before("presentation", _named("never"))
        registry.after("routing", _named("never_either"))
        registry.before("nonexistent", _named("nope"))

        config = AppConfig(static=False, log=False, ignore_routes=True)
        pipeline = build_pipeline(config, registry, FakeUnits())

        assert pipeline.names == ("method_override", "setup", "not_found")

    def test_deterministic(self) -> None:
        registry = MiddlewareRegistry()
        registry.after("routing", _named("audit"))
        config = AppConfig(auto_reload=True)

        first = build_pipeline(config, registry, FakeUnits(presenter=True))
        second = build_pipeline(config, registry, FakeUnits(presenter=True))

        assert first.names == second.names
        assert len(first) == 9


class TestMiddlewareRegistry:
    def test_unknown_step_is_empty(self) -> None:
        registry = MiddlewareRegistry()
        assert registry.hooks("routing", "before") == ()
        assert registry.hooks("routing", "sideways") == ()

    def test_frozen_rejects_hooks(self) -> None:
        registry = MiddlewareRegistry()
        registry.freeze()

        with pytest.raises(RuntimeError, match="after the app has been prepared"):
            registry.before("routing", _named("late"))


class TestUnitName:
    def test_name_attribute_wins(self) -> None:
        class Named:
            name = "custom"

        assert unit_name(Named()) == "custom"

    def test_function_name(self) -> None:
        assert unit_name(_named("fn")) == "fn"

    def test_class_name_fallback(self) -> None:
        class Plain:
            pass

        assert unit_name(Plain()) == "Plain"


class TestPipelineExecution:
    async def test_runs_outermost_first(self, make_exchange) -> None:
        calls: list[str] = []

        def recorder(label: str):
            async def unit(exchange, next):
                calls.append(f"{label}:in")
                outcome = await next(exchange)
                calls.append(f"{label}:out")
                return outcome

            return unit

        pipeline = Pipeline(
            [PipelineEntry("a", recorder("a")), PipelineEntry("b", recorder("b"))]
        )
        await pipeline(make_exchange())

        assert calls == ["a:in", "b:in", "b:out", "a:out"]

    async def test_halt_short_circuits(self, make_exchange) -> None:
        calls: list[str] = []
        seen: list[object] = []

        async def outer(exchange, next):
            outcome = await next(exchange)
            seen.append(outcome)
            calls.append("outer")
            return outcome

        async def halter(exchange, next):
            calls.append("halter")
            exchange.response = Response("x", status=200)
            return exchange.halt()

        async def inner(exchange, next):
            calls.append("inner")
            return await next(exchange)

        exchange = make_exchange()
        pipeline = Pipeline(
            [
                PipelineEntry("outer", outer),
                PipelineEntry("halter", halter),
                PipelineEntry("inner", inner),
            ]
        )
        outcome = await pipeline(exchange)

        assert calls == ["halter", "outer"]
        assert isinstance(outcome, Halt)
        assert seen == [outcome]
        assert outcome is exchange.halt_signal
        assert (outcome.response.status, outcome.response.headers, outcome.response.text) == (
            200,
            (),
            "x",
        )

    async def test_outer_unit_cannot_replace_halted_response(self, make_exchange) -> None:
        async def outer(exchange, next):
            await next(exchange)
            return Response("replaced")

        async def halter(exchange, next):
            exchange.response = Response("kept")
            return exchange.halt()

        exchange = make_exchange()
        pipeline = Pipeline([PipelineEntry("outer", outer), PipelineEntry("halter", halter)])
        outcome = await pipeline(exchange)

        assert isinstance(outcome, Halt)
        assert exchange.finalize().text == "kept"

    async def test_bare_halt_value_halts(self, make_exchange) -> None:
        async def unit(exchange, next):
            return Halt(Response("early", status=202))

        async def never(exchange, next):
            raise AssertionError("should not run")

        exchange = make_exchange()
        pipeline = Pipeline([PipelineEntry("unit", unit), PipelineEntry("never", never)])
        await pipeline(exchange)

        assert exchange.halted
        assert exchange.finalize().status == 202

    async def test_response_outcome_replaces_response(self, make_exchange) -> None:
        async def unit(exchange, next):
            return Response("from unit", status=201)

        exchange = make_exchange()
        outcome = await Pipeline([PipelineEntry("unit", unit)])(exchange)

        assert outcome is exchange.response
        assert exchange.response.status == 201
        assert not exchange.halted

    async def test_empty_pipeline_returns_current_response(self, make_exchange) -> None:
        exchange = make_exchange()
        outcome = await Pipeline([])(exchange)
        assert outcome is exchange.response

    def test_repr(self) -> None:
        pipeline = Pipeline([PipelineEntry("a", _named("a")), PipelineEntry("b", _named("b"))])
        assert repr(pipeline) == "Pipeline(a -> b)"
