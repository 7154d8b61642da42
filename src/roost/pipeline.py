"""Pipeline assembly and execution.

The pipeline is the ordered chain of units every request passes through.
It is assembled once, when the app is prepared, from the resolved config
and the middleware registry::

    method_override
    setup
    <project middleware block>
    static                      (config.static)
    logging                     (config.log)
    reloader                    (config.auto_reload)
    before("presentation") ... presentation ... after("presentation")
                                (a presenter is configured)
    before("routing") ... routing ... after("routing")
                                (unless config.ignore_routes)
    not_found

Only the presentation and routing steps take before/after hooks. Hooks
registered for a step that is not part of the chain are ignored.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol, TypeAlias

from roost.config import AppConfig
from roost.exchange import Exchange, Halt, Outcome
from roost.http.response import Response

# The next unit in the chain
Next: TypeAlias = Callable[[Exchange], Awaitable[Outcome]]

# A pipeline unit: ``async def unit(exchange, next) -> Outcome``
Unit: TypeAlias = Callable[[Exchange, Next], Awaitable[Outcome | None]]


def unit_name(unit: object) -> str:
    """A readable name for a unit, used in ``Pipeline.names``."""
    name = getattr(unit, "name", None)
    if isinstance(name, str):
        return name
    func_name = getattr(unit, "__name__", None)
    if isinstance(func_name, str):
        return func_name
    return type(unit).__name__


@dataclass(frozen=True, slots=True)
class MiddlewareStep:
    """Hooks registered around one named step."""

    name: str
    before: tuple[Unit, ...] = ()
    after: tuple[Unit, ...] = ()


class MiddlewareRegistry:
    """Before/after hooks per named step.

    Mutable until ``freeze()``; the app freezes it when it is prepared.
    Looking up a step or slot that was never registered returns ``()``.
    """

    __slots__ = ("_frozen", "_steps")

    def __init__(self) -> None:
        self._steps: dict[str, MiddlewareStep] = {}
        self._frozen = False

    def before(self, step: str, units: Unit | Iterable[Unit]) -> None:
        """Run *units* (in order) right before *step*."""
        self._check_not_frozen()
        current = self._steps.get(step, MiddlewareStep(step))
        self._steps[step] = MiddlewareStep(step, (*current.before, *_as_units(units)), current.after)

    def after(self, step: str, units: Unit | Iterable[Unit]) -> None:
        """Run *units* (in order) right after *step*."""
        self._check_not_frozen()
        current = self._steps.get(step, MiddlewareStep(step))
        self._steps[step] = MiddlewareStep(step, current.before, (*current.after, *_as_units(units)))

    def hooks(self, step: str, slot: str) -> tuple[Unit, ...]:
        """Units registered for *slot* (``"before"`` or ``"after"``) of *step*."""
        entry = self._steps.get(step)
        if entry is None:
            return ()
        if slot == "before":
            return entry.before
        if slot == "after":
            return entry.after
        return ()

    def freeze(self) -> None:
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot register middleware hooks after the app has been prepared. "
                "Call before()/after() before stage() or run()."
            )
            raise RuntimeError(msg)


def _as_units(units: Unit | Iterable[Unit]) -> tuple[Unit, ...]:
    if callable(units):
        return (units,)
    return tuple(units)


@dataclass(frozen=True, slots=True)
class PipelineEntry:
    """A named unit in the chain."""

    name: str
    unit: Unit


class PipelineBuilder:
    """Collects the project middleware block.

    Passed to functions registered with ``@app.middleware``::

        @app.middleware
        def extra(builder: PipelineBuilder) -> None:
            builder.use(SessionMiddleware(...))
    """

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: list[PipelineEntry] = []

    def use(self, unit: Unit, *, name: str | None = None) -> None:
        self._entries.append(PipelineEntry(name or unit_name(unit), unit))

    @property
    def entries(self) -> tuple[PipelineEntry, ...]:
        return tuple(self._entries)


class UnitSource(Protocol):
    """Supplies the built-in units the builder places in the chain."""

    @property
    def has_presenter(self) -> bool: ...

    def method_override(self) -> Unit: ...
    def setup(self) -> Unit: ...
    def static(self) -> Unit: ...
    def logging(self) -> Unit: ...
    def reloader(self) -> Unit: ...
    def presentation(self) -> Unit: ...
    def routing(self) -> Unit: ...
    def not_found(self) -> Unit: ...


def build_pipeline(
    config: AppConfig,
    registry: MiddlewareRegistry,
    units: UnitSource,
    *,
    project: Sequence[PipelineEntry] = (),
) -> Pipeline:
    """Assemble the chain for *config*. Deterministic for a given input."""
    entries: list[PipelineEntry] = [
        PipelineEntry("method_override", units.method_override()),
        PipelineEntry("setup", units.setup()),
    ]
    entries.extend(project)

    if config.static:
        entries.append(PipelineEntry("static", units.static()))
    if config.log:
        entries.append(PipelineEntry("logging", units.logging()))
    if config.auto_reload:
        entries.append(PipelineEntry("reloader", units.reloader()))

    if units.has_presenter:
        entries.extend(_hooked("presentation", units.presentation(), registry))

    if not config.ignore_routes:
        entries.extend(_hooked("routing", units.routing(), registry))

    entries.append(PipelineEntry("not_found", units.not_found()))
    return Pipeline(entries)


def _hooked(step: str, unit: Unit, registry: MiddlewareRegistry) -> list[PipelineEntry]:
    return [
        *(PipelineEntry(unit_name(u), u) for u in registry.hooks(step, "before")),
        PipelineEntry(step, unit),
        *(PipelineEntry(unit_name(u), u) for u in registry.hooks(step, "after")),
    ]


class Pipeline:
    """An immutable chain of units.

    Calling the pipeline runs the exchange through every unit from the
    outermost inward. Each unit decides whether to call ``next``. Once the
    exchange is halted no further inner unit runs, and every outer unit
    receives the same ``Halt`` back from its ``next`` call.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[PipelineEntry]) -> None:
        self._entries: tuple[PipelineEntry, ...] = tuple(entries)

    @property
    def entries(self) -> tuple[PipelineEntry, ...]:
        return self._entries

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(entry.name for entry in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Pipeline({' -> '.join(self.names)})"

    async def __call__(self, exchange: Exchange) -> Outcome:
        return await self._call_at(0, exchange)

    async def _call_at(self, index: int, exchange: Exchange) -> Outcome:
        halt = exchange.halt_signal
        if halt is not None:
            return halt
        if index >= len(self._entries):
            return exchange.response

        unit = self._entries[index].unit

        async def next_unit(ex: Exchange) -> Outcome:
            return await self._call_at(index + 1, ex)

        outcome = await unit(exchange, next_unit)

        halt = exchange.halt_signal
        if halt is not None:
            return halt
        if isinstance(outcome, Halt):
            # A unit built a Halt without going through exchange.halt()
            exchange.response = outcome.response
            return exchange.halt()
        if isinstance(outcome, Response):
            exchange.response = outcome
        return exchange.response
