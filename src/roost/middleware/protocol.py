"""Unit and Next type aliases.

A unit is any callable matching::

    async def my_unit(exchange: Exchange, next: Next) -> Outcome: ...

The framework checks the shape, not the lineage. A unit either calls
``next`` and returns (possibly adjusting) what comes back, or returns a
response without calling ``next``, or halts::

    async def maintenance(exchange: Exchange, next: Next) -> Outcome:
        if MAINTENANCE:
            exchange.response = Response("Back soon", status=503)
            return exchange.halt()
        return await next(exchange)

When the inner chain halted, ``next`` returns that ``Halt``; units should
hand it back unchanged.
"""

from roost.pipeline import Next, Unit

__all__ = ["Next", "Unit"]
