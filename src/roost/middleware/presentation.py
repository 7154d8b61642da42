"""Presentation unit.

Sits in front of routing. Before the inner chain runs it looks up a view
for the request path (``/about`` -> ``about.html``), so pages without a
route still render. After the inner chain returns it renders:

- the view a handler asked for with ``exchange.present(...)``, or
- the inferred view, unless a route already produced a body.

Halted exchanges are passed back untouched.
"""

from roost.exchange import Exchange, Outcome
from roost.pipeline import Next
from roost.presenter import Presenter


class Presentation:
    """Render views through a ``Presenter``."""

    __slots__ = ("_presenter",)
    name = "presentation"

    def __init__(self, presenter: Presenter) -> None:
        self._presenter = presenter

    async def __call__(self, exchange: Exchange, next: Next) -> Outcome:
        request = exchange.request
        inferred = None
        if request.method in ("GET", "HEAD"):
            inferred = self._presenter.view_for(request.path)
            if inferred is not None:
                exchange.present(inferred)

        outcome = await next(exchange)
        if exchange.halted:
            return outcome

        view = exchange.view
        if view is None:
            return exchange.response
        if view == inferred and exchange.routed and exchange.response.body:
            return exchange.response

        context = {
            **exchange.view_context,
            "request": exchange.request,
            "exchange": exchange,
        }
        html = self._presenter.render(view, context)
        exchange.logger.debug("Presented %s", view)
        return exchange.response.with_body(html)
