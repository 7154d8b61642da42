"""Presenters render views for the presentation unit.

``Presenter`` is the contract the pipeline relies on. ``TemplatePresenter``
implements it with kida templates (``pip install roost[templates]``)::

    app.presenter(TemplatePresenter("views"))

    @app.core
    def routes(r: RouteBuilder) -> None:
        r.get("/posts", lambda exchange: exchange.present("posts.html", posts=POSTS))

With a presenter configured, ``GET /about`` renders ``views/about.html``
(or ``views/about/index.html``) even when no route is registered.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from roost.errors import ConfigurationError

if TYPE_CHECKING:
    from kida import Environment


logger = logging.getLogger("roost.presenter")


class Presenter(Protocol):
    """What the presentation unit needs from a presenter."""

    def load(self) -> None:
        """(Re)load views. Called when the app is prepared and on reload."""
        ...

    def view_for(self, path: str) -> str | None:
        """Return the view name for a request path, or None."""
        ...

    def render(self, view: str, context: dict[str, Any]) -> str: ...


class TemplatePresenter:
    """Presenter backed by a kida template directory."""

    __slots__ = ("_directory", "_env", "_extension")

    def __init__(self, directory: str | Path = "views", *, extension: str = ".html") -> None:
        self._directory = Path(directory).resolve()
        self._extension = extension
        self._env: Environment | None = None

    @property
    def directory(self) -> Path:
        return self._directory

    def load(self) -> None:
        """Create a fresh template environment, dropping cached templates."""
        self._env = _create_environment(self._directory)
        logger.debug("Loaded views from %s", self._directory)

    def view_for(self, path: str) -> str | None:
        relative = path.strip("/")
        candidates = (
            [f"index{self._extension}"]
            if not relative
            else [f"{relative}{self._extension}", f"{relative}/index{self._extension}"]
        )
        for name in candidates:
            target = (self._directory / name).resolve()
            if target.is_relative_to(self._directory) and target.is_file():
                return name
        return None

    def render(self, view: str, context: dict[str, Any]) -> str:
        if self._env is None:
            self.load()
        assert self._env is not None
        template = self._env.get_template(view)
        return template.render(context)


def _create_environment(directory: Path) -> Environment:
    """Create a kida Environment, raising a clear error if kida is missing."""
    try:
        from kida import Environment, FileSystemLoader
    except ImportError:
        msg = (
            "TemplatePresenter requires 'kida' for template rendering. "
            "Install with: pip install roost[templates]"
        )
        raise ConfigurationError(msg) from None

    return Environment(loader=FileSystemLoader(str(directory)), autoescape=True)
