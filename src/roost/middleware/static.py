"""Static file serving unit.

Serves files from a directory for matching URL prefixes. With the default
root prefix every GET/HEAD path is a candidate; paths without a file fall
through to the next unit.
"""

import mimetypes
from pathlib import Path

from roost.exchange import Exchange, Outcome
from roost.http.response import Response
from roost.pipeline import Next


class StaticFiles:
    """Unit that serves static files from a directory.

    Security: resolves symlinks and verifies the final path is inside the
    configured directory to prevent path traversal.

    Usage::

        StaticFiles(directory="./public")                  # root-level
        StaticFiles(directory="./assets", prefix="/assets")
    """

    __slots__ = ("_cache_control", "_directory", "_index", "_prefix")
    name = "static"

    def __init__(
        self,
        directory: str | Path,
        prefix: str = "/",
        *,
        index: str = "index.html",
        cache_control: str = "public, max-age=3600",
    ) -> None:
        self._directory = Path(directory).resolve()
        self._index = index
        self._cache_control = cache_control

        # Normalize prefix: leading slash, no trailing one; root becomes "".
        stripped = "/" + prefix.strip("/")
        self._prefix = stripped if stripped != "/" else ""

    async def __call__(self, exchange: Exchange, next: Next) -> Outcome:
        request = exchange.request
        if request.method not in ("GET", "HEAD"):
            return await next(exchange)

        path = request.path
        if self._prefix:
            if not path.startswith(self._prefix + "/") and path != self._prefix:
                return await next(exchange)
            relative = path[len(self._prefix) :].lstrip("/")
        else:
            relative = path.lstrip("/")

        file_path = (self._directory / relative).resolve() if relative else self._directory
        if not file_path.is_relative_to(self._directory):
            return Response(body="Forbidden", status=403)

        if file_path.is_dir():
            index_path = file_path / self._index
            if not index_path.is_file():
                return await next(exchange)
            if relative and not path.endswith("/"):
                return Response(body="", status=301).with_header("Location", path + "/")
            file_path = index_path

        if not file_path.is_file():
            return await next(exchange)

        return self._serve_file(file_path)

    def _serve_file(self, file_path: Path) -> Response:
        content_type, _ = mimetypes.guess_type(str(file_path))
        body = file_path.read_bytes()
        return (
            Response(body=body, content_type=content_type or "application/octet-stream")
            .with_header("Content-Length", str(len(body)))
            .with_header("Cache-Control", self._cache_control)
        )
