"""Path parameter converters for route segments like ``{id:int}``.

Each converter is ``(regex_pattern, python_type)``. The pattern decides
whether a segment matches; handlers convert the captured string through
their parameter annotations.
"""

CONVERTERS: dict[str, tuple[str, type]] = {
    "str": (r"[^/]+", str),
    "int": (r"\d+", int),
    "float": (r"\d+(?:\.\d+)?", float),
    "path": (r".+", str),
}
