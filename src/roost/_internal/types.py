"""Shared type aliases used across roost modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler: user-defined function with variable signature
Handler: TypeAlias = Callable[..., Any]

# Status/named handler: receives the exchange (optionally the error)
ErrorHandler: TypeAlias = Callable[..., Any]
