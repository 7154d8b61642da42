"""Application configuration and environment resolution.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.

Named environments (``"development"``, ``"test"``, ...) are registered as
blocks that turn one ``AppConfig`` into another. ``resolve_config`` applies the
blocks for the requested environments, in order, on top of a base config.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, TypeAlias

logger = logging.getLogger("roost.config")

# A configuration block receives the current config and returns a
# replacement, or None to keep it unchanged.
ConfigBlock: TypeAlias = Callable[["AppConfig"], "AppConfig | None"]

# Cookie lifetime used when a cookie does not override its expiry (one week).
COOKIE_LIFETIME = 604800


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(port=3000, log=False, static_dir="public")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    server: str | None = None  # Preferred listener, tried before the fallbacks

    # Environments
    default_environment: str = "development"

    # Pipeline switches
    static: bool = True
    log: bool = True
    auto_reload: bool = False
    ignore_routes: bool = False

    # Static files
    static_dir: str | Path = "public"
    static_url: str = "/"

    # Presentation
    template_dir: str | Path = "views"

    # Logging
    log_level: str = "info"

    # Cookies
    cookie_path: str = "/"
    cookie_lifetime: int = COOKIE_LIFETIME

    # Dispatch
    max_reroute_depth: int = 10


def normalize_environments(
    environments: tuple[Any, ...],
    default: str,
) -> tuple[str, ...]:
    """Flatten ``stage``/``run`` arguments into a tuple of environment names.

    Accepts nothing, ``None`` as the first argument, one or more names, or
    a list of names::

        normalize_environments((), "development")               -> ("development",)
        normalize_environments((None,), "development")          -> ("development",)
        normalize_environments((["dev", "staging"],), "dev")    -> ("dev", "staging")
    """
    if not environments or environments[0] is None:
        return (default,)

    names: list[str] = []
    for env in environments:
        if isinstance(env, str):
            names.append(env)
        elif isinstance(env, Iterable):
            names.extend(str(e) for e in env)
        elif env is not None:
            names.append(str(env))
    return tuple(names) or (default,)


def apply_block(config: AppConfig, block: ConfigBlock) -> AppConfig:
    """Run one configuration block against *config*."""
    result = block(config)
    if result is None:
        return config
    if not isinstance(result, AppConfig):
        msg = (
            f"Configuration block {getattr(block, '__name__', block)!r} returned "
            f"{type(result).__name__}; expected AppConfig or None."
        )
        raise TypeError(msg)
    return result


def overrides_block(overrides: Mapping[str, Any]) -> ConfigBlock:
    """Build a configuration block from keyword overrides."""
    frozen = dict(overrides)

    def block(config: AppConfig) -> AppConfig:
        return replace(config, **frozen)

    block.__name__ = f"overrides({', '.join(sorted(frozen))})"
    return block


def resolve_config(
    base: AppConfig,
    blocks: Mapping[str, list[ConfigBlock]],
    environments: tuple[str, ...],
) -> AppConfig:
    """Apply the blocks registered for *environments*, in order.

    An app that registered no blocks at all gets *base* back unchanged.
    Otherwise an environment without registered blocks is skipped with a
    warning, so a mistyped name shows up in the log.
    """
    if not blocks:
        return base

    config = base
    for name in environments:
        env_blocks = blocks.get(name)
        if not env_blocks:
            logger.warning("No configuration registered for environment %r; skipping", name)
            continue
        for block in env_blocks:
            config = apply_block(config, block)
    return config
