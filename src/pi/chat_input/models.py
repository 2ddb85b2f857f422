"""Model entries for the selector: proxy-config driven dynamic models and
a TTL cache of the handles the server says are available."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable

logger = logging.getLogger(__name__)

PROXY_CONFIG_FILE = "proxy_config.json"
PROJECT_ROOT_ENV = "PI_PROJECT_ROOT"
PROXY_PROVIDER_PREFIX = "openai-proxy"

DEFAULT_CACHE_TTL = 300.0

_UNCONFIGURED_SORT_BASE = 9999


@dataclass
class UiModel:
    id: str
    handle: str
    label: str
    description: str
    is_default: bool = False
    is_featured: bool = False
    update_args: dict[str, Any] = field(default_factory=dict)


# --- Proxy config ---


def load_proxy_config(project_root: str | None = None) -> dict[str, Any] | None:
    """Read ``proxy_config.json`` from the project root.

    The root defaults to ``$PI_PROJECT_ROOT`` and then the working directory.
    Returns ``None`` when the file is missing or unreadable.
    """
    root = project_root or os.environ.get(PROJECT_ROOT_ENV) or os.getcwd()
    path = Path(root) / PROXY_CONFIG_FILE
    if not path.exists():
        return None
    try:
        config = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.warning("Failed to load %s", path, exc_info=True)
        return None
    if not isinstance(config, dict):
        logger.warning("Ignoring %s: expected a JSON object", path)
        return None
    return config


def _flatten_config_models(
    config: dict[str, Any] | None,
) -> tuple[dict[str, dict[str, Any]], dict[str, int]]:
    models: dict[str, dict[str, Any]] = {}
    sort_order: dict[str, int] = {}
    providers = (config or {}).get("provider") or {}
    if not isinstance(providers, dict):
        return models, sort_order
    for provider in providers.values():
        provider_models = provider.get("models") if isinstance(provider, dict) else None
        if not isinstance(provider_models, dict):
            continue
        for index, (model_key, model_conf) in enumerate(provider_models.items()):
            models[model_key] = model_conf if isinstance(model_conf, dict) else {}
            sort_order[model_key] = index
    return models, sort_order


def _section(conf: dict[str, Any], key: str) -> dict[str, Any]:
    value = conf.get(key)
    return value if isinstance(value, dict) else {}


def _update_args_from_config(conf: dict[str, Any]) -> dict[str, Any]:
    """Map a proxy model entry to agent update args; ill-typed sections are skipped."""
    update_args: dict[str, Any] = {}
    limit = _section(conf, "limit")
    if limit.get("context"):
        update_args["context_window"] = limit["context"]
    if limit.get("output"):
        update_args["max_output_tokens"] = limit["output"]
    if conf.get("reasoning"):
        update_args["enable_reasoner"] = True
    thinking = _section(_section(conf, "options"), "thinking")
    if thinking.get("budgetTokens"):
        update_args["max_reasoning_tokens"] = thinking["budgetTokens"]
    return update_args


def get_dynamic_models(
    available_handles: Iterable[str],
    known_handles: set[str],
    config: dict[str, Any] | None = None,
) -> list[UiModel]:
    """Build entries for available handles that are not in the built-in list.

    Handles look like ``<provider>/<model>``. Models named in the proxy
    config get its label and limits and sort first, in config order; the
    rest follow in the order they were reported.
    """
    config_models, config_order = _flatten_config_models(config)
    entries: list[tuple[int, UiModel]] = []

    for handle in available_handles:
        if handle in known_handles:
            continue
        provider, sep, model_key = handle.partition("/")
        if not sep:
            model_key = handle

        if provider == PROXY_PROVIDER_PREFIX:
            description = "Model via ProxyPal"
        else:
            description = f"Dynamic model from {provider}"

        label = model_key
        update_args: dict[str, Any] = {}
        conf = config_models.get(model_key)
        if conf is not None:
            name = conf.get("name")
            label = name if isinstance(name, str) and name else model_key
            update_args = _update_args_from_config(conf)
            description += " (Configured)"
            sort_index = config_order[model_key]
        else:
            sort_index = _UNCONFIGURED_SORT_BASE + len(entries)

        entries.append(
            (
                sort_index,
                UiModel(
                    id=handle,
                    handle=handle,
                    label=label,
                    description=description,
                    update_args=update_args,
                ),
            )
        )

    entries.sort(key=lambda entry: entry[0])
    return [model for _, model in entries]


# --- Available handles cache ---


@dataclass
class CacheInfo:
    is_fresh: bool
    age: float | None


class AvailableModelsCache:
    """Caches the result of *fetch* for *ttl* seconds.

    Concurrent callers share one in-flight fetch.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[Iterable[str]]],
        *,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch = fetch
        self._ttl = ttl
        self._clock = clock
        self._handles: tuple[str, ...] | None = None
        self._fetched_at: float | None = None
        self._inflight: asyncio.Future[tuple[str, ...]] | None = None

    def cache_info(self) -> CacheInfo:
        if self._fetched_at is None:
            return CacheInfo(is_fresh=False, age=None)
        age = self._clock() - self._fetched_at
        return CacheInfo(is_fresh=age < self._ttl, age=age)

    def clear(self) -> None:
        self._handles = None
        self._fetched_at = None

    async def get_handles(self, *, force_refresh: bool = False) -> tuple[str, ...]:
        if not force_refresh and self._handles is not None and self.cache_info().is_fresh:
            return self._handles

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._load())
        return await asyncio.shield(self._inflight)

    async def _load(self) -> tuple[str, ...]:
        try:
            handles = tuple(dict.fromkeys(await self._fetch()))
        finally:
            self._inflight = None
        self._handles = handles
        self._fetched_at = self._clock()
        return handles
