"""ModelSelector component - pick a model from the handles the server offers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from pi.chat_input.events import REFRESH_SHORTCUT
from pi.chat_input.keys import KeyFlags
from pi.chat_input.models import AvailableModelsCache, UiModel, get_dynamic_models
from pi.chat_input.utils import truncate_to_width

logger = logging.getLogger(__name__)

FEATURED_FALLBACK_COUNT = 5

_NOT_LOADED = object()


class ModelSelector:
    """Filtered model list with async loading.

    Escape and the refresh shortcut are handled before the loading gate, so
    the user can always back out or retry.
    """

    def __init__(
        self,
        models: list[UiModel],
        cache: AvailableModelsCache,
        *,
        current_model: str | None = None,
        current_enable_reasoner: bool | None = None,
        proxy_config: dict[str, Any] | None = None,
    ) -> None:
        self._models = list(models)
        self._cache = cache
        self._current_model = current_model
        self._current_enable_reasoner = current_enable_reasoner
        self._proxy_config = proxy_config

        # _NOT_LOADED until the first fetch finishes; None after a failed fetch
        self._available: tuple[str, ...] | None | object = _NOT_LOADED
        self.is_loading = True
        self.refreshing = False
        self.is_cached = False
        self.error: str | None = None
        self.show_all = False
        self.selected_index = 0
        self._initialized = False
        self._disposed = False
        self._task: asyncio.Task[None] | None = None

        self.on_select: Callable[[str], None] | None = None
        self.on_cancel: Callable[[], None] | None = None
        self.on_invalidate: Callable[[], None] | None = None

    # -- loading -------------------------------------------------------------

    def start(self) -> None:
        """Kick off the initial fetch on the running event loop."""
        self._schedule(force_refresh=False)

    def refresh(self) -> None:
        if self.refreshing:
            return
        self._schedule(force_refresh=True)

    def _schedule(self, *, force_refresh: bool) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; model fetch not scheduled")
            return
        self._task = loop.create_task(self.load(force_refresh=force_refresh))

    async def load(self, force_refresh: bool = False) -> None:
        if force_refresh:
            self._cache.clear()
            self.refreshing = True
            self.error = None
            self.invalidate()

        was_fresh = self._cache.cache_info().is_fresh
        try:
            handles = await self._cache.get_handles(force_refresh=force_refresh)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._disposed:
                return
            logger.exception("Failed to load available models")
            self.error = str(e) or "Failed to load models"
            self._available = None
        else:
            if self._disposed:
                return
            self._available = handles
            self.is_cached = not force_refresh and was_fresh

        self.is_loading = False
        self.refreshing = False
        self._select_current_model()
        self.invalidate()

    def dispose(self) -> None:
        self._disposed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    # -- derived lists -------------------------------------------------------

    @property
    def filtered_models(self) -> list[UiModel]:
        available = self._available
        if available is _NOT_LOADED:
            return []
        if available is None:
            return list(self._models)
        handles = set(available)  # type: ignore[arg-type]
        known = [m for m in self._models if m.handle in handles]
        known_handles = {m.handle for m in known}
        dynamic = get_dynamic_models(available, known_handles, self._proxy_config)  # type: ignore[arg-type]
        return known + dynamic

    @property
    def visible_models(self) -> list[UiModel]:
        filtered = self.filtered_models
        if self.show_all:
            return filtered
        featured = [m for m in filtered if m.is_featured]
        if featured:
            return featured
        return filtered[:FEATURED_FALLBACK_COUNT]

    @property
    def has_more_models(self) -> bool:
        return not self.show_all and len(self.filtered_models) > len(self.visible_models)

    @property
    def total_items(self) -> int:
        visible = len(self.visible_models)
        return visible + 1 if self.has_more_models else visible

    def is_current(self, model: UiModel) -> bool:
        """Whether *model* is the agent's current model.

        Anthropic handles come in reasoner on/off variants, so their
        ``enable_reasoner`` update arg must also match. A variant without the
        arg counts as current unless the reasoner is explicitly off.
        """
        if model.handle != self._current_model:
            return False
        if not model.handle.startswith("anthropic/"):
            return True
        model_reasoner = model.update_args.get("enable_reasoner")
        if model_reasoner is None:
            return self._current_enable_reasoner is not False
        return model_reasoner == self._current_enable_reasoner

    def _select_current_model(self) -> None:
        if self._initialized:
            return
        for index, model in enumerate(self.visible_models):
            if model.handle == self._current_model:
                self.selected_index = index
                break
        self._initialized = True

    # -- input ---------------------------------------------------------------

    def handle_input(self, payload: str, key: KeyFlags) -> None:
        if key.escape:
            if self.on_cancel:
                self.on_cancel()
            return

        if payload == REFRESH_SHORTCUT and not (key.ctrl or key.meta):
            self.refresh()
            return

        visible = self.visible_models
        if self.is_loading or self.refreshing or not visible:
            return

        if key.up_arrow:
            self.selected_index = max(0, self.selected_index - 1)
        elif key.down_arrow:
            self.selected_index = min(self.total_items - 1, self.selected_index + 1)
        elif key.return_:
            if self.has_more_models and self.selected_index == len(visible):
                self.show_all = True
                self.selected_index = 0
            elif self.selected_index < len(visible) and self.on_select:
                self.on_select(visible[self.selected_index].id)
        else:
            return
        self.invalidate()

    # -- rendering -----------------------------------------------------------

    def invalidate(self) -> None:
        if self.on_invalidate:
            self.on_invalidate()

    def render(self, width: int) -> list[str]:
        lines = [truncate_to_width("Select Model (↑↓ to navigate, Enter to select, ESC to cancel)", width)]

        if self.refreshing:
            lines.append("  Refreshing models...")
            return lines
        if self.is_loading:
            lines.append("  Loading available models...")
            return lines

        lines.append("  Cached models (press 'r' to refresh)" if self.is_cached else "  Press 'r' to refresh")
        if self.error:
            lines.append(truncate_to_width(f"  Warning: could not fetch models ({self.error}); showing all", width))

        visible = self.visible_models
        if not visible:
            lines.append("  No models available")
            return lines

        for index, model in enumerate(visible):
            prefix = "→ " if index == self.selected_index else "  "
            current = " (current)" if self.is_current(model) else ""
            lines.append(truncate_to_width(f"{prefix}{model.label}{current}  {model.description}", width))

        if self.has_more_models:
            prefix = "→ " if self.selected_index == len(visible) else "  "
            lines.append(f"{prefix}Show all models ({len(self.filtered_models)} available)")

        return lines
