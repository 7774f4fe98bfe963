"""
Render session - headless state of the photo post screen.

A session keeps the scaled source photo and the current control state
(slider value and switches). Every control change rebuilds the
:class:`~imagepost.config.FilterConfig` and renders again from the scaled
source, never from a previously displayed result.

Renders either run synchronously (:meth:`RenderSession.update`) or on a
single background worker per session (:meth:`RenderSession.submit`). Each
request gets a generation number; results of superseded generations are
dropped instead of being displayed.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable

from .config import FilterConfig, settings
from .exceptions import PipelineError
from .filters.pipeline import FilterPipeline
from .image import Image
from .scaling import scale_to_fit

logger = logging.getLogger(__name__)


@dataclass
class RenderOutcome:
    """Result of one render request.

    :param generation: Sequence number of the request
    :param image: The rendered image, None if there was no source or the
        run failed
    :param error: The error which aborted the run, if any
    :param displayed: False if a newer request superseded this one
    """

    generation: int
    image: Image | None = None
    error: PipelineError | None = None
    displayed: bool = True


class RenderSession:
    """Keeps source, controls and displayed image of one view.

    Example::

        with RenderSession(view_size=(320, 240), screen_scale=2.0) as session:
            session.set_original(Image("photo.jpg"))
            session.update(blur_radius=4.0)
            displayed = session.update(bloom_enabled=True)

    :param pipeline: Pipeline to render with, the default stages if None
    :param view_size: Size of the display surface in points. If None the
        configured default is used, or the photo's own size.
    :param screen_scale: Device pixels per point
    :param on_display: Called with every image (or None) that gets displayed.
        Calls are serialized and may not start another render.
    """

    def __init__(
        self,
        pipeline: FilterPipeline | None = None,
        view_size: tuple[float, float] | None = None,
        screen_scale: float = 1.0,
        on_display: Callable[[Image | None], Any] | None = None,
    ):
        self.pipeline = pipeline or FilterPipeline()
        self.view_size = view_size or settings.DEFAULT_VIEW_SIZE
        self.screen_scale = screen_scale
        self.on_display = on_display
        self.last_error: PipelineError | None = None
        "The error of the most recent displayed run, None after a success"
        self._config = FilterConfig()
        self._scaled: Image | None = None
        self._displayed: Image | None = None
        self._generation = 0
        self._lock = threading.Lock()
        self._display_lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None
        self._closed = False

    def __enter__(self) -> RenderSession:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def config(self) -> FilterConfig:
        """The current control state."""
        return self._config

    @property
    def scaled_image(self) -> Image | None:
        """The scaled source every render starts from."""
        return self._scaled

    @property
    def displayed(self) -> Image | None:
        """The currently displayed image, None if the display is blank."""
        return self._displayed

    @property
    def generation(self) -> int:
        """Number of render requests made so far."""
        return self._generation

    def set_original(self, image: Image | None) -> Image | None:
        """Set a newly picked photo and render it.

        :param image: The decoded photo, None to clear the display
        :returns: The displayed image
        """
        if image is None:
            scaled = None
        elif self.view_size is not None:
            scaled = scale_to_fit(image, self.view_size, self.screen_scale)
        else:
            scaled = image.moved_to((0, 0))
        with self._lock:
            self._scaled = scaled
        return self.render()

    def update(self, **changes: Any) -> Image | None:
        """Change controls (e.g. ``blur_radius=3``) and render synchronously.

        :returns: The displayed image
        """
        with self._lock:
            self._config = self._config.with_changes(**changes)
        return self.render()

    def render(self) -> Image | None:
        """Render the current state synchronously and display the result."""
        generation, scaled, config = self._next_request()
        outcome = self._render(generation, scaled, config)
        return outcome.image

    def submit(self, **changes: Any) -> Future:
        """Change controls and render on the session's worker thread.

        Runs are serialized; a result is only displayed if no newer request
        was made in the meantime.

        :returns: Future resolving to a :class:`RenderOutcome`
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("Render session is closed")
            if changes:
                self._config = self._config.with_changes(**changes)
            self._generation += 1
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="RenderSession")
            return self._executor.submit(
                self._render, self._generation, self._scaled, self._config
            )

    def close(self) -> None:
        """Stop the worker thread, waiting for the running render."""
        with self._lock:
            self._closed = True
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True, cancel_futures=True)

    def _next_request(self) -> tuple[int, Image | None, FilterConfig]:
        with self._lock:
            self._generation += 1
            return self._generation, self._scaled, self._config

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _render(self, generation: int, scaled: Image | None, config: FilterConfig) -> RenderOutcome:
        if not self._is_current(generation):
            logger.debug(f"Skipping render {generation}, superseded")
            return RenderOutcome(generation, displayed=False)

        outcome = RenderOutcome(generation)
        if scaled is not None:
            try:
                outcome.image = self.pipeline.run(scaled, config)
            except PipelineError as e:
                logger.warning(f"Render {generation} failed: {e}")
                outcome.error = e

        # Held until the callback returned, so displays arrive in request order
        with self._display_lock:
            with self._lock:
                if generation != self._generation:
                    logger.debug(f"Dropping stale render {generation}")
                    outcome.displayed = False
                    return outcome
                self._displayed = outcome.image
                self.last_error = outcome.error
            if self.on_display is not None:
                self.on_display(outcome.image)
        return outcome
