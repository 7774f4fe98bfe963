"""Tests for render sessions: re-rendering on control changes and stale result handling."""

import threading
from dataclasses import dataclass, field

import pytest

from imagepost import FilterConfig, FilterError, RenderSession, run_pipeline
from imagepost.filters import Filter, FilterPipeline, GatedStage, default_stages


@dataclass
class GateFilter(Filter):
    """Identity filter whose first call after arming blocks until released."""

    armed: threading.Event = field(default_factory=threading.Event)
    started: threading.Event = field(default_factory=threading.Event)
    release: threading.Event = field(default_factory=threading.Event)

    def apply(self, image, context=None):
        if self.armed.is_set() and not self.started.is_set():
            self.started.set()
            self.release.wait(5)
        return image


@dataclass
class BrokenFilter(Filter):
    def apply(self, image, context=None):
        raise ValueError("broken")


class TestRenderSession:
    """Tests for synchronous rendering."""

    def test_blank_without_source(self):
        displayed = []
        session = RenderSession(on_display=displayed.append)
        assert session.set_original(None) is None
        assert session.update(blur_radius=3) is None
        assert session.displayed is None
        assert session.last_error is None
        assert displayed == [None, None]

    def test_scales_to_view(self, gradient_image):
        session = RenderSession(view_size=(16, 8), screen_scale=2.0)
        result = session.set_original(gradient_image)
        assert session.scaled_image.size == (32, 16)
        assert result.size == (32, 16)
        assert session.displayed is result

    def test_without_view_size_keeps_photo_size(self, gradient_image):
        session = RenderSession()
        result = session.set_original(gradient_image.moved_to((5, 5)))
        assert result.size == gradient_image.size
        assert result.origin == (0, 0)

    def test_every_change_renders_once(self, gradient_image):
        displayed = []
        session = RenderSession(on_display=displayed.append)
        session.set_original(gradient_image)
        session.update(blur_radius=2.0)
        session.update(tiled_enabled=True)
        session.update(tiled_enabled=False)
        assert len(displayed) == 4
        assert session.generation == 4
        assert session.config == FilterConfig(blur_radius=2.0)

    def test_renders_from_scaled_source(self, asymmetric_image):
        session = RenderSession()
        session.set_original(asymmetric_image)
        first = session.update(bloom_enabled=True)
        session.update(bloom_enabled=False)
        again = session.update(bloom_enabled=True)
        assert again == first
        assert again == run_pipeline(asymmetric_image, FilterConfig(bloom_enabled=True))

    def test_failure_blanks_display(self, gradient_image):
        stages = default_stages() + [GatedStage(BrokenFilter(), gate='pixellate_enabled')]
        session = RenderSession(pipeline=FilterPipeline(stages=stages))
        assert session.set_original(gradient_image) is not None
        assert session.update(pixellate_enabled=True) is None
        assert session.displayed is None
        assert isinstance(session.last_error, FilterError)
        # The next interaction simply renders again
        assert session.update(pixellate_enabled=False) is not None
        assert session.last_error is None

    def test_invalid_control_value(self, gradient_image):
        session = RenderSession()
        session.set_original(gradient_image)
        with pytest.raises(ValueError):
            session.update(sepia_enabled=True)


class TestRenderSessionWorker:
    """Tests for serialized background rendering."""

    def test_submit_renders(self, gradient_image):
        with RenderSession() as session:
            session.set_original(gradient_image)
            outcome = session.submit(blur_radius=1.0).result(timeout=10)
            assert outcome.displayed
            assert outcome.error is None
            assert session.displayed is outcome.image

    def test_stale_result_discarded(self, gradient_image):
        gate = GateFilter()
        stages = [GatedStage(gate)] + default_stages()
        displayed = []
        with RenderSession(pipeline=FilterPipeline(stages=stages), on_display=displayed.append) as session:
            session.set_original(gradient_image)
            gate.armed.set()

            first = session.submit(tiled_enabled=True)
            assert gate.started.wait(5)
            second = session.submit(tiled_enabled=False, pixellate_enabled=True)
            gate.release.set()

            first_outcome = first.result(timeout=10)
            second_outcome = second.result(timeout=10)

        assert not first_outcome.displayed
        assert second_outcome.displayed
        assert session.displayed is second_outcome.image
        assert second_outcome.image == run_pipeline(
            gradient_image, FilterConfig(pixellate_enabled=True)
        )
        # set_original and the second submit, never the stale one
        assert len(displayed) == 2

    def test_queued_superseded_request_skipped(self, gradient_image):
        gate = GateFilter()
        with RenderSession(pipeline=FilterPipeline(stages=[GatedStage(gate)])) as session:
            session.set_original(gradient_image)
            gate.armed.set()
            running = session.submit()
            assert gate.started.wait(5)
            queued = session.submit(blur_radius=1.0)
            latest = session.submit(blur_radius=2.0)
            gate.release.set()
            assert not running.result(timeout=10).displayed
            skipped = queued.result(timeout=10)
            assert not skipped.displayed
            assert skipped.image is None
            assert latest.result(timeout=10).displayed

    def test_synchronous_update_wins_over_running_worker(self, gradient_image):
        gate = GateFilter()
        stages = [GatedStage(gate)] + default_stages()
        displayed = []
        with RenderSession(pipeline=FilterPipeline(stages=stages), on_display=displayed.append) as session:
            session.set_original(gradient_image)
            gate.armed.set()

            pending = session.submit(tiled_enabled=True)
            assert gate.started.wait(5)
            latest = session.update(pixellate_enabled=True)
            gate.release.set()
            assert not pending.result(timeout=10).displayed

        assert displayed[-1] is latest
        assert session.displayed is latest
        assert session.config == FilterConfig(tiled_enabled=True, pixellate_enabled=True)

    def test_close_is_idempotent(self, gradient_image):
        session = RenderSession()
        session.set_original(gradient_image)
        session.submit(blur_radius=1.0).result(timeout=10)
        session.close()
        session.close()
        with pytest.raises(RuntimeError):
            session.submit()

    def test_submit_after_close(self):
        session = RenderSession()
        session.close()
        with pytest.raises(RuntimeError):
            session.submit()
