"""
Crop session for one asset slot.

Owns the slot's active output size, the current source image and the most
recent result.  The pipeline is stateless, so ordering lives here: every
confirm bumps a generation counter and only the newest confirm's raster is
kept.  Older results that finish late are released and dropped, as are
results of work that was cancelled.

Changing the output size discards both the result and the source, so the
user re-crops for the new resolution instead of getting a rescaled copy.
"""

import logging
import threading
from concurrent.futures import Executor, Future

from store_asset_studio.assets import output_specs
from store_asset_studio.config import RESAMPLING_FILTER
from store_asset_studio.image_io import output_file_name
from store_asset_studio.models import (
    AssetDefinition, CropRegion, OutputRaster, OutputSpec, SourceImage, Viewport,
)
from store_asset_studio.rasterizer import rasterize
from store_asset_studio.viewport import crop_region_for

logger = logging.getLogger(__name__)


class AssetSession:
    """Crop state of one asset slot (e.g. the store icon or the marquee tile)."""

    def __init__(self, definition: AssetDefinition, resample=RESAMPLING_FILTER):
        self.definition = definition
        self.resample = resample
        self._spec = definition.spec
        self._source: SourceImage | None = None
        self._result: OutputRaster | None = None
        self._generation = 0
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def active_spec(self) -> OutputSpec:
        return self._spec

    @property
    def source(self) -> SourceImage | None:
        return self._source

    @property
    def result(self) -> OutputRaster | None:
        return self._result

    @property
    def file_name(self) -> str:
        return output_file_name(self.definition.id, self._spec)

    def load_source(self, source: SourceImage) -> None:
        """Start cropping a newly selected file; in-flight work for the old one is dropped."""
        with self._lock:
            self._generation += 1
            self._source = source
        logger.debug("[%s] source set: %s (%dx%d)",
                     self.definition.id, source.name, source.width, source.height)

    def select_output(self, width: int, height: int) -> bool:
        """Switch to another of the slot's output sizes.

        Returns True if the size changed, in which case the previous result
        and source are discarded.  Raises ValueError for sizes the asset does
        not offer.
        """
        spec = OutputSpec(width, height)
        if spec not in output_specs(self.definition):
            raise ValueError(f"{self.definition.id} has no {spec} output size")
        if spec == self._spec:
            return False
        with self._lock:
            self._spec = spec
            self._generation += 1
            self._source = None
            self._release_result()
        logger.info("[%s] output size changed to %s, re-crop required", self.definition.id, spec)
        return True

    # ------------------------------------------------------------------
    # Confirm
    # ------------------------------------------------------------------
    def region_for(self, viewport: Viewport) -> CropRegion:
        """Crop rectangle the current viewport selects on the current source."""
        source = self._require_source()
        return crop_region_for(source.width, source.height, viewport, self._spec.aspect_ratio)

    def _prepare(self, target, rotation):
        # Source, size and generation are taken together; a later size switch
        # or new source bumps the generation and the render is discarded.
        with self._lock:
            source = self._require_source()
            spec = self._spec
            self._generation += 1
            generation = self._generation
        if isinstance(target, Viewport):
            region = crop_region_for(source.width, source.height, target, spec.aspect_ratio)
            rotation = target.rotation
        else:
            region = target
        return generation, source, spec, rotation or 0.0, region

    def _render(self, generation: int, source: SourceImage, spec: OutputSpec,
                rotation: float, region: CropRegion) -> OutputRaster | None:
        raster = rasterize(source, rotation, region, spec.width, spec.height, self.resample)
        return self._accept(generation, raster)

    def _accept(self, generation: int, raster: OutputRaster) -> OutputRaster | None:
        previous = None
        with self._lock:
            stale = generation != self._generation
            if not stale:
                previous, self._result = self._result, raster
        if stale:
            raster.release()
            logger.debug("[%s] discarded stale result (generation %d)", self.definition.id, generation)
            return None
        if previous is not None:
            previous.release()
        return raster

    def confirm(self, target, rotation: float | None = None) -> OutputRaster | None:
        """Rasterize a confirmed crop and make it the slot's result.

        *target* is a ``Viewport`` snapshot (its rotation is used) or a
        ``CropRegion`` with *rotation* given separately.  Returns None if
        the session was cancelled or re-confirmed while rendering.  On error
        the previous result is left untouched.
        """
        return self._render(*self._prepare(target, rotation))

    def confirm_async(self, executor: Executor, target,
                      rotation: float | None = None) -> Future:
        """Like ``confirm`` but rendered on *executor*; returns the Future."""
        return executor.submit(self._render, *self._prepare(target, rotation))

    def cancel(self) -> None:
        """Discard whatever is in flight. The current result is kept."""
        with self._lock:
            self._generation += 1

    def reset(self) -> None:
        """Drop source, result and in-flight work."""
        with self._lock:
            self._generation += 1
            self._source = None
            self._release_result()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _require_source(self) -> SourceImage:
        if self._source is None:
            raise RuntimeError(f"No source image loaded for {self.definition.id}")
        return self._source

    def _release_result(self) -> None:
        if self._result is not None:
            self._result.release()
            self._result = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.reset()
        return False
