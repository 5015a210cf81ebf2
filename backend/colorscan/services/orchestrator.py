"""
colorscan Batch Orchestrator
Runs fetch -> downscale -> dominant colors for a list of identifiers.
"""
import hashlib
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Optional, Union

from loguru import logger

from colorscan.config import config
from colorscan.schemas import BatchSummary, ColorRecord
from colorscan.services.colors.extraction import dominant_colors, quantize
from colorscan.services.colors.naming import CATALOG
from colorscan.services.imaging import downscale, save_image
from colorscan.services.observability import log_memory_usage, performance_monitor
from colorscan.services.sinks import ResultSink
from colorscan.services.sources import ImageSource


class BatchProcessor:
    """Process many images through the dominant color pipeline."""

    def __init__(self,
                 source: ImageSource,
                 top_n: int = None,
                 excluded: Optional[Iterable[str]] = None,
                 clusters: int = None,
                 space: str = None,
                 seed: int = None,
                 max_iter: int = None,
                 max_side: int = None,
                 workers: int = None,
                 quantized_dir: Optional[Union[str, Path]] = None):
        self.source = source
        self.top_n = config.TOP_N if top_n is None else top_n
        self.excluded = config.excluded_names() if excluded is None else list(excluded)
        self.clusters = config.CLUSTERS if clusters is None else clusters
        self.space = config.COLOR_SPACE if space is None else space
        self.seed = config.SEED if seed is None else seed
        # 0 iterates to convergence; None falls back to COLORSCAN_MAX_ITER
        self.max_iter = config.max_iterations(max_iter)
        self.max_side = config.MAX_SIDE if max_side is None else max_side
        self.workers = config.WORKERS if workers is None else workers
        self.quantized_dir = Path(quantized_dir) if quantized_dir else None

        # Configuration problems stop the run before any image is touched
        CATALOG.require(self.excluded)
        if not config.validate_space(self.space):
            raise ValueError(f"Unsupported color space: {self.space}")
        if not config.validate_clusters(self.clusters):
            raise ValueError(f"Invalid cluster count: {self.clusters}")
        if not config.validate_top_n(self.top_n):
            raise ValueError(f"Invalid top_n: {self.top_n}")
        if not config.validate_max_side(self.max_side):
            raise ValueError(f"Invalid max_side: {self.max_side}")
        if not config.validate_workers(self.workers):
            raise ValueError(f"Invalid worker count: {self.workers}")
        if not config.validate_max_iter(max_iter):
            raise ValueError(f"Invalid max_iter: {max_iter}")

    def process_one(self, identifier: str) -> ColorRecord:
        """Run the full pipeline for a single identifier."""
        start_time = time.time()

        with performance_monitor("fetch") as stage:
            image = self.source.fetch(identifier)
            if image is not None:
                stage["pixel_count"] = image.shape[0] * image.shape[1]
        if image is None:
            return ColorRecord(identifier=identifier, error="image unavailable")

        image = downscale(image, self.max_side)
        if image is None:
            return ColorRecord(identifier=identifier, error="invalid image")

        if self.quantized_dir is not None:
            self._save_preview(identifier, image)

        colors = dominant_colors(
            image,
            n=self.top_n,
            excluded=self.excluded,
            k=self.clusters,
            space=self.space,
            seed=self.seed,
            max_iter=self.max_iter
        )
        if colors is None:
            return ColorRecord(identifier=identifier, error="invalid image")

        duration_ms = (time.time() - start_time) * 1000
        logger.bind(identifier=identifier).info(
            f"Dominant colors {colors} found in {duration_ms:.1f}ms"
        )
        return ColorRecord(identifier=identifier, colors=colors)

    def _save_preview(self, identifier: str, image) -> None:
        quantized = quantize(image, k=self.clusters, space=self.space,
                             seed=self.seed, max_iter=self.max_iter)
        if quantized is None:
            return
        digest = hashlib.sha1(identifier.encode("utf-8")).hexdigest()[:12]
        path = save_image(quantized, self.quantized_dir / f"{digest}.png")
        logger.debug(f"Saved quantized preview of {identifier} to {path}")

    def run(self, identifiers: Iterable[str], sink: ResultSink) -> BatchSummary:
        """
        Process identifiers and write one record per identifier to sink.

        Records are written in input order regardless of worker count.

        Returns:
            BatchSummary with success and failure counts
        """
        identifiers: List[str] = list(identifiers)
        start_time = time.time()
        before = log_memory_usage("batch_start")
        logger.info(f"Processing {len(identifiers)} images with {self.workers} worker(s)")

        succeeded = 0
        failed = 0
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            for record in executor.map(self.process_one, identifiers):
                sink.write(record)
                if record.error:
                    failed += 1
                else:
                    succeeded += 1

        duration_ms = (time.time() - start_time) * 1000
        after = log_memory_usage("batch_end")
        summary = BatchSummary(
            total=len(identifiers),
            succeeded=succeeded,
            failed=failed,
            duration_ms=duration_ms,
            memory_mb=after["memory_mb"],
            memory_growth_mb=after["memory_mb"] - before["memory_mb"],
            output_path=str(getattr(sink, "path", "")) or None
        )
        logger.info(f"Process completed in {duration_ms / 1000:.1f} seconds "
                    f"({succeeded} succeeded, {failed} failed, {summary.memory_mb:.1f}MB resident)")
        return summary
