"""
colorscan batch runner.

Reads a list of image URLs (or paths) from a text file, finds the most
dominant colors of each image and writes `identifier;color;color;color`
lines to a delimited output file.

Usage:
  python main.py --input urls.txt --output urls.csv
  python main.py -i urls.txt -o urls.csv --top 5 --exclude White,Black --workers 4
"""
import argparse
import sys
from typing import List, Optional

from colorscan.config import config
from colorscan.services.errors import CatalogError
from colorscan.services.observability import get_metrics_collector
from colorscan.services.orchestrator import BatchProcessor
from colorscan.services.sinks import DelimitedResultSink
from colorscan.services.sources import AutoImageSource, FileImageSource, UrlImageSource, read_identifiers
from colorscan.utils.logging import get_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find dominant colors of images with k-means color quantization")
    parser.add_argument("--input", "-i", default="urls.txt", help="Text file with one image URL or path per line")
    parser.add_argument("--output", "-o", default="urls.csv", help="Delimited output file")
    parser.add_argument("--top", "-n", type=int, default=config.TOP_N, help="Number of dominant colors per image")
    parser.add_argument("--clusters", "-k", type=int, default=config.CLUSTERS, help="Number of k-means clusters")
    parser.add_argument("--exclude", default=config.EXCLUDE,
                        help="Comma-separated color names to leave out (empty string for none)")
    parser.add_argument("--space", choices=list(config.SUPPORTED_SPACES), default=config.COLOR_SPACE,
                        help="Color space used for clustering")
    parser.add_argument("--seed", type=int, default=config.SEED, help="Seed for centroid initialization")
    parser.add_argument("--max-iter", type=int, default=None,
                        help="Clustering iteration cap, 0 iterates to convergence (default COLORSCAN_MAX_ITER)")
    parser.add_argument("--max-side", type=int, default=config.MAX_SIDE, help="Downscale bound in pixels")
    parser.add_argument("--workers", type=int, default=config.WORKERS, help="Images processed in parallel")
    parser.add_argument("--timeout", type=float, default=config.FETCH_TIMEOUT, help="HTTP timeout in seconds")
    parser.add_argument("--delimiter", default=config.DELIMITER, help="Output field delimiter")
    parser.add_argument("--limit", type=int, default=None, help="Only process the first N identifiers")
    parser.add_argument("--dedupe", action="store_true", help="Drop repeated identifiers")
    parser.add_argument("--base-dir", default=None, help="Directory that relative file paths are resolved against")
    parser.add_argument("--quantized-dir", default=None, help="Save quantized preview PNGs here")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Log level (DEBUG, INFO, ...)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    log = get_logger(args.log_level)

    identifiers = read_identifiers(args.input, remove_duplicates=args.dedupe)
    if args.limit is not None:
        identifiers = identifiers[:args.limit]

    source = AutoImageSource(
        url_source=UrlImageSource(timeout=args.timeout),
        file_source=FileImageSource(base_dir=args.base_dir)
    )

    try:
        processor = BatchProcessor(
            source,
            top_n=args.top,
            excluded=config.excluded_names(args.exclude),
            clusters=args.clusters,
            space=args.space,
            seed=args.seed,
            max_iter=args.max_iter,
            max_side=args.max_side,
            workers=args.workers,
            quantized_dir=args.quantized_dir
        )
    except (CatalogError, ValueError) as e:
        log.error(f"Invalid configuration: {e}")
        return 2

    with DelimitedResultSink(args.output, delimiter=args.delimiter) as sink:
        summary = processor.run(identifiers, sink)

    stats = get_metrics_collector().get_all_stats()
    clustering = stats["operations"].get("cluster_pixels", {})
    log.info("Batch finished", extra={
        "succeeded": summary.succeeded,
        "failed": summary.failed,
        "operations": stats["total_operations"],
        "pixels_clustered": clustering.get("pixels_processed", 0),
        "mean_iterations": clustering.get("clustering_stats", {}).get("mean_iterations", 0.0),
        "memory_mb": round(summary.memory_mb, 1)
    })
    return 0


if __name__ == "__main__":
    sys.exit(main())
