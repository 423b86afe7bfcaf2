from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path

from line_analyzer.core.config.settings import load_settings, validate_settings
from line_analyzer.core.detectors.base import NullCapability
from line_analyzer.core.errors import ConfigError, PipelineError
from line_analyzer.core.pipeline import LinePipeline
from line_analyzer.core.sources.base import LocalDirectorySource, SingleFileSource
from line_analyzer.core.storage.base import MemoryStore
from line_analyzer.core.types import ObjectReference


def run(args):
    image_path = Path(args.input)
    try:
        settings = load_settings()
        if not (args.mock and args.dry_run):
            validate_settings(settings)
    except ConfigError as exc:
        raise SystemExit(str(exc)) from exc

    if not image_path.is_file():
        raise SystemExit(f"No such image: {image_path}")
    if args.shop:
        # <shop>_<mtime><ext>
        object_name = f"{args.shop}_{int(image_path.stat().st_mtime)}{image_path.suffix or '.jpg'}"
        source = SingleFileSource(image_path)
    else:
        object_name = image_path.name
        source = LocalDirectorySource(image_path.parent)

    memory = MemoryStore()
    if args.dry_run:
        store_factory = lambda: memory  # noqa: E731
    else:
        from line_analyzer.core.storage.bigquery import BigQueryStore

        store_factory = lambda: BigQueryStore(  # noqa: E731
            project_id=settings.project_id, dataset=settings.dataset
        )
    if args.mock:
        capability_factory = NullCapability
    else:
        from line_analyzer.core.detectors.rekognition import RekognitionCapability

        capability_factory = lambda: RekognitionCapability(region=settings.detection_region)  # noqa: E731

    pipeline = LinePipeline(
        source_factory=lambda: source,
        capability_factory=capability_factory,
        store_factory=store_factory,
        person_label=settings.person_label,
        person_min_confidence=settings.person_min_confidence,
        concurrent_detection=settings.concurrent_detection,
        observation_table=settings.observation_table,
        customer_meta_table=settings.customer_meta_table,
    )
    event = ObjectReference(bucket=args.bucket, name=object_name)
    try:
        ack = pipeline.run(event)
    except PipelineError as exc:
        raise SystemExit(f"{exc.stage} failed: {exc.cause}") from exc

    result = {"ack": asdict(ack), "rows": memory.tables}
    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w", encoding="utf-8") as f:
            json.dump(result, f, indent=2)
        print(f"Wrote observation {ack.observation_id} to {out_path}")
    else:
        print(json.dumps(result, indent=2))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    parser = argparse.ArgumentParser(description="Run the line analyzer on a local image")
    parser.add_argument("--input", required=True, help="Image named <shopID>_<unixSeconds>.<ext>")
    parser.add_argument("--output", default=None, help="Where to save JSON output (default: stdout)")
    parser.add_argument(
        "--shop", default=None, help="Shop id; the object name is built from it and the file mtime"
    )
    parser.add_argument("--bucket", default="local", help="Bucket name reported in logs")
    parser.add_argument(
        "--mock", action="store_true", help="Use a detector that finds nothing (no provider calls)"
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Keep rows in memory instead of inserting them"
    )
    run(parser.parse_args())
