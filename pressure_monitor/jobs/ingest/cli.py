"""CLI entry point for the batch ingest runner."""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path

from ...common.config import get_settings
from ...common.db import ensure_schema, get_engine
from .config import RunnerConfig
from .runner import run_once

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    settings = get_settings()
    p = argparse.ArgumentParser(description="Ingest pressure-mat CSV recordings from a directory")
    p.add_argument("--source-dir", type=Path, default=settings.csv_dir)
    p.add_argument("--workers", type=int, default=settings.ingest_workers)
    p.add_argument("--init-schema", action="store_true", help="create missing tables before ingesting")
    args = p.parse_args(argv)

    cfg = replace(
        RunnerConfig.from_settings(settings),
        source_dir=args.source_dir,
        workers=max(1, args.workers),
    )

    engine = get_engine(settings)
    if args.init_schema:
        ensure_schema(engine)

    logger.info("Pressure ingest started")
    logger.info("Config: source=%s workers=%d fps=%.1f", cfg.source_dir, cfg.workers, cfg.ingestion.fps)

    result = run_once(cfg, engine=engine)
    for skipped in result.skipped:
        logger.info("  %s: %s (%s)", skipped.file_name, skipped.status, skipped.reason)
    logger.info(
        "Done: datasets=%d frames=%d alerts=%d",
        result.datasets, result.frames, result.alerts,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
