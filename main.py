import sys
import asyncio
import argparse
from typing import List, Optional

# --- Settings/Logging ---
from team_registry.logging.setup import setup_logging
from team_registry.config.settings import settings

setup_logging()

from loguru import logger

from team_registry.config.regions import build_regions
from team_registry.models.enums import RunMode
from team_registry.pipeline.rebuild import cleanup_registry, expand_registry
from team_registry.scrapers.extraction import RankingLineExtractor
from team_registry.scrapers.vlr_scraper import VlrRankingsScraper
from team_registry.storage.registry_file import (
    RegistryFileError,
    load_registry_document,
    write_registry,
)

from rich import print
from rich.panel import Panel


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Clean the team registry or expand it from regional rankings."
    )
    parser.add_argument("mode", choices=[mode.value for mode in RunMode])
    parser.add_argument(
        "--file",
        default=settings.registry_path,
        help=f"Registry JSON file (default: {settings.registry_path})",
    )
    parser.add_argument(
        "--region",
        action="append",
        dest="regions",
        metavar="CODE",
        help="Only expand this region code (repeatable). Default: all regions.",
    )
    parser.add_argument(
        "--top-n",
        type=int,
        default=settings.region_top_n,
        help=f"Teams kept per region (default: {settings.region_top_n})",
    )
    args = parser.parse_args(argv)
    if args.top_n < 1:
        parser.error("--top-n must be at least 1")
    return args


def run_clean(path: str) -> None:
    document = load_registry_document(path)
    registry = cleanup_registry(document)
    write_registry(path, registry)

    logger.success(f"Cleaned {path}")
    print(
        Panel(
            f"Teams: {len(document.teams)} -> {len(registry.teams)}\n"
            f"Regions kept: {len(registry.regions)}",
            title=f"✅ Cleaned {path}",
        )
    )


async def run_expand(path: str, region_codes: Optional[List[str]], top_n: int) -> None:
    document = load_registry_document(path)
    regions = build_regions(region_codes)
    if not regions:
        logger.error("No regions selected, nothing to expand.")
        return

    async with VlrRankingsScraper() as scraper:
        result = await expand_registry(
            document,
            regions,
            fetcher=scraper,
            extractor=RankingLineExtractor(min_candidates=top_n),
            top_n=top_n,
            delay_seconds=settings.region_delay_seconds,
        )
    write_registry(path, result.registry)

    logger.success(f"Updated {path}")
    failed = ", ".join(result.failed) if result.failed else "none"
    print(
        Panel(
            f"Teams: {len(result.registry.teams)}\n"
            f"Regions refreshed: {', '.join(result.refreshed) or 'none'}\n"
            f"Regions failed: {failed}",
            title=f"✅ Updated {path}",
        )
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    mode = RunMode(args.mode)
    logger.info(f"Starting team registry {mode.value} on {args.file}")

    try:
        if mode is RunMode.CLEAN:
            run_clean(args.file)
        else:
            asyncio.run(run_expand(args.file, args.regions, args.top_n))
    except RegistryFileError as e:
        logger.critical(f"Cannot use registry file: {e}")
        return 1
    except OSError as e:
        logger.critical(f"Failed to write {args.file}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.info("Execution interrupted by user (KeyboardInterrupt).")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Unhandled exception in main execution: {e}")
        sys.exit(1)
