"""CLI entrypoint for running one crawl session."""

from __future__ import annotations

import argparse
from dataclasses import replace
import json
import logging
from pathlib import Path
import sys
from typing import Any

from priocrawl.crawler import CrawlConfig, CrawlDriver, LoggingSink, Storage, load_config


LOGGER = logging.getLogger("priocrawl")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Crawl one site from a seed URL with priority-ordered scheduling.",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to JSON/YAML crawl config.",
    )
    parser.add_argument(
        "--seed",
        type=str,
        default=None,
        help="Seed URL. Overrides the config's seed_url if provided.",
    )
    parser.add_argument(
        "--output_dir",
        type=Path,
        default=None,
        help="Write records/manifests/logs here. Without it, records are logged.",
    )

    parser.add_argument(
        "--max_crawl_time",
        type=float,
        default=None,
        help="Seconds the whole crawl may take (0 = unlimited).",
    )
    parser.add_argument(
        "--max_crawl_depth",
        type=int,
        default=None,
        help="Deepest link depth to enqueue (0 = unlimited).",
    )
    parser.add_argument(
        "--max_crawled_links",
        type=int,
        default=None,
        help="Number of links to fetch (0 = unlimited).",
    )
    parser.add_argument(
        "--max_link_fetch_time",
        type=float,
        default=None,
        help="Per-fetch timeout in seconds (0 = unlimited).",
    )
    parser.add_argument(
        "--priority_rule",
        action="append",
        default=[],
        help=(
            "Priority rule (repeatable, evaluated in order). Format: PATTERN=DIRECTIVE, "
            "where DIRECTIVE is an integer, ++, --, or drop."
        ),
    )
    parser.add_argument("--user_agent", type=str, default=None)

    parser.add_argument(
        "--print_stats_json",
        action="store_true",
        help="Print full stats JSON in stdout after run.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    return parser.parse_args(argv)


def _parse_priority_rules(values: list[str]) -> list[dict[str, Any]]:
    rules: list[dict[str, Any]] = []

    for value in values:
        raw = value.strip()
        if not raw:
            continue
        if "=" not in raw:
            raise ValueError(f"Invalid --priority_rule '{value}'. Use PATTERN=DIRECTIVE.")

        # Split on the last '=' so patterns may contain '='.
        pattern, directive = raw.rsplit("=", maxsplit=1)
        if not pattern:
            raise ValueError(f"Empty pattern in --priority_rule '{value}'")
        rules.append({"pattern": pattern, "priority": directive.strip()})

    return rules


def build_config(args: argparse.Namespace) -> CrawlConfig:
    config = load_config(args.config) if args.config is not None else CrawlConfig()

    overrides: dict[str, Any] = {}
    if args.seed:
        overrides["seed_url"] = args.seed
    if args.max_crawl_time is not None:
        overrides["max_crawl_time"] = args.max_crawl_time
    if args.max_crawl_depth is not None:
        overrides["max_crawl_depth"] = args.max_crawl_depth
    if args.max_crawled_links is not None:
        overrides["max_crawled_links"] = args.max_crawled_links
    if args.max_link_fetch_time is not None:
        overrides["max_link_fetch_time"] = args.max_link_fetch_time
    if args.user_agent is not None:
        overrides["user_agent"] = args.user_agent
    if args.priority_rule:
        # CLI rules are evaluated after the ones from --config.
        overrides["priority_rules"] = list(config.priority_rules) + _parse_priority_rules(
            args.priority_rule
        )

    # replace() re-runs __post_init__ validation.
    config = replace(config, **overrides)
    if not config.seed_url:
        raise ValueError("No seed provided. Use --seed or set seed_url in --config.")
    return config


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SUMMARY_STAT_KEYS = (
    "frontier_enqueued",
    "frontier_skipped_seen",
    "frontier_skipped_depth",
    "frontier_skipped_dropped",
    "fetched_ok",
    "fetched_error",
    "records_emitted",
    "records_duplicate",
    "links_extracted",
    "extraction_errors",
    "duration_seconds",
)


def setup_logging(output_dir: Path | None, verbose: bool) -> None:
    """Log to stdout, and to `<output_dir>/logs/crawl.log` when an output dir is set."""

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if output_dir is not None:
        log_dir = output_dir / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / "crawl.log", encoding="utf-8"))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
    # Per-request connection chatter is not actionable in crawl logs.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def print_summary(result: dict[str, Any], *, paths: dict[str, Any] | None, print_stats_json: bool) -> None:
    stats = result.get("stats", {})

    lines = [
        "",
        "=== Crawl summary ===",
        f"state: {result.get('state')}",
        f"stop_reason: {result.get('stop_reason')}",
        f"links_crawled: {result.get('links_crawled')}",
    ]
    if paths:
        lines += [f"{label}: {paths.get(key)}" for label, key in (
            ("output_dir", "output_dir"),
            ("records", "records"),
            ("stats", "crawl_stats"),
        )]

    lines += ["", "--- Counters ---"]
    lines += [f"{key}: {stats[key]}" for key in SUMMARY_STAT_KEYS if key in stats]
    print("\n".join(lines))

    if print_stats_json:
        print("\n--- Stats JSON ---")
        print(json.dumps(stats, indent=2, sort_keys=True))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.output_dir, verbose=args.verbose)

    try:
        config = build_config(args)
    except Exception as exc:
        logging.error("Failed to build config: %s", exc)
        return 2

    sink = Storage(args.output_dir) if args.output_dir is not None else LoggingSink(LOGGER)

    logging.info(
        "Starting crawl: seed=%s, max_depth=%d, max_links=%d, max_time=%ss, rules=%d",
        config.seed_url,
        config.max_crawl_depth,
        config.max_crawled_links,
        config.max_crawl_time,
        len(config.priority_rules),
    )

    try:
        driver = CrawlDriver(config, sink=sink)
        result = driver.crawl()
    except KeyboardInterrupt:
        logging.error("Interrupted by user")
        return 130
    except Exception:
        logging.exception("Crawl failed")
        return 1

    paths = sink.paths if isinstance(sink, Storage) else None
    print_summary(result, paths=paths, print_stats_json=args.print_stats_json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
