"""Fair-use case/finding linkage script."""
from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from collections import Counter
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

from linkage.errors import JoinDiscrepancyError, LinkageValidationError, MatchingError
from linkage.matching import LOGGER_NAME
from linkage.normalize import STRIP_TOKENS
from linkage.reconcile import ReconcileResult, build_output_table, build_review_table, reconcile
from linkage.records import (
    DEFAULT_NAME_COL,
    DEFAULT_TITLE_COL,
    DEFAULT_YEAR_COL,
    load_table,
    prepare_case_records,
    prepare_finding_records,
    required_case_columns,
    required_finding_columns,
)

BASE_DIR = Path(__file__).resolve().parent

TIE_BREAKER_CHOICES = ("none", "year4")


def resolve_path(path_str: str) -> Path:
    path = Path(path_str)
    if not path.is_absolute():
        path = BASE_DIR / path
    return path


def resolve_source(value: str) -> str:
    if value.startswith(("http://", "https://")):
        return value
    return str(resolve_path(value))


def save_outputs(output: pd.DataFrame, review: pd.DataFrame, out_path: Path, review_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    review_path.parent.mkdir(parents=True, exist_ok=True)
    output.to_csv(out_path, index=False)
    review.to_csv(review_path, index=False)


def report_metrics(logger: logging.Logger, result: ReconcileResult, durations: dict) -> None:
    counts = result.stage_counts()
    total = sum(counts.values()) or 1
    logger.info("Match counts: %s", json.dumps(counts, ensure_ascii=False))
    logger.info(
        "Match shares: %s",
        json.dumps({k: round(v / total, 4) for k, v in counts.items()}, ensure_ascii=False),
    )
    for summary in result.summary()["passes"]:
        logger.info("Pass %s: %s", summary["stage"], json.dumps(summary, ensure_ascii=False))
    for name, duration in durations.items():
        logger.info("Duration %s: %.3fs", name, duration)
    if result.flagged:
        logger.info(
            "Low-similarity positional pairs: %s",
            json.dumps([(m.case.name, m.finding.title) for m in result.flagged], ensure_ascii=False),
        )
    leftover_tokens: Counter = Counter()
    for match in result.positional.matches:
        leftover_tokens.update(token for token in match.case.name_std.split() if len(token) >= 3)
    logger.info(
        "Top tokens in positional pairs: %s",
        json.dumps(leftover_tokens.most_common(10), ensure_ascii=False),
    )


def setup_logger(log_path: Path) -> logging.Logger:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)
    handler = logging.FileHandler(log_path, encoding="utf-8")
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    handler.setFormatter(formatter)
    logger.handlers = [handler]
    return logger


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Join fair-use cases to fair-use findings")
    parser.add_argument("--cases", required=False, help="Path or URL of the cases CSV")
    parser.add_argument("--findings", required=False, help="Path or URL of the findings CSV")
    parser.add_argument("--out", required=False, help="Output CSV path")
    parser.add_argument("--review", required=False, help="Review CSV path")
    parser.add_argument("--log", required=False, help="Log file path")
    parser.add_argument("--name-col", dest="name_col", default=DEFAULT_NAME_COL)
    parser.add_argument("--title-col", dest="title_col", default=DEFAULT_TITLE_COL)
    parser.add_argument("--year-col", dest="year_col", default=DEFAULT_YEAR_COL)
    parser.add_argument(
        "--strip-token",
        dest="strip_tokens",
        action="append",
        help=f"Substring removed during normalization (default: {', '.join(STRIP_TOKENS)})",
    )
    parser.add_argument(
        "--normalized-tie-breaker",
        dest="normalized_tie_breaker",
        choices=TIE_BREAKER_CHOICES,
        default="none",
        help="Field that must agree in the normalized pass",
    )
    parser.add_argument(
        "--no-year-check",
        dest="year_check",
        action="store_false",
        help="Skip the year agreement check before positional pairing",
    )
    return parser.parse_args(argv)


def validate_args(args: argparse.Namespace) -> None:
    missing = [name for name in ["cases", "findings", "out", "review", "log"] if getattr(args, name) is None]
    if missing:
        raise MatchingError(f"Missing required arguments: {', '.join(missing)}")


def run(args: argparse.Namespace, logger: logging.Logger) -> ReconcileResult:
    strip_tokens = tuple(args.strip_tokens) if args.strip_tokens else STRIP_TOKENS
    start_time = time.perf_counter()
    case_df = load_table(resolve_source(args.cases), required_case_columns(args.name_col, args.year_col))
    finding_df = load_table(
        resolve_source(args.findings), required_finding_columns(args.title_col, args.year_col)
    )
    load_duration = time.perf_counter() - start_time
    logger.info("Loaded %d cases and %d findings in %.3fs", len(case_df), len(finding_df), load_duration)
    prep_start = time.perf_counter()
    cases = prepare_case_records(case_df, args.name_col, args.year_col, strip_tokens)
    findings = prepare_finding_records(finding_df, args.title_col, args.year_col, strip_tokens)
    prep_duration = time.perf_counter() - prep_start
    match_start = time.perf_counter()
    result = reconcile(
        cases,
        findings,
        normalized_tie_breaker=None if args.normalized_tie_breaker == "none" else args.normalized_tie_breaker,
        check_field="year4" if args.year_check else None,
        logger=logger,
    )
    match_duration = time.perf_counter() - match_start
    save_start = time.perf_counter()
    save_outputs(
        build_output_table(result, args.name_col),
        build_review_table(result),
        resolve_path(args.out),
        resolve_path(args.review),
    )
    save_duration = time.perf_counter() - save_start
    durations = {
        "load": load_duration,
        "prepare": prep_duration,
        "match": match_duration,
        "save": save_duration,
        "total": time.perf_counter() - start_time,
    }
    report_metrics(logger, result, durations)
    return result


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        validate_args(args)
    except MatchingError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    logger = setup_logger(resolve_path(args.log))
    logger.info("Starting linkage with parameters: %s", json.dumps(vars(args), ensure_ascii=False))
    try:
        result = run(args, logger)
    except JoinDiscrepancyError as exc:
        logger.error(
            "Join discrepancy (%d cases vs %d findings left, positions %s): %s",
            exc.size_cases,
            exc.size_findings,
            exc.mismatched_positions,
            exc,
        )
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except LinkageValidationError as exc:
        logger.error("Validation failed: %s", json.dumps(exc.problems, ensure_ascii=False))
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except MatchingError as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    logger.info("Linkage completed: %d rows", len(result.matches))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
