# main.py
"""
CLI entrypoint for the Control Tower readiness checker.

- Supports two modes:
  * aws: run against a live AWS account using boto3.Session (read-only calls)
  * dummy: replay recorded API responses from a JSON snapshot (offline testing)
- Prints a colored report to stdout; optionally writes JSON, CSV, and HTML reports.
- Always exits 0 once the assessment has run, whatever the findings.
"""

import argparse
import logging

import boto3
from botocore.exceptions import BotoCoreError

from readiness.aws_checks import CHECKS, CHECK_IDS, run_assessment
from readiness.context import build_context, resolve_region
from readiness.snapshot import SnapshotSession
from utils import (
    load_json_file,
    print_header,
    print_report_paths,
    print_results,
    print_summary,
    results_to_json,
    save_report,
    utc_timestamp,
)

logger = logging.getLogger("ct_readiness")


def run_session(session, mode: str, region: str = None, only=None,
                output_format: str = "text", report_dir: str = None, extra: dict = None):
    """
    Resolve the region, build the context, run the checks and render them.
    Returns the list of CheckResult objects.
    """
    region, region_source = resolve_region(region, session)
    logger.info("Assessing readiness (mode=%s, region=%s, source=%s)", mode, region, region_source)

    ctx = build_context(session, region, region_source)
    scan_time = utc_timestamp()
    results = run_assessment(ctx, only=only)

    if output_format == "json":
        print(results_to_json(results, ctx, scan_time=scan_time))
    else:
        print_header(ctx, scan_time=scan_time)
        print_results(results)
        print_summary(results)

    if report_dir:
        report_extra = dict(extra or {})
        report_extra.update({"account_id": ctx.account_id, "region": ctx.region})
        report_paths = save_report(results, mode=mode, extra=report_extra, out_dir=report_dir)
        if output_format == "json":
            logger.info("Saved reports: %s", report_paths)
        else:
            print_report_paths(report_paths)
    return results


def run_dummy(file_path: str, region: str = None, only=None,
              output_format: str = "text", report_dir: str = None):
    """
    Run the checks against a recorded JSON snapshot.
    No AWS access is required in this mode.
    """
    logger.info("Running in dummy mode using file: %s", file_path)
    data = load_json_file(file_path)
    session = SnapshotSession(data)
    return run_session(session, "dummy", region=region, only=only, output_format=output_format,
                       report_dir=report_dir, extra={"source_file": file_path})


def run_aws(profile: str = None, region: str = None, only=None,
            output_format: str = "text", report_dir: str = None):
    """
    Run the checks against a live AWS account.

    Credentials come from the profile when given, otherwise from the
    default chain (environment, CloudShell, instance role).
    """
    logger.info("Running in live AWS mode (profile=%s)", profile or "default chain")
    session = boto3.Session(profile_name=profile) if profile else boto3.Session()
    return run_session(session, "aws", region=region, only=only, output_format=output_format,
                       report_dir=report_dir, extra={"profile": profile or ""})


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Read-only readiness assessment for enabling AWS Control Tower."
    )
    p.add_argument(
        "--mode",
        choices=["aws", "dummy"],
        default="aws",
        help="Run mode: aws (live, default) or dummy (JSON snapshot)",
    )
    p.add_argument(
        "--file",
        help="Path to snapshot JSON file (required for dummy mode)",
    )
    p.add_argument(
        "--profile",
        help="AWS profile name (optional for aws mode)",
    )
    p.add_argument(
        "--region",
        help="AWS region to assess (default: profile, then AWS_DEFAULT_REGION)",
    )
    p.add_argument(
        "--only",
        nargs="+",
        choices=CHECK_IDS,
        metavar="CHECK",
        help="Run only these checks (see --list-checks)",
    )
    p.add_argument(
        "--list-checks",
        action="store_true",
        help="List check ids and exit",
    )
    p.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format on stdout (default: text)",
    )
    p.add_argument(
        "--report-dir",
        help="Also save JSON, CSV, and HTML reports to this directory",
    )
    p.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.list_checks:
        for check in CHECKS:
            print(f"{check.id:20} {check.title}")
        return 0

    if args.mode == "dummy":
        if not args.file:
            raise SystemExit("dummy mode requires --file path to JSON")
        try:
            run_dummy(args.file, region=args.region, only=args.only,
                      output_format=args.format, report_dir=args.report_dir)
        except (FileNotFoundError, ValueError) as e:
            raise SystemExit(str(e))
    else:
        try:
            run_aws(profile=args.profile, region=args.region, only=args.only,
                    output_format=args.format, report_dir=args.report_dir)
        except BotoCoreError as e:
            # e.g. ProfileNotFound while creating the session
            raise SystemExit(str(e))
    return 0


if __name__ == "__main__":
    main()
