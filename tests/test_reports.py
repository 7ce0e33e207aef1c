# tests/test_reports.py
"""
Report and console output tests.

- Saves JSON, CSV, and HTML reports into tmp_path.
- Parses the HTML report with BeautifulSoup.
- Renders console output into a recording Rich console.
"""

import csv
import io
import json
import os

from bs4 import BeautifulSoup
from rich.console import Console

from models import AssessmentContext, CheckResult, Status
from readiness.aws_checks import run_assessment
from utils import (
    count_by_status,
    print_header,
    print_report_paths,
    print_results,
    print_summary,
    results_to_json,
    save_report,
)


def test_reports_are_written(ready_snapshot, snapshot_context, tmp_path):
    ctx = snapshot_context(ready_snapshot)
    results = run_assessment(ctx)
    paths = save_report(results, mode="dummy", extra={"source": "test"}, out_dir=str(tmp_path))
    assert os.path.exists(paths["json"])
    assert os.path.exists(paths["csv"])
    assert os.path.exists(paths["html"])

    with open(paths["json"], "r", encoding="utf-8") as fh:
        report = json.load(fh)
    assert report["mode"] == "dummy"
    assert report["summary"]["CRITICAL"] == 0
    assert len(report["results"]) == len(results)
    assert report["results"][0]["status"] == "OK"

    with open(paths["csv"], "r", encoding="utf-8", newline="") as fh:
        rows = list(csv.DictReader(fh))
    assert rows[0]["check"] == "organizations"
    assert {r["status"] for r in rows} <= {"OK", "INFO", "WARNING", "CRITICAL"}


def test_html_report_contains_rows(ready_snapshot, snapshot_context, tmp_path):
    ready_snapshot["services"]["ec2"]["describe_vpcs"] = {"Vpcs": [{"VpcId": f"vpc-{i}"} for i in range(5)]}
    results = run_assessment(snapshot_context(ready_snapshot), only=["vpc-count"])
    paths = save_report(results, mode="dummy", extra={"source": "test"}, out_dir=str(tmp_path))

    with open(paths["html"], "r", encoding="utf-8") as fh:
        soup = BeautifulSoup(fh, "html.parser")

    assert "mode: dummy" in soup.find("h2").get_text(strip=True)
    rows = soup.find("table").find_all("tr")
    cells = [[td.get_text(strip=True) for td in tr.find_all("td")] for tr in rows[1:]]
    assert [c[1] for c in cells] == ["OK", "WARNING"]
    assert "5 VPC(s)" in cells[0][2]


def test_results_to_json(ready_snapshot, snapshot_context):
    ctx = snapshot_context(ready_snapshot)
    results = run_assessment(ctx, only=["region"])
    doc = json.loads(results_to_json(results, ctx, scan_time="2026-01-01T00:00:00Z"))
    assert doc["scan_time"] == "2026-01-01T00:00:00Z"
    assert doc["context"]["account_id"] == "111111111111"
    assert doc["results"][0]["check"] == "region"
    assert doc["summary"] == {"OK": 1, "INFO": 0, "WARNING": 0, "CRITICAL": 0}


def test_console_rendering(ready_snapshot, snapshot_context):
    results = run_assessment(snapshot_context(ready_snapshot))
    buf = io.StringIO()
    console = Console(file=buf, width=200, color_system=None, highlight=False)
    print_results(results, console=console)
    print_summary(results, console=console)
    out = buf.getvalue()

    assert "1. AWS Organizations" in out
    assert "[OK] AWS Organizations is enabled (ID: o-exampleorg1)" in out
    assert "[WARNING] Verify you can receive mail at aws-root@example.com" in out
    assert "Next steps" in out
    assert "No blocking issues found." in out


def test_summary_flags_critical_items():
    results = [CheckResult(check="region", title="Region support", status=Status.CRITICAL, message="No region")]
    assert count_by_status(results)["CRITICAL"] == 1
    buf = io.StringIO()
    print_summary(results, console=Console(file=buf, width=200, color_system=None))
    assert "Not ready" in buf.getvalue()


def test_bracketed_paths_and_identity_print_verbatim():
    buf = io.StringIO()
    console = Console(file=buf, width=200, color_system=None)
    ctx = AssessmentContext(session=None, region="eu-west-1[bold]",
                            account_id="111111111111",
                            caller_arn="arn:aws:sts::111111111111:assumed-role/[red]Admin/s")
    print_header(ctx, scan_time="2026-01-01T00:00:00Z", console=console)
    print_report_paths({"json": "out[bold]x/r.json", "csv": "a[link]b.csv", "html": "c[/]d.html"}, console=console)
    out = buf.getvalue()

    assert "Region:  eu-west-1[bold]" in out
    assert "assumed-role/[red]Admin/s" in out
    assert "- JSON: out[bold]x/r.json" in out
    assert "- CSV:  a[link]b.csv" in out
    assert "- HTML: c[/]d.html" in out
