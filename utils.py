# utils.py
"""
Utility helpers: JSON loading, report generation, and console output.

- Uses Rich for colored status tags in the terminal.
- Optionally saves JSON, CSV, and HTML reports.
"""

from collections import Counter
from datetime import datetime, timezone
from html import escape
from typing import Dict, List, Optional
import csv
import json
import os
from json import JSONDecodeError

from rich.console import Console
from rich.text import Text

from config import CONTROL_TOWER_DOCS_URL, STATUS_STYLES
from models import AssessmentContext, CheckResult, Status

_console = Console(highlight=False, emoji=False)

NEXT_STEPS = [
    "Resolve every CRITICAL item before starting the landing zone setup.",
    "Review each WARNING and decide whether to remove or keep the resource.",
    "Open the Control Tower console in your home region and choose 'Set up landing zone'.",
    "Keep a copy of this report for your change records.",
    f"Setup guide: {CONTROL_TOWER_DOCS_URL}",
]

def load_json_file(path: str) -> dict:
    """
    Load JSON from a file and return a Python dict.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Input JSON file not found: {path}.")
    try:
        with open(path, "r", encoding="utf-8-sig") as fh:
            return json.load(fh)
    except JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e.msg} (line {e.lineno} column {e.colno})") from e

def ensure_reports_dir(path: str = "reports") -> str:
    os.makedirs(path, exist_ok=True)
    return path

def utc_timestamp() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).strftime("%Y-%m-%dT%H:%M:%SZ")

def count_by_status(results: List[CheckResult]) -> Dict[str, int]:
    counts = Counter(r.status.value for r in results)
    return {s.value: counts.get(s.value, 0) for s in Status}

def context_to_dict(ctx: AssessmentContext) -> Dict[str, Optional[str]]:
    return {
        "account_id": ctx.account_id,
        "caller_arn": ctx.caller_arn,
        "region": ctx.region,
        "region_source": ctx.region_source,
        "execution_env": ctx.execution_env,
    }

def results_to_json(results: List[CheckResult], ctx: Optional[AssessmentContext] = None,
                    scan_time: Optional[str] = None) -> str:
    doc = {
        "scan_time": scan_time or utc_timestamp(),
        "summary": count_by_status(results),
        "results": [r.to_dict() for r in results],
    }
    if ctx is not None:
        doc["context"] = context_to_dict(ctx)
    return json.dumps(doc, indent=2)

def save_report(results: List[CheckResult], mode: str, extra: dict = None, out_dir: str = "reports") -> Dict[str, str]:
    """
    Save JSON, CSV, and HTML reports and return their paths.
    """
    out_dir = ensure_reports_dir(out_dir)
    now = utc_timestamp()
    report = {
        "scan_time": now,
        "mode": mode,
        "summary": count_by_status(results),
        "results": [r.to_dict() for r in results],
    }
    if extra:
        report["extra"] = extra

    base_ts = now.replace(":", "-")
    json_path = os.path.join(out_dir, f"readiness-{base_ts}-{mode}.json")
    csv_path = os.path.join(out_dir, f"readiness-{base_ts}-{mode}.csv")
    html_path = os.path.join(out_dir, f"readiness-{base_ts}-{mode}.html")

    # JSON
    with open(json_path, "w", encoding="utf-8") as fh:
        json.dump(report, fh, indent=2)

    # CSV
    fieldnames = ["check", "title", "status", "message", "details"]
    with open(csv_path, "w", encoding="utf-8", newline="") as fh:
        writer = csv.DictWriter(fh, fieldnames=fieldnames)
        writer.writeheader()
        for r in report["results"]:
            writer.writerow({k: r.get(k, "") for k in fieldnames})

    # HTML
    html_rows: List[str] = []
    html_rows.append("<!doctype html>")
    html_rows.append("<html><head><meta charset='utf-8'><title>Control Tower Readiness Report</title>")
    html_rows.append("<style>body{font-family:Arial,Helvetica,sans-serif;margin:20px}table{border-collapse:collapse;width:100%}th,td{border:1px solid #ddd;padding:8px}th{background:#f2f2f2;text-align:left}tr:nth-child(even){background:#fafafa}pre{white-space:pre-wrap;word-wrap:break-word}.OK{color:#2e7d32}.INFO{color:#0277bd}.WARNING{color:#ef6c00}.CRITICAL{color:#c62828;font-weight:bold}</style>")
    html_rows.append("</head><body>")
    html_rows.append(f"<h2>Control Tower Readiness Report - {now} - mode: {escape(mode)}</h2>")
    summary = ", ".join(f"{k}: {v}" for k, v in report["summary"].items())
    html_rows.append(f"<p>Total results: {len(report['results'])} ({summary})</p>")
    if extra:
        html_rows.append("<div><strong>Metadata:</strong><ul>")
        for k, v in extra.items():
            html_rows.append(f"<li>{escape(str(k))}: {escape(str(v))}</li>")
        html_rows.append("</ul></div>")
    html_rows.append("<table><thead><tr><th>Check</th><th>Status</th><th>Message</th><th>Details</th></tr></thead><tbody>")
    for r in report["results"]:
        status = r.get("status", "")
        html_rows.append(
            f"<tr><td>{escape(r.get('title', ''))}</td>"
            f"<td class='{status}'>{status}</td>"
            f"<td>{escape(r.get('message', ''))}</td>"
            f"<td><pre>{escape(r.get('details', ''))}</pre></td></tr>"
        )
    html_rows.append("</tbody></table></body></html>")
    with open(html_path, "w", encoding="utf-8") as fh:
        fh.write("\n".join(html_rows))

    return {"json": json_path, "csv": csv_path, "html": html_path}

# --- Console printing with color (Rich) ---

def _status_text(status: Status) -> Text:
    """
    Return a Rich Text tag like "[WARNING]" styled by status.
    """
    return Text(f"[{status.value}]", style=STATUS_STYLES.get(status.value, ""))

def print_header(ctx: AssessmentContext, scan_time: Optional[str] = None, console: Console = None):
    console = console or _console
    console.print(Text("AWS Control Tower Readiness Assessment", style="bold cyan"))
    console.print(f"Time:    {scan_time or utc_timestamp()}", soft_wrap=True, markup=False)
    console.print(f"Account: {ctx.account_id or 'unknown'}", soft_wrap=True, markup=False)
    console.print(f"Caller:  {ctx.caller_arn or 'unknown'}", soft_wrap=True, markup=False)
    console.print(f"Region:  {ctx.region or 'not set'}", soft_wrap=True, markup=False)
    if ctx.execution_env:
        console.print(f"Environment: {ctx.execution_env}", soft_wrap=True, markup=False)

def print_results(results: List[CheckResult], console: Console = None):
    """
    Print one numbered section per check followed by its status lines.
    """
    console = console or _console
    current = None
    number = 0
    for r in results:
        if r.check != current:
            current = r.check
            number += 1
            console.print()
            console.print(Text(f"{number}. {r.title}", style="bold"))
        line = Text("  ")
        line.append_text(_status_text(r.status))
        line.append(" " + r.message)
        console.print(line, soft_wrap=True)

def print_summary(results: List[CheckResult], console: Console = None):
    """
    Print per-status counts and the fixed next-steps block.
    """
    console = console or _console
    counts = count_by_status(results)
    console.print()
    console.print(Text("Summary", style="bold cyan"))
    for status in (Status.CRITICAL, Status.WARNING, Status.INFO, Status.OK):
        line = Text("  ")
        line.append_text(_status_text(status))
        line.append(f" {counts[status.value]}")
        console.print(line)
    if counts[Status.CRITICAL.value]:
        console.print(Text("Not ready: resolve the CRITICAL items first.", style=STATUS_STYLES["CRITICAL"]))
    else:
        console.print(Text("No blocking issues found.", style=STATUS_STYLES["OK"]))
    console.print()
    console.print(Text("Next steps", style="bold cyan"))
    for i, step in enumerate(NEXT_STEPS, start=1):
        console.print(f"  {i}. {step}", soft_wrap=True)

def print_report_paths(report_paths: Dict[str, str], console: Console = None):
    console = console or _console
    console.print("\nSaved reports:")
    console.print(f"- JSON: {report_paths.get('json')}", soft_wrap=True, markup=False)
    console.print(f"- CSV:  {report_paths.get('csv')}", soft_wrap=True, markup=False)
    console.print(f"- HTML: {report_paths.get('html')}\n", soft_wrap=True, markup=False)
