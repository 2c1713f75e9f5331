# utils.py
"""
Utility helpers: JSON loading, report generation, and console output.

- Uses Rich for colored permission lines and the recommendation table.
- Saves JSON, CSV, and HTML reports.
- Never receives credential material; only audit output is rendered or saved.
"""

from datetime import datetime, timezone
from html import escape
from typing import Any, Dict, List, Optional
import csv
import json
import os
from json import JSONDecodeError

from rich.console import Console
from rich.table import Table
from rich.text import Text

from models import AuditResult, PermissionStatus, RiskLevel, Severity

_console = Console()
# Prompts and diagnostics when stdout carries machine-readable output
_err_console = Console(stderr=True)

def status_console(as_json: bool = False) -> Console:
    return _err_console if as_json else _console

def load_json_file(path: str) -> dict:
    """
    Load JSON from a file and return a Python dict.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Input JSON file not found: {path}.")
    try:
        with open(path, "r", encoding="utf-8-sig") as fh:
            data = json.load(fh)
    except JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e.msg} (line {e.lineno} column {e.colno})") from e
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}, got {type(data).__name__}.")
    return data

def ensure_reports_dir(path: str = "reports") -> str:
    os.makedirs(path, exist_ok=True)
    return path

def result_to_dict(result: AuditResult) -> Dict[str, Any]:
    return {
        "risk_level": result.risk_level.value,
        "create_time": result.create_time,
        "permissions": [
            {"name": p.name, "enabled": p.enabled, "severity": p.severity.value}
            for p in result.permissions
        ],
        "recommendations": [
            {
                "rule_id": r.rule_id,
                "title": r.title,
                "reason": r.reason,
                "risk": r.risk,
                "action": r.action,
            }
            for r in result.recommendations
        ],
    }

def result_to_json(result: AuditResult) -> str:
    return json.dumps(result_to_dict(result), indent=2)

def save_report(result: AuditResult, mode: str, extra: Optional[dict] = None, out_dir: str = "reports") -> Dict[str, str]:
    """
    Save JSON, CSV, and HTML reports and return their paths.
    """
    out_dir = ensure_reports_dir(out_dir)
    now = datetime.now(timezone.utc).replace(microsecond=0, tzinfo=None).isoformat() + "Z"
    report = {"scan_time": now, "mode": mode, **result_to_dict(result)}
    if extra:
        report["extra"] = extra

    base_ts = now.replace(":", "-")
    json_path = os.path.join(out_dir, f"audit-{base_ts}-{mode}.json")
    csv_path = os.path.join(out_dir, f"audit-{base_ts}-{mode}.csv")
    html_path = os.path.join(out_dir, f"audit-{base_ts}-{mode}.html")

    # JSON
    with open(json_path, "w", encoding="utf-8") as fh:
        json.dump(report, fh, indent=2)

    # CSV, one row per permission
    fieldnames = ["name", "enabled", "severity"]
    with open(csv_path, "w", encoding="utf-8", newline="") as fh:
        writer = csv.DictWriter(fh, fieldnames=fieldnames)
        writer.writeheader()
        for p in report["permissions"]:
            writer.writerow({k: p.get(k, "") for k in fieldnames})

    # HTML
    html_rows: List[str] = []
    html_rows.append("<!doctype html>")
    html_rows.append("<html><head><meta charset='utf-8'><title>API Key Audit Report</title>")
    html_rows.append("<style>body{font-family:Arial,Helvetica,sans-serif;margin:20px}table{border-collapse:collapse;width:100%}th,td{border:1px solid #ddd;padding:8px}th{background:#f2f2f2;text-align:left}tr:nth-child(even){background:#fafafa}.HIGH{color:#c00}.MEDIUM{color:#b80}.LOW{color:#080}</style>")
    html_rows.append("</head><body>")
    html_rows.append(f"<h2>API Key Audit Report - {now} - mode: {escape(mode)}</h2>")
    level = report["risk_level"]
    html_rows.append(f"<p id='risk-level'>Risk Level: <strong class='{level}'>{level}</strong></p>")
    if extra:
        html_rows.append("<div><strong>Metadata:</strong><ul>")
        for k, v in extra.items():
            html_rows.append(f"<li>{escape(str(k))}: {escape(str(v))}</li>")
        html_rows.append("</ul></div>")
    html_rows.append("<table><thead><tr><th>Permission</th><th>State</th><th>Severity</th></tr></thead><tbody>")
    for p in result.permissions:
        html_rows.append(f"<tr><td>{escape(p.name)}</td><td>{p.label}</td><td>{p.severity.value}</td></tr>")
    html_rows.append("</tbody></table>")
    html_rows.append(f"<h3>Recommendations ({len(result.recommendations)})</h3><ol>")
    for r in result.recommendations:
        html_rows.append(
            f"<li><strong>{escape(r.title)}</strong><ul>"
            f"<li>Reason: {escape(r.reason)}</li>"
            f"<li>Risk: {escape(r.risk)}</li>"
            f"<li>Recommendation: {escape(r.action)}</li></ul></li>"
        )
    html_rows.append("</ol></body></html>")
    with open(html_path, "w", encoding="utf-8") as fh:
        fh.write("\n".join(html_rows))

    return {"json": json_path, "csv": csv_path, "html": html_path}

# --- Console printing with color ---

_SEVERITY_STYLE = {
    Severity.HIGH_RISK: ("✖", "bold red", " \U0001F6A8"),
    Severity.MEDIUM_RISK: ("⚠", "yellow", ""),
    Severity.NORMAL: ("✔", "green", ""),
}

_LEVEL_STYLE = {
    RiskLevel.HIGH: "bold red",
    RiskLevel.MEDIUM: "bold yellow",
    RiskLevel.LOW: "bold green",
}

def permission_text(status: PermissionStatus) -> Text:
    """
    Return a Rich Text line for one permission, styled by severity.
    """
    if status.severity == Severity.LOW_RISK_OFF:
        return Text(f"{status.name}: {status.label}", style="bright_black")
    icon, style, suffix = _SEVERITY_STYLE[status.severity]
    return Text(f"{icon} {status.name}: {status.label}{suffix}", style=style)

def risk_level_text(level: RiskLevel) -> Text:
    suffix = " ⚠️" if level == RiskLevel.HIGH else ""
    return Text(level.value + suffix, style=_LEVEL_STYLE[level])

def print_banner(console: Console = _console):
    console.clear()
    console.print("\U0001F680 Binance API Key Security Audit\n", style="bold cyan")

def print_audit_result(result: AuditResult, report_paths: Optional[Dict[str, str]] = None,
                       console: Console = _console):
    """
    Print the permission list, the aggregate risk level and the recommendations.
    """
    console.print("\n\U0001F4CB API KEY AUDIT RESULT")
    console.print("=" * 30, style="bright_black")
    for status in result.permissions:
        console.print(permission_text(status))

    console.print(Text("\nRisk Level: ").append(risk_level_text(result.risk_level)))

    console.print("\n\U0001F4A1 Recommendations:")
    if result.recommendations:
        table = Table(show_header=True, header_style="bold cyan", show_lines=True)
        table.add_column("#", justify="right")
        table.add_column("Recommendation", style="magenta", no_wrap=True)
        table.add_column("Reason", overflow="fold")
        table.add_column("Risk", overflow="fold")
        table.add_column("Action", overflow="fold")
        for i, r in enumerate(result.recommendations, start=1):
            table.add_row(str(i), r.title, r.reason, r.risk, r.action)
        console.print(table)
    else:
        console.print("- None. This key is locked down.", style="green")

    if report_paths:
        console.print("\nSaved reports:")
        console.print(f"- JSON: {report_paths.get('json')}")
        console.print(f"- CSV:  {report_paths.get('csv')}")
        console.print(f"- HTML: {report_paths.get('html')}")

    console.print("\n✅ Audit Complete. Stay safe! ✨\n", style="cyan")

def print_fetch_failure(error, public_ip: Optional[str] = None, console: Console = _console):
    """
    Explain why the audit could not run. `error` is a binance_api.FetchError.

    For "rejected" errors the caller passes the public IP it looked up
    (None if the lookup itself failed).
    """
    if error.kind == "network":
        console.print(Text(f"Network error: {error.message}", style="red"))
    elif error.kind == "missing_credentials":
        console.print(Text(error.message, style="red"))
    elif error.kind == "invalid_key":
        console.print("API Key Error", style="bold red")
        console.print("Please check if your API Key is entered correctly.")
    elif error.kind == "rejected":
        console.print("⚠ Request Rejected", style="bold yellow")
        console.print("Possible reasons:")
        console.print("- API Key is invalid")
        console.print("- Your current public IP is not in the whitelist")
        console.print("- API Key does not have sufficient permissions")
        if public_ip:
            console.print(f"\n\U0001F4A1 Your current public IP is: {public_ip}", style="cyan")
            console.print("Please check if this IP is added to your API Key whitelist in Binance.\n")
        else:
            console.print("Failed to fetch your public IP.", style="red")
    else:
        code = f" {error.code}" if error.code is not None else ""
        console.print(Text(f"Binance returned an error:{code} {error.message}", style="red"))
    console.print("Failed to fetch permissions.", style="red")

def checking_status(console: Console = _console):
    return console.status("\U0001F50D Checking API permissions...", spinner="dots")
