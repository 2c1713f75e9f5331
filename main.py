# main.py
"""
CLI entrypoint for the Binance API key auditor.

- Supports two modes:
  * live: fetch the key's permissions from Binance (default)
  * file: read a saved apiRestrictions JSON response (offline testing)
- Prints a colored audit summary and saves JSON, CSV, and HTML reports.

Exit codes: 0 audit ran, 1 audit could not run, 2 risk at or above --fail-on.
"""

import argparse
import logging
import os
import sys
from typing import Optional, Tuple

from rich.console import Console
from rich.prompt import Prompt

from keyaudit.binance_api import FetchError, fetch_permissions, lookup_public_ip
from keyaudit.rules import audit_snapshot
from models import AuditResult, PermissionSnapshot, RiskLevel
from utils import (
    checking_status,
    load_json_file,
    print_audit_result,
    print_banner,
    print_fetch_failure,
    result_to_json,
    save_report,
    status_console,
)
from config import BINANCE_BASE_URL, DEFAULT_REPORT_DIR, ENV_API_KEY, ENV_API_SECRET

logger = logging.getLogger("key_auditor")

EXIT_OK = 0
EXIT_AUDIT_FAILED = 1
EXIT_RISK_THRESHOLD = 2


def read_credentials(console: Optional[Console] = None) -> Tuple[str, str]:
    """
    Return (api_key, api_secret) from the environment, prompting for anything missing.
    Input is masked; values are never echoed or logged.
    """
    api_key = os.environ.get(ENV_API_KEY) or Prompt.ask(
        "Enter your Binance API Key", password=True, console=console)
    api_secret = os.environ.get(ENV_API_SECRET) or Prompt.ask(
        "Enter your Binance Secret Key", password=True, console=console)
    return api_key.strip(), api_secret.strip()


def report_result(result: AuditResult, mode: str, extra: dict, report_dir: Optional[str],
                  as_json: bool = False) -> None:
    report_paths = None
    if report_dir:
        report_paths = save_report(result, mode=mode, extra=extra, out_dir=report_dir)
        logger.info("Saved reports: %s", ", ".join(report_paths.values()))
    if as_json:
        print(result_to_json(result))
    else:
        print_audit_result(result, report_paths)


def run_file(file_path: str, report_dir: Optional[str] = DEFAULT_REPORT_DIR, as_json: bool = False) -> AuditResult:
    """
    Audit a saved apiRestrictions response. No Binance access is required.
    """
    logger.info("Running in file mode using file: %s", file_path)
    snapshot = PermissionSnapshot.from_api(load_json_file(file_path))
    result = audit_snapshot(snapshot)
    report_result(result, "file", {"source_file": file_path}, report_dir, as_json)
    return result


def run_live(api_key: str, api_secret: str, report_dir: Optional[str] = DEFAULT_REPORT_DIR,
             as_json: bool = False, client=None) -> Optional[AuditResult]:
    """
    Fetch the key's permissions from Binance and audit them.

    Returns None when the fetch fails; the failure has already been explained
    to the user and no risk level is produced.
    """
    logger.info("Running in live mode (base_url=%s)", BINANCE_BASE_URL)
    try:
        with checking_status(status_console(as_json)):
            snapshot = fetch_permissions(api_key, api_secret, client=client)
    except FetchError as e:
        logger.error("Permission fetch failed: %s", e)
        public_ip = lookup_public_ip() if e.kind == "rejected" else None
        print_fetch_failure(e, public_ip=public_ip, console=status_console(as_json))
        return None

    result = audit_snapshot(snapshot)
    report_result(result, "live", {"base_url": BINANCE_BASE_URL}, report_dir, as_json)
    return result


def exit_code_for(result: Optional[AuditResult], fail_on: Optional[str]) -> int:
    if result is None:
        return EXIT_AUDIT_FAILED
    if fail_on and result.risk_level.rank >= RiskLevel(fail_on).rank:
        return EXIT_RISK_THRESHOLD
    return EXIT_OK


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Binance API key permission auditor."
    )
    p.add_argument(
        "--mode",
        choices=["live", "file"],
        default="live",
        help="Run mode: live (Binance API) or file (saved JSON response)",
    )
    p.add_argument(
        "--file",
        help="Path to a saved apiRestrictions JSON response (required for file mode)",
    )
    p.add_argument(
        "--report-dir",
        default=DEFAULT_REPORT_DIR,
        help=f"Directory to save reports (default: {DEFAULT_REPORT_DIR})",
    )
    p.add_argument(
        "--no-report",
        action="store_true",
        help="Do not write report files",
    )
    p.add_argument(
        "--json",
        action="store_true",
        help="Print the audit result as JSON instead of the colored summary",
    )
    p.add_argument(
        "--fail-on",
        choices=[level.value for level in RiskLevel],
        help="Exit with status 2 when the risk level is at or above this value",
    )
    p.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    report_dir = None if args.no_report else args.report_dir

    if args.mode == "file":
        if not args.file:
            raise SystemExit("file mode requires --file path to JSON")
        try:
            result = run_file(args.file, report_dir=report_dir, as_json=args.json)
        except (FileNotFoundError, ValueError) as e:
            raise SystemExit(str(e))
    else:
        if not args.json:
            print_banner()
        api_key, api_secret = read_credentials(status_console(args.json))
        result = run_live(api_key, api_secret, report_dir=report_dir, as_json=args.json)

    return exit_code_for(result, args.fail_on)


if __name__ == "__main__":
    sys.exit(main())
