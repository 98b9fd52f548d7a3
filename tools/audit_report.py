from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from audit_core.commands import CommandRunner
from audit_core.report import build_report, format_report_text, report_to_dict, write_report
from audit_ui import config as auditor_config
from diagnostics.logging_setup import configure_logging
from diagnostics.tracing import clear_spans, format_spans, get_recent_spans


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Audit the host's immutable OS state.")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON.")
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Also write audit_report.json into this directory.",
    )
    parser.add_argument("--timings", action="store_true", help="Print per-probe timings.")
    parser.add_argument(
        "--timeout-ms",
        type=int,
        default=None,
        help="Completion timeout per command (default: from config).",
    )
    args = parser.parse_args(argv)

    configure_logging()
    start_timeout_ms, timeout_ms = auditor_config.get_timeouts()
    if args.timeout_ms and args.timeout_ms > 0:
        timeout_ms = args.timeout_ms
    runner = CommandRunner(start_timeout_ms=start_timeout_ms, timeout_ms=timeout_ms)

    clear_spans()
    report = build_report(runner)

    if args.json:
        sys.stdout.write(json.dumps(report_to_dict(report), indent=2) + "\n")
    else:
        sys.stdout.write(format_report_text(report) + "\n")

    if args.timings:
        sys.stdout.write("\n" + format_spans(get_recent_spans()) + "\n")

    if args.out is not None:
        try:
            written = write_report(report, args.out)
        except OSError as exc:
            sys.stderr.write(f"Failed to write report: {exc}\n")
            return 1
        sys.stdout.write(f"Wrote audit report to: {written}\n")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
