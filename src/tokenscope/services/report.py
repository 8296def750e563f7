"""
Scan Report Service - JSON reports of token usage scans.

One report is written per scan run:

    scan-reports/token-scan-<scan_id>-<timestamp>.json

``scan_id`` is a millisecond timestamp and ``timestamp`` a compact UTC time,
so sorting file names lexically sorts reports chronologically and the last
name is the most recent report.

Report layout:
    {
        "scan_id": "...",
        "scan_date": "...",
        "total_repositories": 3,
        "total_tokens_found": 1204,
        "total_unique_tokens": 187,
        "repositories": [ScanResult.to_dict(), ...],
        "summary": {...}
    }

Author: Tokenscope Team
"""

import json
import logging
import time
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..constants import REPORT_FILE_PREFIX, REPORT_FILE_SUFFIX, TOP_TOKENS_LIMIT
from ..models import ScanResult

logger = logging.getLogger(__name__)


def build_overall_summary(results: list[ScanResult], top_limit: int = TOP_TOKENS_LIMIT) -> dict[str, Any]:
    """
    Summarize scan results across repositories.

    Top tokens are summed by name over all repositories and ordered by usage
    descending, then name.
    """
    usage_by_token: Counter = Counter()
    category_by_token: dict[str, str] = {}
    tokens_by_category: Counter = Counter()
    team_usage: Counter = Counter()

    for result in results:
        team_usage[result.repository.team] += result.total_usage
        for token in result.tokens_found:
            usage_by_token[token.token_name] += token.total_count
            category_by_token.setdefault(token.token_name, token.category)
            tokens_by_category[token.category] += token.total_count

    top_tokens = sorted(usage_by_token.items(), key=lambda item: (-item[1], item[0]))[:top_limit]
    average_coverage = sum(r.coverage for r in results) / len(results) if results else 0.0

    return {
        "total_files": sum(r.summary.total_files for r in results),
        "average_coverage": round(average_coverage, 2),
        "tokens_by_category": dict(sorted(tokens_by_category.items())),
        "team_usage": dict(sorted(team_usage.items())),
        "top_tokens": [
            {"name": name, "usage": usage, "category": category_by_token[name]}
            for name, usage in top_tokens
        ],
        "repositories_by_status": {
            "successful": sum(1 for r in results if not r.errors),
            "with_errors": sum(1 for r in results if r.errors),
            "failed": sum(1 for r in results if r.errors and not r.tokens_found),
        },
    }


class ScanReportService:
    """Writes scan reports and reads back the most recent one."""

    def __init__(self, output_path: Path):
        self.output_path = Path(output_path)

    def build_report(self, results: list[ScanResult], scan_id: Optional[str] = None) -> dict[str, Any]:
        """Assemble the report document for a scan run."""
        return {
            "scan_id": scan_id or str(int(time.time() * 1000)),
            "scan_date": datetime.now(timezone.utc).isoformat(),
            "total_repositories": len(results),
            "total_tokens_found": sum(r.total_usage for r in results),
            "total_unique_tokens": len({t.token_name for r in results for t in r.tokens_found}),
            "repositories": [r.to_dict() for r in results],
            "summary": build_overall_summary(results),
        }

    def write_report(self, results: list[ScanResult], scan_id: Optional[str] = None) -> Path:
        """
        Write a report for a scan run.

        Returns:
            Path of the written report file
        """
        report = self.build_report(results, scan_id)
        self.output_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        report_file = self.output_path / f"{REPORT_FILE_PREFIX}{report['scan_id']}-{timestamp}{REPORT_FILE_SUFFIX}"

        with open(report_file, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2)

        logger.info(
            "Scan report generated",
            extra={"report": str(report_file), "repositories": len(results)},
        )
        return report_file

    def list_reports(self) -> list[Path]:
        """Report files, oldest first."""
        if not self.output_path.is_dir():
            return []
        return sorted(
            p for p in self.output_path.iterdir()
            if p.name.startswith(REPORT_FILE_PREFIX) and p.name.endswith(REPORT_FILE_SUFFIX)
        )

    def latest_report(self) -> Optional[dict[str, Any]]:
        """Load the most recent report, or None when there is none."""
        reports = self.list_reports()
        if not reports:
            return None

        latest = reports[-1]
        try:
            with open(latest, encoding="utf-8") as f:
                report = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Latest scan report could not be read", extra={"report": str(latest), "error": str(e)})
            return None

        logger.debug("Loaded scan report", extra={"report": latest.name})
        return report
