"""
JSON Reporter Module
====================

Exports the outcome report of a run to JSON.

Output Structure
----------------
::

    {
      "metadata": {
        "generated_at": "2024-01-15T10:30:00+00:00",
        "dry_run": false,
        "regions": ["us-east-1"],
        "errors": {}
      },
      "summary": {"total": 2, "deleted": 1, "failed": 1},
      "entries": [
        {"identifier": "vol-1", "resource_type": "EBS Volume", "deleted": true, ...}
      ],
      "results": {"us-east-1": [...]}
    }

Example
-------
>>> reporter = JSONReporter(output_path="report.json")
>>> path = reporter.report(report, result)
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from cloudsweep.core.region_manager import MultiRegionNukeResult
from cloudsweep.core.report import Report

# Module logger
logger = logging.getLogger(__name__)


class JSONReporter:
    """
    Reporter for exporting run outcomes to JSON.

    Parameters
    ----------
    output_path : str, optional
        Output file path. Defaults to a timestamped file name in the
        current directory.
    indent : int, default=2
        JSON indentation. None for compact output.
    """

    def __init__(self, output_path: Optional[str] = None, indent: Optional[int] = 2) -> None:
        self.output_path = output_path
        self.indent = indent

    def build(
        self,
        report: Report,
        result: Optional[MultiRegionNukeResult] = None,
    ) -> Dict[str, Any]:
        """Build the JSON-serializable document."""
        report_data = report.to_dict()
        document: Dict[str, Any] = {
            "metadata": {
                "generated_at": datetime.now(timezone.utc).isoformat(),
                "start_time": report_data["start_time"],
                "end_time": report_data["end_time"],
            },
            "summary": {
                "total": report_data["total"],
                "deleted": report_data["deleted"],
                "failed": report_data["failed"],
            },
            "entries": report_data["entries"],
        }

        if result is not None:
            document["metadata"].update(
                {
                    "dry_run": result.dry_run,
                    "regions": result.regions,
                    "errors": result.errors,
                }
            )
            document["results"] = result.to_dict()["results_by_region"]

        return document

    def to_string(
        self,
        report: Report,
        result: Optional[MultiRegionNukeResult] = None,
    ) -> str:
        """Serialize the report to a JSON string."""
        return json.dumps(self.build(report, result), indent=self.indent, default=str)

    def report(
        self,
        report: Report,
        result: Optional[MultiRegionNukeResult] = None,
    ) -> str:
        """
        Write the report to a file.

        Returns
        -------
        str
            Path of the written file.
        """
        path = Path(self.output_path or self._default_filename())
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_string(report, result), encoding="utf-8")

        logger.info(f"Report written to {path}")
        return str(path)

    @staticmethod
    def _default_filename() -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        return f"cloudsweep_report_{timestamp}.json"

    def __repr__(self) -> str:
        """Return string representation."""
        return f"JSONReporter(output_path={self.output_path!r})"
