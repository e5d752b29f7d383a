"""
Report Generators
=================

Output formatters for deletion candidates and run outcomes.

Available Reporters
-------------------
CLIReporter
    Rich terminal output with candidate and outcome tables.
JSONReporter
    JSON export of the outcome report for programmatic access.

Example
-------
>>> from cloudsweep.reporters import CLIReporter, JSONReporter
>>>
>>> CLIReporter().print_report(report)
>>> JSONReporter(output_path="report.json").report(report, result)

See Also
--------
cloudsweep.core.report.Report : Input data structure.
cloudsweep.core.region_manager.MultiRegionNukeResult : Multi-region input.
"""

from cloudsweep.reporters.cli_reporter import CLIReporter
from cloudsweep.reporters.json_reporter import JSONReporter

__all__ = [
    "CLIReporter",
    "JSONReporter",
]
