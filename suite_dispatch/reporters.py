"""Reporters fed by the result aggregator."""

import json
import logging
import sys
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TextIO

from suite_dispatch.models.result import ExecResult

STATUS_SYMBOLS = {
    "succeeded": "✓",
    "failed": "✗",
    "timed_out": "⏱",
    "cancelled": "⊘",
}


class Reporter(ABC):
    """Receives each suite result as it arrives and renders a final report.

    Reporters are only ever called from the aggregator task and need not be
    safe for concurrent use.
    """

    @abstractmethod
    def add(self, result: ExecResult) -> None:
        """Record one suite result."""

    @abstractmethod
    def render(self) -> None:
        """Output the report once every suite has finished."""


@dataclass(kw_only=True)
class SummaryReporter(Reporter):
    """Logs a one-line-per-suite summary table."""

    log: logging.Logger = field(
        default_factory=lambda: logging.getLogger("suite_dispatch")
    )
    results: list[ExecResult] = field(default_factory=list)

    def add(self, result: ExecResult) -> None:
        self.results.append(result)

    def render(self) -> None:
        self.log.info("=" * 80)
        self.log.info("Suite Results Summary:")
        self.log.info("=" * 80)

        for result in self.results:
            symbol = STATUS_SYMBOLS.get(result.status, "?")
            self.log.info(
                "%s %s: %s (%.2fs, attempts=%d)",
                symbol,
                result.name,
                result.status,
                result.duration,
                result.attempts,
            )
            if result.job_id:
                self.log.info("  Job ID: %s", result.job_id)
            if result.error is not None:
                self.log.info("  Error: %s", result.error)

        passed = sum(1 for r in self.results if r.passed)
        self.log.info("%d of %d suite(s) passed", passed, len(self.results))


def format_output(results: Sequence[ExecResult]) -> dict[str, Any]:
    """Format suite results for JSON output."""
    records: list[dict[str, Any]] = [
        {
            "suite": result.name,
            "status": result.status,
            "passed": result.passed,
            "job_id": result.job_id,
            "attempts": result.attempts,
            "duration": result.duration,
            "start_time": result.start_time.isoformat(),
            "end_time": result.end_time.isoformat(),
            "message": str(result.error) if result.error is not None else None,
        }
        for result in results
    ]

    return {
        "total": len(records),
        "passed": sum(1 for r in records if r["passed"]),
        "failed": sum(1 for r in records if r["status"] == "failed"),
        "timeouts": sum(1 for r in records if r["status"] == "timed_out"),
        "cancelled": sum(1 for r in records if r["status"] == "cancelled"),
        "results": records,
    }


@dataclass(kw_only=True)
class JSONReporter(Reporter):
    """Writes totals and per-suite records as JSON.

    Writes to `path` when given, otherwise to `stream` (stdout by default).
    """

    path: Path | None = None
    stream: TextIO | None = None
    results: list[ExecResult] = field(default_factory=list)

    def add(self, result: ExecResult) -> None:
        self.results.append(result)

    def render(self) -> None:
        content = json.dumps(format_output(self.results), indent=2)
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(content + "\n")
            return
        print(content, file=self.stream or sys.stdout)


@dataclass(kw_only=True)
class JUnitReporter(Reporter):
    """Writes a JUnit XML report with one test case per suite."""

    path: Path
    name: str = "suite-dispatch"
    results: list[ExecResult] = field(default_factory=list)

    def add(self, result: ExecResult) -> None:
        self.results.append(result)

    def build_tree(self) -> ET.ElementTree:
        failures = sum(1 for r in self.results if r.status in {"failed", "timed_out"})
        skipped = sum(1 for r in self.results if r.status == "cancelled")

        root = ET.Element(
            "testsuites",
            name=self.name,
            tests=str(len(self.results)),
            failures=str(failures),
            skipped=str(skipped),
            time=f"{sum(r.duration for r in self.results):.3f}",
        )
        for result in self.results:
            suite = ET.SubElement(
                root,
                "testsuite",
                name=result.name,
                tests="1",
                timestamp=result.start_time.isoformat(),
                time=f"{result.duration:.3f}",
            )
            properties = ET.SubElement(suite, "properties")
            ET.SubElement(
                properties, "property", name="job_id", value=result.job_id or ""
            )
            ET.SubElement(
                properties, "property", name="attempts", value=str(result.attempts)
            )
            case = ET.SubElement(
                suite,
                "testcase",
                name=result.name,
                classname=result.name,
                time=f"{result.duration:.3f}",
            )
            if result.status == "cancelled":
                ET.SubElement(case, "skipped", message=str(result.error))
            elif result.error is not None:
                ET.SubElement(
                    case, "failure", message=str(result.error), type=result.status
                )
        return ET.ElementTree(root)

    def render(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tree = self.build_tree()
        ET.indent(tree)
        tree.write(self.path, encoding="utf-8", xml_declaration=True)
