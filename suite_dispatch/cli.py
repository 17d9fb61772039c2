"""CLI entry point for dispatching test suites to a remote backend."""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from suite_dispatch.cancellation import CancellationToken, InterruptHandler
from suite_dispatch.clients.loading import ClientNotFoundError, load_client_manifest
from suite_dispatch.models.project import Project
from suite_dispatch.orchestrator import SuiteOrchestrator
from suite_dispatch.project_loader import load_project
from suite_dispatch.reporters import (
    JSONReporter,
    JUnitReporter,
    Reporter,
    SummaryReporter,
)

EXIT_CONFIG_ERROR = 2


def apply_overrides(
    project: Project,
    concurrency: int | None = None,
    retries: int | None = None,
) -> Project:
    """Apply command line overrides on top of the project file.

    Raises:
        ValueError: If an override is out of range

    """
    update: dict[str, int] = {}
    if concurrency is not None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        update["concurrency"] = concurrency
    if retries is not None:
        if retries < 0:
            raise ValueError("retries must not be negative")
        update["retries"] = retries
    return project.model_copy(update=update) if update else project


def build_reporters(
    log: logging.Logger,
    json_output: Path | None = None,
    junit_output: Path | None = None,
) -> Sequence[Reporter]:
    reporters: list[Reporter] = [SummaryReporter(log=log), JSONReporter(path=json_output)]
    if junit_output is not None:
        reporters.append(JUnitReporter(path=junit_output))
    return reporters


def log_dry_run(log: logging.Logger, project: Project) -> None:
    names = ", ".join(suite.name for suite in project.suites)
    log.info("The following suites would have run: [%s]", names)


async def run(
    client_key: str,
    client_config_json: str,
    project_path: Path,
    concurrency: int | None = None,
    retries: int | None = None,
    selected_suites: Sequence[str] = (),
    dry_run: bool = False,
    json_output: Path | None = None,
    junit_output: Path | None = None,
) -> int:
    """Run the project's suites and return the exit code."""
    log = logging.getLogger("suite_dispatch")

    try:
        log.info("Loading project: %s", project_path)
        project = await load_project(project_path)
        project = apply_overrides(project, concurrency, retries)
        project = project.select_suites(selected_suites)

        if dry_run:
            log_dry_run(log, project)
            return 0

        log.info("Loading job client: %s", client_key)
        manifest = load_client_manifest(client_key)
        config = manifest.load_config(client_config_json)
    except (FileNotFoundError, ValueError, ClientNotFoundError) as e:
        log.error("Invalid configuration: %s", e)
        return EXIT_CONFIG_ERROR

    reporters = build_reporters(log, json_output, junit_output)
    token = CancellationToken()

    with InterruptHandler(token=token):
        async with manifest.client_factory(config) as client:
            orchestrator = SuiteOrchestrator(
                client=client,
                project=project,
                token=token,
                reporters=reporters,
            )
            passed = await orchestrator.run()

    return 0 if passed else 1


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run test suites on a remote execution backend"
    )
    parser.add_argument(
        "--client",
        default="hosted-runner",
        help="Job client key (default: hosted-runner)",
    )
    parser.add_argument(
        "--client-config",
        default="{}",
        help="JSON configuration for the job client",
    )
    parser.add_argument(
        "--project",
        type=Path,
        required=True,
        help="Path to the project file describing the suites",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        help="Maximum number of suites running at once",
    )
    parser.add_argument(
        "--retries",
        type=int,
        help="Number of times a failed suite is resubmitted",
    )
    parser.add_argument(
        "--select-suite",
        action="append",
        default=[],
        dest="selected_suites",
        help="Run only the named suite (may be repeated)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the suites that would run without starting them",
    )
    parser.add_argument(
        "--json-output",
        type=Path,
        help="Write the JSON report to this file instead of stdout",
    )
    parser.add_argument(
        "--junit",
        type=Path,
        help="Write a JUnit XML report to this file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            client_key=args.client,
            client_config_json=args.client_config,
            project_path=args.project,
            concurrency=args.concurrency,
            retries=args.retries,
            selected_suites=args.selected_suites,
            dry_run=args.dry_run,
            json_output=args.json_output,
            junit_output=args.junit,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
