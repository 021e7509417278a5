from __future__ import annotations

import argparse
import asyncio
import json
import logging

from protocol_executors.config.settings import Settings
from protocol_executors.core.context import StepContext
from protocol_executors.core.errors import StepDecodeError
from protocol_executors.core.models import ExecutorResult
from protocol_executors.services.registry import ExecutorRegistry, build_default_registry
from protocol_executors.steps.loader import load_step_from_json
from protocol_executors.utils.logging_config import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Protocol step executors (RADIUS, DNS)")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run one step described in a JSON file.")
    run_parser.add_argument("--step-file", required=True, help="Path to step JSON file with a 'type' key.")
    run_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Overall deadline in seconds for the step, on top of the step's own timeout.",
    )

    subparsers.add_parser("executors", help="List registered executors and their default assertions.")
    return parser


def main(argv: list[str] | None = None) -> int:
    settings = Settings.from_env()
    configure_logging(settings.log_dir, settings.log_level)
    logger = logging.getLogger("protocol_executors")

    parser = build_parser()
    args = parser.parse_args(argv)
    registry = build_default_registry()

    if args.command == "executors":
        print(json.dumps(_describe_executors(registry), indent=2))
        return 0

    if args.command == "run":
        try:
            step = load_step_from_json(args.step_file)
        except (OSError, ValueError) as exc:
            logger.error(str(exc))
            return 2

        timeout = args.timeout if args.timeout is not None else settings.default_timeout_seconds
        try:
            result = asyncio.run(_run_step(registry, step, timeout))
        except StepDecodeError as exc:
            logger.error("Step rejected (%s): %s", exc.code, exc)
            return 2

        if result.err:
            logger.warning("Step finished with error: %s", result.err)
        print(json.dumps(result.to_step_output(), indent=2))
        return 0

    logger.info("No command provided. Use 'run' or 'executors'.")
    parser.print_help()
    return 1


async def _run_step(registry: ExecutorRegistry, step: dict[str, object], timeout: float | None) -> ExecutorResult:
    context = StepContext.with_timeout(timeout) if timeout else StepContext()
    return await registry.run_step(step, context)


def _describe_executors(registry: ExecutorRegistry) -> list[dict[str, object]]:
    described: list[dict[str, object]] = []
    for name in registry.names():
        executor = registry.get(name)
        described.append(
            {
                "name": name,
                "default_assertions": executor.get_default_assertions(),
                "result_fields": sorted(executor.zero_value_result().to_step_output()),
            }
        )
    return described


if __name__ == "__main__":
    raise SystemExit(main())
