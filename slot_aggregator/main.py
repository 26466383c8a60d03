"""Main module entrypoint for local runtime execution.

This module validates startup configuration and launches the FastAPI service or
one of the operator commands.
"""

import argparse
import json
import logging
from pathlib import Path

import uvicorn

from slot_aggregator.bootstrap import (
    bootstrap_create_application,
    bootstrap_create_poll_client,
    bootstrap_create_record_service,
)
from slot_aggregator.api.payloads import api_serialize_record
from slot_aggregator.client import SLOT_STATE_FILLED, BatchPollReport
from slot_aggregator.config import config_load_settings
from slot_aggregator.domain import SlotValidationError


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
        SystemExit: Raised with status 1 when a batch run leaves slots unfilled, and
            with status 2 for invalid command arguments.
    """

    argument_parser = argparse.ArgumentParser(description="Slot aggregator runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "record-create", "batch-run"),
        help="Runtime command: `api` starts the server, `record-create` creates one record, "
        "`batch-run` drives every slot of one record through the poll client",
        type=str,
    )
    argument_parser.add_argument("--owner-id", dest="owner_id", type=str, help="Owner id for `record-create`")
    argument_parser.add_argument("--slot-count", dest="slot_count", type=int, help="Slot count for `record-create`")
    argument_parser.add_argument("--record-id", dest="record_id", type=str, help="Record id for `batch-run`")
    argument_parser.add_argument(
        "--parameters-file",
        dest="parameters_file",
        type=str,
        help="JSON file for `batch-run`: one parameters object, or a list with one object per slot",
    )
    argument_parser.add_argument(
        "--state-file",
        dest="state_file",
        type=str,
        help="Optional poll state file override for `batch-run`",
    )
    argument_parser.add_argument("--log-level", dest="log_level", type=str, help="Optional log level override")
    parsed_arguments = argument_parser.parse_args()

    if parsed_arguments.command == "batch-run":
        main_configure_logging(parsed_arguments.log_level or "INFO")
        if not parsed_arguments.record_id or not parsed_arguments.parameters_file:
            argument_parser.error("`batch-run` requires --record-id and --parameters-file")
        slot_parameters = json.loads(Path(parsed_arguments.parameters_file).read_text(encoding="utf-8"))
        poll_client = bootstrap_create_poll_client(state_file=parsed_arguments.state_file)
        try:
            report = poll_client.client_run_batch(record_id=parsed_arguments.record_id, slot_parameters=slot_parameters)
        finally:
            poll_client.client_close()
        print(json.dumps(main_render_batch_report(report), indent=2))
        if not report.completed:
            raise SystemExit(1)
        return

    settings = config_load_settings()
    main_configure_logging(parsed_arguments.log_level or settings.log_level)

    if parsed_arguments.command == "record-create":
        if not parsed_arguments.owner_id or parsed_arguments.slot_count is None:
            argument_parser.error("`record-create` requires --owner-id and --slot-count")
        record_service = bootstrap_create_record_service()
        try:
            record = record_service.job_record_create(
                owner_id=parsed_arguments.owner_id,
                slot_count=parsed_arguments.slot_count,
            )
        except SlotValidationError as error:
            argument_parser.error(str(error))
        print(json.dumps(api_serialize_record(record), indent=2))
        return

    application = bootstrap_create_application(settings=settings)
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
        log_level=settings.log_level.lower(),
    )


def main_configure_logging(log_level: str) -> None:
    """Configure root logging once for the process.

    Args:
        log_level: Logging level name.

    Returns:
        None: Logging is configured as a side effect.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def main_render_batch_report(report: BatchPollReport) -> dict[str, object]:
    """Render a batch report as a JSON-compatible summary.

    Args:
        report: Batch run report.

    Returns:
        dict[str, object]: Summary with per-slot outcomes in slot order.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {
        "record_id": report.record_id,
        "completed": report.completed,
        "filled_count": report.filled_count,
        "slot_count": report.slot_count,
        "slots": [
            {
                "slot_index": outcome.slot_index,
                "state": outcome.state,
                "result_url": outcome.result_url,
                "error": outcome.error,
                "attempts": outcome.attempts,
            }
            for _, outcome in sorted(report.slot_outcomes.items())
        ],
        "unfilled_slot_indexes": [
            slot_index
            for slot_index in range(report.slot_count)
            if slot_index not in report.slot_outcomes or report.slot_outcomes[slot_index].state != SLOT_STATE_FILLED
        ],
    }


if __name__ == "__main__":
    main()
