"""Command line entry point for the photo match notifier.

Processes one batch file the same way the queue-function handler processes
a triggered batch, and prints the batch response as JSON.
"""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from dotenv import load_dotenv

from photo_notifier.config.exceptions import ConfigurationError
from photo_notifier.config.loader import load_config
from photo_notifier.domain.exceptions import JobDecodeError
from photo_notifier.domain.validation import decode_job_body, extract_identity
from photo_notifier.logging import get_logger
from photo_notifier.runtime import Runtime, build_runtime, setup_logging

logger = get_logger(__name__, component="cli")


def read_batch_file(event_file: Path) -> List[Dict[str, Any]]:
    """
    Read queue records from a JSON file.

    The file holds either a trigger event (``{"Records": [...]}``) or a bare
    list of records.

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    try:
        with open(event_file, "r") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read event file: {e}",
            suggestions=[f"Ensure {event_file} exists and is readable"],
        )
    except ValueError as e:
        raise ConfigurationError(
            f"Event file is not valid JSON: {e}",
            suggestions=["See samples/batch.json for the expected format"],
        )

    records = data.get("Records") if isinstance(data, dict) else data
    if not isinstance(records, list):
        raise ConfigurationError(
            "Event file must contain a 'Records' list or a list of records",
            suggestions=["See samples/batch.json for the expected format"],
        )
    return records


def seed_records(runtime: Runtime, records: Sequence[Dict[str, Any]]) -> int:
    """Insert blank delivery records for every decodable record in the batch."""
    seeded = 0
    for record in records:
        try:
            payload = decode_job_body(record.get("body"))
        except JobDecodeError:
            continue
        event_id, guest_id = extract_identity(payload)
        if event_id and guest_id:
            runtime.repository.seed(event_id, guest_id)
            seeded += 1

    logger.info(
        f"Seeded {seeded} delivery records",
        extra={"event": "cli.seeded", "seeded_count": seeded},
    )
    return seeded


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the photo match notifier CLI.

    Returns:
        Exit code (0 when every record reached a non-failed status, 1 otherwise).
    """
    start_time = time.time()
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Photo Match Notifier - Deliver face-search match notifications by email and WhatsApp"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present, else built-in defaults)",
    )
    parser.add_argument(
        "--event-file",
        type=Path,
        required=True,
        help="JSON file with a batch of queue records",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Insert blank delivery records for the batch before processing",
    )

    args = parser.parse_args(argv)
    runtime: Optional[Runtime] = None

    try:
        app_config, env_config = load_config(args.config)
        log_level = setup_logging(app_config, env_config, args.log_level)

        logger.info(
            "Photo Match Notifier starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "event_file": str(args.event_file),
                "log_level": log_level,
            },
        )

        records = read_batch_file(args.event_file)
        runtime = build_runtime(app_config, env_config)

        if args.seed:
            seed_records(runtime, records)

        result = runtime.dispatcher.dispatch(records)
        print(json.dumps(result.to_response(), indent=2))

        logger.info(
            "Photo Match Notifier stopped",
            extra={
                "event": "service.stopping",
                "uptime_seconds": round(time.time() - start_time, 2),
                "had_failures": result.had_failures,
            },
        )
        return 1 if result.had_failures else 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during batch processing",
            extra={
                "event": "service.startup.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1
    finally:
        if runtime is not None:
            runtime.close()


if __name__ == "__main__":
    sys.exit(main())
