"""Command line interface: masks a JSON file of records using a YAML config."""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .config.config_manager import ConfigurationManager
from .core.masker_factory import build_masker
from .logging.logging_config import add_context_to_logger, configure_logging, get_logger
from .utils.json_utils import dumps


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Mask sensitive fields in JSON records")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to the masking configuration file (default: masking.yaml)"
    )
    parser.add_argument(
        "--input",
        type=str,
        required=True,
        help="JSON file holding one record or a list of records"
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Where to write the masked JSON (default: stdout)"
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI.

    Returns:
        int: 0 when every record was masked, 1 when any record reported errors
    """
    args = parse_args(argv)

    config = ConfigurationManager(args.config).get_config()
    configure_logging(config.logging)
    logger = add_context_to_logger(get_logger(__name__), {"input_file": args.input})

    masker = build_masker(config)

    with open(args.input) as f:
        data = json.load(f)

    records = data if isinstance(data, list) else [data]
    results = [masker.mask(record) for record in records]

    failed = [r for r in results if not r.is_success]
    for index, result in enumerate(results):
        for error in result.errors:
            logger.warning(f"Record {index}: {error}")

    masked = [r.masked_data for r in results]
    output = dumps(masked if isinstance(data, list) else masked[0], indent=2)

    if args.output:
        Path(args.output).write_text(output + "\n")
    else:
        sys.stdout.write(output + "\n")

    logger.info(f"Masked {len(results)} record(s), {len(failed)} with errors")
    return 1 if failed else 0
