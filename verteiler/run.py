import argparse
import json
import logging
import os
import sys

import pandas as pd
from pydantic import ValidationError

from .circuit_paths import get_circuit_structure_report
from .config import settings
from .model import dump_verteiler, load_verteiler, to_document
from .report import (
    circuits_frame,
    diagnostics_frame,
    format_errors,
    format_validation_report,
    wires_frame,
)
from .validator import run_validation

logger = logging.getLogger("verteiler")

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_UNREADABLE = 2


class EmptyCheckFilter(logging.Filter):
    """Drop the per-check trace lines of checks that found nothing."""

    def filter(self, record):
        if record.name != "verteiler.rule_checker" or not record.args:
            return True
        return record.args[-1] != 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="verteiler",
        description="Validate distribution panel documents against the installation safety rules.",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", type=str, help="Panel document (JSON) to validate.")
    source.add_argument(
        "--batch",
        type=str,
        help="Tab-separated file with columns Id and Path; every row is validated.",
    )
    parser.add_argument("--output-dir", type=str, default="results")
    parser.add_argument(
        "--csv",
        action="store_true",
        help="Also write the diagnostics, circuit and wire tables as CSV.",
    )
    parser.add_argument(
        "--write-back",
        dest="write_back",
        action="store_true",
        help="Overwrite each input document with wire currents and component error flags.",
    )
    parser.add_argument(
        "--structure",
        action="store_true",
        help="Print the wiring structure (circuit paths) of each panel.",
    )
    parser.add_argument("--log-level", type=str, default=settings.LOG_LEVEL)
    return parser


def _setup_logging(level):
    logging.basicConfig(level=level.upper(), format="%(levelname)s %(name)s: %(message)s")
    for handler in logging.getLogger().handlers:
        handler.addFilter(EmptyCheckFilter())


def validate_file(doc_id, path, args):
    """Validate one document and write its outputs; returns whether it is valid."""
    verteiler = load_verteiler(path)
    doc_id = doc_id or verteiler.id
    updated, result = run_validation(verteiler)

    print(format_validation_report(result, name=verteiler.name or doc_id))
    if args.structure:
        print(get_circuit_structure_report(updated))
    if not result.is_valid:
        logger.info(format_errors(result.errors))

    os.makedirs(args.output_dir, exist_ok=True)
    result_file = os.path.join(args.output_dir, f"{doc_id}_result.json")
    with open(result_file, "w") as f:
        json.dump(to_document(result), f, indent=2)
    logger.info("Result saved to %s", result_file)

    if args.csv:
        diagnostics_frame(result).to_csv(
            os.path.join(args.output_dir, f"{doc_id}_diagnostics.csv"), index=False
        )
        circuits_frame(result).to_csv(
            os.path.join(args.output_dir, f"{doc_id}_circuits.csv"), index=False
        )
        wires_frame(updated).to_csv(
            os.path.join(args.output_dir, f"{doc_id}_wires.csv"), index=False
        )
    if args.write_back:
        dump_verteiler(updated, path)
        logger.info("Updated document written to %s", path)

    return result.is_valid


def _batch_rows(batch_path):
    df = pd.read_csv(batch_path, delimiter="\t")
    base = os.path.dirname(os.path.abspath(batch_path))
    for _, row in df.iterrows():
        path = str(row["Path"])
        if not os.path.isabs(path):
            path = os.path.join(base, path)
        yield str(row["Id"]), path


def main(argv=None):
    args = build_parser().parse_args(argv)
    _setup_logging(args.log_level)

    if args.input:
        jobs = [(None, args.input)]
    else:
        try:
            jobs = list(_batch_rows(args.batch))
        except (OSError, KeyError, pd.errors.ParserError) as e:
            logger.error("Cannot read batch file %s: %s", args.batch, e)
            return EXIT_UNREADABLE

    code = EXIT_OK
    for doc_id, path in jobs:
        try:
            valid = validate_file(doc_id, path, args)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.error("Cannot read panel document %s: %s", path, e)
            code = EXIT_UNREADABLE
            continue
        if not valid and code == EXIT_OK:
            code = EXIT_INVALID
    return code


if __name__ == "__main__":
    sys.exit(main())
