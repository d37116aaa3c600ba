"""Application startup for the command line.

Orchestrates configuration parsing, logging setup and the parse/export
use cases, and prints the results as JSON.
"""
from __future__ import annotations

import argparse
import json
import sys
from typing import Dict, List, Optional

from loguru import logger

from app.logging_setup import SessionLogger, configure_logging
from app.use_cases import ExportPartsUseCase, ParseTabularFileUseCase, ParseTextUseCase
from config.service import ConfigurationService, ConfigurationServiceFactory
from core.exceptions import CutlistIntakeException, MappingIncompleteError
from export.excel_exporter import PartsExcelExporter
from intake.batch import BatchParser
from intake.parser import CutlistParser
from tabular.row_parser import TabularRowParser

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_MAPPING_INCOMPLETE = 2


def build_command_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cutlist-intake",
        description="Convert cutlist text or spreadsheets into structured parts (JSON on stdout).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    text = sub.add_parser("text", help="Parse free-form text, one part per line")
    text.add_argument("file", nargs="?", default="-", help="Text file, or - for stdin")
    text.add_argument("--voice", action="store_true", help="Treat input as speech transcription")

    table = sub.add_parser("table", help="Parse a CSV/TSV/XLSX cutlist")
    table.add_argument("file", help="Spreadsheet file")
    table.add_argument("--sheet", help="Worksheet name (XLSX only)")
    table.add_argument("--header-row", type=int, help="0-based header row; detected when omitted")
    table.add_argument("--data-start", type=int, help="0-based first data row")
    table.add_argument(
        "--map",
        action="append",
        default=[],
        metavar="FIELD=HEADER",
        help="Assign a header to a field, replacing automatic mapping (repeatable)",
    )

    for p in (text, table):
        p.add_argument("--output", help="Write JSON here instead of stdout")
    return parser


def parse_assignments(pairs: List[str]) -> Dict[str, str]:
    """Turn ``field=Header`` pairs into a field -> header dict."""
    assignments: Dict[str, str] = {}
    for pair in pairs:
        field_id, sep, header = pair.partition("=")
        if not sep or not field_id.strip() or not header.strip():
            raise ValueError(f"Invalid --map value {pair!r}, expected FIELD=HEADER")
        assignments[field_id.strip()] = header.strip()
    return assignments


def run_application(argv: Optional[List[str]] = None) -> int:
    """Main command-line entry point.

    Orchestrates the run:
    1. Parse configuration from all sources (defaults, files, env, CLI)
    2. Configure loguru sinks (stderr, optional session file)
    3. Run the text or table use case
    4. Export to Excel when configured, then emit JSON

    Returns:
        Process exit code
    """
    argv = sys.argv[1:] if argv is None else argv
    try:
        config_service, unknown_args = ConfigurationServiceFactory.create_from_args(argv)
    except CutlistIntakeException as e:
        configure_logging("INFO")
        logger.error(f"Configuration error: {e}")
        return EXIT_FAILURE

    configure_logging(config_service.log_level)
    session = SessionLogger(config_service.session_log_dir) if config_service.session_log_dir else None
    if session is not None:
        session.log_kv("Configuration", config_service.to_dict())

    args = build_command_parser().parse_args(unknown_args)
    try:
        return _run_command(args, config_service)
    finally:
        if session is not None:
            session.log_end()


def _run_command(args: argparse.Namespace, config_service: ConfigurationService) -> int:
    vocabulary = config_service.vocabulary()
    scorer = config_service.confidence_scorer()

    if args.command == "text":
        source = "voice" if args.voice else None
        parser = CutlistParser(vocabulary, scorer)
        use_case = ParseTextUseCase(
            BatchParser(parser, max_workers=config_service.max_workers),
            config_service.parse_context(source),
        )
        try:
            text = _read_text(args.file)
        except OSError as e:
            logger.error(f"Cannot read {args.file}: {e}")
            return EXIT_FAILURE
        result = use_case.execute(text)
    else:
        try:
            assignments = parse_assignments(args.map)
        except ValueError as e:
            logger.error(str(e))
            return EXIT_FAILURE
        use_case = ParseTabularFileUseCase(
            TabularRowParser(vocabulary, scorer),
            fields=config_service.target_fields(),
            context=config_service.parse_context("tabular"),
        )
        result = use_case.execute(
            args.file,
            sheet=args.sheet,
            header_row=args.header_row,
            data_start=args.data_start,
            assignments=assignments or None,
        )

    if config_service.excel_path:
        exporter = ExportPartsUseCase(PartsExcelExporter(config_service.excel_path))
        result = result.and_then(lambda outcome: exporter.execute(outcome.results).map(lambda _: outcome))

    if result.is_failure():
        error = result.error
        if isinstance(error, MappingIncompleteError):
            logger.error(f"Column mapping incomplete, missing: {', '.join(error.missing)}; use --map FIELD=HEADER")
            return EXIT_MAPPING_INCOMPLETE
        logger.error(str(error))
        return EXIT_FAILURE

    _write_json(result.value.to_dict(), args.output)
    return EXIT_OK


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as fh:
        return fh.read()


def _write_json(data: dict, output: Optional[str]) -> None:
    payload = json.dumps(data, indent=2, ensure_ascii=False)
    if output:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(payload + "\n")
        logger.info(f"Wrote results to {output}")
    else:
        sys.stdout.write(payload + "\n")
