"""Command line entry point: export a track-layout scene as a validated RailML document."""
import sys
import json
import argparse
import traceback
from pathlib import Path
from typing import Optional, List

from loguru import logger

from constraints import DEFAULT_CANVAS_WIDTH, DEFAULT_CANVAS_HEIGHT
from core import configure_logging, validate_system_configuration, DEFAULT_LOG_FILE
from export import DesignExporter, ExportError
from railml_schema import RailMLValidator, generate_validation_report
from scene import Scene

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_INVALID_DOCUMENT = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Railway export: convert a track-layout scene into a RailML document and validate it."
    )
    parser.add_argument(
        "input_file", type=Path, help="Scene JSON ({tracks, components}) or, with --validate-only, a RailML document"
    )
    parser.add_argument(
        "--validate-only", action="store_true", help="Validate an existing RailML document and print the report"
    )
    parser.add_argument(
        "-o", "--output-dir", default="exports", help="Directory for exported files"
    )
    parser.add_argument(
        "--name", help="Base filename for exported files (default: input file stem)"
    )
    parser.add_argument("--infrastructure-id", help="Id of the exported infrastructure")
    parser.add_argument("--infrastructure-name", help="Name of the exported infrastructure")
    parser.add_argument(
        "--width", type=int, default=DEFAULT_CANVAS_WIDTH, help="Canvas width in pixels"
    )
    parser.add_argument(
        "--height", type=int, default=DEFAULT_CANVAS_HEIGHT, help="Canvas height in pixels"
    )
    parser.add_argument(
        "--no-validate", action="store_true", help="Do not embed a validation result in the document"
    )
    parser.add_argument(
        "--report", action="store_true", help="Also write a plain-text validation report"
    )
    parser.add_argument(
        "--summary", action="store_true", help="Also write a plain-text design summary"
    )
    parser.add_argument(
        "--strict", action="store_true", help="Exit with status 2 when the document has validation errors"
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    parser.add_argument(
        "--log-file", default=DEFAULT_LOG_FILE, help="Log file path (empty string disables file logging)"
    )
    return parser.parse_args(argv)


def _load_json(path: Path):
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def validate_only(args: argparse.Namespace) -> int:
    document = _load_json(args.input_file)
    result = RailMLValidator().validate_document(document)
    print(generate_validation_report(result), end="")
    if args.strict and not result.is_valid:
        return EXIT_INVALID_DOCUMENT
    return EXIT_OK


def export_scene(args: argparse.Namespace) -> int:
    scene = Scene.from_dict(_load_json(args.input_file))
    name = args.name or args.input_file.stem
    options = {
        'infrastructure_id': args.infrastructure_id,
        'infrastructure_name': args.infrastructure_name,
        'canvas_width': args.width,
        'canvas_height': args.height,
        'validate': not args.no_validate,
    }

    status = validate_system_configuration(args.output_dir)
    for check in status['checks']:
        logger.debug(check)
    if not status['valid']:
        logger.error(f"Output directory {args.output_dir} is not usable")
        return EXIT_INPUT_ERROR

    exporter = DesignExporter(output_dir=args.output_dir)

    if args.report:
        exported = exporter.export_railml_with_report(scene, name, options)
        result = exported['validation']
        logger.info(f"RailML written to {exported['railml_file']}")
        logger.info(f"Validation report written to {exported['report_file']}")
    else:
        railml_file = exporter.export_railml(scene, name, options)
        logger.info(f"RailML written to {railml_file}")
        result = None

    if args.summary:
        summary_file = exporter.export_text_summary(scene, name, args.width, args.height)
        logger.info(f"Design summary written to {summary_file}")

    if args.strict:
        if result is None:
            document = exporter.builder.build_document(scene, dict(options, validate=False))
            result = exporter.validator.validate_document(document)
        if not result.is_valid:
            logger.error(f"Document has {len(result.errors)} validation error(s)")
            return EXIT_INVALID_DOCUMENT

    return EXIT_OK


def run(args: argparse.Namespace) -> int:
    """Run the command for parsed arguments and return the process exit status."""
    if not args.input_file.exists():
        logger.error(f"Input file does not exist: {args.input_file}")
        return EXIT_INPUT_ERROR

    try:
        if args.validate_only:
            return validate_only(args)
        return export_scene(args)
    except json.JSONDecodeError as e:
        logger.error(f"Input is not valid JSON: {args.input_file}: {str(e)}")
        return EXIT_INPUT_ERROR
    except (ExportError, OSError) as e:
        logger.error(f"Export failed: {str(e)}")
        return EXIT_INPUT_ERROR


def main(argv: Optional[List[str]] = None):
    """Application entry point with comprehensive error handling."""
    args = parse_args(argv)
    configure_logging(log_file=args.log_file or None, level=args.log_level.upper())

    try:
        status = run(args)
    except KeyboardInterrupt:
        logger.info("Export interrupted by user")
        sys.exit(EXIT_INPUT_ERROR)
    except Exception as e:
        logger.critical(f"Unexpected error: {str(e)}")
        logger.critical(traceback.format_exc())
        sys.exit(EXIT_INPUT_ERROR)

    sys.exit(status)


if __name__ == "__main__":
    main()
