"""
Inkmark - Command Line Interface
Bakes a JSON annotation set into one page of a PDF without opening the viewer.
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from inkmark.config import AppSettings
from inkmark.core.annotations import AnnotationElement
from inkmark.core.document import DocumentSession
from inkmark.errors import InkmarkError, InvalidInputError

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def load_elements(path: Path) -> List[AnnotationElement]:
    """
    Read annotation elements from a JSON file.

    The file holds either a list of elements or an object with an
    "elements" list.
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get('elements')
    if not isinstance(data, list):
        raise InvalidInputError(f"{path}: expected a list of annotation elements")
    return [AnnotationElement.from_dict(item) for item in data]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="inkmark", description="Inkmark PDF annotation exporter")
    parser.add_argument("source", help="Path to the source PDF")
    parser.add_argument("annotations", help="Path to the annotation JSON file")
    parser.add_argument("-o", "--output", required=True, help="Output PDF path")
    parser.add_argument("--page", type=int, default=0, help="0-based page index to draw on")
    parser.add_argument("--scale", type=float, default=None,
                        help="Zoom factor the annotations were recorded at")
    parser.add_argument("--settings", help="Settings JSON file (defaults to the user config)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging verbosity")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command line interface main function"""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    source = Path(args.source)
    if not source.exists():
        logger.error("PDF file does not exist: %s", source)
        return 1

    settings = AppSettings.load(args.settings)
    scale = args.scale if args.scale is not None else settings.engine.default_scale
    session = DocumentSession(settings=settings.engine)
    try:
        elements = load_elements(Path(args.annotations))
        session.load(source.read_bytes(), source.name)
        result = session.export(elements, args.page, scale)
    except (OSError, json.JSONDecodeError, InkmarkError) as e:
        logger.error("Export failed: %s", e)
        return 1
    finally:
        session.close()

    output = Path(args.output)
    output.write_bytes(result.data)
    print(f"Wrote {output} ({len(result.drawn)} drawn, {len(result.skipped)} skipped)")
    for warning in result.warnings:
        print(f"  warning: {warning}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
