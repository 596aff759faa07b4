"""CLI for running topology rules on GeoJSON files."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from topocheck.config import get_settings
from topocheck.core.exceptions import TopocheckException
from topocheck.models.schemas.layer import ExtentPayload, LayerPayload
from topocheck.models.schemas.validation import ValidateRequest, ValidateResponse
from topocheck.services.validation_service import ValidationService
from topocheck.topology.types import ValidationScope

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def load_layer_file(path: str) -> LayerPayload:
    """
    Read a GeoJSON FeatureCollection file into a layer payload.

    The layer is named after the file stem.

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: if the file is not a GeoJSON FeatureCollection
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Layer file not found: {path}")

    with file_path.open(encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"{file_path.name}: not valid JSON: {e}") from e

    if not isinstance(data, dict) or data.get("type") != "FeatureCollection":
        raise ValueError(f"{file_path.name}: must be a GeoJSON FeatureCollection")

    return LayerPayload(
        name=file_path.stem,
        layer_id=str(file_path.resolve()),
        features=data.get("features", []),
    )


def run_validation(
    rule: str,
    layer1_path: str,
    layer2_path: Optional[str] = None,
    extent: Optional[list[float]] = None,
    same_layer: bool = False,
) -> ValidateResponse:
    """
    Run one rule on GeoJSON files.

    Args:
        rule: Rule name, e.g. "must not have dangles"
        layer1_path: GeoJSON file for the first layer
        layer2_path: GeoJSON file for the second layer (two-layer rules)
        extent: [xmin, ymin, xmax, ymax] to restrict the run to a view extent
        same_layer: Use the first layer as the second layer

    Returns:
        The validation response with serialised topology errors
    """
    layer1 = load_layer_file(layer1_path)
    layer2 = load_layer_file(layer2_path) if layer2_path else None

    extent_payload = None
    scope = ValidationScope.LAYER
    if extent is not None:
        xmin, ymin, xmax, ymax = extent
        extent_payload = ExtentPayload(xmin=xmin, ymin=ymin, xmax=xmax, ymax=ymax)
        scope = ValidationScope.EXTENT

    request = ValidateRequest(
        rule=rule,
        layer1=layer1,
        layer2=layer2,
        same_layer=same_layer,
        scope=scope,
        extent=extent_payload,
    )

    service = ValidationService(get_settings())
    return service.validate(request)


def print_rules() -> None:
    service = ValidationService(get_settings())
    for rule in service.list_rules().rules:
        layers = "layer1, layer2" if rule.use_second_layer else "layer1"
        print(f"{rule.name!r:42} [{layers}] {rule.description}")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Check GeoJSON layers against a topology rule",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m topocheck.cli.validate --list-rules
  python -m topocheck.cli.validate "must not have dangles" roads.geojson
  python -m topocheck.cli.validate "must be inside" wells.geojson parcels.geojson
  python -m topocheck.cli.validate "must not overlap" parcels.geojson --extent 0 0 100 100
        """,
    )

    parser.add_argument(
        "rule",
        nargs="?",
        help="Rule name (quote names containing spaces)",
    )

    parser.add_argument(
        "layer1",
        nargs="?",
        help="GeoJSON FeatureCollection for the first layer",
    )

    parser.add_argument(
        "layer2",
        nargs="?",
        help="GeoJSON FeatureCollection for the second layer",
    )

    parser.add_argument(
        "--extent",
        nargs=4,
        type=float,
        metavar=("XMIN", "YMIN", "XMAX", "YMAX"),
        help="Only check features within this view extent",
    )

    parser.add_argument(
        "--same-layer",
        action="store_true",
        help="Use layer1 as the second layer of a two-layer rule",
    )

    parser.add_argument(
        "--output",
        "-o",
        help="Write the JSON result to this file instead of stdout",
    )

    parser.add_argument(
        "--list-rules",
        action="store_true",
        help="List available rules and exit",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.list_rules:
        print_rules()
        return

    if not args.rule or not args.layer1:
        parser.print_usage(sys.stderr)
        logger.error("A rule name and a layer file are required")
        sys.exit(1)

    try:
        response = run_validation(
            rule=args.rule,
            layer1_path=args.layer1,
            layer2_path=args.layer2,
            extent=args.extent,
            same_layer=args.same_layer,
        )
    except KeyboardInterrupt:
        logger.info("\nValidation interrupted by user")
        sys.exit(130)
    except (FileNotFoundError, ValueError) as e:
        # pydantic's ValidationError is a ValueError
        if isinstance(e, ValidationError):
            logger.error(f"Invalid input: {e.error_count()} error(s)\n{e}")
        else:
            logger.error(str(e))
        sys.exit(1)
    except TopocheckException as e:
        logger.error(f"{e.code}: {e.detail}")
        sys.exit(1)

    for warning in response.warnings:
        logger.warning(warning)
    logger.info(f"{response.error_count} topology error(s) for rule '{response.rule}'")

    output = json.dumps(response.model_dump(mode="json"), indent=2)
    if args.output:
        Path(args.output).write_text(output + "\n", encoding="utf-8")
        logger.info(f"Wrote result to {args.output}")
    else:
        print(output)


if __name__ == "__main__":
    main()
