#!/usr/bin/env python3
"""
Archcheck - tooth status / extraction type validation
Main entry point for the command line
"""

import sys
import argparse
import logging
from pathlib import Path
from typing import List, Optional, Tuple

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from config import APP_NAME, APP_VERSION, ERROR_MESSAGES, SUCCESS_MESSAGES
from config.app_context import create_app_context
from config.settings import LOG_LEVELS, get_settings
from data import create_cache
from domain.exceptions import ArchcheckBaseException, CacheError, CatalogError, ValidationError
from domain.validators import parse_teeth, validate_arch, validate_extraction_type_name
from operations import (
    build_validation_data,
    default_provider_chain,
    get_base_product_id,
    get_extraction_requirements,
    persist_selection,
    register_product_extractions,
    resolve_extraction_catalog,
    restore_selection,
    seed_default_teeth,
    summarize_results,
)
from services import ExtractionCatalogReader

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    """
    Configure logging for the application.

    Sets up console output with pretty formatting.
    """
    # Create formatter with timestamp, level, module name
    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    # Console handler (stderr keeps stdout for results)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    logging.debug(f"{APP_NAME} {APP_VERSION} - logging initialized - Level: {level}")


def parse_assignment(value: str) -> Tuple[str, str]:
    """
    Parse a TYPE=TEETH command line assignment.

    Example:
        >>> parse_assignment("Implant=1,2,3")
        ('Implant', '1,2,3')
    """
    if "=" not in value:
        raise argparse.ArgumentTypeError(f"Expected TYPE=TEETH, got: {value}")
    name, teeth = value.split("=", 1)
    try:
        name = validate_extraction_type_name(name)
    except ValidationError as e:
        raise argparse.ArgumentTypeError(str(e))
    return name, teeth


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="archcheck", description=f"{APP_NAME} {APP_VERSION}")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Validate a tooth assignment for a product")
    validate.add_argument("--catalog", required=True, type=Path, help="Extraction catalog (.xlsx/.xls/.csv)")
    validate.add_argument("--product-id", required=True, help="Product id in the catalog")
    validate.add_argument("--product-name", default=None, help="Product name (default: from catalog)")
    validate.add_argument("--arch", required=True, help="maxillary or mandibular")
    validate.add_argument(
        "--assign",
        action="append",
        default=[],
        type=parse_assignment,
        metavar="TYPE=TEETH",
        help="Assign teeth to an extraction type, e.g. Implant=1,2,3 (repeatable)",
    )
    validate.add_argument("--cache", default=None, help="Session cache path (\":memory:\" allowed)")
    return parser


def _find_product(products: List[dict], product_id: str) -> Optional[dict]:
    """Exact product id first, then base id."""
    for product in products:
        if product["product_id"] == product_id:
            return product
    base_id = get_base_product_id(product_id)
    for product in products:
        if base_id and product["product_id"] == base_id:
            return product
    return None


def _error_message(error: ArchcheckBaseException) -> str:
    if isinstance(error, CatalogError):
        key = "invalid_catalog"
    elif isinstance(error, CacheError):
        key = "cache_error"
    else:
        key = "validation_error"
    return ERROR_MESSAGES[key].format(error=error)


def run_validate(args: argparse.Namespace) -> int:
    """Run the validate command, return exit code."""
    settings = get_settings()
    arch = validate_arch(args.arch)

    products = ExtractionCatalogReader(args.catalog).read_products()
    print(SUCCESS_MESSAGES["catalog_loaded"].format(count=len(products)))

    product = _find_product(products, args.product_id)
    if product is None:
        print(ERROR_MESSAGES["unknown_product"].format(product_id=args.product_id))
        return 2

    cache_path = args.cache or (settings.cache_path if settings.persist_selection else None)
    cache = create_cache("sqlite", cache_path) if cache_path else None

    try:
        product_name = args.product_name or product["product_name"] or ""
        ctx = create_app_context(cache=cache, settings=settings).with_product(args.product_id, product_name)
        store = ctx.store

        if cache is not None and settings.persist_selection:
            restore_selection(store, cache, ctx.session_id)

        register_product_extractions(
            store, args.product_id, product["extractions"], cache=cache, product_name=product_name
        )
        eligible = resolve_extraction_catalog(
            args.product_id, default_provider_chain(store, args.product_id, cache=cache)
        )
        seed_default_teeth(store, args.product_id, eligible, arch)

        for name, teeth in args.assign:
            store.set_teeth(name, arch, parse_teeth(teeth, arch), preserve_others=True)
        store.cleanup_overlaps()

        data = build_validation_data(store, product_name, arch, product["extractions"])
        results = ctx.engine.validate_configuration(data)

        print(f"\n{product_name} ({args.product_id}) - {arch}")
        for extraction in eligible:
            teeth = store.get_teeth(extraction.name, arch)
            requirements = get_extraction_requirements(extraction)
            card = ctx.engine.validate_extraction_type(
                extraction.name, arch, store, product_name, product["extractions"]
            )
            marker = "!" if card is not None else " "
            suffix = f" [{requirements}]" if requirements else ""
            print(f" {marker} {extraction.name}{suffix}: {', '.join(str(t) for t in teeth) or '-'}")

        if not results:
            print(SUCCESS_MESSAGES["validation_passed"].format(product_name=product_name, arch=arch))
        for result in results:
            print(f"\n[{result.error_type.upper()}] {result.title}")
            print(f"  {result.message}")
            if result.solution:
                print(f"  Solution: {result.solution}")
            if result.affected_teeth:
                print(f"  Affected teeth: {', '.join(str(t) for t in result.affected_teeth)}")

        if cache is not None and settings.persist_selection:
            persist_selection(store, cache, ctx.session_id)

        return 1 if summarize_results(results).errors else 0
    finally:
        if cache is not None:
            cache.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        level = (args.log_level or get_settings().log_level).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {level}")
    except ValueError as e:
        print(f"❌ {ERROR_MESSAGES['invalid_settings'].format(error=e)}")
        return 2

    # Setup logging FIRST
    setup_logging(level)

    try:
        if args.command == "validate":
            return run_validate(args)
    except ArchcheckBaseException as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"\n❌ {_error_message(e)}")
        return 2

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
