"""Command line entry point: scan or type a barcode and print its nutrition."""

import argparse
import asyncio
import logging
import sys

from barcode_nutrition.app_logging import configure_logging
from barcode_nutrition.containers import AppContainer, build_container
from barcode_nutrition.domain.errors import (
    CameraUnavailable,
    InvalidServingSize,
    LookupFailed,
    ProductNotFound,
    UnknownUnit,
)
from barcode_nutrition.domain.nutrition import (
    NutritionRecord,
    ScannedProduct,
    is_valid_barcode,
)
from barcode_nutrition.services.scaling import profile_for_product, scale
from barcode_nutrition.services.scanner import BarcodeScanner

_logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="barcode-nutrition",
        description="Look up nutrition for a product barcode.",
    )
    parser.add_argument("--barcode", help="enter a barcode instead of scanning")
    parser.add_argument("--quantity", type=float, help="scale to this quantity")
    parser.add_argument("--unit", default="g", help="unit for --quantity")
    return parser


async def scan_barcode(container: AppContainer) -> str:
    """Scan the camera until one barcode is read."""
    from barcode_nutrition.adapters.opencv_scanner import (
        OpenCvFrameSource,
        PyzbarFrameDecoder,
    )

    loop = asyncio.get_running_loop()
    found: asyncio.Future[str] = loop.create_future()

    def on_barcode(barcode: str) -> None:
        if not found.done():
            found.set_result(barcode)

    def on_fatal(exc: CameraUnavailable) -> None:
        if not found.done():
            found.set_exception(exc)

    def on_frame_error(exc: Exception) -> None:
        _logger.warning("Barcode detection error: %s", exc)

    scanner = BarcodeScanner(
        PyzbarFrameDecoder(), interval_seconds=container.settings.scan_interval_seconds
    )
    source = OpenCvFrameSource(device_index=container.settings.camera_index)
    try:
        await scanner.start(source, on_barcode, on_frame_error, on_fatal)
        return await found
    finally:
        await scanner.stop()


async def run(args: argparse.Namespace, container: AppContainer) -> int:
    try:
        barcode = args.barcode.strip() if args.barcode else None
        if barcode is None:
            print("Position the barcode in front of the camera...")
            barcode = await scan_barcode(container)
        if not is_valid_barcode(barcode):
            print(f"Invalid barcode: {barcode}")
            return 1
        product = await container.resolver.lookup(barcode)
        nutrition = product.nutrition
        if args.quantity is not None:
            nutrition = scale(profile_for_product(nutrition), args.quantity, args.unit)
    except CameraUnavailable as exc:
        print(exc.guidance)
        print("Use --barcode to enter the code manually.")
        return 1
    except ProductNotFound as exc:
        print(f"Product {exc.barcode} not found. You can enter it manually.")
        return 1
    except LookupFailed:
        print("Failed to fetch product information. Please try again.")
        return 1
    except (InvalidServingSize, UnknownUnit) as exc:
        print(str(exc))
        return 1
    finally:
        await container.close_resources()
    print(format_product(product, nutrition))
    return 0


def format_product(product: ScannedProduct, nutrition: NutritionRecord) -> str:
    """Format a product's nutrition for the terminal."""
    title = product.name if not product.brand else f"{product.name} ({product.brand})"
    lines = [
        title,
        f"Serving: {nutrition.serving_size:g} {nutrition.serving_unit}",
        f"Calories: {nutrition.calories:.0f} kcal",
        f"Protein: {nutrition.protein:.1f} g",
        f"Carbs: {nutrition.carbs:.1f} g",
        f"Fat: {nutrition.fat:.1f} g",
    ]
    if nutrition.fiber is not None:
        lines.append(f"Fiber: {nutrition.fiber:.1f} g")
    if nutrition.sugar is not None:
        lines.append(f"Sugar: {nutrition.sugar:.1f} g")
    if nutrition.sodium is not None:
        lines.append(f"Sodium: {nutrition.sodium:.1f} mg")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    """Run the command line tool."""
    configure_logging()
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args, build_container()))


if __name__ == "__main__":
    sys.exit(main())
