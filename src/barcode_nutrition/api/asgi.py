"""ASGI entrypoint for the barcode nutrition API."""

from barcode_nutrition.api.app import create_app
from barcode_nutrition.containers import build_container

app = create_app(build_container())
