"""ASGI entrypoint for the currency converter API."""

from currency_converter.api.app import create_app
from currency_converter.containers import build_container

app = create_app(build_container())
