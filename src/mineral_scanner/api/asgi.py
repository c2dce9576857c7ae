"""ASGI entrypoint for the mineral scanner API."""

from mineral_scanner.api.app import create_app
from mineral_scanner.containers import build_container

app = create_app(build_container())
