"""ASGI entrypoint for the meal lens API."""

from meal_lens.api.app import create_app
from meal_lens.containers import build_container

app = create_app(build_container())
