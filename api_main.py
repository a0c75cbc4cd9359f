"""ASGI entrypoint: `uvicorn api_main:app --port 8888`."""

from taste_mixer.api.fastapi_app import app

__all__ = ["app"]
