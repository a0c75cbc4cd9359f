from fastapi import FastAPI

from taste_mixer import __version__
from taste_mixer.api.auth.routes import router as auth_router
from taste_mixer.api.data.routes import router as data_router
from taste_mixer.api.mixer.routes import router as mixer_router
from taste_mixer.core import configure_logging

configure_logging()

app = FastAPI(
    title="Taste Mixer API",
    version=__version__,
    description="Seed- and mood-driven Spotify playlist generation.",
)


@app.get("/health", tags=["health"])
def health() -> dict:
    return {"status": "ok"}


app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(mixer_router, prefix="/mixer", tags=["mixer"])
app.include_router(data_router, prefix="/data", tags=["data"])
