from fastapi import APIRouter, Depends
from pydantic import BaseModel

from taste_mixer.core import Seed
from taste_mixer.data import FavoriteSeeds

from ..services import Services, get_services

router = APIRouter()


class ToggleFavoriteRequest(BaseModel):
    seed: Seed


@router.get("/favorites", response_model=FavoriteSeeds)
def get_favorites(services: Services = Depends(get_services)) -> FavoriteSeeds:
    return services.favorites.load()


@router.post("/favorites/toggle", response_model=FavoriteSeeds)
def toggle_favorite(
    body: ToggleFavoriteRequest,
    services: Services = Depends(get_services),
) -> FavoriteSeeds:
    """
    Add the seed to its favourites list, or remove it when already present.
    """
    return services.favorites.toggle(body.seed)


@router.delete("/favorites", response_model=FavoriteSeeds)
def clear_favorites(services: Services = Depends(get_services)) -> FavoriteSeeds:
    services.favorites.clear()
    return FavoriteSeeds()
