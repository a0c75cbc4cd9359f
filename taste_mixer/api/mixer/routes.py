from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query

from taste_mixer.core import (
    GenerationCancelled,
    PartialPublishFailure,
    PublishError,
    log_info,
    log_step,
)
from taste_mixer.data import search_genres
from taste_mixer.spotify import TIME_RANGES, TOP_ITEM_KINDS, get_top_items, search

from ..errors import raise_unauth, require_token
from ..services import Services, get_services
from .schemas import (
    GenerateRequest,
    GenerateResponse,
    GenresResponse,
    PublishRequest,
    PublishResponse,
    SearchItem,
    SearchResponse,
    TrackOut,
)

router = APIRouter()

SEARCH_TYPES = ("artist", "track")


def _first_image(images: List[Dict[str, Any]]) -> str | None:
    return images[0].get("url") if images else None


def _search_item(search_type: str, item: Dict[str, Any]) -> SearchItem:
    if search_type == "artist":
        return SearchItem(
            id=item["id"],
            name=item.get("name", ""),
            image_url=_first_image(item.get("images") or []),
        )
    artists = item.get("artists") or []
    return SearchItem(
        id=item["id"],
        name=item.get("name", ""),
        image_url=_first_image((item.get("album") or {}).get("images") or []),
        artist_name=artists[0].get("name") if artists else None,
        duration_ms=item.get("duration_ms"),
    )


@router.get("/search", response_model=SearchResponse)
def search_catalog(
    q: str = Query(..., min_length=1),
    type: str = Query(default="artist"),
    services: Services = Depends(get_services),
) -> SearchResponse:
    """
    Search artists or tracks to pick as seeds.
    """
    if type not in SEARCH_TYPES:
        raise HTTPException(status_code=400, detail=f"type must be one of {SEARCH_TYPES}")
    require_token(services)

    data = search(services.gateway, q, search_type=type) or {}
    raw_items = (data.get(f"{type}s") or {}).get("items") or []
    items = [_search_item(type, i) for i in raw_items if isinstance(i, dict) and i.get("id")]
    return SearchResponse(type=type, items=items)


@router.get("/top/{kind}")
def top_items(
    kind: str,
    time_range: str = Query(default="medium_term"),
    limit: int = Query(default=5, ge=1, le=50),
    services: Services = Depends(get_services),
) -> dict:
    """
    The user's top artists or tracks for a time range.
    """
    if kind not in TOP_ITEM_KINDS or time_range not in TIME_RANGES:
        raise HTTPException(status_code=400, detail="Unknown kind or time_range.")
    require_token(services)

    data = get_top_items(services.gateway, kind, time_range=time_range, limit=limit)
    if data is None:
        raise HTTPException(status_code=502, detail=f"Top {kind} unavailable.")
    return {"kind": kind, "time_range": time_range, "items": data.get("items", [])}


@router.get("/genres", response_model=GenresResponse)
def list_genres(q: str = "") -> GenresResponse:
    return GenresResponse(genres=search_genres(q))


@router.post("/generate", response_model=GenerateResponse)
def generate_playlist(
    body: GenerateRequest,
    services: Services = Depends(get_services),
) -> GenerateResponse:
    """
    Generate (REPLACE) or extend (APPEND) the working playlist.

    A newer generate request cancels an older one still in flight; the older
    one answers 409.
    """
    if body.selection.is_empty():
        raise HTTPException(
            status_code=400,
            detail="Select at least one artist, track or genre.",
        )
    require_token(services)

    token = services.generations.begin()
    try:
        tracks = services.generator.generate(
            selection=body.selection,
            mood=body.mood,
            mode=body.mode,
            existing=[t.to_candidate() for t in body.existing],
            cancel_token=token,
        )
    except GenerationCancelled:
        raise HTTPException(
            status_code=409, detail="Superseded by a newer generate request."
        )
    finally:
        services.generations.finish(token)

    log_info(f"Generate request returned {len(tracks)} tracks.")
    return GenerateResponse(
        mode=body.mode,
        count=len(tracks),
        tracks=[TrackOut.from_candidate(t) for t in tracks if t.id],
    )


@router.post("/publish", response_model=PublishResponse)
def publish_playlist(
    body: PublishRequest,
    services: Services = Depends(get_services),
) -> PublishResponse:
    if not [tid for tid in body.track_ids if tid]:
        raise HTTPException(
            status_code=400, detail="The playlist is empty. Generate tracks first."
        )
    log_step(f"Publish request for {len(body.track_ids)} tracks.")
    try:
        result = services.publisher.publish(body.name, body.track_ids)
    except PartialPublishFailure as e:
        raise HTTPException(
            status_code=502,
            detail={
                "message": "Failed to save the playlist: some tracks were not added.",
                "detail": e.detail,
                "playlist_id": e.playlist_id,
                "playlist_url": e.playlist_url,
                "tracks_added": e.tracks_added,
                "failed_chunks": [
                    {
                        "index": c["index"],
                        "status": c["status"],
                        "track_count": len(c["uris"]),
                    }
                    for c in e.failed_chunks
                ],
            },
        )
    except PublishError as e:
        if e.reauth_required:
            raise_unauth(services, e.message)
        raise HTTPException(
            status_code=502,
            detail={"message": e.message, "detail": e.detail},
        )

    return PublishResponse(
        playlist_id=result.playlist_id,
        playlist_url=result.playlist_url,
        tracks_added=result.tracks_added,
    )
