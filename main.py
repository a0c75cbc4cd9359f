"""Command-line entrypoint for Taste Mixer.

    python main.py login
    python main.py generate --artist 4Z8W4fKeB5YxbusRsdQVPb --genre chill --energy 0.4
    python main.py generate --genre jazz --publish "Late night"
    python main.py logout
"""

import argparse
import platform
import subprocess
import sys
from typing import List, Optional

from taste_mixer.api.services import build_services
from taste_mixer.core import (
    ArtistSeed,
    AuthStateError,
    ConfigError,
    GenreSeed,
    MoodTarget,
    PartialPublishFailure,
    ProviderRejected,
    ProviderUnavailable,
    PublishError,
    SeedSelection,
    TrackSeed,
    configure_logging,
    log_error,
    log_info,
    log_step,
    log_success,
    log_warning,
)
from taste_mixer.pipeline import PlaylistMode
from taste_mixer.spotify import (
    build_spotify_auth_url,
    get_current_user,
    wait_for_authorization_code,
)


def _try_open_browser(url: str) -> None:
    """
    Try to open a URL in the system browser without printing anything
    to the current terminal.
    """
    system = platform.system()
    if system == "Darwin":
        cmd = ["open", url]
    elif system == "Windows":
        cmd = ["cmd", "/c", "start", "", url]
    else:
        cmd = ["xdg-open", url]

    try:
        subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except OSError:
        # The URL is logged as well; the user can open it manually.
        pass


def cmd_login(services, args) -> int:
    state = services.auth_states.issue()
    try:
        auth_url = build_spotify_auth_url(state)
    except ConfigError as e:
        log_error(str(e))
        return 2

    log_step("Opening browser for Spotify authorization...")
    log_info(f"If your browser does not open automatically, open this URL:\n{auth_url}")
    _try_open_browser(auth_url)

    try:
        code, returned_state = wait_for_authorization_code(timeout=args.timeout)
        services.auth_states.consume(returned_state)
        services.token_manager.exchange_code(code)
    except (TimeoutError, AuthStateError, ProviderRejected, ProviderUnavailable) as e:
        log_error(f"Login failed: {e}")
        return 1
    except ConfigError as e:
        log_error(str(e))
        return 2

    profile = get_current_user(services.gateway) or {}
    name = profile.get("display_name") or profile.get("id") or "unknown user"
    log_success(f"Logged in as {name}.")
    return 0


def cmd_logout(services, args) -> int:
    services.token_manager.logout()
    return 0


def _track_seed(services, track_id: str) -> TrackSeed:
    payload = services.gateway.request(f"/tracks/{track_id}") or {}
    artists = payload.get("artists") or []
    images = (payload.get("album") or {}).get("images") or []
    return TrackSeed(
        id=track_id,
        name=payload.get("name") or track_id,
        artist_name=artists[0].get("name", "") if artists else "",
        image_url=images[0].get("url") if images else None,
        duration_ms=payload.get("duration_ms"),
    )


def _build_selection(services, args) -> SeedSelection:
    return SeedSelection(
        artists=[ArtistSeed(id=a, name=a) for a in args.artist],
        genres=[GenreSeed(name=g) for g in args.genre],
        tracks=[_track_seed(services, t) for t in args.track],
    )


def cmd_generate(services, args) -> int:
    if services.token_manager.get_valid_access_token() is None:
        log_error("Not authenticated. Run `python main.py login` first.")
        return 1

    try:
        selection = _build_selection(services, args)
        mood = MoodTarget(
            energy=args.energy,
            valence=args.valence,
            danceability=args.danceability,
            acousticness=args.acousticness,
        )
    except ValueError as e:
        log_error(f"Invalid input: {e}")
        return 2

    if selection.is_empty():
        log_error("Select at least one --artist, --track or --genre.")
        return 2

    tracks = services.generator.generate(selection, mood, PlaylistMode.REPLACE)
    if not tracks:
        log_warning("No tracks matched the seeds and mood.")
        return 0

    for i, t in enumerate(tracks, start=1):
        print(f"{i:2d}. {t.name} - {', '.join(t.artists)}")

    if args.publish is None:
        return 0

    try:
        result = services.publisher.publish(args.publish, [t.id for t in tracks])
    except PartialPublishFailure as e:
        log_error(
            f"Playlist created ({e.playlist_url}) but {len(e.failed_chunks)} "
            f"chunk(s) failed: {e.detail}"
        )
        return 1
    except PublishError as e:
        log_error(f"{e.message} {e.detail}".strip())
        return 1

    log_success(f"Playlist saved: {result.playlist_url}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Taste Mixer for Spotify")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Authorize with Spotify")
    login.add_argument("--timeout", type=int, default=180)
    login.set_defaults(func=cmd_login)

    logout = sub.add_parser("logout", help="Forget stored Spotify tokens")
    logout.set_defaults(func=cmd_logout)

    gen = sub.add_parser("generate", help="Generate a playlist from seeds")
    gen.add_argument("--artist", action="append", default=[], help="Artist id")
    gen.add_argument("--track", action="append", default=[], help="Track id")
    gen.add_argument("--genre", action="append", default=[], help="Genre name")
    for feature in ("energy", "valence", "danceability", "acousticness"):
        gen.add_argument(f"--{feature}", type=float, default=0.5)
    gen.add_argument(
        "--publish",
        nargs="?",
        const="",
        default=None,
        metavar="NAME",
        help="Save to Spotify (blank name uses a dated default)",
    )
    gen.set_defaults(func=cmd_generate)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)
    services = build_services()
    return args.func(services, args)


if __name__ == "__main__":
    sys.exit(main())
