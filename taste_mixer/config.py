import os

from dotenv import load_dotenv

load_dotenv()

# Base & state directories
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
STATE_DIR = os.getenv("TASTE_MIXER_STATE_DIR", os.path.join(BASE_DIR, "state"))

# State files (simple key-value JSON documents)
SPOTIFY_TOKEN_FILE = os.path.join(STATE_DIR, "spotify_token.json")
FAVORITES_FILE = os.path.join(STATE_DIR, "favorite_seeds.json")

# Spotify credentials (REQUIRED at exchange/refresh time)
SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID")
SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET")
SPOTIFY_REDIRECT_URI = os.getenv(
    "SPOTIFY_REDIRECT_URI", "http://127.0.0.1:8888/auth/callback"
)

# Spotify API constants
SPOTIFY_AUTH_URL = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_API_BASE = "https://api.spotify.com/v1"
SPOTIFY_MARKET = os.getenv("SPOTIFY_MARKET", "ES")

SCOPES = [
    "user-read-private",
    "user-read-email",
    "user-top-read",
    "playlist-modify-public",
    "playlist-modify-private",
]

HTTP_TIMEOUT_SECONDS = float(os.getenv("SPOTIFY_HTTP_TIMEOUT", "15"))
FETCH_WORKERS = int(os.getenv("TASTE_MIXER_FETCH_WORKERS", "10"))

# Token lifecycle
TOKEN_EXPIRY_MARGIN_SECONDS = 5
MAX_PENDING_AUTH_STATES = 10

# Generation
MOOD_TOLERANCE = float(os.getenv("MOOD_TOLERANCE", "0.15"))
MAX_PLAYLIST_SIZE = 50
MAX_SEEDS_PER_CATEGORY = 5
DEFAULT_TRACK_DURATION_MS = 200000
GENRE_SEARCH_LIMIT = 10
SEARCH_LIMIT = 10
AUDIO_FEATURES_BATCH_SIZE = 100

# Publishing
PLAYLIST_CHUNK_SIZE = 100
PLAYLIST_DESCRIPTION = "Generated by Taste Mixer"
PLAYLIST_NAME_PREFIX = "Taste Mixer"
ERROR_DETAIL_MAX_CHARS = 100
