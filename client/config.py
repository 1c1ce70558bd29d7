# client/config.py
from pathlib import Path
import os

# Base URL of the API, including the /api prefix
BASE_URL = os.environ.get("USER_AUTH_API_URL", "http://localhost:8000/api")

# Directory holding local client state (tokens)
APP_DIR = Path(os.environ.get("USER_AUTH_HOME", str(Path.home() / ".user-auth")))

# File where the token pair is persisted
SESSION_FILE = APP_DIR / "session.json"

# Seconds before an HTTP request is abandoned
REQUEST_TIMEOUT = float(os.environ.get("USER_AUTH_TIMEOUT", "10"))

# Fixed storage keys for the token pair
ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"
