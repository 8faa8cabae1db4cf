"""Application-wide configuration constants."""

import os
from pathlib import Path

# --- Networking ---
API_HOST = os.environ.get("SOLARSHARE_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("SOLARSHARE_PORT", "8765"))
API_URL = os.environ.get("SOLARSHARE_API_URL", f"http://localhost:{API_PORT}")
REQUEST_TIMEOUT = 30  # seconds, heartbeat and listing calls
UPLOAD_TIMEOUT = None  # uploads wait as long as the transport does

# --- Presence ---
INACTIVITY_TIMEOUT = 6  # seconds of silence before a participant is dropped
HEARTBEAT_INTERVAL = 3  # seconds, must stay below INACTIVITY_TIMEOUT

# --- Identity ---
USER_ID_RANGE = (1, 100)
CONFIG_DIR = Path.home() / ".solarshare"
ID_FILE = CONFIG_DIR / "participant_id"

# --- Transfer ---
# Declared for parity with deployments that set them; uploads are sent whole
# and neither value is enforced.
CHUNK_SIZE = 1024 * 1024  # 1 MB
MAX_FILE_SIZE = 5 * 1024 * 1024 * 1024  # 5 GB
DISPLAY_LINGER = 3  # seconds a finished batch stays visible

# --- Storage ---
DEFAULT_SAVE_DIR = os.environ.get(
    "SOLARSHARE_SAVE_DIR",
    str(Path.home() / "Downloads" / "FileTransfer"),
)
SENDER_DIR_PREFIX = "from_user_"

# --- Display ---
COLOR_PALETTE = [
    "bg-blue-500",
    "bg-red-500",
    "bg-yellow-500",
    "bg-green-500",
    "bg-purple-500",
    "bg-pink-500",
    "bg-indigo-500",
    "bg-cyan-500",
    "bg-orange-500",
    "bg-teal-500",
]

# (distance, size, speed)
ORBITAL_CONFIG = [
    (80, 30, 10),
    (130, 25, 15),
    (180, 28, 20),
    (230, 22, 25),
    (280, 26, 30),
    (330, 24, 35),
    (380, 27, 40),
    (430, 23, 45),
    (480, 29, 50),
    (530, 21, 55),
]
