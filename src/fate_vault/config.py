import os
from dotenv import load_dotenv

# Load .env (if present) so env-based configuration works in dev
load_dotenv()

# Backend API serving characters and templates
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8080").rstrip("/")
# Storage service proxying uploads/downloads to the object store
STORAGE_BASE_URL = os.getenv("STORAGE_BASE_URL", "http://localhost:8081/storage").rstrip("/")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))

# Images
IMAGE_FOLDER = os.getenv("IMAGE_FOLDER", "images/characters").strip("/")
MAX_IMAGE_BYTES = int(os.getenv("MAX_IMAGE_BYTES", str(10 * 1024 * 1024)))

# Seconds before transient status messages clear themselves
MESSAGE_TTL = float(os.getenv("MESSAGE_TTL", "3"))

# HTTP / runtime for the MCP server network transports
PORT = int(os.getenv("PORT", "3334"))
HOST = os.getenv("HOST", "127.0.0.1")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
