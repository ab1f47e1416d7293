"""HTTP constants for the probe layer.

Centralizes all HTTP-related constants to avoid duplication across modules.
"""

# HTTP status codes
HTTP_STATUS_OK = 200
HTTP_STATUS_BAD_REQUEST = 400

# Probe defaults
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_USER_AGENT = "serverlink/0.1.0"
DEFAULT_SCHEME = "http"
DEFAULT_STATUS_PATH = "/serverlink"

# Status bodies are a single word; anything larger is not a status responder.
DEFAULT_MAX_RESPONSE_SIZE_BYTES = 64 * 1024

# Chunk size for streaming reads
DEFAULT_CHUNK_SIZE = 1024
