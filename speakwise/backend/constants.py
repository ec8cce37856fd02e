APP_VERSION = "0.1.0"
MAX_UPLOAD_BYTES = 25 * 1024 * 1024   # 25 MB of recorded or uploaded audio
MAX_REQUEST_BYTES = 30 * 1024 * 1024  # audio plus multipart form fields
CHUNK_SIZE = 1024 * 1024
MAX_PROVIDER_ERROR_CHARS = 1200
UPLOAD_ROUTES = ("/api/transcribe", "/api/analyze-audio", "/api/analyze-emotions")
