"""Application-wide constants."""

APP_NAME = "copygrader"

# Log files
LOG_FILE_EXTENSION = ".log"
CALL_LOG_FILE_EXTENSION = ".json"
DATETIME_FORMAT_FILENAME = "%Y-%m-%d_%H-%M-%S"

# Provider error bodies are cut to this many characters before being raised.
ERROR_BODY_MAX_CHARS = 500

# Transcriptions shorter than this are treated as degenerate responses.
MIN_TRANSCRIPTION_CHARS = 20

PAGE_SEPARATOR = "\n\n---\n\n"
