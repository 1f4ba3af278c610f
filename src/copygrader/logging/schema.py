"""Preferred key order for structured log events."""

DEFAULT_EVENT_KEY_ORDER: tuple[str, ...] = (
    "ts_utc",
    "level",
    "logger",
    "ts",
    "message",
)

EVENT_KEY_ORDER: dict[str, tuple[str, ...]] = {
    "ai_request": (
        "ts_utc",
        "level",
        "provider",
        "model",
        "api_model",
        "forced_json",
        "prefill",
        "input_chars",
        "image_count",
        "image_bytes",
    ),
    "ai_response": (
        "ts_utc",
        "level",
        "provider",
        "model",
        "latency_ms",
        "output_chars",
    ),
    "ai_error": (
        "ts_utc",
        "level",
        "provider",
        "model",
        "latency_ms",
        "error_type",
        "error",
        "http_status",
    ),
    "provider_log": ("ts_utc", "level", "provider", "message"),
    "provider_retry": (
        "ts_utc",
        "level",
        "provider",
        "operation",
        "attempt",
        "sleep_sec",
        "result",
    ),
    "fallback_attempt": (
        "ts_utc",
        "level",
        "task",
        "model",
        "label",
        "outcome",
        "kind",
        "error",
    ),
    "llm_call": ("ts_utc", "level", "task_type", "model", "provider", "elapsed_ms"),
}
