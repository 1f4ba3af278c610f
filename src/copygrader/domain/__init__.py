"""Provider-agnostic domain values."""
