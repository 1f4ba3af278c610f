"""Recovery of structured data from free-text model output."""

from .decoder import REPAIR_STEPS, repair_json, robust_json_parse

__all__ = ["REPAIR_STEPS", "repair_json", "robust_json_parse"]
