from typing import Dict


def init_metrics() -> Dict[str, int]:
    return {
        "rooms_generated": 0,
        "minimal_rooms": 0,
        "corridors_generated": 0,
        "noop_generations": 0,
        "rooms_rejected": 0,
        "rollbacks": 0,
        "doors_auto_opened": 0,
        "duplicate_triggers": 0,
        "corridor_missing_doors": 0,
    }


def bump(metrics: Dict[str, int], key: str, amount: int = 1) -> None:
    """Increment a counter when metrics are enabled (an empty dict means disabled)."""
    if metrics:
        metrics[key] = metrics.get(key, 0) + amount
