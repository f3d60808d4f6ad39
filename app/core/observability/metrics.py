from __future__ import annotations

from collections import Counter
from typing import Dict

from prometheus_client import Counter as PromCounter

# Named counters (custom)
_NAMED = Counter()

# Hook invocations, keyed "hook|behavior|outcome"
_HOOKS = Counter()

_PROM_HOOK_CALLS = PromCounter(
    "reposcm_behavior_hook_calls_total",
    "Behavior hook invocations",
    ["hook", "behavior", "outcome"],
)


def reset_metrics() -> None:
    """
    Test helper: clears in-process counters to avoid cross-test leakage.
    Prometheus counters are monotonic and are not reset.
    """
    _NAMED.clear()
    _HOOKS.clear()


def inc_named(name: str, value: int = 1) -> None:
    """
    Increment a named counter (used by health endpoints, etc.).
    """
    if not name:
        return
    _NAMED[name] += int(value)


def inc_hook(hook: str, behavior: str, outcome: str) -> None:
    h = hook or "unknown"
    b = behavior or "unknown"
    o = outcome or "unknown"

    _HOOKS[f"{h}|{b}|{o}"] += 1
    _NAMED[f"hook_{h}"] += 1
    _PROM_HOOK_CALLS.labels(hook=h, behavior=b, outcome=o).inc()


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)


def snapshot_hooks() -> Dict[str, int]:
    return dict(_HOOKS)
