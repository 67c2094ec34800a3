#!/usr/bin/env python3
"""Ordered fallback chains: each tier runs only after the previous one was rejected"""

import sys
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from xcode_ui_mcp.ui.envelope import UiActionResult, failure


@dataclass
class TierOutcome:
    result: UiActionResult
    # True when this tier was rejected and the next one should be tried
    advance: bool = False


@dataclass
class FallbackTier:
    name: str
    attempt: Callable[[], TierOutcome]


def run_fallback_chain(tiers: List[FallbackTier],
                       backend: str,
                       exhausted_code: str,
                       description: str,
                       cancel: Optional[threading.Event] = None) -> UiActionResult:
    """
    Try tiers strictly in order until one settles the outcome.

    A result from any tier after the first carries a warning naming the
    degraded path. When every tier is rejected the result is a failure with
    exhausted_code and the per-tier errors in data["attempts"].
    """
    attempts = []
    for index, tier in enumerate(tiers):
        if cancel is not None and cancel.is_set():
            return failure(backend, "aborted", "ABORTED", data={"attempts": attempts})

        if index > 0:
            print(f"Debug: {description}: falling back to '{tier.name}'", file=sys.stderr)

        outcome = tier.attempt()
        if not outcome.advance:
            result = outcome.result
            if index > 0 and result.ok:
                result.add_warning(f"{description}: used fallback '{tier.name}' after "
                                   f"{', '.join(a['tier'] for a in attempts)} was rejected")
            return result

        errors = outcome.result.errors or []
        attempts.append({
            "tier": tier.name,
            "error": errors[0].message if errors else "rejected",
        })

    return failure(
        backend,
        f"{description}: all fallbacks failed ({', '.join(a['tier'] for a in attempts)})",
        exhausted_code,
        data={"attempts": attempts}
    )
