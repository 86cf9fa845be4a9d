"""
Ordered fallback across surfaces.

Used twice: listing surfaces (mobile -> desktop -> feed) and detail
surfaces (mobile -> desktop).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# A step receives the previous step's result (None for the first step)
Step = Callable[[Optional[T]], Awaitable[T]]


@dataclass
class FallbackResult(Generic[T]):
    """Chosen value plus every step's result, in order."""
    value: Optional[T] = None
    label: Optional[str] = None
    tried: List[Tuple[str, T]] = field(default_factory=list)

    @property
    def labels_tried(self) -> List[str]:
        return [label for label, _ in self.tried]


async def run_with_fallback(
    steps: Sequence[Tuple[str, Step]],
    needs_fallback: Callable[[T], bool],
    usable: Callable[[T], bool],
) -> FallbackResult[T]:
    """
    Run ``steps`` in order until one result no longer needs fallback.

    The value returned is the latest usable result, so a later surface
    replaces an earlier usable-but-poor one, while a failing later surface
    leaves the earlier result in place.
    """
    outcome: FallbackResult[T] = FallbackResult()
    previous: Optional[T] = None

    for i, (label, step) in enumerate(steps):
        result = await step(previous)
        outcome.tried.append((label, result))
        if usable(result):
            outcome.value, outcome.label = result, label
        if not needs_fallback(result):
            break
        if i + 1 < len(steps):
            logger.debug("%s needs fallback; trying %s", label, steps[i + 1][0])
        previous = result

    return outcome
