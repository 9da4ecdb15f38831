"""
Stand-in for a face-match service.

There is no biometric comparison: after a fixed wait, the outcome is a
Bernoulli draw. The wizard takes the decision function as a parameter, so a
real matcher (or a fixed outcome in tests) can replace simulated_match.
"""
import asyncio
import logging
import random
from typing import Callable

from ..config import MATCH_DELAY_SECONDS, MATCH_SUCCESS_RATE

logger = logging.getLogger(__name__)

MatchDecider = Callable[[], bool]


def simulated_match(success_rate: float = MATCH_SUCCESS_RATE) -> bool:
    is_match = random.random() < success_rate
    logger.info(f"Simulated face match: {'match' if is_match else 'no match'} (p={success_rate})")
    return is_match


def fixed_outcome(is_match: bool) -> MatchDecider:
    return lambda: is_match


async def wait_for_match(delay_seconds: float = MATCH_DELAY_SECONDS) -> None:
    if delay_seconds > 0:
        await asyncio.sleep(delay_seconds)
