"""
Ordered credential failover.

`try_in_order` walks credentials strictly by rank. Each credential gets
exactly one attempt; the first success wins and later credentials are never
touched. Nothing is merged across credentials.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Credential:
    secret: str
    rank: int

    def __repr__(self) -> str:
        return f"Credential(rank={self.rank})"


class ExhaustionError(Exception):
    """Every credential was tried once and none succeeded."""

    def __init__(self, failures: List[Tuple[int, Exception]]):
        self.failures = failures
        super().__init__(f"All {len(failures)} credential(s) failed")


def try_in_order(
    credentials: Sequence[Credential],
    attempt: Callable[[Credential], T],
) -> Tuple[T, int]:
    """Returns (result, rank_used) or raises ExhaustionError."""
    failures: List[Tuple[int, Exception]] = []

    for credential in sorted(credentials, key=lambda c: c.rank):
        try:
            result = attempt(credential)
        except Exception as exc:
            logger.warning(
                "[Failover] Credential rank=%s failed: %s",
                credential.rank,
                type(exc).__name__,
            )
            failures.append((credential.rank, exc))
            continue
        return result, credential.rank

    raise ExhaustionError(failures)
