"""Timeouts and bounded retries for calls to remote collaborators.

Every network suspension point in the synchronizer goes through
`call_with_retry`: each attempt is bounded by `timeout_s`, transient
failures are retried with exponential backoff, rejections are not.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from portal.client.errors import TransientServiceError
from portal.config import ClientConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    timeout_s: float = 10.0
    max_attempts: int = 3
    backoff_initial_s: float = 0.25
    backoff_factor: float = 2.0

    @classmethod
    def from_config(cls, cfg: ClientConfig) -> "RetryPolicy":
        return cls(
            timeout_s=cfg.request_timeout_s,
            max_attempts=cfg.max_attempts,
            backoff_initial_s=cfg.backoff_initial_s,
        )


async def call_with_retry(
    operation: str,
    call: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
) -> T:
    """Await `call()` under the policy; raise the last transient error when exhausted."""
    delay = policy.backoff_initial_s
    attempt = 1
    while True:
        try:
            return await asyncio.wait_for(call(), timeout=policy.timeout_s)
        except asyncio.TimeoutError as exc:
            if attempt >= policy.max_attempts:
                raise TransientServiceError(
                    f"{operation} timed out after {policy.timeout_s}s", operation=operation
                ) from exc
            reason = "timeout"
        except TransientServiceError as exc:
            if attempt >= policy.max_attempts:
                raise
            reason = str(exc)
        logger.warning(
            "service_retry op=%s attempt=%s/%s delay=%.2fs reason=%s",
            operation,
            attempt,
            policy.max_attempts,
            delay,
            reason,
        )
        await asyncio.sleep(delay)
        delay *= policy.backoff_factor
        attempt += 1


__all__ = ["RetryPolicy", "call_with_retry"]
