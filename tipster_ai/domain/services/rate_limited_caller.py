"""
Rate Limited Caller

Paces calls to the text generation service. The service enforces both a
per-minute and a per-day quota; a minimum interval between calls keeps us
under the per-minute limit without querying the quota endpoint.

A throttling answer is retried exactly once after a longer cooldown.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from tipster_ai.config import (
    AI_MIN_INTERVAL_SECONDS,
    AI_THROTTLE_COOLDOWN_SECONDS,
    AI_TIMEOUT_SECONDS,
    GEMINI_MODEL,
)
from tipster_ai.domain.exceptions import ServiceException, ThrottledException
from tipster_ai.domain.repositories.repositories import TextGenerator
from tipster_ai.domain.services.response_parsing import extract_response_text

logger = logging.getLogger(__name__)


class RateLimitedCaller:
    """
    Serializes calls to a TextGenerator through a minimum-interval gate.

    The time of the last call is owned by the instance, so independent
    limiters (e.g. one per API key) do not interfere.
    """

    def __init__(
        self,
        generator: TextGenerator,
        model: str = GEMINI_MODEL,
        min_interval: float = AI_MIN_INTERVAL_SECONDS,
        throttle_cooldown: float = AI_THROTTLE_COOLDOWN_SECONDS,
        timeout: Optional[float] = AI_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.generator = generator
        self.model = model
        self.min_interval = max(0.0, min_interval)
        self.throttle_cooldown = max(0.0, throttle_cooldown)
        self.timeout = timeout
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None
        # Held across wait-dispatch-update so concurrent tasks never interleave
        self._lock = asyncio.Lock()

    @property
    def last_call(self) -> Optional[float]:
        return self._last_call

    async def call(self, prompt: str) -> str:
        """
        Send a prompt and return the response text.

        Raises:
            ValueError: on an empty prompt
            ThrottledException: throttled twice in a row
            MalformedResponseException: no text in the response envelope
            ServiceException: any other failure, including timeouts
        """
        if not prompt or not prompt.strip():
            raise ValueError("Prompt cannot be empty")

        async with self._lock:
            try:
                envelope = await self._dispatch(prompt)
            except ThrottledException:
                logger.warning(
                    f"Generation service throttled, retrying once in {self.throttle_cooldown:.1f}s"
                )
                await self._sleep(self.throttle_cooldown)
                # A second ThrottledException propagates as-is
                envelope = await self._dispatch(prompt)

        return extract_response_text(envelope)

    async def _wait_for_slot(self) -> None:
        if self._last_call is None:
            return
        elapsed = self._clock() - self._last_call
        remaining = self.min_interval - elapsed
        if remaining > 0:
            logger.debug(f"Rate limiting: waiting {remaining:.2f}s")
            await self._sleep(remaining)

    async def _dispatch(self, prompt: str):
        await self._wait_for_slot()
        logger.info(f"Querying {self.model}...")
        try:
            if self.timeout is None:
                return await self.generator.generate_text(prompt, self.model)
            return await asyncio.wait_for(
                self.generator.generate_text(prompt, self.model),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise ServiceException(f"Generation service timed out after {self.timeout:.0f}s")
        except ServiceException:
            raise
        except Exception as e:
            raise ServiceException(f"Generation service call failed: {type(e).__name__}: {e}") from e
        finally:
            self._last_call = self._clock()
