"""
Ordered multi-provider fallback dispatch

One FallbackDispatcher exists per pipeline stage. It walks the stage's
providers in priority order, consults the shared RateLimiter before every
attempt and returns the first populated result. Failures of individual
providers never abort the walk: they are collected as ServiceError records
and handed back to the caller together with the result (if any).
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence

from ..config.settings import ProviderConfig
from ..utils.logger import get_logger
from .models import (
    ErrorCode,
    LyricsRequest,
    LyricsResult,
    RecognitionRequest,
    RecognitionResult,
    ServiceError,
    Stage,
    TranslationRequest,
    TranslationResult,
)
from .rate_limiter import RateLimiter


class RecognitionProvider(Protocol):
    """Audio fingerprinting service"""
    name: str
    config: ProviderConfig

    @property
    def is_enabled(self) -> bool: ...

    async def attempt(self, request: RecognitionRequest) -> Optional[RecognitionResult]: ...


class LyricsProvider(Protocol):
    """Lyrics lookup service"""
    name: str
    config: ProviderConfig

    @property
    def is_enabled(self) -> bool: ...

    async def attempt(self, request: LyricsRequest) -> Optional[LyricsResult]: ...


class TranslationProvider(Protocol):
    """Machine translation service"""
    name: str
    config: ProviderConfig

    @property
    def is_enabled(self) -> bool: ...

    async def attempt(self, request: TranslationRequest) -> Optional[TranslationResult]: ...


Scorer = Callable[[Any, Any], float]


@dataclass
class DispatchResult:
    """
    Outcome of one dispatch over a stage's providers

    Attributes:
        result: Winning provider result, None when every provider missed
        errors: Errors recorded for the providers that were denied or failed
        attempted: Display names of the providers actually called
    """
    result: Optional[Any] = None
    errors: List[ServiceError] = field(default_factory=list)
    attempted: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.result is not None

    @property
    def has_provider_failures(self) -> bool:
        """True when at least one provider raised or timed out"""
        return any(error.code in (ErrorCode.PROVIDER_ERROR, ErrorCode.TIMEOUT) for error in self.errors)


class FallbackDispatcher:
    """
    Tries a stage's providers in order until one produces a result

    Example:
        dispatcher = FallbackDispatcher(Stage.LYRICS, providers, rate_limiter)
        outcome = await dispatcher.dispatch(LyricsRequest("The Beatles", "Yesterday"))
        if outcome.result:
            print(outcome.result.source)
    """

    def __init__(
        self,
        stage: Stage,
        providers: Sequence[Any],
        rate_limiter: RateLimiter,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        """
        Args:
            stage: Stage served by the providers
            providers: Provider adapters in priority order
            rate_limiter: Limiter shared by every dispatcher of the service
            sleep: Coroutine used for the pause between best-quality attempts
        """
        self.stage = stage
        self.providers = list(providers)
        self.rate_limiter = rate_limiter
        self.sleep = sleep
        self.logger = get_logger(__name__)

    async def _try_provider(self, provider: Any, request: Any, outcome: DispatchResult) -> Optional[Any]:
        """
        Run one admission check and, when admitted, one provider call

        Errors are appended to outcome.errors; a populated result is returned
        as-is, misses and failures return None.
        """
        config: ProviderConfig = provider.config

        if not self.rate_limiter.is_allowed(config.key, config.rate_limit):
            retry_after = self.rate_limiter.get_retry_after(config.key, config.rate_limit)
            self.logger.info(f"{provider.name} rate limited, retry after {retry_after:.0f} ms")
            outcome.errors.append(ServiceError(
                service=provider.name,
                error="Rate limit exceeded",
                retry_after=retry_after,
                code=ErrorCode.RATE_LIMITED
            ))
            return None

        outcome.attempted.append(provider.name)
        try:
            result = await asyncio.wait_for(provider.attempt(request), timeout=config.timeout_seconds)
        except asyncio.TimeoutError:
            self.logger.warning(f"{provider.name} timed out after {config.timeout_millis} ms")
            outcome.errors.append(ServiceError(
                service=provider.name,
                error=f"Request timed out after {config.timeout_millis} ms",
                code=ErrorCode.TIMEOUT
            ))
            return None
        except Exception as e:
            self.logger.warning(f"{provider.name} failed: {e}")
            outcome.errors.append(ServiceError(
                service=provider.name,
                error=str(e) or e.__class__.__name__,
                code=ErrorCode.PROVIDER_ERROR
            ))
            return None

        if result is None or result.is_empty():
            self.logger.debug(f"{provider.name}: no {self.stage.value} result")
            return None

        return result

    async def dispatch(self, request: Any) -> DispatchResult:
        """
        Return the first populated result in provider priority order

        Disabled providers are skipped without an error. Rate limited,
        failing and timed out providers are recorded and skipped. Empty
        results are skipped silently.

        Args:
            request: Stage request passed to every provider

        Returns:
            DispatchResult with the winning result (or None) and collected errors
        """
        outcome = DispatchResult()

        for provider in self.providers:
            if not provider.is_enabled:
                self.logger.debug(f"Skipping disabled provider {provider.name}")
                continue

            result = await self._try_provider(provider, request, outcome)
            if result is not None:
                self.rate_limiter.record_request(provider.config.key)
                self.logger.info(f"{self.stage.value} served by {provider.name}")
                outcome.result = result
                return outcome

        self.logger.info(f"All {self.stage.value} providers exhausted ({len(outcome.errors)} errors)")
        return outcome

    async def dispatch_best(self, request: Any, scorer: Scorer, delay_millis: int = 0) -> DispatchResult:
        """
        Query every admissible provider and keep the best-scoring result

        Errors are recorded as in dispatch(). Every success is recorded with
        the rate limiter. On equal scores the earlier provider wins.

        Args:
            request: Stage request passed to every provider
            scorer: Callable (request, result) -> float, higher is better
            delay_millis: Pause between consecutive provider calls

        Returns:
            DispatchResult with the best result (or None) and collected errors
        """
        outcome = DispatchResult()
        best_result = None
        best_score = None
        called_any = False

        for provider in self.providers:
            if not provider.is_enabled:
                continue

            if called_any and delay_millis > 0:
                await self.sleep(delay_millis / 1000.0)
            called_any = True

            result = await self._try_provider(provider, request, outcome)
            if result is None:
                continue

            self.rate_limiter.record_request(provider.config.key)
            score = scorer(request, result)
            self.logger.debug(f"{provider.name} scored {score:.3f}")
            if best_score is None or score > best_score:
                best_result = result
                best_score = score

        outcome.result = best_result
        return outcome

    def is_available(self) -> bool:
        """True when some enabled provider would currently be admitted"""
        return any(
            provider.is_enabled and self.rate_limiter.would_allow(provider.config.key, provider.config.rate_limit)
            for provider in self.providers
        )

    def get_rate_limit_status(self) -> Dict[str, Dict[str, Any]]:
        """Per provider key: remaining requests, reset time and enabled flag"""
        return {
            provider.config.key: {
                'remaining': self.rate_limiter.get_remaining_requests(provider.config.key),
                'reset_time': self.rate_limiter.get_reset_time(provider.config.key),
                'enabled': provider.is_enabled,
            }
            for provider in self.providers
        }
