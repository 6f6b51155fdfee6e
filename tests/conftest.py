"""Test configuration and fixtures"""

import asyncio
import tempfile
from pathlib import Path
from typing import Any, List, Optional

import pytest

from lyrics_translator.config.settings import ProviderConfig, RateLimitConfig, Settings
from lyrics_translator.core.models import LyricsResult, RecognitionResult, TranslationResult
from lyrics_translator.core.rate_limiter import RateLimiter


class FakeClock:
    """Manually advanced epoch-millis clock"""

    def __init__(self, start: float = 1_700_000_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, millis: float) -> None:
        self.now += millis


class HANG:
    """Scripted response that never completes before the provider timeout"""


class FakeProvider:
    """
    Provider adapter driven by a script of responses

    Each attempt() consumes the next scripted item: an exception instance is
    raised, HANG sleeps past the timeout, anything else is returned. When the
    script runs out the last item is repeated.
    """

    def __init__(self, config: ProviderConfig, script: List[Any], enabled: bool = True):
        self.config = config
        self.name = config.name
        self.script = list(script)
        self.enabled = enabled
        self.calls: List[Any] = []

    @property
    def is_enabled(self) -> bool:
        return self.enabled

    async def attempt(self, request):
        self.calls.append(request)
        item = self.script.pop(0) if len(self.script) > 1 else (self.script[0] if self.script else None)
        if item is HANG:
            await asyncio.sleep(5)
            return None
        if isinstance(item, Exception):
            raise item
        return item


def make_config(
    key: str,
    name: Optional[str] = None,
    max_requests: int = 10,
    window_millis: int = 60_000,
    timeout_millis: int = 1000
) -> ProviderConfig:
    return ProviderConfig(
        key=key,
        name=name or key,
        base_url=f"https://example.invalid/{key}",
        rate_limit=RateLimitConfig(max_requests=max_requests, window_millis=window_millis),
        timeout_millis=timeout_millis,
    )


def lyrics_result(source: str, text: str = "Yesterday, all my troubles seemed so far away") -> LyricsResult:
    return LyricsResult(lyrics=text, title="Yesterday", artist="The Beatles", source=source)


def translation_result(source: str, text: str = "Ayer, todos mis problemas parecian tan lejanos",
                       source_language: str = "en", target_language: str = "es") -> TranslationResult:
    return TranslationResult(
        translated_text=text,
        source_language=source_language,
        target_language=target_language,
        source=source
    )


def recognition_result(source: str = "ACRCloud", confidence: float = 0.9) -> RecognitionResult:
    return RecognitionResult(source=source, title="Yesterday", artist="The Beatles", confidence=confidence)


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays and returns at once"""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rate_limiter(clock):
    """Fresh rate limiter on the fake clock"""
    return RateLimiter(clock=clock)


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def settings():
    """Settings with built-in defaults only (no files, no environment)"""
    return Settings(config_data={}, use_environment=False)


@pytest.fixture
def provider_factory():
    """Build (config, FakeProvider) pairs"""
    def factory(key: str, script: List[Any], enabled: bool = True, **config_kwargs) -> FakeProvider:
        return FakeProvider(make_config(key, **config_kwargs), script, enabled=enabled)
    return factory


def exhaust(limiter: RateLimiter, provider: FakeProvider) -> None:
    """Consume every slot of a provider's window"""
    while limiter.is_allowed(provider.config.key, provider.config.rate_limit):
        pass
