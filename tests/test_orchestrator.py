"""Test pipeline orchestration end to end with scripted providers"""

import pytest

from lyrics_translator.core.exceptions import ProviderError
from lyrics_translator.core.models import (
    BatchRequest,
    ErrorCode,
    HealthStatus,
    PipelineStatus,
    SongInfo,
    Stage,
    TranslationOptions,
)
from lyrics_translator.pipeline.orchestrator import LyricsTranslatorService

from conftest import exhaust, lyrics_result, recognition_result, translation_result


LONG_LYRICS = "\n".join(["Yesterday, all my troubles seemed so far away"] * 4)


@pytest.fixture
def chains(provider_factory):
    """Default provider chains: every provider answers successfully"""
    return {
        'recognition': [
            provider_factory("recognition_acrcloud", [recognition_result("ACRCloud")], name="ACRCloud"),
            provider_factory("recognition_audd", [recognition_result("AudD.io", 0.8)], name="AudD.io"),
        ],
        'lyrics': [
            provider_factory("lyrics_musixmatch", [lyrics_result("Musixmatch", LONG_LYRICS)], name="Musixmatch"),
            provider_factory("lyrics_lyrics_ovh", [lyrics_result("Lyrics.ovh", LONG_LYRICS)], name="Lyrics.ovh"),
            provider_factory("lyrics_lyrics_api", [lyrics_result("LyricsAPI", LONG_LYRICS)], name="LyricsAPI"),
        ],
        'translation': [
            provider_factory(
                "translation_mymemory",
                [translation_result("MyMemory", "\n".join(["Ayer, todos mis problemas parecian lejanos"] * 4))],
                name="MyMemory"
            ),
            provider_factory("translation_libretranslate", [translation_result("LibreTranslate")], name="LibreTranslate"),
            provider_factory(
                "translation_google_free", [translation_result("Google Translate (Free)")],
                name="Google Translate (Free)"
            ),
        ],
    }


@pytest.fixture
def make_service(settings, rate_limiter, sleep_recorder, chains):
    def factory(**overrides):
        kwargs = dict(
            settings=settings,
            rate_limiter=rate_limiter,
            recognition_providers=chains['recognition'],
            lyrics_providers=chains['lyrics'],
            translation_providers=chains['translation'],
            sleep=sleep_recorder,
        )
        kwargs.update(overrides)
        return LyricsTranslatorService(**kwargs)
    return factory


class TestTranslateFromSongInfo:
    """Test the manual song info pipeline"""

    @pytest.mark.asyncio
    async def test_happy_path_without_recognition(self, make_service, chains):
        """Recognition disabled, Beatles/Yesterday -> es"""
        for provider in chains['recognition']:
            provider.enabled = False
        service = make_service()

        outcome = await service.translate_from_song_info("The Beatles", "Yesterday", "es")

        assert outcome.status == PipelineStatus.DONE
        assert outcome.recognition is None
        assert outcome.lyrics.source == "Musixmatch"
        assert outcome.translation.target_language == "es"
        assert outcome.translation.source == "MyMemory"
        assert outcome.errors == []
        assert outcome.failed_stage is None
        assert 0 < outcome.confidence <= 1
        assert outcome.processing_time_millis >= 0
        assert chains['recognition'][0].calls == []

    @pytest.mark.asyncio
    async def test_lyrics_falls_back_to_first_admissible(self, make_service, chains, rate_limiter):
        exhaust(rate_limiter, chains['lyrics'][0])
        service = make_service()

        outcome = await service.translate_from_song_info("The Beatles", "Yesterday", "es")

        assert outcome.lyrics.source == "Lyrics.ovh"
        assert outcome.errors[0].code == ErrorCode.RATE_LIMITED
        assert outcome.errors[0].service == "Musixmatch"
        assert outcome.status == PipelineStatus.DONE

    @pytest.mark.asyncio
    async def test_search_terms_are_cleaned(self, make_service, chains):
        service = make_service()

        await service.translate_from_song_info("The Beatles feat. Someone", "Yesterday (Remastered 2009)", "es")

        request = chains['lyrics'][0].calls[0]
        assert request.artist == "The Beatles"
        assert request.title == "Yesterday"

    @pytest.mark.asyncio
    async def test_all_translation_providers_rate_limited(self, make_service, chains, rate_limiter, sleep_recorder):
        """No translation, one rate limit error per translation provider, no retry"""
        for provider in chains['translation']:
            exhaust(rate_limiter, provider)
        service = make_service()

        outcome = await service.translate_from_song_info("The Beatles", "Yesterday", "es")

        assert outcome.translation is None
        assert outcome.lyrics is not None
        assert outcome.status == PipelineStatus.FAIL
        assert outcome.failed_stage == Stage.TRANSLATION
        assert outcome.confidence == 0

        rate_limited = [error for error in outcome.errors if error.code == ErrorCode.RATE_LIMITED]
        assert [error.service for error in rate_limited] == ["MyMemory", "LibreTranslate", "Google Translate (Free)"]
        assert all(error.error == "Rate limit exceeded" for error in rate_limited)
        assert all(error.retry_after > 0 for error in rate_limited)

        exhausted = [error for error in outcome.errors if error.code == ErrorCode.STAGE_EXHAUSTED]
        assert len(exhausted) == 1
        assert exhausted[0].service == "translation"

        assert sleep_recorder.calls == []
        assert all(provider.calls == [] for provider in chains['translation'])

    @pytest.mark.asyncio
    async def test_missing_song_info(self, make_service, chains):
        service = make_service()

        outcome = await service.translate_from_song_info("", "Yesterday", "es")

        assert outcome.status == PipelineStatus.FAIL
        assert outcome.failed_stage == Stage.LYRICS
        assert len(outcome.errors) == 1
        assert outcome.errors[0].code == ErrorCode.MISSING_INPUT
        assert outcome.errors[0].error == "Missing artist or title information"
        assert all(provider.calls == [] for provider in chains['lyrics'])

    @pytest.mark.asyncio
    async def test_unsupported_language(self, make_service, chains):
        service = make_service()

        outcome = await service.translate_from_song_info("The Beatles", "Yesterday", "xx")

        assert outcome.status == PipelineStatus.FAIL
        assert outcome.errors[0].code == ErrorCode.INVALID_INPUT
        assert outcome.errors[0].error == "Unsupported target language: xx"
        assert all(provider.calls == [] for provider in chains['lyrics'])

    @pytest.mark.asyncio
    async def test_lyrics_exhausted(self, make_service, chains):
        for provider in chains['lyrics']:
            provider.script = [None]
        service = make_service()

        outcome = await service.translate_from_song_info("Nobody", "Nothing", "es")

        assert outcome.lyrics is None
        assert outcome.failed_stage == Stage.LYRICS
        assert outcome.errors[-1].code == ErrorCode.STAGE_EXHAUSTED
        assert outcome.errors[-1].error == "Failed to fetch lyrics from all available services"
        assert all(len(provider.calls) == 1 for provider in chains['lyrics'])


class TestStageRetry:
    """Test bounded stage retry"""

    @pytest.mark.asyncio
    async def test_stage_retried_after_provider_failure(self, make_service, chains, sleep_recorder):
        chains['lyrics'] = [chains['lyrics'][0]]
        chains['lyrics'][0].script = [ProviderError("Musixmatch", "Musixmatch API error: 503"),
                                      lyrics_result("Musixmatch", LONG_LYRICS)]
        service = make_service(lyrics_providers=chains['lyrics'])

        outcome = await service.translate_from_song_info("The Beatles", "Yesterday", "es")

        assert outcome.status == PipelineStatus.DONE
        assert len(chains['lyrics'][0].calls) == 2
        assert sleep_recorder.calls == [1.0]
        assert [error.code for error in outcome.errors] == [ErrorCode.PROVIDER_ERROR]

    @pytest.mark.asyncio
    async def test_retry_budget_is_bounded(self, make_service, chains, sleep_recorder):
        chains['lyrics'] = [chains['lyrics'][0]]
        chains['lyrics'][0].script = [ProviderError("Musixmatch", "down")]
        service = make_service(lyrics_providers=chains['lyrics'])

        outcome = await service.translate_from_song_info("The Beatles", "Yesterday", "es")

        assert outcome.status == PipelineStatus.FAIL
        assert len(chains['lyrics'][0].calls) == 2
        assert sleep_recorder.calls == [1.0]
        assert [error.code for error in outcome.errors] == [
            ErrorCode.PROVIDER_ERROR, ErrorCode.PROVIDER_ERROR, ErrorCode.STAGE_EXHAUSTED
        ]

    @pytest.mark.asyncio
    async def test_clean_miss_not_retried(self, make_service, chains, sleep_recorder):
        for provider in chains['lyrics']:
            provider.script = [None]
        service = make_service()

        await service.translate_from_song_info("The Beatles", "Yesterday", "es")

        assert sleep_recorder.calls == []
        assert len(chains['lyrics'][0].calls) == 1


class TestTranslateFromAudio:

    @pytest.mark.asyncio
    async def test_full_pipeline(self, make_service, chains):
        service = make_service()

        outcome = await service.translate_from_audio(b"RIFF....", TranslationOptions(target_language="es"))

        assert outcome.status == PipelineStatus.DONE
        assert outcome.recognition.source == "ACRCloud"
        assert chains['recognition'][0].calls[0].audio == b"RIFF...."
        assert outcome.lyrics.source == "Musixmatch"
        assert outcome.translation is not None

    @pytest.mark.asyncio
    async def test_recognition_exhausted(self, make_service, chains):
        for provider in chains['recognition']:
            provider.script = [None]
        service = make_service()

        outcome = await service.translate_from_audio(b"noise", TranslationOptions(target_language="es"))

        assert outcome.status == PipelineStatus.FAIL
        assert outcome.failed_stage == Stage.RECOGNITION
        assert len(outcome.errors) == 1
        assert outcome.errors[0].service == "recognition"
        assert outcome.errors[0].code == ErrorCode.STAGE_EXHAUSTED
        assert all(provider.calls == [] for provider in chains['lyrics'])

    @pytest.mark.asyncio
    async def test_manual_song_info_skips_recognition(self, make_service, chains):
        service = make_service()
        options = TranslationOptions(target_language="es", manual_song_info=SongInfo("The Beatles", "Yesterday"))

        outcome = await service.translate_from_audio(b"", options)

        assert outcome.status == PipelineStatus.DONE
        assert outcome.recognition is None
        assert all(provider.calls == [] for provider in chains['recognition'])

    @pytest.mark.asyncio
    async def test_skip_recognition_without_song_info(self, make_service):
        service = make_service()
        options = TranslationOptions(target_language="es", skip_audio_recognition=True)

        outcome = await service.translate_from_audio(b"", options)

        assert outcome.errors[0].code == ErrorCode.MISSING_INPUT

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_contained(self, make_service):
        class BrokenProvider:
            name = "Broken"

            @property
            def is_enabled(self):
                raise RuntimeError("configuration exploded")

        service = make_service(lyrics_providers=[BrokenProvider()])

        outcome = await service.translate_from_song_info("The Beatles", "Yesterday", "es")

        assert outcome.status == PipelineStatus.FAIL
        assert outcome.errors[-1].service == "pipeline"
        assert outcome.errors[-1].code == ErrorCode.PIPELINE
        assert outcome.errors[-1].error == "configuration exploded"


class TestTranslateLyricsOnly:

    @pytest.mark.asyncio
    async def test_lyrics_passthrough_is_stable(self, make_service):
        service = make_service()

        first = await service.translate_lyrics_only("Hello darkness my old friend", "es")
        second = await service.translate_lyrics_only("Hello darkness my old friend", "es")

        assert first.lyrics == second.lyrics
        assert first.lyrics.lyrics == "Hello darkness my old friend"
        assert first.lyrics.source == "Manual"
        assert first.lyrics.artist == "Unknown Artist"
        assert first.lyrics.title == "Unknown Title"
        assert first.translation is not None

    @pytest.mark.asyncio
    async def test_song_info_attached(self, make_service):
        service = make_service()

        outcome = await service.translate_lyrics_only(
            "Hello darkness", "es", song_info=SongInfo("Simon & Garfunkel", "The Sound of Silence")
        )

        assert outcome.lyrics.artist == "Simon & Garfunkel"
        assert outcome.lyrics.title == "The Sound of Silence"

    @pytest.mark.asyncio
    async def test_empty_text(self, make_service, chains):
        service = make_service()

        outcome = await service.translate_lyrics_only("   ", "es")

        assert outcome.status == PipelineStatus.FAIL
        assert outcome.errors[0].code == ErrorCode.MISSING_INPUT
        assert all(provider.calls == [] for provider in chains['translation'])


class TestBatch:

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_batch(self, make_service, chains, sleep_recorder):
        """Item 2 lacks artist/title; items 1 and 3 proceed"""
        service = make_service()
        requests = [
            {'artist': "The Beatles", 'title': "Yesterday", 'target_language': "es"},
            {'artist': "", 'title': "", 'target_language': "es"},
            BatchRequest(artist="Queen", title="Bohemian Rhapsody", target_language="fr"),
        ]

        outcomes = await service.batch_translate(requests)

        assert len(outcomes) == 3
        assert outcomes[0].status == PipelineStatus.DONE
        assert outcomes[1].status == PipelineStatus.FAIL
        assert outcomes[1].errors[0].code == ErrorCode.MISSING_INPUT
        assert outcomes[1].errors[0].error == "Missing artist or title information"
        assert outcomes[2].status == PipelineStatus.DONE
        assert [request.artist for request in chains['lyrics'][0].calls] == ["The Beatles", "Queen"]
        # Delay between items only
        assert sleep_recorder.calls == [2.0, 2.0]

    @pytest.mark.asyncio
    async def test_malformed_item_does_not_stop_batch(self, make_service, chains):
        service = make_service()
        requests = [
            {'artist': "The Beatles", 'title': "Yesterday", 'target_language': "es"},
            None,
            ("Queen", "Bohemian Rhapsody", "fr"),
            {'artist': "Queen", 'title': "Bohemian Rhapsody", 'target_language': "fr"},
        ]

        outcomes = await service.batch_translate(requests)

        assert len(outcomes) == 4
        assert outcomes[0].status == PipelineStatus.DONE
        for outcome in outcomes[1:3]:
            assert outcome.status == PipelineStatus.FAIL
            assert outcome.translation is None
            assert outcome.errors[0].service == "pipeline"
            assert outcome.errors[0].code == ErrorCode.INVALID_INPUT
        assert outcomes[3].status == PipelineStatus.DONE
        assert [request.artist for request in chains['lyrics'][0].calls] == ["The Beatles", "Queen"]

    @pytest.mark.asyncio
    async def test_empty_batch(self, make_service):
        service = make_service()
        assert await service.batch_translate([]) == []


class TestStatusAndHealth:

    def test_healthy(self, make_service):
        report = make_service().health_check()
        assert report.status == HealthStatus.HEALTHY
        assert report.services == {'recognition': True, 'lyrics': True, 'translation': True}
        assert report.details == []

    def test_degraded(self, make_service, chains):
        for provider in chains['recognition']:
            provider.enabled = False
        report = make_service().health_check()
        assert report.status == HealthStatus.DEGRADED
        assert report.services['recognition'] is False
        assert len(report.details) == 1

    def test_unhealthy(self, make_service, chains, rate_limiter):
        for stage in ('recognition', 'lyrics', 'translation'):
            for provider in chains[stage]:
                exhaust(rate_limiter, provider)
        report = make_service().health_check()
        assert report.status == HealthStatus.UNHEALTHY
        assert report.to_dict()['status'] == "unhealthy"

    def test_health_check_consumes_no_quota(self, make_service, chains, rate_limiter):
        service = make_service()
        for _ in range(20):
            service.health_check()
        assert rate_limiter.get_remaining_requests(chains['lyrics'][0].config.key) == 0
        assert rate_limiter.would_allow(chains['lyrics'][0].config.key, chains['lyrics'][0].config.rate_limit)

    def test_service_status(self, make_service):
        status = make_service().get_service_status()
        assert set(status) == {'recognition', 'lyrics', 'translation', 'availability'}
        assert set(status['lyrics']) == {'lyrics_musixmatch', 'lyrics_lyrics_ovh', 'lyrics_lyrics_api'}
        assert status['availability'] == {'recognition': True, 'lyrics': True, 'translation': True}

    @pytest.mark.asyncio
    async def test_runs_leave_stage_objects_unchanged(self, make_service):
        service = make_service()
        lyrics_state = dict(vars(service.lyrics_service))

        await service.translate_from_song_info("The Beatles", "Yesterday", "es")
        await service.translate_from_song_info("Nobody", "Nothing", "es")

        assert set(vars(service.lyrics_service)) == {'dispatcher', 'config', 'logger'}
        assert vars(service.lyrics_service) == lyrics_state

    def test_supported_languages(self, make_service):
        languages = make_service().get_supported_languages()
        assert {'code': 'es', 'name': 'Spanish'} in languages


class TestSearchLyrics:

    @pytest.mark.asyncio
    async def test_parsed_order(self, make_service, chains):
        results = await make_service().search_lyrics("The Beatles - Yesterday")
        assert len(results) == 1
        assert chains['lyrics'][0].calls[0].artist == "The Beatles"

    @pytest.mark.asyncio
    async def test_reversed_order_tried(self, make_service, chains):
        chains['lyrics'][0].script = [None, lyrics_result("Musixmatch")]
        for provider in chains['lyrics'][1:]:
            provider.script = [None]

        results = await make_service().search_lyrics("Yesterday - The Beatles")

        assert len(results) == 1
        calls = chains['lyrics'][0].calls
        assert (calls[0].artist, calls[0].title) == ("Yesterday", "The Beatles")
        assert (calls[1].artist, calls[1].title) == ("The Beatles", "Yesterday")

    @pytest.mark.asyncio
    async def test_unparseable_query(self, make_service, chains):
        results = await make_service().search_lyrics("Yesterday")
        assert results == []
        assert chains['lyrics'][0].calls == []


class TestProviderConstruction:
    """Test building the built-in adapters from settings"""

    def test_default_chains(self, settings, rate_limiter):
        service = LyricsTranslatorService(settings=settings, rate_limiter=rate_limiter)

        lyrics_names = [provider.name for provider in service.lyrics_service.dispatcher.providers]
        translation_names = [provider.name for provider in service.translation_service.dispatcher.providers]
        recognition = service.recognition_dispatcher.providers

        assert lyrics_names == ["Musixmatch", "Lyrics.ovh", "LyricsAPI"]
        assert translation_names == ["MyMemory", "LibreTranslate", "Google Translate (Free)"]
        assert [provider.name for provider in recognition] == ["ACRCloud", "AudD.io"]
        # No credentials configured
        assert not any(provider.is_enabled for provider in recognition)
        assert service.health_check().status == HealthStatus.DEGRADED

    def test_unknown_provider_ignored(self, rate_limiter):
        from lyrics_translator.config.settings import Settings
        settings = Settings(config_data={'lyrics': {'providers': ['lyrics_ovh', 'genius']}}, use_environment=False)

        service = LyricsTranslatorService(settings=settings, rate_limiter=rate_limiter)

        assert [provider.name for provider in service.lyrics_service.dispatcher.providers] == ["Lyrics.ovh"]

    @pytest.mark.asyncio
    async def test_async_context_manager_closes_http(self, settings, rate_limiter):
        async with LyricsTranslatorService(settings=settings, rate_limiter=rate_limiter) as service:
            assert service.http is not None
        assert service.http._session is None
