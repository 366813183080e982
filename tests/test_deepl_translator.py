from unittest.mock import AsyncMock

import pytest

from daily_wisdom.errors import InsufficientQuotaError, ProviderUnavailableError, TranslationProviderError
from daily_wisdom.services.deepl_translator import DeepLTranslator
from daily_wisdom.services.translation_provider import QuotaAwareTranslationProvider, QuotaInfo
from daily_wisdom.utils.caching import ExpiringValue

from conftest import FakeTranslator, make_article


def quota(remaining: int, limit: int = 500_000) -> QuotaInfo:
    return QuotaInfo.from_usage(limit - remaining, limit)


@pytest.fixture
def deepl() -> DeepLTranslator:
    translator = DeepLTranslator(api_key="test-key", min_quota_characters=1000)
    translator._fetch_usage = AsyncMock(return_value=quota(400_000))
    translator._call_deepl_api = AsyncMock(side_effect=lambda text, code: f"{code}:{text}")
    return translator


def test_quota_info_from_usage():
    info = QuotaInfo.from_usage(125_000, 500_000)
    assert info.remaining == 375_000
    assert info.percentage_used == 25.0
    assert QuotaInfo.from_usage(10, 0).percentage_used == 100.0


def test_language_support():
    translator = DeepLTranslator(api_key="k")
    assert translator.supports_language("pt")
    assert translator.supports_language("ja")
    assert not translator.supports_language("ar")


async def test_translate_maps_codes_and_keeps_base_identity(deepl):
    base = make_article()

    article = await deepl.translate(base, "pt")

    assert article.title == "PT-BR:Kintsugi"
    assert article.content.startswith("PT-BR:# Kintsugi")
    assert article.language == "pt"
    assert article.is_translated is True
    assert article.sources == base.sources
    assert deepl._call_deepl_api.await_count == 2


async def test_insufficient_quota_fails_before_any_translation_call(deepl):
    deepl._fetch_usage.return_value = quota(500)
    article = make_article(title="T" * 100, content="c" * 500)

    with pytest.raises(InsufficientQuotaError) as excinfo:
        await deepl.translate(article, "es")

    assert excinfo.value.required == 600
    assert excinfo.value.remaining == 500
    deepl._call_deepl_api.assert_not_awaited()


async def test_quota_exactly_sufficient_translates(deepl):
    deepl._fetch_usage.return_value = quota(600)
    article = make_article(title="T" * 100, content="c" * 500)

    await deepl.translate(article, "es")
    assert deepl._call_deepl_api.await_count == 2


async def test_translate_always_refreshes_quota(deepl):
    await deepl.translate(make_article(), "es")
    await deepl.translate(make_article(), "fr")
    assert deepl._fetch_usage.await_count == 2


async def test_unmapped_language_and_missing_key_raise_unavailable(deepl):
    with pytest.raises(ProviderUnavailableError):
        await deepl.translate(make_article(), "ar")

    with pytest.raises(ProviderUnavailableError):
        await DeepLTranslator(api_key=None).translate(make_article(), "es")


def test_availability_without_key():
    assert DeepLTranslator(api_key="").is_available() is False


async def test_availability_follows_cached_quota():
    clock_now = [0.0]
    translator = DeepLTranslator(api_key="k", min_quota_characters=1000)
    translator.quota_cache = ExpiringValue(300, clock=lambda: clock_now[0])

    # Unknown quota is optimistic
    assert translator.is_available() is True

    translator.quota_cache.set(quota(999))
    assert translator.is_available() is False

    translator.quota_cache.set(quota(1000))
    assert translator.is_available() is True

    translator.quota_cache.set(quota(10))
    clock_now[0] = 301.0
    assert translator.is_available() is True


async def test_check_quota_is_cached_until_forced(deepl):
    await deepl.check_quota()
    await deepl.check_quota()
    assert deepl._fetch_usage.await_count == 1

    await deepl.check_quota(force_refresh=True)
    assert deepl._fetch_usage.await_count == 2


async def test_segment_call_retries_with_linear_backoff(deepl, sleep_calls):
    deepl._call_deepl_api = AsyncMock(side_effect=[
        TranslationProviderError("DeepL API error: 503 - busy", status=503),
        "Título",
        "Contenido",
    ])

    article = await deepl.translate(make_article(), "es")

    assert article.title == "Título"
    assert article.content == "Contenido"
    assert sleep_calls == [1.0]


async def test_segment_failure_surfaces_after_three_attempts(deepl, sleep_calls):
    deepl._call_deepl_api = AsyncMock(side_effect=TranslationProviderError("DeepL API error: 500", status=500))

    with pytest.raises(TranslationProviderError):
        await deepl.translate(make_article(), "es")

    assert deepl._call_deepl_api.await_count == 3
    assert sleep_calls == [1.0, 2.0]


def test_deepl_reports_quota_and_plain_providers_do_not():
    assert isinstance(DeepLTranslator(api_key="k"), QuotaAwareTranslationProvider)
    assert not isinstance(FakeTranslator(), QuotaAwareTranslationProvider)
