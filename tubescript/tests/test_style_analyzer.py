"""Tests for style analysis (reference URL -> style guide)."""

import pytest

from tubescript.core.errors import StyleAnalysisError, ValidationError
from tubescript.features.generation.prompts import STYLE_ANALYST_SYSTEM
from tubescript.features.generation.style_analyzer import StyleAnalyzer
from tubescript.features.providers.base import ProviderError
from tubescript.tests.mocks import FakeProvider


@pytest.mark.asyncio
async def test_returns_provider_text_verbatim():
    provider = FakeProvider(responses=["Energetic, lots of jump cuts, says 'let's go'."])
    analyzer = StyleAnalyzer(provider, max_tokens=512)

    guide = await analyzer.analyze_style("https://youtube.com/@creator")

    assert guide == "Energetic, lots of jump cuts, says 'let's go'."
    assert len(provider.calls) == 1
    call = provider.calls[0]
    assert call.system == STYLE_ANALYST_SYSTEM
    assert "https://youtube.com/@creator" in call.user
    assert call.max_tokens == 512


@pytest.mark.asyncio
async def test_invalid_url_rejected_before_provider_call():
    provider = FakeProvider(responses=["unused"])
    analyzer = StyleAnalyzer(provider)

    with pytest.raises(ValidationError):
        await analyzer.analyze_style("not a url")
    assert provider.calls == []


@pytest.mark.asyncio
async def test_provider_error_becomes_style_analysis_error():
    provider = FakeProvider(error=ProviderError("boom", provider="fake", status_code=500))
    analyzer = StyleAnalyzer(provider)

    with pytest.raises(StyleAnalysisError) as exc_info:
        await analyzer.analyze_style("https://example.com/channel")
    assert isinstance(exc_info.value.__cause__, ProviderError)


@pytest.mark.asyncio
async def test_unexpected_provider_exception_becomes_style_analysis_error():
    provider = FakeProvider(error=AttributeError("'str' object has no attribute 'get'"))
    analyzer = StyleAnalyzer(provider)

    with pytest.raises(StyleAnalysisError) as exc_info:
        await analyzer.analyze_style("https://example.com/channel")
    assert isinstance(exc_info.value.__cause__, AttributeError)


@pytest.mark.asyncio
async def test_non_text_guide_is_a_failure():
    analyzer = StyleAnalyzer(FakeProvider(responses=[{"style": "loud"}]))

    with pytest.raises(StyleAnalysisError):
        await analyzer.analyze_style("https://example.com/channel")


@pytest.mark.asyncio
@pytest.mark.parametrize("output", ["", "   \n  "])
async def test_empty_guide_is_a_failure(output):
    analyzer = StyleAnalyzer(FakeProvider(responses=[output]))

    with pytest.raises(StyleAnalysisError):
        await analyzer.analyze_style("https://example.com/channel")


def test_build_request_uses_configured_model():
    analyzer = StyleAnalyzer(FakeProvider(), model="gemini-1.5-flash", max_tokens=300)
    request = analyzer.build_request("https://example.com")
    assert request.model == "gemini-1.5-flash"
    assert request.max_tokens == 300
