"""Tests for script generation."""

import pytest

from tubescript.core.errors import GenerationError, ValidationError
from tubescript.features.generation.prompts import (
    CONTENT_TYPE_NOTES,
    STRUCTURE_BLOCK,
    VOICEOVER_PERSONA,
    WRITER_PERSONA,
)
from tubescript.features.generation.script_generator import ScriptGenerator
from tubescript.features.providers.base import ProviderError
from tubescript.models.generation import ContentType
from tubescript.tests.mocks import FakeProvider


@pytest.mark.asyncio
async def test_generates_script_in_one_call():
    provider = FakeProvider(responses=["HOOK...BODY...OUTRO"])
    generator = ScriptGenerator(provider, max_tokens=2048)

    script = await generator.generate_script("How to brew pour-over coffee", ContentType.TUTORIAL)

    assert script == "HOOK...BODY...OUTRO"
    assert len(provider.calls) == 1
    call = provider.calls[0]
    assert call.system == WRITER_PERSONA
    assert call.max_tokens == 2048
    assert "Topic: How to brew pour-over coffee" in call.user
    assert "Content Type: Tutorial" in call.user
    assert STRUCTURE_BLOCK in call.user
    assert CONTENT_TYPE_NOTES["Tutorial"] in call.user


@pytest.mark.asyncio
async def test_style_guide_passed_through_unchanged():
    provider = FakeProvider(responses=["script"])
    guide = "  Dry humour.\nShort sentences.\n  "

    await ScriptGenerator(provider).generate_script("Weekend in Lisbon", "Vlog", style_guide=guide)

    assert guide in provider.calls[0].user


@pytest.mark.asyncio
async def test_no_style_block_without_guide():
    provider = FakeProvider(responses=["script"])

    await ScriptGenerator(provider).generate_script("Weekend in Lisbon", "Vlog")

    assert "Apply the following style guide" not in provider.calls[0].user


@pytest.mark.asyncio
async def test_voiceover_mode_switches_persona():
    provider = FakeProvider(responses=["script"])

    await ScriptGenerator(provider, voiceover_only=True).generate_script("Phone review", ContentType.REVIEW)

    assert provider.calls[0].system == VOICEOVER_PERSONA


@pytest.mark.asyncio
@pytest.mark.parametrize("topic", ["", "abcd", "x" * 501])
async def test_topic_bounds(topic):
    provider = FakeProvider(responses=["script"])

    with pytest.raises(ValidationError):
        await ScriptGenerator(provider).generate_script(topic, ContentType.VLOG)
    assert provider.calls == []


@pytest.mark.asyncio
async def test_unknown_content_type_rejected():
    provider = FakeProvider(responses=["script"])

    with pytest.raises(ValidationError):
        await ScriptGenerator(provider).generate_script("A valid topic", "Podcast")
    assert provider.calls == []


@pytest.mark.asyncio
async def test_provider_error_becomes_generation_error():
    provider = FakeProvider(error=ProviderError("quota", provider="fake", status_code=429))

    with pytest.raises(GenerationError) as exc_info:
        await ScriptGenerator(provider).generate_script("A valid topic", ContentType.COMMENTARY)
    assert "API error" in exc_info.value.message


@pytest.mark.asyncio
async def test_empty_output_is_a_failure():
    with pytest.raises(GenerationError):
        await ScriptGenerator(FakeProvider(responses=["  "])).generate_script("A valid topic", ContentType.VLOG)


def test_prompt_is_deterministic():
    generator = ScriptGenerator(FakeProvider())
    first = generator.build_prompt("Same topic here", ContentType.REVIEW, "guide")
    second = generator.build_prompt("Same topic here", ContentType.REVIEW, "guide")
    assert first == second
