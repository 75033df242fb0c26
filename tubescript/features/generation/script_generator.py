"""Script generation: topic + content type (+ style guide) -> script text."""
import logging
from typing import Optional, Union

from tubescript.core.errors import GenerationError, ValidationError
from tubescript.features.generation.prompts import (
    CONTENT_TYPE_NOTES,
    CUED_FORMAT_BLOCK,
    REQUEST_BLOCK,
    STRUCTURE_BLOCK,
    STYLE_GUIDE_BLOCK,
    VOICEOVER_FORMAT_BLOCK,
    VOICEOVER_PERSONA,
    WRITER_PERSONA,
)
from tubescript.features.providers.base import CompletionProvider, CompletionRequest, ProviderError
from tubescript.models.generation import ContentType, topic_error

logger = logging.getLogger("tubescript")


class ScriptGenerator:
    """Write a full video script in one completion call.

    A style guide, when used, must already be resolved by the caller.
    """

    def __init__(
        self,
        provider: CompletionProvider,
        *,
        model: Optional[str] = None,
        max_tokens: int = 2048,
        voiceover_only: bool = False,
    ):
        self.provider = provider
        self.model = model
        self.max_tokens = max_tokens
        self.voiceover_only = voiceover_only

    def build_prompt(self, topic: str, content_type: ContentType, style_guide: Optional[str] = None) -> str:
        blocks = [
            REQUEST_BLOCK.format(topic=topic.strip(), content_type=content_type.value),
            CONTENT_TYPE_NOTES[content_type.value],
        ]
        if style_guide:
            blocks.append(STYLE_GUIDE_BLOCK.format(style_guide=style_guide))
        blocks.append(STRUCTURE_BLOCK)
        blocks.append(VOICEOVER_FORMAT_BLOCK if self.voiceover_only else CUED_FORMAT_BLOCK)
        return "\n\n".join(blocks)

    async def generate_script(
        self,
        topic: str,
        content_type: Union[ContentType, str],
        style_guide: Optional[str] = None,
    ) -> str:
        """
        Raises:
            ValidationError: Topic out of bounds or unknown content type
            GenerationError: Provider failed or returned no content
        """
        message = topic_error(topic)
        if message:
            raise ValidationError(message, fields={"topic": message})
        try:
            content_type = ContentType(content_type)
        except ValueError:
            allowed = ", ".join(ct.value for ct in ContentType)
            raise ValidationError(
                f"Content type must be one of: {allowed}",
                fields={"contentType": f"Content type must be one of: {allowed}"},
            )

        request = CompletionRequest(
            system=VOICEOVER_PERSONA if self.voiceover_only else WRITER_PERSONA,
            user=self.build_prompt(topic, content_type, style_guide),
            model=self.model,
            max_tokens=self.max_tokens,
        )
        try:
            script = await self.provider.complete(request)
        except ProviderError as e:
            raise GenerationError(f"Failed to generate script due to an API error: {e}") from e

        if not script or not script.strip():
            raise GenerationError("Completion provider returned no content")
        return script
