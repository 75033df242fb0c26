"""Style analysis: reference URL -> descriptive style guide."""
import logging
from typing import Optional

from tubescript.core.errors import StyleAnalysisError, ValidationError
from tubescript.features.generation.prompts import STYLE_ANALYST_PROMPT, STYLE_ANALYST_SYSTEM
from tubescript.features.providers.base import CompletionProvider, CompletionRequest, ProviderError
from tubescript.models.generation import is_valid_url

logger = logging.getLogger("tubescript")


class StyleAnalyzer:
    """Produce a style guide for the creator behind a reference URL.

    The page is not fetched here; the URL is embedded in the instruction and
    retrieval is left to the completion provider.
    """

    def __init__(self, provider: CompletionProvider, *, model: Optional[str] = None, max_tokens: int = 1024):
        self.provider = provider
        self.model = model
        self.max_tokens = max_tokens

    def build_request(self, reference_url: str) -> CompletionRequest:
        return CompletionRequest(
            system=STYLE_ANALYST_SYSTEM,
            user=STYLE_ANALYST_PROMPT.format(reference_url=reference_url),
            model=self.model,
            max_tokens=self.max_tokens,
        )

    async def analyze_style(self, reference_url: str) -> str:
        """
        Raises:
            ValidationError: reference_url is not a well-formed http(s) URL
            StyleAnalysisError: Provider failed, misbehaved or returned nothing
        """
        if not is_valid_url(reference_url):
            raise ValidationError("Please enter a valid URL.", fields={"referenceUrl": "Please enter a valid URL."})

        try:
            style_guide = await self.provider.complete(self.build_request(reference_url))
        except ProviderError as e:
            raise StyleAnalysisError(f"Style analysis failed: {e}") from e
        except Exception as e:
            logger.warning(
                "style_analysis.unexpected_error",
                extra={"provider": getattr(self.provider, "name", None), "reason": repr(e)},
            )
            raise StyleAnalysisError(f"Style analysis failed: {e!r}") from e

        if not isinstance(style_guide, str) or not style_guide.strip():
            raise StyleAnalysisError("Style analysis returned an empty style guide")
        return style_guide
