"""
Generation orchestrator.

Runs the two-step pipeline for one request:

    referenceUrl?  -> analyze_style (fail-open) -> generate_script (fail-closed)

A style-analysis failure never blocks generation; a generation failure is
terminal for the request. The orchestrator keeps no state between calls.
"""
import logging
from typing import Any, Dict, Optional

from tubescript.core.errors import GenerationError, StyleAnalysisError
from tubescript.core.logging import log_event
from tubescript.features.generation.script_generator import ScriptGenerator
from tubescript.features.generation.style_analyzer import StyleAnalyzer
from tubescript.models.generation import GenerationRequest

logger = logging.getLogger("tubescript")


class GenerationOrchestrator:
    def __init__(self, analyzer: StyleAnalyzer, generator: ScriptGenerator):
        self.analyzer = analyzer
        self.generator = generator

    async def resolve_style(self, reference_url: Optional[str]) -> Optional[str]:
        """Return the style guide for a URL, or None when absent or analysis fails."""
        if not reference_url:
            return None
        try:
            return await self.analyzer.analyze_style(reference_url)
        except StyleAnalysisError as e:
            log_event(
                "warning",
                "generation.style_analysis_failed",
                event_type="style_analysis",
                error_code=e.code,
                extra={"reference_url": reference_url, "reason": e.message},
            )
            return None

    async def generate(self, request: GenerationRequest) -> str:
        """
        Raises:
            GenerationError: Script generation failed
            ValidationError: Input rejected by the generator
        """
        style_guide = await self.resolve_style(request.reference_url)
        return await self.generator.generate_script(
            request.topic,
            request.content_type,
            style_guide=style_guide,
        )

    async def handle_generate(self, request: GenerationRequest, *, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Structured result for the UI: {success, data} or {success, error}."""
        try:
            script = await self.generate(request)
        except GenerationError as e:
            log_event(
                "error",
                "generation.failed",
                user_id=user_id,
                event_type="generation",
                error_code=e.code,
                extra={"content_type": request.content_type.value, "reason": e.message},
            )
            return {"success": False, "error": GenerationError.USER_MESSAGE}
        return {"success": True, "data": script}


def build_orchestrator(provider, settings_obj) -> GenerationOrchestrator:
    """Wire analyzer and generator around one provider using Settings limits."""
    analyzer = StyleAnalyzer(
        provider,
        model=settings_obj.STYLE_MODEL,
        max_tokens=settings_obj.STYLE_MAX_TOKENS,
    )
    generator = ScriptGenerator(
        provider,
        model=settings_obj.SCRIPT_MODEL,
        max_tokens=settings_obj.SCRIPT_MAX_TOKENS,
        voiceover_only=settings_obj.SCRIPT_VOICEOVER_ONLY,
    )
    return GenerationOrchestrator(analyzer, generator)
