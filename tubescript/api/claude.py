"""Raw Claude passthrough: POST /api/claude {userPrompt} -> {response: [content blocks]}."""
from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from tubescript.core.errors import AppError, ValidationError
from tubescript.features.providers.base import ProviderAuthError, ProviderError

router = APIRouter(tags=["claude"])

CLAUDE_PASSTHROUGH_MODEL = "claude-3-sonnet-20240229"
CLAUDE_PASSTHROUGH_MAX_TOKENS = 1024


class ClaudeRequest(BaseModel):
    userPrompt: Optional[str] = None


@router.post("/api/claude")
async def claude_endpoint(body: ClaudeRequest, request: Request):
    if not body.userPrompt or not body.userPrompt.strip():
        raise ValidationError("userPrompt is required", fields={"userPrompt": "userPrompt is required"})

    claude = request.app.state.claude
    try:
        data = await claude.send_messages(
            {
                "model": CLAUDE_PASSTHROUGH_MODEL,
                "max_tokens": CLAUDE_PASSTHROUGH_MAX_TOKENS,
                "messages": [{"role": "user", "content": body.userPrompt}],
            }
        )
    except ProviderAuthError as e:
        if not claude.api_key:
            raise AppError(
                "ANTHROPIC_API_KEY is not configured. Please set it in your environment variables.",
                code="claude_not_configured",
                status_code=500,
            )
        raise AppError(f"Failed to call Claude AI: {e}", code="claude_error", status_code=e.status_code or 500)
    except ProviderError as e:
        raise AppError(f"Failed to call Claude AI: {e}", code="claude_error", status_code=e.status_code or 500)

    return {"response": data.get("content", [])}
