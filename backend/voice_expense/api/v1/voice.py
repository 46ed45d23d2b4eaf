"""Voice expense endpoints — transcript in, structured expense out."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from voice_expense.core.config import get_settings
from voice_expense.core.feature_flags import ensure_voice_expense_enabled
from voice_expense.schemas.voice import CategoryInfo, VoiceCapabilities, VoiceProcessResponse
from voice_expense.services.expense.contracts import PipelineStatus, TranscriptInput
from voice_expense.services.expense.lexicon import get_category_info, get_lexicon
from voice_expense.services.expense.pipeline import process_transcript

router = APIRouter(dependencies=[Depends(ensure_voice_expense_enabled)])


def _category_info(category: str) -> CategoryInfo:
    label = get_category_info(category)
    return CategoryInfo(
        id=category,
        emoji=label.emoji,
        english_name=label.english_name,
        hindi_name=label.hindi_name,
    )


@router.post(
    "/voice/process",
    response_model=VoiceProcessResponse,
    summary="Extract an expense from a voice transcript",
    responses={400: {"model": VoiceProcessResponse, "description": "No usable amount"}},
)
async def process_voice(body: TranscriptInput):
    result = await process_transcript(body)

    payload = result.model_dump()
    if result.data is not None:
        payload["category_info"] = _category_info(result.data.category)
        payload["date"] = date.today().isoformat()
    response = VoiceProcessResponse.model_validate(payload)

    if result.status == PipelineStatus.REJECTED:
        return JSONResponse(
            status_code=400,
            content=response.model_dump(mode="json", by_alias=True),
        )
    return response


@router.get("/voice/capabilities", response_model=VoiceCapabilities)
async def voice_capabilities():
    lexicon = get_lexicon()
    settings = get_settings()
    categories = [*lexicon.category_names(), "other"]
    return VoiceCapabilities(
        locale=lexicon.locale,
        languages=list(lexicon.languages),
        supported_formats=list(lexicon.example_phrases),
        categories=[_category_info(c) for c in categories],
        max_amount=settings.expense_max_amount,
    )
