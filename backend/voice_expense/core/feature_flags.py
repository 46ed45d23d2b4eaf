from fastapi import HTTPException

from voice_expense.core.config import get_settings


def ensure_voice_expense_enabled() -> None:
    settings = get_settings()
    if not settings.enable_voice_expense:
        raise HTTPException(status_code=404, detail="Not found")
