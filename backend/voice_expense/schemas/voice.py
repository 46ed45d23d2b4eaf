from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from voice_expense.services.expense.contracts import PipelineResult


class CategoryInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    emoji: str = ""
    english_name: str
    hindi_name: str = ""


class VoiceProcessResponse(PipelineResult):
    category_info: CategoryInfo | None = None
    date: str | None = None


class VoiceCapabilities(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    locale: str
    languages: list[str]
    supported_formats: list[str]
    categories: list[CategoryInfo]
    max_amount: float
