import pytest

from voice_expense.core.config import get_settings
from voice_expense.services.expense.lexicon import _load_cached


@pytest.fixture(autouse=True)
def _reset_cached_config():
    """Settings and the lexicon are process-wide caches; isolate every test."""
    get_settings.cache_clear()
    _load_cached.cache_clear()
    yield
    get_settings.cache_clear()
    _load_cached.cache_clear()
