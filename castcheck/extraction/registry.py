"""
Extraction provider lookup.
"""
from typing import Callable, Dict, Optional

from castcheck.config import get_settings
from castcheck.exceptions import ExtractionProviderNotFoundError
from castcheck.extraction.base import ExtractionProvider
from castcheck.extraction.json_provider import JsonExtractionProvider
from castcheck.extraction.openai_provider import OpenAIExtractionProvider

PROVIDERS: Dict[str, Callable[[], ExtractionProvider]] = {
    JsonExtractionProvider.name: JsonExtractionProvider,
    OpenAIExtractionProvider.name: OpenAIExtractionProvider,
}


def get_extraction_provider(name: Optional[str] = None) -> ExtractionProvider:
    """
    Build the named provider, or the configured one.

    Raises:
        ExtractionProviderNotFoundError: Unknown provider name.
    """
    name = (name or get_settings().extraction_provider).lower()
    factory = PROVIDERS.get(name)
    if factory is None:
        raise ExtractionProviderNotFoundError(name, sorted(PROVIDERS))
    return factory()
