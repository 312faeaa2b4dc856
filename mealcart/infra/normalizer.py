"""Ingredient name normalizers (the external normalization collaborator).

Every normalizer takes the distinct raw names of one consolidation run and
returns a best-effort ``{raw_name: canonical_name}`` mapping. Names missing
from the mapping keep their raw spelling; callers never rely on completeness.

- OpenAINormalizer: asks an OpenAI model for the mapping.
- BasicNormalizer: offline heuristics (case, "fresh ", plurals, oil aliases).
- IdentityNormalizer: no normalization at all.
"""
import json
import logging
import re
from json import JSONDecodeError
from typing import Dict, List, Optional

from openai import AsyncOpenAI

from mealcart.utilities import config
from mealcart.utilities.constants import NORMALIZER_JSON_SUFFIX, NORMALIZER_PROMPT_TEMPLATE

logger = logging.getLogger(__name__)


class NormalizerPort:
    """Boundary to a name normalization service."""

    name = "base"

    async def normalize(self, names: List[str]) -> Dict[str, str]:
        raise NotImplementedError


class IdentityNormalizer(NormalizerPort):
    name = "none"

    async def normalize(self, names: List[str]) -> Dict[str, str]:
        return {}


# === Basic (offline) normalization ===
_KEEP_TRAILING_S = {'gas', 'bass', 'grass', 'swiss', 'mass', 'hummus', 'couscous', 'asparagus',
                    'molasses', 'citrus', 'lettuce', 'brussels', 'oats', 'grits'}
_ALIASES = {
    'olive oil': 'cooking oil',
    'vegetable oil': 'cooking oil',
    'canola oil': 'cooking oil',
}


def _stem(word: str) -> str:
    # Simple plural to singular heuristics (not perfect, acceptable for this use case)
    if word in _KEEP_TRAILING_S or len(word) <= 3:
        return word
    if word.endswith('ies'):
        return word[:-3] + 'y'  # berries -> berry
    if word.endswith('oes'):
        return word[:-2]  # tomatoes -> tomato
    if word.endswith(('ches', 'shes', 'xes', 'sses')):
        return word[:-2]  # peaches -> peach, boxes -> box
    if word.endswith('s') and not word.endswith(('ss', 'us', 'is')):
        return word[:-1]
    return word


def basic_canonical_name(raw: str) -> str:
    '''Lowercase, drop "fresh " and parenthesised notes, singularize the last word.'''
    text = re.sub(r"\([^)]*\)", " ", raw or "")
    text = " ".join(text.lower().split())
    if text.startswith('fresh '):
        text = text[len('fresh '):]
    if not text:
        return raw
    words = text.split(' ')
    words[-1] = _stem(words[-1])
    text = ' '.join(words)
    return _ALIASES.get(text, text)


class BasicNormalizer(NormalizerPort):
    name = "basic"

    async def normalize(self, names: List[str]) -> Dict[str, str]:
        return {n: basic_canonical_name(n) for n in names if isinstance(n, str) and n.strip()}


# === OpenAI normalization ===
class OpenAINormalizer(NormalizerPort):
    name = "openai"

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self._client = client
        self.model = model or config.OPENAI_MODEL

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=config.OPENAI_API_KEY)
        return self._client

    async def normalize(self, names: List[str]) -> Dict[str, str]:
        if not names:
            return {}
        prompt = NORMALIZER_PROMPT_TEMPLATE + json.dumps(names, ensure_ascii=False) + NORMALIZER_JSON_SUFFIX
        response = await self.client.responses.create(model=self.model, input=prompt)
        text = (response.output_text or "").strip()
        if not text:
            logger.warning("Normalizer returned an empty response for %d names", len(names))
            return {}
        return _filter_mapping(parse_mapping(text), names)


def _filter_mapping(mapping: Dict, names: List[str]) -> Dict[str, str]:
    '''Keep only requested keys with non-empty string values.'''
    requested = set(names)
    return {k: v.strip() for k, v in mapping.items()
            if k in requested and isinstance(v, str) and v.strip()}


# === Text Cleaning Helpers ===
def parse_mapping(text: str) -> Dict[str, str]:
    """Parse a model reply into a mapping, trying progressively looser strategies."""
    for candidate in (text, _strip_code_fences(text)):
        try:
            parsed = json.loads(_remove_trailing_commas(candidate))
            if isinstance(parsed, dict):
                return parsed
        except JSONDecodeError:
            pass

    balanced = _extract_json_by_balancing(_strip_code_fences(text))
    if balanced:
        try:
            parsed = json.loads(_remove_trailing_commas(balanced))
            if isinstance(parsed, dict):
                return parsed
        except JSONDecodeError:
            logger.debug("Balanced JSON candidate could not be decoded")

    # Last resort: "key": "value" pairs line by line
    manual: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or '```' in line:
            continue
        match = re.match(r'^"([^"]+)"\s*:\s*"([^"]+)",?$', line)
        if match:
            manual[match.group(1)] = match.group(2)
    if not manual:
        logger.warning("Normalizer output could not be parsed as a mapping")
    return manual


def _strip_code_fences(text: str) -> str:
    """Remove common markdown code fences and leading/trailing whitespace."""
    text = re.sub(r"```(?:json|javascript|typescript)?\s*\n?(.*?)```", r"\1", text, flags=re.S)
    text = re.sub(r"^```|```$", "", text.strip())
    return text.strip()


def _remove_trailing_commas(text: str) -> str:
    """Remove trailing commas in JSON-like text to help json.loads succeed."""
    return re.sub(r",\s*(\}|\])", r"\1", text)


def _extract_json_by_balancing(text: str) -> Optional[str]:
    """Extract the first JSON object by balancing braces."""
    start = None
    depth = 0
    in_string = False
    escape = False

    for i, ch in enumerate(text):
        if escape:
            escape = False
            continue
        if in_string:
            if ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            if start is None:
                start = i
            depth += 1
        elif ch == "}" and depth:
            depth -= 1
            if depth == 0 and start is not None:
                return text[start:i + 1]
    return None


def make_normalizer(mode: Optional[str] = None) -> NormalizerPort:
    """Pick the normalizer from NORMALIZER_MODE (auto|openai|basic|none).

    auto uses OpenAI when OPENAI_API_KEY is set and the basic heuristics otherwise.
    """
    mode = (mode or config.NORMALIZER_MODE or 'auto').lower()
    if mode == 'auto':
        mode = 'openai' if config.OPENAI_API_KEY else 'basic'
    if mode == 'openai':
        if not config.OPENAI_API_KEY:
            logger.warning("OPENAI_API_KEY not set; falling back to basic normalizer")
            return BasicNormalizer()
        return OpenAINormalizer()
    if mode == 'basic':
        return BasicNormalizer()
    if mode != 'none':
        logger.warning("Unknown NORMALIZER_MODE %r; normalization disabled", mode)
    return IdentityNormalizer()


__all__ = [
    'NormalizerPort', 'IdentityNormalizer', 'BasicNormalizer', 'OpenAINormalizer',
    'basic_canonical_name', 'parse_mapping', 'make_normalizer'
]
