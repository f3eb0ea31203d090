"""
Semantic classifier client for restricted-content detection.

The classifier is an external text model asked which restricted items a
package description mentions. It only adds recall on top of keyword
matching: classify() never raises and returns [] on any failure, while
detect() raises ClassifierFailure so callers can report degraded mode.
"""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

from shipcomply.exceptions import ClassifierFailure
from shipcomply.observability.logger import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.0-flash"

_BRACKETED_ARRAY = re.compile(r"\[.*\]", re.DOTALL)

COUNTRY_HINTS: dict[str, str] = {
    "US": (
        "For the United States, pay special attention to alcohol, tobacco, certain electronics, "
        "food, plants, seeds, and agricultural products."
    ),
    "CN": "For China, pay special attention to political materials, religious materials, books, media, and electronics.",
    "AU": "For Australia, pay special attention to food, plants, seeds, biological materials, and soil.",
    "JP": "For Japan, pay special attention to prescription medication, cosmetics, and leather goods.",
}

GLOBAL_PROMPT = """Analyze the following package contents description and identify any potentially restricted or dangerous items for international shipping.
Focus on identifying:

1. Weapons and firearms (including but not limited to):
   - Guns, pistols, rifles, shotguns, revolvers
   - Ammunition, bullets, cartridges, ammo
   - Any specific firearm models or brands
   - Weapon parts or accessories

2. Drugs and controlled substances (including but not limited to):
   - Narcotics, illegal drugs
   - Controlled prescription medications that are often abused

3. Other dangerous or highly restricted items:
   - Explosives
   - Hazardous materials
   - Flammable items
   - Toxic substances
   - Radioactive materials
   - Currency (large amounts)
   - Ivory, endangered species products

DO NOT flag as dangerous:
- Regular medicines or pharmaceuticals (these only need warnings, not prohibition)
- Common household items
- Standard consumer electronics

If you identify any restricted items, list them specifically. If nothing dangerous is detected, return an empty list.

Package contents: "{text}"

Format your response as a JSON array of strings, each representing a detected dangerous item.
Example: ["AK-47", "explosives"]"""

COUNTRY_PROMPT = """Analyze the following package contents description and identify any items that would be restricted or require special permits for import into {country}.
{hint}

Package contents: "{text}"

Format your response as a JSON array of strings, each representing a detected restricted item.
Example: ["alcohol", "seeds"]

If nothing restricted is detected, return an empty array."""


@dataclass(frozen=True)
class ClassificationContext:
    """
    What to classify.

    Attributes:
        text: Package contents description
        country_code: Destination for a country-specific question, None for the global one
        category_hints: Restricted categories to mention in the country hint
    """

    text: str
    country_code: str | None = None
    category_hints: tuple[str, ...] = field(default_factory=tuple)


def build_prompt(context: ClassificationContext) -> str:
    """Build the global or country-specific classification prompt."""
    if not context.country_code:
        return GLOBAL_PROMPT.format(text=context.text)

    code = context.country_code
    hint = COUNTRY_HINTS.get(code, "")
    if not hint and context.category_hints:
        hint = f"For {code}, pay special attention to {', '.join(context.category_hints)}."
    return COUNTRY_PROMPT.format(country=code, hint=hint, text=context.text)


def parse_labels(text: str) -> list[str]:
    """
    Parse model output into item labels.

    Accepts a JSON array of strings, or text containing one bracketed array.

    Raises:
        ClassifierFailure: If no JSON array can be read
    """
    candidates = [text.strip()]
    match = _BRACKETED_ARRAY.search(text)
    if match:
        candidates.append(match.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except (ValueError, RecursionError):
            continue
        if isinstance(parsed, list):
            return [item.strip() for item in parsed if isinstance(item, str) and item.strip()]

    raise ClassifierFailure(f"Classifier output is not a JSON array: {text[:200]!r}")


class SemanticClassifier(ABC):
    """Classifier contract: detect() may fail, classify() never does."""

    @abstractmethod
    def detect(self, context: ClassificationContext) -> list[str]:
        """
        Return restricted-item labels found in context.text.

        Raises:
            ClassifierFailure: If the classifier is unavailable or its output unreadable
        """

    def classify(self, context: ClassificationContext) -> list[str]:
        """Like detect(), but returns [] on failure."""
        try:
            return self.detect(context)
        except Exception as e:
            logger.warning(
                f"Classifier failed, continuing without semantic detection: {e}",
                extra={"country_code": context.country_code},
            )
            return []

    def close(self) -> None:
        """Release resources held by the classifier."""


class DisabledClassifier(SemanticClassifier):
    """Classifier stand-in that always fails fast, giving keyword-only detection."""

    def detect(self, context: ClassificationContext) -> list[str]:
        raise ClassifierFailure("Semantic classifier is disabled")


class HttpSemanticClassifier(SemanticClassifier):
    """
    Classifier backed by a generateContent-style HTTP endpoint.

    Configuration:
        - base_url: API root, the request goes to {base_url}/models/{model}:generateContent
        - model: Model name
        - api_key: Sent as the "key" query parameter when set
        - timeout_seconds: Applied to connect, read and write
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        timeout_seconds: float = 10.0,
        temperature: float = 0.2,
        max_output_tokens: int = 1024,
        client: httpx.Client | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout_seconds)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def _payload(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "topP": 0.8,
                "topK": 40,
                "maxOutputTokens": self.max_output_tokens,
            },
        }

    def detect(self, context: ClassificationContext) -> list[str]:
        if not context.text.strip():
            return []

        params = {"key": self.api_key} if self.api_key else None
        try:
            response = self._client.post(
                self.endpoint,
                params=params,
                json=self._payload(build_prompt(context)),
                timeout=self.timeout_seconds,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ClassifierFailure(f"Classifier request failed: {e}") from e

        if response.status_code != 200:
            raise ClassifierFailure(f"Classifier returned status {response.status_code}")

        try:
            data = response.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError, RecursionError) as e:
            raise ClassifierFailure(f"Unexpected classifier response shape: {e}") from e

        labels = parse_labels(text)
        logger.debug(
            f"Classifier detected {len(labels)} item(s)",
            extra={"country_code": context.country_code, "labels": labels},
        )
        return labels

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
