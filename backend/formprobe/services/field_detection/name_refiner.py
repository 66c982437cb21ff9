"""
Name refinement collaborator.

Turns still-generic field names ("input_12", "field3") into meaningful
camelCase identifiers, using the field labels and the source URL as hints.
Output is positional: the i-th refined name belongs to the i-th input pair.
It is best-effort; callers must tolerate a shorter list.
"""

import json
import logging
from dataclasses import dataclass, asdict
from typing import List, Optional, Protocol, Sequence

from formprobe.config import Config
from formprobe.utils.rate_limiter import RateLimiter

from .chat_client import ChatCompletionClient, parse_json_content
from .errors import RefinementError

logger = logging.getLogger(__name__)

# Upper bound on pairs sent in one request
MAX_REFINEMENT_FIELDS = 50


@dataclass(frozen=True)
class RefinementRequestItem:
    """A raw field name plus the visible label text, if any."""
    original: str
    label: Optional[str] = None


class NameRefiner(Protocol):
    """Anything that can refine generic field names."""

    def refine_names(
        self,
        fields: Sequence[RefinementRequestItem],
        url: Optional[str] = None
    ) -> List[str]:
        ...


class NameRefinementClient:
    """Name refiner backed by an OpenAI-compatible chat completion API."""

    SERVICE_NAME = 'refinement'

    SYSTEM_PROMPT = """You are an expert software engineer. Your job is to improve a list of raw web-form field names into clean camelCase identifiers.

Rules:
1. Each output name must be a valid identifier (letters and numbers only, no spaces), camelCase.
2. Prefer meaningful words from the provided label when the raw name is ambiguous (e.g., "input_12").
3. Remove stop-words like "your", "enter", "please".
4. Ensure names are unique - append a numeric suffix only if absolutely necessary.
5. Keep them short but descriptive.

Return ONLY a JSON array of strings, in the same order as the input, with no markdown."""

    PROMPT_TEMPLATE = """The form HTML was fetched from the following URL (may hint at its purpose): {url}

Input field list:
{fields}"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout: Optional[float] = None,
        rate_limiter: Optional[RateLimiter] = None
    ):
        self.client = ChatCompletionClient(
            service_name=self.SERVICE_NAME,
            api_key=api_key,
            api_base=api_base,
            model_name=model_name,
            timeout=timeout or Config.REFINEMENT_TIMEOUT_SECONDS,
            rate_limiter=rate_limiter,
            error_class=RefinementError
        )

    @property
    def is_available(self) -> bool:
        return self.client.is_available

    def refine_names(
        self,
        fields: Sequence[RefinementRequestItem],
        url: Optional[str] = None
    ) -> List[str]:
        """
        Ask the service for better names.

        Returns:
            Refined names in input order (possibly shorter than the input)

        Raises:
            RefinementError: on any service or parse failure
        """
        if not fields:
            return []

        items = list(fields)[:MAX_REFINEMENT_FIELDS]
        if len(fields) > MAX_REFINEMENT_FIELDS:
            logger.warning(f"Refining only the first {MAX_REFINEMENT_FIELDS} of {len(fields)} fields")

        payload = [
            {k: v for k, v in asdict(item).items() if v is not None}
            for item in items
        ]
        prompt = self.PROMPT_TEMPLATE.format(url=url or '', fields=json.dumps(payload))

        content = self.client.complete([
            {"role": "system", "content": self.SYSTEM_PROMPT},
            {"role": "user", "content": prompt}
        ], max_tokens=1024)

        try:
            data = parse_json_content(content)
        except json.JSONDecodeError as e:
            raise RefinementError(f"Failed to parse refinement response: {e}") from e

        # Accept both a bare array and {"refined": [...]}
        if isinstance(data, dict):
            data = data.get('refined', [])
        if not isinstance(data, list):
            raise RefinementError(f"Unexpected refinement response type: {type(data).__name__}")

        refined = [name if isinstance(name, str) else '' for name in data]
        logger.info(f"Refinement returned {len(refined)} name(s) for {len(items)} field(s)")
        return refined
