"""
Field inference collaborator.

Sends sanitized markup to an OpenAI-compatible chat completion API and
reads back candidate fields. The response is normalized before anything
else sees it:
- names are camelCased, entries with no usable name are dropped
- data types outside the closed vocabulary become ``Word``
- duplicate names are removed (first wins)

The service is advisory. An empty list is a valid answer.
"""

import json
import logging
from typing import Any, List, Optional, Protocol

from formprobe.config import Config
from formprobe.utils.rate_limiter import RateLimiter

from .chat_client import ChatCompletionClient, parse_json_content
from .data_types import CATALOG
from .errors import ContentTooLargeError, InferenceError, is_size_limit_error
from .fields import Field, to_camel_case

logger = logging.getLogger(__name__)

# Credential problems can mention tokens too; they are not size limits
_AUTH_STATUS_CODES = (401, 403)


class FieldInferenceService(Protocol):
    """Anything that can propose fields for sanitized markup."""

    def infer_fields(self, sanitized_markup: str) -> List[Field]:
        ...


class FieldInferenceClient:
    """Field inference backed by an OpenAI-compatible chat completion API."""

    SERVICE_NAME = 'inference'

    SYSTEM_PROMPT = """You are an expert web developer and data analyst. You extract the input field structure of web forms from HTML.

Instructions:
1. Look at the whole document, not only <form> elements. Fields may sit in <div> or <table> layouts.
2. Report every user input: <input>, <textarea>, <select>, and custom controls with roles such as role="textbox", role="combobox" or role="search", or with class names / data- attributes that mark them as inputs.
3. Skip hidden inputs (type="hidden", display: none, visibility: hidden), submit buttons and other non-input elements.

For each field return:
- "fieldName": a short camelCase identifier taken from the name, id or data-testid attribute; otherwise from the aria-label, the associated <label>, the placeholder, or the text of the preceding table cell.
- "dataType": exactly one of the allowed values below.

Allowed dataType values:
{data_types}

Examples:
- <input type="text" name="first_name"> labelled "First Name" -> {{"fieldName": "firstName", "dataType": "FirstName"}}
- <input type="email" id="emailAddress"> -> {{"fieldName": "emailAddress", "dataType": "EmailAddress"}}
- <textarea name="comment"> -> {{"fieldName": "comment", "dataType": "Paragraph"}}
- <div role="textbox" aria-label="Your Age"></div> -> {{"fieldName": "yourAge", "dataType": "Age"}}
- <tr><td>Date of Birth</td><td><input type="date" name="dob"></td></tr> -> {{"fieldName": "dateOfBirth", "dataType": "DateOfBirth"}}

Respond with ONLY a JSON object of the form {{"fields": [{{"fieldName": "...", "dataType": "..."}}]}}. Return an empty "fields" array when the document has no inputs."""

    PROMPT_TEMPLATE = """HTML to analyze:
```html
{markup}
```"""

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
            timeout=timeout or Config.INFERENCE_TIMEOUT_SECONDS,
            rate_limiter=rate_limiter,
            error_class=InferenceError
        )
        self.system_prompt = self.SYSTEM_PROMPT.format(
            data_types=', '.join(f'"{value}"' for value in CATALOG.values)
        )

    @property
    def is_available(self) -> bool:
        return self.client.is_available

    def infer_fields(self, sanitized_markup: str) -> List[Field]:
        """
        Ask the service for the fields in the markup.

        Args:
            sanitized_markup: Output of the sanitizer

        Returns:
            Normalized, de-duplicated fields (possibly empty)

        Raises:
            ContentTooLargeError: if the service rejects the input size
            InferenceError: on any other service or parse failure
        """
        try:
            content = self.client.complete([
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": self.PROMPT_TEMPLATE.format(markup=sanitized_markup)}
            ])
        except InferenceError as e:
            if e.status_code not in _AUTH_STATUS_CODES and is_size_limit_error(str(e)):
                raise ContentTooLargeError(str(e), status_code=e.status_code) from e
            raise

        try:
            data = parse_json_content(content)
        except json.JSONDecodeError as e:
            raise InferenceError(f"Failed to parse inference response: {e}") from e

        fields = normalize_inferred_fields(data)
        logger.info(f"Inference service proposed {len(fields)} field(s)")
        return fields


def normalize_inferred_fields(data: Any) -> List[Field]:
    """
    Turn a decoded ``{"fields": [...]}`` payload into clean fields.

    Raises:
        InferenceError: if the payload has the wrong shape
    """
    if isinstance(data, dict):
        raw_fields = data.get('fields') or []
    elif isinstance(data, list):
        raw_fields = data
    else:
        raise InferenceError(f"Unexpected inference response type: {type(data).__name__}")

    if not isinstance(raw_fields, list):
        raise InferenceError("Inference response 'fields' is not a list")

    fields: List[Field] = []
    seen = set()
    for raw in raw_fields:
        if not isinstance(raw, dict):
            continue
        name = to_camel_case(str(raw.get('fieldName') or ''))
        if not name or name in seen:
            continue
        seen.add(name)
        label = raw.get('label')
        if not isinstance(label, str):
            label = None
        fields.append(Field(name, CATALOG.coerce(raw.get('dataType')), label or None))
    return fields
