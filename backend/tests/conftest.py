"""
Shared fixtures: stub collaborators and fake HTTP responses.

No test talks to a real network; requests is blocked at the session level
and individual tests patch ``requests.post`` / ``requests.get``.
"""
import time
from typing import List, Optional

import pytest
import requests

from formprobe.services.field_detection import FormAnalysisPipeline
from formprobe.services.field_detection.fields import Field


class StubInferenceService:
    """Returns canned fields, raises a canned error, or sleeps."""

    def __init__(self, fields: Optional[List[Field]] = None, error: Exception = None, delay: float = 0):
        self.fields = fields or []
        self.error = error
        self.delay = delay
        self.calls: List[str] = []

    def infer_fields(self, sanitized_markup: str) -> List[Field]:
        self.calls.append(sanitized_markup)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.fields)


class StubRefiner:
    """Returns canned names and records every request."""

    def __init__(self, names: Optional[List[str]] = None, error: Exception = None, delay: float = 0):
        self.names = names or []
        self.error = error
        self.delay = delay
        self.calls = []

    def refine_names(self, fields, url=None) -> List[str]:
        self.calls.append((list(fields), url))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.names)


class StubFetcher:
    def __init__(self, html: str = '', error: Exception = None):
        self.html = html
        self.error = error
        self.urls: List[str] = []

    def fetch(self, url: str) -> str:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.html


class FakeResponse:
    """Just enough of requests.Response for the service clients."""

    def __init__(self, status_code: int = 200, json_data=None, text: str = '', reason: str = 'OK'):
        self.status_code = status_code
        self._json = json_data
        self.text = text
        self.reason = reason

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


def chat_response(content: str) -> FakeResponse:
    """A successful chat completion carrying ``content``."""
    return FakeResponse(json_data={'choices': [{'message': {'role': 'assistant', 'content': content}}]})


@pytest.fixture(autouse=True)
def block_network(monkeypatch):
    def _blocked(*args, **kwargs):
        raise RuntimeError("Network access is disabled in tests")
    monkeypatch.setattr(requests.sessions.Session, 'request', _blocked)


@pytest.fixture
def stubs():
    """Namespace with the stub classes for building collaborators."""
    class _Stubs:
        Inference = StubInferenceService
        Refiner = StubRefiner
        Fetcher = StubFetcher
        Response = FakeResponse
        chat = staticmethod(chat_response)
    return _Stubs


@pytest.fixture
def make_pipeline():
    """Build a pipeline around stub collaborators with short timeouts."""
    def _make(inference=None, refiner=None, fetcher=None, parser=None,
              inference_timeout: float = 2.0, refinement_timeout: float = 2.0):
        return FormAnalysisPipeline(
            inference_service=inference,
            refiner=refiner,
            fetcher=fetcher or StubFetcher(),
            parser=parser,
            inference_timeout=inference_timeout,
            refinement_timeout=refinement_timeout
        )
    return _make
