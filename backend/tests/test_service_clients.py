"""Tests for the inference and refinement clients (requests is faked)."""
import json

import pytest
import requests

from formprobe.config import Config
from formprobe.services.field_detection.data_types import DataType
from formprobe.services.field_detection.errors import (
    ContentTooLargeError,
    InferenceError,
    RefinementError,
)
from formprobe.services.field_detection.fields import Field
from formprobe.services.field_detection.inference_client import FieldInferenceClient
from formprobe.services.field_detection.name_refiner import (
    MAX_REFINEMENT_FIELDS,
    NameRefinementClient,
    RefinementRequestItem,
)
from formprobe.services.field_detection.reconciliation import reconcile
from formprobe.utils.rate_limiter import RateLimiter


@pytest.fixture
def post_calls(monkeypatch):
    """Install a fake requests.post; set ``.response`` to control replies."""
    class _Recorder:
        response = None
        calls = []

        def __call__(self, url, headers=None, json=None, timeout=None):
            self.calls.append({'url': url, 'headers': headers, 'json': json, 'timeout': timeout})
            if isinstance(self.response, Exception):
                raise self.response
            return self.response

    recorder = _Recorder()
    recorder.calls = []
    monkeypatch.setattr(requests, 'post', recorder)
    return recorder


def inference_client(**kwargs):
    kwargs.setdefault('api_key', 'test-key')
    kwargs.setdefault('api_base', 'https://llm.example.com/v1/')
    kwargs.setdefault('model_name', 'test-model')
    return FieldInferenceClient(**kwargs)


def refinement_client(**kwargs):
    kwargs.setdefault('api_key', 'test-key')
    kwargs.setdefault('api_base', 'https://llm.example.com/v1')
    return NameRefinementClient(**kwargs)


class TestFieldInferenceClient:

    def test_normalizes_response(self, post_calls, stubs):
        content = json.dumps({'fields': [
            {'fieldName': 'First Name', 'dataType': 'FirstName'},
            {'fieldName': 'email', 'dataType': 'Electronic Mail'},
            {'fieldName': 'firstName', 'dataType': 'LastName'},
            {'fieldName': '!!!', 'dataType': 'Word'},
            'not an object',
        ]})
        post_calls.response = stubs.chat(f"```json\n{content}\n```")

        fields = inference_client().infer_fields('<input name="first_name">')

        assert fields == [
            Field('firstName', DataType.FIRST_NAME),
            Field('email', DataType.WORD),
        ]

    def test_non_string_labels_are_dropped(self, post_calls, stubs):
        content = json.dumps({'fields': [
            {'fieldName': 'age', 'dataType': 'Age', 'label': 5},
            {'fieldName': 'city', 'dataType': 'City', 'label': 'Town'},
        ]})
        post_calls.response = stubs.chat(content)

        fields = inference_client().infer_fields('<input name="age">')

        assert fields == [Field('age', DataType.AGE), Field('city', DataType.CITY, 'Town')]
        assert reconcile(fields, []) == fields

    def test_request_shape(self, post_calls, stubs):
        post_calls.response = stubs.chat('{"fields": []}')

        assert inference_client(timeout=7).infer_fields('<form></form>') == []

        [call] = post_calls.calls
        assert call['url'] == 'https://llm.example.com/v1/chat/completions'
        assert call['headers']['Authorization'] == 'Bearer test-key'
        assert call['timeout'] == 7
        assert call['json']['model'] == 'test-model'
        assert call['json']['temperature'] == 0.0
        system, user = call['json']['messages']
        assert '"State/Province"' in system['content']
        assert '"ActiveInactive"' in system['content']
        assert '<form></form>' in user['content']

    def test_size_limit_error(self, post_calls, stubs):
        post_calls.response = stubs.Response(
            status_code=400,
            text='{"error": {"message": "This model\'s maximum context length is 128000 tokens."}}'
        )

        with pytest.raises(ContentTooLargeError) as excinfo:
            inference_client().infer_fields('<form>...</form>')
        assert excinfo.value.status_code == 400

    def test_auth_error_is_not_a_size_limit(self, post_calls, stubs):
        post_calls.response = stubs.Response(status_code=401, text='Invalid token supplied')

        with pytest.raises(InferenceError) as excinfo:
            inference_client().infer_fields('<form></form>')
        assert not isinstance(excinfo.value, ContentTooLargeError)

    def test_server_error(self, post_calls, stubs):
        post_calls.response = stubs.Response(status_code=503, text='Service Unavailable')

        with pytest.raises(InferenceError) as excinfo:
            inference_client().infer_fields('<form></form>')
        assert excinfo.value.status_code == 503

    def test_transport_error(self, post_calls):
        post_calls.response = requests.Timeout("read timed out")

        with pytest.raises(InferenceError):
            inference_client().infer_fields('<form></form>')

    def test_unparseable_reply(self, post_calls, stubs):
        post_calls.response = stubs.chat('Sorry, I cannot help with that.')

        with pytest.raises(InferenceError):
            inference_client().infer_fields('<form></form>')

    def test_malformed_body(self, post_calls, stubs):
        post_calls.response = stubs.Response(json_data={'unexpected': True})

        with pytest.raises(InferenceError):
            inference_client().infer_fields('<form></form>')

    def test_missing_credentials(self, post_calls, monkeypatch):
        monkeypatch.setattr(Config, 'INFERENCE_API_KEY', None)
        client = FieldInferenceClient()

        assert not client.is_available
        with pytest.raises(InferenceError):
            client.infer_fields('<form></form>')
        assert post_calls.calls == []

    def test_calls_are_recorded_and_limited(self, post_calls, stubs):
        limiter = RateLimiter(max_total_calls=1, enabled=True)
        post_calls.response = stubs.chat('{"fields": []}')
        client = inference_client(rate_limiter=limiter)

        client.infer_fields('<form></form>')
        with pytest.raises(InferenceError, match='Rate limit exceeded'):
            client.infer_fields('<form></form>')

        assert len(post_calls.calls) == 1
        assert limiter.get_stats()['calls_by_service'] == {'inference': 1}


class TestNameRefinementClient:

    ITEMS = [
        RefinementRequestItem('input_12', 'Your Age'),
        RefinementRequestItem('field3'),
    ]

    def test_array_reply(self, post_calls, stubs):
        post_calls.response = stubs.chat('["yourAge", "nickname"]')

        assert refinement_client().refine_names(self.ITEMS, 'https://example.com') == ['yourAge', 'nickname']

        user = post_calls.calls[0]['json']['messages'][1]['content']
        assert 'https://example.com' in user
        payload = json.loads(user.split('Input field list:\n', 1)[1])
        assert payload == [{'original': 'input_12', 'label': 'Your Age'}, {'original': 'field3'}]

    def test_object_reply_in_code_fence(self, post_calls, stubs):
        post_calls.response = stubs.chat('```json\n{"refined": ["yourAge", 7]}\n```')

        assert refinement_client().refine_names(self.ITEMS) == ['yourAge', '']

    def test_request_is_capped(self, post_calls, stubs):
        post_calls.response = stubs.chat('[]')
        items = [RefinementRequestItem(f'field{i}') for i in range(MAX_REFINEMENT_FIELDS + 10)]

        refinement_client().refine_names(items)

        user = post_calls.calls[0]['json']['messages'][1]['content']
        assert len(json.loads(user.split('Input field list:\n', 1)[1])) == MAX_REFINEMENT_FIELDS

    def test_empty_request_makes_no_call(self, post_calls):
        assert refinement_client().refine_names([]) == []
        assert post_calls.calls == []

    def test_unparseable_reply(self, post_calls, stubs):
        post_calls.response = stubs.chat('yourAge, nickname')

        with pytest.raises(RefinementError):
            refinement_client().refine_names(self.ITEMS)

    def test_service_error(self, post_calls, stubs):
        post_calls.response = stubs.Response(status_code=500, text='boom')

        with pytest.raises(RefinementError):
            refinement_client().refine_names(self.ITEMS)

    def test_uses_refinement_timeout(self, post_calls, stubs, monkeypatch):
        monkeypatch.setattr(Config, 'REFINEMENT_TIMEOUT_SECONDS', 12.0)
        post_calls.response = stubs.chat('[]')

        refinement_client().refine_names(self.ITEMS)

        assert post_calls.calls[0]['timeout'] == 12.0
