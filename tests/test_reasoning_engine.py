import json

import pytest
import requests

from agents import reasoning_engine
from agents.errors import ReasoningEngineUnavailable, SchemaValidationError
from agents.reasoning_engine import (
    GeminiReasoningEngine,
    OpenAIReasoningEngine,
    build_prompt,
    build_reasoning_engine,
)


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else json.dumps(body)

    def json(self):
        if self._body is None:
            raise ValueError('no json')
        return self._body


def make_context():
    return {
        'productName': 'Teh Hijau',
        'currentStock': 4,
        'analysisPeriod': '14 days',
        'analysis': {
            'totalSold': 42,
            'salesTrend': 'increasing',
            'peakDays': ['03 Jan: 9 units', '05 Jan: 8 units'],
            'averageDailySales': 3.0,
        },
        'guidance': 'Next period stock should approximate (averageDailySales * 30) plus a buffer.',
    }


ANSWER = {'suggestion': {'nextPeriodStock': 110, 'safetyStock': 28}, 'reasoning': 'Demand is rising.'}


def gemini_body(text):
    return {'candidates': [{'content': {'parts': [{'text': text}]}}]}


def capture_post(monkeypatch, response=None, error=None):
    calls = []

    def fake_post(url, timeout=None, **kwargs):
        calls.append({'url': url, 'timeout': timeout, **kwargs})
        if error is not None:
            raise error
        return response

    monkeypatch.setattr(reasoning_engine.requests, 'post', fake_post)
    return calls


def test_prompt_carries_statistics_and_guidance():
    prompt = build_prompt(make_context())
    assert '"Teh Hijau"' in prompt
    assert 'Current Stock: 4' in prompt
    assert 'Last 14 days' in prompt
    assert '03 Jan: 9 units, 05 Jan: 8 units' in prompt
    assert 'averageDailySales * 30' in prompt


def test_gemini_decodes_json_answer(monkeypatch):
    calls = capture_post(monkeypatch, FakeResponse(body=gemini_body(json.dumps(ANSWER))))
    engine = GeminiReasoningEngine('AIza-test-key', model='gemini-2.0-flash')
    assert engine.generate(make_context(), timeout=7) == ANSWER

    call = calls[0]
    assert call['url'].endswith('/models/gemini-2.0-flash:generateContent')
    assert call['timeout'] == 7
    assert call['params'] == {'key': 'AIza-test-key'}
    assert call['json']['generationConfig']['responseMimeType'] == 'application/json'


def test_gemini_bearer_token_and_fenced_answer(monkeypatch):
    fenced = '```json\n' + json.dumps(ANSWER) + '\n```'
    calls = capture_post(monkeypatch, FakeResponse(body=gemini_body(fenced)))
    engine = GeminiReasoningEngine('ya29.token', api_url='https://proxy.local/generate/')
    assert engine.generate(make_context(), timeout=5) == ANSWER
    assert calls[0]['url'] == 'https://proxy.local/generate'
    assert calls[0]['headers']['Authorization'] == 'Bearer ya29.token'
    assert calls[0]['params'] is None


def test_timeout_is_unavailable(monkeypatch):
    capture_post(monkeypatch, error=requests.Timeout('slow'))
    with pytest.raises(ReasoningEngineUnavailable, match='timed out'):
        GeminiReasoningEngine('AIza-k').generate(make_context(), timeout=1)


def test_http_error_is_unavailable(monkeypatch):
    body = {'error': {'message': 'Resource has been exhausted'}}
    capture_post(monkeypatch, FakeResponse(status_code=429, body=body))
    with pytest.raises(ReasoningEngineUnavailable, match='429 Resource has been exhausted'):
        GeminiReasoningEngine('AIza-k').generate(make_context(), timeout=1)


@pytest.mark.parametrize('body', [
    {'candidates': []},
    gemini_body('I think you should stock about 100 units.'),
    gemini_body('[1, 2, 3]'),
    gemini_body(''),
])
def test_malformed_gemini_answers_are_schema_errors(monkeypatch, body):
    capture_post(monkeypatch, FakeResponse(body=body))
    with pytest.raises(SchemaValidationError):
        GeminiReasoningEngine('AIza-k').generate(make_context(), timeout=1)


def test_openai_decodes_message_content(monkeypatch):
    body = {'choices': [{'message': {'content': json.dumps(ANSWER)}}]}
    calls = capture_post(monkeypatch, FakeResponse(body=body))
    engine = OpenAIReasoningEngine('sk-test', model='gpt-4o-mini')
    assert engine.generate(make_context(), timeout=3) == ANSWER
    assert calls[0]['headers']['Authorization'] == 'Bearer sk-test'
    assert calls[0]['json']['response_format'] == {'type': 'json_object'}


def test_openai_connection_error_is_unavailable(monkeypatch):
    capture_post(monkeypatch, error=requests.ConnectionError('refused'))
    with pytest.raises(ReasoningEngineUnavailable):
        OpenAIReasoningEngine('sk-test').generate(make_context(), timeout=3)


def test_build_reasoning_engine_prefers_gemini(monkeypatch):
    monkeypatch.setattr(reasoning_engine, 'DISABLE_LLM', False)
    monkeypatch.setattr(reasoning_engine, 'GEMINI_API_KEY', 'AIza-k')
    monkeypatch.setattr(reasoning_engine, 'OPENAI_API_KEY', 'sk-k')
    assert isinstance(build_reasoning_engine(), GeminiReasoningEngine)

    monkeypatch.setattr(reasoning_engine, 'GEMINI_API_KEY', None)
    assert isinstance(build_reasoning_engine(), OpenAIReasoningEngine)

    monkeypatch.setattr(reasoning_engine, 'OPENAI_API_KEY', None)
    assert build_reasoning_engine() is None


def test_build_reasoning_engine_respects_disable_flag(monkeypatch):
    monkeypatch.setattr(reasoning_engine, 'DISABLE_LLM', True)
    monkeypatch.setattr(reasoning_engine, 'GEMINI_API_KEY', 'AIza-k')
    assert build_reasoning_engine() is None


@pytest.mark.parametrize('status,retryable', [(401, False), (400, False), (403, False), (429, True), (500, True), (503, True)])
def test_http_status_decides_retryable(monkeypatch, status, retryable):
    capture_post(monkeypatch, FakeResponse(status_code=status, body={'error': {'message': 'nope'}}))
    with pytest.raises(ReasoningEngineUnavailable) as exc:
        OpenAIReasoningEngine('sk-test').generate(make_context(), timeout=1)
    assert exc.value.retryable is retryable
    assert str(status) in str(exc.value)
