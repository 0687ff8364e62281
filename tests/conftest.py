import json

import pytest
import requests

from portal_config import Config


class FakeResponse:
    def __init__(self, status_code=200, body=None, content=None, url='http://api.test/'):
        self.status_code = status_code
        self._body = body
        self.url = url
        if content is not None:
            self.content = content
        elif body is not None:
            self.content = json.dumps(body).encode('utf-8')
        else:
            self.content = b''

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class FakeSession:
    """Stands in for requests.Session; replies with queued responses"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append({'method': method, 'url': url, **kwargs})
        reply = self.responses.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeClient:
    """Records portal calls made by the screen logic"""

    def __init__(self, survey=None, fail_with=None, upload_fail_for=()):
        self.survey = survey
        self.fail_with = fail_with
        self.upload_fail_for = set(upload_fail_for)
        self.calls = []

    def _maybe_fail(self, name):
        if self.fail_with is not None and name in self.fail_with:
            raise self.fail_with[name]

    def resolve_token(self, token):
        self.calls.append(('resolve_token', token))
        self._maybe_fail('resolve_token')
        return self.survey

    def submit_response(self, token, answers):
        self.calls.append(('submit_response', token, answers))
        self._maybe_fail('submit_response')
        return {}

    def upload_file(self, token, question_id, file_name, data, content_type=None):
        self.calls.append(('upload_file', token, question_id, file_name, data))
        if question_id in self.upload_fail_for:
            from portal_api import ApiError
            raise ApiError("upload failed", 500)

    def create_question(self, payload):
        self.calls.append(('create_question', payload))
        saved = dict(payload)
        saved['id'] = 99
        return saved

    def update_question(self, question_id, payload):
        self.calls.append(('update_question', question_id, payload))
        return dict(payload)

    def delete_question(self, question_id):
        self.calls.append(('delete_question', question_id))
        self._maybe_fail('delete_question')

    def update_survey(self, survey_id, payload):
        self.calls.append(('update_survey', survey_id, payload))
        self._maybe_fail('update_survey')
        updated = dict(payload)
        updated['id'] = survey_id
        return updated

    def names(self):
        return [call[0] for call in self.calls]


class FakeUpload:
    """Mimics the object st.file_uploader returns"""

    def __init__(self, name='report.pdf', data=b'%PDF-1.4', type='application/pdf'):
        self.name = name
        self._data = data
        self.type = type
        self.size = len(data)

    def getvalue(self):
        return self._data


class PortalTestConfig(Config):
    API_BASE_URL = 'http://api.test'
    REQUEST_TIMEOUT = 5
    SAMPLE_DATA_ON_ERROR = True


@pytest.fixture
def config():
    return PortalTestConfig


@pytest.fixture
def network_error():
    return requests.ConnectionError("connection refused")
