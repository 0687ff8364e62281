# portal_api.py - REST client for the survey management API
import logging
from typing import Dict, List, Optional

import requests

from portal_config import Config

logger = logging.getLogger(__name__)

# =============================================================================
# ERRORS
# =============================================================================

class ApiError(Exception):
    """Raised when a request fails or the API answers with a non-success status"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_network_error(self) -> bool:
        return self.status_code is None


class NotFoundError(ApiError):
    """The API answered 404"""

# =============================================================================
# API CLIENT
# =============================================================================

class PortalApiClient:
    """Handles all calls to the remote survey API.

    The auth token is passed in explicitly; requests that need it send
    ``Authorization: Token <token>``. Participation endpoints are called
    without it.
    """

    def __init__(self, config=Config, token: Optional[str] = None, session=None):
        self.config = config
        self.token = token
        self.session = session or requests.Session()

    def _headers(self, auth: bool) -> Dict[str, str]:
        if auth and self.token:
            return {'Authorization': f'Token {self.token}'}
        return {}

    def _request(self, method: str, path: str, auth: bool = True, **kwargs) -> requests.Response:
        """Send a request and raise ApiError unless the status is a success"""
        url = self.config.api_url(path)
        try:
            response = self.session.request(
                method, url,
                headers=self._headers(auth),
                timeout=self.config.REQUEST_TIMEOUT,
                **kwargs
            )
        except requests.RequestException as e:
            logger.error(f"{method} {path} failed: {str(e)}")
            raise ApiError(f"Could not reach the survey API: {str(e)}") from e

        if response.status_code == 404:
            raise NotFoundError(f"{method} {path} returned 404", 404)
        if not response.ok:
            logger.error(f"{method} {path} returned {response.status_code}")
            raise ApiError(f"{method} {path} returned {response.status_code}", response.status_code)
        return response

    @staticmethod
    def _json(response: requests.Response):
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"Invalid JSON from {response.url}", response.status_code) from e

    @staticmethod
    def _results(data) -> List[Dict]:
        """Unwrap a paginated ``{"results": [...]}`` body or return a bare list"""
        if isinstance(data, dict):
            return data.get('results', [])
        return data or []

    # -------------------------------------------------------------------------
    # Authentication & profile
    # -------------------------------------------------------------------------

    def login(self, username: str, password: str) -> str:
        """Exchange credentials for an API token"""
        response = self._request(
            'POST', '/api/auth/login/', auth=False,
            json={'username': username, 'password': password}
        )
        token = self._json(response).get('token')
        if not token:
            raise ApiError("Login response did not include a token", response.status_code)
        return token

    def get_profile(self) -> Dict:
        return self._json(self._request('GET', '/api/profile/'))

    def update_profile(self, payload: Dict) -> Dict:
        return self._json(self._request('PUT', '/api/profile/', json=payload))

    # -------------------------------------------------------------------------
    # Surveys
    # -------------------------------------------------------------------------

    def list_surveys(self) -> List[Dict]:
        return self._results(self._json(self._request('GET', '/api/surveys/')))

    def get_survey(self, survey_id) -> Dict:
        return self._json(self._request('GET', f'/api/surveys/{survey_id}/'))

    def create_survey(self, payload: Dict) -> Dict:
        survey = self._json(self._request('POST', '/api/surveys/', json=payload))
        logger.info(f"Survey {survey.get('id')} created")
        return survey

    def update_survey(self, survey_id, payload: Dict) -> Dict:
        survey = self._json(self._request('PUT', f'/api/surveys/{survey_id}/', json=payload))
        logger.info(f"Survey {survey_id} updated")
        return survey

    # -------------------------------------------------------------------------
    # Questions
    # -------------------------------------------------------------------------

    def list_questions(self, survey_id) -> List[Dict]:
        response = self._request('GET', '/api/survey-questions/', params={'survey': survey_id})
        return self._results(self._json(response))

    def create_question(self, payload: Dict) -> Dict:
        return self._json(self._request('POST', '/api/survey-questions/', json=payload))

    def update_question(self, question_id, payload: Dict) -> Dict:
        return self._json(self._request('PUT', f'/api/survey-questions/{question_id}/', json=payload))

    def delete_question(self, question_id) -> None:
        self._request('DELETE', f'/api/survey-questions/{question_id}/')
        logger.info(f"Question {question_id} deleted")

    # -------------------------------------------------------------------------
    # Responses, analytics & export
    # -------------------------------------------------------------------------

    def list_responses(self, survey_id) -> List[Dict]:
        response = self._request('GET', '/api/survey-responses/', params={'survey': survey_id})
        return self._results(self._json(response))

    def get_question_stats(self, survey_id) -> Dict:
        response = self._request('GET', '/api/survey-question-stats/', params={'survey': survey_id})
        return self._json(response)

    def get_summary(self) -> Dict:
        return self._json(self._request('GET', '/api/survey-summary/'))

    def export_responses(self, survey_id, fmt: Optional[str] = None) -> bytes:
        """Download the server-side CSV export as raw bytes"""
        params = {'survey': survey_id}
        if fmt:
            params['format'] = fmt
        return self._request('GET', '/api/export-responses/', params=params).content

    # -------------------------------------------------------------------------
    # Participation (no auth)
    # -------------------------------------------------------------------------

    def resolve_token(self, token: str) -> Dict:
        """Resolve a participation token to its survey definition"""
        response = self._request('GET', f'/api/customer-tokens/{token}/', auth=False)
        data = self._json(response)
        if not isinstance(data, dict):
            raise ApiError(f"Unexpected token payload from {response.url}", response.status_code)
        return data.get('survey') or {}

    def submit_response(self, token: str, answers: List[Dict]) -> Dict:
        response = self._request(
            'POST', '/api/survey-response/', auth=False,
            json={'customer_token': token, 'answers': answers}
        )
        logger.info(f"Response submitted for token {token}")
        return self._json(response) if response.content else {}

    def upload_file(self, token: str, question_id, file_name: str, data: bytes,
                    content_type: Optional[str] = None) -> None:
        self._request(
            'POST', '/api/survey-file-upload/', auth=False,
            data={'question': str(question_id), 'customer_token': token},
            files={'file': (file_name, data, content_type or 'application/octet-stream')}
        )
        logger.info(f"File {file_name} uploaded for question {question_id}")

# =============================================================================
# SAMPLE DATA
# =============================================================================
# Shown in place of live data when the API is unreachable and
# Config.SAMPLE_DATA_ON_ERROR is on.

SAMPLE_SUMMARY = {
    'total_surveys': 12,
    'total_responses': 1543,
    'active_surveys': 8,
    'recent_activity': [
        {
            'id': 1,
            'type': 'survey_created',
            'description': 'New survey "Customer Satisfaction" created',
            'timestamp': '2 hours ago'
        },
        {
            'id': 2,
            'type': 'response_received',
            'description': '15 new responses for "Product Feedback"',
            'timestamp': '4 hours ago'
        }
    ]
}

SAMPLE_SURVEYS = [
    {'id': 1, 'title': 'Customer Satisfaction Survey', 'description': '',
     'is_active': True, 'created_at': '2024-01-10T09:00:00Z', 'response_count': 28},
    {'id': 2, 'title': 'Employee Feedback Form', 'description': '',
     'is_active': False, 'created_at': '2024-01-08T09:00:00Z', 'response_count': 0},
    {'id': 3, 'title': 'Product Evaluation Survey', 'description': '',
     'is_active': False, 'created_at': '2024-01-02T09:00:00Z', 'response_count': 41},
]

SAMPLE_QUESTIONS = [
    {
        'id': 1,
        'question_text': 'How satisfied are you with our service?',
        'question_type': 'rating',
        'is_required': True,
        'order': 1
    },
    {
        'id': 2,
        'question_text': 'What could we improve?',
        'question_type': 'textarea',
        'is_required': False,
        'order': 2
    }
]

SAMPLE_PARTICIPATION_SURVEY = {
    'id': 1,
    'title': 'Customer Satisfaction Survey',
    'description': "We'd love to hear your feedback about our services",
    'questions': [
        {
            'id': 1,
            'question_text': 'How satisfied are you with our service?',
            'question_type': 'rating',
            'is_required': True
        },
        {
            'id': 2,
            'question_text': 'Which features do you use most?',
            'question_type': 'mcq',
            'is_required': True,
            'options': ['Dashboard', 'Reports', 'Settings', 'Analytics']
        },
        {
            'id': 3,
            'question_text': 'What could we improve?',
            'question_type': 'textarea',
            'is_required': False
        },
        {
            'id': 4,
            'question_text': 'Upload any relevant documents',
            'question_type': 'file',
            'is_required': False
        }
    ]
}

SAMPLE_RESPONSES = [
    {
        'id': 1,
        'respondent_email': 'john@example.com',
        'submitted_at': '2024-01-15T14:30:00Z',
        'answers': [
            {'question': 'How satisfied are you with our service?', 'answer': '5', 'question_type': 'rating'},
            {'question': 'What could we improve?', 'answer': 'Better response time', 'question_type': 'textarea'}
        ]
    },
    {
        'id': 2,
        'respondent_email': 'jane@example.com',
        'submitted_at': '2024-01-14T10:15:00Z',
        'answers': [
            {'question': 'How satisfied are you with our service?', 'answer': '4', 'question_type': 'rating'},
            {'question': 'What could we improve?', 'answer': 'More features', 'question_type': 'textarea'}
        ]
    }
]

SAMPLE_QUESTION_STATS = {
    'total_responses': 28,
    'questions': [
        {
            'question': 'How satisfied are you with our service?',
            'question_type': 'rating',
            'stats': [
                {'answer': '1', 'count': 2},
                {'answer': '2', 'count': 1},
                {'answer': '3', 'count': 5},
                {'answer': '4', 'count': 12},
                {'answer': '5', 'count': 8}
            ]
        },
        {
            'question': 'Which features do you use most?',
            'question_type': 'mcq',
            'stats': [
                {'answer': 'Dashboard', 'count': 15},
                {'answer': 'Reports', 'count': 12},
                {'answer': 'Settings', 'count': 8},
                {'answer': 'Analytics', 'count': 10}
            ]
        }
    ]
}
