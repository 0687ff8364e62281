# portal_forms.py - Participation, question builder and survey form logic
import copy
import logging
from typing import Dict, List, Optional, Tuple

from portal_api import ApiError, NotFoundError, SAMPLE_PARTICIPATION_SURVEY
from portal_config import Config

logger = logging.getLogger(__name__)

# =============================================================================
# QUESTION TYPES
# =============================================================================

QUESTION_TYPES = {
    'text': 'Text Input',
    'textarea': 'Long Text',
    'mcq': 'Multiple Choice',
    'checkbox': 'Checkboxes',
    'dropdown': 'Dropdown',
    'rating': 'Rating Scale',
    'file': 'File Upload',
}

# Types whose questions carry an option list
CHOICE_TYPES = ('mcq', 'checkbox', 'dropdown')

RATING_VALUES = ['1', '2', '3', '4', '5']


def type_label(question_type: str) -> str:
    return QUESTION_TYPES.get(question_type, question_type)

# =============================================================================
# ANSWER DRAFT
# =============================================================================

class AnswerDraft:
    """In-progress answers for one survey instance.

    ``answers`` maps question id to a single string; checkbox selections are
    comma-joined. ``files`` maps question id to the file picked for a
    ``file`` question and never enters ``answers``.
    """

    def __init__(self):
        self.answers: Dict[int, str] = {}
        self.files: Dict[int, object] = {}

    def get(self, question_id) -> str:
        return self.answers.get(question_id, '')

    def set_answer(self, question_id, value: str):
        self.answers[question_id] = value

    def select_rating(self, question_id, value):
        self.answers[question_id] = str(value)

    def selected_options(self, question_id) -> List[str]:
        value = self.get(question_id)
        return value.split(',') if value else []

    def toggle_option(self, question_id, option: str, checked: bool):
        # Labels containing a comma do not survive this encoding
        values = self.selected_options(question_id)
        if checked:
            values = values + [option]
        else:
            values = [v for v in values if v != option]
        self.answers[question_id] = ','.join(values)

    def attach_file(self, question_id, file, max_size: int = Config.MAX_FILE_SIZE) -> Optional[str]:
        """Track the file for a question; returns an error message if rejected"""
        if file is None:
            self.files.pop(question_id, None)
            return None

        if hasattr(file, 'size') and file.size > max_size:
            self.files.pop(question_id, None)
            size_mb = max_size / (1024 * 1024)
            return f"File too large. Maximum size: {size_mb:.1f}MB"

        self.files[question_id] = file
        return None

    def clear(self):
        self.answers.clear()
        self.files.clear()


def first_missing_required(questions: List[Dict], draft: AnswerDraft) -> Optional[str]:
    """Message for the first required question left blank, in survey order"""
    for question in questions:
        if not question.get('is_required'):
            continue
        if not draft.get(question['id']).strip():
            return f"Please answer: {question.get('question_text', '')}"
    return None


def build_answer_list(questions: List[Dict], draft: AnswerDraft) -> List[Dict]:
    """Every question in order, with '' for anything unanswered"""
    return [
        {'question': question['id'], 'answer': draft.get(question['id'])}
        for question in questions
    ]

# =============================================================================
# PARTICIPATION FORM
# =============================================================================

class ParticipationForm:
    """State of one respondent filling out a survey through a token link.

    loading -> error | ready; ready -> submitting -> submitted | ready.
    ``error`` and ``submitted`` are final for the page load.
    """

    LOADING = 'loading'
    ERROR = 'error'
    READY = 'ready'
    SUBMITTING = 'submitting'
    SUBMITTED = 'submitted'

    SUBMIT_FAILED_MESSAGE = "Failed to submit your response. Please try again."

    def __init__(self, token: str):
        self.token = token
        self.status = self.LOADING
        self.survey: Optional[Dict] = None
        self.error: Optional[str] = None
        self.used_sample_data = False
        self.draft = AnswerDraft()

    @property
    def questions(self) -> List[Dict]:
        return (self.survey or {}).get('questions') or []

    def load(self, client, use_sample_data: bool = Config.SAMPLE_DATA_ON_ERROR):
        try:
            self.survey = client.resolve_token(self.token)
            self.status = self.READY
        except NotFoundError:
            logger.warning(f"Participation token not found: {self.token}")
            self.error = 'Survey not found or token expired'
            self.status = self.ERROR
        except ApiError as e:
            logger.error(f"Failed to fetch survey for token {self.token}: {e.message}")
            if e.is_network_error and use_sample_data:
                self.survey = copy.deepcopy(SAMPLE_PARTICIPATION_SURVEY)
                self.used_sample_data = True
                self.status = self.READY
            else:
                self.error = 'Failed to load survey'
                self.status = self.ERROR

    def validate(self) -> Optional[str]:
        return first_missing_required(self.questions, self.draft)

    def submit(self, client) -> Tuple[bool, Optional[str]]:
        """Validate, post the answers, then upload each attached file"""
        if self.status != self.READY:
            return False, None

        validation_error = self.validate()
        if validation_error:
            logger.warning(f"Submission blocked for token {self.token}: {validation_error}")
            return False, validation_error

        self.status = self.SUBMITTING
        try:
            client.submit_response(self.token, build_answer_list(self.questions, self.draft))
        except ApiError as e:
            logger.error(f"Failed to submit response for token {self.token}: {e.message}")
            # Files still go out when the server answered with an error status
            if not e.is_network_error:
                self._upload_files(client)
            self.status = self.READY
            return False, self.SUBMIT_FAILED_MESSAGE

        self._upload_files(client)
        self.draft.clear()
        self.status = self.SUBMITTED
        return True, None

    def _upload_files(self, client):
        """Upload each attached file; a failed upload is logged and skipped"""
        for question in self.questions:
            file = self.draft.files.get(question['id'])
            if file is None:
                continue
            try:
                client.upload_file(
                    self.token, question['id'], file.name, file.getvalue(),
                    getattr(file, 'type', None)
                )
            except ApiError as e:
                logger.error(f"File upload failed for question {question['id']}: {e.message}")

# =============================================================================
# QUESTION BUILDER
# =============================================================================

class QuestionDraft:
    """Editable copy of a question inside the question builder"""

    def __init__(self, question: Optional[Dict] = None, order: int = 1):
        question = question or {}
        self.id = question.get('id')
        self.question_text = question.get('question_text', '')
        self.question_type = question.get('question_type', 'text')
        self.is_required = bool(question.get('is_required', False))
        self.order = question.get('order', order)
        self.options = list(question.get('options') or [])

    @classmethod
    def new(cls, questions: List[Dict]) -> 'QuestionDraft':
        return cls(order=len(questions) + 1)

    @property
    def is_new(self) -> bool:
        return not self.id

    @property
    def needs_options(self) -> bool:
        return self.question_type in CHOICE_TYPES

    @property
    def can_save(self) -> bool:
        return bool(self.question_text.strip())

    def set_type(self, question_type: str):
        if question_type not in QUESTION_TYPES:
            raise ValueError(f"Unknown question type: {question_type}")
        self.question_type = question_type
        if not self.needs_options:
            self.options = []

    def add_option(self):
        self.options.append('')

    def update_option(self, index: int, value: str):
        self.options[index] = value

    def remove_option(self, index: int):
        del self.options[index]

    def to_payload(self, survey_id) -> Dict:
        payload = {
            'survey': survey_id,
            'question_text': self.question_text,
            'question_type': self.question_type,
            'is_required': self.is_required,
            'order': self.order,
        }
        if self.id:
            payload['id'] = self.id
        if self.needs_options:
            payload['options'] = [opt for opt in self.options if opt.strip()]
        return payload


def save_question(client, survey_id, draft: QuestionDraft, questions: List[Dict]) -> List[Dict]:
    """Create or update the draft and return the refreshed question list"""
    payload = draft.to_payload(survey_id)
    if draft.is_new:
        saved = client.create_question(payload)
        logger.info(f"Question {saved.get('id')} added to survey {survey_id}")
        return questions + [saved]

    saved = client.update_question(draft.id, payload)
    logger.info(f"Question {draft.id} updated in survey {survey_id}")
    return [saved if q.get('id') == saved.get('id') else q for q in questions]


def delete_question(client, question_id, questions: List[Dict]) -> List[Dict]:
    client.delete_question(question_id)
    return [q for q in questions if q.get('id') != question_id]

# =============================================================================
# SURVEY FORMS
# =============================================================================

def survey_payload(title: str, description: str, is_active: bool) -> Dict:
    if not title.strip():
        raise ValueError("Survey title is required")
    return {'title': title, 'description': description, 'is_active': is_active}


def toggle_survey_active(client, surveys: List[Dict], survey_id) -> List[Dict]:
    """Flip one survey's active flag; every other entry is returned untouched"""
    survey = next(s for s in surveys if s.get('id') == survey_id)
    payload = {
        'title': survey.get('title', ''),
        'description': survey.get('description', ''),
        'is_active': not survey.get('is_active', False),
    }
    updated = client.update_survey(survey_id, payload)
    merged = dict(survey)
    merged.update(updated or payload)
    return [merged if s.get('id') == survey_id else s for s in surveys]
