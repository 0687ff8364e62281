import pytest

from conftest import FakeClient, FakeUpload
from portal_api import ApiError, NotFoundError
from portal_forms import (
    AnswerDraft, ParticipationForm, QuestionDraft,
    build_answer_list, delete_question, first_missing_required,
    save_question, survey_payload, toggle_survey_active,
)


QUESTIONS = [
    {'id': 1, 'question_text': 'Your name?', 'question_type': 'text', 'is_required': True},
    {'id': 2, 'question_text': 'Anything else?', 'question_type': 'textarea', 'is_required': False},
    {'id': 3, 'question_text': 'Rate us', 'question_type': 'rating', 'is_required': True},
]


def ready_form(questions, token='tok-1'):
    client = FakeClient(survey={'id': 1, 'title': 'S', 'questions': questions})
    form = ParticipationForm(token)
    form.load(client)
    return form, client

# -----------------------------------------------------------------------------
# Answer draft
# -----------------------------------------------------------------------------

def test_checkbox_toggle_round_trip():
    draft = AnswerDraft()
    draft.toggle_option(5, 'Reports', True)
    before = draft.get(5)

    draft.toggle_option(5, 'Settings', True)
    assert draft.get(5) == 'Reports,Settings'

    draft.toggle_option(5, 'Settings', False)
    assert draft.get(5) == before


def test_checkbox_toggle_from_empty_returns_empty():
    draft = AnswerDraft()
    draft.toggle_option(5, 'Dashboard', True)
    draft.toggle_option(5, 'Dashboard', False)

    assert draft.get(5) == ''
    assert draft.selected_options(5) == []


def test_rating_selection_is_idempotent():
    draft = AnswerDraft()
    draft.select_rating(3, '4')
    draft.select_rating(3, '4')

    assert draft.get(3) == '4'


def test_attach_file_rejects_oversized_upload():
    draft = AnswerDraft()

    error = draft.attach_file(4, FakeUpload(data=b'x' * 2048), max_size=1024)

    assert error.startswith("File too large")
    assert 4 not in draft.files


def test_attach_none_clears_file():
    draft = AnswerDraft()
    draft.attach_file(4, FakeUpload())
    draft.attach_file(4, None)

    assert draft.files == {}

# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------

def test_first_unmet_required_question_is_reported():
    draft = AnswerDraft()

    assert first_missing_required(QUESTIONS, draft) == "Please answer: Your name?"

    draft.set_answer(1, 'Ada')
    assert first_missing_required(QUESTIONS, draft) == "Please answer: Rate us"

    draft.select_rating(3, '5')
    assert first_missing_required(QUESTIONS, draft) is None


def test_whitespace_only_answer_counts_as_missing():
    draft = AnswerDraft()
    draft.set_answer(1, '   ')
    draft.select_rating(3, '2')

    assert first_missing_required(QUESTIONS, draft) == "Please answer: Your name?"


def test_optional_questions_are_never_validated():
    draft = AnswerDraft()
    draft.set_answer(1, 'Ada')
    draft.select_rating(3, '1')

    assert first_missing_required(QUESTIONS, draft) is None


def test_answer_list_covers_every_question_in_order():
    draft = AnswerDraft()
    draft.set_answer(1, 'Ada')

    assert build_answer_list(QUESTIONS, draft) == [
        {'question': 1, 'answer': 'Ada'},
        {'question': 2, 'answer': ''},
        {'question': 3, 'answer': ''},
    ]

# -----------------------------------------------------------------------------
# Participation form
# -----------------------------------------------------------------------------

TEXT_AND_FILE = [
    {'id': 10, 'question_text': 'Describe the issue', 'question_type': 'text', 'is_required': True},
    {'id': 11, 'question_text': 'Attach a screenshot', 'question_type': 'file', 'is_required': False},
]


def test_blank_required_text_blocks_submission():
    form, client = ready_form(TEXT_AND_FILE)

    success, message = form.submit(client)

    assert not success
    assert message == "Please answer: Describe the issue"
    assert 'submit_response' not in client.names()
    assert form.status == ParticipationForm.READY


def test_filled_text_without_file_makes_one_submission_and_no_uploads():
    form, client = ready_form(TEXT_AND_FILE)
    form.draft.set_answer(10, 'Login page hangs')

    success, message = form.submit(client)

    assert success and message is None
    assert client.names().count('submit_response') == 1
    assert client.names().count('upload_file') == 0
    assert form.status == ParticipationForm.SUBMITTED


def test_attached_file_is_uploaded_after_answers():
    form, client = ready_form(TEXT_AND_FILE)
    form.draft.set_answer(10, 'Login page hangs')
    form.draft.attach_file(11, FakeUpload(name='shot.png', data=b'png', type='image/png'))

    form.submit(client)

    assert client.names() == ['resolve_token', 'submit_response', 'upload_file']
    _, token, question_id, file_name, data = client.calls[2]
    assert (token, question_id, file_name, data) == ('tok-1', 11, 'shot.png', b'png')
    answers = client.calls[1][2]
    assert answers == [{'question': 10, 'answer': 'Login page hangs'}, {'question': 11, 'answer': ''}]


def test_failed_upload_does_not_undo_submission():
    questions = TEXT_AND_FILE + [
        {'id': 12, 'question_text': 'Another file', 'question_type': 'file', 'is_required': False},
    ]
    client = FakeClient(survey={'id': 1, 'questions': questions}, upload_fail_for={11})
    form = ParticipationForm('tok-1')
    form.load(client)
    form.draft.set_answer(10, 'text')
    form.draft.attach_file(11, FakeUpload(name='a.txt'))
    form.draft.attach_file(12, FakeUpload(name='b.txt'))

    success, _ = form.submit(client)

    assert success
    assert client.names().count('upload_file') == 2
    assert form.status == ParticipationForm.SUBMITTED


def test_failed_submission_returns_to_ready():
    client = FakeClient(
        survey={'id': 1, 'questions': TEXT_AND_FILE},
        fail_with={'submit_response': ApiError("boom", 500)},
    )
    form = ParticipationForm('tok-1')
    form.load(client)
    form.draft.set_answer(10, 'text')

    success, message = form.submit(client)

    assert not success
    assert message == ParticipationForm.SUBMIT_FAILED_MESSAGE
    assert form.status == ParticipationForm.READY
    assert form.draft.get(10) == 'text'


def test_rejected_answers_still_send_attached_files():
    client = FakeClient(
        survey={'id': 1, 'questions': TEXT_AND_FILE},
        fail_with={'submit_response': ApiError("boom", 500)},
    )
    form = ParticipationForm('tok-1')
    form.load(client)
    form.draft.set_answer(10, 'text')
    form.draft.attach_file(11, FakeUpload(name='shot.png'))

    success, message = form.submit(client)

    assert not success
    assert message == ParticipationForm.SUBMIT_FAILED_MESSAGE
    assert client.names() == ['resolve_token', 'submit_response', 'upload_file']
    assert form.status == ParticipationForm.READY
    assert 11 in form.draft.files


def test_unreachable_server_sends_no_files():
    client = FakeClient(
        survey={'id': 1, 'questions': TEXT_AND_FILE},
        fail_with={'submit_response': ApiError("connection refused")},
    )
    form = ParticipationForm('tok-1')
    form.load(client)
    form.draft.set_answer(10, 'text')
    form.draft.attach_file(11, FakeUpload(name='shot.png'))

    success, message = form.submit(client)

    assert not success
    assert message == ParticipationForm.SUBMIT_FAILED_MESSAGE
    assert 'upload_file' not in client.names()


def test_submitted_form_cannot_be_submitted_again():
    form, client = ready_form(TEXT_AND_FILE)
    form.draft.set_answer(10, 'text')
    form.submit(client)

    assert form.submit(client) == (False, None)
    assert client.names().count('submit_response') == 1


def test_unknown_token_shows_expired_message():
    client = FakeClient(fail_with={'resolve_token': NotFoundError("404", 404)})
    form = ParticipationForm('gone')

    form.load(client)

    assert form.status == ParticipationForm.ERROR
    assert form.error == 'Survey not found or token expired'


def test_server_error_on_token_lookup():
    client = FakeClient(fail_with={'resolve_token': ApiError("500", 500)})
    form = ParticipationForm('tok')

    form.load(client)

    assert form.status == ParticipationForm.ERROR
    assert form.error == 'Failed to load survey'


def test_network_failure_falls_back_to_sample_survey():
    error = ApiError("down")
    client = FakeClient(fail_with={'resolve_token': error})
    form = ParticipationForm('tok')

    form.load(client, use_sample_data=True)

    assert form.status == ParticipationForm.READY
    assert form.used_sample_data
    assert [q['question_type'] for q in form.questions] == ['rating', 'mcq', 'textarea', 'file']


def test_network_failure_without_sample_data_is_an_error():
    client = FakeClient(fail_with={'resolve_token': ApiError("down")})
    form = ParticipationForm('tok')

    form.load(client, use_sample_data=False)

    assert form.status == ParticipationForm.ERROR
    assert form.error == 'Failed to load survey'

# -----------------------------------------------------------------------------
# Question builder
# -----------------------------------------------------------------------------

def test_new_draft_defaults():
    draft = QuestionDraft.new([{'id': 1}, {'id': 2}])

    assert draft.is_new
    assert draft.question_type == 'text'
    assert draft.order == 3
    assert draft.options == []
    assert not draft.can_save


def test_type_round_trip_through_text_drops_options():
    draft = QuestionDraft({'question_text': 'Pick one', 'question_type': 'mcq', 'options': ['A', 'B']})

    draft.set_type('text')
    draft.set_type('mcq')

    assert draft.to_payload(1)['options'] == []


def test_blank_options_are_dropped_on_save():
    draft = QuestionDraft({'question_text': 'Pick', 'question_type': 'checkbox'})
    draft.add_option()
    draft.update_option(0, 'Red')
    draft.add_option()
    draft.update_option(1, '   ')
    draft.add_option()
    draft.update_option(2, 'Blue')

    assert draft.to_payload(4)['options'] == ['Red', 'Blue']


def test_non_choice_payload_omits_options():
    draft = QuestionDraft({'question_text': 'Rate', 'question_type': 'rating', 'options': ['x']})

    payload = draft.to_payload(4)

    assert 'options' not in payload
    assert payload['survey'] == 4


def test_unknown_type_is_rejected():
    with pytest.raises(ValueError):
        QuestionDraft().set_type('matrix')


def test_save_new_question_posts_and_appends():
    client = FakeClient()
    existing = [{'id': 1, 'question_text': 'Q1'}]
    draft = QuestionDraft.new(existing)
    draft.question_text = 'Q2'

    questions = save_question(client, 4, draft, existing)

    assert client.names() == ['create_question']
    assert [q['id'] for q in questions] == [1, 99]


def test_save_existing_question_puts_and_replaces():
    client = FakeClient()
    existing = [
        {'id': 1, 'question_text': 'Q1', 'question_type': 'text'},
        {'id': 2, 'question_text': 'Q2', 'question_type': 'text'},
    ]
    draft = QuestionDraft(existing[1])
    draft.question_text = 'Q2 edited'

    questions = save_question(client, 4, draft, existing)

    assert client.calls[0][:2] == ('update_question', 2)
    assert [q['question_text'] for q in questions] == ['Q1', 'Q2 edited']


def test_delete_question_removes_it():
    client = FakeClient()

    questions = delete_question(client, 1, [{'id': 1}, {'id': 2}])

    assert questions == [{'id': 2}]
    assert client.calls == [('delete_question', 1)]

# -----------------------------------------------------------------------------
# Survey forms
# -----------------------------------------------------------------------------

def test_survey_payload_requires_title():
    with pytest.raises(ValueError):
        survey_payload('   ', 'desc', True)

    assert survey_payload('CSAT', '', False) == {'title': 'CSAT', 'description': '', 'is_active': False}


def test_toggle_changes_only_the_target_survey():
    surveys = [
        {'id': 1, 'title': 'A', 'description': '', 'is_active': True, 'response_count': 3},
        {'id': 2, 'title': 'B', 'description': '', 'is_active': True},
        {'id': 3, 'title': 'C', 'description': '', 'is_active': False},
    ]
    client = FakeClient()

    updated = toggle_survey_active(client, surveys, 1)

    assert updated[0]['is_active'] is False
    assert updated[0]['response_count'] == 3
    assert updated[1] is surveys[1]
    assert updated[2] is surveys[2]
    assert client.calls == [('update_survey', 1, {'title': 'A', 'description': '', 'is_active': False})]


def test_failed_toggle_leaves_list_alone():
    surveys = [{'id': 1, 'title': 'A', 'is_active': True}]
    client = FakeClient(fail_with={'update_survey': ApiError("boom", 500)})

    with pytest.raises(ApiError):
        toggle_survey_active(client, surveys, 1)

    assert surveys[0]['is_active'] is True
