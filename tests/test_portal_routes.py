import pytest

from portal_app import PUBLIC_SCREENS, resolve_route


@pytest.mark.parametrize("path, screen, params", [
    ('/dashboard', 'dashboard', {}),
    ('/surveys', 'survey_list', {}),
    ('/surveys/create', 'create_survey', {}),
    ('/surveys/12/edit', 'edit_survey', {'id': '12'}),
    ('/responses/12', 'responses', {'surveyId': '12'}),
    ('/analytics/7/', 'analytics', {'surveyId': '7'}),
    ('/profile', 'profile', {}),
    ('/participate/a1b2c3', 'participate', {'token': 'a1b2c3'}),
])
def test_known_routes(path, screen, params):
    assert resolve_route(path) == (screen, params)


@pytest.mark.parametrize("path", ['/', '', None, '/nowhere', '/surveys/12', '/surveys/12/delete'])
def test_unknown_paths_go_to_dashboard(path):
    assert resolve_route(path) == ('dashboard', {})


def test_only_participation_is_public():
    assert PUBLIC_SCREENS == {'participate'}
