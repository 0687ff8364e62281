# portal_app.py - Survey Portal (Streamlit front end for the survey management API)
import copy
import logging
from typing import Dict, Tuple

import pandas as pd
import streamlit as st

from portal_api import (
    ApiError, PortalApiClient,
    SAMPLE_QUESTIONS, SAMPLE_QUESTION_STATS, SAMPLE_RESPONSES, SAMPLE_SUMMARY, SAMPLE_SURVEYS,
)
from portal_config import Config, configure_logging
from portal_forms import (
    QUESTION_TYPES, RATING_VALUES, ParticipationForm, QuestionDraft,
    delete_question, save_question, survey_payload, toggle_survey_active, type_label,
)
from portal_reports import (
    build_chart, dataframe_to_excel, latest_response_date, rating_stars,
    responses_to_dataframe, total_count,
)

logger = logging.getLogger(__name__)

# =============================================================================
# ROUTING
# =============================================================================

ROUTES = [
    ('/dashboard', 'dashboard'),
    ('/surveys', 'survey_list'),
    ('/surveys/create', 'create_survey'),
    ('/surveys/:id/edit', 'edit_survey'),
    ('/responses/:surveyId', 'responses'),
    ('/analytics/:surveyId', 'analytics'),
    ('/profile', 'profile'),
    ('/participate/:token', 'participate'),
]

# Reachable without logging in
PUBLIC_SCREENS = {'participate'}

DEFAULT_PATH = '/dashboard'


def resolve_route(path: str) -> Tuple[str, Dict[str, str]]:
    """Match a path against ROUTES; unknown paths fall back to the dashboard"""
    parts = [part for part in (path or '').strip('/').split('/') if part]
    for pattern, screen in ROUTES:
        pattern_parts = pattern.strip('/').split('/')
        if len(pattern_parts) != len(parts):
            continue
        params = {}
        for expected, actual in zip(pattern_parts, parts):
            if expected.startswith(':'):
                params[expected[1:]] = actual
            elif expected != actual:
                break
        else:
            return screen, params
    return 'dashboard', {}


def current_path() -> str:
    return st.query_params.get('page', DEFAULT_PATH)


def navigate(path: str):
    st.query_params['page'] = path
    st.rerun()


def flash(message: str, icon: str = "✅"):
    """Queue a toast for the next run, so it survives st.rerun()"""
    st.session_state.flash = (message, icon)

# =============================================================================
# SCREEN DATA
# =============================================================================

class ScreenData:
    """Data loaded by the screen currently on display.

    Values live in session state under the active path. Entering another
    path drops them, so every screen fetches again when it is re-entered.
    A script run is synchronous and navigation ends it with st.rerun(), so
    a fetch always completes for the path that started it.
    """

    STATE_KEY = 'screen_data'

    def __init__(self, path: str):
        self.path = path
        store = st.session_state.get(self.STATE_KEY)
        if not store or store.get('path') != path:
            store = {'path': path, 'values': {}}
            st.session_state[self.STATE_KEY] = store
        self.values = store['values']

    def load(self, key: str, fetch, spinner: str = "Loading..."):
        if key not in self.values:
            with st.spinner(spinner):
                self.values[key] = fetch()
        return self.values[key]

    def get(self, key: str, default=None):
        return self.values.get(key, default)

    def set(self, key: str, value):
        self.values[key] = value

# =============================================================================
# MAIN APPLICATION CLASS
# =============================================================================

class SurveyPortalApp:
    """Main Survey Portal application"""

    def __init__(self):
        self.config = Config()

    def client(self, authenticated: bool = True) -> PortalApiClient:
        token = st.session_state.get('auth_token') if authenticated else None
        return PortalApiClient(self.config, token=token)

    def initialize(self):
        """Initialize the page and session defaults"""
        st.set_page_config(
            page_title=self.config.APP_NAME,
            page_icon="📋",
            layout="wide",
            initial_sidebar_state="expanded"
        )

        if 'auth_token' not in st.session_state:
            st.session_state.auth_token = None

        pending = st.session_state.pop('flash', None)
        if pending:
            message, icon = pending
            st.toast(message, icon=icon)

    def run(self):
        """Main application runner"""
        self.initialize()

        path = current_path()
        screen, params = resolve_route(path)

        if screen in PUBLIC_SCREENS:
            self._participate(ScreenData(path), params['token'])
            return

        if not st.session_state.auth_token:
            self._login()
            return

        self._sidebar()

        data = ScreenData(path)
        if screen == 'dashboard':
            self._dashboard(data)
        elif screen == 'survey_list':
            self._survey_list(data)
        elif screen == 'create_survey':
            self._create_survey()
        elif screen == 'edit_survey':
            self._edit_survey(data, params['id'])
        elif screen == 'responses':
            self._responses(data, params['surveyId'])
        elif screen == 'analytics':
            self._analytics(data, params['surveyId'])
        elif screen == 'profile':
            self._profile(data)

    def _sidebar(self):
        st.sidebar.title(f"📋 {self.config.APP_NAME}")
        if st.session_state.get('username'):
            st.sidebar.caption(f"Signed in as {st.session_state.username}")
        st.sidebar.markdown("---")

        for label, path in [
            ("🏠 Dashboard", '/dashboard'),
            ("📋 Surveys", '/surveys'),
            ("➕ Create Survey", '/surveys/create'),
            ("👤 Profile", '/profile'),
        ]:
            if st.sidebar.button(label, use_container_width=True, key=f"nav_{path}"):
                navigate(path)

        st.sidebar.markdown("---")
        if st.sidebar.button("🚪 Logout", use_container_width=True):
            self._logout()

    def _fetch_or_sample(self, fetch, sample, what: str):
        """Fetch live data; on a network failure fall back to sample data.

        Returns ``(data, used_sample)``; ``data`` is None when nothing can be shown.
        """
        try:
            return fetch(), False
        except ApiError as e:
            logger.error(f"Failed to fetch {what}: {e.message}")
            if e.is_network_error and self.config.SAMPLE_DATA_ON_ERROR:
                return copy.deepcopy(sample), True
            return None, False

    @staticmethod
    def _show_load_state(data, used_sample: bool, what: str) -> bool:
        if used_sample:
            st.warning(f"⚠️ The survey API is unreachable. Showing sample {what}.")
        if data is None:
            st.error(f"Error loading {what}")
            return False
        return True

    # =========================================================================
    # LOGIN
    # =========================================================================

    def _login(self):
        """Login page"""
        st.title(f"🔐 {self.config.APP_NAME}")
        st.caption("Survey Platform")

        with st.form("login"):
            username = st.text_input("Username")
            password = st.text_input("Password", type="password")
            submit = st.form_submit_button("Login", type="primary")

            if submit:
                if not username or not password:
                    st.error("Username and password are required!")
                    return

                try:
                    token = self.client(authenticated=False).login(username, password)
                except ApiError as e:
                    logger.warning(f"Failed login attempt for user {username}: {e.message}")
                    st.error("Invalid credentials!" if e.status_code in (400, 401, 403) else "Login failed. Please try again.")
                    return

                st.session_state.auth_token = token
                st.session_state.username = username
                logger.info(f"User {username} logged in successfully")
                flash("Login successful!")
                navigate(current_path())

    def _logout(self):
        """Logout functionality"""
        username = st.session_state.get('username', 'Unknown')
        st.session_state.clear()
        logger.info(f"User {username} logged out")
        navigate(DEFAULT_PATH)

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    def _dashboard(self, data: ScreenData):
        """Dashboard overview"""
        col1, col2 = st.columns([4, 1])
        with col1:
            st.title("🏠 Dashboard")
            st.caption("Overview of your survey platform")
        with col2:
            if st.button("➕ Create Survey", type="primary", use_container_width=True):
                navigate('/surveys/create')

        stats, used_sample = data.load(
            'summary',
            lambda: self._fetch_or_sample(self.client().get_summary, SAMPLE_SUMMARY, 'dashboard stats')
        )
        if not self._show_load_state(stats, used_sample, 'dashboard stats'):
            return

        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric("📋 Total Surveys", stats.get('total_surveys') or 0)
        with col2:
            st.metric("💬 Total Responses", stats.get('total_responses') or 0)
        with col3:
            st.metric("✅ Active Surveys", stats.get('active_surveys') or 0)

        st.divider()

        col1, col2 = st.columns(2)
        with col1:
            st.subheader("🎯 Recent Activity")
            activity = stats.get('recent_activity') or []
            if activity:
                for item in activity:
                    st.write(f"• **{item.get('description', '')}**")
                    st.caption(item.get('timestamp', ''))
            else:
                st.info("No recent activity")

        with col2:
            st.subheader("🚀 Quick Actions")
            if st.button("➕ Create New Survey", use_container_width=True, key="quick_create"):
                navigate('/surveys/create')
            if st.button("📋 Manage Surveys", use_container_width=True, key="quick_manage"):
                navigate('/surveys')

    # =========================================================================
    # SURVEYS
    # =========================================================================

    def _survey_list(self, data: ScreenData):
        """Survey list with activate/deactivate toggle"""
        col1, col2 = st.columns([4, 1])
        with col1:
            st.title("📋 Surveys")
        with col2:
            if st.button("➕ Create Survey", type="primary", use_container_width=True):
                navigate('/surveys/create')

        surveys, used_sample = data.load(
            'surveys',
            lambda: self._fetch_or_sample(self.client().list_surveys, SAMPLE_SURVEYS, 'surveys')
        )
        if not self._show_load_state(surveys, used_sample, 'surveys'):
            return

        if not surveys:
            st.info("📝 No surveys yet. Create your first survey to get started.")
            return

        for survey in surveys:
            survey_id = survey.get('id')
            with st.container(border=True):
                col1, col2 = st.columns([3, 2])
                with col1:
                    badge = ":green[● Active]" if survey.get('is_active') else ":gray[● Inactive]"
                    st.markdown(f"**{survey.get('title', '')}** &nbsp; {badge}")
                    details = []
                    if survey.get('created_at'):
                        details.append(f"Created {str(survey['created_at']).split('T')[0]}")
                    if survey.get('response_count') is not None:
                        details.append(f"{survey['response_count']} responses")
                    if details:
                        st.caption(" • ".join(details))

                with col2:
                    b1, b2, b3, b4 = st.columns(4)
                    with b1:
                        if st.button("✏️ Edit", key=f"edit_{survey_id}", use_container_width=True):
                            navigate(f'/surveys/{survey_id}/edit')
                    with b2:
                        if st.button("👀 Responses", key=f"responses_{survey_id}", use_container_width=True):
                            navigate(f'/responses/{survey_id}')
                    with b3:
                        if st.button("📊 Analytics", key=f"analytics_{survey_id}", use_container_width=True):
                            navigate(f'/analytics/{survey_id}')
                    with b4:
                        label = "⏸️ Deactivate" if survey.get('is_active') else "▶️ Activate"
                        if st.button(label, key=f"toggle_{survey_id}", use_container_width=True):
                            try:
                                updated = toggle_survey_active(self.client(), surveys, survey_id)
                            except ApiError as e:
                                logger.error(f"Error toggling survey {survey_id}: {e.message}")
                                st.error("Failed to update survey status. Please try again.")
                            else:
                                data.set('surveys', (updated, used_sample))
                                st.rerun()

    def _create_survey(self):
        """Survey creation form"""
        st.title("📝 Create New Survey")
        st.caption("Set up a new survey to collect responses")

        with st.form("create_survey"):
            title = st.text_input("Survey Title *", placeholder="Enter survey title")
            description = st.text_area("Description", placeholder="Enter survey description", height=120)
            is_active = st.checkbox("Active (available for responses)", value=True)

            submit = st.form_submit_button("Create Survey", type="primary")

            if submit:
                try:
                    payload = survey_payload(title, description, is_active)
                except ValueError:
                    st.error("Survey title is required!")
                    return

                try:
                    survey = self.client().create_survey(payload)
                except ApiError as e:
                    logger.error(f"Error creating survey: {e.message}")
                    st.error("Failed to create survey. Please try again.")
                    return

                flash("Survey created successfully!")
                navigate(f"/surveys/{survey['id']}/edit")

        if st.button("Cancel"):
            navigate('/surveys')

    def _edit_survey(self, data: ScreenData, survey_id: str):
        """Survey details form plus question builder"""
        survey = data.get('survey')
        if survey is None:
            try:
                with st.spinner("Loading survey..."):
                    survey = self.client().get_survey(survey_id)
            except ApiError as e:
                logger.error(f"Failed to fetch survey {survey_id}: {e.message}")
                flash("Survey not found", icon="⚠️")
                navigate('/surveys')
            data.set('survey', survey)

        st.title("✏️ Edit Survey")
        st.caption("Modify survey details and questions")

        col1, col2 = st.columns([1, 2])

        with col1:
            st.subheader("Survey Details")
            with st.form(f"edit_survey_{survey_id}"):
                title = st.text_input("Survey Title *", value=survey.get('title', ''))
                description = st.text_area("Description", value=survey.get('description') or '', height=100)
                is_active = st.checkbox("Active", value=bool(survey.get('is_active')))

                submit = st.form_submit_button("Save Changes", type="primary", use_container_width=True)

                if submit:
                    try:
                        payload = survey_payload(title, description, is_active)
                        updated = self.client().update_survey(survey_id, payload)
                    except ValueError:
                        st.error("Survey title is required!")
                    except ApiError as e:
                        logger.error(f"Error updating survey {survey_id}: {e.message}")
                        st.error("Failed to update survey. Please try again.")
                    else:
                        data.set('survey', updated)
                        st.success("Survey updated successfully!")

            if st.button("⬅️ Back to Surveys"):
                navigate('/surveys')

        with col2:
            self._question_builder(data, survey.get('id', survey_id))

    # =========================================================================
    # QUESTION BUILDER
    # =========================================================================

    def _question_builder(self, data: ScreenData, survey_id):
        """Question list and inline editor"""
        col1, col2 = st.columns([3, 1])
        with col1:
            st.subheader("Questions")

        questions, used_sample = data.load(
            'questions',
            lambda: self._fetch_or_sample(
                lambda: self.client().list_questions(survey_id), SAMPLE_QUESTIONS, 'questions'
            )
        )
        if not self._show_load_state(questions, used_sample, 'questions'):
            return

        with col2:
            if st.button("➕ Add Question", use_container_width=True):
                self._open_editor(data, QuestionDraft.new(questions))

        for index, question in enumerate(questions):
            question_id = question.get('id')
            with st.container(border=True):
                c1, c2, c3 = st.columns([6, 1, 1])
                with c1:
                    st.markdown(f"**{question.get('question_text', '')}**")
                    st.caption(type_label(question.get('question_type', ''))
                               + (" (Required)" if question.get('is_required') else ""))
                with c2:
                    if st.button("✏️", key=f"edit_question_{question_id or index}"):
                        self._open_editor(data, QuestionDraft(question))
                with c3:
                    if question_id and st.button("🗑️", key=f"delete_question_{question_id}"):
                        try:
                            remaining = delete_question(self.client(), question_id, questions)
                        except ApiError as e:
                            logger.error(f"Error deleting question {question_id}: {e.message}")
                            st.error("Failed to delete question")
                        else:
                            data.set('questions', (remaining, used_sample))
                            flash("Question removed successfully")
                            st.rerun()

        if not questions:
            st.info('No questions added yet. Click "Add Question" to get started.')

        draft = data.get('draft')
        if draft is not None:
            self._question_editor(data, survey_id, draft, questions, used_sample)

    @staticmethod
    def _open_editor(data: ScreenData, draft: QuestionDraft):
        data.set('draft', draft)
        data.set('draft_serial', data.get('draft_serial', 0) + 1)
        st.rerun()

    def _question_editor(self, data: ScreenData, survey_id, draft: QuestionDraft, questions, used_sample):
        """Inline editor for one question draft"""
        # Widget keys change whenever the option rows are rebuilt
        prefix = f"qd{data.get('draft_serial', 0)}"

        with st.container(border=True):
            st.subheader("Add Question" if draft.is_new else "Edit Question")

            draft.question_text = st.text_area(
                "Question Text *", value=draft.question_text,
                placeholder="Enter your question", key=f"{prefix}_text"
            )

            type_values = list(QUESTION_TYPES)
            selected_type = st.selectbox(
                "Question Type", type_values,
                index=type_values.index(draft.question_type) if draft.question_type in type_values else 0,
                format_func=type_label, key=f"{prefix}_type"
            )
            if selected_type != draft.question_type:
                draft.set_type(selected_type)
                data.set('draft_serial', data.get('draft_serial', 0) + 1)
                st.rerun()

            if draft.needs_options:
                st.markdown("**Options**")
                for index, option in enumerate(list(draft.options)):
                    c1, c2 = st.columns([5, 1])
                    with c1:
                        draft.update_option(index, st.text_input(
                            f"Option {index + 1}", value=option, placeholder=f"Option {index + 1}",
                            key=f"{prefix}_option_{index}", label_visibility="collapsed"
                        ))
                    with c2:
                        if st.button("🗑️", key=f"{prefix}_remove_{index}"):
                            draft.remove_option(index)
                            data.set('draft_serial', data.get('draft_serial', 0) + 1)
                            st.rerun()
                if st.button("➕ Add Option", key=f"{prefix}_add_option"):
                    draft.add_option()
                    st.rerun()

            draft.is_required = st.checkbox("Required field", value=draft.is_required, key=f"{prefix}_required")

            c1, c2 = st.columns(2)
            with c1:
                if st.button("💾 Save Question", type="primary", disabled=not draft.can_save,
                             key=f"{prefix}_save", use_container_width=True):
                    was_new = draft.is_new
                    try:
                        updated = save_question(self.client(), survey_id, draft, questions)
                    except ApiError as e:
                        logger.error(f"Error saving question for survey {survey_id}: {e.message}")
                        st.error("Failed to save question")
                    else:
                        data.set('questions', (updated, used_sample))
                        data.set('draft', None)
                        flash(f"Question {'added' if was_new else 'updated'} successfully")
                        st.rerun()
            with c2:
                if st.button("Cancel", key=f"{prefix}_cancel", use_container_width=True):
                    data.set('draft', None)
                    st.rerun()

    # =========================================================================
    # RESPONSES & ANALYTICS
    # =========================================================================

    def _survey_title(self, data: ScreenData, survey_id, fallback: str) -> str:
        def fetch():
            try:
                return self.client().get_survey(survey_id).get('title') or fallback
            except ApiError as e:
                logger.error(f"Failed to fetch survey details {survey_id}: {e.message}")
                return fallback
        return data.load('survey_title', fetch)

    def _export_csv(self, survey_id, fmt, file_name: str):
        """Fetch the server CSV export and offer it as a download"""
        try:
            content = self.client().export_responses(survey_id, fmt)
        except ApiError as e:
            logger.error(f"Error exporting survey {survey_id}: {e.message}")
            st.error("Error exporting responses")
            return

        st.download_button(
            label="Download CSV File",
            data=content,
            file_name=file_name,
            mime="text/csv"
        )

    def _responses(self, data: ScreenData, survey_id: str):
        """Responses viewer"""
        title = self._survey_title(data, survey_id, 'Survey Responses')

        st.title(f"📊 {title}")
        st.caption("Survey responses")

        responses, used_sample = data.load(
            'responses',
            lambda: self._fetch_or_sample(
                lambda: self.client().list_responses(survey_id), SAMPLE_RESPONSES, 'responses'
            )
        )

        col1, col2, col3 = st.columns(3)
        with col1:
            if st.button("📈 Analytics", use_container_width=True):
                navigate(f'/analytics/{survey_id}')
        with col2:
            if st.button("📄 Export CSV", use_container_width=True):
                self._export_csv(survey_id, None, f"survey-{survey_id}-responses.csv")
        with col3:
            if st.button("📁 Export to Excel", use_container_width=True):
                df = responses_to_dataframe(responses or [])
                if df.empty:
                    st.warning("No responses to export")
                else:
                    st.download_button(
                        label="Download Excel File",
                        data=dataframe_to_excel(df),
                        file_name=f"survey-{survey_id}-responses_{pd.Timestamp.now().strftime('%Y%m%d_%H%M%S')}.xlsx",
                        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
                    )

        if not self._show_load_state(responses, used_sample, 'responses'):
            return

        col1, col2 = st.columns(2)
        with col1:
            st.metric("💬 Total Responses", len(responses))
        with col2:
            st.metric("🕒 Latest Response", latest_response_date(responses))

        st.divider()

        if not responses:
            st.info("📝 No responses yet. Responses will appear here once people start filling out your survey.")
            return

        for response in responses:
            with st.container(border=True):
                answers = response.get('answers') or []
                st.markdown(f"**Response #{response.get('id')}** &nbsp; :blue[{len(answers)} answers]")

                submitted = pd.to_datetime(response.get('submitted_at'), errors='coerce')
                line = f"From: {response['respondent_email']} • " if response.get('respondent_email') else ""
                if pd.notna(submitted):
                    line += f"Submitted: {submitted:%Y-%m-%d} at {submitted:%H:%M}"
                st.caption(line)

                for answer in answers:
                    st.markdown(f"**{answer.get('question', '')}**")
                    if answer.get('question_type') == 'rating':
                        st.write(f"{answer.get('answer', '')}/5 {rating_stars(answer.get('answer'))}")
                    else:
                        st.write(answer.get('answer', ''))

    def _analytics(self, data: ScreenData, survey_id: str):
        """Analytics viewer"""
        title = self._survey_title(data, survey_id, 'Survey Analytics')

        st.title(f"📈 {title}")

        stats, used_sample = data.load(
            'question_stats',
            lambda: self._fetch_or_sample(
                lambda: self.client().get_question_stats(survey_id), SAMPLE_QUESTION_STATS, 'analytics'
            )
        )

        col1, col2 = st.columns(2)
        with col1:
            if st.button("👀 View Responses", use_container_width=True):
                navigate(f'/responses/{survey_id}')
        with col2:
            if st.button("📄 Export Data", use_container_width=True):
                self._export_csv(survey_id, 'csv', f"survey-{survey_id}-analytics.csv")

        if not self._show_load_state(stats, used_sample, 'analytics'):
            return

        st.metric("💬 Total Responses", stats.get('total_responses') or 0)
        st.divider()

        question_stats = stats.get('questions') or []
        if not question_stats:
            st.info("No analytics available yet.")
            return

        columns = st.columns(2)
        for index, question_stat in enumerate(question_stats):
            with columns[index % 2]:
                with st.container(border=True):
                    st.markdown(f"**{question_stat.get('question', '')}**")
                    st.caption(f"{question_stat.get('question_type', '').replace('_', ' ')} • "
                               f"{total_count(question_stat)} responses")
                    fig = build_chart(question_stat)
                    if fig is not None:
                        st.plotly_chart(fig, use_container_width=True, key=f"chart_{index}")
                    else:
                        st.info("Text responses cannot be visualized as charts")

    # =========================================================================
    # PROFILE
    # =========================================================================

    def _profile(self, data: ScreenData):
        """Profile screen"""
        st.title("👤 Profile")
        st.caption("Manage your account information")

        def fetch():
            try:
                return self.client().get_profile()
            except ApiError as e:
                logger.error(f"Failed to fetch profile: {e.message}")
                return {}
        profile = data.load('profile', fetch)

        with st.form("profile"):
            st.subheader("Personal Information")
            col1, col2 = st.columns(2)
            with col1:
                first_name = st.text_input("First Name", value=profile.get('first_name') or '',
                                           placeholder="Enter your first name")
            with col2:
                last_name = st.text_input("Last Name", value=profile.get('last_name') or '',
                                          placeholder="Enter your last name")
            email = st.text_input("Email", value=profile.get('email') or '',
                                  placeholder="Enter your email")

            submit = st.form_submit_button("Update Profile", type="primary")

            if submit:
                payload = {'first_name': first_name, 'last_name': last_name, 'email': email}
                try:
                    updated = self.client().update_profile(payload)
                except ApiError as e:
                    logger.error(f"Failed to update profile: {e.message}")
                    st.error("Failed to update profile. Please try again.")
                else:
                    data.set('profile', updated or payload)
                    st.success("Profile updated successfully!")

    # =========================================================================
    # PARTICIPATION
    # =========================================================================

    def _participate(self, data: ScreenData, token: str):
        """Respondent-facing survey form"""
        form = data.get('form')
        if form is None:
            form = ParticipationForm(token)
            data.set('form', form)

        if form.status == ParticipationForm.LOADING:
            with st.spinner("Loading survey..."):
                form.load(self.client(authenticated=False), self.config.SAMPLE_DATA_ON_ERROR)

        if form.status == ParticipationForm.ERROR:
            st.title("Survey Not Available")
            st.error(form.error)
            return

        if form.status == ParticipationForm.SUBMITTED:
            st.balloons()
            st.title("🎉 Thank You!")
            st.success("Your response has been submitted successfully. We appreciate your feedback!")
            return

        survey = form.survey or {}
        st.title(survey.get('title', ''))
        if survey.get('description'):
            st.write(survey['description'])
        if form.used_sample_data:
            st.warning("⚠️ The survey API is unreachable. Showing a sample survey.")

        st.divider()

        for index, question in enumerate(form.questions, 1):
            marker = " :red[*]" if question.get('is_required') else ""
            st.markdown(f"### {index}. {question.get('question_text', '')}{marker}")
            self._render_question(form, question)
            st.divider()

        if st.button("📤 Submit Survey", type="primary", use_container_width=True,
                     disabled=form.status == ParticipationForm.SUBMITTING):
            success, message = form.submit(self.client(authenticated=False))
            if success:
                logger.info(f"Survey submitted with token {token}")
                st.rerun()
            elif message == ParticipationForm.SUBMIT_FAILED_MESSAGE:
                st.toast(f"Submission Error: {message}", icon="❌")
            elif message:
                st.error(f"❌ {message}")

        st.caption("* Required fields")

    def _render_question(self, form: ParticipationForm, question: Dict):
        """One input control per question type"""
        draft = form.draft
        question_id = question['id']
        question_type = question.get('question_type')
        options = question.get('options') or []
        key = f"answer_{form.token}_{question_id}"

        if question_type == 'text':
            draft.set_answer(question_id, st.text_input(
                "Answer", value=draft.get(question_id), placeholder="Enter your answer",
                key=key, label_visibility="collapsed"
            ))

        elif question_type == 'textarea':
            draft.set_answer(question_id, st.text_area(
                "Answer", value=draft.get(question_id), placeholder="Enter your answer",
                height=120, key=key, label_visibility="collapsed"
            ))

        elif question_type == 'mcq':
            current = draft.get(question_id)
            choice = st.radio(
                "Answer", options, index=options.index(current) if current in options else None,
                key=key, label_visibility="collapsed"
            )
            draft.set_answer(question_id, choice or '')

        elif question_type == 'dropdown':
            current = draft.get(question_id)
            choice = st.selectbox(
                "Answer", options, index=options.index(current) if current in options else None,
                placeholder="Select an option", key=key, label_visibility="collapsed"
            )
            draft.set_answer(question_id, choice or '')

        elif question_type == 'checkbox':
            for index, option in enumerate(options):
                was_checked = option in draft.selected_options(question_id)
                checked = st.checkbox(option, value=was_checked, key=f"{key}_{index}")
                if checked != was_checked:
                    draft.toggle_option(question_id, option, checked)

        elif question_type == 'rating':
            current = draft.get(question_id)
            columns = st.columns(len(RATING_VALUES))
            for column, value in zip(columns, RATING_VALUES):
                with column:
                    if st.button(value, key=f"{key}_{value}", use_container_width=True,
                                 type="primary" if current == value else "secondary"):
                        draft.select_rating(question_id, value)
                        st.rerun()

        elif question_type == 'file':
            uploaded = st.file_uploader("Upload file", key=key, label_visibility="collapsed")
            error = draft.attach_file(question_id, uploaded, self.config.MAX_FILE_SIZE)
            if error:
                st.error(error)

# =============================================================================
# MAIN APPLICATION ENTRY POINT
# =============================================================================

def main():
    """Application entry point"""
    configure_logging()
    try:
        app = SurveyPortalApp()
        app.run()
    except Exception as e:
        logger.error(f"Application crashed: {str(e)}")
        st.error("Application encountered an error. Please refresh the page.")

if __name__ == "__main__":
    main()
