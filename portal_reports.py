# portal_reports.py - Charts and exports for the responses and analytics screens
from io import BytesIO
from typing import Dict, List, Optional

import pandas as pd
import plotly.graph_objects as go

BAR = 'bar'
PIE = 'pie'
COUNT = 'count'

COLORS = ['#3B82F6', '#10B981', '#F59E0B', '#EF4444', '#8B5CF6', '#06B6D4']


def chart_kind(question_type: str) -> str:
    """Which visualization a question's aggregated answers get"""
    if question_type == 'rating':
        return BAR
    if question_type in ('mcq', 'checkbox', 'dropdown'):
        return PIE
    return COUNT


def total_count(question_stat: Dict) -> int:
    return sum(stat.get('count', 0) for stat in question_stat.get('stats', []))


def build_chart(question_stat: Dict) -> Optional[go.Figure]:
    """Plotly figure for one question, or None when it is not charted"""
    kind = chart_kind(question_stat.get('question_type', ''))
    stats = question_stat.get('stats', [])
    answers = [str(stat.get('answer', '')) for stat in stats]
    counts = [stat.get('count', 0) for stat in stats]

    if kind == BAR:
        fig = go.Figure(data=go.Bar(x=answers, y=counts, marker_color=COLORS[0]))
        fig.update_layout(
            xaxis_title="Rating",
            yaxis_title="Responses",
            showlegend=False,
            height=300,
            margin=dict(l=40, r=20, t=20, b=40)
        )
        return fig

    if kind == PIE:
        fig = go.Figure(data=go.Pie(
            labels=answers,
            values=counts,
            marker=dict(colors=[COLORS[i % len(COLORS)] for i in range(len(stats))]),
            texttemplate='%{label} (%{percent:.0%})',
            sort=False
        ))
        fig.update_layout(height=300, showlegend=False, margin=dict(l=20, r=20, t=20, b=20))
        return fig

    return None


def rating_stars(answer: str) -> str:
    try:
        rating = int(answer)
    except (TypeError, ValueError):
        return ''
    rating = max(0, min(5, rating))
    return '★' * rating + '☆' * (5 - rating)


def latest_response_date(responses: List[Dict]) -> str:
    dates = [r['submitted_at'] for r in responses if r.get('submitted_at')]
    if not dates:
        return 'N/A'
    return max(dates).split('T')[0]


def responses_to_dataframe(responses: List[Dict]) -> pd.DataFrame:
    """One row per answer, in response then answer order"""
    rows = []
    for response in responses:
        respondent = response.get('respondent_email') or response.get('respondent_name') or ''
        for answer in response.get('answers', []):
            rows.append({
                'response_id': response.get('id'),
                'respondent': respondent,
                'submitted_at': response.get('submitted_at'),
                'question': answer.get('question'),
                'question_type': answer.get('question_type'),
                'answer': answer.get('answer'),
            })
    return pd.DataFrame(rows, columns=[
        'response_id', 'respondent', 'submitted_at', 'question', 'question_type', 'answer'
    ])


def dataframe_to_excel(df: pd.DataFrame, sheet_name: str = 'Survey Responses') -> bytes:
    excel_buffer = BytesIO()
    with pd.ExcelWriter(excel_buffer, engine='openpyxl') as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    return excel_buffer.getvalue()
