"""
Prompt templates for summaries, reports and chat.

Every system prompt restricts the model to the user's own data and fixes
the JSON shape the caller parses with `parse_ai_json_response`.
"""

import json
import logging
import re
from typing import Any, Iterable

logger = logging.getLogger(__name__)


class AIResponseParseError(ValueError):
    """The model's answer was not valid JSON."""


def _join(items: Any, limit: int | None = None) -> str:
    if not items or not isinstance(items, list):
        return "None"
    if limit is not None:
        items = items[:limit]
    return ", ".join(str(i) for i in items) or "None"


def _c(item: dict) -> dict:
    """Stored content of a summary/report entry, never None."""
    content = item.get("summary")
    return content if isinstance(content, dict) else {}


# ── Daily summary ────────────────────────────────────────────────────

DAILY_SUMMARY_SYSTEM_PROMPT = """You are a personal reflection assistant for DAYFRAME, a life logging application.

Your role is to analyze a user's daily activities and create a thoughtful, analytical summary.

STRICT RULES:
1. ONLY use information from the provided activities
2. NEVER invent or assume activities not explicitly stated
3. If there's insufficient data, clearly state this limitation
4. Be reflective, calm, and analytical
5. Avoid toxic positivity or generic motivational phrases
6. Focus on patterns, insights, and actionable observations
7. Output MUST be valid JSON matching the specified structure

OUTPUT FORMAT (JSON):
{
  "summary": "A 2-3 sentence overview of the day",
  "highlights": ["Notable accomplishment 1", "Notable accomplishment 2", ...],
  "problems": ["Challenge or blocker 1", "Challenge or blocker 2", ...],
  "conclusion": "A brief analytical conclusion about the day",
  "suggestions": ["Specific suggestion for tomorrow 1", "Specific suggestion for tomorrow 2", ...]
}

Remember: Be honest, analytical, and grounded in the actual data provided."""


def create_daily_summary_prompt(date_label: str, activities: list[dict]) -> str:
    """activities: [{"timestamp": "9:30 AM", "content": "..."}] in chronological order."""
    if not activities:
        return f"""Date: {date_label}

No activities were logged for this day.

Please return a JSON response acknowledging this with empty arrays for highlights, problems, and suggestions."""

    activities_list = "\n".join(
        f"{idx}. [{act['timestamp']}] {act['content']}"
        for idx, act in enumerate(activities, start=1)
    )

    return f"""Date: {date_label}

Activities logged today:
{activities_list}

Analyze these activities and provide a structured daily summary in the JSON format specified in the system prompt.

Focus on:
- What was accomplished
- Any challenges or blockers encountered
- Patterns or themes in the day
- Specific, actionable suggestions for tomorrow based on today's activities"""


# ── Periodic reports ─────────────────────────────────────────────────

_REPORT_OUTPUT_FORMAT = """OUTPUT FORMAT (JSON):
{{
  "summary": "{summary}",
  "patterns": ["{pattern} 1", "{pattern} 2", ...],
  "trends": ["{trend} 1", "{trend} 2", ...],
  "key_observations": ["{observation} 1", "{observation} 2", ...],
  "conclusion": "{conclusion}",
  "suggestions": ["{suggestion} 1", "{suggestion} 2", ...]
}}"""


def _report_system_prompt(
    period: str,
    role: str,
    focus_rule: str,
    extra_rule: str,
    closing: str,
    **fmt: str,
) -> str:
    return f"""You are a personal analytics assistant for DAYFRAME, a life logging application.

Your role is to {role}

STRICT RULES:
1. ONLY use information from the provided data
2. NEVER invent information not present in the data
3. Focus on {focus_rule}
4. {extra_rule}
5. If data is sparse for this {period}, acknowledge limitations
6. Output MUST be valid JSON matching the specified structure

{_REPORT_OUTPUT_FORMAT.format(**fmt)}

{closing}"""


WEEKLY_REPORT_SYSTEM_PROMPT = _report_system_prompt(
    period="week",
    role="analyze a week of user data (activities and daily summaries) and generate insightful weekly reports.",
    focus_rule="PATTERNS and TRENDS across the week",
    extra_rule="Be analytical, not motivational",
    closing="Be factual, insightful, and grounded in the provided data.",
    summary="A comprehensive 3-4 sentence overview of the week",
    pattern="Observable pattern",
    trend="Notable trend",
    observation="Key insight",
    conclusion="An analytical conclusion about the week",
    suggestion="Forward-looking suggestion",
)

MONTHLY_REPORT_SYSTEM_PROMPT = _report_system_prompt(
    period="month",
    role="analyze a month of user data and generate comprehensive monthly reports.",
    focus_rule="LONG-TERM PATTERNS and TRENDS",
    extra_rule="Compare different periods within the month if data permits",
    closing="Be thorough, analytical, and focused on meaningful insights.",
    summary="A comprehensive paragraph summarizing the entire month",
    pattern="Long-term pattern",
    trend="Notable trend",
    observation="Significant insight",
    conclusion="A thoughtful conclusion about the month",
    suggestion="Strategic suggestion for next month",
)

QUARTERLY_REPORT_SYSTEM_PROMPT = _report_system_prompt(
    period="quarter",
    role="analyze a quarter (3 months) of user data and generate high-level quarterly reports.",
    focus_rule="HIGH-LEVEL PATTERNS and STRATEGIC INSIGHTS",
    extra_rule="Identify significant changes or developments",
    closing="Focus on meaningful, long-term insights.",
    summary="A comprehensive multi-paragraph overview of the quarter",
    pattern="Major pattern",
    trend="Significant trend",
    observation="Strategic insight",
    conclusion="A thoughtful conclusion about the quarter's significance",
    suggestion="Strategic suggestion for next quarter",
)

BIANNUAL_REPORT_SYSTEM_PROMPT = _report_system_prompt(
    period="half-year",
    role="analyze six months of user data and generate half-year reports.",
    focus_rule="HALF-YEAR PATTERNS and how they shifted between quarters",
    extra_rule="Contrast the two quarters when both have data",
    closing="Focus on the direction the user is heading.",
    summary="A comprehensive multi-paragraph overview of the six months",
    pattern="Half-year pattern",
    trend="Significant trend",
    observation="Strategic insight",
    conclusion="A thoughtful conclusion about the half-year",
    suggestion="Strategic suggestion for the next six months",
)

YEARLY_REPORT_SYSTEM_PROMPT = _report_system_prompt(
    period="year",
    role="analyze a full year of user data and generate comprehensive annual reports.",
    focus_rule="MAJOR THEMES and YEAR-LONG PATTERNS",
    extra_rule="Identify significant milestones and turning points",
    closing="This is the most important report. Be thorough and meaningful.",
    summary="A comprehensive multi-paragraph reflection on the entire year",
    pattern="Major year-long pattern",
    trend="Significant trend",
    observation="Major insight",
    conclusion="A profound conclusion about the year's meaning and impact",
    suggestion="Strategic suggestion for next year",
)


def create_weekly_report_prompt(
    start_date: str,
    end_date: str,
    daily_summaries: list[dict],
    total_activities: int,
) -> str:
    """daily_summaries: [{"date": "2026-03-02", "summary": {...content...}}]"""
    if not daily_summaries:
        return f"""Week: {start_date} to {end_date}

No summaries or activities available for this week.

Please return a JSON response acknowledging this with appropriate empty arrays."""

    summaries_list = "\n\n".join(
        f"""**{day['date']}**
Summary: {_c(day).get('summary') or 'No summary'}
Highlights: {_join(_c(day).get('highlights'))}
Problems: {_join(_c(day).get('problems'))}"""
        for day in daily_summaries
    )

    return f"""Week: {start_date} to {end_date}
Total activities logged: {total_activities}

Daily summaries:
{summaries_list}

Analyze this week's data and provide a structured weekly report in the JSON format specified in the system prompt.

Focus on:
- Recurring patterns across multiple days
- Trends in productivity, mood, or activities
- Key insights that emerge from the week's data
- Actionable suggestions for the coming week based on observed patterns"""


def create_monthly_report_prompt(
    start_date: str,
    end_date: str,
    weekly_summaries: list[dict],
    total_activities: int,
    days_with_activity: int,
) -> str:
    """weekly_summaries: [{"week_start": "2026-03-02", "summary": {...}}]"""
    if not weekly_summaries:
        return f"""Month: {start_date} to {end_date}

No data available for this month.

Please return a JSON response acknowledging this with appropriate empty arrays."""

    weeks_list = "\n\n".join(
        f"""**Week {idx} (starting {week['week_start']})**
Summary: {_c(week).get('summary') or 'No summary'}
Key patterns: {_join(_c(week).get('patterns'))}
Key observations: {_join(_c(week).get('key_observations'))}"""
        for idx, week in enumerate(weekly_summaries, start=1)
    )

    return f"""Month: {start_date} to {end_date}
Total activities: {total_activities}
Days with activity: {days_with_activity}

Weekly summaries:
{weeks_list}

Analyze this month's data and provide a structured monthly report in the JSON format specified in the system prompt.

Focus on:
- Major themes and patterns across the entire month
- Evolution of trends week-over-week
- Significant accomplishments or challenges
- Long-term insights about habits, productivity, or personal growth
- Strategic suggestions for the next month"""


def _period_blocks(items: Iterable[dict], label_key: str, limit: int | None = None) -> str:
    return "\n\n".join(
        f"""**{item[label_key]}**
{_c(item).get('summary') or 'No summary available'}

Key patterns: {_join(_c(item).get('patterns'), limit)}
Key observations: {_join(_c(item).get('key_observations'), limit)}"""
        for item in items
    )


def create_quarterly_report_prompt(
    start_date: str,
    end_date: str,
    monthly_summaries: list[dict],
    total_activities: int,
) -> str:
    """monthly_summaries: [{"month": "March 2026", "summary": {...}}]"""
    return f"""Quarter: {start_date} to {end_date}
Total activities: {total_activities}

Monthly summaries:
{_period_blocks(monthly_summaries, 'month')}

Analyze this quarter's data and provide a structured quarterly report in the JSON format specified in the system prompt.

Focus on:
- Major developments or changes over the 3-month period
- Long-term patterns and their implications
- Strategic insights about personal or professional growth
- How the user's activities and focus have evolved
- High-level suggestions for the next quarter"""


def create_biannual_report_prompt(
    start_date: str,
    end_date: str,
    quarterly_summaries: list[dict],
    total_activities: int,
    days_with_activity: int,
) -> str:
    """quarterly_summaries: [{"quarter": "Q1 2026", "summary": {...}}]"""
    return f"""Half-year: {start_date} to {end_date}
Total activities: {total_activities}
Days with activity: {days_with_activity}

Quarterly summaries:
{_period_blocks(quarterly_summaries, 'quarter')}

Analyze these six months and provide a structured half-year report in the JSON format specified in the system prompt.

Focus on:
- What changed between the two quarters
- Patterns that held across the whole period
- Milestones, achievements, or setbacks visible in the data
- Suggestions for the next six months"""


def create_yearly_report_prompt(
    year: str,
    quarterly_summaries: list[dict],
    total_activities: int,
    total_days: int,
) -> str:
    """quarterly_summaries: [{"quarter": "Q1 2026", "summary": {...}}]"""
    quarters_list = "\n\n".join(
        f"""**{q['quarter']}**
{_c(q).get('summary') or 'No summary available'}

Major patterns: {_join(_c(q).get('patterns'), 3)}
Key insights: {_join(_c(q).get('key_observations'), 3)}"""
        for q in quarterly_summaries
    )

    return f"""Year: {year}
Total activities logged: {total_activities}
Active days: {total_days}

Quarterly summaries:
{quarters_list}

Analyze this entire year's data and provide a structured yearly report in the JSON format specified in the system prompt.

This is the user's annual reflection. Make it meaningful and insightful.

Focus on:
- The arc of the year - how things began, evolved, and ended
- Major themes and life domains that dominated the year
- Significant milestones, achievements, or challenges
- Personal growth and changes observed in the data
- Year-long patterns in behavior, productivity, or focus
- Profound insights about the user's life during this year
- Strategic, thoughtful suggestions for the year ahead"""


# ── Chat agent ───────────────────────────────────────────────────────

CHAT_AGENT_SYSTEM_PROMPT = """You are a personal AI assistant for DAYFRAME, a life logging application.

Your ONLY purpose is to answer questions about the user's own logged data.

STRICT RULES:
1. ONLY answer based on the context provided from the user's activities, summaries, and reports
2. NEVER use external knowledge or information
3. NEVER make assumptions or invent information
4. If the context doesn't contain enough information to answer, clearly say so
5. Be analytical, precise, and factual
6. Cite specific dates or activities when possible
7. Never give generic advice or motivational content
8. Your answers should feel like analyzing a personal database, not having a philosophical conversation

RESPONSE STYLE:
- Direct and factual
- Analytical and precise
- Reference specific dates and activities when relevant
- If insufficient data: "Based on your logged activities, I don't have enough information to answer this. You haven't logged data about [topic] during [timeframe]."
- If no relevant data: "I don't see any activities or summaries related to [topic] in your logs."
- Answer in the same language as the user's question

Remember: You are analyzing the user's personal data, not being a general chatbot."""


def create_chat_prompt(question: str, context: list[dict]) -> str:
    """context: [{"type": "activity"|"summary"|"report", "date": "...", "content": "..."}]"""
    if not context:
        return f"""User Question: "{question}"

Context: No relevant activities, summaries, or reports found.

Please inform the user that you don't have data to answer their question and explain what data would be needed."""

    context_list = "\n\n---\n\n".join(
        f"[{idx}] {item['type'].upper()} - {item['date']}\n{item['content']}"
        for idx, item in enumerate(context, start=1)
    )

    return f"""User Question: "{question}"

Relevant context from the user's logs:
{context_list}

Answer the user's question based ONLY on the context above. Be specific, reference dates when relevant, and acknowledge if the data is insufficient to fully answer the question."""


# ── Translation ──────────────────────────────────────────────────────

def translation_system_prompt(target_language: str) -> str:
    return (
        f"You are a professional translator. Translate the provided content to {target_language} "
        "while maintaining the exact JSON structure. Keep the same formatting, bullet points, "
        "and structure. Only translate the text values, not the keys."
    )


def create_translation_prompt(content: Any, target_language: str) -> str:
    return f"""Translate this JSON content to {target_language}. Return the same JSON structure with translated values:

{json.dumps(content, indent=2, ensure_ascii=False)}

Return ONLY valid JSON, no additional text."""


# ── Response parsing ─────────────────────────────────────────────────

_FENCED_JSON_RE = re.compile(r"```json\s*\n(.*?)\n\s*```", re.DOTALL)
_FENCED_RE = re.compile(r"```\s*\n(.*?)\n\s*```", re.DOTALL)


def parse_ai_json_response(response: str) -> Any:
    """
    Parse the JSON a model returned, either bare or inside a ```json / ``` fence.
    Raises AIResponseParseError when nothing parses.
    """
    text = response or ""
    match = _FENCED_JSON_RE.search(text) or _FENCED_RE.search(text)
    candidate = match.group(1) if match else text

    try:
        return json.loads(candidate.strip())
    except (ValueError, TypeError) as e:
        logger.error("Failed to parse AI JSON response: %s", e)
        logger.debug("Raw response: %s", text[:2000])
        raise AIResponseParseError("Failed to parse AI response as JSON") from e
