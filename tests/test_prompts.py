"""
Tests for prompt builders and AI response parsing.
"""
import pytest

from dayframe.services.prompts import (
    AIResponseParseError,
    BIANNUAL_REPORT_SYSTEM_PROMPT,
    CHAT_AGENT_SYSTEM_PROMPT,
    DAILY_SUMMARY_SYSTEM_PROMPT,
    YEARLY_REPORT_SYSTEM_PROMPT,
    create_biannual_report_prompt,
    create_chat_prompt,
    create_daily_summary_prompt,
    create_monthly_report_prompt,
    create_quarterly_report_prompt,
    create_translation_prompt,
    create_weekly_report_prompt,
    create_yearly_report_prompt,
    parse_ai_json_response,
)


class TestParseAIJsonResponse:
    def test_plain_json(self):
        assert parse_ai_json_response('{"summary": "ok"}') == {"summary": "ok"}

    def test_json_fence(self):
        text = 'Here you go:\n```json\n{"summary": "fenced", "highlights": []}\n```\nDone.'
        assert parse_ai_json_response(text) == {"summary": "fenced", "highlights": []}

    def test_bare_fence(self):
        text = '```\n{"summary": "bare"}\n```'
        assert parse_ai_json_response(text)["summary"] == "bare"

    def test_surrounding_whitespace(self):
        assert parse_ai_json_response('  \n {"a": 1} \n') == {"a": 1}

    def test_invalid_raises(self):
        with pytest.raises(AIResponseParseError, match="Failed to parse AI response as JSON"):
            parse_ai_json_response("I could not produce JSON today.")

    def test_empty_raises(self):
        with pytest.raises(AIResponseParseError):
            parse_ai_json_response("")

    def test_parse_error_is_value_error(self):
        assert issubclass(AIResponseParseError, ValueError)


class TestDailySummaryPrompt:
    def test_numbered_timestamped_lines(self):
        prompt = create_daily_summary_prompt(
            "March 4, 2026",
            [
                {"timestamp": "9:05 AM", "content": "Wrote chapter 3"},
                {"timestamp": "2:30 PM", "content": "Gym"},
            ],
        )
        assert "Date: March 4, 2026" in prompt
        assert "1. [9:05 AM] Wrote chapter 3" in prompt
        assert "2. [2:30 PM] Gym" in prompt

    def test_no_activities(self):
        prompt = create_daily_summary_prompt("March 4, 2026", [])
        assert "No activities were logged" in prompt

    def test_system_prompt_forbids_invention(self):
        assert "NEVER invent" in DAILY_SUMMARY_SYSTEM_PROMPT
        assert '"highlights"' in DAILY_SUMMARY_SYSTEM_PROMPT


class TestReportPrompts:
    def test_weekly_lists_each_day(self):
        prompt = create_weekly_report_prompt(
            "Mar 2, 2026",
            "Mar 8, 2026",
            [
                {"date": "2026-03-02", "summary": {"summary": "Monday things", "highlights": ["A", "B"]}},
                {"date": "2026-03-03", "summary": None},
            ],
            12,
        )
        assert "Week: Mar 2, 2026 to Mar 8, 2026" in prompt
        assert "Total activities logged: 12" in prompt
        assert "**2026-03-02**" in prompt
        assert "Highlights: A, B" in prompt
        assert "Summary: No summary" in prompt

    def test_weekly_empty(self):
        prompt = create_weekly_report_prompt("Mar 2, 2026", "Mar 8, 2026", [], 0)
        assert "No summaries or activities available for this week." in prompt

    def test_monthly_numbers_weeks(self):
        prompt = create_monthly_report_prompt(
            "Mar 1, 2026",
            "Mar 31, 2026",
            [{"week_start": "2026-03-02", "summary": {"patterns": ["Early starts"]}}],
            40,
            18,
        )
        assert "**Week 1 (starting 2026-03-02)**" in prompt
        assert "Key patterns: Early starts" in prompt
        assert "Days with activity: 18" in prompt

    def test_monthly_empty(self):
        assert "No data available for this month." in create_monthly_report_prompt("a", "b", [], 0, 0)

    def test_quarterly_uses_month_labels(self):
        prompt = create_quarterly_report_prompt(
            "Jan 1, 2026", "Mar 31, 2026",
            [{"month": "January 2026", "summary": {"summary": "Cold month"}}],
            90,
        )
        assert "**January 2026**" in prompt
        assert "Cold month" in prompt

    def test_biannual(self):
        prompt = create_biannual_report_prompt(
            "Jan 1, 2026", "Jun 30, 2026",
            [{"quarter": "Q1 2026", "summary": {"summary": "First quarter"}}],
            200, 150,
        )
        assert "Half-year: Jan 1, 2026 to Jun 30, 2026" in prompt
        assert "**Q1 2026**" in prompt
        assert "half-year" in BIANNUAL_REPORT_SYSTEM_PROMPT.lower()

    def test_yearly_keeps_top_three(self):
        patterns = ["p1", "p2", "p3", "p4", "p5"]
        prompt = create_yearly_report_prompt(
            "2026",
            [{"quarter": "Q1 2026", "summary": {"patterns": patterns, "key_observations": patterns}}],
            400,
            300,
        )
        assert "Major patterns: p1, p2, p3" in prompt
        assert "p4" not in prompt
        assert "Year: 2026" in prompt
        assert "Active days: 300" in prompt
        assert "analyze a full year" in YEARLY_REPORT_SYSTEM_PROMPT


class TestChatPrompt:
    def test_context_blocks(self):
        prompt = create_chat_prompt(
            "What did I do?",
            [
                {"type": "activity", "date": "2026-03-04", "content": "Wrote chapter 3"},
                {"type": "summary", "date": "2026-03-03", "content": "Quiet day"},
            ],
        )
        assert '"What did I do?"' in prompt
        assert "[1] ACTIVITY - 2026-03-04\nWrote chapter 3" in prompt
        assert "[2] SUMMARY - 2026-03-03" in prompt
        assert "\n\n---\n\n" in prompt

    def test_no_context(self):
        prompt = create_chat_prompt("Anything?", [])
        assert "No relevant activities, summaries, or reports found." in prompt

    def test_agent_prompt_restricts_to_user_data(self):
        assert "ONLY answer based on the context" in CHAT_AGENT_SYSTEM_PROMPT


class TestTranslationPrompt:
    def test_keeps_unicode_and_language(self):
        prompt = create_translation_prompt({"summary": "Hari yang tenang"}, "English")
        assert "to English" in prompt
        assert "Hari yang tenang" in prompt
        assert "Return ONLY valid JSON" in prompt
