"""
Canned chat answers for when both LLM models are down.

Built only from the context the chat pipeline already retrieved, so the
answer never contains anything the user did not log. Keyword branches cover
the questions users ask most: "did I do anything today", "how is my
progress", "how many". Indonesian questions get Indonesian answers.
"""

import re
from datetime import date

_ID_HINTS = re.compile(
    r"\b(apakah|apa|hari ini|berapa|kemajuan|saya|aku|kemarin|minggu ini|sudah|belum)\b",
    re.IGNORECASE,
)
_TODAY = re.compile(r"(apakah hari ini|hari ini|\btoday\b)", re.IGNORECASE)
_PROGRESS = re.compile(r"(progress|kemajuan|perkembangan)", re.IGNORECASE)
_COUNT = re.compile(r"(berapa|how many|how much|jumlah)", re.IGNORECASE)

MAX_LISTED = 5

_TEXT = {
    "id": {
        "notice": "Layanan AI sedang tidak tersedia, jadi jawaban ini disusun langsung dari catatanmu.",
        "today_yes": "Ya, hari ini ({date}) kamu mencatat {n} aktivitas:",
        "today_no": "Belum ada aktivitas yang tercatat untuk hari ini ({date}).",
        "progress_head": "Ringkasan terbaru yang menggambarkan progresmu:",
        "progress_activities": "Belum ada ringkasan harian. Aktivitas terbaru yang tercatat:",
        "progress_none": "Belum ada ringkasan atau aktivitas yang bisa dipakai untuk menilai progres.",
        "count": "Dari data yang ditemukan ada {activities} aktivitas dan {summaries} ringkasan yang relevan.",
        "count_span": "Rentangnya dari {first} sampai {last}.",
        "recent_head": "Catatan terbaru yang relevan dengan pertanyaanmu:",
        "nothing": "Belum ada data yang bisa saya tampilkan untuk pertanyaan ini.",
        "retry": "Silakan coba lagi sebentar lagi untuk jawaban yang lebih lengkap.",
    },
    "en": {
        "notice": "The AI service is unavailable, so this answer was assembled directly from your logs.",
        "today_yes": "Yes, today ({date}) you logged {n} activities:",
        "today_no": "No activities have been logged for today ({date}) yet.",
        "progress_head": "Your most recent summaries:",
        "progress_activities": "There are no daily summaries yet. Your latest activities:",
        "progress_none": "There are no summaries or activities to assess progress from.",
        "count": "The matching data contains {activities} activities and {summaries} summaries.",
        "count_span": "They range from {first} to {last}.",
        "recent_head": "Your most relevant recent entries:",
        "nothing": "I don't have any logged data to show for this question.",
        "retry": "Please try again shortly for a complete answer.",
    },
}


def detect_language(question: str) -> str:
    return "id" if _ID_HINTS.search(question or "") else "en"


def _clip(text: str, limit: int = 200) -> str:
    text = " ".join((text or "").split())
    return text if len(text) <= limit else text[: limit - 3].rstrip() + "..."


def _bullets(items: list[dict]) -> list[str]:
    return [f"- {item['date']}: {_clip(item['content'])}" for item in items[:MAX_LISTED]]


def build_fallback_answer(question: str, context: list[dict], today: date) -> str:
    """
    context: [{"type": "activity"|"summary"|"report", "date": "YYYY-MM-DD", "content": str}]
    """
    t = _TEXT[detect_language(question)]
    activities = [c for c in context if c["type"] == "activity"]
    summaries = [c for c in context if c["type"] in ("summary", "report")]
    lines: list[str] = [t["notice"], ""]

    if _TODAY.search(question):
        todays = [a for a in activities if a["date"] == today.isoformat()]
        if todays:
            lines.append(t["today_yes"].format(date=today.isoformat(), n=len(todays)))
            lines.extend(_bullets(todays))
        else:
            lines.append(t["today_no"].format(date=today.isoformat()))

    elif _PROGRESS.search(question):
        if summaries:
            lines.append(t["progress_head"])
            lines.extend(_bullets(summaries))
        elif activities:
            lines.append(t["progress_activities"])
            lines.extend(_bullets(activities))
        else:
            lines.append(t["progress_none"])

    elif _COUNT.search(question):
        lines.append(t["count"].format(activities=len(activities), summaries=len(summaries)))
        dates = sorted(c["date"] for c in context if c.get("date"))
        if dates:
            lines.append(t["count_span"].format(first=dates[0], last=dates[-1]))

    elif context:
        lines.append(t["recent_head"])
        lines.extend(_bullets(context))

    else:
        lines.append(t["nothing"])

    lines.extend(["", t["retry"]])
    return "\n".join(lines)
