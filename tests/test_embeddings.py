"""
Tests for embedding ingestion, the embeddings endpoints and translation.
"""
import asyncio
from datetime import date

from sqlalchemy import func, select

from dayframe.models.embedding import ChatEmbedding
from dayframe.services import crud
from dayframe.services.indexing import index_content
from tests.conftest import USER_ID


def _embedding_rows(run_db):
    async def _go(db):
        result = await db.execute(select(ChatEmbedding))
        return list(result.scalars().all())

    return run_db(_go)


class TestIndexContent:
    def test_stores_embedding(self, fake_llm, run_db):
        asyncio.run(index_content(USER_ID, "activity", "a1", "Wrote chapter 3", date(2026, 3, 4)))
        rows = _embedding_rows(run_db)
        assert len(rows) == 1
        assert rows[0].content_id == "a1"
        assert rows[0].content_text == "Wrote chapter 3"
        assert ("embedding", "Wrote chapter 3") in fake_llm.calls

    def test_reindex_replaces_row(self, fake_llm, run_db):
        asyncio.run(index_content(USER_ID, "activity", "a1", "first", date(2026, 3, 4)))
        asyncio.run(index_content(USER_ID, "activity", "a1", "second", date(2026, 3, 4)))
        rows = _embedding_rows(run_db)
        assert [r.content_text for r in rows] == ["second"]

    def test_failure_is_swallowed(self, fake_llm, run_db):
        fake_llm.fail_embedding = True
        asyncio.run(index_content(USER_ID, "activity", "a1", "text", date(2026, 3, 4)))
        assert _embedding_rows(run_db) == []

    def test_skipped_when_disabled(self, fake_llm, run_db, set_env):
        set_env(FF_EMBEDDINGS_ENABLED="false")
        asyncio.run(index_content(USER_ID, "activity", "a1", "text", date(2026, 3, 4)))
        assert _embedding_rows(run_db) == []
        assert fake_llm.calls == []

    def test_blank_text_skipped(self, fake_llm, run_db):
        asyncio.run(index_content(USER_ID, "summary", "s1", "   ", date(2026, 3, 4)))
        assert fake_llm.calls == []


class TestEmbeddingsAPI:
    def test_generate(self, client, auth_headers, fake_llm, run_db):
        resp = client.post("/api/embeddings/generate", json={
            "contentType": "summary",
            "contentId": "s1",
            "contentText": "A calm day.",
            "contentDate": "2026-03-04",
        }, headers=auth_headers)
        assert resp.status_code == 201
        assert resp.json() == {"success": True}
        rows = _embedding_rows(run_db)
        assert rows[0].user_id == USER_ID
        assert rows[0].content_type == "summary"

    def test_generate_cannot_take_over_other_users_content(self, client, auth_headers, other_headers, fake_llm, run_db):
        body = {"contentType": "activity", "contentId": "a1", "contentDate": "2026-03-04"}
        resp = client.post("/api/embeddings/generate", json={**body, "contentText": "private note"},
                           headers=auth_headers)
        assert resp.status_code == 201

        resp = client.post("/api/embeddings/generate", json={**body, "contentText": "someone else"},
                           headers=other_headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Content not found"}

        rows = _embedding_rows(run_db)
        assert [(r.user_id, r.content_text) for r in rows] == [(USER_ID, "private note")]

    def test_generate_missing_field(self, client, auth_headers, fake_llm):
        resp = client.post("/api/embeddings/generate", json={"contentType": "summary"}, headers=auth_headers)
        assert resp.status_code == 400

    def test_generate_failure(self, client, auth_headers, fake_llm):
        fake_llm.fail_embedding = True
        resp = client.post("/api/embeddings/generate", json={
            "contentType": "activity", "contentId": "a1", "contentText": "x", "contentDate": "2026-03-04",
        }, headers=auth_headers)
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to generate embedding"}

    def test_search(self, client, auth_headers, fake_llm, monkeypatch):
        async def _search(db, user_id, query_embedding, threshold=0.5, limit=10):
            assert (user_id, threshold, limit) == (USER_ID, 0.7, 3)
            return [{"id": "e1", "content_type": "activity", "content_id": "a1",
                     "content_text": "Wrote", "content_date": "2026-03-04", "similarity": 0.82}]

        monkeypatch.setattr(crud, "search_similar_content", _search)
        resp = client.post("/api/embeddings/search", json={"query": "writing", "threshold": 0.7, "limit": 3},
                           headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()[0]["similarity"] == 0.82

    def test_search_failure(self, client, auth_headers, fake_llm):
        # SQLite has no match_embeddings function
        resp = client.post("/api/embeddings/search", json={"query": "writing"}, headers=auth_headers)
        assert resp.status_code == 500
        assert resp.json() == {"error": "Search failed"}

    def test_disabled(self, client, auth_headers, set_env):
        set_env(FF_EMBEDDINGS_ENABLED="false")
        resp = client.post("/api/embeddings/search", json={"query": "x"}, headers=auth_headers)
        assert resp.status_code == 404


class TestTranslate:
    def test_translates_json(self, client, auth_headers, fake_llm):
        fake_llm.chat_response = '```json\n{"summary": "Hari yang tenang"}\n```'
        resp = client.post("/api/translate", json={"content": {"summary": "A calm day"}, "targetLanguage": "Indonesian"},
                           headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json() == {"translatedContent": {"summary": "Hari yang tenang"}}

        _, prompt, context, system = fake_llm.calls[-1]
        assert "Translate this JSON content to Indonesian" in prompt
        assert context == ""
        assert "professional translator" in system

    def test_missing_language(self, client, auth_headers):
        resp = client.post("/api/translate", json={"content": {"a": 1}}, headers=auth_headers)
        assert resp.status_code == 400

    def test_model_failure(self, client, auth_headers, fake_llm):
        fake_llm.fail_chat = True
        resp = client.post("/api/translate", json={"content": {"a": 1}, "targetLanguage": "French"},
                           headers=auth_headers)
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to translate content"}

    def test_unparsable_translation(self, client, auth_headers, fake_llm):
        fake_llm.chat_response = "Voici la traduction"
        resp = client.post("/api/translate", json={"content": {"a": 1}, "targetLanguage": "French"},
                           headers=auth_headers)
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to parse translation"}
