from conftest import ScriptedChatModel, tool_call
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from loyalty_assistant.agent.guardrail import REJECTION_MESSAGE
from loyalty_assistant.api.main import create_app
from loyalty_assistant.errors import GENERIC_FAILURE_MESSAGE


def test_api_chat_trace_metrics(make_assistant) -> None:
    llm = ScriptedChatModel(
        [
            tool_call("get_united_premier_qualification", {}),
            AIMessage(content="Premier Silver needs 12 PQF and 4,000 PQP."),
        ]
    )
    classifier = ScriptedChatModel([AIMessage(content="YES"), AIMessage(content="NO")])
    assistant = make_assistant(llm=llm, classifier=classifier)

    with TestClient(create_app(assistant)) as client:
        health = client.get("/health").json()
        assert health["mode"] == "llm"
        assert health["documents_loaded"] == ["delta_medallion", "united_premier"]
        assert health["chunk_count"] >= 2

        conversation_id = client.post("/conversations").json()["conversation_id"]

        chat_resp = client.post(
            "/chat",
            json={
                "query": "Premier Silver needs 12 PQF and 4,000 PQP or 5,000 PQP alone.",
                "conversation_id": conversation_id,
            },
        )
        assert chat_resp.status_code == 200
        chat_payload = chat_resp.json()
        assert chat_payload["conversation_id"] == conversation_id
        assert chat_payload["rejected"] is False
        assert chat_payload["answer"] == "Premier Silver needs 12 PQF and 4,000 PQP."
        assert chat_payload["sources"][0]["title"] == "United MileagePlus Premier Status Qualification"
        assert chat_payload["tool_traces"][0]["name"] == "get_united_premier_qualification"

        rejected_resp = client.post(
            "/chat",
            json={"query": "What's the capital of France?", "conversation_id": conversation_id},
        )
        assert rejected_resp.status_code == 200
        assert rejected_resp.json()["rejected"] is True
        assert rejected_resp.json()["answer"] == REJECTION_MESSAGE

        trace_resp = client.get(f"/traces/{chat_payload['trace_id']}")
        assert trace_resp.status_code == 200
        assert trace_resp.json()["tool_traces"]
        assert trace_resp.json()["outcome"] == "answered"
        assert client.get("/traces/not-a-trace").status_code == 404
        assert len(client.get("/traces").json()["items"]) == 2

        metrics = client.get("/metrics").json()
        assert metrics["total_requests"] == 2
        assert metrics["rejected_requests"] == 1
        assert metrics["tool_calls"] == 1

    assert len(assistant.memory.history(conversation_id)) == 2


def test_blank_queries_are_rejected_before_the_pipeline(make_assistant) -> None:
    llm = ScriptedChatModel()
    classifier = ScriptedChatModel()

    with TestClient(create_app(make_assistant(llm=llm, classifier=classifier))) as client:
        assert client.post("/chat", json={"query": ""}).status_code == 422
        assert client.post("/chat", json={"query": "   \n"}).status_code == 422
        assert client.post("/chat", json={}).status_code == 422

    assert llm.calls == []
    assert classifier.calls == []


def test_pipeline_failure_maps_to_503_with_generic_message(make_assistant) -> None:
    llm = ScriptedChatModel([RuntimeError("invalid api key sk-test")])
    classifier = ScriptedChatModel([AIMessage(content="YES")])

    with TestClient(create_app(make_assistant(llm=llm, classifier=classifier))) as client:
        resp = client.post("/chat", json={"query": "How do I earn MQDs?"})
        metrics = client.get("/metrics").json()

    assert resp.status_code == 503
    assert resp.json() == {"detail": GENERIC_FAILURE_MESSAGE}
    assert metrics["total_requests"] == 1
    assert metrics["failed_requests"] == 1


def test_debug_search_and_stats(make_assistant) -> None:
    with TestClient(create_app(make_assistant())) as client:
        search = client.post(
            "/debug/search",
            json={"query": "Diamond Medallion requires 28,000 MQDs", "top_k": 2},
        )
        assert search.status_code == 200
        payload = search.json()
        assert payload["threshold"] == 0.0
        assert payload["result_count"] == len(payload["items"]) == 2
        top = payload["items"][0]
        assert top["metadata"]["title"] == "Delta SkyMiles Medallion Status Qualification"
        assert top["metadata"]["page"] == "2"
        assert top["score"] >= payload["items"][1]["score"]

        assert client.post("/debug/search", json={"query": "x", "top_k": 0}).status_code == 422
        assert client.post("/debug/search", json={"query": "Medallion"}).json()["top_k"] == 5

        stats = client.get("/debug/stats").json()
        assert stats["unique_sources"] == 2
        assert stats["total_chunks"] >= 2


def test_offline_mode_answers_from_excerpts(make_assistant) -> None:
    with TestClient(create_app(make_assistant())) as client:
        assert client.get("/health").json()["mode"] == "offline"

        resp = client.post(
            "/chat", json={"query": "Gold Medallion requires 10,000 MQDs.", "conversation_id": "c1"}
        )

    payload = resp.json()
    assert resp.status_code == 200
    assert payload["answer"].startswith("Here is what the program documents say:")
    assert "[Delta SkyMiles Medallion Status Qualification]" in payload["answer"]
    assert payload["tool_traces"] == []
