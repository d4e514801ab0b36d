import json

from conftest import FakeLLM, completion, query, tool_call
from noken.chatbot.services import FALLBACK_RESPONSE, MAX_TOOL_ROUNDS, SUGGESTIONS
from noken.chatbot.tools import TOOL_DEFINITIONS, ChatbotTools


def _chat(client, user, message, conversation_id=None):
    payload = {"message": message}
    if conversation_id:
        payload["conversationId"] = conversation_id
    return client.post("/api/chatbot/chat", json=payload, headers=user.headers)


def test_suggestions_are_public(client):
    assert client.get("/api/chatbot/suggestions").json() == SUGGESTIONS


def test_chat_requires_configured_client(client, member):
    response = _chat(client, member, "Bonjour")
    assert response.status_code == 503


def test_simple_chat_creates_conversation(client, member, use_llm):
    fake = use_llm(FakeLLM(completion("Bonjour Awa, comment puis-je vous aider ?")))

    response = _chat(client, member, "Bonjour, je cherche un emploi à Ziguinchor")
    assert response.status_code == 200
    body = response.json()
    assert body["response"] == "Bonjour Awa, comment puis-je vous aider ?"

    call = fake.calls[0]
    assert call["messages"][0]["role"] == "system"
    assert call["messages"][-1] == {"role": "user", "content": "Bonjour, je cherche un emploi à Ziguinchor"}
    assert call["tools"] == TOOL_DEFINITIONS
    assert call["tool_choice"] == "auto"

    conversations = client.get("/api/chatbot/conversations", headers=member.headers).json()
    assert [c["id"] for c in conversations] == [body["conversationId"]]
    assert conversations[0]["title"] == "Bonjour, je cherche un emploi à Ziguinchor"

    detail = client.get(f"/api/chatbot/conversations/{body['conversationId']}", headers=member.headers).json()
    assert [(m["role"], m["content"]) for m in detail["messages"]] == [
        ("user", "Bonjour, je cherche un emploi à Ziguinchor"),
        ("assistant", "Bonjour Awa, comment puis-je vous aider ?"),
    ]


def test_follow_up_sends_history(client, member, use_llm):
    fake = use_llm(FakeLLM(completion("Première réponse"), completion("Deuxième réponse")))
    conversation_id = _chat(client, member, "Question 1").json()["conversationId"]

    response = _chat(client, member, "Question 2", conversation_id)
    assert response.json()["conversationId"] == conversation_id

    roles = [(m["role"], m["content"]) for m in fake.calls[1]["messages"][1:]]
    assert roles == [
        ("user", "Question 1"),
        ("assistant", "Première réponse"),
        ("user", "Question 2"),
    ]


def test_tool_call_round(client, member, use_llm):
    fake = use_llm(
        FakeLLM(
            completion(None, [tool_call("call_1", "get_user_profile")]),
            completion("Vous êtes Awa Diatta, basée à Ziguinchor."),
        )
    )

    response = _chat(client, member, "Qui suis-je ?")
    assert response.json()["response"] == "Vous êtes Awa Diatta, basée à Ziguinchor."

    second = fake.calls[1]["messages"]
    assert second[-2]["role"] == "assistant"
    assert second[-2]["tool_calls"][0]["function"]["name"] == "get_user_profile"
    tool_message = second[-1]
    assert tool_message["role"] == "tool"
    assert tool_message["tool_call_id"] == "call_1"
    profile = json.loads(tool_message["content"])
    assert profile["prenom"] == "Awa"
    assert profile["localisation"]["commune"] == "Ziguinchor"


def test_tool_rounds_are_bounded(client, member, use_llm):
    replies = [completion(None, [tool_call(f"call_{i}", "get_user_cv")]) for i in range(MAX_TOOL_ROUNDS + 1)]
    fake = use_llm(FakeLLM(*replies))

    response = _chat(client, member, "Boucle")
    assert response.json()["response"] == FALLBACK_RESPONSE
    assert len(fake.calls) == MAX_TOOL_ROUNDS + 1


def test_unknown_or_foreign_conversation_starts_a_new_one(client, member, other, use_llm):
    use_llm(FakeLLM(completion("A"), completion("B")))
    conversation_id = _chat(client, member, "Bonjour").json()["conversationId"]

    response = _chat(client, other, "Bonjour", conversation_id)
    assert response.json()["conversationId"] != conversation_id

    assert client.get(f"/api/chatbot/conversations/{conversation_id}", headers=other.headers).status_code == 404


def test_delete_conversation(client, member, use_llm):
    use_llm(FakeLLM(completion("A")))
    conversation_id = _chat(client, member, "Bonjour").json()["conversationId"]

    assert client.delete(f"/api/chatbot/conversations/{conversation_id}", headers=member.headers).status_code == 200
    assert client.get("/api/chatbot/conversations", headers=member.headers).json() == []


def test_recommendation_tool_ranks_offres(client, member, admin, make_offre):
    client.post(
        "/api/cv/me",
        json={"competences": ["Python"], "experiences": [{"poste": "Analyste", "entreprise": "ONG", "dateDebut": "2022-01-01"}]},
        headers=member.headers,
    )
    make_offre(admin, titre="Formateur Python", localisation="Dakar")
    make_offre(admin, titre="Développeur Python", localisation="Ziguinchor", secteur="INFORMATIQUE")
    make_offre(admin, titre="Chauffeur", description="Transport de personnel")

    async def recommend(session):
        return await ChatbotTools(session).execute("get_recommandations_personnalisees", {}, member.id)

    result = json.loads(query(recommend))
    assert result["criteresUtilises"] == ["Python", "Analyste"]
    assert result["localisationUtilisateur"] == "Ziguinchor"
    assert [(r["titre"], r["scoreRelevance"]) for r in result["recommandations"]] == [
        ("Développeur Python", 5),
        ("Formateur Python", 2),
    ]


def test_tools_without_cv_and_unknown_tool(client, member):
    async def execute(session, name, args=None):
        return json.loads(await ChatbotTools(session).execute(name, args or {}, member.id))

    assert query(lambda s: execute(s, "get_user_cv")) == {"hasCV": False, "message": "L'utilisateur n'a pas encore créé de CV"}
    assert query(lambda s: execute(s, "outil_inexistant")) == {"error": "Outil inconnu: outil_inexistant"}
    recommandations = query(lambda s: execute(s, "get_recommandations_personnalisees"))
    assert recommandations["recommandations"] == []


def test_listing_tools(client, member, make_offre):
    make_offre(member, titre="Service civique", typeOffre="VOLONTARIAT", typeVolontariat="Service civique", hebergement=True)
    make_offre(member, titre="Bourse master", typeOffre="BOURSE", paysBourse="France")

    async def execute(session, name, args=None):
        return json.loads(await ChatbotTools(session).execute(name, args or {}, member.id))

    volontariats = query(lambda s: execute(s, "get_volontariats_disponibles"))
    assert volontariats["nombreVolontariats"] == 1
    assert volontariats["volontariats"][0]["typeVolontariat"] == "Service civique"

    bourses = query(lambda s: execute(s, "get_offres_par_type", {"typeOffre": "BOURSE"}))
    assert [o["titre"] for o in bourses["offres"]] == ["Bourse master"]

    stats = query(lambda s: execute(s, "get_statistiques_offres"))
    assert stats["totalOffres"] == 2
