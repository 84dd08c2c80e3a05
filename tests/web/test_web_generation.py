"""Tests for the generation proxy (POST /api/gemini)."""

import pytest

from bizu.llm.client import LLMConnectionError, LLMRateLimitError, LLMResponse, LLMResponseError


class TestRequestValidation:
    """Malformed requests never reach the model."""

    def test_invalid_json(self, client, mock_llm_client):
        response = client.post(
            "/api/gemini",
            content="not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert "error" in response.json()
        mock_llm_client.simple_json.assert_not_called()

    def test_body_must_be_object(self, client):
        response = client.post("/api/gemini", json=["generateQuiz"])
        assert response.status_code == 400

    def test_missing_action(self, client):
        response = client.post("/api/gemini", json={"payload": {}})

        assert response.status_code == 400
        assert response.json() == {"error": "Ação não informada."}

    def test_unknown_action(self, client):
        response = client.post("/api/gemini", json={"action": "fly", "payload": {}})

        assert response.status_code == 400
        assert "fly" in response.json()["error"]

    def test_invalid_payload(self, client, mock_llm_client):
        response = client.post("/api/gemini", json={"action": "askTutor", "payload": {}})

        assert response.status_code == 400
        mock_llm_client.chat.assert_not_called()

    @pytest.mark.parametrize(
        "history",
        [
            [{"role": "user", "parts": {"text": "x"}}],
            [{"role": "user", "parts": ["x"]}],
            ["x"],
        ],
    )
    def test_malformed_history(self, client, mock_llm_client, history):
        response = client.post(
            "/api/gemini",
            json={"action": "askTutor", "payload": {"message": "oi", "history": history}},
        )

        assert response.status_code == 400
        assert "error" in response.json()
        mock_llm_client.chat.assert_not_called()

    @pytest.mark.parametrize("path", ["/api/gemini", "/api/generate"])
    def test_get_not_allowed(self, client, path):
        response = client.get(path)

        assert response.status_code == 405
        assert response.json() == {"error": "Method Not Allowed"}


class TestActions:
    def test_generate_quiz(self, client, mock_llm_client, quiz_llm_output):
        mock_llm_client.simple_json.return_value = quiz_llm_output

        response = client.post(
            "/api/gemini",
            json={
                "action": "generateQuiz",
                "payload": {"topic": "Constitucional", "difficulty": "medium", "numberOfQuestions": 2},
            },
        )

        assert response.status_code == 200
        questions = response.json()
        assert len(questions) == 2
        assert questions[0]["correctAnswerIndex"] == 1
        assert len(questions[0]["options"]) == 4

    def test_ask_tutor(self, client, mock_llm_client):
        mock_llm_client.chat.return_value = LLMResponse(content="Lei seca!", model="m", provider="p")

        response = client.post(
            "/api/gemini",
            json={"action": "askTutor", "payload": {"history": [], "message": "Bizu de penal?"}},
        )

        assert response.status_code == 200
        assert response.json() == {"text": "Lei seca!"}

    def test_generate_routine(self, client, mock_llm_client, routine_llm_output):
        mock_llm_client.simple_json.return_value = routine_llm_output

        response = client.post(
            "/api/gemini",
            json={
                "action": "generateRoutine",
                "payload": {"targetExam": "PF", "hours": 4, "subjects": "Penal, Constitucional"},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["targetExam"] == "PF"
        assert data["weekSchedule"][0]["day"] == "Segunda"

    def test_update_radar_without_news(self, client, mock_llm_client):
        mock_llm_client.simple_json.return_value = {"no_updates": True}

        response = client.post(
            "/api/gemini",
            json={"action": "updateRadar", "payload": {"existingTitles": ["Polícia Federal"]}},
        )

        assert response.status_code == 200
        assert response.json() == {"no_updates": True}

    def test_generate_alias(self, client, mock_llm_client):
        mock_llm_client.simple_chat.return_value = "# Conteúdo"

        response = client.post(
            "/api/generate",
            json={
                "action": "generateMaterialContent",
                "payload": {"material": {"title": "Lei 8.112", "category": "Administrativo", "type": "PDF"}},
            },
        )

        assert response.status_code == 200
        assert response.json() == {"content": "# Conteúdo"}


class TestUpstreamErrors:
    def test_rate_limit_maps_to_429(self, client, mock_llm_client):
        mock_llm_client.chat.side_effect = LLMRateLimitError("slow down")

        response = client.post(
            "/api/gemini",
            json={"action": "askTutor", "payload": {"message": "oi"}},
        )

        assert response.status_code == 429
        assert response.json()["error"] == "slow down"

    @pytest.mark.parametrize("error", [LLMConnectionError("down"), LLMResponseError("empty reply")])
    def test_other_errors_map_to_500(self, client, mock_llm_client, error):
        mock_llm_client.chat.side_effect = error

        response = client.post(
            "/api/gemini",
            json={"action": "askTutor", "payload": {"message": "oi"}},
        )

        assert response.status_code == 500
        assert response.json() == {
            "error": "Erro ao processar solicitação na IA",
            "details": str(error),
        }
