"""
Unit tests for the AI quality analysis.

OpenAI is never called: request_analysis (or the client behind it) is
replaced with fakes.
"""

import asyncio
import json
from types import SimpleNamespace

import pytest

from app.services import ai_analysis
from app.services.ai_analysis import (
    AIAnalysisError,
    build_analysis_prompt,
    parse_analysis_response,
)

BASE = "/api/v1/reports"

ANALYSIS = {
    "analisis_general": "El proyecto alcanza el rango objetivo.",
    "fortalezas": ["Cobertura funcional del 80%"],
    "debilidades": ["Disponibilidad mensual baja"],
    "recomendaciones": [
        {"prioridad": "alta", "titulo": "Monitoreo", "descripcion": "Agregar alertas", "impacto": "Menos caídas"},
        {"prioridad": "Urgente", "titulo": "Pruebas", "descripcion": "Ampliar pruebas", "impacto": "Menos defectos"},
    ],
    "riesgos": ["Pérdida de clientes"],
    "proximos_pasos": ["Definir SLA"],
}


@pytest.fixture
def openai_configured(monkeypatch, test_settings):
    monkeypatch.setattr(test_settings, "OPENAI_API_KEY", "test-key")


@pytest.fixture
def fake_llm(monkeypatch):
    """Replace the OpenAI call; records the prompts it receives"""
    prompts = []

    async def fake_request_analysis(prompt, max_retries=None):
        prompts.append(prompt)
        return json.dumps(ANALYSIS)

    monkeypatch.setattr(ai_analysis, "request_analysis", fake_request_analysis)
    return prompts


class TestParseAnalysisResponse:

    def test_fenced_json(self):
        text = f"Aquí está el análisis:\n```json\n{json.dumps(ANALYSIS)}\n```\nSaludos"
        parsed = parse_analysis_response(text)

        assert parsed["analisis_general"] == ANALYSIS["analisis_general"]
        assert parsed["fortalezas"] == ["Cobertura funcional del 80%"]

    def test_bare_json(self):
        parsed = parse_analysis_response("Respuesta: " + json.dumps(ANALYSIS))
        assert parsed["riesgos"] == ["Pérdida de clientes"]

    def test_priorities_normalized(self):
        parsed = parse_analysis_response(json.dumps(ANALYSIS))
        assert [r["prioridad"] for r in parsed["recomendaciones"]] == ["Alta", "Media"]

    def test_garbage_falls_back(self):
        parsed = parse_analysis_response("no JSON here")

        assert parsed["analisis_general"].startswith("Error al parsear")
        assert parsed["proximos_pasos"] == ["Reintentar análisis"]

    def test_invalid_json_falls_back(self):
        parsed = parse_analysis_response("{not: valid}")
        assert parsed["fortalezas"] == ["Análisis no disponible"]

    def test_missing_fields_fall_back(self):
        parsed = parse_analysis_response(json.dumps({"analisis_general": "Solo texto"}))
        assert parsed["recomendaciones"][0]["titulo"] == "Error al generar análisis"


class TestBuildAnalysisPrompt:

    def test_prompt_contents(self):
        report = {
            "project_name": "Portal de Pagos",
            "project_description": "Customer payments portal",
            "final_project_score": 6.8,
            "minimum_threshold": 80.0,
            "meets_threshold": False,
            "evaluations": [{"standard_name": "ISO/IEC 25010", "final_score": 6.8}],
        }
        stats = {
            "total_evaluations": 1,
            "completed_evaluations": 1,
            "average_evaluation_score": 6.8,
            "highest_evaluation": {"standard_name": "ISO/IEC 25010", "score": 6.8},
            "lowest_evaluation": {"standard_name": "ISO/IEC 25010", "score": 6.8},
        }

        prompt = build_analysis_prompt(report, stats)

        assert "**Proyecto:** Portal de Pagos" in prompt
        assert "Puntuación Final: 6.8/10" in prompt
        assert "Umbral Mínimo Requerido: 80% (8.0/10)" in prompt
        assert "NO APROBADO" in prompt
        assert "  - ISO/IEC 25010: 6.8/10" in prompt


class TestRequestAnalysis:
    """Retries against a fake OpenAI client"""

    @staticmethod
    def _client(replies):
        async def create(**kwargs):
            reply = replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])

        return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))

    @pytest.fixture(autouse=True)
    def no_backoff(self, monkeypatch):
        async def no_sleep(seconds):
            return None

        monkeypatch.setattr(ai_analysis.asyncio, "sleep", no_sleep)

    def test_retries_then_succeeds(self, monkeypatch):
        client = self._client([RuntimeError("rate limited"), '{"ok": true}'])
        monkeypatch.setattr(ai_analysis, "_client", lambda: client)

        assert asyncio.run(ai_analysis.request_analysis("prompt", max_retries=3)) == '{"ok": true}'

    def test_gives_up(self, monkeypatch):
        client = self._client([RuntimeError("down"), RuntimeError("down")])
        monkeypatch.setattr(ai_analysis, "_client", lambda: client)

        with pytest.raises(AIAnalysisError, match="Failed after 2 attempts"):
            asyncio.run(ai_analysis.request_analysis("prompt", max_retries=2))

    def test_empty_content_is_an_error(self, monkeypatch):
        client = self._client([""])
        monkeypatch.setattr(ai_analysis, "_client", lambda: client)

        with pytest.raises(AIAnalysisError, match="Empty response from OpenAI"):
            asyncio.run(ai_analysis.request_analysis("prompt", max_retries=1))


class TestGenerateAIAnalysis:
    """Test POST /projects/{project_id}/ai-analysis"""

    def test_not_configured(self, client, evaluator_headers, finalized_evaluation):
        response = client.post(
            f"{BASE}/projects/{finalized_evaluation.project.id}/ai-analysis",
            headers=evaluator_headers,
        )

        assert response.status_code == 503
        assert "OPENAI_API_KEY" in response.json()["detail"]

    def test_generate(self, client, evaluator_headers, finalized_evaluation, openai_configured, fake_llm):
        project_id = finalized_evaluation.project.id
        response = client.post(f"{BASE}/projects/{project_id}/ai-analysis", headers=evaluator_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["projectId"] == project_id
        assert data["projectName"] == "Portal de Pagos"
        assert data["recomendaciones"][0]["prioridad"] == "Alta"
        assert data["metadata"] == {
            "score": 0,
            "threshold": 80,
            "meetsThreshold": False,
            "totalEvaluations": 1,
        }
        assert "ISO/IEC 25010: 6.8/10" in fake_llm[0]

    def test_generation_failure(self, client, evaluator_headers, sample_project, openai_configured, monkeypatch):
        async def failing_request(prompt, max_retries=None):
            raise AIAnalysisError("quota exceeded")

        monkeypatch.setattr(ai_analysis, "request_analysis", failing_request)

        response = client.post(f"{BASE}/projects/{sample_project.id}/ai-analysis", headers=evaluator_headers)

        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to generate AI analysis: quota exceeded"

    def test_project_not_found(self, client, evaluator_headers, openai_configured, fake_llm):
        response = client.post(f"{BASE}/projects/9999/ai-analysis", headers=evaluator_headers)
        assert response.status_code == 404


class TestQueuedAIAnalysis:
    """Test the Celery-backed analysis and /ai-analysis/latest"""

    def test_queue_and_poll(self, client, db_session, evaluator_headers, finalized_evaluation,
                            openai_configured, fake_llm, mock_celery):
        project_id = finalized_evaluation.project.id
        response = client.post(f"{BASE}/projects/{project_id}/ai-analysis/async", headers=evaluator_headers)

        assert response.status_code == 202
        data = response.json()
        assert data["task_id"] == "test-task-id"
        assert data["project_id"] == project_id
        assert data["status"] == "PENDING"

        db_session.expire_all()
        latest = client.get(f"{BASE}/projects/{project_id}/ai-analysis/latest", headers=evaluator_headers)

        assert latest.status_code == 200
        stored = latest.json()
        assert stored["id"] == data["analysis_id"]
        assert stored["status"] == "COMPLETED"
        assert stored["content"]["projectName"] == "Portal de Pagos"
        assert stored["content"]["fortalezas"] == ["Cobertura funcional del 80%"]

    def test_failed_generation_is_stored(self, client, db_session, evaluator_headers, sample_project, mock_celery):
        # No OPENAI_API_KEY: the worker marks the analysis FAILED
        client.post(f"{BASE}/projects/{sample_project.id}/ai-analysis/async", headers=evaluator_headers)

        db_session.expire_all()
        latest = client.get(f"{BASE}/projects/{sample_project.id}/ai-analysis/latest", headers=evaluator_headers)

        stored = latest.json()
        assert stored["status"] == "FAILED"
        assert "OPENAI_API_KEY" in stored["error_message"]
        assert stored["content"] is None

    def test_no_analysis_yet(self, client, evaluator_headers, sample_project):
        response = client.get(f"{BASE}/projects/{sample_project.id}/ai-analysis/latest", headers=evaluator_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == f"No AI analysis found for project {sample_project.id}"

    def test_queue_unknown_project(self, client, evaluator_headers, mock_celery):
        response = client.post(f"{BASE}/projects/9999/ai-analysis/async", headers=evaluator_headers)
        assert response.status_code == 404
