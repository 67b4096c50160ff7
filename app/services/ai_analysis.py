import json
import logging
import re
import asyncio
from datetime import datetime, timezone
from typing import Dict, List
from openai import AsyncOpenAI
from sqlalchemy.orm import Session
from app.core.config import settings
from app.services import reports as reports_service

logger = logging.getLogger(__name__)

PRIORITIES = ("Alta", "Media", "Baja")
REQUIRED_FIELDS = ("analisis_general", "fortalezas", "recomendaciones")

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```")
_BARE_JSON = re.compile(r"\{[\s\S]*\}")


class AIAnalysisError(Exception):
    """Raised when the AI analysis can't be generated"""
    pass


class AIAnalysisNotConfiguredError(AIAnalysisError):
    """Raised when no OpenAI API key is configured"""
    pass


def _fallback_analysis() -> Dict:
    return {
        "analisis_general": "Error al parsear la respuesta de IA. Por favor intente nuevamente.",
        "fortalezas": ["Análisis no disponible"],
        "debilidades": ["Análisis no disponible"],
        "recomendaciones": [{
            "prioridad": "Media",
            "titulo": "Error al generar análisis",
            "descripcion": "Hubo un problema al procesar la respuesta de IA.",
            "impacto": "N/A",
        }],
        "riesgos": ["Análisis no disponible"],
        "proximos_pasos": ["Reintentar análisis"],
    }


def build_analysis_prompt(report: Dict, stats: Dict) -> str:
    """Spanish QA-expert prompt built from the project report and statistics"""
    evaluations_details = "\n".join(
        f"  - {e['standard_name']}: {e['final_score']:.1f}/10" for e in report["evaluations"]
    ) or "  - Sin evaluaciones"

    description = f"**Descripción:** {report['project_description']}" if report.get("project_description") else ""
    verdict = (
        "APROBADO - Cumple con el estándar"
        if report["meets_threshold"]
        else "NO APROBADO - Por debajo del umbral"
    )
    threshold = report["minimum_threshold"]

    return f"""Eres un experto senior en aseguramiento de calidad de software con más de 15 años de experiencia en normas ISO/IEC 25010, CMMI y mejores prácticas de ingeniería de software.

Analiza los siguientes resultados de evaluación de calidad de software y proporciona un análisis profesional, específico y accionable.

DATOS DEL PROYECTO

**Proyecto:** {report['project_name']}
{description}

**Resultados Principales:**
- Puntuación Final: {report['final_project_score']:.1f}/10
- Umbral Mínimo Requerido: {threshold:g}% ({threshold / 10:.1f}/10)
- Estado: {verdict}

**Estadísticas de Evaluaciones:**
- Total de evaluaciones realizadas: {stats['total_evaluations']}
- Evaluaciones completadas: {stats['completed_evaluations']}
- Promedio general: {stats['average_evaluation_score']:.1f}/10
- Mejor evaluación: {stats['highest_evaluation']['standard_name']} ({stats['highest_evaluation']['score']:.1f}/10)
- Evaluación más baja: {stats['lowest_evaluation']['standard_name']} ({stats['lowest_evaluation']['score']:.1f}/10)

**Detalle de Evaluaciones por Estándar:**
{evaluations_details}

Proporciona un análisis profesional y estructurado en formato JSON con la siguiente estructura:

{{
  "analisis_general": "Análisis de 3-4 párrafos del estado actual de calidad del software, considerando el puntaje y si cumple o no el umbral.",
  "fortalezas": ["Fortaleza específica con evidencia numérica"],
  "debilidades": ["Debilidad específica con impacto medible"],
  "recomendaciones": [
    {{
      "prioridad": "Alta",
      "titulo": "Título corto y accionable",
      "descripcion": "QUÉ hacer, CÓMO hacerlo y POR QUÉ es importante, con pasos específicos.",
      "impacto": "Impacto estimado cuantificable en el proyecto",
      "categoria": "Seguridad, Rendimiento, Mantenibilidad, etc."
    }}
  ],
  "riesgos": ["Riesgo específico si no se atienden las debilidades"],
  "proximos_pasos": ["Paso accionable a corto, mediano o largo plazo"]
}}

IMPORTANTE:
1. Sé específico y usa los datos numéricos proporcionados
2. Las recomendaciones deben ser ACCIONABLES, no genéricas
3. Incluye al menos 5 recomendaciones (2-3 Alta, 2 Media, 1 Baja)
4. Responde ÚNICAMENTE con el JSON, sin texto adicional
5. Si el proyecto está aprobado, enfócate en optimización; si no, en corrección
"""


def _normalize_recommendations(recommendations: List) -> List[Dict]:
    normalized = []
    for item in recommendations:
        if not isinstance(item, dict):
            continue
        priority = str(item.get("prioridad", "")).strip().capitalize()
        normalized.append({
            "prioridad": priority if priority in PRIORITIES else "Media",
            "titulo": str(item.get("titulo", "")),
            "descripcion": str(item.get("descripcion", "")),
            "impacto": str(item.get("impacto", "")),
            "categoria": item.get("categoria"),
        })
    return normalized


def parse_analysis_response(text: str) -> Dict:
    """
    Extract the analysis JSON from an LLM reply.

    Accepts a ```json fenced block or the outermost {...}. Falls back to a
    canned analysis when nothing parses or required fields are missing.
    """
    match = _FENCED_JSON.search(text or "") or _BARE_JSON.search(text or "")
    if not match:
        logger.error("No JSON found in AI response")
        return _fallback_analysis()

    json_text = match.group(1) if match.re is _FENCED_JSON else match.group(0)
    try:
        parsed = json.loads(json_text)
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing AI response: {e}")
        logger.debug(f"Raw response: {text}")
        return _fallback_analysis()

    if not isinstance(parsed, dict) or not all(parsed.get(field) for field in REQUIRED_FIELDS):
        logger.error("Invalid JSON structure in AI response")
        return _fallback_analysis()

    parsed["recomendaciones"] = _normalize_recommendations(parsed["recomendaciones"])
    return parsed


def _client() -> AsyncOpenAI:
    return AsyncOpenAI(api_key=settings.OPENAI_API_KEY)


async def request_analysis(prompt: str, max_retries: int = None) -> str:
    """
    Send the prompt to OpenAI in JSON mode.
    Implements retry logic with exponential backoff.

    Raises:
        AIAnalysisError: If every attempt fails
    """
    max_retries = max_retries or settings.AI_ANALYSIS_MAX_RETRIES
    client = _client()

    for attempt in range(max_retries):
        try:
            response = await client.chat.completions.create(
                model=settings.OPENAI_MODEL,
                messages=[
                    {"role": "system", "content": "Responde únicamente con JSON válido."},
                    {"role": "user", "content": prompt}
                ],
                response_format={"type": "json_object"},
                temperature=settings.OPENAI_TEMPERATURE
            )

            content = response.choices[0].message.content
            if not content:
                raise AIAnalysisError("Empty response from OpenAI")

            logger.debug(f"Raw AI response: {content[:200]}...")
            return content

        except Exception as e:
            logger.warning(f"Attempt {attempt + 1}/{max_retries}: Generation error: {e}")
            if attempt == max_retries - 1:
                raise AIAnalysisError(f"Failed after {max_retries} attempts: {e}")

        # Exponential backoff: wait 1s, 2s, 4s between retries
        wait_time = 2 ** attempt
        logger.info(f"Retrying in {wait_time} seconds...")
        await asyncio.sleep(wait_time)

    raise AIAnalysisError(f"Failed to generate analysis after {max_retries} attempts")


async def analyze_project_quality(db: Session, project_id: int) -> Dict:
    """
    Generate the AI quality narrative of a project.

    Args:
        db: Database session
        project_id: Project to analyze

    Returns:
        Analysis dict enriched with projectId, projectName, generatedAt and metadata

    Raises:
        HTTPException 404: Project not found
        AIAnalysisNotConfiguredError: No OPENAI_API_KEY
        AIAnalysisError: The LLM call failed after all retries
    """
    if not settings.OPENAI_API_KEY:
        raise AIAnalysisNotConfiguredError(
            "OpenAI is not configured. Please set OPENAI_API_KEY environment variable."
        )

    logger.info(f"Starting AI analysis for project {project_id}")

    report = reports_service.get_project_report(db, project_id)
    stats = reports_service.get_project_stats(db, project_id)

    text = await request_analysis(build_analysis_prompt(report, stats))
    analysis = parse_analysis_response(text)

    logger.info(f"AI analysis completed successfully for project {project_id}")
    return {
        "projectId": project_id,
        "projectName": report["project_name"],
        "analisis_general": analysis.get("analisis_general") or "",
        "fortalezas": analysis.get("fortalezas") or [],
        "debilidades": analysis.get("debilidades") or [],
        "recomendaciones": analysis.get("recomendaciones") or [],
        "riesgos": analysis.get("riesgos") or [],
        "proximos_pasos": analysis.get("proximos_pasos") or [],
        "generatedAt": datetime.now(timezone.utc),
        "metadata": {
            "score": report["final_project_score"],
            "threshold": report["minimum_threshold"],
            "meetsThreshold": report["meets_threshold"],
            "totalEvaluations": stats["total_evaluations"],
        },
    }
