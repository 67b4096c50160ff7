"""
Celery tasks package.

Tasks are organized by domain:
- evaluation_tasks: Evaluation finalize pipeline
- analysis_tasks: AI project quality analysis
"""

from app.tasks import evaluation_tasks, analysis_tasks

__all__ = ["evaluation_tasks", "analysis_tasks"]
