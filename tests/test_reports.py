"""
Unit tests for report endpoints.

The finalized sample evaluation scores 6.8 against an 80% threshold, so it
does not meet the 8.0 bar; FUN-1 alone (8.0) does.
"""

import pytest

from app.services.reports import meets_threshold

BASE = "/api/v1/reports"


class TestMeetsThreshold:

    def test_percentage_scaled_to_score(self):
        assert meets_threshold(8.0, 80) is True
        assert meets_threshold(7.99, 80) is False
        assert meets_threshold(6.0, 60) is True

    def test_missing_score(self):
        assert meets_threshold(None, 0) is False


class TestEvaluationReport:

    def test_report(self, client, evaluator_headers, finalized_evaluation):
        response = client.get(
            f"{BASE}/evaluations/{finalized_evaluation.evaluation.id}",
            headers=evaluator_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["project_name"] == "Portal de Pagos"
        assert data["standard_name"] == "ISO/IEC 25010"
        assert data["standard_version"] == "2011"
        assert data["final_score"] == pytest.approx(6.8)
        assert data["score_level"] == "Rango Objetivo"
        assert data["minimum_threshold"] == 80
        assert data["meets_threshold"] is False

        functional, reliability = data["criteria_results"]
        assert functional["criterion_name"] == "Adecuación Funcional"
        assert functional["importance_level"] == "A"
        assert functional["final_score"] == pytest.approx(4.8)
        assert reliability["importance_percentage"] == 40

        coverage = functional["metrics"][0]
        assert coverage["metric_code"] == "FUN-1"
        assert coverage["weighted_value"] == pytest.approx(8.0)
        assert coverage["meets_threshold"] is True
        assert [(v["symbol"], v["value"]) for v in coverage["variables"]] == [("A", 8), ("B", 10)]

        assert reliability["metrics"][0]["meets_threshold"] is False

    def test_report_before_finalize(self, client, evaluator_headers, configured_evaluation):
        evaluation_id = configured_evaluation.evaluation.id
        response = client.get(f"{BASE}/evaluations/{evaluation_id}", headers=evaluator_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == (
            f"No results found for evaluation {evaluation_id}. Please finalize the evaluation first."
        )

    def test_report_not_found(self, client, evaluator_headers):
        response = client.get(f"{BASE}/evaluations/9999", headers=evaluator_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Evaluation with ID 9999 not found"


class TestEvaluationLists:

    def test_my_evaluations(self, client, evaluator_headers, finalized_evaluation):
        response = client.get(f"{BASE}/my-evaluations", headers=evaluator_headers)

        assert response.status_code == 200
        items = response.json()
        assert len(items) == 1
        assert items[0]["evaluation_id"] == finalized_evaluation.evaluation.id
        assert items[0]["has_results"] is True
        assert items[0]["final_score"] == pytest.approx(6.8)
        assert items[0]["status"] == "completed"

    def test_my_evaluations_only_own_projects(self, client, admin_headers, finalized_evaluation):
        response = client.get(f"{BASE}/my-evaluations", headers=admin_headers)
        assert response.json() == []

    def test_all_evaluations(self, client, evaluator_headers, configured_evaluation):
        response = client.get(f"{BASE}/evaluations", headers=evaluator_headers)

        items = response.json()
        assert len(items) == 1
        assert items[0]["has_results"] is False
        assert items[0]["final_score"] is None
        assert items[0]["status"] == "in_progress"

    def test_project_evaluations(self, client, evaluator_headers, finalized_evaluation):
        response = client.get(
            f"{BASE}/projects/{finalized_evaluation.project.id}/evaluations",
            headers=evaluator_headers,
        )
        assert [e["standard_name"] for e in response.json()] == ["ISO/IEC 25010"]


class TestEvaluationStats:

    def test_stats(self, client, evaluator_headers, finalized_evaluation):
        response = client.get(
            f"{BASE}/evaluations/{finalized_evaluation.evaluation.id}/stats",
            headers=evaluator_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_criteria"] == 2
        assert data["total_metrics"] == 2
        assert data["average_criteria_score"] == pytest.approx(3.4)
        assert data["best_criterion"] == {"name": "Adecuación Funcional", "score": pytest.approx(4.8)}
        assert data["worst_criterion"] == {"name": "Fiabilidad", "score": pytest.approx(2.0)}
        assert data["score_by_importance"] == {
            "high": pytest.approx(4.8),
            "medium": pytest.approx(2.0),
            "low": 0,
        }

    def test_stats_without_results(self, client, evaluator_headers, configured_evaluation):
        response = client.get(
            f"{BASE}/evaluations/{configured_evaluation.evaluation.id}/stats",
            headers=evaluator_headers,
        )

        data = response.json()
        assert data["total_criteria"] == 0
        assert data["total_metrics"] == 2
        assert data["best_criterion"] == {"name": "N/A", "score": 0}


class TestProjectReports:

    def test_my_projects(self, client, evaluator_headers, finalized_evaluation):
        response = client.get(f"{BASE}/my-projects", headers=evaluator_headers)

        projects = response.json()
        assert len(projects) == 1
        assert projects[0]["project_name"] == "Portal de Pagos"
        assert projects[0]["evaluation_count"] == 1
        assert projects[0]["final_project_score"] is None
        assert projects[0]["meets_threshold"] is False

    def test_project_report_before_finalize(self, client, evaluator_headers, finalized_evaluation):
        response = client.get(
            f"{BASE}/projects/{finalized_evaluation.project.id}/report",
            headers=evaluator_headers,
        )

        data = response.json()
        assert data["creator_name"] == "Eva Evaluator"
        assert data["final_project_score"] == 0
        assert data["evaluations"][0]["final_score"] == pytest.approx(6.8)
        assert data["evaluations"][0]["status"] == "completed"

    def test_project_report_after_finalize(self, client, evaluator_headers, finalized_evaluation):
        project_id = finalized_evaluation.project.id
        client.post(f"/api/v1/entry-data/projects/{project_id}/finalize", headers=evaluator_headers)

        response = client.get(f"{BASE}/projects/{project_id}/report", headers=evaluator_headers)

        data = response.json()
        assert data["final_project_score"] == pytest.approx(6.8)
        assert data["meets_threshold"] is False
        assert data["status"] == "completed"

    def test_project_stats(self, client, evaluator_headers, finalized_evaluation):
        response = client.get(
            f"{BASE}/projects/{finalized_evaluation.project.id}/stats",
            headers=evaluator_headers,
        )

        assert response.json() == {
            "total_evaluations": 1,
            "completed_evaluations": 1,
            "average_evaluation_score": pytest.approx(6.8),
            "highest_evaluation": {"standard_name": "ISO/IEC 25010", "score": pytest.approx(6.8)},
            "lowest_evaluation": {"standard_name": "ISO/IEC 25010", "score": pytest.approx(6.8)},
        }

    def test_project_report_not_found(self, client, evaluator_headers):
        response = client.get(f"{BASE}/projects/9999/report", headers=evaluator_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Project with ID 9999 not found"
