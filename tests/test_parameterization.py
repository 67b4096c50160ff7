"""
Unit tests for the parameterization endpoints.

Tests:
- Creating and updating tree items (admin only)
- Listing with state filter, search and pagination
- State changes cascading down the tree
- Cross-standard search
"""

BASE = "/api/v1/parameterization"


class TestStandards:
    """Test standard CRUD"""

    def test_create_standard(self, client, admin_headers):
        response = client.post(
            f"{BASE}/standards",
            json={"name": "ISO/IEC 25010", "version": "2011", "description": "Product quality"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "ISO/IEC 25010"
        assert data["state"] == "active"
        assert "id" in data

    def test_create_requires_admin(self, client, evaluator_headers):
        response = client.post(f"{BASE}/standards", json={"name": "ISO 9126"}, headers=evaluator_headers)
        assert response.status_code == 403

    def test_create_validates_name(self, client, admin_headers):
        response = client.post(f"{BASE}/standards", json={"name": ""}, headers=admin_headers)
        assert response.status_code == 422

    def test_update_standard(self, client, admin_headers, sample_standard):
        response = client.patch(
            f"{BASE}/standards/{sample_standard.standard.id}",
            json={"version": "2023"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["version"] == "2023"
        assert response.json()["name"] == "ISO/IEC 25010"

    def test_get_standard_not_found(self, client, evaluator_headers):
        response = client.get(f"{BASE}/standards/9999", headers=evaluator_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Standard with ID 9999 not found"

    def test_list_standards_filters(self, client, admin_headers, evaluator_headers):
        for name in ("ISO/IEC 25010", "ISO 9126", "McCall"):
            client.post(f"{BASE}/standards", json={"name": name}, headers=admin_headers)

        response = client.get(f"{BASE}/standards", params={"search": "iso"}, headers=evaluator_headers)
        assert [s["name"] for s in response.json()] == ["ISO 9126", "ISO/IEC 25010"]

        response = client.get(f"{BASE}/standards", params={"page": 2, "limit": 2}, headers=evaluator_headers)
        assert [s["name"] for s in response.json()] == ["McCall"]


class TestTreeChildren:
    """Test criteria, sub-criteria, metrics and variables"""

    def test_create_criterion_for_missing_standard(self, client, admin_headers):
        response = client.post(
            f"{BASE}/criteria",
            json={"standard_id": 9999, "name": "Usabilidad"},
            headers=admin_headers,
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Standard with ID 9999 not found"

    def test_create_full_branch(self, client, admin_headers):
        standard = client.post(f"{BASE}/standards", json={"name": "ISO/IEC 25010"}, headers=admin_headers).json()
        criterion = client.post(
            f"{BASE}/criteria", json={"standard_id": standard["id"], "name": "Usabilidad"}, headers=admin_headers
        ).json()
        sub_criterion = client.post(
            f"{BASE}/sub-criteria", json={"criterion_id": criterion["id"], "name": "Operabilidad"}, headers=admin_headers
        ).json()
        metric = client.post(
            f"{BASE}/metrics",
            json={
                "sub_criterion_id": sub_criterion["id"],
                "code": "USA-1",
                "name": "Tareas completadas",
                "formula": "A/B",
                "desired_threshold": ">=10/20min",
                "worst_case": "0/20min",
            },
            headers=admin_headers,
        ).json()
        response = client.post(
            f"{BASE}/variables",
            json={"metric_id": metric["id"], "symbol": "A", "description": "Completed tasks"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["metric_id"] == metric["id"]
        assert metric["formula"] == "A/B"

    def test_list_children_of_parent(self, client, evaluator_headers, sample_standard):
        response = client.get(
            f"{BASE}/standards/{sample_standard.standard.id}/criteria",
            headers=evaluator_headers,
        )

        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["Adecuación Funcional", "Fiabilidad"]

    def test_list_variables_ordered_by_symbol(self, client, evaluator_headers, sample_standard):
        response = client.get(
            f"{BASE}/metrics/{sample_standard.coverage.id}/variables",
            headers=evaluator_headers,
        )
        assert [v["symbol"] for v in response.json()] == ["A", "B"]

    def test_list_children_of_missing_parent(self, client, evaluator_headers):
        response = client.get(f"{BASE}/criteria/9999/sub-criteria", headers=evaluator_headers)
        assert response.status_code == 404


class TestStateCascade:
    """Deactivating a node deactivates its whole subtree"""

    def test_deactivate_standard(self, client, admin_headers, evaluator_headers, sample_standard):
        response = client.patch(
            f"{BASE}/standards/{sample_standard.standard.id}/state",
            json={"state": "inactive"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["state"] == "inactive"

        criterion = client.get(f"{BASE}/criteria/{sample_standard.functional.id}", headers=evaluator_headers)
        metric = client.get(f"{BASE}/metrics/{sample_standard.coverage.id}", headers=evaluator_headers)
        variable = client.get(f"{BASE}/variables/{sample_standard.specified.id}", headers=evaluator_headers)

        assert criterion.json()["state"] == "inactive"
        assert metric.json()["state"] == "inactive"
        assert variable.json()["state"] == "inactive"

        active = client.get(f"{BASE}/standards", headers=evaluator_headers)
        inactive = client.get(f"{BASE}/standards", params={"state": "inactive"}, headers=evaluator_headers)
        assert active.json() == []
        assert len(inactive.json()) == 1

    def test_deactivate_metric_keeps_siblings(self, client, admin_headers, evaluator_headers, sample_standard):
        client.patch(
            f"{BASE}/metrics/{sample_standard.coverage.id}/state",
            json={"state": "inactive"},
            headers=admin_headers,
        )

        uptime = client.get(f"{BASE}/metrics/{sample_standard.uptime.id}", headers=evaluator_headers)
        assert uptime.json()["state"] == "active"

    def test_invalid_state(self, client, admin_headers, sample_standard):
        response = client.patch(
            f"{BASE}/standards/{sample_standard.standard.id}/state",
            json={"state": "archived"},
            headers=admin_headers,
        )
        assert response.status_code == 422


class TestSearch:
    """Test autocomplete search across standards"""

    def test_search_metrics(self, client, evaluator_headers, sample_standard):
        response = client.get(f"{BASE}/search/metrics", params={"search": "cobertura"}, headers=evaluator_headers)

        assert response.status_code == 200
        results = response.json()
        assert len(results) == 1
        assert results[0]["code"] == "FUN-1"
        assert results[0]["standard_name"] == "ISO/IEC 25010"
        assert [v["symbol"] for v in results[0]["variables"]] == ["A", "B"]

    def test_search_sub_criteria_includes_metrics(self, client, evaluator_headers, sample_standard):
        response = client.get(f"{BASE}/search/sub-criteria", params={"search": "Madurez"}, headers=evaluator_headers)

        results = response.json()
        assert len(results) == 1
        assert results[0]["criterion_name"] == "Fiabilidad"
        assert results[0]["metrics_count"] == 1
        assert results[0]["metrics"][0]["code"] == "REL-1"

    def test_search_criteria(self, client, evaluator_headers, sample_standard):
        response = client.get(f"{BASE}/search/criteria", params={"search": "fiab"}, headers=evaluator_headers)
        assert [c["name"] for c in response.json()] == ["Fiabilidad"]

    def test_search_skips_inactive(self, client, admin_headers, evaluator_headers, sample_standard):
        client.patch(
            f"{BASE}/standards/{sample_standard.standard.id}/state",
            json={"state": "inactive"},
            headers=admin_headers,
        )

        response = client.get(f"{BASE}/search/metrics", params={"search": "cobertura"}, headers=evaluator_headers)
        assert response.json() == []

    def test_search_term_too_short(self, client, evaluator_headers):
        response = client.get(f"{BASE}/search/criteria", params={"search": "a"}, headers=evaluator_headers)
        assert response.status_code == 422
