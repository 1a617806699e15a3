"""Posting movement documents and closing outward registers."""

import pytest


@pytest.fixture
def setup(make_project, make_material, make_user):
    p1 = make_project("PRJ-1", "Tower A", site="North")
    p2 = make_project("PRJ-2", "Tower B")
    cement = make_material("CEM-01", "Cement", unit="BAG")
    user = make_user("site@example.com", projects=[p1])
    return {"p1": p1, "p2": p2, "cement": cement, "user": user}


def _ledger_row(client, headers, project_code, material_code):
    body = client.get("/api/ledger", params={"size": 100}, headers=headers).json()
    for row in body["items"]:
        if row["projectCode"] == project_code and row["code"] == material_code:
            return row
    return None


class TestInward:

    def test_post_and_ledger(self, client, setup, auth_headers):
        headers = auth_headers(setup["user"])
        response = client.post(
            "/api/inwards",
            json={
                "projectId": setup["p1"].id,
                "entryDate": "2024-04-01",
                "supplierName": "ACC Ltd",
                "lines": [{"materialId": setup["cement"].id, "orderedQty": 100, "receivedQty": 80}],
            },
            headers=headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["code"] == f"INW-{body['id']:06d}"
        assert body["lines"][0]["receivedQty"] == 80.0

        row = _ledger_row(client, headers, "PRJ-1", "CEM-01")
        assert row["orderedQty"] == 100.0
        assert row["balanceQty"] == 80.0

    def test_explicit_code_and_default_date(self, client, setup, auth_headers):
        response = client.post(
            "/api/inwards",
            json={"projectId": setup["p1"].id, "code": "GRN-77",
                  "lines": [{"materialId": setup["cement"].id, "receivedQty": "2.5"}]},
            headers=auth_headers(setup["user"]),
        )
        assert response.status_code == 201
        assert response.json()["code"] == "GRN-77"
        assert response.json()["entryDate"] is not None
        assert response.json()["lines"][0]["orderedQty"] == 0.0

    def test_invisible_project_is_403(self, client, setup, auth_headers):
        response = client.post(
            "/api/inwards",
            json={"projectId": setup["p2"].id, "lines": [{"materialId": setup["cement"].id, "receivedQty": 1}]},
            headers=auth_headers(setup["user"]),
        )
        assert response.status_code == 403

    def test_unknown_material_is_404(self, client, setup, auth_headers):
        response = client.post(
            "/api/inwards",
            json={"projectId": setup["p1"].id, "lines": [{"materialId": 999, "receivedQty": 1}]},
            headers=auth_headers(setup["user"]),
        )
        assert response.status_code == 404

    def test_empty_lines_rejected(self, client, setup, auth_headers):
        response = client.post(
            "/api/inwards", json={"projectId": setup["p1"].id, "lines": []},
            headers=auth_headers(setup["user"]),
        )
        assert response.status_code == 422

    def test_negative_quantity_rejected(self, client, setup, auth_headers):
        response = client.post(
            "/api/inwards",
            json={"projectId": setup["p1"].id, "lines": [{"materialId": setup["cement"].id, "receivedQty": -1}]},
            headers=auth_headers(setup["user"]),
        )
        assert response.status_code == 422


class TestOutward:

    def test_post_and_close(self, client, setup, auth_headers):
        headers = auth_headers(setup["user"])
        response = client.post(
            "/api/outwards",
            json={"projectId": setup["p1"].id, "date": "2024-04-02", "issueTo": "Contractor",
                  "lines": [{"materialId": setup["cement"].id, "issueQty": 30}]},
            headers=headers,
        )
        assert response.status_code == 201
        register = response.json()
        assert register["status"] == "OPEN"
        assert register["code"].startswith("OUT-")

        response = client.put(
            f"/api/outwards/{register['id']}/close", json={"closeDate": "2024-04-30"}, headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "CLOSED"
        assert response.json()["closeDate"] == "2024-04-30"

        # closing twice is an invalid operation
        response = client.put(f"/api/outwards/{register['id']}/close", headers=headers)
        assert response.status_code == 400

        # closing does not touch quantities
        assert _ledger_row(client, headers, "PRJ-1", "CEM-01")["issuedQty"] == 30.0

    def test_close_unknown_register_is_404(self, client, setup, auth_headers):
        response = client.put("/api/outwards/999/close", headers=auth_headers(setup["user"]))
        assert response.status_code == 404

    def test_close_invisible_register_is_403(self, client, setup, make_user, auth_headers):
        response = client.post(
            "/api/outwards",
            json={"projectId": setup["p1"].id, "lines": [{"materialId": setup["cement"].id, "issueQty": 1}]},
            headers=auth_headers(setup["user"]),
        )
        outsider = make_user("out@example.com", projects=[setup["p2"]])
        response = client.put(f"/api/outwards/{response.json()['id']}/close", headers=auth_headers(outsider))
        assert response.status_code == 403


class TestTransfer:

    def test_transfer_updates_both_projects(self, client, setup, admin, auth_headers):
        headers = auth_headers(setup["user"])
        client.post(
            "/api/inwards",
            json={"projectId": setup["p1"].id, "lines": [{"materialId": setup["cement"].id, "receivedQty": 50}]},
            headers=headers,
        )
        response = client.post(
            "/api/transfers",
            json={"fromProjectId": setup["p1"].id, "toProjectId": setup["p2"].id,
                  "transferDate": "2024-04-03", "remarks": "shortfall",
                  "lines": [{"materialId": setup["cement"].id, "transferQty": 10}]},
            headers=headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["code"].startswith("TRF-")
        assert body["toProjectName"] == "Tower B"

        admin_headers = auth_headers(admin)
        assert _ledger_row(client, admin_headers, "PRJ-1", "CEM-01")["balanceQty"] == 40.0
        assert _ledger_row(client, admin_headers, "PRJ-2", "CEM-01")["balanceQty"] == 10.0

    def test_source_must_be_visible(self, client, setup, auth_headers):
        response = client.post(
            "/api/transfers",
            json={"fromProjectId": setup["p2"].id, "toProjectId": setup["p1"].id,
                  "lines": [{"materialId": setup["cement"].id, "transferQty": 1}]},
            headers=auth_headers(setup["user"]),
        )
        assert response.status_code == 403

    def test_unknown_destination_is_404(self, client, setup, auth_headers):
        response = client.post(
            "/api/transfers",
            json={"fromProjectId": setup["p1"].id, "toProjectId": 999,
                  "lines": [{"materialId": setup["cement"].id, "transferQty": 1}]},
            headers=auth_headers(setup["user"]),
        )
        assert response.status_code == 404

    def test_same_project_and_site_rejected(self, client, setup, auth_headers):
        response = client.post(
            "/api/transfers",
            json={"fromProjectId": setup["p1"].id, "toProjectId": setup["p1"].id,
                  "lines": [{"materialId": setup["cement"].id, "transferQty": 1}]},
            headers=auth_headers(setup["user"]),
        )
        assert response.status_code == 400

    def test_same_project_between_sites_allowed(self, client, setup, auth_headers):
        response = client.post(
            "/api/transfers",
            json={"fromProjectId": setup["p1"].id, "fromSite": "North",
                  "toProjectId": setup["p1"].id, "toSite": "South",
                  "lines": [{"materialId": setup["cement"].id, "transferQty": 1}]},
            headers=auth_headers(setup["user"]),
        )
        assert response.status_code == 201
