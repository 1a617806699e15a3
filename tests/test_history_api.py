"""Access-scoped movement history over HTTP."""

from datetime import date

import pytest

from store_core.app.models import AccessType, UserRole


@pytest.fixture
def site(make_project, make_material, post_inward, post_outward, post_transfer):
    p1 = make_project("PRJ-1", "Tower A")
    p2 = make_project("PRJ-2", "Tower B")
    p3 = make_project("HQ-3", "Head Office")
    cement = make_material("CEM-01", "Cement", unit="BAG")

    post_inward(p1, [(cement, 100, 80)], entry_date=date(2024, 1, 5), code="INW-A")
    post_inward(p1, [(cement, None, 5)], entry_date=date(2024, 2, 5), code="INW-B")
    post_inward(p2, [(cement, 10, 10)], entry_date=date(2024, 3, 5), code="INW-C")
    post_outward(p1, [(cement, 30)], issue_date=date(2024, 1, 15), code="OUT-A")
    post_transfer(p1, p2, [(cement, 10)], transfer_date=date(2024, 1, 20), code="TRF-A")
    post_transfer(p3, p1, [(cement, 2)], transfer_date=date(2024, 1, 25), code="TRF-B")
    return {"p1": p1, "p2": p2, "p3": p3, "cement": cement}


@pytest.fixture
def p1_user(make_user, site):
    return make_user("site@example.com", projects=[site["p1"]])


class TestAuthentication:

    def test_missing_token_is_401(self, client):
        assert client.get("/api/history/inwards").status_code == 401

    def test_garbage_token_is_401(self, client):
        response = client.get("/api/history/inwards", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_inactive_user_is_401(self, client, make_user, auth_headers):
        user = make_user("gone@example.com", is_active=False)
        assert client.get("/api/history/inwards", headers=auth_headers(user)).status_code == 401


class TestInwardHistory:

    def test_all_access_sees_everything_newest_first(self, client, admin, site, auth_headers):
        body = client.get("/api/history/inwards", headers=auth_headers(admin)).json()
        assert [r["code"] for r in body["items"]] == ["INW-C", "INW-B", "INW-A"]
        assert body["totalItems"] == 3
        assert body["totalPages"] == 1
        assert body["extra"] == {}

    def test_assigned_projects_only(self, client, p1_user, auth_headers):
        body = client.get("/api/history/inwards", headers=auth_headers(p1_user)).json()
        assert [r["code"] for r in body["items"]] == ["INW-B", "INW-A"]

    def test_record_shape(self, client, p1_user, auth_headers):
        record = client.get("/api/history/inwards", headers=auth_headers(p1_user)).json()["items"][1]
        assert record["projectName"] == "Tower A"
        assert record["entryDate"] == "2024-01-05"
        assert record["items"] == 1
        assert record["lines"][0]["code"] == "CEM-01"
        assert record["lines"][0]["orderedQty"] == 100.0
        assert record["lines"][0]["receivedQty"] == 80.0

    def test_project_filter_outside_scope_is_empty(self, client, p1_user, site, auth_headers):
        response = client.get(
            "/api/history/inwards",
            params={"projectId": site["p2"].id},
            headers=auth_headers(p1_user),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["items"] == []
        assert body["totalItems"] == 0
        assert body["totalPages"] == 1

    def test_project_filter_within_scope(self, client, admin, site, auth_headers):
        body = client.get(
            "/api/history/inwards",
            params={"projectId": [site["p2"].id]},
            headers=auth_headers(admin),
        ).json()
        assert [r["code"] for r in body["items"]] == ["INW-C"]

    def test_user_without_projects_gets_empty_page(self, client, make_user, site, auth_headers):
        user = make_user("nobody@example.com", role=UserRole.USER, access_type=AccessType.PROJECTS)
        body = client.get("/api/history/inwards", headers=auth_headers(user)).json()
        assert body["items"] == []
        assert body["totalPages"] == 1

    def test_bad_paging_is_clamped(self, client, admin, site, auth_headers):
        body = client.get(
            "/api/history/inwards",
            params={"page": "0", "size": "abc"},
            headers=auth_headers(admin),
        ).json()
        assert body["page"] == 1
        assert body["size"] == 10

    def test_paging(self, client, admin, site, auth_headers):
        body = client.get(
            "/api/history/inwards", params={"page": 2, "size": 2}, headers=auth_headers(admin),
        ).json()
        assert [r["code"] for r in body["items"]] == ["INW-A"]
        assert body["totalPages"] == 2
        assert body["hasPrevious"] is True
        assert body["hasNext"] is False


class TestOutwardAndTransferHistory:

    def test_outwards(self, client, p1_user, auth_headers):
        body = client.get("/api/history/outwards", headers=auth_headers(p1_user)).json()
        assert [r["code"] for r in body["items"]] == ["OUT-A"]
        assert body["items"][0]["status"] == "OPEN"
        assert body["items"][0]["lines"][0]["issueQty"] == 30.0

    def test_transfers_visible_from_either_side(self, client, make_user, site, auth_headers):
        user = make_user("b@example.com", projects=[site["p2"]])
        body = client.get("/api/history/transfers", headers=auth_headers(user)).json()
        assert [r["code"] for r in body["items"]] == ["TRF-A"]

        body = client.get("/api/history/transfers", headers=auth_headers(make_user(
            "a@example.com", projects=[site["p1"]]))).json()
        assert [r["code"] for r in body["items"]] == ["TRF-B", "TRF-A"]
        assert body["items"][0]["fromProjectName"] == "Head Office"
        assert body["items"][0]["toProjectName"] == "Tower A"


class TestDetail:

    def test_visible_record(self, client, p1_user, site, auth_headers):
        listing = client.get("/api/history/outwards", headers=auth_headers(p1_user)).json()
        record_id = listing["items"][0]["id"]
        response = client.get(f"/api/history/outwards/{record_id}", headers=auth_headers(p1_user))
        assert response.status_code == 200
        assert response.json()["code"] == "OUT-A"

    def test_invisible_record_is_404(self, client, admin, make_user, site, auth_headers):
        other = make_user("other@example.com", projects=[site["p3"]])
        listing = client.get("/api/history/inwards", headers=auth_headers(admin)).json()
        record_id = listing["items"][0]["id"]
        assert client.get(f"/api/history/inwards/{record_id}", headers=auth_headers(other)).status_code == 404

    def test_missing_record_is_404(self, client, admin, auth_headers):
        assert client.get("/api/history/transfers/999", headers=auth_headers(admin)).status_code == 404
