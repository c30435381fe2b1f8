"""
End-to-end API tests - register, submit profile, MIS review, approval gate.
"""

import asyncio
import inspect
import re
from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from conftest import PASSWORD, fetch_candidate, insert_candidate, register_and_login
from jobportal.api.routes import mis_routes
from jobportal.core.auth import get_current_candidate, get_current_employer, get_current_mis
from jobportal.core.exceptions import Unauthorized
from jobportal.services.approval_service import get_approval_service
from jobportal.services.membership_service import MembershipNumberAllocator

MEMBERSHIP_RE = re.compile(r"^JG-\d{2}-\d{6}$")


def create_candidate_profile(client, headers):
    response = client.post("/api/candidates/profile", headers=headers, json={
        "first_name": "Nadia", "last_name": "Perera", "industry": "Banking",
        "current_position": "Teller", "years_of_experience": 3
    })
    assert response.status_code == 201, response.text


def create_company(client, headers, brn="PV-1001"):
    response = client.post("/api/employers/company", headers=headers, json={
        "company_name": "Acme Finance", "business_registration_no": brn,
        "industry": "Finance", "first_name": "Ravi", "last_name": "Silva"
    })
    assert response.status_code == 201, response.text


class TestAuth:

    def test_register_login_me(self, client):
        headers = register_and_login(client, "cand@jobportal.io", "candidate")
        response = client.get("/api/auth/me", headers=headers)
        assert response.status_code == 200
        assert response.json()["role"] == "candidate"

    def test_duplicate_email_is_rejected(self, client):
        register_and_login(client, "dup@jobportal.io", "candidate")
        response = client.post("/api/auth/register", json={
            "email": "dup@jobportal.io", "password": PASSWORD, "confirm_password": PASSWORD, "role": "employer"
        })
        assert response.status_code == 409

    def test_passwords_must_match(self, client):
        response = client.post("/api/auth/register", json={
            "email": "x@jobportal.io", "password": PASSWORD, "confirm_password": "different1", "role": "candidate"
        })
        assert response.status_code == 422

    def test_mis_cannot_self_register(self, client):
        response = client.post("/api/auth/register", json={
            "email": "boss@jobportal.io", "password": PASSWORD, "confirm_password": PASSWORD, "role": "mis"
        })
        assert response.status_code == 422

    def test_wrong_password(self, client):
        register_and_login(client, "who@jobportal.io", "candidate")
        response = client.post("/api/auth/login", json={"email": "who@jobportal.io", "password": "nope-nope"})
        assert response.status_code == 401

    def test_missing_token(self, client):
        response = client.get("/api/access/check", params={"path": "/employer/jobs"})
        assert response.status_code in (401, 403)


class TestRoleDependencies:

    @pytest.mark.parametrize("dependency,role", [
        (get_current_mis, "candidate"),
        (get_current_candidate, "employer"),
        (get_current_employer, "mis"),
    ])
    def test_wrong_role_raises_unauthorized(self, dependency, role):
        user = {"user_id": 1, "email": "someone@jobportal.io", "role": role}
        with pytest.raises(Unauthorized):
            asyncio.run(dependency(user))

    def test_candidate_cannot_create_company(self, client):
        headers = register_and_login(client, "cand2@jobportal.io", "candidate")
        response = client.post("/api/employers/company", headers=headers, json={
            "company_name": "Nope", "business_registration_no": "PV-9", "first_name": "N", "last_name": "O"
        })
        assert response.status_code == 403
        assert response.json()["detail"] == "Only employer accounts can create company profiles"


class TestCandidateApprovalFlow:

    def test_pending_candidate_is_gated_until_approved(self, client, mis_headers):
        headers = register_and_login(client, "nadia@jobportal.io", "candidate")
        create_candidate_profile(client, headers)

        status = client.get("/api/candidates/approval-status", headers=headers).json()
        assert status["approval_status"] == "pending"
        assert status["membership_no"] is None

        check = client.get("/api/access/check", params={"path": "/candidate/jobs"}, headers=headers).json()
        assert check["restricted"] is True
        assert check["redirect_to"] == "/candidate/dashboard?info=approval_pending"

        candidates = client.get("/api/mis/candidates", params={"status": "pending"}, headers=mis_headers).json()
        assert len(candidates) == 1
        candidate_id = candidates[0]["candidate_id"]

        approved = client.post(f"/api/mis/candidates/{candidate_id}/approve", headers=mis_headers)
        assert approved.status_code == 200, approved.text
        membership_no = approved.json()["membership_no"]
        assert MEMBERSHIP_RE.match(membership_no)
        assert membership_no.endswith("-000001")

        status = client.get("/api/candidates/approval-status", headers=headers).json()
        assert status["approval_status"] == "approved"
        assert status["membership_no"] == membership_no
        assert status["message_seen"] is False

        check = client.get("/api/access/check", params={"path": "/candidate/jobs"}, headers=headers).json()
        assert check["restricted"] is False

        client.post("/api/candidates/approval-status/seen", headers=headers)
        status = client.get("/api/candidates/approval-status", headers=headers).json()
        assert status["message_seen"] is True

    def test_candidate_without_profile_counts_as_pending(self, client):
        headers = register_and_login(client, "new@jobportal.io", "candidate")
        check = client.get("/api/access/check", params={"path": "/candidate/applications"}, headers=headers).json()
        assert check["approval_status"] == "pending"
        assert check["restricted"] is True

    def test_rejection_and_resubmission(self, client, mis_headers):
        headers = register_and_login(client, "redo@jobportal.io", "candidate")
        create_candidate_profile(client, headers)
        candidate_id = client.get("/api/candidates/profile", headers=headers).json()["candidate_id"]

        response = client.post(f"/api/mis/candidates/{candidate_id}/reject", headers=mis_headers,
                               json={"reason": "Add your work history"})
        assert response.status_code == 200

        profile = client.get("/api/candidates/profile", headers=headers).json()
        assert profile["approval_status"] == "rejected"
        assert profile["rejection_reason"] == "Add your work history"

        response = client.put("/api/candidates/profile", headers=headers, json={"current_position": "Senior Teller"})
        assert response.json()["message"] == "Profile updated and resubmitted for approval"

        profile = client.get("/api/candidates/profile", headers=headers).json()
        assert profile["approval_status"] == "pending"
        assert profile["rejection_reason"] is None

    def test_approved_candidate_cannot_be_rejected(self, client, mis_headers):
        headers = register_and_login(client, "done@jobportal.io", "candidate")
        create_candidate_profile(client, headers)
        candidate_id = client.get("/api/candidates/profile", headers=headers).json()["candidate_id"]

        client.post(f"/api/mis/candidates/{candidate_id}/approve", headers=mis_headers)
        response = client.post(f"/api/mis/candidates/{candidate_id}/reject", headers=mis_headers, json={})

        assert response.status_code == 409

    def test_approve_unknown_candidate(self, client, mis_headers):
        response = client.post("/api/mis/candidates/777/approve", headers=mis_headers)
        assert response.status_code == 404

    def test_malformed_membership_number_aborts_approval(self, client, mis_headers):
        year = datetime.utcnow().year % 100
        insert_candidate("corrupt", "approved", f"JG-{year:02d}-9X0001")
        headers = register_and_login(client, "victim@jobportal.io", "candidate")
        create_candidate_profile(client, headers)
        candidate_id = client.get("/api/candidates/profile", headers=headers).json()["candidate_id"]

        response = client.post(f"/api/mis/candidates/{candidate_id}/approve", headers=mis_headers)

        assert response.status_code == 500
        assert "malformed" in response.json()["detail"]
        assert fetch_candidate(candidate_id)["approval_status"] == "pending"

    def test_only_mis_can_review(self, client):
        headers = register_and_login(client, "sneaky@jobportal.io", "candidate")
        response = client.get("/api/mis/candidates", headers=headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "MIS admins only"

    def test_store_failure_returns_503_and_keeps_pending(self, client, mis_headers, monkeypatch):
        class UnreachableStore(MembershipNumberAllocator):
            def find_last(self, db, prefix):
                raise OperationalError("SELECT membership_no", {}, Exception("server closed the connection"))

        monkeypatch.setattr(get_approval_service(), "allocator", UnreachableStore("JG"))
        headers = register_and_login(client, "offline@jobportal.io", "candidate")
        create_candidate_profile(client, headers)
        candidate_id = client.get("/api/candidates/profile", headers=headers).json()["candidate_id"]

        response = client.post(f"/api/mis/candidates/{candidate_id}/approve", headers=mis_headers)

        assert response.status_code == 503
        assert fetch_candidate(candidate_id)["approval_status"] == "pending"

    def test_review_endpoints_run_in_the_threadpool(self):
        for endpoint in (mis_routes.approve_candidate, mis_routes.reject_candidate,
                         mis_routes.approve_company, mis_routes.reject_company):
            assert not inspect.iscoroutinefunction(endpoint)


class TestEmployerApprovalFlow:

    def test_admin_management_is_gated_until_company_approved(self, client, mis_headers):
        headers = register_and_login(client, "owner@acme.io", "employer")
        create_company(client, headers)

        response = client.get("/api/employers/admins", headers=headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "approval_pending"

        check = client.get("/api/access/check", params={"path": "/employer/jobs/12"}, headers=headers).json()
        assert check["restricted"] is True
        assert check["redirect_to"] == "/employer/dashboard?info=approval_pending"

        check = client.get("/api/access/check", params={"path": "/employer/dashboard"}, headers=headers).json()
        assert check["restricted"] is False

        company_id = client.get("/api/employers/company", headers=headers).json()["company_id"]
        response = client.post(f"/api/mis/companies/{company_id}/approve", headers=mis_headers)
        assert response.status_code == 200
        assert response.json()["approval_status"] == "approved"

        response = client.get("/api/employers/admins", headers=headers)
        assert response.status_code == 200
        assert [a["is_super_admin"] for a in response.json()] == [True]

        response = client.post("/api/employers/admins", headers=headers, json={
            "email": "helper@acme.io", "password": PASSWORD, "first_name": "Ana", "last_name": "Dias"
        })
        assert response.status_code == 201
        assert len(client.get("/api/employers/admins", headers=headers).json()) == 2

    def test_rejected_company_banner_and_resubmission(self, client, mis_headers):
        headers = register_and_login(client, "owner@globex.io", "employer")
        create_company(client, headers, brn="PV-2002")
        company_id = client.get("/api/employers/company", headers=headers).json()["company_id"]

        client.post(f"/api/mis/companies/{company_id}/reject", headers=mis_headers, json={})

        status = client.get("/api/employers/approval-status", headers=headers).json()
        assert status["approval_status"] == "rejected"
        assert status["rejection_reason"] == "Profile needs improvement. Please update and resubmit."

        client.put("/api/employers/company", headers=headers, json={"website": "https://globex.io"})
        status = client.get("/api/employers/approval-status", headers=headers).json()
        assert status["approval_status"] == "pending"

    def test_duplicate_business_registration_number(self, client):
        create_company(client, register_and_login(client, "one@corp.io", "employer"), brn="PV-3003")
        response = client.post("/api/employers/company", headers=register_and_login(client, "two@corp.io", "employer"),
                               json={"company_name": "Copycat", "business_registration_no": "PV-3003",
                                     "first_name": "C", "last_name": "C"})
        assert response.status_code == 400


class TestRestrictionNotice:

    def test_notice_is_shown_once_and_url_is_cleaned(self, client):
        headers = register_and_login(client, "toast@acme.io", "employer")
        url = "/employer/dashboard?info=approval_pending&tab=overview"

        first = client.get("/api/access/notice", params={"url": url}, headers=headers).json()
        assert first["notification"]["title"] == "Access Restricted"
        assert first["clean_url"] == "/employer/dashboard?tab=overview"

        second = client.get("/api/access/notice", params={"url": url}, headers=headers).json()
        assert second["notification"] is None
        assert second["clean_url"] == "/employer/dashboard?tab=overview"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["database"] == "connected"
