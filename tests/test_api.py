"""
API Tests for Talent Map.

End-to-end flows through the REST API:
- Allocating, over-allocating and removing employees
- Project status sweep and on-hold confirmation
- Employee lifecycle and read-only rules
- Bench, dashboard, accounts, skills and board views

Run with:
    pytest tests/test_api.py -v
"""

from datetime import timedelta

from fastapi.testclient import TestClient
from sqlmodel import select

from talentmap.core.errors import BackendError
from talentmap.models.allocation import Allocation, AllocationStatus
from talentmap.models.employee import EmployeeStatus
from talentmap.models.project import ProjectStatus
from talentmap.models.transition import ProjectTransition
from talentmap.services.store import AllocationStore

API = "/api/v1"


def allocate(client, employee, project, percent, **extra):
    payload = {
        "employee_id": employee.id,
        "project_id": project.id,
        "allocation_percent": percent,
        "start_date": extra.pop("start_date", "2024-06-15"),
        **extra,
    }
    return client.post(f"{API}/allocations", json=payload)


# ============================================================================
# Health
# ============================================================================

class TestHealthEndpoint:

    def test_health_check(self, client: TestClient):
        response = client.get(f"{API}/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["components"] == {"database": "ok"}


# ============================================================================
# Allocation flow
# ============================================================================

class TestAllocationFlow:

    def test_allocate_then_overallocate(self, client, make_employee, make_project):
        jane = make_employee("Jane Doe")
        apollo, zeus = make_project("Apollo"), make_project("Zeus")

        response = allocate(client, jane, apollo, 60)
        assert response.status_code == 200
        assert response.json()["warning"] is None

        summary = client.get(f"{API}/employees/{jane.id}/utilization").json()
        assert summary["utilizationPercent"] == 60
        assert summary["classification"] == "partial"

        response = allocate(client, jane, zeus, 50)
        assert response.status_code == 200
        data = response.json()
        assert data["projected_utilization"] == 110
        assert data["warning"] == "Jane Doe will be overallocated (110%)"

        summary = client.get(f"{API}/employees/{jane.id}/utilization").json()
        assert summary["utilizationPercent"] == 110
        assert summary["classification"] == "overallocated"

    def test_duplicate_assignment_is_rejected(self, client, make_employee, make_project):
        jane, apollo = make_employee("Jane Doe"), make_project("Apollo")
        assert allocate(client, jane, apollo, 40).status_code == 200

        response = allocate(client, jane, apollo, 20)
        assert response.status_code == 409
        assert response.json()["detail"] == "Employee is already assigned to this project"

    def test_percent_out_of_range(self, client, make_employee, make_project):
        jane, apollo = make_employee("Jane Doe"), make_project("Apollo")
        assert allocate(client, jane, apollo, 101).status_code == 422
        assert allocate(client, jane, apollo, 0).status_code == 422

    def test_end_before_start(self, client, make_employee, make_project):
        jane, apollo = make_employee("Jane Doe"), make_project("Apollo")
        response = allocate(client, jane, apollo, 40, end_date="2024-06-01")
        assert response.status_code == 422

    def test_unknown_employee(self, client, make_project):
        apollo = make_project("Apollo")
        response = client.post(f"{API}/allocations", json={
            "employee_id": 999, "project_id": apollo.id,
            "allocation_percent": 50, "start_date": "2024-06-15",
        })
        assert response.status_code == 404
        assert response.json()["detail"] == "Employee not found"

    def test_removal_keeps_history(self, client, make_employee, make_project, make_allocation):
        jane, apollo = make_employee("Jane Doe"), make_project("Apollo")
        allocation = make_allocation(jane, apollo, 60)

        response = client.delete(
            f"{API}/allocations/{allocation.id}",
            params={"remarks": "great performer", "manager_name": "Alex"},
        )
        assert response.status_code == 200
        assert response.json()["transition"]["remarks"] == "great performer"

        assert client.get(f"{API}/allocations/employee/{jane.id}").json() == []
        history = client.get(f"{API}/employees/{jane.id}/history").json()
        assert len(history) == 1
        assert history[0]["project_name"] == "Apollo"
        assert history[0]["remarks"] == "great performer"
        assert history[0]["duration_days"] == 7

    def test_transition_comments(self, client, make_employee, make_project, make_allocation):
        jane, apollo = make_employee("Jane Doe"), make_project("Apollo")
        allocation = make_allocation(jane, apollo, 60)

        transition = client.post(
            f"{API}/transitions/allocations/{allocation.id}", json={"remarks": "rolled off"},
        ).json()["transition"]
        comment = client.post(
            f"{API}/transitions/{transition['id']}/comments",
            json={"comment_by": "Alex", "comment_text": "Strong on Kafka"},
        )
        assert comment.status_code == 200

        history = client.get(f"{API}/employees/{jane.id}/history").json()
        assert [c["comment_text"] for c in history[0]["comments"]] == ["Strong on Kafka"]

        assert client.delete(f"{API}/transitions/comments/{comment.json()['id']}").status_code == 200
        history = client.get(f"{API}/employees/{jane.id}/history").json()
        assert history[0]["comments"] == []

    def test_update_allocation(self, client, make_employee, make_project, make_allocation):
        jane, apollo = make_employee("Jane Doe"), make_project("Apollo")
        allocation = make_allocation(jane, apollo, 60)

        response = client.patch(f"{API}/allocations/{allocation.id}", json={"status": "On Hold"})
        assert response.status_code == 200
        assert response.json()["effective_percent"] == 0

    def test_on_hold_allocation_does_not_count_in_projection(self, client, make_employee, make_project, make_allocation):
        jane = make_employee("Jane Doe")
        apollo, zeus = make_project("Apollo"), make_project("Zeus")
        make_allocation(jane, apollo, 80)

        response = allocate(client, jane, zeus, 60, status="On Hold")

        assert response.status_code == 200
        data = response.json()
        assert data["projected_utilization"] == 80
        assert data["warning"] is None
        assert data["allocation"]["status"] == "On Hold"
        assert data["allocation"]["effective_percent"] == 0
        summary = client.get(f"{API}/employees/{jane.id}/utilization").json()
        assert summary["utilizationPercent"] == data["projected_utilization"]

    def test_retried_removal_records_history_once(self, client, session, make_employee, make_project, make_allocation, monkeypatch):
        jane, apollo = make_employee("Jane Doe"), make_project("Apollo")
        allocation = make_allocation(jane, apollo, 60)

        real_delete = AllocationStore.delete_allocation
        calls = {"n": 0}

        def flaky_delete(self, allocation):
            calls["n"] += 1
            if calls["n"] == 1:
                raise BackendError("lock wait timeout exceeded")
            real_delete(self, allocation)

        monkeypatch.setattr(AllocationStore, "delete_allocation", flaky_delete)
        url = f"{API}/allocations/{allocation.id}"

        first = client.delete(url, params={"remarks": "rolled off"})
        assert first.status_code == 502
        assert first.json()["detail"] == "lock wait timeout exceeded"

        second = client.delete(url, params={"remarks": "rolled off"})
        assert second.status_code == 200
        assert second.json()["history_error"] is None

        transitions = session.exec(select(ProjectTransition)).all()
        assert len(transitions) == 1
        assert second.json()["transition"]["id"] == transitions[0].id
        assert session.get(Allocation, allocation.id) is None

    def test_save_draft_list(self, client, make_employee, make_project, make_allocation):
        jane = make_employee("Jane Doe")
        apollo, zeus = make_project("Apollo"), make_project("Zeus")
        make_allocation(jane, apollo, 60)

        response = client.put(f"{API}/allocations/employee/{jane.id}", json=[
            {"project_id": zeus.id, "allocation_percent": 30, "start_date": "2024-06-15"},
        ])
        assert response.status_code == 200
        assert [(a["project_name"], a["allocation_percent"]) for a in response.json()] == [("Zeus", 30)]
        assert len(client.get(f"{API}/employees/{jane.id}/history").json()) == 1


# ============================================================================
# Projects
# ============================================================================

class TestProjects:

    def test_sweep_activates_due_proposals(self, client, today, make_project):
        due = make_project("Due", ProjectStatus.proposal, start_date=today - timedelta(days=1))
        later = make_project("Later", ProjectStatus.proposal, start_date=today + timedelta(days=1))

        projects = {p["id"]: p for p in client.get(f"{API}/projects").json()}

        assert projects[due.id]["status"] == "active"
        assert projects[later.id]["status"] == "proposal"

    def test_new_proposal_starts_in_the_future(self, client):
        response = client.post(f"{API}/projects", json={
            "name": "Pitch", "status": "proposal", "start_date": "2024-06-01",
        })
        assert response.status_code == 200
        assert response.json()["start_date"] == "2024-06-16"

    def test_team_size_and_progress(self, client, today, make_employee, make_project, make_allocation):
        apollo = make_project(
            "Apollo", start_date=today - timedelta(days=50), end_date=today + timedelta(days=50),
        )
        make_allocation(make_employee("Jane Doe"), apollo, 60)
        make_allocation(make_employee("Bob Roe"), apollo, 40)

        project = client.get(f"{API}/projects/{apollo.id}").json()
        assert project["team_size"] == 2
        assert project["progress"] == 50

    def test_on_hold_requires_confirmation(self, client, make_employee, make_project, make_allocation):
        jane, apollo = make_employee("Jane Doe"), make_project("Apollo")
        make_allocation(jane, apollo, 60)

        response = client.patch(f"{API}/projects/{apollo.id}", json={"status": "on-hold"})
        assert response.status_code == 409
        assert "confirm=true" in response.json()["detail"]

        response = client.patch(f"{API}/projects/{apollo.id}?confirm=true", json={"status": "on-hold"})
        assert response.status_code == 200
        assert response.json()["status"] == "on-hold"
        assert client.get(f"{API}/employees/{jane.id}/utilization").json()["utilizationPercent"] == 0

        client.patch(f"{API}/projects/{apollo.id}", json={"status": "active"})
        assert client.get(f"{API}/employees/{jane.id}/utilization").json()["utilizationPercent"] == 60

    def test_delete_in_use_project(self, client, make_employee, make_project, make_allocation):
        apollo = make_project("Apollo")
        make_allocation(make_employee("Jane Doe"), apollo, 60)
        assert client.delete(f"{API}/projects/{apollo.id}").status_code == 409

        empty = make_project("Empty")
        assert client.delete(f"{API}/projects/{empty.id}").status_code == 200


# ============================================================================
# Employees
# ============================================================================

class TestEmployees:

    def test_create_validates(self, client):
        assert client.post(f"{API}/employees", json={"name": "J", "email": "j@example.com"}).status_code == 422
        assert client.post(f"{API}/employees", json={"name": "Jane", "email": "not-an-email"}).status_code == 422
        response = client.post(f"{API}/employees", json={
            "name": "Jane Doe", "email": "jane@example.com", "code": "EMP-001", "performance_score": 8.5,
        })
        assert response.status_code == 200
        assert response.json()["status"] == "active"

        duplicate = client.post(f"{API}/employees", json={
            "name": "Jane Two", "email": "jane2@example.com", "code": "EMP-001",
        })
        assert duplicate.status_code == 400

    def test_update_rejects_code_of_another_employee(self, client, make_employee):
        make_employee("Jane Doe", code="EMP-001")
        bob = make_employee("Bob Roe", code="EMP-002")

        response = client.patch(f"{API}/employees/{bob.id}", json={"code": "EMP-001"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Employee with this code already exists."

        response = client.patch(f"{API}/employees/{bob.id}", json={"code": "EMP-002", "name": "Bob Rowe"})
        assert response.status_code == 200
        assert response.json()["name"] == "Bob Rowe"

    def test_on_hold_employee_is_read_only(self, client, make_employee):
        jane = make_employee("Jane Doe")

        response = client.patch(f"{API}/employees/{jane.id}/status", json={"status": "on-hold"})
        assert response.json()["on_hold_since"] == "2024-06-15"

        response = client.patch(f"{API}/employees/{jane.id}", json={"name": "Jane Smith"})
        assert response.status_code == 409

        client.patch(f"{API}/employees/{jane.id}/status", json={"status": "active"})
        response = client.patch(f"{API}/employees/{jane.id}", json={"name": "Jane Smith"})
        assert response.status_code == 200
        assert response.json()["name"] == "Jane Smith"

    def test_list_filters(self, client, make_employee, make_project, make_allocation):
        jane, bob = make_employee("Jane Doe"), make_employee("Bob Roe")
        make_allocation(jane, make_project("Apollo"), 90)

        names = [e["name"] for e in client.get(f"{API}/employees").json()]
        assert names == ["Bob Roe", "Jane Doe"]

        full = client.get(f"{API}/employees", params={"utilization_status": "full"}).json()
        assert [e["name"] for e in full] == ["Jane Doe"]
        assert full[0]["utilization"]["utilizationPercent"] == 90

        found = client.get(f"{API}/employees", params={"search": "bob"}).json()
        assert [e["name"] for e in found] == ["Bob Roe"]

    def test_archive(self, client, make_employee):
        jane = make_employee("Jane Doe")
        assert client.delete(f"{API}/employees/{jane.id}").status_code == 200
        assert client.get(f"{API}/employees").json() == []
        archived = client.get(f"{API}/employees", params={"status": "archived"}).json()
        assert [e["name"] for e in archived] == ["Jane Doe"]

    def test_bench_listing(self, client, today, make_employee, make_project, make_allocation):
        make_employee("Crisis Case", created_at=(today - timedelta(days=60)).isoformat())
        make_employee("New Joiner")
        busy = make_employee("Busy Bee")
        make_allocation(busy, make_project("Apollo"), 80)

        bench = client.get(f"{API}/employees/bench").json()

        assert [(b["name"], b["risk"]) for b in bench] == [
            ("Crisis Case", "Crisis"),
            ("New Joiner", "At Risk"),
        ]
        assert bench[0]["benchDays"] == 60
        assert bench[0]["severity"] == "destructive"

    def test_employee_detail(self, client, make_employee, make_project, make_allocation):
        jane = make_employee("Jane Doe")
        make_allocation(jane, make_project("Apollo"), 60)

        skill = client.post(f"{API}/skills", json={"name": "Python", "category": "Backend"}).json()
        client.post(f"{API}/skills/employees/{jane.id}", json={"skill_id": skill["id"], "proficiency": "expert"})
        client.post(f"{API}/skills/certifications/{jane.id}", json={"name": "AWS SA", "issuer": "Amazon"})

        detail = client.get(f"{API}/employees/{jane.id}").json()
        assert detail["utilization"]["utilizationPercent"] == 60
        assert detail["allocations"][0]["project_name"] == "Apollo"
        assert detail["skills"][0]["name"] == "Python"
        assert detail["certifications"][0]["name"] == "AWS SA"


# ============================================================================
# Skills
# ============================================================================

class TestSkills:

    def test_skill_counts_and_availability(self, client, make_employee, make_project, make_allocation):
        jane, bob = make_employee("Jane Doe"), make_employee("Bob Roe")
        make_allocation(jane, make_project("Apollo"), 100)
        skill = client.post(f"{API}/skills", json={"name": "Go"}).json()
        for employee in (jane, bob):
            client.post(f"{API}/skills/employees/{employee.id}", json={"skill_id": skill["id"]})

        skills = client.get(f"{API}/skills").json()
        assert skills[0]["employee_count"] == 2
        assert skills[0]["gap"] is True

        holders = client.get(f"{API}/skills/{skill['id']}/employees").json()
        assert [(h["name"], h["available"]) for h in holders] == [("Bob Roe", True), ("Jane Doe", False)]

    def test_duplicate_skill_link(self, client, make_employee):
        jane = make_employee("Jane Doe")
        skill = client.post(f"{API}/skills", json={"name": "Rust"}).json()
        url = f"{API}/skills/employees/{jane.id}"
        assert client.post(url, json={"skill_id": skill["id"]}).status_code == 200
        assert client.post(url, json={"skill_id": skill["id"]}).status_code == 400


# ============================================================================
# Dashboard and accounts
# ============================================================================

class TestDashboard:

    def test_kpis(self, client, make_employee, make_project, make_allocation):
        jane = make_employee("Jane Doe")
        make_employee("Bob Roe")
        make_allocation(jane, make_project("Apollo"), 80)
        make_project("Pitch", ProjectStatus.proposal, start_date=None)

        kpis = client.get(f"{API}/dashboard/kpis").json()
        assert kpis == {
            "totalEmployees": 2,
            "benchCount": 1,
            "benchPercentage": 50,
            "activeProjects": 1,
            "alertsCount": 1,
        }

    def test_resource_distribution(self, client, entity, make_employee, make_project, make_allocation):
        apollo = make_project("Apollo")
        make_allocation(make_employee("Jane Doe", entity_id=entity.id), apollo, 60)
        make_allocation(make_employee("Bob Roe", entity_id=entity.id), apollo, 100)
        make_employee("Ann Poe", entity_id=entity.id)

        rows = client.get(f"{API}/dashboard/resource-distribution").json()
        assert rows == [{
            "entity": "Acme Digital", "fullyUtilized": 1, "partiallyUtilized": 1, "available": 1,
        }]

    def test_upcoming_releases(self, client, today, make_employee, make_project, make_allocation):
        apollo = make_project("Apollo")
        make_allocation(make_employee("Jane Doe"), apollo, 60, end_date=today + timedelta(days=5))
        make_allocation(make_employee("Bob Roe"), apollo, 60, end_date=today + timedelta(days=30))

        releases = client.get(f"{API}/dashboard/upcoming-releases").json()
        assert [(r["employee"], r["endDate"]) for r in releases] == [("Jane Doe", "2024-06-20")]


class TestAccounts:

    def test_account_metrics(self, client, session, make_employee, make_project, make_allocation):
        account = client.post(f"{API}/accounts", json={"name": "Globex", "zone": "EMEA"}).json()
        apollo = make_project("Apollo", account_id=account["id"])
        make_project("Old", ProjectStatus.completed, account_id=account["id"])
        jane = make_employee("Jane Doe")
        make_allocation(jane, apollo, 60)
        make_allocation(make_employee("Bob Roe"), apollo, 40)

        metrics = client.get(f"{API}/accounts/{account['id']}").json()["metrics"]
        assert metrics == {"active_projects": 1, "utilized_resources": 2, "average_allocation": 50.0}

        assert client.delete(f"{API}/accounts/{account['id']}").status_code == 200
        session.refresh(apollo)
        assert apollo.account_id is None


# ============================================================================
# Board
# ============================================================================

class TestBoardEndpoints:

    def test_drop_then_confirm(self, client, make_employee, make_project, make_allocation):
        jane = make_employee("Jane Doe")
        apollo, zeus = make_project("Apollo"), make_project("Zeus")
        make_allocation(jane, zeus, 70)

        drop = client.post(f"{API}/board/drop", json={"employee_id": jane.id, "project_id": apollo.id}).json()
        assert drop["outcome"] == "assignment_pending"
        assert drop["assignment"]["allocation_percent"] == 30

        result = client.post(f"{API}/board/assignments", json={
            "employee_id": jane.id, "project_id": apollo.id, "allocation_percent": 30,
        })
        assert result.status_code == 200
        assert result.json()["projected_utilization"] == 100

        duplicate = client.post(f"{API}/board/drop", json={"employee_id": jane.id, "project_id": apollo.id}).json()
        assert duplicate["outcome"] == "duplicate"

    def test_move_between_projects(self, client, session, make_employee, make_project, make_allocation):
        jane = make_employee("Jane Doe")
        apollo, zeus = make_project("Apollo"), make_project("Zeus")
        allocation = make_allocation(jane, apollo, 70)

        response = client.post(f"{API}/board/removals", json={
            "allocation_id": allocation.id, "target_project_id": zeus.id, "remarks": "moved",
        })
        assert response.status_code == 200
        assert response.json()["next_assignment"]["project_id"] == zeus.id
        assert session.exec(select(Allocation)).all() == []

    def test_snapshot_and_quick_view(self, client, make_employee, make_project, make_allocation):
        jane = make_employee("Jane Doe")
        apollo = make_project("Apollo")
        make_allocation(jane, apollo, 70, status=AllocationStatus.planned)

        snapshot = client.get(f"{API}/board").json()
        assert snapshot["projects"][0]["members"][0]["status"] == "Planned"

        view = client.get(f"{API}/board/employees/{jane.id}").json()
        assert view["project_ids"] == [apollo.id]
        assert view["utilization"]["utilizationPercent"] == 70

    def test_archived_employee_cannot_be_assigned(self, client, make_employee, make_project):
        ghost = make_employee("Ghost Writer", status=EmployeeStatus.archived)
        apollo = make_project("Apollo")
        response = client.post(f"{API}/board/assignments", json={
            "employee_id": ghost.id, "project_id": apollo.id, "allocation_percent": 50,
        })
        assert response.status_code == 409
