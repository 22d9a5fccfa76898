"""
Tests for task endpoints (/projects/{id}/tasks, /tasks).

Tests cover:
- Adding tasks with and without due dates
- Partial task updates scoped by project and membership
- Task deletion, including the vacuous-success case
- Listing tasks assigned to the caller
"""

import logging

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import models
from tests.conftest import task_ids

logger = logging.getLogger(__name__)


# ============== Add ==============


def test_add_task_without_due_date(client: TestClient, project: models.Project, alice_headers: dict):
    response = client.post(
        f"/projects/{project.id}/tasks",
        json={"title": "test3", "description": "Third"},
        headers=alice_headers,
    )

    assert response.status_code == 201
    task = response.json()["task"]
    assert task["title"] == "test3"
    assert task["description"] == "Third"
    assert task["due_date"] == ""
    assert task["assigned_to"] == []
    assert len(task["created"]) == 10


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2030-01-15", "2030-01-15"),
        ("2030-01-15T10:30:00Z", "2030-01-15"),
    ],
)
def test_add_task_with_due_date(
    client: TestClient, project: models.Project, alice_headers: dict, raw: str, expected: str
):
    response = client.post(
        f"/projects/{project.id}/tasks",
        json={"title": "Dated", "description": "Has a deadline", "due_date": raw},
        headers=alice_headers,
    )

    assert response.status_code == 201
    assert response.json()["task"]["due_date"] == expected


def test_add_task_invalid_due_date(client: TestClient, project: models.Project, alice_headers: dict):
    response = client.post(
        f"/projects/{project.id}/tasks",
        json={"title": "Dated", "description": "x", "due_date": "next tuesday"},
        headers=alice_headers,
    )

    assert response.status_code == 400


def test_add_task_missing_description(client: TestClient, project: models.Project, alice_headers: dict):
    response = client.post(f"/projects/{project.id}/tasks", json={"title": "Only"}, headers=alice_headers)

    assert response.status_code == 400


def test_add_task_by_non_member_inserts_nothing(
    client: TestClient, test_db: Session, project: models.Project, bob_headers: dict
):
    project_id = project.id

    response = client.post(
        f"/projects/{project_id}/tasks",
        json={"title": "Sneaky", "description": "x"},
        headers=bob_headers,
    )

    assert response.status_code == 400
    assert test_db.query(models.Task).filter(models.Task.project_id == project_id).count() == 2


def test_added_task_visible_in_detail(client: TestClient, project: models.Project, alice_headers: dict):
    client.post(
        f"/projects/{project.id}/tasks",
        json={"title": "Fresh", "description": "New"},
        headers=alice_headers,
    )

    tasks = client.get(f"/projects/{project.id}", headers=alice_headers).json()["project"]["tasks"]

    assert tasks[-1]["title"] == "Fresh"
    assert tasks[-1]["assigned_to"] == []
    assert tasks[-1]["due_date"] == ""


# ============== Update ==============


def test_update_task_title_only(client: TestClient, project: models.Project, alice_headers: dict):
    first_id = task_ids(project)[0]

    response = client.put(
        f"/projects/{project.id}/tasks/{first_id}",
        json={"title": "Renamed"},
        headers=alice_headers,
    )

    assert response.status_code == 200
    task = response.json()["task"]
    assert task["id"] == first_id
    assert task["title"] == "Renamed"
    assert task["description"] == "This is a test"


def test_update_task_due_date(client: TestClient, project: models.Project, alice_headers: dict):
    first_id = task_ids(project)[0]

    response = client.put(
        f"/projects/{project.id}/tasks/{first_id}",
        json={"due_date": "2031-06-30"},
        headers=alice_headers,
    )

    assert response.status_code == 200
    assert response.json()["task"]["due_date"] == "2031-06-30"
    assert response.json()["task"]["title"] == "test1"


def test_update_task_without_fields(client: TestClient, project: models.Project, alice_headers: dict):
    first_id = task_ids(project)[0]

    response = client.put(f"/projects/{project.id}/tasks/{first_id}", json={}, headers=alice_headers)

    assert response.status_code == 400


def test_update_task_from_another_project(
    client: TestClient,
    project: models.Project,
    shared_project: models.Project,
    alice_headers: dict,
):
    foreign_task = task_ids(shared_project)[0]

    response = client.put(
        f"/projects/{project.id}/tasks/{foreign_task}",
        json={"title": "Crossed"},
        headers=alice_headers,
    )

    assert response.status_code == 400


def test_update_task_by_non_member(
    client: TestClient, test_db: Session, project: models.Project, bob_headers: dict
):
    first_id = task_ids(project)[0]

    response = client.put(
        f"/projects/{project.id}/tasks/{first_id}",
        json={"title": "Hijacked"},
        headers=bob_headers,
    )

    assert response.status_code == 400
    stored = test_db.query(models.Task).populate_existing().filter(models.Task.id == first_id).one()
    assert stored.title == "test1"


# ============== Delete ==============


def test_delete_task_returns_remaining(client: TestClient, project: models.Project, alice_headers: dict):
    first_id, second_id = task_ids(project)

    response = client.delete(f"/projects/{project.id}/tasks/{first_id}", headers=alice_headers)

    assert response.status_code == 200
    assert [t["id"] for t in response.json()["tasks"]] == [second_id]


def test_delete_task_not_in_project_is_vacuous_success(
    client: TestClient,
    project: models.Project,
    shared_project: models.Project,
    alice_headers: dict,
):
    own_ids = task_ids(project)
    foreign_task = task_ids(shared_project)[0]

    response = client.delete(f"/projects/{project.id}/tasks/{foreign_task}", headers=alice_headers)

    assert response.status_code == 200
    assert [t["id"] for t in response.json()["tasks"]] == own_ids
    # The other project's task is untouched
    shared_tasks = client.get(f"/projects/{shared_project.id}", headers=alice_headers).json()["project"]["tasks"]
    assert [t["id"] for t in shared_tasks] == [foreign_task]
    logger.info("✓ Deleting a foreign task id leaves both projects unchanged")


def test_delete_task_by_non_member(
    client: TestClient, test_db: Session, project: models.Project, bob_headers: dict
):
    first_id = task_ids(project)[0]

    response = client.delete(f"/projects/{project.id}/tasks/{first_id}", headers=bob_headers)

    assert response.status_code == 400
    assert "tasks" not in response.json()
    assert test_db.query(models.Task).filter(models.Task.id == first_id).count() == 1


# ============== Assigned to me ==============


def test_list_assigned_tasks_empty(client: TestClient, alice_headers: dict):
    response = client.get("/tasks", headers=alice_headers)

    assert response.status_code == 200
    assert response.json() == {"tasks": []}


def test_list_assigned_tasks_across_projects(
    client: TestClient,
    test_db: Session,
    alice: models.User,
    bob: models.User,
    project: models.Project,
    shared_project: models.Project,
    bob_headers: dict,
):
    own_task = project.tasks[1]
    shared_task = shared_project.tasks[0]
    test_db.add(models.TaskAssignee(task_id=own_task.id, user_id=bob.id))
    test_db.add(models.TaskAssignee(task_id=shared_task.id, user_id=bob.id))
    test_db.add(models.TaskAssignee(task_id=shared_task.id, user_id=alice.id))
    test_db.commit()

    tasks = client.get("/tasks", headers=bob_headers).json()["tasks"]

    assert [(t["project_id"], t["title"]) for t in tasks] == [
        (project.id, "test2"),
        (shared_project.id, "test3"),
    ]
    assert tasks[1]["assigned_to"] == [
        {"name": "Bob Baker", "email": "bob@test.com"},
        {"name": "Alice Anders", "email": "alice@test.com"},
    ]
