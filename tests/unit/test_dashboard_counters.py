from __future__ import annotations

import pytest

from achievement_stats.aggregator import (
    StatisticsService,
    get_approval_stats,
    get_pending_count,
    get_teacher_dashboard_stats,
)
from tests.conftest import OTHER_TEACHER, STUDENT_A, TEACHER

EXPECTED_PENDING = 2
EXPECTED_PUBLISHED = 2
EXPECTED_STUDENTS = 2
EXPECTED_PROJECTS = 5


@pytest.mark.asyncio
async def test_dashboard_counters(portal_gateway) -> None:
    counters = await get_teacher_dashboard_stats(portal_gateway, TEACHER)

    assert counters.pending_count == EXPECTED_PENDING
    assert counters.published_count == EXPECTED_PUBLISHED
    assert counters.student_count == EXPECTED_STUDENTS
    assert counters.project_count == EXPECTED_PROJECTS
    assert portal_gateway.calls == ["achievements"] * 4


@pytest.mark.asyncio
async def test_pending_follows_instructor_and_published_follows_publisher(make_gateway) -> None:
    gateway = make_gateway(
        {
            "achievements": [
                # supervised by T, published by a student
                {"id": "1", "publisher_id": "s1", "instructor_id": "T", "status": 1},
                {"id": "2", "publisher_id": "s1", "instructor_id": "T", "status": 2},
                {"id": "3", "publisher_id": "s2", "instructor_id": "T", "status": "approved"},
                # published by T, supervised by someone else
                {"id": "4", "publisher_id": "T", "instructor_id": "X", "status": "approved"},
                {"id": "5", "publisher_id": "T", "instructor_id": "X", "status": "pending"},
            ]
        }
    )

    counters = await get_teacher_dashboard_stats(gateway, "T")

    assert counters.pending_count == 1
    assert counters.published_count == 1
    assert counters.student_count == 2
    assert counters.project_count == 3


@pytest.mark.asyncio
async def test_dashboard_counters_all_zero_on_any_failure(portal_gateway) -> None:
    portal_gateway.fail_table("achievements")

    counters = await get_teacher_dashboard_stats(portal_gateway, TEACHER)

    assert counters.to_payload() == {
        "pendingCount": 0,
        "publishedCount": 0,
        "studentCount": 0,
        "projectCount": 0,
    }


@pytest.mark.asyncio
async def test_dashboard_counters_missing_identity(portal_gateway) -> None:
    counters = await get_teacher_dashboard_stats(portal_gateway, "")
    assert counters.project_count == 0
    assert portal_gateway.calls == []


@pytest.mark.asyncio
async def test_approval_stats(portal_gateway) -> None:
    stats = await get_approval_stats(portal_gateway, OTHER_TEACHER)

    # a4 rejected, t1/t2 approved, t3 pending
    assert stats.pending_count == 1
    assert stats.approved_count == 2
    assert stats.rejected_count == 1
    assert stats.total_count == 4


@pytest.mark.asyncio
async def test_approval_total_excludes_drafts(make_gateway) -> None:
    gateway = make_gateway(
        {
            "achievements": [
                {"id": "1", "instructor_id": "T", "status": "draft"},
                {"id": "2", "instructor_id": "T", "status": 0},
                {"id": "3", "instructor_id": "T", "status": "rejected"},
            ]
        }
    )
    stats = await get_approval_stats(gateway, "T")
    assert stats.total_count == 1


@pytest.mark.asyncio
async def test_pending_count(portal_gateway, make_gateway) -> None:
    assert await get_pending_count(portal_gateway, TEACHER) == EXPECTED_PENDING
    assert await get_pending_count(make_gateway(failing_tables=["achievements"]), TEACHER) == 0
    assert await get_pending_count(portal_gateway, None) == 0


@pytest.mark.asyncio
async def test_service_binds_gateway(portal_gateway) -> None:
    service = StatisticsService(portal_gateway)

    student = await service.student(STUDENT_A)
    teacher = await service.teacher(TEACHER)
    bands = await service.teacher_students(TEACHER)
    counters = await service.dashboard(TEACHER)

    assert student.student_stats.total_projects == 4
    assert teacher.publication_by_type.data == [0, 1, 1]
    assert bands.labels == teacher.student_publications.labels
    assert counters.pending_count == EXPECTED_PENDING
    assert (await service.pending_count(TEACHER)) == EXPECTED_PENDING
    assert (await service.approvals(TEACHER)).total_count == EXPECTED_PROJECTS
    assert (await service.publications(STUDENT_A))["Report"] == 2
    assert len(await service.score_trend(STUDENT_A)) == 3
