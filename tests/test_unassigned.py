from datetime import timedelta

from app.domain.scheduling.schemas import JobStatus
from app.domain.scheduling.unassigned import build_unassigned_queue, job_priority
from factories import MONDAY, at, make_job

NOW = at(MONDAY, 8)


def test_priority_buckets():
    assert job_priority(make_job("a", at(MONDAY, 7), at(MONDAY, 9)), NOW) == "urgent"
    assert job_priority(make_job("b", at(MONDAY, 9, 59), at(MONDAY, 11)), NOW) == "urgent"
    assert job_priority(make_job("c", at(MONDAY, 10), at(MONDAY, 11)), NOW) == "today"
    tomorrow = MONDAY + timedelta(days=1)
    assert job_priority(make_job("d", at(tomorrow, 9), at(tomorrow, 10)), NOW) == "future"


def test_queue_only_holds_open_unassigned_jobs_soonest_first():
    jobs = [
        make_job("later", at(MONDAY, 15), at(MONDAY, 17, 30), estimated_value=120),
        make_job("soon", at(MONDAY, 9), at(MONDAY, 10)),
        make_job("assigned", at(MONDAY, 9), at(MONDAY, 10), ["w1"]),
        make_job("cancelled", at(MONDAY, 9), at(MONDAY, 10), status=JobStatus.CANCELLED),
        make_job("done", at(MONDAY, 9), at(MONDAY, 10), status=JobStatus.COMPLETED),
    ]

    queue = build_unassigned_queue(jobs, NOW)

    assert [item.id for item in queue] == ["soon", "later"]
    assert [item.priority for item in queue] == ["urgent", "today"]
    assert queue[1].durationHours == 2.5
    assert queue[1].estimatedValue == 120
