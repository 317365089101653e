"""
Capacity & utilization statistics for the provider calendar.

All functions are pure aggregations over a snapshot: calling them twice on
the same jobs and workers returns equal results.
"""

import logging
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Sequence

from .conflicts import ConflictReport, detect_conflicts
from .occupancy import OccupancyIndex
from .schemas import (
    DailyStats,
    Job,
    JobStatus,
    MonthlyStats,
    WeeklyStats,
    Worker,
    WorkerDay,
    WorkerUtilization,
    WorkerWeek,
)
from .time_windows import merge_intervals, round_half_up, round_int

logger = logging.getLogger(__name__)

STANDARD_DAY_HOURS = 8
WEEKEND_DAY_HOURS = 4
OVERBOOKED_THRESHOLD = 90
FULLY_BOOKED_THRESHOLD = 100
UNDERUTILIZED_THRESHOLD = 40
WORKING_DAYS_PER_MONTH = 22
WORKING_DAYS_PER_WEEK = 5

CENT = Decimal("0.01")


def utilization_percent(hours: float, capacity_hours: float) -> float:
    if capacity_hours <= 0:
        return 0.0
    return hours / capacity_hours * 100


def sum_money(values: Iterable[float]) -> float:
    """Sum currency amounts and round half up to the cent"""
    total = sum((Decimal(str(value)) for value in values), Decimal("0"))
    return float(total.quantize(CENT, rounding=ROUND_HALF_UP))


def _scheduled_hours(jobs: Sequence[Job]) -> float:
    return sum(job.duration_hours for job in jobs)


def _booked_hours(jobs: Sequence[Job]) -> float:
    """Hours covered by at least one job, overlaps counted once"""
    merged = merge_intervals((job.start_time, job.end_time) for job in jobs)
    return sum((end - start).total_seconds() for start, end in merged) / 3600


def _roster(index: OccupancyIndex, workers: Sequence[Worker]) -> List[str]:
    """Team members in their given order, then assigned ids missing from the team"""
    team_ids = [worker.id for worker in workers]
    known = set(team_ids)
    return team_ids + [worker_id for worker_id in index.worker_ids if worker_id not in known]


def _names(workers: Sequence[Worker]) -> Dict[str, str]:
    return {worker.id: worker.full_name for worker in workers}


def _worker_utilization(
    index: OccupancyIndex, report: ConflictReport, workers: Sequence[Worker]
) -> List[WorkerUtilization]:
    names = _names(workers)
    rows = []
    for worker_id in _roster(index, workers):
        jobs = index.jobs_for_worker(worker_id)
        hours = _scheduled_hours(jobs)
        percent = utilization_percent(hours, STANDARD_DAY_HOURS)
        rows.append(
            WorkerUtilization(
                workerId=worker_id,
                name=names.get(worker_id),
                scheduledHours=round_half_up(hours, 1),
                bookedHours=round_half_up(_booked_hours(jobs), 1),
                utilization=round_int(percent),
                jobCount=len(jobs),
                conflictCount=len(report.for_worker(worker_id)),
                isOverbooked=percent > OVERBOOKED_THRESHOLD,
                isUnderutilized=percent < UNDERUTILIZED_THRESHOLD,
            )
        )
    return rows


def compute_daily_stats(jobs: Sequence[Job], workers: Sequence[Worker], day: date) -> DailyStats:
    """Stats for the non-cancelled jobs starting on the given day"""
    index = OccupancyIndex.build(jobs, day, day + timedelta(days=1))
    selected = index.active_jobs()

    total_hours = _scheduled_hours(selected)
    active_workers = len(index.worker_ids)
    total_capacity = max(active_workers, len(workers)) * STANDARD_DAY_HOURS
    report = detect_conflicts(index)
    rows = _worker_utilization(index, report, workers)
    unassigned = len(index.unassigned_jobs())

    logger.debug(f"Daily stats for {day}: {len(selected)} jobs, {total_hours:.2f}h, {report.count} conflicts")

    return DailyStats(
        date=day,
        totalJobs=len(selected),
        assignedJobs=len(selected) - unassigned,
        totalHours=round_int(total_hours),
        totalCapacity=total_capacity,
        avgCapacityPercent=round_int(utilization_percent(total_hours, total_capacity)),
        activeWorkers=active_workers,
        unassignedJobs=unassigned,
        conflicts=report.count,
        conflictPairs=report.pairs,
        overbookedWorkers=sum(1 for row in rows if row.isOverbooked),
        underutilizedWorkers=sum(1 for row in rows if row.isUnderutilized),
        workerUtilization=rows,
    )


def week_bounds(week_start: date):
    """Monday-based week containing the given day"""
    monday = week_start - timedelta(days=week_start.weekday())
    return monday, monday + timedelta(days=6)


def is_weekend(day: date) -> bool:
    return day.weekday() >= WORKING_DAYS_PER_WEEK


def _day_capacity(day: date) -> int:
    return WEEKEND_DAY_HOURS if is_weekend(day) else STANDARD_DAY_HOURS


def compute_weekly_stats(jobs: Sequence[Job], workers: Sequence[Worker], week_start: date) -> WeeklyStats:
    """
    Per-worker, per-day breakdown of the Monday-based week containing week_start.

    Weekend days carry a short capacity and only count towards the week's
    capacity for workers who have jobs on them. A worker is listed as
    overbooked once a day goes past full capacity; overbooked_days counts
    every worker-day above the overbooked threshold.
    """
    monday, sunday = week_bounds(week_start)
    index = OccupancyIndex.build(jobs, monday, monday + timedelta(days=7))
    report = detect_conflicts(index)
    names = _names(workers)
    start_dates = {job.id: job.start_date for job in index.jobs}
    days = [monday + timedelta(days=offset) for offset in range(7)]

    worker_weeks = []
    overbooked_workers = []
    overbooked_days = 0
    underutilized_days = 0
    for worker_id in _roster(index, workers):
        worker_jobs = index.jobs_for_worker(worker_id)
        worker_pairs = report.for_worker(worker_id)
        day_rows = []
        is_overbooked = False
        for day in days:
            day_jobs = [job for job in worker_jobs if job.start_date == day]
            hours = _scheduled_hours(day_jobs)
            capacity = _day_capacity(day)
            percent = utilization_percent(hours, capacity)
            if percent > FULLY_BOOKED_THRESHOLD:
                is_overbooked = True
            if percent > OVERBOOKED_THRESHOLD:
                overbooked_days += 1
            elif 0 < percent < UNDERUTILIZED_THRESHOLD:
                underutilized_days += 1
            day_rows.append(
                WorkerDay(
                    date=day,
                    isWorkingDay=not is_weekend(day) or bool(day_jobs),
                    hours=round_half_up(hours, 1),
                    capacity=capacity,
                    utilization=round_int(percent),
                    jobCount=len(day_jobs),
                    # a conflict belongs to the day its earlier job starts on
                    conflictCount=sum(1 for pair in worker_pairs if start_dates[pair.jobAId] == day),
                )
            )

        if is_overbooked:
            overbooked_workers.append(worker_id)

        hours = _scheduled_hours(worker_jobs)
        capacity = sum(row.capacity for row in day_rows if row.isWorkingDay)
        worker_weeks.append(
            WorkerWeek(
                workerId=worker_id,
                name=names.get(worker_id),
                totalHours=round_half_up(hours, 1),
                totalCapacity=capacity,
                utilization=round_int(utilization_percent(hours, capacity)),
                jobCount=len(worker_jobs),
                days=day_rows,
            )
        )

    # Days where the team as a whole sits below the underutilized threshold
    low_utilization_days = []
    if worker_weeks:
        for offset, day in enumerate(days):
            average = sum(week.days[offset].utilization for week in worker_weeks) / len(worker_weeks)
            if average < UNDERUTILIZED_THRESHOLD:
                low_utilization_days.append(day)

    selected = index.active_jobs()
    unassigned = len(index.unassigned_jobs())
    total_hours = _scheduled_hours(selected)
    total_capacity = sum(week.totalCapacity for week in worker_weeks)

    return WeeklyStats(
        weekStart=monday,
        weekEnd=sunday,
        totalJobs=len(selected),
        assignedJobs=len(selected) - unassigned,
        unassignedJobs=unassigned,
        totalHours=round_half_up(total_hours, 1),
        totalCapacity=total_capacity,
        avgUtilization=round_int(utilization_percent(total_hours, total_capacity)),
        conflictCount=report.count,
        overbookedWorkers=overbooked_workers,
        overbookedDays=overbooked_days,
        underutilizedDays=underutilized_days,
        lowUtilizationDays=low_utilization_days,
        workers=worker_weeks,
    )


def month_bounds(month: date):
    first = month.replace(day=1)
    if first.month == 12:
        following = first.replace(year=first.year + 1, month=1)
    else:
        following = first.replace(month=first.month + 1)
    return first, following


def compute_monthly_stats(jobs: Sequence[Job], workers: Sequence[Worker], month: date) -> MonthlyStats:
    """Revenue and utilization for the calendar month containing the given day"""
    start, end = month_bounds(month)
    index = OccupancyIndex.build(jobs, start, end)
    completed = [job for job in index.jobs if job.status == JobStatus.COMPLETED]

    hours_worked = _scheduled_hours(completed)
    capacity = len(workers) * STANDARD_DAY_HOURS * WORKING_DAYS_PER_MONTH

    return MonthlyStats(
        month=start.strftime("%Y-%m"),
        totalRevenue=sum_money(job.billable_value for job in completed),
        completedJobs=len(completed),
        scheduledJobs=len(index.active_jobs()),
        utilizationPercent=round_int(utilization_percent(hours_worked, capacity)),
    )
