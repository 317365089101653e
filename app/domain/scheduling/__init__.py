"""
Scheduling Domain

Workforce-capacity engine behind the provider calendar:
- time-window math and blocked-time projection
- occupancy index and conflict detection
- daily / weekly / monthly capacity and utilization stats
- drag-and-drop reschedule validation and the job status lifecycle

Structure:
```
app/domain/scheduling/
├── errors.py        # SchedulingError hierarchy
├── schemas.py       # Job, Worker, BlockedTime, drop targets, stats
├── time_windows.py  # duration, clamp, overlap
├── blocked.py       # blocked-interval projector
├── occupancy.py     # jobs by slot and by worker
├── conflicts.py     # adjacent-pair overlap scan
├── capacity.py      # daily / weekly / monthly stats
├── unassigned.py    # unassigned-jobs queue
├── reschedule.py    # status transitions, move validation
├── repository.py    # SQLAlchemy reads and the job write
├── service.py       # snapshot + reschedule transaction
└── router.py        # FastAPI endpoints
```

The engine modules (time_windows through reschedule) are pure: they take a
snapshot and return values. repository.py and service.py own all I/O.
"""
