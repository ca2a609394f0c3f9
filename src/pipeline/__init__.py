"""Pipeline modules — orchestration layer for the content lifecycle.

  lifecycle — daily refresh (generate → retire → promote → sweep) and
              the recycle / streak / subscription / reconcile jobs
  schedule  — daily job table and polling loop
"""

from hackfeed.pipeline.lifecycle import (  # noqa: F401
    FailureCounts,
    JobContext,
    LifecycleScheduler,
    RefreshSummary,
    difficulty_plan,
)
from hackfeed.pipeline.schedule import JobScheduler, ScheduledJob, build_daily_schedule  # noqa: F401
