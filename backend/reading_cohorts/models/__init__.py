"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Cohort is the aggregate root; memberships, posts and notification records
      are scoped by cohort_id

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from reading_cohorts.models.member import Member  # noqa: F401
from reading_cohorts.models.cohort import Cohort  # noqa: F401
from reading_cohorts.models.membership import Membership  # noqa: F401
from reading_cohorts.models.group_message import GroupMessage  # noqa: F401
from reading_cohorts.models.notification_record import NotificationRecord  # noqa: F401
from reading_cohorts.models.email_health import EmailHealthRecord  # noqa: F401
