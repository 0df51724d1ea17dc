"""
models/__init__.py
------------------
Re-export all models so metadata is fully populated with a single import:

    from forge.models import Base
"""

from forge.db.base import Base
from forge.models.customer import Customer
from forge.models.user import User, UserRole
from forge.models.company import (
    Company,
    CompanyMetadata,
    CompanyScoringQueue,
    CustomerCompany,
    ScoringQueueStatus,
)
from forge.models.option import OptionCompanySize, OptionIndustry
from forge.models.segment import ListCompany, ListStatus, ListSubtype, ListType, Segment
from forge.models.notification import Notification
from forge.models.llm_job import TERMINAL_JOB_STATUSES, JobStatus, LLMJob

__all__ = [
    "Base",
    "Customer",
    "User",
    "UserRole",
    "Company",
    "CompanyMetadata",
    "CompanyScoringQueue",
    "CustomerCompany",
    "ScoringQueueStatus",
    "OptionCompanySize",
    "OptionIndustry",
    "ListCompany",
    "ListStatus",
    "ListSubtype",
    "ListType",
    "Segment",
    "Notification",
    "TERMINAL_JOB_STATUSES",
    "JobStatus",
    "LLMJob",
]
