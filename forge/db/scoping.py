"""
db/scoping.py
-------------
Tenant isolation at the query-builder level.

Every tenant-facing statement is built through a TenantScope, which injects
the caller's customer_id predicate (and, for owner-scoped models such as
LLMJob, the caller's user_id unless they are a tenant admin). A row the
scope cannot see is indistinguishable from a row that does not exist, so
callers answer 404 for both.

    scope = TenantScope(customer_id=user.customer_id, user_id=user.user_id)
    result = await db.execute(scope.select(Segment).where(Segment.list_id == sid))
"""

from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import Delete, Select, Update, delete, select, update


@dataclass(frozen=True)
class TenantScope:
    customer_id: str
    user_id: Optional[str] = None
    is_admin: bool = False

    def predicates(self, model: Any) -> list:
        clauses = [model.customer_id == self.customer_id]
        if getattr(model, "__owner_scoped__", False) and not self.is_admin:
            clauses.append(model.user_id == self.user_id)
        return clauses

    def select(self, model: Any, *columns: Any) -> Select:
        stmt = select(*columns) if columns else select(model)
        return stmt.where(*self.predicates(model))

    def update(self, model: Any) -> Update:
        return update(model).where(*self.predicates(model))

    def delete(self, model: Any) -> Delete:
        return delete(model).where(*self.predicates(model))
