"""
Points configuration: cached provider and writer.

Responsibility:
    ``PointsConfigProvider`` serves the process-wide points configuration as
    a frozen ``PointsPolicy``.  It is constructed once and injected into every
    service that needs the allowance base, replacing a bare document fetch on
    every call.  ``ConfigService`` writes the singleton row.

Cache contract:
    - The first ``get(session)`` loads the row through the caller's session
      and caches the result (including "no row yet", which yields the default
      base).
    - ``invalidate()`` drops the cache and bumps a generation counter; the
      next ``get`` reloads.  Callers invalidate AFTER the transaction that
      changed the row has committed.
    - A load that was in flight when ``invalidate()`` ran is returned to its
      caller but never cached, so a pre-update row cannot outlive the
      invalidation.
    - ``reload(session)`` is ``invalidate()`` followed by ``get(session)``.
"""

from __future__ import annotations

import threading

from sqlalchemy import select
from sqlalchemy.orm import Session

from points_kernel.domain.allowance import DEFAULT_MONTHLY_ALLOWANCE_BASE
from points_kernel.domain.clock import Clock
from points_kernel.domain.dtos import PointsPolicy
from points_kernel.logging_config import get_logger
from points_kernel.models.config import MAIN_CONFIG_KEY, PointsConfigRecord
from points_kernel.services.base import BaseService

logger = get_logger("services.config")


def _policy_from_record(record: PointsConfigRecord) -> PointsPolicy:
    return PointsPolicy(
        monthly_allowance_base=record.monthly_allowance_base,
        year=record.year,
        project_points_budget=record.project_points_budget,
        manager_budget_total=record.manager_budget_total,
        point_to_mnt=record.point_to_mnt,
        updated_at=record.updated_at,
    )


class PointsConfigProvider:
    """Thread-safe cache of the active PointsPolicy."""

    def __init__(self, default_allowance_base: int = DEFAULT_MONTHLY_ALLOWANCE_BASE):
        self._default_allowance_base = default_allowance_base
        self._cached: PointsPolicy | None = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def default_allowance_base(self) -> int:
        return self._default_allowance_base

    def get(self, session: Session) -> PointsPolicy:
        with self._lock:
            if self._cached is not None:
                return self._cached
            generation = self._generation

        record = session.execute(
            select(PointsConfigRecord).where(
                PointsConfigRecord.config_key == MAIN_CONFIG_KEY
            )
        ).scalar_one_or_none()

        if record is None:
            policy = PointsPolicy(monthly_allowance_base=self._default_allowance_base)
        else:
            policy = _policy_from_record(record)

        with self._lock:
            if generation != self._generation:
                return policy
            if self._cached is None:
                self._cached = policy
                logger.debug(
                    "points_config_loaded",
                    extra={
                        "monthly_allowance_base": policy.monthly_allowance_base,
                        "from_default": record is None,
                    },
                )
            return self._cached

    def invalidate(self) -> None:
        with self._lock:
            self._cached = None
            self._generation += 1

    def reload(self, session: Session) -> PointsPolicy:
        self.invalidate()
        return self.get(session)


class ConfigService(BaseService):
    """Writes the singleton points configuration row."""

    def __init__(self, session: Session, clock: Clock):
        super().__init__(session)
        self._clock = clock

    def update_config(
        self,
        *,
        monthly_allowance_base: int,
        year: int | None = None,
        project_points_budget: int = 0,
        manager_budget_total: int = 0,
        point_to_mnt: int = 0,
    ) -> PointsPolicy:
        """Create or overwrite the ``main`` configuration row.

        The new base applies to allowances reset after the change; allowances
        already reset this month keep their current value.
        """
        record = self.session.execute(
            select(PointsConfigRecord).where(
                PointsConfigRecord.config_key == MAIN_CONFIG_KEY
            )
        ).scalar_one_or_none()

        if record is None:
            record = PointsConfigRecord(config_key=MAIN_CONFIG_KEY)
            self.session.add(record)

        record.monthly_allowance_base = monthly_allowance_base
        record.year = year
        record.project_points_budget = project_points_budget
        record.manager_budget_total = manager_budget_total
        record.point_to_mnt = point_to_mnt
        record.updated_at = self._clock.now()

        self.session.flush()
        logger.info(
            "points_config_updated",
            extra={
                "monthly_allowance_base": monthly_allowance_base,
                "year": year,
            },
        )
        return _policy_from_record(record)
