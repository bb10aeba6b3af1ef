"""Keeps materialized instances in step with their master event.

The synchronizer only stages writes through an ``InstanceStore``; it never
commits. Callers run it inside the same transaction as the master-row
write and roll everything back on failure, so a regeneration is either
fully applied or not at all.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import date

import structlog

from taproom.core.config import settings
from taproom.models import Event, EventInstance
from taproom.services.exceptions import ValidationError
from taproom.services.overrides import MASTER_EDIT_RESETS, TIME_FIELDS, effective_crosses_midnight
from taproom.services.recurrence import (
    STOP_DISCIPLINE,
    RecurrenceRule,
    StopDiscipline,
    iter_occurrences,
    scan_horizon,
    walks_past,
)
from taproom.stores.base import InstanceStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class MasterEdit:
    """What changed on a master event, as far as its instances care.

    ``rule`` is set only when the instances must be regenerated.
    ``cancel_future`` is None when the payload carried no cancel flag.
    """

    edited_fields: frozenset[str] = frozenset()
    rule: RecurrenceRule | None = None
    cancel_future: bool | None = None


@dataclass
class SyncReport:
    deleted: int = 0
    inserted: int = 0
    overrides_cleared: dict[str, int] = field(default_factory=dict)
    cancel_toggled: int = 0
    midnight_recomputed: int = 0


class InstanceSynchronizer:
    def __init__(
        self,
        instances: InstanceStore,
        *,
        max_instances: int | None = None,
        horizon_years: int | None = None,
        discipline: StopDiscipline = STOP_DISCIPLINE,
    ) -> None:
        self.instances = instances
        self.max_instances = max_instances or settings.max_instances_per_event
        self.horizon_years = horizon_years or settings.max_recurrence_years
        self.discipline = discipline

    def plan(self, rule: RecurrenceRule) -> list[date]:
        """Expand a rule, refusing sets larger than the configured cap.

        The walk is also bounded in time: a rule whose end date or count is
        not reached within ``horizon_years`` of its start is rejected.
        """
        horizon = scan_horizon(rule, self.horizon_years)
        dates = list(
            itertools.islice(
                iter_occurrences(rule, self.discipline, until=horizon), self.max_instances + 1
            )
        )
        if len(dates) > self.max_instances:
            raise ValidationError(
                [f"recurrence would generate more than {self.max_instances} instances"],
                "recurrence validation failed",
            )
        if walks_past(rule, horizon, len(dates), self.discipline):
            raise ValidationError(
                [f"recurrence must end within {self.horizon_years} years of start_date"],
                "recurrence validation failed",
            )
        return dates

    def materialize(self, event: Event, dates: list[date]) -> list[EventInstance]:
        created = self.instances.insert_many(event.id, dates, event.crosses_midnight)
        logger.info("instances_materialized", event_id=str(event.id), count=len(created))
        return created

    def apply_edit(self, event: Event, edit: MasterEdit, today: date) -> SyncReport:
        """Propagate an already-applied master edit to instances dated >= today.

        Past instances are never touched here.
        """
        report = SyncReport()

        if edit.rule is not None:
            self._regenerate(event, edit.rule, today, report)

        self._clear_stale_overrides(event, edit.edited_fields, today, report)

        if edit.cancel_future is not None:
            report.cancel_toggled = self.instances.set_cancelled(
                event.id, today, edit.cancel_future
            )
            logger.info(
                "instances_cancel_toggled",
                event_id=str(event.id),
                is_cancelled=edit.cancel_future,
                count=report.cancel_toggled,
            )

        if edit.edited_fields & set(TIME_FIELDS):
            self._recompute_midnight(event, today, report)

        return report

    def _regenerate(
        self, event: Event, rule: RecurrenceRule, today: date, report: SyncReport
    ) -> None:
        future = [day for day in self.plan(rule) if day >= today]
        report.deleted = self.instances.delete_from(event.id, today)
        report.inserted = len(self.instances.insert_many(event.id, future, event.crosses_midnight))
        logger.info(
            "instances_regenerated",
            event_id=str(event.id),
            deleted=report.deleted,
            inserted=report.inserted,
            from_date=today.isoformat(),
        )

    def _clear_stale_overrides(
        self, event: Event, edited: frozenset[str], today: date, report: SyncReport
    ) -> None:
        columns = [custom for master_field, custom in MASTER_EDIT_RESETS if master_field in edited]
        if not columns:
            return
        count = self.instances.clear_overrides(event.id, today, columns)
        report.overrides_cleared = {column: count for column in columns}
        logger.info(
            "instance_overrides_reset",
            event_id=str(event.id),
            columns=columns,
            count=count,
        )

    def _recompute_midnight(self, event: Event, today: date, report: SyncReport) -> None:
        for instance in self.instances.select(event.id, date_from=today):
            flag = effective_crosses_midnight(event, instance)
            if instance.crosses_midnight != flag:
                self.instances.update(instance, {"crosses_midnight": flag})
                report.midnight_recomputed += 1
