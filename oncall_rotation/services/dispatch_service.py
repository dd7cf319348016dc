# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Notification dispatch engine.
Selects entries by weekday (timer) or by admin request, sends email / SMS
through the notification client, and records one NotifyState per
(entry, channel, notify type) so repeated runs do not re-send.
"""

from datetime import datetime, timedelta
from typing import Any, Optional

from oncall_rotation.core.clock import Clock, to_local
from oncall_rotation.core.config import settings
from oncall_rotation.core.errors import ChannelError, NotFoundError, ValidationError
from oncall_rotation.core.logging import get_logger
from oncall_rotation.metrics.prometheus import (
    CRON_TICKS,
    DISPATCH_RUNS,
    NOTIFICATIONS_SKIPPED,
)
from oncall_rotation.models.domain import (
    Actor,
    AuditAction,
    Channel,
    CronHint,
    DispatchResult,
    DispatchTarget,
    FailedSend,
    NotifyMode,
    NotifyState,
    NotifyType,
    Schedule,
    ScheduleEntry,
    SkippedSend,
)
from oncall_rotation.repositories.notify_state_repository import NotifyStateRepository
from oncall_rotation.services.audit_service import AuditService
from oncall_rotation.services.messages import build_message
from oncall_rotation.services.notification_client import NotificationClient
from oncall_rotation.services.rotation import next_anchor
from oncall_rotation.services.schedule_service import ScheduleService

logger = get_logger(__name__)

# isoweekday() -> (hint, mode, expected notify type)
TRIGGERS: dict[int, tuple[CronHint, NotifyMode, NotifyType]] = {
    1: (CronHint.MONDAY, NotifyMode.EMAIL, NotifyType.UPCOMING),
    5: (CronHint.FRIDAY, NotifyMode.BOTH, NotifyType.START_TODAY),
}

AUTO_ACTIONS = {
    CronHint.MONDAY: AuditAction.AUTO_NOTIFY_MONDAY,
    CronHint.FRIDAY: AuditAction.AUTO_NOTIFY_FRIDAY,
}
BLOCKED_ACTIONS = {
    CronHint.MONDAY: AuditAction.AUTO_NOTIFY_MONDAY_BLOCKED_WINDOW,
    CronHint.FRIDAY: AuditAction.AUTO_NOTIFY_FRIDAY_BLOCKED_WINDOW,
}


def classify_trigger(
    now: datetime,
) -> tuple[CronHint, Optional[NotifyMode], Optional[NotifyType]]:
    """Weekday of the local `now` -> what an automatic run should send."""
    return TRIGGERS.get(now.isoweekday(), (CronHint.NONE, None, None))


def classify_entry(entry: ScheduleEntry, now: datetime) -> Optional[NotifyType]:
    """`now` is naive local time in the schedule's timezone."""
    if entry.start <= now <= entry.end:
        return NotifyType.START_TODAY
    if entry.start > now:
        if entry.start.date() == now.date():
            return NotifyType.START_TODAY
        if entry.start - now >= timedelta(hours=settings.UPCOMING_MIN_HOURS):
            return NotifyType.UPCOMING
    return None


def _minutes(hhmm: str) -> int:
    hours, _, minutes = hhmm.partition(":")
    return int(hours) * 60 + int(minutes or 0)


def within_window(now: datetime, window: tuple[str, str]) -> bool:
    current = now.hour * 60 + now.minute
    return _minutes(window[0]) <= current <= _minutes(window[1])


def _unique(values) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


class DispatchService:
    """Owns NotifyState writes. Channel failures never abort a batch."""

    def __init__(
        self,
        schedule_service: ScheduleService,
        notify_state_repo: NotifyStateRepository,
        notification_client: NotificationClient,
        audit: AuditService,
        clock: Clock,
    ) -> None:
        self._schedules = schedule_service
        self._states = notify_state_repo
        self._client = notification_client
        self._audit = audit
        self._clock = clock

    # ── Timer ──

    def run_tick(self, dry_run: bool = False) -> DispatchResult:
        """Automatic weekday run. Non-trigger days are a logged no-op."""
        return self._tick(dry_run=dry_run or settings.CRON_DRY_RUN, record=True)

    def preview(self) -> DispatchResult:
        """What today's automatic run would send. Never sends, never audits."""
        return self._tick(dry_run=True, record=False)

    def _tick(self, dry_run: bool, record: bool) -> DispatchResult:
        schedule = self._load_schedule()
        now = to_local(self._clock.now(), schedule.timezone)
        hint, mode, notify_type = classify_trigger(now)
        trigger = "cron" if record else "preview"
        result = DispatchResult(
            trigger=trigger, cron_hint=hint, mode=mode, dry_run=dry_run, ran_at=now,
        )

        if record:
            CRON_TICKS.labels(cron_hint=hint.value).inc()
            self._schedules.refresh_current()

        if hint == CronHint.NONE:
            logger.info("Cron tick: no trigger for %s", now.strftime("%A"))
            return result

        if record and settings.CRON_ENFORCE_WINDOW:
            window = (
                settings.CRON_MONDAY_WINDOW
                if hint == CronHint.MONDAY
                else settings.CRON_FRIDAY_WINDOW
            )
            if not within_window(now, window):
                result.blocked = True
                self._audit.record(
                    Actor.SYSTEM,
                    BLOCKED_ACTIONS[hint],
                    local_time=now.strftime("%H:%M"),
                    window=list(window),
                )
                logger.warning(
                    "Cron tick blocked: hint=%s, time=%s, window=%s-%s",
                    hint.value, now.strftime("%H:%M"), window[0], window[1],
                )
                return result

        targets = self._cron_targets(schedule, hint, mode, notify_type, now)
        self._dispatch(result, schedule, targets, auto=True)

        if record:
            self._audit.record(Actor.SYSTEM, AUTO_ACTIONS[hint], **self._summary(result))
        return result

    def _cron_targets(
        self,
        schedule: Schedule,
        hint: CronHint,
        mode: NotifyMode,
        notify_type: NotifyType,
        now: datetime,
    ) -> list[DispatchTarget]:
        if hint == CronHint.MONDAY:
            anchor = next_anchor(now.date() + timedelta(days=1))
            candidates = [e for e in schedule.entries if e.start.date() == anchor]
        else:
            candidates = [e for e in schedule.entries if e.start.date() == now.date()]
        return [
            self._target(e, notify_type, now, mode)
            for e in candidates
            if classify_entry(e, now) == notify_type
        ]

    # ── Manual ──

    def notify(
        self,
        entry_id: Optional[str] = None,
        mode: NotifyMode = NotifyMode.BOTH,
        force: bool = False,
        dry_run: bool = False,
    ) -> DispatchResult:
        """
        Admin-requested run. With `entry_id`, notifies that entry regardless
        of weekday; without it, the active (or starting today) entry and the
        next upcoming one.
        """
        schedule = self._load_schedule()
        now = to_local(self._clock.now(), schedule.timezone)
        result = DispatchResult(
            trigger="manual", mode=mode, dry_run=dry_run, force=force, ran_at=now,
        )

        if entry_id is not None:
            entry = next((e for e in schedule.entries if e.id == entry_id), None)
            if entry is None:
                raise NotFoundError(f"No schedule entry '{entry_id}'")
            if entry.end <= now:
                raise ValidationError(f"Entry '{entry_id}' has already ended")
            notify_type = classify_entry(entry, now) or NotifyType.START_TODAY
            target = self._target(entry, notify_type, now, mode)
            if not target.email_to and not target.sms_to:
                raise ValidationError(
                    f"No recipients for mode '{mode.value}' on entry '{entry_id}'"
                )
            targets = [target]
            action = AuditAction.MANUAL_NOTIFY_ENTRY
        else:
            targets = self._manual_targets(schedule, now, mode)
            if not targets:
                raise ValidationError("No active or upcoming entry to notify")
            action = AuditAction.MANUAL_NOTIFY_ACTIVE

        self._dispatch(result, schedule, targets, auto=False)
        self._audit.record(Actor.ADMIN, action, entry_id=entry_id, **self._summary(result))
        return result

    def _manual_targets(
        self, schedule: Schedule, now: datetime, mode: NotifyMode
    ) -> list[DispatchTarget]:
        targets: list[DispatchTarget] = []
        active = next(
            (
                e for e in schedule.entries
                if classify_entry(e, now) == NotifyType.START_TODAY
            ),
            None,
        )
        if active is not None:
            targets.append(self._target(active, NotifyType.START_TODAY, now, mode))
        upcoming = next(
            (
                e for e in schedule.entries
                if e.start > now and (active is None or e.id != active.id)
            ),
            None,
        )
        if upcoming is not None:
            notify_type = classify_entry(upcoming, now) or NotifyType.START_TODAY
            targets.append(self._target(upcoming, notify_type, now, mode))
        return targets

    # ── Queries ──

    def notify_status(self) -> dict[str, dict[str, Any]]:
        """entry id -> per-channel sent flags and the notify types recorded."""
        status: dict[str, dict[str, Any]] = {}
        for state in self._states.list_all():
            row = status.setdefault(state.entry_id, {"email": False, "sms": False, "types": []})
            row[state.channel.value] = True
            if state.notify_type.value not in row["types"]:
                row["types"].append(state.notify_type.value)
        return status

    # ── Internals ──

    def _load_schedule(self) -> Schedule:
        schedule = self._schedules.find_schedule()
        if schedule is None:
            raise NotFoundError("No schedule has been saved yet")
        return schedule

    @staticmethod
    def _target(
        entry: ScheduleEntry,
        notify_type: NotifyType,
        now: datetime,
        mode: NotifyMode,
    ) -> DispatchTarget:
        people = list(entry.departments.values())
        sms_to = (
            _unique(p.phone for p in people)
            if mode.includes_sms and notify_type == NotifyType.START_TODAY
            else []
        )
        email_to = _unique(p.email for p in people) if mode.includes_email else []
        return DispatchTarget(
            entry_id=entry.id,
            notify_type=notify_type,
            start=entry.start,
            end=entry.end,
            already_active=entry.start <= now and entry.start.date() < now.date(),
            email_to=email_to,
            email_cc=list(settings.ADMIN_NOTIFICATION) if email_to else [],
            sms_to=sms_to,
        )

    def _dispatch(
        self,
        result: DispatchResult,
        schedule: Schedule,
        targets: list[DispatchTarget],
        auto: bool,
    ) -> None:
        DISPATCH_RUNS.labels(trigger=result.trigger, dry_run=str(result.dry_run).lower()).inc()
        result.targets = targets
        if targets and not result.dry_run:
            self._client.ensure_configured()

        entries = {e.id: e for e in schedule.entries}
        for target in targets:
            if not target.email_to and not target.sms_to:
                self._skip(result, target, None, "no_recipients")
                continue

            message = build_message(
                entries[target.entry_id],
                schedule.timezone,
                target.notify_type,
                already_active=target.already_active,
            )
            if target.email_to and self._should_send(result, target, Channel.EMAIL):
                self._send_email(result, target, message, auto)
            if target.sms_to and self._should_send(result, target, Channel.SMS):
                self._send_sms(result, target, message, auto)

        logger.info(
            "Dispatch complete: trigger=%s, targets=%d, emails=%d, sms=%d, "
            "skipped=%d, failed=%d, dry_run=%s",
            result.trigger, len(targets), result.emails_sent, result.sms_sent,
            len(result.skipped), len(result.failed), result.dry_run,
        )

    def _should_send(
        self, result: DispatchResult, target: DispatchTarget, channel: Channel
    ) -> bool:
        """Idempotency gate; dry runs report would-be skips and stop here."""
        existing = self._states.get(target.entry_id, channel, target.notify_type)
        if existing is not None and not result.force:
            self._skip(result, target, channel, "already_sent")
            return False
        return not result.dry_run

    def _send_email(self, result, target, message, auto: bool) -> None:
        try:
            sent = self._client.send_email(
                to=target.email_to,
                cc=target.email_cc,
                subject=message.subject,
                html=message.html,
                reference=target.entry_id,
            )
        except ChannelError as exc:
            result.failed.append(
                FailedSend(
                    entry_id=target.entry_id,
                    channel=Channel.EMAIL,
                    recipient=", ".join(target.email_to),
                    error=exc.detail,
                )
            )
            return
        result.emails_sent += len(target.email_to)
        self._record(target, Channel.EMAIL, result.force, auto, sent.id)

    def _send_sms(self, result, target, message, auto: bool) -> None:
        ids: list[str] = []
        delivered = 0
        for phone in target.sms_to:
            try:
                sent = self._client.send_sms(phone, message.sms, reference=target.entry_id)
            except ChannelError as exc:
                result.failed.append(
                    FailedSend(
                        entry_id=target.entry_id,
                        channel=Channel.SMS,
                        recipient=phone,
                        error=exc.detail,
                    )
                )
                continue
            delivered += 1
            if sent.id:
                ids.append(sent.id)
        if delivered:
            result.sms_sent += delivered
            self._record(target, Channel.SMS, result.force, auto, ",".join(ids) or None)

    def _record(
        self,
        target: DispatchTarget,
        channel: Channel,
        force: bool,
        auto: bool,
        message_id: Optional[str],
    ) -> None:
        self._states.save(
            NotifyState(
                entry_id=target.entry_id,
                channel=channel,
                notify_type=target.notify_type,
                sent_at=self._clock.now(),
                force=force,
                auto=auto,
                message_id=message_id,
            )
        )

    @staticmethod
    def _skip(
        result: DispatchResult,
        target: DispatchTarget,
        channel: Optional[Channel],
        reason: str,
    ) -> None:
        NOTIFICATIONS_SKIPPED.labels(
            channel=channel.value if channel else "all", reason=reason
        ).inc()
        result.skipped.append(
            SkippedSend(
                entry_id=target.entry_id,
                channel=channel,
                notify_type=target.notify_type,
                reason=reason,
            )
        )

    @staticmethod
    def _summary(result: DispatchResult) -> dict[str, Any]:
        return {
            "cron_hint": result.cron_hint.value,
            "mode": result.mode.value if result.mode else None,
            "dry_run": result.dry_run,
            "force": result.force,
            "targets": [t.entry_id for t in result.targets],
            "emails_sent": result.emails_sent,
            "sms_sent": result.sms_sent,
            "skipped": len(result.skipped),
            "failed": len(result.failed),
        }
