"""Stderr event observer for CLI integration."""

import click

from apwf.domain.events.event import ApprovalEvent


class StderrEventObserver:
    """Emits events as structured lines to stderr."""

    def on_event(self, event: ApprovalEvent) -> None:
        parts = [f"[EVENT] {event.event_type.value}", f"approval={event.approval_id}"]
        if event.status:
            parts.append(f"status={event.status.value}")
        if event.stage is not None:
            parts.append(f"stage={event.stage}")
        error = event.metadata.get("error")
        if error:
            parts.append(f"error={error}")
        click.echo(" ".join(parts), err=True)
