import asyncio
import logging
from pathlib import Path
from typing import Any

import click
import yaml
from pydantic import BaseModel

from apwf.application.approval_start import start_approval
from apwf.application.config_loader import load_config
from apwf.application.config_models import EngineConfig
from apwf.application.decision_protocol import ApprovalSession, require_text
from apwf.application.presentation.presenter import ApprovalPresenter
from apwf.application.presentation.view_models import ApprovalDetailView
from apwf.domain.directory.user_directory import (
    HttpUserDirectory,
    StaticUserDirectory,
    UserDirectory,
)
from apwf.domain.errors import TransportError, ValidationError
from apwf.domain.events.emitter import ApprovalEventEmitter
from apwf.domain.models.approval import ApprovalStatus
from apwf.domain.models.stage_plan import StagePlan
from apwf.domain.store.approval_store import ApprovalStore
from apwf.domain.store.http_approval_store import HttpApprovalStore
from apwf.interface.cli.output_models import (
    CommentOutput,
    DecideOutput,
    ListOutput,
    ShowOutput,
    StartOutput,
)

logger = logging.getLogger(__name__)


def _json_emit(model: BaseModel) -> None:
    # Single-line JSON, omit None fields (e.g., ShowOutput.approval on error).
    click.echo(model.model_dump_json(exclude_none=True), nl=True)


def _get_json_mode(ctx: click.Context) -> bool:
    obj = ctx.obj or {}
    return bool(obj.get("json", False))


def _format_error(e: Exception) -> str:
    """Format exception into user-friendly message."""
    if isinstance(e, ValidationError):
        return f"Invalid request: {e.message}"
    if isinstance(e, TransportError):
        return f"Approval store error: {e}"
    if isinstance(e, FileNotFoundError):
        return f"File not found: {e.filename}" if e.filename else str(e)
    return str(e)


def _load_engine_config() -> EngineConfig:
    return load_config(project_root=Path.cwd(), user_home=Path.home())


def _make_store(cfg: EngineConfig) -> ApprovalStore:
    """Build the store client. Patched by tests."""
    return HttpApprovalStore(
        cfg.require_base_url(),
        token=cfg.token,
        connect_timeout=cfg.connect_timeout,
        read_timeout=cfg.read_timeout,
    )


def _make_emitter(ctx: click.Context) -> ApprovalEventEmitter:
    emitter = ApprovalEventEmitter()
    if (ctx.obj or {}).get("events"):
        from apwf.domain.events.stderr_observer import StderrEventObserver
        emitter.subscribe(StderrEventObserver())
    return emitter


async def _load_directory(store: ApprovalStore) -> UserDirectory:
    directory = HttpUserDirectory(store)
    try:
        await directory.load()
    except TransportError as e:
        # Names degrade to "#<id>"; the view is still usable.
        logger.warning(f"User directory unavailable: {e}")
        return StaticUserDirectory()
    return directory


async def _resolve_viewer(
    store: ApprovalStore, cfg: EngineConfig, viewer: int | None
) -> int | None:
    if viewer is not None:
        return viewer
    if cfg.viewer_id is not None:
        return cfg.viewer_id
    try:
        me = await store.current_user()
    except TransportError as e:
        logger.warning(f"Could not resolve current user: {e}")
        return None
    return me.id if me else None


def _load_stage_plans(path: Path) -> list[StagePlan]:
    data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("stages")
    if not isinstance(data, list):
        raise ValueError(f"Stages file must hold a list of stages: {path}")
    return [StagePlan.model_validate(item) for item in data]


def _echo_detail(view: ApprovalDetailView) -> None:
    click.echo(f"approval={view.id} document={view.document_id}")
    click.echo(f"status={view.status}")
    click.echo(f"initiator={view.initiator}")
    click.echo(f"request={view.request_message}")
    click.echo(f"updated={view.updated_at}")
    click.echo(f"participants={', '.join(view.participants) or '-'}")
    for stage in view.stages:
        marker = "*" if stage.is_current else " "
        decided = f" {stage.decided_at}" if stage.decided_at != "-" else ""
        click.echo(f"{marker} {stage.label}: {stage.name} [{stage.status_label}{decided}]")
        if stage.message:
            click.echo(f"    message: {stage.message}")
        click.echo(f"    approvers: {', '.join(stage.approvers) or '-'}")
        click.echo(f"    observers: {', '.join(stage.observers) or '-'}")
        if stage.actions:
            click.echo(f"    actions: {', '.join(a.value for a in stage.actions)}")
        if stage.viewer_decision:
            click.echo(f"    your decision: {stage.viewer_decision}")
        for note in stage.diagnostics:
            click.echo(f"    warning: {note}")
    for comment in view.comments:
        click.echo(f"- {comment.author} ({comment.created_at}): {comment.text}")


@click.group(help="Multi-stage approval workflow CLI.")
@click.option("--json", "json_output", is_flag=True, help="Emit machine-readable JSON on stdout.")
@click.option("--events", is_flag=True, help="Emit approval events to stderr.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging on stderr.")
@click.pass_context
def cli(ctx: click.Context, json_output: bool, events: bool, verbose: bool) -> None:
    ctx.ensure_object(dict)
    ctx.obj["json"] = bool(json_output)
    ctx.obj["events"] = bool(events)
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@cli.command("list")
@click.option(
    "--status",
    "filter_status",
    type=click.Choice([s.value for s in ApprovalStatus]),
    default=None,
    help="Filter by approval status",
)
@click.pass_context
def list_cmd(ctx: click.Context, filter_status: str | None) -> None:
    """List approvals visible to the caller."""
    try:
        cfg = _load_engine_config()
        store = _make_store(cfg)
        status = ApprovalStatus(filter_status) if filter_status else None

        async def _run():
            approvals = await store.list_approvals(status)
            return approvals, await _load_directory(store)

        approvals, directory = asyncio.run(_run())
        presenter = ApprovalPresenter(directory, stage_label_template=cfg.stage_name_template)
        summaries = [presenter.summary(a) for a in approvals]

        if _get_json_mode(ctx):
            _json_emit(ListOutput(exit_code=0, approvals=summaries, total=len(summaries)))
            raise click.exceptions.Exit(0)

        if not summaries:
            click.echo("No approvals found.")
            return
        for s in summaries:
            click.echo(f"{s.id}\t{s.status}\tdoc={s.document_id}\t{s.updated_at}\t{s.message}")

    except click.exceptions.Exit:
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(ListOutput(exit_code=1, error=_format_error(e)))
            raise click.exceptions.Exit(1)
        raise click.ClickException(_format_error(e)) from e


@cli.command("show")
@click.argument("approval_id", type=int)
@click.option("--viewer", type=int, default=None, help="Viewer user id (default: current user)")
@click.pass_context
def show_cmd(ctx: click.Context, approval_id: int, viewer: int | None) -> None:
    """Show stages, participants and comments of an approval."""
    try:
        cfg = _load_engine_config()
        store = _make_store(cfg)
        session = ApprovalSession(
            store=store,
            approval_id=approval_id,
            event_emitter=_make_emitter(ctx),
            stage_name_template=cfg.stage_name_template,
        )

        async def _run():
            viewer_id = await _resolve_viewer(store, cfg, viewer)
            directory = await _load_directory(store)
            await session.open()
            return viewer_id, directory

        viewer_id, directory = asyncio.run(_run())
        presenter = ApprovalPresenter(directory, stage_label_template=cfg.stage_name_template)
        view = presenter.detail(session, viewer_id)

        if _get_json_mode(ctx):
            _json_emit(ShowOutput(exit_code=0, approval_id=approval_id, approval=view))
            raise click.exceptions.Exit(0)

        _echo_detail(view)

    except click.exceptions.Exit:
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(ShowOutput(exit_code=1, approval_id=approval_id, error=_format_error(e)))
            raise click.exceptions.Exit(1)
        raise click.ClickException(_format_error(e)) from e


@cli.command("decide")
@click.argument("approval_id", type=int)
@click.option("--stage", type=int, required=True, help="Stage the decision is for")
@click.option("--approve", "decision", flag_value="approve", help="Approve the stage.")
@click.option("--reject", "decision", flag_value="reject", help="Reject the stage.")
@click.option("--comment", "comment", type=str, default="", help="Reason for the decision (required).")
@click.pass_context
def decide_cmd(
    ctx: click.Context,
    approval_id: int,
    stage: int,
    decision: str | None,
    comment: str,
) -> None:
    """Approve or reject the active stage."""
    try:
        # Fail before touching the network.
        require_text(comment, "comment")
        if decision is None:
            raise ValidationError("choose --approve or --reject", field="decision")

        cfg = _load_engine_config()
        store = _make_store(cfg)
        session = ApprovalSession(
            store=store,
            approval_id=approval_id,
            event_emitter=_make_emitter(ctx),
            stage_name_template=cfg.stage_name_template,
        )

        async def _run():
            await session.open()
            await session.submit_decision(stage, decision, comment)

        asyncio.run(_run())
        approval = session.approval
        status = approval.status.value if approval else None
        current_stage = approval.current_stage if approval else None

        if _get_json_mode(ctx):
            _json_emit(
                DecideOutput(
                    exit_code=0,
                    approval_id=approval_id,
                    decision=decision,
                    status=status,
                    current_stage=current_stage,
                )
            )
            raise click.exceptions.Exit(0)

        click.echo(f"decision={decision}")
        click.echo(f"status={status}")
        click.echo(f"current_stage={current_stage}")

    except click.exceptions.Exit:
        raise
    except Exception as e:
        error_msg = _format_error(e)
        if _get_json_mode(ctx):
            _json_emit(DecideOutput(exit_code=1, approval_id=approval_id, error=error_msg))
            raise click.exceptions.Exit(1)
        raise click.ClickException(error_msg) from e


@cli.command("comment")
@click.argument("approval_id", type=int)
@click.argument("text", type=str)
@click.pass_context
def comment_cmd(ctx: click.Context, approval_id: int, text: str) -> None:
    """Add a comment to an approval."""
    try:
        require_text(text, "comment")

        cfg = _load_engine_config()
        store = _make_store(cfg)
        session = ApprovalSession(
            store=store,
            approval_id=approval_id,
            event_emitter=_make_emitter(ctx),
        )

        asyncio.run(session.submit_comment(text))

        if _get_json_mode(ctx):
            _json_emit(
                CommentOutput(exit_code=0, approval_id=approval_id, comments=len(session.comments))
            )
            raise click.exceptions.Exit(0)

        click.echo(f"comments={len(session.comments)}")

    except click.exceptions.Exit:
        raise
    except Exception as e:
        error_msg = _format_error(e)
        if _get_json_mode(ctx):
            _json_emit(CommentOutput(exit_code=1, approval_id=approval_id, error=error_msg))
            raise click.exceptions.Exit(1)
        raise click.ClickException(error_msg) from e


@cli.command("start")
@click.argument("document_id", type=int)
@click.option(
    "--stages-file",
    "stages_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML list of stages (name, approvers, observers, message).",
)
@click.pass_context
def start_cmd(ctx: click.Context, document_id: int, stages_file: Path) -> None:
    """Start an approval for a document."""
    try:
        plans = _load_stage_plans(stages_file)
        cfg = _load_engine_config()
        store = _make_store(cfg)

        submitted = asyncio.run(start_approval(store, document_id, plans))

        if _get_json_mode(ctx):
            _json_emit(StartOutput(exit_code=0, document_id=document_id, stages=len(submitted)))
            raise click.exceptions.Exit(0)

        click.echo(f"document={document_id}")
        click.echo(f"stages={len(submitted)}")

    except click.exceptions.Exit:
        raise
    except Exception as e:
        error_msg = _format_error(e)
        if _get_json_mode(ctx):
            _json_emit(StartOutput(exit_code=1, document_id=document_id, error=error_msg))
            raise click.exceptions.Exit(1)
        raise click.ClickException(error_msg) from e
