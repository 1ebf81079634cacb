"""Hermes pipeline orchestrator.

Drives one run through the fixed, forward-only stage sequence:

IDEA      -- Short Q&A with the idea agent until the scope is complete.
REFINE    -- Scope -> RefinedProject (deterministic fallback on failure).
ARCHITECT -- RefinedProject -> ordered execution plan.
CODEGEN   -- Every non-integration work item through its stage agent.
ASSEMBLE  -- The integration work item.
DONE      -- Artifacts handed to the project saver.

Every transition is gated by an operator confirmation; a negative answer
ends the run as ``DECLINED`` at the current stage. Agent failures ask the
operator whether to continue (default: abort). A missing credential ends
the run as ``FAILED``.

Usage::

    pipeline = Pipeline(client, ConsoleOperator(), saver=ProjectSaver(config, operator))
    result = await pipeline.run("A todo app with reminders")
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from rich.table import Table

from hermes.agents import IdeaAgent, RefinerAgent, StageAgent, build_registry
from hermes.agents.idea import is_exit
from hermes.config import PipelineConfig
from hermes.errors import (
    ConfigurationError,
    HermesError,
    PipelineError,
    StageFailed,
    TransportError,
)
from hermes.fallback import synthesize_scope
from hermes.llm_client import CompletionClient
from hermes.models import (
    AgentTag,
    ConversationTurn,
    ProjectContext,
    RefinedProject,
    StageResult,
    WorkItem,
    WorkKind,
)
from hermes.operator import Operator
from hermes.planner import build_plan
from hermes.renderer import TemplateRenderer
from hermes.saver import ProjectSaver
from hermes.utils import (
    build_file_tree,
    console,
    count_lines,
    create_progress,
    format_duration,
    print_error,
    print_stage_header,
    print_success,
    print_summary_table,
    print_warning,
    sanitize_name,
)


class Stage(str, Enum):
    IDEA = "IDEA"
    REFINE = "REFINE"
    ARCHITECT = "ARCHITECT"
    CODEGEN = "CODEGEN"
    ASSEMBLE = "ASSEMBLE"
    DONE = "DONE"


STAGE_ORDER: tuple[Stage, ...] = tuple(Stage)


class RunStatus(str, Enum):
    """How a run ended."""
    COMPLETED = "completed"
    DECLINED = "declined"
    ABORTED = "aborted"
    EXITED = "exited"
    FAILED = "failed"


@dataclass
class StageTransition:
    stage: Stage
    at: datetime


@dataclass
class RunResult:
    """Outcome of :meth:`Pipeline.run`.

    ``context`` holds every artifact appended before the run ended, whatever
    the status.
    """

    status: RunStatus
    stage: Stage
    scope: str = ""
    idea_conversation: list[ConversationTurn] = field(default_factory=list)
    context: ProjectContext | None = None
    saved_path: Path | None = None
    error: str | None = None
    history: list[StageTransition] = field(default_factory=list)
    refined_degraded: bool = False
    duration_seconds: float = 0.0


# gate question asked before entering each stage
GATES: dict[Stage, str] = {
    Stage.REFINE: "Proceed to refinement?",
    Stage.ARCHITECT: "Proceed to architecture?",
    Stage.CODEGEN: "Start code generation?",
    Stage.ASSEMBLE: "Assemble the project?",
    Stage.DONE: "Save project to disk?",
}


class Pipeline:
    """Stage state machine owning the :class:`ProjectContext` of a run.

    Attributes:
        registry: Agent per work-item tag, resolved once at construction.
        stage: Current stage.
        history: Stage transitions of the current run, with timestamps.
    """

    def __init__(
        self,
        client: CompletionClient,
        operator: Operator,
        saver: ProjectSaver | None = None,
        config: PipelineConfig | None = None,
        registry: dict[AgentTag, StageAgent] | None = None,
        renderer: TemplateRenderer | None = None,
        model: str | None = None,
    ) -> None:
        self.operator = operator
        self.saver = saver
        self.config = config or PipelineConfig()
        self.idea_agent = IdeaAgent(client, model=model)
        self.refiner = RefinerAgent(client, model=model)
        if registry is None:
            registry = build_registry(client, renderer, model)
        self.registry = registry
        self.stage = Stage.IDEA
        self.history: list[StageTransition] = []

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _reset(self) -> None:
        self.stage = Stage.IDEA
        self.history = [StageTransition(Stage.IDEA, datetime.now(timezone.utc))]

    def _advance(self, target: Stage) -> None:
        """Move to *target*, which must be the stage right after the current one."""
        position = STAGE_ORDER.index(self.stage)
        if position + 1 >= len(STAGE_ORDER) or STAGE_ORDER[position + 1] is not target:
            raise PipelineError(self.stage.value, f"illegal transition to {target.value}")
        self.stage = target
        self.history.append(StageTransition(target, datetime.now(timezone.utc)))
        if target is not Stage.DONE:
            print_stage_header(target.value)

    def _gate(self, target: Stage) -> bool:
        return self.operator.confirm(GATES[target], default=True)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self, idea: str) -> RunResult:
        """Drive *idea* through every stage and return how the run ended."""
        self._reset()
        result = RunResult(status=RunStatus.FAILED, stage=Stage.IDEA)
        started = time.monotonic()
        print_stage_header(Stage.IDEA.value)

        try:
            result.status = await self._run_stages(idea, result)
        except ConfigurationError as exc:
            print_error(str(exc))
            result.status = RunStatus.FAILED
            result.error = str(exc)

        result.stage = self.stage
        result.history = list(self.history)
        result.duration_seconds = time.monotonic() - started
        self._print_summary(result)
        return result

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _run_stages(self, idea: str, result: RunResult) -> RunStatus:
        scope = await self._capture_scope(idea, result)
        if scope is None:
            return RunStatus.EXITED
        result.scope = scope
        self.operator.show(scope, title="Project scope")

        if not self._gate(Stage.REFINE):
            return RunStatus.DECLINED
        self._advance(Stage.REFINE)
        refined, degraded = await self.refiner.refine(scope)
        result.refined_degraded = degraded
        self._show_refined(refined, degraded)

        if not self._gate(Stage.ARCHITECT):
            return RunStatus.DECLINED
        self._advance(Stage.ARCHITECT)
        plan = build_plan(refined)
        context = ProjectContext(refined_project=refined, plan=plan)
        result.context = context
        self._show_plan(plan)

        if not self._gate(Stage.CODEGEN):
            return RunStatus.DECLINED
        self._advance(Stage.CODEGEN)
        codegen = [item for item in plan if item.kind is not WorkKind.INTEGRATION]
        if not await self._run_items(codegen, context):
            return RunStatus.ABORTED

        if not self._gate(Stage.ASSEMBLE):
            return RunStatus.DECLINED
        self._advance(Stage.ASSEMBLE)
        integration = [item for item in plan if item.kind is WorkKind.INTEGRATION]
        if not await self._run_items(integration, context):
            return RunStatus.ABORTED

        if not self._gate(Stage.DONE):
            return RunStatus.DECLINED
        if self.saver is not None:
            try:
                result.saved_path = await self.saver.save(context, result.idea_conversation)
            except OSError as exc:
                print_error(f"Could not save the project: {exc}")
                result.error = str(exc)
                return RunStatus.FAILED
            if result.saved_path is None:
                print_warning("The project was not saved.")
                result.error = "project not saved: existing folder kept"
        self._advance(Stage.DONE)
        return RunStatus.COMPLETED

    async def _capture_scope(self, idea: str, result: RunResult) -> str | None:
        """Run the bounded idea loop. Returns ``None`` when the operator exits."""
        conversation = self.idea_agent.opening(idea)
        result.idea_conversation = conversation

        for _ in range(self.config.max_idea_turns):
            try:
                with create_progress() as progress:
                    progress.add_task("Analysing your idea...", total=None)
                    turn = await self.idea_agent.next_turn(conversation)
            except TransportError as exc:
                print_warning(f"Idea agent unavailable ({exc}); summarising your answers.")
                break

            if turn.is_complete:
                print_success("Project scope captured.")
                return turn.scope or synthesize_scope(conversation)

            question = turn.question or ""
            conversation.append(ConversationTurn.assistant(question))
            self.operator.show(question, title="Hermes")
            reply = self.operator.ask("You")
            if is_exit(reply):
                print_warning("Leaving the idea stage.")
                return None
            conversation.append(ConversationTurn.user(reply))

        return synthesize_scope(conversation)

    async def _run_items(self, items: list[WorkItem], context: ProjectContext) -> bool:
        """Dispatch *items* in order. Returns ``False`` when the operator aborts."""
        view = context.view()
        for number, item in enumerate(items, start=1):
            console.print(
                f"[bold]({number}/{len(items)})[/bold] {item.name} "
                f"[dim]-> {item.agent_tag.value}[/dim]"
            )
            agent = self.registry.get(item.agent_tag)
            try:
                if agent is None:
                    raise StageFailed(item.name, f"no agent for '{item.agent_tag.value}'")
                stage_result = await agent.execute(item, view)
            except ConfigurationError:
                raise
            except HermesError as exc:
                failure = exc if isinstance(exc, StageFailed) else StageFailed(item.name, str(exc))
                if not self._continue_after(failure):
                    return False
                context.append(StageResult(files=failure.degraded_files, degraded=True))
                continue

            added = context.append(stage_result)
            if stage_result.degraded:
                print_warning(f"  {item.name}: {added} default file(s)")
            else:
                print_success(f"  {item.name}: {added} file(s)")
        return True

    def _continue_after(self, failure: StageFailed) -> bool:
        print_error(str(failure))
        if failure.degraded_files:
            console.print(
                f"  [dim]{len(failure.degraded_files)} default file(s) will be kept "
                f"if you continue.[/dim]"
            )
        return self.operator.confirm("Continue with the next step?", default=False)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def _show_refined(self, refined: RefinedProject, degraded: bool) -> None:
        tech = refined.technologies
        if degraded:
            print_warning("The model's answer could not be used; a default structure was built.")
        print_summary_table(
            {
                "Name": refined.display_name,
                "Architecture": refined.architecture,
                "Frontend": ", ".join(tech.frontend) or "-",
                "Backend": ", ".join(tech.backend) or "-",
                "Database": tech.database or "-",
                "Modules": str(len(refined.modules)),
            },
            title="Refined project",
        )

    def _show_plan(self, plan: list[WorkItem]) -> None:
        table = Table(title="Execution plan", show_header=True, header_style="bold cyan")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Step")
        table.add_column("Kind")
        table.add_column("Agent")
        table.add_column("Priority")
        for number, item in enumerate(plan, start=1):
            table.add_row(
                str(number),
                item.name,
                item.kind.value,
                item.agent_tag.value,
                item.priority.value if item.priority else "-",
            )
        console.print(table)
        console.print()

    def _print_summary(self, result: RunResult) -> None:
        context = result.context
        rows = {
            "Status": result.status.value,
            "Stage": result.stage.value,
            "Duration": format_duration(result.duration_seconds),
        }
        if context is not None:
            rows["Files"] = str(len(context.files))
            rows["Lines"] = str(count_lines(f.content for f in context.files))
        if result.saved_path is not None:
            rows["Saved to"] = str(result.saved_path)
        elif self.saver is not None and result.status is RunStatus.COMPLETED:
            rows["Saved to"] = "not saved"
        if result.error:
            rows["Error"] = result.error
        print_summary_table(rows, title="Hermes run")

        if context is not None and context.files:
            label = sanitize_name(context.refined_project.display_name) or "project"
            console.print(build_file_tree(context.file_paths, root_label=label))
            console.print()
        if context is not None and context.instructions:
            console.print("[bold]Next steps[/bold]")
            for number, step in enumerate(context.instructions, start=1):
                console.print(f"  {number}. {step}")
