"""Execution plan builder.

Turns a :class:`~hermes.models.RefinedProject` into the ordered list of work
items the code-generation stage iterates:

1. one ``setup`` item (baseline scaffolding every later step relies on);
2. every ``shared`` module, in original order;
3. every ``backend`` module, highest priority first;
4. every ``frontend`` module, highest priority first;
5. one ``integration`` item that sees every prior artifact.

Priority ordering uses a stable sort, so modules sharing a priority keep the
order the refine stage gave them.
"""

from __future__ import annotations

from hermes.models import (
    PRIORITY_RANK,
    AgentTag,
    Module,
    ModuleKind,
    RefinedProject,
    WorkItem,
    WorkKind,
)

SETUP_ITEM = WorkItem(
    name="Initial Setup",
    kind=WorkKind.SETUP,
    description="Create the folder structure and configuration files",
    agent_tag=AgentTag.SETUP,
)

INTEGRATION_ITEM = WorkItem(
    name="Integration and Tests",
    kind=WorkKind.INTEGRATION,
    description="Connect every module and configure tests, docs and build scripts",
    agent_tag=AgentTag.ASSEMBLER,
)

# module kind -> (work kind, agent tag)
_DISPATCH: dict[ModuleKind, tuple[WorkKind, AgentTag]] = {
    ModuleKind.SHARED: (WorkKind.SHARED, AgentTag.SHARED),
    ModuleKind.BACKEND: (WorkKind.BACKEND, AgentTag.BACKEND),
    ModuleKind.FRONTEND: (WorkKind.FRONTEND, AgentTag.UI),
}


def _by_priority(modules: list[Module]) -> list[Module]:
    """Highest priority first; ``sorted`` is stable so ties keep input order."""
    return sorted(modules, key=lambda m: PRIORITY_RANK[m.priority], reverse=True)


def _to_item(module: Module) -> WorkItem:
    kind, tag = _DISPATCH[module.kind]
    return WorkItem(
        name=module.name,
        kind=kind,
        description=module.description,
        agent_tag=tag,
        priority=module.priority,
    )


def build_plan(refined: RefinedProject) -> list[WorkItem]:
    """Build the ordered execution plan for *refined*.

    The result always starts with exactly one setup item, ends with exactly
    one integration item, and contains one item per module in between.
    """
    shared = [m for m in refined.modules if m.kind is ModuleKind.SHARED]
    backend = [m for m in refined.modules if m.kind is ModuleKind.BACKEND]
    frontend = [m for m in refined.modules if m.kind is ModuleKind.FRONTEND]

    plan: list[WorkItem] = [SETUP_ITEM.model_copy()]
    plan.extend(_to_item(m) for m in shared)
    plan.extend(_to_item(m) for m in _by_priority(backend))
    plan.extend(_to_item(m) for m in _by_priority(frontend))
    plan.append(INTEGRATION_ITEM.model_copy())
    return plan
