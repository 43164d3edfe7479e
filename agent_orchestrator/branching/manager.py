"""Branch manager - alternate continuations of one step's chat history.

Every branch stores a full deep copy of the history it was forked from.
Branches never merge; switching replaces the caller's live history
wholesale with a fresh copy of the stored one.

The root branch ("main") is created lazily on the first fork and holds
the history as it was at that moment.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from agent_orchestrator.core.constants import MAIN_BRANCH_ID
from agent_orchestrator.core.exceptions import InvalidIndexError
from agent_orchestrator.models.turns import Turn


@dataclass
class Branch:
    """One stored history.

    Attributes:
        id: Branch identifier; ``"main"`` for the root.
        parent_id: Branch that was active when this one was forked.
        fork_index: Turn index the fork was taken at (-1 for "before any turn").
        history: Deep copy of the history at fork time.
        created_at: When the branch was created.
    """

    id: str
    parent_id: str | None
    fork_index: int
    history: list[Turn] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class BranchManager:
    """Tree of branches for the active step. Reset whenever a step starts."""

    def __init__(self) -> None:
        self._branches: dict[str, Branch] = {}
        self._active_id: str = MAIN_BRANCH_ID

    @property
    def active_branch_id(self) -> str:
        return self._active_id

    @property
    def branches(self) -> list[Branch]:
        return list(self._branches.values())

    def has_branches(self) -> bool:
        return bool(self._branches)

    def reset(self) -> None:
        self._branches.clear()
        self._active_id = MAIN_BRANCH_ID

    def fork(self, history: list[Turn], at_index: int) -> str:
        """Snapshot ``history`` as a new branch and make it active.

        The caller truncates its live history to ``at_index + 1`` turns
        and continues under the returned branch id.

        Args:
            history: The live history (copied, not referenced).
            at_index: Last turn kept by the caller; -1 keeps none.

        Returns:
            The new branch id.

        Raises:
            InvalidIndexError: ``at_index`` outside ``[-1, len(history))``.
        """
        if not -1 <= at_index < len(history):
            raise InvalidIndexError(
                f"Cannot fork at turn {at_index}",
                index=at_index,
                valid_range=f"-1..{len(history) - 1}",
            )

        if MAIN_BRANCH_ID not in self._branches:
            self._branches[MAIN_BRANCH_ID] = Branch(
                id=MAIN_BRANCH_ID,
                parent_id=None,
                fork_index=-1,
                history=copy.deepcopy(history),
            )

        branch_id = f"branch-{uuid.uuid4().hex[:8]}"
        self._branches[branch_id] = Branch(
            id=branch_id,
            parent_id=self._active_id,
            fork_index=at_index,
            history=copy.deepcopy(history),
        )
        self._active_id = branch_id
        return branch_id

    def switch_to(self, branch_id: str) -> list[Turn]:
        """Activate ``branch_id`` and return a copy of its stored history.

        Raises:
            InvalidIndexError: Unknown branch id.
        """
        branch = self._branches.get(branch_id)
        if branch is None:
            raise InvalidIndexError(f"Unknown branch: {branch_id}")
        self._active_id = branch_id
        return copy.deepcopy(branch.history)


__all__ = ["Branch", "BranchManager"]
