"""
Board State Reconciler.

Связывает три источника состояния:
  - последний снимок Tasks из store
  - последний снимок Tags из store
  - локальное переходное состояние (drag session, фильтры, редактор)

Снимки заменяют локальные списки целиком. Запись в store - только через
команды, которые вернул transition(); результат записи виден лишь
со следующим снимком, поэтому откат при ошибке не нужен.
"""

from collections.abc import Callable
from datetime import date
from typing import Any

from ..core.logging import get_logger, owner_id_var
from ..services.tag import TagService
from ..services.task import TaskService
from ..store.base import LiveStore, StoreError, Subscription
from .ordering import DropPosition, compute_order, is_noop_move, spread_orders
from .records import TagRecord, TaskRecord, TaskStatus, find_task
from .state import (
    BoardState,
    EditorClosed,
    TagsSnapshot,
    TasksSnapshot,
    UpdateTask,
    WriteFailed,
    transition,
)
from .view import BoardView, render

logger = get_logger(__name__)

MOVE_FAILED_MESSAGE = "Could not move the task. Please try again."
SAVE_FAILED_MESSAGE = "Could not save the task. Please try again."


class BoardReconciler:
    """Live board of one owner."""

    def __init__(
        self,
        owner_id: str,
        store: LiveStore,
        clock: Callable[[], date] = date.today,
    ):
        self.owner_id = owner_id
        self.task_service = TaskService(store.tasks(owner_id), store.tags(owner_id))
        self.tag_service = TagService(store.tags(owner_id), store.tasks(owner_id))
        self.state = BoardState()
        self._clock = clock
        self._subscriptions: list[Subscription] = []

    # ------------------------------------------------------------------
    # Subscription lifecycle
    # ------------------------------------------------------------------

    @property
    def active(self) -> bool:
        return bool(self._subscriptions)

    async def start(self) -> None:
        """Acquire the Tasks and Tags subscriptions (idempotent)."""
        if self._subscriptions:
            return
        owner_id_var.set(self.owner_id)
        try:
            self._subscriptions.append(
                await self.task_service.tasks.subscribe(self._on_tasks_snapshot)
            )
            self._subscriptions.append(await self.tag_service.tags.subscribe(self._on_tags_snapshot))
        except StoreError:
            logger.error("Board subscriptions failed", exc_info=True)
            self.close()
            raise
        logger.info("Board subscriptions started")

    def close(self) -> None:
        """Release every subscription; no snapshot is delivered afterwards."""
        if not self._subscriptions:
            return
        for subscription in self._subscriptions:
            subscription.release()
        self._subscriptions.clear()
        logger.info("Board subscriptions released", extra={"board_owner": self.owner_id})

    def _on_tasks_snapshot(self, tasks: list[TaskRecord]) -> None:
        self.apply(TasksSnapshot(tuple(tasks)))

    def _on_tags_snapshot(self, tags: list[TagRecord]) -> None:
        self.apply(TagsSnapshot(tuple(tags)))

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def apply(self, event: Any) -> tuple[UpdateTask, ...]:
        """Run the pure transition and keep the new state."""
        self.state, commands = transition(self.state, event)
        return commands

    async def dispatch(self, event: Any) -> bool:
        """
        Apply an event and execute the writes it produces.

        Returns:
            True если хотя бы одна запись прошла успешно
        """
        written = False
        for command in self.apply(event):
            written = await self._execute(command) or written
        return written

    async def _execute(self, command: UpdateTask) -> bool:
        try:
            await self.task_service.move_task(
                command.task_id, command.changes["status"], command.changes["order"]
            )
        except StoreError as exc:
            logger.warning(
                "Task move failed", extra={"task_id": command.task_id, "error": str(exc)}
            )
            self.apply(WriteFailed(MOVE_FAILED_MESSAGE))
            return False
        return True

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def submit_editor(self) -> bool:
        """
        Save the editor buffer.

        Невалидный буфер (пустое название) отклоняется без обращения
        к store. При ошибке store редактор остаётся открытым.
        """
        editor = self.state.editor
        if editor is None or not editor.can_submit:
            return False

        try:
            if editor.task_id is None:
                await self.task_service.create_task(
                    title=editor.title,
                    description=editor.description,
                    status=editor.status,
                    due_date=editor.due_date,
                    tag_ids=editor.tag_ids,
                )
            else:
                await self.task_service.update_task(
                    editor.task_id,
                    title=editor.title,
                    description=editor.description,
                    status=editor.status,
                    due_date=editor.due_date,
                    tag_ids=editor.tag_ids,
                )
        except StoreError as exc:
            logger.warning("Task save failed", extra={"error": str(exc)})
            self.apply(WriteFailed(SAVE_FAILED_MESSAGE))
            return False

        self.apply(EditorClosed())
        return True

    async def move_task(
        self,
        task_id: str,
        status: TaskStatus,
        target_id: str | None = None,
        position: DropPosition | None = None,
    ) -> bool:
        """
        Move a task without a drag session (keyboard or API).

        Те же правила, что и у drop: одна запись, no-op без записи.

        Raises:
            ValueError: задачи нет в последнем снимке
        """
        task = find_task(self.state.tasks, task_id)
        if task is None:
            raise ValueError(f"Task with id {task_id} not found")
        status = TaskStatus(status)
        if is_noop_move(task, status, target_id):
            return False

        order = compute_order(
            self.state.tasks, status, target_id=target_id, position=position, moving_id=task_id
        )
        return await self._execute(UpdateTask(task_id, {"status": status, "order": order}))

    async def rebalance_column(self, status: TaskStatus) -> int:
        """Respace a column's order keys to 1000, 2000, ... in one batch."""
        changes = spread_orders(self.state.tasks, status)
        if changes:
            await self.task_service.reorder(changes)
        return len(changes)

    def today(self) -> date:
        return self._clock()

    def render(self, today: date | None = None) -> BoardView:
        return render(self.state, today or self._clock())
