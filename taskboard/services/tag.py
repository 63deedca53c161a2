"""Tag service with business logic."""

from ..board.records import TagColor
from ..core.logging import get_logger
from ..store.base import TagCollection, TaskCollection

logger = get_logger(__name__)

MAX_TAG_NAME_LENGTH = 50


class TagService:
    """
    Сервис для работы с тегами одного владельца.

    Главное бизнес-правило: после удаления тега ни одна задача
    не ссылается на его id.
    """

    def __init__(self, tags: TagCollection, tasks: TaskCollection):
        self.tags = tags
        self.tasks = tasks

    async def create_tag(self, name: str, color: TagColor | str) -> str:
        """
        Создать тег.

        Raises:
            ValueError: пустое/слишком длинное название или цвет вне палитры
        """
        if not name or not name.strip():
            raise ValueError("Tag name cannot be empty")
        name = name.strip()
        if len(name) > MAX_TAG_NAME_LENGTH:
            raise ValueError(f"Tag name must be at most {MAX_TAG_NAME_LENGTH} characters")
        try:
            color = TagColor(color)
        except ValueError:
            palette = ", ".join(c.value for c in TagColor)
            raise ValueError(f"Unknown tag color '{color}'. Use one of: {palette}") from None

        tag_id = await self.tags.add({"name": name, "color": color})
        logger.info("Tag created", extra={"tag_id": tag_id, "color": color.value})
        return tag_id

    async def delete_tag(self, tag_id: str) -> int:
        """
        Удалить тег и убрать его id из всех задач владельца.

        Всё выполняется одним атомарным batch: либо тег удалён и все
        задачи очищены, либо не изменилось ничего.

        Returns:
            Количество задач, из которых убран тег

        Raises:
            ValueError: тег не найден
        """
        if not any(tag.id == tag_id for tag in await self.tags.list()):
            raise ValueError(f"Tag with id {tag_id} not found")

        batch = self.tags.batch()
        stripped = 0
        for task in await self.tasks.list():
            if tag_id in task.tags:
                batch.update_task(task.id, {"tags": sorted(task.tags - {tag_id})})
                stripped += 1
        batch.delete_tag(tag_id)
        await batch.commit()

        logger.info("Tag deleted", extra={"tag_id": tag_id, "tasks_updated": stripped})
        return stripped
