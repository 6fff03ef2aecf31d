"""
Quest Catalog Service
=====================

Purpose
-------
Owns quest templates: ingestion from the static catalog, incremental
dedupe-merge sync, and player-authored custom templates.

Domain
------
- Sync catalog definitions into storage, merging by identity
  ``(title, class, type)`` and never overwriting existing rows
- Create, enable/disable and delete custom templates
- Template queries for generation and reroll

Design Notes
------------
- Templates are definitions only; instances copy their content at
  materialization, so editing or deleting a template never touches existing
  instances.
- Only custom templates may be deleted; catalog templates can only be
  disabled (a later sync would re-add a deleted catalog row).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set, Tuple

from levelup.core.logging.logger import get_logger
from levelup.database.models.enums import QuestType
from levelup.database.models.progression.quest_template import QuestTemplate
from levelup.modules.catalog.source import TemplateDefinition, iter_definitions
from levelup.modules.shared.base_repository import BaseRepository
from levelup.modules.shared.base_service import BaseService
from levelup.modules.shared.constants import (
    EVENT_CATALOG_SYNCED,
    EVENT_TEMPLATE_CREATED,
    WEEKLY_ORDER_ENTRY,
)
from levelup.modules.shared.exceptions import (
    NotFoundError,
    PreconditionUnmetError,
    ValidationError,
)
from levelup.modules.shared.formulas import parse_requirement

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from levelup.modules.catalog.source import CatalogSource


# ============================================================================
# Repository
# ============================================================================


class QuestTemplateRepository(BaseRepository[QuestTemplate]):
    """Repository for QuestTemplate model."""

    async def list_enabled(
        self,
        session: AsyncSession,
        quest_type: QuestType,
        class_id: Optional[str] = None,
    ) -> List[QuestTemplate]:
        conditions = [QuestTemplate.type == quest_type, QuestTemplate.enabled.is_(True)]
        if class_id is not None:
            conditions.append(QuestTemplate.class_id == class_id)
        return await self.find_many_where(session, *conditions, order_by=[QuestTemplate.id])

    async def identities(self, session: AsyncSession) -> Set[Tuple[str, str, QuestType]]:
        templates = await self.find_many_where(session)
        return {(t.title, t.class_id, t.type) for t in templates}


def template_snapshot(template: QuestTemplate) -> Dict[str, Any]:
    return {
        "id": template.id,
        "title": template.title,
        "description": template.description,
        "type": template.type.value,
        "class_id": template.class_id,
        "base_xp": template.base_xp,
        "base_gold": template.base_gold,
        "enabled": template.enabled,
        "scaling": template.scaling,
        "level1_requirement_count": template.level1_requirement_count,
        "level100_requirement_count": template.level100_requirement_count,
        "requirement_count": template.requirement_count,
        "is_custom": template.is_custom,
    }


# ============================================================================
# QuestCatalogService
# ============================================================================


class QuestCatalogService(BaseService):
    """
    Quest template catalog.

    Public Methods
    --------------
    - class_ids() -> Catalog-defined class ids
    - sync_catalog() -> Merge new catalog definitions into storage
    - list_templates() -> Template snapshots, optionally filtered
    - create_custom_template() -> Add a player-authored template
    - set_template_enabled() -> Enable or disable a template
    - delete_custom_template() -> Remove a player-authored template
    """

    def __init__(
        self,
        database: Any,
        config_manager: Any,
        event_bus: Any,
        logger: Any,
        *,
        catalog: CatalogSource,
        **kwargs: Any,
    ) -> None:
        super().__init__(database, config_manager, event_bus, logger, **kwargs)
        self._catalog = catalog
        self._template_repo = QuestTemplateRepository(
            model_class=QuestTemplate,
            logger=get_logger(f"{__name__}.QuestTemplateRepository"),
        )

    @property
    def catalog(self) -> CatalogSource:
        return self._catalog

    @property
    def templates(self) -> QuestTemplateRepository:
        return self._template_repo

    def class_ids(self) -> List[str]:
        """Catalog class ids, in catalog order, excluding the weekly display entry."""
        return [cid for cid in self._catalog.class_config() if cid != WEEKLY_ORDER_ENTRY]

    # ========================================================================
    # PUBLIC API - Sync
    # ========================================================================

    async def sync_catalog(self, *, session: Optional[AsyncSession] = None) -> Dict[str, int]:
        """
        Merge catalog definitions into storage.

        New definitions (by ``(title, class, type)``) are inserted; existing
        rows are never overwritten, so player edits such as disabling a
        template survive. Used for first-run seeding and for later catalog
        updates.

        Returns:
            Dict with keys: added, skipped
        """
        self.log_operation("sync_catalog")
        definitions = iter_definitions(self._catalog)

        async with self._unit_of_work(session) as s:
            existing = await self._template_repo.identities(s)
            added = 0
            skipped = 0
            for definition in definitions:
                if definition.identity in existing:
                    skipped += 1
                    continue
                self._template_repo.add(s, self._from_definition(definition))
                existing.add(definition.identity)
                added += 1

            await self._template_repo.flush(s)

            await self.emit_event(EVENT_CATALOG_SYNCED, {"added": added, "skipped": skipped})
            self.log.info(
                f"Catalog synced: {added} added, {skipped} already present",
                extra={"added": added, "skipped": skipped},
            )
            return {"added": added, "skipped": skipped}

    def _from_definition(self, definition: TemplateDefinition) -> QuestTemplate:
        return QuestTemplate(
            title=definition.title,
            description=definition.description,
            type=definition.type,
            class_id=definition.class_id,
            base_xp=definition.base_xp,
            base_gold=definition.base_gold,
            enabled=definition.enabled,
            scaling=definition.scaling,
            level1_requirement_count=definition.level1_requirement_count,
            level100_requirement_count=definition.level100_requirement_count,
            requirement_count=definition.requirement_count,
            is_custom=False,
            created_at=self.now(),
        )

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    async def list_templates(
        self,
        quest_type: Optional[QuestType] = None,
        class_id: Optional[str] = None,
        *,
        enabled_only: bool = False,
        session: Optional[AsyncSession] = None,
    ) -> List[Dict[str, Any]]:
        conditions = []
        if quest_type is not None:
            conditions.append(QuestTemplate.type == QuestType(quest_type))
        if class_id is not None:
            conditions.append(QuestTemplate.class_id == class_id)
        if enabled_only:
            conditions.append(QuestTemplate.enabled.is_(True))

        async with self._read(session) as s:
            rows = await self._template_repo.find_many_where(
                s, *conditions, order_by=[QuestTemplate.id]
            )
            return [template_snapshot(t) for t in rows]

    # ========================================================================
    # PUBLIC API - Custom Templates
    # ========================================================================

    async def create_custom_template(
        self,
        *,
        title: str,
        class_id: str,
        quest_type: QuestType | str = QuestType.DAILY,
        description: str = "",
        base_xp: int = 0,
        base_gold: int = 0,
        scaling: bool = False,
        level1_requirement: Any = None,
        level100_requirement: Any = None,
        requirement: Any = None,
        enabled: bool = True,
        session: Optional[AsyncSession] = None,
    ) -> Dict[str, Any]:
        """
        Add a player-authored template.

        Requirement fields accept integers or numeric strings; missing or
        non-numeric values fall back the same way catalog records do.

        Raises:
            ValidationError: On empty title, unknown class, bad type or
                negative rewards
        """
        self.validate_non_empty_str(title, "title")
        self.validate_non_negative_int(base_xp, "base_xp")
        self.validate_non_negative_int(base_gold, "base_gold")
        try:
            qtype = QuestType(quest_type)
        except ValueError as exc:
            raise ValidationError("quest_type", f"unknown quest type {quest_type!r}") from exc

        if class_id not in self.class_ids():
            raise ValidationError("class_id", f"unknown class {class_id!r}")

        self.log_operation("create_custom_template", title=title, class_id=class_id)

        flat = parse_requirement(requirement)
        template = QuestTemplate(
            title=title.strip(),
            description=description,
            type=qtype,
            class_id=class_id,
            base_xp=base_xp,
            base_gold=base_gold,
            enabled=enabled,
            scaling=scaling,
            level1_requirement_count=parse_requirement(level1_requirement) if scaling else None,
            level100_requirement_count=parse_requirement(level100_requirement) if scaling else None,
            requirement_count=flat if flat is not None else 1,
            is_custom=True,
            created_at=self.now(),
        )

        async with self._unit_of_work(session) as s:
            self._template_repo.add(s, template)
            await self._template_repo.flush(s)
            await self.emit_event(
                EVENT_TEMPLATE_CREATED,
                {"template_id": template.id, "title": template.title, "class_id": class_id},
            )
            return template_snapshot(template)

    async def set_template_enabled(
        self, template_id: int, enabled: bool, *, session: Optional[AsyncSession] = None
    ) -> Dict[str, Any]:
        self.log_operation("set_template_enabled", template_id=template_id, enabled=enabled)

        async with self._unit_of_work(session) as s:
            template = await self._template_repo.get_for_update(s, template_id)
            if template is None:
                raise NotFoundError("QuestTemplate", template_id)
            template.enabled = enabled
            return template_snapshot(template)

    async def delete_custom_template(
        self, template_id: int, *, session: Optional[AsyncSession] = None
    ) -> None:
        """
        Delete a custom template. Existing instances keep their copied content.

        Raises:
            NotFoundError: If the template does not exist
            PreconditionUnmetError: If the template came from the catalog
        """
        self.log_operation("delete_custom_template", template_id=template_id)

        async with self._unit_of_work(session) as s:
            template = await self._template_repo.get_for_update(s, template_id)
            if template is None:
                raise NotFoundError("QuestTemplate", template_id)
            if not template.is_custom:
                raise PreconditionUnmetError(
                    "delete template",
                    "only custom templates can be deleted; disable catalog templates instead",
                    template_id=template_id,
                )
            await self._template_repo.delete(s, template)
