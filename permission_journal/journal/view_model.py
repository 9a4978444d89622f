"""
Permission View Model

Typed CRUD over permissions, categories and tags, plus the derived
statistics screens display.

GUARANTEES:
- Every operation checks store readiness first. On an unready store,
  reads return empty results and writes do nothing. Nothing raises.
- Rejected input (blank statement, blank name) creates no state.
- Every successful mutation bumps refresh_trigger and posts
  PERMISSION_DATA_CHANGED.
"""

from datetime import date as calendar_date, datetime, time
from typing import Iterable, Optional, Sequence, TypeVar
from uuid import UUID, uuid4

from sqlalchemy import Select, select
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError

from permission_journal.audit import AuditLogger, get_logger
from permission_journal.config import InsightSettings, get_settings
from permission_journal.journal import insights
from permission_journal.models.audit import JournalEvent, JournalEventBuilder
from permission_journal.models.schema import (
    MoneyPermission,
    PermissionCategory,
    PermissionTag,
    to_wall_clock,
    utc_now,
)
from permission_journal.models.validation import ValidationResult
from permission_journal.services.notifications import (
    PERMISSION_DATA_CHANGED,
    ChangeNotifier,
    notification_center,
)
from permission_journal.services.storage import JournalStoreInterface
from permission_journal.validation import JournalValidator, clamp_emotional_impact


Entity = TypeVar("Entity", MoneyPermission, PermissionCategory, PermissionTag)


def as_journal_datetime(value: datetime | calendar_date) -> datetime:
    """Accept a date or datetime; store the naive local wall-clock time."""
    if isinstance(value, datetime):
        return to_wall_clock(value)
    return datetime.combine(value, time())


class PermissionViewModel:
    """
    Data access layer for the journal.

    The store is passed in explicitly; the view model never opens or
    closes it.
    """

    def __init__(
        self,
        store: JournalStoreInterface,
        notifier: Optional[ChangeNotifier] = None,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[JournalValidator] = None,
        insight_settings: Optional[InsightSettings] = None,
    ):
        self._store = store
        self._notifier = notifier or notification_center
        self._audit = audit_logger or AuditLogger()
        self._validator = validator or JournalValidator()
        self._insight_settings = insight_settings or get_settings().insights
        self._refresh_trigger = uuid4()
        self._logger = get_logger(__name__)

    @property
    def store(self) -> JournalStoreInterface:
        return self._store

    @property
    def refresh_trigger(self) -> UUID:
        """Changes on every mutation so observers know to re-render."""
        return self._refresh_trigger

    def refresh(self) -> None:
        self._refresh_trigger = uuid4()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ready(self, operation: str) -> bool:
        if self._store.is_ready:
            return True
        self._audit.log(JournalEventBuilder.store_not_ready(operation))
        return False

    def _accept(self, result: ValidationResult) -> bool:
        if result.has_errors:
            self._audit.log(JournalEventBuilder.validation_failed(
                result.operation,
                [issue.model_dump() for issue in result.issues],
            ))
            return False
        if result.warnings:
            self._logger.warning(
                "validation_warnings",
                operation=result.operation,
                issues=[issue.message for issue in result.warnings],
            )
        return True

    def _commit(self, event: JournalEvent) -> bool:
        """Save; on success log the event and broadcast the change."""
        if not self._store.save():
            return False
        self._audit.log(event)
        self.refresh()
        self._notifier.post(PERMISSION_DATA_CHANGED)
        return True

    def _fetch(self, query: Select, operation: str) -> list:
        if not self._ready(operation):
            return []
        try:
            return list(self._store.session.scalars(query))
        except SQLAlchemyError as e:
            self._logger.error("fetch_failed", operation=operation, error=str(e))
            return []

    def _get(self, model: type[Entity], entity_id: UUID) -> Optional[Entity]:
        if not self._ready(f"get_{model.__tablename__}"):
            return None
        try:
            return self._store.session.get(model, entity_id)
        except SQLAlchemyError as e:
            self._logger.error("get_failed", entity_id=str(entity_id), error=str(e))
            return None

    def _delete(self, entity: Entity, operation: str, event: JournalEvent) -> bool:
        if not self._ready(operation):
            return False
        try:
            self._store.session.delete(entity)
        except InvalidRequestError as e:
            # Not persisted in this store
            self._logger.warning("delete_skipped", operation=operation, error=str(e))
            return False
        return self._commit(event)

    # ------------------------------------------------------------------
    # Fetches
    # ------------------------------------------------------------------

    def all_permissions(self) -> list[MoneyPermission]:
        """Newest first; ties broken by created_at desc, then id."""
        return self._fetch(
            select(MoneyPermission).order_by(
                MoneyPermission.date.desc(),
                MoneyPermission.created_at.desc(),
                MoneyPermission.id,
            ),
            "all_permissions",
        )

    def all_categories(self) -> list[PermissionCategory]:
        return self._fetch(
            select(PermissionCategory).order_by(
                PermissionCategory.order, PermissionCategory.name
            ),
            "all_categories",
        )

    def all_tags(self) -> list[PermissionTag]:
        return self._fetch(
            select(PermissionTag).order_by(PermissionTag.name),
            "all_tags",
        )

    def get_permission(self, permission_id: UUID) -> Optional[MoneyPermission]:
        return self._get(MoneyPermission, permission_id)

    def get_category(self, category_id: UUID) -> Optional[PermissionCategory]:
        return self._get(PermissionCategory, category_id)

    def get_tag(self, tag_id: UUID) -> Optional[PermissionTag]:
        return self._get(PermissionTag, tag_id)

    def reload_from_store(self) -> int:
        """Merge changes another writer made to the database."""
        if not self._ready("reload_from_store"):
            return 0
        merged = self._store.merge_external_changes()
        self.refresh()
        return merged

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    def create_permission(
        self,
        statement: str,
        date: datetime | calendar_date,
        category: Optional[str] = None,
        emotional_tags: Iterable[str] = (),
        expected_impact: Optional[str] = None,
        actual_outcome: Optional[str] = None,
        emotional_impact: int = 0,
    ) -> Optional[MoneyPermission]:
        """
        Record a new permission.

        Returns the saved permission, or None if the store is not ready,
        the statement is blank, or the save failed.
        """
        if not self._ready("create_permission"):
            return None

        tags = list(emotional_tags)
        if not self._accept(self._validator.validate_permission(
            statement, emotional_impact, tags
        )):
            return None

        now = utc_now()
        permission = MoneyPermission(
            id=uuid4(),
            statement=statement,
            date=as_journal_datetime(date),
            category=category,
            emotional_tags=tags,
            expected_impact=expected_impact,
            actual_outcome=actual_outcome,
            emotional_impact=emotional_impact,
            created_at=now,
            updated_at=now,
        )
        self._store.session.add(permission)

        if not self._commit(JournalEventBuilder.permission_created(
            permission.id, category, len(tags)
        )):
            return None
        return permission

    def update_permission(self, permission: MoneyPermission) -> bool:
        """
        Persist changes the caller made directly on `permission`.

        Stamps updated_at. A blanked statement is rejected and every
        pending change is rolled back.
        """
        if not self._ready("update_permission"):
            return False

        result = self._validator.validate_permission(
            permission.statement,
            permission.emotional_impact,
            permission.emotional_tags or [],
            operation="update_permission",
        )
        if not self._accept(result):
            self._store.rollback()
            return False

        permission.updated_at = utc_now()
        return self._commit(JournalEventBuilder.permission_updated(
            permission.id, permission.has_outcome
        ))

    def record_outcome(
        self,
        permission: MoneyPermission,
        actual_outcome: Optional[str],
        emotional_impact: Optional[int] = None,
    ) -> bool:
        """Attach what actually happened, and optionally how it felt (0-10)."""
        permission.actual_outcome = actual_outcome
        if emotional_impact is not None:
            permission.emotional_impact = clamp_emotional_impact(emotional_impact)
        return self.update_permission(permission)

    def delete_permission(self, permission: MoneyPermission) -> bool:
        return self._delete(
            permission,
            "delete_permission",
            JournalEventBuilder.permission_deleted(permission.id),
        )

    # ------------------------------------------------------------------
    # Categories and tags
    # ------------------------------------------------------------------

    def create_category(
        self,
        name: str,
        icon_name: Optional[str] = None,
        color_hex: Optional[str] = None,
    ) -> Optional[PermissionCategory]:
        """
        Create a category at the end of the list.

        order is the current category count, so it can repeat after a
        deletion.
        """
        if not self._ready("create_category"):
            return None
        if not self._accept(self._validator.validate_named(
            "create_category", name, color_hex
        )):
            return None

        category = PermissionCategory(
            id=uuid4(),
            name=name,
            icon_name=icon_name,
            color_hex=color_hex,
            order=len(self.all_categories()),
        )
        self._store.session.add(category)

        if not self._commit(JournalEventBuilder.category_created(
            category.id, name, category.order
        )):
            return None
        return category

    def create_tag(
        self,
        name: str,
        color_hex: Optional[str] = None,
        icon_name: Optional[str] = None,
    ) -> Optional[PermissionTag]:
        if not self._ready("create_tag"):
            return None
        if not self._accept(self._validator.validate_named(
            "create_tag", name, color_hex
        )):
            return None

        tag = PermissionTag(
            id=uuid4(),
            name=name,
            color_hex=color_hex,
            icon_name=icon_name,
        )
        self._store.session.add(tag)

        if not self._commit(JournalEventBuilder.tag_created(tag.id, name)):
            return None
        return tag

    def delete_category(self, category: PermissionCategory) -> bool:
        """Remove the category. Permissions keep the category name."""
        return self._delete(
            category,
            "delete_category",
            JournalEventBuilder.category_deleted(category.id, category.name),
        )

    def delete_tag(self, tag: PermissionTag) -> bool:
        """Remove the tag. Permissions keep the tag name."""
        return self._delete(
            tag,
            "delete_tag",
            JournalEventBuilder.tag_deleted(tag.id, tag.name),
        )

    def rename_category(self, category: PermissionCategory, new_name: str) -> Optional[int]:
        """
        Rename a category and every permission that references it by name.

        Returns the number of permissions updated, or None if rejected.
        """
        if not self._ready("rename_category"):
            return None
        if not self._accept(self._validator.validate_named("rename_category", new_name)):
            return None

        old_name = category.name
        if new_name == old_name:
            return 0

        now = utc_now()
        referencing = self._fetch(
            select(MoneyPermission).where(MoneyPermission.category == old_name),
            "rename_category",
        )
        category.name = new_name
        for permission in referencing:
            permission.category = new_name
            permission.updated_at = now

        if not self._commit(JournalEventBuilder.renamed(
            "category", category.id, old_name, new_name, len(referencing)
        )):
            return None
        return len(referencing)

    def rename_tag(self, tag: PermissionTag, new_name: str) -> Optional[int]:
        """
        Rename a tag and replace it in every permission's tag list.

        Returns the number of permissions updated, or None if rejected.
        """
        if not self._ready("rename_tag"):
            return None
        if not self._accept(self._validator.validate_named("rename_tag", new_name)):
            return None

        old_name = tag.name
        if new_name == old_name:
            return 0

        now = utc_now()
        touched = 0
        for permission in self.all_permissions():
            tags = permission.emotional_tags or []
            if old_name not in tags:
                continue
            permission.emotional_tags = [new_name if t == old_name else t for t in tags]
            permission.updated_at = now
            touched += 1
        tag.name = new_name

        if not self._commit(JournalEventBuilder.renamed(
            "tag", tag.id, old_name, new_name, touched
        )):
            return None
        return touched

    def delete_all(self) -> bool:
        """Delete every permission, category and tag."""
        if not self._ready("delete_all"):
            return False
        counts = self._stage_delete_all()
        return self._commit(JournalEventBuilder.data_reset(counts))

    def _stage_delete_all(self) -> dict[str, int]:
        """Mark every record deleted in the session without saving."""
        counts = {}
        for name, model in (
            ("permissions", MoneyPermission),
            ("categories", PermissionCategory),
            ("tags", PermissionTag),
        ):
            records = self._fetch(select(model), "delete_all")
            for record in records:
                self._store.session.delete(record)
            counts[name] = len(records)
        return counts

    # ------------------------------------------------------------------
    # Filters and statistics
    # ------------------------------------------------------------------

    def permissions_for_category(self, category: Optional[str] = None) -> list[MoneyPermission]:
        return insights.permissions_for_category(self.all_permissions(), category)

    def permissions_with_outcome(self) -> list[MoneyPermission]:
        return insights.permissions_with_outcome(self.all_permissions())

    def high_impact_permissions(self) -> list[MoneyPermission]:
        return insights.high_impact_permissions(
            self.all_permissions(),
            self._insight_settings.high_impact_threshold,
        )

    def permission_count(self) -> int:
        return len(self.all_permissions())

    def longest_streak(self) -> int:
        return insights.longest_streak(self.all_permissions())

    def most_common_tag(self) -> Optional[str]:
        return insights.most_common_tag(self.all_permissions())

    def category_impact_averages(self) -> dict[str, float]:
        return insights.category_impact_averages(
            self.all_permissions(),
            self._insight_settings.uncategorized_label,
        )

    def most_liberating_category(self) -> Optional[str]:
        return insights.most_liberating_category(
            self.all_permissions(),
            self._insight_settings.uncategorized_label,
        )

    def biggest_boundary(self, year: Optional[int] = None) -> Optional[str]:
        return insights.biggest_boundary(
            self.all_permissions(),
            year,
            self._insight_settings.uncategorized_label,
        )

    def add_imported(self, records: Sequence[Entity], replace: bool = False) -> bool:
        """
        Insert fully-formed records (ids and timestamps kept) in one save.

        With replace, every existing record is deleted in that same save,
        so a failed import leaves the journal as it was.
        """
        if not self._ready("add_imported"):
            return False
        if not records and not replace:
            return True

        counts = self._stage_delete_all() if replace else None
        self._store.session.add_all(records)
        if not self._store.save():
            return False

        if counts is not None:
            self._audit.log(JournalEventBuilder.data_reset(counts))
        self.refresh()
        self._notifier.post(PERMISSION_DATA_CHANGED)
        return True
