"""Alert store: creation, modification, deletion and lookup of alerts.

Like the rest of the service layer, the store takes the acting principal as
an explicit argument. Lookups fail with ``UnknownAlertError`` when an alert
exists but its scope is no longer visible to the principal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import ColumnElement, Select, and_, delete, func, or_, select
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session, aliased

from tracker_alerts.core.errors import (
    AccessDeniedError,
    AlertStorageError,
    DuplicateAlertError,
    InvalidArgumentsError,
    UnknownAlertError,
)
from tracker_alerts.core.settings import settings
from tracker_alerts.models import Alert, DeliveryMode, Folder, IssueType, Project, View
from tracker_alerts.models.alert import alert_key
from tracker_alerts.services.access import (
    AccessContext,
    Principal,
    has_effective_access,
)
from tracker_alerts.services.schedule import normalize_schedule
from tracker_alerts.services.scope import scope_stamp_select

logger = logging.getLogger(__name__)

# SQLSTATE codes reported for serialization failures and deadlocks.
SERIALIZATION_FAILURE_CODES = frozenset({"40001", "40P01"})


@dataclass
class AlertDetails:
    """An alert together with the names of the entities it refers to."""

    alert: Alert
    type_name: str
    view_name: str | None
    project_name: str | None
    folder_name: str | None

    @property
    def is_public(self) -> bool:
        return self.alert.is_public


def is_serialization_failure(err: DBAPIError) -> bool:
    """Return True if a database error is a transient write conflict."""
    orig = err.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code in SERIALIZATION_FAILURE_CODES:
        return True
    message = str(orig).lower()
    return "could not serialize" in message or "database is locked" in message


def _matches(column: ColumnElement[int | None], value: int | None) -> ColumnElement[bool]:
    return column.is_(None) if value is None else column == value


class AlertStore:
    """Thin wrapper around database access for alert entities."""

    def __init__(self, db: Session) -> None:
        """Initialize the store with a SQLAlchemy session."""
        self.db = db
        self.access = AccessContext(db)

    # --- Lookup -------------------------------------------------------------------

    def get_alert(
        self,
        principal: Principal,
        alert_id: int,
        *,
        require_editable: bool = False,
    ) -> AlertDetails:
        """Return a visible alert.

        Args:
            principal: Acting user
            alert_id: Identifier of the alert
            require_editable: Fail unless the principal may modify the alert

        Raises:
            UnknownAlertError: If the alert is absent or not visible.
            AccessDeniedError: If ``require_editable`` is set and the alert is
                public while the principal is not an administrator.
        """
        stmt = self._details_query().where(
            Alert.alert_id == alert_id,
            self._visible_clause(principal),
        )
        row = self.db.execute(stmt).first()
        if row is None:
            raise UnknownAlertError(f"Unknown alert {alert_id}")

        details = AlertDetails(*row)
        owner_id = details.alert.user_id
        # Personal alerts of other users are hidden from non-administrators.
        if owner_id is not None and owner_id != principal.user_id and not principal.is_administrator:
            raise UnknownAlertError(f"Unknown alert {alert_id}")
        if require_editable and details.is_public and not principal.is_administrator:
            raise AccessDeniedError("Public alerts can only be edited by administrators")
        return details

    def get_personal_alerts(self, principal: Principal) -> list[AlertDetails]:
        """Return the principal's own visible alerts."""
        stmt = self._details_query().where(
            Alert.user_id == principal.user_id,
            self._visible_clause(principal),
        )
        return self._list(stmt)

    def get_public_alerts(self, principal: Principal) -> list[AlertDetails]:
        """Return public alerts visible to the principal."""
        stmt = self._details_query().where(
            Alert.user_id.is_(None),
            self._visible_clause(principal),
        )
        return self._list(stmt)

    def _list(self, stmt: Select) -> list[AlertDetails]:
        stmt = stmt.order_by(
            IssueType.type_name,
            View.view_name,
            Project.project_name,
            Folder.folder_name,
            Alert.alert_id,
        )
        return [AlertDetails(*row) for row in self.db.execute(stmt).all()]

    @staticmethod
    def _details_query() -> Select:
        return (
            select(
                Alert,
                IssueType.type_name,
                View.view_name,
                Project.project_name,
                Folder.folder_name,
            )
            .join(IssueType, IssueType.type_id == Alert.type_id)
            .outerjoin(View, View.view_id == Alert.view_id)
            .outerjoin(Folder, Folder.folder_id == Alert.folder_id)
            .outerjoin(
                Project,
                Project.project_id == func.coalesce(Alert.project_id, Folder.project_id),
            )
        )

    @staticmethod
    def _visible_clause(principal: Principal) -> ColumnElement[bool]:
        """Predicate for alerts whose scope the principal can still see.

        Administrators see everything outside archived projects. Other users
        need access to the alert's project, or, for type-wide alerts, to at
        least one non-archived project holding a folder of the type.
        """
        if principal.is_administrator:
            return or_(Project.project_id.is_(None), Project.is_archived.is_(False))

        type_folder = aliased(Folder)
        type_project = aliased(Project)
        type_reachable = (
            select(type_folder.folder_id)
            .join(type_project, type_project.project_id == type_folder.project_id)
            .where(
                type_folder.type_id == Alert.type_id,
                type_project.is_archived.is_(False),
                has_effective_access(principal.user_id, type_project),
            )
            .exists()
        )
        return or_(
            and_(
                Project.is_archived.is_(False),
                has_effective_access(principal.user_id),
            ),
            and_(Project.project_id.is_(None), type_reachable),
        )

    # --- Creation -----------------------------------------------------------------

    def create_alert(
        self,
        principal: Principal,
        type_id: int,
        *,
        view_id: int | None = None,
        project_id: int | None = None,
        folder_id: int | None = None,
        delivery_mode: DeliveryMode | int = DeliveryMode.IMMEDIATE,
        summary_days: str | None = None,
        summary_hours: str | None = None,
        public: bool = False,
    ) -> int:
        """Create a personal or public alert.

        The duplicate check and insert run in one transaction under the
        configured isolation level (SERIALIZABLE by default). A public alert
        replaces every personal alert with the same type, view and scope.

        Returns:
            Identifier of the new alert.

        Raises:
            InvalidArgumentsError: Malformed delivery settings or scope.
            AccessDeniedError: Non-administrator creating a public alert or
                subscribing to an inaccessible project.
            DuplicateAlertError: An equivalent alert already exists.
            AlertStorageError: Write conflicts persisted after retrying.
        """
        try:
            mode = DeliveryMode(delivery_mode)
        except ValueError as err:
            raise InvalidArgumentsError(f"Invalid delivery mode: {delivery_mode!r}") from err
        summary_days, summary_hours = normalize_schedule(mode, summary_days, summary_hours)

        if public and not principal.is_administrator:
            raise AccessDeniedError("Only administrators can create public alerts")
        if not public and principal.user_id is None:
            raise InvalidArgumentsError("Personal alerts require an owner")

        project_id, folder_id = self._resolve_scope(
            principal, type_id, view_id, project_id, folder_id, public=public
        )
        user_id = None if public else principal.user_id
        key = (user_id, type_id, view_id, project_id, folder_id)

        attempts = max(settings.alert_create_retries, 0) + 1
        for attempt in range(1, attempts + 1):
            try:
                alert_id = self._insert_alert(*key, mode, summary_days, summary_hours)
            except IntegrityError as err:
                if self._find_duplicate(*key) is not None:
                    raise DuplicateAlertError("Alert already exists") from err
                raise
            except OperationalError as err:
                if not is_serialization_failure(err):
                    raise
                if self._find_duplicate(*key) is not None:
                    raise DuplicateAlertError("Alert already exists") from err
                if attempt == attempts:
                    raise AlertStorageError(
                        "Alert creation kept conflicting with concurrent writers"
                    ) from err
                logger.warning(
                    "Write conflict creating alert %s (attempt %d of %d), retrying",
                    alert_key(*key),
                    attempt,
                    attempts,
                )
                continue

            logger.info("Created %s alert %d (%s)", "public" if public else "personal",
                        alert_id, alert_key(*key))
            return alert_id

        raise AlertStorageError("Alert creation was not attempted")  # pragma: no cover

    def _resolve_scope(
        self,
        principal: Principal,
        type_id: int,
        view_id: int | None,
        project_id: int | None,
        folder_id: int | None,
        *,
        public: bool,
    ) -> tuple[int | None, int | None]:
        """Validate the scope and return the stored ``(project_id, folder_id)``.

        Folder-specific alerts are stored without a project reference.
        """
        if self.db.get(IssueType, type_id) is None:
            raise InvalidArgumentsError(f"Unknown issue type {type_id}")

        if view_id is not None:
            view = self.db.get(View, view_id)
            if view is None or view.type_id != type_id:
                raise InvalidArgumentsError("View does not belong to the alert's type")
            if view.user_id is not None and (public or view.user_id != principal.user_id):
                raise InvalidArgumentsError("Personal views can only be used by their owner")

        if folder_id is not None:
            folder = self.db.get(Folder, folder_id)
            if folder is None:
                raise InvalidArgumentsError(f"Unknown folder {folder_id}")
            if project_id is not None and folder.project_id != project_id:
                raise InvalidArgumentsError("Folder does not belong to the given project")
            if folder.type_id != type_id:
                raise InvalidArgumentsError("Folder does not hold issues of the alert's type")
            scope_project_id = folder.project_id
            project_id = None
        elif project_id is not None:
            scope_project_id = project_id
        else:
            return None, None

        project = self.db.get(Project, scope_project_id)
        if project is None:
            raise InvalidArgumentsError(f"Unknown project {scope_project_id}")
        # Alerts on archived projects would never become due; refuse them up front.
        if project.is_archived:
            raise InvalidArgumentsError("Cannot create alerts in an archived project")
        if not self.access.can_access_project(principal, project.project_id):
            raise AccessDeniedError("No access to the project")
        return project_id, folder_id

    def _find_duplicate(
        self,
        user_id: int | None,
        type_id: int,
        view_id: int | None,
        project_id: int | None,
        folder_id: int | None,
    ) -> int | None:
        """Return the id of an alert that would conflict with the given key.

        A personal alert also conflicts with a public alert on the same scope,
        since the public one already reaches its owner.
        """
        stmt = select(Alert.alert_id).where(
            Alert.type_id == type_id,
            _matches(Alert.view_id, view_id),
            _matches(Alert.project_id, project_id),
            _matches(Alert.folder_id, folder_id),
        )
        if user_id is None:
            stmt = stmt.where(Alert.user_id.is_(None))
        else:
            stmt = stmt.where(or_(Alert.user_id == user_id, Alert.user_id.is_(None)))
        return self.db.scalar(stmt.limit(1))

    def _begin_isolated(self) -> None:
        """Start the creation transaction under the configured isolation level.

        Isolation can only be chosen before a transaction begins; a session
        holding unflushed changes keeps its current transaction.
        """
        if self.db.in_transaction():
            if self.db.new or self.db.dirty or self.db.deleted:
                logger.debug("Session has pending changes; creating alert in current transaction")
                return
            self.db.commit()
        self.db.connection(execution_options={"isolation_level": settings.alert_create_isolation})

    def _insert_alert(
        self,
        user_id: int | None,
        type_id: int,
        view_id: int | None,
        project_id: int | None,
        folder_id: int | None,
        mode: DeliveryMode,
        summary_days: str | None,
        summary_hours: str | None,
    ) -> int:
        self._begin_isolated()
        try:
            if self._find_duplicate(user_id, type_id, view_id, project_id, folder_id) is not None:
                raise DuplicateAlertError("Alert already exists")

            # Content that exists now has already been seen by the subscriber.
            watermark = self.db.scalar(scope_stamp_select(type_id, project_id, folder_id))

            alert = Alert(
                alert_key=alert_key(user_id, type_id, view_id, project_id, folder_id),
                user_id=user_id,
                type_id=type_id,
                view_id=view_id,
                project_id=project_id,
                folder_id=folder_id,
                delivery_mode=int(mode),
                summary_days=summary_days,
                summary_hours=summary_hours,
                stamp_id=watermark,
            )
            self.db.add(alert)
            self.db.flush()
            alert_id = alert.alert_id

            if user_id is None:
                result = self.db.execute(
                    delete(Alert)
                    .where(
                        Alert.user_id.is_not(None),
                        Alert.type_id == type_id,
                        _matches(Alert.view_id, view_id),
                        _matches(Alert.project_id, project_id),
                        _matches(Alert.folder_id, folder_id),
                    )
                    .execution_options(synchronize_session="fetch")
                )
                if result.rowcount:
                    logger.info(
                        "Public alert %d replaced %d personal alert(s)", alert_id, result.rowcount
                    )

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return alert_id

    # --- Mutation -----------------------------------------------------------------

    def modify_alert(
        self,
        alert: Alert,
        delivery_mode: DeliveryMode | int,
        summary_days: str | None = None,
        summary_hours: str | None = None,
    ) -> bool:
        """Change the delivery settings of an alert.

        Returns:
            True if the alert was modified, False if the values were unchanged.
        """
        try:
            mode = DeliveryMode(delivery_mode)
        except ValueError as err:
            raise InvalidArgumentsError(f"Invalid delivery mode: {delivery_mode!r}") from err
        summary_days, summary_hours = normalize_schedule(mode, summary_days, summary_hours)

        if (
            alert.delivery_mode == mode
            and alert.summary_days == summary_days
            and alert.summary_hours == summary_hours
        ):
            return False

        alert.delivery_mode = int(mode)
        alert.summary_days = summary_days
        alert.summary_hours = summary_hours
        self.db.commit()
        logger.info("Modified alert %d: mode=%s", alert.alert_id, mode.name)
        return True

    def delete_alert(self, alert: Alert) -> bool:
        """Delete an alert; a row already removed concurrently is not an error."""
        alert_id = alert.alert_id
        self.db.execute(
            delete(Alert)
            .where(Alert.alert_id == alert_id)
            .execution_options(synchronize_session="fetch")
        )
        self.db.commit()
        logger.info("Deleted alert %d", alert_id)
        return True
