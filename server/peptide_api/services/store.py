"""
Tracker data access.

``TrackerStore`` owns every SQL statement of the service. Plain CRUD maps
rows to the pydantic models; the aggregate methods fetch the rows they need
and hand them to the pure functions in ``peptide_api.analytics``.

Database failures are logged and turned into a safe default (empty list,
None, False or default preferences) so a broken read never takes the
route down with a traceback.
"""

import json
import logging
import sqlite3
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional

from pydantic import BaseModel

from ..analytics import (
    build_weekly_summary,
    dose_limit_alerts,
    dose_variance,
    filter_new_alerts,
    generate_insights,
    generate_recommendations,
    milestone_alerts,
    missed_dose_alerts,
    protocol_adherence,
    site_analytics,
    site_rotation_alerts,
    site_usage,
    summarize_week,
    timing_patterns,
    trend_point,
)
from ..analytics.schedule import end_of_week, start_of_week
from ..config import get_settings
from ..database import DatabaseManager, db_manager
from ..models import (
    Alert,
    AlertCounts,
    AlertDraft,
    AlertMetadata,
    AnalyticsFilters,
    ComprehensiveAnalytics,
    DateRange,
    DoseVarianceAnalytics,
    Injection,
    InjectionCreate,
    InjectionSite,
    InjectionSiteAnalytics,
    InjectionSiteUsage,
    InjectionUpdate,
    NotificationPreferences,
    Peptide,
    PeptideCreate,
    PeptideTemplate,
    PeptideUpdate,
    Protocol,
    ProtocolAdherence,
    ProtocolCreate,
    ProtocolTemplate,
    ProtocolUpdate,
    ScheduleConfig,
    TimingPatternAnalytics,
    User,
    UserPreferences,
    WeeklyProgress,
    WeeklyProgressTrend,
    WeeklySummary,
    WellnessMetric,
    WellnessMetricCreate,
)
from ..models.peptide import DoseRange

log = logging.getLogger(__name__)

REPORT_DAYS = {"weekly": 7, "monthly": 30, "quarterly": 90}
SITE_USAGE_DAYS = 7

INJECTION_SELECT = """
    SELECT i.*, p.name AS peptide_name, p.category AS peptide_category
    FROM injections i
    LEFT JOIN peptides p ON p.id = i.peptide_id
"""


def _new_id() -> str:
    return str(uuid.uuid4())


def _column(value: Any) -> Any:
    """Convert a python value to what the SQLite column stores."""
    if isinstance(value, BaseModel):
        return value.model_dump_json(exclude_none=True)
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _insert(conn: sqlite3.Connection, table: str, values: dict) -> None:
    columns = ", ".join(values)
    placeholders = ", ".join("?" for _ in values)
    conn.execute(
        f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
        [_column(v) for v in values.values()],
    )


def _update(conn: sqlite3.Connection, table: str, record_id: str, user_id: str, values: dict) -> int:
    """Update an owned row; returns the number of rows changed."""
    values = {**values, "updated_at": datetime.now()}
    assignments = ", ".join(f"{column} = ?" for column in values)
    cursor = conn.execute(
        f"UPDATE {table} SET {assignments} WHERE id = ? AND user_id = ?",
        [*(_column(v) for v in values.values()), record_id, user_id],
    )
    return cursor.rowcount


def _row_to_user(row) -> User:
    """Convert SQLite row to User model."""
    return User(
        id=row["id"],
        external_id=row["external_id"],
        email=row["email"],
        preferences=UserPreferences.model_validate_json(row["preferences"] or "{}"),
        subscription_tier=row["subscription_tier"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_peptide(row) -> Peptide:
    """Convert SQLite row to Peptide model."""
    return Peptide(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        is_custom=bool(row["is_custom"]),
        category=row["category"],
        typical_dose_range=DoseRange.model_validate_json(row["typical_dose_range"]),
        safety_notes=json.loads(row["safety_notes"] or "[]"),
        content_id=row["content_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_peptide_template(row) -> PeptideTemplate:
    return PeptideTemplate(
        id=row["id"],
        name=row["name"],
        category=row["category"],
        typical_dose_range=DoseRange.model_validate_json(row["typical_dose_range"]),
        safety_notes=json.loads(row["safety_notes"] or "[]"),
        content_id=row["content_id"],
        description=row["description"],
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_injection(row) -> Injection:
    """Convert a joined injection row to Injection model."""
    return Injection(
        id=row["id"],
        user_id=row["user_id"],
        peptide_id=row["peptide_id"],
        dose=float(row["dose"]),
        dose_unit=row["dose_unit"],
        injection_site=InjectionSite.model_validate_json(row["injection_site"]),
        timestamp=row["timestamp"],
        notes=row["notes"],
        protocol_id=row["protocol_id"],
        peptide_name=row["peptide_name"],
        peptide_category=row["peptide_category"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_protocol(row) -> Protocol:
    """Convert SQLite row to Protocol model."""
    return Protocol(
        id=row["id"],
        user_id=row["user_id"],
        peptide_id=row["peptide_id"],
        name=row["name"],
        weekly_target=row["weekly_target"],
        daily_target=row["daily_target"],
        schedule_type=row["schedule_type"],
        schedule_config=ScheduleConfig.model_validate_json(row["schedule_config"] or "{}"),
        start_date=row["start_date"],
        end_date=row["end_date"],
        is_template=bool(row["is_template"]),
        template_name=row["template_name"],
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_protocol_template(row) -> ProtocolTemplate:
    return ProtocolTemplate(
        id=row["id"],
        peptide_id=row["peptide_id"],
        name=row["name"],
        weekly_target=row["weekly_target"],
        daily_target=row["daily_target"],
        schedule_type=row["schedule_type"],
        schedule_config=ScheduleConfig.model_validate_json(row["schedule_config"] or "{}"),
        template_name=row["template_name"],
        peptide_name=row["peptide_name"],
        peptide_category=row["peptide_category"],
    )


def _row_to_alert(row) -> Alert:
    """Convert SQLite row to Alert model."""
    return Alert(
        id=row["id"],
        user_id=row["user_id"],
        alert_type=row["alert_type"],
        severity=row["severity"],
        title=row["title"],
        message=row["message"],
        action_text=row["action_text"],
        action_url=row["action_url"],
        metadata=AlertMetadata.model_validate_json(row["metadata"] or "{}"),
        is_read=bool(row["is_read"]),
        is_dismissed=bool(row["is_dismissed"]),
        expires_at=row["expires_at"],
        created_at=row["created_at"],
    )


def _row_to_wellness(row) -> WellnessMetric:
    return WellnessMetric(
        id=row["id"],
        user_id=row["user_id"],
        metric_type=row["metric_type"],
        value=float(row["value"]),
        unit=row["unit"],
        timestamp=row["timestamp"],
        notes=row["notes"],
        injection_id=row["injection_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _paginate(query: str, params: list, limit: Optional[int], offset: int) -> str:
    if limit is not None:
        params.extend([limit, offset])
        return query + " LIMIT ? OFFSET ?"
    if offset:
        params.append(offset)
        return query + " LIMIT -1 OFFSET ?"
    return query


class TrackerStore:
    """SQLite-backed data access for users, dosing records and alerts."""

    def __init__(self, db: Optional[DatabaseManager] = None):
        self.db = db or db_manager

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user_by_external_id(self, external_id: str) -> Optional[User]:
        try:
            with self.db.connect() as conn:
                row = conn.execute(
                    "SELECT * FROM users WHERE external_id = ?", (external_id,)
                ).fetchone()
        except sqlite3.Error as e:
            log.error(f"Error fetching user {external_id}: {e}")
            return None
        return _row_to_user(row) if row else None

    def get_or_create_user(self, external_id: str, email: str) -> Optional[User]:
        """Return the user for ``external_id``, registering it on first sight."""
        existing = self.get_user_by_external_id(external_id)
        if existing:
            return existing

        now = datetime.now()
        try:
            with self.db.connect() as conn:
                _insert(conn, "users", {
                    "id": _new_id(),
                    "external_id": external_id,
                    "email": email,
                    "preferences": {},
                    "subscription_tier": "free",
                    "created_at": now,
                    "updated_at": now,
                })
        except sqlite3.Error as e:
            log.error(f"Error creating user {external_id}: {e}")
            return None
        log.info(f"Registered user {external_id}")
        return self.get_user_by_external_id(external_id)

    def update_user_preferences(self, user: User, preferences: UserPreferences) -> Optional[User]:
        """Merge the given preference fields into the stored ones."""
        merged = user.preferences.model_dump(exclude_none=True)
        merged.update(preferences.model_dump(exclude_unset=True, exclude_none=True))
        try:
            with self.db.connect() as conn:
                conn.execute(
                    "UPDATE users SET preferences = ?, updated_at = ? WHERE id = ?",
                    (json.dumps(merged), datetime.now().isoformat(), user.id),
                )
        except sqlite3.Error as e:
            log.error(f"Error updating preferences for {user.id}: {e}")
            return None
        return self.get_user_by_external_id(user.external_id)

    def get_notification_preferences(self, user_id: str) -> NotificationPreferences:
        """Stored notification preferences, or the defaults."""
        try:
            with self.db.connect() as conn:
                row = conn.execute(
                    "SELECT notification_preferences FROM users WHERE id = ?", (user_id,)
                ).fetchone()
        except sqlite3.Error as e:
            log.error(f"Error fetching notification preferences for {user_id}: {e}")
            return NotificationPreferences()

        if not row or not row["notification_preferences"]:
            return NotificationPreferences()
        return NotificationPreferences.model_validate_json(row["notification_preferences"])

    def update_notification_preferences(self, user_id: str, preferences: NotificationPreferences) -> bool:
        try:
            with self.db.connect() as conn:
                cursor = conn.execute(
                    "UPDATE users SET notification_preferences = ?, updated_at = ? WHERE id = ?",
                    (preferences.model_dump_json(), datetime.now().isoformat(), user_id),
                )
        except sqlite3.Error as e:
            log.error(f"Error updating notification preferences for {user_id}: {e}")
            return False
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Peptides
    # ------------------------------------------------------------------

    def get_peptide_templates(self) -> list[PeptideTemplate]:
        try:
            with self.db.connect() as conn:
                rows = conn.execute(
                    "SELECT * FROM peptide_templates WHERE is_active = 1 ORDER BY category, name"
                ).fetchall()
        except sqlite3.Error as e:
            log.error(f"Error fetching peptide templates: {e}")
            return []
        return [_row_to_peptide_template(row) for row in rows]

    def get_peptides(
        self,
        user_id: str,
        category: Optional[str] = None,
        is_custom: Optional[bool] = None,
    ) -> list[Peptide]:
        """The user's own peptides, newest first."""
        query = "SELECT * FROM peptides WHERE user_id = ?"
        params: list = [user_id]

        if category:
            query += " AND category = ?"
            params.append(category)

        if is_custom is not None:
            query += " AND is_custom = ?"
            params.append(int(is_custom))

        query += " ORDER BY created_at DESC"

        try:
            with self.db.connect() as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            log.error(f"Error fetching peptides for {user_id}: {e}")
            return []
        return [_row_to_peptide(row) for row in rows]

    def get_peptide(self, peptide_id: str, user_id: str) -> Optional[Peptide]:
        """A peptide the user can see: their own or a global one."""
        try:
            with self.db.connect() as conn:
                row = conn.execute(
                    "SELECT * FROM peptides WHERE id = ? AND (user_id = ? OR user_id IS NULL)",
                    (peptide_id, user_id),
                ).fetchone()
        except sqlite3.Error as e:
            log.error(f"Error fetching peptide {peptide_id}: {e}")
            return None
        return _row_to_peptide(row) if row else None

    def _peptides_by_id(self, user_id: str, peptide_ids: Iterable[str]) -> dict[str, Peptide]:
        ids = list(set(peptide_ids))
        if not ids:
            return {}

        placeholders = ", ".join("?" for _ in ids)
        try:
            with self.db.connect() as conn:
                rows = conn.execute(
                    f"SELECT * FROM peptides WHERE id IN ({placeholders}) "
                    "AND (user_id = ? OR user_id IS NULL)",
                    [*ids, user_id],
                ).fetchall()
        except sqlite3.Error as e:
            log.error(f"Error fetching peptides {ids}: {e}")
            return {}
        return {row["id"]: _row_to_peptide(row) for row in rows}

    def create_peptide(self, user_id: str, data: PeptideCreate) -> Optional[Peptide]:
        peptide_id = _new_id()
        now = datetime.now()
        try:
            with self.db.connect() as conn:
                _insert(conn, "peptides", {
                    "id": peptide_id,
                    "user_id": user_id,
                    "name": data.name,
                    "is_custom": data.is_custom,
                    "category": data.category,
                    "typical_dose_range": data.typical_dose_range,
                    "safety_notes": data.safety_notes,
                    "content_id": data.content_id,
                    "created_at": now,
                    "updated_at": now,
                })
        except sqlite3.Error as e:
            log.error(f"Error creating peptide for {user_id}: {e}")
            return None
        return self.get_peptide(peptide_id, user_id)

    def update_peptide(self, peptide_id: str, user_id: str, data: PeptideUpdate) -> Optional[Peptide]:
        """Partially update one of the user's own peptides."""
        values = data.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in values and values["name"]:
            values["name"] = values["name"].strip()
        try:
            with self.db.connect() as conn:
                changed = _update(conn, "peptides", peptide_id, user_id, values)
        except sqlite3.Error as e:
            log.error(f"Error updating peptide {peptide_id}: {e}")
            return None
        return self.get_peptide(peptide_id, user_id) if changed else None

    def delete_peptide(self, peptide_id: str, user_id: str) -> bool:
        try:
            with self.db.connect() as conn:
                cursor = conn.execute(
                    "DELETE FROM peptides WHERE id = ? AND user_id = ?", (peptide_id, user_id)
                )
        except sqlite3.Error as e:
            log.error(f"Error deleting peptide {peptide_id}: {e}")
            return False
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Injections
    # ------------------------------------------------------------------

    def get_injections(
        self,
        user_id: str,
        peptide_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        site: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Injection]:
        """
        The user's injections, newest first.

        Args:
            user_id: Owner
            peptide_id: Only this peptide
            start: Inclusive lower bound on ``timestamp``
            end: Inclusive upper bound on ``timestamp``
            site: Injection site location
            search: Case-insensitive match on notes or peptide name
            limit: Page size, all rows when None
            offset: Rows to skip
        """
        query = INJECTION_SELECT + " WHERE i.user_id = ?"
        params: list = [user_id]

        if peptide_id:
            query += " AND i.peptide_id = ?"
            params.append(peptide_id)

        if start:
            query += " AND i.timestamp >= ?"
            params.append(start.isoformat())

        if end:
            query += " AND i.timestamp <= ?"
            params.append(end.isoformat())

        if site:
            query += " AND json_extract(i.injection_site, '$.location') = ?"
            params.append(site)

        if search:
            query += " AND (i.notes LIKE ? OR p.name LIKE ?)"
            term = f"%{search}%"
            params.extend([term, term])

        query += " ORDER BY i.timestamp DESC"
        query = _paginate(query, params, limit, offset)

        try:
            with self.db.connect() as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            log.error(f"Error fetching injections for {user_id}: {e}")
            return []
        return [_row_to_injection(row) for row in rows]

    def get_injection(self, injection_id: str, user_id: str) -> Optional[Injection]:
        try:
            with self.db.connect() as conn:
                row = conn.execute(
                    INJECTION_SELECT + " WHERE i.id = ? AND i.user_id = ?",
                    (injection_id, user_id),
                ).fetchone()
        except sqlite3.Error as e:
            log.error(f"Error fetching injection {injection_id}: {e}")
            return None
        return _row_to_injection(row) if row else None

    def create_injection(self, user_id: str, data: InjectionCreate) -> Optional[Injection]:
        """Log an injection of a peptide visible to the user."""
        if self.get_peptide(data.peptide_id, user_id) is None:
            log.warning(f"Peptide {data.peptide_id} not visible to {user_id}")
            return None

        injection_id = _new_id()
        now = datetime.now()
        try:
            with self.db.connect() as conn:
                _insert(conn, "injections", {
                    "id": injection_id,
                    "user_id": user_id,
                    "peptide_id": data.peptide_id,
                    "dose": data.dose,
                    "dose_unit": data.dose_unit,
                    "injection_site": data.injection_site,
                    "timestamp": data.timestamp,
                    "notes": data.notes,
                    "protocol_id": data.protocol_id,
                    "created_at": now,
                    "updated_at": now,
                })
        except sqlite3.Error as e:
            log.error(f"Error creating injection for {user_id}: {e}")
            return None
        return self.get_injection(injection_id, user_id)

    def update_injection(self, injection_id: str, user_id: str, data: InjectionUpdate) -> Optional[Injection]:
        values = data.model_dump(exclude_unset=True, exclude_none=True)
        if values.get("peptide_id") and self.get_peptide(values["peptide_id"], user_id) is None:
            log.warning(f"Peptide {values['peptide_id']} not visible to {user_id}")
            return None

        try:
            with self.db.connect() as conn:
                changed = _update(conn, "injections", injection_id, user_id, values)
        except sqlite3.Error as e:
            log.error(f"Error updating injection {injection_id}: {e}")
            return None
        return self.get_injection(injection_id, user_id) if changed else None

    def delete_injection(self, injection_id: str, user_id: str) -> bool:
        try:
            with self.db.connect() as conn:
                cursor = conn.execute(
                    "DELETE FROM injections WHERE id = ? AND user_id = ?", (injection_id, user_id)
                )
        except sqlite3.Error as e:
            log.error(f"Error deleting injection {injection_id}: {e}")
            return False
        return cursor.rowcount > 0

    def duplicate_injection(self, injection_id: str, user_id: str) -> Optional[Injection]:
        """Copy an injection to the current time."""
        original = self.get_injection(injection_id, user_id)
        if original is None:
            return None

        notes = f"{original.notes} (duplicated)" if original.notes else "Duplicated injection"
        return self.create_injection(user_id, InjectionCreate(
            peptide_id=original.peptide_id,
            dose=original.dose,
            dose_unit=original.dose_unit,
            injection_site=original.injection_site,
            timestamp=datetime.now(),
            notes=notes,
            protocol_id=original.protocol_id,
        ))

    # ------------------------------------------------------------------
    # Protocols
    # ------------------------------------------------------------------

    def get_protocols(self, user_id: str, include_inactive: bool = False) -> list[Protocol]:
        query = "SELECT * FROM protocols WHERE user_id = ?"
        if not include_inactive:
            query += " AND is_active = 1"
        query += " ORDER BY created_at DESC"

        try:
            with self.db.connect() as conn:
                rows = conn.execute(query, (user_id,)).fetchall()
        except sqlite3.Error as e:
            log.error(f"Error fetching protocols for {user_id}: {e}")
            return []
        return [_row_to_protocol(row) for row in rows]

    def get_active_protocols(self, user_id: str, today: Optional[date] = None) -> list[Protocol]:
        """Non-template protocols running on ``today``."""
        today = today or date.today()
        try:
            with self.db.connect() as conn:
                rows = conn.execute(
                    """
                    SELECT * FROM protocols
                    WHERE user_id = ?
                    AND is_active = 1
                    AND is_template = 0
                    AND start_date <= ?
                    AND (end_date IS NULL OR end_date >= ?)
                    ORDER BY created_at
                    """,
                    (user_id, today.isoformat(), today.isoformat()),
                ).fetchall()
        except sqlite3.Error as e:
            log.error(f"Error fetching active protocols for {user_id}: {e}")
            return []
        return [_row_to_protocol(row) for row in rows]

    def get_protocol(self, protocol_id: str, user_id: str) -> Optional[Protocol]:
        try:
            with self.db.connect() as conn:
                row = conn.execute(
                    "SELECT * FROM protocols WHERE id = ? AND user_id = ?", (protocol_id, user_id)
                ).fetchone()
        except sqlite3.Error as e:
            log.error(f"Error fetching protocol {protocol_id}: {e}")
            return None
        return _row_to_protocol(row) if row else None

    def create_protocol(self, user_id: str, data: ProtocolCreate) -> Optional[Protocol]:
        if self.get_peptide(data.peptide_id, user_id) is None:
            log.warning(f"Peptide {data.peptide_id} not visible to {user_id}")
            return None

        protocol_id = _new_id()
        now = datetime.now()
        try:
            with self.db.connect() as conn:
                _insert(conn, "protocols", {
                    "id": protocol_id,
                    "user_id": user_id,
                    **data.model_dump(),
                    "created_at": now,
                    "updated_at": now,
                })
        except sqlite3.Error as e:
            log.error(f"Error creating protocol for {user_id}: {e}")
            return None
        return self.get_protocol(protocol_id, user_id)

    def update_protocol(self, protocol_id: str, user_id: str, data: ProtocolUpdate) -> Optional[Protocol]:
        """Partial update; the merged schedule must still be valid."""
        current = self.get_protocol(protocol_id, user_id)
        if current is None:
            return None

        values = data.model_dump(exclude_unset=True, exclude_none=True)
        merged = current.model_copy(update={
            field: getattr(data, field) for field in data.model_fields_set
            if getattr(data, field) is not None
        })
        # raises ValidationError (a ValueError) when the merged schedule is invalid
        ProtocolCreate(**merged.model_dump(include=set(ProtocolCreate.model_fields)))

        try:
            with self.db.connect() as conn:
                _update(conn, "protocols", protocol_id, user_id, values)
        except sqlite3.Error as e:
            log.error(f"Error updating protocol {protocol_id}: {e}")
            return None
        return self.get_protocol(protocol_id, user_id)

    def delete_protocol(self, protocol_id: str, user_id: str) -> bool:
        try:
            with self.db.connect() as conn:
                cursor = conn.execute(
                    "DELETE FROM protocols WHERE id = ? AND user_id = ?", (protocol_id, user_id)
                )
        except sqlite3.Error as e:
            log.error(f"Error deleting protocol {protocol_id}: {e}")
            return False
        return cursor.rowcount > 0

    def get_protocol_templates(self) -> list[ProtocolTemplate]:
        try:
            with self.db.connect() as conn:
                rows = conn.execute(
                    "SELECT * FROM protocol_templates ORDER BY name"
                ).fetchall()
        except sqlite3.Error as e:
            log.error(f"Error fetching protocol templates: {e}")
            return []
        return [_row_to_protocol_template(row) for row in rows]

    # ------------------------------------------------------------------
    # Wellness metrics
    # ------------------------------------------------------------------

    def get_wellness_metrics(
        self,
        user_id: str,
        metric_type: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        injection_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[WellnessMetric]:
        query = "SELECT * FROM wellness_metrics WHERE user_id = ?"
        params: list = [user_id]

        if metric_type:
            query += " AND metric_type = ?"
            params.append(metric_type)

        if start:
            query += " AND timestamp >= ?"
            params.append(start.isoformat())

        if end:
            query += " AND timestamp <= ?"
            params.append(end.isoformat())

        if injection_id:
            query += " AND injection_id = ?"
            params.append(injection_id)

        query += " ORDER BY timestamp DESC"
        query = _paginate(query, params, limit, offset)

        try:
            with self.db.connect() as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            log.error(f"Error fetching wellness metrics for {user_id}: {e}")
            return []
        return [_row_to_wellness(row) for row in rows]

    def create_wellness_metric(self, user_id: str, data: WellnessMetricCreate) -> Optional[WellnessMetric]:
        metric_id = _new_id()
        now = datetime.now()
        try:
            with self.db.connect() as conn:
                _insert(conn, "wellness_metrics", {
                    "id": metric_id,
                    "user_id": user_id,
                    **data.model_dump(),
                    "created_at": now,
                    "updated_at": now,
                })
                row = conn.execute(
                    "SELECT * FROM wellness_metrics WHERE id = ?", (metric_id,)
                ).fetchone()
        except sqlite3.Error as e:
            log.error(f"Error creating wellness metric for {user_id}: {e}")
            return None
        return _row_to_wellness(row)

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def get_alerts(
        self,
        user_id: str,
        unread_only: bool = False,
        active_only: bool = True,
        now: Optional[datetime] = None,
    ) -> list[Alert]:
        """
        The user's alerts, newest first.

        Args:
            user_id: Owner
            unread_only: Skip alerts already read
            active_only: Skip dismissed and expired alerts
            now: Reference time for expiry
        """
        now = now or datetime.now()
        query = "SELECT * FROM alerts WHERE user_id = ?"
        params: list = [user_id]

        if active_only:
            query += " AND is_dismissed = 0 AND (expires_at IS NULL OR expires_at > ?)"
            params.append(now.isoformat())

        if unread_only:
            query += " AND is_read = 0"
        query += " ORDER BY created_at DESC"

        try:
            with self.db.connect() as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            log.error(f"Error fetching alerts for {user_id}: {e}")
            return []
        return [_row_to_alert(row) for row in rows]

    def _all_alerts(self, user_id: str) -> list[Alert]:
        """Every stored alert, read and dismissed included."""
        try:
            with self.db.connect() as conn:
                rows = conn.execute(
                    "SELECT * FROM alerts WHERE user_id = ? ORDER BY created_at DESC", (user_id,)
                ).fetchall()
        except sqlite3.Error as e:
            log.error(f"Error fetching alert history for {user_id}: {e}")
            return []
        return [_row_to_alert(row) for row in rows]

    def create_alert(self, user_id: str, draft: AlertDraft, now: Optional[datetime] = None) -> Optional[Alert]:
        alert_id = _new_id()
        try:
            with self.db.connect() as conn:
                _insert(conn, "alerts", {
                    "id": alert_id,
                    "user_id": user_id,
                    **draft.model_dump(exclude={"metadata"}),
                    "metadata": draft.metadata,
                    "created_at": now or datetime.now(),
                })
                row = conn.execute("SELECT * FROM alerts WHERE id = ?", (alert_id,)).fetchone()
        except sqlite3.Error as e:
            log.error(f"Error creating {draft.alert_type} alert for {user_id}: {e}")
            return None
        return _row_to_alert(row)

    def _set_alert_flag(self, alert_id: str, user_id: str, column: str) -> bool:
        try:
            with self.db.connect() as conn:
                cursor = conn.execute(
                    f"UPDATE alerts SET {column} = 1 WHERE id = ? AND user_id = ?",
                    (alert_id, user_id),
                )
        except sqlite3.Error as e:
            log.error(f"Error updating alert {alert_id}: {e}")
            return False
        return cursor.rowcount > 0

    def mark_alert_read(self, alert_id: str, user_id: str) -> bool:
        return self._set_alert_flag(alert_id, user_id, "is_read")

    def dismiss_alert(self, alert_id: str, user_id: str) -> bool:
        return self._set_alert_flag(alert_id, user_id, "is_dismissed")

    def calculate_alerts(self, user_id: str, now: Optional[datetime] = None) -> AlertCounts:
        """
        Run all alert evaluators for a user and store the new alerts.

        Safe to call repeatedly: an alert is only created once per
        (type, protocol or site, window).

        Returns:
            Number of alerts created per evaluator
        """
        now = now or datetime.now()
        preferences = self.get_notification_preferences(user_id)
        progress = self.get_weekly_progress(user_id, now=now)
        existing = self._all_alerts(user_id)

        protocols = self.get_active_protocols(user_id, now.date())
        peptides = self._peptides_by_id(user_id, (p.peptide_id for p in protocols))
        recent = self.get_injections(user_id, start=now - timedelta(days=7), end=now)

        evaluated = {
            "dose": dose_limit_alerts(progress, preferences, now),
            "missed_dose": missed_dose_alerts(protocols, peptides, recent, preferences, now),
            "site_rotation": site_rotation_alerts(
                self.get_site_usage(user_id, SITE_USAGE_DAYS, now), preferences, now
            ),
            "milestones": milestone_alerts(progress, preferences, now),
        }

        counts = {}
        for name, drafts in evaluated.items():
            created = 0
            for draft in filter_new_alerts(drafts, existing, now):
                alert = self.create_alert(user_id, draft, now)
                if alert:
                    existing.append(alert)
                    created += 1
            counts[name] = created

        result = AlertCounts(**counts)
        log.info(f"[ALERTS] Created {result.total} alerts for {user_id}: {counts}")
        return result

    # ------------------------------------------------------------------
    # Progress and summaries
    # ------------------------------------------------------------------

    def get_weekly_progress(
        self,
        user_id: str,
        week_start: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> WeeklyProgress:
        now = now or datetime.now()
        week_start = week_start or start_of_week(now)

        protocols = self.get_active_protocols(user_id, now.date())
        peptides = self._peptides_by_id(user_id, (p.peptide_id for p in protocols))
        injections = self.get_injections(user_id, start=week_start, end=end_of_week(week_start))
        return summarize_week(week_start, protocols, peptides, injections, now)

    def get_weekly_progress_trends(
        self,
        user_id: str,
        weeks_back: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[WeeklyProgressTrend]:
        """One trend point per week, oldest first, ending with the current week."""
        now = now or datetime.now()
        weeks_back = weeks_back or get_settings().trend_weeks
        current = start_of_week(now)

        return [
            trend_point(self.get_weekly_progress(user_id, current - timedelta(weeks=back), now))
            for back in range(weeks_back - 1, -1, -1)
        ]

    def get_weekly_summary(self, user_id: str, now: Optional[datetime] = None) -> WeeklySummary:
        """Activity over the last seven calendar days, today included."""
        now = now or datetime.now()
        today = now.date()
        window_start = today - timedelta(days=6)

        injections = self.get_injections(
            user_id,
            start=datetime.combine(window_start, datetime.min.time()),
            end=datetime.combine(today, datetime.max.time()),
        )
        protocols = self.get_active_protocols(user_id, today)
        return build_weekly_summary(window_start, injections, protocols)

    def get_site_usage(
        self,
        user_id: str,
        days_back: int = SITE_USAGE_DAYS,
        now: Optional[datetime] = None,
    ) -> list[InjectionSiteUsage]:
        now = now or datetime.now()
        injections = self.get_injections(user_id, start=now - timedelta(days=days_back), end=now)
        return site_usage(injections, now)

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    def resolve_date_range(self, filters: Optional[AnalyticsFilters] = None, now: Optional[datetime] = None) -> DateRange:
        """Explicit range, else the report type's span, else the default days."""
        now = now or datetime.now()
        if filters and filters.date_range:
            return filters.date_range

        days = get_settings().default_analytics_days
        if filters and filters.report_type in REPORT_DAYS:
            days = REPORT_DAYS[filters.report_type]
        return DateRange(start=now - timedelta(days=days), end=now)

    def _analytics_protocols(self, user_id: str, filters: Optional[AnalyticsFilters]) -> list[Protocol]:
        protocols = [p for p in self.get_protocols(user_id, include_inactive=True) if not p.is_template]
        if filters and filters.protocol_ids:
            wanted = set(filters.protocol_ids)
            protocols = [p for p in protocols if p.id in wanted]
        return protocols

    def get_protocol_adherence(
        self,
        user_id: str,
        filters: Optional[AnalyticsFilters] = None,
        now: Optional[datetime] = None,
    ) -> list[ProtocolAdherence]:
        now = now or datetime.now()
        span = self.resolve_date_range(filters, now)
        protocols = self._analytics_protocols(user_id, filters)
        peptides = self._peptides_by_id(user_id, (p.peptide_id for p in protocols))

        results = []
        for protocol in protocols:
            injections = self.get_injections(
                user_id, peptide_id=protocol.peptide_id, start=span.start, end=span.end
            )
            peptide = peptides.get(protocol.peptide_id)
            results.append(protocol_adherence(
                protocol,
                injections,
                span.start,
                span.end,
                peptide_name=peptide.name if peptide else None,
                today=now.date(),
            ))
        return results

    def get_injection_site_analytics(
        self,
        user_id: str,
        filters: Optional[AnalyticsFilters] = None,
        now: Optional[datetime] = None,
    ) -> list[InjectionSiteAnalytics]:
        now = now or datetime.now()
        span = self.resolve_date_range(filters, now)
        injections = self.get_injections(user_id, start=span.start, end=span.end)
        return site_analytics(injections, now)

    def get_timing_patterns(
        self,
        user_id: str,
        filters: Optional[AnalyticsFilters] = None,
        now: Optional[datetime] = None,
    ) -> TimingPatternAnalytics:
        span = self.resolve_date_range(filters, now)
        injections = self.get_injections(user_id, start=span.start, end=span.end)
        return timing_patterns(injections)

    def get_dose_variance(
        self,
        user_id: str,
        filters: Optional[AnalyticsFilters] = None,
        now: Optional[datetime] = None,
    ) -> list[DoseVarianceAnalytics]:
        span = self.resolve_date_range(filters, now)

        results = []
        for protocol in self._analytics_protocols(user_id, filters):
            injections = self.get_injections(
                user_id, peptide_id=protocol.peptide_id, start=span.start, end=span.end
            )
            variance = dose_variance(protocol, injections)
            if variance:
                results.append(variance)
        return results

    def get_comprehensive_analytics(
        self,
        user_id: str,
        filters: Optional[AnalyticsFilters] = None,
        now: Optional[datetime] = None,
    ) -> ComprehensiveAnalytics:
        now = now or datetime.now()
        span = self.resolve_date_range(filters, now)

        adherence = self.get_protocol_adherence(user_id, filters, now)
        sites = self.get_injection_site_analytics(user_id, filters, now)
        timing = self.get_timing_patterns(user_id, filters, now)
        variance = self.get_dose_variance(user_id, filters, now)

        log.info(
            f"[ANALYTICS] Report for {user_id}: {len(adherence)} protocols, "
            f"{len(sites)} sites, {span.start:%Y-%m-%d}..{span.end:%Y-%m-%d}"
        )

        return ComprehensiveAnalytics(
            date_range=span,
            protocol_adherence=adherence,
            injection_sites=sites,
            timing_patterns=timing,
            dose_variance=variance,
            key_insights=generate_insights(adherence, sites, timing, variance),
            recommendations=generate_recommendations(adherence, sites, timing),
        )


# Singleton instance
store = TrackerStore()


def get_store() -> TrackerStore:
    """FastAPI dependency returning the shared store."""
    return store
