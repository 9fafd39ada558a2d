from __future__ import annotations

# -----------------------------------------------------------------------------
# Service-Schicht (Entity-Store + Anwendungsfälle)
# -----------------------------------------------------------------------------
# Diese Schicht kapselt die fachliche Logik und stellt eine stabile API für die
# Präsentation (hier: CLI) bereit.
#
# Architektur-Regel:
# - Präsentation spricht nur mit Services.
# - Services orchestrieren Use-Cases und nutzen Repositories.
# - Repositories kapseln den Key-Value-Store (`StorageProtocol`).
#
# `TrackerService.bootstrap()` fungiert als „Composition Root“: Dort werden
# DB-Verbindung/Schema initialisiert und Storage, Identity und Repositories verdrahtet.
# -----------------------------------------------------------------------------


"""Service-Schicht des Honours Class Trackers.

Zweck:
    Hält die drei Sammlungen (Semester, Kurse, Sitzungen) des aktuellen Nutzers im
    Speicher und führt jede Änderung als vollständigen Lese-Partitionier-Schreib-Zyklus
    über den gemeinsamen Store aus.

Nebenläufigkeit:
    Es gibt genau einen Schreiber. Jede Änderung liest die gespeicherten Sammlungen,
    ersetzt den eigenen Anteil und überschreibt alles, ohne Sperre und ohne
    Versionsprüfung. Zwei parallel laufende Instanzen auf derselben Datei können sich
    gegenseitig Änderungen überschreiben (last-write-wins je Sammlung).
"""

import dataclasses
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional

from honours_tracker import backup, stats
from honours_tracker.config import TOTAL_CLASSES_DEFAULT
from honours_tracker.db import connect, create_schema
from honours_tracker.db_protocol import DatabaseProtocol
from honours_tracker.identity import IdentityService
from honours_tracker.models import (
    ClassSession,
    Course,
    Semester,
    SemesterStatus,
    SessionType,
    User,
    coerce_enum,
)
from honours_tracker.repositories import ScopedData, TrackerRepository, merge_by_id
from honours_tracker.storage import KeyValueStorage, StorageProtocol

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Erlaubte Felder für `update_course` (snake_case und camelCase des Speicherformats)
_COURSE_FIELD_ALIASES = {
    "name": "name",
    "teacher_name": "teacher_name",
    "teacherName": "teacher_name",
    "total_classes": "total_classes",
    "totalClasses": "total_classes",
    "semester_id": "semester_id",
    "semesterId": "semester_id",
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TrackerService:
    """
    Entity-Store und Fassade für alle Anwendungsfälle.

    Zweck:
        Stellt die gescopten Sammlungen (`semesters`, `courses`, `sessions`) und alle
        Änderungs-Operationen bereit. Die Präsentation greift weder auf Repositories
        noch auf den Storage zu.

    Hinweise:
        - Ohne angemeldeten Nutzer sind alle Änderungen No-Ops (Rückgabe `None`).
        - `add_course` / `add_session` prüfen die Eltern-ID nicht; verwaiste Zeilen sind möglich.
        - `import_data` arbeitet global über alle Nutzer des Stores.
    """

    def __init__(
        self,
        storage: StorageProtocol,
        identity: IdentityService,
        *,
        db: Optional[DatabaseProtocol] = None,
        owns_db: bool = False,
        clock: Optional[Clock] = None,
    ) -> None:
        """
        Initialisiert den Service und lädt die Sicht des aktuellen Nutzers.

        Parameter:
            storage (StorageProtocol): Key-Value-Store.
            identity (IdentityService): Quelle des aktuellen Nutzers.
            db (DatabaseProtocol | None): DB, die bei `close()` geschlossen wird (falls `owns_db`).
            owns_db (bool): Wenn True, wird die DB bei `close()` geschlossen.
            clock (Callable[[], datetime] | None): Zeitquelle (Tests); Default UTC-Jetzt.
        """

        self.storage = storage
        self.identity = identity
        self.repo = TrackerRepository(storage)
        self._db = db
        self._owns_db = owns_db
        self._clock = clock or _utc_now

        self._semesters: list[Semester] = []
        self._courses: list[Course] = []
        self._sessions: list[ClassSession] = []
        # Eigene Rohzeilen, die sich nicht in Modelle umwandeln lassen
        self._unparsed = ScopedData()

        identity.subscribe(self._on_user_changed)
        self._on_user_changed(identity.current_user)

    # -----------------------------
    # Factory helpers
    # -----------------------------
    @classmethod
    def bootstrap(
        cls,
        *,
        db_path: Optional[str] = None,
        reset_db: bool = False,
        clock: Optional[Clock] = None,
    ) -> "TrackerService":
        """
        Bootstrapt die Anwendung (DB öffnen + Schema anlegen + Komponenten verdrahten).

        Parameter:
            db_path (str | None): Optionaler Pfad zur SQLite-Datei.
            reset_db (bool): Wenn True, wird der Store vorher geleert (Demo/Test).
            clock (Callable | None): Optionale Zeitquelle.

        Rückgabe:
            TrackerService: Fertig konfigurierter Service.
        """

        db = connect(db_path)
        create_schema(db, reset_db=reset_db)
        storage = KeyValueStorage(db)
        identity = IdentityService(storage)
        return cls(storage, identity, db=db, owns_db=True, clock=clock)

    def close(self) -> None:
        """Schließt die DB-Verbindung (nur wenn der Service sie besitzt)."""

        if self._owns_db and self._db is not None:
            self._db.close()

    # -----------------------------
    # Scoped view
    # -----------------------------
    @property
    def current_user(self) -> Optional[User]:
        return self.identity.current_user

    @property
    def semesters(self) -> list[Semester]:
        return list(self._semesters)

    @property
    def courses(self) -> list[Course]:
        return list(self._courses)

    @property
    def sessions(self) -> list[ClassSession]:
        return list(self._sessions)

    def _on_user_changed(self, user: Optional[User]) -> None:
        """Berechnet die Sicht nach Login/Logout/Start neu (Scoping-Kaskade)."""

        self._apply_scope(self.repo.scope(user.id if user is not None else None))
        logger.debug(
            "Scoped view for %s: %d semesters, %d courses, %d sessions",
            user.id if user else None,
            len(self._semesters),
            len(self._courses),
            len(self._sessions),
        )

    def _apply_scope(self, scoped: ScopedData) -> None:
        self._semesters = scoped.semesters
        self._courses = scoped.courses
        self._sessions = scoped.sessions
        self._unparsed = ScopedData(
            unparsed_semesters=scoped.unparsed_semesters,
            unparsed_courses=scoped.unparsed_courses,
            unparsed_sessions=scoped.unparsed_sessions,
        )

    def get_semester(self, semester_id: str) -> Optional[Semester]:
        return next((s for s in self._semesters if s.id == semester_id), None)

    def get_course(self, course_id: str) -> Optional[Course]:
        return next((c for c in self._courses if c.id == course_id), None)

    def semesters_by_status(self, status: SemesterStatus | str) -> list[Semester]:
        """Semester eines Status, sortiert nach Anlagezeitpunkt."""

        wanted = coerce_enum(SemesterStatus, status)
        if wanted is SemesterStatus.ACTIVE:
            return stats.active_semesters(self._semesters)
        return stats.archived_semesters(self._semesters)

    def courses_for_semester(self, semester_id: str) -> list[Course]:
        return [c for c in self._courses if c.semester_id == semester_id]

    def sessions_for_course(self, course_id: str) -> list[ClassSession]:
        return [s for s in self._sessions if s.course_id == course_id]

    # -----------------------------
    # Write cycle
    # -----------------------------
    def save_all(
        self,
        new_semesters: list[Semester],
        new_courses: list[Course],
        new_sessions: list[ClassSession],
    ) -> None:
        """
        Persistiert die neue Sicht des aktuellen Nutzers.

        Ablauf:
            1. Gespeicherte Zeilen anderer Nutzer ermitteln (Semester → Kurse → Sitzungen).
            2. Je Sammlung "fremde Zeilen + neue eigene Zeilen + eigene Rohzeilen" speichern;
               Rohzeilen entfallen nur, wenn ihr Eltern-Element gelöscht wurde.
            3. Die In-Memory-Sicht durch die neuen Listen ersetzen.

        Hinweise:
            `new_*` müssen die *vollständigen* Sammlungen des Nutzers sein, kein Delta.
            Ohne angemeldeten Nutzer passiert nichts.
        """

        user = self.current_user
        if user is None:
            logger.debug("save_all ignored: no user logged in")
            return

        other_semesters, other_courses, other_sessions = self.repo.other_rows(user.id)
        raw_semesters, raw_courses, raw_sessions = self.repo.unparsed_to_keep(
            self._unparsed,
            {s.id for s in new_semesters},
            {c.id for c in new_courses},
        )
        self.repo.save_all(
            other_semesters + [s.to_dict() for s in new_semesters] + raw_semesters,
            other_courses + [c.to_dict() for c in new_courses] + raw_courses,
            other_sessions + [s.to_dict() for s in new_sessions] + raw_sessions,
        )
        self._unparsed = ScopedData(
            unparsed_semesters=raw_semesters,
            unparsed_courses=raw_courses,
            unparsed_sessions=raw_sessions,
        )

        self._semesters = list(new_semesters)
        self._courses = list(new_courses)
        self._sessions = list(new_sessions)

    def _now_ms(self) -> int:
        return int(self._clock().timestamp() * 1000)

    def _new_id(self) -> str:
        # Zeitstempel-ID; bei Kollision innerhalb derselben Millisekunde wird hochgezählt.
        taken = {s.id for s in self._semesters}
        taken.update(c.id for c in self._courses)
        taken.update(s.id for s in self._sessions)
        base = str(self._now_ms())
        candidate = base
        n = 0
        while candidate in taken:
            n += 1
            candidate = f"{base}-{n}"
        return candidate

    # -----------------------------
    # Semester
    # -----------------------------
    def add_semester(self, name: str) -> Optional[Semester]:
        """
        Legt ein aktives Semester für den aktuellen Nutzer an.

        Rückgabe:
            Semester | None: Das neue Semester oder `None` ohne angemeldeten Nutzer.
        """

        user = self.current_user
        if user is None:
            return None
        now = self._clock()
        semester = Semester(
            id=self._new_id(),
            user_id=user.id,
            name=name,
            status=SemesterStatus.ACTIVE,
            start_date=now.isoformat(),
            created_at=self._now_ms(),
        )
        self.save_all(self._semesters + [semester], self._courses, self._sessions)
        logger.info("Added semester %s (%s)", semester.id, name)
        return semester

    def _replace_semester(self, semester_id: str, **changes: Any) -> Optional[Semester]:
        if self.current_user is None:
            return None
        updated: Optional[Semester] = None
        new_semesters: list[Semester] = []
        for s in self._semesters:
            if s.id == semester_id:
                s = dataclasses.replace(s, **changes)
                updated = s
            new_semesters.append(s)
        if updated is None:
            logger.debug("Semester %s not found, nothing to update", semester_id)
            return None
        self.save_all(new_semesters, self._courses, self._sessions)
        return updated

    def update_semester_status(self, semester_id: str, status: SemesterStatus | str) -> Optional[Semester]:
        """Archiviert bzw. reaktiviert ein Semester (No-Op bei unbekannter ID)."""

        return self._replace_semester(semester_id, status=coerce_enum(SemesterStatus, status))

    def update_semester_name(self, semester_id: str, name: str) -> Optional[Semester]:
        return self._replace_semester(semester_id, name=name)

    def delete_semester(self, semester_id: str) -> None:
        """
        Löscht ein Semester samt Kursen und deren Sitzungen (zweistufige Kaskade).
        """

        if self.current_user is None:
            return
        removed_course_ids = {c.id for c in self._courses if c.semester_id == semester_id}
        self._unparsed.unparsed_semesters = [
            r for r in self._unparsed.unparsed_semesters if r.get("id") != semester_id
        ]
        self.save_all(
            [s for s in self._semesters if s.id != semester_id],
            [c for c in self._courses if c.semester_id != semester_id],
            [s for s in self._sessions if s.course_id not in removed_course_ids],
        )
        logger.info("Deleted semester %s with %d courses", semester_id, len(removed_course_ids))

    # -----------------------------
    # Course
    # -----------------------------
    def add_course(
        self,
        semester_id: str,
        name: str,
        teacher_name: str,
        total_classes: int = TOTAL_CLASSES_DEFAULT,
    ) -> Optional[Course]:
        """
        Legt einen Kurs an.

        Hinweise:
            Ob `semester_id` existiert, wird nicht geprüft.
        """

        if self.current_user is None:
            return None
        course = Course(
            id=self._new_id(),
            semester_id=semester_id,
            name=name,
            teacher_name=teacher_name,
            total_classes=total_classes,
        )
        self.save_all(self._semesters, self._courses + [course], self._sessions)
        return course

    def update_course(self, course_id: str, **fields: Any) -> Optional[Course]:
        """
        Übernimmt die angegebenen Felder in den Kurs (flaches Merge).

        Parameter:
            course_id (str): Kurs-ID.
            **fields: `name`, `teacher_name`, `total_classes`, `semester_id`
                (auch in camelCase des Speicherformats).

        Ausnahmen:
            TypeError: Bei unbekannten Feldnamen.
        """

        changes: dict[str, Any] = {}
        for key, value in fields.items():
            if key not in _COURSE_FIELD_ALIASES:
                raise TypeError(f"update_course() got an unexpected field {key!r}")
            changes[_COURSE_FIELD_ALIASES[key]] = value

        if self.current_user is None:
            return None
        updated: Optional[Course] = None
        new_courses: list[Course] = []
        for c in self._courses:
            if c.id == course_id:
                c = dataclasses.replace(c, **changes)
                updated = c
            new_courses.append(c)
        if updated is None:
            return None
        self.save_all(self._semesters, new_courses, self._sessions)
        return updated

    def delete_course(self, course_id: str) -> None:
        self._unparsed.unparsed_courses = [r for r in self._unparsed.unparsed_courses if r.get("id") != course_id]
        self.save_all(
            self._semesters,
            [c for c in self._courses if c.id != course_id],
            [s for s in self._sessions if s.course_id != course_id],
        )

    # -----------------------------
    # Session
    # -----------------------------
    def add_session(
        self,
        course_id: str,
        date: str,
        type: SessionType | str,
        note: Optional[str] = None,
    ) -> Optional[ClassSession]:
        """
        Erfasst eine besuchte Sitzung.

        Parameter:
            course_id (str): Kurs-ID (nicht geprüft).
            date (str): Kalenderdatum `YYYY-MM-DD`.
            type (SessionType | str): Online oder DRC.
            note (str | None): Optionale Notiz.
        """

        if self.current_user is None:
            return None
        session = ClassSession(
            id=self._new_id(),
            course_id=course_id,
            date=date,
            type=type,
            note=note,
        )
        self.save_all(self._semesters, self._courses, self._sessions + [session])
        return session

    def delete_session(self, session_id: str) -> None:
        self._unparsed.unparsed_sessions = [r for r in self._unparsed.unparsed_sessions if r.get("id") != session_id]
        self.save_all(
            self._semesters,
            self._courses,
            [s for s in self._sessions if s.id != session_id],
        )

    # -----------------------------
    # Backup
    # -----------------------------
    def import_data(self, data: Mapping[str, Any]) -> None:
        """
        Führt importierte Daten mit dem *gesamten* Store zusammen (alle Nutzer).

        Ablauf:
            Je Sammlung: gespeicherte Zeilen + eingehende Zeilen, gleiche `id` → eingehende
            Zeile gewinnt. Danach wird die Sicht des aktuellen Nutzers neu berechnet.

        Hinweise:
            Die `userId` eingehender Semester wird nicht geprüft; ein Import kann
            damit auch die Daten anderer Profile verändern.
        """

        semesters, courses, sessions = self.repo.load_all()
        merged_semesters = merge_by_id(semesters, data.get("semesters"))
        merged_courses = merge_by_id(courses, data.get("courses"))
        merged_sessions = merge_by_id(sessions, data.get("sessions"))

        self.repo.save_all(merged_semesters, merged_courses, merged_sessions)
        logger.info(
            "Imported backup: %d semesters, %d courses, %d sessions in store",
            len(merged_semesters),
            len(merged_courses),
            len(merged_sessions),
        )

        user = self.current_user
        if user is not None:
            self._apply_scope(self.repo.scope_from(user.id, merged_semesters, merged_courses, merged_sessions))

    def export_document(self, exported_at: Optional[datetime] = None) -> dict[str, Any]:
        """Backup-Dokument mit den Daten des aktuellen Nutzers (siehe `backup.build_export_document`)."""

        return backup.build_export_document(
            self.current_user,
            self._semesters,
            self._courses,
            self._sessions,
            exported_at=exported_at or self._clock(),
        )

    # -----------------------------
    # Statistics
    # -----------------------------
    def overall_stats(self) -> stats.OverallStats:
        return stats.overall_stats(self._semesters, self._courses, self._sessions)

    def course_progress(self, course_id: str) -> Optional[stats.CourseProgress]:
        course = self.get_course(course_id)
        if course is None:
            return None
        return stats.course_progress(course, self._sessions)

    def progress_for_courses(self, courses: Iterable[Course]) -> list[stats.CourseProgress]:
        return [stats.course_progress(c, self._sessions) for c in courses]
