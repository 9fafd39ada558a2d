from __future__ import annotations

# -----------------------------------------------------------------------------
# Repository layer (Persistence)
# -----------------------------------------------------------------------------
# Repositories kapseln *sämtliche* Zugriffe auf die vier gespeicherten Sammlungen
# (user, semesters, courses, sessions) und stellen Lade-/Speicher-Operationen bereit.
#
# Alle Nutzer teilen sich einen physischen Store: Es gibt keine Partitionierung,
# nur Filterung beim Lesen/Schreiben über die Referenzfelder
# (Semester.userId → Course.semesterId → ClassSession.courseId).
#
# Zeilen werden als rohe JSON-Objekte (dict) gelesen. Nur die Zeilen des aktuellen
# Nutzers werden in Dataclasses umgewandelt; fremde Zeilen bleiben unverändert.
# Eigene Zeilen, die sich nicht umwandeln lassen, werden roh mitgeführt und beim
# nächsten Schreiben wieder gespeichert, solange ihr Eltern-Element existiert.
# -----------------------------------------------------------------------------


import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

from honours_tracker.config import COURSES_KEY, SEMESTERS_KEY, SESSIONS_KEY, USER_KEY
from honours_tracker.models import ClassSession, Course, Semester, User
from honours_tracker.storage import StorageProtocol

logger = logging.getLogger(__name__)

Row = dict[str, Any]
M = TypeVar("M")


def merge_by_id(current: Iterable[Row], incoming: Any) -> list[Row]:
    """
    Führt zwei Sammlungen über die `id` zusammen ("replace-by-id, else insert").

    Zweck:
        Bestehende Zeilen werden zuerst eingetragen und dann von eingehenden Zeilen
        mit gleicher `id` überschrieben. Die Reihenfolge der Erst-Einfügung bleibt erhalten.

    Parameter:
        current (Iterable[Row]): Bestehende Zeilen.
        incoming (Any): Eingehende Zeilen; ist der Wert keine Liste, wird nur `current` übernommen.

    Rückgabe:
        list[Row]: Zusammengeführte Sammlung ohne doppelte IDs.
    """

    merged: dict[Any, Row] = {}
    for row in current:
        merged[row.get("id")] = row
    if isinstance(incoming, list):
        for row in incoming:
            if isinstance(row, dict):
                merged[row.get("id")] = row
    return list(merged.values())


class CollectionRepository(Generic[M]):
    """
    Basis-Repository für eine gespeicherte Sammlung (Liste von JSON-Objekten).

    Zweck:
        Lädt/speichert die *vollständige* Sammlung aller Nutzer und wandelt Zeilen
        bei Bedarf in das passende Modell um.

    Hinweise:
        Unterklassen setzen `key` und `model_from_dict`.
    """

    key: str = ""
    model_from_dict: Callable[[Row], M]

    def __init__(self, storage: StorageProtocol) -> None:
        self.storage = storage

    def load_all(self) -> list[Row]:
        """
        Lädt alle Zeilen aller Nutzer.

        Rückgabe:
            list[Row]: Rohzeilen; Nicht-Objekte werden verworfen (mit Warnung).
        """

        rows = self.storage.load(self.key, [])
        if not isinstance(rows, list):
            logger.warning("Stored %s is not a list, ignoring it", self.key)
            return []
        valid = [r for r in rows if isinstance(r, dict)]
        if len(valid) != len(rows):
            logger.warning("Dropped %d malformed %s rows", len(rows) - len(valid), self.key)
        return valid

    def save_all(self, rows: list[Row]) -> bool:
        return self.storage.save(self.key, rows)

    def to_models(self, rows: Iterable[Row]) -> tuple[list[M], list[Row]]:
        """
        Wandelt Rohzeilen in Modelle um.

        Rückgabe:
            tuple: (Modelle, Rohzeilen, die die Invarianten des Modells verletzen).

        Hinweise:
            Nicht umwandelbare Zeilen werden nicht verworfen, sondern unverändert
            zurückgegeben, damit der nächste Schreibvorgang sie wieder speichert.
        """

        models: list[M] = []
        unparsed: list[Row] = []
        for row in rows:
            try:
                models.append(type(self).model_from_dict(row))
            except (TypeError, ValueError) as exc:
                logger.warning("Keeping unparsable %s row %r as raw data: %s", self.key, row.get("id"), exc)
                unparsed.append(row)
        return models, unparsed


class SemesterRepository(CollectionRepository[Semester]):
    """Semester-Sammlung; Besitz über `userId`."""

    key = SEMESTERS_KEY
    model_from_dict = Semester.from_dict

    @staticmethod
    def owned_by(rows: Iterable[Row], user_id: str) -> list[Row]:
        return [r for r in rows if r.get("userId") == user_id]

    @staticmethod
    def not_owned_by(rows: Iterable[Row], user_id: str) -> list[Row]:
        return [r for r in rows if r.get("userId") != user_id]


class CourseRepository(CollectionRepository[Course]):
    """Kurs-Sammlung; Besitz über `semesterId`."""

    key = COURSES_KEY
    model_from_dict = Course.from_dict

    @staticmethod
    def in_semesters(rows: Iterable[Row], semester_ids: set[Any]) -> list[Row]:
        return [r for r in rows if r.get("semesterId") in semester_ids]


class SessionRepository(CollectionRepository[ClassSession]):
    """Sitzungs-Sammlung; Besitz über `courseId`."""

    key = SESSIONS_KEY
    model_from_dict = ClassSession.from_dict

    @staticmethod
    def in_courses(rows: Iterable[Row], course_ids: set[Any]) -> list[Row]:
        return [r for r in rows if r.get("courseId") in course_ids]


class UserRepository:
    """
    Repository für das aktive Profil (einzelner Wert oder `null`).
    """

    def __init__(self, storage: StorageProtocol) -> None:
        self.storage = storage

    def load(self) -> Optional[User]:
        """
        Lädt das zuletzt aktive Profil.

        Rückgabe:
            User | None: Profil oder `None` (kein/defekter Eintrag).
        """

        data = self.storage.load(USER_KEY, None)
        if not isinstance(data, dict):
            return None
        try:
            return User.from_dict(data)
        except ValueError as exc:
            logger.warning("Ignoring malformed stored user: %s", exc)
            return None

    def save(self, user: Optional[User]) -> bool:
        return self.storage.save(USER_KEY, user.to_dict() if user is not None else None)


@dataclass(slots=True)
class ScopedData:
    """Die Sicht eines Nutzers auf die drei Sammlungen."""

    semesters: list[Semester] = field(default_factory=list)
    courses: list[Course] = field(default_factory=list)
    sessions: list[ClassSession] = field(default_factory=list)
    # Eigene Zeilen, die sich nicht in Modelle umwandeln lassen (z. B. Altdaten "Offline")
    unparsed_semesters: list[Row] = field(default_factory=list)
    unparsed_courses: list[Row] = field(default_factory=list)
    unparsed_sessions: list[Row] = field(default_factory=list)


class TrackerRepository:
    """
    Bündelt die drei Sammlungs-Repositories und implementiert die Besitz-Kaskade.

    Zweck:
        Stellt die zwei Kernalgorithmen des Stores bereit:
        - `scope()`: vollständige Sammlungen → Sicht eines Nutzers
        - `other_rows()`: vollständige Sammlungen → alle Zeilen *anderer* Nutzer
    """

    def __init__(self, storage: StorageProtocol) -> None:
        self.semester_repo = SemesterRepository(storage)
        self.course_repo = CourseRepository(storage)
        self.session_repo = SessionRepository(storage)

    def load_all(self) -> tuple[list[Row], list[Row], list[Row]]:
        return (
            self.semester_repo.load_all(),
            self.course_repo.load_all(),
            self.session_repo.load_all(),
        )

    def scope_rows(
        self,
        user_id: str,
        semesters: list[Row],
        courses: list[Row],
        sessions: list[Row],
    ) -> tuple[list[Row], list[Row], list[Row]]:
        """
        Dreistufige Besitz-Kaskade auf Rohzeilen.

        Ablauf:
            Semester mit `userId == user_id` → deren IDs → Kurse mit passender
            `semesterId` → deren IDs → Sitzungen mit passender `courseId`.
        """

        own_semesters = self.semester_repo.owned_by(semesters, user_id)
        semester_ids = {r.get("id") for r in own_semesters}
        own_courses = self.course_repo.in_semesters(courses, semester_ids)
        course_ids = {r.get("id") for r in own_courses}
        own_sessions = self.session_repo.in_courses(sessions, course_ids)
        return own_semesters, own_courses, own_sessions

    def scope(self, user_id: Optional[str]) -> ScopedData:
        """
        Lädt die Sicht des Nutzers `user_id` aus dem Store.

        Rückgabe:
            ScopedData: Leere Sicht, wenn `user_id` None ist.
        """

        if user_id is None:
            return ScopedData()
        return self.scope_from(user_id, *self.load_all())

    def scope_from(
        self,
        user_id: str,
        semesters: list[Row],
        courses: list[Row],
        sessions: list[Row],
    ) -> ScopedData:
        own_semesters, own_courses, own_sessions = self.scope_rows(user_id, semesters, courses, sessions)
        semester_models, bad_semesters = self.semester_repo.to_models(own_semesters)
        course_models, bad_courses = self.course_repo.to_models(own_courses)
        session_models, bad_sessions = self.session_repo.to_models(own_sessions)
        return ScopedData(
            semesters=semester_models,
            courses=course_models,
            sessions=session_models,
            unparsed_semesters=bad_semesters,
            unparsed_courses=bad_courses,
            unparsed_sessions=bad_sessions,
        )

    def other_rows(self, user_id: str) -> tuple[list[Row], list[Row], list[Row]]:
        """
        Liefert alle gespeicherten Zeilen, die *nicht* dem Nutzer gehören.

        Ablauf:
            1. Semester mit `userId != user_id`
            2. Kurse, deren `semesterId` zu diesen Semestern gehört
            3. Sitzungen, deren `courseId` zu diesen Kursen gehört

        Hinweise:
            Alles andere (eigene Zeilen und verwaiste Kurse/Sitzungen ohne fremdes
            Eltern-Element) wird vom Aufrufer durch die neue eigene Sicht ersetzt.
        """

        semesters, courses, sessions = self.load_all()
        other_semesters = self.semester_repo.not_owned_by(semesters, user_id)
        other_semester_ids = {r.get("id") for r in other_semesters}
        other_courses = self.course_repo.in_semesters(courses, other_semester_ids)
        other_course_ids = {r.get("id") for r in other_courses}
        other_sessions = self.session_repo.in_courses(sessions, other_course_ids)
        return other_semesters, other_courses, other_sessions

    def unparsed_to_keep(
        self,
        scoped: ScopedData,
        semester_ids: set[Any],
        course_ids: set[Any],
    ) -> tuple[list[Row], list[Row], list[Row]]:
        """
        Ermittelt die rohen eigenen Zeilen, die ein Schreibvorgang erhalten muss.

        Parameter:
            scoped (ScopedData): Aktuelle Sicht mit den nicht umwandelbaren Zeilen.
            semester_ids, course_ids: IDs der neuen (gültigen) Semester bzw. Kurse.

        Hinweise:
            Rohe Semester bleiben immer erhalten. Rohe Kurse und Sitzungen nur, wenn
            ihr Eltern-Element (gültig oder roh) noch existiert; so greift die
            Lösch-Kaskade auch für sie.
        """

        semesters = list(scoped.unparsed_semesters)
        parent_semesters = semester_ids | {r.get("id") for r in semesters}
        courses = self.course_repo.in_semesters(scoped.unparsed_courses, parent_semesters)
        parent_courses = course_ids | {r.get("id") for r in courses}
        sessions = self.session_repo.in_courses(scoped.unparsed_sessions, parent_courses)
        return semesters, courses, sessions

    def save_all(self, semesters: list[Row], courses: list[Row], sessions: list[Row]) -> None:
        self.semester_repo.save_all(semesters)
        self.course_repo.save_all(courses)
        self.session_repo.save_all(sessions)
