from __future__ import annotations

# -----------------------------------------------------------------------------
# Domain model (Entities)
# -----------------------------------------------------------------------------
# Diese Datei enthält die fachlichen Kernobjekte des Trackers.
#
# Ziel: schlanke, gut testbare Datenklassen (dataclasses).
# - Invarianten / Wertebereiche werden über __post_init__ als Basisschutz geprüft.
# - UI-/CLI-spezifisches Parsing (String → int/date/Enum) passiert in `validation.py`.
# - Persistiert wird im camelCase-JSON-Format (`to_dict` / `from_dict`), damit
#   vorhandene Backup-Dateien (JSON-Format der Web-Version) importiert werden können.
#
# Besitzkette: User 1..* Semester 1..* Course 1..* ClassSession
# Die Referenzen (user_id, semester_id, course_id) werden vom Store nicht
# erzwungen; verwaiste Kurse/Sitzungen sind möglich.
# -----------------------------------------------------------------------------


from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, TypeVar

from honours_tracker.config import PROGRAM_SUBJECTS, TOTAL_CLASSES_DEFAULT

E = TypeVar("E", bound=Enum)


class ProgramType(Enum):
    """Studienprogramme (Wert = Anzeigename, so wird er auch gespeichert)."""

    BA_HONORS = "BA Honours"
    BSS_HONORS = "BSS Honours"


class SubjectType(Enum):
    """Fächer; welche zu welchem Programm gehören, regelt `config.PROGRAM_SUBJECTS`."""

    # BA
    BANGLA = "Bangla Language & Literature"
    ISLAMIC_STUDIES = "Islamic Studies"
    HISTORY = "History"
    PHILOSOPHY = "Philosophy"
    # BSS
    POLITICAL_SCIENCE = "Political Science"
    SOCIOLOGY = "Sociology"


class SemesterStatus(Enum):
    ACTIVE = "Active"
    ARCHIVED = "Archived"


class SessionType(Enum):
    """Durchführungsform einer Sitzung (DRC = Präsenz im Regionalzentrum)."""

    ONLINE = "Online"
    DRC = "DRC"


def coerce_enum(enum_cls: type[E], value: Any) -> E:
    """
    Wandelt Enum-Member, Wert ("BA Honours") oder Namen ("BA_HONORS") in ein Member um.

    Ausnahmen:
        ValueError: Wenn `value` zu keinem Member passt.
    """

    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        pass
    if isinstance(value, str) and value in enum_cls.__members__:
        return enum_cls[value]
    raise ValueError(f"{value!r} ist kein gültiger Wert für {enum_cls.__name__}")


def subjects_for_program(program: ProgramType) -> tuple[SubjectType, ...]:
    """Liefert die Fächer, die im Programm `program` wählbar sind."""

    return tuple(SubjectType(label) for label in PROGRAM_SUBJECTS.get(program.value, ()))


def _require_non_empty(val: Any, field_name: str) -> None:
    """
    Prüft, ob ein Pflicht-String nicht leer ist.

    Ausnahmen:
        ValueError: Wenn `val` kein String oder leer/whitespace ist.
    """

    if not isinstance(val, str) or not val.strip():
        raise ValueError(f"{field_name} darf nicht leer sein")


def _split_known(data: dict[str, Any], known: tuple[str, ...]) -> dict[str, Any]:
    # Unbekannte Felder werden mitgeführt und beim Speichern wieder ausgegeben.
    return {k: v for k, v in data.items() if k not in known}


@dataclass(slots=True)
class User:
    """
    Lokales Profil (kein Sicherheitsmerkmal).

    Attribute:
        id (str): Abgeleiteter Schlüssel aus Name + Passwort (siehe `identity.derive_user_id`).
        name (str): Anzeigename.
        password (str): Klartext, dient nur als Unterscheidungsmerkmal lokaler Profile.
        program (ProgramType): Studienprogramm.
        subject (SubjectType): Fach.
    """

    id: str
    name: str
    password: str
    program: ProgramType
    subject: SubjectType

    def __post_init__(self) -> None:
        _require_non_empty(self.id, "id")
        _require_non_empty(self.password, "password")
        self.program = coerce_enum(ProgramType, self.program)
        self.subject = coerce_enum(SubjectType, self.subject)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "password": self.password,
            "program": self.program.value,
            "subject": self.subject.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            password=str(data.get("password") or ""),
            program=data.get("program"),
            subject=data.get("subject"),
        )


@dataclass(slots=True)
class Semester:
    """
    Ein Semester eines Nutzers.

    Attribute:
        id (str): Zeitstempel-basierte ID (Erzeugungsreihenfolge).
        user_id (str): Besitzer (User.id).
        name (str): Freitext oder ein Eintrag aus `config.SEMESTER_OPTIONS`.
        status (SemesterStatus): Active oder Archived.
        start_date (str): ISO-Zeitstempel der Anlage.
        created_at (int): Epoch-Millisekunden, bestimmt die Anzeigereihenfolge.
        extra (dict): Unbekannte Felder aus dem Speicher (werden unverändert zurückgeschrieben).
    """

    id: str
    user_id: str
    name: str
    status: SemesterStatus
    start_date: str
    created_at: int
    extra: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    _KEYS = ("id", "userId", "name", "status", "startDate", "createdAt")

    def __post_init__(self) -> None:
        _require_non_empty(self.id, "id")
        self.status = coerce_enum(SemesterStatus, self.status)
        self.created_at = int(self.created_at)

    @property
    def is_active(self) -> bool:
        return self.status is SemesterStatus.ACTIVE

    def to_dict(self) -> dict[str, Any]:
        out = dict(self.extra)
        out.update(
            {
                "id": self.id,
                "userId": self.user_id,
                "name": self.name,
                "status": self.status.value,
                "startDate": self.start_date,
                "createdAt": self.created_at,
            }
        )
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Semester":
        return cls(
            id=str(data.get("id") or ""),
            user_id=str(data.get("userId") or ""),
            name=str(data.get("name") or ""),
            status=data.get("status", SemesterStatus.ACTIVE.value),
            start_date=str(data.get("startDate") or ""),
            created_at=data.get("createdAt") or 0,
            extra=_split_known(data, cls._KEYS),
        )


@dataclass(slots=True)
class Course:
    """
    Ein Kurs innerhalb eines Semesters.

    Attribute:
        id (str): Eindeutige ID.
        semester_id (str): Referenz auf das Semester (nicht erzwungen).
        name (str): Kursname.
        teacher_name (str): Lehrperson.
        total_classes (int): Soll-Anzahl Sitzungen (Default 24, >= 0).

    Hinweise:
        `total_classes == 0` ist nur für importierte Altdaten zulässig; die
        Statistik behandelt diesen Fall als 0 %.
    """

    id: str
    semester_id: str
    name: str
    teacher_name: str = ""
    total_classes: int = TOTAL_CLASSES_DEFAULT
    extra: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    _KEYS = ("id", "semesterId", "name", "teacherName", "totalClasses")

    def __post_init__(self) -> None:
        _require_non_empty(self.id, "id")
        self.total_classes = int(self.total_classes)
        if self.total_classes < 0:
            raise ValueError("total_classes muss >= 0 sein")

    def to_dict(self) -> dict[str, Any]:
        out = dict(self.extra)
        out.update(
            {
                "id": self.id,
                "semesterId": self.semester_id,
                "name": self.name,
                "teacherName": self.teacher_name,
                "totalClasses": self.total_classes,
            }
        )
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Course":
        total = data.get("totalClasses")
        return cls(
            id=str(data.get("id") or ""),
            semester_id=str(data.get("semesterId") or ""),
            name=str(data.get("name") or ""),
            teacher_name=str(data.get("teacherName") or ""),
            total_classes=TOTAL_CLASSES_DEFAULT if total is None else total,
            extra=_split_known(data, cls._KEYS),
        )


@dataclass(slots=True)
class ClassSession:
    """
    Eine besuchte Sitzung eines Kurses.

    Attribute:
        id (str): Eindeutige ID.
        course_id (str): Referenz auf den Kurs (nicht erzwungen).
        date (str): Kalenderdatum als String (`YYYY-MM-DD`).
        type (SessionType): Online oder DRC.
        note (str | None): Optionale Notiz; wird beim Speichern weggelassen, wenn leer.
    """

    id: str
    course_id: str
    date: str
    type: SessionType
    note: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    _KEYS = ("id", "courseId", "date", "type", "note")

    def __post_init__(self) -> None:
        _require_non_empty(self.id, "id")
        self.type = coerce_enum(SessionType, self.type)

    def to_dict(self) -> dict[str, Any]:
        out = dict(self.extra)
        out.update(
            {
                "id": self.id,
                "courseId": self.course_id,
                "date": self.date,
                "type": self.type.value,
            }
        )
        if self.note is not None:
            out["note"] = self.note
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClassSession":
        note = data.get("note")
        return cls(
            id=str(data.get("id") or ""),
            course_id=str(data.get("courseId") or ""),
            date=str(data.get("date") or ""),
            type=data.get("type"),
            note=None if note is None else str(note),
            extra=_split_known(data, cls._KEYS),
        )
