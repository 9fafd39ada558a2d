"""
Validierung und Parsing von Benutzereingaben.

Zweck:
    Die CLI nimmt Eingaben als Strings entgegen. Dieses Modul wandelt diese Strings in
    passende Python-Typen (int/date/Enum) um und prüft einfache Wertebereiche, damit
    keine ungültigen Daten in die Service-Schicht gelangen.

Hinweise:
    Fachliche Invarianten der Entities werden zusätzlich in den Dataclasses
    (`models.py`) über `__post_init__` abgesichert.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from honours_tracker.models import (
    ProgramType,
    SemesterStatus,
    SessionType,
    SubjectType,
    coerce_enum,
    subjects_for_program,
)

DATE_FORMATS = ("%Y-%m-%d", "%d-%m-%Y", "%d.%m.%y", "%d.%m.%Y")


class ValidationError(ValueError):
    """
    Eine Eingabe auf der Kommandozeile ist unbrauchbar.

    Zweck:
        Die CLI gibt nur die Meldung aus (ohne Traceback) und endet mit Exit-Code 1.
    """


def parse_date(text: str) -> Optional[date]:
    """
    Liest ein Sitzungsdatum.

    Parameter:
        text (str): Wert von `--date`.

    Rückgabe:
        date | None: Geparstes Datum oder `None` bei leerer Eingabe.

    Ausnahmen:
        ValidationError: Kein bekanntes Datumsformat.

    Hinweise:
        Unterstützte Formate:
        - YYYY-MM-DD (ISO)
        - DD-MM-YYYY (Format der Berichte)
        - DD.MM.YY
        - DD.MM.YYYY
    """

    value = (text or "").strip()
    if not value:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            pass
    raise ValidationError("Datum muss YYYY-MM-DD, DD-MM-YYYY oder DD.MM.YY(YY) sein")


def parse_int(text: str, *, field: str, min_value: Optional[int] = None) -> int:
    """
    Ganzzahl mit optionaler Untergrenze.

    Ausnahmen:
        ValidationError: Keine Zahl oder kleiner als `min_value`.
    """

    try:
        number = int(str(text).strip())
    except ValueError as exc:
        raise ValidationError(f"{field}: '{text}' ist keine ganze Zahl") from exc
    if min_value is not None and number < min_value:
        raise ValidationError(f"{field}: mindestens {min_value}")
    return number


def parse_float(text: str, *, field: str, min_value: Optional[float] = None, max_value: Optional[float] = None) -> float:
    """
    Dezimalzahl; Komma und Punkt sind als Trennzeichen erlaubt (z. B. Credits "3,5").

    Ausnahmen:
        ValidationError: Keine Zahl oder außerhalb von `min_value`..`max_value`.
    """

    try:
        number = float(str(text).strip().replace(",", "."))
    except ValueError as exc:
        raise ValidationError(f"{field}: '{text}' ist keine Zahl") from exc
    if min_value is not None and number < min_value:
        raise ValidationError(f"{field}: mindestens {min_value}")
    if max_value is not None and number > max_value:
        raise ValidationError(f"{field}: höchstens {max_value}")
    return number


def parse_total_classes(text: str) -> int:
    """Soll-Anzahl Sitzungen eines Kurses (mindestens 1)."""

    return parse_int(text, field="Anzahl Sitzungen", min_value=1)


def parse_program(text: str) -> ProgramType:
    """
    Parst ein Studienprogramm (Name wie `BA_HONORS` oder Label wie `BA Honours`).

    Ausnahmen:
        ValidationError: Bei unbekanntem Programm.
    """

    try:
        return coerce_enum(ProgramType, (text or "").strip())
    except ValueError as exc:
        choices = ", ".join(p.name for p in ProgramType)
        raise ValidationError(f"Unbekanntes Programm (erlaubt: {choices})") from exc


def parse_subject(text: str, program: Optional[ProgramType] = None) -> SubjectType:
    """
    Parst ein Fach und prüft optional, ob es zum Programm gehört.

    Parameter:
        text (str): Name (`BANGLA`) oder Label (`Bangla Language & Literature`).
        program (ProgramType | None): Wenn gesetzt, muss das Fach darin wählbar sein.

    Ausnahmen:
        ValidationError: Bei unbekanntem Fach oder unpassender Kombination.
    """

    try:
        subject = coerce_enum(SubjectType, (text or "").strip())
    except ValueError as exc:
        raise ValidationError("Unbekanntes Fach") from exc
    if program is not None and subject not in subjects_for_program(program):
        raise ValidationError(f"{subject.value} gehört nicht zu {program.value}")
    return subject


def parse_session_type(text: str) -> SessionType:
    try:
        return coerce_enum(SessionType, (text or "").strip())
    except ValueError as exc:
        raise ValidationError("Sitzungstyp muss Online oder DRC sein") from exc


def parse_semester_status(text: str) -> SemesterStatus:
    try:
        return coerce_enum(SemesterStatus, (text or "").strip())
    except ValueError as exc:
        raise ValidationError("Status muss Active oder Archived sein") from exc


def require_text(text: str, *, field: str) -> str:
    """
    Prüft ein Pflichtfeld und liefert den getrimmten Wert.

    Ausnahmen:
        ValidationError: Wenn das Feld leer ist.
    """

    t = (text or "").strip()
    if not t:
        raise ValidationError(f"{field} darf nicht leer sein")
    return t


def validate_login(
    name: str, password: str, program: str, subject: str
) -> tuple[str, str, ProgramType, SubjectType]:
    """
    Validiert das Login-Formular.

    Zweck:
        Alle vier Felder sind Pflicht; das Fach muss zum Programm passen.

    Rückgabe:
        tuple: (name, password, program, subject) in geparster Form.

    Ausnahmen:
        ValidationError: "Bitte alle Felder ausfüllen." bei fehlenden Feldern,
        sonst eine Meldung zum ungültigen Programm/Fach.
    """

    if not name or not password or not program or not subject:
        raise ValidationError("Bitte alle Felder ausfüllen.")
    prog = parse_program(program)
    subj = parse_subject(subject, prog)
    return name, password, prog, subj
