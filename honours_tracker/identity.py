"""
Identitäts-Komponente (lokaler Profil-Wähler).

Zweck:
    Legt den "aktuellen Nutzer" aus Name/Passwort/Programm/Fach fest, speichert ihn
    und stellt ihn beim Programmstart wieder her.

Hinweise:
    Es findet keine Authentifizierung statt. Die Nutzer-ID ist ein Komfortschlüssel
    (`normalize(name) + "_" + password`) und keine Sicherheitsgrenze: Zwei Namen, die
    gleich normalisieren, teilen sich bei gleichem Passwort dasselbe Profil.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional

from honours_tracker.models import ProgramType, SubjectType, User
from honours_tracker.repositories import UserRepository
from honours_tracker.storage import StorageProtocol

logger = logging.getLogger(__name__)

ID_SEPARATOR = "_"

UserListener = Callable[[Optional[User]], None]

_WHITESPACE = re.compile(r"\s")


def normalize_name(name: str) -> str:
    """Kleinschreibung, alle Leerzeichen entfernt ("Ann  Lee" → "annlee")."""

    return _WHITESPACE.sub("", name.lower())


def derive_user_id(name: str, password: str) -> str:
    """
    Leitet die stabile Nutzer-ID ab.

    Rückgabe:
        str: z. B. `derive_user_id("Ann", "pw1") == "ann_pw1"`.
    """

    return f"{normalize_name(name)}{ID_SEPARATOR}{password}"


class IdentityService:
    """
    Verwaltet das aktive Profil.

    Zweck:
        `login()` / `logout()` setzen das Profil und persistieren es unter dem Schlüssel
        `user`. Registrierte Listener (z. B. der `TrackerService`) werden nach jeder
        Änderung benachrichtigt, damit sie ihre Sicht neu berechnen.
    """

    def __init__(self, storage: StorageProtocol) -> None:
        self.user_repo = UserRepository(storage)
        self._listeners: list[UserListener] = []
        self._user: Optional[User] = self.user_repo.load()
        if self._user is not None:
            logger.debug("Restored user %s", self._user.id)

    @property
    def current_user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def subscribe(self, listener: UserListener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self._user)

    def login(
        self,
        name: str,
        password: str,
        program: ProgramType | str,
        subject: SubjectType | str,
    ) -> bool:
        """
        Setzt das aktive Profil.

        Parameter:
            name (str): Anzeigename.
            password (str): Passwort (Profil-Unterscheidung, nicht geprüft).
            program (ProgramType | str): Programm (Member, Name oder Label).
            subject (SubjectType | str): Fach (Member, Name oder Label).

        Rückgabe:
            bool: False bei leerem Passwort (keine Zustandsänderung), sonst True.

        Ausnahmen:
            ValueError: Bei unbekanntem Programm/Fach (aus `User.__post_init__`).
        """

        if not password:
            return False

        user = User(
            id=derive_user_id(name, password),
            name=name,
            password=password,
            program=program,
            subject=subject,
        )
        self._user = user
        self.user_repo.save(user)
        logger.info("Logged in as %s", user.id)
        self._notify()
        return True

    def logout(self) -> None:
        """Löscht das aktive Profil und persistiert den leeren Zustand."""

        self._user = None
        self.user_repo.save(None)
        logger.info("Logged out")
        self._notify()
