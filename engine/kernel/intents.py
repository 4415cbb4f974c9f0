"""
AppSchmiede Kernel — Intent Classification

Keyword regexes over the lowercased prompt. Every intent is matched
independently, so one prompt can trigger several page builders.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_PATTERNS: dict[str, re.Pattern[str]] = {
    # auth suite
    "register": re.compile(r"register|registrier|signup|anmeldung|konto"),
    "login": re.compile(r"login|anmelden|signin"),
    "password_reset": re.compile(r"passwort|password|reset"),
    # single-purpose pages
    "chat": re.compile(r"chat|messag|nachrichten?"),
    "support": re.compile(r"support|ticket|helpdesk|hilfe|kontakt\s*support"),
    "booking": re.compile(r"termin|buchung|booking|reservier|reservation"),
    "catalog": re.compile(r"menü|menu|speisekarte|katalog|produkte|produkt|shop|catalog"),
    "menu": re.compile(r"menü|menu|speisekarte"),
    "news": re.compile(r"news|neuigkeiten|update|updates"),
    "qr": re.compile(r"qr|qrcode|qr-code"),
    "location": re.compile(r"standort|karte|map|maps|gps|location"),
    "presence": re.compile(r"online|anwesenheit|status"),
    # company suite
    "company": re.compile(r"unternehmen|firma|team|belegschaft|business"),
    "projects": re.compile(r"projekt"),
    "time": re.compile(r"zeit|time|stunden|arbeitszeit|tracking"),
    "tasks": re.compile(r"aufgabe|task|todo|verteilung"),
    "notifications": re.compile(r"benachrichtig|notification|hinweis"),
    "communication": re.compile(r"chat|kommunikation|messag|talk"),
    # home page nav
    "home_chat": re.compile(r"chat"),
    "home_register": re.compile(r"register|registrier|signup"),
    "home_login": re.compile(r"login|signin|anmelden"),
    # single-page fallback
    "chat_page": re.compile(r"chat|messag|support|konversation|unterhaltung"),
}

AUTH_PAGE_NAME = re.compile(r"^(login|anmelden|auth|authentication|sign\s*in)$", re.IGNORECASE)


@dataclass(frozen=True)
class Intents:
    register: bool = False
    login: bool = False
    password_reset: bool = False
    chat: bool = False
    support: bool = False
    booking: bool = False
    catalog: bool = False
    menu: bool = False
    news: bool = False
    qr: bool = False
    location: bool = False
    presence: bool = False
    company: bool = False
    projects: bool = False
    time: bool = False
    tasks: bool = False
    notifications: bool = False
    communication: bool = False
    home_chat: bool = False
    home_register: bool = False
    home_login: bool = False
    chat_page: bool = False

    @property
    def wants_auth(self) -> bool:
        """Registration implies a login page too."""
        return self.login or self.register

    @property
    def requests_auth(self) -> bool:
        return self.login or self.register or self.password_reset

    @property
    def wants_company_suite(self) -> bool:
        return self.company or self.projects or self.time or self.tasks or self.communication


def classify(prompt: str | None) -> Intents:
    normalized = (prompt or "").lower()
    return Intents(**{name: bool(pattern.search(normalized)) for name, pattern in _PATTERNS.items()})


def is_auth_page_name(name: str | None) -> bool:
    return bool(name) and bool(AUTH_PAGE_NAME.match(name.strip()))


def page_name_hint(page_name: str | None, prompt: str | None) -> str | None:
    """
    The page name to pass downstream, or None.

    A page merely *named* like a login page does not make an unrelated edit
    request an auth request, so its name is dropped unless the prompt asks
    for auth itself.
    """
    if not page_name or not page_name.strip():
        return None
    if is_auth_page_name(page_name) and not classify(prompt).requests_auth:
        return None
    return page_name.strip()
