"""
AppSchmiede Kernel — Deterministic Page Generator

Rule-based synthesis of pages from a free-text prompt. Needs no network
and no configuration; it is what the LLM path falls back to and what the
multi-page endpoint always uses.

Two entry points:
  build_pages(prompt)                      — multi-page app scaffold
  build_fallback_page(prompt, page_name)   — one login or chat page

Multi-page assembly runs every builder in PAGE_BUILDERS order and keeps
the first page per name.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any

from engine.kernel.components import Clock, utc_now
from engine.kernel.intents import Intents, classify, page_name_hint
from engine.kernel.layout import (
    SINGLE_PAGE_HEIGHTS,
    SINGLE_PAGE_WIDTHS,
    Palette,
    StackEntry,
    bottom_of,
    make_node,
    page,
    pick_background,
    pick_palette,
    stack_nodes,
)
from engine.kernel.types import INPUT_TYPES, ROOT_ID, Node, PageTree, new_id, to_iso

logger = logging.getLogger(__name__)

LLM_DEFAULT_NAME = "KI-Layout"

HERO_IMAGE = "https://images.unsplash.com/photo-1525182008055-f88b95ff7980?auto=format&fit=crop&w=800&q=80"
NEWS_IMAGE = "https://placehold.co/600x360/0b0b0f/f1f5f9?text=News"

SUBTLE = {"fontSize": 15, "lineHeight": 1.5, "color": "#f9c2dc"}


@dataclass(frozen=True)
class BuildContext:
    """Everything a builder may look at."""

    prompt: str
    intents: Intents
    palette: Palette
    now: datetime

    @property
    def stamp(self) -> str:
        return to_iso(self.now)

    def ago(self, seconds: int) -> str:
        return to_iso(self.now - timedelta(seconds=seconds))


Builder = Callable[[BuildContext], list[PageTree]]


def _title(text: str, size: int = 26) -> StackEntry:
    return StackEntry("text", {"text": text}, {"fontSize": size, "fontWeight": 600})


def _heading(text: str, y: int = 40, size: int = 26) -> Node:
    return make_node("text", y=y, props={"text": text}, style={"fontSize": size, "fontWeight": 600})


def _nav_items(entries: list[tuple[str, str, str | None]]) -> list[dict[str, Any]]:
    items = []
    for label, target_page, icon in entries:
        item = {
            "id": new_id(),
            "label": label,
            "action": "navigate",
            "target": f"#{target_page.lower()}",
            "targetPage": target_page,
        }
        if icon:
            item["icon"] = icon
        items.append(item)
    return items


def _folder(name: str, *children: str) -> dict[str, Any]:
    return {"id": new_id(), "name": name, "children": [{"id": new_id(), "name": c, "children": []} for c in children]}


def _task(title: str, done: bool = False) -> dict[str, Any]:
    return {"id": new_id(), "title": title, "done": done}


# ---------------------------------------------------------------------------
# Home and defaults
# ---------------------------------------------------------------------------


def build_home_page(ctx: BuildContext) -> list[PageTree]:
    i = ctx.intents
    nav = [("Dashboard", "Start", "🏠")]
    if i.home_register:
        nav.append(("Registrieren", "Registrierung", "📝"))
    if i.home_login:
        nav.append(("Login", "Login", "🔐"))
    if i.home_chat:
        nav.append(("Chat", "Chat", "💬"))

    navbar = make_node("container", y=32, h=64, props={"component": "navbar", "navItems": _nav_items(nav)})

    def link(label: str, target_page: str) -> StackEntry:
        props = {"label": label, "action": "navigate", "target": target_page.lower(), "targetPage": target_page}
        return StackEntry("button", props, width=220)

    body = stack_nodes(
        [
            StackEntry("text", {"text": "Deine App, erstellt von KI"}, {"fontSize": 30, "fontWeight": 600}),
            StackEntry(
                "text",
                {
                    "text": "Erkunde Seiten, verwalte Benutzer und arbeite in Echtzeit zusammen – "
                    "alles aus einer Oberfläche."
                },
                {"fontSize": 17, "lineHeight": 1.5},
                height=96,
            ),
            link("Registrieren", "Registrierung") if i.home_register else None,
            link("Login", "Login") if i.home_login else None,
            StackEntry("button", {"label": "Zum Chat", "action": "navigate", "target": "chat", "targetPage": "Chat"}, width=220)
            if i.home_chat
            else None,
            StackEntry("image", {"src": HERO_IMAGE}, height=200),
        ],
        start_y=128,
    )
    return [page("Start", ctx.palette.background, [navbar, *body], "Übersicht")]


def build_default_pages(ctx: BuildContext) -> list[PageTree]:
    nodes = [
        _heading("Kennzahlen"),
        make_node("container", y=104, h=180, props={"component": "analytics"}),
        make_node("container", y=300, h=140, props={"component": "todo"}),
    ]
    return [page("Dashboard", ctx.palette.background, nodes, "Übersicht")]


# ---------------------------------------------------------------------------
# Company suite
# ---------------------------------------------------------------------------


def build_company_suite_pages(ctx: BuildContext) -> list[PageTree]:
    i = ctx.intents
    if not i.wants_company_suite:
        return []

    nav = [("Dashboard", "Unternehmen", None)]
    if i.time:
        nav.append(("Zeiten", "Zeiterfassung", "⏱️"))
    if i.tasks:
        nav.append(("Aufgaben", "Aufgaben", "✅"))
    if i.communication:
        nav.append(("Kommunikation", "Kommunikation", "💬"))
    if i.projects:
        nav.append(("Projekte", "Projekte", "📁"))
    nav_items = _nav_items(nav)

    def navbar() -> Node:
        return make_node(
            "container",
            y=32,
            h=64,
            props={"component": "navbar", "navItems": nav_items, "supportTarget": "support@unternehmen.app"},
        )

    def suite_page(name: str, entries: list[StackEntry | None], folder: str) -> PageTree:
        return page(name, ctx.palette.background, [navbar(), *stack_nodes(entries, start_y=124)], folder)

    pages = [
        suite_page(
            "Unternehmen",
            [
                _title("Unternehmensübersicht", 28),
                StackEntry(
                    "text",
                    {"text": "Aktuelle Projekte, Team-Updates und Benachrichtigungen auf einen Blick."},
                    {"fontSize": 16, "lineHeight": 1.5},
                    height=72,
                ),
                StackEntry(
                    "container",
                    {
                        "component": "time-tracking",
                        "timeTracking": {
                            "entries": [
                                {"id": new_id(), "label": "Projekt Alpha", "seconds": 0, "startedAt": ctx.ago(3600)},
                                {
                                    "id": new_id(),
                                    "label": "Projekt Beta",
                                    "seconds": 5400,
                                    "startedAt": ctx.ago(5400),
                                    "endedAt": ctx.stamp,
                                },
                            ]
                        },
                    },
                    height=180,
                )
                if i.time
                else None,
                StackEntry(
                    "container",
                    {
                        "component": "task-manager",
                        "tasks": [_task("Onboarding vorbereiten"), _task("Projektstatus prüfen", True)],
                    },
                    height=180,
                )
                if i.tasks
                else None,
                StackEntry(
                    "container",
                    {
                        "component": "todo",
                        "todoItems": [_task("HR-Update veröffentlichen"), _task("Budgetfreigabe prüfen")],
                    },
                    height=160,
                )
                if i.notifications
                else None,
            ],
            "Übersicht",
        )
    ]

    if i.time:
        pages.append(
            suite_page(
                "Zeiterfassung",
                [
                    _title("Zeiterfassung nach Projekt"),
                    StackEntry(
                        "container",
                        {
                            "component": "time-tracking",
                            "timeTracking": {
                                "entries": [
                                    {
                                        "id": new_id(),
                                        "label": "Projekt Alpha - UX Konzept",
                                        "seconds": 7200,
                                        "startedAt": ctx.ago(7200),
                                        "endedAt": ctx.stamp,
                                    },
                                    {
                                        "id": new_id(),
                                        "label": "Projekt Beta - API Entwicklung",
                                        "seconds": 0,
                                        "startedAt": ctx.ago(3600),
                                    },
                                ]
                            },
                        },
                        height=220,
                    ),
                    StackEntry(
                        "container",
                        {
                            "component": "folder-structure",
                            "folderTree": [_folder("Projekt Alpha", "Sprint 1"), _folder("Projekt Beta", "QA")],
                        },
                        height=200,
                    )
                    if i.projects
                    else None,
                    StackEntry(
                        "text",
                        {
                            "text": "Starte oder stoppe deine Zeit – jede Session landet automatisch "
                            "im passenden Projektordner."
                        },
                        {"fontSize": 14, "lineHeight": 1.4, "color": "#fbcfe8"},
                        height=60,
                    ),
                    StackEntry("button", {"label": "Start", "action": "time-tracking-start"}, width=140),
                    StackEntry("button", {"label": "Stop", "action": "time-tracking-stop"}, width=140),
                ],
                "Team",
            )
        )

    if i.tasks or i.notifications:
        pages.append(
            suite_page(
                "Aufgaben",
                [
                    _title("Aufgaben & Benachrichtigungen"),
                    StackEntry(
                        "container",
                        {
                            "component": "task-manager",
                            "tasks": [
                                _task("Projekt Kickoff planen"),
                                _task("Design-Review freigeben"),
                                _task("Sprintabschluss bestätigen", True),
                            ],
                        },
                        height=220,
                    )
                    if i.tasks
                    else None,
                    StackEntry(
                        "container",
                        {
                            "component": "todo",
                            "todoItems": [
                                _task("Benachrichtigung: Neue Aufgabe für Alex"),
                                _task("Reminder: Stundenzettel einreichen"),
                            ],
                        },
                        height=180,
                    )
                    if i.notifications
                    else None,
                    StackEntry(
                        "button",
                        {
                            "label": "Neue Aufgabe zuweisen",
                            "action": "support-ticket",
                            "supportTarget": "tasks@unternehmen.app",
                        },
                    ),
                ],
                "Team",
            )
        )

    if i.communication:
        pages.append(
            suite_page(
                "Kommunikation",
                [
                    _title("Teamkommunikation"),
                    StackEntry("container", {"component": "chat"}, height=240),
                    StackEntry("button", {"label": "Bild hochladen", "action": "upload-photo"}),
                    StackEntry(
                        "container",
                        {"component": "support", "supportChannel": "chat", "supportTarget": "support@unternehmen.app"},
                        height=160,
                    ),
                ],
                "Team",
            )
        )

    if i.projects:
        pages.append(
            suite_page(
                "Projekte",
                [
                    _title("Projektübersicht"),
                    StackEntry(
                        "text",
                        {
                            "text": "Ordnerstruktur mit direkter Verknüpfung zur Zeiterfassung – "
                            "jede Stunde landet im passenden Ordner."
                        },
                        {"fontSize": 15, "lineHeight": 1.4, "color": "#f9a8d4"},
                        height=72,
                    ),
                    StackEntry(
                        "container",
                        {
                            "component": "folder-structure",
                            "folderTree": [
                                _folder("Projekt Alpha", "Design", "Umsetzung"),
                                _folder("Projekt Beta", "Sprint 1", "Sprint 2"),
                            ],
                        },
                        height=240,
                    ),
                    StackEntry(
                        "container",
                        {
                            "component": "support",
                            "supportChannel": "ticket",
                            "supportTarget": "pm@unternehmen.app",
                            "supportTickets": [
                                {
                                    "id": new_id(),
                                    "subject": "Statusupdate Projekt Alpha",
                                    "message": "Bitte Marketing-Slider aktualisieren.",
                                    "createdAt": ctx.stamp,
                                    "channel": "ticket",
                                }
                            ],
                        },
                        height=180,
                    )
                    if i.notifications
                    else None,
                ],
                "Übersicht",
            )
        )

    return pages


# ---------------------------------------------------------------------------
# Auth suite
# ---------------------------------------------------------------------------


def build_auth_pages(ctx: BuildContext) -> list[PageTree]:
    i = ctx.intents
    bg = ctx.palette.background
    pages: list[PageTree] = []

    def go(label: str, target_page: str) -> StackEntry:
        return StackEntry(
            "button", {"label": label, "action": "navigate", "target": target_page.lower(), "targetPage": target_page}
        )

    if i.wants_auth:
        nodes = stack_nodes(
            [
                _title("Willkommen zurück!", 28),
                StackEntry("input", {"placeholder": "E-Mail-Adresse", "inputType": "email"}),
                StackEntry("input", {"placeholder": "Passwort", "inputType": "password"}),
                StackEntry("button", {"label": "Anmelden", "action": "login"}),
                go("Passwort vergessen", "Passwort"),
                go("Konto erstellen", "Registrierung"),
            ]
        )
        pages.append(page("Login", bg, nodes, "Authentifizierung"))

    if i.register:
        nodes = stack_nodes(
            [
                _title("Konto erstellen"),
                StackEntry("input", {"placeholder": "Vollständiger Name", "inputType": "text"}),
                StackEntry("input", {"placeholder": "E-Mail-Adresse", "inputType": "email"}),
                StackEntry("input", {"placeholder": "Passwort", "inputType": "password"}),
                StackEntry("input", {"placeholder": "Passwort bestätigen", "inputType": "password"}),
                go("Registrieren", "Login"),
            ]
        )
        pages.append(page("Registrierung", bg, nodes, "Authentifizierung"))

    if i.password_reset:
        nodes = stack_nodes(
            [
                _title("Passwort zurücksetzen"),
                StackEntry(
                    "text",
                    {
                        "text": "Gib deine E-Mail-Adresse ein und wir senden dir einen Link "
                        "zum Zurücksetzen deines Passworts."
                    },
                    {"fontSize": 16, "lineHeight": 1.45},
                    height=96,
                ),
                StackEntry("input", {"placeholder": "E-Mail-Adresse", "inputType": "email"}),
                StackEntry("button", {"label": "Link senden", "action": "email", "target": "support@example.com"}),
                go("Zurück zum Login", "Login"),
            ]
        )
        pages.append(page("Passwort", bg, nodes, "Authentifizierung"))

    return pages


# ---------------------------------------------------------------------------
# Single-purpose pages
# ---------------------------------------------------------------------------


def build_chat_pages(ctx: BuildContext) -> list[PageTree]:
    if not ctx.intents.chat:
        return []
    nodes = [
        _heading("Teamchat", size=28),
        make_node("container", y=96, h=260, props={"component": "chat"}),
        make_node("input", y=372, props={"placeholder": "Nachricht schreiben...", "inputType": "text"}),
        make_node("button", y=440, props={"label": "Senden", "action": "chat"}),
    ]
    return [page("Chat", ctx.palette.background, nodes, "Kommunikation")]


def build_support_pages(ctx: BuildContext) -> list[PageTree]:
    if not ctx.intents.support:
        return []
    nodes = [
        _heading("Support & Hilfe"),
        make_node(
            "text",
            y=92,
            h=72,
            props={"text": "Erstelle ein Ticket, lade Bilder hoch oder kontaktiere uns direkt."},
            style=SUBTLE,
        ),
        make_node(
            "container",
            y=176,
            h=220,
            props={"component": "support", "supportChannel": "ticket", "supportTarget": "support@example.com"},
        ),
        make_node("button", y=412, props={"label": "Foto hochladen", "action": "upload-photo"}),
        make_node(
            "button",
            y=476,
            props={"label": "E-Mail schreiben", "action": "email", "emailAddress": "support@example.com"},
        ),
        make_node("button", y=540, props={"label": "Anrufen", "action": "call", "phoneNumber": "+491234567890"}),
    ]
    return [page("Support", ctx.palette.background, nodes, "Kommunikation")]


def build_booking_pages(ctx: BuildContext) -> list[PageTree]:
    if not ctx.intents.booking:
        return []
    nodes = [
        _heading("Termine & Buchung"),
        make_node(
            "text",
            y=92,
            h=72,
            props={
                "text": "Wähle einen Termin und sende eine Anfrage. "
                "(Demo – im echten Projekt an dein Backend anbinden)"
            },
            style=SUBTLE,
        ),
        make_node("container", y=176, h=240, props={"component": "calendar", "calendarFocusDate": ctx.stamp}),
        make_node("input", y=432, props={"placeholder": "Name", "inputType": "text"}),
        make_node("input", y=496, props={"placeholder": "Telefon oder E-Mail", "inputType": "text"}),
        make_node("input", y=560, props={"placeholder": "Wunschdatum / Uhrzeit", "inputType": "text"}),
        make_node(
            "button",
            y=628,
            props={"label": "Anfrage senden", "action": "support-ticket", "supportTarget": "booking@example.com"},
        ),
    ]
    return [page("Termine", ctx.palette.background, nodes, "Service")]


def build_catalog_pages(ctx: BuildContext) -> list[PageTree]:
    if not ctx.intents.catalog:
        return []
    is_menu = ctx.intents.menu
    title = "Menü" if is_menu else "Katalog"
    if is_menu:
        columns = ["Gericht", "Info", "Preis"]
        rows = [["Pasta", "Hausgemacht", "12,90 €"], ["Salat", "Saisonal", "9,50 €"], ["Dessert", "Frisch", "6,20 €"]]
    else:
        columns = ["Name", "Kurzinfo", "Preis"]
        rows = [
            ["Leistung A", "Beschreibung", "ab 49 €"],
            ["Leistung B", "Beschreibung", "ab 79 €"],
            ["Produkt C", "Beschreibung", "19,90 €"],
        ]
    table = {
        "title": "Speisekarte" if is_menu else "Produkte & Leistungen",
        "columns": [{"id": new_id(), "label": c} for c in columns],
        "rows": [{"id": new_id(), "values": r} for r in rows],
    }
    nodes = [
        _heading(title),
        make_node(
            "text",
            y=92,
            h=64,
            props={"text": "Pflege hier deine Angebote. Tabelle ist editierbar im Eigenschaften-Panel."},
            style=SUBTLE,
        ),
        make_node("container", y=168, h=320, props={"component": "table", "tableConfig": table}),
        make_node(
            "button",
            y=504,
            props={
                "label": "Reservierung" if is_menu else "Anfrage",
                "action": "support-ticket",
                "supportTarget": "sales@example.com",
            },
        ),
    ]
    return [page(title, ctx.palette.background, nodes, "Angebot")]


def build_news_pages(ctx: BuildContext) -> list[PageTree]:
    if not ctx.intents.news:
        return []
    feed = {
        "title": "Aktuelle News",
        "items": [
            {
                "id": new_id(),
                "title": "Neues Update",
                "body": "Beispieltext – ändere Titel, Text und Bild im Eigenschaften-Panel.",
                "imageUrl": NEWS_IMAGE,
                "date": ctx.stamp,
            }
        ],
    }
    nodes = [
        _heading("News"),
        make_node("text", y=92, h=72, props={"text": "Veröffentliche Updates mit Text, Datum und Bild."}, style=SUBTLE),
        make_node("container", y=176, h=560, props={"component": "news", "newsFeed": feed}),
    ]
    return [page("News", ctx.palette.background, nodes, "Aktuell")]


def build_qr_pages(ctx: BuildContext) -> list[PageTree]:
    if not ctx.intents.qr:
        return []
    nodes = [
        _heading("QR-Code"),
        make_node(
            "text", y=92, h=64, props={"text": "Scanne den Code, um die App/Seite schnell zu öffnen."}, style=SUBTLE
        ),
        make_node("container", y=168, h=240, props={"component": "qr-code", "qrUrl": "https://appschmiede.dev"}),
    ]
    return [page("QR", ctx.palette.background, nodes, "Tools")]


def build_location_pages(ctx: BuildContext) -> list[PageTree]:
    if not ctx.intents.location:
        return []
    chips = ["Design Team · Berlin", "Support · München", "Projektleitung · Hamburg"]
    nodes = [
        _heading("Standort & Online-Status"),
        make_node(
            "text",
            y=92,
            h=64,
            props={"text": "Live-Map mit allen Teams. Sichtbar ist, wer online ist und wo gerade gearbeitet wird."},
            style=SUBTLE,
        ),
        make_node(
            "container",
            y=168,
            h=220,
            props={
                "component": "map",
                "mapLocation": "Team-Standorte",
                "mapPins": [{"id": new_id(), "label": c} for c in chips],
            },
        ),
        make_node(
            "container",
            y=404,
            h=140,
            props={"component": "folder-structure", "folderTree": [_folder(c) for c in chips]},
        ),
    ]
    for index, label in enumerate(chips):
        nodes.append(
            make_node(
                "text",
                y=560 + index * 44,
                h=36,
                props={"text": f"{label} • online"},
                style={
                    "fontSize": 14,
                    "fontWeight": 500,
                    "background": "rgba(255, 255, 255, 0.08)",
                    "padding": "8px 12px",
                    "borderRadius": "999px",
                },
            )
        )
    return [page("Standort", ctx.palette.background, nodes, "Kommunikation")]


def build_presence_pages(ctx: BuildContext) -> list[PageTree]:
    if not ctx.intents.presence:
        return []
    chips = ["Melanie • aktiv", "Jonas • in Meeting", "Alex • abwesend", "Priya • aktiv"]
    nodes = [_heading("Aktive Benutzer:innen")]
    for index, label in enumerate(chips):
        nodes.append(
            make_node(
                "text",
                y=108 + index * 56,
                h=48,
                props={"text": label},
                style={
                    "fontSize": 18,
                    "fontWeight": 500,
                    "background": "rgba(148, 163, 184, 0.15)",
                    "padding": "12px 16px",
                    "borderRadius": "12px",
                },
            )
        )
    nodes.append(make_node("container", y=330, h=120, props={"component": "time-tracking"}))
    return [page("Online", ctx.palette.background, nodes, "Kommunikation")]


# ---------------------------------------------------------------------------
# Multi-page assembly
# ---------------------------------------------------------------------------

PAGE_BUILDERS: list[Builder] = [
    build_home_page,
    build_default_pages,
    build_company_suite_pages,
    build_auth_pages,
    build_chat_pages,
    build_support_pages,
    build_booking_pages,
    build_catalog_pages,
    build_news_pages,
    build_qr_pages,
    build_location_pages,
    build_presence_pages,
]


def dedupe_pages(pages: list[PageTree]) -> list[PageTree]:
    """Keep the first page per name, preserving order."""
    seen: set[str] = set()
    result = []
    for p in pages:
        if p.name in seen:
            continue
        seen.add(p.name)
        result.append(p)
    return result


def build_pages(
    prompt: str | None,
    now: Clock = utc_now,
    builders: list[Builder] | None = None,
) -> list[PageTree]:
    """The multi-page scaffold for `prompt`. An empty prompt still yields pages."""
    prompt = (prompt or "").strip()
    ctx = BuildContext(prompt=prompt, intents=classify(prompt), palette=pick_palette(prompt), now=now())
    pages: list[PageTree] = []
    for builder in builders if builders is not None else PAGE_BUILDERS:
        pages.extend(builder(ctx))
    return dedupe_pages(pages)


# ---------------------------------------------------------------------------
# Single-page fallback
# ---------------------------------------------------------------------------


def _single_stack(entries: list[StackEntry], start_y: int, gap: int) -> list[Node]:
    return stack_nodes(entries, start_y=start_y, gap=gap, widths=SINGLE_PAGE_WIDTHS, heights=SINGLE_PAGE_HEIGHTS)


def build_login_page(name: str | None = None) -> PageTree:
    hero = _single_stack(
        [
            StackEntry("text", {"text": "Melde dich an"}, {"fontSize": 30, "fontWeight": 600}),
            StackEntry(
                "text",
                {"text": "Nutze deine Zugangsdaten, um dein Projekt weiterzuführen oder neue Ideen zu testen."},
                {"fontSize": 15, "lineHeight": 1.5, "color": "#cbd5f5"},
                height=72,
            ),
        ],
        start_y=96,
        gap=18,
    )
    form = _single_stack(
        [
            StackEntry("input", {"placeholder": "E-Mail-Adresse", "inputType": "email"}),
            StackEntry("input", {"placeholder": "Passwort", "inputType": "password"}),
            StackEntry("button", {"label": "Anmelden", "action": "login"}),
        ],
        start_y=bottom_of(hero, 96) + 32,
        gap=18,
    )
    return page((name or "").strip() or "Login", pick_background(), [*hero, *form])


def build_chat_page(headline: str | None = None) -> PageTree:
    headline = headline if headline and len(headline) > 3 else "Team Chat"
    hero = _single_stack(
        [
            StackEntry("text", {"text": headline}, {"fontSize": 30, "fontWeight": 700}),
            StackEntry(
                "text",
                {"text": "Nachrichten, Dateien und Support an einem Ort."},
                {"fontSize": 15, "lineHeight": 1.5, "color": "#cbd5f5"},
                height=70,
            ),
        ],
        start_y=86,
        gap=16,
    )
    chat_area = _single_stack(
        [
            StackEntry("container", {"component": "chat"}, height=360),
            StackEntry("input", {"placeholder": "Nachricht schreiben…", "inputType": "text"}),
            StackEntry("button", {"label": "Senden", "action": "chat"}),
        ],
        start_y=bottom_of(hero, 86) + 24,
        gap=14,
    )
    return page("Chat", pick_background("chat"), [*hero, *chat_area])


def build_fallback_page(prompt: str | None, page_name: str | None = None) -> PageTree:
    """Chat page when the prompt talks about chatting or support, else a login page."""
    prompt = (prompt or "").strip()
    hint = page_name_hint(page_name, prompt)
    if classify(prompt).chat_page:
        return build_chat_page(hint or prompt)
    return build_login_page(hint)


def safe_parse_page(raw: Any) -> PageTree | None:
    """
    Trust an LLM answer only if it is {"name"?, "tree": {...}}.
    Accepts a JSON string or an already decoded object. The root is
    normalized to the container with id "root" and malformed props are
    replaced by safe defaults (see sanitize_node).
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("LLM answer is not valid JSON")
            return None
    if not isinstance(raw, dict) or not isinstance(raw.get("tree"), dict):
        return None
    name = raw.get("name")
    tree = sanitize_node(Node.from_dict({**raw["tree"], "id": ROOT_ID, "type": "container"}))
    return PageTree(
        name=name.strip() if isinstance(name, str) and name.strip() else LLM_DEFAULT_NAME,
        tree=tree,
        folder=raw.get("folder") if isinstance(raw.get("folder"), str) else None,
    )


# Props the renderer reads as strings, per node type.
_STRING_PROPS: dict[str, tuple[str, ...]] = {
    "text": ("text",),
    "button": ("label", "action"),
    "image": ("src",),
    "container": ("component",),
}


def sanitize_node(node: Node) -> Node:
    """
    Drop or repair prop values the renderer cannot use, recursively.

    Non-string values for string props are dropped so the renderer falls
    back to its defaults; an unknown inputType becomes "text". Node types
    and ids are left alone: those are structural and stay the validator's
    call.
    """
    string_keys = _STRING_PROPS.get(node.type, ())
    props = {key: value for key, value in node.props.items() if key not in string_keys or isinstance(value, str)}
    if node.type == "input" and props.get("inputType") is not None and props["inputType"] not in INPUT_TYPES:
        logger.info("Unknown inputType %r on node %s, using text", props["inputType"], node.id)
        props["inputType"] = "text"
    children = [sanitize_node(child) for child in node.children] if node.children is not None else None
    return replace(node, props=props, children=children)
