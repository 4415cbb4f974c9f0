"""
AppSchmiede Kernel — Renderer

Pure function: (page, options?) → HTML string.
No IO. Same page and same clock → same output.

Dispatches on node.type, and for containers on props.component through a
table of component renderers. Widget markup is written as mustache
templates rendered with chevron (HTML-escaped by default). Buttons carry
their interpreted action as data-* attributes so the preview script only
has to perform the effect.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from datetime import datetime
from html import escape as _html_escape
from typing import Any
from urllib.parse import quote

import chevron

from engine.kernel.actions import action_params, interpret_action
from engine.kernel.components import (
    AudioRecorderConfig,
    CalendarConfig,
    FolderStructureConfig,
    MapConfig,
    NavbarConfig,
    NewsConfig,
    QrConfig,
    SimpleComponent,
    SupportConfig,
    TableConfig,
    TaskListConfig,
    TimeTrackingConfig,
    VideoConfig,
    parse_component,
    utc_now,
)
from engine.kernel.games import Snake, TicTacToe
from engine.kernel.types import (
    DEFAULT_PAGE_BACKGROUND,
    ActionEffect,
    FolderNode,
    Node,
    PageTree,
    RenderOptions,
    parse_iso,
)
from engine.kernel.widgets import WEEKDAY_LABELS, FolderTreeEditor, TimeTracker, format_duration, month_matrix

IMAGE_PLACEHOLDER = "https://placehold.co/320x180/1e293b/fff?text=Bild"
CONTAINER_FALLBACK = "linear-gradient(135deg,#0b0b0f,#111827)"
DEFAULT_BASE_COLOR = "#020617"

MONTHS = (
    "Januar",
    "Februar",
    "März",
    "April",
    "Mai",
    "Juni",
    "Juli",
    "August",
    "September",
    "Oktober",
    "November",
    "Dezember",
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_page(page: PageTree, options: RenderOptions | None = None) -> str:
    """
    Render a complete HTML document: a phone frame holding the root's
    children at their absolute positions.
    """
    opts = options or RenderOptions()
    root = page.tree
    bg = root.props.get("bg")
    background = bg.strip() if isinstance(bg, str) and bg.strip() else DEFAULT_PAGE_BACKGROUND
    title = escape(opts.title or page.name)

    page_json = json.dumps(page.to_dict(), sort_keys=True, ensure_ascii=False).replace("</", "<\\/")

    parts: list[str] = []
    parts.append("<!DOCTYPE html>")
    parts.append('<html lang="de">')
    parts.append("<head>")
    parts.append('  <meta charset="utf-8">')
    parts.append('  <meta name="viewport" content="width=device-width, initial-scale=1">')
    parts.append(f"  <title>{title}</title>")
    parts.append('  <script type="application/appschmiede+json" id="appschmiede-page">')
    parts.append(f"  {page_json}")
    parts.append("  </script>")
    parts.append("  <style>")
    parts.append(BASE_CSS)
    parts.append("  </style>")
    parts.append("</head>")
    parts.append("<body>")
    frame_style = style_attr(
        {"width": f"{opts.frame_width}px", "height": f"{opts.frame_height}px", "background": background}
    )
    parts.append(f'  <div class="as-frame" style="{frame_style}">')
    for child in root.children or []:
        parts.append(_positioned(child, opts))
    parts.append("  </div>")
    parts.append("</body>")
    parts.append("</html>")
    return "\n".join(parts)


def render_node(node: Node, options: RenderOptions | None = None) -> str:
    """HTML fragment for one node's content (without its positioning box)."""
    opts = options or RenderOptions()
    renderer = _NODE_RENDERERS.get(node.type)
    if renderer is None:
        return ""
    return renderer(node, opts)


def container_background_style(props: dict[str, Any] | None, fallback: str | None = None) -> dict[str, str]:
    """
    CSS for a container's background.

    Precedence: background image, then props.bg, then containerBgColor,
    then `fallback`. Image position is clamped to 0-100 %, size to 20-300 %.
    """
    style: dict[str, str] = {}
    if not props:
        if fallback:
            style["background"] = fallback
        return style

    custom = _clean_str(props.get("bg"))
    color = _clean_str(props.get("containerBgColor"))
    image = _clean_str(props.get("containerBgImageUrl"))

    if image:
        pos_x = _clamped(props.get("containerBgImagePosX"), 0, 100, 50)
        pos_y = _clamped(props.get("containerBgImagePosY"), 0, 100, 50)
        size = _clamped(props.get("containerBgImageSize"), 20, 300, 100)
        style["background-color"] = color or DEFAULT_BASE_COLOR
        style["background-image"] = f"url({image})"
        style["background-size"] = f"{round(size)}%"
        style["background-position"] = f"{round(pos_x)}% {round(pos_y)}%"
        style["background-repeat"] = "no-repeat"
        return style

    if custom:
        style["background"] = custom
    elif color:
        style["background"] = color
    elif fallback:
        style["background"] = fallback
    return style


# ---------------------------------------------------------------------------
# CSS
# ---------------------------------------------------------------------------

BASE_CSS = """
*, *::before, *::after { box-sizing: border-box; margin: 0; padding: 0; }
body {
  font-family: system-ui, -apple-system, "Segoe UI", sans-serif;
  background: #020617;
  color: #f8fafc;
  display: flex;
  justify-content: center;
  padding: 24px 0;
}
.as-frame { position: relative; overflow: hidden; border-radius: 36px; }
.as-node { position: absolute; overflow: hidden; }
.as-fill { width: 100%; height: 100%; }
.as-text { white-space: pre-wrap; }
.as-button {
  width: 100%; height: 100%; border: 0; border-radius: 12px;
  background: #4f46e5; color: #fff; font-weight: 600; cursor: pointer;
}
.as-input {
  width: 100%; height: 100%; border-radius: 10px; padding: 0 12px;
  border: 1px solid rgba(255,255,255,0.15); background: rgba(15,23,42,0.8); color: #fff;
}
.as-widget {
  width: 100%; height: 100%; overflow: auto; padding: 12px; border-radius: 14px;
  border: 1px solid rgba(255,255,255,0.1); background: rgba(11,15,27,0.9); font-size: 13px;
}
.as-widget-title { font-size: 11px; text-transform: uppercase; letter-spacing: 0.1em; opacity: 0.7; }
.as-chip {
  border-radius: 999px; padding: 4px 12px; border: 1px solid rgba(255,255,255,0.1);
  background: rgba(255,255,255,0.05); color: inherit;
}
.as-empty { opacity: 0.5; font-style: italic; }
.as-calendar { display: grid; grid-template-columns: repeat(7, 1fr); gap: 2px; text-align: center; }
"""


def escape(text: Any) -> str:
    """HTML-escape user content."""
    return _html_escape(str(text), quote=True)


_UNITLESS = {"fontWeight", "lineHeight", "opacity", "zIndex", "flex"}
_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def css_declarations(style: dict[str, Any]) -> dict[str, str]:
    """camelCase style hints → CSS declarations; bare numbers become px."""
    result: dict[str, str] = {}
    for key, value in style.items():
        if value is None or isinstance(value, bool | dict | list):
            continue
        prop = _CAMEL_RE.sub("-", key).lower()
        if isinstance(value, int | float) and key not in _UNITLESS:
            result[prop] = f"{value}px"
        else:
            result[prop] = str(value)
    return result


def style_attr(declarations: dict[str, str]) -> str:
    return escape(";".join(f"{k}:{v}" for k, v in declarations.items()))


# ---------------------------------------------------------------------------
# Node types
# ---------------------------------------------------------------------------


def _positioned(node: Node, opts: RenderOptions) -> str:
    box = style_attr(
        {
            "left": f"{node.x if node.x is not None else 0}px",
            "top": f"{node.y if node.y is not None else 0}px",
            "width": f"{node.w if node.w is not None else 120}px",
            "height": f"{node.h if node.h is not None else 40}px",
        }
    )
    return (
        f'<div class="as-node" data-node-id="{escape(node.id)}" data-type="{escape(node.type)}" style="{box}">'
        f"{render_node(node, opts)}</div>"
    )


def _render_text(node: Node, opts: RenderOptions) -> str:
    declarations = {"color": "#fff", "font-size": "16px", "font-weight": "400"}
    if isinstance(node.props.get("color"), str):
        declarations["color"] = node.props["color"]
    if isinstance(node.props.get("size"), int | float):
        declarations["font-size"] = f"{node.props['size']}px"
    if isinstance(node.props.get("align"), str):
        declarations["text-align"] = node.props["align"]
    declarations.update(css_declarations(node.style))
    text = node.props.get("text")
    return f'<div class="as-fill as-text" style="{style_attr(declarations)}">{escape(text if text is not None else "Text")}</div>'


def _effect_attrs(effect: ActionEffect) -> str:
    attrs = [f'data-effect="{escape(effect.kind)}"']
    if effect.action:
        attrs.append(f'data-action="{escape(effect.action)}"')
    if effect.href:
        attrs.append(f'data-href="{escape(effect.href)}"')
    if effect.message:
        attrs.append(f'data-message="{escape(effect.message)}"')
    return " ".join(attrs)


def _render_button(node: Node, opts: RenderOptions) -> str:
    effect = interpret_action(node.props.get("action"), action_params(node.props))
    label = node.props.get("label")
    icon = node.props.get("icon")
    icon_html = f"<span>{escape(icon)}</span> " if icon else ""
    style = style_attr(css_declarations(node.style))
    return (
        f'<button type="button" class="as-button" style="{style}" {_effect_attrs(effect)}>'
        f"{icon_html}{escape(label if label is not None else 'Button')}</button>"
    )


def _render_image(node: Node, opts: RenderOptions) -> str:
    src = node.props.get("src") or IMAGE_PLACEHOLDER
    return f'<img class="as-fill" src="{escape(src)}" alt="" style="object-fit:cover">'


def _render_input(node: Node, opts: RenderOptions) -> str:
    input_type = node.props.get("inputType") or "text"
    if input_type == "checkbox":
        label = node.props.get("label") or node.props.get("placeholder") or "Checkbox"
        return f'<label class="as-fill"><input type="checkbox"> {escape(label)}</label>'
    placeholder = node.props.get("placeholder")
    return (
        f'<input class="as-input" type="{escape(input_type)}" '
        f'placeholder="{escape(placeholder if placeholder is not None else "Eingabe")}">'
    )


def _render_container(node: Node, opts: RenderOptions) -> str:
    config = parse_component(node.props, _clock(opts), node.id)
    if config is not None:
        renderer = _COMPONENT_RENDERERS.get(config.kind)
        if renderer is not None:
            return renderer(config, node, opts)
    style = style_attr(container_background_style(node.props, CONTAINER_FALLBACK))
    inner = "".join(_positioned(child, opts) for child in node.children or [])
    return f'<div class="as-fill" style="{style};position:relative">{inner}</div>'


_NODE_RENDERERS: dict[str, Callable[[Node, RenderOptions], str]] = {
    "text": _render_text,
    "button": _render_button,
    "image": _render_image,
    "input": _render_input,
    "container": _render_container,
}


# ---------------------------------------------------------------------------
# Component templates
# ---------------------------------------------------------------------------

NAVBAR_TEMPLATE = """<nav class="as-widget" data-component="navbar">
<div class="as-widget-title">Navigation</div>
<div>{{#items}}<button type="button" class="as-chip" data-effect="{{effect}}" data-action="{{action}}"\
{{#href}} data-href="{{href}}"{{/href}}>{{#icon}}{{icon}} {{/icon}}{{label}}</button>{{/items}}\
{{^items}}<span class="as-empty">Keine Links hinterlegt</span>{{/items}}</div>
</nav>"""

TIME_TRACKING_TEMPLATE = """<div class="as-widget" data-component="time-tracking">
<div class="as-widget-title">Zeiterfassung</div>
<div class="as-timer" data-running="{{running}}">{{elapsed}}</div>
<div>
<button type="button" class="as-chip" data-widget-action="start">Start</button>
<button type="button" class="as-chip" data-widget-action="stop"{{^running}} disabled{{/running}}>Stop</button>
<button type="button" class="as-chip" data-widget-action="reset">Reset</button>
</div>
<ul>{{#entries}}<li data-id="{{id}}"><strong>{{label}}</strong> {{duration}} – {{status}}</li>{{/entries}}</ul>
{{^entries}}<div class="as-empty">Noch keine Einträge – klicke auf Start.</div>{{/entries}}
</div>"""

FOLDER_TEMPLATE = """<div class="as-widget" data-component="folder-structure">
<div class="as-widget-title">Ordnerstruktur</div>
<button type="button" class="as-chip" data-widget-action="add-folder">+ Root-Ordner</button>
{{#has_folders}}<ul>{{{folders_html}}}</ul>{{/has_folders}}\
{{^has_folders}}<div class="as-empty">Noch keine Ordner.</div>{{/has_folders}}
</div>"""

FOLDER_ITEM_TEMPLATE = """<li data-id="{{id}}" data-expanded="{{expanded}}"><span>{{icon}} {{name}}</span> \
<button type="button" class="as-chip" data-widget-action="add-folder" data-parent-id="{{id}}">+ Ordner</button>\
{{#show_children}}<ul>{{{children_html}}}</ul>{{/show_children}}</li>"""

TASKS_TEMPLATE = """<div class="as-widget" data-component="{{kind}}">
<div class="as-widget-title">{{title}}</div>
<ul>{{#tasks}}<li data-id="{{id}}"><label><input type="checkbox" data-widget-action="toggle"\
{{#done}} checked{{/done}}> {{title}}</label></li>{{/tasks}}</ul>
</div>"""

SUPPORT_TEMPLATE = """<div class="as-widget" data-component="support">
<div class="as-widget-title">Support · {{channel}}</div>
<div>Tickets gehen an {{target}}</div>
<button type="button" class="as-chip" data-widget-action="create-ticket">Ticket erstellen</button>
<ul>{{#tickets}}<li data-id="{{id}}"><strong>{{subject}}</strong><div>{{message}}</div></li>{{/tickets}}</ul>
{{^tickets}}<div class="as-empty">Noch keine Tickets.</div>{{/tickets}}
</div>"""

CALENDAR_TEMPLATE = """<div class="as-widget" data-component="calendar">
<div>
<button type="button" class="as-chip" data-widget-action="go-offset" data-offset="-1">‹</button>
<span class="as-widget-title">{{month}} {{year}}</span>
<button type="button" class="as-chip" data-widget-action="go-offset" data-offset="1">›</button>
</div>
<div class="as-calendar">{{#weekdays}}<div class="as-widget-title">{{.}}</div>{{/weekdays}}\
{{#weeks}}{{#days}}<div{{#focus}} class="as-chip"{{/focus}}>{{day}}</div>{{/days}}{{/weeks}}</div>
</div>"""

AUDIO_TEMPLATE = """<div class="as-widget" data-component="audio-recorder">
<div class="as-widget-title">Audio-Notizen</div>
<button type="button" class="as-chip" data-effect="record-audio">Aufnahme</button>
<button type="button" class="as-chip" disabled>Stop</button>
<ul>{{#notes}}<li data-id="{{id}}"><strong>{{label}}</strong> \
<button type="button" class="as-chip" data-widget-action="delete-note">Löschen</button>\
<audio controls><source src="{{url}}" type="audio/webm"></audio></li>{{/notes}}</ul>
{{^notes}}<div class="as-empty">Noch keine Aufnahmen.</div>{{/notes}}
</div>"""

MAP_TEMPLATE = """<div class="as-widget" data-component="map">
<iframe title="Karte für {{location}}" src="{{src}}" loading="lazy" class="as-fill" allowfullscreen></iframe>
{{#pins}}<span class="as-chip">📍 {{.}}</span>{{/pins}}
</div>"""

VIDEO_TEMPLATE = """<div class="as-widget" data-component="video-player">
{{#youtube_id}}<iframe title="YouTube Player" class="as-fill" src="https://www.youtube.com/embed/{{youtube_id}}" \
allowfullscreen></iframe>{{/youtube_id}}\
{{^youtube_id}}{{#url}}<video controls class="as-fill" src="{{url}}"></video>{{/url}}\
{{^url}}<div class="as-empty">Kein Video-Link hinterlegt.</div>{{/url}}{{/youtube_id}}
</div>"""

TABLE_TEMPLATE = """<div class="as-widget" data-component="table">
<div class="as-widget-title">{{title}}</div>
<table>
{{#has_columns}}<tr>{{#columns}}<th>{{.}}</th>{{/columns}}</tr>{{/has_columns}}
{{#rows}}<tr>{{#cells}}<td>{{.}}</td>{{/cells}}</tr>{{/rows}}
</table>
</div>"""

NEWS_TEMPLATE = """<div class="as-widget" data-component="news">
<div class="as-widget-title">{{title}}</div>
{{#items}}<article data-id="{{id}}">{{#image_url}}<img src="{{image_url}}" alt="" style="width:100%">{{/image_url}}\
<h3>{{title}}</h3>{{#date}}<time>{{date}}</time>{{/date}}<p>{{body}}</p></article>{{/items}}
{{^items}}<div class="as-empty">Noch keine News.</div>{{/items}}
</div>"""

SIMPLE_TEMPLATE = """<div class="as-widget" data-component="{{kind}}"><div class="as-widget-title">{{title}}</div>\
{{#body}}<div>{{body}}</div>{{/body}}</div>"""

TICTACTOE_TEMPLATE = """<div class="as-widget" data-component="game-tictactoe">
<div class="as-calendar" style="grid-template-columns:repeat(3,1fr)">\
{{#cells}}<button type="button" class="as-chip" data-cell="{{index}}">{{mark}}</button>{{/cells}}</div>
<div>{{status}}</div>
</div>"""

SIMPLE_TEXT: dict[str, tuple[str, str]] = {
    "chat": ("Chat", "💬 Chatfenster (Demo)"),
    "ai-chat": ("KI-Chat", "🤖 Stelle eine Frage und erhalte eine Demo-Antwort."),
    "analytics": ("Analytics", "📈 Besucher, Umsatz und Conversion auf einen Blick."),
    "avatar-creator": ("Avatar", "Avatar Creator (Demo)"),
    "game-dice": ("Würfel", "🎲 Würfeln"),
}

DEMO_TABLE = TableConfig(
    title="Team",
    columns=("Name", "Bereich", "Status"),
    rows=(("Alex", "Design", "✅ Online"), ("Sam", "Engineering", "🟡 beschäftigt")),
)


def _render_navbar(config: NavbarConfig, node: Node, opts: RenderOptions) -> str:
    items = []
    for item in config.items:
        params = {"target": item.target or item.url, "targetPage": item.target_page, "url": item.url}
        if config.support_target:
            params["supportTarget"] = config.support_target
        effect = interpret_action(item.action, {k: v for k, v in params.items() if v})
        items.append(
            {"label": item.label, "icon": item.icon, "action": item.action, "effect": effect.kind, "href": effect.href}
        )
    return chevron.render(NAVBAR_TEMPLATE, {"items": items})


def _render_time_tracking(config: TimeTrackingConfig, node: Node, opts: RenderOptions) -> str:
    now = _clock(opts)()
    tracker = TimeTracker(config.entries, lambda: now)
    running = tracker.running
    entries = [
        {
            "id": e.id,
            "label": e.label,
            "duration": format_duration(tracker.elapsed(now) if e is running else e.seconds),
            "status": "läuft" if e.running else "beendet",
        }
        for e in reversed(config.entries)
    ]
    context = {"running": running is not None, "elapsed": format_duration(tracker.elapsed(now)), "entries": entries}
    return chevron.render(TIME_TRACKING_TEMPLATE, context)


def _render_folders(config: FolderStructureConfig, node: Node, opts: RenderOptions) -> str:
    editor = FolderTreeEditor(config.folders)

    def item(folder: FolderNode) -> str:
        expanded = editor.is_expanded(folder.id)
        return chevron.render(
            FOLDER_ITEM_TEMPLATE,
            {
                "id": folder.id,
                "name": folder.name,
                "expanded": expanded,
                "icon": "📂" if expanded else "📁",
                "show_children": bool(folder.children) and expanded,
                "children_html": "".join(item(child) for child in folder.children),
            },
        )

    html = "".join(item(folder) for folder in config.folders)
    return chevron.render(FOLDER_TEMPLATE, {"has_folders": bool(config.folders), "folders_html": html})


def _render_tasks(config: TaskListConfig, node: Node, opts: RenderOptions) -> str:
    tasks = [{"id": t.id, "title": t.title, "done": t.done} for t in config.tasks]
    return chevron.render(TASKS_TEMPLATE, {"kind": config.kind, "title": config.title, "tasks": tasks})


def _render_support(config: SupportConfig, node: Node, opts: RenderOptions) -> str:
    tickets = [{"id": t.id, "subject": t.subject, "message": t.message} for t in reversed(config.tickets)]
    return chevron.render(SUPPORT_TEMPLATE, {"channel": config.channel, "target": config.target, "tickets": tickets})


def _render_calendar(config: CalendarConfig, node: Node, opts: RenderOptions) -> str:
    focus = config.focus
    weeks = [
        {"days": [{"day": day or "", "focus": day == focus.day} for day in week]} for week in month_matrix(focus)
    ]
    context = {
        "month": MONTHS[focus.month - 1],
        "year": focus.year,
        "weekdays": list(WEEKDAY_LABELS),
        "weeks": weeks,
    }
    return chevron.render(CALENDAR_TEMPLATE, context)


def _render_audio(config: AudioRecorderConfig, node: Node, opts: RenderOptions) -> str:
    notes = [{"id": n.id, "label": n.label, "url": n.url} for n in reversed(config.notes)]
    return chevron.render(AUDIO_TEMPLATE, {"notes": notes})


def _render_map(config: MapConfig, node: Node, opts: RenderOptions) -> str:
    src = f"https://maps.google.com/maps?q={quote(config.location)}&z=14&output=embed"
    return chevron.render(MAP_TEMPLATE, {"location": config.location, "src": src, "pins": list(config.pins)})


_YOUTUBE_RE = re.compile(r"youtu\.?be")
_YOUTUBE_ID_RE = (re.compile(r"[?&]v=([^&]+)"), re.compile(r"youtu\.be/([^?]+)"))


def youtube_id(url: str | None) -> str | None:
    if not url or not _YOUTUBE_RE.search(url):
        return None
    for pattern in _YOUTUBE_ID_RE:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return ""


def _render_video(config: VideoConfig, node: Node, opts: RenderOptions) -> str:
    return chevron.render(VIDEO_TEMPLATE, {"url": config.url, "youtube_id": youtube_id(config.url)})


def _render_qr(config: QrConfig, node: Node, opts: RenderOptions) -> str:
    body = f"📱 QR-Code für {config.url or 'diese Seite'}"
    return chevron.render(SIMPLE_TEMPLATE, {"kind": config.kind, "title": "QR-Code", "body": body})


def _render_table(config: TableConfig, node: Node, opts: RenderOptions) -> str:
    if not config.columns and not config.rows:
        config = DEMO_TABLE
    context = {
        "title": config.title,
        "has_columns": bool(config.columns),
        "columns": list(config.columns),
        "rows": [{"cells": list(row)} for row in config.rows],
    }
    return chevron.render(TABLE_TEMPLATE, context)


def _render_news(config: NewsConfig, node: Node, opts: RenderOptions) -> str:
    items = []
    for item in config.items:
        published = parse_iso(item.date)
        items.append(
            {
                "id": item.id,
                "title": item.title,
                "body": item.body,
                "image_url": item.image_url,
                "date": published.strftime("%d.%m.%Y") if published else None,
            }
        )
    return chevron.render(NEWS_TEMPLATE, {"title": config.title, "items": items})


def _render_simple(config: SimpleComponent, node: Node, opts: RenderOptions) -> str:
    if config.kind == "game-tictactoe":
        game = TicTacToe()
        cells = [{"index": i, "mark": mark or ""} for i, mark in enumerate(game.board)]
        return chevron.render(TICTACTOE_TEMPLATE, {"cells": cells, "status": game.status})
    if config.kind == "game-snake":
        body = f"🐍 Punkte: {Snake().score}"
        return chevron.render(SIMPLE_TEMPLATE, {"kind": config.kind, "title": "Snake", "body": body})
    title, body = SIMPLE_TEXT.get(config.kind, (config.kind, ""))
    return chevron.render(SIMPLE_TEMPLATE, {"kind": config.kind, "title": title, "body": body})


_COMPONENT_RENDERERS: dict[str, Callable[[Any, Node, RenderOptions], str]] = {
    "navbar": _render_navbar,
    "time-tracking": _render_time_tracking,
    "folder-structure": _render_folders,
    "task-manager": _render_tasks,
    "todo": _render_tasks,
    "support": _render_support,
    "calendar": _render_calendar,
    "audio-recorder": _render_audio,
    "map": _render_map,
    "video-player": _render_video,
    "qr-code": _render_qr,
    "table": _render_table,
    "news": _render_news,
    "chat": _render_simple,
    "ai-chat": _render_simple,
    "analytics": _render_simple,
    "avatar-creator": _render_simple,
    "game-dice": _render_simple,
    "game-tictactoe": _render_simple,
    "game-snake": _render_simple,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _clock(opts: RenderOptions) -> Callable[[], datetime]:
    if opts.now is not None:
        fixed = opts.now
        return lambda: fixed
    return utc_now


def _clean_str(value: Any) -> str | None:
    return value.strip() if isinstance(value, str) and value.strip() else None


def _clamped(value: Any, low: float, high: float, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return default
    return min(high, max(low, value))
