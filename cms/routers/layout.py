"""Page shell: header, sidebar, notices and the unsaved-changes guard."""
from __future__ import annotations

import html
import json
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import quote

from fastapi.responses import HTMLResponse

from cms.core.csrf import CSRF_HEADER_NAME
from cms.services.sync_context import ERROR, Notice


@dataclass(frozen=True)
class MenuItem:
    id: str
    label: str
    path: str


MENU_ITEMS = (
    MenuItem("dashboard", "Dashboard", "/"),
    MenuItem("campaigns", "Campanhas", "/campaigns"),
    MenuItem("team", "Equipe", "/team"),
    MenuItem("testimonials", "Depoimentos", "/testimonials"),
    MenuItem("videos", "Vídeos", "/videos"),
)

MENU_PATHS = {item.path for item in MENU_ITEMS}

UNSAVED_PROMPT = "Você tem alterações não salvas. Deseja realmente sair desta página?"


def _sidebar(active: str) -> str:
    links = []
    for item in MENU_ITEMS:
        current = " aria-current='page'" if item.id == active else ""
        links.append(
            f"<li><a href='/nav?to={quote(item.path, safe='')}'{current}>{html.escape(item.label)}</a></li>"
        )
    return "".join(links)


def _notices(notices: Iterable[Notice]) -> str:
    out = []
    for n in notices:
        role = "alert" if n.variant == ERROR else "status"
        out.append(
            f"<mark role='{role}' style='display:block'><strong>{html.escape(n.title)}</strong> "
            f"{html.escape(n.description)}</mark>"
        )
    return "".join(out)


def _guard_script(csrf_token: str, unsaved: bool, watch_table: Optional[str]) -> str:
    config = json.dumps({"csrf": csrf_token, "unsaved": bool(unsaved), "watch": watch_table})
    return f"""
      <script>
        (function(){{
          var cfg = {config};
          var dirty = cfg.unsaved;
          function mark(value) {{
            if (dirty === value) return;
            dirty = value;
            fetch('/api/unsaved', {{method:'POST', headers:{{'Content-Type':'application/json', '{CSRF_HEADER_NAME}': cfg.csrf}},
              body: JSON.stringify({{value: value}})}});
          }}
          document.querySelectorAll('form[data-track-changes]').forEach(function(f){{
            f.addEventListener('input', function(){{ mark(true); }});
            f.addEventListener('submit', function(){{ dirty = false; }});
          }});
          window.addEventListener('beforeunload', function(e){{
            if (dirty) {{ e.preventDefault(); e.returnValue = ''; return ''; }}
          }});
          if (cfg.watch && window.WebSocket) {{
            var proto = location.protocol === 'https:' ? 'wss://' : 'ws://';
            var ws = new WebSocket(proto + location.host + '/ws/' + cfg.watch);
            ws.onmessage = function(){{ if (!dirty) location.reload(); }};
          }}
        }})();
      </script>
    """


def layout(
    title: str,
    body: str,
    *,
    csrf_token: str = "",
    active: str = "",
    email: str = "",
    notices: Iterable[Notice] = (),
    unsaved: bool = False,
    watch_table: Optional[str] = None,
    status_code: int = 200,
) -> HTMLResponse:
    return HTMLResponse(
        f"""
        <!doctype html><html lang='pt-br'><head>
        <meta charset='utf-8'><meta name='viewport' content='width=device-width,initial-scale=1'>
        <link rel="stylesheet" href="https://unpkg.com/@picocss/pico@2.0.6/css/pico.min.css">
        <title>{html.escape(title)}</title>
        <style>table {{font-size:14px}} img.thumb {{max-height:120px}}</style>
        </head><body>
        <main class="container">
          <nav><ul><li><strong>Painel Administrativo</strong></li></ul>
              <ul><li>{html.escape(email)}</li><li><a href='/logout'>Sair</a></li></ul>
          </nav>
          <div class='grid' style='grid-template-columns: 200px 1fr'>
            <aside><nav><ul>{_sidebar(active)}</ul></nav></aside>
            <section>
              {_notices(notices)}
              {body}
            </section>
          </div>
        </main>
        {_guard_script(csrf_token, unsaved, watch_table)}
        </body></html>
        """,
        status_code=status_code,
        headers={CSRF_HEADER_NAME: csrf_token} if csrf_token else None,
    )


def bare_page(title: str, body: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(
        f"""
        <!doctype html><html lang='pt-br'><head>
        <meta charset='utf-8'><meta name='viewport' content='width=device-width,initial-scale=1'>
        <link rel="stylesheet" href="https://unpkg.com/@picocss/pico@2.0.6/css/pico.min.css">
        <title>{html.escape(title)}</title></head>
        <body><main class="container">{body}</main></body></html>
        """,
        status_code=status_code,
    )


def admin_page(title: str, body: str, sess, state, *, active: str, watch_table: Optional[str] = None, status_code: int = 200) -> HTMLResponse:
    """layout() for a logged-in admin: drains the session's pending notices."""
    return layout(
        title,
        body,
        csrf_token=sess.csrf_token,
        active=active,
        email=sess.email,
        notices=state.sync.drain_notices(),
        unsaved=state.unsaved.pending,
        watch_table=watch_table,
        status_code=status_code,
    )
