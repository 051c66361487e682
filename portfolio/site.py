from __future__ import annotations

import logging
from typing import Any

import markdown
from flask import Blueprint, abort, redirect, render_template_string, session, url_for
from markupsafe import Markup

from .draft import AUTH_KEY, DraftError, PendingEdit
from .extensions import content_store, post_store
from .stores import ContentStoreError, dump_document

logger = logging.getLogger(__name__)

bp = Blueprint("site", __name__)

TAGLINE_KEYS = ("headerTaglineOne", "headerTaglineTwo", "headerTaglineThree", "headerTaglineFour")

BASE_STYLE = """
<style>
*{box-sizing:border-box}
body{margin:0;font-family:system-ui,-apple-system,Segoe UI,Roboto,sans-serif;background:#0b1220;color:#f3f4f6;line-height:1.5}
a{color:#22d3ee}
.container{max-width:1100px;margin:0 auto;padding:24px}
.preview-banner{position:fixed;top:0;left:0;right:0;z-index:50;background:#eab308;color:#000;padding:8px 0}
.preview-banner .container{display:flex;align-items:center;justify-content:space-between;padding:0 24px}
.preview-banner a{background:#000;color:#fff;padding:6px 12px;border-radius:8px;text-decoration:none}
.with-banner{padding-top:48px}
.tagline{font-size:48px;font-weight:800;margin:4px 0}
.socials{display:flex;gap:12px;flex-wrap:wrap;margin:16px 0}
.grid{display:grid;grid-template-columns:repeat(auto-fit,minmax(260px,1fr));gap:16px}
.card{background:#111827;border:1px solid rgba(148,163,184,.18);border-radius:12px;padding:16px}
.card img{width:100%;border-radius:8px}
.cursor-none{cursor:none}
textarea{width:100%;min-height:420px;font-family:ui-monospace,monospace;background:#0f172a;color:inherit;border:1px solid rgba(148,163,184,.3);border-radius:8px;padding:10px}
.btn{border:0;border-radius:8px;padding:8px 14px;font-weight:600;cursor:pointer;margin-right:8px}
</style>
"""

SITE_TEMPLATE = (
    """
<!doctype html>
<meta name="viewport" content="width=device-width, initial-scale=1.0" />
<title>{{ data.get('name', 'Portfolio') }}{% if preview %} - Preview{% endif %}</title>
"""
    + BASE_STYLE
    + """
<body class="{% if data.get('showCursor') %}cursor-none{% endif %}">
{% if preview %}
<div class="preview-banner" id="preview-banner">
  <div class="container">
    <strong>PREVIEW MODE - This is how your site will look</strong>
    <a href="{{ url_for('site.admin') }}">Back to Admin</a>
  </div>
</div>
{% endif %}
<main class="container{% if preview %} with-banner{% endif %}">
  <header>
    {% for line in taglines %}<h1 class="tagline">{{ line }}</h1>{% endfor %}
    <nav class="socials">
      {% for social in socials %}<a href="{{ social.get('link', '#') }}">{{ social.get('title', '') }}</a>{% endfor %}
    </nav>
  </header>

  <section id="work">
    <h2>Work.</h2>
    <div class="grid">
      {% for project in projects %}
      <article class="card project">
        {% if project.get('imageSrc') %}<img src="{{ project.get('imageSrc') }}" alt="{{ project.get('title', '') }}">{% endif %}
        <h3><a href="{{ project.get('url', '#') }}">{{ project.get('title', '') }}</a></h3>
        <p>{{ project.get('description', '') }}</p>
      </article>
      {% endfor %}
    </div>
  </section>

  <section id="services">
    <h2>Services.</h2>
    <div class="grid">
      {% for service in services %}
      <article class="card service">
        <h3>{{ service.get('title', '') }}</h3>
        <p>{{ service.get('description', '') }}</p>
      </article>
      {% endfor %}
    </div>
  </section>

  <section id="about">
    <h2>About.</h2>
    <p>{{ data.get('aboutpara', '') }}</p>
  </section>
  <footer><p>{{ data.get('name', '') }}</p></footer>
</main>
</body>
"""
)

ADMIN_TEMPLATE = (
    """
<!doctype html>
<meta name="viewport" content="width=device-width, initial-scale=1.0" />
<title>Admin</title>
"""
    + BASE_STYLE
    + """
<main class="container">
  <h1>Admin</h1>
  {% if not authenticated %}
  <form id="login-form">
    <p><label>Password: <input type="password" name="password" required></label></p>
    <button class="btn" type="submit">Log in</button>
  </form>
  {% else %}
  <p>Editing {{ 'your unpublished draft' if has_draft else 'the live content' }}.</p>
  <textarea id="document">{{ document_json }}</textarea>
  <p>
    <button class="btn" type="button" data-action="preview">Preview</button>
    <button class="btn" type="button" data-action="publish">Publish</button>
    <button class="btn" type="button" data-action="discard">Discard draft</button>
    <button class="btn" type="button" data-action="logout">Log out</button>
  </p>
  <p><label>Password for publishing: <input type="password" id="publish-password"></label></p>
  {% endif %}
  <p id="status"></p>
</main>
<script>
function call(url, method, body, headers){
  return fetch(url, {method: method, headers: Object.assign({'Content-Type':'application/json'}, headers || {}), body: body ? JSON.stringify(body) : undefined})
    .then(function(r){ return r.json().then(function(j){ return {ok: r.ok, body: j}; }); });
}
function status(msg){ document.getElementById('status').textContent = msg; }
var login = document.getElementById('login-form');
if(login){ login.addEventListener('submit', function(e){ e.preventDefault();
  call('{{ url_for("api.login") }}', 'POST', {password: login.password.value}).then(function(r){ if(r.ok){ location.reload(); } else { status(r.body.message); } });
}); }
document.querySelectorAll('[data-action]').forEach(function(btn){
  btn.addEventListener('click', function(){
    var action = btn.getAttribute('data-action'); var data;
    if(action === 'preview' || action === 'publish'){
      try { data = JSON.parse(document.getElementById('document').value); } catch(err){ status('Invalid JSON: ' + err.message); return; }
    }
    if(action === 'preview'){ call('{{ url_for("api.draft") }}', 'POST', {data: data}).then(function(r){ if(r.ok){ location.href = '{{ url_for("site.preview") }}'; } else { status(r.body.message); } }); }
    if(action === 'publish'){ call('{{ url_for("api.publish") }}', 'POST', {data: data}, {'x-admin-password': document.getElementById('publish-password').value}).then(function(r){ status(r.body.message); }); }
    if(action === 'discard'){ call('{{ url_for("api.draft") }}', 'DELETE').then(function(){ location.reload(); }); }
    if(action === 'logout'){ call('{{ url_for("api.logout") }}', 'POST').then(function(){ location.reload(); }); }
  });
});
</script>
"""
)

BLOG_TEMPLATE = (
    """
<!doctype html>
<title>{{ title }}</title>
"""
    + BASE_STYLE
    + """
<main class="container">
  {% if body is none %}
  <h1>Blog.</h1>
  {% for post in posts %}
  <article class="card">
    <h3><a href="{{ url_for('site.blog_post', slug=post.slug) }}">{{ post.get('title') or post.slug }}</a></h3>
    {% if post.get('date') %}<small>{{ post.get('date') }}</small>{% endif %}
    {% if post.get('tagline') %}<p>{{ post.get('tagline') }}</p>{% endif %}
  </article>
  {% else %}
  <p>No posts yet.</p>
  {% endfor %}
  {% else %}
  <p><a href="{{ url_for('site.blog') }}">&larr; Blog</a></p>
  <h1>{{ title }}</h1>
  {% if meta.get('date') %}<small>{{ meta.get('date') }}</small>{% endif %}
  {% if meta.get('image') %}<img src="{{ meta.get('image') }}" alt="">{% endif %}
  <article>{{ body }}</article>
  {% endif %}
</main>
"""
)


def _taglines(data: dict[str, Any]) -> list[str]:
    return [data[key] for key in TAGLINE_KEYS if data.get(key)]


def _entries(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    # Sections are published verbatim; render only the well-formed items.
    items = data.get(key)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def render_site(data: dict[str, Any], preview: bool = False) -> str:
    return render_template_string(
        SITE_TEMPLATE,
        data=data,
        taglines=_taglines(data),
        socials=_entries(data, "socials"),
        projects=_entries(data, "projects"),
        services=_entries(data, "services"),
        preview=preview,
    )


def _published_document() -> dict[str, Any]:
    try:
        return content_store().read()
    except ContentStoreError:
        logger.exception("Error reading portfolio document")
        abort(500)


@bp.get("/")
def index():
    return render_site(_published_document())


@bp.get("/preview")
def preview():
    if session.get(AUTH_KEY) is not True:
        return redirect(url_for("site.admin"))
    try:
        edit = PendingEdit.from_session(session)
    except DraftError:
        logger.warning("Error parsing preview data, showing the published document", exc_info=True)
        edit = PendingEdit(authenticated=True)
    data = edit.document if edit.document is not None else _published_document()
    return render_site(data, preview=True)


@bp.get("/admin")
def admin():
    try:
        edit = PendingEdit.from_session(session)
    except DraftError:
        logger.warning("Error parsing preview data in admin view", exc_info=True)
        edit = PendingEdit(authenticated=True)
    document = None
    if edit.authenticated:
        document = edit.document if edit.document is not None else _published_document()
    return render_template_string(
        ADMIN_TEMPLATE,
        authenticated=edit.authenticated,
        has_draft=edit.document is not None,
        document_json=dump_document(document) if document is not None else "",
    )


@bp.get("/blog")
def blog():
    return render_template_string(BLOG_TEMPLATE, title="Blog", posts=post_store().list(), body=None, meta={})


@bp.get("/blog/<slug>")
def blog_post(slug: str):
    post = post_store().get(slug)
    if post is None:
        abort(404)
    body = Markup(markdown.markdown(post.content, extensions=["fenced_code", "tables"], output_format="html"))
    return render_template_string(
        BLOG_TEMPLATE,
        title=post.metadata.get("title") or slug,
        posts=[],
        body=body,
        meta=post.metadata,
    )
