"""Preview, live site, admin and blog page tests."""

import json
import logging

import pytest

from portfolio import create_app
from portfolio.draft import AUTH_KEY, DRAFT_KEY
from portfolio.stores import ContentStore, ContentStoreError

pytestmark = pytest.mark.web


def _draft(sample):
    draft = dict(sample)
    draft.update(
        {
            "headerTaglineOne": "Draft tagline one",
            "headerTaglineTwo": "Draft tagline two",
            "headerTaglineThree": "Draft tagline three",
            "headerTaglineFour": "Draft tagline four",
            "projects": [{"id": "9", "title": "Draft Project", "description": "Draft desc", "imageSrc": "", "url": "#"}],
            "services": [{"title": "Draft Service", "description": "Draft service desc"}],
        }
    )
    return draft


def test_index_renders_stored_document(client, seeded):
    resp = client.get("/")
    assert resp.status_code == 200
    html = resp.get_data(as_text=True)
    assert "Tagline one" in html
    assert "Stored Project" in html
    assert "Stored Service" in html
    assert "PREVIEW MODE" not in html


def test_preview_without_auth_redirects(client, seeded):
    """No session flag: redirect to /admin before any content is rendered."""
    resp = client.get("/preview")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/admin")
    assert "Tagline one" not in resp.get_data(as_text=True)


def test_preview_ignores_draft_without_auth(client, seeded, sample):
    """A draft alone does not unlock the preview."""
    with client.session_transaction() as sess:
        sess[DRAFT_KEY] = json.dumps(_draft(sample))
    resp = client.get("/preview")
    assert resp.status_code == 302
    assert "Draft tagline one" not in resp.get_data(as_text=True)


def test_preview_renders_draft(client, seeded, sample):
    """Authenticated preview shows the draft, not the stored document."""
    with client.session_transaction() as sess:
        sess[AUTH_KEY] = True
        sess[DRAFT_KEY] = json.dumps(_draft(sample))
    resp = client.get("/preview")
    assert resp.status_code == 200
    html = resp.get_data(as_text=True)
    for text in ("Draft tagline one", "Draft tagline four", "Draft Project", "Draft Service"):
        assert text in html
    assert "Tagline one" not in html
    assert "Stored Project" not in html
    assert "PREVIEW MODE" in html
    assert 'href="/admin"' in html


def test_preview_falls_back_on_bad_draft(client, seeded, caplog):
    """Unparseable draft text is logged and the stored document is shown."""
    with client.session_transaction() as sess:
        sess[AUTH_KEY] = True
        sess[DRAFT_KEY] = "{not json"
    resp = client.get("/preview")
    assert resp.status_code == 200
    html = resp.get_data(as_text=True)
    assert "Stored Project" in html
    assert "PREVIEW MODE" in html
    assert any("preview data" in r.getMessage() for r in caplog.records)


def test_preview_without_draft_shows_stored(client, seeded):
    with client.session_transaction() as sess:
        sess[AUTH_KEY] = True
    html = client.get("/preview").get_data(as_text=True)
    assert "Stored Project" in html


def test_draft_flow_login_stage_preview(client, seeded, sample):
    """Log in, stage a draft through the API, then preview it."""
    assert client.post("/api/admin/draft", json={"data": _draft(sample)}).status_code == 401
    assert client.post("/api/admin/login", json={"password": "wrong"}).status_code == 401

    assert client.post("/api/admin/login", json={"password": "s3cret"}).status_code == 200
    assert client.post("/api/admin/draft", json={"data": _draft(sample)}).status_code == 200
    assert client.get("/api/admin/draft").get_json()["source"] == "draft"
    assert "Draft Project" in client.get("/preview").get_data(as_text=True)

    client.delete("/api/admin/draft")
    body = client.get("/api/admin/draft").get_json()
    assert body == {"source": "live", "data": sample}

    client.post("/api/admin/logout")
    assert client.get("/preview").status_code == 302


def test_admin_page_shows_login_form(client):
    html = client.get("/admin").get_data(as_text=True)
    assert 'id="login-form"' in html
    assert 'id="document"' not in html


def test_admin_page_shows_editor_when_logged_in(client, seeded):
    with client.session_transaction() as sess:
        sess[AUTH_KEY] = True
    html = client.get("/admin").get_data(as_text=True)
    assert 'id="document"' in html
    assert "Stored Project" in html


def test_publish_then_index_shows_new_document(client, seeded, sample):
    sample["headerTaglineOne"] = "Freshly published"
    client.post("/api/admin/publish", json={"data": sample}, headers={"x-admin-password": "s3cret"})
    assert "Freshly published" in client.get("/").get_data(as_text=True)


def test_blog_list_and_post(dev_client):
    dev_client.post(
        "/api/blog/edit",
        json={"slug": "first", "content": "Hello **world**", "variables": {"date": "2024-01-01", "title": "First"}},
    )
    dev_client.post(
        "/api/blog/edit",
        json={"slug": "second", "content": "Later", "variables": {"date": "2024-02-01", "title": "Second"}},
    )
    listing = dev_client.get("/blog").get_data(as_text=True)
    assert listing.index("Second") < listing.index("First")

    html = dev_client.get("/blog/first").get_data(as_text=True)
    assert "<strong>world</strong>" in html


def test_blog_post_missing_is_404(client):
    assert client.get("/blog/nope").status_code == 404


class UnreadableStore(ContentStore):
    name = "unreadable"

    def read(self):
        raise ContentStoreError("connection refused")

    def replace(self, document):
        raise ContentStoreError("connection refused")


def test_index_skips_malformed_sections(client):
    """Published sections that are not lists of objects render as empty."""
    document = {"projects": "abc", "services": ["x"], "socials": 7}
    resp = client.post("/api/admin/publish", json={"data": document}, headers={"x-admin-password": "s3cret"})
    assert resp.status_code == 200
    assert client.get("/").status_code == 200


def test_index_keeps_object_items_in_mixed_section(client):
    document = {"projects": [None, 3, {"title": "Kept Project"}], "services": {"title": "nope"}}
    client.post("/api/admin/publish", json={"data": document}, headers={"x-admin-password": "s3cret"})
    page = client.get("/")
    assert page.status_code == 200
    assert "Kept Project" in page.get_data(as_text=True)


def test_preview_skips_malformed_draft_sections(client):
    with client.session_transaction() as sess:
        sess[AUTH_KEY] = True
        sess[DRAFT_KEY] = json.dumps({"projects": ["x"], "socials": "y"})
    resp = client.get("/preview")
    assert resp.status_code == 200
    assert "PREVIEW MODE" in resp.get_data(as_text=True)


@pytest.mark.parametrize("path", ["/", "/preview", "/admin"])
def test_pages_log_store_read_failures(settings, caplog, path):
    """A failing content store gives a 500 page and the cause in the log."""
    app = create_app(settings, content_store=UnreadableStore())
    client = app.test_client()
    with client.session_transaction() as sess:
        sess[AUTH_KEY] = True
    with caplog.at_level(logging.ERROR, logger="portfolio.site"):
        resp = client.get(path)
    assert resp.status_code == 500
    assert "connection refused" not in resp.get_data(as_text=True)
    assert any(r.exc_info and "connection refused" in str(r.exc_info[1]) for r in caplog.records)
