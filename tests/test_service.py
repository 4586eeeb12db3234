"""Tests for the term mutation pipeline: validate, reconcile, store, audit."""

import pytest
from sqlalchemy.exc import OperationalError

from glossary.errors import StoreError, TermNotFound, ValidationError
from glossary.models import AuditLog, Tag, Term
from glossary.terms.query import SCOPE_TAGS, QuerySpec
from glossary.terms.service import create_term, delete_term, search_terms, update_term, validate_term
from glossary.terms.store import TermStore
from tests.conftest import _at, _make_term

# ── Validation ─────────────────────────────────────────────────────


def test_validate_returns_cleaned_fields():
    assert validate_term("  Closure ", " A function. ", ["python", " python", ""]) == (
        "Closure",
        "A function.",
        ["python"],
    )


def test_validate_reports_every_failing_field():
    with pytest.raises(ValidationError) as excinfo:
        validate_term("   ", "", [" "])
    assert set(excinfo.value.errors) == {"title", "content", "tags"}


def test_validate_enforces_length_limits(app):
    app.config["TERM_TITLE_MAX_LENGTH"] = 5
    try:
        with pytest.raises(ValidationError) as excinfo:
            validate_term("Too long", "ok", ["t"])
    finally:
        app.config["TERM_TITLE_MAX_LENGTH"] = 255
    assert list(excinfo.value.errors) == ["title"]


def test_validate_rejects_long_tag_names():
    with pytest.raises(ValidationError) as excinfo:
        validate_term("Title", "Body", ["x" * 101])
    assert "tags" in excinfo.value.errors


def test_validate_reports_non_text_title_and_content_as_type_errors():
    with pytest.raises(ValidationError) as excinfo:
        validate_term(123, ["not", "text"], ["t"])
    assert excinfo.value.errors == {
        "title": "Title must be text.",
        "content": "Definition must be text.",
    }


def test_validate_rejects_non_text_tags():
    with pytest.raises(ValidationError) as excinfo:
        validate_term("Title", "Body", {"name": "web"})
    assert "tags" in excinfo.value.errors


# ── Create ─────────────────────────────────────────────────────────


def test_create_term_persists_tags(db):
    term = create_term("Flask", "A micro framework.", ["web", "python"])

    stored = Term.query.filter_by(public_id=term.public_id).one()
    assert stored.tag_names == ["python", "web"]
    assert Tag.query.count() == 2


def test_create_term_reuses_existing_tags(db):
    _make_term(title="Django", tags=("web",))
    create_term("Flask", "A micro framework.", "web, python")

    assert Tag.query.count() == 2
    web = Tag.query.filter_by(name="web").one()
    assert {t.title for t in web.terms} == {"Django", "Flask"}


def test_create_term_keeps_case_variants_apart(db):
    create_term("Flask", "A micro framework.", ["Web", "web"])
    assert sorted(t.name for t in Tag.query.all()) == ["Web", "web"]


def test_failed_validation_creates_no_tags(db):
    with pytest.raises(ValidationError):
        create_term("", "A definition.", ["brand-new"])
    assert Tag.query.count() == 0
    assert Term.query.count() == 0


def test_create_term_writes_audit_entry(db):
    term = create_term("Flask", "A micro framework.", ["web"])
    entry = AuditLog.query.filter_by(action="term_created").one()
    assert entry.target_id == term.public_id
    assert "new tags: web" in entry.detail


def test_store_failure_propagates_and_rolls_back(db, monkeypatch):
    def _boom(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db.session, "commit", _boom)

    with pytest.raises(StoreError):
        create_term("Flask", "A micro framework.", ["web"])

    monkeypatch.undo()
    assert Term.query.count() == 0
    assert Tag.query.count() == 0
    assert AuditLog.query.count() == 0


def test_create_term_commits_term_and_audit_entry_once(db, monkeypatch):
    real_commit = db.session.commit
    calls = []

    def _commit_once():
        calls.append(1)
        if len(calls) > 1:
            raise OperationalError("INSERT", {}, Exception("database is locked"))
        real_commit()

    monkeypatch.setattr(db.session, "commit", _commit_once)

    term = create_term("Flask", "A micro framework.", ["web"])

    assert len(calls) == 1
    assert AuditLog.query.filter_by(target_id=term.public_id).count() == 1


def test_audit_failure_rolls_back_the_term(db, monkeypatch):
    def _boom(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("no such table: audit_logs"))

    monkeypatch.setattr("glossary.terms.service.log_event", _boom)

    with pytest.raises(StoreError):
        create_term("Flask", "A micro framework.", ["web"])

    monkeypatch.undo()
    assert Term.query.count() == 0
    assert Tag.query.count() == 0
    assert AuditLog.query.count() == 0


# ── Update ─────────────────────────────────────────────────────────


def test_update_replaces_fields_and_tag_set(db):
    term = _make_term(title="Flsk", content="typo", tags=("web", "python"))

    updated = update_term(term.public_id, "Flask", "A micro framework.", ["python", "framework"])

    assert updated.title == "Flask"
    assert updated.content == "A micro framework."
    assert updated.tag_names == ["framework", "python"]


def test_update_keeps_dropped_tags_in_vocabulary(db):
    term = _make_term(tags=("web", "python"))
    update_term(term.public_id, "Title", "Body", ["python"])
    assert Tag.query.filter_by(name="web").one() is not None


def test_update_unknown_term_raises_not_found(db):
    with pytest.raises(TermNotFound):
        update_term("missing", "Title", "Body", ["tag"])


def test_update_validation_failure_leaves_term_untouched(db):
    term = _make_term(title="Original", tags=("web",))
    with pytest.raises(ValidationError):
        update_term(term.public_id, "Changed", "", ["new-tag"])

    db.session.expire_all()
    stored = Term.query.filter_by(public_id=term.public_id).one()
    assert stored.title == "Original"
    assert Tag.query.filter_by(name="new-tag").first() is None


def test_update_store_failure_keeps_previous_state(db, monkeypatch):
    term = _make_term(title="Original", content="Body", tags=("web",))

    def _boom(*args, **kwargs):
        raise OperationalError("UPDATE", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db.session, "commit", _boom)

    with pytest.raises(StoreError):
        update_term(term.public_id, "Changed", "New body", ["python"])

    monkeypatch.undo()
    db.session.expire_all()
    stored = Term.query.filter_by(public_id=term.public_id).one()
    assert stored.title == "Original"
    assert stored.tag_names == ["web"]
    assert Tag.query.filter_by(name="python").first() is None
    assert AuditLog.query.count() == 0


# ── Delete ─────────────────────────────────────────────────────────


def test_delete_keeps_shared_tags_queryable(db):
    doomed = _make_term(title="Django", tags=("web", "python"), created_at=_at(1))
    _make_term(title="Nginx", tags=("web",), created_at=_at(2))

    delete_term(doomed.public_id)

    result = search_terms(QuerySpec(text="web", scope=SCOPE_TAGS))
    assert [t.title for t in result.page] == ["Nginx"]
    assert Tag.query.count() == 2


def test_delete_leaves_orphan_tags_with_zero_usage(db):
    doomed = _make_term(title="Django", tags=("web", "python"))
    _make_term(title="Nginx", tags=("web",))

    delete_term(doomed.public_id)

    usage = {tag.name: count for tag, count in TermStore().tag_usage()}
    assert usage == {"python": 0, "web": 1}


def test_delete_unknown_term_raises_not_found(db):
    with pytest.raises(TermNotFound):
        delete_term("missing")


def test_delete_writes_audit_entry(db):
    term = _make_term(title="Django")
    delete_term(term.public_id)
    entry = AuditLog.query.filter_by(action="term_deleted").one()
    assert entry.detail == "Deleted term: Django"


def test_delete_store_failure_keeps_the_term(db, monkeypatch):
    term = _make_term(title="Django", tags=("web",))

    def _boom(*args, **kwargs):
        raise OperationalError("DELETE", {}, Exception("database is locked"))

    monkeypatch.setattr(db.session, "commit", _boom)

    with pytest.raises(StoreError):
        delete_term(term.public_id)

    monkeypatch.undo()
    db.session.expire_all()
    assert Term.query.filter_by(public_id=term.public_id).one().title == "Django"
    assert AuditLog.query.count() == 0


# ── Search ─────────────────────────────────────────────────────────


def test_search_terms_uses_configured_page_size(app, db):
    for i in range(8):
        _make_term(title=f"Term {i}", created_at=_at(i))

    result = search_terms()

    assert result.total_matched == 8
    assert len(result.page) == app.config["TERMS_PER_PAGE"]
    assert result.page[0].title == "Term 7"
