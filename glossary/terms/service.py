from flask import current_app

from ..audit import log_event
from ..errors import ValidationError
from ..tags.reconciler import EMPTY_TAGS_MESSAGE, normalize_tag_names, reconcile
from .query import QuerySpec, query_terms
from .store import TermStore


def _check_text(value, label, max_length):
    """Return ``(cleaned, error)`` for a required free-text field."""
    if value is not None and not isinstance(value, str):
        return "", f"{label} must be text."
    cleaned = (value or "").strip()
    if not cleaned:
        return cleaned, f"{label} is required."
    if len(cleaned) > max_length:
        return cleaned, f"{label} must be at most {max_length} characters."
    return cleaned, None


def validate_term(title, content, tag_names):
    """Check every term field and return the cleaned ``(title, content, names)``.

    All failing fields are reported together in one :class:`ValidationError`.
    """
    config = current_app.config
    errors = {}

    title, error = _check_text(title, "Title", config.get("TERM_TITLE_MAX_LENGTH", 255))
    if error:
        errors["title"] = error

    content, error = _check_text(content, "Definition", config.get("TERM_CONTENT_MAX_LENGTH", 10000))
    if error:
        errors["content"] = error

    if tag_names is not None and not isinstance(tag_names, (str, list, tuple)):
        errors["tags"] = "Tags must be a list of names or a comma-separated string."
        names = []
    else:
        names = normalize_tag_names(tag_names)
        max_tag = config.get("TAG_NAME_MAX_LENGTH", 100)
        too_long = [n for n in names if len(n) > max_tag]
        if not names:
            errors["tags"] = EMPTY_TAGS_MESSAGE
        elif too_long:
            errors["tags"] = f"Tag names must be at most {max_tag} characters."

    if errors:
        raise ValidationError(errors)
    return title, content, names


def _minted_detail(vocabulary):
    if not vocabulary.minted:
        return ""
    return " (new tags: " + ", ".join(t.name for t in vocabulary.minted) + ")"


def _audit(action, verb, vocabulary=None):
    """Build a ``before_commit`` hook that records ``action`` in the term's transaction."""

    def record(term):
        detail = f"{verb} term: {term.title}"
        if vocabulary is not None:
            detail += _minted_detail(vocabulary)
        log_event(action, target_type="term", target_id=term.public_id, detail=detail)

    return record


def create_term(title, content, tag_names, store=None):
    """Validate, reconcile tags and persist a new term."""
    store = store or TermStore()
    title, content, names = validate_term(title, content, tag_names)

    vocabulary = store.vocabulary()
    tags = reconcile(vocabulary, names)
    return store.create(title, content, tags, before_commit=_audit("term_created", "Created", vocabulary))


def update_term(public_id, title, content, tag_names, store=None):
    """Replace a term's title, definition and full tag set."""
    store = store or TermStore()
    title, content, names = validate_term(title, content, tag_names)

    vocabulary = store.vocabulary()
    tags = reconcile(vocabulary, names)
    return store.update(public_id, title, content, tags, before_commit=_audit("term_updated", "Updated", vocabulary))


def delete_term(public_id, store=None):
    """Delete a term; its tags stay in the vocabulary."""
    store = store or TermStore()
    store.delete(public_id, before_commit=_audit("term_deleted", "Deleted"))


def search_terms(spec=None, store=None):
    """Run a query over the full stored collection."""
    store = store or TermStore()
    if spec is None:
        spec = QuerySpec(page_size=current_app.config.get("TERMS_PER_PAGE", 6))
    return query_terms(store.list(), spec)
