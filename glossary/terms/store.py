"""SQLAlchemy-backed persistence for terms and their tags."""

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..errors import StoreError, TermNotFound
from ..models import Tag, Term, db, term_tags
from ..tags.reconciler import TagVocabulary


class TermStore:
    """Term persistence on a Flask-SQLAlchemy session.

    Tags passed to :meth:`create` and :meth:`update` must already be
    reconciled.  ``before_commit`` is called with the term inside the
    mutation's transaction, so anything it adds to the session is committed
    or rolled back together with the term.  Every database failure is rolled
    back and re-raised as :class:`StoreError`;
    lookups of unknown ids raise :class:`TermNotFound`.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def _fail(self, action, exc):
        self.session.rollback()
        current_app.logger.exception("Term store failed to %s.", action)
        raise StoreError(f"Could not {action}.") from exc

    def list(self):
        try:
            return self.session.query(Term).order_by(Term.created_at.desc(), Term.id.desc()).all()
        except SQLAlchemyError as exc:
            self._fail("list terms", exc)

    def get(self, public_id):
        try:
            return self.session.query(Term).filter_by(public_id=public_id).first()
        except SQLAlchemyError as exc:
            self._fail("load term", exc)

    def _require(self, public_id):
        term = self.get(public_id)
        if term is None:
            raise TermNotFound(public_id)
        return term

    def vocabulary(self):
        try:
            return TagVocabulary.from_query(self.session.query(Tag))
        except SQLAlchemyError as exc:
            self._fail("load tags", exc)

    def create(self, title, content, tags, before_commit=None):
        term = Term(title=title, content=content)
        term.tags = sorted(tags, key=lambda t: t.name)
        try:
            self.session.add(term)
            self.session.flush()
            if before_commit is not None:
                before_commit(term)
            self.session.commit()
        except SQLAlchemyError as exc:
            self._fail("create term", exc)
        return term

    def update(self, public_id, title, content, tags, before_commit=None):
        term = self._require(public_id)
        term.title = title
        term.content = content
        # Full replace: dropped tags lose the association only.
        term.tags = sorted(tags, key=lambda t: t.name)
        try:
            if before_commit is not None:
                before_commit(term)
            self.session.commit()
        except SQLAlchemyError as exc:
            self._fail("update term", exc)
        return term

    def delete(self, public_id, before_commit=None):
        term = self._require(public_id)
        title = term.title
        try:
            if before_commit is not None:
                before_commit(term)
            self.session.delete(term)
            self.session.commit()
        except SQLAlchemyError as exc:
            self._fail("delete term", exc)
        return title

    def tag_usage(self):
        """Return ``(tag, term_count)`` pairs for every tag, orphans included."""
        usage = (
            self.session.query(term_tags.c.tag_id, func.count(term_tags.c.term_id).label("term_count"))
            .group_by(term_tags.c.tag_id)
            .subquery()
        )
        try:
            rows = (
                self.session.query(Tag, func.coalesce(usage.c.term_count, 0))
                .outerjoin(usage, Tag.id == usage.c.tag_id)
                .order_by(Tag.name.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            self._fail("load tag usage", exc)
        return [(tag, int(count)) for tag, count in rows]
