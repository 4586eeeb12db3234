"""Reconcile a term's requested tag names against the tag vocabulary.

Tag identity is keyed by the exact stored name: ``"Web"`` and ``"web"`` are
two different tags, even though search matches both.  Tags are referenced by
terms, never owned, so nothing here ever removes a tag from the vocabulary.
"""

from ..errors import ValidationError
from ..models import Tag

EMPTY_TAGS_MESSAGE = "At least one tag is required."


def _new_tag(name):
    return Tag(name=name)


class TagVocabulary:
    """Name-keyed lookup of every known tag.

    Passed by reference into :func:`reconcile`, which grows it in place.
    Tags minted during the vocabulary's lifetime are collected in
    ``minted`` so the caller can report or persist them.
    """

    def __init__(self, tags=(), factory=None):
        self._by_name = {}
        for tag in tags:
            self._by_name.setdefault(tag.name, tag)
        self._factory = factory or _new_tag
        self.minted = []

    @classmethod
    def from_query(cls, query=None):
        """Build a vocabulary from every tag currently stored."""
        query = query if query is not None else Tag.query
        return cls(query.all())

    def get(self, name):
        return self._by_name.get(name)

    def find_or_create(self, name):
        tag = self._by_name.get(name)
        if tag is None:
            tag = self._factory(name)
            self._by_name[name] = tag
            self.minted.append(tag)
        return tag

    def __contains__(self, name):
        return name in self._by_name

    def __iter__(self):
        return iter(self._by_name.values())

    def __len__(self):
        return len(self._by_name)


def split_tag_text(text):
    """Split a comma-separated tag string into raw names."""
    if not text:
        return []
    return text.split(",")


def normalize_tag_names(names):
    """Trim names, drop empties and collapse duplicates, keeping first-seen order."""
    if isinstance(names, str):
        names = split_tag_text(names)
    seen = set()
    result = []
    for raw in names or ():
        if raw is None:
            continue
        name = str(raw).strip()
        if not name or name in seen:
            continue
        seen.add(name)
        result.append(name)
    return result


def reconcile(vocabulary, requested_names):
    """Return the set of tags a term should hold for ``requested_names``.

    Existing tags are reused by exact name; unknown names get a new tag that
    is added to ``vocabulary``.  Raises :class:`ValidationError` when no name
    survives normalization.

    Callers must validate every other term field first: any tag minted here
    stays in the vocabulary even if the enclosing mutation is abandoned.
    """
    names = normalize_tag_names(requested_names)
    if not names:
        raise ValidationError({"tags": EMPTY_TAGS_MESSAGE})
    return {vocabulary.find_or_create(name) for name in names}
