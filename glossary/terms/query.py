"""Search, sort and paginate the in-memory term collection.

Everything here is a pure function of its inputs: the term sequence is never
mutated, and the same terms plus the same :class:`QuerySpec` always produce
the same :class:`QueryResult`.
"""

import math
import unicodedata
from dataclasses import dataclass, field, replace

SCOPE_ALL = "all"
SCOPE_TITLE = "title"
SCOPE_CONTENT = "content"
SCOPE_TAGS = "tags"

SEARCH_SCOPES = (SCOPE_ALL, SCOPE_TITLE, SCOPE_CONTENT, SCOPE_TAGS)

SORT_NEWEST = "newest"
SORT_OLDEST = "oldest"
SORT_TITLE = "title"

SORT_KEYS = (SORT_NEWEST, SORT_OLDEST, SORT_TITLE)

DEFAULT_PAGE_SIZE = 6


@dataclass(frozen=True)
class QuerySpec:
    text: str = ""
    scope: str = SCOPE_ALL
    sort: str = SORT_NEWEST
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if self.scope not in SEARCH_SCOPES:
            raise ValueError(f"Unknown search scope: {self.scope!r}")
        if self.sort not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {self.sort!r}")
        if self.page < 1:
            raise ValueError("page must be at least 1")
        if self.page_size < 1:
            raise ValueError("page_size must be at least 1")

    def with_page(self, page):
        return replace(self, page=page)


@dataclass(frozen=True)
class QueryResult:
    page: list = field(default_factory=list)
    total_matched: int = 0
    total_pages: int = 0


def _fold(value):
    return (value or "").casefold()


def _tag_names(term):
    return [tag.name for tag in (getattr(term, "tags", None) or ())]


def matches(term, needle, scope=SCOPE_ALL):
    """Case-insensitive substring match of an already folded ``needle``."""
    if not needle:
        return True
    if scope == SCOPE_TITLE:
        return needle in _fold(term.title)
    if scope == SCOPE_CONTENT:
        return needle in _fold(term.content)
    tag_hit = any(needle in _fold(name) for name in _tag_names(term))
    if scope == SCOPE_TAGS:
        return tag_hit
    return needle in _fold(term.title) or needle in _fold(term.content) or tag_hit


def collation_key(text):
    """Accent- and case-insensitive sort key for display text."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def sort_terms(terms, sort=SORT_NEWEST):
    """Return a new list of ``terms`` ordered by ``sort``; ties keep input order."""
    if sort == SORT_TITLE:
        return sorted(terms, key=lambda t: (collation_key(t.title), t.title or ""))
    if sort == SORT_OLDEST:
        return sorted(terms, key=lambda t: t.created_at)
    return sorted(terms, key=lambda t: t.created_at, reverse=True)


def page_count(total_matched, page_size):
    if total_matched <= 0:
        return 0
    return math.ceil(total_matched / page_size)


def clamp_page(page, total_pages):
    """Clamp a requested page into ``[1, total_pages]`` (1 when nothing matched)."""
    if total_pages <= 0:
        return 1
    return min(max(page, 1), total_pages)


def query_terms(terms, spec):
    """Filter, sort and slice ``terms`` according to ``spec``.

    The requested page is not clamped: asking for a page past the end yields
    an empty slice with the correct totals.
    """
    needle = _fold((spec.text or "").strip())
    matched = [t for t in terms if matches(t, needle, spec.scope)]
    ordered = sort_terms(matched, spec.sort)

    total = len(ordered)
    start = (spec.page - 1) * spec.page_size
    end = min(start + spec.page_size, total)
    return QueryResult(
        page=ordered[start:end],
        total_matched=total,
        total_pages=page_count(total, spec.page_size),
    )
