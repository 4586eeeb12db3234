"""Caller-side state for paging through query results.

The query engine never clamps pages or remembers anything; this object does
both.  Any change to the search text, scope or sort key invalidates the
current page position, so those setters reset to page 1.
"""

from dataclasses import replace

from .query import DEFAULT_PAGE_SIZE, QueryResult, QuerySpec, clamp_page, query_terms


class TermBrowser:
    def __init__(self, page_size=DEFAULT_PAGE_SIZE):
        self.spec = QuerySpec(page_size=page_size)
        self.result = QueryResult()
        self._generation = 0

    def _change(self, **changes):
        updated = replace(self.spec, **changes)
        if updated != self.spec:
            self.spec = replace(updated, page=1)

    def set_text(self, text):
        self._change(text=text or "")

    def set_scope(self, scope):
        self._change(scope=scope)

    def set_sort(self, sort):
        self._change(sort=sort)

    def go_to_page(self, page):
        self.spec = self.spec.with_page(page)

    def refresh(self, terms):
        """Re-run the query against ``terms`` and keep the page in range."""
        result = query_terms(terms, self.spec)
        page = clamp_page(self.spec.page, result.total_pages)
        if page != self.spec.page:
            self.spec = self.spec.with_page(page)
            result = query_terms(terms, self.spec)
        self.result = result
        return result

    def begin(self):
        """Start a query and return its token; older tokens become stale."""
        self._generation += 1
        return self._generation

    def accept(self, token, result):
        """Keep ``result`` only if ``token`` is from the most recent :meth:`begin`."""
        if token != self._generation:
            return False
        self.result = result
        return True
