from flask import Blueprint, abort, current_app, jsonify, redirect, request, url_for

from .. import limiter
from ..errors import StoreError, TermNotFound, ValidationError
from .forms import TermSearchForm
from .query import SCOPE_ALL, SEARCH_SCOPES, SORT_KEYS, SORT_NEWEST, QuerySpec
from .service import create_term, delete_term, search_terms, update_term
from .store import TermStore

terms_bp = Blueprint("terms", __name__)


def _json_payload():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        abort(400)
    return payload


@terms_bp.route("", methods=["GET"])
def index():
    form = TermSearchForm(request.args)
    form.validate()
    if form.q.errors:
        raise ValidationError({"q": form.q.errors[0]})

    # Unknown scope/sort values fall back to the defaults instead of failing
    scope = form.scope.data if form.scope.data in SEARCH_SCOPES else SCOPE_ALL
    sort = form.sort.data if form.sort.data in SORT_KEYS else SORT_NEWEST
    text = (form.q.data or "").strip()
    page = max(request.args.get("page", 1, type=int), 1)
    per_page = current_app.config.get("TERMS_PER_PAGE", 6)

    spec = QuerySpec(text=text, scope=scope, sort=sort, page=page, page_size=per_page)
    try:
        result = search_terms(spec)
    except StoreError:
        return jsonify({"error": "Error loading terms"}), 500

    if result.total_pages and page > result.total_pages:
        return redirect(url_for("terms.index", q=text, scope=scope, sort=sort, page=result.total_pages))

    return jsonify(
        {
            "terms": [t.to_dict() for t in result.page],
            "total_matched": result.total_matched,
            "total_pages": result.total_pages,
            "page": page,
            "per_page": per_page,
            "q": text,
            "scope": scope,
            "sort": sort,
        }
    )


@terms_bp.route("", methods=["POST"])
@limiter.limit("30 per minute")
def create():
    payload = _json_payload()
    try:
        term = create_term(payload.get("title"), payload.get("content"), payload.get("tags"))
    except StoreError:
        return jsonify({"error": "Error creating term"}), 500
    return jsonify(term.to_dict()), 201


@terms_bp.route("/<public_id>", methods=["GET"])
def detail(public_id):
    try:
        term = TermStore().get(public_id)
    except StoreError:
        return jsonify({"error": "Error loading term"}), 500
    if term is None:
        raise TermNotFound(public_id)
    return jsonify(term.to_dict())


@terms_bp.route("/<public_id>", methods=["PUT"])
@limiter.limit("30 per minute")
def update(public_id):
    payload = _json_payload()
    try:
        term = update_term(public_id, payload.get("title"), payload.get("content"), payload.get("tags"))
    except StoreError:
        return jsonify({"error": "Error updating term"}), 500
    return jsonify(term.to_dict())


@terms_bp.route("/<public_id>", methods=["DELETE"])
@limiter.limit("30 per minute")
def delete(public_id):
    try:
        delete_term(public_id)
    except StoreError:
        return jsonify({"error": "Error deleting term"}), 500
    return jsonify({"success": True})
