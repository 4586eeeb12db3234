from flask import Blueprint, jsonify

from ..errors import StoreError
from ..terms.store import TermStore

tags_bp = Blueprint("tags", __name__)


@tags_bp.route("", methods=["GET"])
def index():
    """List the tag vocabulary with how many terms use each tag.

    Tags whose terms were all deleted are kept and reported with a zero count.
    """
    try:
        usage = TermStore().tag_usage()
    except StoreError:
        return jsonify({"error": "Error loading tags"}), 500
    return jsonify([{**tag.to_dict(), "term_count": count} for tag, count in usage])
