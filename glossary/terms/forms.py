from flask_wtf import FlaskForm
from wtforms import SelectField, StringField
from wtforms.validators import Length

from .query import SCOPE_ALL, SCOPE_CONTENT, SCOPE_TAGS, SCOPE_TITLE, SORT_NEWEST, SORT_OLDEST, SORT_TITLE


class TermSearchForm(FlaskForm):
    class Meta:
        csrf = False          # GET form, no mutation

    q = StringField("Search", validators=[Length(max=200)])
    scope = SelectField(
        "Search in",
        choices=[
            (SCOPE_ALL, "All fields"),
            (SCOPE_TITLE, "Title"),
            (SCOPE_CONTENT, "Definition"),
            (SCOPE_TAGS, "Tags"),
        ],
        coerce=str,
        default=SCOPE_ALL,
    )
    sort = SelectField(
        "Sort",
        choices=[
            (SORT_NEWEST, "Newest first"),
            (SORT_OLDEST, "Oldest first"),
            (SORT_TITLE, "Title A\u2013Z"),
        ],
        coerce=str,
        default=SORT_NEWEST,
    )
