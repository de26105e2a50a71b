"""Tests for things:/// URL construction."""

from things_undo.dispatch.url_builder import (
    build_add_project_url,
    build_add_todo_url,
    build_cancel_url,
    build_complete_url,
    build_query_string,
    build_update_project_url,
    build_update_url,
)


class TestQueryString:
    """Tests for parameter encoding."""

    def test_percent_encodes(self):
        assert build_query_string({"title": "Buy milk & eggs"}) == (
            "title=Buy%20milk%20%26%20eggs"
        )

    def test_skips_none(self):
        assert build_query_string({"title": "a", "notes": None}) == "title=a"

    def test_clear_none_renders_empty(self):
        assert build_query_string({"title": "a", "notes": None}, clear_none=True) == (
            "title=a&notes="
        )

    def test_booleans(self):
        assert build_query_string({"completed": True, "canceled": False}) == (
            "completed=true&canceled=false"
        )

    def test_tags_joined_by_comma(self):
        assert build_query_string({"tags": ["home", "errand"]}) == "tags=home%2Cerrand"

    def test_checklist_joined_by_newline(self):
        assert build_query_string({"checklist_items": ["a", "b"]}) == (
            "checklist-items=a%0Ab"
        )

    def test_field_aliases(self):
        assert build_query_string({"list_id": "L1", "heading_id": "H1"}) == (
            "list-id=L1&heading-id=H1"
        )


class TestCommands:
    """Tests for command URLs."""

    def test_add_todo(self):
        url = build_add_todo_url("Buy milk", when="today")
        assert url == "things:///add?title=Buy%20milk&when=today"

    def test_add_project(self):
        assert build_add_project_url("Launch").startswith("things:///add-project?")

    def test_update_puts_token_and_id_first(self):
        url = build_update_url("XYZ", "tok", {"title": "Old"})
        assert url == "things:///update?auth-token=tok&id=XYZ&title=Old"

    def test_update_project(self):
        url = build_update_project_url("P1", "tok", {"notes": "n"})
        assert url == "things:///update-project?auth-token=tok&id=P1&notes=n"

    def test_complete(self):
        assert build_complete_url("A", "tok") == (
            "things:///update?auth-token=tok&id=A&completed=true"
        )

    def test_cancel_project(self):
        assert build_cancel_url("P1", "tok", project=True) == (
            "things:///update-project?auth-token=tok&id=P1&canceled=true"
        )

    def test_update_clears_none_fields(self):
        assert build_update_url("X1", "tok", {"deadline": None}) == (
            "things:///update?auth-token=tok&id=X1&deadline="
        )

    def test_update_project_clears_none_fields(self):
        url = build_update_project_url("P1", "tok", {"notes": None, "when": "today"})
        assert url == "things:///update-project?auth-token=tok&id=P1&notes=&when=today"

    def test_add_todo_still_skips_none(self):
        assert build_add_todo_url("a", deadline=None) == "things:///add?title=a"
