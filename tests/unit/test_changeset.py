"""Unit tests for Changeset and Result."""

import pytest

from reelnote.core.db.models import User
from reelnote.services.base import ValidationError
from reelnote.services.changeset import Changeset, Result
from reelnote.services.schemas import AnnotationInput, VideoInput


@pytest.fixture
def stored_video() -> dict:
    return {
        "id": 7,
        "url": "http://example.com/a",
        "title": "Old Title",
        "description": "Old description",
        "slug": "old-title",
        "user_id": 1,
        "category_id": None,
    }


class TestCast:
    """Tests for Changeset.cast()."""

    def test_new_record_valid(self):
        """Valid input on an empty record becomes changes."""
        changeset = Changeset.cast(
            {},
            {"url": "http://x", "title": "T", "description": "D"},
            VideoInput,
        )

        assert changeset.valid
        assert changeset.changes == {"url": "http://x", "title": "T", "description": "D"}

    def test_missing_required_fields(self):
        """Every missing required field gets an error."""
        changeset = Changeset.cast({}, {}, VideoInput)

        assert not changeset.valid
        assert changeset.errors == {
            "url": ["can't be blank"],
            "title": ["can't be blank"],
            "description": ["can't be blank"],
        }

    def test_blank_string_is_missing(self, stored_video):
        """Blank strings count as missing."""
        changeset = Changeset.cast(stored_video, {"title": "   "}, VideoInput)

        assert changeset.errors == {"title": ["can't be blank"]}

    def test_only_differences_are_changes(self, stored_video):
        """Unchanged values are not recorded as changes."""
        changeset = Changeset.cast(
            stored_video,
            {"title": "Old Title", "description": "New description"},
            VideoInput,
        )

        assert changeset.valid
        assert changeset.changes == {"description": "New description"}

    def test_undeclared_keys_dropped(self, stored_video):
        """Owner and id keys cannot be cast."""
        changeset = Changeset.cast(
            stored_video,
            {"user_id": 99, "id": 1, "slug": "hacked", "title": "New"},
            VideoInput,
        )

        assert changeset.params == {"title": "New"}
        assert changeset.changes == {"title": "New"}

    def test_string_keys_and_coercion(self):
        """Values are coerced through the input model."""
        changeset = Changeset.cast({"video_id": 3}, {"body": "hello", "at": "1500"}, AnnotationInput)

        assert changeset.valid
        assert changeset.changes == {"body": "hello", "at": 1500}

    def test_negative_offset_rejected(self):
        changeset = Changeset.cast({}, {"body": "hello", "at": -1}, AnnotationInput)

        assert list(changeset.errors) == ["at"]

    @pytest.mark.parametrize("flag", [True, False])
    def test_bool_offset_rejected(self, flag):
        changeset = Changeset.cast({}, {"body": "hello", "at": flag}, AnnotationInput)

        assert changeset.errors == {"at": ["is invalid"]}

    def test_zero_offset_allowed(self):
        changeset = Changeset.cast({}, {"body": "start", "at": 0}, AnnotationInput)

        assert changeset.valid

    def test_blank_category_is_none(self, stored_video):
        changeset = Changeset.cast({**stored_video, "category_id": 3}, {"category_id": ""}, VideoInput)

        assert changeset.valid
        assert changeset.changes == {"category_id": None}

    def test_data_not_mutated(self, stored_video):
        """Casting never modifies the source record."""
        original = dict(stored_video)
        Changeset.cast(stored_video, {"title": "New"}, VideoInput)

        assert stored_video == original


class TestChangesetHelpers:
    """Tests for put_assoc, put_change, add_error, apply_changes."""

    def test_put_assoc_pins_foreign_key(self, stored_video):
        user = User(id=5, username="chris")
        changeset = Changeset.cast(stored_video, {}, VideoInput).put_assoc("user", user)

        assert changeset.associations["user"] is user
        assert changeset.changes == {"user_id": 5}
        assert changeset.apply_changes()["user_id"] == 5

    def test_put_assoc_same_owner_no_change(self, stored_video):
        user = User(id=1, username="jose")
        changeset = Changeset.cast(stored_video, {}, VideoInput).put_assoc("user", user)

        assert changeset.changes == {}
        assert changeset.get_field("user_id") == 1

    def test_add_error_invalidates(self, stored_video):
        changeset = Changeset.cast(stored_video, {}, VideoInput)
        assert changeset.valid

        changeset.add_error("category", "does not exist")

        assert not changeset.valid
        assert changeset.errors == {"category": ["does not exist"]}

    def test_apply_changes_merges(self, stored_video):
        changeset = Changeset.cast(stored_video, {"title": "New"}, VideoInput)

        applied = changeset.apply_changes()

        assert applied["title"] == "New"
        assert applied["description"] == "Old description"


class TestResult:
    """Tests for Result."""

    def test_success(self):
        result = Result.success("value")

        assert result.ok
        assert result.unwrap() == "value"
        assert result.errors == {}

    def test_failure_unwrap_raises(self):
        changeset = Changeset.cast({}, {}, AnnotationInput)
        result = Result.failure(changeset)

        assert not result.ok
        assert result.errors is changeset.errors
        with pytest.raises(ValidationError) as exc_info:
            result.unwrap()
        assert set(exc_info.value.errors) == {"body", "at"}
