"""
PostDesk Backend — Field Validation Tests
=========================================

What:  Tests for the two validation layers applied to post fields:
       the request schemas (PostCreate/PostUpdate) and the Post model's
       schema-level @validates hook.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from postdesk.models.post import Post, PostSchemaError
from postdesk.schemas.post import PostCreate, PostResponse, PostUpdate


class TestPostCreateSchema:

    def test_trims_both_fields(self):
        data = PostCreate.model_validate({"title": "  Hello  ", "description": "\tBody\n"})
        assert data.title == "Hello"
        assert data.description == "Body"

    def test_boundary_lengths_accepted(self):
        data = PostCreate.model_validate({"title": "t" * 200, "description": "d" * 400})
        assert len(data.title) == 200
        assert len(data.description) == 400

    def test_length_measured_after_trim(self):
        data = PostCreate.model_validate({"title": " " + "t" * 200 + " ", "description": "d"})
        assert len(data.title) == 200

    def test_title_too_long(self):
        with pytest.raises(PydanticValidationError) as exc_info:
            PostCreate.model_validate({"title": "t" * 201, "description": "d"})
        err = exc_info.value.errors()[0]
        assert err["loc"] == ("title",)
        assert err["msg"] == "Title must not exceed 200 characters"

    def test_description_too_long(self):
        with pytest.raises(PydanticValidationError) as exc_info:
            PostCreate.model_validate({"title": "t", "description": "d" * 401})
        assert exc_info.value.errors()[0]["msg"] == "Description must not exceed 400 characters"

    @pytest.mark.parametrize("bad", ["", "   ", 42, None, ["a"]])
    def test_blank_or_non_string_title(self, bad):
        with pytest.raises(PydanticValidationError) as exc_info:
            PostCreate.model_validate({"title": bad, "description": "d"})
        assert exc_info.value.errors()[0]["msg"] == "Title must be a non-empty string"

    def test_missing_fields_reported(self):
        with pytest.raises(PydanticValidationError) as exc_info:
            PostCreate.model_validate({})
        assert {e["type"] for e in exc_info.value.errors()} == {"missing"}

    def test_unknown_keys_ignored(self):
        data = PostCreate.model_validate({"title": "a", "description": "b", "author": "x"})
        assert not hasattr(data, "author")


class TestPostUpdateSchema:

    def test_only_supplied_fields_in_changes(self):
        data = PostUpdate.model_validate({"title": " New "})
        assert data.changes() == {"title": "New"}

    def test_empty_body_has_no_changes(self):
        assert PostUpdate.model_validate({}).changes() == {}

    def test_unrecognized_keys_are_not_changes(self):
        assert PostUpdate.model_validate({"body": "x"}).changes() == {}

    def test_explicit_null_is_rejected(self):
        with pytest.raises(PydanticValidationError) as exc_info:
            PostUpdate.model_validate({"description": None})
        assert exc_info.value.errors()[0]["msg"] == "Description must be a non-empty string"

    def test_update_enforces_description_limit(self):
        with pytest.raises(PydanticValidationError):
            PostUpdate.model_validate({"description": "d" * 401})


class TestPostModelValidation:
    """Schema-level rules enforced by the ORM model itself."""

    def test_model_trims_values(self):
        post = Post(title="  Trim me ", description=" body ")
        assert post.title == "Trim me"
        assert post.description == "body"

    def test_model_rejects_blank_title(self):
        with pytest.raises(PostSchemaError) as exc_info:
            Post(title="   ", description="body")
        assert exc_info.value.errors == {"title": "Please add a title"}

    def test_model_rejects_non_string_description(self):
        with pytest.raises(PostSchemaError) as exc_info:
            Post(title="t", description=None)
        assert exc_info.value.errors == {"description": "Please add a description"}

    def test_model_rejects_long_title(self):
        with pytest.raises(PostSchemaError) as exc_info:
            Post(title="t" * 201, description="body")
        assert exc_info.value.errors == {"title": "Title cannot be more than 200 characters"}

    def test_model_validates_on_assignment(self, sample_post_data):
        post = Post(**sample_post_data)
        with pytest.raises(PostSchemaError):
            post.description = "d" * 401
        assert post.description == sample_post_data["description"]


class TestPostResponse:

    def test_serializes_camel_case(self, sample_post_data):
        body = PostResponse.model_validate(Post(**sample_post_data)).model_dump(by_alias=True)
        assert set(body) == {"id", "title", "description", "createdAt", "updatedAt"}
        assert body["id"] == sample_post_data["id"]

    def test_naive_timestamps_are_read_as_utc(self, sample_post_data):
        data = dict(sample_post_data)
        data["created_at"] = datetime(2024, 5, 1, 12, 30)
        response = PostResponse.model_validate(Post(**data))
        assert response.created_at == datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        assert response.model_dump(mode="json", by_alias=True)["createdAt"].endswith("Z")
