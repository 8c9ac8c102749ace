# tests/repositories/test_blog_repository.py
"""Tests for blogapi/repositories/blog.py module."""

from math import ceil
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError
from structlog.testing import capture_logs

from blogapi.errors.database import (
    IntegrityViolationError,
    InvalidIdError,
    RecordNotFoundError,
    TransactionError,
)
from blogapi.errors.validation import ValidationError
from blogapi.models.post import PostDB
from blogapi.repositories.blog import BlogRepository
from blogapi.repositories.post import PostRepository
from blogapi.schemas.post import PostCreate


async def make_posts(repo: BlogRepository, count: int, **fields: str) -> list[PostDB]:
    return [
        await repo.create_post({"title": f"Post {i}", "content": f"Content {i}", **fields})
        for i in range(count)
    ]


class TestCreatePost:
    """Tests for post creation."""

    @pytest.mark.asyncio
    async def test_defaults_to_draft(self, repo: BlogRepository) -> None:
        post = await repo.create_post(
            {"title": "Hello World", "content": "1234567890", "author": "Ann"},
        )

        assert post.status == "draft"
        assert post.is_published is False
        assert post.author == "Ann"
        assert post.created_at == post.updated_at

        stored = await repo.get_post(str(post.id))
        assert stored.title == "Hello World"

    @pytest.mark.asyncio
    async def test_accepts_model_input(self, repo: BlogRepository) -> None:
        post = await repo.create_post(
            PostCreate(title="  Trimmed  ", content="Body", status="published"),
        )
        assert post.title == "Trimmed"
        assert post.status == "published"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "fields",
        [
            {"content": "No title"},
            {"title": "   ", "content": "Blank title"},
            {"title": "x" * 201, "content": "Too long"},
            {"title": "No content"},
            {"title": "Bad status", "content": "Body", "status": "archived"},
        ],
    )
    async def test_invalid_fields_write_nothing(
        self,
        repo: BlogRepository,
        fields: dict[str, str],
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await repo.create_post(fields)

        assert exc_info.value.status_code == 400
        assert exc_info.value.errors
        assert (await repo.list_posts()).total == 0

    @pytest.mark.asyncio
    async def test_emits_audit_event(self, repo: BlogRepository) -> None:
        with capture_logs() as logs:
            post = await repo.create_post({"title": "Audited", "content": "Body"})

        events = [log for log in logs if log["event"] == "post_created"]
        assert len(events) == 1
        assert events[0]["log_level"] == "info"
        assert events[0]["operation"] == "create_post"
        assert events[0]["post_id"] == str(post.id)


class TestGetPost:
    """Tests for reading a single post."""

    @pytest.mark.asyncio
    async def test_missing_post(self, repo: BlogRepository) -> None:
        with pytest.raises(RecordNotFoundError) as exc_info:
            await repo.get_post(str(uuid4()))
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("post_id", ["abc", "123", "", "not-a-uuid-at-all"])
    async def test_malformed_id(self, repo: BlogRepository, post_id: str) -> None:
        with pytest.raises(InvalidIdError) as exc_info:
            await repo.get_post(post_id)
        assert exc_info.value.status_code == 400


class TestListPosts:
    """Tests for pagination and filtering."""

    @pytest.mark.asyncio
    async def test_second_page_of_fifteen(self, repo: BlogRepository) -> None:
        await make_posts(repo, 15)

        page = await repo.list_posts(2, 5)

        assert len(page.items) == 5
        assert page.total == 15
        assert page.page == 2
        assert page.limit == 5
        assert page.total_pages == 3

    @pytest.mark.asyncio
    async def test_newest_first(self, repo: BlogRepository) -> None:
        posts = await make_posts(repo, 3)

        page = await repo.list_posts()

        assert [p.id for p in page.items] == [p.id for p in reversed(posts)]

    @pytest.mark.asyncio
    async def test_malformed_pagination_uses_defaults(self, repo: BlogRepository) -> None:
        await make_posts(repo, 12)

        page = await repo.list_posts("invalid", "invalid")

        assert page.page == 1
        assert page.limit == 10
        assert len(page.items) == 10

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("page", "limit", "expected_page", "expected_limit"),
        [
            (0, 0, 1, 10),
            (-3, -5, 1, 1),
            ("2", "1000", 2, 100),
            ("1.9", "3.7", 1, 3),
            (None, None, 1, 10),
            ("1e20", 5, 1, 5),
            ("99999999999999999999", 5, 1, 5),
        ],
    )
    async def test_pagination_is_clamped(
        self,
        repo: BlogRepository,
        page: object,
        limit: object,
        expected_page: int,
        expected_limit: int,
    ) -> None:
        result = await repo.list_posts(page, limit)
        assert (result.page, result.limit) == (expected_page, expected_limit)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("page", "limit"), [(1, 4), (2, 4), (3, 4), (4, 4), (1, 100)])
    async def test_page_sizes(self, repo: BlogRepository, page: int, limit: int) -> None:
        total = 10
        await make_posts(repo, total)

        result = await repo.list_posts(page, limit)

        assert result.total_pages == ceil(total / limit)
        assert len(result.items) == max(0, min(limit, total - (page - 1) * limit))

    @pytest.mark.asyncio
    async def test_empty_store(self, repo: BlogRepository) -> None:
        result = await repo.list_posts()
        assert result.items == []
        assert result.total == 0
        assert result.total_pages == 0

    @pytest.mark.asyncio
    async def test_filters_by_status_and_author(self, repo: BlogRepository) -> None:
        await make_posts(repo, 2, author="Ann")
        await make_posts(repo, 3, author="Bob", status="published")

        published = await repo.list_posts(status="published")
        by_ann = await repo.list_posts(author="Ann")
        none = await repo.list_posts(status="draft", author="Bob")

        assert published.total == 3
        assert {p.author for p in by_ann.items} == {"Ann"}
        assert by_ann.total == 2
        assert none.total == 0

    @pytest.mark.asyncio
    async def test_unknown_status_filter(self, repo: BlogRepository) -> None:
        with pytest.raises(ValidationError):
            await repo.list_posts(status="archived")


class TestSearchPosts:
    """Tests for title and content search."""

    @pytest.mark.asyncio
    async def test_matches_title_or_content_ignoring_case(self, repo: BlogRepository) -> None:
        await repo.create_post({"title": "Async Python", "content": "Event loops"})
        await repo.create_post({"title": "Gardening", "content": "Growing PYTHON plants"})
        await repo.create_post({"title": "Cooking", "content": "Pasta"})

        result = await repo.search_posts("python")

        assert result.total == 2
        assert {p.title for p in result.items} == {"Async Python", "Gardening"}

    @pytest.mark.asyncio
    async def test_wildcards_are_literal(self, repo: BlogRepository) -> None:
        await repo.create_post({"title": "100% coverage", "content": "Body"})
        await repo.create_post({"title": "1000 tests", "content": "Body"})

        result = await repo.search_posts("100%")

        assert [p.title for p in result.items] == ["100% coverage"]

    @pytest.mark.asyncio
    async def test_blank_term_gives_empty_page(self, repo: BlogRepository) -> None:
        await make_posts(repo, 2)

        result = await repo.search_posts("   ", "2", "5")

        assert result.items == []
        assert result.total == 0
        assert (result.page, result.limit) == (2, 5)


class TestUpdatePost:
    """Tests for partial updates and publishing."""

    @pytest.mark.asyncio
    async def test_only_supplied_fields_change(self, repo: BlogRepository) -> None:
        post = await repo.create_post({"title": "Original", "content": "Body", "author": "Ann"})

        updated = await repo.update_post(post.id, {"title": "Renamed"})

        assert updated.title == "Renamed"
        assert updated.content == "Body"
        assert updated.author == "Ann"
        assert updated.updated_at > post.updated_at
        assert updated.created_at == post.created_at

    @pytest.mark.asyncio
    async def test_rejects_null_required_field(self, repo: BlogRepository) -> None:
        post = await repo.create_post({"title": "Original", "content": "Body"})

        with pytest.raises(ValidationError):
            await repo.update_post(post.id, {"title": None})

        assert (await repo.get_post(post.id)).title == "Original"

    @pytest.mark.asyncio
    async def test_missing_post(self, repo: BlogRepository) -> None:
        with pytest.raises(RecordNotFoundError):
            await repo.update_post(uuid4(), {"title": "Nope"})

    @pytest.mark.asyncio
    async def test_publish_and_unpublish(self, repo: BlogRepository) -> None:
        post = await repo.create_post({"title": "Draft", "content": "Body"})

        published = await repo.publish_post(str(post.id))
        assert published.status == "published"
        assert published.is_published is True

        draft = await repo.unpublish_post(str(post.id))
        assert draft.status == "draft"

    @pytest.mark.asyncio
    async def test_publish_audit_event(self, repo: BlogRepository) -> None:
        post = await repo.create_post({"title": "Draft", "content": "Body"})

        with capture_logs() as logs:
            await repo.publish_post(post.id)

        assert [log["event"] for log in logs] == ["post_published"]
        assert logs[0]["fields"] == ["status"]


class TestDeletePost:
    """Tests for the cascade delete."""

    @pytest.mark.asyncio
    async def test_deletes_post_and_comments(self, repo: BlogRepository) -> None:
        post = await repo.create_post({"title": "P", "content": "Body"})
        other = await repo.create_post({"title": "Other", "content": "Body"})
        for i in range(2):
            await repo.create_comment(post.id, {"content": f"Comment {i}", "author": "Bob"})
        kept = await repo.create_comment(other.id, {"content": "Stays", "author": "Eve"})

        result = await repo.delete_post(str(post.id))

        assert result.deleted_comment_count == 2
        with pytest.raises(RecordNotFoundError):
            await repo.get_post(post.id)
        assert await repo.count_comments(post.id) == 0
        assert (await repo.get_comment(kept.id)).content == "Stays"

    @pytest.mark.asyncio
    async def test_post_without_comments(self, repo: BlogRepository) -> None:
        post = await repo.create_post({"title": "Lonely", "content": "Body"})

        result = await repo.delete_post(post.id)

        assert result.deleted_comment_count == 0

    @pytest.mark.asyncio
    async def test_second_delete_is_not_found(self, repo: BlogRepository) -> None:
        post = await repo.create_post({"title": "Twice", "content": "Body"})
        await repo.create_comment(post.id, {"content": "First", "author": "Bob"})

        first = await repo.delete_post(post.id)
        assert first.deleted_comment_count == 1

        with pytest.raises(RecordNotFoundError):
            await repo.delete_post(post.id)
        with pytest.raises(RecordNotFoundError):
            await repo.list_comments_by_post(post.id)

    @pytest.mark.asyncio
    async def test_missing_post_deletes_nothing(self, repo: BlogRepository) -> None:
        with pytest.raises(RecordNotFoundError):
            await repo.delete_post(uuid4())

    @pytest.mark.asyncio
    async def test_failure_rolls_back_comment_deletion(self, repo: BlogRepository) -> None:
        post = await repo.create_post({"title": "P", "content": "Body"})
        for i in range(3):
            await repo.create_comment(post.id, {"content": f"Comment {i}", "author": "Bob"})

        failing_delete = AsyncMock(side_effect=OperationalError("DELETE", {}, Exception("boom")))
        with (
            patch.object(PostRepository, "delete", failing_delete),
            pytest.raises(TransactionError),
        ):
            await repo.delete_post(post.id)

        assert (await repo.get_post(post.id)).title == "P"
        assert await repo.count_comments(post.id) == 3

    @pytest.mark.asyncio
    async def test_audit_event_carries_comment_count(self, repo: BlogRepository) -> None:
        post = await repo.create_post({"title": "P", "content": "Body"})
        await repo.create_comment(post.id, {"content": "Hi", "author": "Bob"})

        with capture_logs() as logs:
            await repo.delete_post(post.id)

        assert logs[-1]["event"] == "post_deleted"
        assert logs[-1]["deleted_comment_count"] == 1


class TestComments:
    """Tests for comment operations and the post reference invariant."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, repo: BlogRepository) -> None:
        post = await repo.create_post({"title": "P", "content": "Body"})

        comment = await repo.create_comment(
            str(post.id),
            {"content": "<b>Great</b> post!", "author": " Bob "},
        )

        assert comment.post_id == post.id
        assert comment.content == "Great post!"
        assert comment.author == "Bob"
        assert (await repo.get_comment(str(comment.id))).id == comment.id

    @pytest.mark.asyncio
    async def test_missing_post_is_integrity_violation(
        self,
        repo: BlogRepository,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with pytest.raises(IntegrityViolationError) as exc_info:
            await repo.create_comment(uuid4(), {"content": "Orphan", "author": "Bob"})

        assert exc_info.value.status_code == 404
        assert isinstance(exc_info.value, RecordNotFoundError)
        assert "Integrity violation" in caplog.text

    @pytest.mark.asyncio
    async def test_validation_runs_before_existence_check(self, repo: BlogRepository) -> None:
        with pytest.raises(ValidationError):
            await repo.create_comment(uuid4(), {"content": "", "author": "Bob"})

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "fields",
        [
            {"content": "x" * 2001, "author": "Bob"},
            {"content": "Fine", "author": "x" * 101},
            {"content": "Fine"},
            {"content": "<script>alert(1)</script>", "author": "Bob"},
        ],
    )
    async def test_invalid_comment(self, repo: BlogRepository, fields: dict[str, str]) -> None:
        post = await repo.create_post({"title": "P", "content": "Body"})
        with pytest.raises(ValidationError):
            await repo.create_comment(post.id, fields)
        assert await repo.count_comments(post.id) == 0

    @pytest.mark.asyncio
    async def test_list_by_post(self, repo: BlogRepository) -> None:
        post = await repo.create_post({"title": "P", "content": "Body"})
        other = await repo.create_post({"title": "Other", "content": "Body"})
        created = [
            await repo.create_comment(post.id, {"content": f"Comment {i}", "author": "Bob"})
            for i in range(3)
        ]
        await repo.create_comment(other.id, {"content": "Elsewhere", "author": "Eve"})

        page = await repo.list_comments_by_post(str(post.id), "1", "2")

        assert page.total == 3
        assert page.total_pages == 2
        assert [c.id for c in page.items] == [created[2].id, created[1].id]

    @pytest.mark.asyncio
    async def test_list_for_missing_post(self, repo: BlogRepository) -> None:
        with pytest.raises(RecordNotFoundError):
            await repo.list_comments_by_post(uuid4())

    @pytest.mark.asyncio
    async def test_update_comment(self, repo: BlogRepository) -> None:
        post = await repo.create_post({"title": "P", "content": "Body"})
        comment = await repo.create_comment(post.id, {"content": "Before", "author": "Bob"})

        updated = await repo.update_comment(comment.id, {"content": "After"})

        assert updated.content == "After"
        assert updated.author == "Bob"
        assert updated.updated_at > comment.updated_at

    @pytest.mark.asyncio
    async def test_delete_comment(self, repo: BlogRepository) -> None:
        post = await repo.create_post({"title": "P", "content": "Body"})
        comment = await repo.create_comment(post.id, {"content": "Bye", "author": "Bob"})

        await repo.delete_comment(str(comment.id))

        with pytest.raises(RecordNotFoundError):
            await repo.get_comment(comment.id)
        with pytest.raises(RecordNotFoundError):
            await repo.delete_comment(comment.id)

    @pytest.mark.asyncio
    async def test_malformed_comment_id(self, repo: BlogRepository) -> None:
        with pytest.raises(InvalidIdError) as exc_info:
            await repo.get_comment("nope")
        assert "comment" in exc_info.value.detail
