"""Tests for the post lifecycle in FeedService."""

from unittest.mock import patch

import pytest

from feedboard.errors import (
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
    UnexpectedError,
    ValidationError,
)
from feedboard.models.post import Post
from feedboard.models.user import User
from feedboard.services.context import SessionContext
from feedboard.services.feed_service import ImageChange, ImageUpload

PNG = ImageUpload(data=b"\x89PNG\r\n\x1a\n" + b"\x00" * 32, content_type="image/png")
GIF = ImageUpload(data=b"GIF89a", content_type="image/gif")


def image_path(image_store, reference):
    return image_store.base_dir / reference.split("/", 1)[1]


def failing_save(store, model):
    """Wrap store.save so that saving a ``model`` instance fails like a DB error."""
    real_save = store.save

    def _save(doc):
        if isinstance(doc, model):
            store.db.rollback()
            raise UnexpectedError()
        return real_save(doc)

    return _save


class TestCreatePost:
    def test_create_records_owner_on_both_sides(self, feed_service, store, ctx, user):
        post = feed_service.create_post(ctx, "First post", "Some content")

        assert post.id is not None
        assert post.creator_id == user.id
        assert post.image_url is None
        assert store.find(User, user.id).post_ids == [post.id]

    def test_create_trims_text(self, feed_service, ctx):
        post = feed_service.create_post(ctx, "  Padded title  ", "  Padded body  ")
        assert post.title == "Padded title"
        assert post.content == "Padded body"

    def test_anonymous_cannot_create(self, feed_service, store):
        with pytest.raises(UnauthenticatedError):
            feed_service.create_post(SessionContext.anonymous(), "First post", "Some content")
        assert store.count(Post) == 0

    def test_short_title_is_rejected(self, feed_service, store, ctx):
        with pytest.raises(ValidationError) as exc_info:
            feed_service.create_post(ctx, "Hi", "Some content")
        assert exc_info.value.fields == ["title"]
        assert store.count(Post) == 0

    def test_all_violations_are_reported(self, feed_service, ctx):
        with pytest.raises(ValidationError) as exc_info:
            feed_service.create_post(ctx, "    abc    ", "")
        assert exc_info.value.fields == ["title", "content"]

    def test_create_with_image(self, feed_service, image_store, ctx):
        post = feed_service.create_post(ctx, "With image", "Some content", PNG)
        assert post.image_url.startswith("images/")
        assert image_path(image_store, post.image_url).exists()

    def test_disallowed_image_is_ignored(self, feed_service, ctx):
        post = feed_service.create_post(ctx, "With image", "Some content", GIF)
        assert post.image_url is None

    def test_oversized_image_is_rejected(self, feed_service, store, image_store, ctx):
        big = ImageUpload(data=b"\x00" * (image_store.max_bytes + 1), content_type="image/png")
        with pytest.raises(ValidationError) as exc_info:
            feed_service.create_post(ctx, "With image", "Some content", big)
        assert exc_info.value.fields == ["image"]
        assert store.count(Post) == 0

    def test_vanished_owner_is_not_found(self, feed_service):
        ghost = SessionContext(user_id="99999", email="ghost@example.com")
        with pytest.raises(NotFoundError):
            feed_service.create_post(ghost, "First post", "Some content")

    def test_failed_owner_write_removes_post(self, feed_service, store, image_store, ctx, user):
        with patch.object(store, "save", side_effect=failing_save(store, User)):
            with pytest.raises(UnexpectedError):
                feed_service.create_post(ctx, "First post", "Some content", PNG)

        assert store.count(Post) == 0
        assert store.find(User, user.id).post_ids == []
        assert list(image_store.base_dir.iterdir()) == []


class TestListPosts:
    def test_second_page(self, feed_service, ctx):
        posts = [feed_service.create_post(ctx, f"Post {i}", f"Content {i}") for i in range(1, 6)]

        page = feed_service.list_posts(ctx, page=2)

        # Newest first: 5, 4, 3, 2, 1 -> page 2 holds the 3rd and 4th newest
        assert [p.id for p in page.posts] == [posts[2].id, posts[1].id]
        assert page.total_posts == 5
        assert page.page == 2
        assert page.page_size == 2

    def test_page_defaults_to_first(self, feed_service, ctx):
        posts = [feed_service.create_post(ctx, f"Post {i}", f"Content {i}") for i in range(1, 4)]

        page = feed_service.list_posts(ctx)

        assert [p.id for p in page.posts] == [posts[2].id, posts[1].id]
        assert page.page == 1

    @pytest.mark.parametrize("page", [0, -3])
    def test_non_positive_page_never_goes_negative(self, feed_service, ctx, page):
        posts = [feed_service.create_post(ctx, f"Post {i}", f"Content {i}") for i in range(1, 4)]
        result = feed_service.list_posts(ctx, page=page)
        assert [p.id for p in result.posts] == [posts[2].id, posts[1].id]

    def test_total_is_not_scoped_to_requester(self, feed_service, ctx, other_ctx):
        feed_service.create_post(ctx, "Mine mine", "Some content")
        feed_service.create_post(other_ctx, "Theirs here", "Some content")
        assert feed_service.list_posts(ctx).total_posts == 2

    def test_page_past_end_is_empty(self, feed_service, ctx):
        feed_service.create_post(ctx, "Only post", "Some content")
        result = feed_service.list_posts(ctx, page=5)
        assert result.posts == []
        assert result.total_posts == 1

    def test_anonymous_cannot_list(self, feed_service):
        with pytest.raises(UnauthenticatedError):
            feed_service.list_posts(SessionContext.anonymous())


class TestGetPost:
    def test_any_authenticated_user_can_read(self, feed_service, ctx, other_ctx):
        post = feed_service.create_post(ctx, "First post", "Some content")
        assert feed_service.get_post(post.id, other_ctx).title == "First post"

    def test_missing_post(self, feed_service, ctx):
        with pytest.raises(NotFoundError):
            feed_service.get_post(12345, ctx)


class TestUpdatePost:
    def test_owner_can_update(self, feed_service, ctx):
        post = feed_service.create_post(ctx, "First post", "Some content")

        updated = feed_service.update_post(post.id, ctx, "Edited title", "Edited content")

        assert updated.title == "Edited title"
        assert updated.content == "Edited content"
        assert updated.updated_at >= updated.created_at

    def test_non_owner_is_forbidden(self, feed_service, ctx, other_ctx):
        post = feed_service.create_post(ctx, "First post", "Some content")
        with pytest.raises(ForbiddenError):
            feed_service.update_post(post.id, other_ctx, "Hijacked", "Hijacked content")
        assert feed_service.get_post(post.id, ctx).title == "First post"

    def test_anonymous_is_unauthenticated(self, feed_service, ctx):
        post = feed_service.create_post(ctx, "First post", "Some content")
        with pytest.raises(UnauthenticatedError):
            feed_service.update_post(post.id, SessionContext.anonymous(), "Edited", "Edited")

    def test_missing_post(self, feed_service, ctx):
        with pytest.raises(NotFoundError):
            feed_service.update_post(12345, ctx, "Edited title", "Edited content")

    def test_validation_runs_on_update(self, feed_service, ctx):
        post = feed_service.create_post(ctx, "First post", "Some content")
        with pytest.raises(ValidationError) as exc_info:
            feed_service.update_post(post.id, ctx, "Hi", "Edited content")
        assert exc_info.value.fields == ["title"]

    def test_keep_image_by_default(self, feed_service, image_store, ctx):
        post = feed_service.create_post(ctx, "First post", "Some content", PNG)
        original = post.image_url

        updated = feed_service.update_post(post.id, ctx, "Edited title", "Edited content")

        assert updated.image_url == original
        assert image_path(image_store, original).exists()

    def test_replace_image_releases_old(self, feed_service, image_store, ctx):
        post = feed_service.create_post(ctx, "First post", "Some content", PNG)
        original = post.image_url

        updated = feed_service.update_post(
            post.id, ctx, "Edited title", "Edited content", ImageChange.set_to(PNG)
        )

        assert updated.image_url != original
        assert image_path(image_store, updated.image_url).exists()
        assert not image_path(image_store, original).exists()

    def test_rejected_replacement_keeps_image(self, feed_service, image_store, ctx):
        post = feed_service.create_post(ctx, "First post", "Some content", PNG)
        original = post.image_url

        updated = feed_service.update_post(
            post.id, ctx, "Edited title", "Edited content", ImageChange.set_to(GIF)
        )

        assert updated.image_url == original
        assert image_path(image_store, original).exists()

    def test_clear_image(self, feed_service, image_store, ctx):
        post = feed_service.create_post(ctx, "First post", "Some content", PNG)
        original = post.image_url

        updated = feed_service.update_post(
            post.id, ctx, "Edited title", "Edited content", ImageChange.clear()
        )

        assert updated.image_url is None
        assert not image_path(image_store, original).exists()


class TestDeletePost:
    def test_owner_can_delete(self, feed_service, store, image_store, ctx, user):
        keep = feed_service.create_post(ctx, "Keep this", "Some content")
        post = feed_service.create_post(ctx, "Delete this", "Some content", PNG)
        image = post.image_url

        feed_service.delete_post(post.id, ctx)

        with pytest.raises(NotFoundError):
            feed_service.get_post(post.id, ctx)
        assert store.find(User, user.id).post_ids == [keep.id]
        assert not image_path(image_store, image).exists()

    def test_non_owner_is_forbidden(self, feed_service, store, ctx, other_ctx):
        post = feed_service.create_post(ctx, "First post", "Some content")
        with pytest.raises(ForbiddenError):
            feed_service.delete_post(post.id, other_ctx)
        assert store.count(Post) == 1

    def test_missing_post(self, feed_service, ctx):
        with pytest.raises(NotFoundError):
            feed_service.delete_post(12345, ctx)

    def test_image_release_failure_does_not_fail_delete(self, feed_service, image_store, ctx):
        post = feed_service.create_post(ctx, "First post", "Some content", PNG)
        image_path(image_store, post.image_url).unlink()

        feed_service.delete_post(post.id, ctx)

        with pytest.raises(NotFoundError):
            feed_service.get_post(post.id, ctx)

    def test_failed_remove_reattaches_post(self, feed_service, store, ctx, user):
        post = feed_service.create_post(ctx, "First post", "Some content")

        def broken_remove(model, doc_id):
            store.db.rollback()
            raise UnexpectedError()

        with patch.object(store, "remove", side_effect=broken_remove):
            with pytest.raises(UnexpectedError):
                feed_service.delete_post(post.id, ctx)

        assert store.find(Post, post.id) is not None
        assert store.find(User, user.id).post_ids == [post.id]


class TestStatus:
    def test_default_status(self, feed_service, ctx):
        assert feed_service.get_status(ctx) == "I am new!"

    def test_update_status(self, feed_service, store, ctx, user):
        assert feed_service.update_status(ctx, "  Writing things  ") == "Writing things"
        assert store.find(User, user.id).status == "Writing things"

    def test_empty_status_is_rejected(self, feed_service, ctx):
        with pytest.raises(ValidationError) as exc_info:
            feed_service.update_status(ctx, "   ")
        assert exc_info.value.fields == ["status"]

    def test_anonymous_cannot_update_status(self, feed_service):
        with pytest.raises(UnauthenticatedError):
            feed_service.update_status(SessionContext.anonymous(), "Hello there")

    def test_vanished_user_is_not_found(self, feed_service):
        ghost = SessionContext(user_id="99999", email="ghost@example.com")
        with pytest.raises(NotFoundError):
            feed_service.update_status(ghost, "Hello there")
