"""Feed service: the post lifecycle and the owner's status."""

import logging
from dataclasses import dataclass
from enum import StrEnum

from feedboard.errors import FeedError, NotFoundError, UnexpectedError, ValidationError, violation
from feedboard.models.mixins import utc_now
from feedboard.models.post import Post
from feedboard.models.user import User
from feedboard.services.context import SessionContext
from feedboard.services.guard import Operation, authorize, require_authenticated
from feedboard.services.images import ImageStore
from feedboard.services.store import DocumentStore

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 5
MAX_STATUS_LENGTH = 500
DEFAULT_PAGE_SIZE = 2


@dataclass(frozen=True)
class ImageUpload:
    """Raw upload handed over by the transport layer."""

    data: bytes
    content_type: str | None


class ImageAction(StrEnum):
    KEEP = "keep"
    CLEAR = "clear"
    SET = "set"


@dataclass(frozen=True)
class ImageChange:
    """What an update does to a post's image: keep it, clear it, or replace it."""

    action: ImageAction = ImageAction.KEEP
    upload: ImageUpload | None = None

    @classmethod
    def keep(cls) -> "ImageChange":
        return cls(ImageAction.KEEP)

    @classmethod
    def clear(cls) -> "ImageChange":
        return cls(ImageAction.CLEAR)

    @classmethod
    def set_to(cls, upload: ImageUpload) -> "ImageChange":
        return cls(ImageAction.SET, upload)


@dataclass
class PostPage:
    posts: list[Post]
    total_posts: int
    page: int
    page_size: int


def validate_post_input(title: str | None, content: str | None) -> None:
    """Collect every title/content violation, then raise once."""
    errors = []
    if not title or len(title.strip()) < MIN_TEXT_LENGTH:
        errors.append(violation("title", f"Title must be at least {MIN_TEXT_LENGTH} characters."))
    if not content or len(content.strip()) < MIN_TEXT_LENGTH:
        errors.append(
            violation("content", f"Content must be at least {MIN_TEXT_LENGTH} characters.")
        )
    if errors:
        raise ValidationError(errors)


class FeedService:
    """Service for post and status operations.

    Posts and the owner's ``post_ids`` live in separate documents with no
    shared transaction. Create writes the post first and then the owner;
    delete detaches from the owner first and then removes the post. When the
    second write fails the first is undone; if the undo fails too, the
    leftover is logged for manual reconciliation.

    Concurrent updates to one post are not serialized: last writer wins.
    """

    def __init__(
        self,
        store: DocumentStore,
        images: ImageStore,
        posts_per_page: int = DEFAULT_PAGE_SIZE,
    ):
        self.store = store
        self.images = images
        self.posts_per_page = posts_per_page

    # --- Posts ---

    def create_post(
        self,
        ctx: SessionContext,
        title: str,
        content: str,
        image: ImageUpload | None = None,
    ) -> Post:
        """Create a post owned by the requester and record it on the owner."""
        authorize(Operation.CREATE_POST, ctx)
        validate_post_input(title, content)
        owner = self._load_requester(ctx)

        image_url = self._store_image(image)
        post = Post(
            title=title.strip(),
            content=content.strip(),
            image_url=image_url,
            creator_id=owner.id,
        )
        try:
            post = self.store.save(post)
        except FeedError:
            self.images.release(image_url)
            raise

        post_id = post.id
        try:
            owner.post_ids = [*(owner.post_ids or []), post_id]
            self.store.save(owner)
        except FeedError as e:
            logger.error(f"Could not attach post {post_id} to user {ctx.user_id}, rolling back")
            self._undo_create(post_id, image_url)
            raise UnexpectedError("Creating post failed.") from e

        logger.info(f"User {ctx.user_id} created post {post_id}")
        return post

    def get_post(self, post_id: int, ctx: SessionContext) -> Post:
        """Get one post. Any authenticated user may read any post."""
        authorize(Operation.READ_POST, ctx)
        return self._get_post(post_id)

    def list_posts(
        self,
        ctx: SessionContext,
        page: int | None = None,
        page_size: int | None = None,
    ) -> PostPage:
        """Newest-first page of all posts plus the overall count."""
        authorize(Operation.LIST_POSTS, ctx)
        page = page or 1
        page_size = page_size or self.posts_per_page
        offset = max((page - 1) * page_size, 0)

        total_posts = self.store.count(Post)
        posts = self.store.find_many(
            Post,
            order_by=[Post.created_at.desc(), Post.id.desc()],
            offset=offset,
            limit=page_size,
        )
        return PostPage(posts=posts, total_posts=total_posts, page=page, page_size=page_size)

    def update_post(
        self,
        post_id: int,
        ctx: SessionContext,
        title: str,
        content: str,
        image: ImageChange | None = None,
    ) -> Post:
        """Replace a post's title and content, and apply the image change."""
        require_authenticated(ctx)
        post = self._get_post(post_id)
        authorize(Operation.UPDATE_POST, ctx, owner_id=post.creator_id)
        validate_post_input(title, content)

        image = image or ImageChange.keep()
        old_image_url = post.image_url
        new_image_url = old_image_url
        stored_url = None
        if image.action is ImageAction.SET:
            stored_url = self._store_image(image.upload)
            if stored_url:
                new_image_url = stored_url
        elif image.action is ImageAction.CLEAR:
            new_image_url = None

        post.title = title.strip()
        post.content = content.strip()
        post.image_url = new_image_url
        post.updated_at = utc_now()
        try:
            post = self.store.save(post)
        except FeedError:
            self.images.release(stored_url)
            raise

        if old_image_url and old_image_url != new_image_url:
            self.images.release(old_image_url)

        logger.info(f"User {ctx.user_id} updated post {post_id}")
        return post

    def delete_post(self, post_id: int, ctx: SessionContext) -> None:
        """Delete a post, detach it from its owner and release its image."""
        require_authenticated(ctx)
        post = self._get_post(post_id)
        authorize(Operation.DELETE_POST, ctx, owner_id=post.creator_id)

        owner_id = post.creator_id
        image_url = post.image_url

        owner = self.store.find(User, owner_id)
        if owner is None:
            logger.warning(f"Owner {owner_id} of post {post_id} is missing")
        else:
            owner.post_ids = [pid for pid in owner.post_ids or [] if pid != post_id]
            self.store.save(owner)

        try:
            self.store.remove(Post, post_id)
        except FeedError:
            if owner is not None:
                self._reattach(owner_id, post_id)
            raise

        self.images.release(image_url)
        logger.info(f"User {ctx.user_id} deleted post {post_id}")

    # --- Status ---

    def get_status(self, ctx: SessionContext) -> str:
        authorize(Operation.READ_STATUS, ctx)
        return self._load_requester(ctx).status

    def update_status(self, ctx: SessionContext, status: str) -> str:
        """Set the requester's own status."""
        authorize(Operation.UPDATE_STATUS, ctx)
        status = (status or "").strip()
        if not status:
            raise ValidationError([violation("status", "Status must not be empty.")])
        if len(status) > MAX_STATUS_LENGTH:
            raise ValidationError(
                [violation("status", f"Status must be at most {MAX_STATUS_LENGTH} characters.")]
            )

        user = self._load_requester(ctx)
        user.status = status
        user = self.store.save(user)
        return user.status

    # --- Helpers ---

    def _get_post(self, post_id: int) -> Post:
        post = self.store.find(Post, post_id)
        if post is None:
            raise NotFoundError("Could not find post.")
        return post

    def _load_requester(self, ctx: SessionContext) -> User:
        try:
            user_id = int(ctx.user_id)
        except (TypeError, ValueError):
            raise NotFoundError("User not found.") from None
        user = self.store.find(User, user_id)
        if user is None:
            raise NotFoundError("User not found.")
        return user

    def _store_image(self, upload: ImageUpload | None) -> str | None:
        if upload is None:
            return None
        return self.images.store(upload.data, upload.content_type)

    def _undo_create(self, post_id: int, image_url: str | None) -> None:
        try:
            self.store.remove(Post, post_id)
        except FeedError:
            logger.error(f"Post {post_id} is orphaned and needs manual reconciliation")
            return
        self.images.release(image_url)

    def _reattach(self, owner_id: int, post_id: int) -> None:
        try:
            owner = self.store.find(User, owner_id)
            if owner is not None and post_id not in (owner.post_ids or []):
                owner.post_ids = [*(owner.post_ids or []), post_id]
                self.store.save(owner)
        except FeedError:
            logger.error(
                f"Post {post_id} is missing from user {owner_id} and needs manual reconciliation"
            )
