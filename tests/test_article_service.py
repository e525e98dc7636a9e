"""Article write path: create, update, restriction changes, delete and restore."""
import uuid

import pytest

from newsletter.core.config import WritePolicy
from newsletter.core.exceptions import (
    ArticleNotFound, DuplicateOrder, EditConflict, EmptyClassRestriction,
    InvalidArticleField, InvalidClassReference, WeekNotFound
)
from newsletter.schemas.article_schemas import ArticleVersion
from newsletter.services.article_service import ArticleService
from newsletter.services.revision_ledger import RevisionLedger


# ------------------------------------------------------------------
# Create
# ------------------------------------------------------------------
async def test_create_records_actor_and_ledger_entry(session, seed):
    service = ArticleService(session)

    article = await service.create_article(
        seed.week, "Sports day", "Bring water", author="PE dept", actor_id=seed.editor
    )

    assert article.article_order == 1
    assert article.is_published is False
    assert article.visibility_type == "public"
    assert article.restricted_to_classes is None
    assert article.created_by == seed.editor
    assert len(article.short_id) == 6

    history = await RevisionLedger(session).history(article.id)
    assert [e.operation for e in history] == ["create"]
    assert history[0].old_values is None
    assert history[0].new_values["title"] == "Sports day"
    assert history[0].changed_by == seed.editor


async def test_create_class_restricted_deduplicates_classes(session, seed):
    service = ArticleService(session)

    article = await service.create_article(
        seed.week, "A1 trip", "Details", visibility_type="class_restricted",
        restricted_to_classes=["A1", "A1"], actor_id=seed.editor,
    )

    assert article.restricted_to_classes == ["A1"]


async def test_create_rejects_restricted_without_classes(session, seed):
    service = ArticleService(session)

    with pytest.raises(EmptyClassRestriction):
        await service.create_article(
            seed.week, "Trip", "Details", visibility_type="class_restricted",
            restricted_to_classes=[], actor_id=seed.editor,
        )


async def test_create_rejects_public_with_classes(session, seed):
    service = ArticleService(session)

    with pytest.raises(EmptyClassRestriction):
        await service.create_article(
            seed.week, "Trip", "Details", visibility_type="public",
            restricted_to_classes=["A1"], actor_id=seed.editor,
        )


async def test_create_rejects_unknown_class(session, seed):
    service = ArticleService(session)

    with pytest.raises(InvalidClassReference) as exc:
        await service.create_article(
            seed.week, "Trip", "Details", visibility_type="class_restricted",
            restricted_to_classes=["A1", "Z9"], actor_id=seed.editor,
        )
    assert exc.value.class_ids == ["Z9"]


async def test_create_in_unknown_week(session, seed):
    service = ArticleService(session)

    with pytest.raises(WeekNotFound):
        await service.create_article("2030-W01", "Title", "Body", actor_id=seed.editor)


# ------------------------------------------------------------------
# Update
# ------------------------------------------------------------------
async def test_update_changes_fields_and_appends_ledger(session, seed):
    service = ArticleService(session)
    article = await service.create_article(seed.week, "Draft", "Body", actor_id=seed.editor)

    result = await service.update_article(article.id, {"title": "Final"}, actor_id=seed.admin)

    assert result.article.title == "Final"
    assert result.article.updated_by == seed.admin
    assert result.conflict is None
    history = await RevisionLedger(session).history(article.id)
    assert [e.operation for e in history] == ["update", "create"]
    assert history[0].old_values["title"] == "Draft"
    assert history[0].new_values["title"] == "Final"


async def test_switching_to_public_clears_classes(session, seed):
    service = ArticleService(session)
    article = await service.create_article(
        seed.week, "A1 only", "Body", visibility_type="class_restricted",
        restricted_to_classes=["A1"], actor_id=seed.editor,
    )

    result = await service.update_article(article.id, {"visibility_type": "public"}, actor_id=seed.editor)

    assert result.article.visibility_type == "public"
    assert result.article.restricted_to_classes is None


async def test_update_rejects_restriction_without_classes(session, seed):
    service = ArticleService(session)
    article = await service.create_article(seed.week, "Public", "Body", actor_id=seed.editor)
    article_id = article.id

    with pytest.raises(EmptyClassRestriction):
        await service.update_article(article_id, {"visibility_type": "class_restricted"}, actor_id=seed.editor)

    unchanged = await service.get_article(article_id)
    assert unchanged.visibility_type == "public"
    assert len(await RevisionLedger(session).history(article_id)) == 1


async def test_last_write_wins_reports_conflict(session, seed):
    service = ArticleService(session)
    article = await service.create_article(seed.week, "Original", "Body", actor_id=seed.editor)
    loaded = ArticleVersion.model_validate(article)

    first = await service.update_article(article.id, {"title": "Editor one"}, loaded, actor_id=seed.editor)
    assert first.conflict.has_conflict is False

    second = await service.update_article(article.id, {"title": "Editor two"}, loaded, actor_id=seed.admin)

    assert second.conflict.has_conflict is True
    assert "title" in second.conflict.changed_fields
    assert second.conflict.last_modified_by == seed.editor
    assert second.conflict.remote_version.title == "Editor one"
    assert second.article.title == "Editor two"


async def test_detect_conflict_without_writing(session, seed):
    service = ArticleService(session)
    article = await service.create_article(seed.week, "Original", "Body", actor_id=seed.editor)
    loaded = ArticleVersion.model_validate(article)
    await service.update_article(article.id, {"content": "New body"}, actor_id=seed.editor)

    report = await service.detect_conflict(article.id, loaded, actor_id=seed.admin)

    assert report.has_conflict is True
    assert "content" in report.changed_fields
    assert len(await RevisionLedger(session).history(article.id)) == 2


async def test_reject_stale_policy_blocks_write(session, seed):
    service = ArticleService(session, policy=WritePolicy.REJECT_STALE)
    article = await service.create_article(seed.week, "Original", "Body", actor_id=seed.editor)
    article_id = article.id
    loaded = ArticleVersion.model_validate(article)
    await service.update_article(article_id, {"title": "Editor one"}, loaded, actor_id=seed.editor)

    with pytest.raises(EditConflict):
        await service.update_article(article_id, {"title": "Editor two"}, loaded, actor_id=seed.admin)

    current = await service.get_article(article_id)
    assert current.title == "Editor one"


async def test_update_unknown_article(session, seed):
    service = ArticleService(session)

    with pytest.raises(ArticleNotFound):
        await service.update_article(uuid.uuid4(), {"title": "x"}, actor_id=seed.editor)


async def test_update_rejects_unknown_field_without_touching_row(session, seed):
    service = ArticleService(session)
    article = await service.create_article(seed.week, "Title", "Body", actor_id=seed.editor)
    article_id = article.id

    with pytest.raises(InvalidArticleField) as exc:
        await service.update_article(article_id, {"shared_with": ["A1"], "title": "x"}, actor_id=seed.editor)

    assert exc.value.code == "INVALID_ARTICLE_FIELD"
    assert exc.value.details == {"fields": ["shared_with"]}
    assert (await service.get_article(article_id)).title == "Title"
    assert len(await RevisionLedger(session).history(article_id)) == 1


async def test_unknown_visibility_type_is_a_domain_error(session, seed):
    service = ArticleService(session)

    with pytest.raises(InvalidArticleField) as exc:
        await service.validate_restriction("secret", None)

    assert exc.value.status_code == 422
    assert exc.value.details["visibility_type"] == "secret"


# ------------------------------------------------------------------
# Restriction and publishing helpers
# ------------------------------------------------------------------
async def test_set_and_remove_class_restriction(session, seed):
    service = ArticleService(session)
    article = await service.create_article(seed.week, "Notice", "Body", actor_id=seed.editor)

    restricted = await service.set_article_class_restriction(article.id, ["B1", "A1"], actor_id=seed.editor)
    assert restricted.visibility_type == "class_restricted"
    assert restricted.restricted_to_classes == ["B1", "A1"]

    public = await service.remove_article_class_restriction(article.id, actor_id=seed.editor)
    assert public.visibility_type == "public"
    assert public.restricted_to_classes is None


async def test_set_restriction_rejects_empty_list(session, seed):
    service = ArticleService(session)
    article = await service.create_article(seed.week, "Notice", "Body", actor_id=seed.editor)

    with pytest.raises(EmptyClassRestriction):
        await service.set_article_class_restriction(article.id, [], actor_id=seed.editor)


async def test_publish_and_unpublish(session, seed):
    service = ArticleService(session)
    article = await service.create_article(seed.week, "Notice", "Body", actor_id=seed.editor)

    assert (await service.publish_article(article.id, actor_id=seed.editor)).is_published is True
    assert (await service.unpublish_article(article.id, actor_id=seed.editor)).is_published is False


# ------------------------------------------------------------------
# Delete / restore
# ------------------------------------------------------------------
async def test_soft_delete_hides_article_but_keeps_history(session, seed):
    service = ArticleService(session)
    article = await service.create_article(seed.week, "Gone soon", "Body", is_published=True, actor_id=seed.editor)
    article_id = article.id

    deleted = await service.delete_article(article_id, actor_id=seed.editor)
    assert deleted.deleted_at is not None
    assert deleted.is_published is False

    with pytest.raises(ArticleNotFound):
        await service.get_article(article_id)
    with pytest.raises(ArticleNotFound):
        await service.delete_article(article_id, actor_id=seed.editor)

    history = await service.get_article_history(article_id, actor_id=seed.editor)
    assert [e.operation for e in history] == ["delete", "create"]
    assert history[0].new_values["deleted_at"] is not None

    listing = await service.list_week_articles(seed.week, actor_id=seed.editor)
    assert listing == []
    with_deleted = await service.list_week_articles(seed.week, include_deleted=True, actor_id=seed.editor)
    assert [a.id for a in with_deleted] == [article_id]


async def test_restore_brings_article_back(session, seed):
    service = ArticleService(session)
    article = await service.create_article(seed.week, "Back again", "Body", actor_id=seed.editor)
    article_id = article.id
    await service.delete_article(article_id, actor_id=seed.editor)

    restored = await service.restore_article(article_id, actor_id=seed.admin)

    assert restored.deleted_at is None
    assert (await service.get_article(article_id)).title == "Back again"
    history = await service.get_article_history(article_id, actor_id=seed.admin)
    assert [e.operation for e in history] == ["update", "delete", "create"]


async def test_restore_rechecks_order(session, seed):
    service = ArticleService(session)
    article = await service.create_article(seed.week, "Old", "Body", actor_id=seed.editor)
    article_id = article.id
    await service.delete_article(article_id, actor_id=seed.editor)
    await service.create_article(seed.week, "Replacement", "Body", article_order=1, actor_id=seed.editor)

    with pytest.raises(DuplicateOrder):
        await service.restore_article(article_id, actor_id=seed.editor)
