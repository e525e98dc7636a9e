"""Revision ledger reads and reverting to earlier versions."""
import pytest

from newsletter.core.exceptions import InsufficientPermissions, NoPriorValues, RevisionNotFound
from newsletter.models.revision import CREATE, UPDATE
from newsletter.services.article_service import ArticleService
from newsletter.services.revert_service import RevertEngine
from newsletter.services.revision_ledger import RevisionLedger


async def test_revert_restores_prior_values_and_is_logged(session, seed):
    service = ArticleService(session)
    engine = RevertEngine(session, service)
    article = await service.create_article(seed.week, "Original", "First body", actor_id=seed.editor)
    await service.update_article(article.id, {"title": "Changed", "content": "Second body"}, actor_id=seed.editor)
    update_entry = (await RevisionLedger(session).history(article.id))[0]

    result = await engine.revert(article.id, update_entry.id, actor_id=seed.admin)

    assert result.article.title == "Original"
    assert result.article.content == "First body"
    history = await RevisionLedger(session).history(article.id)
    assert [e.operation for e in history] == [UPDATE, UPDATE, CREATE]
    assert history[0].changed_by == seed.admin
    assert history[0].old_values["title"] == "Changed"


async def test_revert_restores_visibility(session, seed):
    service = ArticleService(session)
    engine = RevertEngine(session, service)
    article = await service.create_article(
        seed.week, "Trip", "Body", visibility_type="class_restricted",
        restricted_to_classes=["A1"], actor_id=seed.editor,
    )
    await service.remove_article_class_restriction(article.id, actor_id=seed.editor)
    entry = (await RevisionLedger(session).history(article.id))[0]

    result = await engine.revert(article.id, entry.id, actor_id=seed.editor)

    assert result.article.visibility_type == "class_restricted"
    assert result.article.restricted_to_classes == ["A1"]


async def test_reverting_a_revert_goes_back_again(session, seed):
    service = ArticleService(session)
    engine = RevertEngine(session, service)
    article = await service.create_article(seed.week, "v1", "Body", actor_id=seed.editor)
    await service.update_article(article.id, {"title": "v2"}, actor_id=seed.editor)
    ledger = RevisionLedger(session)

    await engine.revert(article.id, (await ledger.history(article.id))[0].id, actor_id=seed.editor)
    result = await engine.revert(article.id, (await ledger.history(article.id))[0].id, actor_id=seed.editor)

    assert result.article.title == "v2"


async def test_create_entry_has_nothing_to_revert_to(session, seed):
    service = ArticleService(session)
    article = await service.create_article(seed.week, "Only version", "Body", actor_id=seed.editor)
    create_entry = (await RevisionLedger(session).history(article.id))[0]

    with pytest.raises(NoPriorValues):
        await RevertEngine(session, service).revert(article.id, create_entry.id, actor_id=seed.editor)


async def test_entry_of_another_article_is_not_found(session, seed):
    service = ArticleService(session)
    one = await service.create_article(seed.week, "One", "Body", actor_id=seed.editor)
    two = await service.create_article(seed.week, "Two", "Body", actor_id=seed.editor)
    one_id, two_id = one.id, two.id
    await service.update_article(one_id, {"title": "One b"}, actor_id=seed.editor)
    entry_id = (await RevisionLedger(session).history(one_id))[0].id

    with pytest.raises(RevisionNotFound):
        await RevertEngine(session, service).revert(two_id, entry_id, actor_id=seed.editor)
    with pytest.raises(RevisionNotFound):
        await RevertEngine(session, service).revert(one_id, 987654, actor_id=seed.editor)


async def test_parent_cannot_revert(session, seed):
    service = ArticleService(session)
    article = await service.create_article(seed.week, "v1", "Body", actor_id=seed.editor)

    with pytest.raises(InsufficientPermissions):
        await RevertEngine(session, service).revert(article.id, 1, actor_id=seed.parent)


async def test_history_paging_is_newest_first(session, seed):
    service = ArticleService(session)
    article = await service.create_article(seed.week, "t0", "Body", actor_id=seed.editor)
    for n in range(1, 4):
        await service.update_article(article.id, {"title": f"t{n}"}, actor_id=seed.editor)
    ledger = RevisionLedger(session)

    page = await ledger.history(article.id, limit=2, offset=1)

    assert [e.new_values["title"] for e in page] == ["t2", "t1"]


async def test_ledger_rejects_unknown_operation(session):
    with pytest.raises(ValueError):
        RevisionLedger(session).append(None, "truncate", None, None, None)
