"""
Tests d'intégration de l'import bootstrap (SQLite en mémoire).

Couvre: premier import, idempotence, dry-run, désactivation et réactivation, collisions de slugs,
ordre manuel encodé dans les horodatages, agrégation `meta`, erreurs de validation et de
persistance, mode atomique.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError

from siteapi.domain.errors import PersistenceError, SnapshotValidationError
from siteapi.domain.meta_values import as_utc
from siteapi.infra.repo.models import MetaORM, NowEntryORM, PostORM, ProjectORM, UseSectionORM
from siteapi.infra.repo.store import SqlStore
from siteapi.services.bootstrap_import import run_import
from tests.fakes import make_project

EXECUTED_AT = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _count(session, model, active_only=False) -> int:
    stmt = select(func.count()).select_from(model)
    if active_only:
        stmt = stmt.where(model.is_active.is_(True))
    return session.execute(stmt).scalar_one()


def _meta(session) -> dict:
    return {row.key: row.value for row in session.execute(select(MetaORM.key, MetaORM.value))}


def _row(session, model, **filters):
    return session.execute(select(model).filter_by(**filters)).scalar_one()


def test_first_apply_inserts_rows_and_meta(session, snapshot_data):
    summary = run_import(session, snapshot_data, "apply", EXECUTED_AT)

    assert summary.mode == "apply"
    assert summary.uses.inserted == 2
    assert summary.now_entries.inserted == 2
    assert summary.projects.inserted == 2
    assert summary.posts.inserted == 2
    assert summary.meta.as_dict() == {"inserted": 6, "updated": 0, "unchanged": 0}

    for model in (UseSectionORM, NowEntryORM, ProjectORM, PostORM):
        assert _count(session, model, active_only=True) == 2

    meta = _meta(session)
    assert meta == {
        "uses_last_updated": "2026-02-20T00:00:00.000Z",
        "now_last_updated": "2026-02-21T00:00:00.000Z",
        "projects_last_updated": "2026-02-22T00:00:00.000Z",
        "posts_last_updated": "2026-02-24T00:00:00.000Z",
        "now_narrative": "Current loop: ship and learn.",
        "global_last_updated": "2026-02-24T00:00:00.000Z",
    }


def test_slugs_follow_kind_prefixes(session, snapshot_data):
    run_import(session, snapshot_data, "apply", EXECUTED_AT)

    assert {r for (r,) in session.execute(select(UseSectionORM.slug))} == {
        "uses-dev-stack",
        "uses-ai-stack",
    }
    assert {r for (r,) in session.execute(select(NowEntryORM.slug))} == {
        "now-focus",
        "now-learning",
    }
    assert {r for (r,) in session.execute(select(ProjectORM.slug))} == {
        "active-projects-project-one",
        "ai-projects-project-two",
    }
    assert {r for (r,) in session.execute(select(PostORM.slug))} == {
        "building-with-agents",
        "shipping-principles",
    }


def test_second_apply_is_idempotent(session, snapshot_data):
    run_import(session, snapshot_data, "apply", EXECUTED_AT)
    second = run_import(session, snapshot_data, "apply", EXECUTED_AT + timedelta(days=1))

    for kind in (second.uses, second.now_entries, second.projects, second.posts):
        assert kind.as_dict() == {"inserted": 0, "updated": 0, "deactivated": 0, "unchanged": 2}
    assert second.meta.as_dict() == {"inserted": 0, "updated": 0, "unchanged": 6}
    versions = {v for (v,) in session.execute(select(UseSectionORM.version))}
    assert versions == {1}


def test_dry_run_writes_nothing(session, snapshot_data):
    summary = run_import(session, snapshot_data, "dry-run", EXECUTED_AT)

    assert summary.mode == "dry-run"
    assert summary.uses.inserted == 2
    assert summary.posts.inserted == 2
    assert summary.meta.inserted == 6
    for model in (UseSectionORM, NowEntryORM, ProjectORM, PostORM, MetaORM):
        assert _count(session, model) == 0


def test_dry_run_reports_what_apply_does(session, snapshot_data):
    run_import(session, snapshot_data, "apply", EXECUTED_AT)
    snapshot_data["projects"]["items"][0]["summary"] = "Changed summary."
    del snapshot_data["uses"]["sections"][1]

    preview = run_import(session, snapshot_data, "dry-run", EXECUTED_AT)
    applied = run_import(session, snapshot_data, "apply", EXECUTED_AT)

    assert preview.as_dict() | {"mode": None} == applied.as_dict() | {"mode": None}
    assert applied.projects.updated == 1
    assert applied.uses.deactivated == 1


def test_stale_rows_are_deactivated(session, snapshot_data):
    run_import(session, snapshot_data, "apply", EXECUTED_AT)
    for group, key in (("uses", "sections"), ("now", "entries"), ("projects", "items")):
        snapshot_data[group][key] = snapshot_data[group][key][:1]
    snapshot_data["posts"]["items"] = snapshot_data["posts"]["items"][:1]

    second = run_import(session, snapshot_data, "apply", EXECUTED_AT)

    for kind in (second.uses, second.now_entries, second.projects, second.posts):
        assert kind.deactivated == 1
        assert kind.unchanged == 1
    stale_use = _row(session, UseSectionORM, title="AI stack")
    assert stale_use.is_active is False
    assert stale_use.version == 2
    assert as_utc(stale_use.updated_at) == datetime(2026, 2, 20, tzinfo=UTC)
    assert _row(session, NowEntryORM, label="Learning").is_active is False
    assert _row(session, ProjectORM, title="Project Two").is_active is False
    assert _row(session, PostORM, slug="shipping-principles").version == 2

    # already inactive rows are neither touched nor counted again
    third = run_import(session, snapshot_data, "apply", EXECUTED_AT)
    assert third.uses.as_dict() == {"inserted": 0, "updated": 0, "deactivated": 0, "unchanged": 1}
    assert _row(session, UseSectionORM, title="AI stack").version == 2


def test_reappearing_row_is_reactivated(session, snapshot_data):
    full = [dict(item) for item in snapshot_data["projects"]["items"]]
    run_import(session, snapshot_data, "apply", EXECUTED_AT)
    snapshot_data["projects"]["items"] = full[:1]
    run_import(session, snapshot_data, "apply", EXECUTED_AT)
    snapshot_data["projects"]["items"] = full

    summary = run_import(session, snapshot_data, "apply", EXECUTED_AT)

    assert summary.projects.updated == 1
    assert summary.projects.unchanged == 1
    project = _row(session, ProjectORM, slug="ai-projects-project-two")
    assert project.is_active is True
    assert project.version == 3


def test_duplicate_titles_get_suffixed_slugs(session, snapshot_data):
    snapshot_data["projects"]["items"] = [
        make_project("Same Name"),
        make_project("Same Name"),
        make_project("Same Name", source_group="ai_projects"),
    ]

    summary = run_import(session, snapshot_data, "apply", EXECUTED_AT)

    assert summary.projects.inserted == 3
    assert {s for (s,) in session.execute(select(ProjectORM.slug))} == {
        "active-projects-same-name",
        "active-projects-same-name-2",
        "ai-projects-same-name",
    }


def test_summary_only_change_is_an_update(session, snapshot_data):
    run_import(session, snapshot_data, "apply", EXECUTED_AT)
    snapshot_data["projects"]["items"][1]["summary"] = "Refreshed summary."

    summary = run_import(session, snapshot_data, "apply", EXECUTED_AT)

    assert summary.projects.as_dict() == {
        "inserted": 0,
        "updated": 1,
        "deactivated": 0,
        "unchanged": 1,
    }
    project = _row(session, ProjectORM, slug="ai-projects-project-two")
    assert project.summary == "Refreshed summary."
    assert project.version == 2


def test_manual_order_is_encoded_in_timestamps(session, snapshot_data):
    run_import(session, snapshot_data, "apply", EXECUTED_AT)

    base = datetime(2026, 2, 20, tzinfo=UTC)
    first = _row(session, UseSectionORM, slug="uses-dev-stack")
    second = _row(session, UseSectionORM, slug="uses-ai-stack")
    assert as_utc(first.updated_at) == base
    assert as_utc(second.updated_at) == base - timedelta(milliseconds=1)
    assert [e.sort_order for e in session.execute(
        select(NowEntryORM).order_by(NowEntryORM.sort_order)
    ).scalars()] == [0, 1]


def test_suffixed_post_slug_never_collides_with_literal_slug(session, snapshot_data):
    template = snapshot_data["posts"]["items"][0]
    snapshot_data["posts"]["items"] = [
        {**template, "slug": slug, "title": f"Notes {i}"}
        for i, slug in enumerate(("notes", "notes", "notes-2"))
    ]

    preview = run_import(session, snapshot_data, "dry-run", EXECUTED_AT)
    applied = run_import(session, snapshot_data, "apply", EXECUTED_AT)

    assert preview.posts.inserted == applied.posts.inserted == 3
    assert [s for (s,) in session.execute(select(PostORM.slug).order_by(PostORM.id))] == [
        "notes",
        "notes-2",
        "notes-2-2",
    ]


@pytest.mark.parametrize(
    ("executed_at", "expected_global"),
    [
        (datetime(2026, 1, 1, tzinfo=UTC), "2026-02-20T00:00:00.000Z"),
        (datetime(2026, 3, 1, 12, 0, tzinfo=UTC), "2026-03-01T12:00:00.000Z"),
    ],
)
def test_uses_only_snapshot_writes_every_timestamp(
    session, snapshot_data, executed_at, expected_global
):
    """Groupes absents: horodatage d'exécution; global = maximum des horodatages résolus."""
    uses_only = {"uses": snapshot_data["uses"]}
    executed_iso = executed_at.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    summary = run_import(session, uses_only, "apply", executed_at)

    assert summary.uses.inserted == 2
    assert summary.now_entries.inserted == summary.projects.inserted == 0
    meta = _meta(session)
    assert meta["uses_last_updated"] == "2026-02-20T00:00:00.000Z"
    assert meta["now_last_updated"] == executed_iso
    assert meta["projects_last_updated"] == executed_iso
    assert meta["posts_last_updated"] == executed_iso
    assert meta["global_last_updated"] == expected_global


def test_missing_group_timestamp_falls_back_to_execution_time(session, snapshot_data):
    del snapshot_data["posts"]["lastUpdated"]
    del snapshot_data["uses"]["lastUpdated"]
    early = datetime(2026, 1, 1, tzinfo=UTC)

    run_import(session, snapshot_data, "apply", early)

    meta = _meta(session)
    assert meta["posts_last_updated"] == "2026-01-01T00:00:00.000Z"
    assert meta["uses_last_updated"] == "2026-01-01T00:00:00.000Z"
    # max over resolved group timestamps, not the execution time
    assert meta["global_last_updated"] == "2026-02-22T00:00:00.000Z"


def test_date_only_group_timestamp_is_midnight_utc(session, snapshot_data):
    snapshot_data["now"]["lastUpdated"] = "2026-02-25"

    run_import(session, snapshot_data, "apply", EXECUTED_AT)

    meta = _meta(session)
    assert meta["now_last_updated"] == "2026-02-25T00:00:00.000Z"
    assert meta["global_last_updated"] == "2026-02-25T00:00:00.000Z"


def test_narrative_change_updates_single_meta_key(session, snapshot_data):
    run_import(session, snapshot_data, "apply", EXECUTED_AT)
    snapshot_data["now"]["narrative"] = "New loop."

    summary = run_import(session, snapshot_data, "apply", EXECUTED_AT)

    assert summary.meta.as_dict() == {"inserted": 0, "updated": 1, "unchanged": 5}
    assert _meta(session)["now_narrative"] == "New loop."


def test_invalid_snapshot_fails_before_any_write(session, snapshot_data):
    del snapshot_data["uses"]["sections"][0]["title"]

    with pytest.raises(SnapshotValidationError) as excinfo:
        run_import(session, snapshot_data, "apply", EXECUTED_AT)

    assert excinfo.value.errors
    assert _count(session, UseSectionORM) == 0
    assert _count(session, MetaORM) == 0


def test_naive_timestamp_is_rejected(session, snapshot_data):
    snapshot_data["posts"]["items"][0]["publishedAt"] = "2026-02-20T00:00:00"

    with pytest.raises(SnapshotValidationError):
        run_import(session, snapshot_data, "apply", EXECUTED_AT)


def test_unknown_mode_is_rejected(session, snapshot_data):
    with pytest.raises(SnapshotValidationError):
        run_import(session, snapshot_data, "preview", EXECUTED_AT)


def test_persistence_failure_keeps_earlier_kinds(session, snapshot_data):
    session.execute(text("DROP TABLE projects"))
    session.commit()

    with pytest.raises(PersistenceError) as excinfo:
        run_import(session, snapshot_data, "apply", EXECUTED_AT)

    assert excinfo.value.resource == "projects"
    assert isinstance(excinfo.value.__cause__, SQLAlchemyError)
    # uses and now_entries were committed before the failure
    assert _count(session, UseSectionORM) == 2
    assert _count(session, NowEntryORM) == 2
    assert _count(session, PostORM) == 0
    assert _count(session, MetaORM) == 0


def test_atomic_mode_leaves_commit_to_caller(session, snapshot_data):
    summary = run_import(session, snapshot_data, "apply", EXECUTED_AT, atomic=True)
    assert summary.uses.inserted == 2
    session.rollback()

    for model in (UseSectionORM, NowEntryORM, ProjectORM, PostORM, MetaORM):
        assert _count(session, model) == 0


def test_atomic_failure_leaves_rollback_to_caller(session, snapshot_data, monkeypatch):
    session.execute(text("DROP TABLE projects"))
    session.commit()
    rollbacks = []
    monkeypatch.setattr(SqlStore, "rollback", lambda self: rollbacks.append(True))

    with pytest.raises(PersistenceError) as excinfo:
        run_import(session, snapshot_data, "apply", EXECUTED_AT, atomic=True)

    assert excinfo.value.resource == "projects"
    assert rollbacks == []
    # flushed rows stay in the caller's transaction until it rolls back
    assert _count(session, UseSectionORM) == 2
    session.rollback()
    assert _count(session, UseSectionORM) == 0
