"""End-to-end tests through the bundled Record implementation."""

from __future__ import annotations

import datetime as dt
import uuid

import pytest
from pydantic import ValidationError

from revisions import Record, Revisions, Version, on, versioned
from revisions.errors import VersionNotFound


@versioned(keep=2)
class Article(Record):
    title: str = ""
    body: str = ""
    words: int = 0


@versioned(exclude=["secret"], automatic=False)
class Draft(Record):
    title: str = ""
    secret: str | None = None


class Plain(Record):
    title: str = ""


@versioned(exclude=["title"])
class Headline(Record):
    title: str
    words: int = 0


class TestWiring:
    """Tests for bootstrap and runtime wiring."""

    def test_unwired_record(self) -> None:
        with pytest.raises(RuntimeError):
            Article(title="x").save()

    def test_runtime_singleton(self, engine) -> None:
        try:
            rt = Revisions.init(engine=engine)
            assert Revisions.instance() is rt
            assert Revisions.init(engine=engine) is rt
            assert Article._versions is rt.versions
        finally:
            Revisions.reset()
        assert Article._versions is None

    def test_from_env(self, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("REVISIONS_DATABASE_URL", f"sqlite:///{tmp_path / 'env.db'}")
        try:
            rt = Revisions.from_env()
            assert str(rt.engine.url).endswith("env.db")
            assert Article(title="x").save().number == 1
        finally:
            Revisions.reset()

    def test_init_requires_target(self) -> None:
        with pytest.raises(ValueError):
            Revisions.init()


@pytest.mark.usefixtures("wired")
class TestEndToEnd:
    """Tests for the full save/prune/navigate flow."""

    def test_retention_scenario(self) -> None:
        """Test keep=2: three saves leave versions 2 and 3."""
        article = Article(title="first")
        assert article.is_unversioned()
        assert article.version_number == 0
        assert article.versions.current() is None

        assert article.save().number == 1
        assert article.version_number == 1

        article.title = "second"
        article.save()
        article.title = "third"
        article.save()

        assert article.versions.numbers() == [3, 2]
        assert article.versions.previous(3).number == 2
        assert article.versions.get(1) is None
        with pytest.raises(VersionNotFound):
            article.revert_to_version(1)

    def test_navigation(self) -> None:
        article = Article(title="a")
        article.save()
        article.title = "b"
        article.save()

        first = article.versions.first()
        current = article.versions.current()

        assert isinstance(first, Version)
        assert article.versions.next(first) == current
        assert article.versions.previous(current) == first
        assert article.versions.next(current) is None
        assert article.versions.previous(first) is None
        assert len(article.versions) == 2
        assert article.is_versioned()

    def test_version_model(self) -> None:
        """Test a version can be turned back into an Article."""
        article = Article(title="original", words=3)
        article.save()
        article.title = "edited"
        article.save()

        old = article.versions.first().model()

        assert isinstance(old, Article)
        assert old.title == "original"
        assert old.id == article.id

    def test_version_model_with_excluded_required_field(self) -> None:
        """Test excluded fields are left unset instead of failing validation."""
        headline = Headline(title="Big news", words=4)
        version = headline.save()

        old = version.model()

        assert isinstance(old, Headline)
        assert old.words == 4
        assert old.id == headline.id
        assert "title" not in old.model_fields_set

    def test_version_handle_navigation(self) -> None:
        article = Article(title="a")
        v1 = article.save()
        article.title = "b"
        v2 = article.save()

        assert v1.next().number == v2.number
        assert v2.previous().id == v1.id
        assert v2.next() is None
        assert v1.previous(store=article.versions.store) is None

    def test_save_survives_broken_version_storage(self, wired, engine) -> None:
        """Test the record is saved even when its snapshot cannot be written."""
        from revisions.persistence.models import VersionRow

        failures = []
        on.snapshot_failed(Article)(lambda record, exc: failures.append(exc))
        VersionRow.__table__.drop(engine)
        article = Article(title="kept")

        assert article.save() is None

        assert Article.load(article.id).title == "kept"
        assert len(failures) == 1

    def test_destroy_keeps_record_when_versions_fail(self, wired, monkeypatch) -> None:
        from revisions.errors import PersistenceError

        versions, _ = wired
        article = Article(title="a")
        article.save()

        def broken(owner):
            raise PersistenceError("versions locked")

        monkeypatch.setattr(versions, "delete_all", broken)

        with pytest.raises(PersistenceError):
            article.destroy()
        assert Article.load(article.id).title == "a"

    def test_revert(self) -> None:
        article = Article(title="v1", body="one", words=1)
        article.save()
        created = article.created_at
        article.title, article.body, article.words = "v2", "two", 2
        article.save()

        restored = article.revert_to_version(1)

        assert (article.title, article.body, article.words) == ("v1", "one", 1)
        assert article.created_at == created
        assert "updated_at" not in restored
        # the save after a revert is an ordinary save
        assert article.version_number == 3
        assert Article.load(article.id).title == "v1"

    def test_revert_by_handle_with_except(self) -> None:
        article = Article(title="v1", words=1)
        article.save()
        v1 = article.versions.current()
        article.title, article.words = "v2", 2
        article.save()

        article.revert_to_version(v1, except_=["words", "created_at", "updated_at"])

        assert (article.title, article.words) == ("v1", 2)

    def test_revert_is_validated(self) -> None:
        """Test an invalid snapshot value is rejected and nothing is applied."""
        article = Article(title="ok", words=5)
        article.save()
        versions = article._versions
        versions.create_version(article.identity(), {"title": "bad", "words": "lots"})

        with pytest.raises(ValidationError):
            article.revert_to_version(2)
        assert (article.title, article.words) == ("ok", 5)

    def test_with_versioning(self) -> None:
        article = Article(title="a")
        article.save()

        with article.with_versioning(False):
            article.title = "quiet"
            assert article.save() is None
        assert article.versioning_enabled is True

        with pytest.raises(KeyError):
            with article.with_versioning(False):
                raise KeyError("boom")
        assert article.versioning_enabled is True
        assert article.version_number == 1

    def test_manual_type(self) -> None:
        draft = Draft(title="t", secret="s3cret")

        assert draft.save() is None
        assert draft.versioning_enabled is False

        draft.set_versioning(True)
        version = draft.save()

        assert version.number == 1
        assert "secret" not in version.attributes()
        assert Draft(title="fresh").versioning_enabled is False

    def test_unversioned_type(self) -> None:
        plain = Plain(title="x")

        assert plain.save() is None
        assert plain.versioning_enabled is False
        assert plain.version_number == 0
        with pytest.raises(TypeError):
            plain.with_versioning(True)

    def test_destroy_cascades(self) -> None:
        article = Article(title="a")
        article.save()
        article.save()
        other = Article(title="b")
        other.save()

        article.destroy()

        assert article.is_unversioned()
        assert other.version_number == 1
        with pytest.raises(KeyError):
            Article.load(article.id)

    def test_load_round_trip(self) -> None:
        article = Article(title="persisted", words=9)
        article.save()

        loaded = Article.load(str(article.id))

        assert loaded.title == "persisted"
        assert isinstance(loaded.id, uuid.UUID)
        assert isinstance(loaded.created_at, dt.datetime)
        assert loaded.version_number == 1

    def test_set_attributes_rejects_unknown(self) -> None:
        article = Article(title="a")

        with pytest.raises(ValueError):
            article.set_attributes({"nope": 1})

    def test_version_created_event(self) -> None:
        seen = []

        @on.version_created(Record)
        def remember(record, version):
            seen.append((type(record).__name__, version.number))

        Article(title="a").save()
        Draft(title="b").save()  # manual, no version

        assert seen == [("Article", 1)]
