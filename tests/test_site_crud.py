"""Site record lifecycle: create, save/claim, ownership, listing, publish."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from builder_service.app.crud import site_crud
from builder_service.app.enum.site_enum import UNTITLED_SITE
from builder_service.app.schemas.sites_schemas import SiteCreate
from shared.core.config import settings
from shared.core.exceptions import (Forbidden, InternalError, NotFound,
                                    Unauthorized, ValidationError)

from conftest import user

PLUMBER = dict(template_id="classic-pro-plumber", business_type="services", category="plumber")


def new_site(db, owner=None, **overrides):
    fields = {**PLUMBER, **overrides}
    return site_crud.create_site(db, SiteCreate(**fields), user(owner) if owner else None)


class TestCreate:
    def test_guest_site_is_unowned_and_empty(self, seeded_db) -> None:
        site = new_site(seeded_db)
        assert site.owner_id is None
        assert site.design_data == {}
        assert site.template_id == "classic-pro-plumber"
        assert site.published_at is None
        assert site.site_slug.startswith("site-")

    def test_signed_in_site_is_owned(self, seeded_db) -> None:
        site = new_site(seeded_db, owner="u-1")
        assert site.owner_id == "u-1"

    def test_ids_are_unique(self, seeded_db) -> None:
        ids = {new_site(seeded_db).id for _ in range(5)}
        assert len(ids) == 5

    def test_legacy_template_field(self, seeded_db) -> None:
        site = site_crud.create_site(seeded_db, SiteCreate(
            selected_template_id="modern-blue-plumber", business_type="services",
            category="plumber"))
        assert site.template_id == "modern-blue-plumber"

    @pytest.mark.parametrize("missing", ["template_id", "business_type", "category"])
    def test_missing_field(self, seeded_db, missing: str) -> None:
        fields = {**PLUMBER, missing: ""}
        with pytest.raises(ValidationError):
            site_crud.create_site(seeded_db, SiteCreate(**fields))

    def test_unknown_template(self, seeded_db) -> None:
        with pytest.raises(NotFound):
            new_site(seeded_db, template_id="does-not-exist")


class TestSave:
    def test_scenario_claim_then_reject(self, seeded_db) -> None:
        site = new_site(seeded_db)
        assert site.owner_id is None

        saved = site_crud.save_site(seeded_db, site.id, {"title": "Acme"}, user("U1"))
        assert saved.owner_id == "U1"
        assert saved.design_data["title"] == "Acme"

        with pytest.raises(Forbidden):
            site_crud.save_site(seeded_db, site.id, {"tagline": "Fast"}, user("U2"))
        seeded_db.expire_all()
        stored = site_crud.get_site(seeded_db, site.id)
        assert stored.owner_id == "U1"
        assert stored.design_data == {"title": "Acme"}

    def test_guest_save_claims_site(self, seeded_db) -> None:
        site = new_site(seeded_db)
        saved = site_crud.save_site(seeded_db, site.id, {"heroTitle": "Acme"}, user("U1"))
        assert saved.owner_id == "U1"
        assert saved.design_data == {"heroTitle": "Acme"}

    def test_save_merges_shallowly(self, seeded_db) -> None:
        site = new_site(seeded_db, owner="U1")
        site_crud.save_site(seeded_db, site.id, {"heroTitle": "Acme", "colors": {"primary": "#000"}},
                            user("U1"))
        saved = site_crud.save_site(seeded_db, site.id, {"colors": {"accent": "#fff"}}, user("U1"))
        assert saved.design_data == {"heroTitle": "Acme", "colors": {"accent": "#fff"}}

    def test_same_patch_twice_is_idempotent(self, seeded_db) -> None:
        site = new_site(seeded_db, owner="U1")
        first = dict(site_crud.save_site(seeded_db, site.id, {"heroTitle": "A"}, user("U1")).design_data)
        second = dict(site_crud.save_site(seeded_db, site.id, {"heroTitle": "A"}, user("U1")).design_data)
        assert first == second

    def test_save_bumps_updated_at(self, seeded_db) -> None:
        site = new_site(seeded_db, owner="U1")
        site.updated_at = datetime(2020, 1, 1)
        seeded_db.commit()
        saved = site_crud.save_site(seeded_db, site.id, {"heroTitle": "A"}, user("U1"))
        assert saved.updated_at > datetime(2020, 1, 1)

    def test_other_user_is_forbidden_and_record_unchanged(self, seeded_db) -> None:
        site = new_site(seeded_db)
        site_crud.save_site(seeded_db, site.id, {"heroTitle": "Mine"}, user("U1"))

        with pytest.raises(Forbidden):
            site_crud.save_site(seeded_db, site.id, {"heroTitle": "Theirs"}, user("U2"))

        seeded_db.expire_all()
        stored = site_crud.get_site(seeded_db, site.id)
        assert stored.owner_id == "U1"
        assert stored.design_data == {"heroTitle": "Mine"}

    def test_anonymous_save_rejected(self, seeded_db) -> None:
        site = new_site(seeded_db)
        with pytest.raises(Unauthorized):
            site_crud.save_site(seeded_db, site.id, {"heroTitle": "x"}, None)

    def test_unknown_site(self, seeded_db) -> None:
        with pytest.raises(NotFound):
            site_crud.save_site(seeded_db, "missing", {}, user("U1"))

    def test_storage_failure_leaves_record_unchanged(self, seeded_db, monkeypatch) -> None:
        site = new_site(seeded_db)
        site.design_data = {"title": "Draft"}
        site.updated_at = datetime(2024, 1, 1)
        seeded_db.commit()

        def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        monkeypatch.setattr(seeded_db, "commit", failing_commit)
        with pytest.raises(InternalError):
            site_crud.save_site(seeded_db, site.id, {"title": "Acme", "tagline": "Fast"}, user("U1"))
        monkeypatch.undo()

        seeded_db.expire_all()
        stored = site_crud.get_site(seeded_db, site.id)
        assert stored.design_data == {"title": "Draft"}
        assert stored.owner_id is None
        assert stored.updated_at == datetime(2024, 1, 1)


class TestListing:
    def test_sites_newest_first_with_titles(self, seeded_db) -> None:
        older = new_site(seeded_db, owner="U1")
        newer = new_site(seeded_db, owner="U1")
        new_site(seeded_db, owner="U2")
        older.design_data = {"title": "Old Shop"}
        older.updated_at = datetime(2024, 1, 1)
        newer.updated_at = datetime(2024, 1, 1) + timedelta(days=1)
        seeded_db.commit()

        result = site_crud.get_user_sites(seeded_db, user("U1"))
        assert result.count == 2
        assert [s.id for s in result.sites] == [newer.id, older.id]
        assert result.sites[0].title == UNTITLED_SITE
        assert result.sites[1].title == "Old Shop"
        assert result.sites[0].published is False

    def test_latest_site(self, seeded_db) -> None:
        first = new_site(seeded_db, owner="U1")
        second = new_site(seeded_db, owner="U1")
        first.updated_at = datetime(2024, 5, 1)
        second.updated_at = datetime(2024, 4, 1)
        seeded_db.commit()
        assert site_crud.get_latest_site_by_owner(seeded_db, user("U1")).id == first.id

    def test_no_sites(self, seeded_db) -> None:
        assert site_crud.get_user_sites(seeded_db, user("nobody")).count == 0
        with pytest.raises(NotFound):
            site_crud.get_latest_site_by_owner(seeded_db, user("nobody"))

    def test_requires_identity(self, seeded_db) -> None:
        with pytest.raises(Unauthorized):
            site_crud.list_sites_by_owner(seeded_db, None)


class TestPublish:
    def test_publish_sets_timestamp_once(self, seeded_db) -> None:
        site = new_site(seeded_db, owner="U1")
        published = site_crud.publish_site(seeded_db, site.id, user("U1"))
        first_published_at = published.published_at
        assert first_published_at is not None

        again = site_crud.publish_site(seeded_db, site.id, user("U1"))
        assert again.published_at == first_published_at

    def test_publish_claims_guest_site(self, seeded_db) -> None:
        site = new_site(seeded_db)
        assert site_crud.publish_site(seeded_db, site.id, user("U1")).owner_id == "U1"

    def test_custom_domain_normalised(self, seeded_db) -> None:
        site = new_site(seeded_db, owner="U1")
        published = site_crud.publish_site(seeded_db, site.id, user("U1"), "WWW.Acme-Plumbing.com:443")
        assert published.custom_domain == "www.acme-plumbing.com"

    @pytest.mark.parametrize("domain", ["not a domain", "localhost", "keystoneweb.com", "x.vercel.app"])
    def test_rejected_domains(self, seeded_db, domain: str) -> None:
        site = new_site(seeded_db, owner="U1")
        with pytest.raises(ValidationError):
            site_crud.publish_site(seeded_db, site.id, user("U1"), domain)

    def test_domain_already_taken(self, seeded_db) -> None:
        first = new_site(seeded_db, owner="U1")
        second = new_site(seeded_db, owner="U2")
        site_crud.publish_site(seeded_db, first.id, user("U1"), "acme.com")
        with pytest.raises(ValidationError):
            site_crud.publish_site(seeded_db, second.id, user("U2"), "acme.com")

    def test_other_user_cannot_publish(self, seeded_db) -> None:
        site = new_site(seeded_db, owner="U1")
        with pytest.raises(Forbidden):
            site_crud.publish_site(seeded_db, site.id, user("U2"))


class TestTenantLookup:
    def test_by_custom_domain(self, seeded_db) -> None:
        site = new_site(seeded_db, owner="U1")
        site_crud.publish_site(seeded_db, site.id, user("U1"), "acme.com")
        assert site_crud.get_published_site_by_host(seeded_db, "ACME.com:80").id == site.id

    def test_unpublished_site_is_not_served(self, seeded_db) -> None:
        site = new_site(seeded_db, owner="U1")
        site.custom_domain = "draft.com"
        seeded_db.commit()
        with pytest.raises(NotFound):
            site_crud.get_published_site_by_host(seeded_db, "draft.com")

    def test_by_slug_under_sites_root(self, seeded_db, monkeypatch) -> None:
        monkeypatch.setattr(settings, "SITES_ROOT_DOMAIN", "keystonesites.com")
        site = new_site(seeded_db, owner="U1")
        site_crud.publish_site(seeded_db, site.id, user("U1"))
        found = site_crud.get_published_site_by_host(
            seeded_db, f"{site.site_slug}.keystonesites.com")
        assert found.id == site.id

    def test_unknown_host(self, seeded_db) -> None:
        with pytest.raises(NotFound):
            site_crud.get_published_site_by_host(seeded_db, "nobody.example.com")
