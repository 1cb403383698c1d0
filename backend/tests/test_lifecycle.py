"""Tests for the share link lifecycle engine."""

import re
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fileshare import crud, schemas
from fileshare.core.exceptions import (
    AlreadyDeleted,
    Expired,
    IncorrectPassword,
    InvalidStatus,
    NoOp,
    NotFound,
    NotProtected,
    OwnerNotFound,
    PasswordRequired,
    StorageError,
    Unavailable,
)
from fileshare.db.base import Base
from fileshare.models.share import ShareKind, ShareStatus
from fileshare.schemas.share import UploadOptions
from fileshare.services.lifecycle import ShareLifecycle


def make_share(lifecycle, store, owner, kind=ShareKind.USER, key="file-share-app/a_x1.txt", **options):
    store.put(key, b"hello", "text/plain")
    return lifecycle.create_share(
        kind,
        owner=owner,
        storage_key=key,
        public_url=store.public_url(key),
        display_name=key.rsplit("/", 1)[-1],
        mime_type="text/plain",
        size_bytes=5,
        options=UploadOptions(**options),
    )


class TestCreateShare:
    def test_default_expiry_is_ten_days(self, lifecycle, store, clock, user):
        record = make_share(lifecycle, store, user.id)

        assert record.has_expiry is False
        assert record.expires_at == clock.now + timedelta(hours=240)
        assert record.status == ShareStatus.ACTIVE
        assert record.download_count == 0

    def test_explicit_expiry_hours(self, lifecycle, store, clock, user):
        record = make_share(lifecycle, store, user.id, has_expiry=True, expiry_hours=6)

        assert record.has_expiry is True
        assert record.expires_at == clock.now + timedelta(hours=6)

    def test_password_is_hashed(self, lifecycle, store, user):
        record = make_share(lifecycle, store, user.id, is_password=True, password="secret")

        assert record.is_password_protected is True
        assert record.password_hash
        assert record.password_hash != "secret"

    def test_short_url_namespaces(self, lifecycle, store, user):
        user_share = make_share(lifecycle, store, user.id, key="file-share-app/u_1.txt")
        guest_share = make_share(lifecycle, store, "guest_abc", kind=ShareKind.GUEST, key="file-share-app/g_1.txt")

        assert re.fullmatch(r"/f/[A-Za-z0-9_-]+", user_share.short_url)
        assert re.fullmatch(r"/g/[A-Za-z0-9_-]+", guest_share.short_url)
        assert user_share.short_url == f"/f/{user_share.short_code}"
        assert guest_share.owner == "guest_abc"

    def test_unknown_owner(self, lifecycle, store):
        with pytest.raises(OwnerNotFound):
            make_share(lifecycle, store, 999)


class TestResolveForDownload:
    def test_success_counts_and_signs(self, lifecycle, store, db, user):
        record = make_share(lifecycle, store, user.id)

        resolution = lifecycle.resolve_for_download(ShareKind.USER, short_code=record.short_code)

        assert resolution.record.download_count == 1
        assert "sig=" in resolution.download_url
        assert resolution.uploaded_by == "Ada Lovelace"
        key, filename, ttl = store.signed[-1]
        assert key == record.storage_key
        assert filename == record.display_name
        assert ttl == timedelta(hours=24)
        db.refresh(user)
        assert user.total_downloads == 1

    def test_count_increments_once_per_success(self, lifecycle, store, user):
        record = make_share(lifecycle, store, user.id)

        for expected in range(1, 4):
            resolution = lifecycle.resolve_for_download(share_id=record.id)
            assert resolution.record.download_count == expected

    def test_missing(self, lifecycle):
        with pytest.raises(NotFound):
            lifecycle.resolve_for_download(ShareKind.USER, short_code="nope")

    def test_inactive(self, lifecycle, store, user):
        record = make_share(lifecycle, store, user.id)
        lifecycle.set_status(record.id, "inactive")

        with pytest.raises(Unavailable):
            lifecycle.resolve_for_download(share_id=record.id)
        assert record.download_count == 0

    def test_lazy_expiry_flips_on_next_access(self, lifecycle, store, clock, db, user):
        record = make_share(lifecycle, store, user.id, has_expiry=True, expiry_hours=1)
        clock.advance(hours=2)

        # Nothing changes until the record is accessed
        db.refresh(record)
        assert record.status == ShareStatus.ACTIVE

        with pytest.raises(Expired):
            lifecycle.resolve_for_download(short_code=record.short_code)
        db.refresh(record)
        assert record.status == ShareStatus.EXPIRED

        updated_at = record.updated_at
        with pytest.raises(Expired):
            lifecycle.resolve_for_download(short_code=record.short_code)
        db.refresh(record)
        assert record.status == ShareStatus.EXPIRED
        assert record.updated_at == updated_at
        assert record.download_count == 0
        assert store.signed == []

    def test_short_code_path_ignores_password(self, lifecycle, store, user):
        record = make_share(lifecycle, store, user.id, is_password=True, password="secret")

        resolution = lifecycle.resolve_for_download(ShareKind.USER, short_code=record.short_code)

        assert resolution.download_url
        assert resolution.record.download_count == 1

    def test_by_id_requires_password(self, lifecycle, store, user):
        record = make_share(lifecycle, store, user.id, is_password=True, password="secret")

        with pytest.raises(PasswordRequired):
            lifecycle.resolve_for_download(share_id=record.id, enforce_password=True)
        with pytest.raises(IncorrectPassword):
            lifecycle.resolve_for_download(share_id=record.id, password="wrong", enforce_password=True)

        resolution = lifecycle.resolve_for_download(share_id=record.id, password="secret", enforce_password=True)
        assert resolution.record.download_count == 1

    def test_guest_share_skips_user_counters(self, lifecycle, store, db, user):
        record = make_share(lifecycle, store, "guest_q1", kind=ShareKind.GUEST)

        resolution = lifecycle.resolve_for_download(ShareKind.GUEST, short_code=record.short_code)

        assert resolution.uploaded_by == "guest_q1"
        db.refresh(user)
        assert user.total_downloads == 0

    def test_missing_owner_does_not_fail_download(self, lifecycle, store, db, user):
        record = make_share(lifecycle, store, user.id)
        db.delete(user)
        db.commit()

        resolution = lifecycle.resolve_for_download(share_id=record.id)

        assert resolution.uploaded_by == "Unknown"
        assert resolution.record.download_count == 1


class TestStatusAndExpiry:
    def test_set_status_toggles(self, lifecycle, store, user):
        record = make_share(lifecycle, store, user.id)

        assert lifecycle.set_status(record.id, "inactive").status == "inactive"
        assert lifecycle.set_status(record.id, "active").status == "active"

    @pytest.mark.parametrize("status", ["expired", "deleted", "bogus"])
    def test_set_status_rejects_other_values(self, lifecycle, store, user, status):
        record = make_share(lifecycle, store, user.id)

        with pytest.raises(InvalidStatus):
            lifecycle.set_status(record.id, status)

    def test_set_status_unchanged_is_noop_error(self, lifecycle, store, user):
        record = make_share(lifecycle, store, user.id)

        with pytest.raises(NoOp):
            lifecycle.set_status(record.id, "active")

    def test_set_status_missing(self, lifecycle):
        with pytest.raises(NotFound):
            lifecycle.set_status(42, "inactive")

    def test_set_expiry_keeps_status(self, lifecycle, store, clock, user):
        record = make_share(lifecycle, store, user.id)
        lifecycle.set_status(record.id, "inactive")

        updated = lifecycle.set_expiry(record.id, 3)

        assert updated.expires_at == clock.now + timedelta(hours=3)
        assert updated.status == "inactive"

    def test_sweep(self, lifecycle, store, clock, db, user):
        stale = make_share(lifecycle, store, user.id, key="file-share-app/old_1.txt", has_expiry=True, expiry_hours=1)
        fresh = make_share(lifecycle, store, user.id, key="file-share-app/new_1.txt", has_expiry=True, expiry_hours=48)
        clock.advance(hours=5)

        touched = lifecycle.sweep_all_expiries()

        assert [r.id for r in touched] == [stale.id, fresh.id]
        db.refresh(stale)
        db.refresh(fresh)
        assert stale.status == ShareStatus.EXPIRED
        assert stale.has_expiry is True
        assert fresh.status == ShareStatus.ACTIVE
        assert fresh.has_expiry is True
        assert fresh.expires_at == clock.now + timedelta(days=10)

    def test_sweep_skips_deleted(self, lifecycle, store, db, user):
        record = make_share(lifecycle, store, user.id)
        record.status = ShareStatus.DELETED.value
        db.commit()

        assert lifecycle.sweep_all_expiries() == []

    def test_sweep_without_records(self, lifecycle):
        with pytest.raises(NotFound):
            lifecycle.sweep_all_expiries()


class TestPasswords:
    def test_set_password_protects(self, lifecycle, store, user):
        record = make_share(lifecycle, store, user.id)

        updated = lifecycle.set_password(record.id, "hunter2")

        assert updated.is_password_protected is True
        assert lifecycle.verify_password(ShareKind.USER, record.short_code, "hunter2") is True

    def test_set_password_requires_value(self, lifecycle, store, user):
        record = make_share(lifecycle, store, user.id)

        with pytest.raises(PasswordRequired):
            lifecycle.set_password(record.id, "")

    def test_verify_does_not_mutate(self, lifecycle, store, db, user):
        record = make_share(lifecycle, store, user.id, is_password=True, password="secret")

        assert lifecycle.verify_password(ShareKind.USER, record.short_code, "wrong") is False
        assert lifecycle.verify_password(ShareKind.USER, record.short_code, "secret") is True

        db.refresh(record)
        assert record.download_count == 0
        assert record.status == ShareStatus.ACTIVE

    def test_verify_unprotected(self, lifecycle, store, user):
        record = make_share(lifecycle, store, user.id)

        with pytest.raises(NotProtected):
            lifecycle.verify_password(ShareKind.USER, record.short_code, "x")

    def test_verify_uses_namespace(self, lifecycle, store):
        record = make_share(lifecycle, store, "guest_z", kind=ShareKind.GUEST, is_password=True, password="pw")

        assert lifecycle.verify_password(ShareKind.GUEST, record.short_code, "pw") is True
        with pytest.raises(NotProtected):
            lifecycle.verify_password(ShareKind.USER, record.short_code, "pw")


class TestDeleteAndLinks:
    def test_delete_removes_blob_and_record(self, lifecycle, store, db, user):
        record = make_share(lifecycle, store, user.id)
        key = record.storage_key

        lifecycle.delete_share(record.id)

        assert key not in store.blobs
        assert crud.shared_file.get(db, record.id) is None
        with pytest.raises(NotFound):
            lifecycle.delete_share(record.id)

    def test_delete_already_deleted(self, lifecycle, store, db, user):
        record = make_share(lifecycle, store, user.id)
        record.status = ShareStatus.DELETED.value
        db.commit()

        with pytest.raises(AlreadyDeleted):
            lifecycle.delete_share(record.id)
        assert record.storage_key in store.blobs

    def test_delete_keeps_record_when_storage_fails(self, lifecycle, store, db, user):
        record = make_share(lifecycle, store, user.id)
        store.fail_delete = True

        with pytest.raises(StorageError):
            lifecycle.delete_share(record.id)
        assert crud.shared_file.get(db, record.id) is not None

    def test_generate_short_link_rotates(self, lifecycle, store, user):
        record = make_share(lifecycle, store, user.id)
        old_code = record.short_code

        updated = lifecycle.generate_short_link(record.id)

        assert updated.short_code != old_code
        assert updated.short_url == f"/f/{updated.short_code}"
        with pytest.raises(NotFound):
            lifecycle.resolve_for_download(short_code=old_code)
        assert lifecycle.resolve_for_download(short_code=updated.short_code).download_url

    def test_describe_share_does_not_count(self, lifecycle, store, db, user):
        record = make_share(lifecycle, store, user.id)

        preview = lifecycle.describe_share(ShareKind.USER, record.short_code)

        assert preview.id == record.id
        db.refresh(record)
        assert record.download_count == 0
        assert store.signed == []

    def test_describe_share_applies_lazy_expiry(self, lifecycle, store, clock, db, user):
        record = make_share(lifecycle, store, user.id, has_expiry=True, expiry_hours=1)
        clock.advance(hours=1, seconds=1)

        with pytest.raises(Expired):
            lifecycle.describe_share(ShareKind.USER, record.short_code)
        db.refresh(record)
        assert record.status == ShareStatus.EXPIRED

    def test_search_and_listing(self, lifecycle, store, user):
        make_share(lifecycle, store, user.id, key="file-share-app/Report_a1.pdf")
        make_share(lifecycle, store, user.id, key="file-share-app/photo_b2.png")

        assert [r.display_name for r in lifecycle.search_shares("report")] == ["Report_a1.pdf"]
        assert len(lifecycle.list_user_shares(user.id)) == 2
        with pytest.raises(NotFound):
            lifecycle.search_shares("missing")
        with pytest.raises(NotFound):
            lifecycle.list_user_shares(user.id + 1)


class TestConcurrentDownloads:
    @pytest.fixture
    def file_session_factory(self, tmp_path):
        # A file database gives every thread its own connection
        engine = create_engine(
            f"sqlite:///{tmp_path / 'shares.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        Base.metadata.create_all(bind=engine)
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
        engine.dispose()

    def test_parallel_resolutions_count_every_download(self, file_session_factory, store, clock):
        setup = file_session_factory()
        owner = crud.user.create(setup, obj_in=schemas.UserCreate(fullname="Ada Lovelace", email="ada@example.com"))
        record = make_share(ShareLifecycle(setup, store, clock=clock), store, owner.id)
        share_id, code = record.id, record.short_code
        setup.close()

        def resolve(_):
            session = file_session_factory()
            try:
                lifecycle = ShareLifecycle(session, store, clock=clock)
                return lifecycle.resolve_for_download(short_code=code).record.download_count
            finally:
                session.close()

        workers = 8
        with ThreadPoolExecutor(max_workers=workers) as pool:
            seen = list(pool.map(resolve, range(workers)))

        assert all(1 <= count <= workers for count in seen)
        check = file_session_factory()
        try:
            assert crud.shared_file.get(check, share_id).download_count == workers
        finally:
            check.close()
