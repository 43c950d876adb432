"""Upload and manual deletion through the archive service."""

from __future__ import annotations

import re
from datetime import timedelta

import pytest

from tempdrop.archives.archive_models import ArchiveRecord
from tempdrop.archives.archive_service import ArchiveService, derive_extension
from tempdrop.archives.blob_store import BlobStore
from tempdrop.exceptions import (
    ArchiveNotFoundError,
    BlobDeleteError,
    BlobWriteError,
    DatabaseOperationError,
    EmptyUploadError,
    MissingTokenError,
    NotFoundError,
    UploadTooLargeError,
)
from tempdrop.repositories.archive_repository import ArchiveRepository
from tests.helpers.archives import FIXED_NOW

pytestmark = pytest.mark.unit

BASE_URL = "https://drop.example"


class _FailingInsertRepo(ArchiveRepository):
    def insert(self, record: ArchiveRecord) -> None:
        raise DatabaseOperationError("archive: database operation failed")


class _RacingDeleteRepo(ArchiveRepository):
    """Record disappears between lookup and delete (reclaimed concurrently)."""

    def delete_by_token(self, token: str) -> None:
        super().delete_by_token(token)
        raise NotFoundError("archive not found")


class _FailingWriteStore(BlobStore):
    def put(self, name: str, data: bytes):
        raise BlobWriteError(f"failed to write blob '{name}'")


class _FailingDeleteStore(BlobStore):
    def delete(self, name: str) -> bool:
        raise BlobDeleteError(f"failed to delete blob '{name}'")


@pytest.fixture()
def service(blob_store: BlobStore, archive_repo: ArchiveRepository) -> ArchiveService:
    return ArchiveService(store=blob_store, repo=archive_repo, max_upload_bytes=1024)


def test_upload_round_trip(service: ArchiveService, blob_store: BlobStore) -> None:
    receipt = service.upload(b"hello world", base_url=BASE_URL, original_filename="notes.txt", now=FIXED_NOW)

    name = receipt.record.name
    assert re.fullmatch(r"[0-9a-f]{8}\.txt", name)
    assert receipt.file_url == f"{BASE_URL}/{name}"
    assert service.open_blob(name).read_bytes() == b"hello world"
    assert receipt.record.uploaded_at == FIXED_NOW
    assert receipt.record.expires_at == FIXED_NOW + timedelta(days=7)
    assert receipt.advisory is None
    assert service.repo.find_by_token(receipt.delete_token) == receipt.record


def test_delete_token_is_high_entropy_and_independent_of_name(service: ArchiveService) -> None:
    first = service.upload(b"a", base_url=BASE_URL, original_filename="a.bin")
    second = service.upload(b"b", base_url=BASE_URL, original_filename="b.bin")

    for receipt in (first, second):
        assert re.fullmatch(r"[0-9a-f]{64}", receipt.delete_token)
        assert receipt.record.name.split(".")[0] not in receipt.delete_token
        assert receipt.record.id not in receipt.delete_token
    assert first.delete_token != second.delete_token
    assert first.record.name != second.record.name


def test_long_name_upload(service: ArchiveService) -> None:
    receipt = service.upload(b"data", base_url=BASE_URL + "/", original_filename="photo.jpeg", long_name=True)

    assert re.fullmatch(
        r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}-[0-9a-f]{16}\.jpeg",
        receipt.record.name,
    )
    assert receipt.file_url == f"{BASE_URL}/{receipt.record.name}"


def test_clamped_expiration_returns_advisory(service: ArchiveService) -> None:
    receipt = service.upload(b"data", base_url=BASE_URL, original_filename="x.txt", expires="5m", now=FIXED_NOW)

    assert receipt.record.expires_at == FIXED_NOW + timedelta(minutes=10)
    assert "too short" in receipt.advisory


@pytest.mark.parametrize(
    ("filename", "extension"),
    [
        ("report.pdf", ".pdf"),
        ("archive.tar.gz", ".gz"),
        ("README", ""),
        (None, ""),
        ("../../etc/passwd", ""),
        ("../../evil.sh", ".sh"),
        ("C:\\Users\\me\\photo.PNG", ".PNG"),
        ("weird.a b", ""),
        ("bad.<script>", ""),
        ("trailing.", ""),
    ],
)
def test_derive_extension(filename, extension) -> None:
    assert derive_extension(filename) == extension


def test_crafted_filename_stays_inside_storage_root(service: ArchiveService, blob_store: BlobStore, tmp_path) -> None:
    receipt = service.upload(b"data", base_url=BASE_URL, original_filename="../../../escape.sh")

    stored = blob_store.open(receipt.record.name)
    assert stored.parent == blob_store.root.resolve()
    assert not (tmp_path / "escape.sh").exists()


@pytest.mark.parametrize("payload", [b"", None])
def test_empty_upload_rejected_before_write(service: ArchiveService, blob_store: BlobStore, payload) -> None:
    with pytest.raises(EmptyUploadError):
        service.upload(payload, base_url=BASE_URL, original_filename="empty.txt")

    assert list(blob_store.root.iterdir()) == []


def test_oversized_upload_rejected(service: ArchiveService, blob_store: BlobStore) -> None:
    with pytest.raises(UploadTooLargeError):
        service.upload(b"x" * 2048, base_url=BASE_URL, original_filename="big.bin")

    assert list(blob_store.root.iterdir()) == []


def test_registry_failure_rolls_back_blob(blob_store: BlobStore, session_factory) -> None:
    service = ArchiveService(store=blob_store, repo=_FailingInsertRepo(session_factory))

    with pytest.raises(DatabaseOperationError):
        service.upload(b"orphan?", base_url=BASE_URL, original_filename="orphan.txt")

    assert list(blob_store.root.iterdir()) == []


def test_write_failure_creates_no_record(tmp_path, archive_repo: ArchiveRepository) -> None:
    store = _FailingWriteStore(tmp_path / "uploads")
    store.ensure_structure()
    service = ArchiveService(store=store, repo=archive_repo)

    with pytest.raises(BlobWriteError):
        service.upload(b"data", base_url=BASE_URL, original_filename="x.txt", now=FIXED_NOW)

    assert archive_repo.count_expired(FIXED_NOW + timedelta(days=365)) == 0


def test_delete_removes_blob_and_record(service: ArchiveService, blob_store: BlobStore) -> None:
    receipt = service.upload(b"bye", base_url=BASE_URL, original_filename="bye.txt")

    deleted = service.delete(receipt.delete_token)

    assert deleted == receipt.record
    assert not blob_store.exists(receipt.record.name)
    with pytest.raises(NotFoundError):
        service.repo.find_by_token(receipt.delete_token)


def test_second_delete_reports_not_found(service: ArchiveService) -> None:
    receipt = service.upload(b"bye", base_url=BASE_URL, original_filename="bye.txt")
    service.delete(receipt.delete_token)

    with pytest.raises(ArchiveNotFoundError, match="not found or already deleted"):
        service.delete(receipt.delete_token)


def test_unknown_token_message_matches_already_deleted(service: ArchiveService) -> None:
    receipt = service.upload(b"bye", base_url=BASE_URL, original_filename="bye.txt")
    service.delete(receipt.delete_token)

    with pytest.raises(ArchiveNotFoundError) as deleted:
        service.delete(receipt.delete_token)
    with pytest.raises(ArchiveNotFoundError) as never_existed:
        service.delete("0" * 64)

    assert str(deleted.value) == str(never_existed.value)


@pytest.mark.parametrize("token", [None, ""])
def test_missing_token_rejected(service: ArchiveService, token) -> None:
    with pytest.raises(MissingTokenError):
        service.delete(token)


def test_delete_tolerates_missing_blob(service: ArchiveService, blob_store: BlobStore) -> None:
    receipt = service.upload(b"bye", base_url=BASE_URL, original_filename="bye.txt")
    blob_store.delete(receipt.record.name)

    service.delete(receipt.delete_token)

    with pytest.raises(NotFoundError):
        service.repo.find_by_token(receipt.delete_token)


def test_delete_keeps_record_when_blob_delete_fails(tmp_path, archive_repo: ArchiveRepository) -> None:
    store = _FailingDeleteStore(tmp_path / "uploads")
    store.ensure_structure()
    service = ArchiveService(store=store, repo=archive_repo)
    receipt = service.upload(b"stuck", base_url=BASE_URL, original_filename="stuck.txt")

    with pytest.raises(BlobDeleteError):
        service.delete(receipt.delete_token)

    assert archive_repo.find_by_token(receipt.delete_token) == receipt.record


def test_delete_converges_when_record_reclaimed_concurrently(blob_store: BlobStore, session_factory) -> None:
    service = ArchiveService(store=blob_store, repo=_RacingDeleteRepo(session_factory))
    receipt = service.upload(b"race", base_url=BASE_URL, original_filename="race.txt")

    service.delete(receipt.delete_token)

    assert not blob_store.exists(receipt.record.name)
