import pytest

from app.core.exceptions import MissingFileReferenceError, NotFoundError, ValidationError
from app.models.file_mapping import PostFile, PostFileRole
from app.services.content_references import (
    compute_diff,
    extract_references,
    has_references,
)
from app.services.post_file_service import PostFileService


def test_extract_references_collapses_duplicates():
    text = (
        "intro ::file[id=1 path=/a.png fileName=a.png size=10]:: "
        "middle ::file[id=2 path=/b.png]:: again ::file[id=1]::"
    )
    assert extract_references(text) == {1, 2}


@pytest.mark.parametrize("text", [None, "", "   \n  ", "no markers at all"])
def test_extract_references_empty(text):
    assert extract_references(text) == set()
    assert not has_references(text)


def test_malformed_id_is_skipped():
    text = "::file[id=abc path=/x]:: ::file[id=12x]:: ::file[id=7 path=/ok]::"
    assert extract_references(text) == {7}


def test_compute_diff():
    diff = compute_diff({1, 2, 3}, {2, 3, 4})
    assert diff.to_add == {4}
    assert diff.to_remove == {1}
    assert not diff.is_empty


def test_compute_diff_same_sets_is_empty():
    assert compute_diff({5, 6}, {6, 5}).is_empty


def test_sync_adds_and_removes(db, make_file):
    a, b, c = make_file(), make_file(), make_file()
    service = PostFileService(db)
    service.attach_on_create(10, f"::file[id={a.id}]:: ::file[id={b.id}]::")

    diff = service.sync_on_update(10, f"::file[id={b.id}]:: ::file[id={c.id}]::")

    assert diff.to_add == {c.id}
    assert diff.to_remove == {a.id}
    assert service.get_content_file_ids(10) == {b.id, c.id}


def test_sync_with_unchanged_body_writes_nothing(db, make_file):
    a = make_file()
    service = PostFileService(db)
    service.attach_on_create(11, f"::file[id={a.id}]::")

    diff = service.sync_on_update(11, f"edited text ::file[id={a.id}]::")

    assert diff.is_empty
    assert db.query(PostFile).filter(PostFile.owner_id == 11).count() == 1


def test_sync_rejects_missing_file_without_mutating(db, make_file):
    a, b = make_file(), make_file()
    service = PostFileService(db)
    service.attach_on_create(12, f"::file[id={a.id}]::")

    with pytest.raises(MissingFileReferenceError) as excinfo:
        service.sync_on_update(12, f"::file[id={b.id}]:: ::file[id=9999]::")

    assert excinfo.value.missing_ids == [9999]
    assert isinstance(excinfo.value, ValidationError)
    assert isinstance(excinfo.value, NotFoundError)
    # Neither the removal of a nor the addition of b happened
    assert service.get_content_file_ids(12) == {a.id}


def test_apply_diff_rolls_back_on_write_failure(db, make_file, monkeypatch):
    a, b = make_file(), make_file()
    service = PostFileService(db)
    service.attach_on_create(13, f"::file[id={a.id}]::")

    def broken(*args, **kwargs):
        raise RuntimeError("insert failed")

    monkeypatch.setattr(service, "set_multi_mapping", broken)

    with pytest.raises(RuntimeError):
        service.content_sync.apply_diff(13, {b.id}, {a.id})

    assert service.get_content_file_ids(13) == {a.id}


def test_attach_on_create_with_thumbnail(db, make_file):
    thumb, body = make_file(), make_file()
    service = PostFileService(db)

    mapped = service.attach_on_create(14, f"::file[id={body.id}]::", thumbnail_file_id=thumb.id)

    assert mapped == {body.id}
    assert service.get_thumbnail_file_id(14) == thumb.id
    assert service.get_file_ids(14, PostFileRole.CONTENT) == {body.id}


def test_attach_on_create_missing_thumbnail_writes_nothing(db, make_file):
    body = make_file()
    service = PostFileService(db)

    with pytest.raises(MissingFileReferenceError):
        service.attach_on_create(15, f"::file[id={body.id}]::", thumbnail_file_id=424242)

    assert service.get_mappings(15) == []


def test_out_of_range_marker_id_is_skipped():
    text = "::file[id=2147483647]:: ::file[id=2147483648]:: ::file[id=99999999999999999999999]::"
    assert extract_references(text) == {2147483647}
    assert extract_references("::file[id=" + "9" * 5000 + "]::") == set()


def test_attach_on_create_ignores_out_of_range_marker(db, make_file):
    a = make_file()
    service = PostFileService(db)

    mapped = service.attach_on_create(21, f"::file[id={a.id}]:: ::file[id=99999999999999999999999]::")

    assert mapped == {a.id}
    assert service.get_content_file_ids(21) == {a.id}


def test_update_with_missing_body_file_keeps_old_thumbnail(db, make_file):
    old_thumb, new_thumb, body = make_file(), make_file(), make_file()
    service = PostFileService(db)
    service.attach_on_create(20, f"::file[id={body.id}]::", thumbnail_file_id=old_thumb.id)

    with pytest.raises(MissingFileReferenceError) as excinfo:
        service.sync_on_update(20, "::file[id=9999]::", thumbnail_file_id=new_thumb.id)

    assert excinfo.value.missing_ids == [9999]
    db.expire_all()
    assert service.get_thumbnail_file_id(20) == old_thumb.id
    assert service.get_content_file_ids(20) == {body.id}


def test_update_with_missing_body_file_keeps_thumbnail_on_remove(db, make_file):
    thumb = make_file()
    service = PostFileService(db)
    service.attach_on_create(22, None, thumbnail_file_id=thumb.id)

    with pytest.raises(MissingFileReferenceError):
        service.sync_on_update(22, "::file[id=8888]::", remove_thumbnail=True)

    db.expire_all()
    assert service.get_thumbnail_file_id(22) == thumb.id


def test_update_rolls_back_thumbnail_when_body_write_fails(db, make_file, monkeypatch):
    old_thumb, new_thumb, body = make_file(), make_file(), make_file()
    service = PostFileService(db)
    service.attach_on_create(23, None, thumbnail_file_id=old_thumb.id)

    def broken(*args, **kwargs):
        raise RuntimeError("insert failed")

    monkeypatch.setattr(service, "set_multi_mapping", broken)

    with pytest.raises(RuntimeError):
        service.sync_on_update(23, f"::file[id={body.id}]::", thumbnail_file_id=new_thumb.id)

    db.expire_all()
    assert service.get_thumbnail_file_id(23) == old_thumb.id
    assert service.get_content_file_ids(23) == set()


def test_update_replaces_thumbnail_and_body_together(db, make_file):
    old_thumb, new_thumb, a, b = make_file(), make_file(), make_file(), make_file()
    service = PostFileService(db)
    service.attach_on_create(24, f"::file[id={a.id}]::", thumbnail_file_id=old_thumb.id)

    diff = service.sync_on_update(24, f"::file[id={b.id}]::", thumbnail_file_id=new_thumb.id)

    assert diff.to_add == {b.id}
    assert diff.to_remove == {a.id}
    assert service.get_thumbnail_file_id(24) == new_thumb.id
    assert service.get_content_file_ids(24) == {b.id}


def test_added_body_files_are_ordered_after_existing(db, make_file):
    a, b, c = make_file(), make_file(), make_file()
    service = PostFileService(db)
    service.attach_on_create(25, f"::file[id={a.id}]:: ::file[id={b.id}]::")

    service.sync_on_update(25, f"::file[id={a.id}]:: ::file[id={b.id}]:: ::file[id={c.id}]::")

    orders = {m.file_id: m.display_order for m in service.get_mappings(25)}
    assert orders == {a.id: 0, b.id: 1, c.id: 2}


def test_content_sync_applies_diff_directly(db, make_file):
    a, b = make_file(), make_file()
    service = PostFileService(db)
    service.attach_on_create(26, f"::file[id={a.id}]::")

    diff = service.content_sync.sync(26, f"::file[id={b.id}]::")

    assert diff.to_add == {b.id}
    assert diff.to_remove == {a.id}
    assert service.get_content_file_ids(26) == {b.id}
