import json

from portal.store import RecordStore


def test_seeded_investor_when_no_file(tmp_path):
    store = RecordStore(str(tmp_path)).load()
    assert [i["id"] for i in store.investors.all()] == ["test-investor-1"]
    assert len(store.units) == 0


def test_mutations_persist_across_reload(tmp_path):
    store = RecordStore(str(tmp_path)).load()
    store.units.add({"id": "u1", "investorId": "i1", "name": "Loft"})
    store.units.update("u1", {"name": "Loft 2"})

    reloaded = RecordStore(str(tmp_path)).load()
    assert reloaded.units.find(id="u1")["name"] == "Loft 2"
    assert not (tmp_path / "units.json.tmp").exists()


def test_corrupt_file_is_ignored(tmp_path):
    (tmp_path / "units.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "documents.json").write_text(json.dumps({"not": "a list"}), encoding="utf-8")
    store = RecordStore(str(tmp_path)).load()
    assert store.units.all() == []
    assert store.documents.all() == []


def test_update_missing_returns_none(tmp_path):
    store = RecordStore(str(tmp_path)).load()
    assert store.orders.update("nope", {"status": "confirmed"}) is None


def test_filter_and_counts(tmp_path):
    store = RecordStore(str(tmp_path)).load()
    store.documents.extend([{"id": "1", "investorId": "a"}, {"id": "2", "investorId": "b"}, {"id": "3", "investorId": "a"}])
    assert [d["id"] for d in store.documents.filter(investorId="a")] == ["1", "3"]
    assert store.counts() == {"investors": 1, "units": 0, "documents": 3, "orders": 0}
