import json
import logging
import os

from company_store import CompanyStore

FIXTURE = os.path.join(os.path.dirname(__file__), "data", "companies.json")


def test_load_keeps_source_order():
    store = CompanyStore.load(FIXTURE)
    assert store.loaded
    assert store.count() == 4
    assert [c["id"] for c in store.all()] == [1, 2, 3, 4]


def test_load_accepts_bare_list(tmp_path):
    path = tmp_path / "list.json"
    path.write_text(json.dumps([{"id": 7, "name": "Seven"}]))
    store = CompanyStore.load(str(path))
    assert store.count() == 1
    assert store.by_id(7)["name"] == "Seven"


def test_missing_file_degrades_to_empty(tmp_path, caplog):
    path = tmp_path / "nope.json"
    with caplog.at_level(logging.ERROR, logger="mcp.store"):
        store = CompanyStore.load(str(path))
    assert not store.loaded
    assert store.count() == 0
    assert store.all() == ()
    assert store.by_id(1) is None
    assert "nope.json" in caplog.text


def test_malformed_json_degrades_to_empty(tmp_path, caplog):
    path = tmp_path / "bad.json"
    path.write_text("{not json")
    with caplog.at_level(logging.ERROR, logger="mcp.store"):
        store = CompanyStore.load(str(path))
    assert store.count() == 0
    assert "Error loading company data" in caplog.text


def test_unexpected_shape_degrades_to_empty(tmp_path):
    path = tmp_path / "shape.json"
    path.write_text(json.dumps({"companies": {"id": 1}}))
    store = CompanyStore.load(str(path))
    assert not store.loaded
    assert store.count() == 0


def test_by_id_accepts_numeric_strings():
    store = CompanyStore.load(FIXTURE)
    assert store.by_id("2")["name"] == "Bankwise"
    assert store.by_id(" 2 ")["name"] == "Bankwise"
    assert store.by_id(2)["name"] == "Bankwise"
    assert store.by_id("999") is None
    assert store.by_id("abc") is None
    # only whole numeric strings resolve
    assert store.by_id("2abc") is None
    assert store.by_id("2.0") is None


def test_passthrough_fields_preserved():
    store = CompanyStore.load(FIXTURE)
    company = store.by_id(1)
    assert company["objectID"] == "1"
    assert company["app_video_public"] is False
