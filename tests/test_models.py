"""
Tests for the Record model and record loading.
"""

import json

import pytest

from reel.loader import RecordLoadError, load_records, records_from_data
from reel.models import Record


class TestRecord:
    """Tests for Record."""

    def test_from_dict_splits_data_bag(self):
        record = Record.from_dict({"slug": "a", "url": "/a/", "data": {"title": "A"}})
        assert record.fields == {"slug": "a", "url": "/a/"}
        assert record.data == {"title": "A"}
        assert record.id == "a"

    def test_id_fallbacks(self):
        assert Record.from_dict({"id": 7, "slug": "s"}).id == "7"
        assert Record.from_dict({"url": "/u/"}).id == "/u/"
        assert Record.from_dict({"title": "x"}).id is None

    def test_non_mapping_data_kept_as_field(self):
        record = Record.from_dict({"data": "raw"})
        assert record.fields == {"data": "raw"}
        assert record.data == {}

    def test_immutable(self):
        record = Record.from_dict({"data": {"title": "A"}})
        with pytest.raises(TypeError):
            record.data["title"] = "B"
        with pytest.raises(AttributeError):
            record.id = "other"

    def test_source_dict_not_shared(self):
        raw = {"data": {"title": "A"}}
        record = Record.from_dict(raw)
        raw["data"]["title"] = "B"
        assert record.get("title") == "A"

    def test_lookup(self):
        record = Record(fields={"type": "page"}, data={"type": "movie", "rating": 0})
        assert record.get("type") == "page"
        assert record.get("rating") == 0
        assert record.get("missing", "n/a") == "n/a"
        assert record["rating"] == 0
        assert "rating" in record
        assert "missing" not in record
        with pytest.raises(KeyError):
            record["missing"]

    def test_identity_equality(self):
        """Two records with the same content are distinct objects."""
        assert Record(data={"a": 1}) != Record(data={"a": 1})

    def test_to_dict(self):
        raw = {"slug": "a", "data": {"title": "A"}}
        assert Record.from_dict(raw).to_dict() == raw

    def test_repr(self):
        assert repr(Record.from_dict({"slug": "a", "data": {"title": "A"}})) == "Record(id='a', title='A')"


class TestLoader:
    """Tests for record loading."""

    def test_load_json(self, records_file):
        records = load_records(records_file)
        assert len(records) == 6
        assert records[0].get("title") == "Spirited Away"
        assert records[0].id == "spirited-away"

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "content.yaml"
        path.write_text("records:\n  - slug: a\n    data: {title: A}\n  - slug: b\n")
        records = load_records(path)
        assert [r.id for r in records] == ["a", "b"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(RecordLoadError):
            load_records(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(RecordLoadError):
            load_records(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("a: [unclosed")
        with pytest.raises(RecordLoadError):
            load_records(path)

    @pytest.mark.parametrize("data", [{"a": 1}, "text", None, [1, 2]])
    def test_wrong_shape(self, data):
        with pytest.raises(RecordLoadError):
            records_from_data(data)

    def test_records_key(self, tmp_path):
        path = tmp_path / "wrapped.json"
        path.write_text(json.dumps({"records": [{"slug": "x"}]}))
        assert [r.id for r in load_records(path)] == ["x"]
