from pathlib import Path

import pytest

from structgen.shared.errors import SchemaValidationError
from structgen.shared.schema_loader import (
    CacheKey,
    SchemaCache,
    collect_schema_paths,
    load_schema,
)


class TestCacheKey:
    def test_from_path(self, tmp_path):
        file_path = tmp_path / "test.yaml"
        file_path.write_text("content")

        key = CacheKey.from_path(file_path)
        assert key.path == file_path.resolve()
        assert isinstance(key.mtime, float)
        assert key.size == len("content")

    def test_frozen(self, tmp_path):
        file_path = tmp_path / "test.yaml"
        file_path.write_text("content")

        key = CacheKey.from_path(file_path)
        with pytest.raises(AttributeError):
            key.path = Path("/new/path")


class TestSchemaCache:
    def test_get_new_schema(self, tmp_path):
        cache = SchemaCache()
        schema_path = tmp_path / "test.yaml"
        schema_path.write_text("key: value\n")

        assert cache.get(schema_path) == {"key": "value"}
        assert len(cache) == 1

    def test_get_cached_schema(self, tmp_path):
        cache = SchemaCache()
        schema_path = tmp_path / "test.yaml"
        schema_path.write_text("key: value\n")

        assert cache.get(schema_path) is cache.get(schema_path)

    def test_get_schema_file_changed(self, tmp_path):
        cache = SchemaCache()
        schema_path = tmp_path / "test.yaml"
        schema_path.write_text("key: value\n")
        cache.get(schema_path)

        schema_path.write_text("key: another value\n")

        assert cache.get(schema_path) == {"key": "another value"}
        assert len(cache) == 1

    def test_evicts_oldest(self, tmp_path):
        cache = SchemaCache(max_size=2)
        paths = []
        for index in range(3):
            path = tmp_path / f"s{index}.yaml"
            path.write_text(f"n: {index}\n")
            paths.append(path)
            cache.get(path)

        assert len(cache) == 2
        assert paths[0].resolve() not in cache._entries

    def test_invalidate_single(self, tmp_path):
        cache = SchemaCache()
        schema_path = tmp_path / "test.yaml"
        schema_path.write_text("key: value\n")
        cache.get(schema_path)

        cache.invalidate(schema_path)
        assert len(cache) == 0

    def test_invalidate_all(self, tmp_path):
        cache = SchemaCache()
        for name in ("a.yaml", "b.yaml"):
            path = tmp_path / name
            path.write_text("key: value\n")
            cache.get(path)

        cache.invalidate()
        assert len(cache) == 0

    def test_get_missing_file(self, tmp_path):
        with pytest.raises(SchemaValidationError, match="Failed to stat"):
            SchemaCache().get(tmp_path / "missing.yaml")


class TestLoadSchema:
    def test_load_valid(self, tmp_path):
        schema_path = tmp_path / "test.yaml"
        schema_path.write_text("tables:\n  - name: users\n")

        assert load_schema(schema_path) == {"tables": [{"name": "users"}]}

    def test_load_invalid_yaml(self, tmp_path):
        schema_path = tmp_path / "test.yaml"
        schema_path.write_text("invalid: yaml: content:")

        with pytest.raises(SchemaValidationError, match="Invalid YAML"):
            load_schema(schema_path)

    def test_load_non_mapping_root(self, tmp_path):
        schema_path = tmp_path / "test.yaml"
        schema_path.write_text("- just\n- a list\n")

        with pytest.raises(SchemaValidationError, match="root must be a mapping"):
            load_schema(schema_path)

    def test_load_unreadable(self, tmp_path):
        with pytest.raises(SchemaValidationError, match="Failed to read"):
            load_schema(tmp_path / "missing.yaml")

    def test_error_carries_path(self, tmp_path):
        schema_path = tmp_path / "test.yaml"
        schema_path.write_text("42\n")

        with pytest.raises(SchemaValidationError) as exc_info:
            load_schema(schema_path)
        assert exc_info.value.context == str(schema_path)


class TestCollectSchemaPaths:
    def test_files_and_directories(self, tmp_path):
        schema_dir = tmp_path / "schemas"
        schema_dir.mkdir()
        (schema_dir / "b.yaml").write_text("")
        (schema_dir / "a.yml").write_text("")
        (schema_dir / "notes.txt").write_text("")
        single = tmp_path / "single.yaml"
        single.write_text("")

        paths = collect_schema_paths([single, schema_dir])

        assert paths == [
            single.resolve(),
            (schema_dir / "a.yml").resolve(),
            (schema_dir / "b.yaml").resolve(),
        ]

    def test_deduplicates(self, tmp_path):
        single = tmp_path / "single.yaml"
        single.write_text("")

        assert collect_schema_paths([single, single]) == [single.resolve()]

    def test_missing_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            collect_schema_paths([tmp_path / "nope"])
