"""Test configuration loading."""
import json

from tabledesk.config import AppConfig, SourceConfig, load_config


SAMPLE = {
    "port": 8080,
    "dataSources": [
        {
            "id": "files",
            "name": "Text Files",
            "type": "textfiles",
            "config": {"dataPath": "./data", "lookups": {"another": {"Country": "countries"}}},
        },
        {"id": "pg", "name": "Postgres", "type": "postgres", "enabled": False, "config": {"dsn": "x"}},
    ],
}


class TestAppConfig:

    def test_from_dict(self):
        config = AppConfig.from_dict(SAMPLE)
        assert config.port == 8080
        assert [s.id for s in config.data_sources] == ["files", "pg"]
        assert config.data_sources[0].lookups == {"another": {"Country": "countries"}}
        assert not config.data_sources[1].enabled

    def test_defaults(self):
        config = AppConfig.from_dict({"dataSources": [{"id": "x", "type": "textfiles"}]})
        assert config.port == 3000
        source = config.data_sources[0]
        assert source.name == "x"
        assert source.enabled
        assert source.config == {}
        assert source.lookups == {}
        assert source.auth_required is None

    def test_json_round_trip(self):
        config = AppConfig.from_dict(SAMPLE)
        assert AppConfig.from_json(config.to_json()) == config

    def test_source_queries(self):
        config = AppConfig.from_dict(SAMPLE)
        assert [s.id for s in config.enabled_sources()] == ["files"]
        assert config.source_by_id("pg").type == "postgres"
        assert config.source_by_id("nope") is None
        assert config.source_by_type("postgres") is None
        assert config.source_by_type("textfiles").id == "files"


class TestLoadConfig:

    def test_load_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(SAMPLE))
        assert load_config(str(path)).port == 8080

    def test_env_path(self, tmp_path, monkeypatch):
        path = tmp_path / "other.json"
        path.write_text(json.dumps(SAMPLE))
        monkeypatch.setenv("TABLEDESK_CONFIG", str(path))
        assert load_config().port == 8080

    def test_missing_file_falls_back(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEXT_DATA_PATH", "/srv/tables")
        config = load_config(str(tmp_path / "missing.json"))
        assert config.data_sources == [
            SourceConfig("source1", "Text Files", "textfiles", config={"dataPath": "/srv/tables"})
        ]

    def test_bad_json_falls_back(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        assert load_config(str(path)).data_sources[0].id == "source1"
