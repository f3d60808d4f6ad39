import json
import logging

from app.core.behaviors.config import BehaviorsRunConfig, load_behaviors_config


def test_from_payload_none_and_list():
    assert BehaviorsRunConfig.from_payload(None) == BehaviorsRunConfig()
    cfg = BehaviorsRunConfig.from_payload(["no_tags", 3, "sync_jobs"])
    assert cfg.enabled == ["no_tags", "sync_jobs"]


def test_from_payload_dict_tolerates_aliases():
    cfg = BehaviorsRunConfig.from_payload({"behaviors": "no_tags", "disabled": "sync_jobs"})
    assert cfg.enabled == ["no_tags"]
    assert cfg.disabled == ["sync_jobs"]

    cfg = BehaviorsRunConfig.from_payload({"options": ["bad"]})
    assert cfg.enabled is None
    assert cfg.options == {}


def test_behavior_options_ignores_non_dicts():
    cfg = BehaviorsRunConfig(options={"sync_jobs": {"jobs": 2}, "no_tags": "yes"})
    assert cfg.behavior_options("sync_jobs") == {"jobs": 2}
    assert cfg.behavior_options("no_tags") == {}
    assert cfg.behavior_options("missing") == {}


def test_is_enabled_with_default():
    assert BehaviorsRunConfig().is_enabled_with_default("x", enabled_by_default=True)
    assert not BehaviorsRunConfig().is_enabled_with_default("x", enabled_by_default=False)
    assert BehaviorsRunConfig(enabled=["x"]).is_enabled_with_default("x", enabled_by_default=False)
    assert not BehaviorsRunConfig(enabled=["y"]).is_enabled_with_default("x")
    assert not BehaviorsRunConfig(enabled=["x"], disabled=["x"]).is_enabled_with_default("x")


def test_load_yaml_file(tmp_path):
    p = tmp_path / "behaviors.yaml"
    p.write_text(
        "enabled: [no_tags, sync_jobs]\n"
        "options:\n"
        "  sync_jobs:\n"
        "    jobs: 8\n",
        encoding="utf-8",
    )
    cfg = load_behaviors_config(p)
    assert cfg.enabled == ["no_tags", "sync_jobs"]
    assert cfg.behavior_options("sync_jobs") == {"jobs": 8}


def test_load_json_file_from_env(tmp_path, monkeypatch):
    p = tmp_path / "behaviors.json"
    p.write_text(json.dumps({"disabled": ["sync_jobs"]}), encoding="utf-8")
    monkeypatch.setenv("REPOSCM_BEHAVIORS_FILE", str(p))
    assert load_behaviors_config().disabled == ["sync_jobs"]


def test_missing_file_gives_defaults(tmp_path):
    assert load_behaviors_config(tmp_path / "absent.yaml") == BehaviorsRunConfig()


def test_malformed_file_gives_defaults_and_warns(tmp_path, caplog):
    p = tmp_path / "behaviors.yaml"
    p.write_text("enabled: [unclosed\n", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="reposcm.config"):
        cfg = load_behaviors_config(p)
    assert cfg == BehaviorsRunConfig()
    assert "Failed to parse behaviors config" in caplog.text


def test_scalar_file_gives_defaults(tmp_path):
    p = tmp_path / "behaviors.yaml"
    p.write_text("just a string\n", encoding="utf-8")
    assert load_behaviors_config(p) == BehaviorsRunConfig()
