import pytest

from app.core.behaviors.config import BehaviorsRunConfig
from app.core.behaviors.registry import BehaviorRegistry

BUILTINS = [
    "clean_first",
    "ignore_projects",
    "local_manifest",
    "manifest_groups",
    "no_tags",
    "shallow_clone",
    "sync_jobs",
]


def _builtin_registry() -> BehaviorRegistry:
    reg = BehaviorRegistry("app/plugins/behaviors")
    reg.load_all()
    return reg


def test_builtin_behaviors_are_discovered():
    reg = _builtin_registry()
    assert reg.names() == BUILTINS
    infos = {i.name: i for i in reg.list_behaviors()}
    assert infos["sync_jobs"].enabled_by_default is True
    assert infos["no_tags"].enabled_by_default is False
    assert infos["sync_jobs"].file.endswith("sync_jobs.py")


def test_fingerprint_is_stable_across_loads():
    assert _builtin_registry().fingerprint == _builtin_registry().fingerprint
    assert len(_builtin_registry().fingerprint) == 16


def test_default_config_uses_enabled_by_default():
    selected, skipped = _builtin_registry().resolve(BehaviorsRunConfig())
    assert [b.display_name for b in selected] == ["sync_jobs"]
    assert {"name": "no_tags", "reason": "disabled"} in skipped


def test_enable_allowlist_only_selects_listed():
    cfg = BehaviorsRunConfig(enabled=["no_tags", "shallow_clone"])
    selected, _ = _builtin_registry().resolve(cfg)
    # shallow_clone has a lower priority value, so it runs first
    assert [b.display_name for b in selected] == ["shallow_clone", "no_tags"]


def test_disable_list_wins():
    cfg = BehaviorsRunConfig(enabled=["no_tags", "sync_jobs"], disabled=["sync_jobs"])
    selected, _ = _builtin_registry().resolve(cfg)
    assert [b.display_name for b in selected] == ["no_tags"]


def test_unknown_enabled_name_is_reported():
    _, skipped = _builtin_registry().resolve(BehaviorsRunConfig(enabled=["nope"]))
    assert {"name": "nope", "reason": "unknown"} in skipped


def test_options_configure_a_copy():
    reg = _builtin_registry()
    cfg = BehaviorsRunConfig(enabled=["sync_jobs"], options={"sync_jobs": {"jobs": 16}})
    selected, _ = reg.resolve(cfg)
    assert selected[0].jobs == 16
    # the registered prototype is untouched
    assert reg.get("sync_jobs").jobs == 4


def test_unknown_option_is_rejected():
    cfg = BehaviorsRunConfig(enabled=["sync_jobs"], options={"sync_jobs": {"threads": 2}})
    with pytest.raises(ValueError, match="threads"):
        _builtin_registry().resolve(cfg)


def test_build_chain_orders_by_priority_then_name():
    cfg = BehaviorsRunConfig(enabled=["clean_first", "no_tags", "manifest_groups", "shallow_clone"])
    chain = _builtin_registry().build_chain(cfg)
    assert chain.names == ["clean_first", "shallow_clone", "manifest_groups", "no_tags"]


def test_plugin_without_name_uses_file_stem(write_plugin):
    plugins = write_plugin("custom_thing.py", (
        "from app.core.behaviors.contract import RepoScmBehavior\n"
        "class Custom(RepoScmBehavior):\n"
        "    pass\n"
        "BEHAVIOR = Custom()\n"
    ))
    reg = BehaviorRegistry(plugins)
    reg.load_all()
    assert reg.names() == ["custom_thing"]


def test_underscore_modules_are_skipped(write_plugin):
    plugins = write_plugin("_helpers.py", "X = 1\n")
    reg = BehaviorRegistry(plugins)
    reg.load_all()
    assert reg.names() == []


def test_missing_symbol_raises(write_plugin):
    plugins = write_plugin("empty.py", "X = 1\n")
    with pytest.raises(AttributeError):
        BehaviorRegistry(plugins).load_all()


def test_wrong_type_raises(write_plugin):
    plugins = write_plugin("wrong.py", "BEHAVIOR = object()\n")
    with pytest.raises(TypeError):
        BehaviorRegistry(plugins).load_all()


def test_duplicate_names_raise(write_plugin):
    body = (
        "from app.core.behaviors.contract import RepoScmBehavior\n"
        "class Dup(RepoScmBehavior):\n"
        "    name = 'dup'\n"
        "BEHAVIOR = Dup()\n"
    )
    write_plugin("a.py", body)
    plugins = write_plugin("b.py", body)
    with pytest.raises(ValueError, match="Duplicate"):
        BehaviorRegistry(plugins).load_all()


def test_discover_skips_bad_plugins_with_warning(write_plugin):
    write_plugin("broken.py", "raise RuntimeError('cannot import')\n")
    plugins = write_plugin("good.py", (
        "from app.core.behaviors.contract import RepoScmBehavior\n"
        "BEHAVIOR = RepoScmBehavior()\n"
    ))
    reg = BehaviorRegistry(plugins)
    warnings = reg.discover()

    assert reg.names() == ["good"]
    assert [w["code"] for w in warnings] == ["behaviors.load_failed"]
    assert "broken.py" in warnings[0]["message"]


def test_discover_reports_missing_dir(tmp_path):
    warnings = BehaviorRegistry(tmp_path / "nope").discover()
    assert warnings[0]["code"] == "behaviors.dir_missing"


def test_behaviors_dir_from_env(monkeypatch, write_plugin):
    plugins = write_plugin("only.py", (
        "from app.core.behaviors.contract import RepoScmBehavior\n"
        "BEHAVIOR = RepoScmBehavior()\n"
    ))
    monkeypatch.setenv("REPOSCM_BEHAVIORS_DIR", str(plugins))
    reg = BehaviorRegistry()
    reg.load_all()
    assert reg.names() == ["only"]


def test_reload_picks_up_new_plugins(write_plugin):
    body = (
        "from app.core.behaviors.contract import RepoScmBehavior\n"
        "BEHAVIOR = RepoScmBehavior()\n"
    )
    plugins = write_plugin("first.py", body)
    reg = BehaviorRegistry(plugins)
    reg.load_all()
    fp1 = reg.fingerprint

    write_plugin("second.py", body)
    reg.reload()

    assert reg.names() == ["first", "second"]
    assert reg.fingerprint != fp1
