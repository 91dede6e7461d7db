import pytest

import main


@pytest.fixture
def logging_calls(monkeypatch):
    calls = []
    monkeypatch.setattr(main, "setup_logging", lambda level, json_output=False: calls.append((level, json_output)))
    return calls


def test_load_toml_config_reads_bundled_settings():
    settings = main.load_toml_config(main.SETTINGS_FILE, "Settings")
    assert settings["bot"]["role"] == "pmc"
    assert settings["paths"]["catalog"] == "catalog.yaml"


def test_load_toml_config_missing_or_broken(tmp_path):
    assert main.load_toml_config(tmp_path / "absent.toml", "Absent") == {}
    broken = tmp_path / "broken.toml"
    broken.write_text("[bot\nrole = ", encoding="utf-8")
    assert main.load_toml_config(broken, "Broken") == {}


def test_parser_defaults_come_from_settings():
    parser = main.build_parser({"bot": {"role": "scav", "level": 7}, "logging": {"json": True}})
    args = parser.parse_args(["--item", "m4a1"])
    assert (args.role, args.level, args.mode) == ("scav", 7, "weapon")
    assert args.json_logs is True
    assert args.catalog == main.CONFIG_DIR / "catalog.yaml"
    assert args.equipment_role is None


def test_assemble_weapon_prints_tree(capsys, logging_calls):
    assert main.main(["--item", "m4a1", "--seed", "3", "--log-level", "warning"]) == 0
    out = capsys.readouterr().out
    assert "upper_m4a1" in out
    assert "mod_reciever" in out
    assert logging_calls == [(30, False)]


def test_assemble_equipment(capsys, logging_calls):
    code = main.main(
        ["--item", "plate_carrier", "--mode", "equipment", "--level", "30", "--seed", "1", "--json-logs"]
    )
    assert code == 0
    out = capsys.readouterr().out
    assert "front_plate" in out
    assert logging_calls[0][1] is True


def test_same_seed_gives_same_tree(logging_calls):
    args = main.build_parser({}).parse_args(["--item", "m4a1", "--seed", "11"])
    first = main.assemble(args)
    second = main.assemble(args)
    assert [(i.template_id, i.slot_id) for i in first.items] == [
        (i.template_id, i.slot_id) for i in second.items
    ]
    assert [i.id for i in first.items] == [i.id for i in second.items]


def test_unknown_role_fails(logging_calls):
    assert main.main(["--item", "m4a1", "--role", "boss"]) == 1


def test_missing_catalog_fails(tmp_path, logging_calls):
    assert main.main(["--item", "m4a1", "--catalog", str(tmp_path / "none.yaml")]) == 1


def test_bad_log_level(capsys):
    assert main.main(["--item", "m4a1", "--log-level", "chatty"]) == 2
    assert "Unknown log level" in capsys.readouterr().err
