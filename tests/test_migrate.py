import json

import yaml

from fate_vault.migrate import main, migrate_directory, upgrade_document


def test_upgrade_document_writes_current_shapes():
    doc = upgrade_document({"name": "Ana", "skills": {"+2": ["Fight"]}, "refresh": 2, "playMode": True})
    assert doc["name"] == "Ana"
    assert doc["skills"] == [{"level": "+2", "skills": ["Fight"]}]
    assert doc["refresh"] == {"current": 2, "max": 2}
    assert doc["playMode"] is True
    assert "locked" not in doc


def test_migrate_directory(tmp_path):
    src = tmp_path / "exports"
    src.mkdir()
    (src / "ana.yaml").write_text("name: Ana\naspects:\n  highConcept: Duelist\n", encoding="utf-8")
    (src / "bo.json").write_text(json.dumps({"name": "Bo", "stunts": {"Quick": "Go first"}}), encoding="utf-8")
    (src / "broken.json").write_text("{not json", encoding="utf-8")
    (src / "list.yml").write_text("- 1\n- 2\n", encoding="utf-8")

    dest = tmp_path / "out"
    written = migrate_directory(src, dest)

    assert sorted(p.name for p in written) == ["ana.yaml", "bo.json"]
    ana = yaml.safe_load((dest / "ana.yaml").read_text(encoding="utf-8"))
    assert ana["aspects"] == [{"type": "High Concept", "value": "Duelist"}]
    bo = json.loads((dest / "bo.json").read_text(encoding="utf-8"))
    assert bo["stunts"] == [{"name": "Quick", "description": "Go first"}]
    assert (src / "bo.json").read_text(encoding="utf-8").startswith('{"name": "Bo"')


def test_main_rewrites_in_place(tmp_path):
    (tmp_path / "c.yaml").write_text("refresh: 4\n", encoding="utf-8")
    main([str(tmp_path)])
    doc = yaml.safe_load((tmp_path / "c.yaml").read_text(encoding="utf-8"))
    assert doc["refresh"] == {"current": 4, "max": 4}
