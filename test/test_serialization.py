import json

import pytest

from fls.registry import SystemRegistry
from fls.serialization import (
    HEADER,
    deserialize,
    load,
    save,
    serialize,
    system_to_dict,
    validate_header,
)
from fls.system import FuzzyLogicSystem


def test_header_bytes():
    assert HEADER == bytes.fromhex("ABCDEF1234567890")


def test_serialized_data_starts_with_header(follow_system):
    data = serialize(follow_system)
    assert data[:8] == HEADER
    assert validate_header(data)


@pytest.mark.parametrize("data", [None, b"", HEADER[:7], b"\x00" * 16, b"{}"])
def test_validate_header_rejects(data):
    assert not validate_header(data)


def test_deserialize_rejects_foreign_data():
    with pytest.raises(ValueError):
        deserialize(b"not a fuzzy logic system")


def test_payload_is_json(follow_system):
    payload = json.loads(serialize(follow_system)[len(HEADER):].decode("utf-8"))
    assert payload["id"] == follow_system.id
    assert payload["name"] == "follow_target"
    assert [n["op"] for n in payload["nodes"]] == ["IDENTITY"] * 3
    assert "height" not in payload["output_variable"]["trapezoids"][0]


def test_round_trip_keeps_structure_and_behaviour(follow_system):
    follow_system.set_value("distance", 35.0)
    restored = deserialize(serialize(follow_system), registry=SystemRegistry())

    assert restored is not follow_system
    assert restored.id == follow_system.id
    assert system_to_dict(restored) == system_to_dict(follow_system)
    assert restored.output() == pytest.approx(follow_system.output())


def test_heights_are_not_persisted(follow_system):
    follow_system.set_value("distance", 15.0)
    follow_system.output()
    restored = deserialize(serialize(follow_system))
    assert all(t.height == 1.0 for t in restored.output_variable)


def test_restored_system_is_registered(follow_system):
    registry = SystemRegistry()
    restored = deserialize(serialize(follow_system), registry=registry)
    assert registry.get(follow_system.id) is restored
    assert restored.registry is registry


def test_deserialize_into_existing_system(registry, follow_system):
    data = serialize(follow_system)
    target = FuzzyLogicSystem(name="placeholder")
    target.initialize()
    registry.register(target)
    target_id = target.id

    result = deserialize(data, into=target)
    assert result is target
    assert target.id == target_id
    assert target.name == "follow_target"
    assert target.registry is registry
    assert target.node_count() == 3
    assert all(node.system is target for node in target.nodes)

    follow_system.set_value("distance", 60.0)
    target.set_value("distance", 60.0)
    assert target.output() == pytest.approx(follow_system.output())


def test_save_and_load(tmp_path, follow_system):
    path = tmp_path / "systems" / "follow.fls"
    save(follow_system, str(path))
    assert path.read_bytes()[:8] == HEADER

    loaded = load(str(path))
    assert loaded.name == follow_system.name
    assert system_to_dict(loaded) == system_to_dict(follow_system)
