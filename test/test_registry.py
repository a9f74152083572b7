import pytest

from fls.system import FuzzyLogicSystem


def _system(registry, name):
    system = FuzzyLogicSystem(name=name)
    system.initialize()
    registry.register(system)
    return system


def test_register_and_lookup(registry):
    a = _system(registry, "a")
    assert a.id in registry
    assert len(registry) == 1
    assert registry.get(a.id) is a
    assert registry.query(a.id) is a
    assert registry.get_by_name("a") is a
    assert list(registry) == [a]
    assert a.registry is registry


def test_duplicate_registration_is_refused(registry):
    a = _system(registry, "a")
    assert not registry.register(a)
    assert len(registry) == 1


def test_unknown_lookups(registry):
    with pytest.raises(KeyError):
        registry.get("missing")
    assert registry.query("missing") is None
    assert registry.get_by_name("missing") is None


def test_unregister(registry):
    a = _system(registry, "a")
    b = _system(registry, "b")
    assert registry.unregister(a)
    assert a.registry is None
    assert not registry.unregister(a)
    assert a.id not in registry

    registry.unregister_all()
    assert len(registry) == 0
    assert b.registry is None


def test_foreign_system_output_as_operand(registry, follow_system):
    consumer = _system(registry, "consumer")
    node = consumer.add_node("IDENTITY", follow_system.id)

    follow_system.set_value("distance", 40.0)
    assert node.output() == pytest.approx(follow_system.output())
    assert node.output() == pytest.approx(0.5, abs=1e-6)


def test_unregistered_foreign_system_evaluates_to_zero(registry, follow_system):
    consumer = _system(registry, "consumer")
    node = consumer.add_node("IDENTITY", follow_system.id)
    registry.unregister(follow_system)
    assert node.output() == 0.0


def test_cross_system_cycle_is_refused(registry, follow_system):
    consumer = _system(registry, "consumer")
    consumer.add_node("IDENTITY", follow_system.id)

    back = follow_system.add_node("IDENTITY")
    assert not back.connect("left", consumer.id)
    assert back.left_input is None

    own = consumer.add_node("IDENTITY")
    assert not own.connect("left", consumer.id)
    assert not consumer.is_cycle_reference()


def test_cross_system_cycle_is_detected_during_evaluation(registry, follow_system):
    consumer = _system(registry, "consumer")
    forward = consumer.add_node(
        "IDENTITY", follow_system.id, target=consumer.output_variable.get_trapezoid(0).id
    )

    near = follow_system.get_trapezoid_by_name("speed", "near")
    back = follow_system.add_node("IDENTITY", target=near.id)
    back.left_input = consumer.id

    assert follow_system.is_cycle_reference()
    assert consumer.is_cycle_reference()
    assert registry.is_cycle_reference(follow_system)

    assert forward.output() < 0
    assert forward.evaluate().cycle

    # the top-level system still produces a number; the cyclic set keeps height 1
    follow_system.set_value("distance", 90.0)
    output = follow_system.output()
    assert 0.0 <= output <= 1.0
    assert near.height == 1.0


def test_foreign_output_outside_unit_range_is_clamped(registry):
    # the right shoulder leans into the extended domain, so the centroid passes max_value
    source = _system(registry, "source")
    out = source.output_variable
    out.move(1, peak_left=130.0, peak_right=150.0, foot_right=150.0)
    source.add_node("IDENTITY", target=out.get_trapezoid(0).id)
    assert source.output() > 1.0

    consumer = _system(registry, "consumer")
    target = consumer.output_variable.get_trapezoid(1)
    node = consumer.add_node("NOT", source.id, target=target.id)
    assert node.output() < 0.0
    consumer.evaluate_mode = True
    consumer.evaluate()
    assert target.height == 0.0
