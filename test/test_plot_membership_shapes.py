import os

from utils.plot_membership_shapes import plot_defuzzification, plot_variable


def test_plot_variable_saves_png(tmp_path, follow_system):
    distance = follow_system.get_variable_by_name("distance")
    distance.value = 15.0
    path = plot_variable(distance, save=True, output_dir=str(tmp_path), show=False)
    assert path == os.path.join(str(tmp_path), "distance_membership_functions.png")
    assert os.path.exists(path)


def test_plot_defuzzification_saves_png(tmp_path, follow_system):
    follow_system.set_value("distance", 40.0)
    follow_system.output()
    path = plot_defuzzification(follow_system.output_variable, save=True, output_dir=str(tmp_path), show=False)
    assert os.path.exists(path)


def test_plot_without_saving_returns_none(follow_system):
    assert plot_variable(follow_system.output_variable, show=False) is None
