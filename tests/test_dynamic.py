import numpy as np
import pytest

from pid_road import PIDConfig, PIDController, PIDFlags
from pid_road.__main__ import DEMO_CONFIG, main, run
from pid_road.dynamic import Car, ClosedLoop, Road, random_pushes


def make_loop(config=DEMO_CONFIG):
    return ClosedLoop(Car(Road()), PIDController.from_config(config))


def test_road_geometry():
    road = Road()
    assert road.middle == 51
    assert road.end == 91


def test_road_must_fit_on_screen():
    with pytest.raises(ValueError):
        Road(screen_width=50, road_width=80, road_begin=11)


def test_render_frame():
    road = Road()
    frame = road.render(30.4, 1.234)
    assert frame.endswith(" pos = 30, acc=1.23")
    cells = frame[:road.screen_width]
    assert cells[30] == 'X'
    assert cells[11] == cells[51] == cells[91] == '|'
    assert cells.count('|') == 3
    # the car hides a road marking
    assert road.render(51.0, 0.0)[51] == 'X'


def test_car_stays_on_screen():
    car = Car(Road())
    car.push(500.0)
    car.steer(0.0)
    assert car.get_position() == 101.0
    car.steer(1000.0)
    assert car.get_position() == 0.0


def test_random_pushes_distribution():
    pushes = random_pushes(5000, np.random.default_rng(0), 101)
    assert pushes.shape == (5000,)
    assert np.all(np.abs(pushes) < 101 // 2)
    small = np.abs(pushes) <= 4
    # gusts are rare
    assert small.mean() > 0.9
    assert (pushes > 0).any() and (pushes < 0).any()


def test_random_pushes_reproducible():
    a = random_pushes(100, np.random.default_rng(7))
    b = random_pushes(100, np.random.default_rng(7))
    np.testing.assert_array_equal(a, b)


def test_step_feeds_error_and_position():
    loop = make_loop()
    correction = loop.step(4.0)
    # error 4, accumulator 4, input 55 against a zeroed derivative memory
    expected = 0.85 * 4 + 0.05 * 4 + 0.02 * (0 - 55.0)
    assert correction == pytest.approx(expected)
    assert loop.plant.get_position() == pytest.approx(55.0 - expected)


def test_simulate_holds_car_near_middle():
    loop = make_loop()
    disturbances = np.zeros(50)
    disturbances[0] = 20.0
    trajectory = loop.simulate(disturbances)
    assert trajectory.position.shape == (50,)
    assert np.all(np.abs(trajectory.correction) <= 7.5)
    assert abs(trajectory.position[-1] - loop.setpoint) < 1.0


def test_simulate_resets_controller_and_plant():
    loop = make_loop()
    disturbances = np.full(20, 3.0)
    first = loop.simulate(disturbances)
    second = loop.simulate(disturbances)
    np.testing.assert_array_equal(first.position, second.position)
    np.testing.assert_array_equal(first.accumulator, second.accumulator)


def test_simulate_rejects_empty_disturbances():
    with pytest.raises(ValueError):
        make_loop().simulate(np.array([]))


def test_simulate_with_random_disturbances_is_seeded():
    a = make_loop().simulate_with_random_disturbances(200, seed=3)
    b = make_loop().simulate_with_random_disturbances(200, seed=3)
    np.testing.assert_array_equal(a.position, b.position)
    assert np.all((a.position >= 0) & (a.position <= 101))


def test_accumulator_clamp_in_closed_loop():
    config = PIDConfig(0.0, 1.0, 0.0, output_limits=(-2.0, 2.0), flags=PIDFlags.CLAMP_ACC_TO_OUTPUT_BOUNDS)
    trajectory = make_loop(config).simulate(np.full(10, 30.0))
    assert np.all(np.abs(trajectory.accumulator) <= 2.0)
    assert trajectory.accumulator[-1] == 2.0


def test_run_prints_frames():
    frames = []
    trajectory = run(steps=5, fps=0, seed=1, out=frames.append)
    assert len(frames) == 5
    assert all("pos = " in frame for frame in frames)
    assert trajectory.position.shape == (5,)


def test_main_runs_fixed_steps(capsys):
    assert main(["--steps", "3", "--fps", "0", "--seed", "2"]) == 0
    assert len(capsys.readouterr().out.splitlines()) == 3


def test_main_plot_requires_steps():
    with pytest.raises(SystemExit):
        main(["--plot"])
