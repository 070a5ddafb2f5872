import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from ballistic_walk.animate import plot_run, draw_legs, animate
from ballistic_walk.simulate import simulate


def test_plot_run_saves_figure(tmp_path, params, x0):
    traj = simulate(params, x0, (0.0, 0.5))
    out = tmp_path / "figures" / "run.png"
    assert plot_run(traj, params, out_path=out) is None
    assert out.exists()

    fig = plot_run(traj, params)
    assert len(fig.axes) == 3
    plt.close(fig)


def test_draw_legs(params, x0):
    fig, ax = plt.subplots()
    line, joints = draw_legs(ax, x0, params)
    xs, ys = line.get_data()
    assert len(xs) == 6
    np.testing.assert_allclose([xs[0], ys[0]], [0.0, 0.0])
    plt.close(fig)


def test_animate_gif(tmp_path, params, x0):
    traj = simulate(params, x0, (0.0, 0.5), dense_dt=0.05)
    path = animate(traj, params, tmp_path / "swing.gif", fps=10)
    assert path.endswith(".gif")
    assert (tmp_path / "swing.gif").exists()
