from pathlib import Path
import numpy as np
import matplotlib.pyplot as plt
import matplotlib.animation as animation
from .dynamics.walker import leg_points, energies, Params
from .simulate import Trajectory


def plot_run(traj: Trajectory, params: Params, out_path=None):
    """ Segment angles and energies of one run.

    Panels: angles vs time, total/kinetic/potential energy, total energy alone.

    Args:
        traj (Trajectory): simulated run
        params (Params): walker parameters used for the run
        out_path (str or Path, optional): save the figure here and close it

    Returns:
        matplotlib.figure.Figure: the figure (None if saved and closed)
    """
    E = energies(traj.x, params)

    fig, axs = plt.subplots(1, 3, figsize=(13, 4))

    # segment angles, ccw from vertical
    axs[0].plot(traj.t, np.degrees(traj.q))
    axs[0].set_xlabel("time [s]")
    axs[0].set_ylabel("segment angle [deg]")
    axs[0].legend(["q1", "q2", "q3"])
    axs[0].grid(True)

    axs[1].plot(traj.t, E[:, 0], label="total energy")
    axs[1].plot(traj.t, E[:, 1], label="kinetic energy")
    axs[1].plot(traj.t, E[:, 2], label="potential energy")
    axs[1].set_xlabel("time [s]")
    axs[1].set_ylabel("energy [J]")
    axs[1].legend()
    axs[1].grid(True)

    # zoom in on total energy
    axs[2].plot(traj.t, E[:, 0], label="total energy")
    axs[2].ticklabel_format(useOffset=False)
    axs[2].set_xlabel("time [s]")
    axs[2].set_ylabel("energy [J]")
    axs[2].legend()
    axs[2].grid(True)

    fig.suptitle(f"Ballistic swing ({traj.status.value})")
    fig.tight_layout()

    if out_path is not None:
        out_path = Path(out_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(out_path, dpi=200, bbox_inches="tight")
        plt.close(fig)
        return None
    return fig


def draw_legs(ax, x, params: Params, **plot_kwargs):
    """ Draw a stick figure of the leg configuration on ``ax``.

    Returns:
        tuple: (segment line, joint markers) artists
    """
    pts = leg_points(x, params)
    line, = ax.plot(pts[:, 0], pts[:, 1], "-", lw=3, **plot_kwargs)  # segment lines
    joints, = ax.plot(pts[:, 0], pts[:, 1], ".", color="k", ms=10)  # a dot at each joint
    return line, joints


def animate(traj: Trajectory, params: Params, out_path, fps=30) -> str:
    """ Create a stick-figure animation of a run.

    Samples are interpolated on a uniform time grid at ``fps``. MP4 is written when
    ffmpeg is available, otherwise a GIF via Pillow.

    Args:
        traj (Trajectory): simulated run
        params (Params): walker parameters
        out_path (str or Path): output file (.mp4 or .gif)
        fps (int, optional): frames per second. Defaults to 30.

    Returns:
        str: path to the output animation file
    """
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)  # ensure output directory exists

    t_frames = np.arange(traj.t[0], traj.t[-1], 1.0 / fps)
    t_frames = np.append(t_frames, traj.t[-1])
    frames = np.column_stack([np.interp(t_frames, traj.t, traj.x[:, i]) for i in range(traj.x.shape[1])])

    pts = np.array([leg_points(x, params) for x in frames])
    margin = 0.2
    fig, ax = plt.subplots()
    ax.set_aspect("equal", adjustable="box")
    ax.set_xlim(pts[..., 0].min() - margin, pts[..., 0].max() + margin)
    ax.set_ylim(pts[..., 1].min() - margin, pts[..., 1].max() + margin)
    ax.set_xlabel("x [m]")
    ax.set_ylabel("y [m]")
    ax.grid(True)
    ax.set_title("Ballistic Walking")

    ax.axhline(0.0, color="k", lw=0.5)  # ground
    legs_line, = ax.plot([], [], "-", lw=3)
    joints, = ax.plot([], [], ".", color="k", ms=10)
    time_text = ax.text(0.02, 0.95, "", transform=ax.transAxes)

    def init():
        legs_line.set_data([], [])
        joints.set_data([], [])
        time_text.set_text("")
        return legs_line, joints, time_text

    def update(frame):
        legs_line.set_data(pts[frame, :, 0], pts[frame, :, 1])
        joints.set_data(pts[frame, :, 0], pts[frame, :, 1])
        time_text.set_text(f"t = {t_frames[frame]:.3f} s")
        return legs_line, joints, time_text

    anim = animation.FuncAnimation(fig, update, frames=len(frames), init_func=init,
                                   interval=1000.0 / fps, blit=True)

    if out_path.suffix.lower() == ".mp4" and animation.writers.is_available("ffmpeg"):
        anim.save(out_path, fps=fps, extra_args=["-vcodec", "libx264"])
    else:
        out_path = out_path.with_suffix(".gif")
        anim.save(out_path, writer=animation.PillowWriter(fps=fps))
    plt.close(fig)
    return str(out_path)
