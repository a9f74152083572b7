import argparse
import os

import matplotlib.pyplot as plt

from fls.config import load_system


def plot_variable(variable, title=None, save=False, output_dir="plots", show=True):
    """
    Plot the trapezoids of one variable at their current heights.
    The current crisp value is drawn as a vertical line.
    Args:
        variable (FuzzyVariable): Input or output variable
        title (str): Title of the plot, defaults to the variable name
        save (bool): Whether to save the plot as a PNG
        output_dir (str): Directory to save the plot
        show (bool): Whether to display the plot
    Returns:
        str or None: The saved file path
    """
    title = title or variable.name or "variable"
    fig, ax = plt.subplots(figsize=(8, 4))
    for trapezoid in variable:
        xs, ys = zip(*trapezoid.outline())
        ax.plot(xs, ys, color=trapezoid.color[:3], label=trapezoid.name or trapezoid.id[:8])
        ax.fill_between(xs, ys, color=trapezoid.color[:3], alpha=0.1)

    ax.axvline(variable.value, color="black", linestyle="--", linewidth=0.8, label="value")
    ax.set_xlim(variable.domain_min(), variable.domain_max())
    ax.set_title(f"Membership Functions – {title}")
    ax.set_xlabel("Value")
    ax.set_ylabel("Membership Degree")
    ax.grid(True)
    ax.legend()
    fig.tight_layout()
    return _finish(fig, title, save, output_dir, show, "membership_functions")


def plot_defuzzification(variable, title=None, save=False, output_dir="plots", show=True):
    """
    Plot the aggregated output shape of an output variable and its centroid.
    Heights must already be assigned, e.g. by FuzzyLogicSystem.output().
    """
    title = title or variable.name or "output"
    result = variable.defuzzify()
    fig, ax = plt.subplots(figsize=(8, 4))

    xs, ys = zip(*result.outline)
    ax.plot(xs, ys, color="tab:blue", label="aggregated shape")
    ax.fill_between(xs, ys, color="tab:blue", alpha=0.2)
    ax.scatter(
        [result.centroid[0]],
        [result.centroid[1]],
        color="red",
        s=40,
        marker="o",
        edgecolors="black",
        linewidths=0.8,
        label=f"centroid x={result.x:.3f}",
        zorder=10,
    )
    ax.axvline(result.x, color="red", linestyle=":", linewidth=0.8)

    ax.set_title(f"Defuzzification – {title}")
    ax.set_xlabel("Value")
    ax.set_ylabel("Membership Degree")
    ax.grid(True)
    ax.legend()
    fig.tight_layout()
    return _finish(fig, title, save, output_dir, show, "defuzzification")


def _finish(fig, title, save, output_dir, show, suffix):
    filename = None
    if save:
        os.makedirs(output_dir, exist_ok=True)
        filename = os.path.join(output_dir, f"{title.lower()}_{suffix}.png")
        fig.savefig(filename)
        print(f"Saved plot to: {filename}")
    if show:
        plt.show()
    else:
        plt.close(fig)
    return filename


def main():
    parser = argparse.ArgumentParser(
        description="Plot fuzzy membership function shapes."
    )
    parser.add_argument(
        "--config",
        default=os.path.join("config", "follow_target.toml"),
        help="TOML file describing the system.",
    )
    parser.add_argument(
        "--value",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Set an input variable before evaluating, e.g. distance=15.",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Save plots as PNG files in the 'plots/' directory.",
    )
    args = parser.parse_args()
    if not os.path.exists(args.config):
        print(f"Error: Config file not found at: {args.config}")
        return

    system = load_system(args.config)
    for assignment in args.value:
        name, _, value = assignment.partition("=")
        system.set_value(name, float(value))

    for variable in system.variables:
        plot_variable(variable, save=args.save)

    output = system.output()
    print(f"Output: {output:.4f} ({output * system.output_variable.max_value:.4f} {system.output_variable.name})")
    plot_defuzzification(system.output_variable, save=args.save)


if __name__ == "__main__":
    main()
