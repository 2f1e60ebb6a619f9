"""
plot_objects.py - Plot vectors and matrices stored in octio archives

Usage:
    python -m octio.plot_objects data.mat
    python -m octio.plot_objects data.mat --names float_vect float_mat
    python -m octio.plot_objects data.mat -o plot.png
    python -m octio.plot_objects data.mat --list-objects
    python -m octio.plot_objects lo:run_256.mat hi:run_8192.mat -o compare.pdf
"""

import argparse
import sys
from pathlib import Path

import numpy as np


def load_series(filename):
    """Load real numeric vectors and matrices as dict of name -> 2-D array.

    Each row of the returned array is one curve; vectors become one row,
    matrices contribute one curve per column. Scalars, strings and complex
    objects are left out.
    """
    from . import octave_archive as oa

    result = {}
    with oa.Reader(filename) as reader:
        for obj in reader:
            value = obj.value
            if not isinstance(value, np.ndarray) or value.dtype.names is not None:
                continue
            if np.iscomplexobj(value):
                continue
            if value.ndim == 1:
                result[obj.name] = value[np.newaxis, :].astype(float)
            else:
                result[obj.name] = value.T.astype(float)
    return result


def list_objects(filename):
    """List plottable objects in an archive."""
    series = load_series(filename)
    print(f"Objects in {filename}:")
    for name, curves in series.items():
        print(f"  {name}: {curves.shape[1]} points, {curves.shape[0]} curve(s)")


def parse_file_spec(spec):
    """Parse a file specification like 'label:filename' or just 'filename'."""
    if ":" in spec:
        label, filename = spec.split(":", 1)
        return label, filename
    return None, spec


def plot_objects(filenames, names=None, output=None, title=None, figwidth=4.0):
    """Plot objects from one or more archives.

    Args:
        filenames: List of file specs ('label:path' or just 'path')
        names: Object names to plot (None = all plottable objects)
        output: Output filename for plot (None = show interactively)
        title: Plot title (None = use filename)
        figwidth: Figure width in inches (default 4.0)
    """
    import matplotlib.pyplot as plt

    datasets = []
    for spec in filenames:
        label, filename = parse_file_spec(spec)
        series = load_series(filename)
        if label is None:
            label = Path(filename).stem
        datasets.append((label, series))

    available = list(datasets[0][1].keys())
    if names is None:
        names = available
    else:
        for name in names:
            if name not in available:
                print(f"Warning: object '{name}' not found")
        names = [name for name in names if name in available]

    if not names:
        print("No objects to plot")
        return

    subplot_height = figwidth * 0.5
    fig, axes = plt.subplots(
        len(names),
        1,
        figsize=(figwidth, subplot_height * len(names)),
        squeeze=False,
    )

    for ax, name in zip(axes.flat, names):
        for label, series in datasets:
            if name not in series:
                continue
            curves = series[name]
            x_data = np.arange(curves.shape[1])
            for i, y_data in enumerate(curves):
                curve_label = label if len(curves) == 1 else f"{label}[{i}]"
                ax.plot(x_data, y_data, "-", linewidth=0.8, label=curve_label)
        ax.set_xlabel("index")
        ax.set_ylabel(name)
        ax.grid(True, alpha=0.3)
        if len(datasets) > 1 or len(ax.get_lines()) > 1:
            ax.legend(loc="best", fontsize="small")

    if title:
        fig.suptitle(title)
    elif len(filenames) == 1:
        fig.suptitle(Path(parse_file_spec(filenames[0])[1]).name)

    plt.tight_layout()

    if output:
        plt.savefig(output, dpi=150)
        print(f"Saved plot to {output}")
    else:
        plt.show()


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Plot vectors and matrices from octio archives",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data.mat                      # Plot all objects
  %(prog)s data.mat -n float_vect        # Plot specific objects
  %(prog)s data.mat -o plot.png          # Save to file
  %(prog)s data.mat --list-objects       # List plottable objects
  %(prog)s lo:p256.mat hi:p8192.mat      # Compare two files with labels
""",
    )
    parser.add_argument(
        "filenames",
        nargs="+",
        help="Archive file(s), optionally with label:path format",
    )
    parser.add_argument(
        "-n",
        "--names",
        nargs="+",
        help="Objects to plot (default: all)",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Output filename for plot (default: show interactively)",
    )
    parser.add_argument(
        "-t",
        "--title",
        help="Plot title (default: filename)",
    )
    parser.add_argument(
        "-w",
        "--width",
        type=float,
        default=4.0,
        help="Figure width in inches (default: 4.0)",
    )
    parser.add_argument(
        "--list-objects",
        action="store_true",
        help="List plottable objects and exit",
    )

    args = parser.parse_args(argv)

    for spec in args.filenames:
        _, filename = parse_file_spec(spec)
        if not Path(filename).exists():
            print(f"Error: file not found: {filename}")
            sys.exit(1)

    if args.list_objects:
        for spec in args.filenames:
            _, filename = parse_file_spec(spec)
            list_objects(filename)
        sys.exit(0)

    plot_objects(
        args.filenames,
        names=args.names,
        output=args.output,
        title=args.title,
        figwidth=args.width,
    )


if __name__ == "__main__":
    main()
