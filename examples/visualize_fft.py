"""Visual FFT tool - Analyze a single image and plot its spectrum, peaks and radial profile."""

import argparse
import logging
import sys
from pathlib import Path

import matplotlib.pyplot as plt
from PIL import Image

from spectral_lab.config import FFTOptions
from spectral_lab.fourier import FourierTransformAnalyzer, compute_radial_profile
from spectral_lab.preprocessing import GrayscaleConverter, RasterImage

# Configure logging
logging.basicConfig(level=logging.WARNING)


def create_fft_visualization(
    image_path: Path,
    options: FFTOptions,
    output_path: Path = None,
    show_peaks: bool = True,
):
    """
    Create an FFT figure for a single image.

    Args:
        image_path: Path to the image file
        options: FFT analysis options
        output_path: Optional path to save the figure
        show_peaks: Whether to mark dominant frequencies
    """
    print(f"Analyzing image: {image_path}")

    with Image.open(image_path) as img:
        raster = RasterImage.from_pil(img)

    analyzer = FourierTransformAnalyzer()
    result = analyzer.analyze(raster, options)
    rendered = analyzer.create_visualization(result, options)
    profile = compute_radial_profile(result.magnitude_spectrum)

    fig = plt.figure(figsize=(18, 12))
    gs = fig.add_gridspec(2, 2, hspace=0.3, wspace=0.3, height_ratios=[1, 0.6])
    ax_original = fig.add_subplot(gs[0, 0])
    ax_spectrum = fig.add_subplot(gs[0, 1])
    ax_profile = fig.add_subplot(gs[1, :])

    energy = result.statistics.energy_distribution
    fig.suptitle(
        f"FFT Analysis: {image_path.name}\n"
        f"Energy low={energy.low_freq:.2e} | mid={energy.mid_freq:.2e} | high={energy.high_freq:.2e}",
        fontsize=16,
        fontweight="bold",
    )

    ax_original.imshow(GrayscaleConverter().convert(raster), cmap="gray")
    ax_original.set_title("Original Image (Grayscale)", fontsize=12, fontweight="bold")
    ax_original.axis("off")

    ax_spectrum.imshow(rendered, interpolation="nearest")
    ax_spectrum.set_title(f"Spectrum ({options.visualization_mode})", fontsize=12, fontweight="bold")
    ax_spectrum.set_xlabel("Frequency (x)")
    ax_spectrum.set_ylabel("Frequency (y)")

    peaks = result.statistics.dominant_frequencies
    if show_peaks and peaks and options.visualization_mode in ("magnitude", "spectrum"):
        ax_spectrum.scatter(
            [p.x for p in peaks],
            [p.y for p in peaks],
            s=80,
            facecolors="none",
            edgecolors="white",
            linewidths=2,
            zorder=10,
        )
        for i, peak in enumerate(peaks[:5], 1):
            ax_spectrum.annotate(
                f"#{i}",
                (peak.x, peak.y),
                xytext=(5, 5),
                textcoords="offset points",
                color="white",
                fontsize=10,
                fontweight="bold",
            )

    ax_profile.plot(range(len(profile)), profile, linewidth=2, color="#2c3e50", label="Radial mean magnitude")
    ax_profile.set_yscale("log" if profile.size and profile.min() > 0 else "linear")
    ax_profile.set_xlabel("Radius (pixels from DC)", fontsize=12, fontweight="bold")
    ax_profile.set_ylabel("Mean Magnitude", fontsize=12, fontweight="bold")
    ax_profile.set_title("Radial Frequency Profile", fontsize=14, fontweight="bold")
    ax_profile.grid(True, alpha=0.3)
    ax_profile.legend()

    plt.tight_layout()

    if output_path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=200, bbox_inches="tight")
        print(f"  Visualization saved to: {output_path}")
    else:
        plt.show()

    plt.close(fig)

    return result


def main():
    """Main function for command-line usage."""
    parser = argparse.ArgumentParser(
        description="Visual FFT tool - Analyze a single image in the frequency domain",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze an image and display interactively
  python visualize_fft.py path/to/image.png

  # Hann window, lowpass filter, save to file
  python visualize_fft.py path/to/image.png --window hanning --filter lowpass -o spectrum.png
        """,
    )

    parser.add_argument("image", type=str, help="Path to the image file to analyze")
    parser.add_argument("-o", "--output", type=str, default=None, help="Output path for the figure")
    parser.add_argument(
        "--mode",
        default="magnitude",
        choices=["magnitude", "phase", "both", "spectrum"],
        help="Visualization mode (default: magnitude)",
    )
    parser.add_argument(
        "--window",
        default="none",
        choices=["none", "hanning", "hamming", "blackman", "kaiser"],
        help="Window function applied before the transform (default: none)",
    )
    parser.add_argument(
        "--filter",
        default="none",
        choices=["none", "lowpass", "highpass", "bandpass", "notch"],
        help="Frequency-domain filter (default: none)",
    )
    parser.add_argument("--cutoff", type=float, default=0.3, help="Cutoff frequency, cycles/pixel (default: 0.3)")
    parser.add_argument("--colormap", default="jet", help="Colormap name (default: jet)")
    parser.add_argument("--no-log", action="store_true", help="Disable log scaling of the magnitude")
    parser.add_argument("--no-peaks", action="store_true", help="Do not mark dominant frequencies")

    args = parser.parse_args()

    image_path = Path(args.image)
    if not image_path.exists():
        print(f"Error: Image not found: {image_path}", file=sys.stderr)
        sys.exit(1)

    options = FFTOptions(
        visualization_mode=args.mode,
        window_function=args.window,
        filter_type=args.filter,
        cutoff_frequency=args.cutoff,
        colormap=args.colormap,
        log_scale=not args.no_log,
        show_radial_profile=True,
        pad_to_power_of_two=True,
    )

    output_path = Path(args.output) if args.output else None
    result = create_fft_visualization(image_path, options, output_path, show_peaks=not args.no_peaks)

    print("\n" + "=" * 60)
    print("ANALYSIS SUMMARY")
    print("=" * 60)
    print(f"Image: {image_path}")
    print(f"Original size: {result.original_shape[1]}x{result.original_shape[0]}")
    print(f"Transform size: {result.width}x{result.height}")
    print(f"DC component: {result.dc_component.real:.1f}")
    print(f"Max / mean magnitude: {result.statistics.max_magnitude:.1f} / {result.statistics.mean_magnitude:.3f}")

    if result.statistics.dominant_frequencies:
        print(f"\nTop 5 Peaks:")
        for i, peak in enumerate(result.statistics.dominant_frequencies[:5], 1):
            print(
                f"  {i}. Position: ({peak.x:4d}, {peak.y:4d}), "
                f"Magnitude: {peak.magnitude:10.2f}, "
                f"Frequency: {peak.frequency:6.3f}"
            )


if __name__ == "__main__":
    main()
