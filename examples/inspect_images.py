"""Batch inspection - run one inspection over a folder of images and save the renders."""

import argparse
import json
import logging
import sys
from pathlib import Path

from PIL import Image
from tqdm import tqdm

from spectral_lab.inspection import INSPECTION_TYPES, InspectionRunner
from spectral_lab.preprocessing import RasterImage

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff")


def find_images(directory: Path):
    """Find all images in a directory (recursive)."""
    return sorted(p for p in directory.rglob("*") if p.suffix.lower() in IMAGE_EXTENSIONS)


def main():
    parser = argparse.ArgumentParser(description="Run an inspection over every image in a folder")
    parser.add_argument("input_dir", type=str, help="Folder of images")
    parser.add_argument("output_dir", type=str, help="Folder for rendered visualizations")
    parser.add_argument("--type", default="edgeDensity", choices=INSPECTION_TYPES, help="Inspection type")
    parser.add_argument(
        "--params",
        type=str,
        default="{}",
        help='Inspection parameters as JSON, e.g. \'{"regionSize": 16, "heatmapMode": "strength"}\'',
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    input_dir = Path(args.input_dir)
    if not input_dir.is_dir():
        print(f"Error: Directory not found: {input_dir}", file=sys.stderr)
        sys.exit(1)

    images = find_images(input_dir)
    if not images:
        print(f"No images found in {input_dir}")
        return

    parameters = json.loads(args.params)
    if args.type == "fourierTransform":
        parameters.setdefault("padToPowerOfTwo", True)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    runner = InspectionRunner()
    failed = 0
    for img_path in tqdm(images, desc=f"Running {args.type}"):
        try:
            with Image.open(img_path) as img:
                raster = RasterImage.from_pil(img)
            output = runner.run(args.type, raster, parameters)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to inspect {img_path}: {e}")
            failed += 1
            continue

        target = output_dir / f"{img_path.stem}_{args.type}.png"
        Image.fromarray(output.visualization).save(target)

    print(f"\nProcessed {len(images) - failed}/{len(images)} images, renders in {output_dir}")


if __name__ == "__main__":
    main()
