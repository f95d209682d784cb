"""
Example: Deep Zoom images packed into a collection
"""

from pathlib import Path

import numpy as np
from PIL import Image

from dzmaker import BuildConfig, CollectionConfig, DeepZoomMaker

work_dir = Path('/tmp/dzmaker_example')
work_dir.mkdir(parents=True, exist_ok=True)

# Create a few sample images of different shapes
print("Creating sample images...")
sources = []
for i, (width, height) in enumerate([(1024, 768), (300, 300), (640, 200)]):
    y, x = np.mgrid[0:height, 0:width]
    image_array = np.zeros((height, width, 3), dtype=np.uint8)
    image_array[..., 0] = (255 * np.sin(x / (30 + i * 10)) ** 2).astype(np.uint8)
    image_array[..., 1] = (255 * np.sin(y / 40) ** 2).astype(np.uint8)
    image_array[..., 2] = (255 * np.sin((x + y) / 70) ** 2).astype(np.uint8)

    path = work_dir / f'sample_{i}.png'
    Image.fromarray(image_array).save(path)
    sources.append(path)
    print(f"  {path}: {width}x{height}")

# Build one pyramid per image and pack all of them into one collection
print("\nBuilding pyramids...")
maker = DeepZoomMaker(
    BuildConfig(tile_size=256, overlap=1, format='jpg'),
    output_dir=work_dir / 'output',
    collection=CollectionConfig(path=work_dir / 'output' / 'samples', max_level=8),
)
descriptors = maker.make_all(sources)

for path in descriptors:
    print(f"  {path}")
print(f"  {maker.collection.manifest_path}")

print("\nExample completed!")
print("\nThe same result from the command line:")
print(f"  makedeepzoom -O {work_dir / 'output'} -c {work_dir / 'output' / 'samples'} "
      + " ".join(str(s) for s in sources))
