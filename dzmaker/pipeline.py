"""
Deep Zoom pipeline - builds pyramids for a list of sources and an optional collection
"""

import logging
import os
import shutil
from pathlib import Path

from .backend import get_backend
from .builder import PyramidBuilder, TileWriter
from .collection import CollectionMember, CollectionPacker
from .config import BuildConfig
from .descriptor import read_dzc, write_dzc, write_dzi
from .errors import UsageError

logger = logging.getLogger(__name__)


def output_name(source):
    """Base name for a source's outputs ('-' reads from stdin)."""
    if str(source) == '-':
        return 'stdin'
    return Path(source).stem


class DeepZoomMaker:
    """
    Runs the full conversion for one or more source images.

    Each source gets `<output_dir>/<name>.dzi` and `<output_dir>/<name>_files/`.
    When a collection is configured every source is also registered as a
    collection member and packed level by level while its pyramid is built.
    """

    def __init__(self, config=None, output_dir='.', collection=None, backend=None):
        """
        Args:
            config: BuildConfig for the per-image pyramids
            output_dir: Directory receiving descriptors and tile trees
            collection: Optional CollectionConfig
            backend: ImageBackend; defaults to Pillow
        """
        self.config = (config or BuildConfig()).validate()
        self.output_dir = Path(output_dir)
        self.backend = backend or get_backend(quality=self.config.quality)
        self.collection = collection
        self.packer = None
        self._previous_items = []
        self._previous_next_id = 0

        if collection is not None:
            self.packer = CollectionPacker(collection, backend=self.backend)

    def _previous_manifest_path(self):
        path = self.collection.manifest_path
        return path.with_name(path.name + '.prev')

    def _start_collection(self):
        manifest_path = self.collection.manifest_path
        previous_path = self._previous_manifest_path()

        # A .prev left behind by a failed run is the last complete manifest
        source = manifest_path if manifest_path.exists() else previous_path
        if source.exists():
            previous = read_dzc(source)
            self._previous_items = [
                CollectionMember(
                    index=item['index'],
                    width=item['width'],
                    height=item['height'],
                    source=item['source'],
                )
                for item in previous['items']
            ]
            self._previous_next_id = previous['next_item_id']
            logger.info(
                "Extending collection %s (%d existing items)",
                manifest_path, len(self._previous_items),
            )
            # Kept aside until the new manifest is written
            if source == manifest_path:
                os.replace(manifest_path, previous_path)

        manifest_path.parent.mkdir(parents=True, exist_ok=True)
        self.packer.make_dirs()

    def _check_names(self, sources):
        """Refuse sources whose outputs would land on the same tile tree."""
        taken = {}
        if self.collection is not None:
            taken[self.collection.files_dir.resolve()] = f"collection {self.collection.path}"
        for source in sources:
            files_dir = (self.output_dir / f"{output_name(source)}_files").resolve()
            if files_dir in taken:
                raise UsageError(f"{source} and {taken[files_dir]} would both write {files_dir}")
            taken[files_dir] = source

    def _collection_source(self, descriptor):
        base = self.collection.manifest_path.parent
        return Path(os.path.relpath(descriptor, base)).as_posix()

    def make_image(self, source):
        """
        Build the pyramid (and collection contribution) for one source.

        Args:
            source: Image path, or '-' for standard input

        Returns:
            Path: The written descriptor
        """
        name = output_name(source)
        descriptor = self.output_dir / f"{name}{self.config.descriptor_ext}"
        files_dir = self.output_dir / f"{name}_files"

        # A descriptor only exists for a pyramid whose every level was written
        if descriptor.exists():
            descriptor.unlink()
        if files_dir.exists():
            logger.debug("removing stale %s", files_dir)
            shutil.rmtree(files_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        files_dir.mkdir()

        builder = PyramidBuilder(self.config, backend=self.backend)
        loaded = builder.load(source)
        spec = loaded[1]

        level_hook = None
        if self.packer is not None:
            index = self.packer.register_member(
                spec.width, spec.height, self._collection_source(descriptor)
            )
            logger.info("Collection item %d: %s", index, name)
            level_hook = self.packer.pack_level

        writer = TileWriter(files_dir, self.config.format, backend=self.backend)
        builder.build(source, writer, level_hook=level_hook, loaded=loaded)

        write_dzi(descriptor, spec)
        logger.info(
            "Wrote %s: %dx%d, %d levels, %d tiles",
            descriptor, spec.width, spec.height, builder.plan.level_count + 1, writer.count,
        )
        return descriptor

    def make_all(self, sources):
        """
        Process sources in order, then write the collection manifest.

        Returns:
            list: Descriptor paths, one per source
        """
        sources = list(sources)
        if not sources:
            raise UsageError("No source images given")
        self._check_names(sources)

        if self.packer is not None:
            self._start_collection()

        descriptors = [self.make_image(source) for source in sources]

        if self.packer is not None:
            self.write_manifest()
        return descriptors

    def write_manifest(self):
        """Write the collection manifest, keeping items of earlier runs."""
        manifest = self.packer.finalize()
        registered = {member.index for member in manifest.items}
        kept = [item for item in self._previous_items if item.index not in registered]
        manifest.items = sorted(kept + manifest.items, key=lambda member: member.index)
        manifest.next_item_id = max(manifest.next_item_id, self._previous_next_id)

        path = self.collection.manifest_path
        write_dzc(path, manifest)
        previous_path = self._previous_manifest_path()
        if previous_path.exists():
            previous_path.unlink()
        logger.info("Wrote %s: %d items", path, len(manifest.items))
        return path
