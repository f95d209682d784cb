"""
Command-line interface for dzmaker
"""

import logging

import click

from . import config as defaults
from .config import BuildConfig, CollectionConfig
from .errors import DeepZoomError
from .pipeline import DeepZoomMaker


class AspectRatio(click.ParamType):
    """Accepts a ratio as a number (1.5) or as W:H (3:2)."""

    name = 'ratio'

    def convert(self, value, param, ctx):
        if isinstance(value, float):
            return value
        try:
            if ':' in value:
                w, h = value.split(':', 1)
                ratio = float(w) / float(h)
            else:
                ratio = float(value)
        except (ValueError, ZeroDivisionError):
            self.fail(f"{value!r} is not a ratio like 1.5 or 3:2", param, ctx)
        if ratio <= 0:
            self.fail(f"{value!r} must be positive", param, ctx)
        return ratio


def setup_logging(debug):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(name)s: %(levelname)s: %(message)s',
    )


@click.command()
@click.argument('sources', nargs=-1, required=True)
@click.option('--tile-size', '-t', default=defaults.DEFAULT_TILE_SIZE, type=click.IntRange(min=1),
              help=f'Tile size (default: {defaults.DEFAULT_TILE_SIZE})')
@click.option('--overlap', '-o', default=defaults.DEFAULT_OVERLAP, type=click.IntRange(min=0),
              help=f'Tile overlap; 0 disables padding (default: {defaults.DEFAULT_OVERLAP})')
@click.option('--format', '-f', 'fmt', default=defaults.DEFAULT_FORMAT,
              help=f'Tile image format (default: {defaults.DEFAULT_FORMAT})')
@click.option('--output-dir', '-O', default='.', type=click.Path(file_okay=False),
              help='Directory for .dzi files and tile trees (default: .)')
@click.option('--collection', '-c', type=click.Path(dir_okay=False),
              help='Collection base path; writes <path>.dzc and <path>_files/')
@click.option('--collection-start', '-n', default=0, type=click.IntRange(min=0),
              help='Sequence index of the first collection item (default: 0)')
@click.option('--collection-max-level', '-m', default=defaults.COLLECTION_MAX_LEVEL,
              type=click.IntRange(min=0),
              help=f'Deepest collection level (default: {defaults.COLLECTION_MAX_LEVEL})')
@click.option('--aspect-ratio', '-a', type=AspectRatio(),
              help='Pad sources to this width/height ratio, e.g. 1.5 or 3:2')
@click.option('--xml-ext', '-x', is_flag=True,
              help='Name descriptors .xml instead of .dzi/.dzc')
@click.option('--debug', '-d', is_flag=True, help='Enable debug logging')
def main(sources, tile_size, overlap, fmt, output_dir, collection, collection_start,
         collection_max_level, aspect_ratio, xml_ext, debug):
    """Convert SOURCES into Deep Zoom images ('-' reads standard input)."""
    setup_logging(debug)

    build_config = BuildConfig(
        tile_size=tile_size,
        overlap=overlap,
        format=fmt,
        aspect_ratio=aspect_ratio,
        xml_ext=xml_ext,
    )

    collection_config = None
    if collection:
        collection_config = CollectionConfig(
            path=collection,
            start_index=collection_start,
            max_level=collection_max_level,
            format=fmt,
            xml_ext=xml_ext,
        )

    try:
        maker = DeepZoomMaker(build_config, output_dir, collection=collection_config)
        descriptors = maker.make_all(sources)
    except (DeepZoomError, OSError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    for path in descriptors:
        click.echo(path)


if __name__ == '__main__':
    main()
