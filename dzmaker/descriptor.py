"""
Descriptor files - .dzi image descriptors and .dzc collection manifests
"""

import xml.etree.ElementTree as ET

from .config import DEEPZOOM_NAMESPACE
from .errors import DescriptorError

ET.register_namespace('', DEEPZOOM_NAMESPACE)


def _tag(name):
    return f"{{{DEEPZOOM_NAMESPACE}}}{name}"


def _write(root, path):
    tree = ET.ElementTree(root)
    tree.write(str(path), encoding='UTF-8', xml_declaration=True)


def write_dzi(path, spec):
    """
    Write a Deep Zoom image descriptor.

    Args:
        path: Output .dzi (or .xml) path
        spec: PyramidSpec of the finished pyramid
    """
    root = ET.Element(_tag('Image'), {
        'TileSize': str(spec.tile_size),
        'Overlap': str(spec.overlap),
        'Format': spec.format,
    })
    ET.SubElement(root, _tag('Size'), {
        'Width': str(spec.width),
        'Height': str(spec.height),
    })
    _write(root, path)


def _parse(path, root_name):
    """Parse a descriptor and check it has a namespaced `root_name` root."""
    try:
        root = ET.parse(str(path)).getroot()
    except ET.ParseError as e:
        raise DescriptorError(f"{path}: not a valid descriptor: {e}") from e
    if root.tag != _tag(root_name):
        raise DescriptorError(
            f"{path}: expected a Deep Zoom {root_name} root, found {root.tag!r}"
        )
    return root


def read_dzi(path):
    """
    Read a Deep Zoom image descriptor.

    Returns:
        dict: tile_size, overlap, format, width, height

    Raises:
        DescriptorError: If the file is not a well-formed .dzi
    """
    root = _parse(path, 'Image')
    try:
        size = root.find(_tag('Size'))
        return {
            'tile_size': int(root.get('TileSize')),
            'overlap': int(root.get('Overlap')),
            'format': root.get('Format'),
            'width': int(size.get('Width')),
            'height': int(size.get('Height')),
        }
    except (AttributeError, TypeError, ValueError) as e:
        raise DescriptorError(f"{path}: malformed image descriptor: {e}") from e


def write_dzc(path, manifest):
    """
    Write a Deep Zoom collection manifest.

    Args:
        path: Output .dzc (or .xml) path
        manifest: CollectionManifest returned by CollectionPacker.finalize()
    """
    root = ET.Element(_tag('Collection'), {
        'MaxLevel': str(manifest.max_level),
        'TileSize': str(manifest.tile_size),
        'Format': manifest.format,
        'NextItemId': str(manifest.next_item_id),
    })
    items = ET.SubElement(root, _tag('Items'))
    for member in manifest.items:
        item = ET.SubElement(items, _tag('I'), {
            'Id': str(member.index),
            'N': str(member.index),
            'Source': member.source,
        })
        ET.SubElement(item, _tag('Size'), {
            'Width': str(member.width),
            'Height': str(member.height),
        })
    _write(root, path)


def read_dzc(path):
    """
    Read a Deep Zoom collection manifest.

    Returns:
        dict: max_level, tile_size, format, next_item_id and items, where
        each item is a dict with index, source, width, height

    Raises:
        DescriptorError: If the file is not a well-formed .dzc
    """
    root = _parse(path, 'Collection')
    try:
        items = []
        for item in root.iter(_tag('I')):
            size = item.find(_tag('Size'))
            items.append({
                'index': int(item.get('Id')),
                'source': item.get('Source'),
                'width': int(size.get('Width')),
                'height': int(size.get('Height')),
            })
        return {
            'max_level': int(root.get('MaxLevel')),
            'tile_size': int(root.get('TileSize')),
            'format': root.get('Format'),
            'next_item_id': int(root.get('NextItemId')),
            'items': items,
        }
    except (AttributeError, TypeError, ValueError) as e:
        raise DescriptorError(f"{path}: malformed collection manifest: {e}") from e
