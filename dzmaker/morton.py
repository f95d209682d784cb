"""
Morton (Z-order) addressing for collection members
"""


def morton_encode(index):
    """
    Map a sequence index to a grid coordinate by bit interleaving.

    Bits 0, 2, 4, ... of the index form the column and bits 1, 3, 5, ...
    form the row, so index 1 is (row=0, col=1), 2 is (1, 0) and 3 is (1, 1).

    Args:
        index: Non-negative integer

    Returns:
        tuple: (row, col)
    """
    if index < 0:
        raise ValueError(f"Morton index must be non-negative, got {index}")

    row = col = 0
    bit = 0
    while index:
        col |= (index & 1) << bit
        index >>= 1
        row |= (index & 1) << bit
        index >>= 1
        bit += 1
    return row, col


def morton_decode(row, col):
    """Inverse of morton_encode."""
    if row < 0 or col < 0:
        raise ValueError(f"Morton coordinates must be non-negative, got ({row}, {col})")

    index = 0
    bit = 0
    while row or col:
        index |= (col & 1) << (2 * bit)
        index |= (row & 1) << (2 * bit + 1)
        row >>= 1
        col >>= 1
        bit += 1
    return index
