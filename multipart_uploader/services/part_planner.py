"""
Part planning for multipart uploads.
Splits a source of known size into ordered, contiguous part ranges.
"""
from typing import Iterator
from multipart_uploader.core.exceptions import ValidationException
from multipart_uploader.models.part import PartRange


def plan_parts(total_size: int, max_part_size: int) -> Iterator[PartRange]:
    """
    Yield the part ranges covering [0, total_size).

    Every range is max_part_size long except possibly the last one.
    A total_size of 0 yields nothing.

    Args:
        total_size: Size of the source in bytes
        max_part_size: Largest allowed part in bytes

    Yields:
        PartRange objects numbered from 1

    Raises:
        ValidationException: If total_size is negative or max_part_size is not positive
    """
    if total_size < 0:
        raise ValidationException(f"total_size must be >= 0, got: {total_size}")
    if max_part_size <= 0:
        raise ValidationException(f"max_part_size must be > 0, got: {max_part_size}")
    return _iter_ranges(total_size, max_part_size)


def _iter_ranges(total_size: int, max_part_size: int) -> Iterator[PartRange]:
    offset = 0
    part_number = 1
    while offset < total_size:
        length = min(max_part_size, total_size - offset)
        yield PartRange(part_number=part_number, offset=offset, length=length)
        offset += length
        part_number += 1


def count_parts(total_size: int, max_part_size: int) -> int:
    """Number of ranges plan_parts yields for the same arguments."""
    if max_part_size <= 0:
        raise ValidationException(f"max_part_size must be > 0, got: {max_part_size}")
    return -(-total_size // max_part_size)
