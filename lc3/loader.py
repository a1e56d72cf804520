"""
Object image loader.

An LC-3 object image is a sequence of big-endian 16-bit words: the first is
the origin address, the rest are copied into memory starting there.
"""
import logging
import struct
from pathlib import Path
from typing import List, Tuple, Union

from .errors import MalformedImage
from .memory import MEM_SIZE, Memory

logger = logging.getLogger(__name__)


def parse_image(data: bytes) -> Tuple[int, List[int]]:
    """Split raw image bytes into (origin, words)."""
    if not data:
        raise MalformedImage("object image is empty")
    if len(data) % 2:
        raise MalformedImage(f"object image has odd length ({len(data)} bytes)")
    origin, *words = struct.unpack(f'>{len(data) // 2}H', data)
    if origin + len(words) > MEM_SIZE:
        raise MalformedImage(
            f"{len(words)} words at x{origin:04X} overflow the address space")
    return origin, words


def load(memory: Memory, data: bytes) -> int:
    """Write an object image into memory and return its origin."""
    origin, words = parse_image(data)
    memory.load(origin, words)
    logger.info("loaded %d words at x%04X", len(words), origin)
    return origin


def read_image(path: Union[str, Path]) -> bytes:
    return Path(path).read_bytes()
