"""
Incremental decoding of the streamed device feed into raw 8-value frames.

The stream is UTF-8 text, one frame per '\n'-terminated line, fields
separated by tabs. Lines that do not hold exactly the expected number of
float fields are dropped.
"""
import codecs
import logging
import math
from typing import List, Optional, Tuple

import config

logger = logging.getLogger(__name__)

Frame = List[float]


def parse_frame(line: str, num_fields: int = config.NUM_CHANNELS) -> Optional[Frame]:
    """Parse one line into a frame, or None if it is blank or malformed."""
    line = line.strip()
    if not line:
        return None
    fields = line.split(config.FRAME_FIELD_SEPARATOR)
    if len(fields) != num_fields:
        return None
    try:
        values = [float(f) for f in fields]
    except ValueError:
        return None
    if not all(math.isfinite(v) for v in values):
        return None
    return values


def decode_lines(residual: str, text: str, num_fields: int = config.NUM_CHANNELS) -> Tuple[List[Frame], str]:
    """
    Split newly received text into frames.

    Args:
        residual: Partial line left over from the previous call
        text: Newly decoded text
        num_fields: Expected fields per frame

    Returns:
        tuple: (frames, new_residual). Only the consumed lines are removed
               from the buffer; the trailing partial line is returned.
    """
    buffer = residual + text
    frames = []
    *lines, remainder = buffer.split("\n")
    for line in lines:
        frame = parse_frame(line, num_fields)
        if frame is None:
            if line.strip():
                logger.debug("Dropping malformed frame: %r", line)
            continue
        frames.append(frame)
    return frames, remainder


class FrameDecoder:
    """Bytes -> frames, carrying undecoded bytes and the partial line between chunks."""

    def __init__(self, num_fields=config.NUM_CHANNELS):
        self.num_fields = num_fields
        self._decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
        self.residual = ""

    def feed(self, chunk: bytes) -> List[Frame]:
        text = self._decoder.decode(chunk)
        frames, self.residual = decode_lines(self.residual, text, self.num_fields)
        return frames

    def reset(self):
        """Discard buffered bytes and the partial line."""
        self._decoder.reset()
        self.residual = ""
