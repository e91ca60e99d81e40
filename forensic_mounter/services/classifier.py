"""Decide whether input images are independent volumes or one RAID set."""

from __future__ import annotations

from typing import Sequence

from forensic_mounter.domain import ImageReference, Mode
from forensic_mounter.logging import LoggerFactory


log = LoggerFactory.for_classify()

# Number of leading base-name characters that must match for auto RAID.
PREFIX_LENGTH = 5


def classify(images: Sequence[ImageReference], requested: Mode) -> Mode:
    """Resolve the requested mode to SINGLE or RAID.

    An explicit mode always wins. In auto mode a single image is SINGLE;
    several images are RAID only when every base name starts with the same
    PREFIX_LENGTH characters as the first one. The comparison is exact, so
    ``disk1``/``disk2`` differ at the fifth character and stay SINGLE.
    """
    if requested is not Mode.AUTO:
        log.info(f"Mode selected by parameter: '{requested.value}'")
        return requested

    if len(images) <= 1:
        resolved = Mode.SINGLE
    else:
        reference = images[0].base_name[:PREFIX_LENGTH]
        resolved = Mode.RAID
        for image in images[1:]:
            if image.base_name[:PREFIX_LENGTH] != reference:
                resolved = Mode.SINGLE
                break

    log.info(f"Auto mode detection: selected mode is '{resolved.value}'")
    return resolved
