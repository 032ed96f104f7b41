"""
Avatar images.

New users get a generated identicon: a 5x5 grid mirrored around the
vertical axis, one random foreground color on a light background. Uploaded
avatars are copied into the same directory under a fresh unique name.
"""

from __future__ import annotations

import secrets
import shutil
import uuid
from pathlib import Path
from typing import BinaryIO, Tuple

from PIL import Image, ImageDraw

GRID = 5
BACKGROUND = (240, 240, 240)


def _random_color() -> Tuple[int, int, int]:
    r, g, b = (secrets.randbelow(160) + 40 for _ in range(3))
    return r, g, b


class AvatarGenerator:
    """Writes random identicon PNGs into ``images_dir``"""

    def __init__(self, images_dir: Path, size: int = 250):
        self.images_dir = Path(images_dir)
        self.size = size

    def generate(self) -> str:
        """Create an avatar file and return its name (relative to images_dir)"""
        self.images_dir.mkdir(parents=True, exist_ok=True)
        cell = self.size // GRID
        img = Image.new("RGB", (cell * GRID, cell * GRID), BACKGROUND)
        draw = ImageDraw.Draw(img)
        color = _random_color()

        half = (GRID + 1) // 2
        for row in range(GRID):
            for col in range(half):
                if secrets.randbelow(2):
                    continue
                for x in {col, GRID - 1 - col}:
                    draw.rectangle(
                        [x * cell, row * cell, (x + 1) * cell - 1, (row + 1) * cell - 1],
                        fill=color,
                    )

        filename = f"{uuid.uuid4()}.png"
        img.save(self.images_dir / filename, format="PNG")
        return filename

    def remove(self, filename: str) -> None:
        (self.images_dir / filename).unlink(missing_ok=True)


def save_upload(fileobj: BinaryIO, original_name: str, images_dir: Path) -> str:
    """Store an uploaded file under a unique name keeping its extension"""
    images_dir = Path(images_dir)
    images_dir.mkdir(parents=True, exist_ok=True)
    file_ext = Path(original_name or "").suffix.lower()
    unique_filename = f"{uuid.uuid4()}{file_ext}"
    with open(images_dir / unique_filename, "wb") as buffer:
        shutil.copyfileobj(fileobj, buffer)
    return unique_filename
