import secrets
import time
from io import BytesIO
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from core.exceptions import ValidationFailedError
from utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "webp"}
MAX_IMAGE_BYTES = 15 * 1024 * 1024
MAX_IMAGES_PER_UPLOAD = 3
MAX_WIDTH = 1200
WEBP_QUALITY = 80


class ImageService:
    """
    Stores product photos under the upload directory.

    Every upload is scaled down to at most 1200px wide (aspect ratio kept)
    and re-encoded as WEBP. Paths handed back are relative to the public
    root, e.g. "uploads/1717000000_<random>.webp".
    """

    def __init__(self, upload_dir: str, public_prefix: str = "uploads"):
        self.upload_dir = Path(upload_dir)
        self.public_prefix = public_prefix

    def validate(self, filename: Optional[str], data: bytes):
        extension = (filename or "").rsplit(".", 1)[-1].lower() if filename and "." in filename else ""
        if extension not in ALLOWED_EXTENSIONS:
            raise ValidationFailedError(
                "Images must be jpg, jpeg, png or webp",
                filename=filename
            )
        if len(data) > MAX_IMAGE_BYTES:
            raise ValidationFailedError("Images must be 15 MB or smaller", filename=filename)

    def load(self, filename: Optional[str], data: bytes) -> Image.Image:
        """Validate and decode an upload, scaled down and ready to store."""
        self.validate(filename, data)

        try:
            image = Image.open(BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError):
            raise ValidationFailedError("File is not a valid image", filename=filename)

        if image.width > MAX_WIDTH:
            height = round(image.height * MAX_WIDTH / image.width)
            image = image.resize((MAX_WIDTH, height), Image.LANCZOS)

        if image.mode not in ("RGB", "RGBA"):
            image = image.convert("RGBA" if "A" in image.getbands() else "RGB")
        return image

    def store(self, image: Image.Image, original: Optional[str] = None) -> str:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        stored_name = f"{int(time.time())}_{secrets.token_hex(10)}.webp"
        image.save(self.upload_dir / stored_name, "WEBP", quality=WEBP_QUALITY)

        logger.debug("Product image stored", extra={"file": stored_name, "original": original})
        return f"{self.public_prefix}/{stored_name}"

    def save(self, filename: Optional[str], data: bytes) -> str:
        return self.store(self.load(filename, data), filename)

    def delete(self, path: str):
        # only the basename is trusted, a stored path can never point outside the upload dir
        target = self.upload_dir / Path(path).name
        if target.exists():
            target.unlink()
            logger.debug("Product image deleted", extra={"file": target.name})
