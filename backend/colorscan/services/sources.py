"""
Image sources and identifier lists for batch runs.

Every source turns an identifier (URL or file path) into a decoded RGB
raster, or None when the image cannot be retrieved or decoded.
"""
from pathlib import Path
from typing import List, Optional, Protocol, Union

import numpy as np
import requests
from loguru import logger

from colorscan.config import config
from colorscan.services.imaging import decode_image_bytes


class ImageSource(Protocol):
    """Anything that can fetch a decoded raster by identifier."""

    def fetch(self, identifier: str) -> Optional[np.ndarray]:
        ...


class UrlImageSource:
    """Fetch images over HTTP(S) with requests."""

    def __init__(self, timeout: float = None, session: Optional[requests.Session] = None):
        self.timeout = config.FETCH_TIMEOUT if timeout is None else timeout
        self.session = session or requests.Session()

    def fetch(self, identifier: str) -> Optional[np.ndarray]:
        try:
            response = self.session.get(identifier, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to fetch image {identifier}: {e}")
            return None

        image = decode_image_bytes(response.content)
        if image is None:
            logger.error(f"Fetched payload is not an image: {identifier}")
        return image


class FileImageSource:
    """Read images from the local filesystem."""

    def __init__(self, base_dir: Optional[Union[str, Path]] = None):
        self.base_dir = Path(base_dir) if base_dir else None

    def resolve(self, identifier: str) -> Path:
        path = Path(identifier).expanduser()
        if self.base_dir and not path.is_absolute():
            path = self.base_dir / path
        return path

    def fetch(self, identifier: str) -> Optional[np.ndarray]:
        path = self.resolve(identifier)
        try:
            data = path.read_bytes()
        except OSError as e:
            logger.error(f"Failed to read image {path}: {e}")
            return None

        image = decode_image_bytes(data)
        if image is None:
            logger.error(f"File is not a decodable image: {path}")
        return image


class AutoImageSource:
    """Dispatch http(s) identifiers to UrlImageSource and everything else to FileImageSource."""

    def __init__(self, url_source: Optional[UrlImageSource] = None, file_source: Optional[FileImageSource] = None):
        self.url_source = url_source or UrlImageSource()
        self.file_source = file_source or FileImageSource()

    def fetch(self, identifier: str) -> Optional[np.ndarray]:
        if identifier.lower().startswith(("http://", "https://")):
            return self.url_source.fetch(identifier)
        return self.file_source.fetch(identifier)


def read_identifiers(path: Union[str, Path], remove_duplicates: bool = False) -> List[str]:
    """
    Read one identifier per line from a text file.

    Blank lines are skipped and surrounding whitespace is stripped. With
    remove_duplicates, repeated identifiers keep their first position.

    Returns:
        List of identifiers; empty if the file cannot be read
    """
    path = Path(path).resolve()
    logger.info(f"Reading file: {path}")

    try:
        with open(path, "r", encoding="utf-8") as fh:
            lines = [line.strip() for line in fh]
    except OSError as e:
        logger.error(f"Error reading file {path}: {e}")
        return []

    identifiers = [line for line in lines if line]
    if remove_duplicates:
        identifiers = list(dict.fromkeys(identifiers))

    logger.info(f"File read completed: {path} ({len(identifiers)} identifiers)")
    return identifiers
