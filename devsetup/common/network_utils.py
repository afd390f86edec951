# devsetup/common/network_utils.py
# -*- coding: utf-8 -*-
"""
Network helpers for fetching installer scripts and release archives.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import requests

module_logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120
CHUNK_SIZE = 8192


def fetch_text(
    url: str,
    timeout: int = DEFAULT_TIMEOUT,
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """
    Download a small text resource such as an installer script.

    Raises:
        requests.RequestException: On connection errors, timeouts and
            non-2xx responses.
    """
    logger_to_use = current_logger if current_logger else module_logger
    logger_to_use.info(f"Fetching {url}")
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.text


def download_file(
    url: str,
    download_to_path: Union[str, Path],
    timeout: int = DEFAULT_TIMEOUT,
    current_logger: Optional[logging.Logger] = None,
) -> Path:
    """
    Stream a file from ``url`` to ``download_to_path``.

    A partially written file is removed when the download fails.

    Returns:
        The path the file was written to.

    Raises:
        requests.RequestException: On network or HTTP errors.
        OSError: If the file cannot be written.
    """
    logger_to_use = current_logger if current_logger else module_logger
    download_path = Path(download_to_path)
    download_path.parent.mkdir(parents=True, exist_ok=True)
    logger_to_use.info(f"Downloading {url} to {download_path}")

    try:
        with requests.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            with open(download_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
    except (requests.RequestException, OSError):
        if download_path.exists():
            download_path.unlink()
        raise

    logger_to_use.info(f"Downloaded {download_path} ({download_path.stat().st_size} bytes)")
    return download_path
