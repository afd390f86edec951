from unittest.mock import MagicMock

import pytest
import requests

from devsetup.common.network_utils import download_file, fetch_text


def test_fetch_text(mocker, mock_logger):
    response = MagicMock(text="#!/bin/sh\necho install\n")
    mock_get = mocker.patch("devsetup.common.network_utils.requests.get", return_value=response)

    script = fetch_text("https://sh.rustup.rs", timeout=30, current_logger=mock_logger)

    assert script.startswith("#!/bin/sh")
    mock_get.assert_called_once_with("https://sh.rustup.rs", timeout=30)
    response.raise_for_status.assert_called_once()


def test_fetch_text_http_error(mocker):
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError("404 Client Error")
    mocker.patch("devsetup.common.network_utils.requests.get", return_value=response)

    with pytest.raises(requests.HTTPError):
        fetch_text("https://example.invalid/install.sh")


def _streaming_response(chunks):
    response = MagicMock()
    response.__enter__.return_value = response
    response.iter_content.return_value = chunks
    return response


def test_download_file_writes_chunks(mocker, tmp_path, mock_logger):
    mocker.patch(
        "devsetup.common.network_utils.requests.get",
        return_value=_streaming_response([b"abc", b"", b"def"]),
    )
    target = tmp_path / "downloads" / "nvim-linux64.tar.gz"

    path = download_file("https://example.invalid/nvim.tgz", target, current_logger=mock_logger)

    assert path == target
    assert target.read_bytes() == b"abcdef"


def test_download_file_removes_partial_file(mocker, tmp_path):
    def broken_stream(chunk_size):
        yield b"partial"
        raise requests.ConnectionError("reset by peer")

    response = _streaming_response(None)
    response.iter_content.side_effect = broken_stream
    mocker.patch("devsetup.common.network_utils.requests.get", return_value=response)
    target = tmp_path / "nvim.tgz"

    with pytest.raises(requests.ConnectionError):
        download_file("https://example.invalid/nvim.tgz", target)

    assert not target.exists()
