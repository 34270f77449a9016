"""
Metadata publishing: pins token fields and image through the Pump.fun IPFS endpoint
"""

import logging
import time
from typing import Optional

import httpx

from .exceptions import UploadFailure
from .metrics import track_launch_stage
from .models import LaunchOptions, MetadataResponse, TokenMetadata

logger = logging.getLogger(__name__)

DEFAULT_IPFS_URL = "https://pump.fun/api/ipfs"
IMAGE_FILENAME = "token_image.png"
IMAGE_CONTENT_TYPE = "image/png"


async def fetch_image(http: httpx.AsyncClient, image_url: str) -> bytes:
    """
    Download the token image

    Raises:
        httpx.HTTPError: If the image cannot be fetched
    """
    response = await http.get(image_url, follow_redirects=True)
    response.raise_for_status()
    logger.debug(f"Fetched {len(response.content)} image bytes from {image_url}")
    return response.content


@track_launch_stage("upload_metadata")
async def upload_metadata(
    http: httpx.AsyncClient,
    token_name: str,
    token_ticker: str,
    description: str,
    image_url: str,
    options: Optional[LaunchOptions] = None,
    ipfs_url: str = DEFAULT_IPFS_URL,
) -> MetadataResponse:
    """
    Upload token metadata and image as a single multipart request

    Args:
        http: HTTP client used for the image download and the upload
        token_name: Name of the token
        token_ticker: Ticker symbol of the token
        description: Description of the token
        image_url: URL of the token image
        options: Launch options carrying optional social links
        ipfs_url: Metadata upload endpoint

    Returns:
        MetadataResponse: Pinned metadata and its URI

    Raises:
        ValueError: If a required text field is empty
        UploadFailure: If the metadata host returns a non-success status, or a
            body without a metadata URI, name and symbol
    """
    metadata = TokenMetadata.from_options(token_name, token_ticker, description, options)

    image_bytes = await fetch_image(http, image_url)

    start_time = time.time()
    response = await http.post(
        ipfs_url,
        data=dict(metadata.form_fields()),
        files={"file": (IMAGE_FILENAME, image_bytes, IMAGE_CONTENT_TYPE)},
    )
    elapsed = time.time() - start_time
    logger.debug(f"POST {ipfs_url} completed in {elapsed:.2f}s (status: {response.status_code})")

    if not response.is_success:
        logger.error(f"Metadata upload failed with status {response.status_code}: {response.reason_phrase}")
        raise UploadFailure(response.status_code, response.reason_phrase)

    try:
        result = MetadataResponse.model_validate(response.json())
    except ValueError as e:
        logger.error(f"Metadata host returned an unusable response: {e}")
        raise UploadFailure(response.status_code, f"malformed response from metadata host ({e})") from e

    logger.info(f"Metadata pinned for {metadata.symbol}: {result.metadata_uri}")
    return result
