"""
Startup folder provisioning.
"""

from __future__ import annotations

import logging

from .settings import Settings

logger = logging.getLogger(__name__)


def ensure_folders(settings: Settings) -> None:
    """
    Create the image root, product-image subdirectory, data and staging
    directories. The placeholder asset is provisioned externally and is
    never created here.
    """
    for folder in (settings.images_dir, settings.products_dir, settings.data_dir, settings.tmp_dir):
        folder.mkdir(parents=True, exist_ok=True)
    logger.info(
        "Storage ready: images=%s products=%s data=%s staging=%s",
        settings.images_dir,
        settings.products_dir,
        settings.data_dir,
        settings.tmp_dir,
    )
