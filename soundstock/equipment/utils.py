"""Helpers for equipment image files"""
import logging
import os
import re
import time

logger = logging.getLogger(__name__)


def equipment_image_path(instance, filename):
    """uploads/<unix millis>-<original name with whitespace replaced by dashes>"""
    safe_name = re.sub(r'\s+', '-', os.path.basename(filename))
    return f"uploads/{int(time.time() * 1000)}-{safe_name}"


def delete_image_file(image):
    """Remove an image file from storage, logging instead of raising"""
    if not image:
        return
    name = image.name
    try:
        image.storage.delete(name)
        logger.info(f"Deleted equipment image: {name}")
    except Exception as e:
        logger.warning(f"Could not delete equipment image {name}: {str(e)}")
