"""
Supabase storage access for the casualty CSV
"""
from functools import lru_cache
import logging

from supabase import create_client, Client

from .config import Settings
from .loader import LoadFailure

logger = logging.getLogger(__name__)


@lru_cache()
def get_storage_client(url: str, key: str) -> Client:
    """
    Get Supabase client instance (cached per url/key)

    Args:
        url: Supabase project URL
        key: anon key

    Returns:
        Supabase client instance
    """
    try:
        client = create_client(url, key)
        logger.info("Supabase client created")
        return client
    except Exception as e:
        logger.error(f"Failed to create Supabase client: {e}")
        raise LoadFailure(f"Failed to create Supabase client: {e}") from e


def fetch_csv_text(settings: Settings) -> str:
    """
    Download the casualty CSV from the configured bucket

    Returns:
        CSV text (UTF-8)

    Raises:
        LoadFailure: download failed or returned nothing
    """
    bucket, path = settings.supabase_bucket_name, settings.supabase_file_path
    logger.info(f"Fetching from Supabase: bucket={bucket} path={path}")
    client = get_storage_client(settings.supabase_url, settings.supabase_anon_key)

    try:
        data = client.storage.from_(bucket).download(path)
    except Exception as e:
        logger.error(f"Supabase download failed: {e}")
        raise LoadFailure(f"Failed to load CSV from Supabase: {e}") from e

    if not data:
        raise LoadFailure("No data received from Supabase Storage")

    if not isinstance(data, bytes):
        return str(data)
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        logger.error(f"Supabase payload is not UTF-8: {e}")
        raise LoadFailure(f"CSV is not valid UTF-8: {e}") from e
