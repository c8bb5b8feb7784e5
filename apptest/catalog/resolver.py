import logging
from datetime import datetime, timezone
from logging import Logger
from typing import List, Optional
from apptest.common.models.version import Version
from apptest.types.models import CatalogEntry
from apptest.utils.errors import NotFoundError
from apptest.utils.helpers import iso_datestr_to_datetime
from apptest.web.client import CatalogWebClient

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _created_at(entry: CatalogEntry) -> datetime:
    created = entry.created
    if isinstance(created, datetime):
        return created if created.tzinfo else created.replace(tzinfo=timezone.utc)
    try:
        return iso_datestr_to_datetime(created) or _EPOCH
    except ValueError:
        return _EPOCH


def _version_key(entry: CatalogEntry):
    version = Version.parse(entry.version)
    # Non semver versions sort below every semver one.
    return (version is not None, version.sort_key() if version else ())


def latest_entry(entries: List[CatalogEntry], ref: str = "") -> Optional[CatalogEntry]:
    """Pick the most recently published entry whose version contains `ref`.

    Entries published at the same time are ordered by semantic version.
    """
    candidates = [e for e in entries if e.version and (not ref or ref in e.version)]
    if not candidates:
        return None
    return max(candidates, key=lambda e: (_created_at(e), _version_key(e)))


class VersionResolver:
    """Maps an app name and optional reference to a concrete catalog version."""

    logger: Logger
    web_client: CatalogWebClient

    def __init__(self, web_client: CatalogWebClient = None, logger: Logger = None):
        self.web_client = web_client or CatalogWebClient()
        self.logger = logger or logging.getLogger(__name__)

    async def resolve_latest(self, catalog_url: str, app_name: str, ref: str = "") -> str:
        """Return the latest version of `app_name` in the catalog.

        An empty `ref` selects the absolute latest version; otherwise only
        versions containing `ref` (a version or commit SHA) are considered.
        Test catalogs publish versions as `<version>-<sha>`.
        """
        index = await self.web_client.get_index(catalog_url)
        entries = index.entries_for(app_name)
        if not entries:
            raise NotFoundError(f"no app {app_name!r} in catalog {catalog_url!r}")
        entry = latest_entry(entries, ref or "")
        if entry is None:
            raise NotFoundError(
                f"no version of app {app_name!r} matching {ref!r} in catalog {catalog_url!r}"
            )
        self.logger.debug(
            f"resolved {app_name!r} to version {entry.version!r} (ref {ref!r})"
        )
        return entry.version

    async def close(self) -> None:
        await self.web_client.close()
