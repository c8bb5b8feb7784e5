from typing import Dict, Iterator, Mapping, Optional
from apptest.types.models import App
from apptest.utils.errors import InvalidConfigError

#: Well-known catalogs an App can reference by name only.
DEFAULT_CATALOGS: Mapping[str, str] = {
    "control-plane-catalog": "https://giantswarm.github.io/control-plane-catalog/",
    "control-plane-test-catalog": "https://giantswarm.github.io/control-plane-test-catalog/",
    "default": "https://giantswarm.github.io/default-catalog/",
    "default-test": "https://giantswarm.github.io/default-test-catalog/",
    "giantswarm": "https://giantswarm.github.io/giantswarm-catalog/",
    "giantswarm-test": "https://giantswarm.github.io/giantswarm-test-catalog/",
    "giantswarm-operations-platform": "https://giantswarm.github.io/giantswarm-operations-platform-catalog/",
    "giantswarm-operations-platform-test": "https://giantswarm.github.io/giantswarm-operations-platform-test-catalog/",
    "giantswarm-playground": "https://giantswarm.github.io/giantswarm-playground-catalog/",
    "giantswarm-playground-test": "https://giantswarm.github.io/giantswarm-playground-test-catalog/",
    "helm-stable": "https://charts.helm.sh/stable/packages/",
    "releases": "https://giantswarm.github.io/releases-catalog/",
    "releases-test": "https://giantswarm.github.io/releases-test-catalog/",
}


class CatalogRegistry(Mapping[str, str]):
    """Catalog name to storage URL lookup."""

    _catalogs: Dict[str, str]

    def __init__(self, catalogs: Optional[Mapping[str, str]] = None) -> None:
        self._catalogs = dict(DEFAULT_CATALOGS if catalogs is None else catalogs)

    def __getitem__(self, name: str) -> str:
        return self._catalogs[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._catalogs)

    def __len__(self) -> int:
        return len(self._catalogs)

    def with_catalogs(self, catalogs: Mapping[str, str]) -> "CatalogRegistry":
        """Return a registry extended with (or overriding) `catalogs`."""
        merged = dict(self._catalogs)
        merged.update(catalogs)
        return CatalogRegistry(merged)

    def url_for(self, app: App) -> str:
        """Return the catalog URL for `app`.

        An explicit `catalog_url` wins; otherwise the catalog must be a
        known one.
        """
        if not app.catalog_name:
            raise InvalidConfigError(
                f"catalog name must not be empty for app {app.name!r}"
            )
        if app.catalog_url:
            return app.catalog_url
        try:
            return self._catalogs[app.catalog_name]
        except KeyError:
            raise InvalidConfigError(
                f"catalog {app.catalog_name!r} not found and no URL provided"
            ) from None
