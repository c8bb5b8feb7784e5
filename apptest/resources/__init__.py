from .app import AppCR
from .appcatalog import AppCatalogCR
from .crd import CustomResourceDefinition, load_crd

__all__ = ["AppCR", "AppCatalogCR", "CustomResourceDefinition", "load_crd"]
