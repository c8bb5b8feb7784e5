from typing import Any
from marshmallow import fields, pre_load
from apptest.types.base import JSON, BaseSchema
from apptest.types.models import CatalogEntry, CatalogIndex


class CatalogEntrySchema(BaseSchema):
    __model__ = CatalogEntry

    name = fields.Str(data_key="name", allow_none=True, load_default=None)
    version = fields.Str(data_key="version", allow_none=False, required=True)
    app_version = fields.Str(data_key="appVersion", allow_none=True, load_default=None)
    # YAML loaders turn timestamps into datetimes, keep whatever arrives.
    created = fields.Raw(data_key="created", allow_none=True, load_default=None)
    urls = fields.List(fields.Str(), data_key="urls", allow_none=True, load_default=None)

    @pre_load
    def stringify_versions(self, data: JSON, **kwargs: Any) -> JSON:
        """Unquoted versions like `1.0` come out of YAML as numbers."""
        data = dict(data)
        for key in ("version", "appVersion"):
            if key in data and isinstance(data[key], (int, float)):
                data[key] = str(data[key])
        return data


class CatalogIndexSchema(BaseSchema):
    __model__ = CatalogIndex

    api_version = fields.Str(data_key="apiVersion", allow_none=True, load_default=None)
    entries = fields.Dict(
        keys=fields.Str(),
        values=fields.List(fields.Nested(CatalogEntrySchema())),
        data_key="entries",
        allow_none=True,
        load_default=dict,
    )
