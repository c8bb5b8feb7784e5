from marshmallow import fields
from apptest.types.base import BaseSchema
from apptest.types.models import AppRelease, AppStatus


class AppReleaseSchema(BaseSchema):
    __model__ = AppRelease

    status = fields.Str(data_key="status", allow_none=True, load_default=None)
    reason = fields.Str(data_key="reason", allow_none=True, load_default=None)
    last_deployed = fields.Raw(
        data_key="lastDeployed", allow_none=True, load_default=None
    )


class AppStatusSchema(BaseSchema):
    __model__ = AppStatus

    app_version = fields.Str(data_key="appVersion", allow_none=True, load_default=None)
    version = fields.Str(data_key="version", allow_none=True, load_default=None)
    release = fields.Nested(
        AppReleaseSchema(), data_key="release", allow_none=True, load_default=None
    )
