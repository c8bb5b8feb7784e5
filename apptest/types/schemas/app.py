from marshmallow import fields
from apptest.types.base import BaseSchema
from apptest.types.models import App


class AppSchema(BaseSchema):
    __model__ = App

    name = fields.Str(data_key="name", allow_none=False, required=True)
    namespace = fields.Str(data_key="namespace", allow_none=False, required=True)
    app_cr_namespace = fields.Str(
        data_key="appCRNamespace", allow_none=True, load_default=None
    )
    catalog_name = fields.Str(data_key="catalogName", allow_none=False, required=True)
    catalog_url = fields.Str(data_key="catalogURL", allow_none=True, load_default=None)
    sha = fields.Str(data_key="sha", allow_none=True, load_default=None)
    version = fields.Str(data_key="version", allow_none=True, load_default=None)
    values_yaml = fields.Str(data_key="valuesYAML", allow_none=True, load_default=None)
    kube_config = fields.Str(data_key="kubeConfig", allow_none=True, load_default=None)
    app_operator_version = fields.Str(
        data_key="appOperatorVersion", allow_none=True, load_default=None
    )
    wait_for_deploy = fields.Bool(
        data_key="waitForDeploy", allow_none=False, load_default=False
    )
