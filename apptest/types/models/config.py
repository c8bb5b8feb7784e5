from logging import Logger
from typing import Optional
from apptest.types.base import BaseModel


class Config(BaseModel):
    """How to reach the cluster the apps get installed into.

    Exactly one of `kube_config` (kubeconfig YAML content) and
    `kube_config_path` must be set.
    """

    kube_config: Optional[str] = None
    kube_config_path: Optional[str] = None
    context: Optional[str] = None
    logger: Optional[Logger] = None
