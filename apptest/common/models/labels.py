from typing import Dict


class ResourceLabels:
    APP_OPERATOR_DOMAIN: str = "app-operator.giantswarm.io/"

    APP_OPERATOR_VERSION_LABEL = APP_OPERATOR_DOMAIN + "version"


class Labels(ResourceLabels):
    KUBERNETES_DOMAIN = "app.kubernetes.io/"

    KUBERNETES_MANAGED_BY_LABEL = KUBERNETES_DOMAIN + "managed-by"

    MANAGED_BY = "apptest"

    _labels: Dict[str, str]

    def __init__(self, labels: Dict[str, str] = None) -> None:
        self._labels = dict(labels) if labels else dict()

    def update(self, labels: Dict[str, str]) -> "Labels":
        self._labels.update(labels.copy())
        return self

    def as_dict(self) -> Dict[str, str]:
        """Return labels as dictionary."""
        return self._labels.copy()

    def as_str(self):
        """Return labels as comma separated string, usable as a label selector."""
        return ",".join([f"{k}={v}" for k, v in self._labels.items()])

    def include(self, label: str, value: str) -> "Labels":
        self.update({label: value})
        return self

    def include_app_operator_version(self, version: str) -> "Labels":
        return self.include(self.APP_OPERATOR_VERSION_LABEL, version)

    def include_kubernetes_managed_by(self, name: str = None) -> "Labels":
        return self.include(self.KUBERNETES_MANAGED_BY_LABEL, name or self.MANAGED_BY)

    @classmethod
    def managed(cls) -> "Labels":
        """Labels carried by every record apptest creates."""
        return Labels().include_kubernetes_managed_by()
