"""Loading of the kubelet configuration from a file or from the kubelet."""

from __future__ import annotations

import json
import ssl
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml


def _string_field(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key} must be a string, got {type(value).__name__}")
    return value


@dataclass
class KubeletConfiguration:
    """The parts of the kubelet configuration used here, plus the full document."""

    topology_manager_policy: str = ""
    topology_manager_scope: str = ""
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "KubeletConfiguration":
        """Build a configuration from its decoded document."""
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ValueError("kubelet configuration must be a mapping")
        return cls(
            topology_manager_policy=_string_field(data, "topologyManagerPolicy"),
            topology_manager_scope=_string_field(data, "topologyManagerScope"),
            raw=dict(data),
        )


@dataclass
class RestConfig:
    """Connection settings for the kubelet API."""

    host: str
    insecure: bool = False
    bearer_token: str = ""
    bearer_token_file: str = ""


def get_kubelet_config_from_local_file(path: str) -> KubeletConfiguration:
    """Load the kubelet configuration from a node-local YAML file."""
    with open(path, encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    return KubeletConfiguration.from_dict(data)


def _ssl_context(rest_config: RestConfig) -> ssl.SSLContext:
    context = ssl.create_default_context()
    if rest_config.insecure:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def get_kubelet_configuration(rest_config: RestConfig) -> KubeletConfiguration:
    """Fetch the running configuration from the kubelet configz endpoint."""
    url = rest_config.host
    if "://" not in url:
        url = "https://" + url

    headers = {"Accept": "application/json"}
    token = rest_config.bearer_token.strip()
    if token:
        headers["Authorization"] = f"Bearer {token}"

    request = urllib.request.Request(url, headers=headers)
    with urllib.request.urlopen(request, context=_ssl_context(rest_config)) as response:
        body = response.read()

    try:
        configz = json.loads(body)
    except ValueError as err:
        raise ValueError(f"failed to unmarshal json for kubelet config: {err}") from err
    if not isinstance(configz, Mapping):
        raise ValueError("failed to unmarshal json for kubelet config: not an object")
    return KubeletConfiguration.from_dict(configz.get("kubeletconfig"))


def insecure_config(host: str, token_file: str) -> RestConfig:
    """Return a kubelet API config that authenticates with the token file."""
    if not token_file:
        raise ValueError("api auth token file must be defined")
    if not host:
        raise ValueError("kubelet host must be defined")

    with open(token_file, encoding="utf-8") as handle:
        token = handle.read()

    return RestConfig(
        host=host,
        insecure=True,
        bearer_token=token,
        bearer_token_file=token_file,
    )