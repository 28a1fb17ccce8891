import json
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer

import pytest

from numatopo.kubeconf import (
    KubeletConfiguration,
    RestConfig,
    get_kubelet_config_from_local_file,
    get_kubelet_configuration,
    insecure_config,
)

KUBELET_CONF = """apiVersion: kubelet.config.k8s.io/v1beta1
kind: KubeletConfiguration
topologyManagerPolicy: single-numa-node
cpuManagerPolicy: static
"""


@pytest.mark.parametrize("content, tm_policy", [(KUBELET_CONF, "single-numa-node")])
def test_get_kubelet_config_from_local_file(tmp_path, content, tm_policy):
    path = tmp_path / "kubeletconf.yaml"
    path.write_text(content)
    cfg = get_kubelet_config_from_local_file(str(path))
    assert cfg.topology_manager_policy == tm_policy
    assert cfg.raw["cpuManagerPolicy"] == "static"


def test_empty_file_gives_empty_config(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    cfg = get_kubelet_config_from_local_file(str(path))
    assert cfg.topology_manager_policy == ""
    assert cfg.topology_manager_scope == ""


def test_non_mapping_file(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ValueError):
        get_kubelet_config_from_local_file(str(path))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        get_kubelet_config_from_local_file(str(tmp_path / "absent.yaml"))


def test_from_dict_rejects_wrong_type():
    with pytest.raises(ValueError):
        KubeletConfiguration.from_dict({"topologyManagerPolicy": 3})


def test_insecure_config_requires_token_file():
    with pytest.raises(ValueError, match="api auth token file must be defined"):
        insecure_config("https://localhost:10250", "")


def test_insecure_config_requires_host(tmp_path):
    token_file = tmp_path / "token"
    token_file.write_text("token")
    with pytest.raises(ValueError, match="kubelet host must be defined"):
        insecure_config("", str(token_file))


def test_insecure_config_reads_token(tmp_path):
    token_file = tmp_path / "token"
    token_file.write_text("token")
    cfg = insecure_config("https://localhost:10250", str(token_file))
    assert cfg == RestConfig(
        host="https://localhost:10250",
        insecure=True,
        bearer_token="token",
        bearer_token_file=str(token_file),
    )


def test_insecure_config_missing_token_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        insecure_config("https://localhost:10250", str(tmp_path / "absent"))


@pytest.fixture
def configz_server():
    state = {"body": b"", "headers": None}

    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            state["headers"] = dict(self.headers)
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.end_headers()
            self.wfile.write(state["body"])

        def log_message(self, *args):
            pass

    server = HTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server, state
    finally:
        server.shutdown()
        server.server_close()


def test_get_kubelet_configuration(configz_server):
    server, state = configz_server
    state["body"] = json.dumps(
        {"kubeletconfig": {"topologyManagerPolicy": "restricted", "topologyManagerScope": "pod"}}
    ).encode()
    host = f"http://127.0.0.1:{server.server_address[1]}/configz"
    cfg = get_kubelet_configuration(RestConfig(host=host, insecure=True, bearer_token="token"))
    assert cfg.topology_manager_policy == "restricted"
    assert cfg.topology_manager_scope == "pod"
    assert state["headers"]["Authorization"] == "Bearer token"


def test_get_kubelet_configuration_bad_json(configz_server):
    server, state = configz_server
    state["body"] = b"not json"
    host = f"http://127.0.0.1:{server.server_address[1]}/configz"
    with pytest.raises(ValueError, match="failed to unmarshal json for kubelet config"):
        get_kubelet_configuration(RestConfig(host=host))