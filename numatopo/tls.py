"""A TLS server configuration that can be replaced while in use."""

from __future__ import annotations

import ssl
import threading
from typing import Optional


class TlsConfig:
    """Holds the current server TLS context, allowing certificate rotation."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._config: Optional[ssl.SSLContext] = None

    def get_config(self) -> Optional[ssl.SSLContext]:
        """Return the current TLS context."""
        with self._lock:
            return self._config

    def _select_context(self, sock: ssl.SSLObject, server_name: Optional[str],
                        context: ssl.SSLContext) -> None:
        current = self.get_config()
        if current is not None and current is not context:
            sock.context = current

    def update_config(self, cert_file: str, key_file: str, ca_file: str) -> None:
        """Build a new context from the server key pair and the client CA file."""
        with self._lock:
            context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
            context.minimum_version = ssl.TLSVersion.TLSv1_3
            try:
                context.load_cert_chain(cert_file, key_file)
            except OSError as err:
                raise ValueError(f"failed to load server certificate: {err}") from err

            try:
                with open(ca_file, "rb") as handle:
                    ca_cert = handle.read()
            except OSError as err:
                raise ValueError(f"failed to read root certificate file: {err}") from err

            try:
                context.load_verify_locations(cadata=ca_cert.decode("latin-1"))
            except (ssl.SSLError, ValueError) as err:
                raise ValueError(f"failed to add certificate from '{ca_file}'") from err

            context.verify_mode = ssl.CERT_REQUIRED
            context.sni_callback = self._select_context
            self._config = context