from pypsrp.client import Client
from typing import Tuple

class WinRMClient:
    def __init__(self, host: str, username: str, password: str | None,
                 port: int = 5986, ssl: bool = True,
                 cert_validation: bool = True, ca_trust_path: str | None = None,
                 auth: str = "negotiate", timeout: int = 60, warn=None):
        """
        By default we use HTTPS + cert validation. 'negotiate' will try NTLM on Linux.
        A CA bundle path, when given, replaces the system trust store.
        """
        self.host = host
        self.warn = warn
        self.client = Client(
            server=host,
            username=username,
            password=password,
            port=port,
            ssl=ssl,
            cert_validation=(ca_trust_path or True) if cert_validation else False,
            auth=auth,
            connection_timeout=timeout,
        )

    def run_cmd(self, command: str) -> Tuple[str, str, int]:
        # Blocks until the remote process exits
        stdout, stderr, rc = self.client.execute_cmd(command)
        return stdout, stderr, rc

    def close(self):
        try:
            self.client.close()
        except Exception as e:
            if self.warn:
                self.warn(f"{self.host}: WinRM session teardown failed: {e}")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
