import shutil

import smbclient

from ..utils import admin_share_path

class AdminShareClient:
    """Stage files on a host through its C$-style administrative share."""

    def __init__(self, host: str, username: str, password: str | None,
                 port: int = 445, timeout: int = 60, warn=None):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout
        self.warn = warn

    def connect(self):
        smbclient.register_session(
            self.host, username=self.username, password=self.password,
            port=self.port, connection_timeout=self.timeout,
        )

    def put(self, local_path: str, remote_path: str) -> str:
        """Copy a local file to a drive path on the host, overwriting it."""
        unc = admin_share_path(self.host, remote_path)
        with open(local_path, "rb") as src, smbclient.open_file(
            unc, mode="wb", port=self.port,
            username=self.username, password=self.password,
        ) as dst:
            shutil.copyfileobj(src, dst, 1024 * 1024)
        return unc

    def close(self):
        try:
            smbclient.delete_session(self.host, port=self.port)
        except Exception as e:
            if self.warn:
                self.warn(f"{self.host}: SMB session teardown failed: {e}")

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, *exc):
        self.close()
        return False
