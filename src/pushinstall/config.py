import os
from pathlib import Path

DEFAULT_LOCAL_PATH = Path(os.environ.get("PUSHINSTALL_LOCAL_PATH", "/srv/pushinstall"))
DEFAULT_USERNAME = os.environ.get("PUSHINSTALL_USER")
DEFAULT_REMOTE_DIR = os.environ.get("PUSHINSTALL_REMOTE_DIR", r"C:\Windows\Temp")

DEFAULT_WINRM_PORT = int(os.environ.get("WINRM_PORT", "5986"))
DEFAULT_WINRM_AUTH = os.environ.get("WINRM_AUTH", "negotiate")
DEFAULT_SMB_PORT = 445
DEFAULT_TIMEOUT = 60

PING_COUNT = 3
DEFAULT_INSTALLER_ARGS = "/quiet /norestart"
DEFAULT_CERT_STORE = "TrustedPublisher"
