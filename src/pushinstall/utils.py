import ntpath
from pathlib import Path
from typing import Sequence

from .errors import PreconditionError


def cmd_quote(p: str) -> str:
    # Quote for cmd.exe; embedded quotes are not valid in Windows paths
    if '"' in p:
        raise ValueError(f"Path contains a double quote: {p}")
    return f'"{p}"'


def remote_file(remote_dir: str, name: str) -> str:
    return ntpath.join(remote_dir, name)


def admin_share_path(host: str, remote_path: str) -> str:
    r"""
    Map a local path on the remote host to its administrative share:
    C:\Windows\Temp\x.msi on 10.0.0.5 -> \\10.0.0.5\C$\Windows\Temp\x.msi
    """
    drive, rest = ntpath.splitdrive(remote_path)
    if not drive or not drive.endswith(":"):
        raise ValueError(f"Remote path must start with a drive letter: {remote_path}")
    share = drive[0].upper() + "$"
    return "\\\\" + host + "\\" + share + "\\" + rest.lstrip("\\/")


def cert_install_command(cert_path: str, store: str) -> str:
    return f"certutil -f -addstore {store} {cmd_quote(cert_path)}"


def installer_command(installer_path: str, installer_args: str) -> str:
    if installer_path.lower().endswith(".msi"):
        return f"msiexec /i {cmd_quote(installer_path)} /qn /norestart"
    return f"{cmd_quote(installer_path)} {installer_args}".strip()


def resolve_local_files(local_dir: Path, names: Sequence[str]) -> list:
    missing = []
    paths = []
    for name in names:
        path = local_dir / name
        if not path.is_file():
            missing.append(str(path))
        paths.append(path)
    if missing:
        raise PreconditionError("Missing local file(s): " + ", ".join(missing))
    return paths
