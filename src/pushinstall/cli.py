import argparse
import sys
from .config import (
    DEFAULT_CERT_STORE, DEFAULT_INSTALLER_ARGS, DEFAULT_LOCAL_PATH, DEFAULT_REMOTE_DIR,
    DEFAULT_SMB_PORT, DEFAULT_TIMEOUT, DEFAULT_USERNAME, DEFAULT_WINRM_AUTH, DEFAULT_WINRM_PORT,
)
from .console import Credential
from .core import BulkInstaller
from .errors import PushInstallError
from .targets import load_targets, parse_target_text
from .version import __version__

def build_parser():
    p = argparse.ArgumentParser(
        prog="pushinstall",
        description="pushinstall: Install a package and its signing certificate on many Windows hosts (C$ share + WinRM)"
    )
    p.add_argument("computers", nargs="*", help="Target hosts; 'a,b' means one host with two addresses")
    p.add_argument("--computer", action="append", default=[], help="Target host (repeatable)")
    p.add_argument("--computers-file", help="File of targets (JSON list or one per line)")
    p.add_argument("--installer", required=True, help="Installer file name inside --local-path")
    p.add_argument("--cert", required=True, help="Certificate file name inside --local-path")
    p.add_argument("--local-path", default="", help=f"Directory holding both files (default {DEFAULT_LOCAL_PATH})")
    p.add_argument("--username", default=DEFAULT_USERNAME, help="Remote admin username")
    p.add_argument("--password", help="Remote admin password (omit to be prompted)")
    p.add_argument("--force", action="store_true", help="Do not ask for confirmation")
    p.add_argument("--remote-dir", default=DEFAULT_REMOTE_DIR, help="Remote staging directory")
    p.add_argument("--installer-args", default=DEFAULT_INSTALLER_ARGS, help="Silent switches for non-MSI installers")
    p.add_argument("--cert-store", default=DEFAULT_CERT_STORE, help="Certificate store for certutil -addstore")
    # WinRM
    p.add_argument("--winrm-port", type=int, default=DEFAULT_WINRM_PORT)
    p.add_argument("--winrm-http", action="store_true", help="Use plain HTTP (port 5985) instead of HTTPS")
    p.add_argument("--winrm-insecure", action="store_true", help="Do not validate WinRM TLS certificate (NOT recommended)")
    p.add_argument("--winrm-ca", help="Path to CA bundle for WinRM TLS validation")
    p.add_argument("--winrm-auth", default=DEFAULT_WINRM_AUTH, choices=["negotiate", "ntlm", "kerberos", "basic", "credssp"])
    # SMB
    p.add_argument("--smb-port", type=int, default=DEFAULT_SMB_PORT)
    p.add_argument("--timeout", type=int, default=DEFAULT_TIMEOUT, help="Connection timeout in seconds")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p

def collect_targets(args):
    targets = [parse_target_text(c) for c in list(args.computers) + list(args.computer)]
    if args.computers_file:
        targets.extend(load_targets(args.computers_file))
    return targets

def main(argv=None):
    args = build_parser().parse_args(argv)
    winrm_port = args.winrm_port
    if args.winrm_http and winrm_port == 5986:
        winrm_port = 5985

    credential = None
    if args.username and args.password is not None:
        credential = Credential(args.username, args.password)

    try:
        bi = BulkInstaller(
            installer=args.installer,
            cert=args.cert,
            computers=collect_targets(args),
            local_path=args.local_path,
            credential=credential,
            force=args.force,
            username=args.username,
            password=args.password,
            remote_dir=args.remote_dir,
            installer_args=args.installer_args,
            cert_store=args.cert_store,
            winrm_port=winrm_port,
            winrm_ssl=not args.winrm_http,
            winrm_insecure=args.winrm_insecure,
            winrm_ca=args.winrm_ca,
            winrm_auth=args.winrm_auth,
            smb_port=args.smb_port,
            timeout=args.timeout,
        )
        report = bi.run()
    except (PushInstallError, OSError, ValueError) as e:
        print(f"[FAIL] {e}")
        return 2
    except KeyboardInterrupt:
        print("\n[!] Interrupted")
        return 130
    return 1 if report.failures else 0

if __name__ == "__main__":
    sys.exit(main())
