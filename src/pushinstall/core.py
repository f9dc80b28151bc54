from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from .config import (
    DEFAULT_CERT_STORE, DEFAULT_INSTALLER_ARGS, DEFAULT_LOCAL_PATH, DEFAULT_REMOTE_DIR,
    DEFAULT_SMB_PORT, DEFAULT_TIMEOUT, DEFAULT_WINRM_AUTH, DEFAULT_WINRM_PORT,
)
from .connectors.smb_conn import AdminShareClient
from .connectors.winrm_conn import WinRMClient
from .console import ConsoleReporter, Credential, confirm, prompt_credential
from .errors import PreconditionError
from .probe import Probe, first_reachable, ping
from .results import BatchReport, HostResult, Outcome, Stage
from .targets import candidate_addresses, normalize_target
from .utils import cert_install_command, installer_command, remote_file, resolve_local_files

class BulkInstaller:
    def __init__(
        self,
        installer: str,
        cert: str,
        computers: Iterable[Any],
        local_path: Optional[str] = None,    # empty -> DEFAULT_LOCAL_PATH
        credential: Optional[Credential] = None,
        force: bool = False,
        username: Optional[str] = None,      # prompt hints when credential is None
        password: Optional[str] = None,
        remote_dir: str = DEFAULT_REMOTE_DIR,
        installer_args: str = DEFAULT_INSTALLER_ARGS,
        cert_store: str = DEFAULT_CERT_STORE,
        winrm_port: int = DEFAULT_WINRM_PORT,
        winrm_ssl: bool = True,
        winrm_insecure: bool = False,
        winrm_ca: Optional[str] = None,
        winrm_auth: str = DEFAULT_WINRM_AUTH,
        smb_port: int = DEFAULT_SMB_PORT,
        timeout: int = DEFAULT_TIMEOUT,
        reporter: Optional[ConsoleReporter] = None,
        probe: Probe = ping,
        share_factory: Callable[..., AdminShareClient] = AdminShareClient,
        session_factory: Callable[..., WinRMClient] = WinRMClient,
        credential_prompt: Callable[[Optional[str], Optional[str]], Credential] = prompt_credential,
        confirm_prompt: Callable[[str], None] = confirm,
    ):
        self.installer = installer
        self.cert = cert
        self.computers = list(computers)
        self.local_path = Path(local_path) if local_path else DEFAULT_LOCAL_PATH
        self.credential = credential
        self.force = force
        self.username = username
        self.password = password
        self.remote_dir = remote_dir
        self.installer_args = installer_args
        self.cert_store = cert_store
        self.winrm_port = winrm_port
        self.winrm_ssl = winrm_ssl
        self.winrm_insecure = winrm_insecure
        self.winrm_ca = winrm_ca
        self.winrm_auth = winrm_auth
        self.smb_port = smb_port
        self.timeout = timeout
        self.reporter = reporter or ConsoleReporter()

        # Collaborators, swappable for tests or other front-ends
        self.probe = probe
        self.share_factory = share_factory
        self.session_factory = session_factory
        self.credential_prompt = credential_prompt
        self.confirm_prompt = confirm_prompt

    # ---------- MAIN WORKFLOW ----------
    def run(self) -> BatchReport:
        installer_path, cert_path = resolve_local_files(self.local_path, [self.installer, self.cert])
        if not self.computers:
            raise PreconditionError("No target computers given.")
        if not self.force:
            self.confirm_prompt(
                f"Install {self.installer} and trust {self.cert} on {len(self.computers)} host(s)?"
            )
        if self.credential is None:
            self.credential = self.credential_prompt(self.username, self.password)

        self.reporter.step(f"Starting bulk install of {installer_path.name} on {len(self.computers)} host(s)")
        report = BatchReport()
        for raw in self.computers:
            report.add(self._install_one(raw, installer_path, cert_path))
        self.reporter.summary(report)
        return report

    # ---------- PER HOST ----------
    def _install_one(self, raw: Any, installer_path: Path, cert_path: Path) -> HostResult:
        result = HostResult(target=raw)
        try:
            target = normalize_target(raw)
            result.target = target.source
            candidates = candidate_addresses(target)
            result.stage_reached = Stage.NORMALIZED
            if not candidates:
                self.reporter.warn(f"{target.source!r} has no usable address")

            result.stage_reached = Stage.PROBING
            address = first_reachable(candidates, self.probe)
            if address is None:
                result.outcome = Outcome.UNREACHABLE
                self.reporter.fail(f"{target.source!r} is unreachable")
                return result
            result.address_used = address
            self.reporter.step(f"{address}: reachable, deploying")

            self._deploy(address, installer_path, cert_path, result)
        except Exception as e:
            result.outcome = Outcome.ERROR
            result.error_detail = f"{type(e).__name__}: {e}"
            where = result.address_used or repr(result.target)
            self.reporter.fail(f"{where}: {result.error_detail} (stage: {result.stage_reached.value})")
        return result

    def _deploy(self, address: str, installer_path: Path, cert_path: Path, result: HostResult):
        cred = self.credential
        remote_installer = remote_file(self.remote_dir, installer_path.name)
        remote_cert = remote_file(self.remote_dir, cert_path.name)

        with self.share_factory(
            address, cred.username, cred.password, port=self.smb_port, timeout=self.timeout,
            warn=self.reporter.warn,
        ) as share:
            result.stage_reached = Stage.CONNECTED
            self.reporter.step(f"{address}: copying files to {self.remote_dir}")
            share.put(str(installer_path), remote_installer)
            share.put(str(cert_path), remote_cert)
            result.stage_reached = Stage.STAGED

            with self.session_factory(
                address, cred.username, cred.password,
                port=self.winrm_port,
                ssl=self.winrm_ssl,
                cert_validation=not self.winrm_insecure,
                ca_trust_path=self.winrm_ca,
                auth=self.winrm_auth,
                timeout=self.timeout,
                warn=self.reporter.warn,
            ) as session:
                self.reporter.step(f"{address}: adding certificate to {self.cert_store}")
                _, _, rc = session.run_cmd(cert_install_command(remote_cert, self.cert_store))
                self.reporter.info(f"{address}: certutil exited with {rc}")
                result.stage_reached = Stage.CERT_TRUSTED

                self.reporter.step(f"{address}: running {installer_path.name}")
                _, stderr, rc = session.run_cmd(installer_command(remote_installer, self.installer_args))
                result.stage_reached = Stage.INSTALLED
                result.exit_code = rc

        if rc == 0:
            result.outcome = Outcome.SUCCESS
            self.reporter.ok(f"{address}: installed")
        else:
            result.outcome = Outcome.INSTALL_FAILED
            result.error_detail = f"installer exit code {rc}"
            self.reporter.fail(f"{address}: installer exited with {rc}")
            if stderr:
                self.reporter.info(stderr.strip()[:2000])
