import getpass
from dataclasses import dataclass
from typing import Optional

from .errors import ConfirmationDeclined, PreconditionError
from .results import BatchReport


@dataclass(frozen=True)
class Credential:
    username: str
    password: str

    def __repr__(self):
        return f"Credential(username={self.username!r}, password='***')"


class ConsoleReporter:
    """Human-readable progress lines; not meant to be parsed."""

    def step(self, msg: str):
        print(f"[*] {msg}")

    def ok(self, msg: str):
        print(f"[OK] {msg}")

    def fail(self, msg: str):
        print(f"[FAIL] {msg}")

    def warn(self, msg: str):
        print(f"[!] {msg}")

    def info(self, msg: str):
        print(f"[i] {msg}")

    def summary(self, report: BatchReport):
        total = len(report.results)
        failed = report.failed_results
        print(f"[*] Finished: {total - len(failed)}/{total} host(s) installed")
        for r in failed:
            detail = f" ({r.error_detail})" if r.error_detail else ""
            print(f"    {r.target!r}: {r.outcome.value}{detail}")


class NullReporter(ConsoleReporter):
    def step(self, msg): pass
    def ok(self, msg): pass
    def fail(self, msg): pass
    def warn(self, msg): pass
    def info(self, msg): pass
    def summary(self, report): pass


def prompt_credential(username: Optional[str] = None, password: Optional[str] = None) -> Credential:
    """Ask only for the parts of the credential that were not given."""
    try:
        if not username:
            username = input("Username: ").strip()
        if password is None:
            password = getpass.getpass(f"Password for {username}: ")
    except EOFError:
        raise PreconditionError("No credential given and no terminal to prompt on.") from None
    return Credential(username, password)


def confirm(question: str) -> None:
    try:
        answer = input(f"{question} [y/N]: ").strip().lower()
    except EOFError:
        raise ConfirmationDeclined("No terminal to confirm on; use --force.") from None
    if answer not in ("y", "yes"):
        raise ConfirmationDeclined("Aborted by user.")
