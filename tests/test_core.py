"""Tests for the batch installer driver."""

from typing import Any, Dict, List
from unittest.mock import MagicMock, patch

import pytest

from pushinstall.connectors.smb_conn import AdminShareClient
from pushinstall.console import Credential, NullReporter
from pushinstall.core import BulkInstaller
from pushinstall.errors import ConfirmationDeclined, PreconditionError
from pushinstall.results import Outcome, Stage

CRED = Credential("CORP\\deploy", "secret")


@pytest.fixture
def source_dir(tmp_path) -> Any:
    """Local directory with an installer and a certificate."""
    (tmp_path / "agent.msi").write_bytes(b"msi")
    (tmp_path / "publisher.cer").write_bytes(b"cer")
    return tmp_path


@pytest.fixture
def share_factory() -> MagicMock:
    return MagicMock()


@pytest.fixture
def session_factory() -> MagicMock:
    factory = MagicMock()
    factory.return_value.__enter__.return_value.run_cmd.return_value = ("", "", 0)
    return factory


def make_installer(source_dir, computers, share_factory, session_factory, **kwargs) -> BulkInstaller:
    options: Dict[str, Any] = dict(
        installer="agent.msi",
        cert="publisher.cer",
        computers=computers,
        local_path=str(source_dir),
        credential=CRED,
        force=True,
        reporter=NullReporter(),
        probe=lambda address: True,
        share_factory=share_factory,
        session_factory=session_factory,
    )
    options.update(kwargs)
    return BulkInstaller(**options)


def session_of(factory: MagicMock) -> MagicMock:
    return factory.return_value.__enter__.return_value


class TestHappyPath:
    """All hosts reachable and installing."""

    def test_no_failures(self, source_dir, share_factory, session_factory) -> None:
        bi = make_installer(source_dir, ["10.0.0.1", "10.0.0.2"], share_factory, session_factory)
        report = bi.run()
        assert report.failures == []
        assert [r.outcome for r in report.results] == [Outcome.SUCCESS, Outcome.SUCCESS]
        assert all(r.stage_reached is Stage.INSTALLED for r in report.results)

    def test_files_staged_and_commands_run(self, source_dir, share_factory, session_factory) -> None:
        bi = make_installer(source_dir, ["10.0.0.1"], share_factory, session_factory)
        bi.run()

        share_factory.assert_called_once_with(
            "10.0.0.1", CRED.username, CRED.password, port=445, timeout=60, warn=bi.reporter.warn,
        )
        share = share_factory.return_value.__enter__.return_value
        assert share.put.call_args_list[0].args == (str(source_dir / "agent.msi"), r"C:\Windows\Temp\agent.msi")
        assert share.put.call_args_list[1].args == (str(source_dir / "publisher.cer"), r"C:\Windows\Temp\publisher.cer")

        commands = [c.args[0] for c in session_of(session_factory).run_cmd.call_args_list]
        assert commands == [
            r'certutil -f -addstore TrustedPublisher "C:\Windows\Temp\publisher.cer"',
            r'msiexec /i "C:\Windows\Temp\agent.msi" /qn /norestart',
        ]
        share_factory.return_value.__exit__.assert_called_once()
        session_factory.return_value.__exit__.assert_called_once()


class TestFailures:
    """Failures are recorded per host and never stop the batch."""

    def test_unreachable_then_installed(self, source_dir, share_factory, session_factory) -> None:
        bi = make_installer(
            source_dir, ["192.168.1.10", "192.168.1.11"], share_factory, session_factory,
            probe=lambda address: address == "192.168.1.11",
        )
        report = bi.run()
        assert report.failures == ["192.168.1.10"]
        assert report.results[0].outcome is Outcome.UNREACHABLE
        share_factory.assert_called_once()
        assert share_factory.call_args.args[0] == "192.168.1.11"

    def test_probe_order_and_first_success(self, source_dir, share_factory, session_factory) -> None:
        probed: List[str] = []

        def probe(address: str) -> bool:
            probed.append(address)
            return address == "10.0.0.2"

        target = ["10.0.0.1", "10.0.0.2", "10.0.0.3"]
        report = make_installer(source_dir, [target], share_factory, session_factory, probe=probe).run()
        assert probed == ["10.0.0.1", "10.0.0.2"]
        assert report.results[0].address_used == "10.0.0.2"
        assert report.results[0].target is target

    def test_no_candidates_skips_remote_work(self, source_dir, share_factory, session_factory) -> None:
        raw = {"IPAddress": ["fe80::1"]}
        probe = MagicMock(return_value=True)
        report = make_installer(source_dir, [raw], share_factory, session_factory, probe=probe).run()
        assert report.failures == [raw]
        assert report.failures[0] is raw
        probe.assert_not_called()
        share_factory.assert_not_called()
        session_factory.assert_not_called()

    def test_nonzero_exit_code(self, source_dir, share_factory, session_factory) -> None:
        session_of(session_factory).run_cmd.side_effect = [("", "", 0), ("", "fatal", 1603)]
        report = make_installer(source_dir, ["10.0.0.1"], share_factory, session_factory).run()
        assert report.failures == ["10.0.0.1"]
        result = report.results[0]
        assert result.outcome is Outcome.INSTALL_FAILED
        assert result.exit_code == 1603

    def test_cert_exit_code_is_not_checked(self, source_dir, share_factory, session_factory) -> None:
        session_of(session_factory).run_cmd.side_effect = [("", "denied", 5), ("", "", 0)]
        report = make_installer(source_dir, ["10.0.0.1"], share_factory, session_factory).run()
        assert report.failures == []

    def test_copy_error_is_isolated(self, source_dir, share_factory, session_factory) -> None:
        share = share_factory.return_value.__enter__.return_value
        share.put.side_effect = [OSError("access denied"), None, None, None]
        report = make_installer(source_dir, ["10.0.0.1", "10.0.0.2"], share_factory, session_factory).run()

        assert report.failures == ["10.0.0.1"]
        first = report.results[0]
        assert first.outcome is Outcome.ERROR
        assert first.stage_reached is Stage.CONNECTED
        assert "access denied" in first.error_detail
        assert report.results[1].outcome is Outcome.SUCCESS
        assert share_factory.return_value.__exit__.call_count == 2

    def test_session_error_releases_resources(self, source_dir, share_factory, session_factory) -> None:
        session_of(session_factory).run_cmd.side_effect = RuntimeError("WinRM transport error")
        report = make_installer(source_dir, ["10.0.0.1"], share_factory, session_factory).run()
        assert report.results[0].outcome is Outcome.ERROR
        assert report.results[0].stage_reached is Stage.STAGED
        session_factory.return_value.__exit__.assert_called_once()
        share_factory.return_value.__exit__.assert_called_once()

    def test_failures_keep_input_order(self, source_dir, share_factory, session_factory) -> None:
        session_of(session_factory).run_cmd.side_effect = [
            ("", "", 0), ("", "", 1),   # b
            ("", "", 0), ("", "", 0),   # d
        ]
        targets = ["a", "b", "c", "d"]
        bi = make_installer(
            source_dir, targets, share_factory, session_factory,
            probe=lambda address: address in ("b", "d"),
        )
        assert bi.run().failures == ["a", "b", "c"]


    def test_malformed_target_does_not_stop_batch(self, source_dir, share_factory, session_factory) -> None:
        bad = {"IPAddress": 167772161}
        report = make_installer(source_dir, ["10.0.0.1", bad, "10.0.0.2"], share_factory, session_factory).run()
        assert report.failures == [bad]
        assert report.results[1].outcome is Outcome.UNREACHABLE
        assert [r.outcome for r in report.results[::2]] == [Outcome.SUCCESS, Outcome.SUCCESS]

    def test_probe_error_is_isolated(self, source_dir, share_factory, session_factory) -> None:
        def probe(address: str) -> bool:
            if address == "bad":
                raise ValueError("embedded null byte")
            return True

        report = make_installer(source_dir, ["10.0.0.1", "bad", "10.0.0.2"], share_factory, session_factory,
                                probe=probe).run()
        assert report.failures == ["bad"]
        failed = report.results[1]
        assert failed.outcome is Outcome.ERROR
        assert failed.stage_reached is Stage.PROBING
        assert "embedded null byte" in failed.error_detail
        assert report.results[2].outcome is Outcome.SUCCESS

    def test_teardown_error_is_reported(self, source_dir, session_factory) -> None:
        reporter = MagicMock(spec=NullReporter)
        with patch("pushinstall.connectors.smb_conn.smbclient") as smb:
            smb.delete_session.side_effect = ConnectionResetError("peer closed")
            report = make_installer(source_dir, ["10.0.0.1"], AdminShareClient, session_factory,
                                    reporter=reporter).run()
        assert report.results[0].outcome is Outcome.SUCCESS
        warnings = [c.args[0] for c in reporter.warn.call_args_list]
        assert any("teardown failed" in w and "peer closed" in w for w in warnings)



class TestPreconditions:
    """Batch-fatal checks happen before any host is touched."""

    def test_missing_installer(self, source_dir, share_factory, session_factory) -> None:
        probe = MagicMock(return_value=True)
        bi = make_installer(source_dir, ["10.0.0.1"], share_factory, session_factory,
                            installer="missing.msi", probe=probe)
        with pytest.raises(PreconditionError, match="missing.msi"):
            bi.run()
        probe.assert_not_called()
        share_factory.assert_not_called()

    def test_missing_certificate(self, source_dir, share_factory, session_factory) -> None:
        bi = make_installer(source_dir, ["10.0.0.1"], share_factory, session_factory, cert="nope.cer")
        with pytest.raises(PreconditionError):
            bi.run()
        share_factory.assert_not_called()

    def test_empty_target_list(self, source_dir, share_factory, session_factory) -> None:
        with pytest.raises(PreconditionError):
            make_installer(source_dir, [], share_factory, session_factory).run()

    def test_confirmation_declined(self, source_dir, share_factory, session_factory) -> None:
        probe = MagicMock(return_value=True)
        confirm = MagicMock(side_effect=ConfirmationDeclined("Aborted by user."))
        bi = make_installer(source_dir, ["10.0.0.1"], share_factory, session_factory,
                            force=False, probe=probe, confirm_prompt=confirm)
        with pytest.raises(ConfirmationDeclined):
            bi.run()
        confirm.assert_called_once()
        probe.assert_not_called()

    def test_force_skips_confirmation(self, source_dir, share_factory, session_factory) -> None:
        confirm = MagicMock()
        make_installer(source_dir, ["10.0.0.1"], share_factory, session_factory,
                       confirm_prompt=confirm).run()
        confirm.assert_not_called()

    def test_credential_prompted_once(self, source_dir, share_factory, session_factory) -> None:
        prompt = MagicMock(return_value=CRED)
        make_installer(source_dir, ["10.0.0.1", "10.0.0.2"], share_factory, session_factory,
                       credential=None, username="CORP\\deploy", credential_prompt=prompt).run()
        prompt.assert_called_once_with("CORP\\deploy", None)

    def test_credential_not_prompted_when_given(self, source_dir, share_factory, session_factory) -> None:
        prompt = MagicMock()
        make_installer(source_dir, ["10.0.0.1"], share_factory, session_factory,
                       credential_prompt=prompt).run()
        prompt.assert_not_called()
