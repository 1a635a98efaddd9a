"""CLI tests. Network adapters are swapped for the in-memory mocks."""

import json
from types import SimpleNamespace

import pytest

from whitelist_sync import main as cli
from whitelist_sync.models.schemas import Row
from whitelist_sync.services.mocks import InMemoryRecordStore, LedgerMock

SECRETS = {
    "maintainerSecretKey": "0x" + "11" * 32,
    "secretCookie": "cli=s3cret",
    "nodeUrl": "http://127.0.0.1:8545",
    "contractAddress": "0x" + "cc" * 20,
    "lambdaUrl": "https://region-project.cloudfunctions.net/handleForm",
}


@pytest.fixture
def secret_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "secret.json"
    path.write_text(json.dumps(SECRETS))
    return path


@pytest.fixture
def wired(monkeypatch):
    """Point the CLI at mocks instead of the lambda and the node."""
    store = InMemoryRecordStore([
        Row(index=0, address="0x" + "aa" * 20, approved=True),
        Row(index=1, address="bad", approved=True),
    ])
    ledger = LedgerMock()
    monkeypatch.setattr(cli, "_record_store", lambda settings: store)
    monkeypatch.setattr(cli, "Web3LedgerClient", SimpleNamespace(from_settings=lambda settings: ledger))
    return store, ledger


class TestParser:

    def test_action_is_case_insensitive(self):
        args = cli.build_parser().parse_args(["--action", "Update-Whitelist"])
        assert args.action == "update-whitelist"

    def test_default_secret_file(self):
        args = cli.build_parser().parse_args(["--action", "disable-whitelist"])
        assert str(args.secret_file) == "secret.json"

    def test_unknown_action(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["--action", "mint"])

    def test_yes_and_no_input_exclusive(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["--action", "update-whitelist", "--yes", "--no-input"])

    def test_lookup_needs_address(self, secret_file):
        with pytest.raises(SystemExit):
            cli.main(["--action", "lookup", "-s", str(secret_file)])


class TestMain:

    def test_missing_secrets_is_fatal(self, tmp_path):
        code = cli.main(["--action", "update-whitelist", "-s", str(tmp_path / "missing.json")])
        assert code == cli.EXIT_FATAL

    def test_unusable_key_is_fatal(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        path = tmp_path / "secret.json"
        path.write_text(json.dumps({**SECRETS, "maintainerSecretKey": "0x" + "ff" * 32}))

        code = cli.main(["--action", "disable-whitelist", "-s", str(path)])

        assert code == cli.EXIT_FATAL

    def test_update_with_yes(self, secret_file, wired):
        store, ledger = wired

        code = cli.main(["--action", "update-whitelist", "-s", str(secret_file), "--yes"])

        assert code == cli.EXIT_OK
        assert len(ledger.submitted_batches) == 1
        assert store.patches[0]["rows"] == [0]

    def test_update_with_no_input_declines(self, secret_file, wired):
        store, ledger = wired

        code = cli.main(["--action", "update-whitelist", "-s", str(secret_file), "--no-input"])

        assert code == cli.EXIT_OK
        assert ledger.get_call_log() == []
        assert store.patches == []

    def test_submission_failure_is_fatal(self, secret_file, wired):
        store, ledger = wired
        ledger.fail_submission = True

        code = cli.main(["--action", "update-whitelist", "-s", str(secret_file), "--yes"])

        assert code == cli.EXIT_FATAL
        assert store.patches == []

    def test_write_back_failure_exits_diverged(self, secret_file, wired):
        store, ledger = wired
        store.fail_write_back = True

        code = cli.main(["--action", "update-whitelist", "-s", str(secret_file), "--yes"])

        assert code == cli.EXIT_DIVERGED

    def test_disable(self, secret_file, wired):
        _, ledger = wired

        code = cli.main(["--action", "disable-whitelist", "-s", str(secret_file)])

        assert code == cli.EXIT_OK
        assert ledger.whitelist_enabled is False

    def test_lookup(self, secret_file, wired):
        code = cli.main(["--action", "lookup", "-s", str(secret_file), "--address", "bad"])
        assert code == cli.EXIT_OK
