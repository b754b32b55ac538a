"""End-to-end tests for the ledger-kernel command line."""

import json
from uuid import uuid4

import pytest

from ledger_kernel.cli import main
from ledger_kernel.db.engine import reset_engine
from ledger_kernel.db.immutability import unregister_immutability_listeners


@pytest.fixture
def run(tmp_path, capsys, monkeypatch):
    """Run the CLI against a private SQLite file and return (code, stdout JSON)."""
    monkeypatch.delenv("LEDGER_CONFIG", raising=False)
    url = f"sqlite:///{tmp_path / 'cli.db'}"

    def _run(*argv):
        code = main(["--database-url", url, *argv])
        out = capsys.readouterr().out
        return code, json.loads(out) if out.strip() else None

    yield _run

    unregister_immutability_listeners()
    reset_engine()


@pytest.fixture
def company():
    return str(uuid4())


def _create(run, company, name, account_type, group, opening="0"):
    code, account = run(
        "create-account",
        "--company", company,
        "--name", name,
        "--type", account_type,
        "--group", group,
        "--opening-balance", opening,
    )
    assert code == 0
    return account


class TestCli:
    def test_init_db(self, run):
        code, out = run("init-db")

        assert code == 0
        assert out["status"] == "initialized"

    def test_post_flow(self, run, company, tmp_path):
        cash = _create(run, company, "Cash", "asset", "Current Assets", "1000")
        sales = _create(run, company, "Sales", "income", "Revenue")

        body = tmp_path / "txn.json"
        body.write_text(
            json.dumps(
                {
                    "date": "2024-03-01",
                    "reference": "TXN001",
                    "description": "Cash sale",
                    "entries": [
                        {"account": cash["id"], "debit": 500, "credit": 0},
                        {"account": sales["id"], "debit": 0, "credit": 500},
                    ],
                }
            )
        )

        code, out = run("post", "--company", company, "--user", str(uuid4()), "--file", str(body))
        assert code == 0
        assert out["transaction"]["totalAmount"] == "500.00"

        code, accounts = run("accounts", "--company", company)
        assert code == 0
        balances = {a["name"]: a["currentBalance"] for a in accounts}
        assert balances == {"Cash": "1500.00", "Sales": "500.00"}

        code, journal = run("journal", "--company", company, "--date", "2024-03-01")
        assert code == 0
        assert journal["pagination"]["total"] == 1

        code, report = run("check-balances", "--company", company)
        assert code == 0
        assert report["consistent"] is True
        assert all(a["drift"] == "0.00" for a in report["accounts"])

    def test_rejected_post_exits_1(self, run, company, tmp_path):
        cash = _create(run, company, "Cash", "asset", "Current Assets")
        body = tmp_path / "bad.json"
        body.write_text(
            json.dumps(
                {
                    "date": "2024-03-01",
                    "reference": "TXN002",
                    "description": "One-sided",
                    "entries": [{"account": cash["id"], "debit": 10}],
                }
            )
        )

        code, out = run("post", "--company", company, "--user", str(uuid4()), "--file", str(body))

        assert code == 1
        assert out["code"] == "INSUFFICIENT_ENTRIES"

    def test_duplicate_account_exits_1(self, run, company):
        _create(run, company, "Cash", "asset", "Current Assets")

        code, out = run(
            "create-account", "--company", company, "--name", "Cash",
            "--type", "asset", "--group", "Current Assets",
        )

        assert code == 1
        assert out["code"] == "ALREADY_EXISTS"

    def test_missing_config_file_exits_2(self, tmp_path, capsys, monkeypatch):
        monkeypatch.delenv("LEDGER_CONFIG", raising=False)

        code = main(["--config", str(tmp_path / "missing.yaml"), "init-db"])

        assert code == 2
        assert "error" in capsys.readouterr().err
