"""Tests for the CLI runner (no network)."""

import json

import pytest

from relnotes import runner


@pytest.fixture(autouse=True)
def _no_credentials(monkeypatch):
    monkeypatch.delenv("OPEN_AI_TOKEN", raising=False)
    monkeypatch.delenv("RELNOTES_CONFIG_PATH", raising=False)


@pytest.fixture
def messages_file(tmp_path):
    path = tmp_path / "log.txt"
    path.write_text(
        "feat: some admin change [admin]\n"
        "feat: just new feature (#12)\n"
        "\n"
        "Merge branch 'master'\n"
        "feat(worker): internal change [internal]\n"
        "chore(ci): ignored [skip ci]\n",
        encoding="utf-8",
    )
    return path


class TestRunnerMain:
    def test_writes_changelog_and_pr_numbers(self, tmp_path, messages_file, capsys):
        out = tmp_path / "out" / "changelog.txt"
        prs = tmp_path / "prs.json"
        code = runner.main([
            "--messages", str(messages_file),
            "--scopes", '{"Worker": ["worker"]}',
            "--out", str(out),
            "--pr-numbers-out", str(prs),
        ])
        assert code == 0
        text = out.read_text(encoding="utf-8")
        assert text.startswith("**Worker**\n\n:rocket: _User-facing_\n* just new feature\n")
        assert "ignored" not in text
        assert json.loads(prs.read_text(encoding="utf-8")) == [12]
        assert "[INFO] pr_numbers=[12]" in capsys.readouterr().out

    def test_buckets_from_config_file(self, tmp_path, messages_file):
        cfg = tmp_path / "release_notes.yaml"
        cfg.write_text("buckets:\n  Worker: [worker]\n  Web: [web]\n", encoding="utf-8")
        out = tmp_path / "changelog.txt"
        code = runner.main(["--messages", str(messages_file), "--config", str(cfg), "--out", str(out)])
        assert code == 0
        assert "**Web**" not in out.read_text(encoding="utf-8")

    def test_json_messages(self, tmp_path):
        messages = tmp_path / "messages.json"
        messages.write_text(json.dumps(["fix(api): crash\n\nFixes #8", "docs: nothing"]), encoding="utf-8")
        out = tmp_path / "changelog.txt"
        prs = tmp_path / "prs.json"
        code = runner.main([
            "--messages", str(messages), "--format", "json",
            "--scopes", '{"Api": ["api"]}', "--out", str(out), "--pr-numbers-out", str(prs),
        ])
        assert code == 0
        assert "* crash\n" in out.read_text(encoding="utf-8")
        assert json.loads(prs.read_text(encoding="utf-8")) == [8]

    def test_invalid_scopes_exit_2(self, tmp_path, messages_file, capsys):
        code = runner.main(["--messages", str(messages_file), "--scopes", "{}", "--out", str(tmp_path / "c.txt")])
        assert code == 2
        assert "[ERROR] Invalid bucket table" in capsys.readouterr().err
        assert not (tmp_path / "c.txt").exists()

    def test_missing_bucket_table_exit_2(self, tmp_path, messages_file, monkeypatch, capsys):
        monkeypatch.setattr(runner, "resolve_config_path", lambda explicit=None: None)
        code = runner.main(["--messages", str(messages_file), "--out", str(tmp_path / "c.txt")])
        assert code == 2
        assert "No bucket table" in capsys.readouterr().err

    def test_missing_messages_file_exit_2(self, tmp_path, capsys):
        code = runner.main(["--messages", str(tmp_path / "nope.txt"), "--scopes", '{"A": ["a"]}'])
        assert code == 2
        assert "Messages file not found" in capsys.readouterr().err

    def test_unmatched_scope_warns_on_stderr(self, tmp_path, capsys):
        messages = tmp_path / "log.txt"
        messages.write_text("feat(intl): Change sign-up text\n", encoding="utf-8")
        log_file = tmp_path / "run.log"
        code = runner.main([
            "--messages", str(messages), "--scopes", '{"App": ["app"]}',
            "--out", str(tmp_path / "c.txt"), "--log-file", str(log_file),
        ])
        assert code == 0
        assert "[WARN] No bucket matches scopes intl" in capsys.readouterr().err
        assert "[WARN]" in log_file.read_text(encoding="utf-8")

    def test_fractional_timeout_is_accepted(self, tmp_path, messages_file, monkeypatch):
        seen = {}
        real_classify = runner.classify

        async def recording_classify(messages, table, **kwargs):
            seen["timeout_s"] = kwargs["timeout_s"]
            return await real_classify(messages, table, **kwargs)

        monkeypatch.setattr(runner, "classify", recording_classify)
        code = runner.main([
            "--messages", str(messages_file), "--scopes", '{"Worker": ["worker"]}',
            "--out", str(tmp_path / "c.txt"), "--timeout", "0.5", "--no-rewrite",
        ])
        assert code == 0
        assert seen["timeout_s"] == 0.5

    def test_skipped_commit_pr_numbers_are_written(self, tmp_path):
        messages = tmp_path / "log.txt"
        messages.write_text("chore: bump deps [skip ci] (#31)\nfeat: shown (#30)\n", encoding="utf-8")
        prs = tmp_path / "prs.json"
        code = runner.main([
            "--messages", str(messages), "--scopes", '{"Worker": ["worker"]}',
            "--out", str(tmp_path / "c.txt"), "--pr-numbers-out", str(prs),
        ])
        assert code == 0
        assert json.loads(prs.read_text(encoding="utf-8")) == [30, 31]
        assert "bump deps" not in (tmp_path / "c.txt").read_text(encoding="utf-8")
