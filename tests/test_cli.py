# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

import json
from unittest.mock import patch

import httpx
from typer.testing import CliRunner

from conftest import change_data, gerrit_body, make_client
from gerritreviews import __version__
from gerritreviews.cli import app


def proxy_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path.endswith("/changes/"):
        query = request.url.params["q"]
        if "reviewer:" in query:
            return httpx.Response(503, text="Service Unavailable")
        if "is:closed" in query:
            return httpx.Response(200, text=gerrit_body([]))
        return httpx.Response(
            200, text=gerrit_body([change_data(1, project="releng/tool")])
        )
    if path.endswith("/accounts/1000001/username"):
        return httpx.Response(200, text=")]}'\n\"jdoe\"")
    return httpx.Response(404)


def fake_client(**kwargs):
    return make_client(proxy_handler)


class TestCLI:
    def setup_method(self):
        self.runner = CliRunner()

    def test_top_level_version(self):
        result = self.runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"gerrit-reviews version {__version__}" in result.stdout

    def test_missing_proxy_url(self, monkeypatch):
        monkeypatch.delenv("GERRIT_PROXY_URL", raising=False)
        result = self.runner.invoke(app, ["repo", "my-project"])
        assert result.exit_code == 2
        assert "No proxy URL configured" in result.stdout

    @patch("gerritreviews.cli.GerritProxyClient", side_effect=fake_client)
    def test_repo_json(self, _mock_client):
        result = self.runner.invoke(
            app,
            [
                "repo",
                "releng/tool",
                "--proxy-url",
                "http://portal/api/proxy",
                "--web-url",
                "https://gerrit.example.org",
                "--format",
                "json",
            ],
        )
        assert result.exit_code == 0, result.stdout

        payload = json.loads(result.stdout)
        assert len(payload) == 1
        table = payload[0]
        assert table["title"] == "Gerrit reviews on repo"
        assert table["state"] == "ready"
        row = table["rows"][0]
        assert row["change_url"] == "https://gerrit.example.org/c/releng/tool/+/1"
        assert row["owner"]["username"] == "jdoe"
        assert row["owner"]["state"] == "resolved"
        assert row["updated"] == "2024-01-15 12:00:00"

    @patch("gerritreviews.cli.GerritProxyClient", side_effect=fake_client)
    def test_repo_table(self, _mock_client):
        result = self.runner.invoke(
            app, ["repo", "releng/tool", "--proxy-url", "http://portal/api/proxy"]
        )
        assert result.exit_code == 0, result.stdout
        assert "Gerrit reviews on repo" in result.stdout
        assert "jdoe" in result.stdout

    @patch("gerritreviews.cli.GerritProxyClient", side_effect=fake_client)
    def test_dashboard_partial_failure(self, _mock_client):
        """A failing table is reported inline, the others still render."""
        result = self.runner.invoke(
            app,
            [
                "dashboard",
                "--user",
                "alice",
                "--proxy-url",
                "http://portal/api/proxy",
                "--format",
                "json",
            ],
        )
        assert result.exit_code == 0, result.stdout

        payload = json.loads(result.stdout)
        states = {t["title"]: t["state"] for t in payload}
        assert states == {
            "Open Reviews": "ready",
            "Incoming Reviews": "failed",
            "Closed Reviews": "ready",
        }
        incoming = next(t for t in payload if t["title"] == "Incoming Reviews")
        assert "HTTP 503" in incoming["error"]
        open_rows = next(t for t in payload if t["title"] == "Open Reviews")["rows"]
        assert open_rows[0]["project_url"].endswith("/plugins/gitiles/releng/tool")

    @patch("gerritreviews.cli.GerritProxyClient", side_effect=fake_client)
    def test_dashboard_table_output(self, _mock_client):
        result = self.runner.invoke(
            app, ["dashboard", "--proxy-url", "http://portal/api/proxy"]
        )
        assert result.exit_code == 0, result.stdout
        assert "Open Reviews" in result.stdout
        assert "Incoming Reviews" in result.stdout
        assert "HTTP 503" in result.stdout
        assert "Closed Reviews" in result.stdout

    def test_check_entity_gerrit(self, tmp_path):
        path = tmp_path / "entity.json"
        path.write_text(
            json.dumps(
                {
                    "metadata": {
                        "name": "my-project",
                        "annotations": {
                            "backstage.io/source-location": "url:http://localhost:8080/my-project"
                        },
                    }
                }
            )
        )
        result = self.runner.invoke(app, ["check-entity", str(path)])
        assert result.exit_code == 0
        assert "my-project: Gerrit-backed" in result.stdout

    def test_check_entity_custom_host(self, tmp_path):
        path = tmp_path / "entity.json"
        path.write_text(
            json.dumps(
                {
                    "metadata": {
                        "name": "nova",
                        "annotations": {
                            "backstage.io/source-location": "url:https://review.opendev.org/nova"
                        },
                    }
                }
            )
        )
        result = self.runner.invoke(app, ["check-entity", str(path)])
        assert result.exit_code == 1
        assert "not a Gerrit repository" in result.stdout

        result = self.runner.invoke(
            app, ["check-entity", str(path), "--gerrit-host", "review.opendev.org"]
        )
        assert result.exit_code == 0

    def test_check_entity_invalid_json(self, tmp_path):
        path = tmp_path / "entity.json"
        path.write_text("metadata: {}")
        result = self.runner.invoke(app, ["check-entity", str(path)])
        assert result.exit_code == 2
        assert "not valid JSON" in result.stdout

    def test_check_entity_not_an_object(self, tmp_path):
        path = tmp_path / "entity.json"
        path.write_text("[1, 2]")
        result = self.runner.invoke(app, ["check-entity", str(path)])
        assert result.exit_code == 2
        assert "not a JSON object" in result.stdout

    def test_check_entity_metadata_not_an_object(self, tmp_path):
        path = tmp_path / "entity.json"
        path.write_text(json.dumps({"metadata": ["gerrit"]}))
        result = self.runner.invoke(app, ["check-entity", str(path)])
        assert result.exit_code == 1
        assert "(unnamed): not a Gerrit repository" in result.stdout

    def test_repo_sorted(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/changes/"):
                changes = [
                    change_data(1, project="p", updated="2024-01-01 00:00:00"),
                    change_data(2, project="p", updated="2024-05-01 00:00:00"),
                ]
                return httpx.Response(200, text=gerrit_body(changes))
            return httpx.Response(200, text=")]}'\n\"jdoe\"")

        with patch(
            "gerritreviews.cli.GerritProxyClient",
            side_effect=lambda **kwargs: make_client(handler),
        ):
            result = self.runner.invoke(
                app,
                [
                    "repo",
                    "p",
                    "--proxy-url",
                    "http://portal/api/proxy",
                    "--format",
                    "json",
                    "--sort",
                    "updated",
                    "--desc",
                ],
            )
        assert result.exit_code == 0, result.stdout
        rows = json.loads(result.stdout)[0]["rows"]
        assert [row["number"] for row in rows] == ["2", "1"]

    def test_unknown_sort_column(self):
        result = self.runner.invoke(
            app, ["repo", "p", "--proxy-url", "http://p", "--sort", "labels"]
        )
        assert result.exit_code == 2
        assert "cannot sort by 'labels'" in result.stdout
