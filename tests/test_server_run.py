"""Tests for the server command-line entry point."""

from pathlib import Path

from workout_log.config import WorkoutLogConfig
from workout_log.server import run


class TestBuildParser:
    def test_defaults_come_from_config(self):
        config = WorkoutLogConfig(server_port=4000, server_data_path=Path("x.json"))
        args = run.build_parser(config).parse_args([])

        assert args.port == 4000
        assert args.data == Path("x.json")
        assert args.log_level == "INFO"

    def test_overrides(self):
        args = run.build_parser(WorkoutLogConfig()).parse_args(
            ["--host", "127.0.0.1", "--port", "9000", "--data", "d.json"]
        )

        assert args.host == "127.0.0.1"
        assert args.port == 9000
        assert args.data == Path("d.json")


class TestMain:
    def test_main_runs_app_with_settings_file(self, monkeypatch, tmp_path):
        for key in ("WORKOUT_LOG_SERVER_PORT", "PORT", "WORKOUT_LOG_SERVER_DATA_PATH"):
            monkeypatch.delenv(key, raising=False)

        settings = tmp_path / "settings.yaml"
        settings.write_text(
            f"workout_log:\n  server_port: 3100\n  server_data_path: {tmp_path / 'ex.json'}\n"
        )

        calls = {}

        def fake_run_app(app, host, port, print):
            calls.update(app=app, host=host, port=port)

        monkeypatch.setattr(run.web, "run_app", fake_run_app)
        run.main(["--config", str(settings), "--host", "127.0.0.1"])

        assert calls["port"] == 3100
        assert calls["host"] == "127.0.0.1"
        assert calls["app"].router is not None
