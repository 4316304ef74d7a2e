"""Tests for the command line entry point."""

import json
from unittest.mock import patch

import pytest

from photo_notifier.config.exceptions import ConfigurationError
from photo_notifier.config.loader import load_config
from photo_notifier.main import main, read_batch_file, seed_records
from photo_notifier.persistence import DeliveryRecordRepository
from photo_notifier.runtime import build_runtime
from tests.helpers import make_payload, make_record


def write_batch(path, records):
    path.write_text(json.dumps({"Records": records}))
    return path


@pytest.fixture
def cli_env(full_env, tmp_path):
    """Credentials, a temp working directory and no root logger changes."""
    full_env.chdir(tmp_path)
    with patch("photo_notifier.runtime.configure_logging"), patch("photo_notifier.main.load_dotenv"):
        yield full_env



class TestReadBatchFile:
    def test_trigger_event_shape(self, tmp_path):
        path = write_batch(tmp_path / "batch.json", [make_record("m-1")])

        records = read_batch_file(path)

        assert [r["messageId"] for r in records] == ["m-1"]

    def test_bare_list(self, tmp_path):
        path = tmp_path / "batch.json"
        path.write_text(json.dumps([make_record("m-1"), make_record("m-2")]))

        assert len(read_batch_file(path)) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Failed to read event file"):
            read_batch_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "batch.json"
        path.write_text("{not json")

        with pytest.raises(ConfigurationError, match="not valid JSON"):
            read_batch_file(path)

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "batch.json"
        path.write_text(json.dumps({"records": "nope"}))

        with pytest.raises(ConfigurationError, match="'Records' list"):
            read_batch_file(path)


class TestMain:
    def test_successful_batch_prints_response(self, cli_env, fake_channels, tmp_path, capsys):
        path = write_batch(tmp_path / "batch.json", [make_record("m-1")])

        exit_code = main(["--event-file", str(path)])

        assert exit_code == 0
        response = json.loads(capsys.readouterr().out)
        assert response["batchItemFailures"] == []
        assert response["summary"]["sentMessages"] == 1
        assert all(channel.closed for channel in fake_channels)

    def test_failed_record_exits_nonzero(self, cli_env, fake_channels, tmp_path, capsys):
        path = write_batch(
            tmp_path / "batch.json",
            [make_record("m-1"), {"messageId": "m-2", "body": "{broken"}],
        )

        exit_code = main(["--event-file", str(path)])

        assert exit_code == 1
        response = json.loads(capsys.readouterr().out)
        assert response["batchItemFailures"] == [{"itemIdentifier": "m-2"}]

    def test_second_run_skips_delivered_records(self, cli_env, fake_channels, tmp_path, capsys):
        path = write_batch(tmp_path / "batch.json", [make_record("m-1")])

        assert main(["--event-file", str(path)]) == 0
        capsys.readouterr()
        assert main(["--event-file", str(path)]) == 0

        response = json.loads(capsys.readouterr().out)
        assert response["summary"]["duplicatesSkipped"] == 1
        assert len(fake_channels[0].calls) == 1

    def test_seed_flag_seeds_before_dispatch(self, cli_env, fake_channels, tmp_path):
        path = write_batch(tmp_path / "batch.json", [make_record("m-1")])

        with patch("photo_notifier.main.seed_records", return_value=1) as seed:
            assert main(["--event-file", str(path), "--seed"]) == 0

        seed.assert_called_once()
        assert seed.call_args.args[1][0]["messageId"] == "m-1"

    def test_seed_records_skips_undecodable_bodies(self, cli_env, fake_channels, tmp_path):
        app_config, env_config = load_config()
        runtime = build_runtime(app_config, env_config)
        try:
            seeded = seed_records(
                runtime,
                [
                    make_record("m-1", make_payload(eventId="evt-seed")),
                    {"messageId": "m-2", "body": "{broken"},
                ],
            )
            record = DeliveryRecordRepository().get_record("evt-seed", "guest-7")
        finally:
            runtime.close()

        assert seeded == 1
        assert record is not None
        assert record.email.sent is False

    def test_missing_credentials_is_configuration_error(self, clean_env, tmp_path, capsys):
        clean_env.chdir(tmp_path)
        path = write_batch(tmp_path / "batch.json", [make_record("m-1")])

        with patch("photo_notifier.main.load_dotenv"):
            exit_code = main(["--event-file", str(path)])

        assert exit_code == 1
        assert "Configuration Error" in capsys.readouterr().err

    def test_missing_explicit_config(self, cli_env, tmp_path, capsys):
        path = write_batch(tmp_path / "batch.json", [])

        exit_code = main(["--event-file", str(path), "--config", str(tmp_path / "nope.yaml")])

        assert exit_code == 1
        assert "not found" in capsys.readouterr().err

    def test_missing_event_file(self, cli_env, tmp_path, capsys):
        exit_code = main(["--event-file", str(tmp_path / "missing.json")])

        assert exit_code == 1
        assert "Failed to read event file" in capsys.readouterr().err

    def test_keyboard_interrupt(self, cli_env, tmp_path):
        path = write_batch(tmp_path / "batch.json", [])

        with patch("photo_notifier.main.read_batch_file", side_effect=KeyboardInterrupt):
            assert main(["--event-file", str(path)]) == 130

    def test_unexpected_error(self, cli_env, tmp_path, capsys):
        path = write_batch(tmp_path / "batch.json", [])

        with patch("photo_notifier.main.build_runtime", side_effect=RuntimeError("boom")):
            exit_code = main(["--event-file", str(path)])

        assert exit_code == 1
        assert "Fatal error: boom" in capsys.readouterr().err
