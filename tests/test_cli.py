import yaml

from quota_activator import cli


def write_config(tmp_path, data) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


class TestCli:
    def test_validate_ok(self, tmp_path, valid_config_data, capsys):
        code = cli.main(["--config", write_config(tmp_path, valid_config_data), "validate"])
        assert code == 0
        assert "OK: 3 target time(s)" in capsys.readouterr().out

    def test_validate_conflict_exits_non_zero(self, tmp_path, valid_config_data, conflicting_targets):
        valid_config_data["scheduler"]["target_times"] = conflicting_targets
        assert cli.main(["--config", write_config(tmp_path, valid_config_data), "validate"]) == 1

    def test_run_refuses_invalid_config(self, tmp_path, valid_config_data):
        valid_config_data["scheduler"]["interval_hours"] = 0
        assert cli.main(["--config", write_config(tmp_path, valid_config_data), "run"]) == 1

    def test_preview_prints_requested_count(self, tmp_path, valid_config_data, capsys):
        code = cli.main(["--config", write_config(tmp_path, valid_config_data), "preview", "--count", "4"])
        lines = [line for line in capsys.readouterr().out.splitlines() if "->" in line]
        assert code == 0
        assert len(lines) == 4
