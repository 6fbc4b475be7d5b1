import pytest

from scorecast.env import Env, TimeParser, load_env


class TestTimeParser:
    @pytest.mark.parametrize(
        "amount,expected",
        [
            ("1s", 1.0),
            ("0.75s", 0.75),
            ("10m", 600.0),
            ("1h30m", 5400.0),
            ("2", 2.0),
            (1.2, 1.2),
        ],
    )
    def test_parses_durations(self, amount, expected):
        assert TimeParser(amount).time == pytest.approx(expected)

    def test_unparseable_duration_raises(self):
        with pytest.raises(ValueError):
            TimeParser("soon")


class TestLoadEnv:
    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        env = load_env(Env)

        assert env.SCORECAST_COMMAND_PORT == 53536
        assert env.SCORECAST_DISCOVERY_PORT == 53535
        assert env.SCORECAST_DISCOVERY_QUERY == "WHO_ARE_YOU?"
        assert TimeParser(env.SCORECAST_RECONNECT_BACKOFF).time == 0.75
        assert env.SCORECAST_MULTIPLIER_GROWTH == 1.05

    def test_environment_variables_override_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SCORECAST_COMMAND_PORT", "6000")
        monkeypatch.setenv("SCORECAST_SNAPSHOT_COMPRESSION", "false")

        env = load_env(Env)

        assert env.SCORECAST_COMMAND_PORT == 6000
        assert env.SCORECAST_SNAPSHOT_COMPRESSION is False

    def test_dotenv_file_overrides_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SCORECAST_SESSION_NAME", "from-environment")

        env_file = tmp_path / "scorecast.env"
        env_file.write_text(
            "SCORECAST_SESSION_NAME=from-file\nSCORECAST_SCORING_RATE=2.5\n"
        )

        env = load_env(Env, env_file=str(env_file))

        assert env.SCORECAST_SESSION_NAME == "from-file"
        assert env.SCORECAST_SCORING_RATE == 2.5

    def test_override_model_wins(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SCORECAST_BIND_HOST", "10.0.0.1")

        env = load_env(Env, override=Env(SCORECAST_BIND_HOST="127.0.0.1"))

        assert env.SCORECAST_BIND_HOST == "127.0.0.1"
