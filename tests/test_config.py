"""Settings loading tests."""

import json

import pytest

from whitelist_sync.core.config import load_settings
from whitelist_sync.core.exceptions import ConfigError

SECRETS = {
    "maintainerSecretKey": "0x" + "11" * 32,
    "secretCookie": "cli=s3cret",
    "nodeUrl": "http://127.0.0.1:8545",
    "contractAddress": "0x" + "cc" * 20,
    "lambdaUrl": "https://region-project.cloudfunctions.net/handleForm",
}

ENV_NAMES = [
    "MAINTAINER_SECRET_KEY", "SECRET_COOKIE", "NODE_URL", "CONTRACT_ADDRESS", "LAMBDA_URL",
    "maintainerSecretKey", "secretCookie", "nodeUrl", "contractAddress", "lambdaUrl",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def write(tmp_path, data, name="secret.json"):
    path = tmp_path / name
    path.write_text(data if isinstance(data, str) else json.dumps(data))
    return path


class TestLoadSettings:
    """Valid secrets files."""

    def test_camel_case_keys(self, tmp_path):
        settings = load_settings(write(tmp_path, SECRETS))

        assert settings.NODE_URL == "http://127.0.0.1:8545"
        assert settings.SECRET_COOKIE.get_secret_value() == "cli=s3cret"
        assert settings.BATCH_CAP == 10
        assert settings.GAS_PRICE_MARGIN_PERCENT == 10
        assert settings.CONFIRMATIONS == 1

    def test_upper_case_keys(self, tmp_path):
        data = {
            "MAINTAINER_SECRET_KEY": SECRETS["maintainerSecretKey"],
            "SECRET_COOKIE": SECRETS["secretCookie"],
            "NODE_URL": SECRETS["nodeUrl"],
            "CONTRACT_ADDRESS": SECRETS["contractAddress"],
            "LAMBDA_URL": SECRETS["lambdaUrl"],
        }
        assert load_settings(write(tmp_path, data)).LAMBDA_URL == SECRETS["lambdaUrl"]

    def test_env_fills_missing_field(self, tmp_path, monkeypatch):
        data = dict(SECRETS)
        del data["nodeUrl"]
        monkeypatch.setenv("NODE_URL", "https://node.example")

        assert load_settings(write(tmp_path, data)).NODE_URL == "https://node.example"

    def test_overrides_tunables(self, tmp_path):
        settings = load_settings(write(tmp_path, {**SECRETS, "BATCH_CAP": 5}))
        assert settings.BATCH_CAP == 5

    def test_secrets_hidden_in_repr(self, tmp_path):
        settings = load_settings(write(tmp_path, SECRETS))
        assert "11111111" not in repr(settings)
        assert "s3cret" not in repr(settings)


class TestLoadSettingsFailures:
    """Anything wrong with the file is a ConfigError."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_settings(tmp_path / "nope.json")

    def test_not_json(self, tmp_path):
        with pytest.raises(ConfigError):
            load_settings(write(tmp_path, "{not json"))

    def test_not_an_object(self, tmp_path):
        with pytest.raises(ConfigError):
            load_settings(write(tmp_path, "[1, 2]"))

    def test_missing_field(self, tmp_path):
        data = dict(SECRETS)
        del data["lambdaUrl"]
        with pytest.raises(ConfigError) as exc:
            load_settings(write(tmp_path, data))
        assert "lambda" in str(exc.value).lower()

    def test_bad_contract_address(self, tmp_path):
        with pytest.raises(ConfigError):
            load_settings(write(tmp_path, {**SECRETS, "contractAddress": "0x1234"}))

    def test_bad_secret_key(self, tmp_path):
        with pytest.raises(ConfigError) as exc:
            load_settings(write(tmp_path, {**SECRETS, "maintainerSecretKey": "hunter2"}))
        assert "hunter2" not in str(exc.value)

    @pytest.mark.parametrize("key", ["0x" + "ff" * 32, "0x" + "00" * 32])
    def test_key_outside_curve_range(self, tmp_path, key):
        with pytest.raises(ConfigError):
            load_settings(write(tmp_path, {**SECRETS, "maintainerSecretKey": key}))

    def test_bad_url(self, tmp_path):
        with pytest.raises(ConfigError):
            load_settings(write(tmp_path, {**SECRETS, "nodeUrl": "127.0.0.1:8545"}))

    def test_zero_batch_cap(self, tmp_path):
        with pytest.raises(ConfigError):
            load_settings(write(tmp_path, {**SECRETS, "BATCH_CAP": 0}))
