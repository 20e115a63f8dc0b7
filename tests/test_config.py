import logging
from pathlib import Path

import pytest
import yaml

from config.config import PaillierConfig, SystemConfig, ZKPConfig, load_config, save_config


class TestDefaults:

    def test_zkp_defaults(self):
        config = ZKPConfig()
        assert config.challenge_bits == 256
        assert config.hash_algorithm == "sha256"
        assert config.allow_duplicate_candidates is True
        assert config.challenge_modulus == 2 ** 256

    def test_system_defaults(self):
        config = SystemConfig()
        assert config.paillier_config.key_size == 2048
        assert config.log_dir == Path("logs")
        assert config.results_dir == Path("results")
        assert config.log_level == "INFO"

    def test_paths_are_normalized(self):
        config = SystemConfig(log_dir="var/log", results_dir="out")
        assert config.log_dir == Path("var/log")
        assert config.results_dir == Path("out")


class TestValidation:

    @pytest.mark.parametrize("kwargs", [
        {'challenge_bits': 0},
        {'challenge_bits': -8},
        {'hash_algorithm': 'not-a-hash'},
        {'hash_algorithm': 'shake_128'},
        {'verify_workers': 0},
    ])
    def test_invalid_zkp_config(self, kwargs):
        with pytest.raises(ValueError):
            ZKPConfig(**kwargs)

    def test_invalid_key_size(self):
        with pytest.raises(ValueError):
            PaillierConfig(key_size=512)


class TestPersistence:

    def test_round_trip(self, tmp_path):
        config = SystemConfig(
            zkp_config=ZKPConfig(challenge_bits=128, hash_algorithm="sha512",
                                 allow_duplicate_candidates=False, verify_workers=2),
            paillier_config=PaillierConfig(key_size=3072),
            log_dir=tmp_path / "logs",
            results_dir=tmp_path / "results",
            log_level="DEBUG",
            enable_benchmarking=True
        )
        path = tmp_path / "config.yaml"
        save_config(config, path)

        assert load_config(path) == config

    def test_saved_file_layout(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"
        save_config(SystemConfig(), path)

        data = yaml.safe_load(path.read_text())
        assert data['zkp']['challenge_bits'] == 256
        assert data['paillier']['key_size'] == 2048

    def test_partial_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("zkp:\n  challenge_bits: 160\n")

        config = load_config(path)
        assert config.zkp_config.challenge_bits == 160
        assert config.zkp_config.hash_algorithm == "sha256"
        assert config.paillier_config.key_size == 2048

    def test_missing_file(self, tmp_path):
        assert load_config(tmp_path / "absent.yaml") == SystemConfig()

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path) == SystemConfig()

    @pytest.mark.parametrize("content", [
        "zkp: [unclosed",
        "zkp:\n  challenge_bits: -1\n",
        "paillier:\n  key_size: 256\n",
        "- just\n- a list\n",
    ])
    def test_invalid_file_falls_back(self, tmp_path, caplog, content):
        path = tmp_path / "config.yaml"
        path.write_text(content)

        with caplog.at_level(logging.WARNING, logger="config.config"):
            config = load_config(path)

        assert config == SystemConfig()
        assert "Could not load config file" in caplog.text
