import hashlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")


@dataclass
class ZKPConfig:
    challenge_bits: int = 256
    hash_algorithm: str = "sha256"
    allow_duplicate_candidates: bool = True
    verify_workers: int = 4

    def __post_init__(self):
        if self.challenge_bits <= 0:
            raise ValueError(
                f"challenge_bits must be positive, got {self.challenge_bits}")
        if self.hash_algorithm not in hashlib.algorithms_available:
            raise ValueError(f"Unknown hash algorithm: {self.hash_algorithm}")
        # XOF digests (shake_*) have no fixed length
        if hashlib.new(self.hash_algorithm).digest_size == 0:
            raise ValueError(
                f"Hash algorithm must have a fixed digest size: {self.hash_algorithm}")
        if self.verify_workers < 1:
            raise ValueError(
                f"verify_workers must be at least 1, got {self.verify_workers}")

    @property
    def challenge_modulus(self) -> int:
        return 1 << self.challenge_bits


@dataclass
class PaillierConfig:
    key_size: int = 2048

    def __post_init__(self):
        if self.key_size < 1024:
            raise ValueError(
                f"key_size must be at least 1024 bits, got {self.key_size}")


@dataclass
class SystemConfig:
    zkp_config: ZKPConfig = field(default_factory=ZKPConfig)
    paillier_config: PaillierConfig = field(default_factory=PaillierConfig)

    log_dir: Path = field(default_factory=lambda: Path("logs"))
    results_dir: Path = field(default_factory=lambda: Path("results"))
    log_level: str = "INFO"
    enable_benchmarking: bool = False

    def __post_init__(self):
        self.log_dir = Path(self.log_dir)
        self.results_dir = Path(self.results_dir)


def _config_from_dict(config_data: Dict[str, Any]) -> SystemConfig:
    zkp_data = config_data.get('zkp', {}) or {}
    zkp_config = ZKPConfig(
        challenge_bits=zkp_data.get('challenge_bits', 256),
        hash_algorithm=zkp_data.get('hash_algorithm', 'sha256'),
        allow_duplicate_candidates=zkp_data.get(
            'allow_duplicate_candidates', True),
        verify_workers=zkp_data.get('verify_workers', 4)
    )

    paillier_data = config_data.get('paillier', {}) or {}
    paillier_config = PaillierConfig(
        key_size=paillier_data.get('key_size', 2048)
    )

    return SystemConfig(
        zkp_config=zkp_config,
        paillier_config=paillier_config,
        log_dir=Path(config_data.get('log_dir', 'logs')),
        results_dir=Path(config_data.get('results_dir', 'results')),
        log_level=config_data.get('log_level', 'INFO'),
        enable_benchmarking=config_data.get('enable_benchmarking', False)
    )


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """Load configuration from file or return default"""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if config_path.exists():
        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}

            return _config_from_dict(config_data)
        except (OSError, yaml.YAMLError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Could not load config file {config_path}: {e}")
            logger.warning("Using default configuration")

    return SystemConfig()


def save_config(config: SystemConfig, config_path: Optional[Path] = None):
    """Save configuration to YAML file"""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    config_data = {
        'zkp': {
            'challenge_bits': config.zkp_config.challenge_bits,
            'hash_algorithm': config.zkp_config.hash_algorithm,
            'allow_duplicate_candidates': config.zkp_config.allow_duplicate_candidates,
            'verify_workers': config.zkp_config.verify_workers
        },
        'paillier': {
            'key_size': config.paillier_config.key_size
        },
        'log_dir': str(config.log_dir),
        'results_dir': str(config.results_dir),
        'log_level': config.log_level,
        'enable_benchmarking': config.enable_benchmarking
    }

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w') as f:
        yaml.dump(config_data, f, default_flow_style=False)
