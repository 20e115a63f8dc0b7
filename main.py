import argparse
import logging
import sys
from pathlib import Path
from typing import List, Dict, Any, Optional

from config.config import SystemConfig, load_config
from paillier.paillier_crypto import PaillierError, generate_keypair, decrypt
from utils.utils import setup_logging, save_results, PerformanceMonitor, create_performance_report
from zk.zk_proofs import MembershipProofSystem, ZKError

logger = logging.getLogger(__name__)

DEFAULT_CANDIDATES = [23, 38, 52, 65, 77, 94]


class MembershipProofDemo:
    def __init__(self, config: SystemConfig, key_size: Optional[int] = None):
        self.config = config
        self.key_size = key_size or config.paillier_config.key_size
        self.performance_monitor = PerformanceMonitor()
        self.proof_system = MembershipProofSystem(
            config.zkp_config, self.performance_monitor)

        logger.info(f"Generating {self.key_size}-bit Paillier key pair")
        with self.performance_monitor.start_operation("keygen"):
            self.public_key, self.private_key = generate_keypair(self.key_size)

    def run(self, plaintext: int, candidates: List[int], rounds: int = 1) -> Dict[str, Any]:
        proofs = [
            self.proof_system.prove(self.public_key, plaintext, candidates)
            for _ in range(rounds)
        ]
        verdicts = self.proof_system.verify_batch(
            self.public_key, proofs, candidates)

        first = proofs[0]
        print(f"Ciphertext: {first.ciphertext}")
        print(f"Commitment: {first.commitment.serialize()}")
        print(f"Verified:   {all(verdicts)}")

        return {
            'parameters': {
                'key_size': self.public_key.bit_length,
                'candidates': candidates,
                'rounds': rounds,
                'challenge_bits': self.config.zkp_config.challenge_bits,
                'hash_algorithm': self.config.zkp_config.hash_algorithm
            },
            'verification': {
                'all_proofs_valid': all(verdicts),
                'decryption_matches': decrypt(self.private_key, first.ciphertext) == plaintext
            },
            'proof': first,
            'performance': self.performance_monitor.get_summary()
        }


def parse_candidates(text: str) -> List[int]:
    try:
        return [int(token) for token in text.split(',') if token.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Candidates must be a comma-separated list of integers: {text!r}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description='Paillier ciphertext set-membership proofs')
    parser.add_argument('--config', type=Path,
                        default=Path('config.yaml'), help='Config file path')
    parser.add_argument('--plaintext', type=int, default=65,
                        help='Message to encrypt and prove')
    parser.add_argument('--candidates', type=parse_candidates,
                        default=DEFAULT_CANDIDATES,
                        help='Comma-separated ordered candidate messages')
    parser.add_argument('--key-size', type=int, default=None,
                        help='Paillier modulus size in bits')
    parser.add_argument('--benchmark', type=int, default=1, metavar='N',
                        help='Number of prove/verify rounds')
    parser.add_argument('--output', type=Path, default=None,
                        help='Write results JSON to this path')
    parser.add_argument('--log-level', default=None,
                        help='Override configured log level')

    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(args.log_level or config.log_level,
                  config.log_dir / "membership_proofs.log")

    if args.benchmark < 1:
        parser.error("--benchmark must be at least 1")

    try:
        demo = MembershipProofDemo(config, args.key_size)
        results = demo.run(args.plaintext, args.candidates, args.benchmark)
    except (ZKError, PaillierError) as e:
        logger.error(f"Membership proof failed: {e}")
        return 1

    output = args.output
    if output is None and (config.enable_benchmarking or args.benchmark > 1):
        output = config.results_dir / "membership_proof_results.json"

    if output is not None:
        save_results(results, output)
        report_path = output.parent / "performance_report.txt"
        report_path.write_text(create_performance_report(demo.performance_monitor))
        demo.performance_monitor.save_metrics(output.parent / "performance_metrics.json")
        print(f"Results saved to: {output}")

    return 0 if results['verification']['all_proofs_valid'] else 1


if __name__ == "__main__":
    sys.exit(main())
