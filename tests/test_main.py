import argparse
import json

import pytest

from main import main, parse_candidates


@pytest.fixture
def workdir(tmp_path, monkeypatch, restore_root_logging):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_parse_candidates():
    assert parse_candidates("23, 38,52,") == [23, 38, 52]


def test_parse_candidates_rejects_garbage():
    with pytest.raises(argparse.ArgumentTypeError):
        parse_candidates("23,x")


def test_main_writes_results(workdir, capsys):
    output = workdir / "out" / "results.json"
    exit_code = main([
        '--config', str(workdir / "missing.yaml"),
        '--key-size', '1024',
        '--plaintext', '52',
        '--candidates', '23,38,52,65',
        '--benchmark', '2',
        '--output', str(output),
    ])

    assert exit_code == 0
    assert "Verified:   True" in capsys.readouterr().out

    data = json.loads(output.read_text())['data']
    assert data['verification'] == {'all_proofs_valid': True, 'decryption_matches': True}
    assert data['parameters']['rounds'] == 2
    assert data['performance']['operations']['prove']['count'] == 2
    assert (output.parent / "results_summary.txt").exists()
    assert (output.parent / "performance_report.txt").exists()
    metrics = json.loads((output.parent / "performance_metrics.json").read_text())
    assert metrics['summary']['operations']['keygen']['count'] == 1
    assert (workdir / "logs" / "membership_proofs.log").exists()


def test_main_plaintext_outside_candidates(workdir):
    exit_code = main([
        '--config', str(workdir / "missing.yaml"),
        '--key-size', '1024',
        '--plaintext', '99',
    ])
    assert exit_code == 1
    assert not (workdir / "results").exists()
