import json

from scripts import preset_sweep


def test_sweep_dry_run_lists_grid(tmp_path, capsys):
    preset_sweep.main(
        ["--preset", "xor", "--lr", "0.5", "1.5", "--hidden", "3", "--output-dir", str(tmp_path), "--dry-run"]
    )
    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert [line["run"] for line in lines] == ["lr-0.5_hidden-3", "lr-1.5_hidden-3"]
    assert lines[0]["config"]["hidden"] == [3]
    assert lines[1]["config"]["run_dir"].endswith("lr-1p5_hidden-3")


def test_sweep_executes_runs(tmp_path, capsys):
    preset_sweep.main(
        ["--preset", "xor", "--lr", "1.0", "--hidden", "2", "4", "--max-iter", "5", "--output-dir", str(tmp_path)]
    )
    out = capsys.readouterr().out.splitlines()
    results = [json.loads(line) for line in out if line.startswith("{")]
    assert len(results) == 2
    assert all(result["iterations"] == 5 for result in results)
    assert (tmp_path / "xor" / "lr-1_hidden-4" / "network.bin").exists()
