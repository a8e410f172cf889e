import json
import shlex

import pytest

from scanbench import plot_results
from scanbench.run_sweep import build_parser, main


def _cmd(argv):
    return " ".join(shlex.quote(a) for a in argv)


def test_defaults():
    args = build_parser().parse_args(["--scanmem-program", "scanmem", "--scanmem-commands", "exit"])
    assert args.nthreads == -1
    assert args.iterations == 20
    assert args.timeout == 0.0
    assert args.minbytes == args.maxbytes == 0x10000000
    assert args.stepfactor == 1.0
    assert not args.verbose


def test_size_flags_accept_suffixes():
    args = build_parser().parse_args([
        "--scanmem-program", "scanmem", "--scanmem-commands", "exit",
        "--minbytes", "0x1000", "--maxbytes", "1m", "--stepbytes", "4k",
    ])
    assert (args.minbytes, args.maxbytes, args.stepbytes) == (4096, 1 << 20, 4096)


def test_required_flags():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--scanmem-commands", "exit"])


def test_config_error_exit_code(tmp_path):
    rc = main([
        "--scanmem-program", "scanmem", "--scanmem-commands", "exit",
        "--stepbytes", "0", "--stepfactor", "1.0", "--out", str(tmp_path),
    ])
    assert rc == 2
    assert list(tmp_path.iterdir()) == []


def test_dry_run(tmp_path, capsys):
    rc = main([
        "--scanmem-program", "scanmem", "--scanmem-commands", "= 1;exit",
        "--minbytes", "1", "--maxbytes", "10", "--stepbytes", "3", "--dry-run", "--out", str(tmp_path),
    ])
    assert rc == 0
    out = capsys.readouterr().out
    assert "Planned runs:" in out
    assert json.loads(out.split("Planned runs:", 1)[1])["sizes"] == [1, 4, 7, 10]


def test_full_run_writes_report(tmp_path, stub_load, stub_target, target_log):
    out_root = tmp_path / "results"
    rc = main([
        "--scanmem-program", _cmd(stub_target),
        "--scanmem-commands", "= 1;exit",
        "--load-program", _cmd(stub_load),
        "--minbytes", "4k", "--maxbytes", "12k", "--stepbytes", "4k",
        "-n", "2", "-t", "3",
        "--out", str(out_root),
    ])
    assert rc == 0
    (run_dir,) = list(out_root.iterdir())
    assert run_dir.name.startswith("sweep_")
    report = json.loads((run_dir / "report.json").read_text())
    assert [r["size_bytes"] for r in report["results"]] == [4096, 8192, 12288]
    assert all(r["status"] == "completed" for r in report["results"])
    assert all(len(r["durations"]) == 2 for r in report["results"])
    assert report["config"]["nthreads"] == 3
    assert (run_dir / "results.csv").exists()
    assert (run_dir / "cli_args.json").exists()
    assert all("-j=3" in line for line in target_log.read_text().splitlines())

    # the plotting script renders straight from the saved report
    assert plot_results.main(["--run-dir", str(run_dir)]) == 0
    assert (run_dir / "durations.svg").exists()


def test_failed_scenarios_still_exit_zero(tmp_path, stub_load):
    rc = main([
        "--scanmem-program", str(tmp_path / "missing-scanner"),
        "--scanmem-commands", "exit",
        "--load-program", _cmd(stub_load),
        "--minbytes", "4k", "--maxbytes", "4k", "-n", "1",
        "--out", str(tmp_path / "results"),
    ])
    assert rc == 0
    (run_dir,) = list((tmp_path / "results").iterdir())
    report = json.loads((run_dir / "report.json").read_text())
    assert report["results"][0]["status"] == "failed"
    assert report["results"][0]["stats"] is None
