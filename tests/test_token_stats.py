import json

from nanocode.token_stats import TokenStatsRecorder


def _bin_lines(text):
    return [line for line in text.splitlines() if " | " in line and line.count("|") == 1]


def _bin_counts(text):
    return [int(line.rsplit(" ", 1)[1]) for line in _bin_lines(text)]


def test_empty_recorder_reports_nothing(tmp_path):
    recorder = TokenStatsRecorder(tmp_path / "stats.jsonl")
    assert "No token statistics recorded." in recorder.render_histogram()


def test_save_without_data_creates_no_file(tmp_path):
    path = tmp_path / "sub" / "stats.jsonl"
    TokenStatsRecorder(path).save()
    assert not path.exists()


def test_add_tokens_accumulates(tmp_path):
    recorder = TokenStatsRecorder(tmp_path / "stats.jsonl")
    recorder.add_tokens(7, 100)
    recorder.add_tokens(7, 50)
    recorder.add_tokens(9, 5)
    assert recorder.current == {7: 150, 9: 5}


def test_save_writes_records_and_skips_zero(tmp_path):
    path = tmp_path / "sub" / "stats.jsonl"
    recorder = TokenStatsRecorder(path)
    recorder.add_tokens(1, 120)
    recorder.add_tokens(2, 0)
    recorder.save()
    records = [json.loads(line) for line in path.read_text().splitlines()]
    assert [(r["cid"], r["total_tokens"]) for r in records] == [(1, 120)]
    assert set(records[0]) == {"cid", "total_tokens", "timestamp"}


def test_history_round_trip(tmp_path):
    path = tmp_path / "stats.jsonl"
    first = TokenStatsRecorder(path)
    first.add_tokens(1, 300)
    first.add_tokens(2, 40)
    first.save()
    second = TokenStatsRecorder(path)
    assert sorted(second.historical) == [40, 300]


def test_invalid_history_lines_are_ignored(tmp_path):
    path = tmp_path / "stats.jsonl"
    path.write_text(
        "not json\n"
        '{"cid": 1, "total_tokens": 0, "timestamp": 5}\n'
        '{"cid": 1, "total_tokens": -3, "timestamp": 5}\n'
        '{"total_tokens": 12}\n'
        '{"cid": 2, "total_tokens": 77, "timestamp": 5}\n'
    )
    assert TokenStatsRecorder(path).historical == [77]


def test_histogram_counts_every_context(tmp_path):
    recorder = TokenStatsRecorder(tmp_path / "stats.jsonl")
    for cid, tokens in enumerate([1, 10, 55, 99, 100, 1000], start=1):
        recorder.add_tokens(cid, tokens)
    text = recorder.render_histogram()
    bins = _bin_lines(text)
    assert len(bins) == 10
    assert sum(_bin_counts(text)) == 6
    assert "(6 contexts total)" in text
    assert text.endswith("x: tokens consumed per context  |  y: number of contexts")


def test_histogram_bars_have_fixed_width_and_full_peak(tmp_path):
    recorder = TokenStatsRecorder(tmp_path / "stats.jsonl")
    for cid, tokens in enumerate([3, 3, 3, 500], start=1):
        recorder.add_tokens(cid, tokens)
    bars = [line.split(" | ")[1].rsplit(" ", 1)[0].strip() for line in _bin_lines(recorder.render_histogram())]
    assert all(len(bar) == 40 and set(bar) <= {"#", "."} for bar in bars)
    assert "#" * 40 in bars


def test_histogram_includes_history(tmp_path):
    path = tmp_path / "stats.jsonl"
    first = TokenStatsRecorder(path)
    first.add_tokens(1, 10)
    first.save()
    second = TokenStatsRecorder(path)
    second.add_tokens(2, 20)
    assert sum(_bin_counts(second.render_histogram())) == 2


def test_save_and_plot_prints_histogram(tmp_path, capsys):
    path = tmp_path / "stats.jsonl"
    recorder = TokenStatsRecorder(path)
    recorder.add_tokens(4, 42)
    recorder.save_and_plot()
    out = capsys.readouterr().out
    assert "=== Token Usage Distribution" in out
    assert path.exists()


def test_default_path_file_name():
    path = TokenStatsRecorder.default_path()
    assert path.name == "token_stats.jsonl"
    assert path.parent.name == "nanocode"