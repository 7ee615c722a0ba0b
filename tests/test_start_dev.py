"""Tests for the development launcher's scoring mode."""

import json

import start_dev


def test_load_answers_defaults_to_sample():
    answers, form = start_dev.load_answers(None)
    assert answers["practice_type"] == "PT"
    assert form["organization"] == "Sample PT Clinic"


def test_load_answers_accepts_wrapped_and_bare_files(tmp_path):
    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text(json.dumps({"answers": {"practice_type": "BH"}, "form": {"name": "Clinic"}}))
    bare = tmp_path / "bare.json"
    bare.write_text(json.dumps({"practice_type": "UC"}))

    assert start_dev.load_answers(str(wrapped)) == ({"practice_type": "BH"}, {"name": "Clinic"})
    assert start_dev.load_answers(str(bare)) == ({"practice_type": "UC"}, {})


def test_score_answers_writes_exports(tmp_path, capsys):
    pdf_path = tmp_path / "report.pdf"
    csv_path = tmp_path / "export.csv"

    result = start_dev.score_answers(start_dev.SAMPLE_ANSWERS, start_dev.SAMPLE_FORM, pdf_path, csv_path)

    assert result.segment == "PT"
    assert pdf_path.read_bytes().startswith(b"%PDF")
    assert csv_path.read_text().startswith("Timestamp,")
    assert "Your Resiliency Index" in capsys.readouterr().out
