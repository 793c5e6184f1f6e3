import importlib.util
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "ingest_pdf.py"


@pytest.fixture(scope="module")
def ingest_script():
    spec = importlib.util.spec_from_file_location("ingest_pdf_script", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_question_with_spaces_is_one_argument(ingest_script):
    args = ingest_script.build_parser().parse_args(
        ["a.pdf", "b.pdf", "--ask", "what is the refund policy?"]
    )

    assert args.pdfs == ["a.pdf", "b.pdf"]
    assert args.ask == "what is the refund policy?"


def test_ask_is_optional(ingest_script):
    args = ingest_script.build_parser().parse_args(["report.pdf"])

    assert args.pdfs == ["report.pdf"]
    assert args.ask is None


def test_at_least_one_pdf_is_required(ingest_script):
    with pytest.raises(SystemExit):
        ingest_script.build_parser().parse_args([])
